# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Backend Types

Array backend identifiers used by the matrix-level design functions.
Synthesis always runs in NumPy/SciPy; inputs from other backends are
converted on entry and results converted back on exit.
"""

from typing import Literal

Backend = Literal["numpy", "torch", "jax"]
"""
Backend identifier for numerical arrays.

Valid values:
- 'numpy': NumPy arrays (default, no conversion)
- 'torch': PyTorch tensors (converted through CPU NumPy)
- 'jax': JAX arrays

Examples
--------
>>> backend: Backend = 'torch'
>>> result = design_lqr(A, B, Q, R, backend=backend)
>>> K = result['gain']  # torch.Tensor
"""

VALID_BACKENDS = ("numpy", "torch", "jax")


__all__ = ["Backend", "VALID_BACKENDS"]
