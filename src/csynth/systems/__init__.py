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
System Representations
======================

State-space and transfer-function containers with sampling-time tags.

>>> from csynth.systems import StateSpace, Sampling, tf, zpk
>>> plant = StateSpace([[0, 1], [0, 0]], [[0], [1]], [[1, 0]], 0)
>>> loop = tf([1], [1, 1, 0])
"""

from csynth.systems.sampling import CONTINUOUS, Sampling, TimeDomain
from csynth.systems.state_space import StateSpace, ss
from csynth.systems.transfer_function import (
    Representation,
    SisoPolynomial,
    SisoRational,
    SisoTransferFunction,
    SisoZpk,
    TransferFunction,
    tf,
    tf_matrix,
    tf_rational,
    zpk,
)
from csynth.systems.validation import DimensionMismatchError, UnsupportedSystemError

__all__ = [
    "CONTINUOUS",
    "Sampling",
    "TimeDomain",
    "StateSpace",
    "ss",
    "Representation",
    "SisoTransferFunction",
    "SisoPolynomial",
    "SisoRational",
    "SisoZpk",
    "TransferFunction",
    "tf",
    "tf_rational",
    "tf_matrix",
    "zpk",
    "DimensionMismatchError",
    "UnsupportedSystemError",
]
