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
Core Types - Matrix and Polynomial Aliases

Semantic aliases for the arrays flowing through control synthesis:
- Multi-backend array types (NumPy, PyTorch, JAX)
- Matrix types named by role (state, input, output, feedthrough, gains)
- Polynomial coefficient types for transfer-function algebra

Aliases carry meaning, not runtime checks. Shape validation lives in
:mod:`csynth.systems.validation`.

Usage
-----
>>> from csynth.types.core import StateMatrix, InputMatrix, GainMatrix
>>>
>>> def closed_loop_matrix(A: StateMatrix, B: InputMatrix, K: GainMatrix):
...     return A - B @ K
"""

from typing import TYPE_CHECKING, Sequence, Union

import numpy as np

if TYPE_CHECKING:
    import jax.numpy as jnp
    import torch


# ============================================================================
# Basic Array Types - Multi-Backend Support
# ============================================================================

ArrayLike = Union[np.ndarray, "torch.Tensor", "jnp.ndarray"]
"""
Array accepted at the public boundary.

Gain design functions accept any backend and convert to NumPy internally;
system containers always store NumPy arrays.
"""

ScalarLike = Union[float, int, complex, np.number]
"""Scalar accepted wherever a 1x1 matrix or constant transfer function fits."""


# ============================================================================
# Matrix Types - Semantic Naming by Role
# ============================================================================

StateMatrix = ArrayLike
"""
State matrix (nx, nx).

Uses:
- Dynamics: A in ẋ = Ax + Bu (continuous) or x[k+1] = Ax[k] + Bu[k]
- Cost: Q, Q1 (state weight in LQR)
- Covariance: R1 (process noise in Kalman design), P (Riccati solution)
"""

InputMatrix = ArrayLike
"""
Input matrix B (nx, nu).

Also used for the control weight R / Q2 (nu, nu) of LQR design.

Examples
--------
>>> B: InputMatrix = np.array([[0], [1]])  # Double integrator force input
"""

OutputMatrix = ArrayLike
"""
Output matrix C (ny, nx).

Also used for the measurement noise covariance R2 (ny, ny).
"""

FeedthroughMatrix = ArrayLike
"""
Feedthrough matrix D (ny, nu).

A nonzero D on both sides of a feedback interconnection forms an
algebraic loop.
"""

CovarianceMatrix = ArrayLike
"""Symmetric positive semi-definite covariance (process R1 or measurement R2)."""

GainMatrix = ArrayLike
"""
Gain matrix for control or estimation.

Uses:
- State-feedback gain: K (nu, nx) where u = -K*x
- Observer gain: K (nx, ny) where x̂̇ = ... + K*(y - C*x̂)
"""

ControllabilityMatrix = ArrayLike
"""Controllability matrix [B, AB, A²B, ..., A^(n-1)B] of shape (nx, nx*nu)."""

ObservabilityMatrix = ArrayLike
"""Observability matrix [C; CA; CA²; ...; CA^(n-1)] of shape (nx*ny, nx)."""


# ============================================================================
# Polynomial Types
# ============================================================================

PolynomialCoefficients = Union[np.ndarray, Sequence[ScalarLike]]
"""
Polynomial coefficients in descending powers.

[1, 3, 2] is s² + 3s + 2 (or z² + 3z + 2 in discrete time).
"""

RootList = Union[np.ndarray, Sequence[ScalarLike]]
"""Zeros or poles of a factored (zero/pole/gain) transfer function."""

PoleList = RootList
"""Desired closed-loop eigenvalues for pole placement."""


__all__ = [
    "ArrayLike",
    "ScalarLike",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    "CovarianceMatrix",
    "GainMatrix",
    "ControllabilityMatrix",
    "ObservabilityMatrix",
    "PolynomialCoefficients",
    "RootList",
    "PoleList",
]
