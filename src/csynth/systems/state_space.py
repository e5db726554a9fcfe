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
State-Space Systems

Immutable container for linear time-invariant models

    Continuous:  ẋ = Ax + Bu,        y = Cx + Du
    Discrete:    x[k+1] = Ax[k] + Bu[k],  y[k] = Cx[k] + Du[k]

Matrices are copied on construction and stored read-only, so a
:class:`StateSpace` never aliases caller memory and synthesis results can
be shared freely.

Examples
--------
>>> plant = StateSpace([[0, 1], [0, 0]], [[0], [1]], [[1, 0]], 0)
>>> plant.nx, plant.nu, plant.ny
(2, 1, 1)
>>> plant.is_continuous
True
>>> StateSpace.static_gain(np.eye(2)).nx
0
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from scipy import linalg

from csynth.systems.sampling import CONTINUOUS, Sampling
from csynth.systems.validation import (
    DimensionMismatchError,
    as_matrix,
    check_square,
)
from csynth.types.core import (
    FeedthroughMatrix,
    InputMatrix,
    OutputMatrix,
    StateMatrix,
)


def _block(M, name: str, empty_shape: tuple) -> np.ndarray:
    # Empty 2D blocks keep their shape so zero-state systems know nu and ny
    arr = np.asarray(M)
    if arr.size == 0:
        return np.zeros(arr.shape if arr.ndim == 2 else empty_shape)
    return as_matrix(M, name)


def _frozen(M: np.ndarray) -> np.ndarray:
    """Widen to a floating dtype and mark read-only."""
    M = M.astype(np.result_type(M.dtype, np.float64), copy=False)
    M.flags.writeable = False
    return M


@dataclass(frozen=True, eq=False)
class StateSpace:
    """
    Linear time-invariant system in state-space form.

    Attributes
    ----------
    A : np.ndarray
        State matrix (nx, nx)
    B : np.ndarray
        Input matrix (nx, nu)
    C : np.ndarray
        Output matrix (ny, nx)
    D : np.ndarray
        Feedthrough matrix (ny, nu). A scalar 0 is broadcast to zeros.
    sampling : Sampling
        Continuous or Discrete(period) tag

    Raises
    ------
    DimensionMismatchError
        If the matrices do not form a consistent realization
    """

    A: StateMatrix
    B: InputMatrix
    C: OutputMatrix
    D: FeedthroughMatrix = 0
    sampling: Sampling = field(default=CONTINUOUS)

    def __post_init__(self):
        A = _block(self.A, "A", (0, 0))
        n = check_square(A, "A")
        B = _block(self.B, "B", (n, 0))
        C = _block(self.C, "C", (0, n))

        if B.shape[0] != n:
            raise DimensionMismatchError(f"B must have {n} rows, got {B.shape[0]}")
        if C.shape[1] != n:
            raise DimensionMismatchError(f"C must have {n} columns, got {C.shape[1]}")

        p, m = C.shape[0], B.shape[1]
        if np.ndim(self.D) == 0 and np.all(np.asarray(self.D) == 0):
            D = np.zeros((p, m))
        else:
            D = as_matrix(self.D, "D")
        if D.shape != (p, m):
            raise DimensionMismatchError(f"D must be ({p}, {m}), got {D.shape}")

        if not isinstance(self.sampling, Sampling):
            raise TypeError(f"sampling must be a Sampling, got {type(self.sampling).__name__}")

        for name, M in (("A", A), ("B", B), ("C", C), ("D", D)):
            object.__setattr__(self, name, _frozen(M))

    # ------------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------------

    @classmethod
    def static_gain(cls, D: FeedthroughMatrix, sampling: Sampling = CONTINUOUS) -> "StateSpace":
        """Memoryless system y = Du (zero states)."""
        D = as_matrix(D, "D")
        p, m = D.shape
        return cls(np.zeros((0, 0)), np.zeros((0, m)), np.zeros((p, 0)), D, sampling)

    # ------------------------------------------------------------------------
    # Dimensions and properties
    # ------------------------------------------------------------------------

    @property
    def nx(self) -> int:
        return self.A.shape[0]

    @property
    def nu(self) -> int:
        return self.B.shape[1]

    @property
    def ny(self) -> int:
        return self.C.shape[0]

    @property
    def shape(self) -> tuple:
        """(ny, nu), matching the transfer-function convention."""
        return (self.ny, self.nu)

    @property
    def is_continuous(self) -> bool:
        return self.sampling.is_continuous

    @property
    def is_discrete(self) -> bool:
        return self.sampling.is_discrete

    @property
    def is_siso(self) -> bool:
        return self.shape == (1, 1)

    def has_feedthrough(self, tolerance: float = 0.0) -> bool:
        """True if any entry of D exceeds ``tolerance`` in magnitude."""
        return bool(np.any(np.abs(self.D) > tolerance))

    def poles(self) -> np.ndarray:
        """Eigenvalues of A."""
        if self.nx == 0:
            return np.zeros(0, dtype=complex)
        return np.linalg.eigvals(self.A)

    def dcgain(self) -> np.ndarray:
        """
        Steady-state gain for a constant input.

        Continuous: D - C A⁻¹ B
        Discrete:   D + C (I - A)⁻¹ B

        Raises
        ------
        LinAlgError
            If the system has a pole at s = 0 (z = 1)
        """
        if self.nx == 0:
            return self.D.copy()
        if self.is_continuous:
            return self.D - self.C @ linalg.solve(self.A, self.B)
        return self.D + self.C @ linalg.solve(np.eye(self.nx) - self.A, self.B)

    # ------------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateSpace):
            return NotImplemented
        return self.sampling == other.sampling and all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in ("A", "B", "C", "D")
        )

    __hash__ = None

    def isclose(self, other: "StateSpace", rtol: float = 1e-5, atol: float = 1e-8) -> bool:
        """Element-wise approximate equality of two realizations."""
        return self.sampling == other.sampling and all(
            getattr(self, name).shape == getattr(other, name).shape
            and np.allclose(getattr(self, name), getattr(other, name), rtol=rtol, atol=atol)
            for name in ("A", "B", "C", "D")
        )

    def __repr__(self) -> str:
        return (
            f"StateSpace(nx={self.nx}, nu={self.nu}, ny={self.ny}, "
            f"sampling={self.sampling})"
        )


def ss(
    A: StateMatrix,
    B: InputMatrix,
    C: OutputMatrix,
    D: FeedthroughMatrix = 0,
    dt: Optional[float] = None,
) -> StateSpace:
    """
    Shorthand constructor.

    Args:
        A, B, C, D: Realization matrices
        dt: Sampling period; None for continuous time

    Returns:
        StateSpace system
    """
    sampling = CONTINUOUS if dt is None else Sampling.discrete(dt)
    return StateSpace(A, B, C, D, sampling)


__all__ = ["StateSpace", "ss"]
