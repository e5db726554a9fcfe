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
Pole Placement

Exact state-feedback pole assignment for single-input systems using
Ackermann's formula:

    K = [0 … 0 1] · 𝒞⁻¹ · φ(A)

where 𝒞 = [B, AB, …, Aⁿ⁻¹B] is the controllability matrix and
φ(z) = Π(z - pᵢ) the desired characteristic polynomial, so that
eig(A - BK) = {pᵢ}.

Ackermann's formula is closed-form, with no iterative refinement. It is
ill-conditioned for large state dimensions or tightly clustered poles;
:class:`IllConditionedPlacementWarning` is emitted when the controllability
matrix is close to singular, and the computed gain is returned unchanged.

Multi-input placement is not provided; use :func:`lqr` for MIMO design.

Examples
--------
>>> A = np.array([[0, 1], [0, 0]])
>>> B = np.array([[0], [1]])
>>> K = place(A, B, [-1, -2])
>>> K
array([[2., 3.]])
"""

import logging
import warnings

import numpy as np
from scipy import linalg

from csynth.control.classical_control_functions import controllability_matrix
from csynth.systems.polynomials import poly_from_roots
from csynth.systems.validation import (
    DimensionMismatchError,
    UnsupportedSystemError,
    as_matrix,
    check_square,
)
from csynth.types.core import GainMatrix, InputMatrix, PoleList, StateMatrix

logger = logging.getLogger(__name__)

CONDITION_WARNING_THRESHOLD = 1.0 / np.sqrt(np.finfo(float).eps)
"""Controllability condition number above which placement is flagged."""


class IllConditionedPlacementWarning(UserWarning):
    """The controllability matrix is nearly singular; the gain may be inaccurate."""


def _validate_placement(A: np.ndarray, B: np.ndarray, poles: np.ndarray) -> None:
    n = check_square(A, "A")
    if len(poles) != n:
        raise DimensionMismatchError(
            f"Must define as many poles as states: got {len(poles)} poles for {n} states"
        )
    if B.shape[0] != n:
        raise DimensionMismatchError(
            f"A and B must have the same number of rows, got {n} and {B.shape[0]}"
        )
    if B.shape[1] != 1:
        raise UnsupportedSystemError(
            f"Pole placement only supports single-input systems, B has {B.shape[1]} columns; "
            "use lqr for multi-input state feedback"
        )


def place(A: StateMatrix, B: InputMatrix, poles: PoleList) -> GainMatrix:
    """
    State-feedback gain K placing the eigenvalues of A - BK at ``poles``.

    Args:
        A: State matrix (nx, nx)
        B: Input matrix (nx, 1); single input only
        poles: Desired closed-loop eigenvalues, exactly nx of them. Complex
            poles should come in conjugate pairs for a real gain.

    Returns:
        Gain K of shape (1, nx)

    Raises:
        DimensionMismatchError: If A is not square, len(poles) != nx or B
            has not nx rows
        UnsupportedSystemError: If B has more than one column
        LinAlgError: If (A, B) is uncontrollable (singular solve)

    Examples
    --------
    >>> A = np.array([[0, 1, 0], [0, 0, 1], [-1, -2, -3]])
    >>> B = np.array([[0], [0], [1]])
    >>> K = place(A, B, [-2, -3, -4])
    >>> np.sort(np.linalg.eigvals(A - B @ K).real)
    array([-4., -3., -2.])
    """
    return acker(A, B, poles)


def acker(A: StateMatrix, B: InputMatrix, poles: PoleList) -> GainMatrix:
    """
    Ackermann's formula for single-input pole placement.

    Raises the same dimension errors as :func:`place` before any work starts.

    Steps:
        1. φ(z) = Π(z - pᵢ) = z^n + c₁z^(n-1) + … + cₙ
        2. φ(A) = Σᵢ cᵢ·A^(n-i)  (c₀ = 1)
        3. 𝒞 = [B, AB, …, A^(n-1)B]
        4. Solve 𝒞·q = φ(A) and return the last row of q

    Numeric types are widened explicitly: A, B and the polynomial
    coefficients are cast to their common floating (or complex) dtype before
    any matrix power is formed.
    """
    poles = np.atleast_1d(np.asarray(poles))
    coefficients = poly_from_roots(poles)
    dtype = np.result_type(np.float64, np.asarray(A), np.asarray(B), coefficients)
    A = as_matrix(A, "A", dtype=dtype)
    B = as_matrix(B, "B", dtype=dtype)
    _validate_placement(A, B, poles)
    n = A.shape[0]

    phi = np.zeros((n, n), dtype=dtype)
    for i, c in enumerate(coefficients):
        phi += c * np.linalg.matrix_power(A, n - i)

    Wc = controllability_matrix(A, B)
    condition = np.linalg.cond(Wc)
    if condition > CONDITION_WARNING_THRESHOLD:
        warnings.warn(
            f"Controllability matrix is ill-conditioned (cond = {condition:.3g}); "
            "the placed poles may be inaccurate",
            IllConditionedPlacementWarning,
            stacklevel=2,
        )

    q = linalg.solve(Wc, phi)
    K = q[-1:, :]
    logger.debug("Placed %d poles, controllability condition %.3g", n, condition)
    return K


__all__ = [
    "place",
    "acker",
    "IllConditionedPlacementWarning",
    "CONDITION_WARNING_THRESHOLD",
]
