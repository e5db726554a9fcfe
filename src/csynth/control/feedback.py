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
Feedback Interconnection

Closes negative feedback loops around transfer-function and state-space
systems::

    r ──>(+)── sys1 ──┬──> y
          -^          │
           └── sys2 <─┘

Transfer functions (SISO):
    feedback(L)     = L / (1 + L)
    feedback(P, C)  = feedback(P·C)

The work is delegated to the SISO entry, so each representation picks its
own algorithm: exact P / (P + Q) for rational coefficients, a re-factored
denominator for zero/pole/gain form, and plain rational-function division
otherwise. MIMO transfer functions are rejected since elementwise
inversion is not a matrix inverse.

State space:
    A = [ A1 - B1·D2·C1      -B1·C2          ]    B = [ B1    ]
        [ B2·C1              A2 - B2·D1·C2   ]        [ B2·D1 ]
    C = [ C1   -D1·C2 ],   D = D1

valid when at most one of D1, D2 is nonzero. With both nonzero the loop
contains an algebraic equation this realization does not solve, and the
interconnection is rejected.

Two degree-of-freedom:
    feedback2dof(P, R, S, T) = B·T / (A·R + B·S)   with P = B / A
"""

import logging
from typing import Optional, Union

import numpy as np

from csynth.systems.polynomials import poly_mul, zpconv
from csynth.systems.sampling import CONTINUOUS, Sampling, common_sampling
from csynth.systems.state_space import StateSpace
from csynth.systems.transfer_function import SisoPolynomial, TransferFunction
from csynth.systems.validation import DimensionMismatchError, UnsupportedSystemError
from csynth.types.core import PolynomialCoefficients

logger = logging.getLogger(__name__)

FEEDTHROUGH_TOLERANCE = 0.0
"""|D| entries above this count as a direct feedthrough term."""

System = Union[StateSpace, TransferFunction]


def feedback(sys1: System, sys2: Optional[System] = None) -> System:
    """
    Negative feedback interconnection.

    Args:
        sys1: Forward path (or open loop L when ``sys2`` is omitted)
        sys2: Feedback path. Omitted: unity feedback (state space) or
            L / (1 + L) (transfer function). For transfer functions the
            two-argument form closes the loop around sys1·sys2.

    Returns:
        Closed-loop system of the same kind as the inputs

    Raises:
        TypeError: If the arguments mix StateSpace and TransferFunction
        UnsupportedSystemError: For MIMO transfer functions, or state-space
            systems that both have feedthrough
        DimensionMismatchError: If the loop dimensions do not match
        ValueError: If the sampling tags differ

    Examples
    --------
    >>> feedback(zpk([], [0], 1.0)).poles()       # 1/s in unity feedback
    array([-1.])
    >>> plant = StateSpace([[0, 1], [0, 0]], [[0], [1]], [[1, 0]], 0)
    >>> controller = StateSpace.static_gain([[2.0]])
    >>> feedback(plant, controller).nx
    2
    """
    if isinstance(sys1, TransferFunction):
        if sys2 is None:
            return _feedback_tf(sys1)
        if not isinstance(sys2, TransferFunction):
            raise TypeError(
                f"Cannot interconnect TransferFunction with {type(sys2).__name__}"
            )
        return _feedback_tf(sys1 * sys2)

    if isinstance(sys1, StateSpace):
        if sys2 is None:
            return _feedback_unity(sys1)
        if not isinstance(sys2, StateSpace):
            raise TypeError(f"Cannot interconnect StateSpace with {type(sys2).__name__}")
        return _feedback_ss(sys1, sys2)

    raise TypeError(f"feedback is not defined for {type(sys1).__name__}")


def _feedback_tf(L: TransferFunction) -> TransferFunction:
    if not L.is_siso:
        raise UnsupportedSystemError(
            f"MIMO transfer function inversion is not supported (shape {L.shape}); "
            "convert to StateSpace and use feedback(sys1, sys2)"
        )
    entry = L.siso()
    logger.debug("Closing %s transfer-function loop", entry.representation.value)
    return TransferFunction([[entry.feedback_loop()]], L.sampling)


def _feedback_unity(sys: StateSpace) -> StateSpace:
    if sys.ny != sys.nu:
        raise DimensionMismatchError(
            f"Unity feedback needs as many outputs as inputs, got ny={sys.ny}, nu={sys.nu}; "
            "use feedback(sys1, sys2) instead"
        )
    return _feedback_ss(sys, StateSpace.static_gain(np.eye(sys.ny), sys.sampling))


def _feedback_ss(sys1: StateSpace, sys2: StateSpace) -> StateSpace:
    sampling = common_sampling(sys1.sampling, sys2.sampling)
    if sys2.nu != sys1.ny or sys2.ny != sys1.nu:
        raise DimensionMismatchError(
            f"Feedback path must map {sys1.ny} outputs to {sys1.nu} inputs, "
            f"got a system with {sys2.nu} inputs and {sys2.ny} outputs"
        )
    if sys1.has_feedthrough(FEEDTHROUGH_TOLERANCE) and sys2.has_feedthrough(FEEDTHROUGH_TOLERANCE):
        raise UnsupportedSystemError(
            "There can not be a direct term (D) in both sys1 and sys2: "
            "the loop would contain an algebraic equation"
        )

    A1, B1, C1, D1 = sys1.A, sys1.B, sys1.C, sys1.D
    A2, B2, C2, D2 = sys2.A, sys2.B, sys2.C, sys2.D

    A = np.block([
        [A1 + B1 @ (-D2) @ C1, B1 @ (-C2)],
        [B2 @ C1, A2 + B2 @ D1 @ (-C2)],
    ])
    B = np.vstack([B1, B2 @ D1])
    C = np.hstack([C1, D1 @ (-C2)])
    logger.debug("Closed state-space loop: %d + %d states", sys1.nx, sys2.nx)
    return StateSpace(A, B, C, D1, sampling)


# ============================================================================
# Two Degree-of-Freedom Interconnection
# ============================================================================


def feedback2dof(
    P: TransferFunction,
    R: PolynomialCoefficients,
    S: PolynomialCoefficients,
    T: PolynomialCoefficients,
) -> TransferFunction:
    """
    Closed loop of a plant P = B / A with an RST controller.

    Controller R·u = T·r - S·y gives y / r = B·T / (A·R + B·S).

    Args:
        P: SISO plant
        R, S, T: Controller polynomials, descending powers

    Returns:
        Closed-loop transfer function from r to y, with P's sampling

    Raises:
        UnsupportedSystemError: If P is MIMO
    """
    if not P.is_siso:
        raise UnsupportedSystemError("Feedback not implemented for MIMO systems")
    entry = P.siso()
    return feedback2dof_polynomials(
        entry.numerator(), entry.denominator(), R, S, T, sampling=P.sampling
    )


def feedback2dof_polynomials(
    B: PolynomialCoefficients,
    A: PolynomialCoefficients,
    R: PolynomialCoefficients,
    S: PolynomialCoefficients,
    T: PolynomialCoefficients,
    sampling: Sampling = CONTINUOUS,
) -> TransferFunction:
    """B·T / (A·R + B·S) from raw polynomial coefficients (descending powers)."""
    return TransferFunction([[SisoPolynomial(poly_mul(B, T), zpconv(A, R, B, S))]], sampling)


__all__ = [
    "FEEDTHROUGH_TOLERANCE",
    "feedback",
    "feedback2dof",
    "feedback2dof_polynomials",
]
