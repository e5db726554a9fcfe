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
LQG Controller Synthesis

Builds observer-based compensators from an LQR state-feedback gain and a
Kalman observer gain (separation principle).

LQG (``lqg``):
    L = lqr(A, B, Q1 + qQ·C'C, Q2)
    K = kalman(A, C, R1 + qR·B·B', R2)

    Ac = A - BL - KC + KDL,   Bc = K,   Cc = L,   Dc = 0

LQG with integral action (``lqgi``): the plant is augmented with nu
constant input-disturbance states

    Ae = [A  B]    Be = [B]    Ce = [C  0]    De = D
         [0  H]         [0]

with H = 0 for continuous plants and H = I for discrete plants, so the
disturbance states hold their value in either time domain.
The regulator gain is designed on the original (A, B) and extended with an
identity block, Le = [L  I], so the disturbance estimate is cancelled
directly at the input. The observer is designed on (Ae, Ce). A constant
input disturbance is then rejected with zero steady-state output error.

The compensator maps the plant output y to ŷc and is applied as u = -ŷc,
i.e. in negative feedback: ``feedback(plant, G.controller)``.

For discrete plants (``sampling`` discrete) the discrete Riccati equations
are used and the compensator inherits the plant's sampling period.
"""

import logging

import numpy as np

from csynth.control.classical_control_functions import dkalman, dlqr, kalman, lqr
from csynth.systems.sampling import CONTINUOUS, Sampling
from csynth.systems.state_space import StateSpace
from csynth.systems.validation import as_matrix, check_shape, check_square
from csynth.types.control_classical import LQGController
from csynth.types.core import (
    CovarianceMatrix,
    FeedthroughMatrix,
    InputMatrix,
    OutputMatrix,
    StateMatrix,
)

logger = logging.getLogger(__name__)


def _plant_matrices(A, B, C, D):
    A = as_matrix(A, "A", dtype=float)
    B = as_matrix(B, "B", dtype=float)
    C = as_matrix(C, "C", dtype=float)
    n = check_square(A, "A")
    m = B.shape[1]
    p = C.shape[0]
    check_shape(B, (n, m), "B")
    check_shape(C, (p, n), "C")
    if np.ndim(D) == 0 and np.all(np.asarray(D) == 0):
        D = np.zeros((p, m))
    D = as_matrix(D, "D", dtype=float)
    check_shape(D, (p, m), "D")
    return A, B, C, D


def _weights(Q1, Q2, R1, R2, n, m, p, n_observer):
    Q1 = as_matrix(Q1, "Q1", dtype=float)
    Q2 = as_matrix(Q2, "Q2", dtype=float)
    R1 = as_matrix(R1, "R1", dtype=float)
    R2 = as_matrix(R2, "R2", dtype=float)
    check_shape(Q1, (n, n), "Q1")
    check_shape(Q2, (m, m), "Q2")
    check_shape(R1, (n_observer, n_observer), "R1")
    check_shape(R2, (p, p), "R2")
    return Q1, Q2, R1, R2


def _gain_functions(sampling: Sampling):
    if sampling.is_continuous:
        return lqr, kalman
    return dlqr, dkalman


def lqg(
    A: StateMatrix,
    B: InputMatrix,
    C: OutputMatrix,
    D: FeedthroughMatrix,
    Q1: StateMatrix,
    Q2: InputMatrix,
    R1: CovarianceMatrix,
    R2: CovarianceMatrix,
    qQ: float = 0,
    qR: float = 0,
    sampling: Sampling = CONTINUOUS,
) -> LQGController:
    """
    Synthesize an LQG compensator.

    Args:
        A, B, C, D: Plant realization (nx, nu, ny)
        Q1: State cost (nx, nx)
        Q2: Input cost (nu, nu)
        R1: Process noise covariance (nx, nx)
        R2: Measurement noise covariance (ny, ny)
        qQ: Weight of the output term C'C added to Q1
        qR: Weight of the input-noise term B·B' added to R1
        sampling: Sampling tag of the plant; selects continuous or discrete
            Riccati equations

    Returns:
        LQGController with ``integrator=False`` and an nx-state compensator

    Raises:
        DimensionMismatchError: If any weight does not match the plant
            (checked before any computation)
        LinAlgError: If a Riccati solve fails

    Examples
    --------
    >>> A = [[0, 1], [0, 0]]; B = [[0], [1]]; C = [[1, 0]]; D = [[0]]
    >>> G = lqg(A, B, C, D, np.eye(2), np.eye(1), np.eye(2), np.eye(1))
    >>> G.controller.nx
    2
    """
    A, B, C, D = _plant_matrices(A, B, C, D)
    n, m, p = A.shape[0], B.shape[1], C.shape[0]
    Q1, Q2, R1, R2 = _weights(Q1, Q2, R1, R2, n, m, p, n)
    regulator_gain, observer_gain = _gain_functions(sampling)

    L = regulator_gain(A, B, Q1 + qQ * C.T @ C, Q2)
    K = observer_gain(A, C, R1 + qR * B @ B.T, R2)

    Ac = A - B @ L - K @ C + K @ D @ L
    controller = StateSpace(Ac, K, L, np.zeros(D.T.shape), sampling)
    logger.debug("LQG compensator: %d states, %d inputs, %d outputs", n, p, m)

    return LQGController(
        plant=StateSpace(A, B, C, D, sampling),
        Q1=Q1,
        Q2=Q2,
        R1=R1,
        R2=R2,
        qQ=qQ,
        qR=qR,
        controller=controller,
        state_feedback_gain=L,
        observer_gain=K,
        integrator=False,
    )


def lqgi(
    A: StateMatrix,
    B: InputMatrix,
    C: OutputMatrix,
    D: FeedthroughMatrix,
    Q1: StateMatrix,
    Q2: InputMatrix,
    R1: CovarianceMatrix,
    R2: CovarianceMatrix,
    qQ: float = 0,
    qR: float = 0,
    sampling: Sampling = CONTINUOUS,
) -> LQGController:
    """
    Synthesize an LQG compensator with integral action.

    A model of a constant disturbance on each plant input is appended to the
    plant before the observer is designed, which gives the compensator
    integral action.

    Args:
        A, B, C, D: Plant realization (nx, nu, ny)
        Q1: State cost (nx, nx), for the un-augmented regulator
        Q2: Input cost (nu, nu)
        R1: Process noise covariance of the augmented model (nx+nu, nx+nu)
        R2: Measurement noise covariance (ny, ny)
        qQ: Weight of the output term C'C added to Q1
        qR: Weight of the input-noise term Be·Be' added to R1
        sampling: Sampling tag of the plant

    Returns:
        LQGController with ``integrator=True`` and an (nx+nu)-state
        compensator

    Raises:
        DimensionMismatchError: If any weight does not match the plant
        LinAlgError: If a Riccati solve fails (e.g. the augmented model is
            not detectable because the plant has a zero at s = 0)
    """
    A, B, C, D = _plant_matrices(A, B, C, D)
    n, m, p = A.shape[0], B.shape[1], C.shape[0]
    Q1, Q2, R1, R2 = _weights(Q1, Q2, R1, R2, n, m, p, n + m)
    regulator_gain, observer_gain = _gain_functions(sampling)

    # Disturbance states enter exactly where the input does and stay constant:
    # ẇ = 0 in continuous time, w[k+1] = w[k] in discrete time
    hold = np.zeros((m, m)) if sampling.is_continuous else np.eye(m)
    Ae = np.block([[A, B], [np.zeros((m, n)), hold]])
    Be = np.vstack([B, np.zeros((m, m))])
    Ce = np.hstack([C, np.zeros((p, m))])
    De = D

    L = regulator_gain(A, B, Q1 + qQ * C.T @ C, Q2)
    Le = np.hstack([L, np.eye(m)])
    K = observer_gain(Ae, Ce, R1 + qR * Be @ Be.T, R2)

    Ac = Ae - Be @ Le - K @ Ce + K @ De @ Le
    controller = StateSpace(Ac, K, Le, np.zeros(D.T.shape), sampling)
    logger.debug("LQG-integral compensator: %d states (%d disturbance)", n + m, m)

    return LQGController(
        plant=StateSpace(A, B, C, D, sampling),
        Q1=Q1,
        Q2=Q2,
        R1=R1,
        R2=R2,
        qQ=qQ,
        qR=qR,
        controller=controller,
        state_feedback_gain=Le,
        observer_gain=K,
        integrator=True,
    )


def lqg_for_plant(plant: StateSpace, Q1, Q2, R1, R2, qQ: float = 0, qR: float = 0) -> LQGController:
    """:func:`lqg` on a StateSpace plant, using its sampling tag."""
    return lqg(plant.A, plant.B, plant.C, plant.D, Q1, Q2, R1, R2,
               qQ=qQ, qR=qR, sampling=plant.sampling)


def lqgi_for_plant(plant: StateSpace, Q1, Q2, R1, R2, qQ: float = 0, qR: float = 0) -> LQGController:
    """:func:`lqgi` on a StateSpace plant, using its sampling tag."""
    return lqgi(plant.A, plant.B, plant.C, plant.D, Q1, Q2, R1, R2,
                qQ=qQ, qR=qR, sampling=plant.sampling)


def resynthesize(result: LQGController, **changes) -> LQGController:
    """
    Rebuild a controller from the plant and weights stored in ``result``.

    Dispatches to :func:`lqgi` or :func:`lqg` according to
    ``result.integrator``. Keyword arguments among ``Q1``, ``Q2``, ``R1``,
    ``R2``, ``qQ`` and ``qR`` replace the stored values, which supports
    "same plant, new weights" iterations.

    With no changes the result equals the original controller.

    Raises:
        TypeError: If an unknown keyword is given

    Examples
    --------
    >>> G = lqg(A, B, C, D, Q1, Q2, R1, R2)
    >>> faster = resynthesize(G, Q1=10 * Q1)
    """
    allowed = {"Q1", "Q2", "R1", "R2", "qQ", "qR"}
    unknown = set(changes) - allowed
    if unknown:
        raise TypeError(f"Unknown re-synthesis parameters: {sorted(unknown)}")

    params = {name: changes.get(name, getattr(result, name)) for name in sorted(allowed)}
    builder = lqgi if result.integrator else lqg
    plant = result.plant
    return builder(
        plant.A, plant.B, plant.C, plant.D,
        params["Q1"], params["Q2"], params["R1"], params["R2"],
        qQ=params["qQ"], qR=params["qR"], sampling=plant.sampling,
    )


__all__ = ["lqg", "lqgi", "lqg_for_plant", "lqgi_for_plant", "resynthesize"]
