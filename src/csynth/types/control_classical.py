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
Classical Control Synthesis Types

Result types for synthesis and analysis routines:
- Linear Quadratic Regulator (LQR) and Kalman filter design results
- Stability, controllability and observability analysis
- LQG / LQG-with-integral-action controllers (:class:`LQGController`)

Mathematical Background
----------------------
LQR (Optimal State Feedback):
    Minimize: J = ∫(x'Qx + u'Ru)dt
    Solution: u = -Kx where K = R⁻¹B'S
    S satisfies: A'S + SA - SBR⁻¹B'S + Q = 0 (Riccati)

Kalman Filter (Optimal State Estimation), by duality:
    K_kalman = lqr(A', C', R1, R2)'

LQG (LQR + Kalman):
    Observer-based compensator from y to u = -ŷc
        x̂̇ = (A - BL - KC + KDL) x̂ + K y
        ŷc = L x̂

Usage
-----
>>> from csynth.types.control_classical import LQRResult, LQGController
>>>
>>> result: LQRResult = design_lqr(A, B, Q, R, system_type='continuous')
>>> K = result['gain']
>>>
>>> G: LQGController = lqg(A, B, C, D, Q1, Q2, R1, R2)
>>> G.controller.nx
2
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np
from typing_extensions import TypedDict

from csynth.types.core import (
    ControllabilityMatrix,
    CovarianceMatrix,
    GainMatrix,
    ObservabilityMatrix,
)

if TYPE_CHECKING:
    from csynth.systems.state_space import StateSpace


# ============================================================================
# Stability Analysis Types
# ============================================================================


class StabilityInfo(TypedDict):
    """
    Stability analysis result dictionary.

    Stability Criteria:
    - Continuous: All Re(λ) < 0 (left half-plane)
    - Discrete: All |λ| < 1 (inside unit circle)

    Fields
    ------
    eigenvalues : np.ndarray
        Eigenvalues of system matrix (complex)
    magnitudes : np.ndarray
        Absolute values |λ| of eigenvalues
    max_magnitude : float
        Maximum |λ| (spectral radius)
    spectral_radius : float
        Same as max_magnitude
    is_stable : bool
        True if system is asymptotically stable
    is_marginally_stable : bool
        True if max|λ| ≈ 1 or Re(λ) ≈ 0
    is_unstable : bool
        True if any |λ| > 1 or Re(λ) > 0
    """

    eigenvalues: np.ndarray
    magnitudes: np.ndarray
    max_magnitude: float
    spectral_radius: float
    is_stable: bool
    is_marginally_stable: bool
    is_unstable: bool


class ControllabilityInfo(TypedDict, total=False):
    """
    Controllability analysis result.

    Fields
    ------
    controllability_matrix : ControllabilityMatrix
        [B, AB, A²B, ..., Aⁿ⁻¹B] of shape (nx, nx*nu)
    rank : int
        Rank of controllability matrix
    is_controllable : bool
        True if rank == nx (full rank)
    condition_number : float
        2-norm condition number of the controllability matrix
        (meaningful for single-input systems, where it is square)
    """

    controllability_matrix: ControllabilityMatrix
    rank: int
    is_controllable: bool
    condition_number: float


class ObservabilityInfo(TypedDict, total=False):
    """
    Observability analysis result.

    Fields
    ------
    observability_matrix : ObservabilityMatrix
        [C; CA; CA²; ...; CAⁿ⁻¹] of shape (nx*ny, nx)
    rank : int
        Rank of observability matrix
    is_observable : bool
        True if rank == nx (full rank)
    """

    observability_matrix: ObservabilityMatrix
    rank: int
    is_observable: bool


# ============================================================================
# Classical Control Design Result Types
# ============================================================================


class LQRResult(TypedDict):
    """
    Linear Quadratic Regulator (LQR) design result.

    Fields
    ------
    gain : GainMatrix
        Optimal feedback gain K of shape (nu, nx)
    cost_to_go : CovarianceMatrix
        Solution S to the algebraic Riccati equation (nx, nx)
    closed_loop_eigenvalues : np.ndarray
        Eigenvalues of (A - BK)
    stability_margin : float
        Distance from stability boundary (positive = stable)
        * Continuous: -max(Re(λ))
        * Discrete: 1 - max(|λ|)
    """

    gain: GainMatrix
    cost_to_go: CovarianceMatrix
    closed_loop_eigenvalues: np.ndarray
    stability_margin: float


class KalmanFilterResult(TypedDict):
    """
    Kalman filter (optimal observer) design result.

    Fields
    ------
    gain : GainMatrix
        Observer gain K of shape (nx, ny)
    error_covariance : CovarianceMatrix
        Steady-state error covariance P (nx, nx)
    innovation_covariance : CovarianceMatrix
        Innovation covariance CPC' + R2 (ny, ny)
    estimator_eigenvalues : np.ndarray
        Eigenvalues of (A - KC)
    """

    gain: GainMatrix
    error_covariance: CovarianceMatrix
    innovation_covariance: CovarianceMatrix
    estimator_eigenvalues: np.ndarray


# ============================================================================
# LQG Controller
# ============================================================================


def _readonly(M) -> np.ndarray:
    arr = np.array(M, dtype=float, copy=True)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class LQGController:
    """
    Observer-based LQG compensator together with the data it came from.

    Created once per synthesis call by ``lqg`` / ``lqgi``. Weights are stored
    as read-only copies so :func:`csynth.control.lqg.resynthesize` can rebuild
    the same controller (or a re-weighted one) from this value alone.

    Attributes
    ----------
    plant : StateSpace
        Plant the controller was designed for
    Q1 : np.ndarray
        State cost (nx, nx)
    Q2 : np.ndarray
        Input cost (nu, nu)
    R1 : np.ndarray
        Process noise covariance (nx, nx), or (nx+nu, nx+nu) with integrator
    R2 : np.ndarray
        Measurement noise covariance (ny, ny)
    qQ : float
        Output weighting added to Q1 as qQ·C'C
    qR : float
        Input-noise weighting added to R1 as qR·B·B'
    controller : StateSpace
        Compensator from plant output y to ŷc, applied as u = -ŷc
    state_feedback_gain : np.ndarray
        L (nu, nx), extended to [L, I] with integrator
    observer_gain : np.ndarray
        K (nx, ny), or (nx+nu, ny) with integrator
    integrator : bool
        True when the plant was augmented with input-disturbance states
    """

    plant: "StateSpace"
    Q1: np.ndarray
    Q2: np.ndarray
    R1: np.ndarray
    R2: np.ndarray
    qQ: float
    qR: float
    controller: "StateSpace"
    state_feedback_gain: np.ndarray
    observer_gain: np.ndarray
    integrator: bool = field(default=False)

    def __post_init__(self):
        for name in ("Q1", "Q2", "R1", "R2", "state_feedback_gain", "observer_gain"):
            object.__setattr__(self, name, _readonly(getattr(self, name)))
        object.__setattr__(self, "qQ", float(self.qQ))
        object.__setattr__(self, "qR", float(self.qR))
        object.__setattr__(self, "integrator", bool(self.integrator))

    @property
    def nx(self) -> int:
        """Order of the compensator."""
        return self.controller.nx

    def closed_loop(self) -> "StateSpace":
        """Plant in negative feedback with the compensator, input at the plant input."""
        from csynth.control.feedback import feedback

        return feedback(self.plant, self.controller)

    def __repr__(self) -> str:
        kind = "LQG with integral action" if self.integrator else "LQG"
        return f"LQGController({kind}, plant={self.plant!r}, order={self.nx})"


__all__ = [
    "StabilityInfo",
    "ControllabilityInfo",
    "ObservabilityInfo",
    "LQRResult",
    "KalmanFilterResult",
    "LQGController",
]
