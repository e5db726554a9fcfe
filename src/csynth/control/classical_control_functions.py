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
Classical Control Theory Functions

Pure stateless functions for optimal gain design and system analysis:

**Gain Design:**
- Linear Quadratic Regulator (LQR) - continuous and discrete
- Kalman observer gain - via LQR/Kalman duality

**System Analysis:**
- Stability analysis - eigenvalue-based
- Controllability - rank test
- Observability - rank test

All functions are pure (no side effects, no state). Riccati equations are
solved by scipy; solver failures propagate unchanged to the caller.

Mathematical Background
-----------------------
LQR minimizes:
    J = ∫₀^∞ (x'Qx + u'Ru) dt  (continuous)
    J = Σₖ₌₀^∞ (x'Qx + u'Ru)     (discrete)

Solution via algebraic Riccati equation (ARE):
    Continuous: A'S + SA - SBR⁻¹B'S + Q = 0
    Discrete:   S = A'SA - A'SB(R + B'SB)⁻¹B'SA + Q

Optimal gain: K = R⁻¹B'S (continuous), K = (B'SB + R)⁻¹B'SA (discrete)

Kalman gain by duality (A → A', B → C'):
    kalman(A, C, R1, R2) = lqr(A', C', R1, R2)'

Stability:
    Continuous: All Re(λ) < 0 (left half-plane)
    Discrete:   All |λ| < 1 (inside unit circle)

Controllability: rank([B AB A²B ... Aⁿ⁻¹B]) = n
Observability:   rank([C; CA; CA²; ...; CAⁿ⁻¹]) = n

Usage
-----
>>> from csynth.control.classical_control_functions import lqr, kalman
>>> import numpy as np
>>>
>>> A = np.array([[0, 1], [0, 0]])
>>> B = np.array([[0], [1]])
>>> C = np.array([[1, 0]])
>>> K = lqr(A, B, np.eye(2), np.eye(1))
>>> L = kalman(A, C, np.eye(2), np.eye(1))
"""

import logging
from typing import Tuple

import numpy as np
from scipy import linalg

from csynth.systems.validation import (
    as_matrix,
    check_columns,
    check_rows,
    check_shape,
    check_square,
)
from csynth.types.backends import VALID_BACKENDS, Backend
from csynth.types.control_classical import (
    ControllabilityInfo,
    KalmanFilterResult,
    LQRResult,
    ObservabilityInfo,
    StabilityInfo,
)
from csynth.types.core import (
    ControllabilityMatrix,
    CovarianceMatrix,
    GainMatrix,
    InputMatrix,
    OutputMatrix,
    StateMatrix,
)

logger = logging.getLogger(__name__)

SYSTEM_TYPES = ("continuous", "discrete")

# ============================================================================
# Backend Conversion Utilities (Internal)
# ============================================================================


def _to_numpy(arr, backend: Backend):
    """
    Convert array to NumPy for scipy operations.

    Args:
        arr: Array in any backend
        backend: Source backend identifier

    Returns:
        NumPy array
    """
    if isinstance(arr, np.ndarray):
        return arr

    if backend == "torch" or hasattr(arr, "cpu"):
        # PyTorch tensor
        return arr.detach().cpu().numpy()
    return np.asarray(arr)


def _from_numpy(arr: np.ndarray, backend: Backend):
    """
    Convert NumPy array back to target backend.

    Args:
        arr: NumPy array
        backend: Target backend

    Returns:
        Array in target backend
    """
    if backend == "numpy":
        return arr
    if backend == "torch":
        import torch

        return torch.from_numpy(np.ascontiguousarray(arr))
    if backend == "jax":
        import jax.numpy as jnp

        return jnp.array(arr)
    return arr


def _check_system_type(system_type: str) -> None:
    if system_type not in SYSTEM_TYPES:
        raise ValueError(
            f"system_type must be 'continuous' or 'discrete', got '{system_type}'",
        )


def _check_backend(backend: Backend) -> None:
    if backend not in VALID_BACKENDS:
        raise ValueError(f"backend must be one of {VALID_BACKENDS}, got '{backend}'")


def _float_matrices(*matrices):
    """
    Copy inputs into 2D arrays of one common floating dtype.

    Integer inputs are widened before any Riccati solve or matrix power.
    """
    arrays = [as_matrix(M, name) for name, M in matrices]
    dtype = np.result_type(np.float64, *arrays)
    return [arr.astype(dtype, copy=False) for arr in arrays]


# ============================================================================
# LQR - Linear Quadratic Regulator
# ============================================================================


def _validate_regulator(A, B, Q, R) -> None:
    nx = check_square(A, "A")
    nu = B.shape[1]
    check_rows(B, nx, "B")
    check_shape(Q, (nx, nx), "Q")
    check_shape(R, (nu, nu), "R")


def _solve_lqr(
    A: np.ndarray,
    B: np.ndarray,
    Q: np.ndarray,
    R: np.ndarray,
    system_type: str,
) -> Tuple[np.ndarray, np.ndarray]:
    """Riccati solution S and gain K for validated float matrices."""
    if system_type == "continuous":
        S = linalg.solve_continuous_are(A, B, Q, R)
        # K = R^{-1}B'S
        K = linalg.solve(R, B.T @ S)
    else:
        S = linalg.solve_discrete_are(A, B, Q, R)
        # K = (B'SB + R)^{-1}B'SA
        K = linalg.solve(B.T @ S @ B + R, B.T @ S @ A)
    logger.debug("Solved %s Riccati equation: gain shape %s", system_type, K.shape)
    return K, S


def lqr(A: StateMatrix, B: InputMatrix, Q: StateMatrix, R: InputMatrix) -> GainMatrix:
    """
    Continuous-time optimal state-feedback gain.

    Solves A'S + SA - SBR⁻¹B'S + Q = 0 and returns K = R⁻¹B'S, so that
    u = -Kx minimizes ∫(x'Qx + u'Ru)dt for ẋ = Ax + Bu.

    Args:
        A: State matrix (nx, nx)
        B: Input matrix (nx, nu)
        Q: State cost (nx, nx), symmetric positive semi-definite
        R: Input cost (nu, nu), symmetric positive definite

    Returns:
        Gain K of shape (nu, nx)

    Raises:
        DimensionMismatchError: If shapes are inconsistent
        LinAlgError: If the Riccati equation has no stabilizing solution
            or R is singular (propagated from scipy)

    Examples
    --------
    >>> A = np.array([[0, 1], [0, 0]])
    >>> B = np.array([[0], [1]])
    >>> K = lqr(A, B, np.eye(2), np.eye(1))
    >>> np.round(K, 4)
    array([[1.    , 1.7321]])
    """
    A, B, Q, R = _float_matrices(("A", A), ("B", B), ("Q", Q), ("R", R))
    _validate_regulator(A, B, Q, R)
    K, _ = _solve_lqr(A, B, Q, R, "continuous")
    return K


def dlqr(A: StateMatrix, B: InputMatrix, Q: StateMatrix, R: InputMatrix) -> GainMatrix:
    """
    Discrete-time optimal state-feedback gain.

    Solves the discrete Riccati equation and returns K = (B'SB + R)⁻¹B'SA,
    so that u[k] = -Kx[k] minimizes Σ(x'Qx + u'Ru) for x[k+1] = Ax[k] + Bu[k].

    Args:
        A: State transition matrix (nx, nx)
        B: Input matrix (nx, nu)
        Q: State cost (nx, nx)
        R: Input cost (nu, nu)

    Returns:
        Gain K of shape (nu, nx)

    Raises:
        DimensionMismatchError: If shapes are inconsistent
        LinAlgError: If the Riccati solve fails (propagated from scipy)
    """
    A, B, Q, R = _float_matrices(("A", A), ("B", B), ("Q", Q), ("R", R))
    _validate_regulator(A, B, Q, R)
    K, _ = _solve_lqr(A, B, Q, R, "discrete")
    return K


def design_lqr(
    A: StateMatrix,
    B: InputMatrix,
    Q: StateMatrix,
    R: InputMatrix,
    system_type: str = "discrete",
    backend: Backend = "numpy",
) -> LQRResult:
    """
    Design Linear Quadratic Regulator (LQR) controller.

    Same gain as :func:`lqr` / :func:`dlqr`, returned together with the
    Riccati solution and closed-loop diagnostics.

    Parameters
    ----------
    A : StateMatrix
        State matrix (nx, nx)
    B : InputMatrix
        Input matrix (nx, nu)
    Q : StateMatrix
        State cost matrix (nx, nx), must be positive semi-definite (Q ≥ 0)
    R : InputMatrix
        Control cost matrix (nu, nu), must be positive definite (R > 0)
    system_type : str
        'continuous' or 'discrete', default 'discrete'
    backend : Backend
        Array backend of the inputs and outputs ('numpy', 'torch', 'jax')

    Returns
    -------
    LQRResult
        Dictionary containing:
            - gain: Optimal feedback gain K (nu, nx)
            - cost_to_go: Riccati solution S (nx, nx)
            - closed_loop_eigenvalues: Eigenvalues of (A - BK)
            - stability_margin: Distance from stability boundary
              * Continuous: -max(Re(λ)) (positive = stable)
              * Discrete: 1 - max(|λ|) (positive = stable)

    Raises
    ------
    ValueError
        If system_type or backend is invalid
    DimensionMismatchError
        If matrices have incompatible shapes
    LinAlgError
        If Riccati equation has no solution (system may be unstabilizable)

    Examples
    --------
    >>> Ad = np.array([[1, 0.1], [0, 1]])
    >>> Bd = np.array([[0.005], [0.1]])
    >>> result = design_lqr(Ad, Bd, np.diag([10, 1]), np.array([[0.1]]))
    >>> result['stability_margin'] > 0
    True
    """
    _check_system_type(system_type)
    _check_backend(backend)

    A_np, B_np, Q_np, R_np = _float_matrices(
        ("A", _to_numpy(A, backend)),
        ("B", _to_numpy(B, backend)),
        ("Q", _to_numpy(Q, backend)),
        ("R", _to_numpy(R, backend)),
    )
    _validate_regulator(A_np, B_np, Q_np, R_np)

    K, S = _solve_lqr(A_np, B_np, Q_np, R_np, system_type)
    eigenvalues = np.linalg.eigvals(A_np - B_np @ K)

    result: LQRResult = {
        "gain": _from_numpy(K, backend),
        "cost_to_go": _from_numpy(S, backend),
        "closed_loop_eigenvalues": _from_numpy(eigenvalues, backend),
        "stability_margin": _stability_margin(eigenvalues, system_type),
    }
    return result


def _stability_margin(eigenvalues: np.ndarray, system_type: str) -> float:
    if eigenvalues.size == 0:
        return float("inf")
    if system_type == "continuous":
        return float(-np.max(np.real(eigenvalues)))
    return float(1.0 - np.max(np.abs(eigenvalues)))


# ============================================================================
# Kalman Gain - LQR/Kalman Duality
# ============================================================================


def _validate_observer(A, C, R1, R2) -> None:
    nx = check_square(A, "A")
    ny = C.shape[0]
    check_columns(C, nx, "C")
    check_shape(R1, (nx, nx), "R1")
    check_shape(R2, (ny, ny), "R2")


def kalman(
    A: StateMatrix,
    C: OutputMatrix,
    R1: CovarianceMatrix,
    R2: CovarianceMatrix,
) -> GainMatrix:
    """
    Continuous-time optimal observer (Kalman) gain.

    The estimation problem for (A, C) with process noise covariance R1 and
    measurement noise covariance R2 is the regulator problem for (A', C')
    with weights (R1, R2); the observer gain is the transposed regulator gain.

    Args:
        A: State matrix (nx, nx)
        C: Output matrix (ny, nx)
        R1: Process noise covariance (nx, nx)
        R2: Measurement noise covariance (ny, ny), positive definite

    Returns:
        Observer gain K of shape (nx, ny), for x̂̇ = Ax̂ + Bu + K(y - Cx̂)

    Raises:
        DimensionMismatchError: If shapes are inconsistent
        LinAlgError: If the Riccati solve fails
    """
    A, C, R1, R2 = _float_matrices(("A", A), ("C", C), ("R1", R1), ("R2", R2))
    _validate_observer(A, C, R1, R2)
    return lqr(A.T, C.T, R1, R2).T


def dkalman(
    A: StateMatrix,
    C: OutputMatrix,
    R1: CovarianceMatrix,
    R2: CovarianceMatrix,
) -> GainMatrix:
    """
    Discrete-time optimal observer (Kalman) gain, ``dlqr(A', C', R1, R2)'``.

    The result is the predictor-form gain A P C'(C P C' + R2)⁻¹.
    """
    A, C, R1, R2 = _float_matrices(("A", A), ("C", C), ("R1", R1), ("R2", R2))
    _validate_observer(A, C, R1, R2)
    return dlqr(A.T, C.T, R1, R2).T


def design_kalman_filter(
    A: StateMatrix,
    C: OutputMatrix,
    R1: CovarianceMatrix,
    R2: CovarianceMatrix,
    system_type: str = "discrete",
    backend: Backend = "numpy",
) -> KalmanFilterResult:
    """
    Design a steady-state Kalman filter for optimal state estimation.

    For linear system with Gaussian noise:
        x[k+1] = Ax[k] + Bu[k] + w[k],  w ~ N(0, R1)  (process noise)
        y[k] = Cx[k] + v[k],            v ~ N(0, R2)  (measurement noise)

    Estimator:
        Discrete: x̂[k+1] = Ax̂[k] + Bu[k] + K(y[k] - Cx̂[k])
        Continuous: ˙x̂ = Ax̂ + Bu + K(y - Cx̂)

    Args:
        A: State matrix (nx, nx)
        C: Output matrix (ny, nx)
        R1: Process noise covariance (nx, nx), R1 ≥ 0
        R2: Measurement noise covariance (ny, ny), R2 > 0
        system_type: 'continuous' or 'discrete'
        backend: Array backend of the inputs and outputs

    Returns:
        KalmanFilterResult containing:
            - gain: Observer gain K (nx, ny)
            - error_covariance: Steady-state error covariance P (nx, nx)
            - innovation_covariance: CPC' + R2 (ny, ny)
            - estimator_eigenvalues: Eigenvalues of (A - KC)

    Raises:
        ValueError: If system_type or backend is invalid
        DimensionMismatchError: If matrices have incompatible shapes
        LinAlgError: If Riccati equation has no solution

    Notes
    -----
    - (A, C) must be detectable: unstable modes must be observable
    - R2 must be positive definite
    """
    _check_system_type(system_type)
    _check_backend(backend)

    A_np, C_np, R1_np, R2_np = _float_matrices(
        ("A", _to_numpy(A, backend)),
        ("C", _to_numpy(C, backend)),
        ("R1", _to_numpy(R1, backend)),
        ("R2", _to_numpy(R2, backend)),
    )
    _validate_observer(A_np, C_np, R1_np, R2_np)

    # Dual regulator problem: (A', C') with weights (R1, R2)
    K_dual, P = _solve_lqr(A_np.T, C_np.T, R1_np, R2_np, system_type)
    K = K_dual.T
    S = C_np @ P @ C_np.T + R2_np
    estimator_eigenvalues = np.linalg.eigvals(A_np - K @ C_np)

    result: KalmanFilterResult = {
        "gain": _from_numpy(K, backend),
        "error_covariance": _from_numpy(P, backend),
        "innovation_covariance": _from_numpy(S, backend),
        "estimator_eigenvalues": _from_numpy(estimator_eigenvalues, backend),
    }
    return result


# ============================================================================
# Stability Analysis
# ============================================================================


def analyze_stability(
    A: StateMatrix,
    system_type: str = "continuous",
    tolerance: float = 1e-10,
) -> StabilityInfo:
    """
    Analyze system stability via eigenvalue analysis.

    Stability criteria:
        Continuous (dx/dt = Ax): All Re(λ) < 0 (left half-plane)
        Discrete (x[k+1] = Ax): All |λ| < 1 (inside unit circle)

    Args:
        A: State matrix (nx, nx)
        system_type: 'continuous' or 'discrete'
        tolerance: Tolerance for marginal stability detection

    Returns:
        StabilityInfo with eigenvalues, magnitudes, spectral radius and the
        is_stable / is_marginally_stable / is_unstable flags

    Examples
    --------
    >>> stability = analyze_stability(np.array([[0, 1], [-2, -3]]))
    >>> stability['is_stable']
    True
    """
    _check_system_type(system_type)
    A_np = np.asarray(A)
    if A_np.ndim != 2 or A_np.shape[0] != A_np.shape[1]:
        raise ValueError(f"A must be square matrix, got shape {A_np.shape}")

    eigenvalues = np.linalg.eigvals(A_np) if A_np.size else np.zeros(0, dtype=complex)
    magnitudes = np.abs(eigenvalues)
    max_magnitude = np.max(magnitudes) if magnitudes.size else 0.0

    if system_type == "continuous":
        max_real = np.max(np.real(eigenvalues)) if eigenvalues.size else -np.inf
        is_stable = max_real < -tolerance
        is_marginally_stable = np.abs(max_real) <= tolerance
        is_unstable = max_real > tolerance
    else:
        is_stable = max_magnitude < 1.0 - tolerance
        is_marginally_stable = np.abs(max_magnitude - 1.0) <= tolerance
        is_unstable = max_magnitude > 1.0 + tolerance

    result: StabilityInfo = {
        "eigenvalues": eigenvalues,
        "magnitudes": magnitudes,
        "max_magnitude": float(max_magnitude),
        "spectral_radius": float(max_magnitude),
        "is_stable": bool(is_stable),
        "is_marginally_stable": bool(is_marginally_stable),
        "is_unstable": bool(is_unstable),
    }
    return result


# ============================================================================
# Controllability / Observability
# ============================================================================


def controllability_matrix(A: StateMatrix, B: InputMatrix) -> ControllabilityMatrix:
    """
    Build [B, AB, A²B, ..., Aⁿ⁻¹B] of shape (nx, nx*nu).

    Inputs are widened to a common floating dtype first.
    """
    A_np, B_np = _float_matrices(("A", A), ("B", B))
    nx = check_square(A_np, "A")
    check_rows(B_np, nx, "B")
    nu = B_np.shape[1]

    Wc = np.zeros((nx, nx * nu), dtype=np.result_type(A_np, B_np))
    AB = B_np.copy()
    for i in range(nx):
        Wc[:, i * nu : (i + 1) * nu] = AB
        AB = A_np @ AB
    return Wc


def analyze_controllability(
    A: StateMatrix,
    B: InputMatrix,
    tolerance: float = 1e-10,
) -> ControllabilityInfo:
    """
    Test controllability of linear system (A, B).

    Args:
        A: State matrix (nx, nx)
        B: Input matrix (nx, nu)
        tolerance: Tolerance for rank computation

    Returns:
        ControllabilityInfo with the controllability matrix, its rank,
        the is_controllable flag and its condition number

    Notes
    -----
    - Controllability is necessary for pole placement
    - A large condition number means placement will amplify round-off
    """
    Wc = controllability_matrix(A, B)
    nx = Wc.shape[0]
    rank = np.linalg.matrix_rank(Wc, tol=tolerance) if Wc.size else 0

    result: ControllabilityInfo = {
        "controllability_matrix": Wc,
        "rank": int(rank),
        "is_controllable": bool(rank == nx),
        "condition_number": float(np.linalg.cond(Wc)) if Wc.size else 1.0,
    }
    return result


def analyze_observability(
    A: StateMatrix,
    C: OutputMatrix,
    tolerance: float = 1e-10,
) -> ObservabilityInfo:
    """
    Test observability of linear system (A, C).

    Dual to controllability: (A, C) observable ⟺ (A', C') controllable.

    Args:
        A: State matrix (nx, nx)
        C: Output matrix (ny, nx)
        tolerance: Tolerance for rank computation

    Returns:
        ObservabilityInfo with the observability matrix, its rank and the
        is_observable flag
    """
    A_np, C_np = _float_matrices(("A", A), ("C", C))
    Wo = controllability_matrix(A_np.T, C_np.T).T
    nx = Wo.shape[1]
    rank = np.linalg.matrix_rank(Wo, tol=tolerance) if Wo.size else 0

    result: ObservabilityInfo = {
        "observability_matrix": Wo,
        "rank": int(rank),
        "is_observable": bool(rank == nx),
    }
    return result


# ============================================================================
# Export All
# ============================================================================

__all__ = [
    # Gains
    "lqr",
    "dlqr",
    "kalman",
    "dkalman",
    # Design results
    "design_lqr",
    "design_kalman_filter",
    # Analysis
    "analyze_stability",
    "controllability_matrix",
    "analyze_controllability",
    "analyze_observability",
]
