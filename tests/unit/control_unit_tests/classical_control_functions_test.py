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
Unit Tests for Classical Control Functions

Tests cover:
- Continuous and discrete LQR gains (lqr, dlqr, design_lqr)
- Kalman observer gains through LQR/Kalman duality
- Stability, controllability and observability analysis
- Backend conversions (NumPy, PyTorch)
- Error handling and edge cases

Test Structure:
- TestLQRContinuous: Continuous-time LQR tests
- TestLQRDiscrete: Discrete-time LQR tests
- TestKalmanDuality: Observer gains and the transpose identity
- TestDesignResults: design_lqr / design_kalman_filter dictionaries
- TestAnalysis: Stability, controllability, observability
- TestErrorHandling: Edge cases and error conditions
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal
from scipy.linalg import LinAlgError

try:
    import torch

    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False

from csynth.control.classical_control_functions import (
    analyze_controllability,
    analyze_observability,
    analyze_stability,
    controllability_matrix,
    design_kalman_filter,
    design_lqr,
    dkalman,
    dlqr,
    kalman,
    lqr,
)
from csynth.systems.validation import DimensionMismatchError

# ============================================================================
# Test Fixtures and Utilities
# ============================================================================


class ControlTestCase(unittest.TestCase):
    """Base class with common test utilities."""

    def setUp(self):
        """Set up common test systems."""
        # Double integrator (continuous)
        self.A_double_int = np.array([[0, 1], [0, 0]])
        self.B_double_int = np.array([[0], [1]])
        self.C_double_int = np.array([[1, 0]])

        # Simple stable system
        self.A_stable = np.array([[0, 1], [-2, -3]])
        self.B_stable = np.array([[0], [1]])
        self.C_stable = np.array([[1, 0]])

        # Discrete double integrator (dt = 0.1)
        dt = 0.1
        self.Ad_double_int = np.array([[1, dt], [0, 1]])
        self.Bd_double_int = np.array([[0.5 * dt**2], [dt]])

        # Standard cost matrices
        self.Q2 = np.diag([10, 1])
        self.R1 = np.array([[0.1]])

        # Noise covariances
        self.Q_process = 0.01 * np.eye(2)
        self.R_meas = 0.1 * np.eye(1)

        self.rtol = 1e-5
        self.atol = 1e-8

    def assert_symmetric(self, M: np.ndarray, name: str = "Matrix"):
        """Assert matrix is symmetric."""
        assert_allclose(M, M.T, rtol=self.rtol, atol=self.atol, err_msg=f"{name} is not symmetric")

    def assert_positive_definite(self, M: np.ndarray, name: str = "Matrix"):
        """Assert matrix is positive definite."""
        eigenvalues = np.linalg.eigvalsh((M + M.T) / 2)
        self.assertTrue(
            np.all(eigenvalues > 0),
            f"{name} is not positive definite. Min eigenvalue: {np.min(eigenvalues)}",
        )

    def assert_stable_continuous(self, eigenvalues: np.ndarray):
        """Assert continuous system is stable (Re(λ) < 0)."""
        max_real = np.max(np.real(eigenvalues))
        self.assertLess(max_real, 0, f"System unstable. Max Re(λ) = {max_real}")

    def assert_stable_discrete(self, eigenvalues: np.ndarray):
        """Assert discrete system is stable (|λ| < 1)."""
        max_mag = np.max(np.abs(eigenvalues))
        self.assertLess(max_mag, 1.0, f"System unstable. Max |λ| = {max_mag}")


# ============================================================================
# LQR Continuous Tests
# ============================================================================


class TestLQRContinuous(ControlTestCase):
    """Test continuous-time LQR gains."""

    def test_double_integrator_known_gain(self):
        """Q = I, R = 1 on the double integrator gives K = [1, √3]."""
        K = lqr(self.A_double_int, self.B_double_int, np.eye(2), np.eye(1))

        self.assertEqual(K.shape, (1, 2))
        assert_allclose(K, [[1.0, np.sqrt(3.0)]], rtol=1e-8)

    def test_closed_loop_stable(self):
        """A - BK is Hurwitz for a stabilizable pair."""
        K = lqr(self.A_double_int, self.B_double_int, self.Q2, self.R1)
        eigenvalues = np.linalg.eigvals(self.A_double_int - self.B_double_int @ K)
        self.assert_stable_continuous(eigenvalues)

    def test_riccati_residual(self):
        """A'S + SA - SBR⁻¹B'S + Q = 0 for the returned cost-to-go."""
        result = design_lqr(
            self.A_stable, self.B_stable, self.Q2, self.R1, system_type="continuous"
        )
        A, B = self.A_stable, self.B_stable
        S = result["cost_to_go"]

        self.assert_symmetric(S, "Cost-to-go matrix")
        self.assert_positive_definite(S, "Cost-to-go matrix")

        residual = A.T @ S + S @ A - S @ B @ np.linalg.inv(self.R1) @ B.T @ S + self.Q2
        assert_allclose(residual, np.zeros((2, 2)), atol=1e-8)

    def test_gain_matches_design_result(self):
        """lqr and design_lqr(system_type='continuous') agree."""
        K = lqr(self.A_stable, self.B_stable, self.Q2, self.R1)
        result = design_lqr(
            self.A_stable, self.B_stable, self.Q2, self.R1, system_type="continuous"
        )
        assert_allclose(K, result["gain"])

    def test_integer_inputs_are_widened(self):
        """Integer matrices produce a floating gain."""
        K = lqr(np.array([[0, 1], [0, 0]]), np.array([[0], [1]]), np.eye(2, dtype=int), [[1]])
        self.assertTrue(np.issubdtype(K.dtype, np.floating))

    def test_multi_input(self):
        """Gain shape is (nu, nx) for multiple inputs."""
        A = np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [1.0, -2.0, -1.0]])
        B = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        K = lqr(A, B, np.eye(3), np.eye(2))

        self.assertEqual(K.shape, (2, 3))
        self.assert_stable_continuous(np.linalg.eigvals(A - B @ K))


# ============================================================================
# LQR Discrete Tests
# ============================================================================


class TestLQRDiscrete(ControlTestCase):
    """Test discrete-time LQR gains."""

    def test_closed_loop_stable(self):
        """A - BK lies inside the unit circle."""
        K = dlqr(self.Ad_double_int, self.Bd_double_int, self.Q2, self.R1)

        self.assertEqual(K.shape, (1, 2))
        eigenvalues = np.linalg.eigvals(self.Ad_double_int - self.Bd_double_int @ K)
        self.assert_stable_discrete(eigenvalues)

    def test_gain_formula(self):
        """K = (B'SB + R)⁻¹B'SA with the DARE solution S."""
        A, B = self.Ad_double_int, self.Bd_double_int
        result = design_lqr(A, B, self.Q2, self.R1, system_type="discrete")
        S = result["cost_to_go"]

        expected = np.linalg.solve(B.T @ S @ B + self.R1, B.T @ S @ A)
        assert_allclose(result["gain"], expected, rtol=1e-8)
        assert_allclose(dlqr(A, B, self.Q2, self.R1), expected, rtol=1e-8)

    def test_riccati_residual(self):
        """S = A'SA - A'SB(R + B'SB)⁻¹B'SA + Q."""
        A, B = self.Ad_double_int, self.Bd_double_int
        S = design_lqr(A, B, self.Q2, self.R1)["cost_to_go"]

        rhs = (
            A.T @ S @ A
            - A.T @ S @ B @ np.linalg.inv(self.R1 + B.T @ S @ B) @ B.T @ S @ A
            + self.Q2
        )
        assert_allclose(S, rhs, rtol=1e-6, atol=1e-8)

    def test_default_system_type_is_discrete(self):
        """design_lqr defaults to the discrete Riccati equation."""
        default = design_lqr(self.Ad_double_int, self.Bd_double_int, self.Q2, self.R1)
        explicit = dlqr(self.Ad_double_int, self.Bd_double_int, self.Q2, self.R1)
        assert_allclose(default["gain"], explicit)
        self.assertGreater(default["stability_margin"], 0)


# ============================================================================
# Kalman Duality Tests
# ============================================================================


class TestKalmanDuality(ControlTestCase):
    """Observer gains from the regulator problem of the transposed system."""

    def test_continuous_transpose_identity(self):
        """kalman(A, C, R1, R2) == lqr(A', C', R1, R2)' exactly."""
        A, C = self.A_stable, self.C_stable
        K = kalman(A, C, self.Q_process, self.R_meas)
        expected = lqr(A.T, C.T, self.Q_process, self.R_meas).T

        self.assertEqual(K.shape, (2, 1))
        assert_array_equal(K, expected)

    def test_discrete_transpose_identity(self):
        """dkalman(A, C, R1, R2) == dlqr(A', C', R1, R2)' exactly."""
        A, C = self.Ad_double_int, self.C_double_int
        K = dkalman(A, C, self.Q_process, self.R_meas)
        expected = dlqr(A.T, C.T, self.Q_process, self.R_meas).T

        assert_array_equal(K, expected)

    def test_continuous_gain_formula(self):
        """Continuous gain equals P C' R2⁻¹ with the filter Riccati solution P."""
        A, C = self.A_double_int, self.C_double_int
        result = design_kalman_filter(
            A, C, self.Q_process, self.R_meas, system_type="continuous"
        )
        P = result["error_covariance"]

        assert_allclose(result["gain"], P @ C.T @ np.linalg.inv(self.R_meas), rtol=1e-8)
        assert_allclose(result["gain"], kalman(A, C, self.Q_process, self.R_meas))
        self.assert_stable_continuous(result["estimator_eigenvalues"])

    def test_discrete_predictor_form(self):
        """Discrete gain equals A P C'(C P C' + R2)⁻¹."""
        A, C = self.Ad_double_int, self.C_double_int
        result = design_kalman_filter(A, C, self.Q_process, self.R_meas, system_type="discrete")
        P = result["error_covariance"]
        S = result["innovation_covariance"]

        assert_allclose(S, C @ P @ C.T + self.R_meas)
        assert_allclose(result["gain"], A @ P @ C.T @ np.linalg.inv(S), rtol=1e-8)
        self.assert_stable_discrete(result["estimator_eigenvalues"])

    def test_observer_dimension_checks(self):
        """R2 must be (ny, ny)."""
        with self.assertRaises(DimensionMismatchError):
            kalman(self.A_stable, self.C_stable, self.Q_process, np.eye(2))


# ============================================================================
# Design Result Tests
# ============================================================================


class TestDesignResults(ControlTestCase):
    """Dictionary results and backend handling."""

    def test_result_structure(self):
        result = design_lqr(self.A_stable, self.B_stable, self.Q2, self.R1, system_type="continuous")

        self.assertIn("gain", result)
        self.assertIn("cost_to_go", result)
        self.assertIn("closed_loop_eigenvalues", result)
        self.assertIn("stability_margin", result)
        self.assertIsInstance(result["stability_margin"], float)

    def test_stability_margin_continuous(self):
        """Margin is -max Re(λ) of A - BK."""
        result = design_lqr(self.A_stable, self.B_stable, self.Q2, self.R1, system_type="continuous")
        expected = -np.max(np.real(result["closed_loop_eigenvalues"]))
        self.assertAlmostEqual(result["stability_margin"], expected)

    def test_invalid_system_type(self):
        with self.assertRaises(ValueError) as cm:
            design_lqr(self.A_stable, self.B_stable, self.Q2, self.R1, system_type="invalid")
        self.assertIn("continuous", str(cm.exception))
        self.assertIn("discrete", str(cm.exception))

    def test_invalid_backend(self):
        with self.assertRaises(ValueError):
            design_lqr(self.A_stable, self.B_stable, self.Q2, self.R1, backend="tensorflow")

    @unittest.skipUnless(HAS_TORCH, "PyTorch not installed")
    def test_torch_backend_round_trip(self):
        """Torch inputs give torch outputs with the NumPy gain."""
        result = design_lqr(
            torch.tensor(self.A_stable, dtype=torch.float64),
            torch.tensor(self.B_stable, dtype=torch.float64),
            torch.tensor(self.Q2, dtype=torch.float64),
            torch.tensor(self.R1, dtype=torch.float64),
            system_type="continuous",
            backend="torch",
        )
        self.assertIsInstance(result["gain"], torch.Tensor)
        assert_allclose(
            result["gain"].numpy(), lqr(self.A_stable, self.B_stable, self.Q2, self.R1)
        )


# ============================================================================
# Analysis Tests
# ============================================================================


class TestAnalysis(ControlTestCase):
    """Stability, controllability, observability."""

    def test_stable_continuous(self):
        stability = analyze_stability(self.A_stable, system_type="continuous")
        self.assertTrue(stability["is_stable"])
        assert_allclose(np.sort(stability["eigenvalues"].real), [-2.0, -1.0])

    def test_marginal_continuous(self):
        stability = analyze_stability(np.array([[0, 1], [-1, 0]]), system_type="continuous")
        self.assertTrue(stability["is_marginally_stable"])
        self.assertFalse(stability["is_stable"])

    def test_discrete_spectral_radius(self):
        stability = analyze_stability(np.array([[0.9, 0.1], [0, 0.8]]), system_type="discrete")
        self.assertTrue(stability["is_stable"])
        self.assertAlmostEqual(stability["spectral_radius"], 0.9)

    def test_controllability_matrix_columns(self):
        """[B, AB] for the double integrator."""
        Wc = controllability_matrix(self.A_double_int, self.B_double_int)
        assert_allclose(Wc, [[0.0, 1.0], [1.0, 0.0]])

    def test_uncontrollable(self):
        info = analyze_controllability(np.array([[1, 0], [0, 1]]), np.array([[1], [1]]))
        self.assertFalse(info["is_controllable"])
        self.assertEqual(info["rank"], 1)

    def test_observable(self):
        info = analyze_observability(self.A_stable, self.C_stable)
        self.assertTrue(info["is_observable"])
        assert_allclose(info["observability_matrix"], [[1.0, 0.0], [0.0, 1.0]])

    def test_unobservable(self):
        info = analyze_observability(np.eye(2), np.array([[1, 1]]))
        self.assertFalse(info["is_observable"])


# ============================================================================
# Error Handling
# ============================================================================


class TestErrorHandling(ControlTestCase):
    """Shape errors are raised before solving; solver errors propagate."""

    def test_non_square_A(self):
        with self.assertRaises(DimensionMismatchError):
            lqr(np.ones((2, 3)), self.B_stable, self.Q2, self.R1)

    def test_B_row_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            lqr(self.A_stable, np.ones((3, 1)), self.Q2, self.R1)

    def test_Q_shape_mismatch(self):
        with self.assertRaises(DimensionMismatchError) as cm:
            dlqr(self.Ad_double_int, self.Bd_double_int, np.eye(3), self.R1)
        self.assertIn("Q", str(cm.exception))

    def test_R_shape_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            lqr(self.A_stable, self.B_stable, self.Q2, np.eye(2))

    def test_dimension_errors_are_value_errors(self):
        """Callers catching ValueError also catch shape errors."""
        with self.assertRaises(ValueError):
            lqr(self.A_stable, self.B_stable, self.Q2, np.eye(2))

    def test_unstabilizable_pair_propagates_solver_error(self):
        """An uncontrollable unstable mode makes the Riccati solve fail."""
        with self.assertRaises((LinAlgError, ValueError)):
            lqr(np.array([[1.0]]), np.array([[0.0]]), np.array([[1.0]]), np.array([[1.0]]))


if __name__ == "__main__":
    unittest.main()
