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
Unit Tests for Pole Placement

Tests cover:
- Ackermann placement for companion and non-companion systems
- Complex-conjugate pole sets and real gains
- Explicit dtype widening of integer inputs
- Dimension and MIMO rejection
- Ill-conditioned and uncontrollable pairs
"""

import unittest
import warnings

import numpy as np
from numpy.testing import assert_allclose
from scipy.linalg import LinAlgError

from csynth.control.pole_placement import (
    CONDITION_WARNING_THRESHOLD,
    IllConditionedPlacementWarning,
    acker,
    place,
)
from csynth.systems.polynomials import sorted_roots
from csynth.systems.validation import DimensionMismatchError, UnsupportedSystemError


class TestPlace(unittest.TestCase):
    """Closed-loop eigenvalues land on the requested poles."""

    def setUp(self):
        self.A_double_int = np.array([[0, 1], [0, 0]])
        self.B_double_int = np.array([[0], [1]])

    def assert_poles(self, A, B, K, poles, rtol=1e-6):
        closed = np.linalg.eigvals(np.asarray(A, dtype=float) - np.asarray(B, dtype=float) @ K)
        assert_allclose(sorted_roots(closed), sorted_roots(poles), rtol=rtol, atol=1e-8)

    def test_double_integrator_gain(self):
        """s² + 3s + 2 on the double integrator gives K = [2, 3]."""
        K = place(self.A_double_int, self.B_double_int, [-1, -2])

        self.assertEqual(K.shape, (1, 2))
        assert_allclose(K, [[2.0, 3.0]])

    def test_third_order_companion(self):
        A = np.array([[0, 1, 0], [0, 0, 1], [-1, -2, -3]])
        B = np.array([[0], [0], [1]])
        poles = [-2, -3, -4]

        K = place(A, B, poles)
        self.assert_poles(A, B, K, poles)

    def test_complex_conjugate_poles(self):
        """s² + 2s + 5 against s² + 3s + 2 gives K = [3, -1], a real gain."""
        A = np.array([[0, 1], [-2, -3]])
        B = np.array([[0], [1]])

        K = place(A, B, [-1 + 2j, -1 - 2j])

        self.assertFalse(np.iscomplexobj(K))
        assert_allclose(K, [[3.0, -1.0]], atol=1e-12)

    def test_non_companion_form(self):
        A = np.array([[1.0, 2.0], [3.0, 4.0]])
        B = np.array([[1.0], [0.0]])
        poles = [-1.0, -2.0]

        K = place(A, B, poles)
        self.assert_poles(A, B, K, poles)

    def test_integer_inputs_are_widened(self):
        K = place(self.A_double_int, self.B_double_int, np.array([-1, -2]))
        self.assertTrue(np.issubdtype(K.dtype, np.floating))

    def test_inputs_not_modified(self):
        A = np.array([[0.0, 1.0], [0.0, 0.0]])
        B = np.array([[0.0], [1.0]])
        A_before, B_before = A.copy(), B.copy()

        place(A, B, [-1, -2])

        np.testing.assert_array_equal(A, A_before)
        np.testing.assert_array_equal(B, B_before)

    def test_acker_matches_place(self):
        A = np.array([[0, 1, 0], [0, 0, 1], [2, -1, 0.5]])
        B = np.array([[0], [0], [1]])
        poles = [-1, -1.5, -2]
        assert_allclose(acker(A, B, poles), place(A, B, poles))

    def test_discrete_poles_inside_unit_circle(self):
        """Placement is time-domain agnostic."""
        A = np.array([[1.0, 0.1], [0.0, 1.0]])
        B = np.array([[0.005], [0.1]])
        poles = [0.5, 0.6]

        K = place(A, B, poles)
        self.assert_poles(A, B, K, poles)


class TestPlaceErrors(unittest.TestCase):
    """Shape validation happens before any placement work."""

    def test_wrong_pole_count(self):
        A = np.zeros((3, 3))
        B = np.array([[0], [0], [1]])

        with self.assertRaises(DimensionMismatchError) as cm:
            place(A, B, [-1, -2])
        self.assertIn("poles", str(cm.exception))

    def test_acker_wrong_pole_count(self):
        """acker validates on its own instead of placing an extra pole at 0."""
        A = np.array([[0, 1, 0], [0, 0, 1], [-1, -2, -3]])
        B = np.array([[0], [0], [1]])

        with self.assertRaises(DimensionMismatchError) as cm:
            acker(A, B, [-1, -2])
        self.assertIn("poles", str(cm.exception))

    def test_acker_multi_input_rejected(self):
        with self.assertRaises(UnsupportedSystemError):
            acker(np.zeros((2, 2)), np.eye(2), [-1, -2])

    def test_non_square_A(self):
        with self.assertRaises(DimensionMismatchError) as cm:
            place(np.ones((2, 3)), [[0], [1]], [-1, -2])
        self.assertIn("square", str(cm.exception))

    def test_B_row_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            place(np.zeros((2, 2)), np.ones((3, 1)), [-1, -2])

    def test_multi_input_rejected(self):
        with self.assertRaises(UnsupportedSystemError) as cm:
            place(np.zeros((2, 2)), np.eye(2), [-1, -2])
        self.assertIn("lqr", str(cm.exception))

    def test_uncontrollable_raises(self):
        """A singular controllability matrix propagates LinAlgError."""
        A = np.diag([1.0, 2.0])
        B = np.array([[1.0], [0.0]])

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with self.assertRaises(LinAlgError):
                place(A, B, [-1, -2])

    def test_ill_conditioned_warns(self):
        """Nearly repeated modes give a warning and a gain anyway."""
        A = np.diag([1.0, 1.0 + 1e-9])
        B = np.array([[1.0], [1.0]])

        with self.assertWarns(IllConditionedPlacementWarning):
            K = place(A, B, [-1, -2])
        self.assertEqual(K.shape, (1, 2))

    def test_well_conditioned_is_silent(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", IllConditionedPlacementWarning)
            place(np.array([[0, 1], [0, 0]]), np.array([[0], [1]]), [-1, -2])

    def test_threshold_value(self):
        self.assertAlmostEqual(CONDITION_WARNING_THRESHOLD, 1 / np.sqrt(np.finfo(float).eps))


if __name__ == "__main__":
    unittest.main()
