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
Control Synthesis Wrapper

Thin wrapper that binds the pure synthesis functions to one plant.

Every method reads the plant's matrices and sampling tag and routes to the
continuous or discrete algorithm, so callers never unpack A, B, C, D or
choose ``lqr`` versus ``dlqr`` by hand.

Design Philosophy
-----------------
- Composition not inheritance
- Thin wrapper (no state beyond the plant, no caching)
- Routes to pure functions
- Branches on the sampling tag, never on matrix contents

Usage
-----
>>> from csynth.control import ControlSynthesis
>>> from csynth.systems import StateSpace
>>> import numpy as np
>>>
>>> plant = StateSpace([[0, 1], [0, 0]], [[0], [1]], [[1, 0]], 0)
>>> synthesis = ControlSynthesis(plant)
>>> K = synthesis.lqr(np.eye(2), np.eye(1))
>>> G = synthesis.lqgi(np.eye(2), np.eye(1), np.eye(3), np.eye(1))
>>> closed_loop = G.closed_loop()
"""

from csynth.control.classical_control_functions import (
    design_kalman_filter,
    design_lqr,
    dkalman,
    dlqr,
    kalman,
    lqr,
)
from csynth.control.lqg import lqg_for_plant, lqgi_for_plant
from csynth.control.pole_placement import place
from csynth.systems.state_space import StateSpace
from csynth.types.control_classical import (
    KalmanFilterResult,
    LQGController,
    LQRResult,
)
from csynth.types.core import (
    CovarianceMatrix,
    GainMatrix,
    InputMatrix,
    PoleList,
    StateMatrix,
)


class ControlSynthesis:
    """
    Control synthesis bound to a state-space plant.

    Attributes
    ----------
    plant : StateSpace
        Plant every design is computed for

    Examples
    --------
    >>> synthesis = ControlSynthesis(plant)
    >>>
    >>> # Optimal state feedback (lqr or dlqr by sampling tag)
    >>> K = synthesis.lqr(Q, R)
    >>>
    >>> # Observer gain
    >>> L = synthesis.kalman(R1, R2)
    >>>
    >>> # Exact pole placement (single input)
    >>> K = synthesis.place([-1, -2])
    >>>
    >>> # Output feedback compensators
    >>> G = synthesis.lqg(Q1, Q2, R1, R2)
    >>> Gi = synthesis.lqgi(Q1, Q2, R1_augmented, R2)

    Notes
    -----
    This is a thin wrapper - all algorithms are in
    classical_control_functions.py, pole_placement.py and lqg.py.
    """

    def __init__(self, plant: StateSpace):
        """
        Initialize control synthesis wrapper.

        Args:
            plant: State-space model to design for

        Raises:
            TypeError: If plant is not a StateSpace
        """
        if not isinstance(plant, StateSpace):
            raise TypeError(f"plant must be a StateSpace, got {type(plant).__name__}")
        self.plant = plant

    def lqr(self, Q: StateMatrix, R: InputMatrix) -> GainMatrix:
        """
        Optimal state-feedback gain for the plant.

        Continuous plants use the continuous Riccati equation, discrete
        plants the discrete one.

        Args:
            Q: State cost (nx, nx)
            R: Input cost (nu, nu)

        Returns:
            Gain K (nu, nx) for u = -Kx
        """
        solve = lqr if self.plant.is_continuous else dlqr
        return solve(self.plant.A, self.plant.B, Q, R)

    def kalman(self, R1: CovarianceMatrix, R2: CovarianceMatrix) -> GainMatrix:
        """
        Optimal observer gain for the plant.

        Args:
            R1: Process noise covariance (nx, nx)
            R2: Measurement noise covariance (ny, ny)

        Returns:
            Observer gain K (nx, ny)
        """
        solve = kalman if self.plant.is_continuous else dkalman
        return solve(self.plant.A, self.plant.C, R1, R2)

    def design_lqr(self, Q: StateMatrix, R: InputMatrix) -> LQRResult:
        """LQR gain with Riccati solution and closed-loop diagnostics."""
        return design_lqr(
            self.plant.A, self.plant.B, Q, R, system_type=self.plant.sampling.system_type
        )

    def design_kalman_filter(
        self, R1: CovarianceMatrix, R2: CovarianceMatrix
    ) -> KalmanFilterResult:
        """Observer gain with error covariance and estimator eigenvalues."""
        return design_kalman_filter(
            self.plant.A, self.plant.C, R1, R2, system_type=self.plant.sampling.system_type
        )

    def place(self, poles: PoleList) -> GainMatrix:
        """
        Pole placement gain for a single-input plant.

        Pole locations are interpreted in the plant's own domain (s-plane or
        z-plane).
        """
        return place(self.plant.A, self.plant.B, poles)

    def lqg(self, Q1, Q2, R1, R2, qQ: float = 0, qR: float = 0) -> LQGController:
        """LQG compensator for the plant; see :func:`csynth.control.lqg.lqg`."""
        return lqg_for_plant(self.plant, Q1, Q2, R1, R2, qQ=qQ, qR=qR)

    def lqgi(self, Q1, Q2, R1, R2, qQ: float = 0, qR: float = 0) -> LQGController:
        """LQG compensator with integral action; see :func:`csynth.control.lqg.lqgi`."""
        return lqgi_for_plant(self.plant, Q1, Q2, R1, R2, qQ=qQ, qR=qR)

    def __repr__(self) -> str:
        return f"ControlSynthesis(plant={self.plant!r})"


__all__ = ["ControlSynthesis"]
