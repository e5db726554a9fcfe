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
Control System Synthesis
========================

Optimal gains, pole placement, LQG compensators and feedback
interconnection.

Control Synthesis
-----------------
>>> from csynth.control import ControlSynthesis, lqr, kalman, place, lqg, lqgi
>>>
>>> # Object-oriented interface
>>> synthesis = ControlSynthesis(plant)
>>> K = synthesis.lqr(Q, R)
>>>
>>> # Functional interface
>>> K = lqr(A, B, Q, R)
>>> G = lqgi(A, B, C, D, Q1, Q2, R1, R2)

Interconnection
---------------
>>> from csynth.control import feedback
>>> closed_loop = feedback(plant, G.controller)

License
-------
GNU Affero General Public License v3.0
"""

# Classes
from .control_synthesis import ControlSynthesis

# Functional interface
from .classical_control_functions import (
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
from .feedback import feedback, feedback2dof, feedback2dof_polynomials
from .lqg import lqg, lqg_for_plant, lqgi, lqgi_for_plant, resynthesize
from .pole_placement import IllConditionedPlacementWarning, acker, place

# Export public API
__all__ = [
    # Classes
    "ControlSynthesis",
    # Gains
    "lqr",
    "dlqr",
    "kalman",
    "dkalman",
    "design_lqr",
    "design_kalman_filter",
    # Pole placement
    "place",
    "acker",
    "IllConditionedPlacementWarning",
    # Compensators
    "lqg",
    "lqgi",
    "lqg_for_plant",
    "lqgi_for_plant",
    "resynthesize",
    # Interconnection
    "feedback",
    "feedback2dof",
    "feedback2dof_polynomials",
    # Analysis
    "analyze_stability",
    "analyze_controllability",
    "analyze_observability",
    "controllability_matrix",
]
