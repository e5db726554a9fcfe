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
csynth - Control Synthesis for Linear Time-Invariant Systems
=============================================================

Optimal and pole-placement feedback design plus feedback interconnection
algebra for state-space and transfer-function models.

>>> import numpy as np
>>> from csynth import StateSpace, ControlSynthesis, feedback
>>>
>>> plant = StateSpace([[0, 1], [0, 0]], [[0], [1]], [[1, 0]], 0)
>>> G = ControlSynthesis(plant).lqgi(np.eye(2), np.eye(1), np.eye(3), np.eye(1))
>>> closed_loop = feedback(plant, G.controller)

Authors
-------
Gil Benezer

License
-------
GNU Affero General Public License v3.0
"""

__version__ = "0.1.0"

from csynth.control import (
    ControlSynthesis,
    acker,
    dkalman,
    dlqr,
    feedback,
    feedback2dof,
    feedback2dof_polynomials,
    kalman,
    lqg,
    lqgi,
    lqr,
    place,
    resynthesize,
)
from csynth.systems import (
    Sampling,
    StateSpace,
    TransferFunction,
    ss,
    tf,
    tf_rational,
    zpk,
)
from csynth.systems.validation import DimensionMismatchError, UnsupportedSystemError
from csynth.types.control_classical import LQGController

__all__ = [
    "__version__",
    "ControlSynthesis",
    "LQGController",
    "lqr",
    "dlqr",
    "kalman",
    "dkalman",
    "place",
    "acker",
    "lqg",
    "lqgi",
    "resynthesize",
    "feedback",
    "feedback2dof",
    "feedback2dof_polynomials",
    "Sampling",
    "StateSpace",
    "TransferFunction",
    "ss",
    "tf",
    "tf_rational",
    "zpk",
    "DimensionMismatchError",
    "UnsupportedSystemError",
]
