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
Type definitions for csynth.

>>> from csynth.types import Backend, LQRResult, GainMatrix
"""

from csynth.types.backends import VALID_BACKENDS, Backend
from csynth.types.control_classical import (
    ControllabilityInfo,
    KalmanFilterResult,
    LQGController,
    LQRResult,
    ObservabilityInfo,
    StabilityInfo,
)
from csynth.types.core import (
    ArrayLike,
    ControllabilityMatrix,
    CovarianceMatrix,
    FeedthroughMatrix,
    GainMatrix,
    InputMatrix,
    ObservabilityMatrix,
    OutputMatrix,
    PoleList,
    PolynomialCoefficients,
    RootList,
    ScalarLike,
    StateMatrix,
)

__all__ = [
    "Backend",
    "VALID_BACKENDS",
    "ArrayLike",
    "ScalarLike",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    "CovarianceMatrix",
    "GainMatrix",
    "ControllabilityMatrix",
    "ObservabilityMatrix",
    "PolynomialCoefficients",
    "RootList",
    "PoleList",
    "StabilityInfo",
    "ControllabilityInfo",
    "ObservabilityInfo",
    "LQRResult",
    "KalmanFilterResult",
    "LQGController",
]
