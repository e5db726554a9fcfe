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
Sampling Time Tags

Every system value carries a :class:`Sampling` tag telling whether it is a
continuous-time model or a discrete-time model with a given period. Design
entry points branch on this tag to pick the continuous or discrete Riccati
solver.

Examples
--------
>>> Sampling.continuous().is_continuous
True
>>> ts = Sampling.discrete(0.1)
>>> ts.period, ts.system_type
(0.1, 'discrete')
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TimeDomain(Enum):
    """
    Time domain of a linear system.

    Attributes
    ----------
    CONTINUOUS : str
        Differential equation model (s-domain)
    DISCRETE : str
        Difference equation model (z-domain) with a fixed period
    """

    CONTINUOUS = "continuous"
    DISCRETE = "discrete"


@dataclass(frozen=True)
class Sampling:
    """
    Sampling-time tag: Continuous, or Discrete(period).

    Attributes
    ----------
    domain : TimeDomain
        Continuous or discrete
    period : Optional[float]
        Sampling period in seconds (None for continuous systems)
    """

    domain: TimeDomain = TimeDomain.CONTINUOUS
    period: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.domain, TimeDomain):
            raise ValueError(f"domain must be a TimeDomain, got {self.domain!r}")
        if self.domain is TimeDomain.CONTINUOUS:
            if self.period is not None:
                raise ValueError(
                    f"Continuous systems have no sampling period, got {self.period}"
                )
        else:
            if self.period is None or not float(self.period) > 0:
                raise ValueError(
                    f"Discrete systems need a positive sampling period, got {self.period}"
                )
            object.__setattr__(self, "period", float(self.period))

    @classmethod
    def continuous(cls) -> "Sampling":
        return cls(TimeDomain.CONTINUOUS)

    @classmethod
    def discrete(cls, period: float) -> "Sampling":
        return cls(TimeDomain.DISCRETE, period)

    @property
    def is_continuous(self) -> bool:
        return self.domain is TimeDomain.CONTINUOUS

    @property
    def is_discrete(self) -> bool:
        return self.domain is TimeDomain.DISCRETE

    @property
    def system_type(self) -> str:
        """String form accepted by ``design_lqr(..., system_type=...)``."""
        return self.domain.value

    def __str__(self) -> str:
        if self.is_continuous:
            return "continuous"
        return f"discrete(dt={self.period:g})"


CONTINUOUS = Sampling.continuous()


def common_sampling(first: Sampling, second: Sampling) -> Sampling:
    """
    Return the shared sampling tag of two systems being combined.

    Raises
    ------
    ValueError
        If the tags differ (mixing time domains or periods)
    """
    if first != second:
        raise ValueError(
            f"Cannot combine systems with different sampling: {first} and {second}"
        )
    return first


__all__ = ["TimeDomain", "Sampling", "CONTINUOUS", "common_sampling"]
