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
Linear frequency sweep usable as a driving-frequency schedule ω(t).
"""

from dataclasses import dataclass

import numpy as np

from resosim.config import (
    SWEEP_FREQUENCY_MAX_HZ,
    SWEEP_FREQUENCY_MIN_HZ,
    SWEEP_RATE_HZ_PER_S,
    TWO_PI,
)
from resosim.exceptions import (
    InvalidParameterError,
    require_finite,
    require_non_negative,
    require_positive,
)


@dataclass(frozen=True)
class LinearFrequencySweep:
    """
    Frequency rising linearly from f_start to f_end, then holding.

        f(t) = min(f_start + rate·t, f_end)    for t >= 0
        ω(t) = 2π·f(t)

    Times before zero hold f_start.

    Parameters
    ----------
    f_start : float
        Start frequency in Hz (>= 0)
    f_end : float
        End frequency in Hz (> f_start)
    rate : float
        Sweep rate in Hz per second (> 0)

    Examples
    --------
    >>> sweep = LinearFrequencySweep(f_start=0.0, f_end=6.0, rate=0.2)
    >>> sweep.frequency_hz(10.0)
    2.0
    >>> round(sweep.duration, 9)
    30.0
    """

    f_start: float = SWEEP_FREQUENCY_MIN_HZ
    f_end: float = SWEEP_FREQUENCY_MAX_HZ
    rate: float = SWEEP_RATE_HZ_PER_S

    def __post_init__(self):
        f_start = require_non_negative("f_start", self.f_start)
        f_end = require_finite("f_end", self.f_end)
        require_positive("rate", self.rate)
        if f_end <= f_start:
            raise InvalidParameterError(f"f_end ({f_end}) must exceed f_start ({f_start})")

    @property
    def duration(self) -> float:
        """Seconds from f_start to f_end."""
        return (self.f_end - self.f_start) / self.rate

    def frequency_hz(self, t):
        """Instantaneous frequency in Hz, broadcasts over arrays."""
        t = np.maximum(np.asarray(t, dtype=float), 0.0)
        f = np.minimum(self.f_start + self.rate * t, self.f_end)
        return float(f) if f.ndim == 0 else f

    def angular_frequency(self, t):
        """Instantaneous ω(t) in rad/s."""
        return TWO_PI * self.frequency_hz(t)

    def is_complete(self, t: float) -> bool:
        return t >= self.duration

    def __call__(self, t: float) -> float:
        return self.angular_frequency(t)


__all__ = ["LinearFrequencySweep"]
