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
Oscillator Parameters

Immutable physical parameters of one damped spring-mass oscillator plus the
quantities derived from them: natural and damped frequencies, damping
ratio, quality factor, decay time, amplitude-peak frequency and energies.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from resosim.config import DEFAULT_DAMPING, DEFAULT_MASS, DEFAULT_SPRING_CONSTANT, TWO_PI
from resosim.exceptions import (
    InvalidParameterError,
    require_non_negative,
    require_positive,
)
from resosim.oscillators.symbolic_oscillator import compile_oscillator
from resosim.types.core import StateVector


@dataclass(frozen=True)
class OscillatorParameters:
    """
    Mass, spring constant and damping of a single oscillator.

    Parameters
    ----------
    mass : float
        m > 0 in kg
    spring_constant : float
        k > 0 in N/m
    damping : float
        c >= 0 in N·s/m

    Raises
    ------
    InvalidParameterError
        If any value is non-finite or outside its range

    Examples
    --------
    >>> params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=0.5)
    >>> params.natural_frequency
    10.0
    >>> round(params.damping_ratio, 4)
    0.025
    >>> params.quality_factor
    20.0
    """

    mass: float = DEFAULT_MASS
    spring_constant: float = DEFAULT_SPRING_CONSTANT
    damping: float = DEFAULT_DAMPING

    def __post_init__(self):
        object.__setattr__(self, "mass", require_positive("mass", self.mass))
        object.__setattr__(
            self, "spring_constant", require_positive("spring_constant", self.spring_constant)
        )
        object.__setattr__(self, "damping", require_non_negative("damping", self.damping))

    @classmethod
    def from_frequency(
        cls,
        frequency_hz: float,
        mass: Optional[float] = None,
        spring_constant: Optional[float] = None,
        damping: float = DEFAULT_DAMPING,
    ) -> "OscillatorParameters":
        """
        Build parameters with a given natural frequency.

        Exactly one of mass or spring_constant is given; the other is solved
        from f = √(k/m) / 2π.

        Examples
        --------
        >>> p = OscillatorParameters.from_frequency(1.0, mass=1.0, damping=0.0)
        >>> round(p.spring_constant, 4)
        39.4784
        """
        frequency_hz = require_positive("frequency_hz", frequency_hz)
        omega_sq = (TWO_PI * frequency_hz) ** 2
        if (mass is None) == (spring_constant is None):
            raise InvalidParameterError("Give exactly one of mass or spring_constant")
        if mass is not None:
            mass = require_positive("mass", mass)
            return cls(mass=mass, spring_constant=omega_sq * mass, damping=damping)
        spring_constant = require_positive("spring_constant", spring_constant)
        return cls(
            mass=spring_constant / omega_sq, spring_constant=spring_constant, damping=damping
        )

    # ========================================================================
    # Derived Quantities
    # ========================================================================

    @property
    def natural_frequency(self) -> float:
        """ω₀ = √(k/m) in rad/s"""
        return math.sqrt(self.spring_constant / self.mass)

    @property
    def natural_frequency_hz(self) -> float:
        return self.natural_frequency / TWO_PI

    @property
    def damping_ratio(self) -> float:
        """ζ = c / (2√(km))"""
        return self.damping / (2.0 * math.sqrt(self.spring_constant * self.mass))

    @property
    def quality_factor(self) -> float:
        """Q = √(km) / c, infinite when undamped."""
        if self.damping == 0.0:
            return math.inf
        return math.sqrt(self.spring_constant * self.mass) / self.damping

    @property
    def damped_frequency(self) -> float:
        """ωd = ω₀√(1 − ζ²), zero for critical or overdamping."""
        zeta = self.damping_ratio
        if zeta >= 1.0:
            return 0.0
        return self.natural_frequency * math.sqrt(1.0 - zeta * zeta)

    @property
    def decay_time(self) -> float:
        """Amplitude e-folding time τ = 2m / c, infinite when undamped."""
        if self.damping == 0.0:
            return math.inf
        return 2.0 * self.mass / self.damping

    @property
    def peak_frequency(self) -> float:
        """
        Driving frequency of maximum steady-state amplitude in rad/s.

        ω_peak = √(k/m − c²/(2m²)). Returns 0.0 when the radicand is not
        positive (ζ >= 1/√2), where the amplitude peaks at zero frequency.
        """
        radicand = float(
            compile_oscillator().peak_radicand(self.mass, self.damping, self.spring_constant)
        )
        if radicand <= 0.0:
            return 0.0
        return math.sqrt(radicand)

    @property
    def is_underdamped(self) -> bool:
        return self.damping_ratio < 1.0

    # ========================================================================
    # Energies
    # ========================================================================

    def kinetic_energy(self, velocity):
        """½mv², broadcasts over arrays."""
        return 0.5 * self.mass * np.square(velocity)

    def potential_energy(self, position):
        """½kx², broadcasts over arrays."""
        return 0.5 * self.spring_constant * np.square(position)

    def total_energy(self, state: StateVector) -> float:
        """Mechanical energy of a [position, velocity] state."""
        state = np.asarray(state, dtype=float)
        return float(self.kinetic_energy(state[1]) + self.potential_energy(state[0]))


__all__ = ["OscillatorParameters"]
