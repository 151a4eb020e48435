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
Resonator Configuration Modes

Preset ways of distributing mass and spring constant across a bank of N
resonators that share one driver.

Target frequencies are spread evenly over [1.0, 5.5] Hz:

    f_i = f_min + i / (N − 1) · (f_max − f_min),    i = 0..N−1

- SAME_MASS: m = 1 kg for all, k_i = (2πf_i)²·m
- SAME_SPRING_CONSTANT: k = 200 N/m for all, m_i = k / (2πf_i)²
- MIXED / SAME_FREQUENCY: m_i = (i+1)·m₀, k_i = (i+1)·k₀, so every resonator
  shares the base natural frequency
- CUSTOM: parameters supplied by the caller
"""

from enum import Enum
from typing import List, Optional, Sequence

from resosim.config import (
    DEFAULT_DAMPING,
    MAX_RESONATORS,
    RESONATOR_FREQUENCY_MAX_HZ,
    RESONATOR_FREQUENCY_MIN_HZ,
    SAME_SPRING_CONSTANT_BASE,
    TWO_PI,
)
from resosim.exceptions import InvalidParameterError
from resosim.oscillators.oscillator import OscillatorParameters


class ResonatorConfigMode(Enum):
    """How parameters vary across a resonator bank."""

    SAME_MASS = "same_mass"
    SAME_SPRING_CONSTANT = "same_spring_constant"
    MIXED = "mixed"
    SAME_FREQUENCY = "same_frequency"
    CUSTOM = "custom"


def target_frequencies(count: int) -> List[float]:
    """
    Evenly spread natural frequencies in Hz.

    Examples
    --------
    >>> target_frequencies(4)
    [1.0, 2.5, 4.0, 5.5]
    >>> target_frequencies(1)
    [1.0]
    """
    if count == 1:
        return [RESONATOR_FREQUENCY_MIN_HZ]
    span = RESONATOR_FREQUENCY_MAX_HZ - RESONATOR_FREQUENCY_MIN_HZ
    return [RESONATOR_FREQUENCY_MIN_HZ + i / (count - 1) * span for i in range(count)]


def build_resonators(
    mode,
    count: int,
    damping: float = DEFAULT_DAMPING,
    base_mass: Optional[float] = None,
    base_spring_constant: Optional[float] = None,
    custom: Optional[Sequence[OscillatorParameters]] = None,
) -> List[OscillatorParameters]:
    """
    Build the parameters of a resonator bank.

    Parameters
    ----------
    mode : Union[ResonatorConfigMode, str]
        Distribution preset
    count : int
        Number of resonators, 1..MAX_RESONATORS
    damping : float
        Damping shared by every preset resonator
    base_mass : Optional[float]
        Reference mass; default 1 kg (SAME_MASS, MIXED, SAME_FREQUENCY) or
        solved for 1 Hz (SAME_SPRING_CONSTANT)
    base_spring_constant : Optional[float]
        Reference spring constant; default 200 N/m (SAME_SPRING_CONSTANT) or
        solved for 1 Hz
    custom : Optional[Sequence[OscillatorParameters]]
        Required for CUSTOM, must hold exactly count entries

    Returns
    -------
    List[OscillatorParameters]
        Index 0 is the reference resonator

    Examples
    --------
    >>> bank = build_resonators("same_mass", 10, damping=0.1)
    >>> [round(p.natural_frequency_hz, 2) for p in bank][:3]
    [1.0, 1.5, 2.0]
    """
    mode = _as_mode(mode)
    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= MAX_RESONATORS:
        raise InvalidParameterError(
            f"count must be an integer in [1, {MAX_RESONATORS}], got {count!r}"
        )

    if mode is ResonatorConfigMode.CUSTOM:
        if custom is None or len(custom) != count:
            raise InvalidParameterError("CUSTOM mode needs exactly `count` OscillatorParameters")
        return list(custom)

    omega_min_sq = (TWO_PI * RESONATOR_FREQUENCY_MIN_HZ) ** 2

    if mode is ResonatorConfigMode.SAME_MASS:
        mass = 1.0 if base_mass is None else base_mass
        return [
            OscillatorParameters(
                mass=mass, spring_constant=(TWO_PI * f) ** 2 * mass, damping=damping
            )
            for f in target_frequencies(count)
        ]

    if mode is ResonatorConfigMode.SAME_SPRING_CONSTANT:
        k = SAME_SPRING_CONSTANT_BASE if base_spring_constant is None else base_spring_constant
        return [
            OscillatorParameters(mass=k / (TWO_PI * f) ** 2, spring_constant=k, damping=damping)
            for f in target_frequencies(count)
        ]

    # MIXED and SAME_FREQUENCY scale both parameters together
    mass = 1.0 if base_mass is None else base_mass
    k = omega_min_sq * mass if base_spring_constant is None else base_spring_constant
    return [
        OscillatorParameters(mass=(i + 1) * mass, spring_constant=(i + 1) * k, damping=damping)
        for i in range(count)
    ]


def _as_mode(mode) -> ResonatorConfigMode:
    if isinstance(mode, ResonatorConfigMode):
        return mode
    try:
        return ResonatorConfigMode(str(mode).lower())
    except ValueError as exc:
        valid = [m.value for m in ResonatorConfigMode]
        raise InvalidParameterError(
            f"Unknown resonator mode '{mode}'. Choose from: {valid}"
        ) from exc


__all__ = ["ResonatorConfigMode", "build_resonators", "target_frequencies"]
