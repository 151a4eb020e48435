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
Resonance Curve Calculator

Closed-form steady-state response of a driven damped oscillator:

    amplitude(ω) = A / √((k − mω²)² + (cω)²)
    phase(ω)     = atan2(cω, k − mω²)          (lag of x behind F, in [0, π])

and a numerical cross-check that integrates the oscillator past its
transient and measures the amplitude it actually settles to.
"""

import logging
from typing import Optional

import numpy as np

from resosim.exceptions import (
    InvalidParameterError,
    require_finite,
    require_non_negative,
    require_positive,
)
from resosim.oscillators.oscillator import OscillatorParameters
from resosim.oscillators.resonance_model import ResonanceModel
from resosim.oscillators.symbolic_oscillator import compile_oscillator
from resosim.types.results import ResonanceCurveData

logger = logging.getLogger(__name__)

# Transient e-folding times to wait before measuring
_SETTLE_DECAY_TIMES = 12.0

# Driving periods sampled for the measured amplitude
_MEASURE_PERIODS = 3.0


class ResonanceCurveCalculator:
    """
    Steady-state amplitude and phase versus driving frequency.

    Parameters
    ----------
    parameters : OscillatorParameters
        Oscillator mass, spring constant and damping
    driving_amplitude : float
        Force amplitude A in N

    Examples
    --------
    >>> params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=1.0)
    >>> curve = ResonanceCurveCalculator(params, driving_amplitude=1.0)
    >>> curve.amplitude(0.0)
    0.01
    >>> data = curve.sample(0.0, 20.0, num=401)
    >>> round(float(data["frequency"][np.argmax(data["amplitude"])]), 2)
    9.95
    """

    def __init__(self, parameters: OscillatorParameters, driving_amplitude: float = 1.0):
        if not isinstance(parameters, OscillatorParameters):
            raise InvalidParameterError(
                f"Expected OscillatorParameters, got {type(parameters).__name__}"
            )
        self.parameters = parameters
        self.driving_amplitude = require_finite("driving_amplitude", driving_amplitude)
        self._compiled = compile_oscillator()

    def amplitude(self, omega):
        """
        Steady-state displacement amplitude.

        Parameters
        ----------
        omega : float or np.ndarray
            Angular driving frequency in rad/s

        Returns
        -------
        float or np.ndarray
            Amplitude in m; infinite at ω₀ when undamped
        """
        p = self.parameters
        w = np.asarray(omega, dtype=float)
        with np.errstate(divide="ignore"):
            result = self._compiled.amplitude(
                w, self.driving_amplitude, p.mass, p.damping, p.spring_constant
            )
        result = np.asarray(result, dtype=float)
        return float(result) if result.ndim == 0 else result

    def phase(self, omega):
        """Phase lag of displacement behind the force, radians in [0, π]."""
        p = self.parameters
        w = np.asarray(omega, dtype=float)
        result = np.asarray(
            self._compiled.phase(w, p.mass, p.damping, p.spring_constant), dtype=float
        )
        return float(result) if result.ndim == 0 else result

    def sample(self, omega_min: float, omega_max: float, num: int = 200) -> ResonanceCurveData:
        """
        Tabulate the response on an evenly spaced frequency grid.

        Raises
        ------
        InvalidParameterError
            If omega_min < 0, omega_max <= omega_min or num < 2
        """
        omega_min = require_non_negative("omega_min", omega_min)
        omega_max = require_finite("omega_max", omega_max)
        if omega_max <= omega_min:
            raise InvalidParameterError(
                f"omega_max ({omega_max}) must exceed omega_min ({omega_min})"
            )
        if isinstance(num, bool) or not isinstance(num, (int, np.integer)) or num < 2:
            raise InvalidParameterError(f"num must be an integer >= 2, got {num!r}")

        frequency = np.linspace(omega_min, omega_max, int(num))
        data: ResonanceCurveData = {
            "frequency": frequency,
            "amplitude": np.asarray(self.amplitude(frequency)),
            "phase": np.asarray(self.phase(frequency)),
        }
        return data

    @property
    def peak_frequency(self) -> float:
        """√(k/m − c²/(2m²)), or 0.0 when the response peaks at zero frequency."""
        return self.parameters.peak_frequency

    @property
    def peak_amplitude(self) -> float:
        return self.amplitude(self.peak_frequency)


def measure_steady_state_amplitude(
    parameters: OscillatorParameters,
    omega: float,
    driving_amplitude: float = 1.0,
    solver=None,
    dt: float = 1e-3,
    settle_time: Optional[float] = None,
    measure_time: Optional[float] = None,
) -> float:
    """
    Integrate one oscillator from rest and measure its settled amplitude.

    Parameters
    ----------
    parameters : OscillatorParameters
        Must have damping > 0 so the transient decays
    omega : float
        Constant angular driving frequency in rad/s (> 0)
    driving_amplitude : float
        Force amplitude A
    solver : optional
        Anything ResonanceModel accepts as a solver
    dt : float
        Tick length
    settle_time : Optional[float]
        Time skipped before measuring, default twelve decay times
    measure_time : Optional[float]
        Time over which max |x| is recorded, default three driving periods

    Returns
    -------
    float
        Largest |x| seen during the measurement window

    Examples
    --------
    >>> params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=2.0)
    >>> measured = measure_steady_state_amplitude(params, omega=8.0)
    >>> expected = ResonanceCurveCalculator(params).amplitude(8.0)
    >>> abs(measured - expected) / expected < 1e-3
    True
    """
    if parameters.damping <= 0.0:
        raise InvalidParameterError("Steady state needs damping > 0")
    omega = require_positive("omega", omega)
    dt = require_positive("dt", dt)

    if settle_time is None:
        settle_time = _SETTLE_DECAY_TIMES * parameters.decay_time
    if measure_time is None:
        measure_time = _MEASURE_PERIODS * 2.0 * np.pi / omega

    model = ResonanceModel(
        parameters,
        driving_amplitude=driving_amplitude,
        driving_frequency=omega,
        solver=solver,
    )
    model.run(settle_time, dt)

    peak = 0.0
    n_steps = int(np.ceil(measure_time / dt))
    for _ in range(n_steps):
        model.step(dt)
        peak = max(peak, abs(float(model.states[0, 0])))

    logger.debug(
        "Measured steady-state amplitude %.6g at omega=%.4g after %.3g s", peak, omega, settle_time
    )
    return peak


__all__ = ["ResonanceCurveCalculator", "measure_steady_state_amplitude"]
