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
Oscillators

Driven damped spring-mass oscillators:

- OscillatorParameters: physical parameters and derived quantities
- ResonanceModel: bank of oscillators sharing one driver
- ResonanceCurveCalculator: closed-form steady-state response
- build_resonators / ResonatorConfigMode: preset parameter banks
- LinearFrequencySweep: time-varying driving frequency
"""

from .frequency_sweep import LinearFrequencySweep
from .oscillator import OscillatorParameters
from .resonance_curve import ResonanceCurveCalculator, measure_steady_state_amplitude
from .resonance_model import ResonanceModel
from .resonator_config import ResonatorConfigMode, build_resonators, target_frequencies
from .symbolic_oscillator import compile_oscillator

__all__ = [
    "OscillatorParameters",
    "ResonanceModel",
    "ResonanceCurveCalculator",
    "measure_steady_state_amplitude",
    "ResonatorConfigMode",
    "build_resonators",
    "target_frequencies",
    "LinearFrequencySweep",
    "compile_oscillator",
]
