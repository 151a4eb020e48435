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
Unit tests for OscillatorParameters

Tests cover:
1. Construction and validation
2. Derived quantities (natural frequency, damping ratio, Q, decay time)
3. Peak response frequency
4. Energies
"""

import dataclasses
import math

import numpy as np
import pytest

from resosim.exceptions import InvalidParameterError
from resosim.oscillators import OscillatorParameters


# ============================================================================
# Test Class 1: Construction
# ============================================================================


class TestConstruction:
    """Test OscillatorParameters creation and validation"""

    def test_defaults(self):
        params = OscillatorParameters()
        assert params.mass == 1.0
        assert params.spring_constant == 100.0
        assert params.damping == 1.0

    def test_values_stored_as_float(self):
        params = OscillatorParameters(mass=2, spring_constant=50, damping=0)
        assert isinstance(params.mass, float)
        assert isinstance(params.damping, float)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"mass": 0.0},
            {"mass": -1.0},
            {"spring_constant": 0.0},
            {"damping": -0.1},
            {"mass": np.nan},
            {"spring_constant": np.inf},
            {"damping": "heavy"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidParameterError):
            OscillatorParameters(**kwargs)

    def test_frozen(self):
        params = OscillatorParameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.mass = 2.0

    def test_from_frequency_with_mass(self):
        params = OscillatorParameters.from_frequency(2.0, mass=0.5, damping=0.1)
        assert params.natural_frequency_hz == pytest.approx(2.0)
        assert params.mass == 0.5
        assert params.damping == 0.1

    def test_from_frequency_with_spring_constant(self):
        params = OscillatorParameters.from_frequency(1.5, spring_constant=200.0)
        assert params.natural_frequency_hz == pytest.approx(1.5)
        assert params.spring_constant == 200.0

    def test_from_frequency_needs_exactly_one(self):
        with pytest.raises(InvalidParameterError):
            OscillatorParameters.from_frequency(1.0)
        with pytest.raises(InvalidParameterError):
            OscillatorParameters.from_frequency(1.0, mass=1.0, spring_constant=10.0)


# ============================================================================
# Test Class 2: Derived Quantities
# ============================================================================


class TestDerivedQuantities:
    """Test analytic oscillator properties"""

    def test_natural_frequency(self):
        params = OscillatorParameters(mass=4.0, spring_constant=100.0, damping=0.0)
        assert params.natural_frequency == pytest.approx(5.0)
        assert params.natural_frequency_hz == pytest.approx(5.0 / (2 * math.pi))

    def test_damping_ratio_and_quality_factor(self):
        params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=2.0)
        assert params.damping_ratio == pytest.approx(0.1)
        assert params.quality_factor == pytest.approx(5.0)
        assert params.is_underdamped

    def test_undamped_limits(self):
        params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=0.0)
        assert params.quality_factor == math.inf
        assert params.decay_time == math.inf
        assert params.damped_frequency == pytest.approx(10.0)

    def test_damped_frequency(self):
        params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=2.0)
        assert params.damped_frequency == pytest.approx(10.0 * math.sqrt(1 - 0.01))

    def test_overdamped(self):
        params = OscillatorParameters(mass=1.0, spring_constant=1.0, damping=3.0)
        assert not params.is_underdamped
        assert params.damped_frequency == 0.0

    def test_decay_time(self):
        params = OscillatorParameters(mass=2.0, spring_constant=10.0, damping=0.5)
        assert params.decay_time == pytest.approx(8.0)

    @pytest.mark.parametrize(
        "mass, damping, spring_constant",
        [(1.0, 1.0, 100.0), (2.0, 3.0, 50.0), (0.5, 0.1, 10.0)],
    )
    def test_peak_frequency(self, mass, damping, spring_constant):
        params = OscillatorParameters(mass=mass, spring_constant=spring_constant, damping=damping)
        expected = math.sqrt(spring_constant / mass - damping**2 / (2 * mass**2))
        assert params.peak_frequency == pytest.approx(expected, rel=1e-12)

    def test_peak_frequency_heavily_damped(self):
        """zeta >= 1/sqrt(2) peaks at zero frequency"""
        params = OscillatorParameters(mass=1.0, spring_constant=1.0, damping=1.5)
        assert params.peak_frequency == 0.0


# ============================================================================
# Test Class 3: Energies
# ============================================================================


class TestEnergies:
    """Test energy helpers"""

    def test_energy_components(self):
        params = OscillatorParameters(mass=2.0, spring_constant=8.0, damping=0.0)
        assert params.kinetic_energy(3.0) == pytest.approx(9.0)
        assert params.potential_energy(0.5) == pytest.approx(1.0)
        assert params.total_energy([0.5, 3.0]) == pytest.approx(10.0)

    def test_energy_broadcasts(self):
        params = OscillatorParameters(mass=1.0, spring_constant=1.0, damping=0.0)
        np.testing.assert_allclose(params.kinetic_energy(np.array([1.0, 2.0])), [0.5, 2.0])
