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
Unit tests for the symbolic oscillator model

Tests cover:
1. SymPy equation of motion and steady-state expressions
2. Peak frequency derivation
3. Compiled NumPy callables
4. State derivative closures
"""

import numpy as np
import pytest
import sympy as sp

from resosim.oscillators.symbolic_oscillator import (
    A,
    F,
    acceleration_expression,
    c,
    compile_oscillator,
    k,
    m,
    make_state_derivative,
    omega,
    peak_frequency_radicand,
    state_derivative_expression,
    steady_state_expressions,
    v,
    x,
)


# ============================================================================
# Test Class 1: Symbolic Expressions
# ============================================================================


class TestSymbolicExpressions:
    """Test the SymPy model"""

    def test_acceleration(self):
        expected = (F - c * v - k * x) / m
        assert sp.simplify(acceleration_expression() - expected) == 0

    def test_state_derivative_shape(self):
        f = state_derivative_expression()
        assert f.shape == (2, 1)
        assert f[0] == v

    def test_steady_state_amplitude(self):
        amplitude, _ = steady_state_expressions()
        expected = A / sp.sqrt((k - m * omega**2) ** 2 + (c * omega) ** 2)
        assert sp.simplify(amplitude - expected) == 0

    def test_steady_state_phase(self):
        _, phase = steady_state_expressions()
        assert sp.simplify(phase - sp.atan2(c * omega, k - m * omega**2)) == 0

    def test_peak_frequency_radicand(self):
        expected = k / m - c**2 / (2 * m**2)
        assert sp.simplify(peak_frequency_radicand() - expected) == 0


# ============================================================================
# Test Class 2: Compiled Functions
# ============================================================================


class TestCompiledOscillator:
    """Test the lambdified callables"""

    def test_compiled_once(self):
        assert compile_oscillator() is compile_oscillator()

    def test_acceleration(self):
        compiled = compile_oscillator()
        assert compiled.acceleration(0.1, 0.0, 0.0, 1.0, 0.5, 100.0) == pytest.approx(-10.0)
        assert compiled.acceleration(0.0, 2.0, 3.0, 2.0, 0.5, 100.0) == pytest.approx(1.0)

    def test_driving_force(self):
        compiled = compile_oscillator()
        assert compiled.driving_force(0.0, 2.0, 5.0) == pytest.approx(2.0)
        assert compiled.driving_force(np.pi / 10, 2.0, 5.0) == pytest.approx(0.0, abs=1e-12)

    def test_amplitude_static_limit(self):
        """At zero frequency the amplitude is A/k"""
        compiled = compile_oscillator()
        assert compiled.amplitude(0.0, 2.0, 1.0, 0.5, 100.0) == pytest.approx(0.02)

    def test_amplitude_broadcasts(self):
        compiled = compile_oscillator()
        w = np.linspace(0.0, 20.0, 11)
        result = compiled.amplitude(w, 1.0, 1.0, 0.5, 100.0)
        assert np.shape(result) == (11,)

    def test_phase_at_resonance(self):
        compiled = compile_oscillator()
        assert compiled.phase(10.0, 1.0, 0.5, 100.0) == pytest.approx(np.pi / 2)

    def test_peak_radicand(self):
        compiled = compile_oscillator()
        assert compiled.peak_radicand(1.0, 2.0, 100.0) == pytest.approx(98.0)


# ============================================================================
# Test Class 3: State Derivative
# ============================================================================


class TestStateDerivative:
    """Test make_state_derivative"""

    def test_rhs_values(self):
        rhs = make_state_derivative(2.0, 1.0, 8.0, force=lambda t: 4.0)
        result = rhs(0.0, np.array([0.5, 1.0]))
        # a = (4 - 1*1 - 8*0.5) / 2
        np.testing.assert_allclose(result, [1.0, -0.5])

    def test_force_evaluated_at_stage_time(self):
        seen = []

        def force(t):
            seen.append(t)
            return 0.0

        rhs = make_state_derivative(1.0, 0.0, 1.0, force)
        rhs(0.25, np.array([0.0, 0.0]))
        assert seen == [0.25]
