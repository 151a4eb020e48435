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
Unit tests for ResonanceModel

Tests cover:
1. Construction, solver selection and validation
2. Free and driven dynamics
3. Reset fidelity
4. Numerical instability rollback
5. Degraded accuracy flags
6. Backward stepping
7. Snapshots and frequency schedules
8. Closed-form solver selection
9. Driver work, thermal loss and RMS accounting
"""

import logging

import numpy as np
import pytest

from resosim.exceptions import (
    AccuracyDegradedWarning,
    InvalidParameterError,
    NumericalInstabilityWarning,
)
from resosim.numerical_integration import (
    AdaptiveEulerSolver,
    AdaptiveRK45Solver,
    AnalyticalSolver,
    ModifiedMidpointSolver,
    RK4Solver,
)
from resosim.oscillators import (
    LinearFrequencySweep,
    OscillatorParameters,
    ResonanceModel,
    build_resonators,
)


# ============================================================================
# Test Solvers
# ============================================================================


class ExplodingSolver:
    """Solver stand-in that always returns a non-finite state"""

    name = "exploding"
    is_adaptive = False

    def step(self, rhs, t, state, dt):
        return {
            "state": np.array([np.nan, np.inf]),
            "dt_consumed": dt,
            "error": None,
            "degraded": False,
            "nfev": 0,
            "n_accepted": 1,
            "n_rejected": 0,
        }


@pytest.fixture
def undamped():
    return OscillatorParameters(mass=1.0, spring_constant=100.0, damping=0.0)


@pytest.fixture
def bank():
    return build_resonators("same_mass", 4, damping=0.5)


# ============================================================================
# Test Class 1: Construction
# ============================================================================


class TestConstruction:
    """Test model setup"""

    def test_single_oscillator(self, undamped):
        model = ResonanceModel(undamped)
        assert model.count == 1
        assert model.time == 0.0
        assert model.states.shape == (1, 2)
        np.testing.assert_array_equal(model.states, 0.0)

    def test_parameter_arrays(self, bank):
        model = ResonanceModel(bank)
        assert model.count == 4
        np.testing.assert_allclose(model.masses, [p.mass for p in bank])
        np.testing.assert_allclose(model.spring_constants, [p.spring_constant for p in bank])
        np.testing.assert_allclose(model.damping, 0.5)

    @pytest.mark.parametrize("name", ["masses", "spring_constants", "damping"])
    def test_parameter_arrays_read_only(self, bank, name):
        model = ResonanceModel(bank)
        with pytest.raises(ValueError):
            getattr(model, name)[0] = 10.0
        np.testing.assert_allclose(model.energies(), 0.0)

    def test_default_solver_is_substepped_rk4(self, bank):
        model = ResonanceModel(bank)
        solver = model.solvers[0]
        assert isinstance(solver, RK4Solver)
        assert solver.max_substep == 1e-3
        assert all(s is solver for s in model.solvers)

    def test_solver_by_name_with_options(self, bank):
        model = ResonanceModel(bank, solver="adaptive_rk45", solver_options={"tolerance": 1e-7})
        assert all(isinstance(s, AdaptiveRK45Solver) for s in model.solvers)
        assert model.solvers[0].tolerance == 1e-7

    def test_per_oscillator_solvers(self, bank):
        solvers = [RK4Solver(), AdaptiveEulerSolver(), "adaptive_rk45", ModifiedMidpointSolver()]
        model = ResonanceModel(bank, solver=solvers)
        assert isinstance(model.solvers[1], AdaptiveEulerSolver)
        assert isinstance(model.solvers[2], AdaptiveRK45Solver)

    def test_solver_count_mismatch(self, bank):
        with pytest.raises(InvalidParameterError):
            ResonanceModel(bank, solver=[RK4Solver(), RK4Solver()])

    def test_not_a_solver(self, undamped):
        with pytest.raises(InvalidParameterError):
            ResonanceModel(undamped, solver=42)

    def test_unknown_solver_name(self, undamped):
        with pytest.raises(InvalidParameterError):
            ResonanceModel(undamped, solver="verlet")

    def test_empty_bank(self):
        with pytest.raises(InvalidParameterError):
            ResonanceModel([])

    def test_initial_states_broadcast(self, bank):
        model = ResonanceModel(bank, initial_states=[0.1, -0.2])
        np.testing.assert_allclose(model.states, np.tile([0.1, -0.2], (4, 1)))

    @pytest.mark.parametrize("states", [[[0.0, 0.0]] * 3, [np.nan, 0.0]])
    def test_invalid_initial_states(self, bank, states):
        with pytest.raises(InvalidParameterError):
            ResonanceModel(bank, initial_states=states)

    def test_invalid_driving(self, undamped):
        with pytest.raises(InvalidParameterError):
            ResonanceModel(undamped, driving_amplitude=np.inf)
        with pytest.raises(InvalidParameterError):
            ResonanceModel(undamped, driving_frequency=-1.0)


# ============================================================================
# Test Class 2: Dynamics
# ============================================================================


class TestDynamics:
    """Test free and driven motion"""

    def test_free_oscillation_at_natural_frequency(self, undamped):
        """Released from rest at x0, x(t) = x0 cos(w0 t)"""
        model = ResonanceModel(undamped, driving_amplitude=0.0, initial_states=[0.05, 0.0])
        period = 2 * np.pi / undamped.natural_frequency

        model.run(period / 4, 1e-3)
        assert model.states[0, 0] == pytest.approx(0.0, abs=1e-8)
        assert model.states[0, 1] == pytest.approx(-0.05 * 10.0, rel=1e-8)

        model.run(period / 4, 1e-3)
        assert model.states[0, 0] == pytest.approx(-0.05, rel=1e-8)

        model.run(period / 2, 1e-3)
        assert model.states[0, 0] == pytest.approx(0.05, rel=1e-8)
        assert model.time == pytest.approx(period)

    def test_free_oscillation_amplitude(self, undamped):
        model = ResonanceModel(undamped, driving_amplitude=0.0, initial_states=[0.05, 0.0])
        peak = 0.0
        for _ in range(700):
            model.step(1e-3)
            peak = max(peak, abs(model.states[0, 0]))
        assert peak == pytest.approx(0.05, rel=1e-4)

    def test_undamped_energy_conserved(self, undamped):
        model = ResonanceModel(undamped, driving_amplitude=0.0, initial_states=[0.05, 0.0])
        e0 = model.energies()[0]
        model.run(2.0, 1 / 60)
        assert model.energies()[0] == pytest.approx(e0, rel=1e-8)

    def test_driven_from_rest_gains_energy(self, bank):
        model = ResonanceModel(bank, driving_amplitude=1.0, driving_frequency=2 * np.pi)
        model.run(1.0, 1 / 60)
        assert np.all(model.energies() > 0.0)

    def test_same_dynamics_across_solvers(self):
        params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=1.0)
        reference = ResonanceModel(
            params, driving_frequency=8.0, solver=RK4Solver(max_substep=1e-4)
        )
        adaptive = ResonanceModel(
            params,
            driving_frequency=8.0,
            solver="adaptive_rk45",
            solver_options={"tolerance": 1e-10, "max_step": 1e-2},
        )
        reference.run(1.0, 1 / 60)
        adaptive.run(1.0, 1 / 60)
        np.testing.assert_allclose(adaptive.states, reference.states, atol=1e-8)

    def test_zero_dt_is_noop(self, bank):
        model = ResonanceModel(bank)
        model.step(0.01)
        before = model.states
        model.step(0.0)
        np.testing.assert_array_equal(model.states, before)
        assert model.time == pytest.approx(0.01)

    def test_non_finite_dt_rejected(self, bank):
        with pytest.raises(InvalidParameterError):
            ResonanceModel(bank).step(np.nan)

    def test_run_lands_on_duration(self, bank):
        model = ResonanceModel(bank)
        model.run(0.1, 0.03)
        assert model.time == pytest.approx(0.1, abs=1e-12)


# ============================================================================
# Test Class 3: Reset
# ============================================================================


class TestReset:
    """Test reset fidelity"""

    def test_reset_is_bit_identical(self, bank):
        initial_states = [[0.1, 0.0], [0.0, 0.2], [0.3, -0.1], [0.0, 0.0]]
        model = ResonanceModel(bank, initial_states=initial_states)
        initial = model.states

        model.run(3.0, 1 / 60)
        assert not np.array_equal(model.states, initial)

        model.reset()
        assert np.array_equal(model.states, initial)
        assert model.time == 0.0
        assert not model.snapshot()["degraded"].any()
        assert not model.snapshot()["unstable"].any()

    def test_reset_replays_identically(self, bank):
        model = ResonanceModel(bank, solver="adaptive_rk45")
        model.run(1.0, 1 / 60)
        first = model.states
        model.reset()
        model.run(1.0, 1 / 60)
        assert np.array_equal(model.states, first)

    def test_initial_states_read_only(self, bank):
        model = ResonanceModel(bank)
        states = model.initial_states
        states[0, 0] = 99.0
        model.reset()
        assert model.states[0, 0] == 0.0


# ============================================================================
# Test Class 4: Numerical Instability
# ============================================================================


class TestInstability:
    """Test rollback of non-finite states"""

    def test_rollback_and_warning(self, undamped, caplog):
        model = ResonanceModel(
            [undamped, undamped],
            solver=[RK4Solver(), ExplodingSolver()],
            initial_states=[0.05, 0.0],
        )

        with caplog.at_level(logging.WARNING, logger="resosim"):
            with pytest.warns(NumericalInstabilityWarning):
                model.step(0.01)

        states = model.states
        assert np.all(np.isfinite(states))
        np.testing.assert_array_equal(states[1], [0.05, 0.0])
        assert states[0, 0] != 0.05
        assert model.time == pytest.approx(0.01)

        snapshot = model.snapshot()
        assert snapshot["unstable"].tolist() == [False, True]
        assert any("non-finite" in record.message for record in caplog.records)

    def test_model_continues_after_instability(self, undamped):
        model = ResonanceModel([undamped, undamped], solver=[RK4Solver(), ExplodingSolver()])
        with pytest.warns(NumericalInstabilityWarning):
            model.step(0.01)
        with pytest.warns(NumericalInstabilityWarning):
            model.step(0.01)
        assert model.time == pytest.approx(0.02)


# ============================================================================
# Test Class 5: Degraded Accuracy
# ============================================================================


class TestDegradedAccuracy:
    """Test degraded flags from adaptive solvers"""

    def test_degraded_flag_and_warning(self, undamped):
        strict = AdaptiveRK45Solver(tolerance=1e-20, min_step=1e-3, max_step=1e-2)
        model = ResonanceModel(undamped, solver=strict)

        with pytest.warns(AccuracyDegradedWarning):
            model.step(0.01)

        assert model.snapshot()["degraded"].tolist() == [True]
        assert np.all(np.isfinite(model.states))

    def test_healthy_solver_not_degraded(self, bank):
        model = ResonanceModel(bank, solver="adaptive_rk45")
        model.run(0.5, 1 / 60)
        assert not model.snapshot()["degraded"].any()


# ============================================================================
# Test Class 6: Backward Stepping
# ============================================================================


class TestBackwardStepping:
    """Negative dt approximately rewinds the model"""

    def test_forward_then_backward(self):
        params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=0.5)
        model = ResonanceModel(params, driving_frequency=9.0, initial_states=[0.02, 0.0])
        start = model.states

        for _ in range(30):
            model.step(1 / 60)
        for _ in range(30):
            model.step(-1 / 60)

        assert model.time == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(model.states, start, atol=1e-6)


# ============================================================================
# Test Class 7: Snapshots and Schedules
# ============================================================================


class TestSnapshot:
    """Test snapshot contents and driving schedules"""

    def test_snapshot_contents(self, bank):
        model = ResonanceModel(bank, driving_amplitude=2.0, driving_frequency=3.0)
        snapshot = model.snapshot()

        assert snapshot["time"] == 0.0
        assert snapshot["driving_frequency"] == 3.0
        assert snapshot["driving_force"] == pytest.approx(2.0)
        assert snapshot["states"].shape == (4, 2)

    def test_snapshot_is_copy(self, bank):
        model = ResonanceModel(bank)
        snapshot = model.snapshot()
        snapshot["states"][:] = 123.0
        model.states[:] = 456.0
        assert np.all(model.states == 0.0)

    def test_driving_force(self, undamped):
        model = ResonanceModel(undamped, driving_amplitude=1.5, driving_frequency=np.pi)
        assert model.driving_force(0.5) == pytest.approx(0.0, abs=1e-12)
        assert model.driving_force(1.0) == pytest.approx(-1.5)

    def test_sweep_schedule(self, undamped):
        sweep = LinearFrequencySweep(f_start=0.0, f_end=6.0, rate=0.2)
        model = ResonanceModel(undamped, driving_frequency=sweep)

        assert model.driving_frequency() == 0.0
        model.run(5.0, 1 / 60)
        assert model.driving_frequency() == pytest.approx(2 * np.pi * 1.0)
        assert model.driving_frequency(100.0) == pytest.approx(2 * np.pi * 6.0)


# ============================================================================
# Test Class 8: Closed-Form Solver
# ============================================================================


class TestAnalyticalSolver:
    """Selecting the analytical solver by name"""

    def test_one_solver_per_oscillator(self, bank):
        model = ResonanceModel(
            bank, driving_amplitude=2.0, driving_frequency=5.0, solver="analytical"
        )
        assert all(isinstance(s, AnalyticalSolver) for s in model.solvers)
        for solver, params in zip(model.solvers, bank):
            assert solver.mass == params.mass
            assert solver.spring_constant == params.spring_constant
            assert solver.damping == params.damping
            assert solver.driving_amplitude == 2.0
            assert solver.driving_frequency == 5.0

    def test_mixed_list(self, bank):
        model = ResonanceModel(bank, solver=["analytical", RK4Solver(), "rk4", "analytical"])
        assert isinstance(model.solvers[0], AnalyticalSolver)
        assert isinstance(model.solvers[2], RK4Solver)
        assert model.solvers[3].spring_constant == bank[3].spring_constant

    def test_matches_default_solver(self, bank):
        kwargs = dict(driving_amplitude=1.0, driving_frequency=2 * np.pi * 2.0)
        exact = ResonanceModel(bank, solver="analytical", **kwargs)
        numerical = ResonanceModel(bank, **kwargs)

        exact.run(3.0, 1 / 60)
        numerical.run(3.0, 1 / 60)

        np.testing.assert_allclose(exact.states, numerical.states, atol=1e-6)

    def test_requires_constant_frequency(self, undamped):
        sweep = LinearFrequencySweep(f_start=0.0, f_end=6.0, rate=0.2)
        with pytest.raises(InvalidParameterError, match="constant driving frequency"):
            ResonanceModel(undamped, driving_frequency=sweep, solver="analytical")

    def test_rejects_solver_options(self, undamped):
        with pytest.raises(InvalidParameterError, match="analytical"):
            ResonanceModel(undamped, solver="analytical", solver_options={"tolerance": 1e-6})


# ============================================================================
# Test Class 9: Energy Accounting
# ============================================================================


class TestEnergyAccounting:
    """Driver work, thermal loss and RMS integrals"""

    @pytest.mark.parametrize("solver", [None, "analytical"])
    def test_driver_work_balances_energy_and_heat(self, bank, solver):
        model = ResonanceModel(
            bank, driving_amplitude=1.0, driving_frequency=2 * np.pi * 3.0, solver=solver
        )
        model.run(5.0, 0.002)

        work = model.driver_work
        assert np.all(np.abs(work) > 0.0)
        np.testing.assert_allclose(
            work, model.energies() + model.thermal_energy, rtol=1e-4, atol=1e-10
        )

    def test_balance_from_displaced_start(self):
        params = OscillatorParameters(mass=0.5, spring_constant=80.0, damping=1.2)
        model = ResonanceModel(
            params, driving_amplitude=0.7, driving_frequency=11.0, initial_states=[0.1, -0.4]
        )
        start = model.energies()
        model.run(4.0, 0.002)
        expected = model.energies() - start + model.thermal_energy
        np.testing.assert_allclose(model.driver_work, expected, rtol=1e-4, atol=1e-6)

    def test_thermal_energy_never_decreases(self, bank):
        model = ResonanceModel(bank, driving_frequency=2 * np.pi * 2.0)
        previous = model.thermal_energy
        for _ in range(120):
            model.step(1 / 60)
            current = model.thermal_energy
            assert np.all(current >= previous)
            previous = current
        assert np.all(previous > 0.0)

    def test_undriven_undamped_accumulates_nothing(self, undamped):
        model = ResonanceModel(undamped, driving_amplitude=0.0, initial_states=[0.1, 0.0])
        model.run(1.0, 1 / 60)
        assert model.driver_work.tolist() == [0.0]
        assert model.thermal_energy.tolist() == [0.0]

    def test_rms_of_free_oscillation(self, undamped):
        model = ResonanceModel(undamped, driving_amplitude=0.0, initial_states=[0.1, 0.0])
        model.run(2 * np.pi, 0.001)
        np.testing.assert_allclose(model.rms_position, 0.1 / np.sqrt(2), rtol=1e-4)
        np.testing.assert_allclose(model.rms_velocity, 1.0 / np.sqrt(2), rtol=1e-4)

    def test_rms_zero_at_start(self, bank):
        model = ResonanceModel(bank, initial_states=[0.1, 0.0])
        np.testing.assert_array_equal(model.rms_position, 0.0)
        np.testing.assert_array_equal(model.rms_velocity, 0.0)

    def test_reset_clears_totals(self, bank):
        model = ResonanceModel(bank, driving_frequency=2 * np.pi * 2.0)
        model.run(1.0, 1 / 60)
        assert np.all(model.thermal_energy > 0.0)

        model.reset()

        snapshot = model.snapshot()
        for key in ("driver_work", "thermal_energy", "rms_position", "rms_velocity"):
            np.testing.assert_array_equal(snapshot[key], 0.0)

    def test_rolled_back_oscillator_accumulates_nothing(self, undamped):
        model = ResonanceModel(
            [undamped, undamped],
            driving_amplitude=1.0,
            solver=[RK4Solver(), ExplodingSolver()],
            initial_states=[0.05, 0.0],
        )
        with pytest.warns(NumericalInstabilityWarning):
            model.step(0.01)
        assert model.driver_work[1] == 0.0
        assert model.rms_position[1] == 0.0
        assert model.rms_position[0] > 0.0

    def test_snapshot_totals_are_copies(self, bank):
        model = ResonanceModel(bank, driving_frequency=2 * np.pi * 2.0)
        model.run(0.5, 1 / 60)
        snapshot = model.snapshot()
        np.testing.assert_array_equal(snapshot["driver_work"], model.driver_work)
        snapshot["driver_work"][:] = 99.0
        model.thermal_energy[:] = 99.0
        assert not np.any(model.driver_work == 99.0)
        assert not np.any(model.thermal_energy == 99.0)
