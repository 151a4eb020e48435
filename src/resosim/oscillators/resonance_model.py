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
Resonance Model - Bank of Driven Damped Oscillators

N independent oscillators share one driving force

    m_i·x_i'' + c_i·x_i' + k_i·x_i = A·cos(ω(t)·t)

and are advanced together by an externally supplied dt. Each oscillator is
integrated by its own solver (one instance may be shared, since solvers are
immutable).

State Ownership
---------------
Positions and velocities live in one (N, 2) array owned by the model.
step() builds the next array and swaps it in with a single assignment, and
reset() does the same with a copy of the initial states. snapshot() hands
out copies only.

Numerical Faults
----------------
A solver result containing NaN or infinity is discarded: that oscillator
keeps its previous state, its ``unstable`` flag is set, and a
NumericalInstabilityWarning is issued. Adaptive solvers that could not meet
their tolerance set the oscillator's ``degraded`` flag and an
AccuracyDegradedWarning is issued when the flag first turns on.

Energy Accounting
-----------------
Alongside the states the model integrates, per oscillator, the work done by
the driver ∫F·v dt, the heat dissipated by damping ∫c·v² dt and the
squared-displacement and squared-velocity integrals ∫x² dt and ∫v² dt that
back the RMS values. Each step applies Simpson's rule with the midpoint
state taken from the cubic Hermite interpolant through the start and end
states, so for any solver

    driver_work ≈ energies() - initial energies + thermal_energy

Time Direction
--------------
Negative dt integrates backwards. This approximately rewinds the model but
is not a bit-exact inverse of a forward step.
"""

import logging
import warnings
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from resosim.config import DEFAULT_FIXED_SUBSTEP, TWO_PI
from resosim.exceptions import (
    AccuracyDegradedWarning,
    InvalidParameterError,
    NumericalInstabilityWarning,
    require_finite,
    require_non_negative,
)
from resosim.numerical_integration.analytical_solver import AnalyticalSolver
from resosim.numerical_integration.fixed_step_solvers import RK4Solver
from resosim.numerical_integration.solver_base import SolverType
from resosim.numerical_integration.solver_factory import create_solver
from resosim.oscillators.oscillator import OscillatorParameters
from resosim.oscillators.symbolic_oscillator import compile_oscillator, make_state_derivative
from resosim.types.core import FrequencySchedule, ScalarLike, StateArray
from resosim.types.protocols import ODESolverProtocol
from resosim.types.results import ResonanceSnapshot

logger = logging.getLogger(__name__)

SolverSpec = Union[ODESolverProtocol, str, SolverType]


class ResonanceModel:
    """
    N driven damped oscillators advanced by pluggable ODE solvers.

    Parameters
    ----------
    oscillators : Union[OscillatorParameters, Sequence[OscillatorParameters]]
        Oscillator parameters; index 0 is the reference oscillator
    driving_amplitude : float
        Force amplitude A in N
    driving_frequency : Union[float, Callable[[float], float]]
        Constant angular frequency ω in rad/s, or a schedule t -> ω(t)
        such as LinearFrequencySweep
    solver : Union[ODESolverProtocol, str, SolverType, Sequence[...]], optional
        One solver for all oscillators or one per oscillator. Names are
        resolved through create_solver(name, **solver_options). Default is
        RK4 with a 1 ms maximum sub-step. The name 'analytical' builds one
        closed-form AnalyticalSolver per oscillator from its parameters and
        requires a constant driving frequency.
    solver_options : Optional[dict]
        Options applied when solvers are given by name
    initial_states : Optional[array_like]
        (N, 2) or (2,) initial [position, velocity], default at rest

    Raises
    ------
    InvalidParameterError
        On invalid parameters, unknown solver names, mismatched solver
        counts or non-finite initial states

    Examples
    --------
    >>> params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=0.5)
    >>> model = ResonanceModel(params, driving_amplitude=1.0, driving_frequency=10.0)
    >>> model.run(1.0, 0.001)
    >>> snap = model.snapshot()
    >>> round(snap["time"], 9)
    1.0
    >>>
    >>> # Adaptive solver for every oscillator
    >>> from resosim.oscillators import build_resonators
    >>> model = ResonanceModel(
    ...     build_resonators("same_mass", 5),
    ...     solver="adaptive_rk45",
    ...     solver_options={"tolerance": 1e-6},
    ... )
    """

    def __init__(
        self,
        oscillators: Union[OscillatorParameters, Sequence[OscillatorParameters]],
        driving_amplitude: ScalarLike = 1.0,
        driving_frequency: Union[ScalarLike, FrequencySchedule] = TWO_PI,
        solver: Optional[Union[SolverSpec, Sequence[SolverSpec]]] = None,
        solver_options: Optional[dict] = None,
        initial_states=None,
    ):
        if isinstance(oscillators, OscillatorParameters):
            oscillators = [oscillators]
        oscillators = list(oscillators)
        if not oscillators:
            raise InvalidParameterError("ResonanceModel needs at least one oscillator")
        for params in oscillators:
            if not isinstance(params, OscillatorParameters):
                raise InvalidParameterError(
                    f"Expected OscillatorParameters, got {type(params).__name__}"
                )

        self._parameters = tuple(oscillators)
        self.masses = np.array([p.mass for p in oscillators], dtype=float)
        self.spring_constants = np.array([p.spring_constant for p in oscillators], dtype=float)
        self.damping = np.array([p.damping for p in oscillators], dtype=float)
        for array in (self.masses, self.spring_constants, self.damping):
            array.setflags(write=False)

        self.driving_amplitude = require_finite("driving_amplitude", driving_amplitude)
        if callable(driving_frequency):
            self._frequency_schedule: Optional[FrequencySchedule] = driving_frequency
            self._constant_frequency = None
        else:
            self._frequency_schedule = None
            self._constant_frequency = require_non_negative("driving_frequency", driving_frequency)

        self._solvers = self._resolve_solvers(solver, solver_options or {})
        self._initial_states = self._resolve_initial_states(initial_states, len(oscillators))
        self._initial_states.setflags(write=False)

        self._force = compile_oscillator().driving_force
        self._derivatives = [
            make_state_derivative(p.mass, p.damping, p.spring_constant, self.driving_force)
            for p in oscillators
        ]

        self._states: StateArray = self._initial_states.copy()
        self._time = 0.0
        self._degraded = np.zeros(len(oscillators), dtype=bool)
        self._unstable = np.zeros(len(oscillators), dtype=bool)
        self._clear_accumulators()

        logger.debug(
            "ResonanceModel created: %d oscillator(s), solvers=%s",
            len(oscillators),
            sorted({s.name for s in self._solvers}),
        )

    # ========================================================================
    # Construction Helpers
    # ========================================================================

    def _resolve_solvers(self, solver, options: dict) -> List[ODESolverProtocol]:
        count = len(self._parameters)
        if solver is None:
            return [RK4Solver(max_substep=DEFAULT_FIXED_SUBSTEP)] * count

        def resolve(spec, params: OscillatorParameters) -> ODESolverProtocol:
            if isinstance(spec, (str, SolverType)):
                if SolverType.from_value(spec) is SolverType.ANALYTICAL:
                    return self._analytical_solver(params, options)
                return create_solver(spec, **options)
            if isinstance(spec, ODESolverProtocol):
                return spec
            raise InvalidParameterError(f"Not a solver: {spec!r}")

        if isinstance(solver, (str, SolverType)):
            if SolverType.from_value(solver) is SolverType.ANALYTICAL:
                return [resolve(solver, params) for params in self._parameters]
            return [resolve(solver, self._parameters[0])] * count
        if isinstance(solver, ODESolverProtocol):
            return [solver] * count

        try:
            specs = list(solver)
        except TypeError as exc:
            raise InvalidParameterError(f"Not a solver: {solver!r}") from exc
        if len(specs) != count:
            raise InvalidParameterError(
                f"Got {len(specs)} solvers for {count} oscillators"
            )
        return [resolve(spec, params) for spec, params in zip(specs, self._parameters)]

    def _analytical_solver(self, params: OscillatorParameters, options: dict) -> AnalyticalSolver:
        if options:
            raise InvalidParameterError(
                f"Options {sorted(options)} do not apply to 'analytical'; "
                "it takes the oscillator parameters"
            )
        if self._frequency_schedule is not None:
            raise InvalidParameterError(
                "The analytical solver needs a constant driving frequency"
            )
        return AnalyticalSolver(
            mass=params.mass,
            spring_constant=params.spring_constant,
            damping=params.damping,
            driving_amplitude=self.driving_amplitude,
            driving_frequency=self._constant_frequency,
        )

    @staticmethod
    def _resolve_initial_states(initial_states, count: int) -> np.ndarray:
        if initial_states is None:
            return np.zeros((count, 2), dtype=float)
        states = np.array(initial_states, dtype=float)
        if states.shape == (2,):
            states = np.tile(states, (count, 1))
        if states.shape != (count, 2):
            raise InvalidParameterError(
                f"initial_states must have shape ({count}, 2) or (2,), got {states.shape}"
            )
        if not np.all(np.isfinite(states)):
            raise InvalidParameterError("initial_states must be finite")
        return states

    # ========================================================================
    # Driving Signal
    # ========================================================================

    def driving_frequency(self, t: Optional[float] = None) -> float:
        """ω(t) in rad/s, at the current model time when t is None."""
        t = self._time if t is None else t
        if self._frequency_schedule is None:
            return self._constant_frequency
        return float(self._frequency_schedule(t))

    def driving_force(self, t: float) -> float:
        """A·cos(ω(t)·t)"""
        return float(self._force(t, self.driving_amplitude, self.driving_frequency(t)))

    # ========================================================================
    # Integration
    # ========================================================================

    def step(self, dt: ScalarLike) -> None:
        """
        Advance every oscillator by dt and the model time by dt.

        Parameters
        ----------
        dt : float
            Elapsed time; negative values integrate backwards, zero is a
            no-op
        """
        dt = require_finite("dt", dt)
        if dt == 0.0:
            return

        t = self._time
        next_states = self._states.copy()
        newly_degraded = []
        forces = tuple(self.driving_force(s) for s in (t, t + 0.5 * dt, t + dt))

        for i, (solver, rhs) in enumerate(zip(self._solvers, self._derivatives)):
            result = solver.step(rhs, t, self._states[i], dt)
            candidate = result["state"]

            if not np.all(np.isfinite(candidate)):
                self._unstable[i] = True
                logger.warning(
                    "Oscillator %d became non-finite at t=%.6g (dt=%.3g); rolled back", i, t, dt
                )
                warnings.warn(
                    f"Oscillator {i} produced a non-finite state at t={t:.6g}; "
                    "state rolled back to the last finite value",
                    NumericalInstabilityWarning,
                    stacklevel=2,
                )
                continue

            next_states[i] = candidate
            self._accumulate(i, rhs, t, dt, self._states[i], candidate, forces)
            degraded = bool(result.get("degraded", False))
            if degraded and not self._degraded[i]:
                newly_degraded.append(i)
            self._degraded[i] = degraded

        self._states = next_states
        self._time = t + dt

        if newly_degraded:
            logger.warning(
                "Reduced accuracy for oscillator(s) %s at t=%.6g", newly_degraded, self._time
            )
            warnings.warn(
                f"Solver tolerance not met for oscillator(s) {newly_degraded}",
                AccuracyDegradedWarning,
                stacklevel=2,
            )

    def _accumulate(self, i, rhs, t, dt, start, end, forces) -> None:
        x0, v0 = start
        x1, v1 = end
        a0 = float(rhs(t, start)[1])
        a1 = float(rhs(t + dt, end)[1])
        x_mid = 0.5 * (x0 + x1) + 0.125 * dt * (v0 - v1)
        v_mid = 0.5 * (v0 + v1) + 0.125 * dt * (a0 - a1)

        f0, f_mid, f1 = forces
        sixth = dt / 6.0
        self._driver_work[i] += sixth * (f0 * v0 + 4.0 * f_mid * v_mid + f1 * v1)
        self._thermal_energy[i] += (
            sixth * self.damping[i] * (v0 * v0 + 4.0 * v_mid * v_mid + v1 * v1)
        )
        self._sum_squared_position[i] += sixth * (x0 * x0 + 4.0 * x_mid * x_mid + x1 * x1)
        self._sum_squared_velocity[i] += sixth * (v0 * v0 + 4.0 * v_mid * v_mid + v1 * v1)

    def _clear_accumulators(self) -> None:
        count = len(self._parameters)
        self._driver_work = np.zeros(count)
        self._thermal_energy = np.zeros(count)
        self._sum_squared_position = np.zeros(count)
        self._sum_squared_velocity = np.zeros(count)

    def run(self, duration: float, dt: float) -> None:
        """
        Step repeatedly until `duration` has elapsed.

        The last step is shortened so the model lands exactly on
        time + duration.
        """
        duration = require_non_negative("duration", duration)
        dt = abs(require_finite("dt", dt))
        if dt == 0.0:
            raise InvalidParameterError("dt must be non-zero")
        n_full = int(duration // dt)
        for _ in range(n_full):
            self.step(dt)
        remainder = duration - n_full * dt
        if remainder > 1e-12 * max(duration, 1.0):
            self.step(remainder)

    def reset(self) -> None:
        """Restore the initial states, t = 0 and clear all flags and energy totals."""
        self._states = self._initial_states.copy()
        self._time = 0.0
        self._degraded = np.zeros_like(self._degraded)
        self._unstable = np.zeros_like(self._unstable)
        self._clear_accumulators()
        logger.debug("ResonanceModel reset")

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def count(self) -> int:
        return len(self._parameters)

    @property
    def parameters(self):
        """Tuple of OscillatorParameters, index 0 is the reference."""
        return self._parameters

    @property
    def solvers(self):
        return tuple(self._solvers)

    @property
    def time(self) -> float:
        return self._time

    @property
    def states(self) -> StateArray:
        """(N, 2) copy of [position, velocity] per oscillator."""
        return self._states.copy()

    @property
    def initial_states(self) -> StateArray:
        return self._initial_states.copy()

    def energies(self) -> np.ndarray:
        """Mechanical energy ½mv² + ½kx² per oscillator, shape (N,)."""
        x = self._states[:, 0]
        v = self._states[:, 1]
        return 0.5 * self.masses * v**2 + 0.5 * self.spring_constants * x**2

    @property
    def driver_work(self) -> np.ndarray:
        """Work done by the driving force ∫F·v dt per oscillator (J)."""
        return self._driver_work.copy()

    @property
    def thermal_energy(self) -> np.ndarray:
        """Energy dissipated by damping ∫c·v² dt per oscillator (J)."""
        return self._thermal_energy.copy()

    @property
    def rms_position(self) -> np.ndarray:
        """√(∫x² dt / t) per oscillator, zeros before any forward time."""
        return self._root_mean(self._sum_squared_position)

    @property
    def rms_velocity(self) -> np.ndarray:
        """√(∫v² dt / t) per oscillator, zeros before any forward time."""
        return self._root_mean(self._sum_squared_velocity)

    def _root_mean(self, integral: np.ndarray) -> np.ndarray:
        if self._time <= 0.0:
            return np.zeros_like(integral)
        return np.sqrt(np.maximum(integral, 0.0) / self._time)

    def snapshot(self) -> ResonanceSnapshot:
        """Read-only copy of the current model state."""
        snapshot: ResonanceSnapshot = {
            "time": self._time,
            "states": self._states.copy(),
            "driving_frequency": self.driving_frequency(),
            "driving_force": self.driving_force(self._time),
            "degraded": self._degraded.copy(),
            "unstable": self._unstable.copy(),
            "driver_work": self._driver_work.copy(),
            "thermal_energy": self._thermal_energy.copy(),
            "rms_position": self.rms_position,
            "rms_velocity": self.rms_velocity,
        }
        return snapshot


__all__ = ["ResonanceModel"]
