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
Analytical Solver - Closed-Form Driven Damped Oscillator

Exact solution of

    m·x'' + c·x' + k·x = A·cos(ω·t)

exposed through the same step(rhs, t, state, dt) interface as the numerical
solvers. The right-hand side is ignored; the oscillator parameters are
fields of the solver instead.

Each call treats (t, state) as a fresh initial value problem:

    x(t + τ) = x_h(τ) + x_p(t + τ)

where x_p is the steady-state response and x_h the transient fitted to the
residual between the given state and x_p at t. Three transient forms are
used depending on the damping ratio ζ = c / (2·√(m·k)):

- Underdamped (ζ < 1):  e^(-ζω₀τ)·(C₁·cos(ω_d·τ) + C₂·sin(ω_d·τ))
- Critical (ζ ≈ 1):     (C₁ + C₂·τ)·e^(-ω₀τ)
- Overdamped (ζ > 1):   C₁·e^(-α·τ) + C₂·e^(-β·τ)

An undamped oscillator driven exactly at ω₀ has no bounded steady state; the
secular particular solution (A / 2mω)·t·sin(ωt) is used there.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from resosim.config import CRITICAL_DAMPING_EPSILON
from resosim.exceptions import (
    InvalidParameterError,
    require_finite,
    require_non_negative,
    require_positive,
)
from resosim.numerical_integration.solver_base import as_state, fixed_step_result
from resosim.types.core import DerivativeFunction, ScalarLike, StateVector
from resosim.types.results import StepResult


class DampingRegime(Enum):
    """Transient form selected from the damping ratio."""

    UNDERDAMPED = "underdamped"
    CRITICALLY_DAMPED = "critically_damped"
    OVERDAMPED = "overdamped"


@dataclass(frozen=True)
class AnalyticalSolver:
    """
    Exact solver for one driven damped harmonic oscillator.

    Parameters
    ----------
    mass : float
        m in kg, positive
    spring_constant : float
        k in N/m, positive
    damping : float
        c in N·s/m, non-negative
    driving_amplitude : float
        Force amplitude A in N
    driving_frequency : float
        Constant angular frequency ω in rad/s, non-negative

    Examples
    --------
    >>> solver = AnalyticalSolver(mass=1.0, spring_constant=100.0, damping=0.0)
    >>> result = solver.step(None, 0.0, np.array([1.0, 0.0]), math.pi / 10)
    >>> round(float(result["state"][0]), 9)
    -1.0
    >>> solver.regime
    <DampingRegime.UNDERDAMPED: 'underdamped'>
    """

    mass: float = 1.0
    spring_constant: float = 1.0
    damping: float = 0.0
    driving_amplitude: float = 0.0
    driving_frequency: float = 0.0

    def __post_init__(self):
        require_positive("mass", self.mass)
        require_positive("spring_constant", self.spring_constant)
        require_non_negative("damping", self.damping)
        require_finite("driving_amplitude", self.driving_amplitude)
        require_non_negative("driving_frequency", self.driving_frequency)

    @property
    def name(self) -> str:
        return "Analytical (closed form)"

    @property
    def is_adaptive(self) -> bool:
        return False

    # ========================================================================
    # Derived Constants
    # ========================================================================

    @property
    def natural_frequency(self) -> float:
        """ω₀ = √(k/m)"""
        return math.sqrt(self.spring_constant / self.mass)

    @property
    def damping_ratio(self) -> float:
        """ζ = c / (2·√(m·k))"""
        return self.damping / (2.0 * math.sqrt(self.mass * self.spring_constant))

    @property
    def regime(self) -> DampingRegime:
        zeta = self.damping_ratio
        if abs(zeta - 1.0) < CRITICAL_DAMPING_EPSILON:
            return DampingRegime.CRITICALLY_DAMPED
        if zeta < 1.0:
            return DampingRegime.UNDERDAMPED
        return DampingRegime.OVERDAMPED

    # ========================================================================
    # Particular Solution
    # ========================================================================

    def particular(self, t: float) -> Tuple[float, float]:
        """
        Steady-state (or secular) response at absolute time t.

        Returns
        -------
        Tuple[float, float]
            (x_p(t), v_p(t))
        """
        a = float(self.driving_amplitude)
        w = float(self.driving_frequency)
        if a == 0.0:
            return 0.0, 0.0

        reactive = self.spring_constant - self.mass * w * w
        resistive = self.damping * w
        denominator = math.hypot(reactive, resistive)

        if denominator == 0.0:
            # Undamped, driven exactly at ω₀
            scale = a / (2.0 * self.mass * w)
            return (
                scale * t * math.sin(w * t),
                scale * (math.sin(w * t) + w * t * math.cos(w * t)),
            )

        amplitude = a / denominator
        lag = math.atan2(resistive, reactive)
        return (
            amplitude * math.cos(w * t - lag),
            -amplitude * w * math.sin(w * t - lag),
        )

    # ========================================================================
    # Transient Solution
    # ========================================================================

    def transient(self, x0: float, v0: float, tau: float) -> Tuple[float, float]:
        """
        Free response after tau seconds from displacement x0, velocity v0.

        Returns
        -------
        Tuple[float, float]
            (x_h(tau), v_h(tau))
        """
        w0 = self.natural_frequency
        zeta = self.damping_ratio
        regime = self.regime

        if regime is DampingRegime.UNDERDAMPED:
            wd = w0 * math.sqrt(1.0 - zeta * zeta)
            c1 = x0
            c2 = (v0 + zeta * w0 * c1) / wd
            decay = math.exp(-zeta * w0 * tau)
            cos_term = math.cos(wd * tau)
            sin_term = math.sin(wd * tau)
            x = decay * (c1 * cos_term + c2 * sin_term)
            v = decay * (
                -zeta * w0 * (c1 * cos_term + c2 * sin_term)
                + wd * (-c1 * sin_term + c2 * cos_term)
            )
            return x, v

        if regime is DampingRegime.CRITICALLY_DAMPED:
            c1 = x0
            c2 = v0 + w0 * c1
            decay = math.exp(-w0 * tau)
            return (c1 + c2 * tau) * decay, decay * (c2 - w0 * (c1 + c2 * tau))

        root = math.sqrt(zeta * zeta - 1.0)
        alpha = w0 * (zeta + root)
        beta = w0 * (zeta - root)
        c1 = (x0 * beta + v0) / (beta - alpha)
        c2 = x0 - c1
        fast = math.exp(-alpha * tau)
        slow = math.exp(-beta * tau)
        return c1 * fast + c2 * slow, -alpha * c1 * fast - beta * c2 * slow

    # ========================================================================
    # Solver Interface
    # ========================================================================

    def step(
        self, rhs: DerivativeFunction, t: ScalarLike, state: StateVector, dt: ScalarLike
    ) -> StepResult:
        """
        Evaluate the exact solution dt after t.

        Parameters
        ----------
        rhs : DerivativeFunction
            Ignored; present for interface compatibility
        t : float
            Time at the start of the interval
        state : StateVector
            [position, velocity] at t (not modified)
        dt : float
            Interval length, may be negative

        Returns
        -------
        StepResult
            Exact state at t + dt with error None and nfev 0
        """
        t = float(t)
        dt = float(dt)
        y = as_state(state)
        if y.shape != (2,):
            raise InvalidParameterError(
                f"AnalyticalSolver expects a [position, velocity] state, got shape {y.shape}"
            )

        xp0, vp0 = self.particular(t)
        xh, vh = self.transient(y[0] - xp0, y[1] - vp0, dt)
        xp1, vp1 = self.particular(t + dt)
        y[0] = xh + xp1
        y[1] = vh + vp1
        return fixed_step_result(y, dt, nfev=0, n_steps=1)


__all__ = ["AnalyticalSolver", "DampingRegime"]
