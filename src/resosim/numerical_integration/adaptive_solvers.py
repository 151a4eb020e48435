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
Adaptive Solvers

Implements error-controlled integration over a single requested interval:
- AdaptiveEulerSolver: full Euler step vs two half steps
- AdaptiveRK45Solver: embedded Cash-Karp RK4(5)

Both subdivide dt internally and always return having advanced exactly dt.
Each call is bounded: after ``max_attempts`` sub-step attempts the rest of
the interval is completed with one forced step and the result is flagged
``degraded``. A step pinned at ``min_step`` that still misses the tolerance
is accepted and flagged the same way.

Step-Size Control
-----------------
Euler:
    error = max|y_half_half - y_full|, allowed = tolerance * h / |dt|
    reject -> h /= 2, accept with error <= allowed/4 -> h *= 2

RK45:
    error = max|y5 - y4|, accept when error <= tolerance
    h_new = h * safety * (tolerance / error)^(1/5), growth <= 5x,
    shrink >= 0.1x, clamped to [min_step, max_step]
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from resosim.config import (
    DEFAULT_MAX_STEP,
    DEFAULT_MIN_STEP,
    DEFAULT_SAFETY_FACTOR,
    DEFAULT_TOLERANCE,
    MAX_GROWTH_FACTOR,
    MAX_STEP_ATTEMPTS,
)
from resosim.exceptions import InvalidParameterError, require_positive
from resosim.numerical_integration.solver_base import as_state, validate_step_bounds
from resosim.types.core import DerivativeFunction, ScalarLike, StateVector
from resosim.types.results import StepResult

logger = logging.getLogger(__name__)

# Shrink limit on rejection for the embedded solver
_MIN_SHRINK_FACTOR = 0.1

# Relative slack under which the remaining interval counts as exhausted
_INTERVAL_EPS = 1e-12


# ============================================================================
# Cash-Karp Tableau
# ============================================================================

_CK_C = np.array([0.0, 1.0 / 5.0, 3.0 / 10.0, 3.0 / 5.0, 1.0, 7.0 / 8.0])

_CK_A = (
    (),
    (1.0 / 5.0,),
    (3.0 / 40.0, 9.0 / 40.0),
    (3.0 / 10.0, -9.0 / 10.0, 6.0 / 5.0),
    (-11.0 / 54.0, 5.0 / 2.0, -70.0 / 27.0, 35.0 / 27.0),
    (1631.0 / 55296.0, 175.0 / 512.0, 575.0 / 13824.0, 44275.0 / 110592.0, 253.0 / 4096.0),
)

# 5th-order weights (propagated)
_CK_B5 = np.array([37.0 / 378.0, 0.0, 250.0 / 621.0, 125.0 / 594.0, 0.0, 512.0 / 1771.0])

# 4th-order embedded weights
_CK_B4 = np.array(
    [2825.0 / 27648.0, 0.0, 18575.0 / 48384.0, 13525.0 / 55296.0, 277.0 / 14336.0, 1.0 / 4.0]
)

_CK_E = _CK_B5 - _CK_B4


def _derivative(rhs: DerivativeFunction, t: float, y: StateVector) -> StateVector:
    return np.asarray(rhs(t, y), dtype=float).reshape(-1)


def _max_abs(v: np.ndarray) -> float:
    if v.size == 0:
        return 0.0
    return float(np.max(np.abs(v)))


# ============================================================================
# Shared Configuration
# ============================================================================


@dataclass(frozen=True)
class _AdaptiveSolverConfig:
    """
    Configuration shared by the adaptive solvers.

    Parameters
    ----------
    tolerance : float
        Error bound (absolute, max-norm)
    min_step : float
        Step-size floor; steps at the floor are accepted even when they miss
        the tolerance, with the degraded flag set
    max_step : float
        Step-size ceiling
    max_attempts : int
        Sub-step attempts per call before the remainder is forced
    initial_step : Optional[float]
        First trial step, default min(max_step, |dt|)
    """

    tolerance: float = DEFAULT_TOLERANCE
    min_step: float = DEFAULT_MIN_STEP
    max_step: float = DEFAULT_MAX_STEP
    max_attempts: int = MAX_STEP_ATTEMPTS
    initial_step: Optional[float] = None

    def __post_init__(self):
        validate_step_bounds(self.tolerance, self.min_step, self.max_step)
        if isinstance(self.max_attempts, bool) or not isinstance(
            self.max_attempts, (int, np.integer)
        ):
            raise InvalidParameterError(
                f"max_attempts must be an integer, got {self.max_attempts!r}"
            )
        if self.max_attempts < 1:
            raise InvalidParameterError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.initial_step is not None:
            require_positive("initial_step", self.initial_step)

    @property
    def is_adaptive(self) -> bool:
        return True

    def _first_step(self, total: float) -> float:
        h = self.max_step if self.initial_step is None else self.initial_step
        return min(h, self.max_step, total)

    @staticmethod
    def _result(
        state: StateVector,
        dt: float,
        error: float,
        degraded: bool,
        nfev: int,
        n_accepted: int,
        n_rejected: int,
    ) -> StepResult:
        result: StepResult = {
            "state": state,
            "dt_consumed": dt,
            "error": error,
            "degraded": degraded,
            "nfev": nfev,
            "n_accepted": n_accepted,
            "n_rejected": n_rejected,
        }
        return result


# ============================================================================
# Adaptive Euler
# ============================================================================


@dataclass(frozen=True)
class AdaptiveEulerSolver(_AdaptiveSolverConfig):
    """
    Step-halving adaptive Euler solver.

    Each attempt compares one Euler step of size h with two Euler steps of
    size h/2. The difference estimates the local error of the full step; the
    more accurate two-half-step state is the one kept.

    The tolerance applies to the whole request: a sub-step of length h may
    spend ``tolerance * h / |dt|`` of it.

    Characteristics:
    - Order: 1
    - Function evaluations: 2 per attempt
    - Error estimate: yes (first order)

    Examples
    --------
    >>> solver = AdaptiveEulerSolver(tolerance=1e-4)
    >>> result = solver.step(rhs, 0.0, np.array([1.0, 0.0]), 0.016)
    >>> result["dt_consumed"]
    0.016
    >>> result["degraded"]
    False
    """

    @property
    def name(self) -> str:
        return "Adaptive Euler (step halving)"

    def step(
        self, rhs: DerivativeFunction, t: ScalarLike, state: StateVector, dt: ScalarLike
    ) -> StepResult:
        """
        Advance the state by exactly dt with error-controlled sub-steps.

        Parameters
        ----------
        rhs : DerivativeFunction
            (t, y) -> dy/dt
        t : float
            Time at the start of the interval
        state : StateVector
            State at t (not modified)
        dt : float
            Interval length, may be negative

        Returns
        -------
        StepResult
            error is the largest estimate among accepted sub-steps
        """
        t = float(t)
        dt = float(dt)
        y = as_state(state)
        if dt == 0.0:
            return self._result(y, dt, 0.0, False, 0, 0, 0)

        direction = 1.0 if dt > 0 else -1.0
        total = abs(dt)
        remaining = total
        h = self._first_step(total)

        degraded = False
        max_error = 0.0
        nfev = n_accepted = n_rejected = 0
        attempts = 0

        while remaining > _INTERVAL_EPS * total:
            t_cur = t + direction * (total - remaining)

            if attempts >= self.max_attempts:
                y, error = self._half_steps(rhs, t_cur, y, direction * remaining)
                nfev += 2
                n_accepted += 1
                degraded = True
                logger.debug(
                    "Adaptive Euler hit %d attempts; forced final step of %.3g (error %.3g)",
                    self.max_attempts,
                    remaining,
                    error,
                )
                break

            attempts += 1
            h = min(h, remaining)
            y_new, error = self._half_steps(rhs, t_cur, y, direction * h)
            nfev += 2
            allowed = self.tolerance * h / total

            if error <= allowed or h <= self.min_step:
                if error > allowed:
                    degraded = True
                y = y_new
                remaining -= h
                n_accepted += 1
                max_error = max(max_error, error)
                if error <= 0.25 * allowed:
                    h = min(2.0 * h, self.max_step)
            else:
                n_rejected += 1
                h = max(0.5 * h, self.min_step)

        return self._result(y, dt, max_error, degraded, nfev, n_accepted, n_rejected)

    @staticmethod
    def _half_steps(
        rhs: DerivativeFunction, t: float, y: StateVector, h: float
    ) -> Tuple[StateVector, float]:
        f0 = _derivative(rhs, t, y)
        y_full = y + h * f0
        y_half = y + 0.5 * h * f0
        y_two = y_half + 0.5 * h * _derivative(rhs, t + 0.5 * h, y_half)
        return y_two, _max_abs(y_two - y_full)


# ============================================================================
# Adaptive RK45 (Cash-Karp)
# ============================================================================


@dataclass(frozen=True)
class AdaptiveRK45Solver(_AdaptiveSolverConfig):
    """
    Embedded Runge-Kutta 4(5) solver with the Cash-Karp tableau.

    Six stages give a 5th-order solution (propagated) and an embedded 4th
    order solution; their max-abs difference is the local error estimate.
    A sub-step is accepted only when the estimate is within ``tolerance``,
    so the reported error never exceeds it. When a rejection would shrink
    the step below ``min_step`` a single ``min_step`` step is forced and
    the result is flagged degraded.

    Parameters
    ----------
    safety : float
        Safety factor in the step-size update, in (0, 1]

    Characteristics:
    - Order: 5 (local extrapolation)
    - Function evaluations: 6 per attempt
    - Error estimate: yes (4th order)

    Examples
    --------
    >>> solver = AdaptiveRK45Solver(tolerance=1e-8)
    >>> result = solver.step(rhs, 0.0, np.array([1.0, 0.0]), 0.1)
    >>> result["error"] <= 1e-8
    True
    """

    safety: float = DEFAULT_SAFETY_FACTOR

    def __post_init__(self):
        super().__post_init__()
        safety = require_positive("safety", self.safety)
        if safety > 1.0:
            raise InvalidParameterError(f"safety must be in (0, 1], got {safety}")

    @property
    def name(self) -> str:
        return "Adaptive RK45 (Cash-Karp)"

    def step(
        self, rhs: DerivativeFunction, t: ScalarLike, state: StateVector, dt: ScalarLike
    ) -> StepResult:
        """
        Advance the state by exactly dt with error-controlled sub-steps.

        Returns
        -------
        StepResult
            error is the largest estimate among sub-steps accepted on
            tolerance; forced steps set degraded instead
        """
        t = float(t)
        dt = float(dt)
        y = as_state(state)
        if dt == 0.0:
            return self._result(y, dt, 0.0, False, 0, 0, 0)

        direction = 1.0 if dt > 0 else -1.0
        total = abs(dt)
        remaining = total
        h = self._first_step(total)

        degraded = False
        max_error = 0.0
        nfev = n_accepted = n_rejected = 0
        attempts = 0

        while remaining > _INTERVAL_EPS * total:
            t_cur = t + direction * (total - remaining)

            if attempts >= self.max_attempts:
                y, error = self._cash_karp(rhs, t_cur, y, direction * remaining)
                nfev += 6
                n_accepted += 1
                degraded = True
                logger.debug(
                    "RK45 hit %d attempts; forced final step of %.3g (error %.3g)",
                    self.max_attempts,
                    remaining,
                    error,
                )
                break

            attempts += 1
            h = min(h, remaining)
            y_new, error = self._cash_karp(rhs, t_cur, y, direction * h)
            nfev += 6

            if error <= self.tolerance:
                y = y_new
                remaining -= h
                n_accepted += 1
                max_error = max(max_error, error)
                h = min(max(h * self._grow(error), self.min_step), self.max_step)
                continue

            n_rejected += 1
            h_new = h * max(self.safety * (self.tolerance / error) ** 0.2, _MIN_SHRINK_FACTOR)
            if h_new >= self.min_step:
                h = min(h_new, self.max_step)
                continue

            # Step-size underflow: force one step at the floor
            h_forced = min(self.min_step, remaining)
            y, error = self._cash_karp(rhs, t_cur, y, direction * h_forced)
            nfev += 6
            remaining -= h_forced
            n_accepted += 1
            degraded = True
            h = self.min_step
            logger.debug("RK45 step-size underflow at t=%.6g (error %.3g)", t_cur, error)

        return self._result(y, dt, max_error, degraded, nfev, n_accepted, n_rejected)

    def _grow(self, error: float) -> float:
        if error == 0.0:
            return MAX_GROWTH_FACTOR
        return min(self.safety * (self.tolerance / error) ** 0.2, MAX_GROWTH_FACTOR)

    @staticmethod
    def _cash_karp(
        rhs: DerivativeFunction, t: float, y: StateVector, h: float
    ) -> Tuple[StateVector, float]:
        k = []
        for i in range(6):
            y_stage = y
            for a_ij, k_j in zip(_CK_A[i], k):
                y_stage = y_stage + h * a_ij * k_j
            k.append(_derivative(rhs, t + _CK_C[i] * h, y_stage))

        y5 = y + h * sum(b * k_i for b, k_i in zip(_CK_B5, k))
        error_vec = h * sum(e * k_i for e, k_i in zip(_CK_E, k))
        return y5, _max_abs(error_vec)


# ============================================================================
# Module Exports
# ============================================================================

__all__ = ["AdaptiveEulerSolver", "AdaptiveRK45Solver"]
