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
Solver Base - Shared Pieces of the ODE Solver Family

Holds the SolverType enum and the helpers every concrete solver uses:
state coercion, interval splitting, step-bound validation and StepResult
construction.

Solvers themselves are frozen dataclasses that satisfy
``resosim.types.ODESolverProtocol`` structurally. There is no abstract base
class; the protocol is the contract.

Design Note
-----------
Every solver call is self-contained. Adaptive solvers do not remember the
step size that worked on the previous call, so identical inputs always give
identical outputs and one solver instance may be shared freely.
"""

import math
from enum import Enum
from typing import Optional

import numpy as np

from resosim.exceptions import InvalidParameterError, require_positive
from resosim.types.core import ScalarLike, StateVector
from resosim.types.results import StepResult


class SolverType(Enum):
    """
    Available solver methods.

    Attributes
    ----------
    RK4 : str
        Classic fixed-step 4th-order Runge-Kutta
    ADAPTIVE_EULER : str
        Step-halving Euler with full-vs-half-step error estimate
    ADAPTIVE_RK45 : str
        Embedded Cash-Karp RK4(5) with step-size control
    MODIFIED_MIDPOINT : str
        Gragg modified midpoint over n sub-steps
    ANALYTICAL : str
        Closed-form driven damped oscillator solution
    """

    RK4 = "rk4"
    ADAPTIVE_EULER = "adaptive_euler"
    ADAPTIVE_RK45 = "adaptive_rk45"
    MODIFIED_MIDPOINT = "modified_midpoint"
    ANALYTICAL = "analytical"

    @classmethod
    def from_value(cls, method) -> "SolverType":
        """
        Resolve an enum member from itself or its string value.

        Raises
        ------
        InvalidParameterError
            If the name is not a known solver
        """
        if isinstance(method, cls):
            return method
        try:
            return cls(str(method).lower())
        except ValueError as exc:
            valid = [m.value for m in cls]
            raise InvalidParameterError(
                f"Unknown solver '{method}'. Choose from: {valid}"
            ) from exc


# ============================================================================
# Helpers
# ============================================================================


def as_state(state) -> StateVector:
    """Copy a state into a fresh 1-D float array."""
    return np.array(state, dtype=float).reshape(-1)


def count_substeps(dt: float, max_substep: Optional[float]) -> int:
    """
    Number of equal sub-steps needed so none exceeds max_substep.

    Examples
    --------
    >>> count_substeps(0.01, None)
    1
    >>> count_substeps(0.01, 0.003)
    4
    """
    if max_substep is None or dt == 0.0:
        return 1
    return max(1, int(math.ceil(abs(dt) / max_substep - 1e-9)))


def validate_optional_substep(max_substep: Optional[ScalarLike]) -> None:
    if max_substep is not None:
        require_positive("max_substep", max_substep)


def validate_step_bounds(tolerance: ScalarLike, min_step: ScalarLike, max_step: ScalarLike) -> None:
    """
    Check adaptive solver configuration.

    Raises
    ------
    InvalidParameterError
        If any bound is not positive and finite, or min_step > max_step
    """
    require_positive("tolerance", tolerance)
    lo = require_positive("min_step", min_step)
    hi = require_positive("max_step", max_step)
    if lo > hi:
        raise InvalidParameterError(f"min_step ({lo}) must not exceed max_step ({hi})")


def fixed_step_result(state: StateVector, dt: float, nfev: int, n_steps: int) -> StepResult:
    """Package the outcome of a fixed-step solver call."""
    result: StepResult = {
        "state": state,
        "dt_consumed": dt,
        "error": None,
        "degraded": False,
        "nfev": nfev,
        "n_accepted": n_steps,
        "n_rejected": 0,
    }
    return result


__all__ = [
    "SolverType",
    "as_state",
    "count_substeps",
    "validate_optional_substep",
    "validate_step_bounds",
    "fixed_step_result",
]
