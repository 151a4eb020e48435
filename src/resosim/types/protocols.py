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
Structural Subtyping Protocols for resosim
==========================================

Protocol classes that let independent concrete types satisfy the same
contract without sharing inheritance.

Naming Convention
-----------------
All protocols use the "Protocol" suffix:

**Protocols** (interfaces):
- ODESolverProtocol
- PlateBoundaryProtocol

**Concrete Classes** (implementations):
- RK4Solver, ModifiedMidpointSolver, AdaptiveEulerSolver, AdaptiveRK45Solver
- PlateGeometry

Usage Examples
--------------
>>> from resosim.types.protocols import ODESolverProtocol
>>>
>>> def advance(solver: ODESolverProtocol, rhs, y, dt):
...     return solver.step(rhs, 0.0, y, dt)["state"]
>>>
>>> advance(RK4Solver(), rhs, y, 0.01)                 # ✓
>>> advance(AdaptiveRK45Solver(tolerance=1e-8), ...)   # ✓
"""

from typing import Tuple

import numpy as np
from typing_extensions import Protocol, runtime_checkable

from resosim.types.core import DerivativeFunction, ScalarLike, StateVector
from resosim.types.results import StepResult


@runtime_checkable
class ODESolverProtocol(Protocol):
    """
    Capability contract for advancing y' = f(t, y) over one interval.

    Implementations are immutable value objects: the only state they hold is
    configuration, so a solver instance may be shared between oscillators.
    """

    @property
    def name(self) -> str:
        """Human-readable solver name."""
        ...

    @property
    def is_adaptive(self) -> bool:
        """Whether the solver subdivides intervals based on an error estimate."""
        ...

    def step(
        self,
        rhs: DerivativeFunction,
        t: ScalarLike,
        state: StateVector,
        dt: ScalarLike,
    ) -> StepResult:
        """
        Advance `state` from `t` to `t + dt`.

        `dt` may be negative. The returned StepResult always reports
        dt_consumed == dt.
        """
        ...


@runtime_checkable
class PlateBoundaryProtocol(Protocol):
    """Region queries the particle manager needs from a plate outline."""

    def contains(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Vectorized point-in-plate test."""
        ...

    def reflect(
        self, x: np.ndarray, y: np.ndarray, x_prev: np.ndarray, y_prev: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Fold points that left the plate back inside."""
        ...

    def random_points(self, count: int, rng: np.random.Generator) -> np.ndarray:
        """Uniformly distributed interior points, shape (count, 2)."""
        ...


__all__ = ["ODESolverProtocol", "PlateBoundaryProtocol"]
