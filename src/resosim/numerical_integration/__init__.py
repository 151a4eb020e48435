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
Numerical Integration

ODE solvers implementing ``resosim.types.ODESolverProtocol``:

- RK4Solver: fixed-step 4th-order Runge-Kutta
- ModifiedMidpointSolver: Gragg modified midpoint
- AdaptiveEulerSolver: step-halving Euler
- AdaptiveRK45Solver: embedded Cash-Karp RK4(5)
- AnalyticalSolver: closed-form driven damped oscillator
"""

from .adaptive_solvers import AdaptiveEulerSolver, AdaptiveRK45Solver
from .analytical_solver import AnalyticalSolver, DampingRegime
from .fixed_step_solvers import ModifiedMidpointSolver, RK4Solver
from .solver_base import SolverType
from .solver_factory import SolverFactory, create_solver

__all__ = [
    "SolverType",
    "RK4Solver",
    "ModifiedMidpointSolver",
    "AdaptiveEulerSolver",
    "AdaptiveRK45Solver",
    "AnalyticalSolver",
    "DampingRegime",
    "SolverFactory",
    "create_solver",
]
