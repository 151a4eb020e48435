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
Solver Factory - Creating ODE Solvers by Name

Maps solver names (or SolverType members) to configured solver instances and
validates their options up front.

Examples
--------
>>> solver = create_solver("rk4")
>>> solver = create_solver("adaptive_rk45", tolerance=1e-6, max_step=0.005)
>>> solver = SolverFactory.create(SolverType.MODIFIED_MIDPOINT, substeps=8)
>>>
>>> SolverFactory.list_methods()
['rk4', 'adaptive_euler', 'adaptive_rk45', 'modified_midpoint', 'analytical']
"""

import dataclasses
from typing import Any, Dict, List, Union

from resosim.exceptions import InvalidParameterError
from resosim.numerical_integration.adaptive_solvers import (
    AdaptiveEulerSolver,
    AdaptiveRK45Solver,
)
from resosim.numerical_integration.analytical_solver import AnalyticalSolver
from resosim.numerical_integration.fixed_step_solvers import (
    ModifiedMidpointSolver,
    RK4Solver,
)
from resosim.numerical_integration.solver_base import SolverType
from resosim.types.protocols import ODESolverProtocol


class SolverFactory:
    """
    Factory for creating ODE solvers.

    Examples
    --------
    >>> solver = SolverFactory.create("adaptive_euler", tolerance=1e-5)
    >>> solver.is_adaptive
    True
    >>>
    >>> info = SolverFactory.get_info("rk4")
    >>> info["options"]
    ['max_substep']
    """

    _SOLVER_CLASSES = {
        SolverType.RK4: RK4Solver,
        SolverType.ADAPTIVE_EULER: AdaptiveEulerSolver,
        SolverType.ADAPTIVE_RK45: AdaptiveRK45Solver,
        SolverType.MODIFIED_MIDPOINT: ModifiedMidpointSolver,
        SolverType.ANALYTICAL: AnalyticalSolver,
    }

    _ORDERS = {
        SolverType.RK4: 4,
        SolverType.ADAPTIVE_EULER: 1,
        SolverType.ADAPTIVE_RK45: 5,
        SolverType.MODIFIED_MIDPOINT: 2,
        SolverType.ANALYTICAL: None,
    }

    @classmethod
    def create(
        cls, method: Union[str, SolverType] = SolverType.RK4, **options
    ) -> ODESolverProtocol:
        """
        Create a solver.

        Parameters
        ----------
        method : Union[str, SolverType]
            'rk4', 'adaptive_euler', 'adaptive_rk45', 'modified_midpoint' or
            'analytical'
        **options
            Solver configuration (tolerance, min_step, max_step,
            max_attempts, initial_step, safety, substeps, max_substep, or the
            oscillator parameters for 'analytical')

        Returns
        -------
        ODESolverProtocol
            Configured solver

        Raises
        ------
        InvalidParameterError
            If the method is unknown, an option does not apply to the method,
            or an option value is invalid
        """
        solver_type = SolverType.from_value(method)
        solver_class = cls._SOLVER_CLASSES[solver_type]

        accepted = cls._option_names(solver_class)
        unknown = sorted(set(options) - set(accepted))
        if unknown:
            raise InvalidParameterError(
                f"Options {unknown} do not apply to '{solver_type.value}'. "
                f"Valid options: {accepted}"
            )

        return solver_class(**options)

    @staticmethod
    def list_methods() -> List[str]:
        """Names accepted by create()."""
        return [member.value for member in SolverType]

    @classmethod
    def get_info(cls, method: Union[str, SolverType]) -> Dict[str, Any]:
        """
        Describe a solver method.

        Returns
        -------
        dict
            name, adaptive, order (None for the closed-form solver) and the
            accepted option names
        """
        solver_type = SolverType.from_value(method)
        solver = cls._SOLVER_CLASSES[solver_type]()
        return {
            "method": solver_type.value,
            "name": solver.name,
            "adaptive": solver.is_adaptive,
            "order": cls._ORDERS[solver_type],
            "options": cls._option_names(cls._SOLVER_CLASSES[solver_type]),
        }

    @staticmethod
    def _option_names(solver_class) -> List[str]:
        return [field.name for field in dataclasses.fields(solver_class)]


def create_solver(method: Union[str, SolverType] = SolverType.RK4, **options) -> ODESolverProtocol:
    """
    Convenience wrapper around SolverFactory.create().

    Examples
    --------
    >>> solver = create_solver("adaptive_rk45", tolerance=1e-6)
    """
    return SolverFactory.create(method, **options)


# ============================================================================
# Module Exports
# ============================================================================

__all__ = ["SolverFactory", "create_solver"]
