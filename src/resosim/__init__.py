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
resosim - Resonance and Chladni Plate Simulation

Driven damped oscillators integrated with interchangeable ODE solvers,
closed-form resonance curves, plate eigenmodes and particles that settle
on nodal lines.

Usage
-----
>>> from resosim import ResonanceModel, OscillatorParameters
>>> model = ResonanceModel(
...     OscillatorParameters(mass=1.0, spring_constant=100.0, damping=1.0),
...     driving_frequency=10.0,
...     solver="adaptive_rk45",
... )
>>> model.run(5.0, 1 / 60)

>>> from resosim import ModalCalculator, ParticleManager, PlateGeometry
>>> plate = PlateGeometry.rectangle(boundary="fixed")
>>> particles = ParticleManager(plate, count=2000, seed=0)
>>> particles.advance(1 / 60, ModalCalculator(plate).field(3, 2))
"""

__version__ = "0.1.0"

from .exceptions import (
    AccuracyDegradedWarning,
    InvalidParameterError,
    NumericalInstabilityWarning,
)
from .logging_config import setup_logging
from .numerical_integration import (
    AdaptiveEulerSolver,
    AdaptiveRK45Solver,
    AnalyticalSolver,
    ModifiedMidpointSolver,
    RK4Solver,
    SolverFactory,
    SolverType,
    create_solver,
)
from .oscillators import (
    LinearFrequencySweep,
    OscillatorParameters,
    ResonanceCurveCalculator,
    ResonanceModel,
    ResonatorConfigMode,
    build_resonators,
    measure_steady_state_amplitude,
)
from .plates import (
    BoundaryCondition,
    Material,
    ModalCalculator,
    ParticleManager,
    PlateGeometry,
    PlateResponse,
    PlateShape,
    get_material,
)

__all__ = [
    "__version__",
    # Errors
    "InvalidParameterError",
    "NumericalInstabilityWarning",
    "AccuracyDegradedWarning",
    "setup_logging",
    # Solvers
    "SolverType",
    "RK4Solver",
    "ModifiedMidpointSolver",
    "AdaptiveEulerSolver",
    "AdaptiveRK45Solver",
    "AnalyticalSolver",
    "SolverFactory",
    "create_solver",
    # Oscillators
    "OscillatorParameters",
    "ResonanceModel",
    "ResonanceCurveCalculator",
    "measure_steady_state_amplitude",
    "ResonatorConfigMode",
    "build_resonators",
    "LinearFrequencySweep",
    # Plates
    "PlateShape",
    "BoundaryCondition",
    "PlateGeometry",
    "Material",
    "get_material",
    "ModalCalculator",
    "PlateResponse",
    "ParticleManager",
]
