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
Types Module - Type Definitions for resosim

Central import point for all type definitions across the engine.

Usage
-----
>>> from resosim.types import (
...     StateVector,
...     DerivativeFunction,
...     StepResult,
...     ODESolverProtocol,
... )

Module Organization
------------------
- core: scalars, arrays, callables
- results: TypedDict result and snapshot records
- protocols: structural contracts (solvers, plate boundaries)
"""

# ============================================================================
# Core Types
# ============================================================================

from .core import (
    DerivativeFunction,
    FieldFunction,
    FrequencyArray,
    FrequencySchedule,
    IntegerLike,
    PositionArray,
    ScalarLike,
    StateArray,
    StateVector,
)

# ============================================================================
# Result Types
# ============================================================================

from .results import (
    ParticleSnapshot,
    ResonanceCurveData,
    ResonanceSnapshot,
    StepResult,
    StrengthCurveData,
)

# ============================================================================
# Protocols
# ============================================================================

from .protocols import ODESolverProtocol, PlateBoundaryProtocol

__all__ = [
    # Core
    "ScalarLike",
    "IntegerLike",
    "StateVector",
    "StateArray",
    "PositionArray",
    "FrequencyArray",
    "DerivativeFunction",
    "FrequencySchedule",
    "FieldFunction",
    # Results
    "StepResult",
    "ResonanceSnapshot",
    "ResonanceCurveData",
    "StrengthCurveData",
    "ParticleSnapshot",
    # Protocols
    "ODESolverProtocol",
    "PlateBoundaryProtocol",
]
