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
Core Types - Basic Building Blocks

Semantic aliases for the arrays and callables that flow through the engine.
They carry no runtime behaviour; they exist so that signatures read as
physics ("StateVector", "DerivativeFunction") rather than as raw ndarrays.

Shape Conventions
-----------------
- StateVector: (nx,) - one oscillator's phase-space state, [position, velocity]
- StateArray: (N, nx) - contiguous states for N oscillators
- PositionArray: (P, 2) - particle positions in plate-centred coordinates
- FrequencyArray: (K,) - angular frequencies in rad/s
"""

from typing import Callable, Union

import numpy as np

# ============================================================================
# Scalars and Arrays
# ============================================================================

ScalarLike = Union[float, int, np.number]
"""
Real scalar accepted anywhere a float is expected.

Examples
--------
>>> dt: ScalarLike = 0.001
>>> dt: ScalarLike = np.float64(0.001)
"""

IntegerLike = Union[int, np.integer]

StateVector = np.ndarray
"""
State of a single first-order system, shape (nx,).

For an oscillator the convention is [position, velocity]. A state vector
must stay finite; a NaN or infinity is treated as numerical instability.
"""

StateArray = np.ndarray
"""Contiguous per-oscillator states, shape (N, nx), row i is oscillator i."""

PositionArray = np.ndarray
"""Particle positions, shape (P, 2), columns are (x, y)."""

FrequencyArray = np.ndarray
"""Angular frequencies in rad/s, shape (K,)."""

# ============================================================================
# Callables
# ============================================================================

DerivativeFunction = Callable[[float, StateVector], StateVector]
"""
Right-hand side of a first-order ODE: (t, y) -> dy/dt.

Must be pure: the same (t, y) always returns the same derivative and
evaluating it never mutates caller state.

Examples
--------
>>> def decay(t, y):
...     return -y
"""

FrequencySchedule = Callable[[float], float]
"""Driving angular frequency as a function of simulation time: t -> ω(t)."""

FieldFunction = Callable[[np.ndarray, np.ndarray], np.ndarray]
"""
Displacement field sampler z(x, y).

Accepts scalars or broadcastable arrays in plate-centred coordinates and
returns displacement with the broadcast shape.
"""


__all__ = [
    "ScalarLike",
    "IntegerLike",
    "StateVector",
    "StateArray",
    "PositionArray",
    "FrequencyArray",
    "DerivativeFunction",
    "FrequencySchedule",
    "FieldFunction",
]
