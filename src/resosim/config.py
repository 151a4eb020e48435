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
Engine Defaults
===============

Central registry of the numerical and physical defaults used across the
engine. Components take these as dataclass field defaults or keyword
defaults; callers override per instance, never by mutating this module.

Sections
--------
- Solvers: tolerances, step bounds, attempt cap
- Oscillators: resonator presets and frequency sweep
- Plates: dimensions, mode ranges, damping, grid resolution
- Particles: sensitivity, jitter, finite-difference offset
"""

import math

# ============================================================================
# Solvers
# ============================================================================

DEFAULT_TOLERANCE = 1e-4
DEFAULT_MIN_STEP = 1e-5
DEFAULT_MAX_STEP = 1e-2
DEFAULT_SAFETY_FACTOR = 0.9

# Upper bound on sub-step attempts per solver call (bounds per-tick latency)
MAX_STEP_ATTEMPTS = 50

# Step-size growth limit per accepted step for the embedded RK solver
MAX_GROWTH_FACTOR = 5.0

# Sub-step used by the resonance model's default RK4 and midpoint solvers
DEFAULT_FIXED_SUBSTEP = 1e-3

DEFAULT_MIDPOINT_SUBSTEPS = 4

# Damping ratios within this distance of 1 use the critically damped closed form
CRITICAL_DAMPING_EPSILON = 1e-6

# ============================================================================
# Oscillators
# ============================================================================

DEFAULT_MASS = 1.0  # kg
DEFAULT_SPRING_CONSTANT = 100.0  # N/m
DEFAULT_DAMPING = 1.0  # N·s/m

# Resonator presets spread natural frequencies evenly over this band
RESONATOR_FREQUENCY_MIN_HZ = 1.0
RESONATOR_FREQUENCY_MAX_HZ = 5.5
SAME_SPRING_CONSTANT_BASE = 200.0  # N/m
MAX_RESONATORS = 10

# Frequency sweep (Hz per second over the oscillator driving range)
SWEEP_FREQUENCY_MIN_HZ = 0.0
SWEEP_FREQUENCY_MAX_HZ = 6.0
SWEEP_RATE_HZ_PER_S = 0.2

# ============================================================================
# Plates
# ============================================================================

DEFAULT_PLATE_WIDTH = 0.32  # m
DEFAULT_PLATE_HEIGHT = 0.32  # m
DEFAULT_PLATE_RADIUS = 0.16  # m

# Composite (guitar) bounding box
DEFAULT_COMPOSITE_WIDTH = 0.36  # m
DEFAULT_COMPOSITE_HEIGHT = 0.48  # m

# Rectangular / composite mode indices (m, n <= MAX_MODE)
MAX_MODE = 16

# Circular modes: angular order m <= MAX_ANGULAR_ORDER, radial index 1..MAX_RADIAL_INDEX
MAX_ANGULAR_ORDER = 8
MAX_RADIAL_INDEX = 8

# Plate damping gamma = PLATE_DAMPING_COEFFICIENT / characteristic length
PLATE_DAMPING_COEFFICIENT = 0.02

# Modes whose source amplitude falls below this are skipped in superposition
SOURCE_THRESHOLD = 1e-3

DEFAULT_GRID_RESOLUTION = 128

# Plate response frequency band (Hz)
PLATE_FREQUENCY_MIN_HZ = 50.0
PLATE_FREQUENCY_MAX_HZ = 4000.0

# ============================================================================
# Particles
# ============================================================================

DEFAULT_PARTICLE_COUNT = 1000
DEFAULT_SENSITIVITY = 4.0  # 1/s, fraction of the Newton distance covered per second
DEFAULT_JITTER = 0.002  # m/s at peak displacement
DEFAULT_GRADIENT_OFFSET = 1e-5  # m
DEFAULT_MAX_PARTICLE_STEP = 0.01  # m

TWO_PI = 2.0 * math.pi


__all__ = [name for name in dir() if name.isupper()]
