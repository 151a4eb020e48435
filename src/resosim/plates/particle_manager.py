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
Particle Manager - Sand Grains Collecting on Nodal Lines

A fixed-size particle population confined to a plate. Each advance moves
every particle down the gradient of the displacement magnitude |z| with a
damped Newton step,

    length = min(rate·|z| / |∇|z||, max_step),   rate = min(sensitivity·dt, 1)

so particles settle where z = 0. The gradient uses symmetric finite
differences at a fixed offset. An optional seeded perturbation of length
at most jitter·dt·|z|/peak keeps grains on strongly vibrating regions
moving; it vanishes on the nodal lines themselves.

Positions live in a single (P, 2) array owned by the manager.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from resosim.config import (
    DEFAULT_GRADIENT_OFFSET,
    DEFAULT_JITTER,
    DEFAULT_MAX_PARTICLE_STEP,
    DEFAULT_PARTICLE_COUNT,
    DEFAULT_SENSITIVITY,
    TWO_PI,
)
from resosim.exceptions import InvalidParameterError, require_non_negative, require_positive
from resosim.plates.modal_calculator import distance_to_nodes, sample_grid
from resosim.plates.plate_geometry import PlateGeometry
from resosim.types.core import FieldFunction, PositionArray
from resosim.types.results import ParticleSnapshot

logger = logging.getLogger(__name__)

# Grid used to estimate a field's peak magnitude for the jitter bound
_PEAK_RESOLUTION = 64


def _as_count(count) -> int:
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
        raise InvalidParameterError(f"count must be an integer, got {count!r}")
    if count < 0:
        raise InvalidParameterError(f"count must be non-negative, got {count}")
    return int(count)


class ParticleManager:
    """
    Particle population on a vibrating plate.

    Parameters
    ----------
    geometry : PlateGeometry, optional
        Plate the particles live on, default a free 0.32 m square
    count : int
        Number of particles
    seed : Optional[int]
        Seed of the generator used for placement and jitter
    sensitivity : float
        Fraction of the Newton distance covered per second (1/s)
    jitter : float
        Random perturbation speed at peak displacement (m/s), 0 disables it
    gradient_offset : float
        Finite-difference offset for ∇|z| (m)
    max_step : float
        Cap on the deterministic move per advance (m)

    Examples
    --------
    >>> from resosim.plates import ModalCalculator
    >>> plate = PlateGeometry.rectangle(boundary="free")
    >>> field = ModalCalculator(plate).field(3, 2)
    >>> particles = ParticleManager(plate, count=500, seed=1, jitter=0.0)
    >>> nodes = ModalCalculator(plate).nodal_points(3, 2)
    >>> before = particles.mean_distance_to(nodes)
    >>> for _ in range(100):
    ...     particles.advance(1 / 60, field)
    >>> particles.mean_distance_to(nodes) < before
    True
    """

    def __init__(
        self,
        geometry: Optional[PlateGeometry] = None,
        count: int = DEFAULT_PARTICLE_COUNT,
        seed: Optional[int] = None,
        sensitivity: float = DEFAULT_SENSITIVITY,
        jitter: float = DEFAULT_JITTER,
        gradient_offset: float = DEFAULT_GRADIENT_OFFSET,
        max_step: float = DEFAULT_MAX_PARTICLE_STEP,
    ):
        self._geometry = self._check_geometry(geometry if geometry is not None else PlateGeometry())
        self._count = _as_count(count)
        self.seed = seed
        self.sensitivity = require_non_negative("sensitivity", sensitivity)
        self.jitter = require_non_negative("jitter", jitter)
        self.gradient_offset = require_positive("gradient_offset", gradient_offset)
        self.max_step = require_positive("max_step", max_step)

        self._peak_cache: Optional[Tuple[FieldFunction, float]] = None
        self.reset()

    @staticmethod
    def _check_geometry(geometry) -> PlateGeometry:
        if not isinstance(geometry, PlateGeometry):
            raise InvalidParameterError(f"Expected PlateGeometry, got {type(geometry).__name__}")
        return geometry

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def reset(self) -> None:
        """Reseed the generator and restore the construction-time layout."""
        self._rng = np.random.default_rng(self.seed)
        self.regenerate()

    def regenerate(self) -> None:
        """Scatter the particles uniformly over the plate again."""
        self._positions = self._geometry.random_points(self._count, self._rng)
        self._advances = 0
        logger.debug("Placed %d particles on %s plate", self._count, self._geometry.shape.value)

    def set_count(self, count: int) -> None:
        """Change the population size and rescatter."""
        self._count = _as_count(count)
        self.regenerate()

    def set_geometry(self, geometry: PlateGeometry) -> None:
        """
        Move the population to a new plate.

        Particles are clamped onto a plate of the same shape and rescattered
        when the shape changes.
        """
        geometry = self._check_geometry(geometry)
        shape_changed = geometry.shape is not self._geometry.shape
        self._geometry = geometry
        self._peak_cache = None
        if shape_changed:
            self.regenerate()
        else:
            self.clamp_to_bounds()

    def clamp_to_bounds(self) -> None:
        """Project particles outside the plate onto its boundary."""
        if self._count == 0:
            return
        x, y = self._geometry.clamp(self._positions[:, 0], self._positions[:, 1])
        self._positions = np.column_stack((x, y))

    # ========================================================================
    # Dynamics
    # ========================================================================

    def _field_peak(self, field: FieldFunction) -> float:
        if self._peak_cache is None or self._peak_cache[0] is not field:
            _, _, z = sample_grid(field, self._geometry, _PEAK_RESOLUTION)
            self._peak_cache = (field, float(np.max(np.abs(z))))
        return self._peak_cache[1]

    def advance(self, dt: float, field: FieldFunction) -> None:
        """
        Move every particle one tick toward the nodal set of `field`.

        Parameters
        ----------
        dt : float
            Tick length in seconds; dt <= 0 leaves the particles unchanged
        field : FieldFunction
            Vectorized displacement z(x, y)
        """
        if not np.isfinite(dt):
            raise InvalidParameterError(f"dt must be finite, got {dt}")
        if dt <= 0.0 or self._count == 0:
            return

        x = self._positions[:, 0]
        y = self._positions[:, 1]
        h = self.gradient_offset

        magnitude = np.abs(np.asarray(field(x, y), dtype=float))
        grad_x = (np.abs(field(x + h, y)) - np.abs(field(x - h, y))) / (2.0 * h)
        grad_y = (np.abs(field(x, y + h)) - np.abs(field(x, y - h))) / (2.0 * h)
        grad_norm = np.hypot(grad_x, grad_y)

        rate = min(self.sensitivity * dt, 1.0)
        moving = grad_norm > 0.0
        safe_norm = np.where(moving, grad_norm, 1.0)
        length = np.where(moving, np.minimum(rate * magnitude / safe_norm, self.max_step), 0.0)
        new_x = x - length * grad_x / safe_norm
        new_y = y - length * grad_y / safe_norm

        if self.jitter > 0.0:
            peak = self._field_peak(field)
            if peak > 0.0:
                bound = self.jitter * dt * np.minimum(magnitude / peak, 1.0)
                radius = bound * self._rng.random(self._count)
                angle = TWO_PI * self._rng.random(self._count)
                new_x = new_x + radius * np.cos(angle)
                new_y = new_y + radius * np.sin(angle)

        new_x, new_y = self._geometry.reflect(new_x, new_y, x, y)
        self._positions = np.column_stack((new_x, new_y))
        self._advances += 1

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def geometry(self) -> PlateGeometry:
        return self._geometry

    @property
    def count(self) -> int:
        return self._count

    @property
    def advances(self) -> int:
        return self._advances

    @property
    def positions(self) -> PositionArray:
        """(P, 2) copy of the particle positions."""
        return self._positions.copy()

    def mean_distance_to(self, nodal_points: PositionArray) -> float:
        """Mean distance from the particles to the nearest nodal point."""
        if self._count == 0:
            return 0.0
        return float(np.mean(distance_to_nodes(self._positions, nodal_points)))

    def snapshot(self) -> ParticleSnapshot:
        snapshot: ParticleSnapshot = {
            "positions": self.positions,
            "count": self._count,
            "advances": self._advances,
        }
        return snapshot


__all__ = ["ParticleManager"]
