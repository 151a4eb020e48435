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
Plate Geometry

Immutable description of a plate outline in plate-centred coordinates
(origin at the centre of the bounding box, x to the right, y up) together
with the region queries the particle model needs.

Shapes
------
- RECTANGLE: width × height
- CIRCLE: radius R
- COMPOSITE: a named polygon outline scaled into a width × height bounding
  box. The only outline shipped is "guitar", a dreadnought body.

All region queries are vectorized over NumPy arrays and implement
``resosim.types.PlateBoundaryProtocol``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from resosim.config import (
    DEFAULT_COMPOSITE_HEIGHT,
    DEFAULT_COMPOSITE_WIDTH,
    DEFAULT_PLATE_HEIGHT,
    DEFAULT_PLATE_RADIUS,
    DEFAULT_PLATE_WIDTH,
)
from resosim.exceptions import InvalidParameterError, require_positive

# ============================================================================
# Enums
# ============================================================================


class PlateShape(Enum):
    """Supported plate outlines."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    COMPOSITE = "composite"


class BoundaryCondition(Enum):
    """
    Edge condition of the plate.

    FIXED edges do not move (sine basis on rectangles, zeros of J_m on
    circles). FREE edges are unconstrained (cosine basis, zeros of J_m').
    """

    FIXED = "fixed"
    FREE = "free"


_SHAPE_ALIASES = {"guitar": PlateShape.COMPOSITE}
_BOUNDARY_ALIASES = {"clamped": BoundaryCondition.FIXED}


def _as_enum(enum_cls, value, aliases):
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().lower()
    if key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError as exc:
        valid = [member.value for member in enum_cls] + sorted(aliases)
        raise InvalidParameterError(
            f"Unknown {enum_cls.__name__} '{value}'. Choose from: {valid}"
        ) from exc


# ============================================================================
# Outlines
# ============================================================================

# Dreadnought body, normalized to half-width / half-height units (upper bout
# at +y, lower bout at -y).
# fmt: off
GUITAR_OUTLINE = np.array(
    [
        (0.0, 1.0), (0.15, 0.98), (0.28, 0.92), (0.38, 0.82), (0.44, 0.7),
        (0.46, 0.58), (0.42, 0.45), (0.36, 0.32), (0.32, 0.2), (0.3, 0.08),
        (0.32, -0.05), (0.38, -0.18), (0.46, -0.32), (0.52, -0.46), (0.54, -0.6),
        (0.52, -0.74), (0.46, -0.86), (0.36, -0.94), (0.22, -0.98), (0.0, -1.0),
        (-0.22, -0.98), (-0.36, -0.94), (-0.46, -0.86), (-0.52, -0.74), (-0.54, -0.6),
        (-0.52, -0.46), (-0.46, -0.32), (-0.38, -0.18), (-0.32, -0.05), (-0.3, 0.08),
        (-0.32, 0.2), (-0.36, 0.32), (-0.42, 0.45), (-0.46, 0.58), (-0.44, 0.7),
        (-0.38, 0.82), (-0.28, 0.92), (-0.15, 0.98),
    ]
)
# fmt: on

OUTLINES = {"guitar": GUITAR_OUTLINE}


def points_in_polygon(x: np.ndarray, y: np.ndarray, vertices: np.ndarray) -> np.ndarray:
    """
    Even-odd ray-casting point-in-polygon test.

    Parameters
    ----------
    x, y : np.ndarray
        Query coordinates (broadcastable)
    vertices : np.ndarray
        (V, 2) polygon vertices, implicitly closed

    Returns
    -------
    np.ndarray
        Boolean mask with the broadcast shape of x and y
    """
    x, y = np.broadcast_arrays(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
    inside = np.zeros(x.shape, dtype=bool)
    xj, yj = vertices[-1]
    for xi, yi in vertices:
        straddles = (yi > y) != (yj > y)
        if yj != yi:
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            inside ^= straddles & (x < x_cross)
        xj, yj = xi, yi
    return inside


def _nearest_on_polygon(
    x: np.ndarray, y: np.ndarray, vertices: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Nearest point on the polygon boundary for every query point."""
    best_d2 = np.full(x.shape, np.inf)
    best_x = x.copy()
    best_y = y.copy()
    starts = vertices
    ends = np.roll(vertices, -1, axis=0)
    for (x1, y1), (x2, y2) in zip(starts, ends):
        dx, dy = x2 - x1, y2 - y1
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            s = np.zeros_like(x)
        else:
            s = np.clip(((x - x1) * dx + (y - y1) * dy) / length_sq, 0.0, 1.0)
        px = x1 + s * dx
        py = y1 + s * dy
        d2 = (x - px) ** 2 + (y - py) ** 2
        closer = d2 < best_d2
        best_d2 = np.where(closer, d2, best_d2)
        best_x = np.where(closer, px, best_x)
        best_y = np.where(closer, py, best_y)
    return best_x, best_y


# ============================================================================
# Geometry
# ============================================================================


@dataclass(frozen=True)
class PlateGeometry:
    """
    Plate outline, dimensions and boundary condition.

    Parameters
    ----------
    shape : Union[PlateShape, str]
        'rectangle', 'circle' or 'composite' ('guitar' is accepted as an
        alias for composite)
    width, height : float
        Bounding box in m (rectangle and composite)
    radius : float
        Radius in m (circle)
    boundary : Union[BoundaryCondition, str]
        'fixed' ('clamped') or 'free'
    outline : str
        Named composite outline

    Examples
    --------
    >>> plate = PlateGeometry.rectangle(0.32, 0.32, boundary="fixed")
    >>> plate.bounds
    (-0.16, 0.16, -0.16, 0.16)
    >>> PlateGeometry.circle(0.16).contains(np.array([0.0, 0.2]), np.array([0.0, 0.0]))
    array([ True, False])
    """

    shape: PlateShape = PlateShape.RECTANGLE
    width: float = DEFAULT_PLATE_WIDTH
    height: float = DEFAULT_PLATE_HEIGHT
    radius: float = DEFAULT_PLATE_RADIUS
    boundary: BoundaryCondition = BoundaryCondition.FREE
    outline: str = "guitar"

    def __post_init__(self):
        object.__setattr__(self, "shape", _as_enum(PlateShape, self.shape, _SHAPE_ALIASES))
        object.__setattr__(
            self, "boundary", _as_enum(BoundaryCondition, self.boundary, _BOUNDARY_ALIASES)
        )
        object.__setattr__(self, "width", require_positive("width", self.width))
        object.__setattr__(self, "height", require_positive("height", self.height))
        object.__setattr__(self, "radius", require_positive("radius", self.radius))
        if self.shape is PlateShape.COMPOSITE and self.outline not in OUTLINES:
            raise InvalidParameterError(
                f"Unknown outline '{self.outline}'. Choose from: {list(OUTLINES)}"
            )

    # ========================================================================
    # Constructors
    # ========================================================================

    @classmethod
    def rectangle(
        cls,
        width: float = DEFAULT_PLATE_WIDTH,
        height: float = DEFAULT_PLATE_HEIGHT,
        boundary=BoundaryCondition.FREE,
    ) -> "PlateGeometry":
        return cls(shape=PlateShape.RECTANGLE, width=width, height=height, boundary=boundary)

    @classmethod
    def circle(
        cls, radius: float = DEFAULT_PLATE_RADIUS, boundary=BoundaryCondition.FREE
    ) -> "PlateGeometry":
        return cls(shape=PlateShape.CIRCLE, radius=radius, boundary=boundary)

    @classmethod
    def composite(
        cls,
        width: float = DEFAULT_COMPOSITE_WIDTH,
        height: float = DEFAULT_COMPOSITE_HEIGHT,
        outline: str = "guitar",
        boundary=BoundaryCondition.FREE,
    ) -> "PlateGeometry":
        return cls(
            shape=PlateShape.COMPOSITE,
            width=width,
            height=height,
            outline=outline,
            boundary=boundary,
        )

    # ========================================================================
    # Dimensions
    # ========================================================================

    @property
    def extent(self) -> Tuple[float, float]:
        """(Lx, Ly) of the bounding box."""
        if self.shape is PlateShape.CIRCLE:
            return 2.0 * self.radius, 2.0 * self.radius
        return self.width, self.height

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(x_min, x_max, y_min, y_max) in plate-centred coordinates."""
        lx, ly = self.extent
        return -0.5 * lx, 0.5 * lx, -0.5 * ly, 0.5 * ly

    @property
    def characteristic_length(self) -> float:
        """√(Lx·Ly) for rectangles and composites, R for circles."""
        if self.shape is PlateShape.CIRCLE:
            return self.radius
        return float(np.sqrt(self.width * self.height))

    @property
    def vertices(self) -> np.ndarray:
        """(V, 2) composite outline scaled to the bounding box."""
        if self.shape is not PlateShape.COMPOSITE:
            raise InvalidParameterError("Only composite plates have a polygon outline")
        return OUTLINES[self.outline] * np.array([0.5 * self.width, 0.5 * self.height])

    # ========================================================================
    # Region Queries
    # ========================================================================

    def contains(self, x, y) -> np.ndarray:
        """Vectorized point-in-plate test (edges count as inside)."""
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if self.shape is PlateShape.CIRCLE:
            return x * x + y * y <= self.radius * self.radius
        if self.shape is PlateShape.RECTANGLE:
            hw, hh = 0.5 * self.width, 0.5 * self.height
            return (np.abs(x) <= hw) & (np.abs(y) <= hh)
        return points_in_polygon(x, y, self.vertices)

    def reflect(
        self, x: np.ndarray, y: np.ndarray, x_prev: np.ndarray, y_prev: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Bring points that left the plate back inside.

        Rectangles fold coordinates back across the crossed edge; circles
        reflect the radius across the rim; composite outlines return
        escaped points to their previous position.
        """
        x = np.array(x, dtype=float)
        y = np.array(y, dtype=float)

        if self.shape is PlateShape.RECTANGLE:
            hw, hh = 0.5 * self.width, 0.5 * self.height
            x = np.where(x > hw, 2.0 * hw - x, x)
            x = np.where(x < -hw, -2.0 * hw - x, x)
            y = np.where(y > hh, 2.0 * hh - y, y)
            y = np.where(y < -hh, -2.0 * hh - y, y)
            return np.clip(x, -hw, hw), np.clip(y, -hh, hh)

        if self.shape is PlateShape.CIRCLE:
            r = np.hypot(x, y)
            outside = r > self.radius
            if np.any(outside):
                r_new = np.clip(2.0 * self.radius - r[outside], 0.0, self.radius)
                scale = r_new / r[outside]
                x[outside] *= scale
                y[outside] *= scale
            return x, y

        outside = ~self.contains(x, y)
        x[outside] = np.asarray(x_prev, dtype=float)[outside]
        y[outside] = np.asarray(y_prev, dtype=float)[outside]
        return x, y

    def clamp(self, x, y) -> Tuple[np.ndarray, np.ndarray]:
        """Project outside points onto the nearest boundary point."""
        x = np.array(x, dtype=float)
        y = np.array(y, dtype=float)

        if self.shape is PlateShape.RECTANGLE:
            hw, hh = 0.5 * self.width, 0.5 * self.height
            return np.clip(x, -hw, hw), np.clip(y, -hh, hh)

        if self.shape is PlateShape.CIRCLE:
            r = np.hypot(x, y)
            scale = np.where(r > self.radius, self.radius / np.maximum(r, 1e-300), 1.0)
            return x * scale, y * scale

        outside = ~self.contains(x, y)
        if np.any(outside):
            nx, ny = _nearest_on_polygon(x[outside], y[outside], self.vertices)
            x[outside] = nx
            y[outside] = ny
        return x, y

    def random_points(self, count: int, rng: np.random.Generator) -> np.ndarray:
        """
        Uniformly distributed points inside the plate.

        Returns
        -------
        np.ndarray
            (count, 2) positions
        """
        if count <= 0:
            return np.empty((0, 2))

        if self.shape is PlateShape.CIRCLE:
            r = self.radius * np.sqrt(rng.random(count))
            theta = 2.0 * np.pi * rng.random(count)
            return np.column_stack((r * np.cos(theta), r * np.sin(theta)))

        x_min, x_max, y_min, y_max = self.bounds
        if self.shape is PlateShape.RECTANGLE:
            return np.column_stack(
                (rng.uniform(x_min, x_max, count), rng.uniform(y_min, y_max, count))
            )

        # Rejection sampling inside the bounding box
        accepted = []
        n_found = 0
        while n_found < count:
            batch = 2 * (count - n_found) + 16
            xs = rng.uniform(x_min, x_max, batch)
            ys = rng.uniform(y_min, y_max, batch)
            keep = self.contains(xs, ys)
            accepted.append(np.column_stack((xs[keep], ys[keep])))
            n_found += int(np.count_nonzero(keep))
        return np.concatenate(accepted)[:count]


__all__ = [
    "PlateShape",
    "BoundaryCondition",
    "PlateGeometry",
    "GUITAR_OUTLINE",
    "OUTLINES",
    "points_in_polygon",
]
