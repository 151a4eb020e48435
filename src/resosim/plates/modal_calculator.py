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
Modal Calculator - Plate Eigenmodes and Nodal Lines

Maps a plate geometry and mode indices (m, n) to an eigenfrequency and a
displacement field z(x, y) in plate-centred coordinates.

Basis Functions
---------------
With x' = x + Lx/2, y' = y + Ly/2 (shifted into [0, Lx] × [0, Ly]):

Rectangle, fixed edges    sin(mπx'/Lx)·sin(nπy'/Ly)      1 <= m, n <= 16
Rectangle, free edges     cos(mπx'/Lx)·cos(nπy'/Ly)      0 <= m, n <= 16, not both 0
Circle                    J_m(j_mn·r/R)·cos(mθ)          0 <= m <= 8, 1 <= n <= 8
Composite                 rectangle basis over the bounding box, zero
                          outside the outline

j_mn is the n-th positive zero of J_m (fixed/clamped rim) or of J_m' (free
rim). Circle and composite fields are zero outside the plate.

Eigenfrequency
--------------
f = C·k_mn², with C the material dispersion constant and

    k_mn = π·√((m/Lx)² + (n/Ly)²)     rectangle, composite
    k_mn = j_mn / R                   circle

Nodal Lines
-----------
Fields are sampled at cell centres of a resolution × resolution grid over
the bounding box. A nodal line passes between two neighbouring samples
whose signs differ. The grid helpers here work on any FieldFunction, so
they apply equally to driven (superposed) fields.

On fixed rectangles and fixed circles the clamped boundary is a nodal line
too. The calculator's nodal_points includes samples along it; composite
outlines are not included because their basis vanishes only on the
bounding box.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from scipy.spatial import cKDTree
from scipy.special import jn_zeros, jnp_zeros, jv

from resosim.config import (
    DEFAULT_GRID_RESOLUTION,
    MAX_ANGULAR_ORDER,
    MAX_MODE,
    MAX_RADIAL_INDEX,
)
from resosim.exceptions import InvalidParameterError
from resosim.plates.materials import DEFAULT_MATERIAL, Material, get_material
from resosim.plates.plate_geometry import BoundaryCondition, PlateGeometry, PlateShape
from resosim.types.core import FieldFunction, PositionArray

logger = logging.getLogger(__name__)


# ============================================================================
# Bessel Zeros
# ============================================================================


@lru_cache(maxsize=None)
def bessel_zeros(m: int, boundary: BoundaryCondition) -> np.ndarray:
    """
    First MAX_RADIAL_INDEX positive zeros of J_m (fixed) or J_m' (free).

    Examples
    --------
    >>> round(float(bessel_zeros(0, BoundaryCondition.FIXED)[0]), 4)
    2.4048
    >>> round(float(bessel_zeros(1, BoundaryCondition.FREE)[0]), 4)
    1.8412
    """
    if boundary is BoundaryCondition.FIXED:
        zeros = jn_zeros(m, MAX_RADIAL_INDEX)
    else:
        zeros = jnp_zeros(m, MAX_RADIAL_INDEX)
    zeros = np.asarray(zeros, dtype=float)
    zeros.setflags(write=False)
    return zeros


# ============================================================================
# Mode and Field
# ============================================================================


@dataclass(frozen=True)
class Mode:
    """
    One validated plate eigenmode.

    Attributes
    ----------
    m, n : int
        Mode indices (for circles m is the angular order, n the radial index)
    geometry : PlateGeometry
        Plate the mode belongs to
    wave_number : float
        k_mn in rad/m
    frequency : float
        Eigenfrequency in Hz for the calculator's material
    """

    m: int
    n: int
    geometry: PlateGeometry
    wave_number: float
    frequency: float

    @property
    def indices(self) -> Tuple[int, int]:
        return self.m, self.n


class ModalField:
    """
    Callable displacement field z(x, y) of one mode.

    Accepts scalars or broadcastable arrays in plate-centred coordinates.
    """

    def __init__(self, mode: Mode):
        self.mode = mode
        self.geometry = mode.geometry
        self._m, self._n = mode.m, mode.n

    def __call__(self, x, y):
        z = mode_shape(self.geometry, self._m, self._n, x, y)
        return float(z) if np.ndim(z) == 0 else z

    def __repr__(self) -> str:
        return (
            f"ModalField(shape={self.geometry.shape.value}, "
            f"boundary={self.geometry.boundary.value}, m={self.mode.m}, n={self.mode.n})"
        )


def mode_shape(geometry: PlateGeometry, m: int, n: int, x, y, masked: bool = True) -> np.ndarray:
    """
    Evaluate the basis function of mode (m, n) without index validation.

    Parameters
    ----------
    geometry : PlateGeometry
        Plate the basis belongs to
    m, n : int
        Mode indices, assumed valid for the plate
    x, y : array_like
        Plate-centred coordinates
    masked : bool
        Zero composite fields outside the outline. Callers summing many
        modes pass False and mask the sum once.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)

    if geometry.shape is PlateShape.CIRCLE:
        j_mn = bessel_zeros(m, geometry.boundary)[n - 1]
        r = np.hypot(x, y)
        z = jv(m, j_mn * r / geometry.radius) * np.cos(m * np.arctan2(y, x))
        return np.where(r <= geometry.radius, z, 0.0)

    lx, ly = geometry.width, geometry.height
    trig = np.sin if geometry.boundary is BoundaryCondition.FIXED else np.cos
    z = trig(m * np.pi * (x + 0.5 * lx) / lx) * trig(n * np.pi * (y + 0.5 * ly) / ly)
    if masked and geometry.shape is PlateShape.COMPOSITE:
        z = np.where(geometry.contains(x, y), z, 0.0)
    return z


# ============================================================================
# Grid Utilities
# ============================================================================


def sample_grid(
    field: FieldFunction, geometry: PlateGeometry, resolution: int = DEFAULT_GRID_RESOLUTION
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Sample a field at the cell centres of a square grid over the bounds.

    Returns
    -------
    xs : np.ndarray
        (resolution,) x coordinates
    ys : np.ndarray
        (resolution,) y coordinates
    z : np.ndarray
        (resolution, resolution) samples, z[j, i] at (xs[i], ys[j])
    """
    resolution = _validate_resolution(resolution)
    x_min, x_max, y_min, y_max = geometry.bounds
    xs = x_min + (np.arange(resolution) + 0.5) * (x_max - x_min) / resolution
    ys = y_min + (np.arange(resolution) + 0.5) * (y_max - y_min) / resolution
    gx, gy = np.meshgrid(xs, ys)
    z = np.asarray(field(gx, gy), dtype=float)
    return xs, ys, z


def nodal_mask(z: np.ndarray) -> np.ndarray:
    """
    Cells adjacent to a sign change with their right or upper neighbour.

    Zero samples (outside the plate) never produce a sign change.
    """
    mask = np.zeros(z.shape, dtype=bool)
    horizontal = z[:, :-1] * z[:, 1:] < 0.0
    vertical = z[:-1, :] * z[1:, :] < 0.0
    mask[:, :-1] |= horizontal
    mask[:-1, :] |= vertical
    return mask


def count_sign_changes(values: np.ndarray) -> int:
    """Sign changes along a 1-D sequence, ignoring exact zeros."""
    signs = np.sign(values)
    signs = signs[signs != 0]
    if signs.size < 2:
        return 0
    return int(np.count_nonzero(signs[1:] != signs[:-1]))


def nodal_line_counts(z: np.ndarray) -> Tuple[int, int]:
    """
    Count nodal lines crossing the strongest row and column of a grid.

    Returns
    -------
    Tuple[int, int]
        (lines parallel to the y axis, lines parallel to the x axis)
    """
    magnitude = np.abs(z)
    row = int(np.argmax(magnitude.sum(axis=1)))
    column = int(np.argmax(magnitude.sum(axis=0)))
    return count_sign_changes(z[row, :]), count_sign_changes(z[:, column])


def nodal_points(xs: np.ndarray, ys: np.ndarray, z: np.ndarray) -> PositionArray:
    """
    Linearly interpolated zero crossings between neighbouring samples.

    Returns
    -------
    PositionArray
        (K, 2) points on the nodal set, empty when there is none
    """
    points = []

    jj, ii = np.nonzero(z[:, :-1] * z[:, 1:] < 0.0)
    if ii.size:
        z0, z1 = z[jj, ii], z[jj, ii + 1]
        s = z0 / (z0 - z1)
        points.append(np.column_stack((xs[ii] + s * (xs[ii + 1] - xs[ii]), ys[jj])))

    jj, ii = np.nonzero(z[:-1, :] * z[1:, :] < 0.0)
    if jj.size:
        z0, z1 = z[jj, ii], z[jj + 1, ii]
        s = z0 / (z0 - z1)
        points.append(np.column_stack((xs[ii], ys[jj] + s * (ys[jj + 1] - ys[jj]))))

    if not points:
        return np.empty((0, 2))
    return np.concatenate(points)


def clamped_edge_points(
    geometry: PlateGeometry, resolution: int = DEFAULT_GRID_RESOLUTION
) -> PositionArray:
    """
    Samples along the clamped boundary, where every fixed-edge mode vanishes.

    Rectangles give the cell-centre positions of the sampling grid projected
    onto all four edges; circles give 4 * resolution evenly spaced rim
    points. Free plates and composite outlines give an empty array.

    Examples
    --------
    >>> plate = PlateGeometry.rectangle(0.32, 0.32, boundary="fixed")
    >>> clamped_edge_points(plate, resolution=8).shape
    (32, 2)
    """
    resolution = _validate_resolution(resolution)
    if geometry.boundary is not BoundaryCondition.FIXED:
        return np.empty((0, 2))

    if geometry.shape is PlateShape.CIRCLE:
        theta = np.linspace(0.0, 2.0 * np.pi, 4 * resolution, endpoint=False)
        return geometry.radius * np.column_stack((np.cos(theta), np.sin(theta)))

    if geometry.shape is PlateShape.COMPOSITE:
        return np.empty((0, 2))

    x_min, x_max, y_min, y_max = geometry.bounds
    xs = x_min + (np.arange(resolution) + 0.5) * (x_max - x_min) / resolution
    ys = y_min + (np.arange(resolution) + 0.5) * (y_max - y_min) / resolution
    return np.concatenate(
        [
            np.column_stack((xs, np.full(resolution, y_min))),
            np.column_stack((xs, np.full(resolution, y_max))),
            np.column_stack((np.full(resolution, x_min), ys)),
            np.column_stack((np.full(resolution, x_max), ys)),
        ]
    )


def distance_to_nodes(points: PositionArray, nodes: PositionArray) -> np.ndarray:
    """
    Euclidean distance from each point to the nearest nodal point.

    Returns
    -------
    np.ndarray
        (P,) distances, infinite when there are no nodal points
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    nodes = np.asarray(nodes, dtype=float).reshape(-1, 2)
    if nodes.shape[0] == 0:
        return np.full(points.shape[0], np.inf)
    distances, _ = cKDTree(nodes).query(points)
    return distances


def _validate_resolution(resolution) -> int:
    if isinstance(resolution, bool) or not isinstance(resolution, (int, np.integer)):
        raise InvalidParameterError(f"resolution must be an integer, got {resolution!r}")
    if resolution < 2:
        raise InvalidParameterError(f"resolution must be at least 2, got {resolution}")
    return int(resolution)


# ============================================================================
# Calculator
# ============================================================================


class ModalCalculator:
    """
    Eigenmodes of a plate.

    Parameters
    ----------
    geometry : PlateGeometry, optional
        Default is a free 0.32 m square
    material : Union[Material, str]
        Dispersion constant source, default aluminum
    grid_resolution : int
        Default resolution for nodal-line queries

    Examples
    --------
    >>> calc = ModalCalculator(PlateGeometry.rectangle(boundary="fixed"))
    >>> calc.nodal_line_counts(3, 2)
    (2, 1)
    >>> round(calc.eigenfrequency(1, 1), 2)
    47.42
    """

    def __init__(
        self,
        geometry: Optional[PlateGeometry] = None,
        material: Union[Material, str] = DEFAULT_MATERIAL,
        grid_resolution: int = DEFAULT_GRID_RESOLUTION,
    ):
        self._geometry = geometry if geometry is not None else PlateGeometry()
        if not isinstance(self._geometry, PlateGeometry):
            raise InvalidParameterError(
                f"Expected PlateGeometry, got {type(self._geometry).__name__}"
            )
        self._material = get_material(material)
        self.grid_resolution = _validate_resolution(grid_resolution)
        self._fields: Dict[Tuple[int, int], ModalField] = {}

    # ========================================================================
    # Configuration
    # ========================================================================

    @property
    def geometry(self) -> PlateGeometry:
        return self._geometry

    @property
    def material(self) -> Material:
        return self._material

    def set_geometry(self, geometry: PlateGeometry) -> None:
        """Switch plate; cached fields are discarded."""
        if not isinstance(geometry, PlateGeometry):
            raise InvalidParameterError(f"Expected PlateGeometry, got {type(geometry).__name__}")
        self._geometry = geometry
        self._fields.clear()
        logger.debug("Modal calculator geometry set to %s", geometry)

    def set_material(self, material: Union[Material, str]) -> None:
        self._material = get_material(material)
        self._fields.clear()

    # ========================================================================
    # Modes
    # ========================================================================

    def mode_ranges(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        """Inclusive ((m_min, m_max), (n_min, n_max)) for the current plate."""
        if self._geometry.shape is PlateShape.CIRCLE:
            return (0, MAX_ANGULAR_ORDER), (1, MAX_RADIAL_INDEX)
        if self._geometry.boundary is BoundaryCondition.FIXED:
            return (1, MAX_MODE), (1, MAX_MODE)
        return (0, MAX_MODE), (0, MAX_MODE)

    def validate_mode(self, m, n) -> Tuple[int, int]:
        """
        Check mode indices against the current plate.

        Raises
        ------
        InvalidParameterError
            If an index is not an integer, is out of range, or (m, n) is
            (0, 0) on a free rectangular or composite plate
        """
        for name, value in (("m", m), ("n", n)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
        m, n = int(m), int(n)
        (m_lo, m_hi), (n_lo, n_hi) = self.mode_ranges()
        if not (m_lo <= m <= m_hi and n_lo <= n <= n_hi):
            raise InvalidParameterError(
                f"Mode ({m}, {n}) out of range for {self._geometry.shape.value}/"
                f"{self._geometry.boundary.value}: m in [{m_lo}, {m_hi}], n in [{n_lo}, {n_hi}]"
            )
        if self._geometry.shape is not PlateShape.CIRCLE and m == 0 and n == 0:
            raise InvalidParameterError("Mode (0, 0) is rigid-body motion, not a plate mode")
        return m, n

    def wave_number(self, m, n) -> float:
        """k_mn in rad/m."""
        m, n = self.validate_mode(m, n)
        geometry = self._geometry
        if geometry.shape is PlateShape.CIRCLE:
            return float(bessel_zeros(m, geometry.boundary)[n - 1] / geometry.radius)
        return float(np.pi * np.hypot(m / geometry.width, n / geometry.height))

    def eigenfrequency(self, m, n) -> float:
        """f = C·k_mn² in Hz."""
        return float(self._material.frequency(self.wave_number(m, n)))

    def mode(self, m, n) -> Mode:
        m, n = self.validate_mode(m, n)
        k_mn = self.wave_number(m, n)
        return Mode(
            m=m,
            n=n,
            geometry=self._geometry,
            wave_number=k_mn,
            frequency=float(self._material.frequency(k_mn)),
        )

    def field(self, m, n) -> ModalField:
        """Displacement field of mode (m, n), cached per plate."""
        key = self.validate_mode(m, n)
        if key not in self._fields:
            self._fields[key] = ModalField(self.mode(*key))
        return self._fields[key]

    def available_modes(self) -> List[Tuple[int, int]]:
        """All valid (m, n) sorted by eigenfrequency."""
        (m_lo, m_hi), (n_lo, n_hi) = self.mode_ranges()
        modes = [
            (m, n)
            for m in range(m_lo, m_hi + 1)
            for n in range(n_lo, n_hi + 1)
            if self._geometry.shape is PlateShape.CIRCLE or (m, n) != (0, 0)
        ]
        return sorted(modes, key=lambda mn: self.eigenfrequency(*mn))

    def nearest_mode(self, frequency: float) -> Tuple[int, int]:
        """Mode whose eigenfrequency is closest to `frequency` (Hz)."""
        return min(self.available_modes(), key=lambda mn: abs(self.eigenfrequency(*mn) - frequency))

    # ========================================================================
    # Nodal Lines
    # ========================================================================

    def sample_grid(self, m, n, resolution: Optional[int] = None):
        """(xs, ys, z) cell-centred samples of mode (m, n)."""
        resolution = self.grid_resolution if resolution is None else resolution
        return sample_grid(self.field(m, n), self._geometry, resolution)

    def nodal_mask(self, m, n, resolution: Optional[int] = None) -> np.ndarray:
        """Boolean grid of cells next to a nodal line."""
        _, _, z = self.sample_grid(m, n, resolution)
        return nodal_mask(z)

    def nodal_line_counts(self, m, n, resolution: Optional[int] = None) -> Tuple[int, int]:
        """(lines parallel to y, lines parallel to x) by grid sign changes."""
        _, _, z = self.sample_grid(m, n, resolution)
        return nodal_line_counts(z)

    def nodal_points(
        self, m, n, resolution: Optional[int] = None, include_boundary: bool = True
    ) -> PositionArray:
        """
        (K, 2) points on the nodal lines of mode (m, n).

        Interior points are interpolated grid sign changes. With
        include_boundary, fixed rectangles and circles also contribute their
        clamped edge (see clamped_edge_points).
        """
        xs, ys, z = self.sample_grid(m, n, resolution)
        interior = nodal_points(xs, ys, z)
        if not include_boundary:
            return interior
        edges = clamped_edge_points(self._geometry, len(xs))
        if not len(edges):
            return interior
        return np.concatenate([interior, edges])


__all__ = [
    "Mode",
    "ModalField",
    "ModalCalculator",
    "bessel_zeros",
    "mode_shape",
    "sample_grid",
    "nodal_mask",
    "nodal_line_counts",
    "nodal_points",
    "clamped_edge_points",
    "count_sign_changes",
    "distance_to_nodes",
]
