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
Unit tests for PlateGeometry

Tests cover:
1. Construction, aliases and validation
2. Dimensions and bounds
3. Region queries (contains, reflect, clamp)
4. Uniform random placement
"""

import numpy as np
import pytest

from resosim.exceptions import InvalidParameterError
from resosim.plates import BoundaryCondition, PlateGeometry, PlateShape
from resosim.types import PlateBoundaryProtocol


@pytest.fixture
def square():
    return PlateGeometry.rectangle(0.32, 0.32)


@pytest.fixture
def disc():
    return PlateGeometry.circle(0.16)


@pytest.fixture
def guitar():
    return PlateGeometry.composite()


# ============================================================================
# Test Class 1: Construction
# ============================================================================


class TestConstruction:
    """Test constructors, aliases and validation"""

    def test_defaults(self):
        plate = PlateGeometry()
        assert plate.shape is PlateShape.RECTANGLE
        assert plate.boundary is BoundaryCondition.FREE
        assert plate.extent == (0.32, 0.32)

    def test_string_and_alias_inputs(self):
        assert PlateGeometry(shape="guitar").shape is PlateShape.COMPOSITE
        assert PlateGeometry(shape="CIRCLE").shape is PlateShape.CIRCLE
        assert PlateGeometry(boundary="clamped").boundary is BoundaryCondition.FIXED
        assert PlateGeometry.rectangle(boundary="fixed").boundary is BoundaryCondition.FIXED

    def test_composite_defaults(self, guitar):
        assert guitar.extent == (0.36, 0.48)
        assert guitar.outline == "guitar"

    def test_satisfies_protocol(self, square, disc, guitar):
        for plate in (square, disc, guitar):
            assert isinstance(plate, PlateBoundaryProtocol)

    def test_frozen(self, square):
        with pytest.raises(AttributeError):
            square.width = 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0.0},
            {"height": -0.1},
            {"radius": np.inf},
            {"shape": "hexagon"},
            {"boundary": "simply_supported"},
            {"shape": "composite", "outline": "violin"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidParameterError):
            PlateGeometry(**kwargs)


# ============================================================================
# Test Class 2: Dimensions
# ============================================================================


class TestDimensions:
    """Test extent, bounds and characteristic length"""

    def test_rectangle(self):
        plate = PlateGeometry.rectangle(0.4, 0.2)
        assert plate.bounds == (-0.2, 0.2, -0.1, 0.1)
        assert plate.characteristic_length == pytest.approx(np.sqrt(0.08))

    def test_circle(self, disc):
        assert disc.extent == (0.32, 0.32)
        assert disc.bounds == (-0.16, 0.16, -0.16, 0.16)
        assert disc.characteristic_length == 0.16

    def test_vertices_scaled_to_box(self, guitar):
        vertices = guitar.vertices
        assert vertices[:, 0].max() <= 0.18 + 1e-12
        assert vertices[:, 1].max() == pytest.approx(0.24)
        assert vertices[:, 1].min() == pytest.approx(-0.24)

    def test_vertices_only_for_composite(self, square):
        with pytest.raises(InvalidParameterError):
            square.vertices


# ============================================================================
# Test Class 3: Region Queries
# ============================================================================


class TestContains:
    """Test point-in-plate"""

    def test_rectangle_edges_inside(self, square):
        x = np.array([0.0, 0.16, 0.17, -0.16])
        y = np.array([0.0, 0.16, 0.0, -0.161])
        np.testing.assert_array_equal(square.contains(x, y), [True, True, False, False])

    def test_circle(self, disc):
        x = np.array([0.0, 0.16, 0.12, 0.12])
        y = np.array([0.0, 0.0, 0.1, 0.12])
        np.testing.assert_array_equal(disc.contains(x, y), [True, True, True, False])

    def test_composite_excludes_box_corners(self, guitar):
        assert bool(guitar.contains(0.0, 0.0))
        assert bool(guitar.contains(0.0, 0.2))
        assert not bool(guitar.contains(0.17, 0.23))
        assert not bool(guitar.contains(-0.17, -0.23))

    def test_broadcasts(self, square):
        xs, ys = np.meshgrid(np.linspace(-0.2, 0.2, 5), np.linspace(-0.2, 0.2, 3))
        assert square.contains(xs, ys).shape == (3, 5)


class TestReflect:
    """Test returning escaped points"""

    def test_rectangle_folds(self, square):
        x, y = square.reflect(np.array([0.2, 0.0]), np.array([0.0, -0.18]), 0.0, 0.0)
        np.testing.assert_allclose(x, [0.12, 0.0])
        np.testing.assert_allclose(y, [0.0, -0.14])

    def test_circle_reflects_radius(self, disc):
        x, y = disc.reflect(np.array([0.2]), np.array([0.0]), np.array([0.1]), np.array([0.0]))
        np.testing.assert_allclose(x, [0.12])
        np.testing.assert_allclose(y, [0.0])

    def test_composite_restores_previous(self, guitar):
        x_prev = np.array([0.0, 0.01])
        y_prev = np.array([0.2, 0.0])
        x, y = guitar.reflect(np.array([0.17, 0.02]), np.array([0.23, 0.0]), x_prev, y_prev)
        np.testing.assert_allclose(x, [0.0, 0.02])
        np.testing.assert_allclose(y, [0.2, 0.0])

    def test_inside_points_untouched(self, square, disc):
        for plate in (square, disc):
            x, y = plate.reflect(np.array([0.05]), np.array([-0.03]), 0.0, 0.0)
            np.testing.assert_array_equal(x, [0.05])
            np.testing.assert_array_equal(y, [-0.03])


class TestClamp:
    """Test projection onto the boundary"""

    def test_rectangle(self, square):
        x, y = square.clamp([0.3, 0.1], [-0.3, 0.0])
        np.testing.assert_allclose(x, [0.16, 0.1])
        np.testing.assert_allclose(y, [-0.16, 0.0])

    def test_circle(self, disc):
        x, y = disc.clamp([0.32, 0.0], [0.0, 0.05])
        np.testing.assert_allclose(x, [0.16, 0.0])
        np.testing.assert_allclose(y, [0.0, 0.05])

    def test_composite_projects_to_outline(self, guitar):
        x, y = guitar.clamp(np.array([0.0, 0.0]), np.array([0.5, 0.1]))
        np.testing.assert_allclose(x, [0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(y, [0.24, 0.1], atol=1e-12)


# ============================================================================
# Test Class 4: Random Placement
# ============================================================================


class TestRandomPoints:
    """Test uniform sampling inside the plate"""

    @pytest.mark.parametrize("shape", ["rectangle", "circle", "composite"])
    def test_points_inside(self, shape):
        plate = PlateGeometry(shape=shape)
        points = plate.random_points(2000, np.random.default_rng(0))
        assert points.shape == (2000, 2)
        assert np.all(plate.contains(points[:, 0], points[:, 1]))

    def test_seeded_determinism(self, guitar):
        a = guitar.random_points(100, np.random.default_rng(42))
        b = guitar.random_points(100, np.random.default_rng(42))
        np.testing.assert_array_equal(a, b)

    def test_zero_count(self, disc):
        assert disc.random_points(0, np.random.default_rng(0)).shape == (0, 2)

    def test_fills_rectangle(self, square):
        points = square.random_points(5000, np.random.default_rng(1))
        assert np.mean(points[:, 0] > 0.0) == pytest.approx(0.5, abs=0.03)
        assert points[:, 1].min() < -0.15
        assert points[:, 1].max() > 0.15
