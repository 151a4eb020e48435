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
Plates

Chladni plate modes and the particles that trace their nodal lines:

- PlateGeometry: rectangle, circle and composite outlines
- Material: dispersion constants for eigenfrequencies
- ModalCalculator: eigenfrequencies, mode fields and nodal lines
- PlateResponse: point-driven modal superposition
- ParticleManager: particle population settling on nodal lines
"""

from .materials import (
    ALUMINUM,
    COPPER,
    DEFAULT_MATERIAL,
    MATERIALS,
    STAINLESS_STEEL,
    ZINC,
    Material,
    get_material,
)
from .modal_calculator import (
    ModalCalculator,
    ModalField,
    Mode,
    clamped_edge_points,
    count_sign_changes,
    distance_to_nodes,
    nodal_line_counts,
    nodal_mask,
    nodal_points,
    sample_grid,
)
from .particle_manager import ParticleManager
from .plate_geometry import BoundaryCondition, PlateGeometry, PlateShape
from .plate_response import DrivenField, PlateResponse

__all__ = [
    # Geometry
    "PlateShape",
    "BoundaryCondition",
    "PlateGeometry",
    # Materials
    "Material",
    "COPPER",
    "ALUMINUM",
    "ZINC",
    "STAINLESS_STEEL",
    "DEFAULT_MATERIAL",
    "MATERIALS",
    "get_material",
    # Modes
    "Mode",
    "ModalField",
    "ModalCalculator",
    "sample_grid",
    "nodal_mask",
    "nodal_line_counts",
    "nodal_points",
    "clamped_edge_points",
    "count_sign_changes",
    "distance_to_nodes",
    # Response
    "PlateResponse",
    "DrivenField",
    # Particles
    "ParticleManager",
]
