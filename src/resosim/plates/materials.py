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
Plate materials.

The dispersion constant C links a plate wave number to its frequency,
f = C·k², so k = √(f / C).
"""

from dataclasses import dataclass
from typing import Dict, Union

import numpy as np

from resosim.exceptions import InvalidParameterError, require_positive


@dataclass(frozen=True)
class Material:
    """
    Plate material.

    Parameters
    ----------
    name : str
        Display name
    dispersion_constant : float
        C in f = C·k² (m²/s)
    """

    name: str
    dispersion_constant: float

    def __post_init__(self):
        object.__setattr__(
            self,
            "dispersion_constant",
            require_positive("dispersion_constant", self.dispersion_constant),
        )

    def frequency(self, wave_number):
        """f = C·k², broadcasts over arrays."""
        return self.dispersion_constant * np.square(wave_number)

    def wave_number(self, frequency):
        """k = √(f / C)"""
        return np.sqrt(np.asarray(frequency, dtype=float) / self.dispersion_constant)


COPPER = Material("Copper", 0.178)
ALUMINUM = Material("Aluminum", 0.246)
ZINC = Material("Zinc", 0.166)
STAINLESS_STEEL = Material("Stainless Steel", 0.238)

DEFAULT_MATERIAL = ALUMINUM

MATERIALS: Dict[str, Material] = {
    "copper": COPPER,
    "aluminum": ALUMINUM,
    "zinc": ZINC,
    "stainless_steel": STAINLESS_STEEL,
}


def get_material(material: Union[str, Material]) -> Material:
    """
    Look up a material by key or pass a Material through.

    Examples
    --------
    >>> get_material("copper").dispersion_constant
    0.178
    >>> get_material("Stainless Steel") is STAINLESS_STEEL
    True
    """
    if isinstance(material, Material):
        return material
    key = str(material).strip().lower().replace(" ", "_")
    if key not in MATERIALS:
        raise InvalidParameterError(
            f"Unknown material '{material}'. Choose from: {list(MATERIALS)}"
        )
    return MATERIALS[key]


__all__ = [
    "Material",
    "COPPER",
    "ALUMINUM",
    "ZINC",
    "STAINLESS_STEEL",
    "DEFAULT_MATERIAL",
    "MATERIALS",
    "get_material",
]
