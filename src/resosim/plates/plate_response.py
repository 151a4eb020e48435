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
Plate Response - Modal Superposition for a Point-Driven Plate

A plate driven at the excitation point (x₀, y₀) with wave number
k = √(f / C) responds as a damped superposition of its eigenmodes φ_mn:

    ψ(x, y) = (4 / LxLy) · |Σ φ_mn(x₀, y₀)·φ_mn(x, y) / ((k² − k_mn²) + 2iγk)|

    I(f)    = Σ (4 / LxLy)·φ_mn(x₀, y₀)² / ((k² − k_mn²)² + 4γ²k²)

with damping γ = 0.02 / √(LxLy) (γ = 0.02 / R for circles). Modes whose
source term φ_mn(x₀, y₀) is negligible are left out of both sums. I(f)
peaks at the eigenfrequencies the excitation point can reach; ψ is the
field particles collect on.
"""

import logging
from typing import List, Optional, Tuple, Union

import numpy as np

from resosim.config import (
    PLATE_DAMPING_COEFFICIENT,
    PLATE_FREQUENCY_MAX_HZ,
    PLATE_FREQUENCY_MIN_HZ,
    SOURCE_THRESHOLD,
)
from resosim.exceptions import InvalidParameterError, require_finite, require_non_negative
from resosim.plates.materials import DEFAULT_MATERIAL, Material
from resosim.plates.modal_calculator import ModalCalculator, mode_shape
from resosim.plates.plate_geometry import PlateGeometry, PlateShape
from resosim.types.results import StrengthCurveData

logger = logging.getLogger(__name__)

# Normalization numerator of the modal sum, (2/√(LxLy))²·LxLy
_NORMALIZATION = 4.0


class DrivenField:
    """
    Callable displacement magnitude ψ(x, y) at one driving frequency.

    Built by PlateResponse.driven_field; coefficients are fixed at
    construction so repeated evaluation only costs the mode shapes.
    """

    def __init__(
        self,
        geometry: PlateGeometry,
        frequency: float,
        modes: List[Tuple[int, int]],
        coefficients: np.ndarray,
        normalization: float,
    ):
        self.geometry = geometry
        self.frequency = frequency
        self.modes = modes
        self._coefficients = coefficients
        self._normalization = normalization

    def __call__(self, x, y):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        total = np.zeros(np.broadcast(x, y).shape, dtype=complex)
        for (m, n), coefficient in zip(self.modes, self._coefficients):
            total += coefficient * mode_shape(self.geometry, m, n, x, y, masked=False)
        psi = self._normalization * np.abs(total)
        if self.geometry.shape is PlateShape.COMPOSITE:
            psi = np.where(self.geometry.contains(x, y), psi, 0.0)
        return float(psi) if psi.ndim == 0 else psi

    def __repr__(self) -> str:
        return f"DrivenField(frequency={self.frequency:g} Hz, modes={len(self.modes)})"


class PlateResponse:
    """
    Resonance strength and driven field of a point-excited plate.

    Parameters
    ----------
    geometry : PlateGeometry, optional
        Default is a free 0.32 m square
    material : Union[Material, str]
        Plate material, default aluminum
    excitation : Tuple[float, float]
        Driving point in plate-centred coordinates, must lie on the plate

    Examples
    --------
    >>> response = PlateResponse(PlateGeometry.rectangle(), excitation=(0.0, 0.0))
    >>> curve = response.strength_curve(50.0, 4000.0, num=500)
    >>> float(curve["normalized"].max())
    1.0
    >>> field = response.driven_field(1000.0)
    >>> field(0.0, 0.0) > 0.0
    True
    """

    def __init__(
        self,
        geometry: Optional[PlateGeometry] = None,
        material: Union[Material, str] = DEFAULT_MATERIAL,
        excitation: Tuple[float, float] = (0.0, 0.0),
    ):
        self._calculator = ModalCalculator(geometry, material)
        self._excitation = (0.0, 0.0)
        self.set_excitation(excitation)

    # ========================================================================
    # Configuration
    # ========================================================================

    @property
    def geometry(self) -> PlateGeometry:
        return self._calculator.geometry

    @property
    def material(self) -> Material:
        return self._calculator.material

    @property
    def calculator(self) -> ModalCalculator:
        return self._calculator

    @property
    def excitation(self) -> Tuple[float, float]:
        return self._excitation

    @property
    def damping(self) -> float:
        """γ = 0.02 / characteristic length."""
        return PLATE_DAMPING_COEFFICIENT / self.geometry.characteristic_length

    def set_excitation(self, excitation: Tuple[float, float]) -> None:
        """Move the driving point, which must lie on the plate."""
        try:
            x0, y0 = excitation
        except (TypeError, ValueError) as e:
            raise InvalidParameterError(
                f"excitation must be an (x, y) pair, got {excitation!r}"
            ) from e
        x0 = require_finite("excitation x", x0)
        y0 = require_finite("excitation y", y0)
        if not bool(self.geometry.contains(x0, y0)):
            raise InvalidParameterError(f"Excitation point ({x0}, {y0}) lies outside the plate")
        self._excitation = (x0, y0)
        self._rebuild()

    def set_geometry(self, geometry: PlateGeometry) -> None:
        """
        Switch plate. An excitation point that falls outside the new plate
        is moved to the centre.
        """
        self._calculator.set_geometry(geometry)
        if not bool(geometry.contains(*self._excitation)):
            logger.debug("Excitation %s outside new plate, moved to centre", self._excitation)
            self._excitation = (0.0, 0.0)
        self._rebuild()

    def set_material(self, material: Union[Material, str]) -> None:
        self._calculator.set_material(material)
        self._rebuild()

    def _rebuild(self) -> None:
        """Cache the modes the excitation point reaches and their k_mn²."""
        calculator = self._calculator
        geometry = calculator.geometry
        x0, y0 = self._excitation
        lx, ly = geometry.extent

        modes = calculator.available_modes()
        sources = np.array([mode_shape(geometry, m, n, x0, y0) for m, n in modes], dtype=float)
        keep = np.abs(sources) >= SOURCE_THRESHOLD

        self._normalization = _NORMALIZATION / (lx * ly)
        self._modes = [mode for mode, kept in zip(modes, keep) if kept]
        self._sources = sources[keep]
        self._k_mn_squared = np.array(
            [calculator.wave_number(m, n) ** 2 for m, n in self._modes], dtype=float
        )
        logger.debug(
            "Plate response: %d of %d modes reachable from excitation %s",
            len(self._modes),
            len(modes),
            self._excitation,
        )

    # ========================================================================
    # Resonance Strength
    # ========================================================================

    @property
    def modes(self) -> List[Tuple[int, int]]:
        """Modes included in the superposition, sorted by eigenfrequency."""
        return list(self._modes)

    def _contributions(self, frequency) -> np.ndarray:
        """(F, M) per-mode strength terms."""
        f = np.atleast_1d(np.asarray(frequency, dtype=float))
        if np.any(f < 0.0) or not np.all(np.isfinite(f)):
            raise InvalidParameterError("frequency must be finite and non-negative")
        k_squared = f[:, None] / self.material.dispersion_constant
        gamma = self.damping
        detuning = k_squared - self._k_mn_squared[None, :]
        denominator = detuning * detuning + 4.0 * gamma * gamma * k_squared
        phi_squared = self._normalization * self._sources**2
        with np.errstate(divide="ignore"):
            return np.where(denominator > 0.0, phi_squared[None, :] / denominator, 0.0)

    def strength(self, frequency):
        """
        Resonance strength I(f).

        Parameters
        ----------
        frequency : float or np.ndarray
            Driving frequency in Hz (>= 0)

        Returns
        -------
        float or np.ndarray
            Strength, same shape as the input
        """
        total = self._contributions(frequency).sum(axis=1)
        return float(total[0]) if np.ndim(frequency) == 0 else total

    def strength_curve(
        self,
        f_min: float = PLATE_FREQUENCY_MIN_HZ,
        f_max: float = PLATE_FREQUENCY_MAX_HZ,
        num: int = 1000,
    ) -> StrengthCurveData:
        """
        Tabulate I(f) on an evenly spaced grid.

        The normalized column divides by the maximum, or is all zeros when
        the maximum is zero.
        """
        f_min = require_non_negative("f_min", f_min)
        f_max = require_finite("f_max", f_max)
        if f_max <= f_min:
            raise InvalidParameterError(f"f_max ({f_max}) must exceed f_min ({f_min})")
        if isinstance(num, bool) or not isinstance(num, (int, np.integer)) or num < 2:
            raise InvalidParameterError(f"num must be an integer >= 2, got {num!r}")

        frequency = np.linspace(f_min, f_max, int(num))
        strength = np.asarray(self.strength(frequency))
        peak = float(strength.max())
        normalized = strength / peak if peak > 0.0 else np.zeros_like(strength)

        data: StrengthCurveData = {
            "frequency": frequency,
            "strength": strength,
            "normalized": normalized,
        }
        return data

    def dominant_mode(self, frequency: float) -> Tuple[int, int]:
        """
        Mode contributing most to I(f).

        Falls back to the mode with the nearest eigenfrequency when the
        excitation point reaches no mode.
        """
        frequency = require_non_negative("frequency", frequency)
        if not self._modes:
            return self._calculator.nearest_mode(frequency)
        contributions = self._contributions(frequency)[0]
        return self._modes[int(np.argmax(contributions))]

    # ========================================================================
    # Driven Field
    # ========================================================================

    def driven_field(self, frequency: float) -> DrivenField:
        """Displacement magnitude ψ(x, y) at the given frequency (Hz)."""
        frequency = require_non_negative("frequency", frequency)
        k = float(self.material.wave_number(frequency))
        gamma = self.damping
        coefficients = self._sources / ((k * k - self._k_mn_squared) + 2j * gamma * k)
        return DrivenField(
            self.geometry, frequency, list(self._modes), coefficients, self._normalization
        )


__all__ = ["PlateResponse", "DrivenField"]
