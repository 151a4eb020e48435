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
Exceptions and warning categories.

Only InvalidParameterError is raised; the numerical conditions are reported
through flags on results and snapshots and announced with warnings.warn.
"""

import math
from typing import Any


# ============================================================================
# Exceptions
# ============================================================================


class InvalidParameterError(ValueError):
    """Raised at construction when a physical or configuration parameter is invalid"""

    pass


# ============================================================================
# Warning Categories
# ============================================================================


class NumericalInstabilityWarning(RuntimeWarning):
    """An integrated state became non-finite and was rolled back"""

    pass


class AccuracyDegradedWarning(RuntimeWarning):
    """An adaptive solver forced a step without meeting its tolerance"""

    pass


# ============================================================================
# Validation Helpers
# ============================================================================


def require_positive(name: str, value: Any) -> float:
    """
    Validate a strictly positive finite real.

    Returns
    -------
    float
        The value converted to float

    Raises
    ------
    InvalidParameterError
        If value is not a finite number greater than zero

    Examples
    --------
    >>> require_positive("mass", 2.0)
    2.0
    >>> require_positive("mass", 0.0)
    Traceback (most recent call last):
    ...
    resosim.exceptions.InvalidParameterError: mass must be positive, got 0.0
    """
    value = _as_finite(name, value)
    if value <= 0.0:
        raise InvalidParameterError(f"{name} must be positive, got {value}")
    return value


def require_non_negative(name: str, value: Any) -> float:
    """Validate a finite real >= 0."""
    value = _as_finite(name, value)
    if value < 0.0:
        raise InvalidParameterError(f"{name} must be non-negative, got {value}")
    return value


def require_finite(name: str, value: Any) -> float:
    """Validate any finite real."""
    return _as_finite(name, value)


def _as_finite(name: str, value: Any) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{name} must be a real number, got {value!r}") from exc
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    return value


__all__ = [
    "InvalidParameterError",
    "NumericalInstabilityWarning",
    "AccuracyDegradedWarning",
    "require_positive",
    "require_non_negative",
    "require_finite",
]
