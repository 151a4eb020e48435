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
Unit tests for exceptions, warning categories and validation helpers
"""

import numpy as np
import pytest

from resosim.exceptions import (
    AccuracyDegradedWarning,
    InvalidParameterError,
    NumericalInstabilityWarning,
    require_finite,
    require_non_negative,
    require_positive,
)


class TestCategories:
    """Exception and warning hierarchy"""

    def test_invalid_parameter_is_value_error(self):
        assert issubclass(InvalidParameterError, ValueError)
        with pytest.raises(ValueError):
            require_positive("mass", -1.0)

    @pytest.mark.parametrize("category", [NumericalInstabilityWarning, AccuracyDegradedWarning])
    def test_warnings_are_runtime_warnings(self, category):
        assert issubclass(category, RuntimeWarning)


class TestValidationHelpers:
    """require_* conversions and messages"""

    def test_returns_float(self):
        value = require_positive("mass", np.int64(3))
        assert value == 3.0
        assert isinstance(value, float)

    @pytest.mark.parametrize("value", [0.0, -2.0, np.nan, np.inf, "heavy", None])
    def test_require_positive_rejects(self, value):
        with pytest.raises(InvalidParameterError, match="mass"):
            require_positive("mass", value)

    def test_require_non_negative(self):
        assert require_non_negative("damping", 0.0) == 0.0
        with pytest.raises(InvalidParameterError, match="non-negative"):
            require_non_negative("damping", -1e-9)

    def test_require_finite(self):
        assert require_finite("dt", -0.5) == -0.5
        with pytest.raises(InvalidParameterError, match="finite"):
            require_finite("dt", -np.inf)

    def test_chained_cause(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            require_finite("dt", [1.0, 2.0])
        assert isinstance(exc_info.value.__cause__, TypeError)
