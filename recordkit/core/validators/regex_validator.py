"""
RegexValidator - validates field values against a regular expression pattern.
"""

import re
from re import Pattern
from typing import Any

from .base_validator import BaseValidator


class RegexValidator(BaseValidator):
    """
    Validates that a field value matches a regular expression pattern.

    The pattern is searched anywhere in the value; anchor it with ^ and $
    to require a full match.

    Options:
    - format: Regular expression pattern (string or compiled Pattern)

    Parameters:
    - flags: Optional regex flags (e.g., re.IGNORECASE) for string patterns
    """

    validation = "format"
    options = ("format",)

    def check_bound(self, bound: Any) -> Pattern:
        if isinstance(bound, Pattern):
            return bound
        if not isinstance(bound, str) or not bound:
            raise ValueError(f"Pattern must be string or compiled Pattern, got {type(bound).__name__}")
        try:
            return re.compile(bound, self.parameters.get("flags", 0))
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {e}") from e

    def validate(self, value: Any, bound: Any) -> None:
        pattern = self.check_bound(bound)

        # Convert to string if needed
        value_str = value if isinstance(value, str) else str(value)

        if not pattern.search(value_str):
            raise self.fail("has invalid format", pattern=pattern.pattern)
