"""
NumberValidator - validates numeric values against a bound.
"""

import operator
from decimal import Decimal
from typing import Any

from .base_validator import BaseValidator

NUMBER_TYPES = (int, float, Decimal)


def _is_number(value: Any) -> bool:
    return isinstance(value, NUMBER_TYPES) and not isinstance(value, bool)


class NumberValidator(BaseValidator):
    """
    Validates that a numeric field compares correctly with a bound.

    Options:
    - greater_than, less_than (exclusive)
    - greater_than_or_equal_to, less_than_or_equal_to (inclusive)
    - equal_to, not_equal_to
    """

    validation = "number"
    options = (
        "less_than",
        "greater_than",
        "less_than_or_equal_to",
        "greater_than_or_equal_to",
        "equal_to",
        "not_equal_to",
    )

    COMPARISONS = {
        "less_than": (operator.lt, "must be less than {number}"),
        "greater_than": (operator.gt, "must be greater than {number}"),
        "less_than_or_equal_to": (operator.le, "must be less than or equal to {number}"),
        "greater_than_or_equal_to": (operator.ge, "must be greater than or equal to {number}"),
        "equal_to": (operator.eq, "must be equal to {number}"),
        "not_equal_to": (operator.ne, "must be not equal to {number}"),
    }

    def check_bound(self, bound: Any) -> Any:
        if not _is_number(bound):
            raise TypeError(f"bound must be numeric, got {type(bound).__name__}")
        return bound

    def validate(self, value: Any, bound: Any) -> None:
        if not _is_number(value):
            raise self.fail("must be a number", number=bound)

        compare, message = self.COMPARISONS[self.option]
        if not compare(value, bound):
            raise self.fail(message, number=bound)
