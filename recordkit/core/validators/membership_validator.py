"""
MembershipValidator - inclusion, exclusion and subset checks.
"""

from collections.abc import Collection
from typing import Any

from .base_validator import BaseValidator


class MembershipValidator(BaseValidator):
    """
    Validates a value against a collection of allowed or reserved values.

    Options:
    - in: the value must be one of the collection
    - not_in: the value must not be one of the collection
    - subset_of: every item of the (collection) value must be in the collection
    """

    options = ("in", "not_in", "subset_of")

    VALIDATIONS = {
        "in": ("inclusion", "is invalid"),
        "not_in": ("exclusion", "is reserved"),
        "subset_of": ("subset", "has an invalid entry"),
    }

    def __init__(self, field_name: str, option: str, bound: Any, parameters: dict[str, Any] | None = None):
        self.validation = self.VALIDATIONS.get(option, ("", ""))[0]
        super().__init__(field_name, option, bound, parameters)

    def check_bound(self, bound: Any) -> Any:
        if isinstance(bound, (str, bytes)) or not isinstance(bound, Collection):
            raise TypeError(f"bound must be a collection of values, got {type(bound).__name__}")
        return list(bound)

    def validate(self, value: Any, bound: Any) -> None:
        bound = self.check_bound(bound)
        _, message = self.VALIDATIONS[self.option]

        if self.option == "in":
            ok = value in bound
        elif self.option == "not_in":
            ok = value not in bound
        else:
            if isinstance(value, (str, bytes)) or not isinstance(value, Collection):
                raise TypeError(f"subset_of requires a collection value, got {type(value).__name__}")
            ok = all(item in bound for item in value)

        if not ok:
            raise self.fail(message, enum=bound)
