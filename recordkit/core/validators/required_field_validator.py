"""
RequiredFieldValidator - ensures a field holds a value after coercion.
"""

from collections.abc import Mapping
from typing import Any

from .base_validator import ValidationError


def is_blank(value: Any, allow_empty_string: bool = False) -> bool:
    """Return True for None and (unless allowed) whitespace-only strings."""
    if value is None:
        return True
    return not allow_empty_string and isinstance(value, str) and value.strip() == ""


class RequiredFieldValidator:
    """
    Validates that a required field is present in the session changes and not blank.

    Fails if:
    - Field has no entry in the changes
    - Field value is None
    - Field value is a whitespace-only string (configurable)
    """

    rule_type = "required"

    def __init__(self, field_name: str, allow_empty_string: bool = False):
        self.field_name = field_name
        self.allow_empty_string = allow_empty_string

    def validate(self, changes: Mapping[str, Any]) -> None:
        """
        Validate that the field holds a value.

        Args:
            changes: The session changes after coercion

        Raises:
            ValidationError: If the field is missing or blank
        """
        if self.field_name not in changes or is_blank(changes[self.field_name], self.allow_empty_string):
            raise ValidationError(
                rule_name="required",
                field_name=self.field_name,
                message="can't be blank",
                validation="required",
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name})"
