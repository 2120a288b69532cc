"""
LengthValidator - validates the length of strings and collections.
"""

from collections.abc import Sized
from typing import Any

from recordkit.core.errors import DefinitionError

from .base_validator import BaseValidator

COUNT_MODES = ("codepoints", "bytes")


class LengthValidator(BaseValidator):
    """
    Validates that a string or collection has an exact, minimum or maximum length.

    Options:
    - is: exact length
    - min: minimum length (inclusive)
    - max: maximum length (inclusive)

    Parameters:
    - count: how strings are measured, "codepoints" (default) or "bytes"
    """

    validation = "length"
    options = ("is", "min", "max")

    STRING_MESSAGES = {
        "is": "should be {count} {unit}(s)",
        "min": "should be at least {count} {unit}(s)",
        "max": "should be at most {count} {unit}(s)",
    }
    COLLECTION_MESSAGES = {
        "is": "should have {count} item(s)",
        "min": "should have at least {count} item(s)",
        "max": "should have at most {count} item(s)",
    }

    def __init__(self, field_name: str, option: str, bound: Any, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, option, bound, parameters)
        self.count_mode = self.parameters.get("count", "codepoints")
        if self.count_mode not in COUNT_MODES:
            raise DefinitionError(f"count must be one of {COUNT_MODES}, got {self.count_mode!r}", field=field_name)

    def check_bound(self, bound: Any) -> Any:
        if isinstance(bound, bool) or not isinstance(bound, int) or bound < 0:
            raise ValueError(f"length bound must be a non-negative integer, got {bound!r}")
        return bound

    def validate(self, value: Any, bound: Any) -> None:
        if isinstance(value, str):
            if self.count_mode == "bytes":
                length, unit = len(value.encode("utf-8")), "byte"
            else:
                length, unit = len(value), "character"
            template = self.STRING_MESSAGES[self.option]
            metadata = {"count": bound, "unit": unit, "type": "string"}
        elif isinstance(value, Sized):
            length = len(value)
            template = self.COLLECTION_MESSAGES[self.option]
            metadata = {"count": bound, "type": "list"}
        else:
            raise TypeError(f"length cannot be measured for {type(value).__name__}")

        if self.option == "is":
            ok = length == bound
        elif self.option == "min":
            ok = length >= bound
        else:
            ok = length <= bound

        if not ok:
            raise self.fail(template, **metadata)
