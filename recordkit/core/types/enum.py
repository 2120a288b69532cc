"""
EnumType - a closed set of named values with optional dumped representations.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from .base import CoercionError, FieldType


class EnumType(FieldType):
    """
    Accepts either a value name or its dumped representation and stores the name.

    Parameters:
    - values: A list of names, or a mapping of name -> dumped value
              (e.g. {"a": 1, "b": 2})

    Examples:
        >>> kind = EnumType({"folder": 1, "file": 2})
        >>> kind.coerce(2)
        'file'
        >>> kind.dump("file")
        2
    """

    def __init__(self, values: Mapping[str, Any] | list[str] | tuple[str, ...] | type[Enum]):
        if isinstance(values, type) and issubclass(values, Enum):
            mapping = {member.name: member.value for member in values}
        elif isinstance(values, Mapping):
            mapping = {str(name): dumped for name, dumped in values.items()}
        else:
            mapping = {str(name): str(name) for name in values}

        if not mapping:
            raise ValueError("EnumType requires at least one value")

        self.values = mapping
        self._by_dumped = {dumped: name for name, dumped in mapping.items()}
        self.name = f"enum[{', '.join(mapping)}]"

    def coerce(self, value: Any) -> str:
        if isinstance(value, Enum):
            value = value.name
        if isinstance(value, str) and value in self.values:
            return value
        try:
            if value in self._by_dumped:
                return self._by_dumped[value]
        except TypeError:
            # Unhashable input can never be one of the values
            pass
        raise CoercionError(self.name, value, f"expected one of {list(self.values)}")

    def dump(self, value: Any) -> Any:
        if value is None:
            return None
        return self.values.get(value, value)

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and value in self.values
