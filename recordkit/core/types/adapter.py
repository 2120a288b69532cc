"""
Field types backed by pydantic.

PydanticType adapts any annotation pydantic understands (int, Decimal,
datetime, dict[str, Any], ...) to the FieldType contract. Lax validation is
used for coercion so that "25" becomes 25 and "yes" becomes True; strict
validation is used to decide whether a value already has the type.
"""

from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .base import CoercionError, FieldType


class PydanticType(FieldType):
    """
    A field type that delegates coercion and dumping to a pydantic TypeAdapter.

    Examples:
        >>> PydanticType(int, name="integer").coerce("25")
        25
    """

    def __init__(self, annotation: Any, name: str | None = None):
        self.annotation = annotation
        self.name = name or getattr(annotation, "__name__", repr(annotation))
        self._adapter = TypeAdapter(annotation)

    def coerce(self, value: Any) -> Any:
        try:
            return self._adapter.validate_python(value)
        except PydanticValidationError as e:
            reason = e.errors()[0]["msg"] if e.errors() else str(e)
            raise CoercionError(self.name, value, reason) from e

    def dump(self, value: Any) -> Any:
        if value is None:
            return None
        return self._adapter.dump_python(value, mode="json")

    def matches(self, value: Any) -> bool:
        try:
            self._adapter.validate_python(value, strict=True)
        except PydanticValidationError:
            return False
        return True


class ArrayType(FieldType):
    """A homogeneous list whose items are coerced by an inner field type."""

    def __init__(self, inner: FieldType):
        self.inner = inner
        self.name = f"array[{inner.name}]"

    def coerce(self, value: Any) -> list:
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
            raise CoercionError(self.name, value, "expected a list")
        items = []
        for index, item in enumerate(value):
            if item is None:
                items.append(None)
                continue
            try:
                items.append(self.inner.coerce(item))
            except CoercionError as e:
                raise CoercionError(self.name, value, f"item {index}: {e.reason or e}") from e
        return items

    def dump(self, value: Any) -> Any:
        if value is None:
            return None
        return [None if item is None else self.inner.dump(item) for item in value]

    def matches(self, value: Any) -> bool:
        if not isinstance(value, list):
            return False
        return all(item is None or self.inner.matches(item) for item in value)
