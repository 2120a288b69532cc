"""
CustomType - build a new field type from an existing one.

Only the callbacks that differ need to be supplied; everything else is
delegated to the base type.
"""

from collections.abc import Callable
from typing import Any

from .base import CoercionError, FieldType


class CustomType(FieldType):
    """
    A field type that overrides selected callbacks of a base type.

    Parameters:
    - base: The type to extend
    - coerce: Optional replacement for base.coerce. May raise CoercionError,
              ValueError or TypeError; the latter two are wrapped.
    - dump: Optional replacement for base.dump
    - matches: Optional replacement for base.matches
    - name: Optional type name (defaults to the base name)
    """

    def __init__(
        self,
        base: FieldType,
        coerce: Callable[[Any], Any] | None = None,
        dump: Callable[[Any], Any] | None = None,
        matches: Callable[[Any], bool] | None = None,
        name: str | None = None,
    ):
        for label, func in (("coerce", coerce), ("dump", dump), ("matches", matches)):
            if func is not None and not callable(func):
                raise ValueError(f"CustomType '{label}' must be callable")

        self.base = base
        self._coerce = coerce
        self._dump = dump
        self._matches = matches
        self.name = name or base.name

    def coerce(self, value: Any) -> Any:
        if self._coerce is None:
            return self.base.coerce(value)
        try:
            return self._coerce(value)
        except CoercionError:
            raise
        except (ValueError, TypeError) as e:
            raise CoercionError(self.name, value, str(e)) from e

    def dump(self, value: Any) -> Any:
        if self._dump is None:
            return self.base.dump(value)
        return self._dump(value)

    def matches(self, value: Any) -> bool:
        if self._matches is None:
            return self.base.matches(value)
        return bool(self._matches(value))


def extend_type(base: FieldType, **overrides) -> CustomType:
    """
    Shorthand for CustomType.

    Examples:
        >>> from recordkit.core.types import resolve_type
        >>> Slug = extend_type(resolve_type("string"), coerce=lambda v: str(v).lower(), name="slug")
        >>> Slug.coerce("Hello")
        'hello'
    """
    return CustomType(base, **overrides)
