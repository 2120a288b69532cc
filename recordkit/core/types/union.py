"""
UnionType - allows a field to hold a value of any of several types.
"""

from typing import Any

from .base import CoercionError, FieldType


class UnionType(FieldType):
    """
    Coerces a value into the first acceptable member type.

    Parameters:
    - oneof: Allowed member types, in preference order
    - eager: When True, try each member's coercion in order and keep the
             first success. When False (default), prefer a member that the
             value already belongs to, and only then fall back to eager
             coercion.
    """

    def __init__(self, oneof: list[FieldType] | tuple[FieldType, ...], eager: bool = False):
        if not oneof:
            raise ValueError("UnionType requires at least one member type")
        self.oneof = tuple(oneof)
        self.eager = eager
        self.name = f"union[{', '.join(member.name for member in self.oneof)}]"

    def coerce(self, value: Any) -> Any:
        if not self.eager:
            member = self._member_for(value)
            if member is not None:
                return member.coerce(value)

        for member in self.oneof:
            try:
                return member.coerce(value)
            except CoercionError:
                continue

        raise CoercionError(self.name, value, "no member type accepted the value")

    def dump(self, value: Any) -> Any:
        if value is None:
            return None
        member = self._member_for(value)
        return member.dump(value) if member is not None else value

    def matches(self, value: Any) -> bool:
        return self._member_for(value) is not None

    def _member_for(self, value: Any) -> FieldType | None:
        for member in self.oneof:
            if member.matches(value):
                return member
        return None
