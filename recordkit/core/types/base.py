"""
Base interface for field types.

A field type converts raw external values into internal values (coerce) and
internal values back into external ones (dump). The pipeline never inspects a
type beyond this contract.
"""

from abc import ABC, abstractmethod
from typing import Any


class CoercionError(Exception):
    """Raised when a raw value cannot be converted into a field type."""

    def __init__(self, type_name: str, value: Any, reason: str | None = None):
        self.type_name = type_name
        self.value = value
        self.reason = reason
        message = f"Cannot coerce {type(value).__name__} to {type_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FieldType(ABC):
    """
    Abstract base class for all field types.

    Subclasses implement coerce() and may override dump() and matches().
    """

    name: str = "any"

    @abstractmethod
    def coerce(self, value: Any) -> Any:
        """
        Convert a raw external value into the internal value.

        Args:
            value: Raw value taken from the input (never None)

        Returns:
            The coerced value

        Raises:
            CoercionError: If the value cannot be converted
        """

    def dump(self, value: Any) -> Any:
        """Convert an internal value back into its external representation."""
        return value

    def matches(self, value: Any) -> bool:
        """Return True if the value is already an internal value of this type."""
        try:
            return self.coerce(value) == value
        except CoercionError:
            return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"
