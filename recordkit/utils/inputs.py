"""
Input normalization for validation runs.

Accepted inputs are mappings, pydantic entities (shallow map of the fields
that were explicitly set),
existing validation sessions (their raw params are reused) and None.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from recordkit.core.pipeline.session import ValidationSession


class InputError(TypeError):
    """Raised when an input cannot be turned into params."""
    pass


def is_record_input(value: Any) -> bool:
    """True for values that can be validated as a nested record."""
    return isinstance(value, (Mapping, BaseModel, ValidationSession))


def to_params(data: Any) -> dict[str, Any]:
    """
    Convert an input into a flat dict of raw params.

    Args:
        data: Mapping, pydantic model instance, ValidationSession or None

    Returns:
        Dict keyed by field name

    Raises:
        InputError: If data is of an unsupported type

    Examples:
        >>> to_params(None)
        {}
        >>> to_params({"age": "42"})
        {'age': '42'}
    """
    if data is None:
        return {}
    if isinstance(data, ValidationSession):
        return dict(data.params)
    if isinstance(data, BaseModel):
        # Unset fields hold defaults, such as default nested entities, not input
        return {name: getattr(data, name) for name in type(data).model_fields if name in data.model_fields_set}
    if isinstance(data, Mapping):
        return {key if isinstance(key, str) else str(key): value for key, value in data.items()}
    raise InputError(f"Cannot validate input of type {type(data).__name__}")
