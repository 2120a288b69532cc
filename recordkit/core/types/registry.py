"""
Type name resolution.

Maps the type names used in record definitions (and YAML configuration) to
FieldType instances.
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from recordkit.core.errors import DefinitionError

from .adapter import ArrayType, PydanticType
from .base import FieldType
from .enum import EnumType
from .union import UnionType

TYPE_MAPPING: dict[str, Any] = {
    "string": str,
    "str": str,
    "integer": int,
    "int": int,
    "float": float,
    "double": float,
    "decimal": Decimal,
    "boolean": bool,
    "bool": bool,
    "date": date,
    "datetime": datetime,
    "time": time,
    "uuid": UUID,
    "map": dict[str, Any],
    "dict": dict[str, Any],
    "array": list[Any],
    "list": list[Any],
    "any": Any,
}

_named_types: dict[str, FieldType] = {}


def _named(name: str) -> FieldType:
    key = name.lower()
    if key not in TYPE_MAPPING:
        raise DefinitionError(f"Unsupported type: {name}")
    if key not in _named_types:
        _named_types[key] = PydanticType(TYPE_MAPPING[key], name=key)
    return _named_types[key]


def resolve_type(spec: Any) -> FieldType:
    """
    Resolve a type specification into a FieldType.

    Accepted forms:
    - a FieldType instance
    - a type name ("integer", "decimal", ...)
    - {"array": <spec>}
    - {"enum": [names]} or {"enum": {name: dumped}}
    - {"union": [<spec>, ...], "eager": bool}
    - an Enum subclass
    - any other annotation pydantic can validate (int, list[str], ...)

    Raises:
        DefinitionError: If the type cannot be resolved
    """
    if isinstance(spec, FieldType):
        return spec

    if isinstance(spec, str):
        return _named(spec)

    if isinstance(spec, Mapping):
        if "array" in spec:
            return ArrayType(resolve_type(spec["array"]))
        if "enum" in spec:
            try:
                return EnumType(spec["enum"])
            except ValueError as e:
                raise DefinitionError(str(e)) from e
        if "union" in spec:
            members = spec["union"]
            if not isinstance(members, (list, tuple)) or not members:
                raise DefinitionError("union type requires a non-empty list of member types")
            return UnionType([resolve_type(member) for member in members], eager=bool(spec.get("eager", False)))
        raise DefinitionError(f"Unsupported type specification: {dict(spec)!r}")

    if isinstance(spec, type) and issubclass(spec, Enum):
        return EnumType(spec)

    try:
        return PydanticType(spec)
    except Exception as e:
        # pydantic raises a range of schema errors for annotations it cannot handle
        raise DefinitionError(f"Unsupported type: {spec!r} ({e})") from e
