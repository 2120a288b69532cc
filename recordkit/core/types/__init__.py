"""
Field types: the coercion/dump contract consumed by the pipeline.
"""

from .adapter import ArrayType, PydanticType
from .base import CoercionError, FieldType
from .custom import CustomType, extend_type
from .enum import EnumType
from .registry import TYPE_MAPPING, resolve_type
from .union import UnionType

__all__ = [
    "FieldType",
    "CoercionError",
    "PydanticType",
    "ArrayType",
    "EnumType",
    "UnionType",
    "CustomType",
    "extend_type",
    "TYPE_MAPPING",
    "resolve_type",
]
