"""
Record definitions: the frozen model, the fluent builder and the registry.
"""

from .builder import DEFAULT_ALIASES, RecordBuilder
from .definition import DEFAULT_STAGES, FieldDefinition, NestedDefinition, RecordDefinition, RecordEntity
from .registry import DefinitionRegistry

__all__ = [
    "RecordDefinition",
    "FieldDefinition",
    "NestedDefinition",
    "RecordEntity",
    "RecordBuilder",
    "DefinitionRegistry",
    "DEFAULT_STAGES",
    "DEFAULT_ALIASES",
]
