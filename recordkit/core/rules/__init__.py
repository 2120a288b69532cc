"""
Record engine and configuration management.
"""

from .rule_config import RecordConfigLoader, load_records
from .rule_engine import RecordEngine, new, new_strict, validate

__all__ = [
    "RecordEngine",
    "RecordConfigLoader",
    "load_records",
    "validate",
    "new",
    "new_strict",
]
