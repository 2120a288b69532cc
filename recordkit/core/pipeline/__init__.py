"""
Validation pipeline: sessions, stages, the stage chain and materialization.
"""

from .session import SessionState, ValidationSession
from .chain import run_pipeline, run_session
from .materializer import AggregateValidationFailure, dump_entity, materialize, materialize_strict

__all__ = [
    "SessionState",
    "ValidationSession",
    "run_pipeline",
    "run_session",
    "AggregateValidationFailure",
    "materialize",
    "materialize_strict",
    "dump_entity",
]
