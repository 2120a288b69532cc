"""
recordkit - declarative record validation and transformation.

Define a record once, then turn untrusted input into a validated entity or a
structured set of errors:

    >>> from recordkit import RecordBuilder, ref, validate
    >>> person = RecordBuilder("Person").field("age", "integer", required=True, gt=0, lt=ref("max_age")).build()
    >>> validate(person, {"age": "42"}, {"max_age": 100}).valid
    True
"""

from recordkit.core.errors import DefinitionError, SessionStateError
from recordkit.core.expressions import (
    EvaluationContext,
    UnboundNameError,
    call,
    const,
    expr,
    parse_expression,
    ref,
)
from recordkit.core.models import ErrorKind, FieldError, ValidationResult
from recordkit.core.pipeline import (
    AggregateValidationFailure,
    SessionState,
    ValidationSession,
    dump_entity,
    materialize,
    materialize_strict,
    run_pipeline,
)
from recordkit.core.pipeline.stages import PipelineStage, register_stage
from recordkit.core.rules import RecordConfigLoader, RecordEngine, load_records, new, new_strict, validate
from recordkit.core.schema import (
    DefinitionRegistry,
    FieldDefinition,
    NestedDefinition,
    RecordBuilder,
    RecordDefinition,
    RecordEntity,
)
from recordkit.core.types import (
    CoercionError,
    CustomType,
    EnumType,
    FieldType,
    UnionType,
    extend_type,
    resolve_type,
)

__version__ = "0.1.0"

__all__ = [
    "AggregateValidationFailure",
    "CoercionError",
    "CustomType",
    "DefinitionError",
    "DefinitionRegistry",
    "EnumType",
    "ErrorKind",
    "EvaluationContext",
    "FieldDefinition",
    "FieldError",
    "FieldType",
    "NestedDefinition",
    "PipelineStage",
    "RecordBuilder",
    "RecordConfigLoader",
    "RecordDefinition",
    "RecordEngine",
    "RecordEntity",
    "SessionState",
    "SessionStateError",
    "UnboundNameError",
    "UnionType",
    "ValidationResult",
    "ValidationSession",
    "call",
    "const",
    "dump_entity",
    "expr",
    "extend_type",
    "load_records",
    "materialize",
    "materialize_strict",
    "new",
    "new_strict",
    "parse_expression",
    "ref",
    "register_stage",
    "resolve_type",
    "run_pipeline",
    "validate",
]
