"""
Record engine for running record definitions against input.

The engine wraps a record definition, runs the validation pipeline on input
and produces validation results, sessions or entities.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from recordkit.core.models import ValidationResult
from recordkit.core.pipeline import (
    ValidationSession,
    dump_entity,
    materialize,
    materialize_strict,
    run_pipeline,
)
from recordkit.core.schema import RecordDefinition
from recordkit.observability.logger import get_logger, log_operation
from recordkit.observability.metrics import record_session_metrics, track_duration, validation_duration_seconds

logger = get_logger(__name__)


class RecordEngine:
    """
    Runs a record definition against input.

    All errors found in a run are collected; nothing is raised for bad data
    except by new_strict().
    """

    def __init__(self, definition: RecordDefinition):
        """
        Initialize the engine.

        Args:
            definition: The record definition to validate against
        """
        if not isinstance(definition, RecordDefinition):
            raise TypeError(f"RecordEngine requires a RecordDefinition, got {type(definition).__name__}")
        self.definition = definition

    def run(self, data: Any = None, bindings: Mapping[str, Any] | None = None) -> ValidationSession:
        """
        Run the pipeline and return the staged session.

        Args:
            data: Mapping, entity, existing session or None
            bindings: Names visible to rule expressions for this run

        Returns:
            The staged ValidationSession
        """
        record = self.definition.name
        with track_duration(validation_duration_seconds, record=record):
            session = run_pipeline(self.definition, data, bindings)

        record_session_metrics(session)
        logger.debug(
            "Validation run finished",
            extra={"record": record, "valid": session.valid, "error_count": len(session.errors)},
        )
        return session

    def validate(self, data: Any = None, bindings: Mapping[str, Any] | None = None) -> ValidationResult:
        """
        Validate input.

        Returns:
            ValidationResult with changes, own errors and nested error messages
        """
        return self.run(data, bindings).to_result()

    def new(self, data: Any = None, bindings: Mapping[str, Any] | None = None) -> BaseModel:
        """
        Build an entity from input, whether or not it is valid.
        """
        return materialize(self.run(data, bindings))

    def new_strict(self, data: Any = None, bindings: Mapping[str, Any] | None = None) -> BaseModel:
        """
        Build an entity from valid input.

        Raises:
            AggregateValidationFailure: If the input is invalid
        """
        return materialize_strict(self.run(data, bindings))

    def validate_batch(
        self,
        inputs: Iterable[Any],
        bindings: Mapping[str, Any] | None = None,
    ) -> list[ValidationResult]:
        """
        Validate several inputs with the same bindings.

        Returns:
            List of ValidationResult objects, one per input
        """
        with log_operation("Validating batch", logger=logger, record=self.definition.name):
            return [self.validate(data, bindings) for data in inputs]

    def dump(self, entity: BaseModel) -> dict[str, Any]:
        """Convert an entity into external values."""
        return dump_entity(self.definition, entity)

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of the loaded definition.

        Returns:
            Dictionary with field, rule and nesting counts
        """
        return {
            "record": self.definition.name,
            "total_fields": len(self.definition.fields),
            "required_fields": sorted(self.definition.required),
            "total_rules": sum(self._count_by_type().values()),
            "rules_by_type": self._count_by_type(),
            "stages": list(self.definition.stages),
            "nested": {
                nested.name: {"record": nested.definition.name, "cardinality": nested.cardinality}
                for nested in self.definition.nested
            },
        }

    def _count_by_type(self) -> dict[str, int]:
        """Count declared rules by option."""
        counts: dict[str, int] = {}
        for field in self.definition.fields:
            options = [validator.rule_type for validator in field.validators]
            options += [option for option in ("derive", "when", "map") if getattr(field, option) is not None]
            options += ["block"] * len(field.block)
            for option in options:
                counts[option] = counts.get(option, 0) + 1
        return counts


def validate(definition: RecordDefinition, data: Any = None, bindings: Mapping[str, Any] | None = None) -> ValidationResult:
    return RecordEngine(definition).validate(data, bindings)


def new(definition: RecordDefinition, data: Any = None, bindings: Mapping[str, Any] | None = None) -> BaseModel:
    return RecordEngine(definition).new(data, bindings)


def new_strict(definition: RecordDefinition, data: Any = None, bindings: Mapping[str, Any] | None = None) -> BaseModel:
    return RecordEngine(definition).new_strict(data, bindings)
