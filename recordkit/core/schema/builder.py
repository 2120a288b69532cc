"""
Programmatic construction of record definitions.

Example:
    >>> from recordkit.core.expressions import ref
    >>> person = (
    ...     RecordBuilder("Person")
    ...     .field("age", "integer", required=True, gt=0, lt=ref("max_age"))
    ...     .field("name", "string", min=1)
    ...     .build()
    ... )
"""

from collections.abc import Iterable, Mapping
from typing import Any

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions import compile_rule
from recordkit.core.pipeline.stages import recognized_options
from recordkit.core.types import resolve_type
from recordkit.core.validators import VALIDATION_OPTIONS, build_validators
from recordkit.observability.logger import get_logger

from .definition import DEFAULT_STAGES, FieldDefinition, NestedDefinition, RecordDefinition, check_layout

logger = get_logger(__name__)

DEFAULT_ALIASES: dict[str, str] = {
    "lt": "less_than",
    "gt": "greater_than",
    "le": "less_than_or_equal_to",
    "ge": "greater_than_or_equal_to",
    "eq": "equal_to",
    "ne": "not_equal_to",
}

# Options with dedicated FieldDefinition attributes
RULE_OPTIONS = ("derive", "when", "map", "block")


class RecordBuilder:
    """
    Fluent builder for RecordDefinition.

    Every method returns the builder; build() checks the whole definition and
    returns the frozen RecordDefinition.
    """

    def __init__(
        self,
        name: str,
        stages: Iterable[str] = DEFAULT_STAGES,
        aliases: Mapping[str, str] | None = None,
    ):
        self.name = name
        self.stages = tuple(stages)
        self.aliases = {**DEFAULT_ALIASES, **(aliases or {})}
        self._fields: list[FieldDefinition] = []
        self._nested: list[NestedDefinition] = []
        self._required: set[str] = set()

        self._recognized = recognized_options(self.stages)
        for alias, option in (aliases or {}).items():
            if option not in self._recognized:
                raise DefinitionError(f"Alias '{alias}' maps to unknown option '{option}'", record=name)

    def field(
        self,
        name: str,
        type: Any = "string",
        *,
        required: bool = False,
        default: Any = None,
        allow_empty: bool = False,
        **options: Any,
    ) -> "RecordBuilder":
        """
        Declare a scalar field.

        Args:
            name: Field name
            type: Type name, type spec or FieldType (see resolve_type)
            required: The field must hold a value after coercion
            default: Value used when the input does not supply one
            allow_empty: Keep whitespace-only strings
            **options: derive, when, map, block, validation options (or their
                       aliases) and options of custom stages
        """
        try:
            field_type = resolve_type(type)
        except DefinitionError as e:
            raise DefinitionError(e.message, record=self.name, field=name) from e

        options = {self.aliases.get(option, option): value for option, value in options.items()}
        unknown = [option for option in options if option not in self._recognized]
        if unknown:
            raise DefinitionError(f"Unknown options: {', '.join(sorted(unknown))}", record=self.name, field=name)

        if required and default is not None:
            logger.warning(
                "Required field declares a default and can never fail the required check",
                extra={"record": self.name, "field": name},
            )

        validations = {option: value for option, value in options.items() if option in VALIDATION_OPTIONS}
        try:
            validators = build_validators(name, validations)
        except DefinitionError as e:
            raise DefinitionError(e.message, record=self.name, field=name) from e

        rules = {
            option: compile_rule(options[option], option, record=self.name, field=name)
            for option in ("derive", "when", "map")
            if options.get(option) is not None
        }

        extra_options = {
            option: value
            for option, value in options.items()
            if option not in VALIDATION_OPTIONS and option not in RULE_OPTIONS
        }

        self._fields.append(
            FieldDefinition(
                name=name,
                type=field_type,
                default=default,
                allow_empty=allow_empty,
                validations=validations,
                validators=tuple(validators),
                block=self._compile_block(name, options.get("block")),
                extra_options=extra_options,
                **rules,
            )
        )
        if required:
            self._required.add(name)
        return self

    def _compile_block(self, field_name: str, clauses: Any) -> tuple:
        if clauses is None:
            return ()
        if isinstance(clauses, (str, bytes)) or not isinstance(clauses, Iterable):
            raise DefinitionError("block must be a list of clauses", record=self.name, field=field_name)

        compiled = []
        for clause in clauses:
            if not isinstance(clause, (tuple, list)) or len(clause) != 2:
                raise DefinitionError(
                    "All clauses should be of the format (condition, error message)",
                    record=self.name,
                    field=field_name,
                )
            condition, outcome = clause
            compiled.append(
                (
                    compile_rule(condition, "block", record=self.name, field=field_name),
                    compile_rule(outcome, "block", record=self.name, field=field_name),
                )
            )
        return tuple(compiled)

    def embeds_one(
        self,
        name: str,
        definition: "RecordDefinition | RecordBuilder",
        *,
        required: bool = False,
        defaults_to_entity: bool | None = None,
    ) -> "RecordBuilder":
        """
        Declare a single nested record.

        An absent optional relationship defaults to an entity built from the
        nested record's defaults unless defaults_to_entity=False.
        """
        if defaults_to_entity is None:
            defaults_to_entity = not required
        return self._embed(name, definition, "one", required, defaults_to_entity)

    def embeds_many(
        self,
        name: str,
        definition: "RecordDefinition | RecordBuilder",
        *,
        required: bool = False,
    ) -> "RecordBuilder":
        """Declare a list of nested records."""
        return self._embed(name, definition, "many", required, False)

    def _embed(self, name, definition, cardinality, required, defaults_to_entity) -> "RecordBuilder":
        if isinstance(definition, RecordBuilder):
            definition = definition.build()
        if not isinstance(definition, RecordDefinition):
            raise DefinitionError(
                f"Nested definition must be a RecordDefinition, got {type(definition).__name__}",
                record=self.name,
                field=name,
            )

        self._nested.append(
            NestedDefinition(
                name=name,
                definition=definition,
                cardinality=cardinality,
                defaults_to_entity=defaults_to_entity,
            )
        )
        if required:
            self._required.add(name)
        return self

    def build(self) -> RecordDefinition:
        """
        Build the frozen definition.

        Raises:
            DefinitionError: On duplicate or invalid names
        """
        check_layout(
            self.name,
            [f.name for f in self._fields] + [n.name for n in self._nested],
            self._required,
            self.stages,
        )
        return RecordDefinition(
            name=self.name,
            fields=tuple(self._fields),
            required=frozenset(self._required),
            stages=self.stages,
            nested=tuple(self._nested),
        )
