"""
Record configuration management.

Loads record definitions from YAML files and turns them into a registry of
RecordDefinitions.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions import const, parse_expression, ref
from recordkit.core.schema import DEFAULT_STAGES, DefinitionRegistry, RecordBuilder, RecordDefinition
from recordkit.observability.logger import get_logger

logger = get_logger(__name__)

RECORD_KEYS = ("stages", "aliases", "fields", "embeds_one", "embeds_many")
FIELD_KEYS = ("type", "required", "default", "allow_empty")
# Options whose plain string values are expression source
EXPRESSION_OPTIONS = ("derive", "when", "map")


class RecordConfigLoader:
    """
    Loads record definitions from YAML configuration files.

    Expected YAML format:
    ```yaml
    records:
      Person:
        fields:
          age:
            type: integer
            required: true
            gt: 0
            lt: {ref: max_age}
          score:
            type: integer
            derive: "rating + category"
            when: "score > rating"
            block:
              - ["score > 90", "too high"]
        embeds_one:
          address: {record: Address, required: false}
        embeds_many:
          tags: {record: Tag}

      Address:
        fields:
          city: {required: true}
    ```

    Plain strings under derive, when and map are expressions. Validation
    bounds are constants unless written as {ref: name} or {expr: "..."}.
    Records may reference each other in any order.
    """

    def __init__(self, config_path: str | Path, functions: Mapping[str, Callable[..., Any]] | None = None):
        """
        Initialize the record config loader.

        Args:
            config_path: Path to the YAML configuration file
            functions: Extra helper functions callable from expressions
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Record configuration file not found: {config_path}")
        self.functions = functions

    def load(self) -> DefinitionRegistry:
        """
        Load and build every record in the file.

        Returns:
            A frozen DefinitionRegistry

        Raises:
            DefinitionError: If the configuration is invalid
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        registry = load_records(config, self.functions)
        logger.info(
            "Loaded record definitions",
            extra={"config_path": str(self.config_path), "records": registry.names()},
        )
        return registry


def load_records(config: Any, functions: Mapping[str, Callable[..., Any]] | None = None) -> DefinitionRegistry:
    """
    Build a registry from an already parsed configuration.

    Args:
        config: Parsed YAML document with a top-level "records" mapping
        functions: Extra helper functions callable from expressions

    Returns:
        A frozen DefinitionRegistry
    """
    if not isinstance(config, Mapping) or "records" not in config:
        raise DefinitionError("Configuration must contain a 'records' section")

    records = config["records"]
    if not isinstance(records, Mapping) or not records:
        raise DefinitionError("'records' must be a non-empty mapping of record name to record")

    return _RecordAssembler(records, functions).assemble()


class _RecordAssembler:
    """Builds records on demand so references can appear in any order."""

    def __init__(self, records: Mapping[str, Any], functions: Mapping[str, Callable[..., Any]] | None):
        self.records = records
        self.functions = functions
        self.built: dict[str, RecordDefinition] = {}
        self.building: list[str] = []

    def assemble(self) -> DefinitionRegistry:
        registry = DefinitionRegistry()
        for name in self.records:
            registry.register(self.build(name))
        return registry.freeze()

    def build(self, name: str) -> RecordDefinition:
        if name in self.built:
            return self.built[name]
        if name in self.building:
            cycle = " -> ".join(self.building[self.building.index(name):] + [name])
            raise DefinitionError(f"Cyclic record reference: {cycle}", record=name)
        if name not in self.records:
            raise DefinitionError("Unknown record", record=name)

        spec = self.records[name] or {}
        if not isinstance(spec, Mapping):
            raise DefinitionError("Record must be a mapping", record=name)
        unknown = set(spec) - set(RECORD_KEYS)
        if unknown:
            raise DefinitionError(f"Unknown record keys: {sorted(unknown)}", record=name)

        self.building.append(name)
        try:
            builder = RecordBuilder(name, stages=spec.get("stages") or DEFAULT_STAGES, aliases=spec.get("aliases"))

            for field_name, field_spec in (spec.get("fields") or {}).items():
                self._add_field(builder, field_name, field_spec or {})

            for field_name, embed in (spec.get("embeds_one") or {}).items():
                embed = self._embed_spec(name, field_name, embed)
                builder.embeds_one(
                    field_name,
                    self.build(embed["record"]),
                    required=bool(embed.get("required", False)),
                    defaults_to_entity=embed.get("defaults_to_entity"),
                )

            for field_name, embed in (spec.get("embeds_many") or {}).items():
                embed = self._embed_spec(name, field_name, embed)
                builder.embeds_many(
                    field_name,
                    self.build(embed["record"]),
                    required=bool(embed.get("required", False)),
                )

            definition = builder.build()
        finally:
            self.building.pop()

        self.built[name] = definition
        return definition

    def _embed_spec(self, record: str, field_name: str, embed: Any) -> Mapping[str, Any]:
        if isinstance(embed, str):
            return {"record": embed}
        if not isinstance(embed, Mapping) or "record" not in embed:
            raise DefinitionError("Embedded field must name a record", record=record, field=field_name)
        return embed

    def _add_field(self, builder: RecordBuilder, field_name: str, spec: Any) -> None:
        if not isinstance(spec, Mapping):
            raise DefinitionError("Field must be a mapping of options", record=builder.name, field=field_name)

        options: dict[str, Any] = {}
        for option, value in spec.items():
            if option in FIELD_KEYS:
                continue
            if option in EXPRESSION_OPTIONS:
                options[option] = self._rule(value, expression_strings=True)
            elif option == "block":
                options[option] = self._block(builder.name, field_name, value)
            else:
                options[option] = self._rule(value, expression_strings=False)

        builder.field(
            field_name,
            spec.get("type", "string"),
            required=bool(spec.get("required", False)),
            default=spec.get("default"),
            allow_empty=bool(spec.get("allow_empty", False)),
            **options,
        )

    def _rule(self, value: Any, expression_strings: bool) -> Any:
        """Turn a configured value into a rule body."""
        if isinstance(value, Mapping) and len(value) == 1:
            (kind, body), = value.items()
            if kind == "ref":
                return ref(body)
            if kind == "expr":
                return parse_expression(body, self.functions)
            if kind == "const":
                return const(body)
        if expression_strings and isinstance(value, str):
            return parse_expression(value, self.functions)
        return value

    def _block(self, record: str, field_name: str, clauses: Any) -> list[tuple[Any, Any]]:
        if not isinstance(clauses, list):
            raise DefinitionError("block must be a list of clauses", record=record, field=field_name)

        compiled = []
        for clause in clauses:
            if not isinstance(clause, (list, tuple)) or len(clause) != 2:
                raise DefinitionError(
                    "All clauses should be of the format (condition, error message)",
                    record=record,
                    field=field_name,
                )
            condition, outcome = clause
            if isinstance(outcome, Mapping) and set(outcome) == {"error"}:
                outcome = ("error", outcome["error"])
            elif isinstance(outcome, list):
                outcome = tuple(outcome)
            else:
                outcome = self._rule(outcome, expression_strings=False)
            compiled.append((self._rule(condition, expression_strings=True), outcome))
        return compiled
