"""
Record definition models.

A RecordDefinition is built once per record shape and never mutated
afterwards; it is shared read-only by every validation run. All per-run state
lives on the ValidationSession.
"""

from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, create_model

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions.evaluator import Rule
from recordkit.core.types import FieldType
from recordkit.core.validators import BaseValidator

DEFAULT_STAGES = ("derive", "validations", "block", "when", "map")


def check_layout(record: str, names: list[str], required: Iterable[str], stages: Iterable[str]) -> None:
    """
    Check the names of a record definition.

    Raises:
        DefinitionError: On invalid or duplicate field names, required names
                         that are not fields, or duplicate stages
    """
    seen: set[str] = set()
    for name in names:
        if not isinstance(name, str) or not name.isidentifier() or name.startswith("_"):
            raise DefinitionError(f"Invalid field name: {name!r}", record=record)
        if name in seen:
            raise DefinitionError(f"Duplicate field name: {name}", record=record)
        seen.add(name)

    unknown = set(required) - seen
    if unknown:
        raise DefinitionError(f"Required names are not fields: {sorted(unknown)}", record=record)

    stages = list(stages)
    if len(set(stages)) != len(stages):
        raise DefinitionError(f"Duplicate stages in {stages}", record=record)


class RecordEntity(BaseModel):
    """
    Base class of the entity models generated for record definitions.

    Fields read by attribute or by item: ``entity.age``, ``entity["age"]`` and
    ``entity.get("age", default)``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    def __getitem__(self, name: str) -> Any:
        if name not in type(self).model_fields:
            raise KeyError(name)
        return getattr(self, name)

    def __contains__(self, name: object) -> bool:
        return name in type(self).model_fields

    def get(self, name: str, default: Any = None) -> Any:
        """Value of a field, or default when the record has no such field."""
        try:
            return self[name]
        except KeyError:
            return default


class FieldDefinition(BaseModel):
    """
    Declaration-time description of one scalar field.

    Attributes:
        name: Field name, unique within its record
        type: Field type used for coercion and dumping
        default: Value used when the input does not supply one
        allow_empty: Keep whitespace-only strings instead of treating them as absent
        derive: Rule computing the value before validation
        validations: Declared constraint options (option -> bound)
        validators: Compiled constraint validators, in declaration order
        block: Ordered (condition, outcome) rule pairs
        when: Boolean guard rule
        map: Rule transforming the value after validation
        extra_options: Options consumed by custom pipeline stages
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    type: FieldType
    default: Any = None
    allow_empty: bool = False
    derive: Rule | None = None
    validations: dict[str, Any] = Field(default_factory=dict)
    validators: tuple[BaseValidator, ...] = ()
    block: tuple[tuple[Rule, Rule], ...] = ()
    when: Rule | None = None
    map: Rule | None = None
    extra_options: dict[str, Any] = Field(default_factory=dict)

    def has_option(self, option: str) -> bool:
        if option in ("derive", "when", "map"):
            return getattr(self, option) is not None
        if option == "block":
            return bool(self.block)
        return option in self.validations or option in self.extra_options


class NestedDefinition(BaseModel):
    """
    A nested record relationship.

    Attributes:
        name: Field name holding the nested record(s)
        definition: Definition of the nested record
        cardinality: "one" for a single nested record, "many" for a list
        defaults_to_entity: For "one": when absent, default to an entity built
                            from the nested record's defaults instead of None
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    definition: "RecordDefinition"
    cardinality: Literal["one", "many"] = "one"
    defaults_to_entity: bool = False


class RecordDefinition(BaseModel):
    """
    Static description of a record: fields, nesting, required set and stage chain.

    Field declaration order is significant: it is the only order guarantee for
    which sibling values a rule can see.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    fields: tuple[FieldDefinition, ...] = ()
    required: frozenset[str] = frozenset()
    stages: tuple[str, ...] = DEFAULT_STAGES
    nested: tuple[NestedDefinition, ...] = ()

    _field_index: dict[str, int] = PrivateAttr(default_factory=dict)
    _nested_by_name: dict[str, NestedDefinition] = PrivateAttr(default_factory=dict)
    _entity_model: type[RecordEntity] | None = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        check_layout(
            self.name,
            [f.name for f in self.fields] + [n.name for n in self.nested],
            self.required,
            self.stages,
        )
        self._field_index = {f.name: index for index, f in enumerate(self.fields)}
        self._nested_by_name = {n.name: n for n in self.nested}
        self._entity_model = self._build_entity_model()

    def _build_entity_model(self) -> type[RecordEntity]:
        attributes: dict[str, Any] = {}
        for field in self.fields:
            attributes[field.name] = (Any, field.default)
        for nested in self.nested:
            if nested.cardinality == "many":
                attributes[nested.name] = (list, Field(default_factory=list))
            elif nested.defaults_to_entity:
                attributes[nested.name] = (Any, Field(default_factory=nested.definition.default_entity))
            else:
                attributes[nested.name] = (Any, None)

        return create_model(self.name, __base__=RecordEntity, **attributes)

    @property
    def entity_model(self) -> type[RecordEntity]:
        """The pydantic model class instantiated by the materializer."""
        return self._entity_model

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def default_entity(self) -> RecordEntity:
        """An entity holding only declared defaults."""
        return self._entity_model.model_construct()

    def get_field(self, name: str) -> FieldDefinition | None:
        index = self._field_index.get(name)
        return None if index is None else self.fields[index]

    def field_index(self, name: str) -> int:
        """Declaration index of a scalar field; nested fields sort after all scalars."""
        if name in self._field_index:
            return self._field_index[name]
        if name in self._nested_by_name:
            return len(self.fields) + list(self._nested_by_name).index(name)
        raise KeyError(name)

    def get_nested(self, name: str) -> NestedDefinition | None:
        return self._nested_by_name.get(name)

    def is_required(self, name: str) -> bool:
        return name in self.required

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return self is other

    def __repr__(self) -> str:
        return f"RecordDefinition({self.name}, fields={list(self.field_names)}, nested={[n.name for n in self.nested]})"


NestedDefinition.model_rebuild()
