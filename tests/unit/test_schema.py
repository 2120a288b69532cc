"""
Unit tests for record definitions, the builder and the registry.
"""

import logging

import pytest

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions import RuleKind, ref
from recordkit.core.schema import DefinitionRegistry, RecordBuilder, RecordDefinition, RecordEntity


class TestRecordBuilder:
    """Tests for RecordBuilder"""

    def test_build_fields_in_declaration_order(self):
        """Test fields keep their declaration order"""
        definition = RecordBuilder("Person").field("b").field("a").field("c").build()

        assert definition.field_names == ("b", "a", "c")
        assert definition.field_index("a") == 1

    def test_required_set(self):
        """Test required fields are collected"""
        definition = RecordBuilder("Person").field("age", "integer", required=True).field("name").build()

        assert definition.required == frozenset({"age"})
        assert definition.is_required("age")
        assert not definition.is_required("name")

    def test_aliases_map_to_validation_options(self):
        """Test lt/gt/le/ge/eq/ne aliases"""
        definition = RecordBuilder("Person").field("age", "integer", gt=0, lt=ref("max_age")).build()
        field = definition.get_field("age")

        assert list(field.validations) == ["greater_than", "less_than"]
        assert field.validators[1].bound.kind is RuleKind.CONTEXT

    def test_custom_alias_to_unknown_option(self):
        """Test aliases must target a recognised option"""
        with pytest.raises(DefinitionError, match="Alias"):
            RecordBuilder("Person", aliases={"short": "shorter_than"})

    def test_custom_aliases_extend_defaults(self):
        """Test custom aliases are added to the built-in ones"""
        definition = RecordBuilder("Doc", aliases={"minimum": "min"}).field("n", "string", minimum=2, gt=1).build()

        assert list(definition.get_field("n").validations) == ["min", "greater_than"]

    def test_custom_alias_overrides_default(self):
        """Test a custom alias replaces a built-in alias of the same name"""
        definition = RecordBuilder("Doc", aliases={"gt": "min"}).field("n", "string", gt=2).build()

        assert list(definition.get_field("n").validations) == ["min"]

    def test_rules_are_compiled(self):
        """Test derive, when and map are compiled once"""
        definition = (
            RecordBuilder("Score")
            .field("score", "integer", derive=lambda: 1, when=ref("score") > 0, map=lambda v: v * 2)
            .build()
        )
        field = definition.get_field("score")

        assert field.derive.kind is RuleKind.THUNK
        assert field.when.kind is RuleKind.CONTEXT
        assert field.map.kind is RuleKind.VALUE

    def test_rule_arity_checked_at_definition_time(self):
        """Test two-argument rules are rejected"""
        with pytest.raises(DefinitionError, match="Score.score"):
            RecordBuilder("Score").field("score", "integer", derive=lambda a, b: a + b)

    def test_unknown_option(self):
        """Test unknown options raise DefinitionError"""
        with pytest.raises(DefinitionError, match="Unknown options: colour"):
            RecordBuilder("Person").field("name", colour="red")

    def test_unknown_type(self):
        """Test unknown types raise DefinitionError"""
        with pytest.raises(DefinitionError, match="Person.age"):
            RecordBuilder("Person").field("age", "money")

    def test_duplicate_field(self):
        """Test duplicate names raise DefinitionError"""
        with pytest.raises(DefinitionError, match="Duplicate field name"):
            RecordBuilder("Person").field("name").field("name").build()

    @pytest.mark.parametrize("name", ["_private", "has space", "1st"])
    def test_invalid_field_names(self, name):
        """Test names must be public identifiers"""
        with pytest.raises(DefinitionError, match="Invalid field name"):
            RecordBuilder("Person").field(name).build()

    def test_unknown_stage(self):
        """Test stage names must be registered"""
        with pytest.raises(DefinitionError, match="Unknown pipeline stage"):
            RecordBuilder("Person", stages=["derive", "audit"])

    def test_options_follow_active_stages(self):
        """Test options of stages not in the chain are unknown"""
        with pytest.raises(DefinitionError, match="Unknown options"):
            RecordBuilder("Person", stages=["derive"]).field("age", "integer", less_than=10)

    def test_malformed_block_clause(self):
        """Test block clauses must be pairs"""
        with pytest.raises(DefinitionError, match="All clauses should be of the format"):
            RecordBuilder("Person").field("age", "integer", block=[(ref("age") > 1,)])

    def test_block_is_compiled(self):
        """Test block clauses are compiled into rule pairs"""
        definition = RecordBuilder("Person").field("age", "integer", block=[(ref("age") > 1, "too old")]).build()
        condition, outcome = definition.get_field("age").block[0]

        assert condition.kind is RuleKind.CONTEXT
        assert outcome.kind is RuleKind.CONSTANT

    def test_required_with_default_warns(self, caplog):
        """Test a required field with a default logs a warning"""
        logger = logging.getLogger("recordkit")
        logger.addHandler(caplog.handler)
        try:
            RecordBuilder("Person").field("age", "integer", required=True, default=18)
        finally:
            logger.removeHandler(caplog.handler)

        assert any("can never fail the required check" in r.getMessage() for r in caplog.records)

    def test_embeds(self, address_definition):
        """Test nested relationships"""
        definition = (
            RecordBuilder("Person")
            .embeds_one("address", address_definition)
            .embeds_many("previous", address_definition, required=True)
            .build()
        )

        address = definition.get_nested("address")
        assert address.cardinality == "one"
        assert address.defaults_to_entity is True
        assert definition.get_nested("previous").cardinality == "many"
        assert definition.is_required("previous")

    def test_required_embed_does_not_default_to_entity(self, address_definition):
        """Test defaults_to_entity is off for required relationships"""
        definition = RecordBuilder("Person").embeds_one("address", address_definition, required=True).build()
        assert definition.get_nested("address").defaults_to_entity is False

    def test_embed_accepts_builder(self):
        """Test nested builders are built on the fly"""
        definition = RecordBuilder("Person").embeds_one("address", RecordBuilder("Address").field("city")).build()
        assert definition.get_nested("address").definition.name == "Address"

    def test_embed_name_clash(self, address_definition):
        """Test nested names share the field namespace"""
        with pytest.raises(DefinitionError, match="Duplicate field name"):
            RecordBuilder("Person").field("address").embeds_one("address", address_definition).build()


class TestRecordDefinition:
    """Tests for RecordDefinition"""

    def test_definition_is_frozen(self, person_definition):
        """Test definitions cannot be modified"""
        with pytest.raises(Exception):
            person_definition.name = "Other"

    def test_entity_model_defaults(self):
        """Test the generated entity holds declared defaults"""
        definition = RecordBuilder("Person").field("age", "integer", default=18).field("name").build()
        entity = definition.default_entity()

        assert type(entity).__name__ == "Person"
        assert entity.age == 18
        assert entity.name is None

    def test_nested_default_entity(self, address_definition):
        """Test optional embeds default to a nested entity"""
        definition = (
            RecordBuilder("Person")
            .embeds_one("address", address_definition)
            .embeds_one("billing", address_definition, defaults_to_entity=False)
            .embeds_many("previous", address_definition)
            .build()
        )
        entity = definition.default_entity()

        assert type(entity.address).__name__ == "Address"
        assert entity.billing is None
        assert entity.previous == []

    def test_entity_item_access(self):
        """Test entities support item access by field name"""
        definition = RecordBuilder("Person").field("age", "integer", default=18).field("name").build()
        entity = definition.default_entity()

        assert entity["age"] == 18
        assert entity.get("name") is None
        assert entity.get("missing", 1) == 1
        assert "age" in entity
        assert "missing" not in entity
        with pytest.raises(KeyError):
            entity["missing"]

    def test_entities_share_base_class(self, person_definition):
        """Test generated entity models derive from RecordEntity"""
        assert issubclass(person_definition.entity_model, RecordEntity)
        assert isinstance(person_definition.default_entity(), RecordEntity)

    def test_required_names_must_exist(self):
        """Test required names are checked against fields"""
        with pytest.raises(ValueError, match="ghost"):
            RecordDefinition(name="Person", required=frozenset({"ghost"}))


class TestDefinitionRegistry:
    """Tests for DefinitionRegistry"""

    def test_register_and_get(self, person_definition):
        """Test definitions are looked up by name"""
        registry = DefinitionRegistry()
        registry.register(person_definition)

        assert registry.get("Person") is person_definition
        assert "Person" in registry
        assert registry.names() == ["Person"]

    def test_duplicate_name(self, person_definition):
        """Test names are unique"""
        registry = DefinitionRegistry()
        registry.register(person_definition)

        with pytest.raises(DefinitionError):
            registry.register(person_definition)

    def test_frozen_registry(self, person_definition):
        """Test a frozen registry rejects registration"""
        registry = DefinitionRegistry().freeze()

        with pytest.raises(DefinitionError, match="frozen"):
            registry.register(person_definition)

    def test_unknown_record(self):
        """Test unknown names raise KeyError"""
        with pytest.raises(KeyError):
            DefinitionRegistry().get("Nope")
