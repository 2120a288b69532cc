"""
Unit tests for the pipeline stages and the session.
"""

import pytest

from recordkit.core.errors import SessionStateError
from recordkit.core.expressions import build_context, expr, ref
from recordkit.core.models import ErrorKind
from recordkit.core.pipeline import SessionState, ValidationSession, run_pipeline
from recordkit.core.pipeline.stages import STAGE_REGISTRY, PipelineStage, register_stage
from recordkit.core.schema import RecordBuilder


def kinds(session, field):
    return [error.kind for error in session.errors_on(field)]


class TestCoercion:
    """Tests for the coercion step"""

    def test_values_are_coerced(self):
        """Test raw strings become typed values"""
        definition = RecordBuilder("Person").field("age", "integer").field("active", "boolean").build()
        session = run_pipeline(definition, {"age": "42", "active": "yes"})

        assert session.changes == {"age": 42, "active": True}
        assert session.valid

    def test_coercion_failure_is_recorded(self):
        """Test invalid values produce a coercion error"""
        definition = RecordBuilder("Person").field("age", "integer").build()
        session = run_pipeline(definition, {"age": "abc"})

        [error] = session.errors
        assert error.kind is ErrorKind.COERCION
        assert error.message == "is invalid"
        assert error.metadata["type"] == "integer"
        assert "age" in session.coercion_failed
        assert "age" not in session.changes

    def test_unknown_keys_ignored(self):
        """Test input keys without a field are dropped"""
        definition = RecordBuilder("Person").field("name").build()
        session = run_pipeline(definition, {"name": "Bob", "admin": True})

        assert session.changes == {"name": "Bob"}

    def test_default_for_absent_none_and_blank(self):
        """Test defaults fill absent, None and blank values"""
        definition = RecordBuilder("Person").field("country", default="NO").build()

        for params in ({}, {"country": None}, {"country": "   "}):
            assert run_pipeline(definition, params).changes == {"country": "NO"}

    def test_allow_empty_keeps_blank_strings(self):
        """Test allow_empty keeps whitespace-only strings"""
        definition = RecordBuilder("Person").field("note", allow_empty=True).build()
        assert run_pipeline(definition, {"note": " "}).changes == {"note": " "}

    def test_mutable_defaults_are_copied(self):
        """Test runs never share default containers"""
        definition = RecordBuilder("Person").field("tags", {"array": "string"}, default=[]).build()

        first = run_pipeline(definition, {})
        first.changes["tags"].append("x")

        assert run_pipeline(definition, {}).changes["tags"] == []


class TestRequiredness:
    """Tests for the required check"""

    def test_missing_required_field(self):
        """Test absent required fields fail"""
        definition = RecordBuilder("Person").field("age", "integer", required=True).build()
        session = run_pipeline(definition, {})

        assert kinds(session, "age") == [ErrorKind.REQUIRED]
        assert session.errors[0].message == "can't be blank"

    def test_coercion_failure_not_reported_twice(self):
        """Test a field that failed coercion gets no required error"""
        definition = RecordBuilder("Person").field("age", "integer", required=True).build()
        session = run_pipeline(definition, {"age": "abc"})

        assert kinds(session, "age") == [ErrorKind.COERCION]

    def test_default_satisfies_required(self):
        """Test a required field with a default never fails"""
        definition = RecordBuilder("Person").field("age", "integer", required=True, default=18).build()
        assert run_pipeline(definition, {}).valid


class TestDerive:
    """Tests for the derive stage"""

    def test_expression_sees_prior_values(self, score_definition):
        """Test derived value from sibling fields"""
        session = run_pipeline(score_definition, {"rating": 80, "category": 1})
        assert session.changes["score"] == 81

    def test_zero_argument_derive_always_runs(self):
        """Test thunks run even without input"""
        definition = RecordBuilder("Doc").field("version", "integer", derive=lambda: 1).build()
        assert run_pipeline(definition, {}).changes == {"version": 1}

    def test_one_argument_derive_needs_value(self):
        """Test value rules only run when the field holds a value"""
        definition = RecordBuilder("Doc").field("title", derive=str.strip).build()

        assert run_pipeline(definition, {"title": " Hello "}).changes == {"title": "Hello"}
        assert run_pipeline(definition, {}).changes == {}

    def test_derive_sees_all_changes(self):
        """Test derive can read fields declared after it"""
        definition = (
            RecordBuilder("Doc")
            .field("total", "integer", derive=ref("count") * 2)
            .field("count", "integer")
            .build()
        )
        assert run_pipeline(definition, {"count": 3}).changes["total"] == 6

    def test_derive_failure(self):
        """Test failing derive records an evaluator error"""
        definition = RecordBuilder("Doc").field("total", "integer", derive=ref("missing") + 1).build()
        session = run_pipeline(definition, {})

        [error] = session.errors
        assert error.kind is ErrorKind.EVALUATOR
        assert error.message == "error evaluating `derive` expression"

    def test_bindings_are_visible(self):
        """Test external bindings feed expressions"""
        definition = RecordBuilder("Doc").field("owner", derive=ref("current_user")).build()
        assert run_pipeline(definition, {}, {"current_user": "bob"}).changes["owner"] == "bob"


class TestValidations:
    """Tests for the validations stage"""

    def test_all_constraints_checked(self):
        """Test constraints do not short-circuit"""
        definition = RecordBuilder("Person").field("code", min=5, format=r"^\d+$").build()
        session = run_pipeline(definition, {"code": "ab"})

        assert [error.constraint for error in session.errors] == ["min", "format"]

    def test_every_failing_constraint_is_reported(self):
        """Test one error per failing constraint, in declaration order"""
        definition = (
            RecordBuilder("Person")
            .field("code", min=5, format=r"^\d+$", **{"in": ["12345", "67890"]})
            .build()
        )
        session = run_pipeline(definition, {"code": "ab"})

        assert [error.constraint for error in session.errors] == ["min", "format", "in"]
        assert session.error_messages() == {
            "code": ["should be at least 5 character(s)", "has invalid format", "is invalid"]
        }

    def test_expression_bound(self):
        """Test bounds evaluated against bindings"""
        definition = RecordBuilder("Person").field("age", "integer", lt=ref("max_age")).build()

        assert run_pipeline(definition, {"age": 50}, {"max_age": 100}).valid
        session = run_pipeline(definition, {"age": 150}, {"max_age": 100})
        assert session.errors[0].render() == "must be less than 100"

    def test_failed_bound_is_evaluator_error(self):
        """Test unbound names in bounds become evaluator errors"""
        definition = RecordBuilder("Person").field("age", "integer", lt=ref("max_age")).build()
        session = run_pipeline(definition, {"age": 1})

        [error] = session.errors
        assert error.kind is ErrorKind.EVALUATOR
        assert error.render() == "error evaluating `less_than` expression"

    def test_bound_sees_prior_field(self):
        """Test bounds read earlier sibling values"""
        definition = (
            RecordBuilder("Range")
            .field("low", "integer")
            .field("high", "integer", gt=ref("low"))
            .build()
        )
        assert run_pipeline(definition, {"low": 5, "high": 9}).valid
        assert not run_pipeline(definition, {"low": 5, "high": 2}).valid

    def test_bound_cannot_see_later_field(self):
        """Test validations only see fields declared before"""
        definition = (
            RecordBuilder("Range")
            .field("low", "integer", lt=ref("high"))
            .field("high", "integer")
            .build()
        )
        session = run_pipeline(definition, {"low": 1, "high": 2})

        assert [error.kind for error in session.errors] == [ErrorKind.EVALUATOR]

    def test_absent_value_not_validated(self):
        """Test optional absent fields are not validated"""
        definition = RecordBuilder("Person").field("age", "integer", gt=0).build()
        assert run_pipeline(definition, {}).valid

    def test_inapplicable_constraint(self):
        """Test constraints that cannot measure a value"""
        definition = RecordBuilder("Person").field("age", "integer", max=2).build()
        session = run_pipeline(definition, {"age": 5})

        assert session.errors[0].kind is ErrorKind.EVALUATOR


class TestBlock:
    """Tests for the block stage"""

    def test_string_outcome_is_message(self):
        """Test a matched clause with a message fails"""
        definition = RecordBuilder("P").field("age", "integer", block=[(ref("age") > 90, "too old")]).build()
        session = run_pipeline(definition, {"age": 95})

        [error] = session.errors
        assert error.kind is ErrorKind.BLOCK_CLAUSE
        assert error.message == "too old"
        assert error.clause == 1

    def test_passing_outcomes(self):
        """Test None, "ok" and True pass"""
        definition = (
            RecordBuilder("P")
            .field("age", "integer", block=[(True, None), (True, "ok"), (True, lambda: True)])
            .build()
        )
        assert run_pipeline(definition, {"age": 1}).valid

    def test_error_tuple_outcome(self):
        """Test ("error", reason) outcomes"""
        definition = RecordBuilder("P").field("age", "integer", block=[(True, ("error", "nope"))]).build()
        assert run_pipeline(definition, {"age": 1}).errors[0].message == "nope"

    def test_all_clauses_run(self):
        """Test every clause is evaluated and numbered"""
        definition = (
            RecordBuilder("P")
            .field("age", "integer", block=[(ref("age") > 1, "a"), (ref("age") > 100, "b"), (ref("age") > 2, "c")])
            .build()
        )
        session = run_pipeline(definition, {"age": 50})

        assert [(e.message, e.clause) for e in session.errors] == [("a", 1), ("c", 3)]

    def test_unusable_outcome(self):
        """Test outcomes that are not a pass or a message"""
        definition = RecordBuilder("P").field("age", "integer", block=[(True, 42)]).build()
        [error] = run_pipeline(definition, {"age": 1}).errors

        assert error.kind is ErrorKind.EVALUATOR
        assert error.render() == "error evaluating expression in clause #1 of block"

    def test_failing_condition(self):
        """Test a raising condition is an evaluator error for that clause"""
        definition = (
            RecordBuilder("P")
            .field("age", "integer", block=[(ref("age") > 1, "a"), (ref("nope") > 1, "b")])
            .build()
        )
        session = run_pipeline(definition, {"age": 5})

        assert [(e.kind, e.clause) for e in session.errors] == [
            (ErrorKind.BLOCK_CLAUSE, 1),
            (ErrorKind.EVALUATOR, 2),
        ]


class TestGuard:
    """Tests for the when stage"""

    def test_guard_passes(self, score_definition):
        """Test a truthy guard"""
        assert run_pipeline(score_definition, {"rating": 80, "category": 1}).valid

    def test_guard_fails(self, score_definition):
        """Test a falsy guard"""
        session = run_pipeline(score_definition, {"rating": 80, "category": 0})

        [error] = session.errors
        assert error.field == "score"
        assert error.kind is ErrorKind.GUARD_FAILED
        assert error.message == "failed `when` guard"

    def test_guard_error_is_failure(self):
        """Test a raising guard fails the guard"""
        definition = RecordBuilder("P").field("age", "integer", when=ref("nope")).build()
        assert kinds(run_pipeline(definition, {"age": 1}), "age") == [ErrorKind.GUARD_FAILED]


class TestMap:
    """Tests for the map stage"""

    def test_map_runs_last(self):
        """Test validations see the unmapped value"""
        definition = RecordBuilder("P").field("name", max=3, map=str.upper).build()
        session = run_pipeline(definition, {"name": "bob"})

        assert session.valid
        assert session.changes["name"] == "BOB"

    def test_map_runs_on_invalid_fields(self):
        """Test map still applies when the field has errors"""
        definition = RecordBuilder("P").field("name", max=2, map=str.upper).build()
        session = run_pipeline(definition, {"name": "bob"})

        assert not session.valid
        assert session.changes["name"] == "BOB"

    def test_map_expression(self):
        """Test context maps"""
        definition = (
            RecordBuilder("P")
            .field("first")
            .field("full", map=expr(lambda ctx: f"{ctx['first']} {ctx['full']}"))
            .build()
        )
        assert run_pipeline(definition, {"first": "Ada", "full": "Lovelace"}).changes["full"] == "Ada Lovelace"

    def test_map_failure(self):
        """Test failing maps record an evaluator error"""
        definition = RecordBuilder("P").field("n", "integer", map=lambda v: v / 0).build()
        [error] = run_pipeline(definition, {"n": 1}).errors

        assert error.message == "error evaluating `map` expression"


class TestCustomStage:
    """Tests for registering custom stages"""

    def test_custom_stage_runs_in_order(self):
        """Test a registered stage consumes its options"""

        class TrimStage(PipelineStage):
            name = "trim_test"
            options = ("trim",)

            def apply(self, session, field, bindings):
                if session.holds_value(field.name) and field.extra_options["trim"]:
                    session.changes[field.name] = session.changes[field.name].strip()

        register_stage(TrimStage(), replace=True)
        try:
            definition = (
                RecordBuilder("P", stages=["trim_test", "validations"])
                .field("name", trim=True, max=3)
                .build()
            )
            session = run_pipeline(definition, {"name": " bob "})

            assert session.valid
            assert session.changes["name"] == "bob"
        finally:
            STAGE_REGISTRY.pop("trim_test", None)


class TestValidationSession:
    """Tests for ValidationSession"""

    def test_state_moves_forward_only(self, person_definition):
        """Test illegal transitions raise SessionStateError"""
        session = ValidationSession(person_definition, {})
        session.advance(SessionState.COERCED)

        with pytest.raises(SessionStateError):
            session.advance(SessionState.COERCED)
        with pytest.raises(SessionStateError):
            session.advance(SessionState.INITIALIZED)

    def test_run_leaves_session_staged(self, person_definition):
        """Test a run ends in the staged state"""
        assert run_pipeline(person_definition, {"age": 1}).state is SessionState.STAGED

    def test_session_input_reuses_params(self, person_definition):
        """Test an existing session can be re-run"""
        first = run_pipeline(person_definition, {"age": "5"}, {"max_age": 10})
        second = run_pipeline(person_definition, first, {"max_age": 3})

        assert second.params == {"age": "5"}
        assert first.valid and not second.valid

    def test_build_context_scopes(self):
        """Test prior scope hides later fields"""
        definition = RecordBuilder("P").field("a").field("b").field("c").build()
        session = ValidationSession(definition)
        session.changes.update({"a": 1, "b": 2, "c": 3})

        prior = build_context(session, {"x": 0}, "b", scope="prior")
        everything = build_context(session, {"x": 0}, "b", scope="all")

        assert dict(prior) == {"x": 0, "a": 1, "b": 2}
        assert dict(everything) == {"x": 0, "a": 1, "b": 2, "c": 3}

    def test_field_value_shadows_bindings(self):
        """Test field values win over bindings of the same name"""
        definition = RecordBuilder("P").field("a").build()
        session = ValidationSession(definition)
        session.changes["a"] = "field"

        assert build_context(session, {"a": "binding"}, "a")["a"] == "field"
