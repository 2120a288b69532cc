"""
Unit tests for expression trees, the expression parser and rule evaluation.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from recordkit.core.errors import DefinitionError
from recordkit.core.expressions import (
    MISSING,
    SKIPPED,
    EvaluationContext,
    EvaluationFailure,
    RuleKind,
    UnboundNameError,
    call,
    compile_rule,
    evaluate,
    expr,
    is_failure,
    parse_expression,
    ref,
)


class TestExpressionNodes:
    """Tests for operator-built expressions"""

    def test_arithmetic(self):
        """Test arithmetic operators build evaluable trees"""
        rule = ref("rating") + ref("category") * 2
        assert rule.evaluate({"rating": 80, "category": 3}) == 86

    def test_reflected_operators(self):
        """Test constants on the left-hand side"""
        assert (10 - ref("x")).evaluate({"x": 4}) == 6

    def test_comparison_and_logic(self):
        """Test comparisons combined with & | ~"""
        rule = (ref("score") > ref("rating")) & ~ref("locked")
        assert rule.evaluate({"score": 81, "rating": 80, "locked": False}) is True
        assert rule.evaluate({"score": 79, "rating": 80, "locked": False}) is False

    def test_membership(self):
        """Test is_in / not_in"""
        assert ref("x").is_in([1, 2]).evaluate({"x": 2}) is True
        assert ref("x").not_in([1, 2]).evaluate({"x": 2}) is False

    def test_truth_value_is_an_error(self):
        """Test expressions cannot be used with and/or/if"""
        with pytest.raises(TypeError):
            bool(ref("x") > 1)

    def test_names(self):
        """Test names() lists every referenced name"""
        rule = (ref("a") + ref("b")) > call(max, ref("c"), 1)
        assert rule.names() == {"a", "b", "c"}

    def test_call_and_lambda(self):
        """Test helper calls and context functions"""
        assert call(len, ref("tags")).evaluate({"tags": [1, 2, 3]}) == 3
        assert expr(lambda ctx: ctx["a"] * 2).evaluate({"a": 21}) == 42

    def test_subscript_on_bindings(self):
        """Test item access on mappings"""
        assert ref("address")["city"].evaluate({"address": {"city": "Oslo"}}) == "Oslo"


class TestParseExpression:
    """Tests for parse_expression"""

    def test_simple_sum(self):
        """Test names and arithmetic"""
        assert parse_expression("rating + category").evaluate({"rating": 80, "category": 1}) == 81

    def test_chained_comparison(self):
        """Test chained comparisons become a conjunction"""
        rule = parse_expression("0 < age < max_age")

        assert rule.evaluate({"age": 5, "max_age": 10}) is True
        assert rule.evaluate({"age": 15, "max_age": 10}) is False

    def test_boolean_operators(self):
        """Test and/or/not keep Python semantics"""
        rule = parse_expression("not locked and (score > 10 or vip)")
        assert rule.evaluate({"locked": False, "score": 5, "vip": True}) is True

    def test_attribute_access(self):
        """Test attribute access reads mapping keys"""
        assert parse_expression("address.city").evaluate({"address": {"city": "Oslo"}}) == "Oslo"

    def test_literals(self):
        """Test collection literals and None"""
        assert parse_expression("x in [1, 2, 3]").evaluate({"x": 3}) is True
        assert parse_expression("x is None").evaluate({"x": None}) is True
        assert parse_expression("{'a': x}").evaluate({"x": 1}) == {"a": 1}

    def test_whitelisted_functions(self):
        """Test default helper functions are callable"""
        assert parse_expression("len(name) >= 3").evaluate({"name": "Bob"}) is True

    def test_custom_functions(self):
        """Test caller supplied helpers"""
        rule = parse_expression("double(x)", functions={"double": lambda v: v * 2})
        assert rule.evaluate({"x": 4}) == 8

    @pytest.mark.parametrize(
        "source",
        [
            "__import__('os')",
            "open('/etc/passwd')",
            "x.__class__",
            "lambda: 1",
            "[i for i in x]",
            "x[1:2]",
            "a if b else c",
        ],
    )
    def test_unsupported_syntax(self, source):
        """Test anything outside the accepted subset is rejected"""
        with pytest.raises(DefinitionError):
            parse_expression(source)

    def test_syntax_error(self):
        """Test invalid Python raises DefinitionError"""
        with pytest.raises(DefinitionError, match="Invalid expression"):
            parse_expression("a +")

    def test_empty_source(self):
        """Test blank source is rejected"""
        with pytest.raises(DefinitionError):
            parse_expression("   ")

    @given(st.integers(), st.integers())
    def test_property_addition_matches_python(self, a, b):
        """Property test: parsed addition agrees with Python"""
        assert parse_expression("a + b").evaluate({"a": a, "b": b}) == a + b


class TestCompileRule:
    """Tests for compile_rule"""

    def test_expression_is_context_rule(self):
        """Test expressions compile to context rules"""
        assert compile_rule(ref("x"), "derive").kind is RuleKind.CONTEXT

    def test_zero_argument_function_is_thunk(self):
        """Test zero-argument callables"""
        assert compile_rule(lambda: 1, "derive").kind is RuleKind.THUNK

    def test_one_argument_function_is_value_rule(self):
        """Test one-argument callables"""
        rule = compile_rule(lambda value: value * 2, "map")

        assert rule.kind is RuleKind.VALUE
        assert rule.needs_value is True
        assert rule.arity == 1

    def test_optional_parameters_do_not_count(self):
        """Test parameters with defaults are not required"""
        assert compile_rule(lambda value, scale=2: value * scale, "map").kind is RuleKind.VALUE

    def test_types_are_value_rules(self):
        """Test converter types such as str"""
        assert compile_rule(str, "map").kind is RuleKind.VALUE

    def test_other_arity_rejected(self):
        """Test two-argument callables are a definition error"""
        with pytest.raises(DefinitionError, match="zero arguments or exactly one"):
            compile_rule(lambda a, b: a + b, "derive", record="Person", field="age")

    def test_constants(self):
        """Test anything else is a constant"""
        rule = compile_rule(100, "less_than")

        assert rule.kind is RuleKind.CONSTANT
        assert evaluate(rule, {}) == 100


class TestEvaluate:
    """Tests for evaluate"""

    def test_context_rule(self):
        """Test context rules read the context"""
        assert evaluate(compile_rule(ref("x") + 1, "derive"), {"x": 1}) == 2

    def test_value_rule_without_value_is_skipped(self):
        """Test value rules need a value"""
        rule = compile_rule(lambda value: value + 1, "map")

        assert evaluate(rule, {}, MISSING) is SKIPPED
        assert evaluate(rule, {}, 1) == 2

    def test_exceptions_are_returned_not_raised(self):
        """Test evaluation failures never cross the boundary"""
        result = evaluate(compile_rule(ref("x") / 0, "derive"), {"x": 1})

        assert is_failure(result)
        assert isinstance(result, EvaluationFailure)
        assert isinstance(result.exception, ZeroDivisionError)
        assert not result

    def test_unbound_name_is_a_failure(self):
        """Test reading a missing name fails the rule"""
        result = evaluate(compile_rule(ref("missing"), "derive"), EvaluationContext({}))

        assert is_failure(result)
        assert isinstance(result.exception, UnboundNameError)


class TestEvaluationContext:
    """Tests for EvaluationContext"""

    def test_item_and_attribute_access(self):
        """Test names can be read both ways"""
        ctx = EvaluationContext({"rating": 80})

        assert ctx["rating"] == 80
        assert ctx.rating == 80

    def test_missing_name(self):
        """Test missing names raise UnboundNameError (a KeyError and NameError)"""
        ctx = EvaluationContext({})

        with pytest.raises(UnboundNameError):
            ctx["nope"]
        with pytest.raises(KeyError):
            ctx["nope"]
        with pytest.raises(NameError):
            ctx.nope

    def test_read_only(self):
        """Test the context cannot be modified"""
        ctx = EvaluationContext({"a": 1})

        with pytest.raises(AttributeError):
            ctx.a = 2
        with pytest.raises(TypeError):
            ctx["a"] = 2
