import pytest

from toolbox.tools import COUNT_SCHEMA, MORTGAGE_SCHEMA
from toolbox.validation import (
    ArgumentSchema,
    ConstraintViolation,
    FieldSpec,
    InvalidArgumentType,
    MissingArgument,
    validate,
)


@pytest.mark.unit
def test_valid_arguments_pass_and_are_narrowed():
    out = validate(MORTGAGE_SCHEMA, {"loanAmount": 300000, "annualInterestRate": 6.5, "loanTermYears": 30.0})
    assert out.ok
    assert out.arguments == {"loanAmount": 300000, "annualInterestRate": 6.5, "loanTermYears": 30}
    assert isinstance(out.arguments["loanTermYears"], int)


@pytest.mark.unit
def test_missing_required_field_is_named():
    out = validate(COUNT_SCHEMA, {"text": "Hello"})
    assert not out.ok
    assert out.violations == [MissingArgument("letter")]
    assert out.arguments == {}


@pytest.mark.unit
def test_wrong_kind_is_type_violation():
    out = validate(COUNT_SCHEMA, {"text": 42, "letter": "l"})
    assert out.violations == [InvalidArgumentType("text", "string", 42)]


@pytest.mark.unit
def test_all_violations_collected_in_schema_order():
    out = validate(MORTGAGE_SCHEMA, {"loanAmount": -5, "annualInterestRate": "six", "loanTermYears": 2.5})
    assert [type(v) for v in out.violations] == [ConstraintViolation, InvalidArgumentType, InvalidArgumentType]
    assert [v.field for v in out.violations] == ["loanAmount", "annualInterestRate", "loanTermYears"]
    assert out.violations[0].constraint == "positive"


@pytest.mark.unit
def test_empty_arguments_report_every_missing_field():
    out = validate(MORTGAGE_SCHEMA, {})
    assert out.violations == [
        MissingArgument("loanAmount"),
        MissingArgument("annualInterestRate"),
        MissingArgument("loanTermYears"),
    ]


@pytest.mark.unit
def test_minimum_and_exact_length_constraints():
    out = validate(MORTGAGE_SCHEMA, {"loanAmount": 1, "annualInterestRate": -0.1, "loanTermYears": 1})
    assert out.violations == [ConstraintViolation("annualInterestRate", "minimum", out.violations[0].detail)]

    out = validate(COUNT_SCHEMA, {"text": "abc", "letter": "ab"})
    assert len(out.violations) == 1
    assert out.violations[0].constraint == "exactLength"
    out = validate(COUNT_SCHEMA, {"text": "abc", "letter": ""})
    assert out.violations[0].constraint == "exactLength"


@pytest.mark.unit
def test_booleans_and_null_are_not_numbers():
    out = validate(MORTGAGE_SCHEMA, {"loanAmount": True, "annualInterestRate": None, "loanTermYears": 10})
    assert [v.field for v in out.violations] == ["loanAmount", "annualInterestRate"]
    assert all(isinstance(v, InvalidArgumentType) for v in out.violations)


@pytest.mark.unit
def test_undeclared_arguments_are_ignored():
    out = validate(COUNT_SCHEMA, {"text": "abc", "letter": "a", "extra": {"nested": [1, 2]}})
    assert out.ok
    assert "extra" not in out.arguments


@pytest.mark.unit
def test_optional_fields_and_min_length():
    schema = ArgumentSchema.of(
        name=FieldSpec("string", min_length=2),
        verbose=FieldSpec("boolean", required=False),
    )
    assert validate(schema, {"name": "ab"}).arguments == {"name": "ab"}
    assert validate(schema, {"name": "ab", "verbose": True}).arguments == {"name": "ab", "verbose": True}
    out = validate(schema, {"name": "a", "verbose": "yes"})
    assert out.violations[0] == ConstraintViolation("name", "minLength", out.violations[0].detail)
    assert out.violations[1] == InvalidArgumentType("verbose", "boolean", "yes")


@pytest.mark.unit
def test_json_schema_rendering():
    rendered = MORTGAGE_SCHEMA.json_schema()
    assert rendered["type"] == "object"
    assert rendered["required"] == ["loanAmount", "annualInterestRate", "loanTermYears"]
    assert rendered["properties"]["loanTermYears"]["type"] == "integer"
    assert rendered["properties"]["loanTermYears"]["exclusiveMinimum"] == 0
    assert rendered["properties"]["annualInterestRate"]["minimum"] == 0
    letter = COUNT_SCHEMA.json_schema()["properties"]["letter"]
    assert letter["minLength"] == letter["maxLength"] == 1


@pytest.mark.unit
def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        FieldSpec("array")


@pytest.mark.unit
def test_violation_messages_are_readable():
    out = validate(COUNT_SCHEMA, {"text": 1})
    messages = [v.message for v in out.violations]
    assert "argument 'text' must be of type string" in messages[0]
    assert messages[1] == "missing required argument 'letter'"
    assert out.violations[1].to_dict()["kind"] == "MissingArgument"
