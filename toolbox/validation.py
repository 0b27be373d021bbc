# validation.py
# - FieldSpec / ArgumentSchema: declared tool arguments
# - json_schema(): client-facing JSON Schema rendering (tools/list inputSchema)
# - validate(): jsonschema check, errors mapped back to named violations

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError

KINDS = ("string", "number", "integer", "boolean")


@dataclass(frozen=True)
class FieldSpec:
    kind: str
    required: bool = True
    description: str = ""
    min_length: Optional[int] = None
    exact_length: Optional[int] = None
    minimum: Optional[float] = None
    positive: bool = False

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"unsupported field kind: {self.kind}")

    def json_schema(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.kind}
        if self.description:
            out["description"] = self.description
        if self.exact_length is not None:
            out["minLength"] = self.exact_length
            out["maxLength"] = self.exact_length
        elif self.min_length is not None:
            out["minLength"] = self.min_length
        if self.minimum is not None:
            out["minimum"] = self.minimum
        if self.positive:
            out["exclusiveMinimum"] = 0
        return out

    def constraint_for(self, keyword: str) -> str:
        """Name the declared constraint that a JSON Schema keyword came from."""
        if keyword in ("minLength", "maxLength"):
            return "exactLength" if self.exact_length is not None else "minLength"
        if keyword == "exclusiveMinimum":
            return "positive"
        return keyword


class ArgumentSchema:
    """Ordered, immutable mapping of argument name -> FieldSpec."""

    def __init__(self, fields: Iterable[Tuple[str, FieldSpec]] = ()):
        self._fields: Mapping[str, FieldSpec] = MappingProxyType(dict(fields))
        self._json = self._render()
        self._validator = Draft7Validator(self._json)

    @classmethod
    def of(cls, **fields: FieldSpec) -> "ArgumentSchema":
        return cls(fields.items())

    @property
    def fields(self) -> Mapping[str, FieldSpec]:
        return self._fields

    def __iter__(self):
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def _render(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: spec.json_schema() for name, spec in self._fields.items()},
            "required": [name for name, spec in self._fields.items() if spec.required],
        }

    def json_schema(self) -> Dict[str, Any]:
        # callers get a copy; the compiled validator keeps the original
        return {
            "type": "object",
            "properties": {k: dict(v) for k, v in self._json["properties"].items()},
            "required": list(self._json["required"]),
        }

    def iter_errors(self, arguments: Mapping[str, Any]) -> Iterable[ValidationError]:
        return self._validator.iter_errors(dict(arguments))


# ---------------------------------------------------------------------
# Violations
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class MissingArgument:
    field: str

    @property
    def message(self) -> str:
        return f"missing required argument '{self.field}'"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "MissingArgument", "field": self.field, "message": self.message}


@dataclass(frozen=True)
class InvalidArgumentType:
    field: str
    expected: str
    actual: Any

    @property
    def message(self) -> str:
        return f"argument '{self.field}' must be of type {self.expected}, got {_json_type(self.actual)} {self.actual!r}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "InvalidArgumentType",
            "field": self.field,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


@dataclass(frozen=True)
class ConstraintViolation:
    field: str
    constraint: str
    detail: str = ""

    @property
    def message(self) -> str:
        base = f"argument '{self.field}' violates {self.constraint}"
        return f"{base}: {self.detail}" if self.detail else base

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "ConstraintViolation",
            "field": self.field,
            "constraint": self.constraint,
            "message": self.message,
        }


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


@dataclass
class ValidationOutcome:
    arguments: Dict[str, Any] = field(default_factory=dict)
    violations: List[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


def _missing_fields(schema: ArgumentSchema, arguments: Mapping[str, Any]) -> List[str]:
    return [name for name, spec in schema.fields.items() if spec.required and name not in arguments]


def _to_violation(schema: ArgumentSchema, err: ValidationError):
    name = str(err.path[0]) if err.path else ""
    spec = schema.fields.get(name)
    if spec is None:
        return None
    if err.validator == "type":
        return InvalidArgumentType(name, spec.kind, err.instance)
    return ConstraintViolation(name, spec.constraint_for(str(err.validator)), err.message)


def _narrow(spec: FieldSpec, value: Any) -> Any:
    if spec.kind == "integer" and isinstance(value, float):
        return int(value)
    return value


def validate(schema: ArgumentSchema, arguments: Mapping[str, Any]) -> ValidationOutcome:
    """Check ``arguments`` against ``schema`` and collect every violation.

    Undeclared arguments are ignored and dropped from the narrowed bundle.
    """
    outcome = ValidationOutcome()
    order = {name: i for i, name in enumerate(schema)}

    found: List[Tuple[int, int, Any]] = []
    for name in _missing_fields(schema, arguments):
        found.append((order[name], 0, MissingArgument(name)))
    # "required" errors are already covered above with structured field names
    for err in schema.iter_errors(arguments):
        if err.validator == "required":
            continue
        v = _to_violation(schema, err)
        if v is not None:
            found.append((order[v.field], 1, v))

    found.sort(key=lambda t: (t[0], t[1]))
    outcome.violations = [v for _, _, v in found]
    if outcome.ok:
        outcome.arguments = {
            name: _narrow(spec, arguments[name])
            for name, spec in schema.fields.items()
            if name in arguments
        }
    return outcome
