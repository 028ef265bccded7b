"""
Parameter schemas for tools.

A ``ParameterSchema`` wraps one closed pydantic model so a single declaration
gives both the runtime validator (``.schema`` / ``.validate``) and the static
parameter type (``.type``).
"""

from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from edwin.utils.errors import ParameterValidationError

P = TypeVar("P", bound=BaseModel)

AUTO = "auto"


class ToolParameters(BaseModel):
    """Base for every tool parameter model.

    Models are closed: unknown keys are violations. Attribute names are
    snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


@dataclass
class FieldViolation:
    """One field that failed validation."""

    field: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"field": self.field, "message": self.message, "value": self.value}


@dataclass
class ValidationResult(Generic[P]):
    """Outcome of checking raw input against a schema."""

    value: P | None = None
    violations: list[FieldViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_valid": self.is_valid,
            "value": self.value.model_dump(by_alias=True) if self.value is not None else None,
            "violations": [v.to_dict() for v in self.violations],
        }


class ParameterSchema(Generic[P]):
    """Runtime validator and static type for one tool's parameters."""

    def __init__(self, model: type[P], name: str | None = None):
        self._model = model
        self.name = name or model.__name__
        self._json_schema: dict[str, Any] | None = None

    @property
    def type(self) -> type[P]:
        """The parameter model class."""
        return self._model

    @property
    def schema(self) -> dict[str, Any]:
        """JSON schema of the parameters, as sent to tool-calling clients."""
        if self._json_schema is None:
            self._json_schema = self._model.model_json_schema(by_alias=True)
        return dict(self._json_schema)

    def check(self, raw: Any) -> ValidationResult[P]:
        """Validate ``raw`` without raising.

        Every violating field is reported, not just the first.
        """
        if isinstance(raw, self._model):
            return ValidationResult(value=raw)
        try:
            return ValidationResult(value=self._model.model_validate(raw))
        except PydanticValidationError as e:
            return ValidationResult(violations=_violations_from(e))

    def validate(self, raw: Any) -> P:
        """Validate ``raw`` and return the typed parameters.

        Raises:
            ParameterValidationError: If any field is invalid
        """
        result = self.check(raw)
        if not result.is_valid:
            raise ParameterValidationError(
                self.name,
                result.violations,
                suggestions=["Fix the listed fields and call the tool again"],
            )
        return result.value

    def __repr__(self) -> str:
        return f"<ParameterSchema: {self.name}>"


def _violations_from(error: PydanticValidationError) -> list[FieldViolation]:
    violations = []
    for item in error.errors(include_url=False):
        loc = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        if item.get("type") == "missing":
            message = "Required"
        elif item.get("type") == "extra_forbidden":
            message = "Unknown parameter"
        value = item.get("input") if item.get("type") != "missing" else None
        violations.append(FieldViolation(field=loc or "(parameters)", message=message, value=value))
    return violations


# Amounts that may be left for the provider to infer

@dataclass(frozen=True)
class Exact:
    """A caller-supplied amount."""

    value: float


@dataclass(frozen=True)
class Auto:
    """An amount the provider infers from the other side of a pair."""


Amount = Union[Exact, Auto]

AmountInput = Union[Annotated[float, Field(gt=0)], Literal["auto"]]


def parse_amount(raw: float | str) -> Amount:
    """Turn a validated ``AmountInput`` value into ``Exact`` or ``Auto``."""
    if isinstance(raw, str) and raw.lower() == AUTO:
        return Auto()
    return Exact(float(raw))
