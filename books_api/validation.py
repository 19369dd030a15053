from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass(frozen=True)
class ValidationOutcome(Generic[ModelT]):
    """Either a parsed value or the full list of field violations."""

    value: ModelT | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors

    def details(self) -> list[dict[str, str]]:
        return [error.as_dict() for error in self.errors]


def field_errors(errors: list[dict[str, Any]]) -> list[FieldError]:
    result = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        result.append(FieldError(field=".".join(loc) or "body", message=message, code=error.get("type", "invalid")))
    return result


def validate(schema: type[ModelT], raw: Any) -> ValidationOutcome[ModelT]:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return ValidationOutcome(errors=[FieldError(field="body", message="Expected an object", code="model_type")])
    try:
        return ValidationOutcome(value=schema.model_validate(raw))
    except ValidationError as exc:
        return ValidationOutcome(errors=field_errors(exc.errors()))
