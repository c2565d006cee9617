"""
Record Validation

Validators are plugged into a RecordStore, not inherited by it. Anything
with validate_for_create / validate_for_update can be used. SchemaValidator
is the standard one, backed by a pair of pydantic models.
"""
import uuid
from typing import Any, Dict, Mapping, Optional, Protocol, Type

from pydantic import BaseModel, ValidationError

from roadmapper.core.exceptions import RecordValidationError


class RecordValidator(Protocol):
    def validate_for_create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def validate_for_update(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        ...


def is_valid_uuid(value: Any) -> bool:
    """True for canonical textual UUIDs (any version)."""
    if not isinstance(value, str) or len(value) != 36:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _first_error(exc: ValidationError) -> RecordValidationError:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "record"
    return RecordValidationError(field, error["msg"])


class SchemaValidator:
    """
    Validate writes with pydantic models.

    create_model must describe every column a new row may set (defaults
    included). update_model has the same columns, all optional. Only the
    fields the caller actually sent are returned from an update so a
    partial PUT never resets other columns.
    """

    def __init__(self, create_model: Type[BaseModel], update_model: Optional[Type[BaseModel]] = None):
        self.create_model = create_model
        self.update_model = update_model

    def validate_for_create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            return self.create_model.model_validate(dict(data)).model_dump()
        except ValidationError as e:
            raise _first_error(e) from e

    def validate_for_update(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        if self.update_model is None:
            raise RecordValidationError("record", f"{self.create_model.__name__} records are read-only")
        try:
            return self.update_model.model_validate(dict(data)).model_dump(exclude_unset=True)
        except ValidationError as e:
            raise _first_error(e) from e
