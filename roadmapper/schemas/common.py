"""
Shared schema bases

Column DTOs describe exactly the columns a client may write on a table.
Anything else in the payload (including tenant_id and link ids) is ignored
by these models. Link ids travel on the request-body schemas instead.
"""
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class ColumnModel(BaseModel):
    """Closed set of writable columns for one table."""
    model_config = ConfigDict(extra="ignore", use_enum_values=True, validate_default=True)


class ChangesModel(ColumnModel):
    """
    Partial update of a row. Every field is optional.

    Columns listed in not_null may be omitted but not explicitly set to null.
    """
    model_config = ConfigDict(extra="ignore", use_enum_values=True, validate_default=False)
    not_null: ClassVar[frozenset] = frozenset()

    @field_validator("*")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None and info.field_name in cls.not_null:
            raise ValueError("may not be null")
        return value


def blank_to_none(value):
    """Forms send "" (and the old UI sent "none") for an empty select box."""
    if isinstance(value, str) and value.strip().lower() in ("", "none", "null"):
        return None
    return value
