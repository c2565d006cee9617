"""
Customer Schemas

Revenue accepts whatever people paste into a form: "$1,234.56",
"1 234.56", 1234.56. Everything except digits, minus and the decimal point
is stripped before parsing, and the result is rounded to cents.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import ClassVar, Optional
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import enum
import re

from roadmapper.schemas.common import ColumnModel, ChangesModel

CENTS = Decimal("0.01")
_NOT_NUMERIC = re.compile(r"[^-\d.]")


class CustomerStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"


def parse_currency(value):
    """
    Normalize a currency value to Decimal with two places.

    Blank strings mean "no revenue" (None). Anything that is still not a
    number after cleaning raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("must be a number")

    if isinstance(value, str):
        if not value.strip():
            return None
        value = _NOT_NUMERIC.sub("", value)
    elif isinstance(value, (int, float)):
        value = str(value)
    elif not isinstance(value, Decimal):
        raise ValueError("must be a number")

    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError("must be a number")
    if not amount.is_finite():
        raise ValueError("must be a number")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class CustomerCreate(ColumnModel):
    name: str = Field(..., min_length=1, max_length=255)
    status: CustomerStatus = CustomerStatus.ACTIVE
    revenue: Optional[Decimal] = Field(None, max_digits=14, decimal_places=2)

    @field_validator("revenue", mode="before")
    @classmethod
    def clean_revenue(cls, value):
        return parse_currency(value)


class CustomerRecord(CustomerCreate):
    tenant_id: str


class CustomerUpdate(ChangesModel):
    not_null: ClassVar[frozenset] = frozenset({"name", "status"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[CustomerStatus] = None
    revenue: Optional[Decimal] = Field(None, max_digits=14, decimal_places=2)

    @field_validator("revenue", mode="before")
    @classmethod
    def clean_revenue(cls, value):
        return parse_currency(value)


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    name: str
    status: CustomerStatus
    revenue: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime
