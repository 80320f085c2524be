from pydantic import BaseModel, Field, ConfigDict, field_validator
import re
from typing import Optional
import datetime as dt
from decimal import Decimal

TRANSACTION_TYPE_PATTERN = "^(income|expense)$"
ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def iso_date_only(v):
    """Let through ``date`` objects and ``YYYY-MM-DD`` strings, nothing else."""
    if v is None or (isinstance(v, dt.date) and not isinstance(v, dt.datetime)):
        return v
    if isinstance(v, str) and ISO_DATE.fullmatch(v):
        return v
    raise ValueError("Enter a valid date (YYYY-MM-DD)")


class TransactionBase(BaseModel):
    type: str = Field(..., pattern=TRANSACTION_TYPE_PATTERN)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category: str = Field(..., min_length=1)
    description: str = ""
    date: dt.date
    source: Optional[str] = None

    @field_validator("category")
    @classmethod
    def category_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Select a category")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def date_must_be_iso(cls, v):
        return iso_date_only(v)


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(BaseModel):
    """Partial edit. Only the fields that were sent are written."""
    type: Optional[str] = Field(None, pattern=TRANSACTION_TYPE_PATTERN)
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    source: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("category")
    @classmethod
    def category_must_not_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Select a category")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def date_must_be_iso(cls, v):
        return iso_date_only(v)


class TransactionResponse(TransactionBase):
    id: str
    user_id: str
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)
