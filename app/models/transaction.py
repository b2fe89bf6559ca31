from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from app.utils.aggregation import parse_date

NOTE_MAX_LENGTH = 500
AMOUNT_MAX = 1_000_000_000_000


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"
    invest = "invest"


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: float = Field(gt=0, le=AMOUNT_MAX, allow_inf_nan=False)
    category: str = Field(min_length=1)
    date: str
    note: Optional[str] = Field(default="", max_length=NOTE_MAX_LENGTH)

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("category must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def date_is_real(cls, value: str) -> str:
        if parse_date(value) is None:
            raise ValueError("date must be a real calendar date in YYYY-MM-DD format")
        return value

    @field_validator("note")
    @classmethod
    def strip_note(cls, value: Optional[str]) -> str:
        return (value or "").strip()


class Transaction(BaseModel):
    """
    A stored transaction. ``date`` is kept as the raw string that was
    persisted; aggregation code treats an unparseable value as undated.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    type: TransactionType
    amount: float
    category: str
    date: str
    note: Optional[str] = ""
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    @classmethod
    def from_create(cls, payload: TransactionCreate) -> "Transaction":
        return cls(**payload.model_dump())
