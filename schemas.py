import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from models import Expense, ExpenseCategory
from money import cents_to_amount
from periods import Clock

MAX_AMOUNT = Decimal("1000000")


def _not_in_future(value: date) -> date:
    if value > Clock().today():
        raise ValueError("Date cannot be in the future")
    return value


class ExpenseIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    date: date
    category: ExpenseCategory
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title", "notes", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("date")
    @classmethod
    def _date_not_in_future(cls, value: date) -> date:
        return _not_in_future(value)


class ExpenseUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(
        default=None, gt=0, le=MAX_AMOUNT, decimal_places=2
    )
    date: Optional[dt.date] = None
    category: Optional[ExpenseCategory] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title", "notes", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("date")
    @classmethod
    def _date_not_in_future(cls, value: Optional[dt.date]) -> Optional[dt.date]:
        return _not_in_future(value) if value is not None else value

    @model_validator(mode="after")
    def _at_least_one_field(self) -> "ExpenseUpdateIn":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        for name in ("title", "amount", "date", "category"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ExpenseListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    category: Optional[ExpenseCategory] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def _end_after_start(self) -> "ExpenseListQuery":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be after start date")
        return self


class QuickExpenseIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=100)
    amount: str = Field(..., min_length=1, max_length=32)
    date: Optional[dt.date] = None
    category: Optional[str] = Field(default=None, max_length=100)

    @field_validator("date")
    @classmethod
    def _date_not_in_future(cls, value: Optional[dt.date]) -> Optional[dt.date]:
        return _not_in_future(value) if value is not None else value


class ExpenseOut(BaseModel):
    id: int
    title: str
    amount: Decimal
    date: date
    category: ExpenseCategory
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)

    @classmethod
    def from_model(cls, expense: Expense) -> "ExpenseOut":
        return cls(
            id=expense.id,
            title=expense.title,
            amount=cents_to_amount(expense.amount_cents),
            date=expense.date,
            category=expense.category,
            notes=expense.notes,
            created_at=expense.created_at,
            updated_at=expense.updated_at,
        )
