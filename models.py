from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class ExpenseCategory(str, Enum):
    food = "Food"
    transportation = "Transportation"
    entertainment = "Entertainment"
    healthcare = "Healthcare"
    shopping = "Shopping"
    utilities = "Utilities"
    education = "Education"
    travel = "Travel"
    other = "Other"


EXPENSE_CATEGORY_ENUM = SAEnum(
    ExpenseCategory,
    name="expensecategory",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)

# declaration order, used as the last tie-break when ranking categories
CATEGORY_ORDER = {member: idx for idx, member in enumerate(ExpenseCategory)}

MAX_AMOUNT_CENTS = 100_000_000


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[ExpenseCategory] = mapped_column(
        EXPENSE_CATEGORY_ENUM, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint(
            f"amount_cents > 0 AND amount_cents <= {MAX_AMOUNT_CENTS}",
            name="ck_expense_amount_range",
        ),
        Index("ix_expenses_user_created", "user_id", "created_at"),
        Index("ix_expenses_user_category", "user_id", "category"),
        Index("ix_expenses_user_date", "user_id", "date"),
    )
