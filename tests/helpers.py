from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session, sessionmaker

from database import Base, make_engine
from models import Expense, ExpenseCategory
from periods import FixedClock

NOW = datetime(2025, 10, 19, 15, 30, tzinfo=ZoneInfo("UTC"))


def make_session() -> Session:
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def fixed_clock(moment: datetime = NOW) -> FixedClock:
    return FixedClock(moment)


def add_expense(
    session: Session,
    *,
    amount_cents: int,
    on: date,
    category: ExpenseCategory = ExpenseCategory.food,
    user_id: int = 1,
    title: str = "Expense",
    created_at: Optional[datetime] = None,
) -> Expense:
    expense = Expense(
        user_id=user_id,
        title=title,
        amount_cents=amount_cents,
        date=on,
        category=category,
    )
    if created_at is not None:
        expense.created_at = created_at
        expense.updated_at = created_at
    session.add(expense)
    session.commit()
    return expense
