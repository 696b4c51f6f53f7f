from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import StorageError
from models import Expense, ExpenseCategory


@dataclass(frozen=True)
class AggregateRow:
    key: Any
    total_cents: int
    count: int


@dataclass(frozen=True)
class GlobalStats:
    total_cents: int
    count: int
    min_cents: int
    max_cents: int


class ExpenseStore:
    """Read access to one user's expenses.

    Every statement built here is filtered on ``user_id``; callers never see
    another user's rows.
    """

    GROUPABLE = {
        "category": Expense.category,
        "date": Expense.date,
    }

    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def _where(
        self,
        stmt,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category: Optional[ExpenseCategory] = None,
    ):
        stmt = stmt.where(Expense.user_id == self.user_id)
        if start is not None:
            stmt = stmt.where(Expense.date >= start)
        if end is not None:
            stmt = stmt.where(Expense.date <= end)
        if category is not None:
            stmt = stmt.where(Expense.category == category)
        return stmt

    def _execute(self, stmt):
        try:
            return self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("Expense store query failed") from exc

    def find_by_date_range(self, start: date, end: date) -> list[Expense]:
        stmt = self._where(select(Expense), start, end).order_by(
            Expense.date, Expense.id
        )
        return list(self._execute(stmt).scalars())

    def find_all(self) -> list[Expense]:
        stmt = self._where(select(Expense)).order_by(Expense.date, Expense.id)
        return list(self._execute(stmt).scalars())

    def recent(self, limit: int = 5) -> list[Expense]:
        stmt = (
            self._where(select(Expense))
            .order_by(Expense.created_at.desc(), Expense.id.desc())
            .limit(limit)
        )
        return list(self._execute(stmt).scalars())

    def page(
        self,
        *,
        limit: int,
        offset: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category: Optional[ExpenseCategory] = None,
    ) -> list[Expense]:
        stmt = (
            self._where(select(Expense), start, end, category)
            .order_by(Expense.date.desc(), Expense.created_at.desc(), Expense.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self._execute(stmt).scalars())

    def count(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category: Optional[ExpenseCategory] = None,
    ) -> int:
        stmt = self._where(select(func.count(Expense.id)), start, end, category)
        return int(self._execute(stmt).scalar_one() or 0)

    def aggregate_by_field(
        self,
        field: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[AggregateRow]:
        try:
            column = self.GROUPABLE[field]
        except KeyError as exc:
            raise ValueError(f"Cannot group expenses by {field!r}") from exc
        stmt = self._where(
            select(
                column.label("key"),
                func.coalesce(func.sum(Expense.amount_cents), 0).label("total"),
                func.count(Expense.id).label("count"),
            ),
            start,
            end,
        ).group_by(column)
        return [
            AggregateRow(key=row.key, total_cents=int(row.total), count=int(row.count))
            for row in self._execute(stmt)
        ]

    def global_stats(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> GlobalStats:
        stmt = self._where(
            select(
                func.coalesce(func.sum(Expense.amount_cents), 0).label("total"),
                func.count(Expense.id).label("count"),
                func.coalesce(func.min(Expense.amount_cents), 0).label("min"),
                func.coalesce(func.max(Expense.amount_cents), 0).label("max"),
            ),
            start,
            end,
        )
        row = self._execute(stmt).one()
        return GlobalStats(
            total_cents=int(row.total),
            count=int(row.count),
            min_cents=int(row.min),
            max_cents=int(row.max),
        )
