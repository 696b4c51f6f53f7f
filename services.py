from __future__ import annotations

import math
from datetime import date
from typing import Optional, Union

from rapidfuzz.distance import Levenshtein
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import aggregation
from errors import ExpenseNotFound, ReportValidationError, StorageError
from models import Expense, ExpenseCategory
from money import (
    amount_to_cents,
    average,
    cents_to_amount,
    normalize_percentages,
    parse_amount,
)
from periods import Clock, month_period, resolve_range, trailing_days, year_period
from schemas import ExpenseIn, ExpenseListQuery, ExpenseUpdateIn, QuickExpenseIn
from store import ExpenseStore

DEFAULT_TREND_DAYS = 30
TOP_CATEGORIES = 5
RECENT_EXPENSES = 5
MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


class ExpenseService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id
        self.store = ExpenseStore(session, user_id)

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError("Failed to save expense") from exc

    def create(self, data: ExpenseIn) -> Expense:
        expense = Expense(
            user_id=self.user_id,
            title=data.title,
            amount_cents=amount_to_cents(data.amount),
            date=data.date,
            category=data.category,
            notes=data.notes or None,
        )
        self.session.add(expense)
        self._commit()
        self.session.refresh(expense)
        return expense

    def get(self, expense_id: int) -> Expense:
        expense = self.session.get(Expense, expense_id)
        if not expense or expense.user_id != self.user_id:
            raise ExpenseNotFound("Expense not found")
        return expense

    def update(self, expense_id: int, data: ExpenseUpdateIn) -> Expense:
        expense = self.get(expense_id)
        changes = data.model_dump(exclude_unset=True)
        if "amount" in changes:
            expense.amount_cents = amount_to_cents(changes.pop("amount"))
        if "notes" in changes:
            expense.notes = changes.pop("notes") or None
        for field, value in changes.items():
            setattr(expense, field, value)
        self._commit()
        self.session.refresh(expense)
        return expense

    def delete(self, expense_id: int) -> Expense:
        expense = self.get(expense_id)
        self.session.delete(expense)
        self._commit()
        return expense

    def list(self, query: ExpenseListQuery) -> dict[str, object]:
        filters = dict(
            start=query.start_date, end=query.end_date, category=query.category
        )
        total_count = self.store.count(**filters)
        items = self.store.page(
            limit=query.limit, offset=(query.page - 1) * query.limit, **filters
        )
        total_pages = math.ceil(total_count / query.limit)
        return {
            "items": items,
            "pagination": {
                "current_page": query.page,
                "total_pages": total_pages,
                "total_count": total_count,
                "limit": query.limit,
                "has_next_page": query.page < total_pages,
                "has_prev_page": query.page > 1,
            },
        }

    def stats(self, clock: Optional[Clock] = None) -> dict[str, object]:
        clock = clock or Clock()
        month = month_period(clock.today())

        def block(start: Optional[date], end: Optional[date]) -> dict[str, object]:
            stats = self.store.global_stats(start, end)
            return {
                "total_amount": cents_to_amount(stats.total_cents),
                "total_count": stats.count,
                "avg_amount": average(stats.total_cents, stats.count),
            }

        return {
            "current_month": block(month.start, month.end),
            "all_time": block(None, None),
        }


def resolve_category(name: Optional[str]) -> ExpenseCategory:
    if not name or not name.strip():
        return ExpenseCategory.other
    wanted = name.strip().casefold()
    for category in ExpenseCategory:
        if category.value.casefold() == wanted:
            return category

    for category in ExpenseCategory:
        if Levenshtein.distance(category.value.casefold(), wanted) <= 1:
            return category
    return ExpenseCategory.other


class QuickAddService:
    def __init__(
        self, session: Session, user_id: int, clock: Optional[Clock] = None
    ) -> None:
        self.expenses = ExpenseService(session, user_id)
        self.clock = clock or Clock()

    def add(self, data: QuickExpenseIn) -> Expense:
        cents = parse_amount(data.amount)
        payload = ExpenseIn(
            title=data.title,
            amount=cents_to_amount(cents),
            date=data.date or self.clock.today(),
            category=resolve_category(data.category),
        )
        return self.expenses.create(payload)


def _parse_int(value: Union[str, int, None]) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _category_entry(bucket: aggregation.Bucket) -> dict[str, object]:
    return {
        "category": bucket.key.value,
        "total_amount": cents_to_amount(bucket.total_cents),
        "count": bucket.count,
    }


class ReportService:
    def __init__(
        self, session: Session, user_id: int, clock: Optional[Clock] = None
    ) -> None:
        self.store = ExpenseStore(session, user_id)
        self.clock = clock or Clock()

    def category_report(
        self, start_date: Union[str, date, None], end_date: Union[str, date, None]
    ) -> dict[str, object]:
        period = resolve_range(start_date, end_date)
        records = self.store.find_by_date_range(period.start, period.end)
        buckets = aggregation.by_category(records, keep_members=True)
        grand_total, total_count = aggregation.totals(buckets)

        shares = normalize_percentages([bucket.total_cents for bucket in buckets])
        breakdown = []
        for bucket, share in zip(buckets, shares):
            entry = _category_entry(bucket)
            entry["avg_amount"] = average(bucket.total_cents, bucket.count)
            entry["percentage"] = share
            entry["expenses"] = [
                {
                    "id": expense.id,
                    "title": expense.title,
                    "amount": cents_to_amount(expense.amount_cents),
                    "date": expense.date,
                }
                for expense in bucket.members
            ]
            breakdown.append(entry)

        return {
            "date_range": {"start_date": period.start, "end_date": period.end},
            "summary": {
                "grand_total": cents_to_amount(grand_total),
                "total_count": total_count,
                "avg_expense": average(grand_total, total_count),
                "categories_count": len(buckets),
            },
            "category_breakdown": breakdown,
        }

    def monthly_report(self, year: Union[str, int, None] = None) -> dict[str, object]:
        parsed = _parse_int(year)
        if parsed is None:
            parsed = self.clock.today().year
        if not 1 <= parsed <= 9999:
            raise ReportValidationError("Year must be between 1 and 9999")
        period = year_period(parsed)
        months = aggregation.by_month(
            self.store.find_by_date_range(period.start, period.end)
        )

        breakdown = []
        for number, name in enumerate(MONTH_NAMES, start=1):
            bucket = months.get(number) or aggregation.Bucket(number)
            breakdown.append(
                {
                    "month": number,
                    "month_name": name,
                    "total_amount": cents_to_amount(bucket.total_cents),
                    "count": bucket.count,
                    "avg_amount": average(bucket.total_cents, bucket.count),
                }
            )

        yearly_total, yearly_count = aggregation.totals(months.values())
        return {
            "year": parsed,
            "summary": {
                "yearly_total": cents_to_amount(yearly_total),
                "yearly_count": yearly_count,
                "monthly_average": average(yearly_total, 12),
                "active_months": sum(1 for b in months.values() if b.count > 0),
            },
            "monthly_breakdown": breakdown,
        }

    def trend_report(self, days: Union[str, int, None] = None) -> dict[str, object]:
        parsed = _parse_int(days)
        if parsed is None or parsed <= 0:
            parsed = DEFAULT_TREND_DAYS
        # window cannot start before date.min
        parsed = min(parsed, (self.clock.today() - date.min).days + 1)
        window = trailing_days(self.clock.today(), parsed)
        records = self.store.find_by_date_range(window.start, window.end)

        day_buckets = aggregation.by_day(records)
        period_total, period_count = aggregation.totals(day_buckets)
        top = aggregation.by_category(records)[:TOP_CATEGORIES]

        return {
            "period": {
                "days": parsed,
                "start_date": window.start,
                "end_date": window.end,
            },
            "summary": {
                "period_total": cents_to_amount(period_total),
                "period_count": period_count,
                "daily_average": average(period_total, len(day_buckets)),
                "active_days": len(day_buckets),
            },
            "daily_trends": [
                {
                    "date": bucket.key,
                    "total_amount": cents_to_amount(bucket.total_cents),
                    "count": bucket.count,
                    "categories_count": len(bucket.categories),
                }
                for bucket in day_buckets
            ],
            "top_categories": [_category_entry(b) for b in top],
        }

    def summary_report(self) -> dict[str, object]:
        month = month_period(self.clock.today())

        overall = self.store.global_stats()
        current = self.store.global_stats(month.start, month.end)
        top = aggregation.rank_categories(
            aggregation.buckets_from_rows(self.store.aggregate_by_field("category")),
            limit=TOP_CATEGORIES,
        )
        recent = self.store.recent(RECENT_EXPENSES)

        return {
            "overview": {
                "total_expenses": cents_to_amount(overall.total_cents),
                "total_count": overall.count,
                "average_expense": average(overall.total_cents, overall.count),
                "min_expense": cents_to_amount(overall.min_cents),
                "max_expense": cents_to_amount(overall.max_cents),
            },
            "current_month": {
                "total_amount": cents_to_amount(current.total_cents),
                "count": current.count,
            },
            "top_categories": [_category_entry(b) for b in top],
            "recent_expenses": [
                {
                    "id": expense.id,
                    "title": expense.title,
                    "amount": cents_to_amount(expense.amount_cents),
                    "date": expense.date,
                    "category": expense.category.value,
                }
                for expense in recent
            ],
        }
