from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Hashable, Iterable, Optional, Protocol

from models import CATEGORY_ORDER, ExpenseCategory
from store import AggregateRow


class ExpenseLike(Protocol):
    amount_cents: int
    date: date
    category: ExpenseCategory


@dataclass
class Bucket:
    key: Hashable
    total_cents: int = 0
    count: int = 0
    categories: set[ExpenseCategory] = field(default_factory=set)
    members: list = field(default_factory=list)

    def add(self, record: ExpenseLike, *, keep_members: bool = False) -> None:
        self.total_cents += record.amount_cents
        self.count += 1
        self.categories.add(record.category)
        if keep_members:
            self.members.append(record)


def group_records(
    records: Iterable[ExpenseLike],
    key: Callable[[ExpenseLike], Hashable],
    *,
    keep_members: bool = False,
) -> dict[Hashable, Bucket]:
    buckets: dict[Hashable, Bucket] = {}
    for record in records:
        k = key(record)
        bucket = buckets.get(k)
        if bucket is None:
            bucket = buckets[k] = Bucket(k)
        bucket.add(record, keep_members=keep_members)
    return buckets


def rank_categories(
    buckets: Iterable[Bucket], limit: Optional[int] = None
) -> list[Bucket]:
    # equal totals: fewer records (larger average) first, then enum order
    ranked = sorted(
        buckets,
        key=lambda b: (-b.total_cents, b.count, CATEGORY_ORDER[b.key]),
    )
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def by_category(
    records: Iterable[ExpenseLike], *, keep_members: bool = False
) -> list[Bucket]:
    buckets = group_records(
        records, lambda r: ExpenseCategory(r.category), keep_members=keep_members
    )
    return rank_categories(buckets.values())


def by_month(records: Iterable[ExpenseLike]) -> dict[int, Bucket]:
    return group_records(records, lambda r: r.date.month)


def by_day(records: Iterable[ExpenseLike]) -> list[Bucket]:
    buckets = group_records(records, lambda r: r.date)
    return [buckets[day] for day in sorted(buckets)]


def buckets_from_rows(rows: Iterable[AggregateRow]) -> list[Bucket]:
    return [
        Bucket(ExpenseCategory(row.key), total_cents=row.total_cents, count=row.count)
        for row in rows
    ]


def totals(buckets: Iterable[Bucket]) -> tuple[int, int]:
    total_cents = 0
    count = 0
    for bucket in buckets:
        total_cents += bucket.total_cents
        count += bucket.count
    return total_cents, count
