from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from errors import ReportValidationError, StorageError
from helpers import NOW, add_expense, fixed_clock, make_session
from models import ExpenseCategory
from services import ReportService

TODAY = NOW.date()


def _reports(session, user_id: int = 1) -> ReportService:
    return ReportService(session, user_id, clock=fixed_clock())


def test_category_report_breakdown_and_tie_break() -> None:
    session = make_session()
    add_expense(session, amount_cents=1000, on=date(2026, 3, 1), category=ExpenseCategory.food)
    add_expense(session, amount_cents=2000, on=date(2026, 3, 2), category=ExpenseCategory.food)
    add_expense(
        session, amount_cents=3000, on=date(2026, 3, 3), category=ExpenseCategory.shopping
    )

    report = _reports(session).category_report("2026-03-01", "2026-03-31")

    breakdown = report["category_breakdown"]
    assert [
        (
            row["category"],
            row["total_amount"],
            row["count"],
            row["avg_amount"],
            row["percentage"],
        )
        for row in breakdown
    ] == [
        ("Shopping", Decimal("30.00"), 1, Decimal("30.00"), Decimal("50.00")),
        ("Food", Decimal("30.00"), 2, Decimal("15.00"), Decimal("50.00")),
    ]
    assert report["summary"] == {
        "grand_total": Decimal("60.00"),
        "total_count": 3,
        "avg_expense": Decimal("20.00"),
        "categories_count": 2,
    }
    assert report["date_range"] == {
        "start_date": date(2026, 3, 1),
        "end_date": date(2026, 3, 31),
    }
    assert [e["amount"] for e in breakdown[1]["expenses"]] == [
        Decimal("10.00"),
        Decimal("20.00"),
    ]


def test_category_report_range_is_inclusive() -> None:
    session = make_session()
    add_expense(session, amount_cents=100, on=date(2026, 3, 1))
    add_expense(session, amount_cents=200, on=date(2026, 3, 31))
    add_expense(session, amount_cents=400, on=date(2026, 4, 1))
    add_expense(session, amount_cents=800, on=date(2026, 2, 28))

    report = _reports(session).category_report(date(2026, 3, 1), date(2026, 3, 31))

    assert report["summary"]["grand_total"] == Decimal("3.00")
    assert report["summary"]["total_count"] == 2


def test_category_percentages_sum_to_one_hundred() -> None:
    session = make_session()
    for category in (
        ExpenseCategory.food,
        ExpenseCategory.travel,
        ExpenseCategory.utilities,
    ):
        add_expense(session, amount_cents=1000, on=date(2026, 6, 1), category=category)
    add_expense(session, amount_cents=1, on=date(2026, 6, 2), category=ExpenseCategory.other)

    report = _reports(session).category_report("2026-06-01", "2026-06-30")

    total = sum(row["percentage"] for row in report["category_breakdown"])
    assert abs(total - Decimal("100")) <= Decimal("0.01")


def test_category_percentages_for_seven_equal_categories() -> None:
    session = make_session()
    categories = list(ExpenseCategory)[:7]
    for category in categories:
        add_expense(session, amount_cents=100, on=date(2026, 6, 1), category=category)

    report = _reports(session).category_report("2026-06-01", "2026-06-30")

    breakdown = report["category_breakdown"]
    assert [row["category"] for row in breakdown] == [c.value for c in categories]
    assert [row["percentage"] for row in breakdown] == [Decimal("14.29")] * 4 + [
        Decimal("14.28")
    ] * 3
    assert sum(row["percentage"] for row in breakdown) == Decimal("100.00")


def test_category_report_without_records_is_all_zero() -> None:
    session = make_session()

    report = _reports(session).category_report("2026-01-01", "2026-12-31")

    assert report["category_breakdown"] == []
    assert report["summary"] == {
        "grand_total": Decimal("0.00"),
        "total_count": 0,
        "avg_expense": Decimal("0.00"),
        "categories_count": 0,
    }


@pytest.mark.parametrize(
    "start, end",
    [
        ("2026-01-01", None),
        (None, "2026-01-31"),
        ("", ""),
        ("2026-02-01", "2026-01-31"),
        ("yesterday", "2026-01-31"),
        ("2025-06-01garbage", "2026-01-31"),
    ],
)
def test_category_report_rejects_bad_ranges(start, end) -> None:
    session = make_session()
    add_expense(session, amount_cents=100, on=date(2026, 1, 15))

    with pytest.raises(ReportValidationError):
        _reports(session).category_report(start, end)


def test_monthly_report_fills_all_twelve_months() -> None:
    session = make_session()
    add_expense(session, amount_cents=1000, on=date(2025, 1, 5))
    add_expense(session, amount_cents=3000, on=date(2025, 1, 25))
    add_expense(session, amount_cents=6000, on=date(2025, 12, 31))
    add_expense(session, amount_cents=9999, on=date(2026, 1, 1))

    report = _reports(session).monthly_report(2025)

    months = report["monthly_breakdown"]
    assert len(months) == 12
    assert [m["month"] for m in months] == list(range(1, 13))
    assert months[0]["month_name"] == "January"
    assert months[0]["total_amount"] == Decimal("40.00")
    assert months[0]["avg_amount"] == Decimal("20.00")
    assert months[5] == {
        "month": 6,
        "month_name": "June",
        "total_amount": Decimal("0.00"),
        "count": 0,
        "avg_amount": Decimal("0.00"),
    }
    assert months[11]["count"] == 1
    assert report["summary"] == {
        "yearly_total": Decimal("100.00"),
        "yearly_count": 3,
        "monthly_average": Decimal("8.33"),
        "active_months": 2,
    }


def test_monthly_report_for_empty_year() -> None:
    session = make_session()
    add_expense(session, amount_cents=1000, on=date(2026, 1, 5))

    report = _reports(session).monthly_report("1999")

    assert report["year"] == 1999
    assert report["summary"]["yearly_total"] == Decimal("0.00")
    assert report["summary"]["active_months"] == 0
    assert report["summary"]["monthly_average"] == Decimal("0.00")
    assert len(report["monthly_breakdown"]) == 12
    assert all(m["count"] == 0 for m in report["monthly_breakdown"])


@pytest.mark.parametrize("year", [None, "", "abc"])
def test_monthly_report_defaults_to_clock_year(year) -> None:
    session = make_session()
    add_expense(session, amount_cents=500, on=date(2025, 2, 1))

    report = _reports(session).monthly_report(year)

    assert report["year"] == 2025
    assert report["summary"]["yearly_count"] == 1


@pytest.mark.parametrize("year", [0, -4, 10000])
def test_monthly_report_rejects_out_of_range_year(year) -> None:
    with pytest.raises(ReportValidationError):
        _reports(make_session()).monthly_report(year)


def test_trend_report_skips_inactive_days_and_old_records() -> None:
    session = make_session()
    add_expense(session, amount_cents=4000, on=TODAY - timedelta(days=40))
    add_expense(session, amount_cents=1250, on=TODAY - timedelta(days=5))

    report = _reports(session).trend_report(30)

    assert report["daily_trends"] == [
        {
            "date": TODAY - timedelta(days=5),
            "total_amount": Decimal("12.50"),
            "count": 1,
            "categories_count": 1,
        }
    ]
    assert report["summary"] == {
        "period_total": Decimal("12.50"),
        "period_count": 1,
        "daily_average": Decimal("12.50"),
        "active_days": 1,
    }
    assert report["period"] == {
        "days": 30,
        "start_date": TODAY - timedelta(days=29),
        "end_date": TODAY,
    }


def test_trend_window_covers_exactly_the_requested_days() -> None:
    session = make_session()
    add_expense(session, amount_cents=100, on=TODAY - timedelta(days=6))
    add_expense(session, amount_cents=100, on=TODAY - timedelta(days=7))
    add_expense(session, amount_cents=100, on=TODAY)

    report = _reports(session).trend_report("7")

    assert [d["date"] for d in report["daily_trends"]] == [
        TODAY - timedelta(days=6),
        TODAY,
    ]
    assert report["summary"]["active_days"] <= 7


def test_trend_daily_average_divides_by_active_days() -> None:
    session = make_session()
    add_expense(session, amount_cents=1000, on=TODAY - timedelta(days=1))
    add_expense(session, amount_cents=500, on=TODAY - timedelta(days=1), category=ExpenseCategory.travel)
    add_expense(session, amount_cents=1001, on=TODAY - timedelta(days=3))
    add_expense(session, amount_cents=1001, on=TODAY - timedelta(days=10))

    report = _reports(session).trend_report(30)

    summary = report["summary"]
    assert summary["active_days"] == 3
    assert summary["period_total"] == Decimal("35.02")
    assert summary["daily_average"] == Decimal("11.67")
    assert report["daily_trends"][-1]["categories_count"] == 2


@pytest.mark.parametrize("days", [None, "", "abc", "-3", 0])
def test_trend_days_fall_back_to_thirty(days) -> None:
    report = _reports(make_session()).trend_report(days)

    assert report["period"]["days"] == 30
    assert report["summary"]["active_days"] == 0
    assert report["summary"]["daily_average"] == Decimal("0.00")


def test_trend_top_categories_limited_to_five() -> None:
    session = make_session()
    for idx, category in enumerate(ExpenseCategory):
        add_expense(
            session,
            amount_cents=(idx + 1) * 100,
            on=TODAY - timedelta(days=idx),
            category=category,
        )

    top = _reports(session).trend_report(30)["top_categories"]

    assert [row["category"] for row in top] == [
        "Other",
        "Travel",
        "Education",
        "Utilities",
        "Shopping",
    ]
    assert top[0] == {"category": "Other", "total_amount": Decimal("9.00"), "count": 1}


def test_summary_report() -> None:
    session = make_session()
    add_expense(
        session,
        amount_cents=250,
        on=date(2025, 9, 30),
        title="Old",
        created_at=datetime(2025, 9, 30, 8, 0),
    )
    for day in range(1, 7):
        add_expense(
            session,
            amount_cents=day * 1000,
            on=date(2025, 10, day),
            category=ExpenseCategory.travel if day % 2 else ExpenseCategory.food,
            title=f"Oct {day}",
            created_at=datetime(2025, 10, day, 9, 0),
        )

    report = _reports(session).summary_report()

    assert report["overview"] == {
        "total_expenses": Decimal("212.50"),
        "total_count": 7,
        "average_expense": Decimal("30.36"),
        "min_expense": Decimal("2.50"),
        "max_expense": Decimal("60.00"),
    }
    assert report["current_month"] == {"total_amount": Decimal("210.00"), "count": 6}
    assert report["top_categories"] == [
        {"category": "Food", "total_amount": Decimal("122.50"), "count": 4},
        {"category": "Travel", "total_amount": Decimal("90.00"), "count": 3},
    ]
    recent = report["recent_expenses"]
    assert [r["title"] for r in recent] == ["Oct 6", "Oct 5", "Oct 4", "Oct 3", "Oct 2"]
    assert set(recent[0]) == {"id", "title", "amount", "date", "category"}
    assert recent[0]["amount"] == Decimal("60.00")


def test_summary_report_without_records() -> None:
    report = _reports(make_session()).summary_report()

    assert report["overview"] == {
        "total_expenses": Decimal("0.00"),
        "total_count": 0,
        "average_expense": Decimal("0.00"),
        "min_expense": Decimal("0.00"),
        "max_expense": Decimal("0.00"),
    }
    assert report["current_month"] == {"total_amount": Decimal("0.00"), "count": 0}
    assert report["top_categories"] == []
    assert report["recent_expenses"] == []


def test_reports_never_include_other_users() -> None:
    session = make_session()
    add_expense(session, amount_cents=1000, on=TODAY, user_id=1)
    add_expense(
        session,
        amount_cents=99_999,
        on=TODAY,
        user_id=2,
        category=ExpenseCategory.travel,
    )

    reports = _reports(session, user_id=1)
    category = reports.category_report(TODAY, TODAY)
    monthly = reports.monthly_report(TODAY.year)
    trends = reports.trend_report(30)
    summary = reports.summary_report()

    assert category["summary"]["grand_total"] == Decimal("10.00")
    assert [r["category"] for r in category["category_breakdown"]] == ["Food"]
    assert monthly["summary"]["yearly_total"] == Decimal("10.00")
    assert trends["summary"]["period_total"] == Decimal("10.00")
    assert summary["overview"]["total_count"] == 1
    assert summary["overview"]["max_expense"] == Decimal("10.00")


def test_reports_are_idempotent() -> None:
    session = make_session()
    add_expense(session, amount_cents=1234, on=TODAY)
    add_expense(session, amount_cents=4321, on=TODAY - timedelta(days=2))
    reports = _reports(session)

    assert reports.trend_report(30) == reports.trend_report(30)
    assert reports.summary_report() == reports.summary_report()
    assert reports.monthly_report(2026) == reports.monthly_report(2026)


def test_storage_failures_propagate() -> None:
    engine = create_engine("sqlite://")
    with Session(engine) as session:
        reports = ReportService(session, 1, clock=fixed_clock())
        with pytest.raises(StorageError):
            reports.monthly_report(2026)
        with pytest.raises(StorageError):
            reports.summary_report()
