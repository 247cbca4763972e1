from dataclasses import dataclass
from datetime import datetime

from aggregation import CategoryTotal, summarize_month
from models import ExpenseCategory
from periods import DateWindow

JUNE = DateWindow(start=datetime(2025, 6, 1), end=datetime(2025, 7, 1))


@dataclass
class Spend:
    category: ExpenseCategory
    amount_cents: int
    occurred_at: datetime


def test_monthly_scenario_with_budget() -> None:
    expenses = [
        Spend(ExpenseCategory.food_dining, 4000, datetime(2025, 6, 2, 12, 0)),
        Spend(ExpenseCategory.food_dining, 6000, datetime(2025, 6, 9, 19, 30)),
        Spend(ExpenseCategory.travel, 20000, datetime(2025, 6, 15, 8, 0)),
    ]

    snapshot = summarize_month(expenses, 100000, JUNE, "2025-06")

    assert snapshot.month == "2025-06"
    assert snapshot.monthly_total_cents == 30000
    assert snapshot.monthly_budget_cents == 100000
    assert snapshot.budget_remaining_cents == 70000
    assert snapshot.category_breakdown == [
        CategoryTotal(ExpenseCategory.travel, 20000, 1),
        CategoryTotal(ExpenseCategory.food_dining, 10000, 2),
    ]


def test_budget_remaining_never_negative() -> None:
    expenses = [Spend(ExpenseCategory.shopping, 50000, datetime(2025, 6, 3))]

    snapshot = summarize_month(expenses, 20000, JUNE, "2025-06")

    assert snapshot.budget_remaining_cents == 0
    assert snapshot.monthly_total_cents - snapshot.monthly_budget_cents == 30000


def test_breakdown_partitions_the_monthly_total() -> None:
    amounts = [125, 999, 1, 40000, 310, 77, 5005, 640]
    categories = list(ExpenseCategory)
    expenses = [
        Spend(categories[i % len(categories)], amount, datetime(2025, 6, 1 + i))
        for i, amount in enumerate(amounts)
    ]

    snapshot = summarize_month(expenses, 0, JUNE, "2025-06")

    assert snapshot.monthly_total_cents == sum(amounts)
    assert (
        sum(item.total_cents for item in snapshot.category_breakdown)
        == snapshot.monthly_total_cents
    )
    assert sum(item.count for item in snapshot.category_breakdown) == len(amounts)


def test_equal_totals_are_ordered_by_category_name() -> None:
    expenses = [
        Spend(ExpenseCategory.travel, 500, datetime(2025, 6, 4)),
        Spend(ExpenseCategory.education, 500, datetime(2025, 6, 5)),
        Spend(ExpenseCategory.other, 900, datetime(2025, 6, 6)),
        Spend(ExpenseCategory.bills_utilities, 500, datetime(2025, 6, 7)),
    ]

    first = summarize_month(expenses, 0, JUNE, "2025-06")
    second = summarize_month(list(reversed(expenses)), 0, JUNE, "2025-06")

    assert [item.category for item in first.category_breakdown] == [
        ExpenseCategory.other,
        ExpenseCategory.bills_utilities,
        ExpenseCategory.education,
        ExpenseCategory.travel,
    ]
    assert first.category_breakdown == second.category_breakdown


def test_expenses_outside_window_are_ignored() -> None:
    expenses = [
        Spend(ExpenseCategory.food_dining, 1000, datetime(2025, 5, 31, 23, 59, 59)),
        Spend(ExpenseCategory.food_dining, 2000, datetime(2025, 6, 1, 0, 0)),
        Spend(ExpenseCategory.food_dining, 4000, datetime(2025, 7, 1, 0, 0)),
    ]

    snapshot = summarize_month(expenses, 5000, JUNE, "2025-06")

    assert snapshot.monthly_total_cents == 2000
    assert snapshot.category_breakdown == [
        CategoryTotal(ExpenseCategory.food_dining, 2000, 1)
    ]
    assert snapshot.budget_remaining_cents == 3000


def test_empty_month() -> None:
    snapshot = summarize_month([], 1500, JUNE, "2025-06")

    assert snapshot.monthly_total_cents == 0
    assert snapshot.category_breakdown == []
    assert snapshot.budget_remaining_cents == 1500
