from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Protocol

from models import ExpenseCategory
from periods import DateWindow


class SpendRecord(Protocol):
    category: ExpenseCategory
    amount_cents: int
    occurred_at: datetime


@dataclass(frozen=True)
class CategoryTotal:
    category: ExpenseCategory
    total_cents: int
    count: int


@dataclass(frozen=True)
class StatsSnapshot:
    month: str
    monthly_total_cents: int
    monthly_budget_cents: int
    budget_remaining_cents: int
    category_breakdown: list[CategoryTotal] = field(default_factory=list)


def summarize_month(
    expenses: Iterable[SpendRecord],
    budget_cents: int,
    window: DateWindow,
    month_label: str,
) -> StatsSnapshot:
    """Monthly total, per-category totals and remaining budget for ``window``.

    Records outside the window are ignored. Categories are ordered by total
    descending, then by name so equal totals come out in a stable order.
    """
    totals: dict[ExpenseCategory, int] = {}
    counts: dict[ExpenseCategory, int] = {}
    for expense in expenses:
        if not window.contains(expense.occurred_at):
            continue
        category = expense.category
        totals[category] = totals.get(category, 0) + expense.amount_cents
        counts[category] = counts.get(category, 0) + 1

    breakdown = [
        CategoryTotal(category=category, total_cents=total, count=counts[category])
        for category, total in totals.items()
    ]
    breakdown.sort(key=lambda item: (-item.total_cents, item.category.value))

    monthly_total = sum(totals.values())
    return StatsSnapshot(
        month=month_label,
        monthly_total_cents=monthly_total,
        monthly_budget_cents=budget_cents,
        budget_remaining_cents=max(0, budget_cents - monthly_total),
        category_breakdown=breakdown,
    )
