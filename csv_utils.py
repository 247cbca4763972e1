import csv
import re
from io import StringIO
from typing import Sequence

from models import Expense


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    dangerous_patterns = [
        r"^cmd\s*",
        r"^powershell\s*",
        r"^bash\s*",
        r"^sh\s*",
        r"^\.",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def export_expenses(expenses: Sequence[Expense]) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(
        ["Date", "Title", "Category", "Amount", "PaymentMethod", "Description"]
    )
    for expense in expenses:
        writer.writerow(
            [
                expense.occurred_at.isoformat(),
                sanitize_csv_value(expense.title),
                expense.category.value,
                f"{expense.amount_cents / 100:.2f}",
                expense.payment_method.value,
                sanitize_csv_value(expense.description or ""),
            ]
        )
    return output.getvalue()
