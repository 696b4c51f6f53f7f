import csv
import re
from io import StringIO
from typing import Sequence

from models import Expense
from money import cents_to_amount


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
    writer.writerow(["Date", "Title", "Amount", "Category", "Notes"])
    for expense in expenses:
        writer.writerow(
            [
                expense.date.isoformat(),
                sanitize_csv_value(expense.title),
                f"{cents_to_amount(expense.amount_cents)}",
                expense.category.value,
                sanitize_csv_value(expense.notes or ""),
            ]
        )
    return output.getvalue()
