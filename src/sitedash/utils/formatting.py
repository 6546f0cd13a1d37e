# Rev 0.1.0
# src/sitedash/utils/formatting.py
"""Display strings for KPIs. Unknown values render as 'N/A', never as 0."""
from __future__ import annotations

from typing import Optional

from sitedash.services.metrics import FinancialKPIs, TimeKPIs

NA = "N/A"
NO_DEADLINE = "No Deadline"
NO_BUDGET_SET = "Over budget (no budget set)"


def group_indian(n: int) -> str:
    """1234567 -> '12,34,567' (lakh/crore grouping)."""
    s = str(abs(int(n)))
    if len(s) > 3:
        head, tail = s[:-3], s[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        s = ",".join(pairs + [tail])
    return s


def format_currency(amount: Optional[float], symbol: str = "₹") -> str:
    if amount is None:
        return NA
    value = round(float(amount), 2)
    whole = int(abs(value))
    cents = round(abs(value) - whole, 2)
    text = group_indian(whole)
    if cents:
        text += f"{cents:.2f}"[1:].rstrip("0")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{text}"


def format_quantity(qty: float, unit: str = "") -> str:
    value = abs(float(qty))
    text = group_indian(int(value)) if value.is_integer() else f"{value:g}"
    sign = "-" if float(qty) < 0 else ""
    return f"{sign}{text} {unit}".strip()


def format_percent(pct: Optional[int]) -> str:
    return NA if pct is None else f"{pct}%"


def format_days(n: Optional[int]) -> str:
    if n is None:
        return NA
    return "1 day" if n == 1 else f"{n} days"


def format_days_spent(kpis: Optional[TimeKPIs]) -> str:
    return format_days(kpis.days_spent) if kpis else NA


def format_days_left(kpis: Optional[TimeKPIs]) -> str:
    if kpis is None:
        return NA
    if not kpis.has_deadline:
        return NO_DEADLINE
    if kpis.days_left is None:
        return NA
    text = format_days(kpis.days_left)
    return f"{text} (OVERDUE)" if kpis.is_overdue else text


def format_spent_percent(fin: Optional[FinancialKPIs]) -> str:
    if fin is None:
        return NA
    if fin.unbudgeted_spend:
        return NO_BUDGET_SET
    return format_percent(fin.spent_percent)
