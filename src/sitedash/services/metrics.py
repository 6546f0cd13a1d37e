# Rev 0.1.0
# src/sitedash/services/metrics.py
"""Dashboard KPIs derived from one project and its related rows.

Pure functions over the entities in `sitedash.models.entities`; no I/O.
Malformed numbers count as 0, malformed dates come out as None ("unknown").

Task completion has two conventions in circulation:
  - average_progress_percent: mean of per-task progress (headline KPI)
  - completed_fraction_percent: completed tasks / all tasks
Both are exposed; TaskProgress carries both values.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from sitedash.models.entities import Expense, Material, Project, Task, half_up
from sitedash.models.types import BudgetStatus
from sitedash.services.dates import days_between

WARNING_REMAINING_RATIO = 0.30
CRITICAL_REMAINING_RATIO = 0.10


@dataclass(frozen=True)
class TimeKPIs:
    days_spent: Optional[int]
    days_left: Optional[int]        # days overdue when is_overdue
    is_overdue: Optional[bool]
    has_deadline: bool


@dataclass(frozen=True)
class TaskProgress:
    completion_percent: int
    completed_count: int
    total_count: int
    completed_fraction_percent: int


@dataclass(frozen=True)
class FinancialKPIs:
    budget: float
    total_spent: float
    remaining: float
    spent_percent: Optional[int]    # None together with unbudgeted_spend
    unbudgeted_spend: bool
    status: BudgetStatus


@dataclass(frozen=True)
class MaterialKPIs:
    dispatched_percent: int
    total_required: float
    total_dispatched: float


@dataclass(frozen=True)
class DashboardKPIs:
    time: Optional[TimeKPIs]
    tasks: Optional[TaskProgress]
    finance: Optional[FinancialKPIs]
    materials: Optional[MaterialKPIs]


# --- time ---------------------------------------------------------------------

def compute_time_kpis(project: Project, today: date) -> TimeKPIs:
    start = project.start
    days_spent = None
    if start is not None:
        # A start date in the future counts as 0 days spent.
        days_spent = 0 if start > today else days_between(start, today)

    if not project.has_deadline:
        return TimeKPIs(days_spent, None, None, has_deadline=False)

    deadline = project.due
    if deadline is None:
        return TimeKPIs(days_spent, None, None, has_deadline=True)
    if today <= deadline:
        return TimeKPIs(days_spent, max(0, days_between(today, deadline)), False, has_deadline=True)
    return TimeKPIs(days_spent, days_between(deadline, today), True, has_deadline=True)


# --- tasks --------------------------------------------------------------------

def average_progress_percent(tasks: Sequence[Task]) -> int:
    if not tasks:
        return 0
    return half_up(sum(t.effective_progress for t in tasks) / len(tasks))


def completed_fraction_percent(tasks: Sequence[Task]) -> int:
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.is_complete)
    return half_up(done / len(tasks) * 100)


def compute_task_progress(tasks: Iterable[Task]) -> TaskProgress:
    tasks = list(tasks)
    return TaskProgress(
        completion_percent=average_progress_percent(tasks),
        completed_count=sum(1 for t in tasks if t.is_complete),
        total_count=len(tasks),
        completed_fraction_percent=completed_fraction_percent(tasks),
    )


# --- money --------------------------------------------------------------------

def budget_status(budget: float, remaining: float) -> BudgetStatus:
    if remaining < budget * CRITICAL_REMAINING_RATIO:
        return "critical"
    if remaining < budget * WARNING_REMAINING_RATIO:
        return "warning"
    return "healthy"


def compute_financial_kpis(project: Project, expenses: Iterable[Expense]) -> FinancialKPIs:
    budget = max(0.0, project.amount)
    total_spent = sum(e.spent for e in expenses)
    remaining = budget - total_spent

    unbudgeted = False
    if budget > 0:
        spent_percent: Optional[int] = half_up(total_spent / budget * 100)
    elif total_spent > 0:
        spent_percent = None
        unbudgeted = True
    else:
        spent_percent = 0

    return FinancialKPIs(
        budget=budget,
        total_spent=total_spent,
        remaining=remaining,
        spent_percent=spent_percent,
        unbudgeted_spend=unbudgeted,
        status=budget_status(budget, remaining),
    )


# --- materials ----------------------------------------------------------------

def compute_material_kpis(materials: Iterable[Material]) -> MaterialKPIs:
    materials = list(materials)
    required = sum(max(0.0, m.required_qty) for m in materials)
    dispatched = sum(max(0.0, m.dispatched_qty) for m in materials)
    pct = 0
    if required > 0:
        pct = min(100, max(0, half_up(dispatched / required * 100)))
    return MaterialKPIs(dispatched_percent=pct, total_required=required, total_dispatched=dispatched)


# --- bundle -------------------------------------------------------------------

def compute_dashboard_kpis(
    project: Optional[Project],
    tasks: Optional[Sequence[Task]],
    expenses: Optional[Sequence[Expense]],
    materials: Optional[Sequence[Material]],
    today: date,
) -> DashboardKPIs:
    """None for any input (e.g. a panel that failed to load) gives None for its KPIs."""
    return DashboardKPIs(
        time=compute_time_kpis(project, today) if project is not None else None,
        tasks=compute_task_progress(tasks) if tasks is not None else None,
        finance=(
            compute_financial_kpis(project, expenses)
            if project is not None and expenses is not None
            else None
        ),
        materials=compute_material_kpis(materials) if materials is not None else None,
    )
