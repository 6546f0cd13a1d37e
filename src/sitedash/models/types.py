# sitedash type definitions
# Rev 0.1.0

from __future__ import annotations
from typing import Literal

# Sheet (collection) names as they appear in the spreadsheet
Collection = Literal["Projects", "Tasks", "Expenses", "Materials"]

PROJECTS: Collection = "Projects"
TASKS: Collection = "Tasks"
EXPENSES: Collection = "Expenses"
MATERIALS: Collection = "Materials"

# Dependent sheets, in the order a cascade delete walks them
DEPENDENT_COLLECTIONS: tuple[Collection, ...] = (TASKS, EXPENSES, MATERIALS)

PROJECT_KEY = "ProjectID"

TASK_STATUSES: tuple[str, ...] = ("Pending", "In Progress", "Completed")

BudgetStatus = Literal["healthy", "warning", "critical"]
