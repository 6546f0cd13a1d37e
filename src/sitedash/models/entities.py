# Rev 0.1.0
"""Lightweight entities mapped onto the spreadsheet rows.

Sheets store everything as text, so `from_record` is lenient: blanks become
defaults and numbers are parsed with `parse_number`. Date columns are kept
as the raw cell value; `sitedash.services.dates` normalizes them on use.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from sitedash.services.dates import to_canonical_date

_NUMBER_NOISE = re.compile(r"[,\s₹$]")


def parse_number(value: Any) -> float:
    """Coerce a cell value to a finite float; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        x = float(value)
    else:
        text = _NUMBER_NOISE.sub("", str(value))
        if not text:
            return 0.0
        try:
            x = float(text)
        except ValueError:
            return 0.0
    return x if math.isfinite(x) else 0.0


def half_up(x: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return int(math.floor(x + 0.5))


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def normalize_status(status: Any) -> str:
    """'In Progress', ' in-progress ', 'IN_PROGRESS' -> 'inprogress'."""
    return re.sub(r"[\s_\-]+", "", _text(status).lower())


COMPLETED_STATUSES = frozenset({"completed", "done"})


@dataclass
class Project:
    project_id: str
    name: str = ""
    start_date: Any = None
    deadline: Any = None
    amount: float = 0.0
    location: str = ""
    contractor: str = ""
    engineers: str = ""
    contact1: str = ""
    contact2: str = ""
    creation_date: Any = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Project":
        return cls(
            project_id=_text(rec.get("ProjectID")),
            name=_text(rec.get("Name")),
            start_date=rec.get("StartDate"),
            deadline=rec.get("Deadline"),
            amount=max(0.0, parse_number(rec.get("Amount"))),
            location=_text(rec.get("Location")),
            contractor=_text(rec.get("Contractor")),
            engineers=_text(rec.get("Engineers")),
            contact1=_text(rec.get("Contact1")),
            contact2=_text(rec.get("Contact2")),
            creation_date=rec.get("CreationDate"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "ProjectID": self.project_id,
            "Name": self.name,
            "StartDate": self.start_date if self.start_date is not None else "",
            "Deadline": self.deadline if self.deadline is not None else "",
            "Amount": _num(self.amount),
            "Location": self.location,
            "Contractor": self.contractor,
            "Engineers": self.engineers,
            "Contact1": self.contact1,
            "Contact2": self.contact2,
            "CreationDate": self.creation_date if self.creation_date is not None else "",
        }

    @property
    def start(self) -> Optional[date]:
        return to_canonical_date(self.start_date)

    @property
    def due(self) -> Optional[date]:
        return to_canonical_date(self.deadline)

    @property
    def has_deadline(self) -> bool:
        return _text(self.deadline) != ""


@dataclass
class Task:
    project_id: str
    name: str
    responsible: str = ""
    status: str = "Pending"
    progress: Optional[float] = None
    due_date: Any = None
    completed_date: Any = None
    last_updated: Any = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Task":
        raw_progress = rec.get("Progress")
        progress = None if _text(raw_progress) == "" else parse_number(raw_progress)
        return cls(
            project_id=_text(rec.get("ProjectID")),
            name=_text(rec.get("TaskName")),
            responsible=_text(rec.get("Responsible")),
            status=_text(rec.get("Status")) or "Pending",
            progress=progress,
            due_date=rec.get("Due_Date"),
            completed_date=rec.get("CompletedDate"),
            last_updated=rec.get("LastUpdated"),
        )

    @property
    def is_complete(self) -> bool:
        # Some sheets only track Status, others only Progress; either signal counts.
        if self.progress is not None and self.progress >= 100:
            return True
        return normalize_status(self.status) in COMPLETED_STATUSES

    @property
    def effective_progress(self) -> float:
        if self.is_complete:
            return 100.0
        return min(100.0, max(0.0, self.progress or 0.0))


@dataclass
class Expense:
    project_id: str
    date: Any = None
    description: str = ""
    amount: float = 0.0
    category: str = ""
    recorded_by: str = ""

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Expense":
        return cls(
            project_id=_text(rec.get("ProjectID")),
            date=rec.get("Date"),
            description=_text(rec.get("Description")),
            amount=parse_number(rec.get("Amount")),
            category=_text(rec.get("Category")),
            recorded_by=_text(rec.get("RecordedBy")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "ProjectID": self.project_id,
            "Date": self.date if self.date is not None else "",
            "Description": self.description,
            "Amount": _num(self.amount),
            "Category": self.category,
            "RecordedBy": self.recorded_by,
        }

    @property
    def spent(self) -> float:
        return max(0.0, self.amount)


@dataclass
class Material:
    project_id: str
    item_name: str
    item_id: str = ""
    required_qty: float = 0.0
    dispatched_qty: float = 0.0
    unit: str = ""

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Material":
        return cls(
            project_id=_text(rec.get("ProjectID")),
            item_name=_text(rec.get("Item_Name")),
            item_id=_text(rec.get("ItemID")),
            required_qty=parse_number(rec.get("Required_Qty")),
            dispatched_qty=parse_number(rec.get("Dispatched_Qty")),
            unit=_text(rec.get("Unit")),
        )

    def to_record(self) -> Dict[str, Any]:
        # Quantities go out as strings; some sheet proxies drop bare numbers on update.
        return {
            "ProjectID": self.project_id,
            "ItemID": self.item_id,
            "Item_Name": self.item_name,
            "Required_Qty": _qty(self.required_qty),
            "Dispatched_Qty": _qty(self.dispatched_qty),
            "Balance_Qty": _qty(self.balance),
            "Unit": self.unit,
        }

    @property
    def balance(self) -> float:
        return self.required_qty - self.dispatched_qty

    @property
    def dispatch_percent(self) -> int:
        if self.required_qty <= 0:
            return 0
        pct = half_up(self.dispatched_qty / self.required_qty * 100)
        return min(100, max(0, pct))


def _qty(x: float) -> str:
    return str(int(x)) if float(x).is_integer() else str(x)


def _num(x: float):
    return int(x) if float(x).is_integer() else x
