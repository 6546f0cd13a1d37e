# Rev 0.1.0
# src/sitedash/services/ids.py
from __future__ import annotations

import re
from typing import Iterable

DEFAULT_PREFIX = "HT"


def next_project_id(existing_ids: Iterable[object], prefix: str = DEFAULT_PREFIX) -> str:
    """
    Next identifier in a PREFIX-NN scheme.
    Takes the highest numeric suffix among ids matching ^PREFIX-(\\d+)$
    (case-insensitive, 0 when none match), adds 1, pads to 2 digits.
    Two clients generating at once can collide; the write path re-checks.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$", re.IGNORECASE)
    highest = 0
    for raw in existing_ids:
        m = pattern.match(str(raw or "").strip())
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{prefix}-{highest + 1:02d}"
