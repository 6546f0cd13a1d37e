# tests/test_ids.py
from __future__ import annotations

import pytest

from sitedash.services.ids import next_project_id


def test_mixed_padding_takes_numeric_max():
    assert next_project_id(["HT-01", "HT-03", "HT-2"], "HT") == "HT-04"


@pytest.mark.parametrize(
    "existing,expected",
    [
        ([], "HT-01"),
        (["", None, "junk", "XY-50"], "HT-01"),
        (["ht-07", " HT-08 "], "HT-09"),
        (["HT-99"], "HT-100"),
        (["HT-1a", "HT-", "HT-05-2"], "HT-01"),
    ],
)
def test_next_id(existing, expected):
    assert next_project_id(existing) == expected


def test_prefix_is_literal():
    assert next_project_id(["A.B-03", "AxB-09"], "A.B") == "A.B-04"
