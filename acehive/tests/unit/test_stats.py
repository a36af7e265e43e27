"""
tests/unit/test_stats.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for ResourceStats.
"""
from __future__ import annotations

import pytest

from acehive.domain.exceptions import FetchError
from acehive.services.stats import ResourceStats


class TestResourceStats:
    def test_by_year(self, storage):
        assert ResourceStats(storage).by_year() == {
            "1st Year": 1, "2nd Year": 3, "3rd Year": 0,
        }

    def test_by_resource_type(self, storage):
        assert ResourceStats(storage).by_resource_type() == {
            "CT Paper": 2, "Sem Paper": 1, "Study Material": 1,
        }

    def test_failure_is_fetch_error(self, failing_storage):
        with pytest.raises(FetchError) as exc_info:
            ResourceStats(failing_storage).by_year()
        assert exc_info.value.table == "resources"
        assert exc_info.value.message == "connection refused"
