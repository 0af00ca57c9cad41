"""Shared fixtures for portal tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from portal import config
from portal.insights.models import Report

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    """Minimum bcrypt cost so PIN tests stay quick."""
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_report() -> Callable[..., Report]:
    """Factory for reports dated relative to NOW."""
    counter = iter(range(1, 10_000))

    def _make(
        days_ago: float,
        report_type: str = "radiology",
        hospital: str = "City General",
        **extra: object,
    ) -> Report:
        n = next(counter)
        return Report(
            id=str(extra.pop("id", f"r{n}")),
            report_type=report_type,
            hospital=hospital,
            created_at=NOW - timedelta(days=days_ago),
            file_name=str(extra.pop("file_name", f"report_{n}.pdf")),
            **extra,
        )

    return _make


@pytest.fixture
def report_rows() -> list[dict]:
    """Raw rows as exported by the portal backend, including malformed ones."""
    return [
        {
            "id": "a1",
            "report_type": "pathology",
            "hospital": "City General",
            "created_at": "2026-01-10T09:30:00Z",
            "report_date": "2026-01-09",
            "description": "Lipid panel",
            "file_name": "lipids.pdf",
            "tags": ["blood", "annual"],
        },
        {
            "id": "a2",
            "report_type": "radiology",
            "hospital": "St. Mary's",
            "created_at": "2025-11-02T14:00:00+00:00",
        },
        {"id": "a3", "report_type": "cardiology", "hospital": "City General", "created_at": "yesterday"},
        {"id": "a4", "report_type": "neurology", "hospital": "", "created_at": "2025-12-01T00:00:00Z"},
        {"id": "a5", "hospital": "City General", "created_at": "2025-12-01T00:00:00Z"},
        {"id": "a6", "report_type": "cardiology", "hospital": "City General"},
    ]
