"""
Turn raw report rows (as exported by the portal backend) into Report records.

Rows with a missing or unparseable created_at are handled per policy:
  - "reject": the row is dropped and a warning is logged
  - "epoch":  created_at is pinned to 1970-01-01T00:00:00Z
Rows without a report_type or hospital are always dropped.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional

from portal import config
from portal.insights.models import Report
from portal.util.files import read_json
from portal.util.time import EPOCH, parse_iso

logger = logging.getLogger(__name__)

POLICIES = ("reject", "epoch")


def _check_policy(policy: str) -> str:
    if policy not in POLICIES:
        raise ValueError(f"Unknown invalid-date policy {policy!r}; expected one of {POLICIES}")
    return policy


def report_from_row(row: dict, policy: str = "reject") -> Optional[Report]:
    """Build a Report from a raw row, or return None if the row is rejected."""
    rid = str(row.get("id", ""))
    report_type = row.get("report_type")
    hospital = row.get("hospital")
    if not report_type or not hospital:
        logger.warning("Dropping report %s: missing report_type or hospital", rid or "<no id>")
        return None

    created_at = parse_iso(row.get("created_at"))
    if created_at is None:
        if policy == "epoch":
            logger.warning("Report %s has invalid created_at %r; using epoch", rid, row.get("created_at"))
            created_at = EPOCH
        else:
            logger.warning("Dropping report %s: invalid created_at %r", rid, row.get("created_at"))
            return None

    return Report(
        id=rid,
        report_type=str(report_type),
        hospital=str(hospital),
        created_at=created_at,
        report_date=row.get("report_date") or "",
        description=row.get("description"),
        file_name=row.get("file_name") or "",
        file_url=row.get("file_url") or "",
        file_type=row.get("file_type") or "",
        tags=tuple(row.get("tags") or ()),
    )


def load_reports(rows: Iterable[dict], policy: Optional[str] = None) -> list[Report]:
    """Convert raw rows to Reports, preserving input order."""
    policy = _check_policy(policy or config.INVALID_DATE_POLICY)
    reports = []
    skipped = 0
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Dropping non-object report row: %r", row)
            skipped += 1
            continue
        report = report_from_row(row, policy)
        if report is None:
            skipped += 1
            continue
        reports.append(report)

    if skipped:
        logger.info("Loaded %d reports (%d dropped)", len(reports), skipped)
    return reports


def load_reports_file(path: Path, policy: Optional[str] = None) -> list[Report]:
    """
    Load reports from a JSON export: either a list of rows or {"reports": [...]}.
    Raises ValueError if the file has neither shape.
    """
    data = read_json(path)
    if isinstance(data, dict):
        data = data.get("reports")
    if not isinstance(data, list):
        raise ValueError(
            f"{path} is not a report export. Expected a JSON list of reports "
            "or an object with a \"reports\" list."
        )
    return load_reports(data, policy)
