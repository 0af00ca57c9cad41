"""
Compute the insights dashboard for a JSON export of a patient's reports.

Usage:
  python scripts/run_insights.py reports.json --user usr_123 [--out dashboard.json]
  python scripts/run_insights.py reports.json --user usr_123 --invalid-dates epoch
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal import config
from portal.auth.session import Role, Session
from portal.dashboard import build_dashboard
from portal.reports.loader import POLICIES, load_reports_file
from portal.util.files import write_json

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Health insights for a report export")
    parser.add_argument("reports", type=Path, help="JSON list of report rows")
    parser.add_argument("--user", default="local", help="user id for the session")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.PATIENT.value)
    parser.add_argument("--invalid-dates", choices=POLICIES, default=None,
                        help=f"override PORTAL_INVALID_DATE_POLICY (currently {config.INVALID_DATE_POLICY})")
    parser.add_argument("--out", type=Path, default=None, help="write dashboard JSON here")
    args = parser.parse_args(argv)

    try:
        reports = load_reports_file(args.reports, policy=args.invalid_dates)
    except (OSError, ValueError) as e:
        logger.error("Could not load %s: %s", args.reports, e)
        return 1

    session = Session.start(args.user, Role(args.role))
    try:
        dashboard = build_dashboard(session, reports)
    finally:
        session.end()

    if args.out:
        write_json(args.out, dashboard)
        logger.info("Dashboard written to %s", args.out)
    else:
        print(json.dumps(dashboard, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
