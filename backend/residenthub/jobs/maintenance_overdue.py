"""Overdue maintenance job.

Intended for cron/Task Scheduler (e.g. daily shortly after midnight UTC) to
move DUE maintenance bills past their due date to OVERDUE. Safe to run
repeatedly.
"""

from __future__ import annotations

from datetime import datetime, timezone

from residenthub.database import WriteSessionLocal
from residenthub.apps.maintenance import services as maintenance_services
from residenthub.logging_config import setup_logger


def run() -> dict:
    """Execute the sweep and return a summary dict."""
    db = WriteSessionLocal()
    try:
        now = datetime.now(timezone.utc)
        count = maintenance_services.update_overdue_statuses(db, now=now)
        return {"updated": count, "as_of": now.isoformat()}
    finally:
        db.close()


if __name__ == "__main__":
    setup_logger()
    result = run()
    print("Overdue maintenance sweep completed:", result)
