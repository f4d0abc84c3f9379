"""Report cached-load drift and capacity violations for every reviewer.

Run:
  PYTHONPATH=backend python scripts/check_ledger.py
"""

from __future__ import annotations

import sys

from app.db.session import SessionLocal
from app.services.reports import ledger_consistency_report


def main() -> int:
    with SessionLocal() as db:
        rows = ledger_consistency_report(db)

    problems = 0
    print(f"Faculty accounts: {len(rows)}")
    for row in rows:
        flags = []
        if row["cache_drift"]:
            flags.append(f"cache drift {row['cache_drift']:+d}")
        if row["over_capacity"]:
            flags.append("OVER CAPACITY")
        if flags:
            problems += 1
        status = ", ".join(flags) if flags else "ok"
        print(
            f"  - {row['name']} ({row['faculty_id']}): live={row['live_load']} "
            f"cached={row['cached_load']} max={row['max_capacity']} [{status}]"
        )
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
