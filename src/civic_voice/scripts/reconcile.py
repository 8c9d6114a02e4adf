"""Check cached engagement counters against the rows they summarize."""
from __future__ import annotations

import argparse
import sys

from civic_voice.db.session import SessionLocal
from civic_voice.services.reconcile import reconcile


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Report (and optionally repair) counter drift")
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Overwrite drifted counters with the recomputed values.",
    )
    args = parser.parse_args(argv)

    with SessionLocal() as db:
        report = reconcile(db, fix=args.fix)

    if report.clean:
        print("[reconcile] all counters match")
        return 0
    for drift in report.drifts:
        print(
            f"[reconcile] {drift.entity} {drift.entity_id}: "
            f"{drift.field} cached={drift.cached} actual={drift.actual}"
        )
    if report.repaired:
        print(f"[reconcile] repaired {len(report.drifts)} counters")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
