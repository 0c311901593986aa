"""
Audit stored habits and repair rows that break the record invariants
(unsorted or duplicate completedDates, stale lastCompleted, negative streak,
malformed reminder). Streak values are left as stored. Safe to run multiple
times (idempotent).

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/repair_habits.py [--dry-run]

Or with a .env file:
    python scripts/repair_habits.py --dry-run
"""
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path so we can import the habits package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from habits.config import HABITS_TABLE
from habits.db import get_client
from habits.repair import audit_row, manual_problems

REPAIRED_COLUMNS = ("completedDates", "lastCompleted", "streak", "reminder")


def fetch_rows(db) -> list[dict]:
    res = db.table(HABITS_TABLE).select("*").order("position").execute()
    return res.data or []


def run(dry_run: bool = False):
    print(f"\n🔍 Auditing table: {HABITS_TABLE}\n")

    db = get_client()
    rows = fetch_rows(db)
    if not rows:
        print("  No habits found — nothing to repair.")
        return

    fixes = []
    manual = []
    for row in rows:
        fixed, problems = audit_row(row)
        label = f"{str(row.get('id', '?'))[:8]} ({row.get('name', '')})"
        unresolved = manual_problems(fixed)
        if unresolved:
            print(f"  {label} ⚠️  needs manual attention")
            for p in problems + unresolved:
                print(f"    - {p}")
            manual.append(label)
            continue
        if not problems:
            print(f"  {label} ✅")
            continue
        print(f"  {label} 🔧")
        for p in problems:
            print(f"    - {p}")
        fixes.append(fixed)

    print(f"\n  {len(fixes)} of {len(rows)} habit(s) need repair.")
    if manual:
        print(f"  {len(manual)} habit(s) cannot be repaired automatically and will still block loading.")

    if dry_run or not fixes:
        if dry_run:
            print("\n  DRY RUN — no changes written.")
        return

    for fixed in fixes:
        changes = {k: fixed[k] for k in REPAIRED_COLUMNS}
        db.table(HABITS_TABLE).update(changes).eq("id", fixed["id"]).execute()
    print(f"\n✅ Repaired {len(fixes)} habit(s)!\n")


if __name__ == "__main__":
    run(dry_run="--dry-run" in sys.argv)
