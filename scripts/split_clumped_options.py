"""
Split answer choices that were stored as one string.

Rows whose `options` pack several lettered choices together
(["A) 2 B) 4 C) 6 D) 8"]) are rewritten as separate options.

Usage:
    python scripts/split_clumped_options.py [--dry-run]
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "sat_tutor_agent" / "src"))

from dotenv import load_dotenv
from supabase import create_client

from sat_tutor_agent.question_cleanup import fix_double_wrapping, split_clumped_options


def plan_options(row: Dict[str, Any]) -> Optional[List[str]]:
    """New option list for a row, or None if it should stay as is."""
    options = [fix_double_wrapping(o) for o in (row.get("options") or []) if isinstance(o, str)]
    split = split_clumped_options(options)
    if split is None or split == row.get("options"):
        return None
    return split


def split_options(supabase, dry_run: bool = False) -> Dict[str, int]:
    result = supabase.table("questions").select("id, options").execute()
    questions = result.data or []
    print(f"📊 Found {len(questions)} questions to check\n")

    counts = {"total": len(questions), "updated": 0, "skipped": 0, "errors": 0}

    for row in questions:
        options = plan_options(row)
        if options is None:
            counts["skipped"] += 1
            continue

        print(f"✂️  Question {row.get('id')}: {len(row.get('options') or [])} -> {len(options)} options")

        if dry_run:
            counts["updated"] += 1
            continue

        try:
            supabase.table("questions").update({"options": options}).eq("id", row["id"]).execute()
            counts["updated"] += 1
        except Exception as e:
            print(f"❌ Error updating question {row.get('id')}: {e}", file=sys.stderr)
            counts["errors"] += 1

    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Split clumped multiple-choice options")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the changes without writing them",
    )
    args = parser.parse_args()

    load_dotenv(project_root / ".env")
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")
    if not url or not key:
        print("ERROR: SUPABASE_URL and SUPABASE_SERVICE_KEY must be set", file=sys.stderr)
        return 1

    counts = split_options(create_client(url, key), dry_run=args.dry_run)

    print("\n" + "=" * 60)
    print(f"✅ Split: {counts['updated']}   ⏭️  Unchanged: {counts['skipped']}   ❌ Errors: {counts['errors']}")
    if args.dry_run:
        print("(dry run, nothing written)")
    return 1 if counts["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
