"""
Move topic labels out of stored question text.

Scans every row of the `questions` table, strips a leading topic label (and
question number) from `question` into `topic`, fixes doubled math delimiters
and drops boilerplate explanation lines. Prints a summary at the end.

Usage:
    python scripts/clean_question_topics.py [--dry-run]
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "sat_tutor_agent" / "src"))

from dotenv import load_dotenv
from supabase import create_client

from sat_tutor_agent.question_cleanup import clean_explanation, extract_topic, fix_double_wrapping


def plan_update(row: Dict[str, Any]) -> Dict[str, Any]:
    """Column updates for one question row (empty if it is already clean)."""
    updates: Dict[str, Any] = {}

    question = fix_double_wrapping(row.get("question") or "")
    extraction = extract_topic(question, row.get("topic"))
    if extraction.changed:
        question = extraction.text
        if extraction.topic != row.get("topic"):
            updates["topic"] = extraction.topic
    if question != (row.get("question") or ""):
        updates["question"] = question

    explanation = row.get("explanation")
    if explanation:
        cleaned = clean_explanation(fix_double_wrapping(explanation))
        if cleaned != explanation:
            updates["explanation"] = cleaned

    return updates


def clean_questions(supabase, dry_run: bool = False) -> Dict[str, int]:
    result = supabase.table("questions").select("*").execute()
    questions = result.data or []
    print(f"📊 Found {len(questions)} questions to process\n")

    counts = {"total": len(questions), "updated": 0, "skipped": 0, "errors": 0}

    for row in questions:
        updates = plan_update(row)
        if not updates:
            counts["skipped"] += 1
            continue

        print(f"✅ Question {row.get('id')}: {', '.join(sorted(updates))}")
        if "question" in updates:
            print(f"   Before: {(row.get('question') or '')[:80]}")
            print(f"   After:  {updates['question'][:80]}")
        if "topic" in updates:
            print(f"   Topic:  {row.get('topic') or 'None'} -> {updates['topic']}")

        if dry_run:
            counts["updated"] += 1
            continue

        try:
            supabase.table("questions").update(updates).eq("id", row["id"]).execute()
            counts["updated"] += 1
        except Exception as e:
            print(f"❌ Error updating question {row.get('id')}: {e}", file=sys.stderr)
            counts["errors"] += 1

    return counts


def print_summary(counts: Dict[str, int], dry_run: bool):
    print("\n" + "=" * 60)
    print("📈 SUMMARY" + (" (dry run, nothing written)" if dry_run else ""))
    print("=" * 60)
    print(f"Total Questions:  {counts['total']}")
    print(f"✅ Cleaned:       {counts['updated']}")
    print(f"⏭️  Already Clean: {counts['skipped']}")
    print(f"❌ Errors:        {counts['errors']}")
    print("=" * 60)


def main() -> int:
    parser = argparse.ArgumentParser(description="Strip topic labels from stored question text")
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

    counts = clean_questions(create_client(url, key), dry_run=args.dry_run)
    print_summary(counts, args.dry_run)
    return 1 if counts["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
