#!/usr/bin/env python3
"""
Show which knowledge categories a question triggers and the prompt it produces.

No LLM call is made. Run from project root:

    python scripts/inspect_context.py "How much is tuition?"
    python scripts/inspect_context.py "Where is the campus?" --scores
    python scripts/inspect_context.py "history" --knowledge-dir ./my_data
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.knowledge.loader import load_knowledge_base
from app.services.classifier import classify, ordered, score
from app.services.context_builder import build_context


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect the knowledge context built for a question.")
    parser.add_argument("query", help="User question to classify.")
    parser.add_argument(
        "--scores",
        action="store_true",
        help="Also print the per-category keyword match fraction.",
    )
    parser.add_argument(
        "--knowledge-dir",
        default=None,
        help="Directory with contacts/faculties/history/tuitions JSON (default: bundled data).",
    )
    args = parser.parse_args()

    kb = load_knowledge_base(args.knowledge_dir)
    categories = classify(args.query)
    print("Categories:", ", ".join(c.value for c in ordered(categories)))
    if args.scores:
        for category, value in score(args.query).items():
            print(f"  {category.value:<10} {value:.3f}")

    bundle = build_context(categories, knowledge=kb)
    print(f"Token estimate: {bundle.token_estimate}")
    print("-" * 60)
    print(bundle.prompt)


if __name__ == "__main__":
    main()
