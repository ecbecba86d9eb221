#!/usr/bin/env python3
"""
Analyze a saved SOV Watcher result programmatically.

This script demonstrates how to:
- Load the JSON written by `sov-watcher calculate --output`
- Tell measured results from fallback distributions
- Summarize mentions per brand and per context type

Usage:
    sov-watcher calculate --input examples/answers.yaml --output result.json
    python examples/code-examples/analyze_results.py result.json
"""

import json
import sys
from collections import defaultdict
from pathlib import Path


def load_result(path: Path) -> dict:
    """Load a result JSON file."""
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def summarize_mentions(mentions: list[dict]) -> dict[str, dict]:
    """Group mentions by brand: count, score sum, best context type."""
    summary: dict[str, dict] = defaultdict(
        lambda: {"count": 0, "score": 0.0, "context_types": defaultdict(int)}
    )
    for mention in mentions:
        entry = summary[mention["brand"]]
        entry["count"] += 1
        entry["score"] += mention["score"]
        entry["context_types"][mention["context_type"]] += 1
    return summary


def main() -> int:
    if len(sys.argv) != 2:
        print(__doc__)
        return 1

    result = load_result(Path(sys.argv[1]))

    if not result["is_measured"]:
        print(f"Fallback result ({result['status']}): percentages are not measured.")
        return 0

    print(f"Method: {result['calculation_method']}")
    for brand, share in result["share_of_voice"].items():
        print(f"  {brand:<20} {share:6.2f}%  ({result['mention_counts'][brand]} mentions)")

    mentions = result.get("mentions", [])
    if mentions:
        print("\nMentions by brand:")
        for brand, entry in summarize_mentions(mentions).items():
            contexts = ", ".join(f"{k}={v}" for k, v in sorted(entry["context_types"].items()))
            print(f"  {brand:<20} score={entry['score']:.2f}  [{contexts}]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
