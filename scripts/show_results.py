#!/usr/bin/env python3
"""
Print per-position winners from a ledger file.
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from election import ElectionLedger  # noqa: E402

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Show election results")
    parser.add_argument("--db", required=True, help="Path to DuckDB ledger file")
    parser.add_argument("--export", help="Export per-candidate results to CSV")

    args = parser.parse_args()

    if not Path(args.db).exists():
        logger.error(f"Ledger file not found: {args.db}")
        sys.exit(1)

    with ElectionLedger(db_path=args.db) as ledger:
        print(f"Phase: {ledger.get_phase().value}")
        results = ledger.get_results()

    if not results:
        print("No positions have candidates yet.")
        return

    rows = []
    for result in results:
        print(f"\n{result['position']} ({result['total_votes']} votes)")
        for candidate in result["candidates"]:
            marker = "*" if candidate["index"] == result["winner_index"] else " "
            print(
                f" {marker} {candidate['index']:2d}: {candidate['name']:25s} {candidate['vote_count']:5d}"
            )
            rows.append({"position": result["position"], **candidate})

    if args.export:
        pd.DataFrame(rows).to_csv(args.export, index=False)
        logger.info(f"Results exported to {args.export}")


if __name__ == "__main__":
    main()
