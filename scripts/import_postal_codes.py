#!/usr/bin/env python3
"""
Load German postal code centroids into the postal_codes table.

Replaces the existing rows. The CSV needs the columns plz, lat and lng;
a city column is optional.

Usage:
    python scripts/import_postal_codes.py data/postal_codes.csv
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from homebirth.database import close_db, get_db_context  # noqa: E402
from homebirth.services.postal_code_service import (  # noqa: E402
    parse_postal_codes,
    postal_code_service,
)

DEFAULT_CSV = Path(__file__).parent.parent / "data" / "postal_codes.csv"


async def main(csv_path: Path) -> int:
    with csv_path.open(encoding="utf-8", newline="") as handle:
        async with get_db_context() as db:
            count = await postal_code_service.replace_all(db, parse_postal_codes(handle))
    await close_db()
    return count


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import postal code centroids")
    parser.add_argument("csv_path", nargs="?", type=Path, default=DEFAULT_CSV)
    args = parser.parse_args()

    if not args.csv_path.exists():
        print(f"ERROR: CSV file not found at {args.csv_path}")
        sys.exit(1)

    imported = asyncio.run(main(args.csv_path))
    print(f"Imported {imported} postal codes")
