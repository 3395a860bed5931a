"""Postal code centroid import."""

import csv
import logging
from collections.abc import Iterable, Iterator
from typing import TextIO

from sqlalchemy import delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.core.exceptions import ValidationError
from homebirth.models.location import PostalCode

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


def parse_postal_codes(handle: TextIO) -> Iterator[dict]:
    """Read ``plz,lat,lng[,city]`` rows into postal_codes values."""
    reader = csv.DictReader(handle)
    missing = {"plz", "lat", "lng"} - set(reader.fieldnames or [])
    if missing:
        raise ValidationError(f"CSV is missing columns: {', '.join(sorted(missing))}")

    for line_no, record in enumerate(reader, start=2):
        plz = (record.get("plz") or "").strip()
        if not plz:
            continue
        try:
            latitude = float(record["lat"])
            longitude = float(record["lng"])
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid coordinates on line {line_no}") from exc
        yield {
            "postal_code": plz.zfill(5),
            "city": (record.get("city") or "").strip() or None,
            "latitude": latitude,
            "longitude": longitude,
        }


class PostalCodeService:

    async def replace_all(self, db: AsyncSession, rows: Iterable[dict]) -> int:
        """Replace the whole postal_codes table, inserting in batches."""
        await db.execute(delete(PostalCode))

        total = 0
        batch: list[dict] = []
        for row in rows:
            batch.append(row)
            if len(batch) >= BATCH_SIZE:
                await db.execute(insert(PostalCode), batch)
                total += len(batch)
                logger.info("Inserted postal code batch (%d rows so far)", total)
                batch = []
        if batch:
            await db.execute(insert(PostalCode), batch)
            total += len(batch)

        await db.flush()
        logger.info("Postal code import finished: %d rows", total)
        return total


postal_code_service = PostalCodeService()
