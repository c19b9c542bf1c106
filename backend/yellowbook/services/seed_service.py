"""
Yellow Book API: Seed Service
==============================

What:  Loads seed entries from JSON and writes them through the gateway.
How:   The file is read with aiofiles; every entry passes creation-mode
       validation before anything is written, so a bad seed file leaves the
       table untouched.
Who:   The `yellowbook seed` CLI command.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import aiofiles

from yellowbook.exceptions import SchemaViolationError
from yellowbook.gateway import StoredRecord, YellowBookGateway
from yellowbook.schemas.yellow_book import YellowBookCreate, validate_new_entry

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).resolve().parent.parent / "data" / "seed_entries.json"


async def load_seed_entries(path: Optional[Union[str, Path]] = None) -> List[Any]:
    """
    Read a JSON array of entry objects (camelCase keys).

    Raises:
        FileNotFoundError: path does not exist
        ValueError: the file is not valid JSON or not a JSON array
    """
    seed_path = Path(path) if path else DEFAULT_SEED_FILE
    async with aiofiles.open(seed_path, mode="r", encoding="utf-8") as f:
        raw = await f.read()

    try:
        entries = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Seed file {seed_path} is not valid JSON: {e}") from e
    if not isinstance(entries, list):
        raise ValueError(f"Seed file {seed_path} must contain a JSON array")
    return entries


def validate_seed_entries(entries: List[Any]) -> List[YellowBookCreate]:
    """
    Validate every seed entry in creation mode.

    Raises:
        SchemaViolationError: field paths are prefixed with the entry index
    """
    validated: List[YellowBookCreate] = []
    violations = []
    for index, raw in enumerate(entries):
        try:
            validated.append(validate_new_entry(raw))
        except SchemaViolationError as e:
            violations.extend(
                {"field": f"[{index}].{v['field']}", "message": v["message"]}
                for v in e.violations
            )
    if violations:
        raise SchemaViolationError(violations=violations, message="Invalid seed data")
    return validated


async def seed_database(
    gateway: YellowBookGateway,
    entries: List[Any],
) -> List[StoredRecord]:
    """Replace the table contents with `entries`; returns the stored records."""
    fields = validate_seed_entries(entries)

    removed = await gateway.clear()
    logger.info("Cleared %d existing yellow book entries", removed)

    records = [await gateway.create(item) for item in fields]
    logger.info("Seeded %d yellow book entries", len(records))
    return records
