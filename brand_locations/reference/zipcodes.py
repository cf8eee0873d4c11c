"""Postal-code table loading."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from brand_locations.common.errors import ConfigError
from brand_locations.common.fs import read_delimited

logger = logging.getLogger(__name__)

STATE_COLUMNS = ("state", "state_id", "state_code", "st")
POSTCODE_COLUMNS = ("zip", "zipcode", "zip_code", "postal_code", "postcode")
CITY_COLUMNS = ("primary_city", "city", "usps_city", "place")

_ZIP_RE = re.compile(r"^(\d{3,5})(?:-?\d{4})?$")


def normalise_zip(raw: str | None) -> str | None:
    if raw is None:
        return None
    match = _ZIP_RE.match(str(raw).strip())
    if not match:
        return None
    # Spreadsheet exports drop the leading zeros of New England codes.
    return match.group(1).zfill(5)


def _pick_column(header: list[str], candidates: tuple[str, ...], path: Path) -> str:
    lowered = {column.strip().lower(): column for column in header}
    for candidate in candidates:
        if candidate in lowered:
            return lowered[candidate]
    raise ConfigError(f"Postal-code table {path} lacks any of the columns: {', '.join(candidates)}")


def load_zip_table(path: Path) -> dict[str, tuple[str, str]]:
    if not path.exists():
        raise ConfigError(f"Missing postal-code table: {path}")
    delimiter = "\t" if path.suffix in (".tsv", ".txt") else ","
    header, rows = read_delimited(path, delimiter=delimiter)
    state_col = _pick_column(header, STATE_COLUMNS, path)
    zip_col = _pick_column(header, POSTCODE_COLUMNS, path)
    city_col = _pick_column(header, CITY_COLUMNS, path)

    index: dict[str, tuple[str, str]] = {}
    skipped = 0
    for row in rows:
        postcode = normalise_zip(row.get(zip_col))
        state = (row.get(state_col) or "").strip().upper()
        city = (row.get(city_col) or "").strip()
        if postcode is None or not state:
            skipped += 1
            continue
        # Last write wins for duplicated codes.
        index[postcode] = (city, state)

    logger.debug("loaded %d postal codes from %s (%d rows skipped)", len(index), path, skipped)
    return index


def valid_cities_from_zip_index(index: dict[str, tuple[str, str]]) -> set[tuple[str, str]]:
    return {
        (city.lower(), state)
        for city, state in index.values()
        if city and not city.startswith("Zcta")
    }
