"""Strip scraper contamination from a raw city string.

Scrapers glue counties, postal codes, state codes and country words onto the
city field. The rules below remove that noise. They run repeatedly until the
value stops changing, so cleaning an already clean city is a no-op.
"""

from __future__ import annotations

import re

from brand_locations.common.constants import JURISDICTIONS
from brand_locations.reference.store import CuratedLists

_WS_RE = re.compile(r"\s+")
_STATE_ZIP_RE = re.compile(r"[\s,]+([A-Za-z]{2})\s+\d{5}(?:-\d{4})?$")
_TRAILING_CODE_RE = re.compile(r"[\s,]+([A-Z]{2})$")

MIN_COUNTY_PREFIX = 4


def _trim(city: str) -> str:
    return _WS_RE.sub(" ", city).strip(" ,")


def _collapse_repeated_words(city: str, curated: CuratedLists) -> str:
    if city.lower() in curated.repeated_word_cities:
        return city
    words = city.split(" ")
    half, odd = divmod(len(words), 2)
    if odd or not half:
        return city
    head, tail = words[:half], words[half:]
    if [w.lower() for w in head] == [w.lower() for w in tail]:
        return " ".join(head)
    return city


def _strip_county(city: str, curated: CuratedLists) -> str:
    if city.lower() in curated.protected_compound_names:
        return city
    match = curated.county_re.match(city)
    if not match:
        return city
    prefix = match.group("prefix").strip(" ,")
    if len(prefix) < MIN_COUNTY_PREFIX or prefix.lower() in curated.bare_prefixes:
        return city
    return prefix


def _strip_state_zip(city: str) -> str:
    match = _STATE_ZIP_RE.search(city)
    if match and match.group(1).upper() in JURISDICTIONS:
        return city[: match.start()]
    return city


def _strip_trailing_code(city: str) -> str:
    match = _TRAILING_CODE_RE.search(city)
    if match and match.group(1) in JURISDICTIONS:
        return city[: match.start()]
    return city


def _strip_noise_suffix(city: str, curated: CuratedLists) -> str:
    return curated.noise_suffix_re.sub("", city)


def _apply_rules(city: str, curated: CuratedLists) -> str:
    city = _collapse_repeated_words(city, curated)
    city = _strip_county(city, curated)
    city = _strip_state_zip(city)
    city = _strip_trailing_code(city)
    city = _strip_noise_suffix(city, curated)
    return _trim(city)


def clean_city(raw: str | None, curated: CuratedLists) -> str:
    city = _trim(raw or "")
    while True:
        cleaned = _apply_rules(city, curated)
        if cleaned == city:
            return city
        city = cleaned
