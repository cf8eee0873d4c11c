"""Recover city, state and street address from free-form POI tags.

Each field is produced by a chain of small strategy functions with the shape
``(record, ctx) -> str | None``. Strategies are tried in order and the first
non-empty answer wins; a city candidate that reads like a hotel or venue is
rejected and the chain moves on. Nothing here raises for a bad record: fields
no strategy can recover come back empty and are listed in ``missing``.

The full-address city strategy anchors on a jurisdiction part: a state name
("Ohio") or a code, and the code may carry a ZIP ("OH 45373").
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import cached_property
from typing import Callable
from urllib.parse import unquote, urlparse

from brand_locations.common.constants import JURISDICTION_BY_NAME, JURISDICTION_NAMES_LONGEST_FIRST, JURISDICTIONS
from brand_locations.common.models import ExtractedFields, RawRecord
from brand_locations.reference.store import ReferenceDataStore
from brand_locations.reference.zipcodes import normalise_zip

logger = logging.getLogger(__name__)

_NAMES_ALT = "|".join(re.escape(name).replace(r"\ ", r"\s+") for name in JURISDICTION_NAMES_LONGEST_FIRST)
_JURISDICTION_NAME_RE = re.compile(rf"^(?:{_NAMES_ALT})(?:\s+\d{{5}}(?:-\d{{4}})?)?$", re.IGNORECASE)
_JURISDICTION_NAME_ANYWHERE_RE = re.compile(rf"\b(?:{_NAMES_ALT})\b", re.IGNORECASE)
_WORD_BEFORE_NAME_RE = re.compile(rf"([A-Za-z][A-Za-z.'\-]*)[\s,]+(?:{_NAMES_ALT})\b", re.IGNORECASE)
_TRAILING_NAME_RE = re.compile(rf"\b({_NAMES_ALT})(?:\s+\d{{5}}(?:-\d{{4}})?)?\s*$", re.IGNORECASE)
_CODE_ZIP_PART_RE = re.compile(r"^([A-Z]{2})(?:\s+\d{5}(?:-\d{4})?)?$")
_CODE_ZIP_RE = re.compile(r"\b([A-Z]{2})\s+\d{5}(?:-\d{4})?\b")
_TRAILING_ZIP_RE = re.compile(r"(?:^|[\s,])(\d{5}(?:-\d{4})?)\s*(?:,?\s*(?:USA?|United States))?\s*$")
_DIGIT_RE = re.compile(r"\d")

_NAME_DASH_RE = re.compile(r"\s[-–—]\s+([^-–—]+)$")
_NAME_OF_RE = re.compile(r"(?:'s)?\s+of\s+(.+)$", re.IGNORECASE)
_NAME_IN_RE = re.compile(r"\sin\s+(.+)$", re.IGNORECASE)
_NAME_VENUE_PHRASE_RE = re.compile(r"\s(?:at|in\s+the)\s+\S", re.IGNORECASE)
_STORE_NUMBER_RE = re.compile(r"\b(?:store|no|number)\b\.?|#|\b\d+\b", re.IGNORECASE)

URL_SLUG_ANCHORS = frozenset({"location", "locations", "store", "stores"})
_SLUG_SPLIT_RE = re.compile(r"[-_+\s]+")


@dataclass(frozen=True)
class ExtractionSettings:
    city_tags: tuple[str, ...]
    state_tags: tuple[str, ...]
    address_tags: tuple[str, ...]
    full_address_tags: tuple[str, ...]
    name_tags: tuple[str, ...]
    brand_tags: tuple[str, ...]
    postcode_tags: tuple[str, ...]
    url_tags: tuple[str, ...]
    country_tags: tuple[str, ...]

    @classmethod
    def from_config(cls, fields_cfg: dict) -> "ExtractionSettings":
        return cls(**{key: tuple(fields_cfg[key]) for key in cls.__dataclass_fields__})


def first_tag(record: RawRecord, keys: tuple[str, ...]) -> str:
    for key in keys:
        value = record.tag(key)
        if value:
            return value
    return ""


class RecordContext:
    """Per-record lookups shared between strategies, computed on first use."""

    def __init__(
        self,
        record: RawRecord,
        reference: ReferenceDataStore,
        settings: ExtractionSettings,
        brand_name: str = "",
    ) -> None:
        self.record = record
        self.reference = reference
        self.settings = settings
        self.brand_name = brand_name

    @property
    def curated(self):
        return self.reference.curated

    @cached_property
    def full_address(self) -> str:
        return first_tag(self.record, self.settings.full_address_tags)

    @cached_property
    def address_parts(self) -> list[str]:
        return [part.strip() for part in self.full_address.split(",") if part.strip()]

    @cached_property
    def display_name(self) -> str:
        return first_tag(self.record, self.settings.name_tags)

    @cached_property
    def brand_names(self) -> tuple[str, ...]:
        names = [self.brand_name] + [self.record.tag(key) for key in self.settings.brand_tags]
        unique = {name.strip() for name in names if name and name.strip()}
        return tuple(sorted(unique, key=lambda name: (-len(name), name)))

    @cached_property
    def postcode(self) -> str | None:
        for key in self.settings.postcode_tags:
            postcode = normalise_zip(self.record.tag(key))
            if postcode:
                return postcode
        match = _TRAILING_ZIP_RE.search(self.full_address)
        return normalise_zip(match.group(1)) if match else None

    @cached_property
    def postcode_entry(self) -> tuple[str, str] | None:
        return self.reference.lookup_zip(self.postcode)

    @cached_property
    def url_slug(self) -> tuple[str, str]:
        url = first_tag(self.record, self.settings.url_tags)
        return parse_url_slug(url, self.curated.url_filler_tokens) if url else ("", "")

    def is_location_detail(self, value: str) -> bool:
        return bool(_DIGIT_RE.search(value)) or bool(self.curated.secondary_unit_re.match(value))

    def is_venue(self, value: str) -> bool:
        return bool(self.curated.venue_re.search(value))


Strategy = Callable[[RawRecord, RecordContext], "str | None"]


def _jurisdiction_code(value: str) -> str | None:
    cleaned = value.replace(".", "").strip()
    if cleaned.upper() in JURISDICTIONS and len(cleaned) == 2:
        return cleaned.upper()
    return JURISDICTION_BY_NAME.get(" ".join(cleaned.split()).lower())


def _is_jurisdiction_part(part: str) -> bool:
    return bool(_JURISDICTION_NAME_RE.match(part)) or (
        bool(_CODE_ZIP_PART_RE.match(part)) and part[:2] in JURISDICTIONS
    )


def parse_url_slug(url: str, filler_tokens: frozenset[str]) -> tuple[str, str]:
    """Pull ``(city, state)`` out of store-locator URLs such as ``/locations/troy-oh/``."""
    segments = [unquote(seg) for seg in urlparse(url).path.split("/") if seg]
    candidate = ""
    for idx, segment in enumerate(segments):
        lowered = segment.lower()
        if idx > 0 and segments[idx - 1].lower() in URL_SLUG_ANCHORS:
            candidate = lowered
        elif "-of-" in lowered:
            candidate = lowered.split("-of-", 1)[1]
        if candidate:
            break
    if not candidate:
        return "", ""

    tokens = [token for token in _SLUG_SPLIT_RE.split(candidate) if token and not _DIGIT_RE.search(token)]
    state = ""
    # The state token is checked before filler removal: "in" and "me" are both.
    if tokens and len(tokens[-1]) == 2 and tokens[-1].upper() in JURISDICTIONS:
        state = tokens.pop().upper()
    city = " ".join(token.capitalize() for token in tokens if token not in filler_tokens)
    return city, state


# City strategies


def city_from_tags(record: RawRecord, ctx: RecordContext) -> str | None:
    return first_tag(record, ctx.settings.city_tags) or None


def city_from_full_address(record: RawRecord, ctx: RecordContext) -> str | None:
    parts = ctx.address_parts
    for idx in range(len(parts) - 1, 0, -1):
        if not _is_jurisdiction_part(parts[idx]):
            continue
        candidate = parts[idx - 1]
        if not ctx.is_location_detail(candidate):
            return candidate
    if len(parts) >= 2:
        candidate = parts[1]
        if not ctx.is_location_detail(candidate) and not _is_jurisdiction_part(candidate):
            return candidate
    return None


def _strip_brand_prefix(name: str, ctx: RecordContext) -> str | None:
    for brand in ctx.brand_names:
        if name.lower().startswith(brand.lower()):
            return name[len(brand):]
    return None


def city_from_name(record: RawRecord, ctx: RecordContext) -> str | None:
    name = ctx.display_name
    # "Starbucks at Target" names a host venue, not a town.
    if not name or ctx.is_venue(name) or _NAME_VENUE_PHRASE_RE.search(name):
        return None
    for pattern in (_NAME_DASH_RE, _NAME_OF_RE, _NAME_IN_RE):
        match = pattern.search(name)
        if match:
            candidate = match.group(1).split(",")[0].strip()
            if candidate and not ctx.is_location_detail(candidate):
                return candidate

    residual = _strip_brand_prefix(name, ctx)
    if residual is None:
        return None
    residual = _STORE_NUMBER_RE.sub(" ", residual).strip(" -–—:,()")
    if residual and not ctx.is_location_detail(residual):
        return residual.split(",")[0].strip()
    return None


def city_from_address_scan(record: RawRecord, ctx: RecordContext) -> str | None:
    matches = list(_WORD_BEFORE_NAME_RE.finditer(ctx.full_address))
    if not matches:
        return None
    word = matches[-1].group(1).strip(".")
    if word.isdigit() or word.lower() in ctx.curated.street_suffixes:
        return None
    return word


def city_from_postcode(record: RawRecord, ctx: RecordContext) -> str | None:
    entry = ctx.postcode_entry
    return entry[0] if entry else None


def city_from_url(record: RawRecord, ctx: RecordContext) -> str | None:
    return ctx.url_slug[0] or None


CITY_STRATEGIES: tuple[Strategy, ...] = (
    city_from_tags,
    city_from_full_address,
    city_from_name,
    city_from_address_scan,
    city_from_postcode,
    city_from_url,
)


# State strategies


def state_from_tags(record: RawRecord, ctx: RecordContext) -> str | None:
    for key in ctx.settings.state_tags:
        value = record.tag(key)
        if not value:
            continue
        code = _jurisdiction_code(value)
        if code:
            return code
    return None


def state_from_full_address(record: RawRecord, ctx: RecordContext) -> str | None:
    codes = [m.group(1) for m in _CODE_ZIP_RE.finditer(ctx.full_address) if m.group(1) in JURISDICTIONS]
    if codes:
        return codes[-1]
    # The first part is the street line and may itself carry a state name.
    for part in reversed(ctx.address_parts[1:]):
        match = _JURISDICTION_NAME_ANYWHERE_RE.search(part)
        if match:
            return JURISDICTION_BY_NAME.get(" ".join(match.group(0).split()).lower())
        if _is_jurisdiction_part(part):
            return part[:2]
    if len(ctx.address_parts) == 1:
        match = _TRAILING_NAME_RE.search(ctx.address_parts[0])
        if match:
            return _jurisdiction_code(match.group(1))
    return None


def state_from_postcode(record: RawRecord, ctx: RecordContext) -> str | None:
    entry = ctx.postcode_entry
    return entry[1] if entry else None


def state_from_url(record: RawRecord, ctx: RecordContext) -> str | None:
    return ctx.url_slug[1] or None


STATE_STRATEGIES: tuple[Strategy, ...] = (
    state_from_tags,
    state_from_full_address,
    state_from_postcode,
    state_from_url,
)


# Address strategies


def address_from_tags(record: RawRecord, ctx: RecordContext) -> str | None:
    for key in ctx.settings.address_tags:
        if key == "addr:street":
            housenumber = record.tag("addr:housenumber")
            street = record.tag("addr:street")
            if housenumber and street:
                return f"{housenumber} {street}"
        value = record.tag(key)
        if value:
            return value
    return None


ADDRESS_STRATEGIES: tuple[Strategy, ...] = (address_from_tags,)


def run_chain(
    strategies: tuple[Strategy, ...],
    record: RawRecord,
    ctx: RecordContext,
    accept: Callable[[str], bool] | None = None,
) -> str:
    for strategy in strategies:
        value = strategy(record, ctx)
        if not value:
            continue
        value = " ".join(value.split())
        if accept is not None and not accept(value):
            logger.debug("%s rejected candidate %r", strategy.__name__, value)
            continue
        return value
    return ""


def extract_fields(
    record: RawRecord,
    reference: ReferenceDataStore,
    settings: ExtractionSettings,
    brand_name: str = "",
) -> ExtractedFields:
    ctx = RecordContext(record, reference, settings, brand_name)
    city = run_chain(CITY_STRATEGIES, record, ctx, accept=lambda value: not ctx.is_venue(value))
    state = run_chain(STATE_STRATEGIES, record, ctx)
    address = run_chain(ADDRESS_STRATEGIES, record, ctx)

    missing = tuple(name for name, value in (("city", city), ("state", state), ("address", address)) if not value)
    if missing:
        logger.debug(
            "no value recovered for %s (source=%s record=%s)",
            ", ".join(missing),
            record.source_name,
            record.source_record_id,
        )
    return ExtractedFields(city=city, state=state, address=address, name=ctx.display_name, missing=missing)
