"""Process-lifetime reference tables.

Every table is read once by ``load_reference_store`` and exposed through
read-only views. The resulting ``ReferenceDataStore`` is passed explicitly to
each pipeline stage, so runs stay deterministic and brands can be processed in
parallel without shared mutable state.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from brand_locations.common.errors import ConfigError
from brand_locations.common.fs import read_yaml
from brand_locations.common.schema import validate_city_table, validate_curated_lists
from brand_locations.reference.bounds import BoundingBox, load_state_bounds
from brand_locations.reference.zipcodes import load_zip_table, valid_cities_from_zip_index

logger = logging.getLogger(__name__)

ALL_JURISDICTIONS = "*"
_APOSTROPHES = "['’`´]"


@dataclass(frozen=True, eq=False)
class CuratedLists:
    protected_compound_names: frozenset[str]
    county_names: tuple[str, ...]
    bare_prefixes: frozenset[str]
    repeated_word_cities: frozenset[str]
    venue_keywords: tuple[str, ...]
    url_filler_tokens: frozenset[str]
    street_suffixes: frozenset[str]
    secondary_unit_prefixes: tuple[str, ...]
    noise_suffixes: tuple[str, ...]
    lowercase_particles: frozenset[str]
    prefixed_names: Mapping[str, str]
    apostrophe_names: tuple[str, ...]
    common_misspellings: Mapping[str, str]
    saint_form: Mapping[str, str]
    test_sentinels: frozenset[tuple[str, str]]
    county_re: re.Pattern
    venue_re: re.Pattern
    secondary_unit_re: re.Pattern
    noise_suffix_re: re.Pattern
    apostrophe_res: tuple[tuple[re.Pattern, str], ...]

    def saint_form_for(self, state: str) -> str:
        return self.saint_form.get(state, self.saint_form["default"])


@dataclass(frozen=True, eq=False)
class ReferenceDataStore:
    zip_index: Mapping[str, tuple[str, str]]
    city_aliases: Mapping[str, Mapping[str, str | None]]
    city_overrides: Mapping[str, Mapping[str, str]]
    state_bounds: Mapping[str, BoundingBox]
    valid_cities: frozenset[tuple[str, str]]
    curated: CuratedLists

    def lookup_zip(self, postcode: str | None) -> tuple[str, str] | None:
        if not postcode:
            return None
        return self.zip_index.get(postcode)

    def is_valid_city(self, city: str, state: str) -> bool:
        return (city.lower(), state) in self.valid_cities


def _alternation(values) -> str:
    return "|".join(re.escape(value).replace(r"\ ", r"\s+") for value in values)


def _apostrophe_pattern(canonical: str) -> re.Pattern:
    head, _, tail = re.split(f"({_APOSTROPHES})", canonical, maxsplit=1)
    head_re = re.escape(head).replace(r"\ ", r"\s+")
    tail_re = re.escape(tail).replace(r"\ ", r"\s+")
    return re.compile(rf"\b{head_re}(?:{_APOSTROPHES}\s?|\s)?{tail_re}\b", re.IGNORECASE)


def build_curated_lists(cfg: dict) -> CuratedLists:
    cfg = validate_curated_lists(cfg)

    # Multi-word county names are tried before single-word ones.
    counties = tuple(sorted(set(cfg["county_names"]), key=lambda name: (-len(name.split()), -len(name), name)))
    county_re = re.compile(
        rf"^(?P<prefix>.+?)\s+(?:{_alternation(counties)})(?:'s)?(?:\s+(?:County|Co\.?|Parish))?$",
        re.IGNORECASE,
    )

    keywords = tuple(keyword.lower() for keyword in cfg["venue_keywords"])
    # Anchored so real places such as "Lake in the Hills" are kept.
    venue_re = re.compile(
        rf"\b(?:{_alternation(keywords)})\b|^(?:at|in\s+the)\s+\S",
        re.IGNORECASE,
    )
    secondary = tuple(prefix.lower() for prefix in cfg["secondary_unit_prefixes"])
    secondary_unit_re = re.compile(rf"^(?:{_alternation(secondary)})\b", re.IGNORECASE)
    noise_suffix_re = re.compile(rf"\s+(?:{_alternation(cfg['noise_suffixes'])})$", re.IGNORECASE)

    apostrophe_names = tuple(cfg["apostrophe_names"])
    for name in apostrophe_names:
        if not re.search(_APOSTROPHES, name):
            raise ConfigError(f"curated_lists.apostrophe_names entry lacks an apostrophe: {name!r}")

    sentinels = frozenset(
        (str(item["city"]).strip().lower(), str(item["state"]).strip().upper()) for item in cfg["test_sentinels"]
    )

    return CuratedLists(
        protected_compound_names=frozenset(name.lower() for name in cfg["protected_compound_names"]),
        county_names=counties,
        bare_prefixes=frozenset(word.lower() for word in cfg["bare_prefixes"]),
        repeated_word_cities=frozenset(name.lower() for name in cfg["repeated_word_cities"]),
        venue_keywords=keywords,
        url_filler_tokens=frozenset(token.lower() for token in cfg["url_filler_tokens"]),
        street_suffixes=frozenset(token.lower() for token in cfg["street_suffixes"]),
        secondary_unit_prefixes=secondary,
        noise_suffixes=tuple(cfg["noise_suffixes"]),
        lowercase_particles=frozenset(word.lower() for word in cfg["lowercase_particles"]),
        prefixed_names=MappingProxyType({str(k).lower(): str(v) for k, v in cfg["prefixed_names"].items()}),
        apostrophe_names=apostrophe_names,
        common_misspellings=MappingProxyType({str(k): str(v) for k, v in cfg["common_misspellings"].items()}),
        saint_form=MappingProxyType({str(k): str(v) for k, v in cfg["saint_form"].items()}),
        test_sentinels=sentinels,
        county_re=county_re,
        venue_re=venue_re,
        secondary_unit_re=secondary_unit_re,
        noise_suffix_re=noise_suffix_re,
        apostrophe_res=tuple((_apostrophe_pattern(name), name) for name in apostrophe_names),
    )


def _freeze_city_table(table: dict, *, lower_keys: bool) -> Mapping[str, Mapping[str, str | None]]:
    frozen = {}
    for state, entries in table.items():
        entries = entries or {}
        frozen[state] = MappingProxyType(
            {(str(raw).lower() if lower_keys else str(raw)): value for raw, value in entries.items()}
        )
    return MappingProxyType(frozen)


def _read_reference_yaml(path: Path):
    if not path.exists():
        raise ConfigError(f"Missing reference table: {path}")
    return read_yaml(path)


def _load_supplement(path: Path) -> set[tuple[str, str]]:
    payload = _read_reference_yaml(path) or {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Valid-city supplement must map states to city lists: {path}")
    out: set[tuple[str, str]] = set()
    for state, cities in payload.items():
        for city in cities or []:
            out.add((str(city).lower(), str(state).upper()))
    return out


def load_reference_store(config_dir: Path, reference_cfg: dict) -> ReferenceDataStore:
    def resolve(key: str) -> Path:
        return config_dir / reference_cfg[key]

    zip_index = load_zip_table(resolve("zip_table"))
    aliases = validate_city_table(
        _read_reference_yaml(resolve("city_aliases")), "city_aliases", allow_null=True
    )
    overrides = validate_city_table(
        _read_reference_yaml(resolve("city_overrides")), "city_overrides", allow_null=False
    )
    curated = build_curated_lists(_read_reference_yaml(resolve("curated_lists")))
    bounds = load_state_bounds(resolve("state_bounds"))

    valid_cities = valid_cities_from_zip_index(zip_index) | _load_supplement(resolve("valid_cities_supplement"))

    logger.debug(
        "reference store: %d postal codes, %d bounding boxes, %d valid cities",
        len(zip_index),
        len(bounds),
        len(valid_cities),
    )
    return ReferenceDataStore(
        zip_index=MappingProxyType(zip_index),
        city_aliases=_freeze_city_table(aliases, lower_keys=True),
        city_overrides=_freeze_city_table(overrides, lower_keys=False),
        state_bounds=MappingProxyType(bounds),
        valid_cities=frozenset(valid_cities),
        curated=curated,
    )
