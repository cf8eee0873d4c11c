"""Rewrite a cleaned city to its canonical spelling within a jurisdiction.

Order matters: case repair, then aliases, then formal titles, then the
jurisdiction override table, then general abbreviation rules and apostrophe
repair. An alias or override hit is final.
"""

from __future__ import annotations

import re

from brand_locations.reference.store import ALL_JURISDICTIONS, CuratedLists, ReferenceDataStore

_WS_RE = re.compile(r"\s+")
_MC_RE = re.compile(r"\bMc([a-z])")
_SAINT_RE = re.compile(r"\bSaint\s+")
_ST_RE = re.compile(r"\b(St|Ste)\b(?![.'\-])")
_MID_PARTICLE_RE = re.compile(r"(?<=\S) (Of|Du) (?=\S)")
_HYPHEN_PARTICLE_RE = re.compile(r"-(By|The|On)(?=-)")

_DIRECTIONS = {"E": "East", "N": "North", "S": "South", "W": "West"}
_LEADING_DIRECTION_RE = re.compile(r"^([ENSW])\.?\s+(?=\S)")
_GENERAL_RULES = (
    (re.compile(r"\bH(?:gts|ts)\b\.?"), "Heights"),
    (re.compile(r"\bSpgs\b\.?"), "Springs"),
    (re.compile(r"\bFt\b\.?\s*"), "Fort "),
    (re.compile(r"\bMt\b\.?\s*"), "Mount "),
    (re.compile(r"\s(?:Cty|Ciy)\.?$"), " City"),
)

_MISS = object()


def _collapse(city: str) -> str:
    return _WS_RE.sub(" ", city).strip()


def _is_particle(word: str, curated: CuratedLists) -> bool:
    lowered = word.lower()
    if lowered in curated.lowercase_particles:
        return True
    head, sep, _ = lowered.partition("'")
    return bool(sep) and f"{head}'" in curated.lowercase_particles


def _title_word(word: str) -> str:
    return "-".join(part.capitalize() for part in word.split("-"))


def repair_case(city: str, curated: CuratedLists) -> str:
    letters = [c for c in city if c.isalpha()]
    single_case = bool(letters) and (all(c.isupper() for c in letters) or all(c.islower() for c in letters))

    words = []
    for idx, word in enumerate(city.split(" ")):
        if single_case:
            word = _title_word(word)
        elif word[:1].islower() and (idx == 0 or not _is_particle(word, curated)):
            word = word[0].upper() + word[1:]
        word = _MC_RE.sub(lambda m: "Mc" + m.group(1).upper(), word)
        word = curated.prefixed_names.get(word.lower(), word)
        words.append(word)
    return " ".join(words)


def _lookup_alias(city: str, state: str, reference: ReferenceDataStore):
    key = city.lower()
    for table_key in (state, ALL_JURISDICTIONS):
        table = reference.city_aliases.get(table_key)
        if table is not None and key in table:
            return table[key]
    return _MISS


def apply_formal_titles(city: str, state: str, curated: CuratedLists) -> str:
    city = _SAINT_RE.sub(f"{curated.saint_form_for(state)} ", city)
    city = _ST_RE.sub(lambda m: m.group(1) + ".", city)
    city = _MID_PARTICLE_RE.sub(lambda m: f" {m.group(1).lower()} ", city)
    return _HYPHEN_PARTICLE_RE.sub(lambda m: "-" + m.group(1).lower(), city)


def apply_general_rules(city: str, curated: CuratedLists) -> str:
    city = _LEADING_DIRECTION_RE.sub(lambda m: _DIRECTIONS[m.group(1)] + " ", city)
    for pattern, replacement in _GENERAL_RULES:
        city = pattern.sub(replacement, city)
    city = _collapse(city)
    return curated.common_misspellings.get(city, city)


def repair_apostrophes(city: str, curated: CuratedLists) -> str:
    for pattern, canonical in curated.apostrophe_res:
        city = pattern.sub(lambda _m, value=canonical: value, city)
    return city


def normalise_city(city: str | None, state: str, reference: ReferenceDataStore) -> str:
    city = _collapse(city or "")
    if not city:
        return ""
    curated = reference.curated

    city = repair_case(city, curated)

    alias = _lookup_alias(city, state, reference)
    if alias is not _MISS:
        return alias or ""

    city = apply_formal_titles(city, state, curated)

    override = reference.city_overrides.get(state, {}).get(city)
    if override is not None:
        return override

    city = apply_general_rules(city, curated)
    return repair_apostrophes(city, curated)
