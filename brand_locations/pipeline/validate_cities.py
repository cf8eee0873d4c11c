"""Flag city values that are structurally odd or unknown for their state."""

from __future__ import annotations

import re
from typing import Iterable

from brand_locations.common.constants import CA_PROVINCES
from brand_locations.common.models import CanonicalLocation, SuspiciousCity
from brand_locations.reference.store import ReferenceDataStore

MAX_CITY_WORDS = 3

_STRUCTURAL_CHECKS = (
    (re.compile(r"\(empty\)", re.IGNORECASE), "placeholder"),
    (re.compile(r"^\d"), "leading digit"),
    (re.compile(r"^[A-Z]{2,3}$"), "bare code"),
    (re.compile(r"(?:Twp|Hgts|Ctr|Vlg)$", re.IGNORECASE), "truncated suffix"),
    (re.compile(r"Bea$"), "truncated suffix"),
    (re.compile(r"\s+-\s*$"), "trailing dash"),
)
_DESIGNATION_RE = re.compile(r"\s+(?:Township|Twp|Heights|Hgts|Center|Ctr|Village|Vlg)\.?$", re.IGNORECASE)
_SAINT_VARIANTS = ((re.compile(r"\bSt\.\s"), "Saint "), (re.compile(r"\bSte\.\s"), "Sainte "))


def structural_problem(city: str) -> str | None:
    if not city:
        return "empty city"
    for pattern, reason in _STRUCTURAL_CHECKS:
        if pattern.search(city):
            return reason
    if len(city.split()) > MAX_CITY_WORDS:
        return "too many words"
    return None


def _candidate_spellings(city: str) -> list[str]:
    forms = [city]
    stripped = _DESIGNATION_RE.sub("", city)
    if stripped and stripped != city:
        forms.append(stripped)
    for form in list(forms):
        for pattern, replacement in _SAINT_VARIANTS:
            variant = pattern.sub(replacement, form)
            if variant != form:
                forms.append(variant)
    return forms


def validate_cities(
    locations: Iterable[CanonicalLocation],
    reference: ReferenceDataStore,
    source: str = "",
) -> list[SuspiciousCity]:
    flagged: list[SuspiciousCity] = []
    for loc in locations:
        if loc.state in CA_PROVINCES:
            continue
        reason = structural_problem(loc.city)
        if reason is None and not any(
            reference.is_valid_city(form, loc.state) for form in _candidate_spellings(loc.city)
        ):
            reason = "not in valid city list"
        if reason is None:
            continue
        flagged.append(
            SuspiciousCity(
                source=source,
                city=loc.city,
                state=loc.state,
                lat=loc.lat,
                lon=loc.lon,
                address=loc.address,
                reason=reason,
            )
        )
    return flagged
