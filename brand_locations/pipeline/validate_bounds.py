"""Check that each location sits inside the bounding box of its stated state."""

from __future__ import annotations

from typing import Iterable, Mapping

from brand_locations.common.models import BoundaryMismatch, CanonicalLocation
from brand_locations.reference.bounds import BoundingBox, find_containing

NO_STATE = "NONE"


def validate_bounds(
    locations: Iterable[CanonicalLocation],
    bounding_boxes: Mapping[str, BoundingBox],
    source: str = "",
) -> list[BoundaryMismatch]:
    mismatches: list[BoundaryMismatch] = []
    for loc in locations:
        box = bounding_boxes.get(loc.state)
        # States without a configured box cannot be checked.
        if box is None or box.contains(loc.lat, loc.lon):
            continue
        actual = find_containing(loc.lat, loc.lon, bounding_boxes)
        mismatches.append(
            BoundaryMismatch(
                source=source,
                city=loc.city,
                stated_state=loc.state,
                actual_state="/".join(actual) if actual else NO_STATE,
                lat=loc.lat,
                lon=loc.lon,
                address=loc.address,
            )
        )
    return mismatches
