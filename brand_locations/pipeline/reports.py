"""Validation reports and run summary aggregation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from brand_locations.common.fs import read_json, write_csv, write_json
from brand_locations.common.models import BrandCollection
from brand_locations.pipeline.validate_bounds import validate_bounds
from brand_locations.pipeline.validate_cities import validate_cities
from brand_locations.reference.store import ReferenceDataStore

BOUNDARY_REPORT = "state_boundary_errors.tsv"
CITY_REPORT = "bad_locations.tsv"
VALIDATION_REPORT = "validation.json"
RUN_SUMMARY = "run_summary.json"

BOUNDARY_HEADERS = ["source", "city", "stated_state", "actual_state", "lat", "lon", "address"]
CITY_HEADERS = ["source", "city", "state", "lat", "lon", "address", "reason"]
EMPTY_CITY = "(empty)"


def reports_dir(data_dir: Path, pipeline_cfg: dict) -> Path:
    return data_dir / pipeline_cfg["output"]["reports_dir"]


def _report_row(item) -> dict:
    row = item.to_dict()
    row["city"] = row["city"] or EMPTY_CITY
    return row


def _count_by_source(rows: list[dict]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for row in rows:
        counts[row["source"]] = counts.get(row["source"], 0) + 1
    return dict(sorted(counts.items()))


def run_validate(
    collections: Iterable[BrandCollection],
    reference: ReferenceDataStore,
    data_dir: Path,
    out_dir: Path | None = None,
) -> dict:
    out_dir = out_dir or data_dir / "out" / "reports"
    boundary_rows: list[dict] = []
    city_rows: list[dict] = []
    total_locations = 0
    skipped_bounds = 0

    for collection in collections:
        total_locations += len(collection.locations)
        skipped_bounds += sum(1 for loc in collection.locations if loc.state not in reference.state_bounds)
        boundary_rows.extend(
            _report_row(item) for item in validate_bounds(collection.locations, reference.state_bounds, collection.key)
        )
        city_rows.extend(_report_row(item) for item in validate_cities(collection.locations, reference, collection.key))

    # Stable sorts: rows keep location order within a (source, key) group.
    boundary_rows.sort(key=lambda row: (row["source"], row["stated_state"]))
    city_rows.sort(key=lambda row: (row["source"], row["city"]))

    write_csv(out_dir / BOUNDARY_REPORT, BOUNDARY_HEADERS, boundary_rows, delimiter="\t")
    write_csv(out_dir / CITY_REPORT, CITY_HEADERS, city_rows, delimiter="\t")

    report = {
        "locations_checked": total_locations,
        "boundary_skipped_no_box": skipped_bounds,
        "boundary_mismatches": len(boundary_rows),
        "suspicious_cities": len(city_rows),
        "boundary_mismatches_by_brand": _count_by_source(boundary_rows),
        "suspicious_cities_by_brand": _count_by_source(city_rows),
    }
    write_json(out_dir / VALIDATION_REPORT, report)
    return report


def brand_report_path(out_dir: Path, brand_key: str) -> Path:
    return out_dir / "brands" / f"{brand_key}.json"


def write_brand_report(out_dir: Path, brand_key: str, payload: dict) -> Path:
    path = brand_report_path(out_dir, brand_key)
    write_json(path, payload)
    return path


def _percent_change(before: int, after: int) -> int:
    if before == 0:
        return 100
    return round((after - before) * 100 / before)


def compare_counts(previous: dict[str, int], current: dict[str, int]) -> dict:
    changes = []
    for key in sorted(current):
        if key in previous and previous[key] != current[key]:
            before, after = previous[key], current[key]
            changes.append(
                {
                    "key": key,
                    "before": before,
                    "after": after,
                    "diff": after - before,
                    "pct": _percent_change(before, after),
                }
            )
    changes.sort(key=lambda change: (-abs(change["diff"]), change["key"]))
    return {
        "increases": [change for change in changes if change["diff"] > 0],
        "decreases": [change for change in changes if change["diff"] < 0],
        "new_brands": sorted(key for key in current if key not in previous),
        "removed_brands": sorted(key for key in previous if key not in current),
        "unchanged": sum(1 for key in current if previous.get(key) == current[key]),
        "total_before": sum(previous.values()),
        "total_after": sum(current.values()),
    }


def _location_counts(summary: dict) -> dict[str, int]:
    return {
        key: int(entry["locations"])
        for key, entry in summary.get("brands", {}).items()
        if entry.get("status") == "ok" and "locations" in entry
    }


def write_run_summary(
    out_dir: Path,
    run_id: str,
    run_date: str,
    brand_keys: list[str],
    configured_keys: Iterable[str] | None = None,
) -> Path:
    summary_path = out_dir / RUN_SUMMARY
    previous = read_json(summary_path) if summary_path.exists() else None

    # Brands not processed in this run keep their last known entry.
    configured = set(configured_keys if configured_keys is not None else brand_keys)
    brands: dict[str, dict] = {
        key: entry for key, entry in (previous or {}).get("brands", {}).items() if key in configured
    }
    totals = {"raw_rows": 0, "locations": 0, "failed_brands": 0}
    for key in brand_keys:
        report_path = brand_report_path(out_dir, key)
        if not report_path.exists():
            brands[key] = {"status": "missing_report"}
            totals["failed_brands"] += 1
            continue
        report = read_json(report_path)
        brands[key] = report
        if report.get("status") != "ok":
            totals["failed_brands"] += 1
            continue
        totals["raw_rows"] += int(report.get("raw_rows", 0))
        totals["locations"] += int(report.get("locations", 0))

    payload = {
        "run_id": run_id,
        "run_date": run_date,
        "status": "partial" if totals["failed_brands"] else "success",
        "brands_run": sorted(brand_keys),
        "totals": totals,
        "brands": dict(sorted(brands.items())),
    }
    validation_path = out_dir / VALIDATION_REPORT
    if validation_path.exists():
        payload["validation"] = read_json(validation_path)
    if previous is not None:
        payload["comparison"] = {
            "previous_run_id": previous.get("run_id"),
            **compare_counts(_location_counts(previous), _location_counts(payload)),
        }
    write_json(summary_path, payload)
    return summary_path
