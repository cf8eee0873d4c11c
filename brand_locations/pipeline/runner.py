"""Per-brand extraction with fail-soft semantics and optional thread fan-out."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from brand_locations.common.errors import PipelineError
from brand_locations.common.http import OverpassClient
from brand_locations.common.logging import log_event
from brand_locations.common.models import RawRecord
from brand_locations.harvest.geojson_source import load_geojson_records
from brand_locations.harvest.overpass_source import fetch_overpass_records
from brand_locations.pipeline.assemble import AssemblySettings, assemble_collection
from brand_locations.pipeline.export import brand_output_path, read_brand_collection, write_brand_collection
from brand_locations.pipeline.reports import reports_dir, write_brand_report
from brand_locations.reference.store import ReferenceDataStore


def load_raw_records(
    brand: dict,
    pipeline_cfg: dict,
    data_dir: Path,
    overpass_client: OverpassClient | None = None,
) -> list[RawRecord]:
    raw_dir = data_dir / pipeline_cfg["input"]["raw_dir"]
    if brand["source"] == "overpass":
        return fetch_overpass_records(brand, pipeline_cfg["overpass"], raw_dir, overpass_client)
    return load_geojson_records(
        raw_dir / f"{brand['spider']}.geojson",
        source_name=brand["spider"],
        default_epsg=int(pipeline_cfg["input"].get("default_epsg", 4326)),
    )


def extract_brand(
    brand: dict,
    pipeline_cfg: dict,
    reference: ReferenceDataStore,
    data_dir: Path,
    overpass_client: OverpassClient | None = None,
) -> dict:
    settings = AssemblySettings.from_config(pipeline_cfg)
    records = load_raw_records(brand, pipeline_cfg, data_dir, overpass_client)
    collection, stats = assemble_collection(records, reference, settings, brand)
    out_path = write_brand_collection(brand_output_path(data_dir, pipeline_cfg, brand["key"]), collection)
    return {
        "brand": brand["key"],
        "display_name": brand["display_name"],
        "status": "ok",
        "output": out_path.relative_to(data_dir).as_posix(),
        **stats,
    }


def _failure_report(brand: dict, exc: Exception) -> dict:
    return {
        "brand": brand["key"],
        "display_name": brand["display_name"],
        "status": "error",
        "error_code": getattr(exc, "error_code", "UNEXPECTED_ERROR"),
        "message": str(exc),
    }


def run_extract(
    brand_keys: list[str],
    brands: dict[str, dict],
    pipeline_cfg: dict,
    reference: ReferenceDataStore,
    data_dir: Path,
    *,
    logger: logging.Logger,
    run_id: str,
    workers: int = 1,
    overpass_client: OverpassClient | None = None,
) -> dict[str, dict]:
    """Extract every brand and return its report, keyed and ordered by brand key.

    A failing brand never stops the others; its report carries the error code.
    """
    out_dir = reports_dir(data_dir, pipeline_cfg)
    # Overpass brands share one client so request pacing holds across workers.
    owns_client = overpass_client is None and any(brands[key]["source"] == "overpass" for key in brand_keys)
    if owns_client:
        overpass_client = OverpassClient.from_config(pipeline_cfg["overpass"])

    def _one(key: str) -> dict:
        brand = brands[key]
        try:
            report = extract_brand(brand, pipeline_cfg, reference, data_dir, overpass_client)
        except PipelineError as exc:
            report = _failure_report(brand, exc)
        except Exception as exc:
            logger.exception("unexpected failure extracting %s", key)
            report = _failure_report(brand, exc)
        if report["status"] != "ok":
            # A stale file from an earlier run must not reach validation.
            brand_output_path(data_dir, pipeline_cfg, key).unlink(missing_ok=True)
        write_brand_report(out_dir, key, report)
        return report

    reports: dict[str, dict] = {}
    try:
        if workers <= 1 or len(brand_keys) <= 1:
            for key in brand_keys:
                reports[key] = _one(key)
                _log_brand(logger, run_id, reports[key])
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {pool.submit(_one, key): key for key in brand_keys}
                for future in as_completed(futures):
                    report = future.result()
                    reports[futures[future]] = report
                    _log_brand(logger, run_id, report)
    finally:
        if owns_client:
            overpass_client.close()
    return {key: reports[key] for key in sorted(reports)}


def _log_brand(logger: logging.Logger, run_id: str, report: dict) -> None:
    if report["status"] == "ok":
        log_event(
            logger,
            f"extracted {report['locations']} locations",
            run_id=run_id,
            stage="extract",
            brand=report["brand"],
            event="BRAND_DONE",
            status="ok",
            rows_in=report["raw_rows"],
            rows_out=report["locations"],
        )
    else:
        log_event(
            logger,
            report["message"],
            run_id=run_id,
            stage="extract",
            brand=report["brand"],
            event="BRAND_FAIL",
            status="error",
            error_code=report["error_code"],
        )


def load_collections(brand_keys: list[str], pipeline_cfg: dict, data_dir: Path):
    """Read the brand files present on disk; returns ``(collections, missing_keys)``."""
    collections = []
    missing: list[str] = []
    for key in sorted(brand_keys):
        path = brand_output_path(data_dir, pipeline_cfg, key)
        if not path.exists():
            missing.append(key)
            continue
        collections.append(read_brand_collection(path))
    return collections, missing
