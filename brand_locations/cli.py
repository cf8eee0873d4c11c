"""CLI entrypoint for the brand location normalisation pipeline."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from brand_locations.common.config_loader import load_all_configs, resolve_brands
from brand_locations.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, STAGES
from brand_locations.common.errors import PipelineError
from brand_locations.common.logging import build_logger, close_logger, log_event
from brand_locations.common.time_utils import generate_run_id, parse_run_date
from brand_locations.pipeline.reports import reports_dir, run_validate, write_run_summary
from brand_locations.pipeline.runner import load_collections, run_extract
from brand_locations.reference.store import load_reference_store


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "all"])
    parser.add_argument("--brand", default="all", help="brand key from brands.yml, or 'all'")
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = parse_run_date(args.run_date)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    try:
        try:
            bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
            brand_keys = resolve_brands(args.brand, bundle)
            reference = load_reference_store(config_dir, bundle.pipeline["reference"])
        except PipelineError as exc:
            log_event(
                logger,
                str(exc),
                run_id=run_id,
                event="CONFIG_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            return EXIT_HARD_FAIL

        stages = STAGES if args.command == "all" else (args.command,)
        out_dir = reports_dir(data_dir, bundle.pipeline)
        had_partial_failure = False

        for stage in stages:
            log_event(logger, "stage start", run_id=run_id, stage=stage, event="STAGE_START", status="ok")
            if stage == "extract":
                reports = run_extract(
                    brand_keys,
                    bundle.brands,
                    bundle.pipeline,
                    reference,
                    data_dir,
                    logger=logger,
                    run_id=run_id,
                    workers=max(1, args.workers),
                )
                failed = [key for key, report in reports.items() if report["status"] != "ok"]
                rows_out = sum(report.get("locations", 0) for report in reports.values())
            else:
                collections, failed = load_collections(brand_keys, bundle.pipeline, data_dir)
                for key in failed:
                    log_event(
                        logger,
                        f"no brand file for {key}",
                        run_id=run_id,
                        stage=stage,
                        brand=key,
                        event="BRAND_FAIL",
                        status="error",
                        error_code="MALFORMED_INPUT",
                    )
                validation = run_validate(collections, reference, data_dir, out_dir)
                rows_out = validation["boundary_mismatches"] + validation["suspicious_cities"]

            log_event(
                logger,
                "stage end",
                run_id=run_id,
                stage=stage,
                event="STAGE_END",
                status="error" if failed else "ok",
                rows_out=rows_out,
            )
            if failed:
                had_partial_failure = True
                if args.strict:
                    return EXIT_HARD_FAIL

        write_run_summary(out_dir, run_id, run_date, brand_keys, configured_keys=bundle.brands)
        if had_partial_failure:
            return EXIT_PARTIAL
        return EXIT_SUCCESS
    finally:
        close_logger(logger)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
