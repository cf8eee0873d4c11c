import json

import pytest

from brand_locations.cli import parse_args, run_command


def _args(overlay, data_dir, *extra: str):
    return parse_args(
        [
            "all",
            "--config-dir",
            "config",
            "--overlay-config-dir",
            str(overlay),
            "--data-dir",
            str(data_dir),
            "--run-date",
            "2026-02-17",
            "--run-id",
            "run-partial",
            *extra,
        ]
    )


@pytest.mark.integration
def test_missing_raw_input_fails_only_that_brand(make_workspace):
    overlay, data_dir = make_workspace(brand_keys=("acme", "ghost"))

    exit_code = run_command(_args(overlay, data_dir))

    assert exit_code == 10
    assert (data_dir / "out" / "brands" / "acme.json").exists()
    assert not (data_dir / "out" / "brands" / "ghost.json").exists()

    reports = data_dir / "out" / "reports"
    ghost = json.loads((reports / "brands" / "ghost.json").read_text(encoding="utf-8"))
    assert ghost["status"] == "error"
    assert ghost["error_code"] == "STAGE_ERROR"

    summary = json.loads((reports / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "partial"
    assert summary["totals"]["failed_brands"] == 1
    assert summary["totals"]["locations"] == 2


@pytest.mark.integration
def test_strict_mode_stops_on_first_failing_stage(make_workspace):
    overlay, data_dir = make_workspace(brand_keys=("acme", "ghost"))

    exit_code = run_command(_args(overlay, data_dir, "--strict"))

    assert exit_code == 20
    assert not (data_dir / "out" / "reports" / "validation.json").exists()
    assert not (data_dir / "out" / "reports" / "run_summary.json").exists()


@pytest.mark.integration
def test_empty_brand_is_reported_with_its_error_code(make_workspace):
    overlay, data_dir = make_workspace(brand_keys=("acme",))
    raw = data_dir / "raw" / "acme_test.geojson"
    raw.write_text(json.dumps({"type": "FeatureCollection", "features": []}), encoding="utf-8")

    assert run_command(_args(overlay, data_dir)) == 10

    report = json.loads((data_dir / "out" / "reports" / "brands" / "acme.json").read_text(encoding="utf-8"))
    assert report["error_code"] == "EMPTY_RESULT"


@pytest.mark.integration
def test_rerun_drops_brand_file_left_by_earlier_success(make_workspace):
    overlay, data_dir = make_workspace(brand_keys=("acme",))
    assert run_command(_args(overlay, data_dir)) == 0
    assert (data_dir / "out" / "brands" / "acme.json").exists()

    raw = data_dir / "raw" / "acme_test.geojson"
    raw.write_text(json.dumps({"type": "FeatureCollection", "features": []}), encoding="utf-8")

    assert run_command(_args(overlay, data_dir)) == 10

    assert not (data_dir / "out" / "brands" / "acme.json").exists()
    reports = data_dir / "out" / "reports"
    boundary = (reports / "state_boundary_errors.tsv").read_text(encoding="utf-8").splitlines()
    assert len(boundary) == 1
    validation = json.loads((reports / "validation.json").read_text(encoding="utf-8"))
    assert validation["locations_checked"] == 0
