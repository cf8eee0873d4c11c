import json
from pathlib import Path

from brand_locations.common.errors import ConfigError, EmptyResultError, PipelineError
from brand_locations.common.fs import read_delimited, write_csv, write_json
from brand_locations.common.logging import build_logger, close_logger, log_event
from brand_locations.common.time_utils import generate_run_id, parse_run_date


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_parse_run_date_defaults_and_iso():
    assert parse_run_date("2026-02-17") == "2026-02-17"
    assert len(parse_run_date(None)) == len("2026-02-17")


def test_error_codes_are_distinct():
    assert ConfigError.error_code == "CONFIG_ERROR"
    assert EmptyResultError("x").error_code == "EMPTY_RESULT"
    assert issubclass(EmptyResultError, PipelineError)


def test_write_json_is_sorted_and_newline_terminated(tmp_path: Path):
    path = tmp_path / "nested" / "out.json"
    write_json(path, {"b": 1, "a": "é"})

    assert path.read_text(encoding="utf-8") == '{\n  "a": "é",\n  "b": 1\n}\n'


def test_write_csv_round_trips_tabs(tmp_path: Path):
    path = tmp_path / "rows.tsv"
    write_csv(path, ["city", "state"], [{"city": "Fort Lee", "state": "NJ", "extra": 1}], delimiter="\t")

    assert path.read_bytes() == b"city\tstate\nFort Lee\tNJ\n"
    assert read_delimited(path, delimiter="\t") == (["city", "state"], [{"city": "Fort Lee", "state": "NJ"}])


def test_log_event_writes_json_lines(tmp_path: Path):
    logger = build_logger("run-log-test", data_dir=tmp_path)
    try:
        log_event(logger, "stage start", run_id="run-log-test", stage="extract", event="STAGE_START", status="ok")
        log_event(logger, "boom", run_id="run-log-test", brand="acme", status="error", error_code="EMPTY_RESULT")
    finally:
        close_logger(logger)

    lines = (tmp_path / "run_meta" / "run-log-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    first, second = (json.loads(line) for line in lines)
    assert first["stage"] == "extract"
    assert first["event"] == "STAGE_START"
    assert first["brand"] is None
    assert "level" not in first
    assert second["level"] == "WARNING"
    assert second["error_code"] == "EMPTY_RESULT"
