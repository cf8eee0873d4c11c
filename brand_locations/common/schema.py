"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from brand_locations.common.errors import ConfigError

BRAND_SOURCES = ("geojson", "overpass")


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_string_list(value, ctx: str) -> None:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{ctx} must be a list of strings")


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"fields", "precision", "filters", "input", "overpass", "reference", "output"}
    _assert_required_keys(cfg, top_required, "pipeline config")
    _assert_no_unknown_keys(cfg, top_required, "pipeline config", allow_unknown)

    field_keys = {
        "city_tags",
        "state_tags",
        "address_tags",
        "full_address_tags",
        "name_tags",
        "brand_tags",
        "postcode_tags",
        "url_tags",
        "country_tags",
    }
    _assert_required_keys(cfg["fields"], field_keys, "fields")
    for key in sorted(field_keys):
        _assert_string_list(cfg["fields"][key], f"fields.{key}")

    _assert_required_keys(cfg["precision"], {"output_decimals", "dedupe_decimals"}, "precision")
    _assert_required_keys(cfg["filters"], {"north_america_bbox", "allowed_countries"}, "filters")
    _assert_required_keys(
        cfg["filters"]["north_america_bbox"],
        {"min_lat", "max_lat", "min_lon", "max_lon"},
        "filters.north_america_bbox",
    )
    _assert_required_keys(cfg["input"], {"raw_dir"}, "input")
    _assert_required_keys(cfg["overpass"], {"endpoint", "timeout_seconds"}, "overpass")
    _assert_required_keys(
        cfg["reference"],
        {
            "zip_table",
            "state_bounds",
            "city_aliases",
            "city_overrides",
            "curated_lists",
            "valid_cities_supplement",
        },
        "reference",
    )
    _assert_required_keys(cfg["output"], {"brands_dir", "reports_dir"}, "output")
    return cfg


def validate_brands_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_required_keys(cfg, {"brands"}, "brands config")
    if not isinstance(cfg["brands"], list) or not cfg["brands"]:
        raise ConfigError("brands.brands must be a non-empty list")

    known = {"key", "display_name", "category", "source", "spider", "overpass_query", "use_location_name"}
    keys: list[str] = []
    for idx, brand in enumerate(cfg["brands"]):
        ctx = f"brands[{idx}]"
        _assert_required_keys(brand, {"key", "display_name", "category", "source"}, ctx)
        _assert_no_unknown_keys(brand, known, ctx, allow_unknown)
        if brand["source"] not in BRAND_SOURCES:
            raise ConfigError(f"Unsupported source in {ctx}: {brand['source']}")
        if brand["source"] == "geojson" and not brand.get("spider"):
            raise ConfigError(f"{ctx} requires spider for source=geojson")
        if brand["source"] == "overpass" and not brand.get("overpass_query"):
            raise ConfigError(f"{ctx} requires overpass_query for source=overpass")
        keys.append(brand["key"])

    dupes = {key for key in keys if keys.count(key) > 1}
    if dupes:
        raise ConfigError(f"Duplicate brand keys: {', '.join(sorted(dupes))}")
    return cfg


def validate_city_table(cfg, ctx: str, *, allow_null: bool) -> dict:
    if cfg is None:
        return {}
    _assert_mapping(cfg, ctx)
    for state, entries in cfg.items():
        if state == "*" and allow_null:
            pass
        elif not isinstance(state, str) or len(state) != 2 or not state.isupper():
            raise ConfigError(f"{ctx} keys must be 2-letter jurisdiction codes, got {state!r}")
        if entries is None:
            continue
        _assert_mapping(entries, f"{ctx}.{state}")
        for raw, canonical in entries.items():
            if canonical is None and allow_null:
                continue
            if not isinstance(canonical, str) or not canonical.strip():
                raise ConfigError(f"{ctx}.{state}[{raw!r}] must be a non-empty string")
    return cfg


def validate_curated_lists(cfg: dict, *, allow_unknown: bool = False) -> dict:
    list_keys = {
        "protected_compound_names",
        "county_names",
        "bare_prefixes",
        "repeated_word_cities",
        "venue_keywords",
        "url_filler_tokens",
        "street_suffixes",
        "secondary_unit_prefixes",
        "noise_suffixes",
        "lowercase_particles",
        "apostrophe_names",
    }
    mapping_keys = {
        "prefixed_names",
        "common_misspellings",
        "saint_form",
    }
    _assert_required_keys(cfg, list_keys | mapping_keys | {"test_sentinels"}, "curated_lists")
    _assert_no_unknown_keys(cfg, list_keys | mapping_keys | {"test_sentinels"}, "curated_lists", allow_unknown)
    for key in sorted(list_keys):
        _assert_string_list(cfg[key], f"curated_lists.{key}")
    for key in sorted(mapping_keys):
        _assert_mapping(cfg[key], f"curated_lists.{key}")
    _assert_required_keys(cfg["saint_form"], {"default"}, "curated_lists.saint_form")
    if not isinstance(cfg["test_sentinels"], list):
        raise ConfigError("curated_lists.test_sentinels must be a list")
    for idx, sentinel in enumerate(cfg["test_sentinels"]):
        _assert_required_keys(sentinel, {"city", "state"}, f"curated_lists.test_sentinels[{idx}]")
    return cfg
