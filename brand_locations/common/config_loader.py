"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from brand_locations.common.errors import ConfigError
from brand_locations.common.fs import read_yaml
from brand_locations.common.schema import validate_brands_config, validate_pipeline_config


@dataclass(frozen=True)
class ConfigBundle:
    config_dir: Path
    pipeline: dict
    brands: dict[str, dict]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    def overlay_for(name: str) -> Path | None:
        return (overlay_config_dir / name) if overlay_config_dir is not None else None

    pipeline = validate_pipeline_config(
        _load_yaml_with_overlay(config_dir / "pipeline.yml", overlay_for("pipeline.yml")),
        allow_unknown=allow_unknown,
    )
    brands_cfg = validate_brands_config(
        _load_yaml_with_overlay(config_dir / "brands.yml", overlay_for("brands.yml")),
        allow_unknown=allow_unknown,
    )
    brands = {brand["key"]: brand for brand in brands_cfg["brands"]}
    return ConfigBundle(config_dir=config_dir, pipeline=pipeline, brands=brands)


def resolve_brands(target: str, bundle: ConfigBundle) -> list[str]:
    if target == "all":
        return sorted(bundle.brands)
    if target not in bundle.brands:
        raise ConfigError(f"Unknown brand: {target}")
    return [target]
