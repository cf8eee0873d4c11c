import json
from pathlib import Path

import pytest
import yaml

from brand_locations.common.config_loader import load_all_configs
from brand_locations.pipeline.assemble import AssemblySettings
from brand_locations.reference.store import load_reference_store

CONFIG_DIR = Path("config")


@pytest.fixture(scope="session")
def bundle():
    return load_all_configs(CONFIG_DIR)


@pytest.fixture(scope="session")
def reference(bundle):
    return load_reference_store(CONFIG_DIR, bundle.pipeline["reference"])


@pytest.fixture(scope="session")
def settings(bundle):
    return AssemblySettings.from_config(bundle.pipeline)


def _feature(lon, lat, **properties):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lon, lat]}, "properties": properties}


ACME_FEATURES = [
    _feature(-71.1097, 42.3736, ref="1", **{"addr:full": "100 Main St, Cambridge, MA 02139"}),
    _feature(-73.75, 42.65, ref="2", **{"addr:city": "FORT LEE", "addr:state": "NJ", "addr:housenumber": "2", "addr:street": "Main St"}),
    _feature(0.0, 0.0, ref="3", **{"addr:city": "Nowhere"}),
    _feature(-71.10971, 42.37361, ref="4", **{"addr:city": "Cambridge", "addr:state": "MA"}),
    _feature(-80.0, 41.0, ref="5", **{"addr:city": "Test City", "addr:state": "XX"}),
    _feature(2.3522, 48.8566, ref="6", **{"addr:city": "Paris", "addr:country": "FR"}),
]


@pytest.fixture
def make_workspace(tmp_path: Path):
    """Build an overlay config dir and a data dir holding raw scraper output."""

    def _make(brand_keys=("acme",), spiders_present=("acme_test",), name="ws"):
        root = tmp_path / name
        overlay = root / "overlay"
        overlay.mkdir(parents=True)
        brands = {
            "brands": [
                {
                    "key": key,
                    "display_name": key.title(),
                    "category": "coffee",
                    "source": "geojson",
                    "spider": "acme_test" if key != "ghost" else "ghost_test",
                }
                for key in brand_keys
            ]
        }
        (overlay / "brands.yml").write_text(yaml.safe_dump(brands, sort_keys=False), encoding="utf-8")

        data_dir = root / "data"
        raw_dir = data_dir / "raw"
        raw_dir.mkdir(parents=True)
        for spider in spiders_present:
            payload = {"type": "FeatureCollection", "features": ACME_FEATURES}
            (raw_dir / f"{spider}.geojson").write_text(json.dumps(payload), encoding="utf-8")
        return overlay, data_dir

    return _make
