from brand_locations.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["extract"])
    assert args.command == "extract"
    assert args.brand == "all"
    assert args.overlay_config_dir is None
    assert args.workers == 1
    assert args.strict is False


def test_parse_args_accepts_overlay_config_dir_and_workers():
    args = parse_args(["all", "--overlay-config-dir", "config/live", "--workers", "4", "--strict"])
    assert args.overlay_config_dir == "config/live"
    assert args.workers == 4
    assert args.strict is True
