#!/usr/bin/env python3
"""
bubblelevel - Desktop bubble level

Moves a bubble inside a ring according to accelerometer tilt and beeps
when the device is level.
"""

import argparse
import cProfile
import sys
from pathlib import Path

from config import Config, ConfigInvalid, LOG_LEVELS, SENSOR_SOURCES
from config_loader import load_config
from logging_utils import configure_logging, get_log_level, log_event


def build_overrides(args: argparse.Namespace) -> dict:
    """Translate command-line flags into a config override dict."""
    overrides: dict = {}
    if args.source:
        overrides.setdefault("sensor", {})["source"] = args.source
    if args.color:
        overrides.setdefault("display", {})["indicator_color"] = args.color
    if args.interval_ms:
        overrides.setdefault("tilt", {})["sample_interval_ms"] = args.interval_ms
    if args.log_level:
        overrides["log_level"] = args.log_level
    return overrides


def run_app(app_argv: list[str], config: Config) -> int:
    from PyQt6.QtWidgets import QApplication

    app = QApplication(app_argv)
    app.setStyle("Fusion")

    # Import the GUI (pyqtgraph etc.) only once QApplication exists
    from main import BubbleLevelWindow

    window = BubbleLevelWindow(config)
    window.show()
    log_event("INFO", "App", "Started", source=config.sensor.source,
              color=config.display.indicator_color, log_level=get_log_level())

    return app.exec()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the bubble level")
    parser.add_argument("--config", type=Path, help="JSON file with config overrides (read only)")
    parser.add_argument("--source", choices=SENSOR_SOURCES, help="Tilt source")
    parser.add_argument("--color", help="Bubble color (must be in the palette)")
    parser.add_argument("--interval-ms", type=int, help="Sensor update interval in ms")
    parser.add_argument("--log-level", choices=LOG_LEVELS)
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()

    try:
        config = load_config(args.config, build_overrides(args))
    except ConfigInvalid as e:
        log_event("ERROR", "Config", "Invalid configuration", error=e)
        sys.exit(2)
    configure_logging(config)

    # Keep Qt argument list clean; avoid passing our flags downstream
    app_argv = [sys.argv[0]]

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = run_app(app_argv, config)
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = run_app(app_argv, config)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
