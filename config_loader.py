import json
from pathlib import Path

from config import (
    Config,
    apply_dict_to_dataclass,
    validate_config,
)
from logging_utils import log_event


def load_config(config_file: Path | None = None, overrides: dict | None = None) -> Config:
    """Build the start-up config: defaults, then the JSON file, then overrides.

    A missing or unreadable file falls back to defaults. The result is
    validated before it is returned, so an invalid value raises ConfigInvalid.
    Nothing is ever written back.
    """
    config = Config()

    if config_file is not None:
        config_file = Path(config_file)
        try:
            if config_file.exists():
                with open(config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    apply_dict_to_dataclass(config, data)
                    log_event("INFO", "Config", "Loaded", path=config_file)
                else:
                    log_event("WARNING", "Config", "Ignoring non-object config file", path=config_file)
            else:
                log_event("INFO", "Config", "No config file found, using defaults", path=config_file)
        except (OSError, json.JSONDecodeError) as e:
            log_event("WARNING", "Config", "Failed to read config file, using defaults", path=config_file, error=e)
            config = Config()

    if overrides:
        apply_dict_to_dataclass(config, overrides)

    validate_config(config)
    return config
