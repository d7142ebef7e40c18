"""
Configuration loading for the CEC TV bridge

Missing or malformed settings fall back to defaults rather than failing.
"""

import logging
import sys

import yaml

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger('Config')


def load_config(config_path: str = "config.yaml") -> dict:
    """Load configuration from YAML file, or return an empty config"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        print(f"Configuration file '{config_path}' not found, using defaults", file=sys.stderr)
        return {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Error reading configuration file, using defaults: {e}", file=sys.stderr)
        return {}

    if not isinstance(config, dict):
        if config is not None:
            print(f"Configuration file '{config_path}' is not a mapping, using defaults", file=sys.stderr)
        return {}
    return config


def get_section(config: dict, section: str) -> dict:
    value = config.get(section) or {}
    return value if isinstance(value, dict) else {}


def get_interval_ms(config: dict, section: str, default: int, key: str = 'interval_ms') -> int:
    """
    Read a positive millisecond setting.

    Args:
        config: Loaded configuration
        section: Top-level section, e.g. 'polling'
        default: Value used when the setting is missing or malformed
        key: Key inside the section

    Returns:
        The configured value, or default
    """
    value = get_section(config, section).get(key)
    if value is None:
        return default

    try:
        interval = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid {section}.{key} {value!r}, using {default}ms")
        return default

    if isinstance(value, bool) or interval <= 0:
        logger.warning(f"Invalid {section}.{key} {value!r}, using {default}ms")
        return default
    return interval


def setup_logging(config: dict) -> None:
    """Setup logging configuration"""
    log_config = get_section(config, 'logging')
    level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    log_format = log_config.get('format', DEFAULT_LOG_FORMAT)
    log_file = log_config.get('file')

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=handlers,
        force=True,
    )
