"""
Configuration loader for the Raidar NAS monitor
Loads and validates configuration from YAML files
"""

import copy
import yaml
import logging
from typing import Any, Dict, List
from pathlib import Path
from datetime import datetime
import pytz

from .discovery.protocol import (
    PAYLOADS, REMOTE_PORT, LOCAL_PORT, BROADCAST_ADDRESS, MIN_STATUS_LENGTH,
    DISCOVERY_WINDOW_SECONDS, RESPONSE_TIMEOUT_SECONDS, RECEIVE_BUFFER_SIZE,
    DEFAULT_PROTOCOL_VERSION
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

REQUIRED_SECTIONS = ['raidar', 'polling']

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load the YAML configuration, validate it and fill in defaults.
    Failures are logged and re-raised.
    """
    path = Path(config_path)
    try:
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with path.open('r') as f:
            config = yaml.safe_load(f) or {}

        _validate_config(config)
        config = _apply_defaults(config)

    except Exception as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        raise

    logger.info(f"Configuration loaded from {config_path}")
    return config

def _require_positive(section: Dict, section_name: str, key: str) -> None:
    if key in section and section[key] <= 0:
        raise ValueError(f"{section_name}.{key} must be positive")

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping")

    for section in REQUIRED_SECTIONS:
        if section not in config or config[section] is None:
            raise ValueError(f"Missing required configuration section: {section}")

    # Validate raidar section
    raidar = config['raidar']
    version = raidar.get('protocol_version', DEFAULT_PROTOCOL_VERSION)
    if str(version) not in PAYLOADS:
        raise ValueError(
            f"raidar.protocol_version must be one of {', '.join(sorted(PAYLOADS))}, got {version}"
        )

    _require_positive(raidar, 'raidar', 'discovery_window_seconds')
    _require_positive(raidar, 'raidar', 'response_timeout_seconds')

    # Validate polling section
    polling = config['polling']
    if 'status_interval_seconds' not in polling:
        raise ValueError("polling.status_interval_seconds is required")
    _require_positive(polling, 'polling', 'status_interval_seconds')

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'raidar': {
        'protocol_version': DEFAULT_PROTOCOL_VERSION,
        'broadcast_address': BROADCAST_ADDRESS,
        'remote_port': REMOTE_PORT,
        'local_port': LOCAL_PORT,
        'discovery_window_seconds': DISCOVERY_WINDOW_SECONDS,
        'response_timeout_seconds': RESPONSE_TIMEOUT_SECONDS,
        'min_status_length': MIN_STATUS_LENGTH,
        'receive_buffer_size': RECEIVE_BUFFER_SIZE
    },
    'api': {
        'enabled': True,
        'host': '0.0.0.0',
        'port': 8000
    },
    'logging': {
        'level': 'INFO',
        'file': 'logs/raidar_monitor.log',
        'console_output': True,
        'timezone': 'UTC'
    }
}

def _apply_defaults(config: Dict) -> Dict:
    """Fill missing keys of every known section; present values win"""
    for section, defaults in DEFAULTS.items():
        values = config.get(section) or {}
        config[section] = {**defaults, **values}

    config['raidar']['protocol_version'] = str(config['raidar']['protocol_version'])
    return config


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, timezone: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(timezone)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        return dt.strftime(datefmt or LOG_DATE_FORMAT)

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration with timezone aware timestamps"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    timezone = log_config.get('timezone', 'UTC')

    formatter = TimezoneFormatter(LOG_FORMAT, timezone)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    handlers: List[logging.Handler] = []
    if log_config.get('console_output', True):
        handlers.append(logging.StreamHandler())

    log_file = log_config.get('file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logger.info(f"Logging configured: level={level}, timezone={timezone}, "
                f"console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    sample = copy.deepcopy(DEFAULTS)
    sample['polling'] = {'status_interval_seconds': 6}
    return sample
