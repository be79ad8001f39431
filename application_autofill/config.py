"""
Shared configuration for the autofill engine: log destinations, interaction
delays and environment lookups.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Interaction delays in milliseconds. Host pages re-render asynchronously after
# every synthetic event, so each step waits for them to catch up.
DEFAULT_DELAYS = {
    'focus': 50,
    'settle': 100,
    'click_settle': 50,
    'hover': 50,
    'scroll': 80,
    'option_commit': 200,
    'checkbox_settle': 100,
    'menu_poll': 100,
    'menu_close': 100,
    'between_fields': 50,
}

MENU_WAIT_STEPS = [50, 100, 200, 200, 200]


def get_log_file(name: str) -> Path:
    """Resolve the log file for a component, falling back to the temp dir."""
    try:
        log_dir = Path.home() / '.application-autofill'
        log_dir.mkdir(exist_ok=True)
        return log_dir / f'{name}.log'
    except (PermissionError, OSError):
        return Path(tempfile.gettempdir()) / f'application_autofill_{name}.log'


def configure_logging(name: str, level: int = logging.INFO) -> Path:
    """Configure root logging for an entry point and return the log file path."""
    log_file = get_log_file(name)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler()
        ]
    )
    return log_file


def build_delays(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge user overrides into the default delay table."""
    config = config or {}
    delays = dict(DEFAULT_DELAYS)
    for key in DEFAULT_DELAYS:
        if key in config:
            delays[key] = int(config[key])
    delays['menu_wait_steps'] = list(config.get('menu_wait_steps', MENU_WAIT_STEPS))
    return delays


def env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')
