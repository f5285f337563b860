from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

import yaml

from ghomap.config import load_settings

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s]: %(message)s'


def configure_logging(config_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for an application embedding ghomap.

    The level comes from `log_level` in the settings file (see
    `ghomap.config.load_settings`). A missing, unreadable or invalid
    settings file falls back to WARNING. Returns a module logger for the
    caller.
    """
    try:
        level = load_settings(config_path).log_level
    except (OSError, yaml.YAMLError, ValueError) as exc:
        level = 'WARNING'
        failure = exc
    else:
        failure = None

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    if failure is not None:
        logger.warning("Could not read logging settings, using WARNING: %s", failure)
    logger.info("Log level set to: %s", level)
    return logger
