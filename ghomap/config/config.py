from pydantic import BaseModel, Field, field_validator
from pathlib import Path
from typing import Optional
import logging
import yaml

from ghomap.util import validate_key

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path('ghomap.yml')


def default_data_dir() -> Path:
    """`<cwd>/data`, resolved when called rather than at import time."""
    return Path.cwd() / 'data'


class StoreOptions(BaseModel):
    """Construction-time options of a single store."""

    name: str = 'default'
    # Keep every entry in memory; reads never touch the disk.
    use_cache: bool = True
    # Memory only, nothing is written to disk.
    cache_only: bool = False
    # Load every entry into the cache on open(). Ignored without a cache.
    fetch_all_on_start: bool = True
    # Raise CorruptEntry for unparseable files instead of treating them as absent.
    strict_reads: bool = False

    @field_validator('name')
    @classmethod
    def _check_name(cls, value: str) -> str:
        return validate_key(value)


class Settings(BaseModel):
    data_dir: Path = Field(default_factory=default_data_dir)
    log_level: str = 'WARNING'

    @field_validator('data_dir')
    @classmethod
    def _resolve_data_dir(cls, value: Path) -> Path:
        return (Path.cwd() / value).resolve() if not value.is_absolute() else value

    @field_validator('log_level')
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(getattr(logging, level, None), int):
            raise ValueError(f'unknown log level: {value}')
        return level


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load `Settings` from a YAML file.

    A missing file yields the defaults. Relative `data_dir` values are
    resolved against the current working directory.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_SETTINGS_FILE
    if not cfg_path.exists():
        logger.debug('No settings file at %s; using defaults', cfg_path)
        return Settings()
    with cfg_path.open('r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f'{cfg_path} must contain a mapping')
    settings = Settings(**raw)
    logger.debug('Loaded settings from %s: data_dir=%s', cfg_path, settings.data_dir)
    return settings
