"""Centralized settings with environment + runtime config overlay.
Provides typed accessors to avoid scattering URLs and paths.
"""
from __future__ import annotations
from pathlib import Path
import os, tempfile, yaml
from dataclasses import dataclass

_RUNTIME_CACHE: dict | None = None

CONFIG_DIR = Path(__file__).resolve().parent.parent / 'config'

DEFAULT_FEED_URL = 'https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_month.csv'
DEFAULT_BLUESKY_HOST = 'https://bsky.social'

def _load_runtime() -> dict:
    global _RUNTIME_CACHE
    if _RUNTIME_CACHE is None:
        cfg_file = CONFIG_DIR / 'runtime.yml'
        if cfg_file.exists():
            try:
                _RUNTIME_CACHE = yaml.safe_load(cfg_file.read_text(encoding='utf-8')) or {}
            except yaml.YAMLError:
                _RUNTIME_CACHE = {}
        else:
            _RUNTIME_CACHE = {}
    return _RUNTIME_CACHE

def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is not None:
        try:
            return float(v)
        except ValueError:
            return default
    return float(_load_runtime().get(name.lower(), default))

def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is not None:
        return v
    return str(_load_runtime().get(name.lower(), default))

SCHEMA_VERSION = 1  # ledger schema; bump when the published-weeks layout changes

@dataclass(frozen=True)
class Settings:
    feed_url: str
    ledger_path: Path
    http_timeout: float
    bluesky_host: str

def load_settings() -> Settings:
    return Settings(
        feed_url=_env_str('QUAKESTATS_FEED_URL', DEFAULT_FEED_URL),
        ledger_path=Path(_env_str('QUAKESTATS_LEDGER_PATH', str(Path(tempfile.gettempdir()) / 'earthquakestats-ledger.sqlite'))),
        http_timeout=_env_float('QUAKESTATS_HTTP_TIMEOUT', 20.0),
        bluesky_host=_env_str('BLUESKY_HOST', DEFAULT_BLUESKY_HOST).rstrip('/'),
    )

