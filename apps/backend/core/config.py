"""
Runtime configuration.

Values come from environment variables (a .env file is loaded first when
present) with optional overrides from a YAML file:

    selectors:
      linkedin:
        title: ["h1.some-new-class"]
    readiness:
      max_attempts: 15
      interval_ms: 400

YAML selectors are tried before the built-in candidate lists.
"""

import os
import logging
from pathlib import Path
from typing import Dict, List, Optional

import soupsieve
import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / 'config' / 'jobhunt.yaml'
DEFAULT_STORAGE_PATH = 'data/storage.json'
DEFAULT_ANALYZER_MODEL = 'claude-3-5-sonnet-20241022'

PLATFORM_NAMES = ('linkedin', 'greenhouse', 'lever')
FIELD_NAMES = ('title', 'company', 'description', 'location')


def _as_int(name: str, raw, default: int) -> int:
    if raw is None or (isinstance(raw, str) and raw.strip() == ''):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"[config] {name}={raw!r} is not an integer, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    return _as_int(name, os.getenv(name), default)


def load_yaml_config(path: Path) -> Dict:
    """Load the YAML override file. Missing or broken files yield {}."""
    if not path.exists():
        logger.debug(f"[config] Config file not found: {path}. Using defaults.")
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"[config] Error loading config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"[config] Config file {path} must contain a mapping")
        return {}
    logger.info(f"[config] Loaded config from {path}")
    return data


def parse_selector_overrides(raw) -> Dict[str, Dict[str, List[str]]]:
    """
    Validate selector overrides.

    Unknown platforms/fields and selectors that do not compile are dropped
    with a warning so a typo cannot take down extraction.
    """
    overrides: Dict[str, Dict[str, List[str]]] = {}
    if not isinstance(raw, dict):
        return overrides

    for platform, fields in raw.items():
        if platform not in PLATFORM_NAMES or not isinstance(fields, dict):
            logger.warning(f"[config] Ignoring selector overrides for unknown platform {platform!r}")
            continue
        for field_name, selectors in fields.items():
            if field_name not in FIELD_NAMES:
                logger.warning(f"[config] Ignoring selector overrides for unknown field {platform}.{field_name}")
                continue
            if isinstance(selectors, str):
                selectors = [selectors]
            valid = []
            for selector in selectors or []:
                if not isinstance(selector, str) or not selector.strip():
                    logger.warning(f"[config] Ignoring empty selector for {platform}.{field_name}")
                    continue
                try:
                    soupsieve.compile(selector)
                except Exception as e:
                    logger.warning(f"[config] Invalid selector {selector!r} for {platform}.{field_name}: {e}")
                    continue
                valid.append(selector)
            if valid:
                overrides.setdefault(platform, {})[field_name] = valid
    return overrides


class Settings:
    """Process-wide settings."""

    def __init__(self, config_file: Optional[str] = None):
        path = Path(config_file or os.getenv('JOBHUNT_CONFIG_FILE') or DEFAULT_CONFIG_FILE)
        file_config = load_yaml_config(path)
        readiness = file_config.get('readiness') or {}
        if not isinstance(readiness, dict):
            logger.warning(f"[config] readiness in {path} must be a mapping, using defaults")
            readiness = {}

        self.ready_max_attempts = _env_int(
            'JOBHUNT_READY_MAX_ATTEMPTS',
            _as_int('readiness.max_attempts', readiness.get('max_attempts'), 10)
        )
        self.ready_interval_ms = _env_int(
            'JOBHUNT_READY_INTERVAL_MS',
            _as_int('readiness.interval_ms', readiness.get('interval_ms'), 500)
        )
        self.selector_overrides = parse_selector_overrides(file_config.get('selectors'))

        self.storage_path = os.getenv('JOBHUNT_STORAGE_PATH', DEFAULT_STORAGE_PATH)
        self.max_stored_jobs = _env_int('JOBHUNT_MAX_STORED_JOBS', 100)
        self.max_text_chars = _env_int('JOBHUNT_MAX_TEXT_CHARS', 20000)
        self.snapshot_path = os.getenv('JOBHUNT_SNAPSHOT_PATH') or None

        self.anthropic_api_key = os.getenv('ANTHROPIC_API_KEY') or None
        self.analyzer_model = os.getenv('JOBHUNT_ANALYZER_MODEL', DEFAULT_ANALYZER_MODEL)
        self.analyzer_timeout = float(_env_int('JOBHUNT_ANALYZER_TIMEOUT', 60))
        self.fetch_timeout = float(_env_int('JOBHUNT_FETCH_TIMEOUT', 30))
        self.log_level = os.getenv('JOBHUNT_LOG_LEVEL', 'INFO').upper()

        logger.debug(
            f"Settings: ready={self.ready_max_attempts}x{self.ready_interval_ms}ms, "
            f"storage={self.storage_path}, max_jobs={self.max_stored_jobs}, "
            f"overrides={sorted(self.selector_overrides)}, snapshots={bool(self.snapshot_path)}"
        )

    @property
    def ready_interval_seconds(self) -> float:
        return self.ready_interval_ms / 1000.0


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get singleton settings instance."""
    global _settings
    if _settings is None:
        load_dotenv(override=False)
        _settings = Settings()
    return _settings


def reset_settings():
    """Drop the cached settings (tests change the environment between cases)."""
    global _settings
    _settings = None
