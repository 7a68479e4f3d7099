"""
Universal AutoFight configuration.

Settings are read from the environment (and a local .env file, if present).
Every value has a default so the combat loop runs without any setup.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Plain stdlib logger here: logger.py reads its own settings from this module.
_log = logging.getLogger("config")

BACKEND_DIR = Path(__file__).parent
DEFAULT_DIRECTIVE_DIR = Path("User") / "UniversalAutoFight"
DEFAULT_DIRECTIVE_PREFIX = "directive_"
DEFAULT_ROLE_PRIORITY_FILENAME = "role_priority.json"
DEFAULT_MIN_CYCLE_SECONDS = 0.05
DEFAULT_HIGH_PRIORITY_THRESHOLD = 10
DEFAULT_LOG_DIR = BACKEND_DIR / "logs"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        _log.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        _log.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the combat loop."""
    directive_dir: Path = DEFAULT_DIRECTIVE_DIR
    directive_prefix: str = DEFAULT_DIRECTIVE_PREFIX
    role_priority_file: Path = DEFAULT_DIRECTIVE_DIR / DEFAULT_ROLE_PRIORITY_FILENAME
    min_cycle_seconds: float = DEFAULT_MIN_CYCLE_SECONDS
    high_priority_threshold: int = DEFAULT_HIGH_PRIORITY_THRESHOLD
    log_dir: Path = DEFAULT_LOG_DIR
    log_to_file: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        directive_dir = Path(os.getenv("AUTOFIGHT_DIRECTIVE_DIR", str(DEFAULT_DIRECTIVE_DIR)))
        role_file = os.getenv("AUTOFIGHT_ROLE_PRIORITY_FILE")
        min_cycle = _env_float("AUTOFIGHT_MIN_CYCLE_SECONDS", DEFAULT_MIN_CYCLE_SECONDS)
        if min_cycle <= 0:
            _log.warning(f"AUTOFIGHT_MIN_CYCLE_SECONDS must be positive, using {DEFAULT_MIN_CYCLE_SECONDS}")
            min_cycle = DEFAULT_MIN_CYCLE_SECONDS
        return cls(
            directive_dir=directive_dir,
            directive_prefix=os.getenv("AUTOFIGHT_DIRECTIVE_PREFIX", DEFAULT_DIRECTIVE_PREFIX),
            role_priority_file=Path(role_file) if role_file else directive_dir / DEFAULT_ROLE_PRIORITY_FILENAME,
            min_cycle_seconds=min_cycle,
            high_priority_threshold=_env_int("AUTOFIGHT_HIGH_PRIORITY_THRESHOLD", DEFAULT_HIGH_PRIORITY_THRESHOLD),
            log_dir=Path(os.getenv("AUTOFIGHT_LOG_DIR", str(DEFAULT_LOG_DIR))),
            log_to_file=_env_bool("AUTOFIGHT_LOG_TO_FILE", True),
            log_level=os.getenv("AUTOFIGHT_LOG_LEVEL", "INFO").upper(),
        )


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings.from_env()
