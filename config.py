import os
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

APP_NAME = "ttd"
DATA_FILE = "tasks.json"
CONFIG_FILE = "config.toml"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class AppConfig:
    timezone_offset_hours: int = 3
    can_override: bool = True
    exact_match_threshold: float = 0.85
    strict_comparison: bool = False


def config_dir() -> Path:
    """
    Directory holding the config, the data file and the log.
    TTD_CONFIG_DIR wins, then $XDG_CONFIG_HOME/ttd, then ~/.config/ttd.
    """
    override = os.getenv("TTD_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / APP_NAME


def data_path() -> Path:
    return config_dir() / DATA_FILE


def config_path() -> Path:
    return config_dir() / CONFIG_FILE


def log_dir() -> Path:
    return config_dir()


def _require(app: dict, key: str, kind, path: Path):
    if key not in app:
        raise ConfigError(f"{path}: missing field `{key}` in [app]")
    return _check_type(app[key], key, kind, path)


def _check_type(value, key: str, kind, path: Path):
    # bool is an int subclass; reject it where a number is expected
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    if not ok:
        raise ConfigError(f"{path}: `{key}` must be of type {kind.__name__}")
    return kind(value)


def load_config(path: Path) -> AppConfig:
    """
    Read the [app] table of the TOML config.
    A missing file means defaults; a present but broken one is fatal.
    """
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return AppConfig()

    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"{path}: {e}") from e

    app = raw.get("app")
    if not isinstance(app, dict):
        raise ConfigError(f"{path}: missing [app] table")

    defaults = AppConfig()
    offset = _require(app, "timezone_offset_hours", int, path)
    can_override = _require(app, "can_override", bool, path)
    threshold = defaults.exact_match_threshold
    if "exact_match_threshold" in app:
        threshold = _check_type(app["exact_match_threshold"], "exact_match_threshold", float, path)
    strict = defaults.strict_comparison
    if "strict_comparison" in app:
        strict = _check_type(app["strict_comparison"], "strict_comparison", bool, path)

    if not 0.0 <= threshold <= 1.0:
        raise ConfigError(f"{path}: `exact_match_threshold` must be between 0.0 and 1.0")

    config = AppConfig(
        timezone_offset_hours=offset,
        can_override=can_override,
        exact_match_threshold=threshold,
        strict_comparison=strict,
    )
    logger.debug("Loaded config from %s: %s", path, config)
    return config
