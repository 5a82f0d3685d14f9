# src/mdscope/config.py
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

MARKDOWN_EXTENSIONS = frozenset({"md", "markdown"})

# Always pruned, regardless of configuration
DEFAULT_EXCLUDE_PATTERNS = [
    "# Default exclude patterns",
    "node_modules/",
    ".git/",
]

BUILD_ARTIFACT_PATTERNS = [
    "# Build artifacts",
    "build/",
    "dist/",
    ".build/",
    "DerivedData/",
    "__pycache__/",
    ".venv/",
    "venv/",
]


class ConfigError(ValueError):
    """Raised when a configuration file holds an invalid value."""


@dataclass(frozen=True)
class ScanConfig:
    prune_build_artifacts: bool = True
    respect_gitignore: bool = True
    extra_excludes: Tuple[str, ...] = ()
    batch_size: int = 500


@dataclass(frozen=True)
class SearchConfig:
    max_matches_per_file: int = 5
    interactive_max_matches: int = 20
    line_trim: int = 200
    debounce_seconds: float = 0.3
    min_query_length: int = 2
    fuzzy_tolerance: float = 0.2
    max_search_file_bytes: int = 2_000_000
    history_max_entries: int = 20


@dataclass(frozen=True)
class AppConfig:
    scan: ScanConfig = field(default_factory=ScanConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    history_path: Optional[Path] = None


def load_config(config_path: Optional[Path]) -> AppConfig:
    """
    Loads an optional TOML config file and merges it over the defaults.
    A missing file yields the defaults.
    """
    config = AppConfig()
    if config_path is None or not config_path.exists():
        return config

    try:
        with config_path.open("rb") as f:
            payload = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse {config_path.name}: {e}") from e

    scan_table = _get_table(payload, "scan")
    search_table = _get_table(payload, "search")
    history_table = _get_table(payload, "history")

    scan = config.scan
    for key, value in scan_table.items():
        if key in ("prune_build_artifacts", "respect_gitignore"):
            scan = replace(scan, **{key: _bool(value, f"scan.{key}")})
        elif key == "extra_excludes":
            scan = replace(scan, extra_excludes=_strings(value, "scan.extra_excludes"))
        elif key == "batch_size":
            scan = replace(scan, batch_size=_positive_int(value, "scan.batch_size"))
        else:
            raise ConfigError(f"Unknown config field 'scan.{key}'.")

    search = config.search
    for key, value in search_table.items():
        if key in ("debounce_seconds", "fuzzy_tolerance"):
            search = replace(search, **{key: _non_negative_float(value, f"search.{key}")})
        elif key in SearchConfig.__dataclass_fields__:
            search = replace(search, **{key: _positive_int(value, f"search.{key}")})
        else:
            raise ConfigError(f"Unknown config field 'search.{key}'.")

    history_path = config.history_path
    for key, value in history_table.items():
        if key == "path":
            if not isinstance(value, str):
                raise ConfigError("Config field 'history.path' must be a string.")
            history_path = Path(value).expanduser()
        elif key == "max_entries":
            search = replace(search, history_max_entries=_positive_int(value, "history.max_entries"))
        else:
            raise ConfigError(f"Unknown config field 'history.{key}'.")

    return AppConfig(scan=scan, search=search, history_path=history_path)


def _get_table(payload: dict, key: str) -> dict:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a table.")
    return value


def _bool(value: object, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Config field '{name}' must be a boolean.")
    return value


def _positive_int(value: object, name: str) -> int:
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"Config field '{name}' must be a positive integer.")
    return value


def _non_negative_float(value: object, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"Config field '{name}' must be a non-negative number.")
    return float(value)


def _strings(value: object, name: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"Config field '{name}' must be a list of strings.")
    return tuple(value)
