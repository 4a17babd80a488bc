from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import logging
import tomllib

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "gomodfix.toml"
DEFAULT_MODFILE_NAME = "go.mod"
DEFAULT_LOG_LEVEL = "WARNING"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("cannot read %s: %s", path, exc)
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("ignoring malformed %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def workspace_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "workspace")


def tidy_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "tidy")


def logging_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return _section(load_config(root=root, config_path=config_path), "logging")


def _as_bool(value: TomlValue, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def modfile_name(section: TomlTable | None) -> str:
    if not isinstance(section, dict):
        return DEFAULT_MODFILE_NAME
    value = section.get("modfile")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_MODFILE_NAME


def tidy_report_path(section: TomlTable | None, root: Path) -> Path | None:
    if not isinstance(section, dict):
        return None
    value = section.get("report")
    if not isinstance(value, str) or not value.strip():
        return None
    path = Path(value.strip())
    return path if path.is_absolute() else root / path


def tidy_syntax_enabled(section: TomlTable | None) -> bool:
    if not isinstance(section, dict):
        return True
    return _as_bool(section.get("syntax"), default=True)


def log_level(section: TomlTable | None) -> str:
    if not isinstance(section, dict):
        return DEFAULT_LOG_LEVEL
    value = section.get("level")
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return DEFAULT_LOG_LEVEL


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged
