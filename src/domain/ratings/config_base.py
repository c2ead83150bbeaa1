"""TOML plumbing shared by rating-system configs."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar
import tomllib


@dataclass(frozen=True)
class BaseSystemConfig:
    """Fields every rating-system config carries from its ``[system]`` table."""

    name: str
    description: str | None
    file_path: Path
    lookback_days: int

    def as_config_json(self) -> dict[str, Any]:
        raise NotImplementedError


ConfigT = TypeVar("ConfigT", bound=BaseSystemConfig)

SYSTEM_KEYS = frozenset({"name", "description", "lookback_days"})


def config_table(
    raw: dict[str, Any],
    section: str,
    file_path: Path,
    *,
    allowed_keys: frozenset[str],
) -> dict[str, Any]:
    """Return ``raw[section]`` (empty when absent), rejecting unknown keys."""
    table = raw.get(section, {})
    if not isinstance(table, dict):
        raise ValueError(f"{file_path}: [{section}] must be a table")
    unknown = sorted(set(table) - allowed_keys)
    if unknown:
        raise ValueError(f"{file_path}: unknown key(s) in [{section}]: {', '.join(unknown)}")
    return table


def parse_system_section(raw: dict[str, Any], file_path: Path) -> tuple[str, str | None, int]:
    """Return ``(name, description, lookback_days)`` from a ``[system]`` table."""
    system_raw = config_table(raw, "system", file_path, allowed_keys=SYSTEM_KEYS)

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    # 0 replays every recorded race.
    lookback_days = int(system_raw.get("lookback_days", 0))
    if lookback_days < 0:
        raise ValueError(f"{file_path}: [system].lookback_days must be >= 0")

    return name, description, lookback_days


def _read_toml_files(config_dir: Path) -> list[tuple[Path, dict[str, Any]]]:
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    documents: list[tuple[Path, dict[str, Any]]] = []
    for file_path in sorted(config_dir.glob("*.toml")):
        with file_path.open("rb") as file:
            documents.append((file_path, tomllib.load(file)))
    if not documents:
        raise ValueError(f"No .toml config files found in: {config_dir}")
    return documents


def load_system_configs(
    config_dir: Path,
    parser: Callable[[dict[str, Any], Path], ConfigT],
    *,
    duplicate_name_label: str = "rating",
) -> list[ConfigT]:
    """Parse every ``*.toml`` in ``config_dir`` (sorted by filename).

    System names must be unique across the directory since they key the
    persisted system rows.
    """
    systems = [parser(raw, file_path) for file_path, raw in _read_toml_files(config_dir)]

    files_by_name: dict[str, list[str]] = defaultdict(list)
    for system in systems:
        files_by_name[system.name].append(system.file_path.name)
    duplicates = {name: files for name, files in files_by_name.items() if len(files) > 1}
    if duplicates:
        raise ValueError(
            f"Duplicate {duplicate_name_label} system names found in {config_dir}: {duplicates}"
        )

    return systems


__all__ = [
    "BaseSystemConfig",
    "config_table",
    "load_system_configs",
    "parse_system_section",
]
