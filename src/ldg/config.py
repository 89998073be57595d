# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Generation settings and the ``bdd-livingdoc.json`` configuration file."""

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("bdd-livingdoc.json", ".bdd-livingdoc.json")
DEFAULT_TITLE = "Living Documentation"

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


class ConfigError(ValueError):
    """Raised when a configuration file is unreadable or malformed."""


@dataclass(frozen=True)
class GenerationConfig:
    """Represent the settings of one generation run.

    Attributes:
        include_skipped: Whether skipped children affect rollups.
        include_pending: Whether pending and undefined children affect rollups.
        verbose: Whether to warn about every scenario without a result.
        title: Documentation title.
        max_workers: Worker threads per parse phase.
        features_path: Feature directory.
        results_path: Result file or directory.
        output_path: Output file.
    """

    include_skipped: bool = True
    include_pending: bool = True
    verbose: bool = False
    title: str = DEFAULT_TITLE
    max_workers: int = 4
    features_path: Path | None = None
    results_path: Path | None = None
    output_path: Path | None = None

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ConfigError("max_workers must be > 0")


def find_config(directory: Path) -> Path | None:
    """Return the first configuration file present in ``directory``."""
    for name in CONFIG_FILE_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path) -> GenerationConfig:
    """Load a ``bdd-livingdoc.json`` file.

    ``${VAR}`` references are replaced from the environment and relative paths
    are resolved against the directory holding the file.

    Args:
        path: Configuration file.

    Returns:
        Settings from the file, defaults for anything it omits.

    Raises:
        ConfigError: If the file cannot be read, is not JSON or has the wrong shape.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        document = json.loads(_expand_environment(text))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    base = path.resolve().parent
    paths = _section(document, "paths", path)
    documentation = _section(document, "documentation", path)
    advanced = _section(document, "advanced", path)
    config = GenerationConfig(
        include_skipped=_flag(advanced, "includeSkipped", True, path),
        include_pending=_flag(advanced, "includePending", True, path),
        verbose=_flag(advanced, "verbose", False, path),
        title=_text(documentation, "title", path) or DEFAULT_TITLE,
        features_path=_resolve(_text(paths, "features", path), base),
        results_path=_resolve(_text(paths, "testResults", path), base),
        output_path=_resolve(_text(paths, "output", path), base),
    )
    logger.info(f"Loaded configuration (config_path={path} title={config.title})")
    return config


def _expand_environment(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            logger.warning(f"Environment variable not set (name={match.group(1)})")
            return match.group(0)
        return value

    return _ENV_REFERENCE.sub(replace, text)


def _section(document: dict[str, Any], key: str, path: Path) -> dict[str, Any]:
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config file {path}: '{key}' must be an object")
    return value


def _flag(section: dict[str, Any], key: str, default: bool, path: Path) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Config file {path}: '{key}' must be true or false")
    return value


def _text(section: dict[str, Any], key: str, path: Path) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Config file {path}: '{key}' must be a string")
    return value.strip() or None


def _resolve(value: str | None, base: Path) -> Path | None:
    if value is None:
        return None
    candidate = Path(value)
    if candidate.is_absolute():
        return candidate
    return (base / candidate).resolve()
