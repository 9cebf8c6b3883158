"""Layered YAML configuration with include: directives."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from backporter.core.log import logger

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"
USER_CONFIG_FILE = (
    Path(user_config_dir("backporter", appauthor=False)) / "backporter.yaml"
)


def deep_merge(base: dict, override: dict) -> dict:
    """Return base updated with override, recursing into nested dicts."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def cli_includes(argv: list[str]) -> list[str]:
    """Values of every --include option in argv."""
    return [
        argv[i + 1]
        for i, arg in enumerate(argv[:-1])
        if arg == "--include"
    ]


def load_with_includes(path: Path, chain: tuple[Path, ...] = ()) -> dict:
    """Read one YAML file with its include: files merged underneath.

    Included files are resolved relative to the including file and
    are overridden by it.

    Raises:
        ValueError: If a file includes itself, directly or not
    """
    path = path.resolve()
    if path in chain:
        cycle = " -> ".join(str(p) for p in (*chain, path))
        raise ValueError(f"Circular include: {cycle}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    includes = data.pop("include", None) or []
    if isinstance(includes, str):
        includes = [includes]

    merged = {}
    for include in includes:
        include_path = Path(include).expanduser()
        if not include_path.is_absolute():
            include_path = path.parent / include_path
        merged = deep_merge(
            merged, load_with_includes(include_path, (*chain, path))
        )
    return deep_merge(merged, data)


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML source layered from lowest to highest priority: package
    defaults, user config, ./backporter.yaml, then --include files.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        project = yaml_file or settings_cls.model_config.get("yaml_file")
        files = [project] if isinstance(project, (str, os.PathLike)) else list(project or [])
        super().__init__(settings_cls, files + cli_includes(sys.argv[1:]))

    def _read_files(self, files):
        if isinstance(files, (str, os.PathLike)):
            files = [files]
        candidates = [DEFAULTS_FILE, USER_CONFIG_FILE]
        candidates += [Path(f).expanduser() for f in files or []]

        result = {}
        loaded = set()
        for path in candidates:
            if not path.is_file():
                logger.debug("No configuration at {file}", file=str(path))
                continue
            if path.resolve() in loaded:
                continue
            loaded.add(path.resolve())
            logger.debug("Loading configuration {file}", file=str(path))
            result = deep_merge(result, load_with_includes(path))
        return result
