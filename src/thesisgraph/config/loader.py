"""Configuration loading.

Configuration is read from `.thesisgraph.toml` (found by walking up from
the working directory), deep-merged over DEFAULT_CONFIG, then overridden
by THESISGRAPH_<SECTION>_<KEY> environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit

from thesisgraph.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG

ENV_PREFIX = "THESISGRAPH_"


def find_config_file(start: Path) -> Path | None:
    """Find the nearest configuration file in start or its parents.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to the configuration file, or None if there is none.
    """
    current = Path(start).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def parse_toml_document(text: str) -> dict[str, Any]:
    """Parse TOML text into plain Python containers."""
    return tomlkit.parse(text).unwrap()


def merge_configs(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge override into a copy of base.

    Nested tables are merged key by key; any other value in override
    replaces the value in base.
    """
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON arrays and objects, booleans and integers are converted; anything
    else (including malformed JSON) is returned as the plain string.
    """
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    if stripped.lower() in ("true", "false"):
        return stripped.lower() == "true"
    try:
        return int(stripped)
    except ValueError:
        return value


def _apply_env_overrides(
    config: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Apply THESISGRAPH_<SECTION>_<KEY> overrides to known sections.

    THESISGRAPH_RELATIONS_KINDS='["therefore"]' sets relations.kinds.
    """
    environ = os.environ if environ is None else environ
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        rest = name[len(ENV_PREFIX) :]
        for section in config:
            prefix = f"{section.upper()}_"
            if rest.startswith(prefix) and isinstance(config[section], dict):
                key = rest[len(prefix) :].lower()
                if key:
                    config[section][key] = _try_parse_env_value(raw)
                break
    return config


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, falling back to defaults.

    Args:
        path: Configuration file; when None only defaults and environment
            overrides apply.

    Returns:
        Merged configuration dictionary. When loaded from a file, the key
        "config_dir" holds the file's directory.
    """
    if path is None:
        config = copy.deepcopy(DEFAULT_CONFIG)
    else:
        path = Path(path)
        config = merge_configs(DEFAULT_CONFIG, parse_toml_document(path.read_text(encoding="utf-8")))
        config["config_dir"] = str(path.resolve().parent)
    return _apply_env_overrides(config)
