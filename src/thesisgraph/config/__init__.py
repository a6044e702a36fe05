"""
thesisgraph.config - Configuration loading and defaults
"""

from thesisgraph.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, default_config_document
from thesisgraph.config.loader import (
    find_config_file,
    load_config,
    merge_configs,
    parse_toml_document,
)
from thesisgraph.config.settings import GraphConfig

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "GraphConfig",
    "default_config_document",
    "find_config_file",
    "load_config",
    "merge_configs",
    "parse_toml_document",
]
