"""
thesisgraph.commands - CLI command implementations
"""

from __future__ import annotations

import argparse
from pathlib import Path

from thesisgraph.config import GraphConfig, find_config_file, load_config


def load_graph_config(args: argparse.Namespace) -> GraphConfig:
    """Resolve settings from --config (or discovery) and --db."""
    config_path = getattr(args, "config", None) or find_config_file(Path.cwd())
    settings = GraphConfig.from_dict(load_config(config_path))
    db_path = getattr(args, "db", None)
    if db_path:
        settings.store_path = Path(db_path)
    return settings
