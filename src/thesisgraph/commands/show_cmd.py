"""
thesisgraph.commands.show_cmd - Print a single thesis as JSON.
"""

from __future__ import annotations

import argparse
import json

from thesisgraph.commands import load_graph_config
from thesisgraph.identity import encode


def run(args: argparse.Namespace) -> int:
    """Run the show command."""
    engine = load_graph_config(args).open_engine()
    with engine.store:
        thesis = engine.get(args.reference)
    document = {"id": encode(thesis.id), **thesis.to_document()}
    print(json.dumps(document, indent=2, ensure_ascii=False))
    return 0
