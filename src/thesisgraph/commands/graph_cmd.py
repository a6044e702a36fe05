"""
thesisgraph.commands.graph_cmd - Export the graph as Graphviz DOT.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from thesisgraph.commands import load_graph_config
from thesisgraph.export import ReferenceEdges, RelationNodes, render_dot


def run(args: argparse.Namespace) -> int:
    """Run the graph command."""
    settings = load_graph_config(args)
    if args.wrap_width is not None:
        settings.export.wrap_width = args.wrap_width
    if args.relation_nodes is not None:
        settings.export.relation_nodes = RelationNodes(args.relation_nodes)
    if args.references is not None:
        settings.export.references = ReferenceEdges(args.references)

    with settings.open_store() as store:
        dot = render_dot(store, settings.export)

    if args.output:
        Path(args.output).write_text(dot, encoding="utf-8")
        if not args.quiet:
            print(f"Wrote {args.output}")
    else:
        print(dot, end="")
    return 0
