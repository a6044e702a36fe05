"""
thesisgraph.cli - Command-line interface.

Main entry point for the thesisgraph CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from thesisgraph import __version__
from thesisgraph.commands import apply_cmd, graph_cmd, init, show_cmd
from thesisgraph.errors import ThesisGraphError


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="thesisgraph",
        description="Content-addressed graph of theses and relations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  thesisgraph init                  # Create .thesisgraph.toml here
  thesisgraph apply notes.txt       # Execute command blocks from a file
  thesisgraph apply --atomic < in   # All blocks in one transaction
  thesisgraph show root             # Print a thesis by alias or id
  thesisgraph graph -o graph.dot    # Export Graphviz DOT

Command blocks (separated by blank lines):
  + alias         add text thesis (1 line) or relation (from, kind, to)
  -               remove thesis and everything that mentions it
  #               tag thesis (reference line, then tags)
  ^               untag thesis (reference line, then tags)
  @ alias         set alias (reference line)
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"thesisgraph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="Override database path",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    apply_parser = subparsers.add_parser(
        "apply",
        help="Execute command blocks",
    )
    apply_parser.add_argument(
        "file",
        nargs="?",
        help="File with command blocks (default: stdin)",
    )
    apply_parser.add_argument(
        "--atomic",
        action="store_true",
        help="Run all blocks in a single transaction",
    )

    graph_parser = subparsers.add_parser(
        "graph",
        help="Export the graph as Graphviz DOT",
    )
    graph_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file (default: stdout)",
        metavar="FILE",
    )
    graph_parser.add_argument(
        "--wrap-width",
        type=int,
        help="Wrap thesis text at this column",
    )
    graph_parser.add_argument(
        "--relation-nodes",
        choices=["none", "related", "all"],
        help="Which relations get a node of their own (default: from config)",
    )
    graph_parser.add_argument(
        "--references",
        choices=["none", "mentioned", "all"],
        help="Which texts get edges to referenced theses (default: from config)",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Print a thesis as JSON",
    )
    show_parser.add_argument(
        "reference",
        help="Thesis identifier or alias",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Create .thesisgraph.toml configuration",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing configuration",
    )

    return parser


def configure_logging(args: argparse.Namespace) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install thesisgraph[completion]
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args)

    try:
        if args.command == "apply":
            return apply_cmd.run(args)
        elif args.command == "graph":
            return graph_cmd.run(args)
        elif args.command == "show":
            return show_cmd.run(args)
        elif args.command == "init":
            return init.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except (ThesisGraphError, ValueError, OSError) as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
