"""
thesisgraph.commands.apply_cmd - Execute command blocks against the graph.
"""

from __future__ import annotations

import argparse
import sys

from thesisgraph.commands import load_graph_config
from thesisgraph.engine import CommandResult, MutationEngine
from thesisgraph.errors import ThesisGraphError
from thesisgraph.parser import Command, parse_commands


def _execute(engine: MutationEngine, commands: list[Command], args: argparse.Namespace) -> int:
    if args.atomic:
        results = engine.execute_all(commands, atomic=True)
        _report(results, args)
        return 0

    results: list[CommandResult] = []
    for command in commands:
        try:
            results.append(engine.execute(command))
        except ThesisGraphError as e:
            _report(results, args)
            print(f"Error in block {command.block_index}: {e}", file=sys.stderr)
            return 1
    _report(results, args)
    return 0


def _report(results: list[CommandResult], args: argparse.Namespace) -> None:
    if args.quiet:
        return
    for result in results:
        print(result)


def run(args: argparse.Namespace) -> int:
    """Run the apply command.

    Reads command blocks from the given file (or stdin), parses all of them,
    then executes them in order. Without --atomic each block commits on its
    own and execution stops at the first failing block.
    """
    if args.file and args.file != "-":
        with open(args.file, encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    commands = parse_commands(text)
    engine = load_graph_config(args).open_engine()
    with engine.store:
        return _execute(engine, commands, args)
