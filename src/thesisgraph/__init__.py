"""
thesisgraph - Content-addressed graph of theses and relations

thesisgraph stores propositions ("theses") and typed relations between
them. Every thesis is identified by a hash of its content, may carry a
unique alias and a set of tags, and is edited through a small plain-text
command language whose commands apply atomically.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("thesisgraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from thesisgraph.engine import CommandResult, MutationEngine
from thesisgraph.errors import (
    InvalidAlias,
    InvalidTag,
    InvalidText,
    MalformedIdentifier,
    ParseError,
    StoreFailure,
    ThesisGraphError,
    UnknownReference,
    UnknownRelationKind,
    UnknownThesis,
)
from thesisgraph.export import ExportOptions, render_dot
from thesisgraph.identity import ThesisId, decode, encode
from thesisgraph.parser import parse_commands
from thesisgraph.store import SQLiteGraphStore
from thesisgraph.thesis import Relation, Text, Thesis, derive

__all__ = [
    "__version__",
    "CommandResult",
    "ExportOptions",
    "InvalidAlias",
    "InvalidTag",
    "InvalidText",
    "MalformedIdentifier",
    "MutationEngine",
    "ParseError",
    "Relation",
    "SQLiteGraphStore",
    "StoreFailure",
    "Text",
    "Thesis",
    "ThesisGraphError",
    "ThesisId",
    "UnknownReference",
    "UnknownRelationKind",
    "UnknownThesis",
    "decode",
    "derive",
    "encode",
    "parse_commands",
    "render_dot",
]
