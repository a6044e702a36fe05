"""Errors raised by thesisgraph.

Every failure is scoped to the single command being processed. Validation
errors are raised before any mutation is applied; the enclosing write
transaction is aborted and nothing is persisted.
"""

from __future__ import annotations


class ThesisGraphError(Exception):
    """Base exception for all thesisgraph failures."""


class MalformedIdentifier(ThesisGraphError, ValueError):
    """Raised when an identifier has the wrong length or alphabet."""


class InvalidText(ThesisGraphError, ValueError):
    """Raised when thesis text contains forbidden characters."""


class InvalidTag(ThesisGraphError, ValueError):
    """Raised when a tag is not a word-character sequence."""


class InvalidAlias(ThesisGraphError, ValueError):
    """Raised when an alias is empty or contains whitespace."""


class UnknownReference(ThesisGraphError, LookupError):
    """Raised when a reference embedded in text does not resolve."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Can not resolve reference [{token}] to an existing thesis")


class UnknownThesis(ThesisGraphError, LookupError):
    """Raised when an identifier or alias does not name an existing thesis."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Can not find thesis {reference!r}")


class UnknownRelationKind(ThesisGraphError, ValueError):
    """Raised when a relation kind is not in the configured allow-list."""

    def __init__(self, kind: str, supported: frozenset[str] | set[str] = frozenset()):
        self.kind = kind
        self.supported = frozenset(supported)
        super().__init__(
            f"Relation kind {kind!r} is not supported, supported kinds are "
            f"{sorted(self.supported)}"
        )


class ParseError(ThesisGraphError, ValueError):
    """Raised when a command block can not be parsed.

    Attributes:
        block_index: 1-based index of the offending block.
        line: The offending line (or the first line of the block).
        block: Full text of the offending block.
    """

    def __init__(self, message: str, block_index: int, line: str, block: str = ""):
        self.block_index = block_index
        self.line = line
        self.block = block
        super().__init__(f"Block {block_index}, line {line!r}: {message}")


class StoreFailure(ThesisGraphError):
    """Wraps any failure surfaced by the backing store."""


__all__ = [
    "ThesisGraphError",
    "MalformedIdentifier",
    "InvalidText",
    "InvalidTag",
    "InvalidAlias",
    "UnknownReference",
    "UnknownThesis",
    "UnknownRelationKind",
    "ParseError",
    "StoreFailure",
]
