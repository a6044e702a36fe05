"""Command parser - Plain-text command blocks to structured operations.

Input is a sequence of blocks separated by two or more line breaks. The
first line of a block selects the operation:

    + [alias]     add thesis: 1 text line, or 3 lines (from, kind, to)
    -             remove thesis: 1 reference line
    #             tag: 1 reference line, then one tag per line
    ^             untag: 1 reference line, then one tag per line
    @ alias       set alias: 1 reference line

References are identifiers in their text form or aliases. Inside thesis
text they are written as [reference]; brackets are reserved for that.

Parsing never touches the store: references stay unresolved until the
mutation engine executes the command.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

from thesisgraph.errors import InvalidAlias, InvalidTag, ParseError
from thesisgraph.thesis import is_relation_kind, validate_alias, validate_tag

_LINE_BREAK = re.compile(r"\r\n|\r")
_BLOCK_SPLIT = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")
_LINE_SPLIT = re.compile(r"\r\n|\n|\r")
_HEADER = re.compile(r"^ *([+\-#^@])(?: +(\S+))? *$")
_REFERENCE_TOKEN = re.compile(r"\[([^\[\]]*)\]")
_REFERENCE = re.compile(r"^\S+$")


@dataclass(frozen=True)
class TextSource:
    """Unresolved thesis text.

    Attributes:
        parts: Raw text around the references (one more than tokens).
        tokens: Reference tokens as written between brackets.
    """

    parts: tuple[str, ...]
    tokens: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelationSource:
    """Unresolved relation triple."""

    from_ref: str
    kind: str
    to_ref: str


@dataclass(frozen=True)
class AddThesis:
    source: TextSource | RelationSource
    alias: str | None = None
    block_index: int = field(default=0, compare=False)


@dataclass(frozen=True)
class RemoveThesis:
    reference: str
    block_index: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Tag:
    reference: str
    tags: tuple[str, ...]
    block_index: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Untag:
    reference: str
    tags: tuple[str, ...]
    block_index: int = field(default=0, compare=False)


@dataclass(frozen=True)
class SetAlias:
    alias: str
    reference: str
    block_index: int = field(default=0, compare=False)


Command = Union[AddThesis, RemoveThesis, Tag, Untag, SetAlias]


def parse_text_source(raw: str) -> TextSource:
    """Split raw thesis text into parts and [reference] tokens.

    Args:
        raw: Thesis text as written by the user.

    Returns:
        TextSource with the surrounding text left byte-for-byte intact.

    Raises:
        ValueError: On empty or whitespace-containing tokens, or brackets
            outside a reference.
    """
    parts: list[str] = []
    tokens: list[str] = []
    position = 0
    for match in _REFERENCE_TOKEN.finditer(raw):
        token = match.group(1)
        if not _REFERENCE.match(token):
            raise ValueError(f"Reference [{token}] must be an identifier or an alias")
        parts.append(raw[position : match.start()])
        tokens.append(token)
        position = match.end()
    parts.append(raw[position:])
    for part in parts:
        if "[" in part or "]" in part:
            raise ValueError(f"Unbalanced bracket in {raw!r}, brackets only delimit references")
    return TextSource(parts=tuple(parts), tokens=tuple(tokens))


def split_blocks(text: str) -> list[tuple[int, str]]:
    """Split input into non-empty trimmed blocks.

    "\\r\\n" and "\\r" line breaks are normalised to "\\n" first.

    Returns:
        List of (1-based block index, block text) tuples.
    """
    text = _LINE_BREAK.sub("\n", text)
    blocks = (block.strip() for block in _BLOCK_SPLIT.split(text))
    return list(enumerate((block for block in blocks if block), start=1))


def _reference(line: str, index: int, block: str) -> str:
    if not _REFERENCE.match(line):
        raise ParseError("expected an identifier or an alias", index, line, block)
    return line


def _tags(lines: list[str], index: int, block: str) -> tuple[str, ...]:
    tags = []
    for line in lines:
        try:
            tags.append(validate_tag(line))
        except InvalidTag as e:
            raise ParseError(str(e), index, line, block) from e
    return tuple(tags)


def parse_block(block: str, index: int = 1) -> Command:
    """Parse a single command block.

    Args:
        block: Trimmed block text.
        index: 1-based block position, used in error messages.

    Returns:
        The parsed command.

    Raises:
        ParseError: On an unknown header, a wrong line count or a
            malformed token.
    """
    lines = [line.strip() for line in _LINE_SPLIT.split(block)]
    header = _HEADER.match(lines[0])
    if header is None:
        raise ParseError(
            "first line must be an operation character (+, -, #, ^ or @) "
            "optionally followed by an alias",
            index,
            lines[0],
            block,
        )
    operation, alias = header.group(1), header.group(2)
    if alias is not None:
        if operation not in "+@":
            raise ParseError(
                f"operation {operation!r} does not take an alias", index, lines[0], block
            )
        try:
            validate_alias(alias)
        except InvalidAlias as e:
            raise ParseError(str(e), index, lines[0], block) from e
    body = lines[1:]

    if operation == "+" and len(body) == 1:
        try:
            source = parse_text_source(body[0])
        except ValueError as e:
            raise ParseError(str(e), index, body[0], block) from e
        return AddThesis(source=source, alias=alias, block_index=index)
    if operation == "+" and len(body) == 3:
        if not is_relation_kind(body[1]):
            raise ParseError(
                "relation kind must be words without punctuation", index, body[1], block
            )
        source = RelationSource(
            from_ref=_reference(body[0], index, block),
            kind=body[1],
            to_ref=_reference(body[2], index, block),
        )
        return AddThesis(source=source, alias=alias, block_index=index)
    if operation == "-" and len(body) == 1:
        return RemoveThesis(reference=_reference(body[0], index, block), block_index=index)
    if operation == "#" and len(body) >= 2:
        return Tag(
            reference=_reference(body[0], index, block),
            tags=_tags(body[1:], index, block),
            block_index=index,
        )
    if operation == "^" and len(body) >= 2:
        return Untag(
            reference=_reference(body[0], index, block),
            tags=_tags(body[1:], index, block),
            block_index=index,
        )
    if operation == "@" and len(body) == 1:
        if alias is None:
            raise ParseError(
                "setting an alias requires the new alias after '@'", index, lines[0], block
            )
        return SetAlias(alias=alias, reference=_reference(body[0], index, block), block_index=index)

    raise ParseError(
        f"unsupported operation {operation!r} with {len(lines)} lines, supported are "
        "'+' with 2 lines for text, '+' with 4 lines for relation, '-' with 2 lines, "
        "'#' and '^' with 3 or more lines, '@' with 2 lines",
        index,
        lines[0],
        block,
    )


def iter_commands(text: str) -> Iterator[Command]:
    """Lazily parse commands block by block."""
    for index, block in split_blocks(text):
        yield parse_block(block, index)


def parse_commands(text: str) -> list[Command]:
    """Parse every block of the input before anything is executed.

    Raises:
        ParseError: For the first block that fails to parse.
    """
    return list(iter_commands(text))


__all__ = [
    "AddThesis",
    "Command",
    "RelationSource",
    "RemoveThesis",
    "SetAlias",
    "Tag",
    "TextSource",
    "Untag",
    "iter_commands",
    "parse_block",
    "parse_commands",
    "parse_text_source",
    "split_blocks",
]
