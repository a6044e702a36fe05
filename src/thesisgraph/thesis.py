"""Thesis - Data model for theses, their content, tags and aliases.

This module provides the stored entities:
- Text: Raw text parts interleaved with resolved references
- Relation: Typed directed relation between two theses
- Thesis: Content plus mutable tags and alias

Content is immutable; a thesis's id is always re-derived from it.
Tags and alias never contribute to identity.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Union

from thesisgraph.errors import InvalidAlias, InvalidTag, InvalidText, StoreFailure
from thesisgraph.identity import (
    ThesisId,
    decode,
    derive_relation_id,
    derive_text_id,
    encode,
)

_ALIAS_PATTERN = re.compile(r"^\S+$")
_TAG_PATTERN = re.compile(r"^\w+$")
_RELATION_KIND_PATTERN = re.compile(r"^[\w\s]+$")

_LATIN = "A-Za-z\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u024f"
_CYRILLIC = "\u0400-\u04ff"
_SCRIPT_PATTERNS = (
    re.compile(rf"^[{_LATIN}\s,-]*$"),
    re.compile(rf"^[{_CYRILLIC}\s,-]*$"),
)
_LETTER_PATTERN = re.compile(rf"[{_LATIN}{_CYRILLIC}]")


def validate_alias(alias: str) -> str:
    """Validate an alias: one or more non-whitespace characters.

    Raises:
        InvalidAlias: If the alias is empty or contains whitespace.
    """
    if not isinstance(alias, str) or not _ALIAS_PATTERN.match(alias):
        raise InvalidAlias(
            f"Alias must be sequence of one or more non-whitespace characters, "
            f"so {alias!r} does not seem to be alias"
        )
    return alias


def validate_tag(tag: str) -> str:
    """Validate a tag: one or more word characters.

    Raises:
        InvalidTag: If the tag contains anything but word characters.
    """
    if not isinstance(tag, str) or not _TAG_PATTERN.match(tag):
        raise InvalidTag(
            f"Tag must be a word symbols sequence, so {tag!r} does not seem to be tag"
        )
    return tag


def is_relation_kind(kind: str) -> bool:
    """Check the relation kind grammar (words and whitespace, no punctuation)."""
    return isinstance(kind, str) and bool(_RELATION_KIND_PATTERN.match(kind))


@dataclass(frozen=True)
class Text:
    """Text content with embedded references.

    `parts` always holds one more element than `references`: the composed
    text is parts[0], ref[0], parts[1], ref[1], ..., parts[-1].

    Attributes:
        parts: Raw text segments surrounding the references.
        references: Resolved identifiers of the referenced theses.
    """

    parts: tuple[str, ...]
    references: tuple[ThesisId, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "parts", tuple(self.parts))
        object.__setattr__(self, "references", tuple(self.references))
        if len(self.parts) != len(self.references) + 1:
            raise InvalidText(
                f"Text must have exactly one more part than references, got "
                f"{len(self.parts)} parts and {len(self.references)} references"
            )
        self.validate()

    @classmethod
    def plain(cls, raw: str) -> Text:
        """Create a text without references."""
        return cls(parts=(raw,))

    def validate(self) -> None:
        """Check the character set of the raw parts.

        Raises:
            InvalidText: If the parts mix scripts, contain characters other
                than letters, whitespace, ',' and '-', or the text is empty.
        """
        joined = " ".join(self.parts)
        if not any(pattern.match(joined) for pattern in _SCRIPT_PATTERNS):
            raise InvalidText(
                f"Text must be one English or Russian sentence: letters, whitespaces, "
                f"',' and '-', so {self.composed()!r} does not seem to be text"
            )
        if not self.references and not _LETTER_PATTERN.search(joined):
            raise InvalidText(f"Text {self.composed()!r} contains neither letters nor references")

    def render(self, label_for: Callable[[ThesisId], str]) -> str:
        """Interleave parts with a label for each reference."""
        pieces = [self.parts[0]]
        for reference, part in zip(self.references, self.parts[1:]):
            pieces.append(label_for(reference))
            pieces.append(part)
        return "".join(pieces)

    def composed(self) -> str:
        """Canonical text form, references written as [identifier]."""
        return self.render(lambda reference: f"[{encode(reference)}]")

    @property
    def id(self) -> ThesisId:
        return derive_text_id(self.composed())

    def mentions(self) -> list[ThesisId]:
        return list(self.references)

    def to_document(self) -> dict[str, Any]:
        return {
            "text": {
                "parts": list(self.parts),
                "references": [encode(reference) for reference in self.references],
            }
        }


@dataclass(frozen=True)
class Relation:
    """Typed directed relation between two theses.

    Attributes:
        from_id: Identifier of the source thesis.
        kind: Relation kind from the configured allow-list.
        to_id: Identifier of the target thesis.
    """

    from_id: ThesisId
    kind: str
    to_id: ThesisId

    @property
    def id(self) -> ThesisId:
        return derive_relation_id(self.from_id, self.kind, self.to_id)

    def mentions(self) -> list[ThesisId]:
        return [self.from_id, self.to_id]

    def to_document(self) -> dict[str, Any]:
        return {
            "relation": {
                "from": encode(self.from_id),
                "kind": self.kind,
                "to": encode(self.to_id),
            }
        }


Content = Union[Text, Relation]


def derive(content: Content) -> ThesisId:
    """Derive the identifier of a thesis from its content."""
    return content.id


def content_from_document(document: dict[str, Any]) -> Content:
    """Rebuild content from its persisted document form."""
    if "text" in document:
        text = document["text"]
        return Text(
            parts=tuple(text["parts"]),
            references=tuple(decode(reference) for reference in text.get("references", [])),
        )
    if "relation" in document:
        relation = document["relation"]
        return Relation(
            from_id=decode(relation["from"]),
            kind=relation["kind"],
            to_id=decode(relation["to"]),
        )
    raise ValueError(f"Unknown content document {document!r}")


@dataclass
class Thesis:
    """A stored proposition.

    The id is a property of the content and is never stored separately.

    Attributes:
        content: Text or Relation content, fixed at creation.
        alias: Optional unique human-readable name.
        tags: Set of tag strings.
    """

    content: Content
    alias: str | None = None
    tags: set[str] = field(default_factory=set)

    @property
    def id(self) -> ThesisId:
        return self.content.id

    @property
    def is_relation(self) -> bool:
        return isinstance(self.content, Relation)

    def mentions(self) -> list[ThesisId]:
        """Identifiers this thesis's content points at."""
        return self.content.mentions()

    def add_tags(self, tags: Iterable[str]) -> None:
        for tag in tags:
            self.tags.add(validate_tag(tag))

    def remove_tags(self, tags: Iterable[str]) -> None:
        for tag in tags:
            self.tags.discard(validate_tag(tag))

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document persisted by the store."""
        return {
            "alias": self.alias,
            "tags": sorted(self.tags),
            "content": self.content.to_document(),
        }

    @classmethod
    def from_document(cls, thesis_id: ThesisId, document: dict[str, Any]) -> Thesis:
        """Rebuild a thesis from its stored document.

        Args:
            thesis_id: Key the document was stored under.
            document: Persisted JSON document.

        Raises:
            StoreFailure: If the content no longer hashes to thesis_id.
        """
        thesis = cls(
            content=content_from_document(document["content"]),
            alias=document.get("alias"),
            tags=set(document.get("tags", [])),
        )
        if thesis.id != thesis_id:
            raise StoreFailure(
                f"Stored thesis {encode(thesis_id)} hashes to {encode(thesis.id)}, "
                "store is corrupted"
            )
        return thesis


__all__ = [
    "Content",
    "Relation",
    "Text",
    "Thesis",
    "content_from_document",
    "derive",
    "is_relation_kind",
    "validate_alias",
    "validate_tag",
]
