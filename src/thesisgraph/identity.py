"""Identity - Content-derived thesis identifiers.

Provides the 16-byte ThesisId value type, its text encoding, and the
functions that derive an identifier from the canonical bytes of a
thesis's content.

The hash algorithm (XXH3, 128 bit, big-endian digest) and the canonical
relation encoding are part of the stored data format: changing either one
changes the id of every stored thesis.
"""

from __future__ import annotations

import base64
import re
import struct
from dataclasses import dataclass

import xxhash

from thesisgraph.errors import MalformedIdentifier

ID_SIZE = 16
ENCODED_ID_LENGTH = 22

_ENCODED_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{22}$")


@dataclass(frozen=True, order=True)
class ThesisId:
    """Immutable 16-byte thesis identifier.

    Identifiers are never chosen by callers; use derive_text_id() or
    derive_relation_id() (or Content.id) to obtain one.

    Attributes:
        value: The raw identifier bytes.
    """

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, bytes) or len(self.value) != ID_SIZE:
            raise MalformedIdentifier(
                f"Identifier must be exactly {ID_SIZE} bytes, got {self.value!r}"
            )

    def __str__(self) -> str:
        return encode(self)

    def __repr__(self) -> str:
        return f"ThesisId({encode(self)!r})"


def encode(thesis_id: ThesisId) -> str:
    """Encode an identifier as URL-safe base64 without padding.

    Args:
        thesis_id: Identifier to encode.

    Returns:
        22-character encoded string.
    """
    return base64.urlsafe_b64encode(thesis_id.value).rstrip(b"=").decode("ascii")


def decode(text: str) -> ThesisId:
    """Decode the text form of an identifier.

    Args:
        text: 22-character URL-safe base64 string without padding.

    Returns:
        The decoded ThesisId.

    Raises:
        MalformedIdentifier: On wrong length, characters outside the URL-safe
            alphabet, or non-canonical trailing bits.
    """
    if not isinstance(text, str) or not _ENCODED_ID_PATTERN.match(text):
        raise MalformedIdentifier(
            f"Identifier must be {ENCODED_ID_LENGTH} URL-safe base64 characters, "
            f"so {text!r} does not seem to be identifier"
        )
    raw = base64.urlsafe_b64decode(text + "==")
    thesis_id = ThesisId(raw)
    # The last character carries 4 padding bits which must be zero
    if encode(thesis_id) != text:
        raise MalformedIdentifier(f"Identifier {text!r} is not canonically encoded")
    return thesis_id


def is_encoded_id(text: str) -> bool:
    """Check whether a string is a valid identifier text encoding."""
    try:
        decode(text)
    except MalformedIdentifier:
        return False
    return True


def digest(data: bytes) -> ThesisId:
    """Hash arbitrary bytes into an identifier (XXH3-128, big-endian)."""
    return ThesisId(xxhash.xxh3_128_digest(data))


def _encode_varint(value: int) -> bytes:
    """Encode an unsigned integer with the compact varint scheme.

    Values below 251 take a single byte; larger ones are written as a
    marker byte followed by a little-endian u16, u32 or u64.
    """
    if value < 251:
        return bytes([value])
    if value < 1 << 16:
        return b"\xfb" + struct.pack("<H", value)
    if value < 1 << 32:
        return b"\xfc" + struct.pack("<I", value)
    return b"\xfd" + struct.pack("<Q", value)


def canonical_relation_bytes(from_id: ThesisId, kind: str, to_id: ThesisId) -> bytes:
    """Build the canonical binary form of a relation triple.

    Layout: from (16 bytes), to (16 bytes), varint length of kind, kind as UTF-8.

    Args:
        from_id: Source thesis identifier.
        kind: Relation kind.
        to_id: Target thesis identifier.

    Returns:
        Bytes that are hashed to obtain the relation's identifier.
    """
    kind_bytes = kind.encode("utf-8")
    return from_id.value + to_id.value + _encode_varint(len(kind_bytes)) + kind_bytes


def derive_text_id(composed: str) -> ThesisId:
    """Derive the identifier of a text thesis from its composed form."""
    return digest(composed.encode("utf-8"))


def derive_relation_id(from_id: ThesisId, kind: str, to_id: ThesisId) -> ThesisId:
    """Derive the identifier of a relation thesis."""
    return digest(canonical_relation_bytes(from_id, kind, to_id))


__all__ = [
    "ID_SIZE",
    "ENCODED_ID_LENGTH",
    "ThesisId",
    "encode",
    "decode",
    "is_encoded_id",
    "digest",
    "canonical_relation_bytes",
    "derive_text_id",
    "derive_relation_id",
]
