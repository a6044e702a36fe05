"""Store interface - What the mutation engine needs from a document store.

Exports:
- ReadTransaction: Protocol for snapshot-isolated reads
- WriteTransaction: Protocol for serializable writes
- GraphStore: Base class providing transaction context managers
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol, runtime_checkable

from thesisgraph.identity import ThesisId
from thesisgraph.thesis import Thesis

logger = logging.getLogger(__name__)


@runtime_checkable
class ReadTransaction(Protocol):
    """Snapshot-isolated read access to stored theses."""

    def get(self, thesis_id: ThesisId) -> Thesis | None:
        """Load a thesis, or None if absent."""
        ...

    def contains(self, thesis_id: ThesisId) -> bool:
        """Check whether a thesis with this id exists."""
        ...

    def find_by_alias(self, alias: str) -> ThesisId | None:
        """Return the id currently bound to an alias, or None."""
        ...

    def find_by_tag(self, tag: str) -> set[ThesisId]:
        """Return ids of all theses carrying a tag."""
        ...

    def find_mentioning(self, thesis_id: ThesisId) -> set[ThesisId]:
        """Return ids of theses whose content mentions thesis_id.

        Covers relation endpoints and references embedded in text.
        """
        ...

    def all(self) -> Iterator[Thesis]:
        """Lazily iterate over every stored thesis."""
        ...

    def commit(self) -> None: ...

    def abort(self) -> None:
        """Discard the transaction. Safe to call more than once."""
        ...


@runtime_checkable
class WriteTransaction(ReadTransaction, Protocol):
    """Serializable write access; nothing is visible before commit."""

    def put(self, thesis: Thesis) -> None:
        """Insert or update a thesis keyed by its derived id."""
        ...

    def delete(self, thesis_id: ThesisId) -> None:
        """Delete a thesis together with its alias and tags."""
        ...


class GraphStore:
    """Base class for thesis stores.

    Subclasses implement begin_read() and begin_write(); this class adds
    context managers that commit on success and abort on any exception.
    """

    def begin_read(self) -> ReadTransaction:
        raise NotImplementedError

    def begin_write(self) -> WriteTransaction:
        raise NotImplementedError

    def close(self) -> None:
        """Release resources held by the store."""

    @contextmanager
    def reading(self) -> Iterator[ReadTransaction]:
        """Open a read transaction for the duration of the block."""
        transaction = self.begin_read()
        try:
            yield transaction
        finally:
            transaction.abort()

    @contextmanager
    def writing(self) -> Iterator[WriteTransaction]:
        """Open a write transaction, committing it if the block succeeds.

        Any exception aborts the transaction and propagates unchanged.
        """
        transaction = self.begin_write()
        try:
            yield transaction
        except BaseException:
            logger.debug("Aborting write transaction after error")
            transaction.abort()
            raise
        transaction.commit()

    def __enter__(self) -> GraphStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["GraphStore", "ReadTransaction", "WriteTransaction"]
