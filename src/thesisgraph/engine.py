"""Mutation engine - Atomic graph mutations over a GraphStore.

Every operation runs inside exactly one write transaction: references
and aliases are resolved, content is validated and hashed, cascades are
computed, and only then is anything written. Any error aborts the
transaction, leaving the graph exactly as it was.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from thesisgraph.parser import (
    AddThesis,
    Command,
    RelationSource,
    RemoveThesis,
    SetAlias,
    Tag,
    TextSource,
    Untag,
    parse_commands,
    parse_text_source,
)
from thesisgraph.errors import (
    InvalidAlias,
    InvalidText,
    UnknownReference,
    UnknownRelationKind,
    UnknownThesis,
)
from thesisgraph.identity import ThesisId, decode, encode, is_encoded_id
from thesisgraph.store.base import GraphStore, ReadTransaction, WriteTransaction
from thesisgraph.thesis import Content, Relation, Text, Thesis, derive, validate_alias, validate_tag

logger = logging.getLogger(__name__)

Reference = Union[str, ThesisId]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one executed command.

    Attributes:
        operation: "add", "remove", "tag", "untag" or "alias".
        thesis_ids: Affected theses; for "remove" the whole cascade.
        created: For "add", False when the thesis already existed.
        alias: Alias bound by "add" or "alias", if any.
    """

    operation: str
    thesis_ids: tuple[ThesisId, ...]
    created: bool = False
    alias: str | None = None

    @property
    def thesis_id(self) -> ThesisId:
        """The primary affected thesis."""
        return self.thesis_ids[0]

    def __str__(self) -> str:
        ids = " ".join(encode(thesis_id) for thesis_id in self.thesis_ids)
        suffix = f" as {self.alias}" if self.alias else ""
        if self.operation == "add" and not self.created:
            return f"add {ids}{suffix} (already present)"
        return f"{self.operation} {ids}{suffix}"


def resolve(transaction: ReadTransaction, reference: Reference) -> ThesisId | None:
    """Resolve an identifier or alias to the id of an existing thesis.

    A token that decodes as the identifier of an existing thesis wins over
    an alias spelled the same way.

    Returns:
        The thesis id, or None if nothing matches.
    """
    if isinstance(reference, ThesisId):
        return reference if transaction.contains(reference) else None
    if is_encoded_id(reference):
        thesis_id = decode(reference)
        if transaction.contains(thesis_id):
            return thesis_id
    return transaction.find_by_alias(reference)


def _describe(reference: Reference) -> str:
    return encode(reference) if isinstance(reference, ThesisId) else reference


def _tag_tuple(tags: Iterable[str]) -> tuple[str, ...]:
    if isinstance(tags, str):
        raise TypeError(f"Expected an iterable of tags, got the string {tags!r}")
    return tuple(tags)


@dataclass
class MutationEngine:
    """Applies commands to a thesis store.

    Attributes:
        store: Backing transactional store.
        relation_kinds: Allow-list of relation kinds.
    """

    store: GraphStore
    relation_kinds: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        self.relation_kinds = frozenset(self.relation_kinds)

    # Public operations, one write transaction each

    def add_thesis(
        self, source: str | TextSource | RelationSource, alias: str | None = None
    ) -> ThesisId:
        """Add a text or relation thesis and return its id.

        Args:
            source: Raw text (may contain [reference] tokens), a parsed
                TextSource, or a RelationSource.
            alias: Optional alias to bind to the thesis.

        Returns:
            The derived id; re-adding existing content returns the same id.
        """
        if isinstance(source, str):
            try:
                source = parse_text_source(source)
            except ValueError as e:
                raise InvalidText(str(e)) from e
        return self.execute(AddThesis(source=source, alias=alias)).thesis_id

    def remove_thesis(self, reference: Reference) -> set[ThesisId]:
        """Remove a thesis and everything that transitively mentions it.

        Returns:
            Ids of every removed thesis.
        """
        return set(self.execute(RemoveThesis(reference=reference)).thesis_ids)

    def tag(self, reference: Reference, tags: Iterable[str]) -> ThesisId:
        return self.execute(Tag(reference=reference, tags=_tag_tuple(tags))).thesis_id

    def untag(self, reference: Reference, tags: Iterable[str]) -> ThesisId:
        return self.execute(Untag(reference=reference, tags=_tag_tuple(tags))).thesis_id

    def set_alias(self, alias: str, reference: Reference) -> ThesisId:
        """Bind alias to a thesis, moving it away from any previous holder."""
        return self.execute(SetAlias(alias=alias, reference=reference)).thesis_id

    def get(self, reference: Reference) -> Thesis:
        """Load a thesis by identifier or alias.

        Raises:
            UnknownThesis: If the reference does not resolve.
        """
        with self.store.reading() as transaction:
            thesis_id = resolve(transaction, reference)
            thesis = transaction.get(thesis_id) if thesis_id is not None else None
        if thesis is None:
            raise UnknownThesis(_describe(reference))
        return thesis

    def find_by_tag(self, tag: str) -> set[ThesisId]:
        with self.store.reading() as transaction:
            return transaction.find_by_tag(validate_tag(tag))

    # Command execution

    def execute(self, command: Command) -> CommandResult:
        """Execute one command in its own write transaction."""
        with self.store.writing() as transaction:
            result = self.apply_command(transaction, command)
        logger.info(f"Applied {result}")
        return result

    def execute_all(self, commands: Iterable[Command], atomic: bool = False) -> list[CommandResult]:
        """Execute a batch of commands.

        Args:
            commands: Commands in execution order.
            atomic: If True, run the whole batch in one transaction so that
                a failing command discards every earlier one too.

        Returns:
            One result per command, in order.
        """
        if not atomic:
            return [self.execute(command) for command in commands]
        with self.store.writing() as transaction:
            results = [self.apply_command(transaction, command) for command in commands]
        for result in results:
            logger.info(f"Applied {result}")
        return results

    def apply(self, text: str, atomic: bool = False) -> list[CommandResult]:
        """Parse command text and execute every block.

        The whole input is parsed first; a ParseError leaves the graph untouched.
        """
        return self.execute_all(parse_commands(text), atomic=atomic)

    def apply_command(self, transaction: WriteTransaction, command: Command) -> CommandResult:
        """Apply a command inside an already open write transaction."""
        if isinstance(command, AddThesis):
            return self._add_thesis(transaction, command)
        if isinstance(command, RemoveThesis):
            return self._remove_thesis(transaction, command)
        if isinstance(command, Tag):
            return self._tag(transaction, command, add=True)
        if isinstance(command, Untag):
            return self._tag(transaction, command, add=False)
        if isinstance(command, SetAlias):
            return self._set_alias(transaction, command)
        raise TypeError(f"Unsupported command {command!r}")

    # Steps

    def _require(self, transaction: ReadTransaction, reference: Reference) -> Thesis:
        thesis_id = resolve(transaction, reference)
        thesis = transaction.get(thesis_id) if thesis_id is not None else None
        if thesis is None:
            raise UnknownThesis(_describe(reference))
        return thesis

    def _build_content(
        self, transaction: ReadTransaction, source: TextSource | RelationSource
    ) -> Content:
        if isinstance(source, TextSource):
            references = []
            for token in source.tokens:
                thesis_id = resolve(transaction, token)
                if thesis_id is None:
                    raise UnknownReference(token)
                references.append(thesis_id)
            return Text(parts=source.parts, references=tuple(references))

        endpoints = []
        for reference in (source.from_ref, source.to_ref):
            thesis_id = resolve(transaction, reference)
            if thesis_id is None:
                raise UnknownThesis(_describe(reference))
            endpoints.append(thesis_id)
        if source.kind not in self.relation_kinds:
            raise UnknownRelationKind(source.kind, self.relation_kinds)
        return Relation(from_id=endpoints[0], kind=source.kind, to_id=endpoints[1])

    def _bind_alias(self, transaction: WriteTransaction, thesis: Thesis, alias: str) -> None:
        """Bind alias to thesis and put it; the alias moves if already taken.

        Raises:
            InvalidAlias: If the alias is the encoded id of another existing
                thesis.
        """
        if is_encoded_id(alias):
            shadowed = decode(alias)
            if shadowed != thesis.id and transaction.contains(shadowed):
                raise InvalidAlias(
                    f"Alias {alias!r} is the identifier of another thesis and would never resolve"
                )
        holder_id = transaction.find_by_alias(alias)
        if holder_id is not None and holder_id != thesis.id:
            holder = transaction.get(holder_id)
            if holder is not None:
                holder.alias = None
                transaction.put(holder)
                logger.info(f"Alias {alias!r} moved from {encode(holder_id)}")
        thesis.alias = alias
        transaction.put(thesis)

    def _add_thesis(self, transaction: WriteTransaction, command: AddThesis) -> CommandResult:
        if command.alias is not None:
            validate_alias(command.alias)
        content = self._build_content(transaction, command.source)
        thesis_id = derive(content)
        existing = transaction.get(thesis_id)
        thesis = existing if existing is not None else Thesis(content=content)
        if command.alias is not None:
            self._bind_alias(transaction, thesis, command.alias)
        elif existing is None:
            transaction.put(thesis)
        return CommandResult(
            operation="add",
            thesis_ids=(thesis_id,),
            created=existing is None,
            alias=thesis.alias,
        )

    def _closure(self, transaction: ReadTransaction, root: ThesisId) -> list[ThesisId]:
        """Collect root and every thesis that transitively mentions it."""
        visited = {root}
        order = [root]
        pending = deque([root])
        while pending:
            current = pending.popleft()
            for mentioning in sorted(transaction.find_mentioning(current)):
                if mentioning not in visited:
                    visited.add(mentioning)
                    order.append(mentioning)
                    pending.append(mentioning)
        return order

    def _remove_thesis(self, transaction: WriteTransaction, command: RemoveThesis) -> CommandResult:
        root = self._require(transaction, command.reference)
        removed = self._closure(transaction, root.id)
        for thesis_id in removed:
            transaction.delete(thesis_id)
        if len(removed) > 1:
            logger.info(
                f"Removing {encode(root.id)} cascaded to {len(removed) - 1} dependent theses"
            )
        return CommandResult(operation="remove", thesis_ids=tuple(removed))

    def _tag(self, transaction: WriteTransaction, command: Tag | Untag, add: bool) -> CommandResult:
        for tag in command.tags:
            validate_tag(tag)
        thesis = self._require(transaction, command.reference)
        if add:
            thesis.add_tags(command.tags)
        else:
            thesis.remove_tags(command.tags)
        transaction.put(thesis)
        return CommandResult(operation="tag" if add else "untag", thesis_ids=(thesis.id,))

    def _set_alias(self, transaction: WriteTransaction, command: SetAlias) -> CommandResult:
        validate_alias(command.alias)
        thesis = self._require(transaction, command.reference)
        self._bind_alias(transaction, thesis, command.alias)
        return CommandResult(operation="alias", thesis_ids=(thesis.id,), alias=command.alias)


__all__ = ["CommandResult", "MutationEngine", "Reference", "resolve"]
