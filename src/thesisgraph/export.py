"""Graph exporter - Render the thesis graph as Graphviz DOT text.

Text theses become table-shaped nodes (alias or id header, wrapped body).
Relation theses become labeled edges between their endpoints. Depending on
ExportOptions.relation_nodes, a relation can also get a visible node of its
own, with its edge routed through that node.

Only the DOT text is produced here; turning it into an image is left to
Graphviz.
"""

from __future__ import annotations

import html
import textwrap
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from thesisgraph.identity import ThesisId, encode
from thesisgraph.store.base import GraphStore, ReadTransaction
from thesisgraph.thesis import Relation, Text, Thesis

MAX_HEADER_LENGTH = 40


class RelationNodes(Enum):
    """Which relation theses get a node of their own.

    - NONE: never; every relation is a plain edge
    - RELATED: relations with an alias or mentioned by another thesis
    - ALL: every relation
    """

    NONE = "none"
    RELATED = "related"
    ALL = "all"


class ReferenceEdges(Enum):
    """Which text theses get dashed edges to the theses they reference.

    - NONE: no reference edges
    - MENTIONED: only texts that are themselves mentioned by another thesis
    - ALL: every text
    """

    NONE = "none"
    MENTIONED = "mentioned"
    ALL = "all"


def _reference_edges(value: Any) -> ReferenceEdges:
    if isinstance(value, bool):
        return ReferenceEdges.ALL if value else ReferenceEdges.NONE
    return ReferenceEdges(value)


@dataclass
class ExportOptions:
    """Rendering options for DOT export.

    Attributes:
        wrap_width: Column at which text bodies are wrapped.
        relation_nodes: Which relations are drawn as nodes.
        references: Which texts get dashed edges to referenced theses.
    """

    wrap_width: int = 40
    relation_nodes: RelationNodes = RelationNodes.RELATED
    references: ReferenceEdges = ReferenceEdges.ALL

    def __post_init__(self) -> None:
        self.relation_nodes = RelationNodes(self.relation_nodes)
        self.references = _reference_edges(self.references)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportOptions:
        """Build options from the [graph] configuration table.

        `show_references` also accepts true/false for all/none.

        Raises:
            ValueError: On an unknown relation_nodes or show_references value.
        """
        return cls(
            wrap_width=int(data.get("wrap_width", 40)),
            relation_nodes=RelationNodes(data.get("relation_nodes", "related")),
            references=_reference_edges(data.get("show_references", "all")),
        )


def quote(value: str) -> str:
    """Quote a string as a DOT identifier."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def truncate(value: str, length: int = MAX_HEADER_LENGTH) -> str:
    return value if len(value) <= length else value[: length - 1] + "…"


class DotRenderer:
    """Streams DOT statements for every thesis visible in a transaction."""

    def __init__(self, transaction: ReadTransaction, options: ExportOptions | None = None):
        self.transaction = transaction
        self.options = options or ExportOptions()
        self._labels: dict[ThesisId, str] = {}

    def label(self, thesis_id: ThesisId) -> str:
        """Alias of a thesis if it has one, else its encoded id."""
        if thesis_id not in self._labels:
            thesis = self.transaction.get(thesis_id)
            alias = thesis.alias if thesis is not None else None
            self._labels[thesis_id] = alias or encode(thesis_id)
        return self._labels[thesis_id]

    def _header(self, thesis: Thesis) -> str:
        return html.escape(truncate(thesis.alias or encode(thesis.id)))

    def _shows_references(self, thesis: Thesis) -> bool:
        mode = self.options.references
        if mode is ReferenceEdges.MENTIONED:
            return bool(self.transaction.find_mentioning(thesis.id))
        return mode is ReferenceEdges.ALL

    def _has_node(self, thesis: Thesis) -> bool:
        mode = self.options.relation_nodes
        if mode is RelationNodes.RELATED:
            return bool(thesis.alias or self.transaction.find_mentioning(thesis.id))
        return mode is RelationNodes.ALL

    def _text_node(self, thesis: Thesis, text: Text) -> Iterator[str]:
        body = text.render(lambda reference: f"[{self.label(reference)}]")
        wrapped = textwrap.wrap(body, width=max(self.options.wrap_width, 1)) or [""]
        rows = [
            f'<TR><TD BORDER="1" SIDES="b">{self._header(thesis)}</TD></TR>',
            f'<TR><TD BORDER="0">{"<BR/>".join(html.escape(line) for line in wrapped)}</TD></TR>',
        ]
        if thesis.tags:
            tags = html.escape(" ".join(f"#{tag}" for tag in sorted(thesis.tags)))
            rows.append(f'<TR><TD BORDER="0"><I>{tags}</I></TD></TR>')
        table = f'<TABLE BORDER="2" CELLSPACING="0" CELLPADDING="8">{"".join(rows)}</TABLE>'
        node = quote(encode(thesis.id))
        yield f"\t{node} [label=<{table}>, shape=plaintext];"
        if text.references and self._shows_references(thesis):
            for reference in text.references:
                yield f"\t{node} -> {quote(encode(reference))} [style=dashed, arrowhead=open];"

    def _relation_node(self, thesis: Thesis, relation: Relation) -> Iterator[str]:
        node = quote(encode(thesis.id))
        source = quote(encode(relation.from_id))
        target = quote(encode(relation.to_id))
        kind = quote(relation.kind)
        if self._has_node(thesis):
            label = quote(truncate(thesis.alias or encode(thesis.id)))
            yield f"\t{node} [label={label}, shape=box, style=rounded, fontsize=10];"
            yield f"\t{source} -> {node} [arrowhead=none, label={kind}];"
            yield f"\t{node} -> {target};"
        else:
            yield f"\t{node} [shape=point, style=invis];"
            yield f"\t{source} -> {target} [label={kind}];"

    def __iter__(self) -> Iterator[str]:
        yield "digraph theses {"
        yield "\tnode [fontname=\"Helvetica\"];"
        yield "\tedge [fontname=\"Helvetica\"];"
        for thesis in self.transaction.all():
            if isinstance(thesis.content, Text):
                yield from self._text_node(thesis, thesis.content)
            else:
                yield from self._relation_node(thesis, thesis.content)
        yield "}"


def iter_dot(transaction: ReadTransaction, options: ExportOptions | None = None) -> Iterator[str]:
    """Yield DOT lines for all theses visible in the transaction."""
    return iter(DotRenderer(transaction, options))


def render_dot(store: GraphStore, options: ExportOptions | None = None) -> str:
    """Render the whole graph from one read snapshot.

    Args:
        store: Store to read from; never modified.
        options: Rendering options.

    Returns:
        DOT text terminated by a newline.
    """
    with store.reading() as transaction:
        return "\n".join(iter_dot(transaction, options)) + "\n"


__all__ = [
    "DotRenderer",
    "ExportOptions",
    "ReferenceEdges",
    "RelationNodes",
    "iter_dot",
    "quote",
    "render_dot",
]
