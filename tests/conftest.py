"""Shared fixtures for thesisgraph tests."""

import pytest

RELATION_KINDS = frozenset({"therefore", "because", "but"})


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite store in a temporary directory."""
    from thesisgraph.store import SQLiteGraphStore

    store = SQLiteGraphStore(tmp_path / "graph" / "theses.db")
    yield store
    store.close()


@pytest.fixture
def engine(store):
    """Mutation engine over the temporary store."""
    from thesisgraph.engine import MutationEngine

    return MutationEngine(store=store, relation_kinds=RELATION_KINDS)


@pytest.fixture
def populated(engine):
    """Two text theses joined by a relation.

    Returns a dict with the ids under "a", "b" and "a_therefore_b".
    """
    from thesisgraph.parser import RelationSource

    a = engine.add_thesis("Socrates is a man", alias="a")
    b = engine.add_thesis("Socrates is mortal", alias="b")
    rel = engine.add_thesis(RelationSource(from_ref="a", kind="therefore", to_ref="b"))
    return {"a": a, "b": b, "a_therefore_b": rel}
