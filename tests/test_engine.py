"""Tests for engine.py - Mutation engine semantics."""

import pytest

from thesisgraph.engine import CommandResult, MutationEngine
from thesisgraph.errors import (
    InvalidAlias,
    InvalidTag,
    InvalidText,
    ParseError,
    UnknownReference,
    UnknownRelationKind,
    UnknownThesis,
)
from thesisgraph.identity import encode
from thesisgraph.parser import RelationSource, RemoveThesis, Tag, parse_commands
from thesisgraph.thesis import Relation, Text


def all_ids(engine: MutationEngine) -> set:
    with engine.store.reading() as txn:
        return {thesis.id for thesis in txn.all()}


class TestAddThesis:
    """Tests for adding text and relation theses."""

    def test_add_text_with_alias(self, engine):
        thesis_id = engine.add_thesis("Socrates is a man", alias="man")
        thesis = engine.get("man")
        assert thesis.id == thesis_id
        assert thesis.content == Text.plain("Socrates is a man")
        assert thesis.alias == "man"

    def test_add_text_with_reference(self, populated, engine):
        root = engine.add_thesis("[a] is true", alias="root")
        thesis = engine.get("root")
        assert thesis.id == root
        assert thesis.content.references == (populated["a"],)
        assert thesis.content.composed() == f"[{encode(populated['a'])}] is true"

    def test_reference_by_identifier(self, populated, engine):
        quoted = engine.add_thesis(f"[{encode(populated['b'])}] is a conclusion")
        assert engine.get(quoted).mentions() == [populated["b"]]

    def test_add_relation(self, populated, engine):
        relation = engine.get(populated["a_therefore_b"]).content
        assert relation == Relation(from_id=populated["a"], kind="therefore", to_id=populated["b"])

    def test_readding_is_idempotent(self, engine):
        first = engine.add_thesis("Socrates is a man")
        result = engine.execute_all(parse_commands("+\nSocrates is a man"))[0]
        assert result.thesis_id == first
        assert result.created is False
        assert all_ids(engine) == {first}

    def test_readding_with_alias_binds_alias(self, engine):
        thesis_id = engine.add_thesis("Socrates is a man")
        assert engine.add_thesis("Socrates is a man", alias="man") == thesis_id
        assert engine.get("man").id == thesis_id

    def test_relation_with_missing_endpoint(self, populated, engine):
        before = all_ids(engine)
        with pytest.raises(UnknownThesis):
            engine.add_thesis(RelationSource(from_ref="a", kind="therefore", to_ref="nowhere"))
        assert all_ids(engine) == before

    def test_relation_with_unknown_kind(self, populated, engine):
        before = all_ids(engine)
        with pytest.raises(UnknownRelationKind) as exc_info:
            engine.add_thesis(RelationSource(from_ref="a", kind="implies", to_ref="b"))
        assert exc_info.value.kind == "implies"
        assert all_ids(engine) == before

    def test_unresolved_text_reference(self, engine):
        with pytest.raises(UnknownReference) as exc_info:
            engine.add_thesis("[ghost] is here")
        assert exc_info.value.token == "ghost"
        assert all_ids(engine) == set()

    def test_invalid_text(self, engine):
        with pytest.raises(InvalidText):
            engine.add_thesis("Is Socrates mortal?")
        with pytest.raises(InvalidText):
            engine.add_thesis("Socrates ] mortal")

    def test_invalid_alias(self, engine):
        with pytest.raises(InvalidAlias):
            engine.add_thesis("Socrates", alias="two words")
        assert all_ids(engine) == set()

    def test_relation_of_relation(self, populated, engine):
        meta = engine.add_thesis(
            RelationSource(from_ref=encode(populated["a_therefore_b"]), kind="but", to_ref="a")
        )
        assert engine.get(meta).mentions() == [populated["a_therefore_b"], populated["a"]]


class TestResolution:
    """Tests for identifier and alias resolution."""

    def test_get_unknown(self, engine):
        with pytest.raises(UnknownThesis):
            engine.get("missing")

    def test_alias_shadowing_existing_identifier_rejected(self, engine):
        plato = engine.add_thesis("Plato")
        with pytest.raises(InvalidAlias):
            engine.add_thesis("Socrates", alias=encode(plato))
        assert all_ids(engine) == {plato}
        socrates = engine.add_thesis("Socrates")
        with pytest.raises(InvalidAlias):
            engine.set_alias(encode(plato), socrates)
        assert engine.get(socrates).alias is None

    def test_alias_may_equal_own_identifier(self, engine):
        plato = engine.add_thesis("Plato")
        engine.set_alias(encode(plato), plato)
        assert engine.get(encode(plato)).alias == encode(plato)

    def test_alias_that_looks_like_unknown_identifier(self, engine):
        lookalike = "AAECAwQFBgcICQoLDA0ODw"
        socrates = engine.add_thesis("Socrates", alias=lookalike)
        assert engine.get(lookalike).id == socrates


class TestRemoveThesis:
    """Tests for cascading removal."""

    def test_remove_leaf(self, populated, engine):
        removed = engine.remove_thesis(populated["a_therefore_b"])
        assert removed == {populated["a_therefore_b"]}
        assert all_ids(engine) == {populated["a"], populated["b"]}

    def test_remove_cascades_through_relations_and_references(self, populated, engine):
        engine.add_thesis("Socrates is a philosopher", alias="c")
        because = engine.add_thesis(RelationSource(from_ref="a", kind="because", to_ref="c"))
        quote = engine.add_thesis("[a] is a premise")

        removed = engine.remove_thesis("a")

        assert removed == {populated["a"], populated["a_therefore_b"], because, quote}
        assert len(removed) == 4
        assert all_ids(engine) == {populated["b"], engine.get("c").id}

    def test_remove_cascades_transitively(self, populated, engine):
        meta = engine.add_thesis(
            RelationSource(from_ref=encode(populated["a_therefore_b"]), kind="but", to_ref="b")
        )
        quote = engine.add_thesis(f"[{encode(meta)}] is doubtful")

        removed = engine.remove_thesis("b")

        assert removed == {populated["b"], populated["a_therefore_b"], meta, quote}
        assert all_ids(engine) == {populated["a"]}

    def test_remove_frees_alias(self, populated, engine):
        engine.remove_thesis("a")
        with pytest.raises(UnknownThesis):
            engine.get("a")
        assert engine.add_thesis("Plato", alias="a") == engine.get("a").id

    def test_remove_unknown(self, populated, engine):
        before = all_ids(engine)
        with pytest.raises(UnknownThesis):
            engine.remove_thesis("missing")
        assert all_ids(engine) == before


class TestTags:
    """Tests for tagging."""

    def test_tag_and_find(self, populated, engine):
        engine.tag("a", ["logic", "greek"])
        engine.tag("b", ["logic"])
        assert engine.get("a").tags == {"logic", "greek"}
        assert engine.find_by_tag("logic") == {populated["a"], populated["b"]}

    def test_tag_is_idempotent(self, populated, engine):
        engine.tag("a", ["logic"])
        engine.tag("a", ["logic"])
        assert engine.get("a").tags == {"logic"}

    def test_untag(self, populated, engine):
        engine.tag("a", ["logic", "greek"])
        engine.untag("a", ["logic", "absent"])
        assert engine.get("a").tags == {"greek"}
        assert engine.find_by_tag("logic") == set()

    def test_tags_do_not_change_id(self, populated, engine):
        engine.tag("a", ["logic"])
        assert engine.get("a").id == populated["a"]

    def test_invalid_tag_changes_nothing(self, populated, engine):
        with pytest.raises(InvalidTag):
            engine.tag("a", ["logic", "not-a-tag"])
        assert engine.get("a").tags == set()

    def test_tag_unknown_thesis(self, engine):
        with pytest.raises(UnknownThesis):
            engine.tag("missing", ["logic"])

    def test_bare_string_tags_rejected(self, populated, engine):
        with pytest.raises(TypeError):
            engine.tag("a", "logic")
        with pytest.raises(TypeError):
            engine.untag("a", "logic")
        assert engine.get("a").tags == set()


class TestAliases:
    """Tests for alias binding."""

    def test_alias_moves_between_theses(self, populated, engine):
        engine.set_alias("foo", "a")
        engine.set_alias("foo", "b")
        assert engine.get("foo").id == populated["b"]
        assert engine.get(populated["a"]).alias is None

    def test_add_with_taken_alias_moves_it(self, populated, engine):
        plato = engine.add_thesis("Plato", alias="a")
        assert engine.get("a").id == plato
        assert engine.get(populated["a"]).alias is None

    def test_set_alias_replaces_previous_alias(self, populated, engine):
        engine.set_alias("premise", "a")
        assert engine.get("premise").id == populated["a"]
        with pytest.raises(UnknownThesis):
            engine.get("a")

    def test_set_alias_unknown_thesis(self, engine):
        with pytest.raises(UnknownThesis):
            engine.set_alias("foo", "missing")


class TestBatches:
    """Tests for executing command text and batches."""

    def test_apply_text(self, engine):
        results = engine.apply(
            "+ a\nSocrates is a man\n\n"
            "+ b\nSocrates is mortal\n\n"
            "+ rel\na\ntherefore\nb\n\n"
            "#\nrel\nsyllogism\n\n"
            "@ premise\na"
        )
        assert [result.operation for result in results] == ["add", "add", "add", "tag", "alias"]
        assert engine.get("rel").tags == {"syllogism"}
        assert engine.get("premise").id == results[0].thesis_id

    def test_apply_crlf_text(self, engine):
        results = engine.apply(
            "+ a\r\nSocrates is a man\r\n\r\n"
            "+ b\r\nSocrates is mortal\r\n\r\n"
            "+ rel\r\na\r\ntherefore\r\nb\r\n"
        )
        assert [result.operation for result in results] == ["add", "add", "add"]
        assert engine.get("a").content == Text.plain("Socrates is a man")
        assert engine.get("rel").content == Relation(
            from_id=results[0].thesis_id, kind="therefore", to_id=results[1].thesis_id
        )

    def test_parse_error_leaves_graph_untouched(self, engine):
        with pytest.raises(ParseError):
            engine.apply("+\nSocrates is a man\n\n!\nbroken")
        assert all_ids(engine) == set()

    def test_non_atomic_batch_keeps_earlier_commands(self, engine):
        with pytest.raises(UnknownThesis):
            engine.apply("+ a\nSocrates is a man\n\n-\nmissing")
        assert engine.get("a").content == Text.plain("Socrates is a man")

    def test_atomic_batch_rolls_back(self, engine):
        with pytest.raises(UnknownThesis):
            engine.apply("+ a\nSocrates is a man\n\n-\nmissing", atomic=True)
        assert all_ids(engine) == set()

    def test_atomic_batch_sees_its_own_writes(self, engine):
        results = engine.apply("+ a\nSocrates is a man\n\n#\na\nlogic", atomic=True)
        assert len(results) == 2
        assert engine.get("a").tags == {"logic"}

    def test_execute_returns_results(self, populated, engine):
        result = engine.execute(Tag(reference="a", tags=("logic",)))
        assert result == CommandResult(operation="tag", thesis_ids=(populated["a"],))
        removal = engine.execute(RemoveThesis(reference="b"))
        assert removal.thesis_ids[0] == populated["b"]
        assert set(removal.thesis_ids) == {populated["b"], populated["a_therefore_b"]}

    def test_result_str(self, populated, engine):
        result = engine.execute_all(parse_commands("+ a\nSocrates is a man"))[0]
        assert str(result) == f"add {encode(populated['a'])} as a (already present)"
