"""Tests for parser.py - Command block grammar."""

import pytest

from thesisgraph.errors import ParseError
from thesisgraph.parser import (
    AddThesis,
    RelationSource,
    RemoveThesis,
    SetAlias,
    Tag,
    TextSource,
    Untag,
    iter_commands,
    parse_block,
    parse_commands,
    parse_text_source,
    split_blocks,
)

ID = "AAECAwQFBgcICQoLDA0ODw"


class TestSplitBlocks:
    """Tests for block splitting."""

    def test_splits_on_blank_lines(self):
        text = "+\nSocrates\n\n-\nroot"
        assert split_blocks(text) == [(1, "+\nSocrates"), (2, "-\nroot")]

    def test_accepts_crlf_and_cr(self):
        assert split_blocks("+\r\nA\r\n\r\n-\r\nB") == [(1, "+\nA"), (2, "-\nB")]
        assert split_blocks("+\rA\r\r-\rB") == [(1, "+\nA"), (2, "-\nB")]

    def test_single_crlf_does_not_split(self):
        assert split_blocks("+ a\r\nSocrates is a man") == [(1, "+ a\nSocrates is a man")]
        assert split_blocks("+ a\r\nSocrates is a man\r\n \r\n-\r\na\r\n") == [
            (1, "+ a\nSocrates is a man"),
            (2, "-\na"),
        ]

    def test_crlf_commands_parse(self):
        commands = parse_commands("+ rel\r\na\r\ntherefore\r\nb\r\n\r\n#\r\nrel\r\nlogic")
        assert commands == [
            AddThesis(source=RelationSource(from_ref="a", kind="therefore", to_ref="b"), alias="rel"),
            Tag(reference="rel", tags=("logic",)),
        ]

    def test_many_blank_lines_and_whitespace_lines(self):
        text = "\n\n+\nA\n   \n\n\n-\nB\n\n"
        assert [index for index, _ in split_blocks(text)] == [1, 2]

    def test_empty_input(self):
        assert split_blocks("") == []
        assert parse_commands("\n\n  \n") == []


class TestParseTextSource:
    """Tests for extracting [reference] tokens from text."""

    def test_plain_text(self):
        assert parse_text_source("Socrates is a man") == TextSource(parts=("Socrates is a man",))

    def test_references_extracted_without_touching_text(self):
        source = parse_text_source(f"[root] is true, and [{ID}] too")
        assert source.tokens == ("root", ID)
        assert source.parts == ("", " is true, and ", " too")

    def test_adjacent_references(self):
        source = parse_text_source("[a][b]")
        assert source.tokens == ("a", "b")
        assert source.parts == ("", "", "")

    @pytest.mark.parametrize("raw", ["[] is empty", "[two words] here", "a [b", "a ] b", "[[a]]"])
    def test_malformed_references(self, raw):
        with pytest.raises(ValueError):
            parse_text_source(raw)


class TestParseBlock:
    """Tests for parsing individual blocks into commands."""

    def test_add_text(self):
        command = parse_block("+\nSocrates is a man")
        assert command == AddThesis(source=TextSource(parts=("Socrates is a man",)))

    def test_add_text_with_alias(self):
        command = parse_block("+ root\n[a] is true")
        assert command.alias == "root"
        assert command.source == TextSource(parts=("", " is true"), tokens=("a",))

    def test_add_relation(self):
        command = parse_block(f"+ rel\na\nis part of\n{ID}")
        assert command == AddThesis(
            source=RelationSource(from_ref="a", kind="is part of", to_ref=ID), alias="rel"
        )

    def test_remove(self):
        assert parse_block("-\nroot") == RemoveThesis(reference="root")

    def test_tag_and_untag(self):
        assert parse_block("#\nroot\nlogic\ngreek") == Tag(reference="root", tags=("logic", "greek"))
        assert parse_block("^\nroot\nlogic") == Untag(reference="root", tags=("logic",))

    def test_set_alias(self):
        assert parse_block(f"@ foo\n{ID}") == SetAlias(alias="foo", reference=ID)

    def test_header_whitespace(self):
        assert parse_block("  +   root  \nSocrates").alias == "root"

    def test_lines_are_trimmed(self):
        assert parse_block("-\n  root  ") == RemoveThesis(reference="root")

    def test_block_index_recorded(self):
        commands = parse_commands("+\nA\n\n-\nroot")
        assert [command.block_index for command in commands] == [1, 2]


class TestParseErrors:
    """Tests for ParseError reporting."""

    def test_unknown_operation(self):
        with pytest.raises(ParseError) as exc_info:
            parse_block("*\nroot", 3)
        assert exc_info.value.block_index == 3
        assert exc_info.value.line == "*"

    @pytest.mark.parametrize(
        "block",
        [
            "+\na\nb",  # 3 lines: neither text nor relation
            "+\na\ntherefore\nb\nc",
            "-\na\nb",
            "#\nroot",
            "^\nroot",
            "@ foo\na\nb",
        ],
    )
    def test_wrong_line_count(self, block):
        with pytest.raises(ParseError, match="unsupported operation"):
            parse_block(block)

    def test_alias_on_remove_rejected(self):
        with pytest.raises(ParseError, match="does not take an alias"):
            parse_block("- root\nroot")

    def test_set_alias_requires_alias(self):
        with pytest.raises(ParseError, match="requires the new alias"):
            parse_block("@\nroot")

    def test_alias_with_space_rejected(self):
        with pytest.raises(ParseError):
            parse_block("+ two words\nSocrates")

    def test_invalid_tag(self):
        with pytest.raises(ParseError) as exc_info:
            parse_block("#\nroot\nnot-a-tag")
        assert exc_info.value.line == "not-a-tag"

    def test_reference_with_space(self):
        with pytest.raises(ParseError):
            parse_block("-\ntwo words")

    def test_relation_kind_with_punctuation(self):
        with pytest.raises(ParseError) as exc_info:
            parse_block("+\na\nso, therefore\nb")
        assert exc_info.value.line == "so, therefore"

    def test_stray_bracket_in_text(self):
        with pytest.raises(ParseError):
            parse_block("+\nSocrates ] is a man")

    def test_error_names_block_in_batch(self):
        text = "+\nSocrates\n\n-\nroot\n\n!\nbad"
        with pytest.raises(ParseError) as exc_info:
            parse_commands(text)
        assert exc_info.value.block_index == 3
        assert "Block 3" in str(exc_info.value)

    def test_iter_commands_is_lazy(self):
        commands = iter_commands("-\na\n\n!\nbad")
        assert next(commands) == RemoveThesis(reference="a")
        with pytest.raises(ParseError):
            next(commands)
