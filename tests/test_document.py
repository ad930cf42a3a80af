"""Test Document line lookup."""

import pytest
from typepub.document import Character, Document
from typepub.errors import IndexOutOfRange
from typepub.normalizer import normalize


def make_document(chunks, width=60, title=""):
    return Document.from_normalized(normalize(chunks), width, title)


def test_build_from_stream():
    doc = Document.build("cat", frozenset(), 60, title="Pets")
    assert len(doc) == 3
    assert doc.line_count == 1
    assert doc.title == "Pets"
    assert doc.line_text(0) == "cat"


def test_line_text_hides_trailing_space_and_break():
    doc = make_document(["hello world", "again"], width=5)
    assert [doc.line_text(i) for i in range(doc.line_count)] == ["hello", "world", "again"]


def test_line_at_out_of_range():
    doc = make_document(["cat"])
    with pytest.raises(IndexOutOfRange):
        doc.line_at(1)
    with pytest.raises(IndexError):
        doc.line_at(-1)


def test_position_to_line_matches_linear_scan():
    doc = make_document([
        "The quick brown fox jumps over the lazy dog.",
        "Pack my box with five dozen liquor jugs.",
        "Sphinx of black quartz, judge my vow.",
    ], width=11)

    for pos in range(len(doc)):
        expected = next(i for i, line in enumerate(doc.lines) if pos in line)
        assert doc.position_to_line(pos) == expected


def test_end_position_maps_to_last_line():
    doc = make_document(["one two three"], width=4)
    assert doc.position_to_line(len(doc)) == doc.line_count - 1


def test_position_out_of_range():
    doc = make_document(["cat"])
    with pytest.raises(IndexOutOfRange):
        doc.position_to_line(4)
    with pytest.raises(IndexOutOfRange):
        doc.position_to_line(-1)


def test_column_of():
    doc = make_document(["hello world"], width=5)
    assert doc.column_of(0) == 0
    assert doc.column_of(7) == 1
    assert doc.column_of(len(doc)) == 5


def test_character_and_breaks():
    doc = make_document(["ab", "cd"])
    assert doc.character(1) == Character("b", 1)
    assert doc.is_break(2)
    assert not doc.is_break(1)
    with pytest.raises(IndexOutOfRange):
        doc.character(5)


def test_characters_include_hidden_positions():
    doc = make_document(["ab", "cd"])
    assert [c.value for c in doc.characters(0)] == ["a", "b", "\n"]
    assert [c.position for c in doc.characters(1)] == [3, 4]


def test_empty_document():
    doc = make_document([])
    assert len(doc) == 0
    assert doc.line_count == 1
    assert doc.line_text(0) == ""
    assert doc.position_to_line(0) == 0
