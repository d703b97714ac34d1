"""Tests for recovering structured values from raw model output."""
from __future__ import annotations

import json

import pytest

from readcraft.prompts import (
    NOTES_JSON_EXAMPLE,
    PASSAGE_JSON_EXAMPLE,
    RESPONSE_FORMAT_EXAMPLES,
)
from readcraft.response_resolver import (
    DEFAULT,
    DIRECT,
    EXTRACTED,
    MISSING_CONTENT,
    MISSING_NOTES,
    PLACEHOLDER_CONTENT,
    PLACEHOLDER_NOTES,
    RAW_TEXT,
    UNPARSED_CONTENT,
    UNPARSED_NOTES,
    extract_json,
    find_json_objects,
    normalize_passage,
    resolve_notes,
    resolve_passage,
    resolve_questions,
)


class TestExtractJson:
    def test_code_fence(self):
        text = 'Here you go:\n```json\n{"title": "A", "content": "1\\tB"}\n```'
        assert extract_json(text, ("title", "content")) == {"title": "A", "content": "1\tB"}

    def test_markers_required(self):
        text = 'Note {"foo": 1} and then {"notes": "Real notes"}'
        assert extract_json(text, ("notes",)) == {"notes": "Real notes"}

    def test_no_marker_match(self):
        assert extract_json('{"foo": 1}', ("notes",)) is None

    def test_prefers_last_block(self):
        text = 'Draft: {"notes": "draft"} Final: {"notes": "final"}'
        assert extract_json(text, ("notes",)) == {"notes": "final"}

    def test_strips_think_blocks(self):
        text = '<think>{"notes": "thinking"}</think>{"notes": "answer"}'
        assert extract_json(text, ("notes",)) == {"notes": "answer"}

    def test_trailing_comma_repaired(self):
        text = 'Sure! {"notes": "ok", }'
        assert extract_json(text, ("notes",)) == {"notes": "ok"}

    def test_nothing_parseable(self):
        assert extract_json("no json here", ("notes",)) is None

    def test_find_json_objects_braces_in_strings(self):
        objs = find_json_objects('x {"a": "}{"} y {"b": 2}')
        assert objs == ['{"a": "}{"}', '{"b": 2}']


class TestNormalizePassage:
    def test_already_numbered(self):
        text = "1\tFirst.\n\n2\tSecond."
        assert normalize_passage(text) == text

    def test_single_newlines_split(self):
        assert normalize_passage("1\tFirst.\n2\tSecond.") == "1\tFirst.\n\n2\tSecond."

    def test_loose_numbering(self):
        assert normalize_passage("1. First.\n\n2) Second.") == "1\tFirst.\n\n2\tSecond."

    def test_unnumbered_paragraphs_numbered(self):
        assert normalize_passage("First.\n\nSecond.") == "1\tFirst.\n\n2\tSecond."

    def test_years_not_mistaken_for_numbers(self):
        out = normalize_passage("1776 was a big year.\n\nThen more happened.")
        assert out == "1\t1776 was a big year.\n\n2\tThen more happened."

    def test_footnotes_kept(self):
        text = "1\tThe knight rode out.\n\n* knight: a soldier"
        assert normalize_passage(text) == text

    def test_crlf(self):
        assert normalize_passage("1\tA.\r\n\r\n2\tB.") == "1\tA.\n\n2\tB."


class TestResolvePassage:
    def test_direct(self):
        raw = json.dumps({"title": "Kites", "content": "1\tMaya ran.\n\n2\tThe kite flew."})
        r = resolve_passage(raw, "narrative")
        assert r.strategy == DIRECT
        assert not r.fallback
        assert r.value == {"title": "Kites", "content": "1\tMaya ran.\n\n2\tThe kite flew."}

    def test_missing_title_uses_topic(self):
        r = resolve_passage(json.dumps({"content": "1\tA."}), "narrative", "Volcanoes")
        assert r.value["title"] == "Volcanoes"

    def test_missing_title_uses_text_type(self):
        r = resolve_passage(json.dumps({"content": "1\tA."}), "informational")
        assert r.value["title"] == "Informational Text"

    def test_missing_content(self):
        r = resolve_passage(json.dumps({"title": "T"}), "narrative")
        assert r.value == {"title": "T", "content": MISSING_CONTENT}
        assert r.fallback

    def test_content_as_list(self):
        r = resolve_passage(json.dumps({"title": "T", "content": ["1\tA.", "2\tB."]}), "narrative")
        assert r.value["content"] == "1\tA.\n\n2\tB."

    def test_extracted_from_prose(self):
        raw = 'Here is the passage:\n{"title": "Kites", "content": "1\\tMaya ran."}\nEnjoy!'
        r = resolve_passage(raw, "narrative")
        assert r.strategy == EXTRACTED
        assert r.value["title"] == "Kites"

    def test_raw_numbered_text(self):
        r = resolve_passage("1\tMaya ran.\n\n2\tThe kite flew.", "narrative")
        assert r.strategy == RAW_TEXT
        assert r.value == {"title": "A Short Story", "content": "1\tMaya ran.\n\n2\tThe kite flew."}

    def test_unparseable(self):
        r = resolve_passage("I cannot help with that.", "narrative")
        assert r.strategy == DEFAULT
        assert r.value["content"] == UNPARSED_CONTENT

    @pytest.mark.parametrize("raw", [None, "", "   \n"])
    def test_empty(self, raw):
        r = resolve_passage(raw, "informational", "Bees")
        assert r.strategy == DEFAULT
        assert r.value == {"title": "Bees", "content": PLACEHOLDER_CONTENT}

    def test_json_array_is_not_a_passage(self):
        r = resolve_passage("[1, 2, 3]", "narrative")
        assert r.value["content"] == UNPARSED_CONTENT

    def test_prompt_example_round_trips(self):
        r = resolve_passage(PASSAGE_JSON_EXAMPLE, "narrative")
        assert r.strategy == DIRECT
        assert r.value["title"] == "The title of the passage"
        assert r.value["content"].startswith("1\t")

    def test_content_always_numbered(self):
        for raw in (None, "garbage", json.dumps({"title": "T"}), json.dumps({"content": "Plain."})):
            r = resolve_passage(raw, "narrative")
            assert r.value["content"].startswith("1\t")


class TestResolveNotes:
    def test_direct(self):
        r = resolve_notes(json.dumps({"notes": "Key concepts: kites."}))
        assert r.strategy == DIRECT
        assert r.value == "Key concepts: kites."

    def test_missing_field(self):
        r = resolve_notes(json.dumps({"summary": "x"}))
        assert r.value == MISSING_NOTES

    def test_extracted(self):
        r = resolve_notes('```json\n{"notes": "Use the map."}\n```')
        assert r.strategy == EXTRACTED
        assert r.value == "Use the map."

    def test_raw_text_with_heading(self):
        text = "Key Concepts\n- kites\n\nDiscussion Questions\n- why?"
        r = resolve_notes(text)
        assert r.strategy == RAW_TEXT
        assert r.value == text

    def test_unparseable(self):
        assert resolve_notes("Sorry.").value == UNPARSED_NOTES

    def test_empty(self):
        r = resolve_notes(None)
        assert r.value == PLACEHOLDER_NOTES
        assert r.strategy == DEFAULT

    def test_prompt_example_round_trips(self):
        assert resolve_notes(NOTES_JSON_EXAMPLE).value == "The full text of the teacher notes..."


class TestResolveQuestions:
    def test_direct_object(self, multiple_choice_json):
        r = resolve_questions(multiple_choice_json)
        assert r.strategy == DIRECT
        assert [q["id"] for q in r.value] == ["mc1", "mc2"]

    def test_bare_array(self):
        r = resolve_questions('[{"id": "q1"}, "junk"]')
        assert r.value == [{"id": "q1"}]

    def test_extracted(self, open_response_json):
        r = resolve_questions("Here are your questions:\n" + open_response_json)
        assert r.strategy == EXTRACTED
        assert r.value[0]["id"] == "or1"

    def test_no_questions_key(self):
        assert resolve_questions('{"items": []}').value == []

    @pytest.mark.parametrize("raw", [None, "", "not json", '{"questions": [{"id": '])
    def test_failures_give_empty_list(self, raw):
        r = resolve_questions(raw)
        assert r.value == []
        assert r.strategy == DEFAULT

    @pytest.mark.parametrize("qtype", list(RESPONSE_FORMAT_EXAMPLES))
    def test_prompt_examples_round_trip(self, qtype):
        r = resolve_questions(RESPONSE_FORMAT_EXAMPLES[qtype])
        assert r.strategy == DIRECT
        assert r.value[0]["type"] == qtype


DEEP = "[" * 100000 + "]" * 100000


class TestDeeplyNestedOutput:
    def test_passage(self):
        r = resolve_passage(DEEP, "narrative")
        assert r.strategy == DEFAULT
        assert r.value["content"] == UNPARSED_CONTENT

    def test_notes(self):
        r = resolve_notes(DEEP)
        assert r.value == UNPARSED_NOTES

    def test_questions(self):
        r = resolve_questions(DEEP)
        assert r.value == []
        assert r.strategy == DEFAULT

    def test_questions_nested_inside_object(self):
        r = resolve_questions('Here: {"questions": ' + DEEP + "}")
        assert r.value == []
        assert r.strategy == DEFAULT

    def test_extract_json(self):
        assert extract_json('{"title": "A", "content": ' + DEEP + "}", ("title", "content")) is None
