"""Tests for prompt templates and formatting."""
from __future__ import annotations

import json

import pytest

from readcraft.models import GenerationRequest, Standard
from readcraft.prompts import (
    MODIFICATION_INSTRUCTIONS,
    NOTES_JSON_EXAMPLE,
    PASSAGE_JSON_EXAMPLE,
    RESPONSE_FORMAT_EXAMPLES,
    RIGOR_DESCRIPTIONS,
    TWO_PART_MULTI_SELECT_EXAMPLE,
    build_modification_context,
    build_passage_prompt,
    build_questions_prompt,
    build_teacher_notes_prompt,
    default_title,
    format_standards,
    reading_level_phrase,
    resolve_instruction,
)

STANDARDS = [
    Standard("3-rl-1", "RL.3.1", "Ask and answer questions.", "3-rl", "3"),
    Standard("3-rl-2", "RL.3.2", "Recount stories.", "3-rl", "3"),
]


def _request(**overrides) -> GenerationRequest:
    fields = dict(
        standard_ids=["3-rl-1"],
        grade_id="3",
        reading_level="at",
        word_count="300",
        text_type="narrative",
    )
    fields.update(overrides)
    return GenerationRequest(**fields)


class TestHelpers:
    def test_format_standards(self):
        assert format_standards(STANDARDS) == "RL.3.1: Ask and answer questions.\nRL.3.2: Recount stories."

    def test_format_standards_empty(self):
        assert format_standards([]) == ""

    def test_reading_level_phrase(self):
        assert reading_level_phrase("below") == "slightly below"
        assert reading_level_phrase("at") == "at"
        assert reading_level_phrase("above") == "slightly above"

    def test_default_title(self):
        assert default_title("narrative") == "A Short Story"
        assert default_title("informational") == "Informational Text"
        assert default_title("narrative", "Volcanoes") == "Volcanoes"
        assert default_title("narrative", "maintain") == "A Short Story"


class TestPassagePrompt:
    def test_new_passage(self):
        prompt = build_passage_prompt(_request(), STANDARDS)
        assert "grade 3 students" in prompt
        assert "A narrative text (story)" in prompt
        assert "Approximately 300 words" in prompt
        assert "RL.3.1: Ask and answer questions." in prompt
        assert "About the topic" not in prompt
        assert '"[Number]\\t[Paragraph text]"' in prompt

    def test_informational_with_topic(self):
        prompt = build_passage_prompt(
            _request(text_type="informational", topic="Volcanoes", reading_level="above"),
            STANDARDS,
        )
        assert "An informational text (non-fiction)" in prompt
        assert 'About the topic: "Volcanoes"' in prompt
        assert "slightly above grade 3" in prompt
        assert "relates to the given topic" in prompt

    def test_modification_uses_context_verbatim(self):
        context = build_modification_context("Kites", "1\tMaya ran.", "shrink")
        prompt = build_passage_prompt(
            _request(word_count="maintain", topic="maintain", custom_context=context),
            STANDARDS,
        )
        assert context in prompt
        assert "Approximately" not in prompt
        assert "RL.3.2: Recount stories." in prompt
        assert '"title"' in prompt


class TestModification:
    def test_presets(self):
        assert set(MODIFICATION_INSTRUCTIONS) == {"revise", "stretch", "shrink", "level-up", "level-down"}

    def test_resolve_preset(self):
        assert resolve_instruction("Stretch") == MODIFICATION_INSTRUCTIONS["stretch"]

    def test_custom_passthrough(self):
        assert resolve_instruction("  Add a dragon.  ") == "Add a dragon."

    def test_context_shape(self):
        ctx = build_modification_context("Kites", "1\tMaya ran.", "Add a dragon.")
        assert ctx == (
            'Existing title: "Kites". Existing passage: "1\tMaya ran.". '
            "Modification instruction: Add a dragon."
        )


class TestTeacherNotesPrompt:
    def test_components(self):
        prompt = build_teacher_notes_prompt(STANDARDS, "1\tMaya ran.")
        assert "1\tMaya ran." in prompt
        for phrase in ("Key concepts", "aligns with each standard", "discussion questions",
                       "challenges", "extension activities"):
            assert phrase in prompt
        assert '"notes"' in prompt


class TestQuestionsPrompt:
    @pytest.mark.parametrize("qtype", list(RESPONSE_FORMAT_EXAMPLES))
    def test_each_type(self, qtype):
        prompt = build_questions_prompt("1\tMaya ran.", qtype, STANDARDS, 3, "3")
        assert "Generate 3 " in prompt
        assert RESPONSE_FORMAT_EXAMPLES[qtype] in prompt
        assert RIGOR_DESCRIPTIONS[2] in prompt

    @pytest.mark.parametrize("rigor", [1, 2, 3, 4])
    def test_rigor_clause(self, rigor):
        prompt = build_questions_prompt("p", "multiple-choice", STANDARDS, 1, "3", rigor)
        assert f"QUESTION RIGOR LEVEL: {rigor} out of 4" in prompt
        assert RIGOR_DESCRIPTIONS[rigor] in prompt

    def test_two_part_high_rigor_shows_multi_select(self):
        prompt = build_questions_prompt("p", "two-part", STANDARDS, 1, "3", 4)
        assert TWO_PART_MULTI_SELECT_EXAMPLE in prompt

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            build_questions_prompt("p", "essay", STANDARDS, 1, "3")

    @pytest.mark.parametrize("rigor", [0, 5])
    def test_rigor_out_of_range(self, rigor):
        with pytest.raises(ValueError):
            build_questions_prompt("p", "multiple-choice", STANDARDS, 1, "3", rigor)


class TestJsonExamples:
    def test_passage_example_parses(self):
        data = json.loads(PASSAGE_JSON_EXAMPLE)
        assert data["content"].startswith("1\t")

    def test_notes_example_parses(self):
        assert "notes" in json.loads(NOTES_JSON_EXAMPLE)

    @pytest.mark.parametrize(
        "example", list(RESPONSE_FORMAT_EXAMPLES.values()) + [TWO_PART_MULTI_SELECT_EXAMPLE],
    )
    def test_question_examples_parse(self, example):
        data = json.loads(example)
        assert isinstance(data["questions"], list) and data["questions"]
