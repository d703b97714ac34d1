"""Shared test fixtures."""
from __future__ import annotations

import json

import pytest

from readcraft.db import Database
from readcraft.models import Standard, StandardCategory


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def sample_categories():
    """Grade 3 literature and informational categories."""
    rl = StandardCategory(
        id="3-rl",
        title="Reading: Literature",
        description="Narrative text standards",
        grade_id="3",
        standards=[
            Standard("3-rl-1", "RL.3.1", "Ask and answer questions to demonstrate understanding of a text.", "3-rl", "3"),
            Standard("3-rl-2", "RL.3.2", "Recount stories and determine the central message.", "3-rl", "3"),
            Standard("3-rl-3", "RL.3.3", "Describe characters in a story.", "3-rl", "3"),
        ],
        source_file="standards.md",
    )
    ri = StandardCategory(
        id="3-ri",
        title="Reading: Informational Text",
        description="Non-fiction text standards",
        grade_id="3",
        standards=[
            Standard("3-ri-1", "RI.3.1", "Ask and answer questions about key details.", "3-ri", "3"),
            Standard("3-ri-2", "RI.3.2", "Determine the main idea of a text.", "3-ri", "3"),
        ],
        source_file="standards.md",
    )
    return [rl, ri]


@pytest.fixture
def populated_db(tmp_db, sample_categories):
    """A database pre-loaded with sample standards."""
    tmp_db.import_standards(sample_categories)
    return tmp_db


@pytest.fixture
def passage_json():
    return json.dumps({
        "title": "The Lost Kite",
        "content": (
            "1\tMaya held the string tight as the wind pulled her kite higher.\n\n"
            "2\tThen the string snapped, and the kite drifted over the trees.\n\n"
            "3\tShe followed it all the way to the old library."
        ),
    })


@pytest.fixture
def notes_json():
    return json.dumps({
        "notes": "Key concepts: perseverance.\n\nDiscussion questions: Why did Maya keep looking?",
    })


def _options(n, correct):
    return [
        {"id": "ABCDEF"[i], "text": f"Option {i + 1}", "isCorrect": i in correct}
        for i in range(n)
    ]


@pytest.fixture
def multiple_choice_json():
    return json.dumps({"questions": [
        {
            "id": "mc1",
            "type": "multiple-choice",
            "question": "Why did Maya follow the kite?",
            "options": _options(4, {1}),
            "standardId": "RL.3.1",
            "explanation": "She wanted it back.",
        },
        {
            "id": "mc2",
            "type": "multiple-choice",
            "question": "Where did the kite land?",
            "options": _options(4, {3}),
            "standardId": "RL.3.1",
            "explanation": "Paragraph 3 names the library.",
        },
    ]})


@pytest.fixture
def multiple_select_json():
    return json.dumps({"questions": [
        {
            "id": f"ms{n}",
            "type": "multiple-select",
            "question": "Select TWO details that show Maya is determined.",
            "options": _options(6, {0, 4}),
            "standardId": "RL.3.3",
            "explanation": "Both show she does not give up.",
            "correctCount": 2,
        }
        for n in (1, 2)
    ]})


@pytest.fixture
def two_part_json():
    return json.dumps({"questions": [
        {
            "id": "tp1",
            "type": "two-part",
            "question": "This question has two parts. Answer Part A and then Part B.",
            "standardId": "RL.3.2",
            "explanation": "The ending shows the message.",
            "partA": {"question": "Part A: What is the central message?", "options": _options(4, {0})},
            "partB": {
                "question": "Part B: Which detail supports your answer?",
                "options": _options(4, {2}),
                "isMultiSelect": False,
            },
        },
    ]})


@pytest.fixture
def open_response_json():
    return json.dumps({"questions": [
        {
            "id": "or1",
            "type": "open-response",
            "question": "Explain how Maya changes.",
            "standardId": "RL.3.3",
            "sampleResponse": "At first she is upset, later she is curious.",
            "scoringGuidelines": "2 points: change with evidence.",
        },
    ]})


@pytest.fixture
def standards_md_content():
    """Minimal standards markdown for parser testing."""
    return """\
# K-8 Reading Standards

---

## 3-rl | Reading: Literature

Grade: 3

Narrative text standards

| ID | Code | Description |
|----|------|-------------|
| 3-rl-1 | RL.3.1 | Ask and answer questions to demonstrate understanding of a text. |
| 3-rl-2 | RL.3.2 | Recount stories, including fables, folktales, and myths. |

---

## 3-ri | Reading: Informational Text

Grade: 3

Non-fiction text standards

| ID | Code | Description |
|----|------|-------------|
| 3-ri-1 | RI.3.1 | Ask and answer questions about key details. |

---

## k-empty | Empty Category

Grade: K

No table here.
"""
