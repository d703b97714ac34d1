from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

READING_LEVELS = ("below", "at", "above")
TEXT_TYPES = ("narrative", "informational")
QUESTION_TYPES = ("multiple-choice", "multiple-select", "open-response", "two-part")

GRADE_LEVELS = [
    {"id": "k", "label": "Kindergarten"},
    {"id": "1", "label": "Grade 1"},
    {"id": "2", "label": "Grade 2"},
    {"id": "3", "label": "Grade 3"},
    {"id": "4", "label": "Grade 4"},
    {"id": "5", "label": "Grade 5"},
    {"id": "6", "label": "Grade 6"},
    {"id": "7", "label": "Grade 7"},
    {"id": "8", "label": "Grade 8"},
]


@dataclass
class Standard:
    id: str
    code: str
    description: str
    category_id: str
    grade_id: str

    @property
    def text_type(self) -> str | None:
        """RL standards apply to narrative text, RI to informational."""
        prefix = self.code.split(".", 1)[0].upper()
        if prefix == "RL":
            return "narrative"
        if prefix == "RI":
            return "informational"
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "categoryId": self.category_id,
            "gradeId": self.grade_id,
        }


@dataclass
class StandardCategory:
    id: str
    title: str
    description: str
    grade_id: str
    standards: list[Standard] = field(default_factory=list)
    source_file: str = ""


@dataclass
class GenerationRequest:
    standard_ids: list[str]
    grade_id: str
    reading_level: str
    word_count: str
    text_type: str
    topic: str | None = None
    custom_context: str | None = None

    @classmethod
    def from_dict(cls, body: dict) -> GenerationRequest:
        """Build from a camelCase JSON body. Raises ValueError naming the bad field."""
        standard_ids = _require_id_list(body, "standardIds")
        grade_id = _require_str(body, "gradeId")
        reading_level = _require_choice(body, "readingLevel", READING_LEVELS)
        text_type = _require_choice(body, "textType", TEXT_TYPES)
        word_count = _require_str(body, "wordCount")
        if not word_count.isdigit():
            raise ValueError(f"wordCount must be a number (got {word_count!r})")
        return cls(
            standard_ids=standard_ids,
            grade_id=grade_id,
            reading_level=reading_level,
            word_count=word_count,
            text_type=text_type,
            topic=_optional_str(body, "topic"),
            custom_context=_optional_str(body, "customContext"),
        )


@dataclass
class ModificationRequest:
    passage: str
    title: str
    standard_ids: list[str]
    text_type: str
    reading_level: str
    grade_level: str
    instruction: str
    parent_id: int | None = None

    @classmethod
    def from_dict(cls, body: dict) -> ModificationRequest:
        parent_id = body.get("generatedTextId")
        if parent_id is not None and not isinstance(parent_id, int):
            raise ValueError("generatedTextId must be an integer")
        return cls(
            passage=_require_str(body, "passage", "Passage is required"),
            title=_require_str(body, "title", "Title is required"),
            standard_ids=_require_id_list(body, "standardIds", allow_empty=True),
            text_type=_require_choice(body, "textType", TEXT_TYPES),
            reading_level=_require_choice(body, "readingLevel", READING_LEVELS),
            grade_level=_require_str(body, "gradeLevel"),
            instruction=_require_str(body, "instruction", "Modification instruction is required"),
            parent_id=parent_id,
        )


@dataclass
class GeneratedText:
    id: int | None
    title: str
    content: str  # "N\ttext" paragraphs separated by blank lines
    teacher_notes: str
    grade_id: str
    standard_ids: list[str]
    reading_level: str
    text_type: str
    created_at: str = ""
    parent_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "teacherNotes": self.teacher_notes,
            "gradeId": self.grade_id,
            "standardIds": self.standard_ids,
            "readingLevel": self.reading_level,
            "textType": self.text_type,
            "createdAt": self.created_at,
            "parentId": self.parent_id,
        }


# ── Questions ────────────────────────────────────────────────────────────


@dataclass
class AnswerOption:
    id: str
    text: str
    is_correct: bool

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "isCorrect": self.is_correct}


@dataclass
class MultipleChoiceQuestion:
    type: ClassVar[str] = "multiple-choice"

    id: str
    question: str
    options: list[AnswerOption]
    standard_id: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "question": self.question,
            "options": [o.to_dict() for o in self.options],
            "standardId": self.standard_id,
            "explanation": self.explanation,
        }


@dataclass
class MultipleSelectQuestion:
    type: ClassVar[str] = "multiple-select"

    id: str
    question: str
    options: list[AnswerOption]
    standard_id: str
    explanation: str
    correct_count: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "question": self.question,
            "options": [o.to_dict() for o in self.options],
            "standardId": self.standard_id,
            "explanation": self.explanation,
            "correctCount": self.correct_count,
        }


@dataclass
class OpenResponseQuestion:
    type: ClassVar[str] = "open-response"

    id: str
    question: str
    standard_id: str
    sample_response: str
    scoring_guidelines: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "question": self.question,
            "standardId": self.standard_id,
            "sampleResponse": self.sample_response,
            "scoringGuidelines": self.scoring_guidelines,
        }


@dataclass
class QuestionPart:
    question: str
    options: list[AnswerOption]
    is_multi_select: bool = False
    correct_count: int | None = None

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "options": [o.to_dict() for o in self.options],
        }


@dataclass
class TwoPartQuestion:
    type: ClassVar[str] = "two-part"

    id: str
    question: str  # overall context/prompt
    standard_id: str
    explanation: str
    part_a: QuestionPart
    part_b: QuestionPart

    def to_dict(self) -> dict:
        part_b = self.part_b.to_dict()
        part_b["isMultiSelect"] = self.part_b.is_multi_select
        if self.part_b.correct_count is not None:
            part_b["correctCount"] = self.part_b.correct_count
        return {
            "id": self.id,
            "type": self.type,
            "question": self.question,
            "standardId": self.standard_id,
            "explanation": self.explanation,
            "partA": self.part_a.to_dict(),
            "partB": part_b,
        }


Question = Union[MultipleChoiceQuestion, MultipleSelectQuestion, OpenResponseQuestion, TwoPartQuestion]


@dataclass
class QuestionRequest:
    passage: str
    question_type: str
    standard_ids: list[str]
    count: int
    grade_level: str
    rigor_level: int = 2

    @classmethod
    def from_dict(cls, body: dict) -> QuestionRequest:
        return cls(
            passage=_require_str(body, "passage"),
            question_type=_require_choice(body, "questionType", QUESTION_TYPES),
            standard_ids=_require_id_list(body, "standardIds", allow_empty=True),
            count=_require_int(body, "count", 1, 10),
            grade_level=_require_str(body, "gradeLevel"),
            rigor_level=_require_int(body, "rigorLevel", 1, 4, default=2),
        )


@dataclass
class QuestionSet:
    id: int | None
    generated_text_id: int
    question_type: str
    rigor_level: int
    questions: list[Question]
    created_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "generatedTextId": self.generated_text_id,
            "questionType": self.question_type,
            "rigorLevel": self.rigor_level,
            "questions": [q.to_dict() for q in self.questions],
            "createdAt": self.created_at,
        }


# ── Request field helpers ────────────────────────────────────────────────


def _require_str(body: dict, key: str, message: str | None = None) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(message or f"{key} is required")
    return value


def _optional_str(body: dict, key: str) -> str | None:
    value = body.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _require_choice(body: dict, key: str, choices: tuple[str, ...]) -> str:
    value = body.get(key)
    if value not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)} (got {value!r})")
    return value


def _require_id_list(body: dict, key: str, allow_empty: bool = False) -> list[str]:
    value = body.get(key)
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    ids = [str(v) for v in value]
    if not ids and not allow_empty:
        raise ValueError("At least one standard must be selected")
    return ids


def _require_int(body: dict, key: str, lo: int, hi: int, default: int | None = None) -> int:
    value = body.get(key)
    if value is None and default is not None:
        return default
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} must be an integer between {lo} and {hi}")
    if value < lo or value > hi:
        raise ValueError(f"{key} must be between {lo} and {hi} (got {value})")
    return value
