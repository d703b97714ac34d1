"""Orchestrate LLM to generate assessment questions for a reading passage."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from readcraft.config import Settings
from readcraft.models import (
    AnswerOption,
    GeneratedText,
    MultipleChoiceQuestion,
    MultipleSelectQuestion,
    OpenResponseQuestion,
    Question,
    QuestionPart,
    QuestionRequest,
    QuestionSet,
    TwoPartQuestion,
)
from readcraft.prompts import build_questions_prompt
from readcraft.response_resolver import resolve_questions
from readcraft.text_generator import call_model, resolve_standards

if TYPE_CHECKING:
    from readcraft.db import Database
    from readcraft.providers.base import LLMProvider

_log = logging.getLogger("readcraft.qgen")

OPTION_LETTERS = "ABCDEF"

# Expected option counts per question shape
SINGLE_OPTIONS = 4
MULTI_OPTIONS = 6


class NoValidStandardsError(ValueError):
    """None of the requested standard ids matched a known standard."""


def _coerce_bool(value):
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return value


def _coerce_int(value):
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def _validate_options(options, expected: int, where: str = "options") -> str | None:
    """Check an option list and auto-fix ids and string booleans in place."""
    if not isinstance(options, list):
        return f"{where} must be a list (got {type(options).__name__})"
    if len(options) != expected:
        return f"{where} must have {expected} entries (got {len(options)})"
    for i, opt in enumerate(options):
        if not isinstance(opt, dict):
            return f"{where}[{i}]: expected object, got {type(opt).__name__}"
        text = opt.get("text")
        if not isinstance(text, str) or not text.strip():
            return f"{where}[{i}]: missing text"
        if not isinstance(opt.get("id"), str) or not opt["id"].strip():
            opt["id"] = OPTION_LETTERS[i]
        opt["isCorrect"] = _coerce_bool(opt.get("isCorrect", False))
        if not isinstance(opt["isCorrect"], bool):
            return f"{where}[{i}]: isCorrect must be true or false (got {opt['isCorrect']!r})"
    ids = [o["id"] for o in options]
    if len(set(ids)) != len(ids):
        return f"{where}: duplicate option ids {ids}"
    return None


def _correct_count(options: list[dict]) -> int:
    return sum(1 for o in options if o["isCorrect"])


def _validate_multi_select(data: dict, where: str) -> str | None:
    """Shared check for a six-option multi-select list on *data*."""
    reason = _validate_options(data.get("options"), MULTI_OPTIONS, f"{where}options")
    if reason:
        return reason
    actual = _correct_count(data["options"])
    cc = _coerce_int(data.get("correctCount"))
    if cc is None:
        cc = actual
    if not isinstance(cc, int) or isinstance(cc, bool):
        return f"{where}correctCount not an int (got {cc!r})"
    if cc < 1:
        return f"{where}correctCount must be at least 1 (got {cc})"
    if cc != actual:
        return f"{where}correctCount is {cc} but {actual} options are marked correct"
    data["correctCount"] = cc
    return None


def _validate_part_a(part) -> str | None:
    if not isinstance(part, dict):
        return "partA missing"
    if not isinstance(part.get("question"), str) or not part["question"].strip():
        return "partA: missing question"
    reason = _validate_options(part.get("options"), SINGLE_OPTIONS, "partA.options")
    if reason:
        return reason
    if _correct_count(part["options"]) != 1:
        return f"partA must have exactly one correct option (got {_correct_count(part['options'])})"
    return None


def _validate_part_b(part) -> str | None:
    if not isinstance(part, dict):
        return "partB missing"
    if not isinstance(part.get("question"), str) or not part["question"].strip():
        return "partB: missing question"
    options = part.get("options")

    multi = _coerce_bool(part.get("isMultiSelect"))
    if not isinstance(multi, bool):
        # Infer from the shape the model produced
        multi = isinstance(options, list) and len(options) == MULTI_OPTIONS
    part["isMultiSelect"] = multi

    if multi:
        return _validate_multi_select(part, "partB.")

    reason = _validate_options(options, SINGLE_OPTIONS, "partB.options")
    if reason:
        return reason
    if _correct_count(options) != 1:
        return f"partB must have exactly one correct option (got {_correct_count(options)})"
    part.pop("correctCount", None)
    return None


def _validate_question(
    data: dict,
    expected_type: str,
    position: int = 1,
    default_standard: str = "",
) -> str | None:
    """Validate a generated question and auto-fix minor issues.

    Returns ``None`` on success (data is valid and possibly patched in-place),
    or a human-readable reason string on failure.
    """
    qtype = data.setdefault("type", expected_type)
    if qtype != expected_type:
        return f"expected type {expected_type!r}, got {qtype!r}"

    if not isinstance(data.get("question"), str) or not data["question"].strip():
        return "missing question text"

    if not isinstance(data.get("id"), str) or not data["id"].strip():
        data["id"] = str(data["id"]) if isinstance(data.get("id"), int) else f"q{position}"
    if not isinstance(data.get("standardId"), str) or not data["standardId"].strip():
        if not default_standard:
            return "missing standardId"
        data["standardId"] = default_standard

    if qtype == "open-response":
        for key in ("sampleResponse", "scoringGuidelines"):
            value = data.get(key)
            if isinstance(value, list):
                value = "\n".join(str(v) for v in value)
                data[key] = value
            if not isinstance(value, str) or not value.strip():
                return f"missing {key}"
        data.pop("options", None)
        return None

    if not isinstance(data.get("explanation"), str):
        data["explanation"] = ""

    if qtype == "multiple-choice":
        reason = _validate_options(data.get("options"), SINGLE_OPTIONS)
        if reason:
            return reason
        n = _correct_count(data["options"])
        if n != 1:
            return f"multiple-choice must have exactly one correct option (got {n})"
        return None

    if qtype == "multiple-select":
        return _validate_multi_select(data, "")

    if qtype == "two-part":
        return _validate_part_a(data.get("partA")) or _validate_part_b(data.get("partB"))

    return f"unknown question type {qtype!r}"


def _options(items: list[dict]) -> list[AnswerOption]:
    return [AnswerOption(id=o["id"], text=o["text"], is_correct=o["isCorrect"]) for o in items]


def _build(data: dict) -> Question:
    qtype = data["type"]
    if qtype == "multiple-choice":
        return MultipleChoiceQuestion(
            id=data["id"],
            question=data["question"],
            options=_options(data["options"]),
            standard_id=data["standardId"],
            explanation=data["explanation"],
        )
    if qtype == "multiple-select":
        return MultipleSelectQuestion(
            id=data["id"],
            question=data["question"],
            options=_options(data["options"]),
            standard_id=data["standardId"],
            explanation=data["explanation"],
            correct_count=data["correctCount"],
        )
    if qtype == "open-response":
        return OpenResponseQuestion(
            id=data["id"],
            question=data["question"],
            standard_id=data["standardId"],
            sample_response=data["sampleResponse"],
            scoring_guidelines=data["scoringGuidelines"],
        )
    part_a, part_b = data["partA"], data["partB"]
    return TwoPartQuestion(
        id=data["id"],
        question=data["question"],
        standard_id=data["standardId"],
        explanation=data["explanation"],
        part_a=QuestionPart(question=part_a["question"], options=_options(part_a["options"])),
        part_b=QuestionPart(
            question=part_b["question"],
            options=_options(part_b["options"]),
            is_multi_select=part_b["isMultiSelect"],
            correct_count=part_b.get("correctCount"),
        ),
    )


def parse_question(
    data: dict,
    expected_type: str | None = None,
    position: int = 1,
    default_standard: str = "",
) -> Question | str:
    """Turn one raw question dict into its dataclass, or return why it was rejected.

    Without *expected_type* the dict's own ``type`` field decides the variant.
    """
    if not isinstance(data, dict):
        return f"expected object, got {type(data).__name__}"
    expected = expected_type or data.get("type")
    if not isinstance(expected, str):
        return "missing type"
    reason = _validate_question(data, expected, position, default_standard)
    if reason:
        return reason
    return _build(data)


async def generate_questions(
    llm: LLMProvider,
    db: Database,
    request: QuestionRequest,
    settings: Settings | None = None,
) -> list[Question]:
    """Generate questions for *request*; invalid items are dropped, never raised."""
    settings = settings or Settings()
    standards = resolve_standards(db, request.standard_ids)
    if not standards:
        raise NoValidStandardsError("No valid standards provided")

    prompt = build_questions_prompt(
        request.passage,
        request.question_type,
        standards,
        request.count,
        request.grade_level,
        request.rigor_level,
    )
    _log.info(
        "Generate %d %s question(s), grade %s, rigor %d",
        request.count, request.question_type, request.grade_level, request.rigor_level,
    )
    raw = await call_model(
        llm, prompt, settings.temperature, settings.questions_max_tokens, "Questions",
    )
    resolution = resolve_questions(raw)

    questions: list[Question] = []
    for i, item in enumerate(resolution.value, 1):
        result = parse_question(item, request.question_type, i, standards[0].code)
        if isinstance(result, str):
            _log.info("  Question %d dropped: %s", i, result)
            continue
        if isinstance(result, TwoPartQuestion):
            wants_multi = request.rigor_level >= 3
            if result.part_b.is_multi_select != wants_multi:
                _log.info(
                    "  Question %d: partB %s at rigor %d",
                    i,
                    "multi-select" if result.part_b.is_multi_select else "single-select",
                    request.rigor_level,
                )
        questions.append(result)

    if len(questions) != request.count:
        _log.warning(
            "Requested %d question(s), got %d valid (%s)",
            request.count, len(questions), resolution.strategy,
        )
    else:
        _log.info("  %d question(s) OK (%s)", len(questions), resolution.strategy)
    return questions


async def generate_question_set(
    llm: LLMProvider,
    db: Database,
    text: GeneratedText,
    request: QuestionRequest,
    settings: Settings | None = None,
) -> QuestionSet:
    """Generate questions for a stored text and save them as a new set."""
    questions = await generate_questions(llm, db, request, settings)
    qset = db.save_question_set(text.id, request.question_type, request.rigor_level, questions)
    _log.info("Saved question set %d for text %d (%d questions)", qset.id, text.id, len(questions))
    return qset
