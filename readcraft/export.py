"""Plain-text worksheet rendering and Google Docs export preparation."""
from __future__ import annotations

import logging
import re
from urllib.parse import quote

from readcraft.models import GeneratedText

_log = logging.getLogger("readcraft.export")

GOOGLE_DOCS_CREATE_URL = "https://docs.google.com/document/create?title={title}"


def section_marker(name: str) -> str:
    return f"---------- {name} ----------"


def format_for_google_docs(title: str, content: str) -> dict:
    """Prepare a blank-document URL plus clipboard-ready content.

    Paragraph numbers ``N<TAB>`` become ``N. `` and section markers become
    bold headings. The content is always returned for pasting; documents are
    never created through a URL body.
    """
    formatted = re.sub(r"^(\d+)\t", r"\1. ", content, flags=re.MULTILINE)
    formatted = re.sub(r"---------- (.*?) ----------", r"** \1 **\n", formatted)
    _log.info("Google Docs export: %r (%d chars)", title, len(content))
    return {
        "url": GOOGLE_DOCS_CREATE_URL.format(title=quote(title, safe="")),
        "success": True,
        "isLargeDocument": True,
        "content": formatted,
    }


def _option_lines(options: list[dict]) -> list[str]:
    return [f"{o['id'].upper()}. {o['text']}" for o in options]


def _strip_prefix(text: str, pattern: str) -> str:
    return re.sub(pattern, "", text, flags=re.IGNORECASE).strip()


def _format_question(n: int, q: dict) -> str:
    stem = _strip_prefix(q["question"], r"^This question has two parts\.")
    lines = [f"{n}. {stem}"]
    qtype = q["type"]
    if qtype in ("multiple-choice", "multiple-select"):
        lines += _option_lines(q["options"])
        if qtype == "multiple-select":
            lines.append(f"(Select {q.get('correctCount') or 2} correct answers)")
    elif qtype == "two-part":
        for label, key in (("Part A", "partA"), ("Part B", "partB")):
            part = q[key]
            lines += ["", label, _strip_prefix(part["question"], rf"^{label}:?")]
            lines += _option_lines(part["options"])
        if q["partB"].get("isMultiSelect"):
            lines.append(f"(Select {q['partB'].get('correctCount') or 2} correct answers)")
    return "\n".join(lines)


def _correct(options: list[dict]) -> list[dict]:
    return [o for o in options if o["isCorrect"]]


def _answer_line(label: str, options: list[dict]) -> str:
    correct = _correct(options)
    ids = ", ".join(o["id"].upper() for o in correct)
    if len(correct) == 1:
        return f"{label}: {ids} - {correct[0]['text']}"
    lines = [f"{label}: {ids} ({len(correct)} correct answers)"]
    lines += [f"{o['id'].upper()}: {o['text']}" for o in correct]
    return "\n".join(lines)


def _format_answer(n: int, q: dict) -> str:
    qtype = q["type"]
    if qtype == "open-response":
        return (
            f"{n}. Sample Response:\n{q['sampleResponse']}\n\n"
            f"Scoring Guidelines:\n{q['scoringGuidelines']}"
        )
    if qtype == "two-part":
        body = (
            _answer_line("Answer Part A", q["partA"]["options"]) + "\n"
            + _answer_line("Answer Part B", q["partB"]["options"])
        )
    else:
        body = _answer_line("Answer", q["options"])
    return f"{n}. {body}\nExplanation: {q.get('explanation', '')}"


def render_worksheet(text: GeneratedText, question_sets: list[dict]) -> str:
    """Render a passage with its stored question sets and teacher notes.

    *question_sets* are stored sets as returned by the database (questions as
    plain dicts). Questions are numbered across all sets, oldest set first.
    """
    questions = [q for qs in reversed(question_sets) for q in qs["questions"]]
    parts = [text.title, text.content]
    if questions:
        parts.append(section_marker("QUESTIONS"))
        parts.append("\n\n".join(_format_question(i, q) for i, q in enumerate(questions, 1)))
        parts.append(section_marker("ANSWER KEY"))
        parts.append("\n\n".join(_format_answer(i, q) for i, q in enumerate(questions, 1)))
    if text.teacher_notes:
        parts.append(section_marker("TEACHER NOTES"))
        parts.append(text.teacher_notes)
    _log.info("Worksheet for text %s: %d question(s)", text.id, len(questions))
    return "\n\n".join(parts) + "\n"
