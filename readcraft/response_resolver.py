"""Recover structured values from raw model output.

Every ``resolve_*`` function walks the same chain and stops at the first
step that yields a usable value:

1. parse the whole response as JSON;
2. extract an embedded object that carries the expected field names
   (code fence, balanced ``{…}`` blocks, then the widest ``{…}`` span);
3. use the raw text itself when it already looks like the expected content;
4. return a fixed placeholder.

None of them raise. The returned :class:`Resolution` records which step
produced the value so callers can tell a clean parse from a degraded one.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from readcraft.prompts import default_title

_log = logging.getLogger("readcraft.resolve")

DIRECT = "direct"
EXTRACTED = "extracted"
RAW_TEXT = "raw_text"
DEFAULT = "default"

PASSAGE_MARKERS = ("title", "content")
NOTES_MARKERS = ("notes",)
QUESTIONS_MARKERS = ("questions",)

MISSING_CONTENT = "1\tError generating text. Please try again with different parameters."
MISSING_NOTES = "Error generating teacher notes. Please try again."

PLACEHOLDER_CONTENT = (
    "1\tAn error occurred while generating the text. Please try again.\n\n"
    "2\tIf this error persists, try selecting different standards or modifying "
    "your generation options."
)
UNPARSED_CONTENT = "1\tAn error occurred while processing the generated text. Please try again."
PLACEHOLDER_NOTES = "Unable to generate teacher notes. Please try again."
UNPARSED_NOTES = "Unable to generate teacher notes at this time. Please try again."

NOTES_HEADINGS = (
    "key concepts",
    "discussion questions",
    "anticipated challenges",
    "potential challenges",
    "extension activities",
)

_NUMBERED = re.compile(r"^\d+\t\S")
_LOOSE_NUMBERED = re.compile(r"^(\d{1,3})(?:[.)]\s+|\s{2,})(\S.*)$", re.DOTALL)


@dataclass
class Resolution:
    value: Any
    strategy: str  # direct | extracted | raw_text | default

    @property
    def fallback(self) -> bool:
        return self.strategy != DIRECT


# ── JSON extraction ──────────────────────────────────────────────────────


def _strip_think(text: str) -> str:
    return re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()


def _remove_trailing_commas(text: str) -> str:
    return re.sub(r",\s*([}\]])", r"\1", text)


def _loads(text: str) -> Any | None:
    """``json.loads`` that retries once without trailing commas."""
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass
    repaired = _remove_trailing_commas(text)
    if repaired == text:
        return None
    try:
        return json.loads(repaired)
    except (ValueError, RecursionError):
        return None


def find_json_objects(text: str) -> list[str]:
    """Find balanced top-level ``{…}`` substrings in *text*."""
    results: list[str] = []
    i = 0
    while i < len(text):
        if text[i] == "{":
            depth = 0
            in_str = False
            escape = False
            start = i
            for j in range(i, len(text)):
                ch = text[j]
                if escape:
                    escape = False
                    continue
                if ch == "\\":
                    escape = True
                    continue
                if ch == '"':
                    in_str = not in_str
                    continue
                if in_str:
                    continue
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                    if depth == 0:
                        results.append(text[start : j + 1])
                        i = j + 1
                        break
            else:
                # No closing brace, move past this one
                i += 1
        else:
            i += 1
    return results


def _candidates(text: str) -> list[str]:
    found: list[str] = []
    for m in re.finditer(r"```(?:json)?\s*\n?({.*?})\s*\n?```", text, re.DOTALL):
        found.append(m.group(1))
    # Models often draft partial JSON before the final answer
    found.extend(reversed(find_json_objects(text)))
    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        found.append(text[first : last + 1])
    return found


def extract_json(text: str, markers: tuple[str, ...] = ()) -> dict | None:
    """Return the first embedded JSON object in *text* that names every marker field.

    Markers are checked as quoted keys (``"title"``) before parsing, so a
    stray object without them is never picked.
    """
    text = _strip_think(text)
    seen: set[str] = set()
    for candidate in _candidates(text):
        if candidate in seen:
            continue
        seen.add(candidate)
        if not all(f'"{m}"' in candidate for m in markers):
            continue
        data = _loads(candidate)
        if isinstance(data, dict) and all(m in data for m in markers):
            return data
    return None


def _direct(raw: str) -> Any | None:
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        _log.info("Direct JSON parse failed (%s), trying extraction", e)
        return None


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list) and value:
        return "\n\n".join(str(v).strip() for v in value if str(v).strip()) or None
    return None


# ── Passage ──────────────────────────────────────────────────────────────


def normalize_passage(content: str) -> str:
    """Bring a passage into the ``N<TAB>text`` paragraph layout.

    Loose numbering ("1. text", "1) text") is rewritten with a tab. When no
    paragraph is numbered at all, every paragraph is numbered in order.
    """
    content = content.replace("\r\n", "\n").strip()
    content = re.sub(r"\n+(?=\d+\t)", "\n\n", content)
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", content) if p.strip()]
    if not paragraphs:
        return content

    fixed = []
    for p in paragraphs:
        if not _NUMBERED.match(p):
            m = _LOOSE_NUMBERED.match(p)
            if m:
                p = f"{m.group(1)}\t{m.group(2)}"
        fixed.append(p)

    if not any(_NUMBERED.match(p) for p in fixed):
        fixed = [f"{i}\t{p}" for i, p in enumerate(fixed, 1)]
    return "\n\n".join(fixed)


def _passage_from(data: dict, text_type: str, topic: str | None) -> tuple[str, str | None]:
    title = _as_text(data.get("title")) or default_title(text_type, topic)
    content = _as_text(data.get("content"))
    return title, content


def resolve_passage(raw: str | None, text_type: str, topic: str | None = None) -> Resolution:
    """Resolve a passage response into ``{"title": ..., "content": ...}``."""
    if raw is None or not raw.strip():
        _log.warning("Empty passage response, using placeholder")
        return Resolution(
            {"title": default_title(text_type, topic), "content": PLACEHOLDER_CONTENT},
            DEFAULT,
        )

    data = _direct(raw.strip())
    if isinstance(data, dict):
        title, content = _passage_from(data, text_type, topic)
        if content is None:
            _log.warning("Passage JSON has no content field")
            return Resolution({"title": title, "content": MISSING_CONTENT}, DEFAULT)
        return Resolution({"title": title, "content": normalize_passage(content)}, DIRECT)

    data = extract_json(raw, PASSAGE_MARKERS)
    if data is not None:
        title, content = _passage_from(data, text_type, topic)
        if content is not None:
            _log.info("Extracted passage JSON from surrounding text")
            return Resolution({"title": title, "content": normalize_passage(content)}, EXTRACTED)

    text = _strip_think(raw)
    if any(_NUMBERED.match(line) for line in text.splitlines()):
        _log.info("Using raw numbered text as passage content")
        return Resolution(
            {"title": default_title(text_type, topic), "content": normalize_passage(text)},
            RAW_TEXT,
        )

    _log.warning("Could not recover a passage from response: %.100s", raw)
    return Resolution(
        {"title": default_title(text_type, topic), "content": UNPARSED_CONTENT},
        DEFAULT,
    )


# ── Teacher notes ────────────────────────────────────────────────────────


def resolve_notes(raw: str | None) -> Resolution:
    if raw is None or not raw.strip():
        _log.warning("Empty teacher-notes response, using placeholder")
        return Resolution(PLACEHOLDER_NOTES, DEFAULT)

    data = _direct(raw.strip())
    if isinstance(data, dict):
        notes = _as_text(data.get("notes"))
        if notes is None:
            return Resolution(MISSING_NOTES, DEFAULT)
        return Resolution(notes, DIRECT)

    data = extract_json(raw, NOTES_MARKERS)
    if data is not None:
        notes = _as_text(data.get("notes"))
        if notes is not None:
            _log.info("Extracted teacher-notes JSON from surrounding text")
            return Resolution(notes, EXTRACTED)

    text = _strip_think(raw)
    lowered = text.lower()
    if any(h in lowered for h in NOTES_HEADINGS):
        _log.info("Using raw text as teacher notes")
        return Resolution(text, RAW_TEXT)

    _log.warning("Could not recover teacher notes from response: %.100s", raw)
    return Resolution(UNPARSED_NOTES, DEFAULT)


# ── Questions ────────────────────────────────────────────────────────────


def _question_items(data: Any) -> list[dict] | None:
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        return None
    return [q for q in data if isinstance(q, dict)]


def resolve_questions(raw: str | None) -> Resolution:
    """Resolve a question response into a list of raw question dicts.

    Malformed output is discarded as a whole; there is no attempt to salvage
    individual questions from broken JSON.
    """
    if raw is None or not raw.strip():
        _log.warning("Empty questions response")
        return Resolution([], DEFAULT)

    data = _direct(raw.strip())
    if data is not None:
        items = _question_items(data)
        if items is None:
            _log.warning("Questions JSON has no questions array")
            return Resolution([], DEFAULT)
        return Resolution(items, DIRECT)

    data = extract_json(raw, QUESTIONS_MARKERS)
    if data is not None:
        items = _question_items(data)
        if items is not None:
            _log.info("Extracted questions JSON from surrounding text")
            return Resolution(items, EXTRACTED)

    _log.warning("All parsing attempts failed, returning no questions")
    return Resolution([], DEFAULT)
