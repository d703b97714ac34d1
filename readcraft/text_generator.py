"""Orchestrate LLM calls that produce a reading passage and its teacher notes."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from readcraft.config import Settings
from readcraft.models import GeneratedText, GenerationRequest, ModificationRequest, Standard
from readcraft.prompts import (
    build_modification_context,
    build_passage_prompt,
    build_teacher_notes_prompt,
)
from readcraft.response_resolver import Resolution, resolve_notes, resolve_passage

if TYPE_CHECKING:
    from readcraft.db import Database
    from readcraft.providers.base import LLMProvider

_log = logging.getLogger("readcraft.textgen")


class InvalidStandardsError(ValueError):
    """None of the requested standard ids matched a known standard."""


def resolve_standards(
    db: Database,
    standard_ids: list[str],
    text_type: str | None = None,
) -> list[Standard]:
    """Look up each id (or code), skipping unknown and repeated ones.

    With *text_type*, standards meant for the other kind of text are kept
    and logged.
    """
    found: list[Standard] = []
    seen: set[str] = set()
    for sid in standard_ids:
        standard = db.get_standard_by_id(str(sid))
        if standard is None:
            _log.info("Unknown standard %r, skipping", sid)
            continue
        if standard.id in seen:
            continue
        seen.add(standard.id)
        if text_type and standard.text_type and standard.text_type != text_type:
            _log.info("Standard %s targets %s text, request is %s", standard.code, standard.text_type, text_type)
        found.append(standard)
    _log.info("Resolved %d of %d requested standards", len(found), len(standard_ids))
    return found


async def call_model(
    llm: LLMProvider,
    prompt: str,
    temperature: float,
    max_tokens: int,
    label: str,
) -> str | None:
    """One JSON-mode model call. Returns ``None`` instead of raising on failure."""
    t0 = time.monotonic()
    try:
        response = await llm.generate(
            prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )
    except Exception as e:
        _log.warning("%s: model call failed after %.1fs: %s", label, time.monotonic() - t0, e)
        return None
    _log.info("%s: response received (%.1fs)", label, time.monotonic() - t0)
    _log.debug("%s: raw response: %.300s", label, response)
    return response


async def generate_passage(
    llm: LLMProvider,
    request: GenerationRequest,
    standards: list[Standard],
    settings: Settings | None = None,
) -> Resolution:
    """Resolution whose value is ``{"title": ..., "content": ...}``."""
    settings = settings or Settings()
    prompt = build_passage_prompt(request, standards)
    raw = await call_model(
        llm, prompt, settings.temperature, settings.passage_max_tokens, "Passage",
    )
    result = resolve_passage(raw, request.text_type, request.topic)
    _log.info("Passage resolved via %s: %r", result.strategy, result.value["title"])
    return result


async def generate_teacher_notes(
    llm: LLMProvider,
    standards: list[Standard],
    passage: str,
    settings: Settings | None = None,
) -> Resolution:
    settings = settings or Settings()
    prompt = build_teacher_notes_prompt(standards, passage)
    raw = await call_model(
        llm, prompt, settings.temperature, settings.notes_max_tokens, "Teacher notes",
    )
    result = resolve_notes(raw)
    _log.info("Teacher notes resolved via %s (%d chars)", result.strategy, len(result.value))
    return result


async def _run_pipeline(
    llm: LLMProvider,
    db: Database,
    request: GenerationRequest,
    standards: list[Standard],
    settings: Settings,
    parent_id: int | None = None,
) -> GeneratedText:
    passage = await generate_passage(llm, request, standards, settings)
    notes = await generate_teacher_notes(llm, standards, passage.value["content"], settings)

    text = GeneratedText(
        id=None,
        title=passage.value["title"],
        content=passage.value["content"],
        teacher_notes=notes.value,
        grade_id=request.grade_id,
        standard_ids=list(request.standard_ids),
        reading_level=request.reading_level,
        text_type=request.text_type,
        parent_id=parent_id,
    )
    saved = db.save_generated_text(text)
    _log.info("Saved generated text %d (%s)", saved.id, saved.title)
    return saved


async def generate_text(
    llm: LLMProvider,
    db: Database,
    request: GenerationRequest,
    settings: Settings | None = None,
) -> GeneratedText:
    """Generate a passage and teacher notes for *request* and persist them.

    Raises :class:`InvalidStandardsError` before any model call when none of
    the requested standards exist. Model and parse failures never raise; they
    show up as placeholder content instead.
    """
    standards = resolve_standards(db, request.standard_ids, request.text_type)
    if not standards:
        raise InvalidStandardsError("No valid standards provided")
    _log.info(
        "Generate %s passage for grade %s (%s words, %s level)",
        request.text_type, request.grade_id, request.word_count, request.reading_level,
    )
    return await _run_pipeline(llm, db, request, standards, settings or Settings())


async def modify_text(
    llm: LLMProvider,
    db: Database,
    modification: ModificationRequest,
    settings: Settings | None = None,
) -> GeneratedText:
    """Rewrite an existing passage and store the result as a new version."""
    standards = resolve_standards(db, modification.standard_ids, modification.text_type)
    if not standards:
        raise InvalidStandardsError("No valid standards found. Please select at least one standard.")

    request = GenerationRequest(
        standard_ids=modification.standard_ids,
        grade_id=modification.grade_level,
        reading_level=modification.reading_level,
        word_count="maintain",
        text_type=modification.text_type,
        topic="maintain",
        custom_context=build_modification_context(
            modification.title, modification.passage, modification.instruction,
        ),
    )
    _log.info("Modify passage %r: %.80s", modification.title, modification.instruction)
    return await _run_pipeline(
        llm, db, request, standards, settings or Settings(), parent_id=modification.parent_id,
    )
