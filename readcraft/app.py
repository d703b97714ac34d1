"""FastAPI application with all routes."""
from __future__ import annotations

import logging
import os
import sqlite3

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from readcraft.config import Settings, load_settings, save_settings
from readcraft.db import Database
from readcraft.export import format_for_google_docs, render_worksheet
from readcraft.models import (
    GRADE_LEVELS,
    GenerationRequest,
    ModificationRequest,
    QuestionRequest,
)
from readcraft.parsers.standards_parser import parse_standards_file
from readcraft.question_generator import generate_question_set, generate_questions
from readcraft.text_generator import generate_text, modify_text

app = FastAPI(title="Readcraft")

_log = logging.getLogger("readcraft.app")

# Global state (initialized on startup)
_db: Database | None = None
_settings: Settings | None = None


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_llm():
    s = get_settings()
    if s.llm_provider == "ollama":
        from readcraft.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.llm_model)
    elif s.llm_provider == "anthropic":
        from readcraft.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider()
    elif s.llm_provider == "openai":
        from readcraft.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=s.llm_model)
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")


def _import_standards(db: Database, settings: Settings, only_changed: bool = False) -> int:
    """(Re-)import standards files; returns the number of categories imported."""
    log = logging.getLogger("auto-import")
    total = 0
    for sf in settings.resolved_standards_files():
        if not sf.exists():
            continue
        current_mtime = sf.stat().st_mtime_ns
        if only_changed and db.get_file_mtime(str(sf)) == current_mtime:
            continue
        log.info("Importing %s", sf.name)
        db.delete_standards_by_source(sf.name)
        n = db.import_standards(parse_standards_file(sf))
        log.info("  %d categories imported", n)
        total += n
        db.set_file_mtime(str(sf), current_mtime)
    return total


@app.on_event("startup")
async def startup():
    global _db, _settings
    if _db is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _db = Database(_settings.db_full_path)
    if not os.environ.get("READCRAFT_NO_AUTO_IMPORT"):
        _import_standards(_db, _settings, only_changed=True)


@app.on_event("shutdown")
async def shutdown():
    if _db:
        _db.close()


@app.exception_handler(sqlite3.Error)
async def storage_error_handler(request: Request, exc: sqlite3.Error):
    _log.error("Storage error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Storage error"})


async def _read_body(request: Request) -> dict:
    """Decode the JSON body. Raises ValueError for anything but a JSON object."""
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise ValueError("Request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


async def _json_body(request: Request) -> dict:
    try:
        return await _read_body(request)
    except ValueError as e:
        raise HTTPException(400, str(e))


# ── API: Reference data ──────────────────────────────────────────────────

@app.get("/api/grades")
async def api_grades():
    return GRADE_LEVELS


@app.get("/api/standards/{grade_id}")
async def api_standards(grade_id: str):
    if grade_id not in {g["id"] for g in GRADE_LEVELS}:
        raise HTTPException(404, f"Unknown grade: {grade_id}")
    db = get_db()
    result = []
    for category in db.get_categories_by_grade(grade_id):
        seen: set[str] = set()
        standards = []
        for s in db.get_standards_by_category(category.id):
            if s.code in seen:
                continue
            seen.add(s.code)
            standards.append(s.to_dict())
        result.append({
            "id": category.id,
            "title": category.title,
            "description": category.description,
            "gradeId": category.grade_id,
            "standards": standards,
        })
    return result


# ── API: Passages ────────────────────────────────────────────────────────

@app.post("/api/generate")
async def api_generate(request: Request):
    body = await _json_body(request)
    try:
        gen_request = GenerationRequest.from_dict(body)
        text = await generate_text(_get_llm(), get_db(), gen_request, get_settings())
    except ValueError as e:
        raise HTTPException(400, str(e))
    return text.to_dict()


@app.post("/api/modify-passage")
async def api_modify_passage(request: Request):
    try:
        body = await _read_body(request)
        modification = ModificationRequest.from_dict(body)
        text = await modify_text(_get_llm(), get_db(), modification, get_settings())
    except ValueError as e:
        return JSONResponse({"message": str(e), "success": False}, status_code=400)
    except sqlite3.Error as e:
        _log.error("Modify passage failed: %s", e)
        return JSONResponse({"message": "Failed to modify passage", "success": False}, status_code=500)
    return {**text.to_dict(), "success": True}


@app.get("/api/texts")
async def api_texts():
    texts = get_db().get_recent_texts(get_settings().recent_texts_limit)
    return [t.to_dict() for t in texts]


@app.get("/api/texts/{text_id}")
async def api_text(text_id: int):
    text = get_db().get_generated_text(text_id)
    if text is None:
        raise HTTPException(404, "Text not found")
    return text.to_dict()


# ── API: Questions ───────────────────────────────────────────────────────

@app.post("/api/generate-questions")
async def api_generate_questions(request: Request):
    body = await _json_body(request)
    try:
        q_request = QuestionRequest.from_dict(body)
        questions = await generate_questions(_get_llm(), get_db(), q_request, get_settings())
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"questions": [q.to_dict() for q in questions]}


@app.get("/api/texts/{text_id}/questions")
async def api_text_questions(text_id: int):
    db = get_db()
    if db.get_generated_text(text_id) is None:
        raise HTTPException(404, "Text not found")
    return db.get_question_sets(text_id)


@app.post("/api/texts/{text_id}/questions")
async def api_create_text_questions(text_id: int, request: Request):
    db = get_db()
    text = db.get_generated_text(text_id)
    if text is None:
        raise HTTPException(404, "Text not found")
    body = await _json_body(request)
    try:
        q_request = QuestionRequest.from_dict({
            **body,
            "passage": text.content,
            "standardIds": text.standard_ids,
            "gradeLevel": text.grade_id,
        })
        qset = await generate_question_set(_get_llm(), db, text, q_request, get_settings())
    except ValueError as e:
        raise HTTPException(400, str(e))
    return qset.to_dict()


@app.get("/api/texts/{text_id}/worksheet", response_class=PlainTextResponse)
async def api_worksheet(text_id: int):
    db = get_db()
    text = db.get_generated_text(text_id)
    if text is None:
        raise HTTPException(404, "Text not found")
    return render_worksheet(text, db.get_question_sets(text_id))


# ── API: Export ──────────────────────────────────────────────────────────

@app.post("/api/export/google-docs")
async def api_export_google_docs(request: Request):
    body = await _json_body(request)
    title = body.get("title")
    content = body.get("content")
    if not isinstance(title, str) or not title or not isinstance(content, str) or not content:
        raise HTTPException(400, "Invalid text content")
    return format_for_google_docs(title, content)


# ── API: Import / Stats ──────────────────────────────────────────────────

@app.post("/api/import")
async def api_import():
    db = get_db()
    n = _import_standards(db, get_settings())
    return {
        "categories_imported": n,
        "total_standards": db.get_standard_count(),
    }


@app.get("/api/stats")
async def api_stats():
    return get_db().get_stats()


# ── API: Settings ────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await _json_body(request)
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
