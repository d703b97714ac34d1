"""CLI entry point for readcraft.

Usage:
  python -m readcraft serve [--port PORT] [--host HOST] [--no-auto-import]
  python -m readcraft stop
  python -m readcraft restart [--port PORT]
  python -m readcraft status
  python -m readcraft import
  python -m readcraft generate --standard ID [--standard ID ...] [--grade G]
                               [--level below|at|above] [--words N]
                               [--type narrative|informational] [--topic TEXT]
  python -m readcraft stats
"""
from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stop":
        _stop()
    elif command == "restart":
        _restart(args[1:])
    elif command == "status":
        _status()
    elif command == "import":
        _import_standards()
    elif command == "generate":
        _generate(args[1:])
    elif command == "stats":
        _stats()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stop, restart, status, import, generate, stats")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str | None) -> str | None:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _parse_multi_flag(args: list[str], name: str) -> list[str]:
    return [args[i + 1] for i, a in enumerate(args) if a == name and i + 1 < len(args)]


def _read_pid() -> int | None:
    """Read PID from file, return None if stale or missing."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        # Check if process is actually running
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None


def _stop() -> bool:
    """Stop a running server. Returns True if a server was stopped."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
        print(f"Stopped server (PID {pid}).")
        PID_FILE.unlink(missing_ok=True)
        return True
    except ProcessLookupError:
        print("Server was not running (stale PID file removed).")
        PID_FILE.unlink(missing_ok=True)
        return False


def _status():
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
    else:
        print(f"Server is running (PID {pid}).")


def _restart(args: list[str]):
    import time
    _stop()
    time.sleep(1)
    _serve(args)


def _serve(args: list[str]):
    import uvicorn

    existing = _read_pid()
    if existing is not None:
        print(f"Server already running (PID {existing}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    if "--no-auto-import" in args:
        os.environ["READCRAFT_NO_AUTO_IMPORT"] = "1"

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    PID_FILE.write_text(str(os.getpid()))

    print(f"Starting Readcraft on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "readcraft.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        PID_FILE.unlink(missing_ok=True)
        os.environ.pop("READCRAFT_NO_AUTO_IMPORT", None)


def _import_standards():
    from readcraft.config import load_settings
    from readcraft.db import Database
    from readcraft.parsers.standards_parser import parse_standards_file

    settings = load_settings()
    db = Database(settings.db_full_path)

    for sf in settings.resolved_standards_files():
        if not sf.exists():
            print(f"  Skipping (not found): {sf}")
            continue
        print(f"  Parsing: {sf.name}")
        db.delete_standards_by_source(sf.name)
        categories = parse_standards_file(sf)
        n = db.import_standards(categories)
        standards = sum(len(c.standards) for c in categories)
        print(f"    {n} categories, {standards} standards")
        db.set_file_mtime(str(sf), sf.stat().st_mtime_ns)

    print(f"\nTotal in DB: {db.get_standard_count()} standards")
    db.close()


def _make_llm(settings):
    if settings.llm_provider == "ollama":
        from readcraft.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=settings.ollama_url, model=settings.llm_model)
    elif settings.llm_provider == "anthropic":
        from readcraft.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider()
    elif settings.llm_provider == "openai":
        from readcraft.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=settings.llm_model)
    print(f"Unknown LLM provider: {settings.llm_provider}")
    sys.exit(1)


def _generate(args: list[str]):
    from readcraft.config import load_settings
    from readcraft.db import Database
    from readcraft.models import GenerationRequest
    from readcraft.text_generator import InvalidStandardsError, generate_text

    settings = load_settings()
    db = Database(settings.db_full_path)

    if db.get_standard_count() == 0:
        print("No standards in database. Run 'import' first.")
        db.close()
        sys.exit(1)

    try:
        request = GenerationRequest.from_dict({
            "standardIds": _parse_multi_flag(args, "--standard"),
            "gradeId": _parse_flag(args, "--grade", "3"),
            "readingLevel": _parse_flag(args, "--level", "at"),
            "wordCount": _parse_flag(args, "--words", "300"),
            "textType": _parse_flag(args, "--type", "narrative"),
            "topic": _parse_flag(args, "--topic", None),
        })
    except ValueError as e:
        print(f"Invalid request: {e}")
        db.close()
        sys.exit(1)

    llm = _make_llm(settings)
    print(f"Generating {request.text_type} passage using {llm.name()}...")
    try:
        text = asyncio.run(generate_text(llm, db, request, settings))
    except InvalidStandardsError as e:
        print(str(e))
        db.close()
        sys.exit(1)

    print(f"\n{text.title}\n")
    print(text.content)
    print("\nTeacher notes\n" + "=" * 40)
    print(text.teacher_notes)
    print(f"\nSaved as text {text.id}")
    db.close()


def _stats():
    from readcraft.config import load_settings
    from readcraft.db import Database

    settings = load_settings()
    db = Database(settings.db_full_path)
    stats = db.get_stats()

    print("Readcraft Stats")
    print("=" * 40)
    print(f"Total standards:    {stats['total_standards']}")
    print(f"Generated texts:    {stats['total_texts']}")
    print(f"Question sets:      {stats['total_question_sets']}")
    for grade, n in sorted(stats["texts_by_grade"].items()):
        print(f"  Grade {grade:<3}          {n}")
    db.close()


if __name__ == "__main__":
    main()
