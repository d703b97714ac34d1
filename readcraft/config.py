from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "openai",
    "llm_model": "gpt-4o",
    "ollama_url": "http://localhost:11434",
    "temperature": 0.7,
    "passage_max_tokens": 2000,
    "notes_max_tokens": 1500,
    "questions_max_tokens": 2000,
    "db_path": "readcraft.db",
    "standards_files": [],
    "recent_texts_limit": 20,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    temperature: float = DEFAULTS["temperature"]
    passage_max_tokens: int = DEFAULTS["passage_max_tokens"]
    notes_max_tokens: int = DEFAULTS["notes_max_tokens"]
    questions_max_tokens: int = DEFAULTS["questions_max_tokens"]
    db_path: str = DEFAULTS["db_path"]
    standards_files: list[str] = field(default_factory=lambda: list(DEFAULTS["standards_files"]))
    recent_texts_limit: int = DEFAULTS["recent_texts_limit"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def data_dir(self) -> Path:
        return Path(__file__).resolve().parent / "data"

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def resolved_standards_files(self) -> list[Path]:
        if self.standards_files:
            root = self.project_root
            return [root / f for f in self.standards_files]
        return sorted(self.data_dir.glob("*.md"))

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "temperature": self.temperature,
            "passage_max_tokens": self.passage_max_tokens,
            "notes_max_tokens": self.notes_max_tokens,
            "questions_max_tokens": self.questions_max_tokens,
            "db_path": self.db_path,
            "standards_files": self.standards_files,
            "recent_texts_limit": self.recent_texts_limit,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
