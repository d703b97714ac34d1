from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from readcraft.models import (
    GeneratedText,
    Question,
    QuestionSet,
    Standard,
    StandardCategory,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS standard_categories (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    grade_id TEXT NOT NULL,
    source_file TEXT
);

CREATE TABLE IF NOT EXISTS standards (
    id TEXT PRIMARY KEY,
    code TEXT NOT NULL,
    description TEXT NOT NULL,
    category_id TEXT NOT NULL REFERENCES standard_categories(id),
    grade_id TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_standards_code ON standards(code);

CREATE TABLE IF NOT EXISTS generated_texts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    teacher_notes TEXT,
    grade_id TEXT NOT NULL,
    standard_ids_json TEXT NOT NULL,
    reading_level TEXT NOT NULL,
    text_type TEXT NOT NULL,
    parent_id INTEGER REFERENCES generated_texts(id),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS question_sets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    generated_text_id INTEGER NOT NULL REFERENCES generated_texts(id),
    question_type TEXT NOT NULL,
    rigor_level INTEGER NOT NULL,
    questions_json TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS file_mtimes (
    file_path TEXT PRIMARY KEY,
    mtime_ns INTEGER NOT NULL
);
"""


def _row_to_standard(row: sqlite3.Row) -> Standard:
    return Standard(
        id=row["id"],
        code=row["code"],
        description=row["description"],
        category_id=row["category_id"],
        grade_id=row["grade_id"],
    )


def _row_to_text(row: sqlite3.Row) -> GeneratedText:
    return GeneratedText(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        teacher_notes=row["teacher_notes"] or "",
        grade_id=row["grade_id"],
        standard_ids=json.loads(row["standard_ids_json"]),
        reading_level=row["reading_level"],
        text_type=row["text_type"],
        created_at=row["created_at"],
        parent_id=row["parent_id"],
    )


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Import ────────────────────────────────────────────────────────────

    def delete_standards_by_source(self, source_file: str) -> int:
        """Remove categories (and their standards) imported from *source_file*."""
        ids = [
            row[0]
            for row in self.conn.execute(
                "SELECT id FROM standard_categories WHERE source_file = ?", (source_file,)
            ).fetchall()
        ]
        for cid in ids:
            self.conn.execute("DELETE FROM standards WHERE category_id = ?", (cid,))
        self.conn.execute("DELETE FROM standard_categories WHERE source_file = ?", (source_file,))
        self.conn.commit()
        return len(ids)

    def import_standards(self, categories: list[StandardCategory]) -> int:
        count = 0
        for c in categories:
            self.conn.execute(
                "INSERT OR REPLACE INTO standard_categories (id, title, description, grade_id, source_file) "
                "VALUES (?, ?, ?, ?, ?)",
                (c.id, c.title, c.description, c.grade_id, c.source_file),
            )
            for s in c.standards:
                self.conn.execute(
                    "INSERT OR REPLACE INTO standards (id, code, description, category_id, grade_id) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (s.id, s.code, s.description, c.id, c.grade_id),
                )
            count += 1
        self.conn.commit()
        return count

    # ── File mtimes ─────────────────────────────────────────────────────

    def get_file_mtime(self, file_path: str) -> int | None:
        row = self.conn.execute(
            "SELECT mtime_ns FROM file_mtimes WHERE file_path = ?", (file_path,)
        ).fetchone()
        return row[0] if row else None

    def set_file_mtime(self, file_path: str, mtime_ns: int) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO file_mtimes (file_path, mtime_ns) VALUES (?, ?)",
            (file_path, mtime_ns),
        )
        self.conn.commit()

    # ── Standards ─────────────────────────────────────────────────────────

    def get_standard_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM standards").fetchone()
        return row[0]

    def get_standard_by_id(self, standard_id: str) -> Standard | None:
        """Look a standard up by id, falling back to its code (e.g. "RL.3.1")."""
        row = self.conn.execute(
            "SELECT * FROM standards WHERE id = ?", (standard_id,)
        ).fetchone()
        if row is None:
            row = self.conn.execute(
                "SELECT * FROM standards WHERE code = ? LIMIT 1", (standard_id,)
            ).fetchone()
        return _row_to_standard(row) if row else None

    def get_standards_by_category(self, category_id: str) -> list[Standard]:
        rows = self.conn.execute(
            "SELECT * FROM standards WHERE category_id = ? ORDER BY rowid", (category_id,)
        ).fetchall()
        return [_row_to_standard(r) for r in rows]

    def get_categories_by_grade(self, grade_id: str) -> list[StandardCategory]:
        rows = self.conn.execute(
            "SELECT * FROM standard_categories WHERE grade_id = ? ORDER BY rowid", (grade_id,)
        ).fetchall()
        return [
            StandardCategory(
                id=r["id"],
                title=r["title"],
                description=r["description"] or "",
                grade_id=r["grade_id"],
                source_file=r["source_file"] or "",
            )
            for r in rows
        ]

    # ── Generated texts ───────────────────────────────────────────────────

    def save_generated_text(self, text: GeneratedText) -> GeneratedText:
        """Insert *text* as a new row; fills in ``id`` and ``created_at``."""
        created_at = datetime.now(timezone.utc).isoformat()
        cur = self.conn.execute(
            "INSERT INTO generated_texts "
            "(title, content, teacher_notes, grade_id, standard_ids_json, "
            "reading_level, text_type, parent_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                text.title,
                text.content,
                text.teacher_notes,
                text.grade_id,
                json.dumps([str(s) for s in text.standard_ids]),
                text.reading_level,
                text.text_type,
                text.parent_id,
                created_at,
            ),
        )
        self.conn.commit()
        text.id = cur.lastrowid
        text.created_at = created_at
        return text

    def get_generated_text(self, text_id: int) -> GeneratedText | None:
        row = self.conn.execute(
            "SELECT * FROM generated_texts WHERE id = ?", (text_id,)
        ).fetchone()
        return _row_to_text(row) if row else None

    def get_recent_texts(self, limit: int = 20) -> list[GeneratedText]:
        rows = self.conn.execute(
            "SELECT * FROM generated_texts ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [_row_to_text(r) for r in rows]

    def get_text_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM generated_texts").fetchone()
        return row[0]

    # ── Question sets ─────────────────────────────────────────────────────

    def save_question_set(
        self,
        generated_text_id: int,
        question_type: str,
        rigor_level: int,
        questions: list[Question],
    ) -> QuestionSet:
        created_at = datetime.now(timezone.utc).isoformat()
        cur = self.conn.execute(
            "INSERT INTO question_sets "
            "(generated_text_id, question_type, rigor_level, questions_json, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                generated_text_id,
                question_type,
                rigor_level,
                json.dumps([q.to_dict() for q in questions]),
                created_at,
            ),
        )
        self.conn.commit()
        return QuestionSet(
            id=cur.lastrowid,
            generated_text_id=generated_text_id,
            question_type=question_type,
            rigor_level=rigor_level,
            questions=list(questions),
            created_at=created_at,
        )

    def get_question_sets(self, generated_text_id: int) -> list[dict]:
        """Stored sets for a text, newest first, with questions as plain dicts."""
        rows = self.conn.execute(
            "SELECT * FROM question_sets WHERE generated_text_id = ? "
            "ORDER BY created_at DESC, id DESC",
            (generated_text_id,),
        ).fetchall()
        return [
            {
                "id": r["id"],
                "generatedTextId": r["generated_text_id"],
                "questionType": r["question_type"],
                "rigorLevel": r["rigor_level"],
                "questions": json.loads(r["questions_json"]),
                "createdAt": r["created_at"],
            }
            for r in rows
        ]

    def get_question_set_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM question_sets").fetchone()
        return row[0]

    # ── Stats ─────────────────────────────────────────────────────────────

    def get_stats(self) -> dict:
        grades = self.conn.execute(
            "SELECT grade_id, COUNT(*) AS n FROM generated_texts GROUP BY grade_id"
        ).fetchall()
        return {
            "total_standards": self.get_standard_count(),
            "total_texts": self.get_text_count(),
            "total_question_sets": self.get_question_set_count(),
            "texts_by_grade": {r["grade_id"]: r["n"] for r in grades},
        }
