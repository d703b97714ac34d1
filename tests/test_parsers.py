"""Tests for the standards markdown parser."""
from __future__ import annotations

from pathlib import Path

from readcraft.parsers.standards_parser import parse_standards_file

BUNDLED = Path(__file__).resolve().parent.parent / "readcraft" / "data" / "standards.md"


class TestStandardsParser:
    def test_parse_basic(self, tmp_path, standards_md_content):
        f = tmp_path / "standards.md"
        f.write_text(standards_md_content)
        categories = parse_standards_file(f)

        assert [c.id for c in categories] == ["3-rl", "3-ri"]
        assert categories[0].title == "Reading: Literature"
        assert categories[0].description == "Narrative text standards"
        assert categories[0].source_file == "standards.md"

    def test_standards_extracted(self, tmp_path, standards_md_content):
        f = tmp_path / "standards.md"
        f.write_text(standards_md_content)
        rl = parse_standards_file(f)[0]

        assert len(rl.standards) == 2
        s = rl.standards[0]
        assert s.id == "3-rl-1"
        assert s.code == "RL.3.1"
        assert s.category_id == "3-rl"
        assert s.grade_id == "3"
        assert s.description.startswith("Ask and answer questions")

    def test_header_rows_skipped(self, tmp_path, standards_md_content):
        f = tmp_path / "standards.md"
        f.write_text(standards_md_content)
        codes = [s.code for c in parse_standards_file(f) for s in c.standards]
        assert "Code" not in codes
        assert not any(c.startswith("-") for c in codes)

    def test_empty_category_dropped(self, tmp_path, standards_md_content):
        f = tmp_path / "standards.md"
        f.write_text(standards_md_content)
        assert "k-empty" not in [c.id for c in parse_standards_file(f)]

    def test_grade_lowercased(self, tmp_path):
        f = tmp_path / "k.md"
        f.write_text(
            "## k-rl | Reading: Literature\n\nGrade: K\n\n"
            "| ID | Code | Description |\n|----|------|-------------|\n"
            "| k-rl-1 | RL.K.1 | With prompting, ask and answer questions. |\n"
        )
        (cat,) = parse_standards_file(f)
        assert cat.grade_id == "k"
        assert cat.standards[0].grade_id == "k"


class TestBundledStandards:
    def test_bundled_file_parses(self):
        categories = parse_standards_file(BUNDLED)
        grades = {c.grade_id for c in categories}
        assert grades == {"k", "1", "2", "3", "4", "5", "6", "7", "8"}

    def test_grade_three_literature_present(self):
        categories = {c.id: c for c in parse_standards_file(BUNDLED)}
        rl = categories["3-rl"]
        assert rl.standards[0].id == "3-rl-1"
        assert rl.standards[0].code == "RL.3.1"
