"""Parse a standards markdown file into StandardCategory objects.

Each category is a block separated by horizontal rules:

  ## 3-rl | Reading: Literature

  Grade: 3

  Narrative text standards

  | ID | Code | Description |
  |----|------|-------------|
  | 3-rl-1 | RL.3.1 | Ask and answer questions ... |
"""
from __future__ import annotations

import re
from pathlib import Path

from readcraft.models import Standard, StandardCategory


def parse_standards_file(path: Path) -> list[StandardCategory]:
    text = path.read_text()
    source = path.name
    categories: list[StandardCategory] = []

    for block in re.split(r"\n---\n", text):
        category = _parse_block(block.strip())
        if category and category.standards:
            category.source_file = source
            categories.append(category)

    return categories


def _parse_block(block: str) -> StandardCategory | None:
    category_id = ""
    title = ""
    grade_id = ""
    description = ""
    standards: list[Standard] = []

    for line in block.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        m = re.match(r"^##\s+(\S+)\s*\|\s*(.+)$", stripped)
        if m:
            category_id = m.group(1).strip()
            title = m.group(2).strip()
            continue

        # Top-level header
        if stripped.startswith("# "):
            continue

        m = re.match(r"^Grade:\s*(\S+)", stripped, re.IGNORECASE)
        if m:
            grade_id = m.group(1).lower()
            continue

        if stripped.startswith("|"):
            # Header and separator rows
            if re.match(r"\|[-|\s]+\|$", stripped) or re.match(r"\|\s*ID\s*\|", stripped):
                continue
            m = re.match(r"\|\s*(\S+?)\s*\|\s*(\S+?)\s*\|\s*(.+?)\s*\|$", stripped)
            if m and category_id:
                standards.append(Standard(
                    id=m.group(1),
                    code=m.group(2),
                    description=m.group(3),
                    category_id=category_id,
                    grade_id=grade_id,
                ))
            continue

        if category_id and not description:
            description = stripped

    if not category_id:
        return None

    # Grade may appear after the table rows were read
    for s in standards:
        s.grade_id = grade_id

    return StandardCategory(
        id=category_id,
        title=title,
        description=description,
        grade_id=grade_id,
        standards=standards,
    )
