"""
Rebuilds the sectional structure of a résumé from extracted plain text.

Header detection is a data-driven, ordered list of ``(section_id, matcher)``
pairs. A line that starts with one of the header phrases moves the cursor to
that section and is consumed; every other non-blank line is appended to the
section under the cursor.
"""

from __future__ import annotations

import re
from typing import Callable

from pydantic import BaseModel

SUMMARY = "summary"
EXPERIENCE = "experience"
SKILLS = "skills"
EDUCATION = "education"
PROJECTS = "projects"
CERTIFICATIONS = "certifications"

ALWAYS_PRESENT_IDS: frozenset[str] = frozenset({SUMMARY, EXPERIENCE, SKILLS, EDUCATION})

DEFAULT_TITLES: tuple[tuple[str, str], ...] = (
    (SUMMARY, "Professional Summary"),
    (EXPERIENCE, "Work Experience"),
    (SKILLS, "Skills"),
    (EDUCATION, "Education"),
    (PROJECTS, "Projects"),
    (CERTIFICATIONS, "Certifications"),
)

LineMatcher = Callable[[str], bool]


class Section(BaseModel):
    id: str
    title: str
    content: str = ""

    def has_content(self) -> bool:
        return bool(self.content.strip())


def _starts_with(*phrases: str) -> LineMatcher:
    # Words inside a phrase may be glued together ("WorkExperience") after extraction.
    alternatives = "|".join(r"\s*".join(map(re.escape, phrase.split())) for phrase in phrases)
    pattern = re.compile(rf"^({alternatives})", re.IGNORECASE)
    return lambda line: pattern.match(line) is not None


HEADER_PATTERNS: list[tuple[str, LineMatcher]] = [
    (SUMMARY, _starts_with("professional summary", "summary", "objective", "about me", "profile")),
    (
        EXPERIENCE,
        _starts_with(
            "work experience",
            "experience",
            "employment",
            "professional experience",
            "work history",
        ),
    ),
    (
        SKILLS,
        _starts_with("skills", "technical skills", "core competencies", "competencies", "technologies"),
    ),
    (EDUCATION, _starts_with("education", "academic", "qualifications", "academic qualifications")),
    (PROJECTS, _starts_with("projects", "personal projects", "academic projects", "key projects")),
    (
        CERTIFICATIONS,
        _starts_with("certifications", "certificates", "licenses", "awards", "achievements"),
    ),
]


def default_sections() -> list[Section]:
    return [Section(id=section_id, title=title) for section_id, title in DEFAULT_TITLES]


def match_header(line: str, patterns: list[tuple[str, LineMatcher]] | None = None) -> str | None:
    """Return the section id of the first matching header pattern, if any."""
    for section_id, matcher in patterns or HEADER_PATTERNS:
        if matcher(line):
            return section_id
    return None


def parse_resume_into_sections(
    text: str,
    patterns: list[tuple[str, LineMatcher]] | None = None,
) -> list[Section]:
    sections = default_sections()
    by_id = {section.id: section for section in sections}
    current = SUMMARY

    for raw_line in (text or "").split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        header = match_header(line, patterns)
        if header is not None:
            current = header
            continue

        section = by_id.get(current)
        if section is not None:
            section.content = f"{section.content}\n{line}" if section.content else line

    return [s for s in sections if s.has_content() or s.id in ALWAYS_PRESENT_IDS]
