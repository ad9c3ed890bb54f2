from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from resumefit.editor.sections import (
    ALWAYS_PRESENT_IDS,
    EXPERIENCE,
    SKILLS,
    Section,
    parse_resume_into_sections,
)
from resumefit.schemas.analysis import AnalysisResult, Improvement, InputMode

logger = logging.getLogger(__name__)

BULLET = "• "
NEW_SECTION_TITLE = "New Section"


class ReanalysisInProgress(RuntimeError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _append_line(content: str, line: str) -> str:
    return f"{content}\n{line}"


class EditorSession:
    """One user's editing session over a parsed résumé.

    The session exclusively owns its ordered section list and the sets of
    suggestion/improvement indices already merged into it. Merge methods do
    not guard against repeats; callers check ``applied_suggestions`` and
    ``applied_improvements`` before applying.
    """

    def __init__(
        self,
        resume_text: str,
        *,
        analysis: AnalysisResult | None = None,
        input_mode: InputMode = "role",
        job_description: str | None = None,
        role_query: str | None = None,
        session_id: str | None = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.analysis = analysis
        self.input_mode = input_mode
        self.job_description = job_description
        self.role_query = role_query
        self.sections: list[Section] = []
        self.applied_suggestions: set[int] = set()
        self.applied_improvements: set[int] = set()
        self.reanalyzing = False
        self.created_at = _utc_now()
        self.touched_at = self.created_at
        self.load_text(resume_text)

    def load_text(self, resume_text: str) -> None:
        self.sections = parse_resume_into_sections(resume_text)
        self.applied_suggestions = set()
        self.applied_improvements = set()

    def touch(self) -> None:
        self.touched_at = _utc_now()

    def get_section(self, section_id: str) -> Section | None:
        return next((s for s in self.sections if s.id == section_id), None)

    # ── section model ──

    def update_content(self, section_id: str, text: str) -> None:
        section = self.get_section(section_id)
        if section is not None:
            section.content = text

    def update_title(self, section_id: str, text: str) -> None:
        section = self.get_section(section_id)
        if section is not None:
            section.title = text

    def _new_section_id(self) -> str:
        taken = {s.id for s in self.sections}
        while True:
            candidate = f"custom-{uuid.uuid4().hex[:10]}"
            if candidate not in taken:
                return candidate

    def add_section(self, title: str = NEW_SECTION_TITLE) -> Section:
        section = Section(id=self._new_section_id(), title=title, content="")
        self.sections.append(section)
        return section

    def remove_section(self, section_id: str) -> bool:
        if section_id in ALWAYS_PRESENT_IDS:
            return False
        before = len(self.sections)
        self.sections = [s for s in self.sections if s.id != section_id]
        return len(self.sections) != before

    def serialize(self) -> str:
        return "\n\n".join(f"{s.title}\n{s.content}" for s in self.sections if s.has_content())

    # ── merger ──

    def apply_suggestion(self, text: str, index: int) -> list[Section]:
        skills = self.get_section(SKILLS)
        if skills is not None:
            skills.content = _append_line(skills.content, f"{BULLET}{text}")
        else:
            self.sections.append(Section(id=SKILLS, title="Skills", content=f"{BULLET}{text}"))
        self.applied_suggestions.add(index)
        return self.sections

    def apply_improvement(self, improvement: Improvement, index: int) -> list[Section]:
        target = next((s for s in self.sections if improvement.before in s.content), None)
        if target is not None:
            target.content = target.content.replace(improvement.before, improvement.after, 1)
        else:
            experience = self.get_section(EXPERIENCE)
            if experience is not None:
                experience.content = _append_line(experience.content, f"{BULLET}{improvement.after}")
            else:
                logger.info("improvement_dropped session=%s index=%s reason=no_experience", self.session_id, index)
        self.applied_improvements.add(index)
        return self.sections

    # ── re-analysis round trip ──

    def begin_reanalysis(self) -> str:
        if self.reanalyzing:
            raise ReanalysisInProgress("A re-analysis is already running for this session.")
        self.reanalyzing = True
        return self.serialize()

    def finish_reanalysis(self, result: AnalysisResult) -> None:
        self.analysis = result
        self.applied_suggestions = set()
        self.applied_improvements = set()
        self.reanalyzing = False

    def abort_reanalysis(self) -> None:
        self.reanalyzing = False
