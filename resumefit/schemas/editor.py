from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from resumefit.editor.sections import Section
from resumefit.editor.session import EditorSession
from resumefit.schemas.analysis import AnalysisResult, InputMode, mode_context_error


class SessionCreateRequest(BaseModel):
    resume_text: str = Field(default="", max_length=60000)
    analysis: AnalysisResult | None = None
    input_mode: InputMode = "role"
    job_description: str | None = Field(default=None, max_length=60000)
    role_query: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _require_context_for_reanalysis(self) -> "SessionCreateRequest":
        if self.analysis is not None:
            error = mode_context_error(self.input_mode, self.job_description, self.role_query)
            if error:
                raise ValueError(error)
        return self


class SectionUpdateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, max_length=60000)


class SectionAddRequest(BaseModel):
    title: str = Field(default="New Section", max_length=200)


class SessionView(BaseModel):
    session_id: str
    input_mode: InputMode
    sections: list[Section]
    analysis: AnalysisResult | None = None
    applied_suggestions: list[int] = Field(default_factory=list)
    applied_improvements: list[int] = Field(default_factory=list)
    reanalyzing: bool = False
    created_at: datetime

    @classmethod
    def from_session(cls, session: EditorSession) -> "SessionView":
        return cls(
            session_id=session.session_id,
            input_mode=session.input_mode,
            sections=[s.model_copy() for s in session.sections],
            analysis=session.analysis,
            applied_suggestions=sorted(session.applied_suggestions),
            applied_improvements=sorted(session.applied_improvements),
            reanalyzing=session.reanalyzing,
            created_at=session.created_at,
        )


class SerializedText(BaseModel):
    text: str
