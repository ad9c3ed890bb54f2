from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

InputMode = Literal["jd", "role"]
ScoreLabel = Literal["Needs Improvement", "Moderate Match", "Strong Match", "Excellent Match"]

SCORE_BANDS: tuple[tuple[int, str], ...] = (
    (40, "Needs Improvement"),
    (60, "Moderate Match"),
    (80, "Strong Match"),
    (100, "Excellent Match"),
)


def score_label_for(score: int) -> str:
    for upper, label in SCORE_BANDS:
        if score <= upper:
            return label
    return SCORE_BANDS[-1][1]


def _clamp_score(value: Any) -> int:
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, number))


class Improvement(BaseModel):
    before: str = ""
    after: str = ""


class AnalysisResult(BaseModel):
    role_detected: str | None = None
    experience_level: str | None = None
    ats_score: int = Field(default=0, ge=0, le=100)
    score_label: ScoreLabel = "Needs Improvement"
    explanation: str | None = None
    missing_skills: dict[str, list[str]] = Field(default_factory=dict)
    suggestions: list[str] = Field(default_factory=list)
    improvements: list[Improvement] = Field(default_factory=list)
    skill_roadmap: list[str] = Field(default_factory=list)
    predicted_score: int | None = Field(default=None, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def _coerce_model_output(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        score = _clamp_score(data.get("ats_score"))
        data["ats_score"] = score
        label = str(data.get("score_label") or "").strip()
        # Models sometimes echo the band range, e.g. "Strong Match (61-80)".
        known = next((name for _, name in SCORE_BANDS if label.startswith(name)), None)
        data["score_label"] = known or score_label_for(score)
        if data.get("predicted_score") is not None:
            data["predicted_score"] = _clamp_score(data["predicted_score"])
        for key in ("suggestions", "skill_roadmap", "improvements"):
            if data.get(key) is None:
                data[key] = []
        if data.get("missing_skills") is None:
            data["missing_skills"] = {}
        return data

    @field_validator("missing_skills")
    @classmethod
    def _drop_empty_categories(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        return {category: skills for category, skills in value.items() if skills}

    @field_validator("suggestions", "skill_roadmap")
    @classmethod
    def _drop_blank_entries(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]

    @classmethod
    def fallback(cls) -> "AnalysisResult":
        return cls(
            role_detected="Unknown",
            experience_level="Unknown",
            ats_score=0,
            score_label="Needs Improvement",
            explanation="We had trouble analyzing your resume. Please try again.",
            missing_skills={},
            suggestions=["Please try uploading your resume again."],
            improvements=[],
            skill_roadmap=[],
            predicted_score=None,
        )


def mode_context_error(input_mode: str, job_description: str | None, role_query: str | None) -> str | None:
    if input_mode == "jd" and not (job_description or "").strip():
        return "job_description is required when input_mode is 'jd'"
    if input_mode == "role" and not (role_query or "").strip():
        return "role_query is required when input_mode is 'role'"
    return None


class AnalyzeRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=60000)
    input_mode: InputMode = "role"
    job_description: str | None = Field(default=None, max_length=60000)
    role_query: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _require_mode_context(self) -> "AnalyzeRequest":
        error = mode_context_error(self.input_mode, self.job_description, self.role_query)
        if error:
            raise ValueError(error)
        return self
