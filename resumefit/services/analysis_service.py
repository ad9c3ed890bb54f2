from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from resumefit.editor.session import EditorSession
from resumefit.schemas.analysis import AnalysisResult, AnalyzeRequest
from resumefit.services.analysis_llm import json_completion_required

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = """You are an expert ATS (Applicant Tracking System) resume analyzer and career mentor. You speak in simple, encouraging human language. You NEVER show technical scoring internals, cosine similarity values, weight distributions, or internal math.

Your task is to analyze a resume and return a JSON object with the following structure:

{
  "role_detected": "The detected target role (e.g., Full Stack Developer)",
  "experience_level": "Detected experience level (e.g., Fresher, 1-3 years, Senior)",
  "ats_score": <number 0-100>,
  "score_label": "One of: Needs Improvement (0-40), Moderate Match (41-60), Strong Match (61-80), Excellent Match (81-100)",
  "explanation": "2-3 simple sentences explaining why the score is what it is. Be encouraging and constructive. No technical jargon.",
  "missing_skills": {
    "Frontend": ["skill1", "skill2"],
    "Backend": ["skill1"],
    "Database": [],
    "Tools": ["tool1"],
    "Concepts": ["concept1"]
  },
  "suggestions": [
    "Clear bullet-point instruction of what to add to the resume",
    "Another suggestion"
  ],
  "improvements": [
    {
      "before": "A weak bullet copied verbatim from the resume",
      "after": "An improved, specific, achievement-oriented version"
    }
  ],
  "skill_roadmap": [
    "Learn X to fill the most critical gap",
    "Practice Y through projects"
  ],
  "predicted_score": <number 0-100, the estimated score if suggestions are applied>
}

Rules:
- Only include skill categories that are relevant. Remove empty categories from missing_skills.
- Do NOT assume missing requirements. Only evaluate against what's actually specified or standard for the role.
- Penalize keyword stuffing: if the same skill is repeated excessively, don't give extra credit.
- Provide 2-4 realistic before/after improvements. Copy each "before" exactly as it appears in the resume.
- Be encouraging and mentor-like. Focus on helping the person understand what to improve.
- Return ONLY valid JSON. No markdown, no code blocks, no explanation outside the JSON."""


def build_analysis_prompt(request: AnalyzeRequest) -> str:
    if request.input_mode == "jd":
        return (
            "Analyze this resume against the following job description.\n\n"
            f"JOB DESCRIPTION:\n{request.job_description}\n\n"
            f"RESUME:\n{request.resume_text}"
        )
    return (
        f'Analyze this resume for someone who describes themselves as: "{request.role_query}"\n\n'
        "Detect the target role and experience level from their description. "
        "Use industry-standard skill requirements for that role and experience level.\n\n"
        f"RESUME:\n{request.resume_text}"
    )


def run_analysis(request: AnalyzeRequest) -> AnalysisResult:
    payload = json_completion_required(
        system_prompt=ANALYSIS_SYSTEM_PROMPT,
        user_prompt=build_analysis_prompt(request),
    )
    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        logger.warning("analysis_result_invalid mode=%s errors=%s", request.input_mode, exc.error_count())
        return AnalysisResult.fallback()


def build_reanalysis_request(session: EditorSession, resume_text: str) -> AnalyzeRequest:
    """Edited text goes back with the session's original mode and JD/role context."""
    return AnalyzeRequest(
        resume_text=resume_text,
        input_mode=session.input_mode,
        job_description=session.job_description,
        role_query=session.role_query,
    )


async def reanalyze_session(session: EditorSession) -> AnalysisResult:
    resume_text = session.begin_reanalysis()
    try:
        if not resume_text.strip():
            raise ValueError("All sections are empty; add some content before re-analyzing.")
        request = build_reanalysis_request(session, resume_text)
        result = await asyncio.to_thread(run_analysis, request)
    except Exception:
        session.abort_reanalysis()
        raise
    session.finish_reanalysis(result)
    logger.info("session_reanalyzed session=%s score=%s", session.session_id, result.ats_score)
    return result
