import asyncio
import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import ValidationError  # noqa: E402

from resumefit.editor.session import EditorSession  # noqa: E402
from resumefit.schemas.analysis import AnalysisResult, AnalyzeRequest, score_label_for  # noqa: E402
from resumefit.services import analysis_llm  # noqa: E402
from resumefit.services.analysis_llm import AnalysisLLMError, strip_code_fences  # noqa: E402
from resumefit.services.analysis_service import (  # noqa: E402
    build_analysis_prompt,
    reanalyze_session,
    run_analysis,
)

MODEL_PAYLOAD = {
    "role_detected": "Backend Developer",
    "experience_level": "1-3 years",
    "ats_score": 64,
    "score_label": "Strong Match (61-80)",
    "explanation": "Solid backend foundation.",
    "missing_skills": {"Tools": ["Docker"], "Database": []},
    "suggestions": ["Add Docker", "  "],
    "improvements": [{"before": "Built stuff", "after": "Built scalable microservices"}],
    "skill_roadmap": ["Learn Kubernetes"],
    "predicted_score": 78,
}


class AnalysisSchemaTests(unittest.TestCase):
    def test_score_bands(self):
        self.assertEqual(score_label_for(0), "Needs Improvement")
        self.assertEqual(score_label_for(40), "Needs Improvement")
        self.assertEqual(score_label_for(41), "Moderate Match")
        self.assertEqual(score_label_for(60), "Moderate Match")
        self.assertEqual(score_label_for(61), "Strong Match")
        self.assertEqual(score_label_for(81), "Excellent Match")
        self.assertEqual(score_label_for(100), "Excellent Match")

    def test_model_output_is_normalized(self):
        result = AnalysisResult.model_validate(MODEL_PAYLOAD)
        self.assertEqual(result.score_label, "Strong Match")
        self.assertEqual(result.missing_skills, {"Tools": ["Docker"]})
        self.assertEqual(result.suggestions, ["Add Docker"])
        self.assertEqual(result.improvements[0].after, "Built scalable microservices")

    def test_scores_are_clamped_and_unknown_labels_replaced(self):
        result = AnalysisResult.model_validate({"ats_score": 140, "score_label": "Great", "predicted_score": -5})
        self.assertEqual(result.ats_score, 100)
        self.assertEqual(result.score_label, "Excellent Match")
        self.assertEqual(result.predicted_score, 0)

    def test_null_lists_become_empty(self):
        result = AnalysisResult.model_validate({"ats_score": "35", "suggestions": None, "missing_skills": None})
        self.assertEqual(result.ats_score, 35)
        self.assertEqual(result.suggestions, [])
        self.assertEqual(result.missing_skills, {})

    def test_fallback_result(self):
        result = AnalysisResult.fallback()
        self.assertEqual(result.ats_score, 0)
        self.assertEqual(result.score_label, "Needs Improvement")
        self.assertEqual(result.suggestions, ["Please try uploading your resume again."])
        self.assertIsNone(result.predicted_score)

    def test_request_requires_context_for_its_mode(self):
        with self.assertRaises(ValidationError):
            AnalyzeRequest(resume_text="Python", input_mode="jd")
        with self.assertRaises(ValidationError):
            AnalyzeRequest(resume_text="Python", input_mode="role", role_query="   ")
        AnalyzeRequest(resume_text="Python", input_mode="jd", job_description="Need Python")


class AnalysisServiceTests(unittest.TestCase):
    def test_prompts_follow_input_mode(self):
        jd = build_analysis_prompt(
            AnalyzeRequest(resume_text="RESUME BODY", input_mode="jd", job_description="JD BODY")
        )
        self.assertIn("JOB DESCRIPTION:\nJD BODY", jd)
        self.assertIn("RESUME:\nRESUME BODY", jd)

        role = build_analysis_prompt(
            AnalyzeRequest(resume_text="RESUME BODY", input_mode="role", role_query="junior data analyst")
        )
        self.assertIn('"junior data analyst"', role)
        self.assertNotIn("JOB DESCRIPTION", role)

    def test_run_analysis_validates_model_payload(self):
        request = AnalyzeRequest(resume_text="Python", role_query="backend developer")
        with patch("resumefit.services.analysis_service.json_completion_required", return_value=MODEL_PAYLOAD):
            result = run_analysis(request)
        self.assertEqual(result.ats_score, 64)
        self.assertEqual(result.role_detected, "Backend Developer")

    def test_run_analysis_degrades_to_fallback_on_schema_mismatch(self):
        request = AnalyzeRequest(resume_text="Python", role_query="backend developer")
        broken = {"ats_score": 50, "improvements": "rewrite everything"}
        with patch("resumefit.services.analysis_service.json_completion_required", return_value=broken):
            result = run_analysis(request)
        self.assertEqual(result.model_dump(), AnalysisResult.fallback().model_dump())

    def test_run_analysis_raises_when_llm_disabled(self):
        request = AnalyzeRequest(resume_text="Python", role_query="backend developer")
        with patch.dict(os.environ, {"ANALYSIS_LLM_ENABLED": "0"}):
            with self.assertRaises(AnalysisLLMError) as ctx:
                run_analysis(request)
        self.assertEqual(ctx.exception.code, "llm_disabled")

    def test_placeholder_api_key_disables_llm(self):
        with patch.dict(os.environ, {"ANALYSIS_LLM_ENABLED": "1", "OPENAI_API_KEY": "your_openai_key"}):
            self.assertFalse(analysis_llm.analysis_llm_enabled())

    def test_strip_code_fences(self):
        self.assertEqual(strip_code_fences('```json\n{"a": 1}\n```'), '{"a": 1}')


class ReanalysisTests(unittest.TestCase):
    def setUp(self):
        self.session = EditorSession(
            "Experience\nBuilt stuff\nSkills\nPython",
            analysis=AnalysisResult(ats_score=30, suggestions=["Add Docker"]),
            input_mode="jd",
            job_description="Python backend role",
        )
        self.session.apply_suggestion("Add Docker", 0)

    def test_reanalysis_submits_serialized_text_with_original_context(self):
        captured = {}

        def fake_run(request):
            captured["request"] = request
            return AnalysisResult(ats_score=70)

        with patch("resumefit.services.analysis_service.run_analysis", side_effect=fake_run):
            result = asyncio.run(reanalyze_session(self.session))

        request = captured["request"]
        self.assertEqual(request.resume_text, self.session.serialize())
        self.assertEqual(request.input_mode, "jd")
        self.assertEqual(request.job_description, "Python backend role")
        self.assertEqual(result.ats_score, 70)
        self.assertIs(self.session.analysis, result)
        self.assertEqual(self.session.applied_suggestions, set())

    def test_failed_reanalysis_leaves_sections_untouched(self):
        before = [s.model_dump() for s in self.session.sections]
        previous = self.session.analysis
        failure = AnalysisLLMError("down", code="llm_invalid")
        with patch("resumefit.services.analysis_service.run_analysis", side_effect=failure):
            with self.assertRaises(AnalysisLLMError):
                asyncio.run(reanalyze_session(self.session))
        self.assertEqual([s.model_dump() for s in self.session.sections], before)
        self.assertIs(self.session.analysis, previous)
        self.assertEqual(self.session.applied_suggestions, {0})
        self.assertFalse(self.session.reanalyzing)

    def test_reanalysis_of_empty_resume_is_rejected(self):
        empty = EditorSession("", input_mode="role", role_query="designer")
        with self.assertRaises(ValueError):
            asyncio.run(reanalyze_session(empty))
        self.assertFalse(empty.reanalyzing)


if __name__ == "__main__":
    unittest.main()
