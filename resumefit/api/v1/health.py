from fastapi import APIRouter

from resumefit.core.session_store import session_count
from resumefit.services.analysis_llm import analysis_llm_enabled

router = APIRouter()


@router.get("/health", summary="Health Check", description="Service status, open editor sessions and LLM availability.")
async def health_check():
    return {
        "status": "healthy",
        "active_sessions": session_count(),
        "analysis_llm": "enabled" if analysis_llm_enabled() else "disabled",
    }
