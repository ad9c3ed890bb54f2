from fastapi import APIRouter, HTTPException, Request, status

from resumefit.core.rate_limit import analysis_rate_limit
from resumefit.core.session_store import create_session, delete_session, get_session
from resumefit.editor.export import ContactInfo, ExportDocument, build_export_document
from resumefit.editor.sections import Section
from resumefit.editor.session import EditorSession, ReanalysisInProgress
from resumefit.schemas.editor import (
    SectionAddRequest,
    SectionUpdateRequest,
    SerializedText,
    SessionCreateRequest,
    SessionView,
)
from resumefit.services.analysis_llm import AnalysisLLMError
from resumefit.services.analysis_service import reanalyze_session

router = APIRouter()


def _require_session(session_id: str) -> EditorSession:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Editing session not found or expired.")
    return session


def _require_idle(session: EditorSession) -> None:
    if session.reanalyzing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A re-analysis is running for this session; retry once it finishes.",
        )


def _require_analysis(session: EditorSession):
    if session.analysis is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This session has no analysis to apply yet.")
    return session.analysis


@router.post("/editor/sessions", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def editor_create_session(payload: SessionCreateRequest):
    session = create_session(
        resume_text=payload.resume_text,
        analysis=payload.analysis,
        input_mode=payload.input_mode,
        job_description=payload.job_description,
        role_query=payload.role_query,
    )
    return SessionView.from_session(session)


@router.get("/editor/sessions/{session_id}", response_model=SessionView)
async def editor_get_session(session_id: str):
    return SessionView.from_session(_require_session(session_id))


@router.delete("/editor/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def editor_delete_session(session_id: str):
    if not delete_session(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Editing session not found or expired.")


@router.post("/editor/sessions/{session_id}/sections", response_model=Section, status_code=status.HTTP_201_CREATED)
async def editor_add_section(session_id: str, payload: SectionAddRequest | None = None):
    session = _require_session(session_id)
    _require_idle(session)
    title = payload.title if payload is not None else SectionAddRequest().title
    return session.add_section(title=title).model_copy()


@router.patch("/editor/sessions/{session_id}/sections/{section_id}", response_model=Section)
async def editor_update_section(session_id: str, section_id: str, payload: SectionUpdateRequest):
    session = _require_session(session_id)
    _require_idle(session)
    if session.get_section(section_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found.")
    if payload.title is not None:
        session.update_title(section_id, payload.title)
    if payload.content is not None:
        session.update_content(section_id, payload.content)
    return session.get_section(section_id).model_copy()


@router.delete("/editor/sessions/{session_id}/sections/{section_id}", response_model=SessionView)
async def editor_remove_section(session_id: str, section_id: str):
    session = _require_session(session_id)
    _require_idle(session)
    if session.get_section(section_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found.")
    if not session.remove_section(section_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The '{section_id}' section is part of every resume and cannot be removed.",
        )
    return SessionView.from_session(session)


@router.post("/editor/sessions/{session_id}/suggestions/{index}/apply", response_model=SessionView)
async def editor_apply_suggestion(session_id: str, index: int):
    session = _require_session(session_id)
    _require_idle(session)
    analysis = _require_analysis(session)
    if index < 0 or index >= len(analysis.suggestions):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found.")
    if index in session.applied_suggestions:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Suggestion already applied.")
    session.apply_suggestion(analysis.suggestions[index], index)
    return SessionView.from_session(session)


@router.post("/editor/sessions/{session_id}/improvements/{index}/apply", response_model=SessionView)
async def editor_apply_improvement(session_id: str, index: int):
    session = _require_session(session_id)
    _require_idle(session)
    analysis = _require_analysis(session)
    if index < 0 or index >= len(analysis.improvements):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Improvement not found.")
    if index in session.applied_improvements:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Improvement already applied.")
    session.apply_improvement(analysis.improvements[index], index)
    return SessionView.from_session(session)


@router.get("/editor/sessions/{session_id}/text", response_model=SerializedText)
async def editor_serialize(session_id: str):
    return SerializedText(text=_require_session(session_id).serialize())


@router.post("/editor/sessions/{session_id}/reanalyze", response_model=SessionView)
@analysis_rate_limit()
async def editor_reanalyze(request: Request, session_id: str):
    _ = request
    session = _require_session(session_id)
    try:
        await reanalyze_session(session)
    except ReanalysisInProgress as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except AnalysisLLMError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SessionView.from_session(session)


@router.post("/editor/sessions/{session_id}/export", response_model=ExportDocument)
async def editor_export(session_id: str, payload: ContactInfo | None = None):
    return build_export_document(_require_session(session_id), payload)
