import asyncio

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status

from resumefit.core.config import settings
from resumefit.core.rate_limit import analysis_rate_limit, rate_limit
from resumefit.schemas.analysis import AnalysisResult, AnalyzeRequest
from resumefit.services.analysis_llm import AnalysisLLMError
from resumefit.services.analysis_service import run_analysis
from resumefit.services.extraction import ExtractedText, ExtractionError, extract_text_from_file

router = APIRouter()


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/extract-text", response_model=ExtractedText)
@rate_limit()
async def extract_text(request: Request, file: UploadFile = File(...)):
    _ = request
    content = await _read_upload(file)
    try:
        return await asyncio.to_thread(extract_text_from_file, file.filename or "uploaded-file", content)
    except ExtractionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/analyze", response_model=AnalysisResult)
@analysis_rate_limit()
async def analyze(request: Request, payload: AnalyzeRequest):
    _ = request
    try:
        return await asyncio.to_thread(run_analysis, payload)
    except AnalysisLLMError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
