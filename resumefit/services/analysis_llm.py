from __future__ import annotations

import base64
import json
import logging
import os
import re
import time
from functools import lru_cache
from typing import Any

from openai import OpenAI

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?")

IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


class AnalysisLLMError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def analysis_llm_enabled() -> bool:
    if not _env_bool("ANALYSIS_LLM_ENABLED", True):
        return False
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if not api_key or _looks_like_placeholder(api_key):
        return False
    return True


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        base_url=(os.getenv("OPENAI_BASE_URL") or None),
        timeout=float(os.getenv("ANALYSIS_LLM_TIMEOUT_S", "30")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def _model() -> str:
    return (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()


def strip_code_fences(content: str) -> str:
    return _CODE_FENCE.sub("", content or "").strip()


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.3,
    max_output_tokens: int = 1800,
) -> dict[str, Any] | None:
    if not analysis_llm_enabled():
        return None

    started = time.perf_counter()
    try:
        response = _client().chat.completions.create(
            model=_model(),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
        content = response.choices[0].message.content if response.choices else ""
        if not content:
            logger.warning("analysis_llm_empty_response model=%s", _model())
            return None
        parsed = json.loads(strip_code_fences(content))
    except Exception as exc:  # noqa: BLE001 - caller degrades to a fallback result
        logger.warning("analysis_llm_json_failed model=%s prompt_len=%s: %s", _model(), len(user_prompt), exc)
        return None

    logger.info(
        "analysis_llm_json_done model=%s latency_ms=%s",
        _model(),
        int((time.perf_counter() - started) * 1000),
    )
    return parsed if isinstance(parsed, dict) else None


def json_completion_required(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.3,
    max_output_tokens: int = 1800,
) -> dict[str, Any]:
    if not analysis_llm_enabled():
        raise AnalysisLLMError("Resume analysis is not configured on this server.", code="llm_disabled")

    payload = json_completion(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )
    if payload is None:
        raise AnalysisLLMError("The analysis service did not return a valid response. Try again.", code="llm_invalid")
    return payload


def vision_extract_text(*, content: bytes, filename: str) -> str | None:
    if not analysis_llm_enabled():
        return None

    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "png"
    mime = IMAGE_MIME_TYPES.get(ext, "image/png")

    try:
        encoded = base64.b64encode(content).decode("utf-8")
        response = _client().chat.completions.create(
            model=_model(),
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You are a resume text extractor. Extract all text content from the provided resume "
                        "document. Return ONLY the raw text content, preserving structure like sections, "
                        "bullet points, and formatting. Do not add any commentary."
                    ),
                },
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": f'Extract all text from this resume file named "{filename}". Return the complete text content.',
                        },
                        {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{encoded}"}},
                    ],
                },
            ],
            temperature=0.1,
            max_tokens=2000,
        )
        content_text = response.choices[0].message.content if response.choices else ""
        if not content_text:
            return None
        return str(content_text).strip()
    except Exception as exc:  # noqa: BLE001
        logger.warning("analysis_llm_vision_failed model=%s file=%s: %s", _model(), filename, exc)
        return None
