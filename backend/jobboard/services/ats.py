import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..config import (
    AI_LOG_PAYLOADS,
    AI_MAX_RETRIES,
    AI_TIMEOUT_S,
    GEMINI_API_KEY,
    GEMINI_API_VERSION,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
)
from ..schemas.ats import FALLBACK_SCORE, ATSAnalysis
from ..utils.error_handlers import AIServiceError, get_error_message
from .ai_client import AIClientError, AIClientHTTPError, gemini_generate_content
from .ai_common import extract_first_json_object
from .ai_prompts import ats_check_prompt

logger = logging.getLogger(__name__)

_DEFAULT_ASSESSMENT = (
    "Your CV shows potential. Consider tailoring it more closely to the job requirements."
)


def fallback_analysis(raw_text: str) -> ATSAnalysis:
    """Generic advice used when the model answered but not with usable JSON."""
    return ATSAnalysis(
        score=FALLBACK_SCORE,
        match_analysis={
            "skillsMatch": FALLBACK_SCORE,
            "experienceRelevance": FALLBACK_SCORE,
            "educationAlignment": FALLBACK_SCORE,
            "keywordOptimization": FALLBACK_SCORE,
        },
        strengths=["Your CV has relevant experience"],
        improvements=["Add more keywords from the job description", "Highlight specific achievements"],
        missing_keywords=[],
        overall_assessment=(raw_text or "")[:200] or _DEFAULT_ASSESSMENT,
    )


def parse_ats_response(raw_text: str) -> tuple[ATSAnalysis, bool]:
    """Returns (analysis, used_fallback)."""
    try:
        obj = extract_first_json_object(raw_text)
        return ATSAnalysis.model_validate(obj), False
    except (ValueError, json.JSONDecodeError, PydanticValidationError) as e:
        logger.warning("ATS response parse failed (%s); using fallback analysis", type(e).__name__)
        return fallback_analysis(raw_text), True


async def check_cv_against_job(*, cv_text: str, job_description: str) -> dict[str, Any]:
    """
    Score ``cv_text`` against ``job_description`` with Gemini.

    Returns the camelCase analysis dict. Raises AIServiceError (503) when AI is
    not configured or the provider call fails.
    """
    if not GEMINI_API_KEY:
        raise AIServiceError(get_error_message("ai_not_configured"))

    prompt = ats_check_prompt(job_description=job_description, cv_text=cv_text)
    try:
        raw_text, call_meta = await gemini_generate_content(
            api_key=GEMINI_API_KEY,
            base_url=GEMINI_BASE_URL,
            api_version=GEMINI_API_VERSION,
            model=GEMINI_MODEL,
            prompt=prompt,
            temperature=0.0,
            timeout_s=AI_TIMEOUT_S,
            max_retries=AI_MAX_RETRIES,
            log_payloads=AI_LOG_PAYLOADS,
        )
    except AIClientHTTPError as e:
        logger.warning("ATS check failed: HTTP %s %s", e.status_code, e)
        raise AIServiceError(get_error_message("ai_unavailable"), details={"provider_status": e.status_code})
    except AIClientError as e:
        logger.warning("ATS check failed: %s", e)
        raise AIServiceError(get_error_message("ai_unavailable"))

    analysis, used_fallback = parse_ats_response(raw_text)
    logger.info(
        "ATS check score=%s fallback=%s latency_ms=%s",
        analysis.score,
        used_fallback,
        call_meta.latency_ms,
    )
    return analysis.model_dump(by_alias=True)
