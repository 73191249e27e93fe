import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx


logger = logging.getLogger(__name__)

# Rate limits and transient upstream failures are worth another attempt.
_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class AIClientError(RuntimeError):
    pass


class AIClientTimeout(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class GeminiCallMeta:
    model: str
    latency_ms: int
    status_code: int | None
    retries: int


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


def _generate_url(base_url: str, api_version: str, model: str) -> str:
    base = (base_url or "").rstrip("/")
    api_v = (api_version or "v1beta").strip().strip("/")
    model_path = model.strip()
    if model_path.startswith("models/"):
        model_path = model_path[len("models/") :]
    return f"{base}/{api_v}/models/{model_path}:generateContent"


def _response_text(data: dict[str, Any]) -> str:
    # { candidates: [ { content: { parts: [ { text: "..." }, ... ] } } ], ... }
    candidates = data.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict)).strip()


async def gemini_generate_content(
    *,
    api_key: str | None,
    base_url: str,
    api_version: str = "v1beta",
    model: str,
    prompt: str,
    temperature: float = 0.0,
    timeout_s: float = 30.0,
    max_retries: int = 1,
    log_payloads: bool = False,
) -> tuple[str, GeminiCallMeta]:
    """
    Single-prompt call to the Gemini Generative Language API; returns the model text.

    POST {base_url}/{api_version}/models/{model}:generateContent, authenticated
    with the ``x-goog-api-key`` header. Timeouts, network errors and retryable
    HTTP statuses are retried with exponential backoff.
    """
    if not api_key:
        raise AIClientError("Missing GEMINI_API_KEY")
    if not model:
        raise AIClientError("Missing GEMINI_MODEL")

    url = _generate_url(base_url, api_version, model)
    body = {
        "contents": [{"role": "user", "parts": [{"text": prompt or ""}]}],
        "generationConfig": {"temperature": float(temperature)},
    }
    headers = {"x-goog-api-key": api_key, "content-type": "application/json"}

    start = time.perf_counter()
    last_status: int | None = None

    for attempt in range(max_retries + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout_s) as client:
                if log_payloads:
                    logger.info(
                        "Gemini request model=%s url=%s body=%s",
                        model,
                        url,
                        _safe_truncate(json.dumps(body, ensure_ascii=False)),
                    )
                r = await client.post(url, json=body, headers=headers)
            last_status = r.status_code

            if r.status_code >= 400:
                if r.status_code in _RETRYABLE_STATUS and attempt < max_retries:
                    backoff = 0.5 * (2**attempt)
                    logger.warning("Gemini HTTP %s; retrying in %.1fs", r.status_code, backoff)
                    await asyncio.sleep(backoff)
                    continue
                raise AIClientHTTPError(status_code=r.status_code, message=_safe_truncate(r.text, 1000))

            meta = GeminiCallMeta(
                model=model,
                latency_ms=int((time.perf_counter() - start) * 1000),
                status_code=r.status_code,
                retries=attempt,
            )
            logger.info(
                "Gemini ok model=%s status=%s latency_ms=%s retries=%s",
                meta.model,
                meta.status_code,
                meta.latency_ms,
                meta.retries,
            )
            return _response_text(r.json() or {}), meta
        except (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.PoolTimeout):
            if attempt < max_retries:
                backoff = 0.5 * (2**attempt)
                logger.warning("Gemini timeout; retrying in %.1fs", backoff)
                await asyncio.sleep(backoff)
                continue
            raise AIClientTimeout("Gemini request timed out") from None
        except httpx.RequestError as e:
            if attempt < max_retries:
                backoff = 0.5 * (2**attempt)
                logger.warning("Gemini network error (%s); retrying in %.1fs", type(e).__name__, backoff)
                await asyncio.sleep(backoff)
                continue
            raise AIClientError(f"Gemini request failed: {type(e).__name__}") from e

    raise AIClientError(f"Gemini request failed after {max_retries + 1} attempts (last status {last_status})")
