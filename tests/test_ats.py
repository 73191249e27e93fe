import pytest

from backend.jobboard.schemas.ats import ATSAnalysis
from backend.jobboard.services import ats as ats_service
from backend.jobboard.services.ai_client import AIClientHTTPError, AIClientTimeout, GeminiCallMeta
from backend.jobboard.services.ai_common import extract_first_json_object
from backend.jobboard.services.resume_text import MAX_CV_TEXT_CHARS, clean_text, extract_cv_text


GOOD_RESPONSE = """```json
{
  "score": 82,
  "matchAnalysis": {"skillsMatch": 90, "experienceRelevance": 75, "educationAlignment": 60, "keywordOptimization": 140},
  "strengths": ["Strong Python background", ""],
  "improvements": ["Mention Kubernetes"],
  "missingKeywords": ["Kubernetes"],
  "overallAssessment": "Good fit."
}
```"""


def _fake_gemini(text: str, calls: list | None = None):
    async def fake(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        return text, GeminiCallMeta(model=kwargs["model"], latency_ms=5, status_code=200, retries=0)

    return fake


def _post_check(client, headers, *, filename="cv.txt", data=b"Python developer, 5 years", content_type="text/plain", description="Python engineer"):
    form = {} if description is None else {"jobDescription": description}
    return client.post(
        "/ats/check",
        headers=headers,
        files={"cv": (filename, data, content_type)},
        data=form,
    )


def test_extract_first_json_object_variants():
    assert extract_first_json_object('{"a": 1}') == {"a": 1}
    assert extract_first_json_object('```json\n{"a": 2}\n```') == {"a": 2}
    assert extract_first_json_object('Sure! Here you go: {"a": 3} hope it helps') == {"a": 3}
    with pytest.raises(ValueError):
        extract_first_json_object("no json here")


def test_analysis_schema_clamps_and_cleans():
    a = ATSAnalysis.model_validate(
        {
            "score": "150",
            "matchAnalysis": {"skillsMatch": -4, "experienceRelevance": "n/a"},
            "strengths": "not a list",
            "missingKeywords": [" Docker ", ""],
        }
    )
    assert a.score == 100
    assert a.match_analysis.skills_match == 0
    assert a.match_analysis.experience_relevance == 0
    assert a.strengths == []
    assert a.missing_keywords == ["Docker"]

    assert ATSAnalysis.model_validate({"score": None}).score == 70


def test_parse_ats_response_falls_back_on_prose():
    analysis, used_fallback = ats_service.parse_ats_response("The candidate looks decent overall.")
    assert used_fallback is True
    assert analysis.score == 70
    assert analysis.overall_assessment == "The candidate looks decent overall."
    assert analysis.improvements


def test_clean_text_and_plain_extraction():
    assert clean_text("devel-\nopment   team\r\n\n\n\nnext") == "development team\n\nnext"
    assert extract_cv_text(b"Hello   CV", ext=".txt") == "Hello CV"
    # A broken PDF still yields its raw bytes as text.
    assert "not really a pdf" in extract_cv_text(b"not really a pdf", ext=".pdf")
    assert len(extract_cv_text(b"a" * (MAX_CV_TEXT_CHARS + 50), ext=".txt")) == MAX_CV_TEXT_CHARS


def test_ats_check_returns_analysis(client, candidate, monkeypatch):
    calls: list = []
    monkeypatch.setattr(ats_service, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(ats_service, "gemini_generate_content", _fake_gemini(GOOD_RESPONSE, calls))

    r = _post_check(client, candidate["headers"])
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    analysis = body["analysis"]
    assert analysis["score"] == 82
    assert analysis["matchAnalysis"]["keywordOptimization"] == 100
    assert analysis["strengths"] == ["Strong Python background"]
    assert analysis["missingKeywords"] == ["Kubernetes"]

    assert len(calls) == 1
    assert calls[0]["api_key"] == "test-key"
    assert "Python engineer" in calls[0]["prompt"]
    assert "Python developer, 5 years" in calls[0]["prompt"]


def test_ats_check_extracts_text_off_the_event_loop(client, candidate, monkeypatch):
    from backend.jobboard.api import ats as ats_api

    offloaded: list = []
    real = ats_api.run_in_threadpool

    async def recording_threadpool(func, *args, **kwargs):
        offloaded.append(func)
        return await real(func, *args, **kwargs)

    monkeypatch.setattr(ats_api, "run_in_threadpool", recording_threadpool)
    monkeypatch.setattr(ats_service, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(ats_service, "gemini_generate_content", _fake_gemini(GOOD_RESPONSE))

    r = _post_check(client, candidate["headers"])
    assert r.status_code == 200, r.text
    assert offloaded == [ats_api.extract_cv_text]


def test_ats_check_fallback_when_model_returns_prose(client, candidate, monkeypatch):
    monkeypatch.setattr(ats_service, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(ats_service, "gemini_generate_content", _fake_gemini("I cannot produce JSON today."))

    r = _post_check(client, candidate["headers"])
    assert r.status_code == 200, r.text
    assert r.json()["analysis"]["score"] == 70


def test_ats_check_not_configured(client, candidate, monkeypatch):
    monkeypatch.setattr(ats_service, "GEMINI_API_KEY", "")

    r = _post_check(client, candidate["headers"])
    assert r.status_code == 503
    assert r.json()["error"] == "AI analysis is not configured on this server."


def test_ats_check_provider_failures_map_to_503(client, candidate, monkeypatch):
    monkeypatch.setattr(ats_service, "GEMINI_API_KEY", "test-key")

    async def http_error(**kwargs):
        raise AIClientHTTPError(status_code=429, message="quota exceeded")

    monkeypatch.setattr(ats_service, "gemini_generate_content", http_error)
    r = _post_check(client, candidate["headers"])
    assert r.status_code == 503
    assert r.json()["details"] == {"provider_status": 429}

    async def timeout(**kwargs):
        raise AIClientTimeout("timed out")

    monkeypatch.setattr(ats_service, "gemini_generate_content", timeout)
    r = _post_check(client, candidate["headers"])
    assert r.status_code == 503
    assert r.json()["error"].startswith("AI analysis is temporarily unavailable")


def test_ats_check_input_validation(client, candidate, monkeypatch):
    monkeypatch.setattr(ats_service, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(ats_service, "gemini_generate_content", _fake_gemini(GOOD_RESPONSE))

    r = _post_check(client, candidate["headers"], description="   ")
    assert r.status_code == 400
    assert r.json()["error"] == "Job description is required"

    r = _post_check(client, candidate["headers"], description=None)
    assert r.status_code == 400

    r = _post_check(client, candidate["headers"], filename="cv.png", content_type="image/png")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid file type. Only PDF, DOC, DOCX, and TXT files are allowed."

    r = client.post("/ats/check", headers=candidate["headers"], data={"jobDescription": "Python"})
    assert r.status_code == 400
    assert r.json()["error"] == "CV file is required"


def test_ats_check_too_large(client, candidate, monkeypatch):
    from backend.jobboard.api import ats as ats_api

    monkeypatch.setattr(ats_api, "MAX_ATS_BYTES", 8)
    r = _post_check(client, candidate["headers"], data=b"x" * 32)
    assert r.status_code == 413


def test_ats_check_requires_auth(client):
    r = client.post("/ats/check", files={"cv": ("cv.txt", b"x", "text/plain")}, data={"jobDescription": "x"})
    assert r.status_code == 401
