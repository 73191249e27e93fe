from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

FALLBACK_SCORE = 70


def _clamp_percent(v: Any, default: int) -> int:
    try:
        v2 = int(float(v))
    except (TypeError, ValueError):
        return default
    if v2 < 0:
        return 0
    if v2 > 100:
        return 100
    return v2


def _string_list(v: Any) -> list[str]:
    if not isinstance(v, list):
        return []
    return [str(x).strip() for x in v if str(x).strip()]


class ATSMatchAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    skills_match: int = Field(default=0, alias="skillsMatch")
    experience_relevance: int = Field(default=0, alias="experienceRelevance")
    education_alignment: int = Field(default=0, alias="educationAlignment")
    keyword_optimization: int = Field(default=0, alias="keywordOptimization")

    @field_validator("*", mode="before")
    @classmethod
    def _clamp(cls, v: Any) -> int:
        return _clamp_percent(v, 0)


class ATSAnalysis(BaseModel):
    """Gemini's ATS verdict; serialized with camelCase keys via ``by_alias=True``."""

    model_config = ConfigDict(populate_by_name=True)

    score: int = FALLBACK_SCORE
    match_analysis: ATSMatchAnalysis = Field(default_factory=ATSMatchAnalysis, alias="matchAnalysis")
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list, alias="missingKeywords")
    overall_assessment: str = Field(default="", alias="overallAssessment")

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, v: Any) -> int:
        return _clamp_percent(v, FALLBACK_SCORE)

    @field_validator("match_analysis", mode="before")
    @classmethod
    def _analysis_object(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("strengths", "improvements", "missing_keywords", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> list[str]:
        return _string_list(v)

    @field_validator("overall_assessment", mode="before")
    @classmethod
    def _assessment(cls, v: Any) -> str:
        return str(v).strip() if v is not None else ""
