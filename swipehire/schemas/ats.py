from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Impact = Literal["high", "medium", "low"]
ExperienceLevel = Literal["entry", "mid", "senior", "executive"]


class ATSAnalysisRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=50000)
    target_role: str | None = Field(default=None, max_length=200)
    target_industry: str | None = Field(default=None, max_length=100)
    job_description: str | None = Field(default=None, max_length=20000)
    experience_level: ExperienceLevel | None = None


class ATSSectionScore(BaseModel):
    score: int = Field(ge=0, le=100)
    max_score: int = 100
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    impact: Impact


class ATSSections(BaseModel):
    formatting: ATSSectionScore
    keywords: ATSSectionScore
    structure: ATSSectionScore
    readability: ATSSectionScore
    contact: ATSSectionScore


class ATSSuggestion(BaseModel):
    id: str
    type: Literal["format", "keyword", "structure", "content"]
    severity: Literal["critical", "important", "suggestion"]
    description: str
    before: str = ""
    after: str = ""
    impact: int = Field(ge=0, le=100)
    reasoning: str = ""


class IndustryComplianceScore(BaseModel):
    industry: str
    score: int = Field(ge=0, le=100)
    specific_requirements: list[str] = Field(default_factory=list)
    missing_elements: list[str] = Field(default_factory=list)


class RiskFactor(BaseModel):
    factor: str
    risk: Impact
    description: str
    solution: str


class OptimizationTip(BaseModel):
    category: str
    tip: str
    expected_improvement: int
    difficulty: Literal["easy", "medium", "hard"]


class ATSCompatibilityResult(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    sections: ATSSections
    suggestions: list[ATSSuggestion] = Field(default_factory=list)
    industry_compliance: list[IndustryComplianceScore] = Field(default_factory=list)
    passed_checks: list[str] = Field(default_factory=list)
    failed_checks: list[str] = Field(default_factory=list)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    optimization_tips: list[OptimizationTip] = Field(default_factory=list)
    fallback: bool = False
