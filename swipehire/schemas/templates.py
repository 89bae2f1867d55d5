from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ExperienceLevel = Literal["entry", "mid", "senior", "executive"]


class IndustryTemplate(BaseModel):
    id: str
    name: str
    industry: str
    category: str
    experience_level: list[ExperienceLevel] = Field(default_factory=lambda: ["entry", "mid"])
    description: str = ""
    features: list[str] = Field(default_factory=list)
    ats_score: int = Field(default=85, ge=0, le=100)
    popularity: float = Field(default=0, ge=0, le=5)
    usage_count: int = Field(default=0, ge=0)
    preview_url: str = "/templates/previews/default.png"
    tags: list[str] = Field(default_factory=list)
    ai_optimized: bool = False
    customizable: bool = True
    sections: list[str] = Field(default_factory=lambda: ["contact", "summary", "experience", "education", "skills"])
    layout: str = "standard"
    color_scheme: str = "blue"
    typography: str = "modern"


class TemplateCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    industry: str = Field(min_length=1, max_length=60)
    category: str = Field(min_length=1, max_length=60)
    experience_level: list[ExperienceLevel] | None = None
    description: str = Field(default="", max_length=1000)
    features: list[str] = Field(default_factory=list, max_length=20)
    ats_score: int = Field(default=85, ge=0, le=100)
    preview_url: str | None = Field(default=None, max_length=300)
    tags: list[str] = Field(default_factory=list, max_length=20)
    ai_optimized: bool = False
    customizable: bool = True
    sections: list[str] | None = None
    layout: str = "standard"
    color_scheme: str = "blue"
    typography: str = "modern"


class FacetCount(BaseModel):
    value: str
    count: int
    selected: bool = False


class TemplateFacets(BaseModel):
    industries: list[FacetCount]
    experience_level: list[FacetCount]
    features: list[FacetCount]
    layouts: list[FacetCount]


class TemplateCategory(BaseModel):
    id: str
    name: str
    count: int


class SkillBucket(BaseModel):
    matched: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    recommended: list[str] = Field(default_factory=list)


class SkillsAlignment(BaseModel):
    technical_skills: SkillBucket = Field(default_factory=SkillBucket)
    soft_skills: SkillBucket = Field(default_factory=SkillBucket)
    industry_specific: SkillBucket = Field(default_factory=SkillBucket)


class ExpectedImprovements(BaseModel):
    ats_score: float = Field(ge=0, le=30)
    interview_rate: float = Field(ge=0, le=50)
    response_rate: float = Field(ge=0, le=60)


class AITemplateRecommendation(BaseModel):
    template_id: str
    confidence: float = Field(ge=0, le=1)
    reasoning: str
    expected_improvements: ExpectedImprovements
    customization_suggestions: list[str] = Field(default_factory=list)
    industry_alignment: float = Field(ge=0, le=1)
    role_alignment: float = Field(ge=0, le=1)
    experience_alignment: float = Field(ge=0, le=1)
    skills_alignment: SkillsAlignment = Field(default_factory=SkillsAlignment)


class SmartTemplateRecommendations(BaseModel):
    primary: list[AITemplateRecommendation] = Field(default_factory=list)
    alternatives: list[AITemplateRecommendation] = Field(default_factory=list)
    trending: list[AITemplateRecommendation] = Field(default_factory=list)
    personalized: list[AITemplateRecommendation] = Field(default_factory=list)
    industry_specific: list[AITemplateRecommendation] = Field(default_factory=list)


class TemplateSearchResult(BaseModel):
    templates: list[IndustryTemplate]
    total_count: int
    page: int
    limit: int
    has_more: bool
    facets: TemplateFacets
    suggestions: list[str] = Field(default_factory=list)
    ai_recommendations: SmartTemplateRecommendations | None = None


class TemplatePreferences(BaseModel):
    preferred_industries: list[str] = Field(default_factory=list)
    preferred_roles: list[str] = Field(default_factory=list)
    layouts: list[str] = Field(default_factory=list)
    color_schemes: list[str] = Field(default_factory=list)
    typography: list[str] = Field(default_factory=list)


class UserProfile(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)
    role: str | None = Field(default=None, max_length=200)
    industry: str | None = Field(default=None, max_length=100)
    experience_level: ExperienceLevel | None = None
    skills: list[str] = Field(default_factory=list, max_length=100)
    preferences: TemplatePreferences | None = None


class RecommendationRequest(BaseModel):
    user_profile: UserProfile
    target_role: str = Field(min_length=1, max_length=200)
    target_industry: str = Field(min_length=1, max_length=100)
    experience_level: ExperienceLevel
    job_description: str | None = Field(default=None, max_length=20000)
    preferences: TemplatePreferences | None = None


class CompatibilityRequest(BaseModel):
    target_role: str = Field(min_length=1, max_length=200)
    target_industry: str = Field(min_length=1, max_length=100)
    experience_level: ExperienceLevel


class CompatibilityResponse(BaseModel):
    template_id: str
    score: float = Field(ge=0, le=100)


class TemplateOptimizeRequest(BaseModel):
    user_profile: UserProfile
    target_role: str = Field(min_length=1, max_length=200)
    target_industry: str = Field(min_length=1, max_length=100)


class TemplateOptimizeResponse(BaseModel):
    optimized_template: IndustryTemplate
    optimizations: list[str]


class TemplateGenerationRequest(BaseModel):
    user_profile: UserProfile
    target_role: str = Field(min_length=1, max_length=200)
    target_industry: str = Field(min_length=1, max_length=100)
    experience_level: ExperienceLevel
    preferences: dict[str, Any] = Field(default_factory=dict)
    content: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, bool] = Field(default_factory=dict)


class TemplateGenerationResponse(BaseModel):
    templates: list[IndustryTemplate]
    recommendations: list[AITemplateRecommendation]
    customizations: list[dict[str, Any]]
    processing_time_ms: int
    confidence: float = Field(ge=0, le=1)
