from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Impact = Literal["high", "medium", "low"]
Effort = Literal["low", "medium", "high"]
SuggestionType = Literal["format", "structure", "keyword", "achievement", "ats", "content"]
ExportFormat = Literal["pdf", "docx", "txt", "md"]


class TargetJob(BaseModel):
    title: str = Field(default="", max_length=200)
    company: str | None = Field(default=None, max_length=200)
    keywords: str | None = Field(default=None, max_length=2000)
    description: str | None = Field(default=None, max_length=20000)


class ResumeAnalysisRequest(BaseModel):
    resume_text: str = Field(default="", max_length=50000)
    target_job: TargetJob | None = None
    template_id: str | None = Field(default=None, max_length=100)


class ResumeReanalysisRequest(ResumeAnalysisRequest):
    original_analysis_id: str | None = Field(default=None, max_length=100)


class OptimizationSuggestion(BaseModel):
    id: str
    type: SuggestionType
    title: str
    description: str
    impact: Impact
    effort: Effort | None = None
    suggestion: str
    priority: int = Field(ge=1, le=10)
    estimated_score_improvement: int = Field(ge=0, le=100)
    before_text: str = ""
    after_text: str = ""


class MatchedKeyword(BaseModel):
    keyword: str
    frequency: int
    relevance_score: float = 1.0
    context: list[str] = Field(default_factory=list)


class MissingKeyword(BaseModel):
    keyword: str
    importance: Impact
    suggested_placement: list[str] = Field(default_factory=list)
    related_terms: list[str] = Field(default_factory=list)


class KeywordAnalysis(BaseModel):
    score: int = Field(ge=0, le=100)
    total_keywords: int
    matched_keywords: list[MatchedKeyword]
    missing_keywords: list[MissingKeyword]
    keyword_density: dict[str, float] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)


class SectionScore(BaseModel):
    present: bool
    score: int = Field(ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)


class SectionAnalysis(BaseModel):
    contact: SectionScore
    summary: SectionScore
    experience: SectionScore
    education: SectionScore
    skills: SectionScore


class GrammarIssue(BaseModel):
    type: Literal["repetition", "spacing", "capitalization", "sentence_length", "passive_voice"]
    message: str
    excerpt: str = ""
    suggestion: str = ""


class GrammarCheck(BaseModel):
    score: int = Field(ge=0, le=100)
    total_issues: int
    issues: list[GrammarIssue] = Field(default_factory=list)
    overall_readability: int = Field(ge=0, le=100)


class SectionStructureItem(BaseModel):
    name: str
    present: bool
    order: int | None = None
    recommended: bool = True


class FormatAnalysis(BaseModel):
    score: int = Field(ge=0, le=100)
    ats_compatibility: int = Field(ge=0, le=100)
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    section_structure: list[SectionStructureItem] = Field(default_factory=list)


class QuantitativeAnalysis(BaseModel):
    score: int = Field(ge=0, le=100)
    achievements_with_numbers: int
    total_achievements: int
    suggestions: list[str] = Field(default_factory=list)
    impact_words: list[str] = Field(default_factory=list)


class AnalysisMetadata(BaseModel):
    analysis_date: datetime
    target_job_title: str
    target_company: str | None = None
    template_used: str | None = None
    original_analysis_id: str | None = None
    word_count: int
    processing_time_ms: int


class ResumeAnalysisResponse(BaseModel):
    id: str
    overall_score: int = Field(ge=0, le=100)
    ats_score: int = Field(ge=0, le=100)
    suggestions: list[OptimizationSuggestion]
    grammar_check: GrammarCheck
    format_analysis: FormatAnalysis
    quantitative_analysis: QuantitativeAnalysis
    created_at: datetime
    processing_time_ms: int
    strengths: list[str]
    weaknesses: list[str]
    keyword_analysis: KeywordAnalysis
    section_analysis: SectionAnalysis
    optimized_content: str
    metadata: AnalysisMetadata


class SaveAnalysisRequest(BaseModel):
    analysis_result: dict[str, Any] | None = None
    user_id: str | None = Field(default=None, max_length=100)


class SaveAnalysisResponse(BaseModel):
    saved: bool
    analysis_id: str


class SavedAnalysis(BaseModel):
    analysis_id: str
    user_id: str | None = None
    overall_score: float
    ats_score: float | None = None
    target_job_title: str | None = None
    analysis_result: dict[str, Any]
    saved_at: datetime


class DeleteAnalysisResponse(BaseModel):
    deleted: bool


class ExportRequest(BaseModel):
    resume_text: str = Field(default="", max_length=50000)
    format: str = "pdf"
    template: str | None = Field(default=None, max_length=50)
    file_name: str | None = Field(default=None, max_length=120)


class ExportInfo(BaseModel):
    supported_formats: list[str]
    available_templates: list[str]
    max_file_size: str


class ExtractTextResponse(BaseModel):
    text: str
    truncated: bool
    file_name: str
    file_size: int
    file_size_label: str
    file_type_label: str
    source_type: str
    page_count: int | None = None
    word_count: int
    character_count: int
    extraction_time_ms: int
    warnings: list[str] = Field(default_factory=list)
