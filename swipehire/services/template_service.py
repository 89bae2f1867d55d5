from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from collections import Counter
from typing import Any

from swipehire.core.scoring import get_scoring_value, load_config_file
from swipehire.schemas.templates import (
    AITemplateRecommendation,
    ExpectedImprovements,
    FacetCount,
    IndustryTemplate,
    SkillBucket,
    SkillsAlignment,
    SmartTemplateRecommendations,
    TemplateCategory,
    TemplateCreateRequest,
    TemplateFacets,
    TemplateGenerationRequest,
    TemplateGenerationResponse,
    TemplatePreferences,
    UserProfile,
)
from swipehire.services.llm import (
    LLMServiceError,
    clamp_float,
    json_completion,
    json_completion_required,
    safe_str,
    safe_str_list,
)

logger = logging.getLogger(__name__)

_RECOMMENDATION_SCHEMA = (
    'Return strict JSON: {"recommendations": [{"template_id": string, "confidence": 0-1, '
    '"reasoning": string, "expected_improvements": {"ats_score": 0-30, "interview_rate": 0-50, '
    '"response_rate": 0-60}, "customization_suggestions": [string], "industry_alignment": 0-1, '
    '"role_alignment": 0-1, "experience_alignment": 0-1, "skills_alignment": {"technical_skills": '
    '{"matched": [], "missing": [], "recommended": []}, "soft_skills": {...}, "industry_specific": {...}}}]}. '
    "Only use template ids from the list provided."
)

_DEFAULT_CUSTOMIZATIONS = [
    "Customize colors to match your personal brand",
    "Adjust sections based on your experience",
    "Optimize keywords for your target role",
]


class TemplateGenerationError(RuntimeError):
    def __init__(self, message: str, *, code: str = "template_generation_failed"):
        super().__init__(message)
        self.code = code


class TemplateCatalog:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._templates: list[IndustryTemplate] = []
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        raw = load_config_file("templates").get("templates") or []
        self._templates = [IndustryTemplate.model_validate(item) for item in raw]
        self._loaded = True

    def reset(self) -> None:
        with self._lock:
            self._templates = []
            self._loaded = False

    def all(self) -> list[IndustryTemplate]:
        with self._lock:
            self._ensure_loaded()
            return list(self._templates)

    def get(self, template_id: str) -> IndustryTemplate | None:
        for template in self.all():
            if template.id == template_id:
                return template
        return None

    def add(self, template: IndustryTemplate) -> None:
        with self._lock:
            self._ensure_loaded()
            self._templates.append(template)


catalog = TemplateCatalog()


def _facet(values: list[str]) -> list[FacetCount]:
    counts = Counter(values)
    return [FacetCount(value=value, count=count) for value, count in counts.most_common()]


def build_facets(templates: list[IndustryTemplate]) -> TemplateFacets:
    return TemplateFacets(
        industries=_facet([t.industry for t in templates]),
        experience_level=_facet([level for t in templates for level in t.experience_level]),
        features=_facet([feature for t in templates for feature in t.features]),
        layouts=_facet([t.layout for t in templates]),
    )


def search_suggestions(query: str, templates: list[IndustryTemplate]) -> list[str]:
    if not query or len(query) < 2:
        return []
    needle = query.lower()
    output: list[str] = []
    for template in templates:
        candidates = [template.industry, *template.tags, template.name]
        for candidate in candidates:
            if needle in candidate.lower() and candidate not in output:
                output.append(candidate)
    return output[:5]


def search_templates(
    *,
    search: str = "",
    industry: str | None = None,
    experience_level: str | None = None,
    category: str | None = None,
    min_ats_score: int = 0,
    ai_optimized: bool = False,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[IndustryTemplate], int, TemplateFacets, list[str]]:
    everything = catalog.all()
    items = everything
    if search:
        needle = search.lower()
        items = [
            t
            for t in items
            if needle in t.name.lower()
            or needle in t.description.lower()
            or needle in t.industry.lower()
            or any(needle in tag.lower() for tag in t.tags)
        ]
    if industry:
        items = [t for t in items if t.industry == industry]
    if experience_level:
        items = [t for t in items if experience_level in t.experience_level]
    if category:
        items = [t for t in items if t.category == category]
    if min_ats_score > 0:
        items = [t for t in items if t.ats_score >= min_ats_score]
    if ai_optimized:
        items = [t for t in items if t.ai_optimized]

    items = sorted(items, key=lambda t: t.popularity * 0.6 + t.ats_score * 0.004, reverse=True)
    start = (page - 1) * limit
    return items[start : start + limit], len(items), build_facets(everything), search_suggestions(search, everything)


def list_categories() -> list[TemplateCategory]:
    counts = Counter(t.category for t in catalog.all())
    return [
        TemplateCategory(id=name, name=name.replace("-", " ").title(), count=count)
        for name, count in sorted(counts.items())
    ]


def create_template(request: TemplateCreateRequest) -> IndustryTemplate:
    data = request.model_dump(exclude_none=True)
    template = IndustryTemplate(id=f"template_{uuid.uuid4().hex[:12]}", popularity=0, usage_count=0, **data)
    catalog.add(template)
    logger.info("template_created id=%s industry=%s", template.id, template.industry)
    return template


def _recommendation(
    template: IndustryTemplate,
    *,
    confidence: float,
    reasoning: str,
    improvements: tuple[float, float, float],
    suggestions: list[str],
    industry_alignment: float,
    role_alignment: float,
    experience_alignment: float,
) -> AITemplateRecommendation:
    return AITemplateRecommendation(
        template_id=template.id,
        confidence=round(confidence, 2),
        reasoning=reasoning,
        expected_improvements=ExpectedImprovements(
            ats_score=improvements[0], interview_rate=improvements[1], response_rate=improvements[2]
        ),
        customization_suggestions=suggestions,
        industry_alignment=industry_alignment,
        role_alignment=role_alignment,
        experience_alignment=experience_alignment,
    )


def basic_recommendations(
    templates: list[IndustryTemplate],
    industry: str,
    experience_level: str,
    count: int = 3,
) -> list[AITemplateRecommendation]:
    candidates = [
        t for t in templates if t.industry == industry or experience_level in t.experience_level or t.ats_score >= 90
    ]
    candidates.sort(key=lambda t: t.ats_score, reverse=True)
    return [
        _recommendation(
            template,
            confidence=0.7 - index * 0.1,
            reasoning=f"High-performing template with {template.ats_score}% ATS score",
            improvements=(10, 15, 20),
            suggestions=[
                "Customize for your specific role",
                "Add relevant keywords",
                "Highlight your key achievements",
            ],
            industry_alignment=1.0 if template.industry == industry else 0.7,
            role_alignment=0.8,
            experience_alignment=1.0 if experience_level in template.experience_level else 0.7,
        )
        for index, template in enumerate(candidates[:count])
    ]


def _skill_bucket(raw: Any) -> SkillBucket:
    if not isinstance(raw, dict):
        return SkillBucket()
    return SkillBucket(
        matched=safe_str_list(raw.get("matched"), max_items=10, max_len=60),
        missing=safe_str_list(raw.get("missing"), max_items=10, max_len=60),
        recommended=safe_str_list(raw.get("recommended"), max_items=10, max_len=60),
    )


def validate_recommendations(raw_items: Any, templates: list[IndustryTemplate]) -> list[AITemplateRecommendation]:
    """Drop unknown templates and low-confidence entries, clamp every numeric field."""
    if not isinstance(raw_items, list):
        return []
    known = {t.id for t in templates}
    min_confidence = float(get_scoring_value("templates.min_confidence", 0.5))
    clamp = get_scoring_value("templates.clamp", {}) or {}
    output: list[AITemplateRecommendation] = []
    for raw in raw_items:
        if not isinstance(raw, dict) or raw.get("template_id") not in known:
            continue
        confidence = clamp_float(raw.get("confidence"), 0.0, 0.0, 1.0)
        if confidence < min_confidence:
            continue
        improvements = raw.get("expected_improvements") if isinstance(raw.get("expected_improvements"), dict) else {}
        skills = raw.get("skills_alignment") if isinstance(raw.get("skills_alignment"), dict) else {}
        output.append(
            AITemplateRecommendation(
                template_id=raw["template_id"],
                confidence=confidence,
                reasoning=safe_str(raw.get("reasoning"), max_len=600) or "AI-generated recommendation",
                expected_improvements=ExpectedImprovements(
                    ats_score=clamp_float(improvements.get("ats_score"), 10, 0, float(clamp.get("ats_improvement", 30))),
                    interview_rate=clamp_float(
                        improvements.get("interview_rate"), 15, 0, float(clamp.get("interview_rate_increase", 50))
                    ),
                    response_rate=clamp_float(
                        improvements.get("response_rate"), 20, 0, float(clamp.get("response_rate_increase", 60))
                    ),
                ),
                customization_suggestions=safe_str_list(raw.get("customization_suggestions"), max_items=5)
                or list(_DEFAULT_CUSTOMIZATIONS),
                industry_alignment=clamp_float(raw.get("industry_alignment"), 0.8, 0.0, 1.0),
                role_alignment=clamp_float(raw.get("role_alignment"), 0.8, 0.0, 1.0),
                experience_alignment=clamp_float(raw.get("experience_alignment"), 0.8, 0.0, 1.0),
                skills_alignment=SkillsAlignment(
                    technical_skills=_skill_bucket(skills.get("technical_skills")),
                    soft_skills=_skill_bucket(skills.get("soft_skills")),
                    industry_specific=_skill_bucket(skills.get("industry_specific")),
                ),
            )
        )
    output.sort(key=lambda item: item.confidence, reverse=True)
    return output


def _ask_for_recommendations(feature: str, prompt: str, templates: list[IndustryTemplate], temperature: float) -> list[AITemplateRecommendation]:
    payload = json_completion(
        system_prompt="You recommend resume templates for job seekers. " + _RECOMMENDATION_SCHEMA,
        user_prompt=prompt,
        temperature=temperature,
        max_output_tokens=1500,
        feature=feature,
        required_keys=("recommendations",),
    )
    return validate_recommendations(payload.get("recommendations") if payload else None, templates)


def _template_lines(templates: list[IndustryTemplate]) -> str:
    return "\n".join(
        f"- {t.id}: {t.name} | industry={t.industry} | category={t.category} | levels={','.join(t.experience_level)} "
        f"| ats={t.ats_score}% | layout={t.layout} | features={', '.join(t.features)} | tags={', '.join(t.tags)}"
        for t in templates
    )


def _profile_lines(profile: UserProfile, experience_level: str) -> str:
    return (
        f"Current role: {profile.role or 'Not specified'}\n"
        f"Industry: {profile.industry or 'Not specified'}\n"
        f"Experience level: {profile.experience_level or experience_level}\n"
        f"Skills: {', '.join(profile.skills) or 'Not specified'}"
    )


def primary_recommendations(
    profile: UserProfile, role: str, industry: str, level: str, templates: list[IndustryTemplate]
) -> list[AITemplateRecommendation]:
    prompt = (
        f"User profile:\n{_profile_lines(profile, level)}\n\n"
        f"Target job: {role} in {industry} ({level} level)\n\n"
        f"Available templates:\n{_template_lines(templates)}\n\n"
        "Rank by industry and role alignment, experience level match, ATS score, feature relevance "
        "and skill alignment. Return the top 3."
    )
    return _ask_for_recommendations("template_primary", prompt, templates, 0.3) or basic_recommendations(
        templates, industry, level, 3
    )


def alternative_recommendations(
    profile: UserProfile, role: str, industry: str, templates: list[IndustryTemplate]
) -> list[AITemplateRecommendation]:
    prompt = (
        f"User profile:\n{_profile_lines(profile, 'mid')}\n\nTarget: {role} in {industry}\n\n"
        f"Available templates:\n{_template_lines(templates)}\n\n"
        "Suggest 2-3 alternatives with a different approach: other layout styles, creative vs conservative, "
        "different feature sets."
    )
    return _ask_for_recommendations("template_alternatives", prompt, templates, 0.4) or basic_recommendations(
        templates, industry, "mid", 2
    )


def trending_recommendations(industry: str, level: str, templates: list[IndustryTemplate]) -> list[AITemplateRecommendation]:
    trending = get_scoring_value("templates.trending", {}) or {}
    candidates = [
        t
        for t in templates
        if t.popularity >= float(trending.get("min_popularity", 4.5)) and t.usage_count > int(trending.get("min_usage", 5000))
    ]
    candidates.sort(key=lambda t: t.popularity, reverse=True)
    return [
        _recommendation(
            template,
            confidence=float(trending.get("confidence", 0.8)),
            reasoning=f"Trending template with {template.popularity}/5 rating and {template.usage_count:,} downloads",
            improvements=(10, 15, 20),
            suggestions=[
                "Leverage current design trends",
                "Optimize for modern ATS systems",
                "Include trending industry keywords",
            ],
            industry_alignment=1.0 if template.industry == industry else 0.7,
            role_alignment=0.8,
            experience_alignment=1.0 if level in template.experience_level else 0.6,
        )
        for template in candidates[: int(trending.get("limit", 3))]
    ]


def personalized_recommendations(
    preferences: TemplatePreferences | None, templates: list[IndustryTemplate]
) -> list[AITemplateRecommendation]:
    if preferences is None:
        return basic_recommendations(templates, "technology", "mid", 2)
    matches = [
        t
        for t in templates
        if t.industry in preferences.preferred_industries
        or t.layout in preferences.layouts
        or t.color_scheme in preferences.color_schemes
    ]
    return [
        _recommendation(
            template,
            confidence=0.85,
            reasoning="Matches your personal preferences and past template choices",
            improvements=(12, 18, 22),
            suggestions=[
                "Customize with your preferred color scheme",
                "Adjust layout to match your style",
                "Include your preferred sections",
            ],
            industry_alignment=0.9,
            role_alignment=0.8,
            experience_alignment=0.9,
        )
        for template in matches[:3]
    ]


def industry_recommendations(industry: str, role: str, templates: list[IndustryTemplate]) -> list[AITemplateRecommendation]:
    relevant = [t for t in templates if t.industry == industry or any(industry in tag for tag in t.tags)]
    if relevant:
        prompt = (
            f"Recommend templates for a {role} in {industry}.\n\nAvailable templates:\n"
            + "\n".join(f"- {t.id}: {t.name} - {t.description}" for t in relevant)
            + f"\n\nConsider {industry} hiring practices, common ATS systems and industry terminology. "
            "Return 2-3 recommendations."
        )
        recommendations = _ask_for_recommendations("template_industry", prompt, templates, 0.3)
        if recommendations:
            return recommendations

    return [
        _recommendation(
            template,
            confidence=0.75,
            reasoning=f"Optimized for {industry} industry standards and requirements",
            improvements=(15, 20, 25),
            suggestions=[
                f"Include {industry}-specific keywords",
                "Highlight relevant industry experience",
                "Use industry-standard formatting",
            ],
            industry_alignment=1.0,
            role_alignment=0.8,
            experience_alignment=0.8,
        )
        for template in [t for t in templates if t.industry == industry][:2]
    ]


def fallback_recommendations(templates: list[IndustryTemplate], industry: str, level: str) -> SmartTemplateRecommendations:
    basic = basic_recommendations(templates, industry, level, 2)
    return SmartTemplateRecommendations(
        primary=basic,
        alternatives=basic[:1],
        trending=basic[:1],
        personalized=basic[:1],
        industry_specific=basic[:1],
    )


def generate_recommendations(
    profile: UserProfile,
    target_role: str,
    target_industry: str,
    experience_level: str,
    templates: list[IndustryTemplate] | None = None,
) -> SmartTemplateRecommendations:
    templates = templates if templates is not None else catalog.all()
    started = time.perf_counter()
    try:
        result = SmartTemplateRecommendations(
            primary=primary_recommendations(profile, target_role, target_industry, experience_level, templates),
            alternatives=alternative_recommendations(profile, target_role, target_industry, templates),
            trending=trending_recommendations(target_industry, experience_level, templates),
            personalized=personalized_recommendations(profile.preferences, templates),
            industry_specific=industry_recommendations(target_industry, target_role, templates),
        )
    except Exception:
        logger.exception("template_recommendations_failed industry=%s", target_industry)
        return fallback_recommendations(templates, target_industry, experience_level)
    logger.info(
        "template_recommendations_ready industry=%s level=%s elapsed_ms=%s",
        target_industry,
        experience_level,
        int((time.perf_counter() - started) * 1000),
    )
    return result


def analyze_job_description(job_description: str, templates: list[IndustryTemplate] | None = None) -> list[AITemplateRecommendation]:
    templates = templates if templates is not None else catalog.all()
    prompt = (
        f"Job description:\n{job_description}\n\nAvailable templates:\n"
        + "\n".join(f"- {t.id}: {t.name} ({t.industry}, {t.category})" for t in templates)
        + "\n\nExtract industry, role, skills, culture, ATS needs and seniority, then recommend the top 3 templates."
    )
    return _ask_for_recommendations("template_job_description", prompt, templates, 0.3) or basic_recommendations(
        templates, "technology", "mid", 3
    )


def compatibility_score(template: IndustryTemplate, target_role: str, target_industry: str, experience_level: str) -> float:
    weights = get_scoring_value("templates.compatibility", {}) or {}
    levels = get_scoring_value("templates.experience_levels", {}) or {}
    industry = target_industry.lower()
    score = 0.0

    if template.industry == target_industry:
        score += float(weights.get("industry", 30))
    elif any(industry in tag.lower() for tag in template.tags):
        score += float(weights.get("industry_tag", 20))

    experience_weight = float(weights.get("experience", 25))
    if experience_level in template.experience_level:
        score += experience_weight
    elif template.experience_level:
        user_level = int(levels.get(experience_level, 2))
        difference = min(abs(int(levels.get(level, 2)) - user_level) for level in template.experience_level)
        score += max(0.0, experience_weight - difference * float(weights.get("experience_step_penalty", 8)))

    score += template.ats_score / 100 * float(weights.get("ats", 20))

    if template.features:
        role = target_role.lower()
        relevant = [f for f in template.features if industry in f.lower() or role in f.lower()]
        score += len(relevant) / len(template.features) * float(weights.get("features", 15))

    score += template.popularity / 5 * float(weights.get("popularity", 10))
    return round(max(0.0, min(100.0, score)), 2)


def optimize_template(
    template: IndustryTemplate, profile: UserProfile, target_role: str, target_industry: str
) -> tuple[IndustryTemplate, list[str]]:
    payload = json_completion(
        system_prompt=(
            "You optimize resume templates for a target role. "
            'Return strict JSON: {"sections": [string], "tags": [string], "features": [string], '
            '"layout": string, "optimizations": [string]}.'
        ),
        user_prompt=(
            f"Template:\n{template.model_dump_json()}\n\nUser profile:\n{profile.model_dump_json()}\n\n"
            f"Target: {target_role} in {target_industry}"
        ),
        temperature=0.3,
        max_output_tokens=900,
        feature="template_optimize",
    )
    if not payload:
        return template, ["Unable to generate optimizations at this time"]

    changes: dict[str, Any] = {}
    for field in ("sections", "tags", "features"):
        values = safe_str_list(payload.get(field), max_items=20, max_len=60)
        if values:
            changes[field] = values
    layout = safe_str(payload.get("layout"), max_len=40)
    if layout:
        changes["layout"] = layout
    return template.model_copy(update=changes), safe_str_list(payload.get("optimizations"), max_items=10)


def generate_custom_template(request: TemplateGenerationRequest) -> TemplateGenerationResponse:
    started = time.perf_counter()
    prompt = (
        f"User profile:\n{request.user_profile.model_dump_json()}\n\n"
        f"Target role: {request.target_role}\nTarget industry: {request.target_industry}\n"
        f"Experience level: {request.experience_level}\n\n"
        f"Preferences:\n{json.dumps(request.preferences)}\n\nContent:\n{json.dumps(request.content)[:6000]}\n\n"
        f"Options:\n{json.dumps(request.options)}"
    )
    try:
        payload = json_completion_required(
            system_prompt=(
                "You design resume templates. Return strict JSON: "
                '{"templates": [{"name": string, "category": string, "description": string, "features": [string], '
                '"ats_score": 0-100, "tags": [string], "sections": [string], "layout": string, '
                '"color_scheme": string, "typography": string}], "confidence": 0-1}.'
            ),
            user_prompt=prompt,
            temperature=0.2,
            max_output_tokens=2000,
            feature="template_generate",
            required_keys=("templates",),
        )
    except LLMServiceError as exc:
        raise TemplateGenerationError(f"Failed to generate custom template: {exc}", code=exc.code) from exc

    templates: list[IndustryTemplate] = []
    for raw in payload.get("templates") or []:
        if not isinstance(raw, dict) or not safe_str(raw.get("name")):
            continue
        templates.append(
            IndustryTemplate(
                id=f"custom_{uuid.uuid4().hex[:12]}",
                name=safe_str(raw.get("name"), max_len=120),
                industry=request.target_industry,
                category=safe_str(raw.get("category"), max_len=60) or "custom",
                experience_level=[request.experience_level],
                description=safe_str(raw.get("description"), max_len=1000),
                features=safe_str_list(raw.get("features"), max_items=10, max_len=80),
                ats_score=int(clamp_float(raw.get("ats_score"), 85, 0, 100)),
                tags=safe_str_list(raw.get("tags"), max_items=10, max_len=40),
                ai_optimized=True,
                sections=safe_str_list(raw.get("sections"), max_items=15, max_len=40)
                or ["contact", "summary", "experience", "education", "skills"],
                layout=safe_str(raw.get("layout"), max_len=40) or "standard",
                color_scheme=safe_str(raw.get("color_scheme"), max_len=40) or "blue",
                typography=safe_str(raw.get("typography"), max_len=40) or "modern",
            )
        )
    if not templates:
        raise TemplateGenerationError("Failed to generate custom template: response contained no templates.")

    return TemplateGenerationResponse(
        templates=templates,
        recommendations=validate_recommendations(payload.get("recommendations"), templates),
        customizations=[request.preferences],
        processing_time_ms=int((time.perf_counter() - started) * 1000),
        confidence=clamp_float(payload.get("confidence"), 0.8, 0.0, 1.0),
    )
