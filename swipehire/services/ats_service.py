from __future__ import annotations

import logging
import re
import uuid
from typing import Any

from swipehire.core.scoring import get_scoring_value, round_half_up
from swipehire.features import resume_signals as signals
from swipehire.schemas.ats import (
    ATSAnalysisRequest,
    ATSCompatibilityResult,
    ATSSections,
    ATSSectionScore,
    ATSSuggestion,
    IndustryComplianceScore,
    OptimizationTip,
    RiskFactor,
)
from swipehire.services.llm import clamp_int, json_completion, safe_str, safe_str_list

logger = logging.getLogger(__name__)

STANDARD_SECTIONS = {
    "contact": "Contact Information",
    "summary": "Professional Summary",
    "experience": "Work Experience",
    "education": "Education",
    "skills": "Skills",
    "certifications": "Certifications",
}

INDUSTRY_KEYWORDS = {
    "Technology": ["software", "development", "programming", "agile", "API", "cloud", "database"],
    "Healthcare": ["patient", "clinical", "medical", "healthcare", "treatment", "diagnosis"],
    "Finance": ["financial", "investment", "analysis", "portfolio", "risk", "compliance"],
    "Marketing": ["campaign", "digital", "SEO", "analytics", "brand", "social media"],
    "Education": ["curriculum", "student", "teaching", "learning", "assessment", "educational"],
}

INDUSTRY_REQUIREMENTS = {
    "Technology": ["Technical skills section", "Programming languages", "Project portfolio"],
    "Healthcare": ["Certifications", "Clinical experience", "Patient care metrics"],
    "Finance": ["Regulatory compliance", "Financial certifications", "Quantified results"],
    "Marketing": ["Campaign metrics", "Digital marketing skills", "Analytics tools"],
    "Education": ["Teaching certifications", "Student outcomes", "Curriculum development"],
}

OPTIMIZATION_TIPS = (
    ("Keywords", "Use industry-specific keywords naturally throughout your resume", 15, "easy"),
    ("Formatting", "Use standard fonts like Arial, Calibri, or Times New Roman", 10, "easy"),
    ("Structure", "Place most important information in the top third of your resume", 12, "medium"),
    ("Content", "Quantify achievements with specific numbers and percentages", 20, "medium"),
    ("Skills", "Create a dedicated skills section with relevant technical abilities", 8, "easy"),
)

_TABLE_WORD_RE = re.compile(r"\b(?:table|column)s?\b", re.IGNORECASE)
_RISK_CHARS_RE = re.compile(r"[★☆♦♠♣♥•]")
_TERM_RE = re.compile(r"[A-Za-z][A-Za-z+#.\-]{2,}")
_STOPWORDS = {
    "the", "and", "for", "with", "you", "our", "are", "will", "this", "that", "from", "your", "have",
    "has", "who", "all", "can", "able", "work", "team", "role", "job", "years", "experience", "including",
    "about", "must", "plus", "strong", "skills", "into", "their", "they", "what", "using", "within",
}

_SECTION_SYSTEM_PROMPT = (
    "You are an ATS (applicant tracking system) compatibility reviewer. "
    'Return strict JSON: {"score": 0-100 integer, "issues": [string], "recommendations": [string]}. '
    "List at most 5 issues and 5 recommendations. Be specific and concise."
)

_SUGGESTION_SYSTEM_PROMPT = (
    "You are an ATS optimization coach. "
    'Return strict JSON: {"suggestions": [{"type": "format|keyword|structure|content", '
    '"severity": "critical|important|suggestion", "description": string, "before": string, '
    '"after": string, "impact": 0-100 integer, "reasoning": string}]}. '
    "Provide 5 to 10 specific, actionable suggestions with before/after examples."
)


def _impact(score: int) -> str:
    if score < int(get_scoring_value("ats.impact.high_below", 70)):
        return "high"
    if score < int(get_scoring_value("ats.impact.medium_below", 85)):
        return "medium"
    return "low"


def _section(score: int, issues: list[str], recommendations: list[str]) -> ATSSectionScore:
    score = max(0, min(100, int(score)))
    return ATSSectionScore(score=score, issues=issues, recommendations=recommendations, impact=_impact(score))


def _fallback_section(name: str) -> ATSSectionScore:
    texts = {
        "formatting": ("Unable to analyze formatting", "Ensure clean, simple formatting"),
        "keywords": ("Keyword analysis unavailable", "Include relevant industry keywords"),
        "structure": ("Structure analysis limited", "Use standard resume sections"),
        "readability": ("Readability check incomplete", "Use clear, concise language"),
        "contact": ("Contact analysis unavailable", "Include email and phone number"),
    }
    issue, recommendation = texts[name]
    return _section(int(get_scoring_value(f"ats.fallback.{name}", 75)), [issue], [recommendation])


def _llm_section(feature: str, instructions: str, resume_text: str) -> ATSSectionScore | None:
    payload = json_completion(
        system_prompt=_SECTION_SYSTEM_PROMPT,
        user_prompt=f"{instructions}\n\nResume text:\n{resume_text}",
        temperature=0.3,
        max_output_tokens=600,
        feature=feature,
        required_keys=("score",),
    )
    if not payload:
        return None
    return _section(
        clamp_int(payload.get("score"), 75, 0, 100),
        safe_str_list(payload.get("issues"), max_items=5),
        safe_str_list(payload.get("recommendations"), max_items=5),
    )


def heuristic_formatting(resume_text: str) -> ATSSectionScore:
    issues: list[str] = []
    recommendations: list[str] = []
    score = 100
    lines = resume_text.splitlines()

    if sum(1 for line in lines if line.count("|") >= 2 or "\t" in line) >= 3:
        issues.append("Table or multi-column layout detected")
        recommendations.append("Convert tables and columns into simple single-column text")
        score -= 20
    if signals.SPECIAL_CHARS_RE.search(resume_text):
        issues.append("Decorative symbols may not be parsed correctly")
        recommendations.append("Replace decorative symbols with standard bullets or dashes")
        score -= 10
    if any(len(line) > 200 for line in lines):
        issues.append("Long unbroken paragraphs")
        recommendations.append("Break long paragraphs into bullet points")
        score -= 10
    if not signals.bullet_lines(resume_text):
        issues.append("No bullet points detected")
        recommendations.append("Use simple bullet points for responsibilities and achievements")
        score -= 10
    if not signals.heading_positions(resume_text):
        issues.append("No standard section headings found")
        recommendations.append('Use plain headings such as "Experience", "Education" and "Skills"')
        score -= 15
    return _section(score, issues, recommendations)


def _target_terms(target_role: str | None, job_description: str | None) -> list[str]:
    terms: list[str] = []
    for source in (target_role or "", job_description or ""):
        for match in _TERM_RE.findall(source):
            term = match.lower().strip(".-")
            if len(term) < 3 or term in _STOPWORDS or term in terms:
                continue
            terms.append(term)
    return terms[:40]


def heuristic_keywords(resume_text: str, target_role: str | None, job_description: str | None) -> ATSSectionScore:
    terms = _target_terms(target_role, job_description)
    if not terms:
        section = _fallback_section("keywords")
        section.issues = ["No target role or job description provided for keyword comparison"]
        return section

    lowered = resume_text.lower()
    missing = [term for term in terms if term not in lowered]
    score = round_half_up((len(terms) - len(missing)) / len(terms) * 100)
    issues: list[str] = []
    recommendations: list[str] = []
    if missing:
        issues.append(f"Missing target keywords: {', '.join(missing[:10])}")
        recommendations.append("Mirror the exact wording of the job description where it is accurate")
    total_words = max(1, len(resume_text.split()))
    stuffed = [term for term in terms if lowered.count(term) / total_words > 0.05]
    if stuffed:
        issues.append(f"Possible keyword stuffing: {', '.join(stuffed[:5])}")
        recommendations.append("Reduce repeated keywords and use natural variations")
        score -= 10
    return _section(score, issues, recommendations)


def analyze_structure(resume_text: str) -> ATSSectionScore:
    issues: list[str] = []
    recommendations: list[str] = []
    score = 100
    lowered = resume_text.lower()

    missing = [
        label
        for name, label in STANDARD_SECTIONS.items()
        if not any(alias in lowered for alias in signals.SECTION_HEADINGS[name])
    ]
    if missing:
        issues.append(f"Missing standard sections: {', '.join(missing)}")
        recommendations.append("Add missing standard sections expected by ATS systems")
        score -= len(missing) * int(get_scoring_value("ats.structure.missing_section_penalty", 15))
    if not signals.section_order_ok(resume_text):
        issues.append("Sections not in optimal order for ATS parsing")
        recommendations.append("Reorder sections: Contact → Summary → Experience → Education → Skills")
        score -= int(get_scoring_value("ats.structure.order_penalty", 10))
    if not signals.bullet_lines(resume_text):
        issues.append("Inconsistent section formatting detected")
        recommendations.append("Use consistent heading styles and bullet point formatting")
        score -= int(get_scoring_value("ats.structure.bullet_penalty", 10))
    return _section(score, issues, recommendations)


def analyze_readability(resume_text: str) -> ATSSectionScore:
    issues: list[str] = []
    recommendations: list[str] = []
    score = 100

    if signals.average_sentence_length(resume_text) > float(get_scoring_value("ats.readability.max_avg_sentence_words", 25)):
        issues.append("Sentences too long for optimal ATS parsing")
        recommendations.append("Break down complex sentences into shorter, clearer statements")
        score -= int(get_scoring_value("ats.readability.sentence_penalty", 15))
    ratio = float(get_scoring_value("ats.readability.jargon_ratio", 0.1))
    if signals.count_jargon(resume_text) > len(resume_text.split()) * ratio:
        issues.append("High jargon density may confuse ATS systems")
        recommendations.append("Replace jargon with standard industry terms")
        score -= int(get_scoring_value("ats.readability.jargon_penalty", 10))
    if signals.count_action_verbs(resume_text) < int(get_scoring_value("ats.readability.min_action_verbs", 5)):
        issues.append("Insufficient use of strong action verbs")
        recommendations.append("Use more impactful action verbs to start bullet points")
        score -= int(get_scoring_value("ats.readability.action_verb_penalty", 10))
    return _section(score, issues, recommendations)


def analyze_contact(resume_text: str) -> ATSSectionScore:
    issues: list[str] = []
    recommendations: list[str] = []
    score = 100

    if not signals.EMAIL_RE.search(resume_text):
        issues.append("Email address not found or improperly formatted")
        recommendations.append("Include a professional email address")
        score -= int(get_scoring_value("ats.contact.email_penalty", 25))
    if not signals.PHONE_RE.search(resume_text):
        issues.append("Phone number not found or improperly formatted")
        recommendations.append("Include a properly formatted phone number")
        score -= int(get_scoring_value("ats.contact.phone_penalty", 20))
    if not signals.LINKEDIN_RE.search(resume_text):
        issues.append("LinkedIn profile not found")
        recommendations.append("Include your LinkedIn profile URL")
        score -= int(get_scoring_value("ats.contact.linkedin_penalty", 10))
    if not signals.has_location(resume_text):
        recommendations.append("Consider including city/state for location-based filtering")
        score -= int(get_scoring_value("ats.contact.location_penalty", 5))
    return _section(score, issues, recommendations)


def calculate_overall_score(sections: ATSSections) -> int:
    total = 0.0
    for name in ("formatting", "keywords", "structure", "readability", "contact"):
        weight = float(get_scoring_value(f"ats.weights.{name}", 0))
        total += getattr(sections, name).score * weight
    return max(0, min(100, round_half_up(total)))


def run_checks(resume_text: str) -> tuple[list[str], list[str]]:
    checks = [
        ("Standard file format compatibility", True),
        ("Contact information present", bool(signals.EMAIL_RE.search(resume_text))),
        ("Professional summary section", bool(re.search(r"summary|profile|objective", resume_text, re.IGNORECASE))),
        ("Work experience section", bool(re.search(r"experience|employment|work history", resume_text, re.IGNORECASE))),
        ("Education section", bool(signals.EDUCATION_RE.search(resume_text))),
        ("Skills section", bool(re.search(r"skills|competencies|technologies", resume_text, re.IGNORECASE))),
        ("Consistent date formatting", signals.dates_consistent(resume_text)),
        ("Action verb usage", signals.count_action_verbs(resume_text) >= 5),
    ]
    passed = [name for name, ok in checks if ok]
    failed = [name for name, ok in checks if not ok]
    return passed, failed


def industry_compliance(resume_text: str, target_industry: str | None) -> list[IndustryComplianceScore]:
    if not target_industry:
        return []
    lowered = resume_text.lower()
    results: list[IndustryComplianceScore] = []
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        found = [keyword for keyword in keywords if keyword.lower() in lowered]
        results.append(
            IndustryComplianceScore(
                industry=industry,
                score=round_half_up(len(found) / len(keywords) * 100),
                specific_requirements=list(INDUSTRY_REQUIREMENTS[industry]),
                missing_elements=[keyword for keyword in keywords if keyword not in found],
            )
        )
    results.sort(key=lambda item: item.score, reverse=True)
    return results


def identify_risk_factors(resume_text: str) -> list[RiskFactor]:
    risks: list[RiskFactor] = []
    if _TABLE_WORD_RE.search(resume_text) or sum(1 for line in resume_text.splitlines() if line.count("|") >= 2) >= 3:
        risks.append(
            RiskFactor(
                factor="Complex Table Formatting",
                risk="high",
                description="Tables and complex layouts can break ATS parsing",
                solution="Convert tables to simple text with clear headings",
            )
        )
    if len(resume_text.split("\n")) < 10:
        risks.append(
            RiskFactor(
                factor="Insufficient Content",
                risk="medium",
                description="Resume appears too short for comprehensive ATS analysis",
                solution="Expand content with more detailed descriptions and achievements",
            )
        )
    if _RISK_CHARS_RE.search(resume_text):
        risks.append(
            RiskFactor(
                factor="Special Characters",
                risk="medium",
                description="Special characters may not render correctly in ATS",
                solution="Replace special characters with standard bullets or dashes",
            )
        )
    return risks


def optimization_tips() -> list[OptimizationTip]:
    return [
        OptimizationTip(category=category, tip=tip, expected_improvement=gain, difficulty=difficulty)
        for category, tip, gain, difficulty in OPTIMIZATION_TIPS
    ]


def _fallback_suggestions() -> list[ATSSuggestion]:
    return [
        ATSSuggestion(
            id="fallback-1",
            type="format",
            severity="suggestion",
            description="Use standard resume formatting",
            before="Complex layout",
            after="Simple, clean layout",
            impact=10,
            reasoning="Standard formatting improves ATS compatibility",
        )
    ]


def _heuristic_suggestions(sections: ATSSections) -> list[ATSSuggestion]:
    kinds = {
        "formatting": "format",
        "keywords": "keyword",
        "structure": "structure",
        "readability": "content",
        "contact": "content",
    }
    items: list[ATSSuggestion] = []
    for name, kind in kinds.items():
        section: ATSSectionScore = getattr(sections, name)
        for issue, recommendation in zip(section.issues, section.recommendations):
            items.append(
                ATSSuggestion(
                    id=f"{name}-{len(items) + 1}",
                    type=kind,
                    severity="critical" if section.impact == "high" else "important" if section.impact == "medium" else "suggestion",
                    description=recommendation,
                    before=issue,
                    after=recommendation,
                    impact=max(5, min(25, 100 - section.score)),
                    reasoning=f"Raises the {name} score, currently {section.score}/100",
                )
            )
    return items[:10] or _fallback_suggestions()


def _coerce_suggestions(payload: dict[str, Any] | None) -> list[ATSSuggestion]:
    if not payload or not isinstance(payload.get("suggestions"), list):
        return []
    items: list[ATSSuggestion] = []
    for raw in payload["suggestions"][:10]:
        if not isinstance(raw, dict):
            continue
        description = safe_str(raw.get("description"), max_len=300)
        if not description:
            continue
        kind = raw.get("type") if raw.get("type") in {"format", "keyword", "structure", "content"} else "content"
        severity = raw.get("severity") if raw.get("severity") in {"critical", "important", "suggestion"} else "suggestion"
        items.append(
            ATSSuggestion(
                id=f"ai-{uuid.uuid4().hex[:8]}",
                type=kind,
                severity=severity,
                description=description,
                before=safe_str(raw.get("before"), max_len=300),
                after=safe_str(raw.get("after"), max_len=300),
                impact=clamp_int(raw.get("impact"), 10, 0, 100),
                reasoning=safe_str(raw.get("reasoning"), max_len=300),
            )
        )
    return items


def generate_suggestions(params: ATSAnalysisRequest, sections: ATSSections) -> list[ATSSuggestion]:
    lines = []
    if params.target_role:
        lines.append(f"Target Role: {params.target_role}")
    if params.target_industry:
        lines.append(f"Industry: {params.target_industry}")
    lines.append(f"Resume text:\n{params.resume_text}")
    payload = json_completion(
        system_prompt=_SUGGESTION_SYSTEM_PROMPT,
        user_prompt="\n".join(lines),
        temperature=0.4,
        max_output_tokens=1200,
        feature="ats_suggestions",
    )
    return _coerce_suggestions(payload) or _heuristic_suggestions(sections)


def fallback_analysis() -> ATSCompatibilityResult:
    return ATSCompatibilityResult(
        overall_score=int(get_scoring_value("ats.fallback.overall", 75)),
        sections=ATSSections(
            formatting=_fallback_section("formatting"),
            keywords=_fallback_section("keywords"),
            structure=_fallback_section("structure"),
            readability=_fallback_section("readability"),
            contact=_fallback_section("contact"),
        ),
        suggestions=_fallback_suggestions(),
        passed_checks=["Basic structure present"],
        failed_checks=["Analysis incomplete due to service error"],
        fallback=True,
    )


def analyze_ats_compatibility(params: ATSAnalysisRequest) -> ATSCompatibilityResult:
    try:
        resume_text = params.resume_text
        formatting = _llm_section(
            "ats_formatting",
            "Analyze this resume for ATS formatting compatibility: section headers, tables, "
            "graphics or complex layouts, text encoding issues and bullet point formatting.",
            resume_text,
        ) or heuristic_formatting(resume_text)

        keyword_context = []
        if params.target_role:
            keyword_context.append(f"Target Role: {params.target_role}")
        if params.job_description:
            keyword_context.append(f"Job Description: {params.job_description}")
        keywords = _llm_section(
            "ats_keywords",
            "\n".join(
                keyword_context
                + [
                    "Analyze keyword density and distribution, hard vs soft skills balance, industry terminology, "
                    "missing critical keywords and keyword stuffing."
                ]
            ),
            resume_text,
        ) or heuristic_keywords(resume_text, params.target_role, params.job_description)

        sections = ATSSections(
            formatting=formatting,
            keywords=keywords,
            structure=analyze_structure(resume_text),
            readability=analyze_readability(resume_text),
            contact=analyze_contact(resume_text),
        )
        passed, failed = run_checks(resume_text)
        result = ATSCompatibilityResult(
            overall_score=calculate_overall_score(sections),
            sections=sections,
            suggestions=generate_suggestions(params, sections),
            industry_compliance=industry_compliance(resume_text, params.target_industry),
            passed_checks=passed,
            failed_checks=failed,
            risk_factors=identify_risk_factors(resume_text),
            optimization_tips=optimization_tips(),
        )
    except Exception:
        logger.exception("ats_analysis_failed")
        return fallback_analysis()

    logger.info(
        "ats_analysis_complete overall=%s passed=%s failed=%s industry=%s",
        result.overall_score,
        len(result.passed_checks),
        len(result.failed_checks),
        params.target_industry or "-",
    )
    return result
