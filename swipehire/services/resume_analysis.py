from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from swipehire.core.scoring import get_scoring_value, round_half_up
from swipehire.features import resume_signals as signals
from swipehire.schemas.resume import (
    AnalysisMetadata,
    FormatAnalysis,
    GrammarCheck,
    GrammarIssue,
    KeywordAnalysis,
    MatchedKeyword,
    MissingKeyword,
    OptimizationSuggestion,
    QuantitativeAnalysis,
    ResumeAnalysisResponse,
    SectionAnalysis,
    SectionScore,
    SectionStructureItem,
    TargetJob,
)

logger = logging.getLogger(__name__)

_REPEATED_WORD_RE = re.compile(r"\b(\w{2,})\s+\1\b", re.IGNORECASE)
_DOUBLE_SPACE_RE = re.compile(r"\S {2,}\S")
_PASSIVE_RE = re.compile(r"\b(?:was|were|been|being|is|are)\s+\w+ed\b", re.IGNORECASE)

_SECTION_LABELS = {
    "contact": "Contact Information",
    "summary": "Professional Summary",
    "experience": "Work Experience",
    "education": "Education",
    "skills": "Skills",
}


class ResumeAnalysisError(Exception):
    def __init__(self, message: str, code: str, *, status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


def _weight(name: str) -> int:
    return int(get_scoring_value(f"resume.weights.{name}", 0))


def _validate_inputs(resume_text: str, target_job: TargetJob | None) -> TargetJob:
    if not (resume_text or "").strip() or target_job is None:
        raise ResumeAnalysisError("Resume text and target job information are required", "MISSING_INPUT")
    if not (target_job.title or "").strip():
        raise ResumeAnalysisError("Target job title is required", "MISSING_JOB_TITLE")
    return target_job


def parse_keywords(raw: str | None) -> list[str]:
    if not raw:
        return []
    output: list[str] = []
    for item in raw.split(","):
        keyword = item.strip().lower()
        if keyword and keyword not in output:
            output.append(keyword)
    return output


def match_keywords(resume_text: str, keywords: list[str]) -> tuple[list[MatchedKeyword], list[str], float]:
    """Substring match of target keywords against resume words, in either direction."""
    resume_words = resume_text.lower().split()
    matched: list[MatchedKeyword] = []
    missing: list[str] = []
    for keyword in keywords:
        if any(keyword in word or word in keyword for word in resume_words):
            matched.append(
                MatchedKeyword(
                    keyword=keyword,
                    frequency=sum(1 for word in resume_words if keyword in word),
                    relevance_score=1.0,
                    context=signals.line_snippets(resume_text, keyword),
                )
            )
        else:
            missing.append(keyword)

    if keywords:
        score = len(matched) / len(keywords) * 100
    else:
        score = float(get_scoring_value("resume.keywords.default_score", 75))
    return matched, missing, score


def _length_ok(word_count: int) -> bool:
    low = int(get_scoring_value("resume.length.min_words", 200))
    high = int(get_scoring_value("resume.length.max_words", 800))
    return low <= word_count <= high


def _overall_score(sections: dict[str, bool], word_count: int, keyword_score: float, *, reanalysis: bool) -> int:
    threshold = float(get_scoring_value("resume.keywords.pass_threshold", 50))
    factors = [
        (sections["contact"], "contact"),
        (sections["experience"], "experience"),
        (sections["education"], "education"),
        (sections["skills"], "skills"),
        (_length_ok(word_count), "length"),
        (keyword_score >= threshold, "keywords"),
    ]
    if reanalysis:
        factors.append((sections["summary"], "summary"))

    score = sum(_weight(name) for passed, name in factors if passed)
    if reanalysis:
        score = min(100, score + int(get_scoring_value("resume.reanalysis_bonus", 5)))
    return min(100, score)


def _ats_score(overall: int, has_contact: bool, keyword_score: float) -> int:
    bonus = int(get_scoring_value("resume.ats.contact_bonus", 10)) if has_contact else 0
    factor = float(get_scoring_value("resume.ats.keyword_factor", 0.3))
    return round_half_up(min(100.0, overall + bonus + keyword_score * factor))


def _suggestion_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


def _analysis_suggestions(sections: dict[str, bool], word_count: int, keyword_score: float) -> list[OptimizationSuggestion]:
    low = int(get_scoring_value("resume.length.min_words", 200))
    high = int(get_scoring_value("resume.length.max_words", 800))
    threshold = float(get_scoring_value("resume.keywords.pass_threshold", 50))
    items: list[OptimizationSuggestion] = []

    if not sections["contact"]:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("contact"),
                type="format",
                title="Add Contact Information",
                description="Include your email, phone number, and LinkedIn profile at the top of your resume.",
                impact="high",
                effort="low",
                suggestion="Add a contact section with your email, phone, and LinkedIn URL",
                priority=1,
                estimated_score_improvement=15,
            )
        )
    if not sections["experience"]:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("experience"),
                type="structure",
                title="Add Professional Experience",
                description="Include your work history with specific achievements and quantifiable results.",
                impact="high",
                effort="high",
                suggestion="Add a professional experience section with 3-5 bullet points per job",
                priority=1,
                estimated_score_improvement=25,
            )
        )
    if keyword_score < threshold:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("keywords"),
                type="keyword",
                title="Improve Keyword Optimization",
                description=(
                    f"Your resume matches {round_half_up(keyword_score)}% of target keywords. "
                    "Consider incorporating more relevant terms from the job description."
                ),
                impact="high",
                effort="medium",
                suggestion="Add relevant keywords from the job description naturally throughout your resume",
                priority=2,
                estimated_score_improvement=20,
            )
        )
    if word_count < low:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("expand"),
                type="structure",
                title="Expand Resume Content",
                description="Your resume is quite short. Add more details about your achievements and responsibilities.",
                impact="medium",
                effort="medium",
                suggestion="Expand each job description with more details and quantifiable achievements",
                priority=3,
                estimated_score_improvement=10,
            )
        )
    if word_count > high:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("condense"),
                type="format",
                title="Reduce Resume Length",
                description="Your resume is quite long. Consider condensing information to 1-2 pages.",
                impact="medium",
                effort="medium",
                suggestion="Remove less relevant experience and condense bullet points",
                priority=3,
                estimated_score_improvement=5,
            )
        )
    if not sections["skills"]:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("skills"),
                type="structure",
                title="Add Skills Section",
                description="Include a dedicated skills section highlighting your technical and professional competencies.",
                impact="medium",
                effort="low",
                suggestion="Add a skills section grouped by category (Technical, Soft Skills, etc.)",
                priority=2,
                estimated_score_improvement=10,
            )
        )

    items.append(
        OptimizationSuggestion(
            id=_suggestion_id("verbs"),
            type="achievement",
            title="Use Action Verbs",
            description='Start bullet points with strong action verbs like "Led," "Developed," "Implemented," etc.',
            impact="medium",
            effort="low",
            suggestion="Rewrite bullet points to start with action verbs",
            priority=3,
            estimated_score_improvement=5,
        )
    )
    items.append(
        OptimizationSuggestion(
            id=_suggestion_id("quantify"),
            type="achievement",
            title="Quantify Achievements",
            description="Include specific numbers, percentages, and metrics to demonstrate your impact.",
            impact="high",
            effort="medium",
            suggestion='Add quantifiable metrics to your achievements (e.g. "Increased sales by 20%")',
            priority=2,
            estimated_score_improvement=15,
        )
    )
    return items


def _reanalysis_suggestions(
    sections: dict[str, bool],
    keyword_score: float,
    keywords: list[str],
) -> list[OptimizationSuggestion]:
    threshold = float(get_scoring_value("resume.keywords.reanalysis_threshold", 70))
    items: list[OptimizationSuggestion] = []

    if not sections["contact"]:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("contact"),
                type="ats",
                title="Add Contact Information",
                description="Include your email, phone number, and LinkedIn profile at the top of your resume.",
                impact="high",
                effort="low",
                suggestion="Add a contact section at the top with your email, phone, and LinkedIn profile URL",
                priority=1,
                estimated_score_improvement=15,
            )
        )
    if not sections["summary"]:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("summary"),
                type="structure",
                title="Add Professional Summary",
                description="Include a compelling professional summary that highlights your key qualifications.",
                impact="high",
                effort="medium",
                suggestion="Add a 3-4 sentence professional summary highlighting your key skills and experience",
                priority=2,
                estimated_score_improvement=10,
            )
        )
    if keyword_score < threshold:
        items.append(
            OptimizationSuggestion(
                id=_suggestion_id("keywords"),
                type="keyword",
                title="Improve Keyword Optimization",
                description=(
                    f"Your resume matches {round_half_up(keyword_score)}% of target keywords. "
                    "Consider incorporating more relevant terms naturally."
                ),
                impact="high",
                effort="medium",
                suggestion=f"Add these keywords naturally throughout your resume: {', '.join(keywords)}",
                priority=3,
                estimated_score_improvement=max(0, round_half_up((threshold - keyword_score) * 0.5)),
            )
        )

    items.append(
        OptimizationSuggestion(
            id=_suggestion_id("ats"),
            type="ats",
            title="Optimize for ATS Scanning",
            description="Use standard section headings and avoid complex formatting that might confuse ATS systems.",
            impact="medium",
            effort="low",
            suggestion='Use standard section headings like "Experience", "Education", "Skills"',
            priority=4,
            estimated_score_improvement=5,
        )
    )
    items.append(
        OptimizationSuggestion(
            id=_suggestion_id("tailor"),
            type="achievement",
            title="Tailor Content to Role",
            description="Emphasize experiences and skills most relevant to the target position.",
            impact="high",
            effort="medium",
            suggestion="Highlight experiences and achievements that directly relate to the target job",
            priority=5,
            estimated_score_improvement=10,
        )
    )
    return items


def _section_analysis(sections: dict[str, bool], *, reanalysis: bool) -> SectionAnalysis:
    mode = "reanalysis" if reanalysis else "analysis"

    def scored(name: str, present_tips: list[str], missing_tips: list[str]) -> SectionScore:
        present_score, missing_score = get_scoring_value(f"resume.section_scores.{mode}.{name}", [0, 0])
        present = sections[name]
        return SectionScore(
            present=present,
            score=int(present_score if present else missing_score),
            suggestions=present_tips if present else missing_tips,
        )

    if reanalysis:
        return SectionAnalysis(
            contact=scored("contact", ["Consider adding portfolio URL"], ["Add email, phone, and LinkedIn profile"]),
            summary=scored(
                "summary",
                ["Tailor summary to target role", "Include key achievements"],
                ["Add a compelling professional summary"],
            ),
            experience=scored(
                "experience",
                ["Use more specific metrics", "Highlight relevant achievements"],
                ["Add professional experience section"],
            ),
            education=scored(
                "education",
                ["Include relevant coursework if recent graduate"],
                ["Add education background"],
            ),
            skills=scored(
                "skills",
                ["Prioritize skills relevant to target role", "Include proficiency levels"],
                ["Add comprehensive skills section"],
            ),
        )
    return SectionAnalysis(
        contact=scored("contact", [], ["Add email, phone, and LinkedIn profile"]),
        summary=scored("summary", ["Consider tailoring summary to target role"], ["Add a professional summary section"]),
        experience=scored(
            "experience",
            ["Use more action verbs", "Quantify achievements"],
            ["Add professional experience section"],
        ),
        education=scored("education", ["Include graduation year if recent"], ["Add education background"]),
        skills=scored(
            "skills",
            ["Organize skills by category", "Include proficiency levels"],
            ["Add technical and soft skills section"],
        ),
    )


def grammar_check(text: str) -> GrammarCheck:
    issues: list[GrammarIssue] = []

    for match in _REPEATED_WORD_RE.finditer(text):
        issues.append(
            GrammarIssue(
                type="repetition",
                message=f"Repeated word '{match.group(1)}'.",
                excerpt=match.group(0),
                suggestion=match.group(1),
            )
        )
    for match in _DOUBLE_SPACE_RE.finditer(text):
        issues.append(
            GrammarIssue(
                type="spacing",
                message="Multiple spaces between words.",
                excerpt=match.group(0),
                suggestion=" ".join(match.group(0).split()),
            )
        )
    for line in signals.bullet_lines(text):
        if line and line[0].islower():
            issues.append(
                GrammarIssue(
                    type="capitalization",
                    message="Bullet point starts with a lowercase letter.",
                    excerpt=line[:80],
                    suggestion=line[:1].upper() + line[1:80],
                )
            )
    for sentence in signals.sentences(text):
        if len(sentence.split()) > 35:
            issues.append(
                GrammarIssue(
                    type="sentence_length",
                    message="Sentence is longer than 35 words.",
                    excerpt=sentence[:80],
                    suggestion="Split this sentence into two shorter statements.",
                )
            )
    for match in _PASSIVE_RE.finditer(text):
        issues.append(
            GrammarIssue(
                type="passive_voice",
                message="Passive voice hides who did the work.",
                excerpt=match.group(0),
                suggestion="Rewrite with an action verb in active voice.",
            )
        )

    avg_len = signals.average_sentence_length(text)
    readability = max(0, min(100, round_half_up(100 - max(0.0, avg_len - 15) * 3)))
    return GrammarCheck(
        score=max(0, 100 - 5 * len(issues)),
        total_issues=len(issues),
        issues=issues[:10],
        overall_readability=readability,
    )


def format_analysis(text: str, sections: dict[str, bool]) -> FormatAnalysis:
    issues: list[str] = []
    recommendations: list[str] = []
    score = 100

    positions = signals.heading_positions(text) or signals.keyword_positions(text)
    present_order = sorted(
        (name for name in signals.SECTION_ORDER if name in positions),
        key=lambda name: positions[name],
    )
    structure = [
        SectionStructureItem(
            name=_SECTION_LABELS[name],
            present=sections[name],
            order=(present_order.index(name) + 1) if name in present_order else None,
            recommended=True,
        )
        for name in signals.SECTION_ORDER
    ]

    missing = [_SECTION_LABELS[name] for name in signals.SECTION_ORDER if not sections[name]]
    if missing:
        issues.append(f"Missing sections: {', '.join(missing)}")
        recommendations.append("Ensure proper section headers")
        score -= 5 * len(missing)
    if not signals.section_order_ok(text):
        issues.append("Sections are not in the recommended order")
        recommendations.append("Order sections: Contact, Summary, Experience, Education, Skills")
        score -= 10
    if not signals.bullet_lines(text):
        issues.append("No bullet points detected")
        recommendations.append("Use bullet points for achievements")
        score -= 10
    if any(len(line) > 200 for line in text.splitlines()):
        issues.append("Very long lines or paragraphs")
        recommendations.append("Break long paragraphs into concise bullet points")
        score -= 5
    if signals.SPECIAL_CHARS_RE.search(text):
        issues.append("Decorative characters detected")
        recommendations.append("Replace decorative symbols with standard bullets")
        score -= 5
    if not recommendations:
        recommendations.append("Use consistent formatting")

    ats_compatibility = score
    if sum(1 for line in text.splitlines() if line.count("|") >= 2 or "\t" in line) >= 3:
        issues.append("Table or column layout detected")
        ats_compatibility -= 15

    return FormatAnalysis(
        score=max(0, score),
        ats_compatibility=max(0, min(100, ats_compatibility)),
        issues=issues,
        recommendations=recommendations,
        section_structure=structure,
    )


def quantitative_analysis(text: str) -> QuantitativeAnalysis:
    achievements = signals.bullet_lines(text)
    if not achievements:
        achievements = [sentence for sentence in signals.sentences(text) if signals.count_action_verbs(sentence)]
    with_numbers = sum(1 for line in achievements if signals.NUMBER_RE.search(line))
    total = len(achievements)
    score = round_half_up(with_numbers / total * 100) if total else 0

    suggestions: list[str] = []
    if total == 0:
        suggestions.append("List achievements as bullet points under each role")
    elif score < 50:
        suggestions.append('Add metrics to more achievements (e.g. "Reduced costs by 15%")')
    if signals.count_action_verbs(text) < 5:
        suggestions.append("Start achievements with strong action verbs")

    return QuantitativeAnalysis(
        score=score,
        achievements_with_numbers=with_numbers,
        total_achievements=total,
        suggestions=suggestions,
        impact_words=signals.found_action_verbs(text),
    )


def _optimized_content(
    resume_text: str,
    target_job: TargetJob,
    suggestions: list[OptimizationSuggestion],
    *,
    reanalysis: bool,
) -> str:
    text = resume_text
    titles = {item.title for item in suggestions if item.priority <= 3}

    if reanalysis:
        if "Add Professional Summary" in titles:
            summary = (
                "PROFESSIONAL SUMMARY\n"
                f"Results-driven professional with expertise in {target_job.title.lower()} seeking to contribute to "
                f"{target_job.company or 'your organization'}. Proven track record of delivering high-quality results "
                "and driving business success through innovative solutions and collaborative teamwork.\n\n"
            )
            text = summary + text
        if target_job.keywords:
            text += (
                "\n\n[Optimization Note: Consider naturally incorporating these keywords throughout your resume: "
                f"{target_job.keywords}]"
                "\n\n[Re-analysis Complete: This version shows improved alignment with the target role and better "
                "ATS compatibility.]"
            )
        return text

    high_titles = {item.title for item in suggestions if item.impact == "high"}
    if "Add Contact Information" in high_titles:
        text = "[Your Name]\n[Your Email] | [Your Phone] | [Your Location]\n[LinkedIn Profile]\n\n" + text
    if "Add Professional Experience" in high_titles:
        text += (
            "\n\nPROFESSIONAL EXPERIENCE\n\n"
            "[Job Title] | [Company Name] | [Start Date] - [End Date]\n"
            "• [Achievement with quantifiable result]\n"
            "• [Achievement with quantifiable result]\n"
            "• [Achievement with quantifiable result]"
        )
    if target_job.keywords:
        text += (
            "\n\n[Note: Consider incorporating these keywords naturally throughout your resume: "
            f"{target_job.keywords}]"
        )
    return text


def _keyword_analysis(
    resume_text: str,
    keywords: list[str],
    matched: list[MatchedKeyword],
    missing: list[str],
    keyword_score: float,
    *,
    reanalysis: bool,
) -> KeywordAnalysis:
    total_words = max(1, len(resume_text.split()))
    if matched and len(matched) < len(keywords) / 2:
        recommendations = ["Add more keywords from job description"]
    elif matched:
        recommendations = ["Consider reordering keywords to appear earlier in resume"]
    else:
        recommendations = ["Add more keywords from job description"] if keywords else []
    return KeywordAnalysis(
        score=round_half_up(keyword_score),
        total_keywords=len(keywords),
        matched_keywords=matched,
        missing_keywords=[
            MissingKeyword(
                keyword=keyword,
                importance="medium" if reanalysis else "high",
                suggested_placement=["summary", "skills"],
            )
            for keyword in missing
        ],
        keyword_density={item.keyword: round(item.frequency / total_words, 4) for item in matched},
        recommendations=recommendations,
    )


def _strengths(sections: dict[str, bool], length_ok: bool, keyword_score: float, *, reanalysis: bool) -> list[str]:
    strong = float(get_scoring_value("resume.keywords.strong_threshold", 70))
    items: list[str] = []
    if sections["contact"]:
        items.append("Clear contact information")
    if sections["experience"]:
        items.append("Professional experience included")
    if sections["education"]:
        items.append("Education background provided")
    if sections["skills"]:
        items.append("Skills section present")
    if reanalysis and sections["summary"]:
        items.append("Professional summary included")
    if length_ok:
        items.append("Appropriate resume length")
    if keyword_score >= strong:
        items.append("Good keyword optimization")
    if reanalysis:
        items.extend(["Improved content structure", "Better alignment with target role"])
    return items


def _weaknesses(sections: dict[str, bool], word_count: int, keyword_score: float, *, reanalysis: bool) -> list[str]:
    low = int(get_scoring_value("resume.length.min_words", 200))
    high = int(get_scoring_value("resume.length.max_words", 800))
    threshold = float(get_scoring_value("resume.keywords.pass_threshold", 50))
    items: list[str] = []
    if not sections["contact"]:
        items.append("Missing contact information")
    if reanalysis:
        if not sections["summary"]:
            items.append("No professional summary")
        if keyword_score < threshold:
            items.append("Needs better keyword optimization")
    else:
        if not sections["experience"]:
            items.append("Lacks professional experience details")
        if not sections["education"]:
            items.append("No education information")
        if not sections["skills"]:
            items.append("Missing skills section")
    if word_count < low:
        items.append("Resume too short")
    if word_count > high:
        items.append("Resume too long")
    if not reanalysis and keyword_score < threshold:
        items.append("Poor keyword optimization")
    return items


def _run(
    resume_text: str,
    target_job: TargetJob | None,
    *,
    template_id: str | None,
    original_analysis_id: str | None,
    reanalysis: bool,
) -> ResumeAnalysisResponse:
    job = _validate_inputs(resume_text, target_job)
    started = time.perf_counter()

    sections = signals.detect_sections(resume_text)
    word_count = len(resume_text.split())
    keywords = parse_keywords(job.keywords)
    matched, missing, keyword_score = match_keywords(resume_text, keywords)

    overall = _overall_score(sections, word_count, keyword_score, reanalysis=reanalysis)
    ats = _ats_score(overall, sections["contact"], keyword_score)
    if reanalysis:
        suggestions = _reanalysis_suggestions(sections, keyword_score, keywords)
    else:
        suggestions = _analysis_suggestions(sections, word_count, keyword_score)

    now = datetime.now(timezone.utc)
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    result = ResumeAnalysisResponse(
        id=f"{'reanalysis' if reanalysis else 'analysis'}_{uuid.uuid4().hex[:12]}",
        overall_score=overall,
        ats_score=ats,
        suggestions=suggestions,
        grammar_check=grammar_check(resume_text),
        format_analysis=format_analysis(resume_text, sections),
        quantitative_analysis=quantitative_analysis(resume_text),
        created_at=now,
        processing_time_ms=elapsed_ms,
        strengths=_strengths(sections, _length_ok(word_count), keyword_score, reanalysis=reanalysis),
        weaknesses=_weaknesses(sections, word_count, keyword_score, reanalysis=reanalysis),
        keyword_analysis=_keyword_analysis(
            resume_text, keywords, matched, missing, keyword_score, reanalysis=reanalysis
        ),
        section_analysis=_section_analysis(sections, reanalysis=reanalysis),
        optimized_content=_optimized_content(resume_text, job, suggestions, reanalysis=reanalysis),
        metadata=AnalysisMetadata(
            analysis_date=now,
            target_job_title=job.title,
            target_company=job.company or None,
            template_used=template_id or None,
            original_analysis_id=original_analysis_id or None,
            word_count=word_count,
            processing_time_ms=elapsed_ms,
        ),
    )
    logger.info(
        "resume_analysis_complete mode=%s overall=%s ats=%s keywords=%s/%s words=%s",
        "reanalysis" if reanalysis else "analysis",
        overall,
        ats,
        len(matched),
        len(keywords),
        word_count,
    )
    return result


def analyze_resume(
    resume_text: str,
    target_job: TargetJob | None,
    template_id: str | None = None,
) -> ResumeAnalysisResponse:
    return _run(resume_text, target_job, template_id=template_id, original_analysis_id=None, reanalysis=False)


def reanalyze_resume(
    resume_text: str,
    target_job: TargetJob | None,
    original_analysis_id: str | None = None,
    template_id: str | None = None,
) -> ResumeAnalysisResponse:
    return _run(
        resume_text,
        target_job,
        template_id=template_id,
        original_analysis_id=original_analysis_id,
        reanalysis=True,
    )


def summarize_for_storage(result: dict[str, Any]) -> dict[str, Any]:
    metadata = result.get("metadata") if isinstance(result.get("metadata"), dict) else {}
    return {
        "analysis_id": str(result.get("id") or ""),
        "overall_score": result.get("overall_score"),
        "ats_score": result.get("ats_score"),
        "target_job_title": metadata.get("target_job_title"),
    }
