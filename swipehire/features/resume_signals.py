from __future__ import annotations

import re

CONTACT_RE = re.compile(r"email|phone|linkedin", re.IGNORECASE)
EXPERIENCE_RE = re.compile(r"experience|work|job|position", re.IGNORECASE)
EDUCATION_RE = re.compile(r"education|degree|university|college", re.IGNORECASE)
SKILLS_RE = re.compile(r"skills|technologies|tools", re.IGNORECASE)
SUMMARY_RE = re.compile(r"summary|objective|profile", re.IGNORECASE)

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
LINKEDIN_RE = re.compile(r"linkedin\.com/in/[a-zA-Z0-9-]+", re.IGNORECASE)
BULLET_RE = re.compile(r"^\s*[•·\-*▪‣◦]\s+", re.MULTILINE)
NUMBER_RE = re.compile(r"\d|%|\$|€|£")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
SPECIAL_CHARS_RE = re.compile(r"[★☆♦♠♣♥]")

ADDRESS_TERMS = ("street", "avenue", "drive", "city", "state", "zip")

ACTION_VERBS = (
    "achieved",
    "managed",
    "led",
    "developed",
    "created",
    "implemented",
    "improved",
    "increased",
    "reduced",
    "organized",
    "coordinated",
    "established",
    "executed",
    "launched",
    "delivered",
    "streamlined",
)

JARGON_TERMS = (
    "synergize",
    "leverage",
    "paradigm",
    "holistic",
    "utilize",
    "facilitate",
    "streamline",
    "optimize",
    "revolutionize",
)

# Ordered the way recruiters and ATS parsers expect to read them.
SECTION_ORDER = ("contact", "summary", "experience", "education", "skills")

SECTION_HEADINGS = {
    "contact": ("contact", "contact information"),
    "summary": ("summary", "professional summary", "profile", "objective"),
    "experience": ("experience", "work experience", "professional experience", "employment", "work history"),
    "education": ("education", "academic background"),
    "skills": ("skills", "technical skills", "core competencies", "technologies"),
    "certifications": ("certifications", "certificates", "licenses"),
}


def words(text: str) -> list[str]:
    return text.split()


def detect_sections(text: str) -> dict[str, bool]:
    return {
        "contact": bool(CONTACT_RE.search(text)),
        "experience": bool(EXPERIENCE_RE.search(text)),
        "education": bool(EDUCATION_RE.search(text)),
        "skills": bool(SKILLS_RE.search(text)),
        "summary": bool(SUMMARY_RE.search(text)),
    }


def _heading_re(alias: str) -> re.Pattern[str]:
    return re.compile(rf"^\s*{re.escape(alias)}\s*:?\s*$", re.IGNORECASE | re.MULTILINE)


def heading_positions(text: str) -> dict[str, int]:
    """Offset of the first heading line for each known section."""
    positions: dict[str, int] = {}
    for section, aliases in SECTION_HEADINGS.items():
        for alias in aliases:
            match = _heading_re(alias).search(text)
            if match and (section not in positions or match.start() < positions[section]):
                positions[section] = match.start()
    return positions


def keyword_positions(text: str) -> dict[str, int]:
    lowered = text.lower()
    positions: dict[str, int] = {}
    for section in SECTION_ORDER:
        index = lowered.find(section)
        if index != -1:
            positions[section] = index
    return positions


def section_order_ok(text: str) -> bool:
    positions = heading_positions(text) or keyword_positions(text)
    last = -1
    for section in SECTION_ORDER:
        index = positions.get(section)
        if index is None:
            continue
        if index < last:
            return False
        last = index
    return True


def bullet_lines(text: str) -> list[str]:
    lines: list[str] = []
    for line in text.splitlines():
        if BULLET_RE.match(line):
            lines.append(BULLET_RE.sub("", line, count=1).strip())
    return lines


def sentences(text: str) -> list[str]:
    return [part.strip() for part in SENTENCE_SPLIT_RE.split(text) if part.strip()]


def average_sentence_length(text: str) -> float:
    parts = sentences(text)
    if not parts:
        return 0.0
    return sum(len(part.split()) for part in parts) / len(parts)


def _count_terms(text: str, terms: tuple[str, ...]) -> int:
    total = 0
    for term in terms:
        total += len(re.findall(rf"\b{re.escape(term)}\b", text, flags=re.IGNORECASE))
    return total


def count_action_verbs(text: str) -> int:
    return _count_terms(text, ACTION_VERBS)


def found_action_verbs(text: str) -> list[str]:
    return [verb for verb in ACTION_VERBS if re.search(rf"\b{verb}\b", text, flags=re.IGNORECASE)]


def count_jargon(text: str) -> int:
    return _count_terms(text, JARGON_TERMS)


def has_location(text: str) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in ADDRESS_TERMS)


_DATE_PATTERNS = (
    re.compile(r"\b(0?[1-9]|1[0-2])/(19|20)\d{2}\b"),
    re.compile(r"\b(19|20)\d{2}\b"),
    re.compile(r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]* (19|20)\d{2}\b", re.IGNORECASE),
)


def dates_consistent(text: str) -> bool:
    if not re.search(r"(19|20)\d{2}", text):
        return True
    return any(len(pattern.findall(text)) > 1 for pattern in _DATE_PATTERNS)


def line_snippets(text: str, term: str, *, max_items: int = 2) -> list[str]:
    if not term:
        return []
    output: list[str] = []
    needle = term.lower()
    for line in text.splitlines():
        value = line.strip()
        if value and needle in value.lower():
            output.append(value[:160])
        if len(output) >= max_items:
            break
    return output
