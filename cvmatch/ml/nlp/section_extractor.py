"""
CV section extraction.

Splits raw CV text into skills, education, experience and certificates by
spotting header lines in English or Vietnamese. The result is stored on
the CV for display; scoring works from the full text.
"""

import re
import unicodedata
from dataclasses import asdict, dataclass, field
from typing import Optional

from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import get_logger

logger = get_logger(__name__)

# A line containing a keyword is a header only if it is at most this
# many characters longer than the keyword
HEADER_LENGTH_SLACK = 5

# Lines this short are dropped from section content
MIN_CONTENT_LINE_LENGTH = 2

# Checked in order; the first section with a matching keyword wins
SECTION_KEYWORDS: list[tuple[str, list[str]]] = [
    (
        "skills",
        [
            "skills",
            "skill",
            "technical skills",
            "key skills",
            "core competencies",
            "competencies",
            "kỹ năng",
            "kĩ năng",
            "kỹ năng chuyên môn",
        ],
    ),
    (
        "education",
        [
            "education",
            "academic background",
            "qualifications",
            "học vấn",
            "trình độ học vấn",
            "quá trình học tập",
        ],
    ),
    (
        "experience",
        [
            "experience",
            "work experience",
            "employment history",
            "work history",
            "professional experience",
            "kinh nghiệm",
            "kinh nghiệm làm việc",
        ],
    ),
    (
        "certificates",
        [
            "certificates",
            "certificate",
            "certifications",
            "certification",
            "licenses",
            "chứng chỉ",
            "bằng cấp",
        ],
    ),
]

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_BULLET_RE = re.compile(r"^[\s•●○◦▪▫■□►▸‣⁃∙·*+\-–—]+")


@dataclass
class CVSections:
    """Content lines grouped by CV section."""

    skills: list[str] = field(default_factory=list)
    education: list[str] = field(default_factory=list)
    experience: list[str] = field(default_factory=list)
    certificates: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.skills or self.education or self.experience or self.certificates)

    def to_dict(self) -> dict[str, list[str]]:
        return asdict(self)


def normalize_header(line: str) -> str:
    """Lower-case a line and strip punctuation and bullet glyphs."""
    stripped = _PUNCTUATION_RE.sub(" ", unicodedata.normalize("NFC", line).lower())
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def detect_section(line: str) -> Optional[str]:
    """Return the section a header line opens, or None for content lines."""
    normalized = normalize_header(line)
    if not normalized:
        return None

    for section, keywords in SECTION_KEYWORDS:
        for keyword in keywords:
            if normalized == keyword:
                return section
            if keyword in normalized and len(normalized) <= len(keyword) + HEADER_LENGTH_SLACK:
                return section
    return None


def _clean_content(lines: list[str]) -> list[str]:
    cleaned = []
    for line in lines:
        if len(line) <= MIN_CONTENT_LINE_LENGTH:
            continue
        text = _LEADING_BULLET_RE.sub("", line).strip()
        if text:
            cleaned.append(text)
    return cleaned


def extract_sections(text: str) -> CVSections:
    """
    Split CV text into sections.

    Lines before the first recognised header are discarded. Each header
    closes the previous section and opens a new one; a section seen twice
    accumulates content from both places.

    Args:
        text: Raw CV text

    Returns:
        CVSections with the content lines of each section
    """
    sections = CVSections()
    if not text or len(text.strip()) < get_settings().extraction.min_section_text_length:
        return sections

    current: Optional[str] = None
    buffer: list[str] = []

    def flush() -> None:
        if current is not None:
            getattr(sections, current).extend(_clean_content(buffer))

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        section = detect_section(line)
        if section is not None:
            flush()
            current = section
            buffer = []
        elif current is not None:
            buffer.append(line)

    flush()

    logger.debug(
        f"Extracted sections: skills={len(sections.skills)}, "
        f"education={len(sections.education)}, experience={len(sections.experience)}, "
        f"certificates={len(sections.certificates)}"
    )
    return sections
