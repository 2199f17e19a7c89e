"""
Course content analysis for quiz generation.
Turns raw course sections into structured ContentSections and decides
whether the material can support question generation at all.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Sequence, Union

from models.quiz_models import ContentAnalysis, ContentSection, RawSection, SectionIssue
from utils.exceptions import InsufficientContentError

logger = logging.getLogger(__name__)

MIN_SECTION_LENGTH = 50
MIN_TOTAL_LENGTH = 200
MAX_KEY_TERMS = 10

# Headings (##, ###) or emphasised lines (**bold**, __underline__) at line start
SUBHEADING_PATTERN = re.compile(r"^(?:#{2,3}\s+(.+)|\*\*(.+?)\*\*|__(.+?)__)", re.MULTILINE)
KEY_TERM_PATTERN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
PLACEHOLDER_PATTERNS = (
    "lorem ipsum",
    "placeholder",
    "add content here",
    "content goes here",
    "todo",
    "tbd",
)

RawSectionLike = Union[RawSection, Dict[str, Any]]


def _coerce(raw: RawSectionLike) -> RawSection:
    if isinstance(raw, RawSection):
        return raw
    return RawSection(**raw)


def extract_subheadings(content: str) -> List[str]:
    subheadings = []
    for match in SUBHEADING_PATTERN.finditer(content):
        text = next(group for group in match.groups() if group is not None)
        text = re.sub(r"^[#*_\s]+|[#*_\s]+$", "", text)
        if text:
            subheadings.append(text)
    return subheadings


def extract_key_terms(content: str, limit: int = MAX_KEY_TERMS) -> List[str]:
    """Capitalised word sequences, deduplicated in first-seen order."""
    terms: List[str] = []
    for term in KEY_TERM_PATTERN.findall(content):
        if term not in terms:
            terms.append(term)
            if len(terms) >= limit:
                break
    return terms


class ContentAnalyzer:
    """Extracts structured sections from raw course material"""

    def __init__(
        self,
        min_section_length: int = MIN_SECTION_LENGTH,
        min_total_length: int = MIN_TOTAL_LENGTH,
    ):
        self.min_section_length = min_section_length
        self.min_total_length = min_total_length

    def analyze(self, raw_sections: Sequence[RawSectionLike], course_title: str = "") -> List[ContentSection]:
        """
        Validate the material as a whole, then extract its sections.

        Raises InsufficientContentError when no section is valid or the valid
        bodies together fall short of the minimum total length.
        """
        self.ensure_sufficient(raw_sections, course_title)
        return self.extract_sections(raw_sections)

    def extract_sections(self, raw_sections: Sequence[RawSectionLike]) -> List[ContentSection]:
        """
        Turn raw sections into ContentSections without the aggregate length check.

        Sections whose trimmed body is shorter than the minimum are dropped.
        Raises InsufficientContentError when nothing valid remains.
        """
        sections: List[ContentSection] = []

        for index, raw in enumerate(raw_sections or []):
            raw = _coerce(raw)
            title = raw.title or f"Section {index + 1}"
            body = (raw.content or "").strip()

            if len(body) < self.min_section_length:
                logger.warning(f"Dropping section '{title}': {len(body)} chars (need {self.min_section_length})")
                continue

            subheadings = extract_subheadings(body)
            key_terms = extract_key_terms(body)
            sections.append(ContentSection(
                title=title,
                body=body,
                subheadings=subheadings,
                key_terms=key_terms,
            ))
            logger.info(f"Section '{title}': {len(body)} chars, {len(subheadings)} subheadings, {len(key_terms)} key terms")

        if not sections:
            reasons = ["No sections contain valid content"] if raw_sections else ["Course has no content sections"]
            raise InsufficientContentError(reasons)

        logger.info(f"Analyzed {len(sections)}/{len(raw_sections)} sections as valid")
        return sections

    def validate_for_generation(self, raw_sections: Sequence[RawSectionLike]) -> List[str]:
        """Return the list of reasons the material is unsuitable (empty when suitable)."""
        raw_sections = [_coerce(raw) for raw in raw_sections or []]
        issues: List[str] = []

        if not raw_sections:
            issues.append("Course has no content sections")
            return issues

        valid_bodies = [
            body for body in ((raw.content or "").strip() for raw in raw_sections)
            if len(body) >= self.min_section_length
        ]
        total_length = sum(len(body) for body in valid_bodies)

        if not valid_bodies:
            issues.append("No sections contain valid content")
        if total_length < self.min_total_length:
            issues.append(f"Course content too short ({total_length} chars, need at least {self.min_total_length})")

        return issues

    def ensure_sufficient(self, raw_sections: Sequence[RawSectionLike], course_title: str = "") -> None:
        issues = self.validate_for_generation(raw_sections)
        if issues:
            logger.error(f"Course '{course_title}' rejected for quiz generation: {issues}")
            raise InsufficientContentError(issues, course_title=course_title or None)

    def build_report(self, course_title: str, raw_sections: Iterable[RawSectionLike]) -> ContentAnalysis:
        """Diagnostic report on course content structure, for authors and admins."""
        raw_sections = [_coerce(raw) for raw in raw_sections or []]
        analysis = ContentAnalysis(course_title=course_title, total_sections=len(raw_sections))

        if not raw_sections:
            analysis.recommendations.append("Course has no content sections - add sections via Course Management")
            return analysis

        for index, raw in enumerate(raw_sections):
            title = raw.title or f"Section {index + 1}"
            content = (raw.content or "").strip()
            length = len(content)
            analysis.total_characters += length

            if length == 0:
                analysis.empty_sections += 1
                analysis.sections_with_issues.append(
                    SectionIssue(id=raw.id, title=title, issue="Empty content", content_length=0)
                )
                continue
            if length < self.min_section_length:
                analysis.sections_with_issues.append(SectionIssue(
                    id=raw.id, title=title,
                    issue=f"Very short content (less than {self.min_section_length} characters)",
                    content_length=length,
                ))
            else:
                analysis.valid_sections += 1

            if content == raw.title:
                analysis.sections_with_issues.append(
                    SectionIssue(id=raw.id, title=title, issue="Content is identical to title", content_length=length)
                )
            lowered = content.lower()
            if any(pattern in lowered for pattern in PLACEHOLDER_PATTERNS):
                analysis.sections_with_issues.append(
                    SectionIssue(id=raw.id, title=title, issue="Contains placeholder text", content_length=length)
                )

        analysis.average_content_length = round(analysis.total_characters / analysis.total_sections)

        if analysis.valid_sections == 0:
            analysis.recommendations.append("No sections have valid content - add meaningful text to course sections")
        elif analysis.valid_sections < analysis.total_sections / 2:
            analysis.recommendations.append("Less than half of sections have valid content - review and add content to empty sections")
        if analysis.total_characters < 500:
            analysis.recommendations.append("Total course content is very short - aim for at least 500 characters of meaningful content")
        if analysis.average_content_length < 100:
            analysis.recommendations.append("Average section content is too short - aim for at least 100 characters per section")
        if not analysis.sections_with_issues and analysis.valid_sections > 0:
            analysis.recommendations.append("Course content looks good for AI quiz generation!")

        return analysis
