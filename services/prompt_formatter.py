"""
Renders analyzed course sections into a bounded text block for prompts.
"""

import logging
import re
from typing import List, Sequence

from models.quiz_models import ContentSection

logger = logging.getLogger(__name__)

CONTENT_CONTINUES_MARKER = "\n\n[... content continues ...]\n\n"
SECTION_CONTINUES_MARKER = "\n[... section continues ...]"


def normalize_content(content: str) -> str:
    """Strip markup that costs prompt space without carrying meaning."""
    content = re.sub(r"```[\s\S]*?```", "[Code Block]", content.strip())
    content = re.sub(r"!\[.*?\]\(.*?\)", "[Image]", content)
    content = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", content)
    content = re.sub(r"#{4,}", "###", content)
    content = re.sub(r"\*{3,}", "**", content)
    content = re.sub(r"\n{3,}", "\n\n", content)
    return content.strip()


def render_section(title: str, body: str, subheadings: Sequence[str] = (), key_terms: Sequence[str] = ()) -> str:
    header = f"\n## SECTION: {title}\n"
    subtitles_info = f"**Key Subtitles:** {', '.join(subheadings)}\n" if subheadings else ""
    key_terms_info = f"**Key Terms:** {', '.join(key_terms)}\n" if key_terms else ""
    return f"{header}{subtitles_info}{key_terms_info}**Content:**\n{body}\n"


class PromptFormatter:
    """
    Formats sections under a total character budget.

    The paragraph and fallback ratios are tunable; the defaults keep most
    of a section's leading paragraphs and fall back to head+tail when the
    first paragraphs alone are too long.
    """

    def __init__(
        self,
        max_total_length: int = 5000,
        paragraph_fill_ratio: float = 0.8,
        min_fill_ratio: float = 0.5,
    ):
        self.max_total_length = max_total_length
        self.paragraph_fill_ratio = paragraph_fill_ratio
        self.min_fill_ratio = min_fill_ratio

    def truncate(self, content: str, budget: int) -> str:
        if len(content) <= budget:
            return content

        truncated = ""
        used = 0
        for paragraph in content.split("\n\n"):
            if used + len(paragraph) < budget * self.paragraph_fill_ratio:
                truncated += paragraph + "\n\n"
                used += len(paragraph)
            else:
                break

        if len(truncated) < budget * self.min_fill_ratio:
            half = budget // 2
            logger.info(f"Paragraph truncation kept {len(truncated)}/{budget} chars, using head+tail")
            return content[:half] + CONTENT_CONTINUES_MARKER + content[len(content) - half:]

        return truncated + SECTION_CONTINUES_MARKER

    def format(self, sections: Sequence[ContentSection], max_total_length: int = None) -> str:
        """Render sections into one block, stopping before the total budget is exceeded."""
        if not sections:
            logger.warning("No sections provided to format")
            return ""

        max_total_length = max_total_length or self.max_total_length
        section_budget = max_total_length // len(sections)
        rendered: List[str] = []
        current_length = 0

        for section in sections:
            # Header lines and the continuation marker count against the section budget
            overhead = len(render_section(section.title, "", section.subheadings, section.key_terms))
            body_budget = section_budget - overhead - len(CONTENT_CONTINUES_MARKER)
            if body_budget <= 0:
                body_budget = section_budget
            body = self.truncate(normalize_content(section.body), body_budget)
            block = render_section(section.title, body, section.subheadings, section.key_terms)

            if current_length + len(block) > max_total_length:
                logger.info(
                    f"Prompt length limit reached at section '{section.title}': "
                    f"kept {len(rendered)}/{len(sections)} sections"
                )
                break

            rendered.append(block)
            current_length += len(block)

        formatted = "".join(rendered)
        logger.info(f"Formatted {len(rendered)} sections for prompt ({len(formatted)} chars)")
        return formatted
