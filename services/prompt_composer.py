"""
Builds GenerationRequests from formatted course content, course metadata
and an optional user template.
"""

import logging
from typing import Optional, Sequence, Union

from models.quiz_models import ContentSection, CourseMeta, GenerationRequest, PromptTemplate
from prompts.quiz_prompts import (
    QUIZ_SYSTEM_INSTRUCTION,
    SECTION_SYSTEM_INSTRUCTION,
    build_custom_quiz_prompt,
    build_default_quiz_prompt,
    build_section_quiz_prompt,
)
from services.prompt_formatter import PromptFormatter, render_section

logger = logging.getLogger(__name__)

SECTION_CONTENT_LIMIT = 1000
SECTION_KEY_TERMS_LIMIT = 5

TemplateLike = Union[PromptTemplate, str, None]


def _instructions(template: TemplateLike) -> Optional[str]:
    if template is None:
        return None
    if isinstance(template, PromptTemplate):
        return template.instructions
    return template or None


class PromptComposer:
    """Merges instructions, content and course metadata into one request"""

    def __init__(
        self,
        formatter: Optional[PromptFormatter] = None,
        temperature: float = 0.7,
        streaming_threshold: int = 2000,
    ):
        self.formatter = formatter or PromptFormatter()
        self.temperature = temperature
        self.streaming_threshold = streaming_threshold

    def _request(
        self,
        system_instruction: str,
        user_prompt: str,
        temperature: Optional[float],
        target_language: Optional[str],
    ) -> GenerationRequest:
        return GenerationRequest(
            system_instruction=system_instruction,
            user_prompt=user_prompt,
            temperature=self.temperature if temperature is None else temperature,
            streaming_hint=len(system_instruction) + len(user_prompt) > self.streaming_threshold,
            target_language=target_language,
        )

    def compose(
        self,
        sections: Sequence[ContentSection],
        course: CourseMeta,
        num_questions: int,
        template: TemplateLike = None,
        temperature: Optional[float] = None,
        target_language: Optional[str] = None,
    ) -> GenerationRequest:
        content = self.formatter.format(sections)
        return self.compose_from_content(
            content, course, num_questions, template,
            temperature=temperature, target_language=target_language,
        )

    def compose_from_content(
        self,
        content: str,
        course: CourseMeta,
        num_questions: int,
        template: TemplateLike = None,
        temperature: Optional[float] = None,
        target_language: Optional[str] = None,
    ) -> GenerationRequest:
        """Compose the full-content request from already formatted content."""
        instructions = _instructions(template)
        if instructions:
            logger.info(f"Composing quiz prompt from custom template for '{course.title}'")
            user_prompt = build_custom_quiz_prompt(
                instructions, course.title, course.description, content, num_questions
            )
        else:
            user_prompt = build_default_quiz_prompt(
                course.title, course.description, content, num_questions
            )
        return self._request(QUIZ_SYSTEM_INSTRUCTION, user_prompt, temperature, target_language)

    def compose_for_section(
        self,
        section: ContentSection,
        course: CourseMeta,
        num_questions: int,
        start_id: int = 1,
        template: TemplateLike = None,
        temperature: Optional[float] = None,
        target_language: Optional[str] = None,
    ) -> GenerationRequest:
        """Reduced-content request for one section of a chunked generation."""
        body = section.body[:SECTION_CONTENT_LIMIT]
        key_terms = section.key_terms[:SECTION_KEY_TERMS_LIMIT]

        instructions = _instructions(template)
        if instructions:
            content = render_section(section.title, body, key_terms=key_terms).strip()
            user_prompt = build_custom_quiz_prompt(
                instructions, course.title, course.description, content, num_questions, start_id
            )
        else:
            user_prompt = build_section_quiz_prompt(
                section.title, course.title, key_terms, body, num_questions, start_id
            )
        return self._request(SECTION_SYSTEM_INSTRUCTION, user_prompt, temperature, target_language)
