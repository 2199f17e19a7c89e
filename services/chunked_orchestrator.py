"""
Chunked generation: one reduced prompt per section, run sequentially so the
whole operation shares a single wall-clock budget instead of fanning out
parallel long-running calls against the completion service.
"""

import logging
import math
from typing import List, Optional, Sequence

from clients.generation_client import GenerationClient
from models.quiz_models import CanonicalQuestion, ContentSection, CourseMeta
from services.prompt_composer import PromptComposer, TemplateLike
from services.response_parser import ResponseParser
from utils.exceptions import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SECTIONS = 3


class ChunkedOrchestrator:
    """Splits a large generation into at most `max_sections` per-section calls"""

    def __init__(
        self,
        composer: PromptComposer,
        client: GenerationClient,
        parser: ResponseParser,
        max_sections: int = DEFAULT_MAX_SECTIONS,
    ):
        self.composer = composer
        self.client = client
        self.parser = parser
        self.max_sections = max_sections

    @staticmethod
    def should_chunk(formatted_content: str, threshold: int) -> bool:
        return len(formatted_content) > threshold

    def select_sections(self, sections: Sequence[ContentSection]) -> List[ContentSection]:
        selected = list(sections[:self.max_sections])
        if len(sections) > len(selected):
            logger.info(
                f"Chunked generation covers {len(selected)} of {len(sections)} sections; "
                f"remaining sections are not used for this quiz"
            )
        return selected

    async def generate_chunked(
        self,
        sections: Sequence[ContentSection],
        course: CourseMeta,
        num_questions: int,
        template: TemplateLike = None,
        temperature: Optional[float] = None,
        target_language: Optional[str] = None,
    ) -> List[CanonicalQuestion]:
        """
        Collect up to `num_questions` questions section by section.

        A section whose call fails or parses to nothing is skipped; the
        result may hold fewer questions than requested.

        Raises:
            GenerationError: no section produced any question.
        """
        selected = self.select_sections(sections)
        if not selected or num_questions <= 0:
            raise GenerationError("No sections available for chunked generation")

        per_section = math.ceil(num_questions / len(selected))
        collected: List[CanonicalQuestion] = []
        logger.info(
            f"Chunked generation for '{course.title}': {len(selected)} sections, "
            f"{per_section} questions per section"
        )

        for section in selected:
            remaining = num_questions - len(collected)
            if remaining <= 0:
                break
            requested = min(per_section, remaining)
            start_id = len(collected) + 1

            request = self.composer.compose_for_section(
                section, course, requested,
                start_id=start_id,
                template=template,
                temperature=temperature,
                target_language=target_language,
            )

            try:
                raw = await self.client.complete(request)
            except GenerationError as e:
                logger.error(f"Section '{section.title}' generation failed, skipping: {e.message}")
                continue

            questions = self.parser.parse(raw)
            if not questions:
                logger.warning(f"Section '{section.title}' produced no usable questions, skipping")
                continue

            for offset, question in enumerate(questions[:requested]):
                collected.append(question.model_copy(update={"id": start_id + offset}))
            logger.info(f"Collected {min(len(questions), requested)} questions from section '{section.title}'")

        if not collected:
            raise GenerationError("Chunked generation produced no questions")

        logger.info(f"Chunked generation total: {len(collected)}/{num_questions} questions")
        return collected
