"""
End-to-end AI quiz generation pipeline.

    analyze (validate, extract) -> format -> compose -> single call | chunked -> parse -> translate

Formatted content above the chunking threshold is generated section by
section; smaller content goes out as one request whose failure propagates.
"""

import logging
import time
from typing import List, Optional, Sequence

from clients.generation_client import GenerationClient
from clients.translator_client import TranslatorClient
from models.quiz_models import CanonicalQuestion, CourseMeta, Quiz
from services.chunked_orchestrator import ChunkedOrchestrator
from services.content_analyzer import ContentAnalyzer, RawSectionLike
from services.prompt_composer import PromptComposer, TemplateLike
from services.prompt_formatter import PromptFormatter
from services.response_parser import ResponseParser
from utils.config import QuizSettings
from utils.exceptions import GenerationError

logger = logging.getLogger(__name__)

MIN_FORMATTED_LENGTH = 100


class QuizGenerator:
    """Wires the pipeline components together from one settings object"""

    def __init__(
        self,
        settings: QuizSettings,
        client: Optional[GenerationClient] = None,
        translator: Optional[TranslatorClient] = None,
    ):
        self.settings = settings
        self.analyzer = ContentAnalyzer()
        self.formatter = PromptFormatter(max_total_length=settings.max_total_prompt_length)
        self.composer = PromptComposer(
            formatter=self.formatter,
            temperature=settings.temperature,
            streaming_threshold=settings.streaming_threshold,
        )
        self.client = client or GenerationClient(settings)
        self.parser = ResponseParser()
        self.orchestrator = ChunkedOrchestrator(
            self.composer, self.client, self.parser, max_sections=settings.max_chunked_sections
        )
        self.translator = translator or TranslatorClient(settings)

    async def generate(
        self,
        course: CourseMeta,
        raw_sections: Sequence[RawSectionLike],
        num_questions: int = 5,
        template: TemplateLike = None,
        temperature: Optional[float] = None,
        target_language: Optional[str] = None,
    ) -> Quiz:
        """
        Generate a quiz for one course.

        Raises:
            InsufficientContentError: the course material cannot support a quiz.
            GenerationError: formatting, the completion service or parsing
                produced nothing usable.
        """
        start_time = time.time()
        logger.info(f"Starting quiz generation for '{course.title}' ({num_questions} questions)")

        sections = self.analyzer.analyze(raw_sections, course.title)

        content = self.formatter.format(sections)
        if len(content.strip()) < MIN_FORMATTED_LENGTH:
            logger.error(f"Formatted content for '{course.title}' is only {len(content.strip())} chars")
            raise GenerationError(
                f'Content formatting failed. Course "{course.title}" content could not be formatted for generation.',
                error_code="CONTENT_FORMATTING_FAILED",
            )

        if ChunkedOrchestrator.should_chunk(content, self.settings.chunking_threshold):
            logger.info(f"Formatted content is {len(content)} chars, using chunked generation")
            questions = await self.orchestrator.generate_chunked(
                sections, course, num_questions,
                template=template, temperature=temperature, target_language=target_language,
            )
        else:
            request = self.composer.compose_from_content(
                content, course, num_questions, template,
                temperature=temperature, target_language=target_language,
            )
            raw = await self.client.complete(request)
            questions = self.parser.parse(raw)[:num_questions]

        if not questions:
            raise GenerationError("No questions could be generated from the completion", error_code="NO_QUESTIONS")

        if target_language:
            questions = await self.translate_questions(questions, target_language)

        quiz = Quiz(
            id=f"quiz_ai_{int(time.time() * 1000)}",
            title=f"AI Quiz: {course.title}",
            course_id=course.id or "",
            questions=questions,
        )
        logger.info(f"Generated {len(questions)} questions for '{course.title}' in {time.time() - start_time:.2f}s")
        return quiz

    async def translate_questions(
        self,
        questions: Sequence[CanonicalQuestion],
        target_language: str,
    ) -> List[CanonicalQuestion]:
        """Translate question, option and explanation texts as one concurrent batch."""
        texts: List[str] = []
        for question in questions:
            texts.append(question.text)
            for option in question.options:
                texts.extend([option.text, option.explanation])

        translated = iter(await self.translator.translate_many(texts, target_language))

        result = []
        for question in questions:
            text = next(translated)
            options = []
            for option in question.options:
                option_text = next(translated)
                explanation = next(translated)
                options.append(option.model_copy(update={"text": option_text, "explanation": explanation}))
            result.append(question.model_copy(update={"text": text, "options": options}))

        logger.info(f"Translated {len(result)} questions to '{target_language}'")
        return result
