"""
Chunked orchestration and end-to-end generation pipeline tests.

Run with:
    python3 -m pytest tests/test_quiz_generation.py -v
"""

import asyncio

import pytest

from models.quiz_models import ContentSection, CourseMeta
from services.chunked_orchestrator import ChunkedOrchestrator
from services.prompt_composer import PromptComposer
from services.quiz_generator import QuizGenerator
from services.response_parser import ResponseParser
from utils.exceptions import GenerationError, InsufficientContentError
from fakes import FakeGenerationClient, FakeTranslator, course_sections, questions_payload


BIOLOGY = CourseMeta(id="course-1", title="Biology", description="Intro to cells")


class RecordingComposer(PromptComposer):
    def __init__(self):
        super().__init__()
        self.section_calls = []

    def compose_for_section(self, section, course, num_questions, start_id=1, **kwargs):
        self.section_calls.append((section.title, num_questions, start_id))
        return super().compose_for_section(section, course, num_questions, start_id=start_id, **kwargs)


def _sections(count):
    return [ContentSection(title=f"Section {i + 1}", body=f"Body of section {i + 1}. " * 80) for i in range(count)]


def _orchestrator(responses):
    composer = RecordingComposer()
    client = FakeGenerationClient(responses)
    return ChunkedOrchestrator(composer, client, ResponseParser()), composer, client


def test_chunking_uses_at_most_three_sections_and_never_over_requests():
    orchestrator, composer, client = _orchestrator([questions_payload(2)] * 5)

    questions = asyncio.run(orchestrator.generate_chunked(_sections(5), BIOLOGY, 5))

    assert len(client.requests) == 3
    assert [title for title, _, _ in composer.section_calls] == ["Section 1", "Section 2", "Section 3"]
    requested = [count for _, count, _ in composer.section_calls]
    assert requested == [2, 2, 1]
    assert sum(requested) <= 5
    assert [q.id for q in questions] == [1, 2, 3, 4, 5]


def test_chunking_with_fewer_sections_than_cap():
    orchestrator, composer, client = _orchestrator([questions_payload(4)] * 2)

    questions = asyncio.run(orchestrator.generate_chunked(_sections(2), BIOLOGY, 7))

    assert len(client.requests) == 2
    assert [count for _, count, _ in composer.section_calls] == [4, 3]
    assert len(questions) == 7


def test_chunking_stops_once_enough_questions_collected():
    orchestrator, composer, client = _orchestrator([questions_payload(3)] * 3)

    questions = asyncio.run(orchestrator.generate_chunked(_sections(3), BIOLOGY, 2))

    assert len(client.requests) == 2
    assert [count for _, count, _ in composer.section_calls] == [1, 1]
    assert [q.id for q in questions] == [1, 2]


def test_failed_sections_are_skipped():
    orchestrator, composer, client = _orchestrator([
        GenerationError("upstream 500"),
        "I cannot help with that.",
        questions_payload(2, section="Section 3"),
    ])

    questions = asyncio.run(orchestrator.generate_chunked(_sections(3), BIOLOGY, 6))

    assert len(client.requests) == 3
    assert [start for _, _, start in composer.section_calls] == [1, 1, 1]
    assert [q.id for q in questions] == [1, 2]
    assert questions[0].section_label == "Section 3"


def test_all_sections_failing_is_a_generation_error():
    orchestrator, _, _ = _orchestrator([GenerationError("a"), "", GenerationError("c")])

    with pytest.raises(GenerationError):
        asyncio.run(orchestrator.generate_chunked(_sections(3), BIOLOGY, 3))


def test_start_ids_continue_the_running_sequence():
    orchestrator, composer, _ = _orchestrator([questions_payload(2), questions_payload(2), questions_payload(2)])

    asyncio.run(orchestrator.generate_chunked(_sections(3), BIOLOGY, 6))

    assert [start for _, _, start in composer.section_calls] == [1, 3, 5]


def test_should_chunk_threshold():
    assert ChunkedOrchestrator.should_chunk("x" * 2001, 2000)
    assert not ChunkedOrchestrator.should_chunk("x" * 2000, 2000)


# QuizGenerator

def test_small_course_uses_single_call(settings):
    client = FakeGenerationClient([questions_payload(6)])
    generator = QuizGenerator(settings, client=client)

    quiz = asyncio.run(generator.generate(BIOLOGY, course_sections(1, 260), num_questions=5))

    assert len(client.requests) == 1
    assert quiz.title == "AI Quiz: Biology"
    assert quiz.course_id == "course-1"
    assert quiz.id.startswith("quiz_ai_")
    assert len(quiz.questions) == 5
    assert "Cells use Energy" in client.requests[0].user_prompt


def test_large_course_is_chunked(settings):
    client = FakeGenerationClient([questions_payload(1)] * 3)
    generator = QuizGenerator(settings, client=client)

    quiz = asyncio.run(generator.generate(BIOLOGY, course_sections(4, 1500), num_questions=3))

    assert len(client.requests) == 3
    assert [q.id for q in quiz.questions] == [1, 2, 3]


def test_insufficient_content_never_calls_upstream(settings):
    client = FakeGenerationClient([])
    generator = QuizGenerator(settings, client=client)

    with pytest.raises(InsufficientContentError):
        asyncio.run(generator.generate(BIOLOGY, course_sections(3, 10)))
    assert client.requests == []


def test_single_call_failure_propagates(settings):
    generator = QuizGenerator(settings, client=FakeGenerationClient([GenerationError("upstream 503")]))

    with pytest.raises(GenerationError):
        asyncio.run(generator.generate(BIOLOGY, course_sections(1, 300)))


def test_zero_parsed_questions_is_a_generation_error(settings):
    generator = QuizGenerator(settings, client=FakeGenerationClient(["Sorry, I can't do that."]))

    with pytest.raises(GenerationError) as exc_info:
        asyncio.run(generator.generate(BIOLOGY, course_sections(1, 300)))
    assert exc_info.value.error_code == "NO_QUESTIONS"


def test_custom_template_reaches_the_prompt(settings):
    client = FakeGenerationClient([questions_payload(2)])
    generator = QuizGenerator(settings, client=client)

    asyncio.run(generator.generate(
        BIOLOGY, course_sections(1, 300), num_questions=2, template="Quiz me {numQuestions} times on {courseTitle}"
    ))

    assert "Quiz me 2 times on Biology" in client.requests[0].user_prompt


def test_translation_keeps_question_structure(settings):
    translator = FakeTranslator()
    generator = QuizGenerator(settings, client=FakeGenerationClient([questions_payload(2)]), translator=translator)

    quiz = asyncio.run(generator.generate(BIOLOGY, course_sections(1, 300), num_questions=2, target_language="zu"))

    assert len(translator.calls) == 1
    assert quiz.questions[0].text == "[zu] Generated question 1?"
    assert [o.text for o in quiz.questions[1].options] == ["[zu] Alpha", "[zu] Bravo", "[zu] Charlie", "[zu] Delta"]
    assert quiz.questions[0].correct_index == 1
    assert quiz.questions[0].correct_option.explanation == "[zu] Covered in Intro"
    assert quiz.questions[0].options[0].explanation == ""
