"""
QuizService lifecycle tests over a local JSON store and a fake completion client.

Run with:
    python3 -m pytest tests/test_quiz_service.py -v
"""

import asyncio
import json

import pytest

from clients.document_store import COURSES, PROMPT_TEMPLATES, QUIZ_ANSWERS, QUIZ_RESULTS, USERS
from models.quiz_models import TemplateCreateRequest
from services.quiz_generator import QuizGenerator
from services.quiz_service import QuizService
from utils.exceptions import AlreadySubmittedError, NotFoundError, UnauthorizedError, ValidationError
from utils.file_storage import JsonFileStore
from fakes import FakeGenerationClient, course_sections, questions_payload


@pytest.fixture
def store(tmp_path):
    store = JsonFileStore(tmp_path)
    store.insert(COURSES, {
        "id": "course-1",
        "title": "Biology",
        "description": "Intro to cells",
        "content": course_sections(1, 400),
    })
    store.insert(USERS, {"id": "u1", "display_name": "Ada"})
    return store


def _service(store, settings, responses):
    client = FakeGenerationClient(responses)
    return QuizService(store, QuizGenerator(settings, client=client)), client


def _start(service, user_id="u1", **kwargs):
    return asyncio.run(service.start_quiz("course-1", user_id, num_questions=3, **kwargs))


def _correct_answers(started):
    return {q.id: q.correct_answer for q in started.quiz.questions}


def test_start_quiz_persists_open_record(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)])

    started = _start(service)

    assert started.quiz.title == "AI Quiz: Biology"
    assert [q.id for q in started.quiz.questions] == ["q_1", "q_2", "q_3"]
    assert started.quiz.questions[0].correct_answer == 1
    assert started.quiz.questions[0].explanation == "Covered in Intro"

    record = store.get(QUIZ_RESULTS, started.quiz_result_id)
    assert record["user_id"] == "u1"
    assert record["course_id"] == "course-1"
    assert record["content_summary"] == "Biology"
    assert record["is_completed"] is False
    assert record["score"] == 0
    assert record["attempted_at"] is None
    assert len(json.loads(record["questions_json"])) == 3


def test_start_quiz_unknown_course(store, settings):
    service, client = _service(store, settings, [])

    with pytest.raises(NotFoundError):
        asyncio.run(service.start_quiz("missing", "u1"))
    assert client.requests == []


def test_submit_scores_and_completes(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)])
    started = _start(service)
    answers = _correct_answers(started)
    answers["q_3"] = 0

    result = service.submit_quiz(started.quiz_result_id, "u1", answers)

    assert result.percentage == 67
    assert result.per_question["q_3"].correct is False
    record = store.get(QUIZ_RESULTS, started.quiz_result_id)
    assert record["is_completed"] is True
    assert record["score"] == 67
    assert record["attempted_at"] is not None
    saved_answers = store.query(QUIZ_ANSWERS, quiz_result_id=started.quiz_result_id)
    assert sorted(a["question_id"] for a in saved_answers) == ["q_1", "q_2", "q_3"]


def test_resubmission_is_rejected(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)])
    started = _start(service)
    service.submit_quiz(started.quiz_result_id, "u1", _correct_answers(started))

    with pytest.raises(AlreadySubmittedError):
        service.submit_quiz(started.quiz_result_id, "u1", _correct_answers(started))
    assert len(store.query(QUIZ_ANSWERS, quiz_result_id=started.quiz_result_id)) == 3


def test_submission_by_another_user_is_unauthorized(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)])
    started = _start(service)

    with pytest.raises(UnauthorizedError):
        service.submit_quiz(started.quiz_result_id, "intruder", {})


def test_submission_for_unknown_result(store, settings):
    service, _ = _service(store, settings, [])

    with pytest.raises(NotFoundError):
        service.submit_quiz("missing", "u1", {})


def test_rejected_submission_writes_nothing(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)])
    started = _start(service)

    with pytest.raises(NotFoundError):
        service.submit_quiz(started.quiz_result_id, "u1", {"q_1": 1, "q_42": 0})

    assert store.get(QUIZ_RESULTS, started.quiz_result_id)["is_completed"] is False
    assert store.query(QUIZ_ANSWERS, quiz_result_id=started.quiz_result_id) == []


def test_duplicate_answers_for_one_question_write_nothing(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)])
    started = _start(service)

    with pytest.raises(ValidationError):
        service.submit_quiz(started.quiz_result_id, "u1", {"q_1": 1, "1": 1})

    assert store.get(QUIZ_RESULTS, started.quiz_result_id)["is_completed"] is False
    assert store.query(QUIZ_ANSWERS, quiz_result_id=started.quiz_result_id) == []


def test_high_score_uses_previous_attempts(store, settings):
    service, _ = _service(store, settings, [questions_payload(3), questions_payload(3)])
    first = _start(service)
    service.submit_quiz(first.quiz_result_id, "u1", {"q_1": 1})
    second = _start(service)

    result = service.submit_quiz(second.quiz_result_id, "u1", _correct_answers(second))

    assert result.previous_high_score == 33
    assert result.is_new_high_score is True
    assert service.get_user_course_scores("u1", "course-1") == [33, 100]
    assert service.has_attempted("u1", "course-1")
    assert not service.has_attempted("u2", "course-1")


def test_leaderboard_and_history(store, settings):
    service, _ = _service(store, settings, [questions_payload(3)] * 3)
    ada_best = _start(service, "u1")
    service.submit_quiz(ada_best.quiz_result_id, "u1", _correct_answers(ada_best))
    ada_worse = _start(service, "u1")
    service.submit_quiz(ada_worse.quiz_result_id, "u1", {})
    _start(service, "u2")

    board = service.get_leaderboard(course_id="course-1")

    assert len(board) == 1
    assert board[0].user_id == "u1"
    assert board[0].user_name == "Ada"
    assert board[0].course_name == "Biology"
    assert board[0].score == 100
    assert board[0].elapsed_time >= 0

    history = service.get_user_quiz_history("u1", include_answers=True)
    assert [h.id for h in history] == [ada_worse.quiz_result_id, ada_best.quiz_result_id]
    assert history[1].total_questions == 3
    assert len(history[1].answers) == 3


def test_template_resolution_and_usage(store, settings):
    service, client = _service(store, settings, [questions_payload(3)] * 3)
    saved = service.template_service.save_template(
        "u1", TemplateCreateRequest(name="Mine", instructions="Ask {numQuestions} things about {courseTitle}")
    )

    _start(service, template_id=saved.id)
    assert "Ask 3 things about Biology" in client.requests[-1].user_prompt
    assert store.get(PROMPT_TEMPLATES, saved.id)["usage_count"] == 1

    _start(service, template_id="popular_2")
    assert "Focus on key concepts" in client.requests[-1].user_prompt

    _start(service, custom_prompt="Exactly {numQuestions} please")
    assert "Exactly 3 please" in client.requests[-1].user_prompt

    with pytest.raises(NotFoundError):
        _start(service, template_id="nope")


def test_user_default_template_is_used(store, settings):
    service, client = _service(store, settings, [questions_payload(3)])
    service.template_service.save_template(
        "u1", TemplateCreateRequest(name="Default", instructions="DEFAULT {numQuestions}", is_default=True)
    )

    _start(service)

    assert "DEFAULT 3" in client.requests[0].user_prompt
