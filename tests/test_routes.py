"""
HTTP surface tests through FastAPI's TestClient with local storage and a
fake completion client wired in via dependency overrides.

Run with:
    python3 -m pytest tests/test_routes.py -v
"""

import pytest
from fastapi.testclient import TestClient

from clients.document_store import COURSES
from main import app
from routes.dependencies import get_quiz_service, get_store, get_template_service
from services.prompt_template_service import PromptTemplateService
from services.quiz_generator import QuizGenerator
from services.quiz_service import QuizService
from utils.exceptions import GenerationError
from utils.file_storage import JsonFileStore
from fakes import FakeGenerationClient, course_sections, questions_payload


@pytest.fixture
def store(tmp_path):
    store = JsonFileStore(tmp_path)
    store.insert(COURSES, {"id": "course-1", "title": "Biology", "content": course_sections(1, 400)})
    store.insert(COURSES, {"id": "course-empty", "title": "Empty", "content": course_sections(2, 5)})
    return store


@pytest.fixture
def completions():
    return FakeGenerationClient([])


@pytest.fixture
def client(store, completions, settings):
    templates = PromptTemplateService(store)
    service = QuizService(store, QuizGenerator(settings, client=completions), template_service=templates)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_template_service] = lambda: templates
    app.dependency_overrides[get_quiz_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _start(client, **overrides):
    body = {"course_id": "course-1", "user_id": "u1", "num_questions": 2, **overrides}
    return client.post("/api/v1/quizzes", json=body)


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to the AI Quiz Service!"


def test_quiz_lifecycle(client, completions):
    completions.responses.append(questions_payload(2))

    started = _start(client)
    assert started.status_code == 201
    payload = started.json()
    assert [q["id"] for q in payload["quiz"]["questions"]] == ["q_1", "q_2"]
    assert payload["quiz"]["questions"][0]["options"] == ["Alpha", "Bravo", "Charlie", "Delta"]

    quiz_result_id = payload["quiz_result_id"]
    submitted = client.post(
        f"/api/v1/quizzes/{quiz_result_id}/submit",
        json={"user_id": "u1", "answers": {"q_1": 1, "q_2": 0}},
    )
    assert submitted.status_code == 200
    assert submitted.json()["percentage"] == 50
    assert submitted.json()["per_question"]["q_2"]["correct_option_text"] == "Bravo"

    again = client.post(f"/api/v1/quizzes/{quiz_result_id}/submit", json={"user_id": "u1", "answers": {}})
    assert again.status_code == 409
    assert again.json()["error"] == "ALREADY_SUBMITTED"

    board = client.get("/api/v1/leaderboard", params={"course_id": "course-1"})
    assert board.status_code == 200
    assert [(e["user_id"], e["score"]) for e in board.json()] == [("u1", 50)]

    history = client.get("/api/v1/users/u1/quiz-history")
    assert history.json()[0]["id"] == quiz_result_id
    assert history.json()[0]["course_name"] == "Biology"


def test_duplicate_answers_are_a_bad_request(client, completions):
    completions.responses.append(questions_payload(2))
    quiz_result_id = _start(client).json()["quiz_result_id"]

    response = client.post(
        f"/api/v1/quizzes/{quiz_result_id}/submit",
        json={"user_id": "u1", "answers": {"q_1": 1, "1": 1}},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "DUPLICATE_ANSWER"


def test_submit_by_other_user_is_forbidden(client, completions):
    completions.responses.append(questions_payload(2))
    quiz_result_id = _start(client).json()["quiz_result_id"]

    response = client.post(f"/api/v1/quizzes/{quiz_result_id}/submit", json={"user_id": "u2", "answers": {}})

    assert response.status_code == 403
    assert response.json()["error"] == "UNAUTHORIZED"


def test_generation_failure_hides_upstream_detail(client, completions):
    completions.responses.append(
        GenerationError("Upstream returned 503: overloaded", error_code="UPSTREAM_ERROR", context={"status": 503})
    )

    response = _start(client)

    assert response.status_code == 500
    assert response.json() == {
        "error": "UPSTREAM_ERROR",
        "message": "Failed to generate quiz, please try again",
        "status_code": 500,
        "context": {},
    }


def test_insufficient_content_is_a_bad_request(client, completions):
    response = _start(client, course_id="course-empty")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "INSUFFICIENT_CONTENT"
    assert body["reasons"]
    assert completions.requests == []


def test_unknown_course_is_not_found(client):
    response = _start(client, course_id="missing")

    assert response.status_code == 404
    assert response.json()["error"] == "COURSE_NOT_FOUND"


def test_request_validation(client):
    response = _start(client, num_questions=0)

    assert response.status_code == 422
    assert "detail" in response.json()


def test_content_report(client):
    report = client.get("/api/v1/courses/course-1/content-report")
    assert report.status_code == 200
    assert report.json()["course_title"] == "Biology"
    assert report.json()["valid_sections"] == 1

    assert client.get("/api/v1/courses/missing/content-report").status_code == 404


def test_template_endpoints(client):
    created = client.post(
        "/api/v1/users/u1/templates",
        json={"name": "Weekly", "instructions": "Write {numQuestions} questions"},
    )
    assert created.status_code == 201
    template_id = created.json()["id"]

    duplicate = client.post(
        "/api/v1/users/u1/templates",
        json={"name": "WEEKLY", "instructions": "Write {numQuestions} questions"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "DUPLICATE_TEMPLATE_NAME"

    updated = client.patch(f"/api/v1/users/u1/templates/{template_id}", json={"description": "Fridays"})
    assert updated.json()["description"] == "Fridays"

    default = client.post(f"/api/v1/users/u1/templates/{template_id}/default")
    assert default.json() == {"success": True, "default_template_id": template_id}
    assert client.get(f"/api/v1/users/u1/templates/{template_id}").json()["is_default"] is True

    assert [t["name"] for t in client.get("/api/v1/users/u1/templates").json()] == ["Weekly"]
    assert client.get(f"/api/v1/users/u2/templates/{template_id}").status_code == 404

    deleted = client.delete(f"/api/v1/users/u1/templates/{template_id}")
    assert deleted.json()["success"] is True
    assert client.get("/api/v1/users/u1/templates").json() == []


def test_builtin_template_endpoints(client):
    assert "{numQuestions}" in client.get("/api/v1/templates/default").json()["instructions"]
    popular = client.get("/api/v1/templates/popular").json()
    assert [t["id"] for t in popular] == ["popular_1", "popular_2"]


def test_models_endpoint(client):
    models = client.get("/api/v1/models").json()["models"]

    assert any(m["default"] for m in models)
    assert {m["provider"] for m in models} <= {"openai", "groq"}
