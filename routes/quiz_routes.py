"""
FastAPI routes for AI quizzes: generation, submission, leaderboard,
history and course content diagnostics.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional
import logging

from clients.document_store import COURSES, DocumentStore
from models.quiz_models import (
    ContentAnalysis,
    LeaderboardEntry,
    QuizHistoryEntry,
    ScoreResult,
    StartQuizRequest,
    StartQuizResponse,
    SubmitQuizRequest,
)
from routes.dependencies import get_content_analyzer, get_quiz_service, get_store
from services.content_analyzer import ContentAnalyzer
from services.quiz_service import QuizService
from utils.exceptions import NotFoundError
from utils.model_config import DEFAULT_MODEL, ModelConfig

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["quizzes"])


@router.post("/quizzes", response_model=StartQuizResponse, status_code=201)
async def start_quiz(request: StartQuizRequest, quiz_service: QuizService = Depends(get_quiz_service)):
    """
    Generate an AI quiz from a course's content.

    Uses `custom_prompt` when given, otherwise `template_id`, otherwise the
    user's default template, otherwise the built-in instructions. Large
    courses are generated section by section and may return fewer
    questions than requested.
    """
    return await quiz_service.start_quiz(
        course_id=request.course_id,
        user_id=request.user_id,
        num_questions=request.num_questions,
        template_id=request.template_id,
        custom_prompt=request.custom_prompt,
        temperature=request.temperature,
        translate_to=request.translate_to,
    )


@router.post("/quizzes/{quiz_result_id}/submit", response_model=ScoreResult)
async def submit_quiz(
    quiz_result_id: str,
    request: SubmitQuizRequest,
    quiz_service: QuizService = Depends(get_quiz_service)
):
    """Score answers (question id -> zero-based option index). A quiz can be submitted once."""
    return quiz_service.submit_quiz(quiz_result_id, request.user_id, request.answers)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    course_id: Optional[str] = None,
    top_n: int = Query(10, ge=1, le=100),
    quiz_service: QuizService = Depends(get_quiz_service)
):
    return quiz_service.get_leaderboard(course_id=course_id, top_n=top_n)


@router.get("/users/{user_id}/quiz-history", response_model=List[QuizHistoryEntry])
async def get_quiz_history(
    user_id: str,
    include_answers: bool = False,
    quiz_service: QuizService = Depends(get_quiz_service)
):
    return quiz_service.get_user_quiz_history(user_id, include_answers=include_answers)


@router.get("/courses/{course_id}/content-report", response_model=ContentAnalysis)
async def get_content_report(
    course_id: str,
    store: DocumentStore = Depends(get_store),
    analyzer: ContentAnalyzer = Depends(get_content_analyzer)
):
    """Report on whether a course's sections can support quiz generation."""
    course = store.get(COURSES, course_id)
    if not course:
        raise NotFoundError(f"Course {course_id} not found", error_code="COURSE_NOT_FOUND")
    return analyzer.build_report(course.get("title") or "", course.get("content") or [])


@router.get("/models")
async def get_available_models():
    """List the completion models quiz generation can be configured with (QUIZ_MODEL)"""
    models = []
    for key in ModelConfig.get_available_models():
        config = ModelConfig.get_config(key)
        models.append({
            "id": key,
            "name": config["model"],
            "provider": ModelConfig.get_provider(key),
            "max_tokens": config["max_tokens"],
            "default": key == DEFAULT_MODEL
        })

    return {"models": models}
