"""
Quiz lifecycle over the document store: generation, submission,
leaderboards and per-user history.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from clients.document_store import COURSES, QUIZ_ANSWERS, QUIZ_RESULTS, USERS, DocumentStore, generate_uuid
from models.quiz_models import (
    CourseMeta,
    LeaderboardEntry,
    PromptTemplate,
    Quiz,
    QuizHistoryEntry,
    ScoreResult,
    StartQuizResponse,
    Submission,
    utc_now,
)
from services.leaderboard import LeaderboardRanker
from services.prompt_template_service import PromptTemplateService
from services.quiz_generator import QuizGenerator
from services.response_parser import deserialize_questions, serialize_questions
from services.scoring import ScoringEngine
from utils.exceptions import NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Anonymous User"
UNKNOWN_COURSE = "Unknown Course"


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _answer_key(question_id: str) -> str:
    return question_id if question_id.startswith("q_") else f"q_{question_id}"


class QuizService:
    def __init__(
        self,
        store: DocumentStore,
        generator: QuizGenerator,
        template_service: Optional[PromptTemplateService] = None,
        scoring: Optional[ScoringEngine] = None,
        ranker: Optional[LeaderboardRanker] = None,
    ):
        self.store = store
        self.generator = generator
        self.template_service = template_service or PromptTemplateService(store)
        self.scoring = scoring or ScoringEngine()
        self.ranker = ranker or LeaderboardRanker()

    def _get_course(self, course_id: str) -> Dict[str, Any]:
        course = self.store.get(COURSES, course_id)
        if not course:
            raise NotFoundError(
                f"Course {course_id} not found",
                error_code="COURSE_NOT_FOUND",
                context={"course_id": course_id},
            )
        return course

    def _resolve_template(
        self,
        user_id: str,
        template_id: Optional[str],
        custom_prompt: Optional[str],
    ) -> Optional[PromptTemplate]:
        """Explicit prompt, then explicit template id, then the user's default."""
        if custom_prompt:
            return PromptTemplate(id="custom", name="Custom prompt", instructions=custom_prompt, created_by=user_id)

        if template_id:
            template = self.template_service.get_template(user_id, template_id)
            if template is None:
                template = next(
                    (t for t in self.template_service.get_popular_templates() if t.id == template_id), None
                )
            if template is None:
                raise NotFoundError(
                    f"Template {template_id} not found",
                    error_code="TEMPLATE_NOT_FOUND",
                    context={"template_id": template_id},
                )
            return template

        return self.template_service.get_user_default_template(user_id)

    async def start_quiz(
        self,
        course_id: str,
        user_id: str,
        num_questions: int = 5,
        template_id: Optional[str] = None,
        custom_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        translate_to: Optional[str] = None,
    ) -> StartQuizResponse:
        """Generate a quiz for a course and persist an open quiz result record."""
        course = self._get_course(course_id)
        template = self._resolve_template(user_id, template_id, custom_prompt)
        logger.info(
            f"Starting AI quiz for course {course_id} (user {user_id}, {num_questions} questions, "
            f"template {template.id if template else 'built-in'})"
        )

        course_meta = CourseMeta(
            id=course_id,
            title=course.get("title") or "",
            description=course.get("description") or "",
        )
        quiz = await self.generator.generate(
            course_meta,
            course.get("content") or [],
            num_questions,
            template=template,
            temperature=temperature,
            target_language=translate_to,
        )

        generated_at = utc_now()
        quiz_result_id = self.store.insert(QUIZ_RESULTS, {
            "id": generate_uuid(),
            "user_id": user_id,
            "course_id": course_id,
            "content_summary": course_meta.title,
            "questions_json": serialize_questions(quiz.questions),
            "generated_at": generated_at.isoformat(),
            "attempted_at": None,
            "score": 0,
            "is_completed": False,
            "template_id": template.id if template else None,
        })

        if template and template.created_by == user_id and template.id != "custom":
            self.template_service.increment_usage(user_id, template.id)

        return StartQuizResponse(quiz=quiz.to_view(), quiz_result_id=quiz_result_id, generated_at=generated_at)

    def submit_quiz(self, quiz_result_id: str, user_id: str, answers: Dict[str, int]) -> ScoreResult:
        """
        Score a submission and complete the quiz result.

        Scoring runs before anything is written, so a rejected submission
        leaves no partial state behind.
        """
        record = self.store.get(QUIZ_RESULTS, quiz_result_id)
        if not record:
            raise NotFoundError(
                "Quiz result not found",
                error_code="QUIZ_RESULT_NOT_FOUND",
                context={"quiz_result_id": quiz_result_id},
            )
        if record.get("user_id") != user_id:
            raise UnauthorizedError(context={"quiz_result_id": quiz_result_id})

        course_id = record.get("course_id", "")
        quiz = Quiz(
            id=quiz_result_id,
            title=f"AI Quiz: {record.get('content_summary', '')}",
            course_id=course_id,
            questions=deserialize_questions(record.get("questions_json")),
        )
        previous_scores = [] if record.get("is_completed") else self.get_user_course_scores(user_id, course_id)

        result = self.scoring.score(
            quiz,
            Submission(quiz_id=quiz_result_id, answers=answers),
            already_completed=bool(record.get("is_completed")),
            previous_scores=previous_scores,
        )

        submitted_at = result.attempted_at.isoformat()
        for question_id, selected_index in answers.items():
            key = _answer_key(question_id)
            feedback = result.per_question.get(key)
            if feedback is None:
                continue
            self.store.insert(QUIZ_ANSWERS, {
                "quiz_result_id": quiz_result_id,
                "user_id": user_id,
                "question_id": key,
                "selected_option_index": selected_index,
                "is_correct": feedback.correct,
                "submitted_at": submitted_at,
            })

        self.store.update(QUIZ_RESULTS, quiz_result_id, {
            "attempted_at": submitted_at,
            "score": result.percentage,
            "is_completed": True,
        })
        logger.info(f"Quiz {quiz_result_id} submitted by {user_id}: {result.percentage}%")
        return result

    def get_user_course_scores(self, user_id: str, course_id: str) -> List[int]:
        results = self.store.query(QUIZ_RESULTS, user_id=user_id, course_id=course_id, is_completed=True)
        return [int(r.get("score") or 0) for r in results]

    def has_attempted(self, user_id: str, course_id: str) -> bool:
        return bool(self.store.query(QUIZ_RESULTS, user_id=user_id, course_id=course_id, is_completed=True))

    def _user_name(self, user_id: str) -> str:
        user = self.store.get(USERS, user_id)
        return (user or {}).get("display_name") or UNKNOWN_USER

    def _course_name(self, course_id: str, cache: Dict[str, str]) -> str:
        if course_id not in cache:
            course = self.store.get(COURSES, course_id) if course_id else None
            cache[course_id] = (course or {}).get("title") or UNKNOWN_COURSE
        return cache[course_id]

    def get_leaderboard(self, course_id: Optional[str] = None, top_n: int = 10) -> List[LeaderboardEntry]:
        filters: Dict[str, Any] = {"is_completed": True}
        if course_id:
            filters["course_id"] = course_id
        results = self.store.query(QUIZ_RESULTS, **filters)

        course_names: Dict[str, str] = {}
        user_names: Dict[str, str] = {}
        entries = []
        for record in results:
            user_id = record["user_id"]
            if user_id not in user_names:
                user_names[user_id] = self._user_name(user_id)

            generated_at = _parse_datetime(record.get("generated_at")) or utc_now()
            attempted_at = _parse_datetime(record.get("attempted_at")) or generated_at
            elapsed_ms = max((attempted_at - generated_at).total_seconds() * 1000, 0)

            entries.append(LeaderboardEntry(
                id=record.get("id"),
                user_id=user_id,
                user_name=user_names[user_id],
                course_id=record.get("course_id"),
                course_name=self._course_name(record.get("course_id", ""), course_names),
                score=int(record.get("score") or 0),
                elapsed_time=elapsed_ms,
                attempted_at=attempted_at,
            ))

        return self.ranker.rank(entries, top_n)

    def get_user_quiz_history(self, user_id: str, include_answers: bool = False) -> List[QuizHistoryEntry]:
        """A user's quiz results, newest first."""
        course_names: Dict[str, str] = {}
        history = []
        for record in self.store.query(QUIZ_RESULTS, user_id=user_id):
            answers = []
            if include_answers:
                answers = self.store.query(QUIZ_ANSWERS, quiz_result_id=record["id"])
            history.append(QuizHistoryEntry(
                id=record["id"],
                course_id=record.get("course_id", ""),
                course_name=self._course_name(record.get("course_id", ""), course_names),
                score=int(record.get("score") or 0),
                is_completed=bool(record.get("is_completed")),
                total_questions=len(deserialize_questions(record.get("questions_json"))),
                template_id=record.get("template_id"),
                generated_at=_parse_datetime(record.get("generated_at")),
                attempted_at=_parse_datetime(record.get("attempted_at")),
                answers=answers,
            ))

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(history, key=lambda entry: entry.generated_at or epoch, reverse=True)
