"""
Scores a quiz submission against the canonical question set.
"""

import logging
from typing import Dict, Iterable

from models.quiz_models import CanonicalQuestion, Quiz, QuestionFeedback, ScoreResult, Submission, utc_now
from utils.exceptions import AlreadySubmittedError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def percentage_of(correct: int, total: int) -> int:
    """Rounded percentage (half up); 0 when there are no questions."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def _question_index(quiz: Quiz) -> Dict[str, CanonicalQuestion]:
    # Answers may be keyed by UI id ("q_3") or bare id ("3")
    index: Dict[str, CanonicalQuestion] = {}
    for question in quiz.questions:
        index[question.key] = question
        index[str(question.id)] = question
    return index


class ScoringEngine:
    def score(
        self,
        quiz: Quiz,
        submission: Submission,
        already_completed: bool = False,
        previous_scores: Iterable[int] = (),
    ) -> ScoreResult:
        """
        Score a submission.

        The denominator is the quiz's total question count: unanswered
        questions and out-of-range selections count as incorrect.

        Raises:
            AlreadySubmittedError: the quiz record is already completed.
            NotFoundError: an answer references a question not in the quiz.
            ValidationError: two answers (e.g. "q_1" and "1") target the same question.
        """
        if already_completed:
            raise AlreadySubmittedError(submission.quiz_id)

        questions = _question_index(quiz)
        unknown = [question_id for question_id in submission.answers if question_id not in questions]
        if unknown:
            raise NotFoundError(
                f"Question {unknown[0]} not found in quiz",
                error_code="QUESTION_NOT_FOUND",
                context={"question_ids": unknown},
            )

        answers: Dict[str, int] = {}
        for question_id, selected_index in submission.answers.items():
            key = questions[question_id].key
            if key in answers:
                raise ValidationError(
                    f"Question {key} was answered more than once",
                    error_code="DUPLICATE_ANSWER",
                    context={"question_id": key},
                )
            answers[key] = selected_index

        correct_count = 0
        per_question: Dict[str, QuestionFeedback] = {}

        for question_id, selected_index in answers.items():
            question = questions[question_id]
            if not 0 <= selected_index < len(question.options):
                logger.warning(f"Answer for {question_id} selects option {selected_index}, out of range; skipped")
                continue

            selected = question.options[selected_index]
            correct_option = question.correct_option
            if selected.is_correct:
                correct_count += 1

            per_question[question.key] = QuestionFeedback(
                correct=selected.is_correct,
                explanation=selected.explanation or correct_option.explanation,
                correct_option_text=correct_option.text,
                user_option_text=selected.text,
            )

        total = len(quiz.questions)
        percentage = percentage_of(correct_count, total)
        previous_high = max(previous_scores, default=0)

        logger.info(f"Scored quiz {quiz.id}: {correct_count}/{total} correct ({percentage}%)")
        return ScoreResult(
            percentage=percentage,
            per_question=per_question,
            correct_count=correct_count,
            total_questions=total,
            is_new_high_score=percentage > previous_high,
            previous_high_score=previous_high,
            attempted_at=utc_now(),
        )
