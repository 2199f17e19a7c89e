"""
Unified exception hierarchy for the quiz service.

All domain exceptions inherit from QuizServiceError and carry:
- error_code: machine-readable string (e.g. "QUIZ_NOT_FOUND")
- status_code: HTTP status code
- message: human-readable description
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any, List


class QuizServiceError(Exception):
    """Base exception for all quiz service errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)


class ValidationError(QuizServiceError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_REQUEST",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class InsufficientContentError(ValidationError):
    """Course material cannot support question generation."""

    def __init__(self, reasons: List[str], course_title: Optional[str] = None):
        self.reasons = list(reasons)
        subject = f'Course "{course_title}"' if course_title else "Course content"
        message = f"{subject} is not suitable for quiz generation:\n" + "\n".join(self.reasons)
        super().__init__(
            message,
            error_code="INSUFFICIENT_CONTENT",
            context={"reasons": self.reasons},
        )


class NotFoundError(QuizServiceError):
    """404 resource-not-found errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "NOT_FOUND",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=404, context=context)


class UnauthorizedError(QuizServiceError):
    """The caller does not own the record it is acting on."""

    def __init__(
        self,
        message: str = "Unauthorized access to quiz result",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="UNAUTHORIZED", status_code=403, context=context)


class AlreadySubmittedError(QuizServiceError):
    """A completed quiz was submitted again."""

    def __init__(self, quiz_result_id: str):
        self.quiz_result_id = quiz_result_id
        super().__init__(
            "Quiz already submitted",
            error_code="ALREADY_SUBMITTED",
            status_code=409,
            context={"quiz_result_id": quiz_result_id},
        )


class GenerationError(QuizServiceError):
    """500-level generation failures (upstream error or timeout)."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERATION_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class StorageError(QuizServiceError):
    """500-level database / storage failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)
