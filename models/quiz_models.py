"""
Pydantic models for AI quiz generation.
Covers the pipeline types (sections, requests, canonical questions),
the scoring/leaderboard types and the HTTP request/response shapes.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, List, Optional, Dict
from datetime import datetime, timezone


OPTIONS_PER_QUESTION = 4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Pipeline input / intermediate models
class RawSection(BaseModel):
    """One raw course-content block as stored on the course document"""
    id: Optional[str] = None
    title: str = ""
    content: Optional[str] = ""
    type: Optional[str] = None


class ContentSection(BaseModel):
    """Analyzed section ready for prompting (never persisted)"""
    title: str
    body: str = Field(..., min_length=1)
    subheadings: List[str] = []
    key_terms: List[str] = Field(default_factory=list, max_length=10)


class CourseMeta(BaseModel):
    """Course metadata embedded in generation prompts"""
    id: Optional[str] = None
    title: str
    description: str = ""


class GenerationRequest(BaseModel):
    """One call to the text-completion service. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    system_instruction: str
    user_prompt: str
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    streaming_hint: bool = True
    target_language: Optional[str] = None


# Canonical question set
class QuestionOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    text: str = Field(..., min_length=1)
    is_correct: bool = Field(default=False, alias="isCorrect")
    explanation: str = ""


class CanonicalQuestion(BaseModel):
    """Validated multiple-choice question: four options, exactly one correct."""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., ge=1)
    text: str = Field(..., min_length=1)
    section_label: Optional[str] = Field(default=None, alias="section")
    options: List[QuestionOption]

    @model_validator(mode="after")
    def check_options(self) -> "CanonicalQuestion":
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(f"expected {OPTIONS_PER_QUESTION} options, got {len(self.options)}")
        correct = sum(1 for option in self.options if option.is_correct)
        if correct != 1:
            raise ValueError(f"expected exactly one correct option, got {correct}")
        return self

    @property
    def correct_index(self) -> int:
        return next(i for i, option in enumerate(self.options) if option.is_correct)

    @property
    def correct_option(self) -> QuestionOption:
        return self.options[self.correct_index]

    @property
    def key(self) -> str:
        """Identifier used by the quiz-taking UI"""
        return f"q_{self.id}"


class QuizQuestionView(BaseModel):
    """Question shape consumed by the quiz-taking UI"""
    id: str
    question: str
    section: Optional[str] = None
    options: List[str]
    correct_answer: int
    explanation: str = ""


class QuizView(BaseModel):
    id: str
    title: str
    course_id: str
    questions: List[QuizQuestionView]


class Quiz(BaseModel):
    """Generated quiz. Immutable after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    course_id: str
    questions: List[CanonicalQuestion]

    def to_view(self) -> QuizView:
        return QuizView(
            id=self.id,
            title=self.title,
            course_id=self.course_id,
            questions=[
                QuizQuestionView(
                    id=q.key,
                    question=q.text,
                    section=q.section_label,
                    options=[o.text for o in q.options],
                    correct_answer=q.correct_index,
                    explanation=q.correct_option.explanation,
                )
                for q in self.questions
            ],
        )


# Scoring models
class Submission(BaseModel):
    """User answers keyed by question id ("q_1" or "1") -> zero-based option index"""
    quiz_id: str = ""
    answers: Dict[str, int] = {}


class QuestionFeedback(BaseModel):
    correct: bool
    explanation: str = ""
    correct_option_text: str
    user_option_text: str


class ScoreResult(BaseModel):
    percentage: int = Field(..., ge=0, le=100)
    per_question: Dict[str, QuestionFeedback] = {}
    correct_count: int = 0
    total_questions: int = 0
    is_new_high_score: bool = False
    previous_high_score: int = 0
    attempted_at: datetime = Field(default_factory=utc_now)


class LeaderboardEntry(BaseModel):
    user_id: str
    score: int = Field(..., ge=0, le=100)
    elapsed_time: float = Field(..., ge=0)  # milliseconds
    id: Optional[str] = None
    user_name: Optional[str] = None
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    attempted_at: Optional[datetime] = None


class QuizHistoryEntry(BaseModel):
    id: str
    course_id: str
    course_name: str = "Unknown Course"
    score: int = 0
    is_completed: bool = False
    total_questions: int = 0
    template_id: Optional[str] = None
    generated_at: Optional[datetime] = None
    attempted_at: Optional[datetime] = None
    answers: List[Dict[str, Any]] = []


# Prompt templates
class PromptTemplate(BaseModel):
    id: str
    name: str
    description: str = ""
    instructions: str
    is_default: bool = False
    usage_count: int = Field(default=0, ge=0)
    tags: List[str] = []
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# Content analysis report
class SectionIssue(BaseModel):
    id: Optional[str] = None
    title: str
    issue: str
    content_length: int


class ContentAnalysis(BaseModel):
    course_title: str = ""
    total_sections: int = 0
    valid_sections: int = 0
    empty_sections: int = 0
    total_characters: int = 0
    average_content_length: int = 0
    sections_with_issues: List[SectionIssue] = []
    recommendations: List[str] = []


# Request Models
class StartQuizRequest(BaseModel):
    course_id: str
    user_id: str
    num_questions: int = Field(default=5, ge=1, le=20)
    template_id: Optional[str] = None
    custom_prompt: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    translate_to: Optional[str] = None


class SubmitQuizRequest(BaseModel):
    user_id: str
    answers: Dict[str, int]


class TemplateCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    instructions: str = Field(..., min_length=1)
    tags: List[str] = []
    is_default: bool = False


class TemplateUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    instructions: Optional[str] = None
    tags: Optional[List[str]] = None
    is_default: Optional[bool] = None


# Response Models
class StartQuizResponse(BaseModel):
    quiz: QuizView
    quiz_result_id: str
    generated_at: datetime
