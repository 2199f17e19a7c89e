"""
Turns raw completion text into validated CanonicalQuestions.

Two independent attempts, each total:
    1. structured: the JSON array the prompts ask for, after cleaning the
       usual model artifacts (code fences, missing brackets, trailing commas)
    2. free text: "Question N:" blocks, used only when the structured attempt
       could not be decoded at all

Whatever either attempt yields goes through the same schema gate
(CanonicalQuestion: 4 options, exactly one correct). Questions that fail
it are dropped and logged, never raised.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from models.quiz_models import CanonicalQuestion

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")
TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")
QUESTION_MARKER_PATTERN = re.compile(r"Question \d+:", re.IGNORECASE)
LEADING_NUMBER_PATTERN = re.compile(r"^\d+[.:]?\s*")
OPTION_LINE_PATTERN = re.compile(r"^([A-D])\)\s*")

SECTION_PREFIX = "Section:"
CORRECT_ANSWER_PREFIX = "Correct Answer:"
EXPLANATION_PREFIX = "Explanation:"


@dataclass
class StructuredParseSuccess:
    items: List[Any] = field(default_factory=list)


@dataclass
class StructuredParseFailure:
    error: str


StructuredParseResult = Union[StructuredParseSuccess, StructuredParseFailure]


def clean_structured_text(raw: str) -> str:
    clean = CODE_FENCE_PATTERN.sub("", raw.strip()).strip()
    if not clean.startswith("["):
        clean = f"[{clean}]"
    return TRAILING_COMMA_PATTERN.sub(r"\1", clean)


def parse_structured(raw: str) -> StructuredParseResult:
    """Decode the JSON array form. A decoded non-array counts as an empty success."""
    try:
        parsed = json.loads(clean_structured_text(raw))
    except (json.JSONDecodeError, RecursionError) as e:
        return StructuredParseFailure(error=str(e))
    if not isinstance(parsed, list):
        logger.warning(f"Structured response decoded to {type(parsed).__name__}, expected a list")
        return StructuredParseSuccess(items=[])
    return StructuredParseSuccess(items=parsed)


def _parse_free_text_block(block: str, position: int) -> Optional[Dict[str, Any]]:
    lines = [line.strip() for line in block.strip().split("\n") if line.strip()]
    if not lines:
        return None

    question_text = LEADING_NUMBER_PATTERN.sub("", lines[0]).strip()
    if not question_text:
        return None

    section = None
    correct_letter = None
    explanation = ""
    options: List[Dict[str, Any]] = []

    for line in lines[1:]:
        option_match = OPTION_LINE_PATTERN.match(line)
        if option_match:
            options.append({
                "id": len(options) + 1,
                "text": line[option_match.end():].strip(),
                "isCorrect": False,
                "explanation": "",
            })
        elif line.startswith(SECTION_PREFIX) and section is None:
            section = line[len(SECTION_PREFIX):].strip() or None
        elif line.startswith(CORRECT_ANSWER_PREFIX) and correct_letter is None:
            correct_letter = line[len(CORRECT_ANSWER_PREFIX):].strip().upper()[:1]
        elif line.startswith(EXPLANATION_PREFIX) and not explanation:
            explanation = line[len(EXPLANATION_PREFIX):].strip()

    # No "Correct Answer" line leaves every option incorrect; the schema gate drops it
    if correct_letter and "A" <= correct_letter <= "D":
        correct_index = ord(correct_letter) - ord("A")
        if correct_index < len(options):
            options[correct_index]["isCorrect"] = True
            options[correct_index]["explanation"] = explanation

    return {"id": position, "text": question_text, "section": section, "options": options}


def parse_free_text(raw: str) -> List[Dict[str, Any]]:
    """Split "Question N:" blocks into question dicts. Never raises."""
    blocks = QUESTION_MARKER_PATTERN.split(raw)[1:]
    questions = []
    for block in blocks:
        question = _parse_free_text_block(block, len(questions) + 1)
        if question is not None:
            questions.append(question)
    return questions


def _prepare_item(item: Any, position: int) -> Optional[Dict[str, Any]]:
    if not isinstance(item, dict):
        return None
    prepared = dict(item)
    prepared.setdefault("id", position)
    options = prepared.get("options")
    if isinstance(options, list):
        prepared["options"] = [_prepare_option(option, index) for index, option in enumerate(options)]
    return prepared


def _prepare_option(option: Any, index: int) -> Any:
    # Models label options "A".."D" or leave explanations null on wrong answers
    if not isinstance(option, dict):
        return option
    prepared = {**option, "id": index + 1}
    if prepared.get("explanation") is None:
        prepared["explanation"] = ""
    return prepared


def validate_questions(items: Sequence[Any]) -> List[CanonicalQuestion]:
    """Schema gate shared by both paths. Survivors are renumbered 1..n."""
    questions: List[CanonicalQuestion] = []
    for position, item in enumerate(items, start=1):
        prepared = _prepare_item(item, position)
        if prepared is None:
            logger.warning(f"Dropping question {position}: not an object")
            continue
        try:
            question = CanonicalQuestion.model_validate(prepared)
        except PydanticValidationError as e:
            logger.warning(f"Dropping malformed question {position}: {e.error_count()} validation error(s)")
            logger.debug(f"Malformed question detail: {e}")
            continue
        questions.append(question.model_copy(update={"id": len(questions) + 1}))
    return questions


class ResponseParser:
    """Parses completion text into canonical questions. parse() never raises."""

    def parse(self, raw: Optional[str]) -> List[CanonicalQuestion]:
        if not raw or not raw.strip():
            logger.warning("Empty completion text, no questions parsed")
            return []

        try:
            result = parse_structured(raw)
            if isinstance(result, StructuredParseSuccess):
                items = result.items
            else:
                logger.info(f"Structured parse failed ({result.error}), trying free-text format")
                items = parse_free_text(raw)

            questions = validate_questions(items)
        except Exception as e:
            logger.error(f"Unexpected error parsing completion: {e}")
            return []

        if not questions:
            logger.warning(f"No valid questions parsed from response: {raw[:200]!r}")
        else:
            logger.info(f"Parsed {len(questions)} questions ({len(items) - len(questions)} dropped)")
        return questions


def serialize_questions(questions: Sequence[CanonicalQuestion]) -> str:
    """JSON form stored on the quiz record; readable by the structured path."""
    return json.dumps([q.model_dump(mode="json", by_alias=True) for q in questions])


def deserialize_questions(questions_json: Optional[str]) -> List[CanonicalQuestion]:
    result = parse_structured(questions_json or "[]")
    if isinstance(result, StructuredParseFailure):
        logger.error(f"Stored questions could not be decoded: {result.error}")
        return []
    return validate_questions(result.items)
