"""
Shared fakes for the quiz service tests. Nothing here touches the network.
"""

import json
from types import SimpleNamespace
from typing import List, Optional

from models.quiz_models import CanonicalQuestion, QuestionOption
from utils.exceptions import GenerationError


def make_question(question_id: int = 1, correct: int = 1, section: Optional[str] = "Intro", text: str = None) -> CanonicalQuestion:
    return CanonicalQuestion(
        id=question_id,
        text=text or f"Question {question_id} text?",
        section_label=section,
        options=[
            QuestionOption(
                id=i + 1,
                text=f"Option {i + 1} of question {question_id}",
                is_correct=(i == correct),
                explanation=f"Explanation {i + 1}" if i == correct else "",
            )
            for i in range(4)
        ],
    )


def questions_payload(count: int, start: int = 1, section: str = "Intro") -> str:
    """JSON array in the shape the prompts ask the model for."""
    return json.dumps([
        {
            "id": start + i,
            "text": f"Generated question {start + i}?",
            "section": section,
            "options": [
                {"id": 1, "text": "Alpha", "isCorrect": False, "explanation": ""},
                {"id": 2, "text": "Bravo", "isCorrect": True, "explanation": f"Covered in {section}"},
                {"id": 3, "text": "Charlie", "isCorrect": False, "explanation": ""},
                {"id": 4, "text": "Delta", "isCorrect": False, "explanation": ""},
            ],
        }
        for i in range(count)
    ])


class FakeGenerationClient:
    """Returns queued responses in order; queued exceptions are raised."""

    def __init__(self, responses: List):
        self.responses = list(responses)
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        if not self.responses:
            raise GenerationError("No more fake responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeTranslator:
    def __init__(self):
        self.calls = []

    async def translate_many(self, texts, target_language):
        self.calls.append((list(texts), target_language))
        return [f"[{target_language}] {text}" if text else text for text in texts]


def stream_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.closed = False

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._chunks:
            raise StopAsyncIteration
        return self._chunks.pop(0)


def fake_sdk_client(create):
    """Mimics client.chat.completions.create on the openai/groq async SDKs."""
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def course_sections(count: int, length: int) -> List[dict]:
    sentence = "Cells use Energy from food to power Growth and repair. "
    body = (sentence * (length // len(sentence) + 1))[:length]
    return [{"id": f"s{i}", "title": f"Section {i + 1}", "content": body} for i in range(count)]
