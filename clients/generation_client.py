"""
Client for the hosted text-completion service used by quiz generation.

Requests run under a per-call timeout kept below the hosting platform's
hard ceiling, so a clean GenerationError is raised before the process is
killed. Streamed fragments are accumulated into one string; callers never
see partial text.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from groq import AsyncGroq
from groq import APIError as GroqAPIError
from groq import APIStatusError as GroqStatusError
from openai import AsyncOpenAI
from openai import APIError as OpenAIAPIError
from openai import APIStatusError as OpenAIStatusError

from models.quiz_models import GenerationRequest
from utils.config import QuizSettings
from utils.exceptions import GenerationError
from utils.model_config import ModelConfig, ModelProvider

logger = logging.getLogger(__name__)


class GenerationClient:
    """Sends GenerationRequests to OpenAI or Groq and returns the raw completion text"""

    def __init__(self, settings: QuizSettings, client: Optional[Any] = None):
        self.settings = settings
        self.model_config = ModelConfig.get_config(settings.model)
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> Any:
        provider = self.model_config["provider"]
        # Retries would overrun the wall-clock budget
        if provider == ModelProvider.GROQ:
            if not self.settings.groq_api_key:
                raise GenerationError("GROQ_API_KEY is not configured", error_code="MISSING_API_KEY")
            return AsyncGroq(api_key=self.settings.groq_api_key, max_retries=0)
        if not self.settings.openai_api_key:
            raise GenerationError("OPENAI_API_KEY is not configured", error_code="MISSING_API_KEY")
        return AsyncOpenAI(api_key=self.settings.openai_api_key, max_retries=0)

    @property
    def timeout_seconds(self) -> float:
        return self.settings.per_call_timeout_ms / 1000

    @property
    def max_tokens(self) -> int:
        """MAX_TOKENS, capped by the model's own output ceiling"""
        return min(self.settings.max_tokens, self.model_config["max_tokens"])

    def should_stream(self, request: GenerationRequest) -> bool:
        """Stream under a hard wall-clock ceiling, or when the payload is large."""
        return self.settings.enforce_wall_clock or request.streaming_hint

    def _build_params(self, request: GenerationRequest, stream: bool) -> Dict[str, Any]:
        return {
            "model": self.model_config["model"],
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_prompt}
            ],
            "temperature": request.temperature,
            "max_tokens": self.max_tokens,
            "stream": stream,
            "timeout": self.timeout_seconds,
        }

    async def _stream_completion(self, params: Dict[str, Any]) -> str:
        response = await self.client.chat.completions.create(**params)
        fragments = []
        try:
            async for chunk in response:
                if chunk.choices and chunk.choices[0].delta.content:
                    fragments.append(chunk.choices[0].delta.content)
        finally:
            # Also runs when wait_for cancels us mid-stream
            await response.close()
        return "".join(fragments)

    async def _single_completion(self, params: Dict[str, Any]) -> str:
        response = await self.client.chat.completions.create(**params)
        return response.choices[0].message.content or ""

    async def complete(self, request: GenerationRequest) -> str:
        """
        Run one completion and return the full text.

        Raises:
            GenerationError: upstream non-2xx, connection failure, or the
                per-call timeout elapsing first.
        """
        stream = self.should_stream(request)
        params = self._build_params(request, stream)
        prompt_chars = len(request.system_instruction) + len(request.user_prompt)
        logger.info(
            f"Requesting completion from {params['model']} "
            f"({'streaming' if stream else 'single response'}, {prompt_chars} prompt chars)"
        )

        start_time = time.monotonic()
        try:
            operation = self._stream_completion(params) if stream else self._single_completion(params)
            text = await asyncio.wait_for(operation, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Completion timed out after {self.settings.per_call_timeout_ms}ms")
            raise GenerationError(
                f"Generation timed out after {self.settings.per_call_timeout_ms}ms",
                error_code="GENERATION_TIMEOUT",
                context={"timeout_ms": self.settings.per_call_timeout_ms},
            )
        except (OpenAIStatusError, GroqStatusError) as e:
            logger.error(f"Completion service error {e.status_code}: {e.message}")
            raise GenerationError(
                f"Completion service returned {e.status_code}",
                error_code="UPSTREAM_ERROR",
                context={"status": e.status_code, "message": e.message},
            )
        except (OpenAIAPIError, GroqAPIError) as e:
            logger.error(f"Completion service request failed: {e}")
            raise GenerationError(
                "Completion service request failed",
                error_code="UPSTREAM_ERROR",
                context={"message": str(e)},
            )

        elapsed = time.monotonic() - start_time
        logger.info(f"Completion received: {len(text)} chars in {elapsed:.2f}s")
        return text
