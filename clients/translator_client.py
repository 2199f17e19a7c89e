"""
Azure Translator (v3 REST API) pass-through used to localize generated quizzes.
Translation never blocks quiz generation: any failure returns the input text.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

import httpx

from utils.config import QuizSettings

logger = logging.getLogger(__name__)

TRANSLATE_API_VERSION = "3.0"
TRANSLATE_TIMEOUT_SECONDS = 10.0


class TranslatorClient:
    def __init__(self, settings: QuizSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.azure_translator_key
        self.region = settings.azure_translator_region
        self.endpoint = settings.azure_translator_endpoint.rstrip("/")
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def translate(self, text: str, target_language: str) -> str:
        """Translate one string; returns `text` unchanged on any failure."""
        if not text or not text.strip() or not target_language:
            return text
        if not self.enabled:
            logger.warning("AZURE_TRANSLATOR_KEY not set. Returning untranslated text.")
            return text

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    f"{self.endpoint}/translate",
                    params={"api-version": TRANSLATE_API_VERSION, "to": target_language},
                    headers={
                        "Ocp-Apim-Subscription-Key": self.api_key,
                        "Ocp-Apim-Subscription-Region": self.region,
                        "Content-Type": "application/json",
                    },
                    json=[{"text": text}],
                    timeout=TRANSLATE_TIMEOUT_SECONDS
                )

            if response.status_code != 200:
                logger.error(f"Translation failed ({response.status_code}): {response.text[:200]}")
                return text

            data = response.json()
            return data[0]["translations"][0]["text"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Error translating to '{target_language}': {e}")
            return text

    async def translate_many(self, texts: Sequence[str], target_language: str) -> List[str]:
        """Translate concurrently; results keep the input order."""
        if not texts:
            return []
        results = await asyncio.gather(*(self.translate(text, target_language) for text in texts))
        return list(results)
