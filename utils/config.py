"""
Environment-driven settings for the quiz service.

Values come from the process environment (optionally a .env file) and are
handed to components at construction time.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from utils.model_config import DEFAULT_MODEL


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


class QuizSettings(BaseModel):
    """Static configuration consumed by the generation pipeline and stores."""

    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)

    # Pipeline limits
    max_total_prompt_length: int = Field(default=5000, ge=500)
    max_tokens: int = Field(default=1500, ge=1)
    per_call_timeout_ms: int = Field(default=8000, ge=1)
    max_chunked_sections: int = Field(default=3, ge=1)
    chunking_threshold: int = 2000
    streaming_threshold: int = 2000
    enforce_wall_clock: bool = True

    # Translation pass-through
    azure_translator_key: Optional[str] = None
    azure_translator_region: str = "eastus"
    azure_translator_endpoint: str = "https://api.cognitive.microsofttranslator.com/"

    # Document store
    document_store: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    local_store_dir: str = "local_store"


def load_settings() -> QuizSettings:
    """Build settings from the environment, loading .env first."""
    load_dotenv()

    return QuizSettings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        groq_api_key=os.getenv("GROQ_API_KEY"),
        model=os.getenv("QUIZ_MODEL", DEFAULT_MODEL),
        temperature=float(os.getenv("QUIZ_TEMPERATURE", "0.7")),
        max_total_prompt_length=_env_int("MAX_TOTAL_PROMPT_LENGTH", 5000),
        max_tokens=_env_int("MAX_TOKENS", 1500),
        per_call_timeout_ms=_env_int("PER_CALL_TIMEOUT_MS", 8000),
        max_chunked_sections=_env_int("MAX_CHUNKED_SECTIONS", 3),
        chunking_threshold=_env_int("CHUNKING_THRESHOLD", 2000),
        streaming_threshold=_env_int("STREAMING_THRESHOLD", 2000),
        enforce_wall_clock=_env_bool("ENFORCE_WALL_CLOCK", True),
        azure_translator_key=os.getenv("AZURE_TRANSLATOR_KEY"),
        azure_translator_region=os.getenv("AZURE_TRANSLATOR_REGION", "eastus"),
        azure_translator_endpoint=os.getenv(
            "AZURE_TRANSLATOR_ENDPOINT", "https://api.cognitive.microsofttranslator.com/"
        ),
        document_store=os.getenv("DOCUMENT_STORE", "supabase"),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        local_store_dir=os.getenv("LOCAL_STORE_DIR", "local_store"),
    )
