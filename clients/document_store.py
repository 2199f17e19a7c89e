"""
Document store interface used by the quiz and template services.

Collections hold JSON-ready dicts keyed by their "id" field. Backends:
    SupabaseStore (clients/supabase_client.py) for deployments
    JsonFileStore (utils/file_storage.py) for local development and tests
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from utils.config import QuizSettings

logger = logging.getLogger(__name__)

COURSES = "courses"
QUIZ_RESULTS = "quiz_results"
QUIZ_ANSWERS = "quiz_answers"
PROMPT_TEMPLATES = "prompt_templates"
USERS = "users"


def generate_uuid() -> str:
    return str(uuid.uuid4())


class DocumentStore(ABC):
    """get/put/query over named collections; no multi-document transactions."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a document and return its id (generated when missing)."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        """Documents whose fields equal every keyword filter."""


def get_document_store(settings: QuizSettings) -> DocumentStore:
    """Pick the backend named by DOCUMENT_STORE."""
    if settings.document_store == "local":
        from utils.file_storage import JsonFileStore
        logger.info(f"Using local JSON document store at {settings.local_store_dir}")
        return JsonFileStore(settings.local_store_dir)

    from clients.supabase_client import SupabaseStore
    return SupabaseStore(url=settings.supabase_url, key=settings.supabase_key)
