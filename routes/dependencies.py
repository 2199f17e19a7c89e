"""
Service providers for the route modules.
Built once per process from the environment; tests swap them through
app.dependency_overrides.
"""

from functools import lru_cache

from clients.document_store import DocumentStore, get_document_store
from services.content_analyzer import ContentAnalyzer
from services.prompt_template_service import PromptTemplateService
from services.quiz_generator import QuizGenerator
from services.quiz_service import QuizService
from utils.config import QuizSettings, load_settings


@lru_cache
def get_settings() -> QuizSettings:
    return load_settings()


@lru_cache
def get_store() -> DocumentStore:
    return get_document_store(get_settings())


@lru_cache
def get_template_service() -> PromptTemplateService:
    return PromptTemplateService(get_store())


@lru_cache
def get_quiz_service() -> QuizService:
    return QuizService(
        get_store(),
        QuizGenerator(get_settings()),
        template_service=get_template_service(),
    )


@lru_cache
def get_content_analyzer() -> ContentAnalyzer:
    return ContentAnalyzer()
