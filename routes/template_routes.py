"""
FastAPI routes for quiz prompt templates.
"""

from fastapi import APIRouter, Depends
from typing import List
import logging

from models.quiz_models import PromptTemplate, TemplateCreateRequest, TemplateUpdateRequest
from routes.dependencies import get_template_service
from services.prompt_template_service import PromptTemplateService
from utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["templates"])


@router.get("/templates/default")
async def get_default_template():
    """Built-in instruction set used when no template is selected"""
    return {"instructions": PromptTemplateService.get_default_template()}


@router.get("/templates/popular", response_model=List[PromptTemplate])
async def get_popular_templates():
    return PromptTemplateService.get_popular_templates()


@router.get("/users/{user_id}/templates", response_model=List[PromptTemplate])
async def list_templates(user_id: str, service: PromptTemplateService = Depends(get_template_service)):
    return service.get_user_templates(user_id)


@router.post("/users/{user_id}/templates", response_model=PromptTemplate, status_code=201)
async def create_template(
    user_id: str,
    request: TemplateCreateRequest,
    service: PromptTemplateService = Depends(get_template_service)
):
    """
    Save a template. Instructions must contain {numQuestions}; names are
    unique per user (case-insensitive).
    """
    return service.save_template(user_id, request)


@router.get("/users/{user_id}/templates/{template_id}", response_model=PromptTemplate)
async def get_template(user_id: str, template_id: str, service: PromptTemplateService = Depends(get_template_service)):
    template = service.get_template(user_id, template_id)
    if template is None:
        raise NotFoundError(f"Template {template_id} not found", error_code="TEMPLATE_NOT_FOUND")
    return template


@router.patch("/users/{user_id}/templates/{template_id}", response_model=PromptTemplate)
async def update_template(
    user_id: str,
    template_id: str,
    request: TemplateUpdateRequest,
    service: PromptTemplateService = Depends(get_template_service)
):
    return service.update_template(user_id, template_id, request)


@router.delete("/users/{user_id}/templates/{template_id}")
async def delete_template(user_id: str, template_id: str, service: PromptTemplateService = Depends(get_template_service)):
    service.delete_template(user_id, template_id)
    return {"success": True, "message": "Template deleted"}


@router.post("/users/{user_id}/templates/{template_id}/default")
async def set_default_template(
    user_id: str,
    template_id: str,
    service: PromptTemplateService = Depends(get_template_service)
):
    service.set_user_default_template(user_id, template_id)
    return {"success": True, "default_template_id": template_id}
