"""
User-owned prompt templates for quiz generation.

Templates live in the prompt_templates collection, one document per
template, owned through created_by. At most one template per user carries
is_default; changing the default is a two-step transition (clear every
current default, then set the new one), so racing writers resolve as
last writer wins.
"""

import logging
from typing import List, Optional

from clients.document_store import PROMPT_TEMPLATES, DocumentStore, generate_uuid
from models.quiz_models import PromptTemplate, TemplateCreateRequest, TemplateUpdateRequest, utc_now
from prompts.quiz_prompts import DEFAULT_TEMPLATE_INSTRUCTIONS, POPULAR_TEMPLATES
from utils.exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

REQUIRED_PLACEHOLDER = "{numQuestions}"


def _require_placeholder(instructions: str) -> None:
    if REQUIRED_PLACEHOLDER not in instructions:
        raise ValidationError(
            f"Template instructions must contain the {REQUIRED_PLACEHOLDER} placeholder",
            error_code="MISSING_PLACEHOLDER",
        )


class PromptTemplateService:
    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def get_default_template() -> str:
        return DEFAULT_TEMPLATE_INSTRUCTIONS

    @staticmethod
    def get_popular_templates() -> List[PromptTemplate]:
        return [PromptTemplate(created_by="system", **template) for template in POPULAR_TEMPLATES]

    def get_user_templates(self, user_id: str) -> List[PromptTemplate]:
        """All of a user's templates, most recently updated first."""
        templates = [
            PromptTemplate.model_validate(doc)
            for doc in self.store.query(PROMPT_TEMPLATES, created_by=user_id)
        ]
        return sorted(templates, key=lambda t: t.updated_at, reverse=True)

    def get_template(self, user_id: str, template_id: str) -> Optional[PromptTemplate]:
        doc = self.store.get(PROMPT_TEMPLATES, template_id)
        if not doc or doc.get("created_by") != user_id:
            return None
        return PromptTemplate.model_validate(doc)

    def _require_template(self, user_id: str, template_id: str) -> PromptTemplate:
        template = self.get_template(user_id, template_id)
        if template is None:
            raise NotFoundError(
                f"Template {template_id} not found",
                error_code="TEMPLATE_NOT_FOUND",
                context={"template_id": template_id},
            )
        return template

    def _check_duplicate_name(self, user_id: str, name: str, exclude_id: Optional[str] = None) -> None:
        for existing in self.get_user_templates(user_id):
            if existing.id != exclude_id and existing.name.lower() == name.lower():
                raise ValidationError(
                    f'A template with the name "{name}" already exists. Please choose a different name.',
                    error_code="DUPLICATE_TEMPLATE_NAME",
                )

    def save_template(self, user_id: str, request: TemplateCreateRequest) -> PromptTemplate:
        _require_placeholder(request.instructions)
        self._check_duplicate_name(user_id, request.name)

        now = utc_now()
        template = PromptTemplate(
            id=generate_uuid(),
            name=request.name,
            description=request.description,
            instructions=request.instructions,
            tags=request.tags,
            is_default=False,
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        self.store.insert(PROMPT_TEMPLATES, template.model_dump(mode="json"))
        logger.info(f"Saved template '{template.name}' ({template.id}) for user {user_id}")

        if request.is_default:
            self.set_user_default_template(user_id, template.id)
            template = template.model_copy(update={"is_default": True})
        return template

    def update_template(self, user_id: str, template_id: str, updates: TemplateUpdateRequest) -> PromptTemplate:
        self._require_template(user_id, template_id)

        fields = updates.model_dump(exclude_none=True)
        make_default = fields.pop("is_default", None)
        if "name" in fields:
            self._check_duplicate_name(user_id, fields["name"], exclude_id=template_id)
        if "instructions" in fields:
            _require_placeholder(fields["instructions"])

        fields["updated_at"] = utc_now().isoformat()
        if make_default is False:
            fields["is_default"] = False
        self.store.update(PROMPT_TEMPLATES, template_id, fields)

        if make_default:
            self.set_user_default_template(user_id, template_id)

        logger.info(f"Updated template {template_id} for user {user_id}")
        return self._require_template(user_id, template_id)

    def delete_template(self, user_id: str, template_id: str) -> None:
        self._require_template(user_id, template_id)
        self.store.delete(PROMPT_TEMPLATES, template_id)
        logger.info(f"Deleted template {template_id} for user {user_id}")

    def set_user_default_template(self, user_id: str, template_id: str) -> None:
        self._require_template(user_id, template_id)

        for current in self.store.query(PROMPT_TEMPLATES, created_by=user_id, is_default=True):
            if current["id"] != template_id:
                self.store.update(PROMPT_TEMPLATES, current["id"], {"is_default": False})

        self.store.update(PROMPT_TEMPLATES, template_id, {"is_default": True})
        logger.info(f"Template {template_id} is now the default for user {user_id}")

    def get_user_default_template(self, user_id: str) -> Optional[PromptTemplate]:
        defaults = self.store.query(PROMPT_TEMPLATES, created_by=user_id, is_default=True)
        if not defaults:
            return None
        return PromptTemplate.model_validate(defaults[0])

    def increment_usage(self, user_id: str, template_id: str) -> None:
        """Usage counting is best effort; failures are logged only."""
        try:
            template = self.get_template(user_id, template_id)
            if template is None:
                return
            self.store.update(PROMPT_TEMPLATES, template_id, {"usage_count": template.usage_count + 1})
        except StorageError as e:
            logger.warning(f"Failed to increment usage for template {template_id}: {e.message}")
