"""
Saved article templates.

Templates keep the reusable part of an ArticleConfig (URL, brand, intent,
tone, images, length, readability) under a name, persisted in the
settings store.
"""

import logging
import time
import uuid
from typing import Optional

from .config import TEMPLATES_KEY, ConfigStore
from .models import ArticleConfig, SavedTemplate

logger = logging.getLogger(__name__)


class TemplateError(Exception):
    """Raised when a template operation is invalid."""
    pass


class TemplateStore:
    """CRUD access to saved templates in a ConfigStore."""

    def __init__(self, store: ConfigStore):
        self.store = store

    def all_templates(self) -> list[SavedTemplate]:
        """Return saved templates in creation order, skipping corrupted entries."""
        raw = self.store.get(TEMPLATES_KEY, [])
        if not isinstance(raw, list):
            logger.warning(f"Ignoring templates entry: expected a list, got {type(raw).__name__}")
            return []

        templates: list[SavedTemplate] = []
        for entry in raw:
            try:
                templates.append(SavedTemplate.from_dict(entry))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping corrupted template entry: {e}")
        return templates

    def get(self, template_id: str) -> SavedTemplate:
        for template in self.all_templates():
            if template.id == template_id:
                return template
        raise TemplateError(f"Template not found: {template_id}")

    def save(self, name: str, config: ArticleConfig) -> SavedTemplate:
        """
        Save the reusable fields of config under a name.

        Args:
            name: Display name (must not be blank).
            config: Config to take fields from.

        Returns:
            The new template.
        """
        if not name or not name.strip():
            raise TemplateError("Template name must not be blank")

        template = SavedTemplate(
            id=_new_template_id(),
            name=name.strip(),
            config=config.template_fields(),
        )
        templates = self.all_templates() + [template]
        self._write(templates)
        logger.info(f"Saved template '{template.name}' ({template.id})")
        return template

    def apply(self, template_id: str, config: ArticleConfig) -> ArticleConfig:
        """Return config with the template's fields applied."""
        return config.with_template(self.get(template_id).config)

    def delete(self, template_id: str) -> None:
        templates = self.all_templates()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            raise TemplateError(f"Template not found: {template_id}")
        self._write(remaining)

    def find_by_name(self, name: str) -> Optional[SavedTemplate]:
        """Return the most recent template with this name (case-insensitive)."""
        matches = [t for t in self.all_templates() if t.name.lower() == name.strip().lower()]
        return matches[-1] if matches else None

    def _write(self, templates: list[SavedTemplate]) -> None:
        self.store.set(TEMPLATES_KEY, [t.to_dict() for t in templates])


def _new_template_id() -> str:
    # Millisecond timestamp keeps ids sortable; the suffix avoids collisions.
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"
