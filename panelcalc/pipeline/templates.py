"""Reusable column-mapping templates.

Templates are stored as a JSON list in a single file so they survive across
import sessions.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class MappingTemplate(BaseModel):
    """Named ``target_field -> source_column`` mapping."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    mappings: dict[str, str]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


_TEMPLATE_LIST = TypeAdapter(list[MappingTemplate])


class MappingTemplateStore:
    """JSON-file backed collection of mapping templates."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> list[MappingTemplate]:
        if not self.path.exists():
            return []
        try:
            return _TEMPLATE_LIST.validate_json(self.path.read_bytes())
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable mapping templates at {self.path}: {e}")
            return []

    def _write(self, templates: list[MappingTemplate]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [t.model_dump(mode="json") for t in templates]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def list(self) -> list[MappingTemplate]:
        return self._load()

    def get(self, template_id: str) -> MappingTemplate | None:
        return next((t for t in self._load() if t.id == template_id), None)

    def find_by_name(self, name: str) -> MappingTemplate | None:
        return next((t for t in self._load() if t.name == name), None)

    def save(self, name: str, mappings: dict[str, str]) -> MappingTemplate:
        """Persist a new template from a copy of ``mappings``."""
        template = MappingTemplate(name=name, mappings=dict(mappings))
        templates = self._load()
        templates.append(template)
        self._write(templates)
        logger.info(f"Saved mapping template '{name}' ({template.id})")
        return template

    def delete(self, template_id: str) -> bool:
        """Remove a template. Returns False when no template has that id."""
        templates = self._load()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            return False
        self._write(remaining)
        return True
