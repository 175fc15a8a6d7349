"""Read-only content library backed by a YAML or JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from resume_curator.exceptions import ContentLibraryError
from resume_curator.models.content import ContentCategory, ContentItem
from resume_curator.models.profile import Profile

logger = logging.getLogger(__name__)


class ContentLibrary(BaseModel):
    """On-disk layout of a content library file."""

    profile: Profile = Field(default_factory=Profile)
    items: list[ContentItem] = Field(default_factory=list)
    conflicts: dict[str, list[str]] = Field(default_factory=dict)


class ContentStore:
    """Query interface over a content library. Nothing here writes."""

    def __init__(self, library: ContentLibrary):
        ids = [item.id for item in library.items]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ContentLibraryError(f"Duplicate content item ids: {', '.join(duplicates)}")
        self._library = library
        self._by_id = {item.id: item for item in library.items}

    @classmethod
    def from_file(cls, path: str | Path) -> ContentStore:
        """Load a library from a .yaml/.yml or .json file."""
        p = Path(path).expanduser()
        if not p.exists():
            raise ContentLibraryError(f"Content library not found: {p}")
        text = p.read_text(encoding="utf-8")
        try:
            if p.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ContentLibraryError(f"Could not read content library {p}: {e}") from e
        if not isinstance(data, dict):
            raise ContentLibraryError(f"Content library {p} must be a mapping")
        try:
            library = ContentLibrary(**data)
        except ValidationError as e:
            raise ContentLibraryError(f"Invalid content library {p}: {e}") from e
        logger.info("Loaded %d content items from %s", len(library.items), p)
        return cls(library)

    def get_all_content_items(self) -> list[ContentItem]:
        return list(self._library.items)

    def get_conflict_table(self) -> dict[str, set[str]]:
        return {k: set(v) for k, v in self._library.conflicts.items()}

    def get_profile(self) -> Profile:
        return self._library.profile

    def get(self, item_id: str) -> ContentItem | None:
        return self._by_id.get(item_id)

    def items_in(
        self, category: ContentCategory, position_slot: int | None = None
    ) -> list[ContentItem]:
        """Items of a category in library order, optionally for one position."""
        return [
            item
            for item in self._library.items
            if item.category == category
            and (position_slot is None or item.position_slot == position_slot)
        ]
