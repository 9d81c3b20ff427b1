"""
web/taxonomy.py -- Read-only category -> machine type table for the client.

The table is configuration, not logic: it ships as web/taxonomy.json and can
be replaced wholesale with TAXONOMY_PATH. It is loaded once at startup into
app.state.taxonomy and handed to the view-state transitions and templates.

A type may appear under more than one category (Anesthesia Machine is both
therapeutic and surgical); lookups are always by category first.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("medmachines.web")

_DEFAULT_PATH = Path(__file__).parent / "taxonomy.json"


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    types: tuple[str, ...] = ()


class Taxonomy(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: tuple[Category, ...] = ()

    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]

    def types_for(self, category: str) -> list[str]:
        """Type options for a category. Unknown or empty category -> no options."""
        for c in self.categories:
            if c.name == category:
                return list(c.types)
        return []

    def has_category(self, category: str) -> bool:
        return any(c.name == category for c in self.categories)


def load_taxonomy(path: Optional[Path] = None) -> Taxonomy:
    """Parse and validate the taxonomy JSON. Raises pydantic.ValidationError on bad shape."""
    source = Path(path) if path else _DEFAULT_PATH
    taxonomy = Taxonomy.model_validate_json(source.read_text(encoding="utf-8"))
    logger.info("Taxonomy loaded from %s (%d categories)", source, len(taxonomy.categories))
    return taxonomy
