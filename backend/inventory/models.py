"""Page-type inventory models.

The inventory file is a JSON export of the CMS page tree, validated with
pydantic.  Selection turns it into one :class:`PageTypeRow` per page type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.checker.models import LinkPair
from backend.checker.policy import REDIRECT, expected_statuses


class InventoryError(Exception):
    """Raised when the inventory file is missing or malformed."""


# ---------------------------------------------------------------------------
# File schema
# ---------------------------------------------------------------------------

class InventoryPage(BaseModel):
    id: int
    title: str = ""
    link: str
    live: bool = False


class InventoryPageType(BaseModel):
    class_name: str
    actions: List[str] = Field(default_factory=list)
    pages: List[InventoryPage] = Field(default_factory=list)

    @field_validator("actions", mode="before")
    @classmethod
    def _action_names(cls, value: Any) -> Any:
        # Controllers declare allowed actions either as a list of names or
        # as a mapping of name -> access rule.
        if value is None:
            return []
        if isinstance(value, dict):
            return [str(key) for key in value]
        return value


class Inventory(BaseModel):
    base_url: Optional[str] = None
    page_types: List[InventoryPageType] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Selected rows
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SamplePage:
    id: int
    title: str
    cms_url: str
    frontend_url: str
    url_path: str


@dataclass(frozen=True)
class PageTypeRow:
    type_name: str
    short_name: str
    category: str
    sample: Optional[SamplePage]
    live_count: int
    total_count: int
    action_names: tuple[str, ...] = field(default_factory=tuple)

    @property
    def draft_only_count(self) -> int:
        return self.total_count - self.live_count

    def link_pair(self) -> Optional[LinkPair]:
        """Links to check for this row, or ``None`` without a sample page."""
        if self.sample is None:
            return None
        return LinkPair(
            cms_url=self.sample.cms_url,
            frontend_url=self.sample.frontend_url,
            expected_statuses=expected_statuses(self.category),
            action_names=self.action_names,
            raw_redirects=self.category == REDIRECT,
        )
