"""Sample-page selection: one representative page per page type."""

from __future__ import annotations

import json
import logging
import random
import re
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from backend.checker.models import LinkPair
from backend.checker.policy import ERROR, NORMAL, REDIRECT
from backend.inventory.models import (
    Inventory,
    InventoryError,
    InventoryPage,
    InventoryPageType,
    PageTypeRow,
    SamplePage,
)

logger = logging.getLogger(__name__)

_CATEGORY_BY_SHORT_NAME = {
    "ErrorPage": ERROR,
    "RedirectorPage": REDIRECT,
}

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def short_name(class_name: str) -> str:
    """Return the unqualified class name (``App\\Pages\\BlogPage`` -> ``BlogPage``)."""
    return re.split(r"[\\.]", class_name)[-1]


def categorise(short: str) -> str:
    """Map a short class name to its status category (exact match only)."""
    return _CATEGORY_BY_SHORT_NAME.get(short, NORMAL)


def join_links(*parts: object) -> str:
    """Join URL segments with exactly one slash between them.

    A trailing slash on the last segment is kept.
    """
    pieces = [str(p) for p in parts if str(p) != ""]
    if not pieces:
        return ""
    joined = pieces[0].rstrip("/")
    for piece in pieces[1:]:
        joined += "/" + piece.lstrip("/")
    return joined


def absolute_link(base_url: str, link: str) -> str:
    if _SCHEME_RE.match(link):
        return link
    return join_links(base_url, link or "/")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_inventory(path: Path) -> Inventory:
    """Read and validate the inventory JSON at *path*.

    Raises:
        InventoryError: If the file is missing, not JSON, or fails validation.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise InventoryError(f"Inventory file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise InventoryError(f"Inventory file {path} is not valid JSON: {exc}") from exc

    try:
        return Inventory.model_validate(raw)
    except ValidationError as exc:
        raise InventoryError(f"Inventory file {path} is malformed:\n{exc}") from exc


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def _pick(pages: List[InventoryPage], rng: Optional[random.Random]) -> Optional[InventoryPage]:
    if not pages:
        return None
    return rng.choice(pages) if rng is not None else pages[0]


def _select_row(
    page_type: InventoryPageType,
    base_url: str,
    cms_edit_path: str,
    rng: Optional[random.Random],
) -> PageTypeRow:
    live = [p for p in page_type.pages if p.live]
    # Prefer published pages; fall back to draft-only ones.
    page = _pick(live, rng) or _pick(page_type.pages, rng)

    sample = None
    if page is not None:
        sample = SamplePage(
            id=page.id,
            title=page.title,
            cms_url=join_links(base_url, cms_edit_path, page.id),
            frontend_url=absolute_link(base_url, page.link),
            url_path=page.link,
        )

    short = short_name(page_type.class_name)
    return PageTypeRow(
        type_name=page_type.class_name,
        short_name=short,
        category=categorise(short),
        sample=sample,
        live_count=len(live),
        total_count=len(page_type.pages),
        action_names=tuple(page_type.actions),
    )


def select_rows(
    inventory: Inventory,
    base_url: str,
    cms_edit_path: str = "admin/pages/edit/show",
    randomise: bool = False,
    seed: Optional[int] = None,
) -> List[PageTypeRow]:
    """Build one row per page type, sorted by total page count (descending).

    Args:
        inventory: Validated inventory.
        base_url: Site base URL used for CMS and relative frontend links.
        cms_edit_path: CMS route the page id is appended to.
        randomise: Pick a random sample page instead of the first one.
        seed: Seed for the random choice, for repeatable runs.
    """
    rng = random.Random(seed) if randomise else None
    rows = [_select_row(pt, base_url, cms_edit_path, rng) for pt in inventory.page_types]
    for row in rows:
        if row.sample is None:
            logger.debug("No pages of type %s; nothing to check", row.short_name)
    return sorted(rows, key=lambda r: r.total_count, reverse=True)


def link_pairs(rows: List[PageTypeRow]) -> List[LinkPair]:
    """Link pairs for every row that has a sample page, in row order."""
    return [pair for pair in (row.link_pair() for row in rows) if pair is not None]
