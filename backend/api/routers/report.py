"""Report endpoints: the browser page and its row data.

Routes
------
GET /?randomise=1    HTML report page (``randomise`` re-picks sample pages)
GET /rows            JSON rows with the latest check results
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from backend.api.page import render_page
from backend.audit import Audit, build_audit
from backend.inventory.models import PageTypeRow

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _row_dict(audit: Audit, position: int, row: PageTypeRow) -> dict[str, Any]:
    index: Optional[int] = audit.check_index.get(position)
    payload: dict[str, Any] = {
        "type_name": row.type_name,
        "short_name": row.short_name,
        "category": row.category,
        "live_count": row.live_count,
        "total_count": row.total_count,
        "action_names": list(row.action_names),
        "sample": None,
        "check": None,
    }
    if row.sample is not None:
        payload["sample"] = {
            "id": row.sample.id,
            "title": row.sample.title,
            "url_path": row.sample.url_path,
            "cms_url": row.sample.cms_url,
            "frontend_url": row.sample.frontend_url,
        }
    if index is not None:
        payload["check"] = audit.runner.reports[index].to_dict()
    return payload


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/", response_class=HTMLResponse)
def report_page(request: Request, randomise: bool = False) -> HTMLResponse:
    """Render the report page.

    Asking for ``randomise`` (or dropping it after a randomised load) picks
    new sample pages, unless a check is currently running.
    """
    state = request.app.state
    audit: Audit = state.audit
    if (randomise or audit.randomised) and not audit.runner.running:
        audit = build_audit(state.inventory_path, base_url=state.base_url, randomise=randomise)
        state.audit = audit
    return HTMLResponse(render_page(audit))


@router.get("/rows")
def rows(request: Request) -> list[dict[str, Any]]:
    """All page-type rows, in report order."""
    audit: Audit = request.app.state.audit
    return [_row_dict(audit, position, row) for position, row in enumerate(audit.rows)]
