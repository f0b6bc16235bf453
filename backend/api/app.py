"""FastAPI application factory.

Lifespan
--------
On startup the app loads the page-type inventory and builds an
:class:`~backend.audit.Audit` (rows + link-check runner), shared across all
requests via ``request.app.state.audit``.  A malformed inventory aborts
startup.

Routers
-------
    /          HTML report page and JSON rows
    /check     batch link check (SSE streaming), cancel, rechecks
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from backend.audit import build_audit
from backend.config import VERSION

from backend.api.routers import check as check_router
from backend.api.routers import report as report_router


def create_app(inventory_path: Optional[Path] = None, base_url: Optional[str] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        inventory_path: Inventory JSON; defaults to ``settings.inventory_path``.
        base_url: Site base URL override.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build the audit on startup; cancel any running check on shutdown."""
        app.state.inventory_path = inventory_path
        app.state.base_url = base_url
        app.state.audit = build_audit(inventory_path, base_url=base_url)
        try:
            yield
        finally:
            app.state.audit.runner.cancel()

    app = FastAPI(
        title="Page Type Tester",
        description=(
            "Checks the HTTP status of the frontend and CMS edit form for each "
            "page type, discovers controller action URLs, and flags pages with "
            "forms that need a manual look."
        ),
        version=VERSION,
        lifespan=lifespan,
    )

    app.include_router(report_router.router, tags=["report"])
    app.include_router(check_router.router, tags=["check"])

    return app


# Module-level instance used by uvicorn (inventory from $PTT_INVENTORY):
#   uvicorn backend.api.app:app --reload
app = create_app()
