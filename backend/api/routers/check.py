"""Link-check endpoints with Server-Sent Events (SSE) streaming.

Routes
------
POST /check?actions=true|false      Start a batch check (SSE) or cancel the running one
POST /check/cancel                  Request cancellation of the running batch
POST /recheck/{kind}/{index}        Re-probe one CMS or frontend link
POST /rows/{index}/actions          Discover and check one row's action URLs

A batch runs in a background task and streams each update as an SSE event::

    data: {"event": "progress", "checked": 3, "total": 12}

    data: {"event": "row", "row": {...}}

    data: {"event": "done", "summary": {"passed": 10, "failed": 2, ...}}

    data: {"event": "error", "detail": "..."}

Posting to ``/check`` while a batch is running does not start a second one;
it cancels the running batch and returns ``{"cancelled": true}``.
The single-row routes answer 409 while a batch is running.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Literal

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from backend.checker.models import RowReport
from backend.checker.runner import LinkCheckRunner

router = APIRouter()


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------

def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload)}\n\n"


def _runner(request: Request) -> LinkCheckRunner:
    return request.app.state.audit.runner


def _idle_or_409(runner: LinkCheckRunner) -> None:
    if runner.running:
        raise HTTPException(status_code=409, detail="A link check is running; wait for it or cancel it")


def _row_or_404(runner: LinkCheckRunner, index: int) -> RowReport:
    if not 0 <= index < len(runner.reports):
        raise HTTPException(status_code=404, detail=f"No checkable row {index}")
    return runner.reports[index]


# ---------------------------------------------------------------------------
# Async SSE generator
# ---------------------------------------------------------------------------

async def _check_sse_generator(runner: LinkCheckRunner, include_actions: bool) -> AsyncIterator[str]:
    """Yield SSE-formatted strings for the duration of a batch check."""
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    def _progress(checked: int, total: int) -> None:
        queue.put_nowait(_sse({"event": "progress", "checked": checked, "total": total}))

    def _row(report: RowReport) -> None:
        queue.put_nowait(_sse({"event": "row", "row": report.to_dict()}))

    def _put_error(detail: str) -> None:
        queue.put_nowait(_sse({"event": "error", "detail": detail}))

    async def _run() -> None:
        try:
            summary = await runner.arun(include_actions, on_progress=_progress, on_row=_row)
            if summary is None:
                _put_error("A check was already running; it has been stopped.")
            else:
                queue.put_nowait(_sse({"event": "done", "summary": summary.to_dict()}))
        except Exception as exc:  # noqa: BLE001
            _put_error(str(exc))
        finally:
            queue.put_nowait(None)  # sentinel

    task = asyncio.create_task(_run())
    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            yield item
    finally:
        # Client went away mid-run: stop after the in-flight probe.
        if not task.done():
            runner.cancel()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/check")
async def check(request: Request, actions: bool = True):
    """Check every row's links and stream progress as SSE.

    The response is a ``text/event-stream`` of ``progress``, ``row`` and a
    final ``done`` (or ``error``) event.  When a batch is already running it
    is cancelled instead and a JSON body is returned.
    """
    runner = _runner(request)
    if runner.running:
        runner.cancel()
        return JSONResponse({"cancelled": True})

    return StreamingResponse(
        _check_sse_generator(runner, actions),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
        },
    )


@router.post("/check/cancel")
async def cancel(request: Request) -> dict[str, bool]:
    """Request cancellation; ``cancelled`` is false when nothing was running."""
    return {"cancelled": _runner(request).cancel()}


@router.post("/recheck/{kind}/{index}")
async def recheck(request: Request, kind: Literal["cms", "frontend"], index: int) -> dict[str, Any]:
    """Re-probe the CMS or frontend link of one row."""
    runner = _runner(request)
    _idle_or_409(runner)
    _row_or_404(runner, index)
    result = await runner.arecheck(kind, index)
    return {
        "kind": kind,
        "index": index,
        "status": result.status,
        "passed": result.passed,
        "approximated": result.approximated,
    }


@router.post("/rows/{index}/actions")
async def check_row_actions(request: Request, index: int) -> dict[str, Any]:
    """Fetch one row's page, discover its action URLs and check them.

    ``fetched`` is false when the page body could not be retrieved.
    """
    runner = _runner(request)
    _idle_or_409(runner)
    report = _row_or_404(runner, index)
    checked = await runner.acheck_row_actions(index)
    return {"fetched": checked is not None, "row": report.to_dict()}
