"""Single-URL HTTP probe that never raises.

``probe`` (blocking) and ``aprobe`` (async) issue one GET and report the
status code.  Every transport problem (DNS, refused connection, timeout,
TLS, protocol error) becomes an ``"ERR"`` status so callers always get a
result back.

Responses are streamed: the body is only downloaded when the caller asked
for it *and* the status is 200.

``settings.request_timeout`` bounds the whole probe, redirects and body
included.  httpx timeouts only limit each individual read or write, so
``probe`` checks a monotonic deadline between chunks and ``aprobe`` runs
under ``asyncio.wait_for``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from backend.checker.models import ERR, ProbeResult
from backend.config import settings

logger = logging.getLogger(__name__)

# Stand-in status for a redirect chain that could not be followed to its end.
OPAQUE_REDIRECT_STATUS = 302

_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class _DeadlineExceeded(Exception):
    pass


def _client_kwargs(follow_redirects: bool) -> dict[str, Any]:
    return {
        "headers": settings.probe_headers(),
        "timeout": httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
        "follow_redirects": follow_redirects,
        "max_redirects": settings.max_redirects,
    }


def _opaque_redirect(url: str) -> ProbeResult:
    logger.warning("Redirect chain for %s could not be followed; reporting %s", url, OPAQUE_REDIRECT_STATUS)
    return ProbeResult(url=url, status=OPAQUE_REDIRECT_STATUS, approximated=True)


def _timed_out(url: str) -> ProbeResult:
    logger.debug("Probe of %s exceeded %.1fs", url, settings.request_timeout)
    return ProbeResult(url=url, status=ERR)


def _check_deadline(deadline: float) -> None:
    if time.monotonic() > deadline:
        raise _DeadlineExceeded


def _read_body(response: httpx.Response, deadline: float) -> str:
    chunks = []
    for chunk in response.iter_bytes():
        chunks.append(chunk)
        _check_deadline(deadline)
    encoding = response.encoding or "utf-8"
    return b"".join(chunks).decode(encoding, errors="replace")


def probe(url: str, fetch_body: bool = False, follow_redirects: bool = True) -> ProbeResult:
    """GET *url* and return its status (and body when requested).

    Args:
        url: Absolute URL to fetch.
        fetch_body: Read the response text.  Ignored unless the status is 200.
        follow_redirects: When ``False`` a 3xx response is reported as-is
            instead of being followed.
    """
    deadline = time.monotonic() + settings.request_timeout
    try:
        with httpx.Client(**_client_kwargs(follow_redirects)) as client:
            with client.stream("GET", url) as response:
                _check_deadline(deadline)
                status = response.status_code
                body = ""
                if fetch_body and status == 200:
                    body = _read_body(response, deadline)
    except _DeadlineExceeded:
        return _timed_out(url)
    except httpx.TooManyRedirects:
        return _opaque_redirect(url)
    except _TRANSPORT_ERRORS as exc:
        logger.debug("Probe of %s failed: %r", url, exc)
        return ProbeResult(url=url, status=ERR)

    return ProbeResult(url=url, status=status, body=body)


async def _aget(url: str, fetch_body: bool, follow_redirects: bool) -> tuple[int, str]:
    async with httpx.AsyncClient(**_client_kwargs(follow_redirects)) as client:
        async with client.stream("GET", url) as response:
            body = ""
            if fetch_body and response.status_code == 200:
                await response.aread()
                body = response.text
            return response.status_code, body


async def aprobe(url: str, fetch_body: bool = False, follow_redirects: bool = True) -> ProbeResult:
    """Async counterpart of :func:`probe`; the await is the only suspension point."""
    try:
        status, body = await asyncio.wait_for(
            _aget(url, fetch_body, follow_redirects), timeout=settings.request_timeout
        )
    except asyncio.TimeoutError:
        return _timed_out(url)
    except httpx.TooManyRedirects:
        return _opaque_redirect(url)
    except _TRANSPORT_ERRORS as exc:
        logger.debug("Probe of %s failed: %r", url, exc)
        return ProbeResult(url=url, status=ERR)

    return ProbeResult(url=url, status=status, body=body)
