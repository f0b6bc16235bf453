"""Action URL discovery: match declared action names against page hrefs."""

from __future__ import annotations

import re
from typing import List, Sequence

from backend.checker.models import ActionResolution

# Actions reachable at ``<page>/<action>`` without needing a link on the page.
DIRECT_ACTIONS = ("rss", "index")

_HREF_RE = re.compile(r"""href=["']([^"']+)["']""", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*:", re.IGNORECASE)


def extract_hrefs(html: str) -> List[str]:
    """Return every ``href`` value in *html*, in document order.

    Duplicates are kept; order is what decides which link wins.
    """
    return [m.group(1) for m in _HREF_RE.finditer(html)]


def action_pattern(action: str) -> re.Pattern[str]:
    """Match ``/<action>`` followed by ``/``, ``?`` or the end of the href.

    The boundary keeps ``news`` from matching ``/newsletter``.
    """
    return re.compile("/" + re.escape(action) + r"(?:/|\?|$)", re.IGNORECASE)


def absolutise(href: str, frontend_url: str, base_url: str) -> str:
    """Turn a matched *href* into an absolute URL."""
    if _SCHEME_RE.match(href):
        return href
    if href.startswith("/"):
        return base_url.rstrip("/") + href
    return frontend_url.rstrip("/") + "/" + href


def resolve_actions(
    html: str,
    action_names: Sequence[str],
    frontend_url: str,
    base_url: str,
) -> ActionResolution:
    """Resolve each of *action_names* to a URL found in *html*.

    The first href (in document order) matching an action's pattern wins.
    Direct actions with no matching link fall back to
    ``<frontend_url>/<action>``.  Anything else maps to ``None`` and needs a
    manual check.
    """
    hrefs = extract_hrefs(html or "")
    resolved: ActionResolution = {}

    for action in action_names:
        pattern = action_pattern(action)
        url = None
        for href in hrefs:
            if pattern.search(href):
                url = absolutise(href, frontend_url, base_url)
                break
        if url is None and action.lower() in DIRECT_ACTIONS:
            url = frontend_url.rstrip("/") + "/" + action
        resolved[action] = url

    return resolved
