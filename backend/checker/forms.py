"""Form detection on fetched page HTML."""

from __future__ import annotations

import re

# Forms rendered by the BetterNavigator dev toolbar are not page content.
NAVIGATOR_MARKER = "BetterNavigator"

_HEADER_RE = re.compile(r"<header[^>]*>.*?</header>", re.IGNORECASE | re.DOTALL)
_FOOTER_RE = re.compile(r"<footer[^>]*>.*?</footer>", re.IGNORECASE | re.DOTALL)
_FORM_TAG_RE = re.compile(r"<form[^>]*>", re.IGNORECASE)


def count_forms(html: str) -> int:
    """Count ``<form>`` tags in the main content of *html*.

    Header and footer regions are removed first, and toolbar forms carrying
    :data:`NAVIGATOR_MARKER` are skipped.  Truncated or malformed markup is
    fine; an unterminated header simply isn't stripped.
    """
    if not html:
        return 0
    cleaned = _HEADER_RE.sub("", html)
    cleaned = _FOOTER_RE.sub("", cleaned)
    return sum(
        1 for tag in _FORM_TAG_RE.findall(cleaned) if NAVIGATOR_MARKER not in tag
    )
