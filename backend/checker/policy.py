"""Expected HTTP statuses per page-type category."""

from __future__ import annotations

NORMAL = "normal"
ERROR = "error"
REDIRECT = "redirect"

CMS_EXPECTED: frozenset[int] = frozenset({200})
ACTION_EXPECTED: frozenset[int] = frozenset({200})

_EXPECTED_BY_CATEGORY: dict[str, frozenset[int]] = {
    ERROR: frozenset({404, 500}),
    REDIRECT: frozenset({301, 302, 303, 307, 308}),
    NORMAL: frozenset({200}),
}


def expected_statuses(category: str) -> frozenset[int]:
    """Return the statuses a frontend link of *category* may return to pass.

    Unknown categories are treated as ``normal``.
    """
    return _EXPECTED_BY_CATEGORY.get(category, _EXPECTED_BY_CATEGORY[NORMAL])
