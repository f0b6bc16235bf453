"""Shared fixtures: a small page-type inventory written to a temp file."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

SITE = "https://example.org/"

INVENTORY = {
    "base_url": SITE,
    "page_types": [
        {
            "class_name": "Page",
            "pages": [
                {"id": 1, "title": "Home", "link": "/", "live": True},
                {"id": 2, "title": "About", "link": "/about/", "live": True},
            ],
        },
        {
            "class_name": "App\\Pages\\BlogPage",
            "actions": {"rss": True, "tag": "->canView"},
            "pages": [
                {"id": 3, "title": "Draft Blog", "link": "/draft-blog/", "live": False},
                {"id": 4, "title": "Blog", "link": "/blog/", "live": True},
                {"id": 5, "title": "News", "link": "/news/", "live": True},
            ],
        },
        {
            "class_name": "SilverStripe\\ErrorPage\\ErrorPage",
            "pages": [{"id": 6, "title": "Page not found", "link": "/page-not-found/", "live": True}],
        },
        {
            "class_name": "SilverStripe\\CMS\\Model\\RedirectorPage",
            "pages": [{"id": 7, "title": "Moved", "link": "/moved/", "live": False}],
        },
        {
            "class_name": "App\\Pages\\LandingPage",
            "actions": ["signup"],
            "pages": [],
        },
    ],
}


@pytest.fixture
def inventory_file(tmp_path: Path) -> Path:
    path = tmp_path / "page_types.json"
    path.write_text(json.dumps(INVENTORY), encoding="utf-8")
    return path
