"""Centralised settings for the Page Type Tester backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

VERSION = "0.1.0"


def _optional_int(value: str | None) -> int | None:
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Site
    # ------------------------------------------------------------------
    base_url: str = field(
        default_factory=lambda: os.environ.get("PTT_BASE_URL", "http://localhost")
    )
    inventory_path: Path = field(
        default_factory=lambda: Path(os.environ.get("PTT_INVENTORY", "page_types.json"))
    )
    cms_edit_path: str = field(
        default_factory=lambda: os.environ.get("PTT_CMS_EDIT_PATH", "admin/pages/edit/show")
    )

    # ------------------------------------------------------------------
    # Probe
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    connect_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CONNECT_TIMEOUT", "10.0"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "5"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "PTT_USER_AGENT", f"PageTypeTester/{VERSION} (+upgrade audit)"
        )
    )
    # Sent verbatim as the Cookie header so CMS edit views behind a login
    # can be probed with an existing session.
    session_cookie: str = field(
        default_factory=lambda: os.environ.get("PTT_SESSION_COOKIE", "")
    )

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------
    randomise_seed: int | None = field(
        default_factory=lambda: _optional_int(os.environ.get("PTT_RANDOMISE_SEED"))
    )

    def probe_headers(self) -> dict[str, str]:
        """Headers attached to every probe request."""
        headers = {"User-Agent": self.user_agent}
        if self.session_cookie:
            headers["Cookie"] = self.session_cookie
        return headers


# Module-level singleton; import this everywhere:
#   from backend.config import settings
settings = Settings()
