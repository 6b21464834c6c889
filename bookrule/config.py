"""Centralised settings for the bookrule engine.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "15.0"))
    )
    fetch_retries: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_RETRIES", "2"))
    )
    retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_BASE_DELAY", "0.5"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "5"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("BOOKRULE_USER_AGENT", _DEFAULT_UA)
    )

    # ------------------------------------------------------------------
    # Pipeline trace
    # ------------------------------------------------------------------
    preview_items: int = field(
        default_factory=lambda: int(os.environ.get("PREVIEW_ITEMS", "3"))
    )
    preview_chars: int = field(
        default_factory=lambda: int(os.environ.get("PREVIEW_CHARS", "200"))
    )
    content_preview_chars: int = field(
        default_factory=lambda: int(os.environ.get("CONTENT_PREVIEW_CHARS", "100"))
    )

    # ------------------------------------------------------------------
    # Source files
    # ------------------------------------------------------------------
    sources_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("BOOKRULE_SOURCES", Path.home() / ".bookrule" / "sources")
        )
    )

    def resolve_source_path(self, name: str) -> Path:
        """Return *name* as a path, looking it up in ``sources_dir`` when it
        does not exist relative to the working directory."""
        path = Path(name)
        if path.exists() or path.is_absolute():
            return path
        candidate = self.sources_dir / name
        if candidate.suffix == "":
            candidate = candidate.with_suffix(".json")
        return candidate


# Module-level singleton, import this everywhere:
#   from bookrule.config import settings
settings = Settings()
