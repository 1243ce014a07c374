"""Client configuration.

Defaults suit the public service. ``ClientConfig.from_env()`` reads
overrides from the environment, loading a ``.env`` file first if present:

    QUIPUBASE_BASE_URL        service root (default https://quipubase.online)
    QUIPUBASE_TIMEOUT         per-request timeout in seconds (default: none)
    QUIPUBASE_SUBSCRIBE_MODE  "push" (SSE) or "pull" (chunked NDJSON)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

DEFAULT_BASE_URL = "https://quipubase.online"
SUBSCRIBE_MODES = ("push", "pull")


@dataclass
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float | None = None  # None: wait indefinitely
    subscribe_mode: str = "push"

    def __post_init__(self) -> None:
        if self.subscribe_mode not in SUBSCRIBE_MODES:
            raise ValueError(
                f"subscribe_mode must be one of {SUBSCRIBE_MODES}, got {self.subscribe_mode!r}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls, env_file: str | None = None) -> ClientConfig:
        """Build a config from environment variables (and an optional .env)."""
        load_dotenv(env_file or find_dotenv(usecwd=True))
        raw_timeout = os.environ.get("QUIPUBASE_TIMEOUT", "").strip()
        return cls(
            base_url=os.environ.get("QUIPUBASE_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(raw_timeout) if raw_timeout else None,
            subscribe_mode=os.environ.get("QUIPUBASE_SUBSCRIBE_MODE", "push").strip().lower(),
        )
