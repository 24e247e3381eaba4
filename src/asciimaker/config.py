"""
Runtime settings read from the environment.

Command-line flags take precedence over anything loaded here.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_TIMEOUT = 60.0
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None  # Runware API key, needed only for prompt mode
    font_path: str | None = None  # monospace font file; autodetected if unset
    remote_timeout: float = DEFAULT_TIMEOUT  # seconds per remote generation
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        timeout = env.get("ASCIIMAKER_TIMEOUT")
        try:
            remote_timeout = float(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ValueError(f"Invalid ASCIIMAKER_TIMEOUT: {timeout!r}") from e
        return cls(
            api_key=env.get("RUNWARE_API_KEY") or None,
            font_path=env.get("ASCIIMAKER_FONT") or None,
            remote_timeout=remote_timeout,
            log_level=env.get("ASCIIMAKER_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
