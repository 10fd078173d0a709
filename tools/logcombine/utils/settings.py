"""
Environment-driven configuration for logcombine.

All knobs are environment variables so the CLI can keep its single
positional argument. A .env file in the working directory or the
repository root is loaded first by the CLI (see load_dotenv()).

Variables:
    LOGCOMBINE_BUCKET          Bucket name for URL sources (default: kubernetes-jenkins)
    LOGCOMBINE_STORAGE_API     Storage JSON API base URL (default: https://storage.googleapis.com)
    LOGCOMBINE_MAX_LINE_BYTES  Longest accepted line in bytes (default: 32 MiB)
    LOGCOMBINE_LOG_FILE        Append diagnostic run logs to this file (default: off)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from ..core.scanner import MAX_LINE_BYTES
from ..errors import ConfigError

DEFAULT_BUCKET = "kubernetes-jenkins"
DEFAULT_STORAGE_API = "https://storage.googleapis.com"


def load_dotenv(paths: Optional[Iterable[Path]] = None) -> None:
    """
    Load .env files into os.environ if present.

    Existing environment variables win (setdefault), so a .env file never
    overrides what the shell already exported.

    Args:
        paths: Candidate .env files. Defaults to ./.env and the
               repository root's .env.
    """
    if paths is None:
        # settings.py -> utils/ -> logcombine/ -> tools/ -> repo/
        repo_root = Path(__file__).resolve().parents[3]
        paths = [Path.cwd() / ".env", repo_root / ".env"]

    for env_path in paths:
        if not env_path.is_file():
            continue

        with env_path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue
                # Skip malformed lines (no = sign)
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True)
class Settings:
    """
    Resolved configuration for one run.

    Attributes:
        bucket: Bucket that URL sources must point into.
        storage_api: Base URL of the storage JSON API.
        max_line_bytes: Longest accepted line.
        log_file: Where run logs are appended, or None for no run log.
    """
    bucket: str = DEFAULT_BUCKET
    storage_api: str = DEFAULT_STORAGE_API
    max_line_bytes: int = MAX_LINE_BYTES
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build Settings from environment variables.

        Raises:
            ConfigError: LOGCOMBINE_MAX_LINE_BYTES is not a positive integer.
        """
        env = os.environ if environ is None else environ

        raw_max = env.get("LOGCOMBINE_MAX_LINE_BYTES")
        max_line_bytes = MAX_LINE_BYTES
        if raw_max:
            try:
                max_line_bytes = int(raw_max)
            except ValueError:
                raise ConfigError(f"LOGCOMBINE_MAX_LINE_BYTES is not an integer: {raw_max!r}")
            if max_line_bytes <= 0:
                raise ConfigError(f"LOGCOMBINE_MAX_LINE_BYTES must be positive: {raw_max!r}")

        log_file = env.get("LOGCOMBINE_LOG_FILE")

        return cls(
            bucket=env.get("LOGCOMBINE_BUCKET") or DEFAULT_BUCKET,
            storage_api=(env.get("LOGCOMBINE_STORAGE_API") or DEFAULT_STORAGE_API).rstrip("/"),
            max_line_bytes=max_line_bytes,
            log_file=Path(log_file).expanduser() if log_file else None,
        )
