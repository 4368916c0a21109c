from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:3002"

ENV_BASE_URL = "IMAGESHOP_BASE_URL"
ENV_TIMEOUT = "IMAGESHOP_TIMEOUT"
ENV_DOWNLOAD_DIR = "IMAGESHOP_DOWNLOAD_DIR"


def default_download_dir() -> Path:
    """The per-user Downloads folder when it exists, else the current directory."""
    downloads = Path.home() / "Downloads"
    return downloads if downloads.is_dir() else Path(".")


@dataclass(frozen=True)
class ServiceConfig:
    """
    Where the processing service lives and where exports land.

    base_url:
        Root URL of the service exposing /upload, /process and /download.
    timeout:
        Total seconds allowed per remote call. None means wait indefinitely.
    download_dir:
        Directory that receives processed.<format> files (default: ~/Downloads if present).
    """
    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = None
    download_dir: Path = field(default_factory=default_download_dir)

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        env = os.environ if environ is None else environ
        cfg = ServiceConfig()
        if env.get(ENV_BASE_URL):
            cfg = replace(cfg, base_url=env[ENV_BASE_URL])
        if env.get(ENV_TIMEOUT):
            cfg = replace(cfg, timeout=_parse_timeout(env[ENV_TIMEOUT]))
        if env.get(ENV_DOWNLOAD_DIR):
            cfg = replace(cfg, download_dir=Path(env[ENV_DOWNLOAD_DIR]).expanduser())
        return cfg

    def with_overrides(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        download_dir: Optional[str] = None,
    ) -> "ServiceConfig":
        """Apply command-line values on top; None leaves a field alone."""
        cfg = self
        if base_url:
            cfg = replace(cfg, base_url=base_url)
        if timeout is not None:
            cfg = replace(cfg, timeout=_positive_or_none(timeout))
        if download_dir:
            cfg = replace(cfg, download_dir=Path(download_dir).expanduser())
        return cfg


def _parse_timeout(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{ENV_TIMEOUT} must be a number of seconds, got {raw!r}") from None
    return _positive_or_none(value)


def _positive_or_none(value: float) -> Optional[float]:
    # 0 or negative disables the timeout
    return value if value > 0 else None
