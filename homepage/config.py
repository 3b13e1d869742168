from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class SiteConfig:
    host: str
    port: int
    static_dir: str
    templates_dir: str
    log_level: str


@lru_cache(maxsize=1)
def load_site_config() -> SiteConfig:
    """Server settings from the environment (PORT, HOST, LOG_LEVEL, SITE_*_DIR)."""
    port_env = (os.getenv("PORT", "") or "").strip()
    try:
        port = int(port_env) if port_env else 8080
    except ValueError:
        port = 8080

    return SiteConfig(
        host=(os.getenv("HOST", "") or "0.0.0.0").strip(),
        port=port,
        static_dir=(os.getenv("SITE_STATIC_DIR", "") or "").strip() or str(_PACKAGE_DIR / "static"),
        templates_dir=(os.getenv("SITE_TEMPLATES_DIR", "") or "").strip() or str(_PACKAGE_DIR / "templates"),
        log_level=(os.getenv("LOG_LEVEL", "") or "info").strip().upper(),
    )
