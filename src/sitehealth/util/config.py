"""Configuration for the health scanner.

Loads all settings from .env with sensible defaults.
Nothing is required - a scan works out of the box, the PageSpeed key
just raises the third-party quota.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from sitehealth import __version__

DEFAULT_USER_AGENT = f"SiteHealth/{__version__} (+https://github.com/sitehealth/sitehealth-scanner)"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})")
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})")


class Config:
    """Single source of truth for scanner settings.

    Timeouts are in seconds.
    """

    def __init__(self, env_file: Optional[Path] = None):
        """Load configuration from .env file (current directory by default)."""
        env_file = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        # ===== THIRD-PARTY APIS =====
        self.pagespeed_api_key = os.getenv("PAGESPEED_API_KEY") or None

        # Sent only to the scanned site, never to third-party APIs
        self.user_agent = os.getenv("USER_AGENT") or DEFAULT_USER_AGENT

        # ===== PER-PROBE TIMEOUTS =====
        self.dns_timeout = _float_env("DNS_TIMEOUT", 3.0)
        self.email_dns_timeout = _float_env("EMAIL_DNS_TIMEOUT", 5.0)
        self.ct_timeout = _float_env("CT_TIMEOUT", 10.0)
        self.tls_timeout = _float_env("TLS_TIMEOUT", 5.0)
        self.http_timeout = _float_env("HTTP_TIMEOUT", 10.0)
        self.availability_timeout = _float_env("AVAILABILITY_TIMEOUT", 5.0)
        self.pagespeed_timeout = _float_env("PAGESPEED_TIMEOUT", 30.0)

        # ===== CERTIFICATE TRANSPARENCY =====
        self.ct_max_records = _int_env("CT_MAX_RECORDS", 50)
        self.expiry_warning_days = _int_env("EXPIRY_WARNING_DAYS", 30)

        # ===== OUTPUT =====
        self.out_dir = Path(os.getenv("OUT_DIR", "out"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def to_dict(self) -> dict:
        """Convert config to dict for logging. The API key is never included."""
        return {
            'pagespeed_api_key_set': self.pagespeed_api_key is not None,
            'user_agent': self.user_agent,
            'dns_timeout': self.dns_timeout,
            'email_dns_timeout': self.email_dns_timeout,
            'ct_timeout': self.ct_timeout,
            'tls_timeout': self.tls_timeout,
            'http_timeout': self.http_timeout,
            'availability_timeout': self.availability_timeout,
            'pagespeed_timeout': self.pagespeed_timeout,
            'ct_max_records': self.ct_max_records,
            'expiry_warning_days': self.expiry_warning_days,
            'out_dir': str(self.out_dir),
        }

    def __repr__(self) -> str:
        """Human-readable config summary."""
        return (
            f"Config(\n"
            f"  pagespeed_api_key={'set' if self.pagespeed_api_key else 'unset'}\n"
            f"  timeouts=dns:{self.dns_timeout}s ct:{self.ct_timeout}s "
            f"tls:{self.tls_timeout}s http:{self.http_timeout}s "
            f"pagespeed:{self.pagespeed_timeout}s\n"
            f"  out_dir={self.out_dir}\n"
            f")"
        )
