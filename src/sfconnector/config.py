from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .env_loader import load_env_files

_logger = logging.getLogger(__name__)

# Ensure .env is loaded for library use as well (e.g. scripts building SFConfig directly)
load_env_files(quiet=True)

DEFAULT_API_VERSION = "48.0"

# Salesforce rejects composite sobjects calls with more than 200 records.
MAX_BATCH_SIZE = 200

LOGIN_URL_TEMPLATE = "https://{host}.salesforce.com/services/Soap/c/{version}/"
LOGOUT_URL_TEMPLATE = "https://{host}.salesforce.com/services/oauth2/revoke?token="

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    _logger.warning("Ignoring invalid boolean %s=%r; using %s", name, raw, default)
    return default


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        _logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def normalize_api_version(version: str) -> str:
    """Return an API version without the leading 'v' ("v60.0" -> "60.0")."""
    version = (version or "").strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return version or DEFAULT_API_VERSION


# ----------------------------------------------------------------------
# Configuration dataclass
# ----------------------------------------------------------------------
@dataclass
class SFConfig:
    """Configuration for the Salesforce session and data APIs."""

    username: Optional[str] = None
    password: Optional[str] = None

    # e.g. "48.0"; a "v" prefix is accepted and stripped
    api_version: str = DEFAULT_API_VERSION

    # True -> login.salesforce.com, False -> test.salesforce.com
    is_production: bool = True

    # Optional explicit endpoints; otherwise derived from the templates above
    login_url: Optional[str] = None
    logout_url: Optional[str] = None

    # Default allOrNone flag for data modification requests
    all_or_none: bool = False

    # Records per composite request; capped at MAX_BATCH_SIZE
    batch_size: int = MAX_BATCH_SIZE

    # Per-request timeout (seconds) for the default transport
    timeout: float = 30.0

    def __post_init__(self) -> None:
        self.api_version = normalize_api_version(self.api_version)

    @classmethod
    def from_env(cls) -> SFConfig:
        """Load configuration from environment variables."""
        return cls(
            username=os.getenv("SF_USERNAME"),
            password=os.getenv("SF_PASSWORD"),
            api_version=os.getenv("SF_API_VERSION", DEFAULT_API_VERSION),
            is_production=_env_bool("SF_IS_PRODUCTION", True),
            login_url=os.getenv("SF_LOGIN_URL") or None,
            logout_url=os.getenv("SF_LOGOUT_URL") or None,
            all_or_none=_env_bool("SF_ALL_OR_NONE", False),
            batch_size=_env_number("SF_BATCH_SIZE", MAX_BATCH_SIZE, int),
            timeout=_env_number("SF_TIMEOUT", 30.0, float),
        )

    @property
    def host(self) -> str:
        return "login" if self.is_production else "test"

    @property
    def login_endpoint(self) -> str:
        """SOAP login URL for the configured API version."""
        if self.login_url:
            return self.login_url
        return LOGIN_URL_TEMPLATE.format(host=self.host, version=self.api_version)

    @property
    def logout_endpoint(self) -> str:
        """Token revoke URL; the session id is appended to it."""
        if self.logout_url:
            return self.logout_url
        return LOGOUT_URL_TEMPLATE.format(host=self.host)

    @property
    def chunk_size(self) -> int:
        """Effective records per composite request (1..MAX_BATCH_SIZE)."""
        if self.batch_size <= 0:
            return MAX_BATCH_SIZE
        return min(self.batch_size, MAX_BATCH_SIZE)
