from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

import requests

from .exceptions import OperationCancelled

_logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def check_cancelled(cancel: Optional[threading.Event]) -> None:
    """Raise OperationCancelled if the caller has set ``cancel``."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("Operation cancelled by caller.")


class Transport(Protocol):
    """Anything able to send a prepared-able ``requests.Request``."""

    def send(
        self,
        request: requests.Request,
        cancel: Optional[threading.Event] = None,
    ) -> requests.Response: ...


class RequestsTransport:
    """Transport backed by a ``requests.Session`` (connection pooling, no retries)."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(
        self,
        request: requests.Request,
        cancel: Optional[threading.Event] = None,
    ) -> requests.Response:
        check_cancelled(cancel)
        prepared = self.session.prepare_request(request)
        _logger.debug("%s %s", prepared.method, _redact(prepared.url))
        try:
            response = self.session.send(prepared, timeout=self.timeout)
        except requests.RequestException as e:
            _logger.warning("Request error for %s %s: %s", prepared.method, _redact(prepared.url), e)
            raise
        _logger.debug("HTTP %s from %s", response.status_code, _redact(prepared.url))
        # The response is already here; a late cancel stops the caller's next step.
        check_cancelled(cancel)
        return response


def _redact(url: Optional[str]) -> str:
    """Hide the token query value of revoke URLs in log output."""
    url = url or ""
    marker = "token="
    idx = url.find(marker)
    if idx == -1:
        return url
    return url[: idx + len(marker)] + "***"


# ----------------------------------------------------------------------
# Shared default transport
# ----------------------------------------------------------------------
_default_transport: Optional[RequestsTransport] = None
_default_lock = threading.Lock()


def default_transport() -> RequestsTransport:
    """Return the process-wide transport, creating it on first use."""
    global _default_transport
    if _default_transport is None:
        with _default_lock:
            if _default_transport is None:
                _logger.debug("Creating shared requests transport")
                _default_transport = RequestsTransport()
    return _default_transport
