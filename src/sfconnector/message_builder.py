"""
Session-aware construction and parsing of Salesforce protocol messages.

MessageBuilder owns the session state produced by a SOAP login (session id,
instance endpoint and bearer header) and turns logical operations into
``requests.Request`` objects ready for a transport. It never sends anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence
from xml.sax.saxutils import escape

import requests

from .config import SFConfig
from .exceptions import (
    MalformedResponseError,
    MissingRecordIdError,
    NotLoggedInError,
    SalesforceHTTPError,
    UnsupportedOperationError,
)
from .models import Record, dumps_update_payload, record_id

_logger = logging.getLogger(__name__)

SESSION_ID_START = "<sessionId>"
SESSION_ID_END = "</sessionId>"
ENDPOINT_START = "<serverUrl>"
ENDPOINT_END = "/services/Soap/c/"

CONTENT_TYPE_XML = "text/xml; charset=utf-8"
CONTENT_TYPE_JSON = "application/json; charset=utf-8"
SOAP_ACTION_KEY = "SOAPAction"
SOAP_ACTION_VALUE = '""'

QUERY_PATH = "/services/data/v{version}/query/?q="
UPDATE_PATH = "/services/data/v{version}/composite/sobjects"

LOGIN_ENVELOPE = (
    '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">'
    '<s:Body xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
    '<login xmlns="urn:enterprise.soap.sforce.com">'
    "<username>{username}</username>"
    "<password>{password}</password>"
    "</login></s:Body>"
    "</s:Envelope>"
)


@dataclass
class SessionState:
    """Credentials returned by the last successful login."""

    session_id: Optional[str] = None
    request_endpoint: Optional[str] = None

    @property
    def authorization(self) -> Optional[str]:
        if self.session_id is None:
            return None
        return f"Bearer {self.session_id}"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.session_id and self.request_endpoint)


def build_login_envelope(username: str, password: str) -> str:
    return LOGIN_ENVELOPE.format(username=escape(username), password=escape(password))


def extract_element(body: str, start_marker: str, end_marker: str) -> str:
    """Return the text between ``start_marker`` and the next ``end_marker``.

    Raises MalformedResponseError if either marker is missing or the value is empty.
    """
    start = body.find(start_marker)
    if start == -1:
        raise MalformedResponseError(f"Login response does not contain {start_marker!r}")
    start += len(start_marker)
    end = body.find(end_marker, start)
    if end == -1:
        raise MalformedResponseError(f"Login response does not contain {end_marker!r} after {start_marker!r}")
    value = body[start:end]
    if not value:
        raise MalformedResponseError(f"Login response has an empty value for {start_marker!r}")
    return value


def is_success(response: Any) -> bool:
    return 200 <= int(response.status_code) < 300


def raise_for_status(response: Any, message: Optional[str] = None) -> None:
    """Raise SalesforceHTTPError carrying the body if ``response`` is not 2xx."""
    if is_success(response):
        return
    body = response.text or ""
    _logger.error("HTTP %s error: %s", response.status_code, body)
    raise SalesforceHTTPError(response.status_code, body, message=message, response=response)


class MessageBuilder:
    """Builds authenticated request descriptors and parses responses."""

    def __init__(self, cfg: Optional[SFConfig] = None) -> None:
        self.cfg = cfg or SFConfig.from_env()
        self.session = SessionState()

    # --------------------------- Session state -------------------------

    @property
    def session_id(self) -> Optional[str]:
        return self.session.session_id

    @property
    def request_endpoint(self) -> Optional[str]:
        return self.session.request_endpoint

    @property
    def authorization(self) -> Optional[str]:
        return self.session.authorization

    def _require_session(self) -> SessionState:
        if not self.session.is_authenticated:
            raise NotLoggedInError()
        return self.session

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": self._require_session().authorization or ""}

    # --------------------------- Login / logout ------------------------

    def build_login_message(self) -> requests.Request:
        """POST the SOAP login envelope for the configured user."""
        _logger.debug("Building login message for endpoint %s", self.cfg.login_endpoint)
        body = build_login_envelope(self.cfg.username or "", self.cfg.password or "")
        return requests.Request(
            "POST",
            self.cfg.login_endpoint,
            headers={
                "Content-Type": CONTENT_TYPE_XML,
                SOAP_ACTION_KEY: SOAP_ACTION_VALUE,
            },
            data=body.encode("utf-8"),
        )

    def process_login_response(self, response: Any) -> SessionState:
        """Store the session id and instance endpoint from a SOAP login response."""
        raise_for_status(response)
        body = response.text or ""
        session_id = extract_element(body, SESSION_ID_START, SESSION_ID_END)
        endpoint = extract_element(body, ENDPOINT_START, ENDPOINT_END)
        self.session = SessionState(session_id=session_id, request_endpoint=endpoint)
        _logger.debug(
            "Received endpoint %s and session id %s...",
            endpoint,
            session_id[:6],
        )
        return self.session

    def build_logout_message(self) -> requests.Request:
        """GET the token revoke endpoint for the current session.

        Local session state is left in place; it stays stale until the next login.
        """
        session = self._require_session()
        _logger.debug("Building logout message")
        return requests.Request("GET", self.cfg.logout_endpoint + (session.session_id or ""))

    # --------------------------- Query ---------------------------------

    def build_query_message(self, query: str, is_continuation: bool = False) -> requests.Request:
        """GET a query page.

        With ``is_continuation`` the ``query`` is the nextRecordsUrl of the
        previous page and is appended to the endpoint verbatim.
        """
        session = self._require_session()
        if is_continuation:
            url = f"{session.request_endpoint}{query}"
        else:
            url = f"{session.request_endpoint}{QUERY_PATH.format(version=self.cfg.api_version)}{query}"
        return requests.Request("GET", url, headers=self._auth_headers())

    # --------------------------- Data changes --------------------------

    def build_data_change_message(
        self,
        records: Sequence[Record],
        method: str,
        all_or_none: bool,
    ) -> requests.Request:
        verb = (method or "").upper()
        if verb in ("POST", "PATCH"):
            return self._build_post_patch_message(records, verb, all_or_none)
        if verb == "DELETE":
            return self._build_delete_message(records, all_or_none)
        raise UnsupportedOperationError(f"HTTP method {method} is not supported")

    def _update_url(self) -> str:
        session = self._require_session()
        return f"{session.request_endpoint}{UPDATE_PATH.format(version=self.cfg.api_version)}"

    def _build_post_patch_message(
        self, records: Sequence[Record], verb: str, all_or_none: bool
    ) -> requests.Request:
        headers = self._auth_headers()
        headers["Content-Type"] = CONTENT_TYPE_JSON
        body = dumps_update_payload(records, all_or_none)
        return requests.Request(verb, self._update_url(), headers=headers, data=body.encode("utf-8"))

    def _build_delete_message(self, records: Sequence[Record], all_or_none: bool) -> requests.Request:
        ids = []
        for r in records:
            rid = record_id(r)
            if not rid:
                raise MissingRecordIdError("Cannot delete a record without an Id")
            ids.append(rid)
        flag = "true" if all_or_none else "false"
        url = f"{self._update_url()}?ids={','.join(ids)}&allOrNone={flag}"
        return requests.Request("DELETE", url, headers=self._auth_headers())

    # --------------------------- Responses -----------------------------

    def process_response(
        self,
        response: Any,
        parser: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Decode a JSON response, optionally through ``parser``."""
        raise_for_status(response)
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response body is not valid JSON: {e}") from e
        if parser is None:
            return payload
        try:
            return parser(payload)
        except MalformedResponseError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Unexpected response shape: {e}") from e
