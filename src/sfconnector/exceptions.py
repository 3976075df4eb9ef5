from __future__ import annotations

from typing import Any, Optional

import requests


class SFConnectorError(Exception):
    """Base class for all errors raised by sfconnector."""


class MissingCredentialsError(SFConnectorError, RuntimeError):
    """Raised when the required Salesforce credentials are not configured."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__("Missing required environment variables: " + ", ".join(missing))


class SalesforceHTTPError(requests.HTTPError, SFConnectorError):
    """Non-success status from Salesforce; ``body`` holds the raw response text."""

    def __init__(
        self,
        status_code: int,
        body: str,
        message: Optional[str] = None,
        response: Any = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message or body, response=response)


class UnsupportedOperationError(SFConnectorError, ValueError):
    """Raised for an HTTP verb or modification type the client cannot send."""


class LoginInProgressError(SFConnectorError, RuntimeError):
    """Raised when log_in() is called while another login is still running."""

    def __init__(self, message: str = "A login operation is already in progress."):
        super().__init__(message)


class MissingRecordIdError(SFConnectorError, ValueError):
    """A delete was requested for a record that has no Id."""


class QueryResultOverflowError(SFConnectorError, IndexError):
    """Query pages returned more records than the reported totalSize."""


class MalformedResponseError(SFConnectorError, ValueError):
    """A successful response whose body could not be interpreted."""


class NotLoggedInError(SFConnectorError, RuntimeError):
    """Raised when an authenticated message is built before a successful login."""

    def __init__(self, message: str = "Not logged in; call log_in() first."):
        super().__init__(message)


class OperationCancelled(SFConnectorError):
    """The caller's cancel event was set before the operation finished."""
