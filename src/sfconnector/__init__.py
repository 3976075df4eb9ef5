from importlib.metadata import PackageNotFoundError, version

from .client import SalesforceClient, format_modification_results
from .config import MAX_BATCH_SIZE, SFConfig
from .exceptions import (
    LoginInProgressError,
    MalformedResponseError,
    MissingCredentialsError,
    MissingRecordIdError,
    NotLoggedInError,
    OperationCancelled,
    QueryResultOverflowError,
    SalesforceHTTPError,
    SFConnectorError,
    UnsupportedOperationError,
)
from .message_builder import MessageBuilder, SessionState
from .models import (
    ModificationError,
    ModificationResult,
    ModificationType,
    QueryPage,
    SObject,
)
from .transport import RequestsTransport, Transport, default_transport

try:
    __version__ = version("sfconnector")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"
finally:
    del version, PackageNotFoundError

__all__ = [
    "MAX_BATCH_SIZE",
    "LoginInProgressError",
    "MalformedResponseError",
    "MessageBuilder",
    "MissingCredentialsError",
    "MissingRecordIdError",
    "ModificationError",
    "ModificationResult",
    "ModificationType",
    "NotLoggedInError",
    "OperationCancelled",
    "QueryPage",
    "QueryResultOverflowError",
    "RequestsTransport",
    "SFConfig",
    "SFConnectorError",
    "SObject",
    "SalesforceClient",
    "SalesforceHTTPError",
    "SessionState",
    "Transport",
    "UnsupportedOperationError",
    "default_transport",
    "format_modification_results",
]
