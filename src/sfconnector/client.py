from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from tqdm import tqdm

from .config import SFConfig
from .exceptions import (
    LoginInProgressError,
    MalformedResponseError,
    MissingCredentialsError,
    OperationCancelled,
    QueryResultOverflowError,
    UnsupportedOperationError,
)
from .message_builder import MessageBuilder, raise_for_status
from .models import (
    ModificationResult,
    ModificationType,
    QueryPage,
    Record,
    RecordType,
)
from .transport import Transport, check_cancelled, default_transport

_logger = logging.getLogger(__name__)

_METHODS: Dict[ModificationType, str] = {
    ModificationType.INSERT: "POST",
    ModificationType.UPDATE: "PATCH",
    ModificationType.DELETE: "DELETE",
}


# ----------------------------------------------------------------------
# Main client
# ----------------------------------------------------------------------
class SalesforceClient:
    """Session lifecycle, paginated queries and batched record changes.

    Only log_in() is guarded against concurrent use. Other calls read the
    shared session state without locking.
    """

    def __init__(
        self,
        cfg: Optional[SFConfig] = None,
        *,
        transport: Optional[Transport] = None,
        message_builder: Optional[MessageBuilder] = None,
    ) -> None:
        self.cfg = cfg or (message_builder.cfg if message_builder else SFConfig.from_env())
        self.messages = message_builder or MessageBuilder(self.cfg)
        self.transport = transport or default_transport()
        self._login_lock = threading.Lock()

    @property
    def is_logged_in(self) -> bool:
        return self.messages.session.is_authenticated

    # --------------------------- Session -------------------------------

    def log_in(self, cancel: Optional[threading.Event] = None) -> None:
        """Log in and store the session; a concurrent call fails fast.

        Cancellation is swallowed: the call returns without changing state.
        """
        if not self._login_lock.acquire(blocking=False):
            raise LoginInProgressError()
        try:
            missing = [
                k
                for k, v in {"SF_USERNAME": self.cfg.username, "SF_PASSWORD": self.cfg.password}.items()
                if not v
            ]
            if missing:
                raise MissingCredentialsError(missing)

            _logger.debug("Logging in...")
            request = self.messages.build_login_message()
            response = self.transport.send(request, cancel)
            check_cancelled(cancel)
            self.messages.process_login_response(response)
            _logger.info("Logged in to %s", self.messages.request_endpoint)
        except OperationCancelled:
            _logger.debug("Login cancelled")
        finally:
            self._login_lock.release()

    def log_out(self, cancel: Optional[threading.Event] = None) -> None:
        """Revoke the current session token. Cancellation is swallowed."""
        try:
            _logger.debug("Logging out...")
            request = self.messages.build_logout_message()
            response = self.transport.send(request, cancel)
            raise_for_status(
                response,
                f"Log out failed - received status code {response.status_code} - {response.text}",
            )
            _logger.info("Logged out")
        except OperationCancelled:
            _logger.debug("Logout cancelled")

    # --------------------------- Query ---------------------------------

    def query_data(
        self,
        soql: str,
        record_type: RecordType = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Any]:
        """Run a SOQL query and return the records of every page, in order."""
        check_cancelled(cancel)
        _logger.debug("Running SOQL query: %s", soql)

        page: Optional[QueryPage] = None
        result: Optional[List[Any]] = None
        while True:
            if page is None:
                request = self.messages.build_query_message(soql, False)
            else:
                request = self.messages.build_query_message(page.next_records_url or "", True)
            response = self.transport.send(request, cancel)
            page = self.messages.process_response(
                response, lambda payload: QueryPage.from_wire(payload, record_type)
            )

            if not page.done or result is not None:
                if result is None:
                    result = [None] * page.total_size
                _copy_into(result, page.records)

            if page.done:
                break
            if not page.next_records_url:
                raise MalformedResponseError("Query page is not done but has no nextRecordsUrl")
            check_cancelled(cancel)

        if result is None:
            return page.records

        filled = _first_empty(result)
        if filled is not None:
            _logger.warning(
                "Query reported totalSize=%d but returned %d records; trimming",
                len(result),
                filled,
            )
            del result[filled:]
        return result

    # --------------------------- Data changes --------------------------

    def modify_data(
        self,
        records: Optional[Iterable[Record]],
        modification_type: Union[ModificationType, str],
        all_or_none: Optional[bool] = None,
        cancel: Optional[threading.Event] = None,
        *,
        show_progress: bool = False,
    ) -> List[ModificationResult]:
        """Insert, update or delete records in chunks of at most 200.

        Chunks are sent one after another; a failing chunk aborts the rest and
        results of earlier chunks are not returned.
        """
        check_cancelled(cancel)
        items: Sequence[Record] = list(records) if records is not None else []
        if not items:
            return []

        method = _METHODS[_coerce_modification_type(modification_type)]
        if all_or_none is None:
            all_or_none = self.cfg.all_or_none
        size = self.cfg.chunk_size

        results: List[ModificationResult] = []
        starts = range(0, len(items), size)
        for start in tqdm(starts, desc=f"{method} records", disable=not show_progress):
            check_cancelled(cancel)
            chunk = items[start : start + size]
            _logger.debug("Sending %s for %d records", method, len(chunk))
            request = self.messages.build_data_change_message(chunk, method, all_or_none)
            response = self.transport.send(request, cancel)
            results.extend(self.messages.process_response(response, ModificationResult.list_from_wire))

        _logger.info(format_modification_results(results))
        return results


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _coerce_modification_type(value: Union[ModificationType, str]) -> ModificationType:
    if isinstance(value, ModificationType):
        return value
    try:
        return ModificationType(str(value).lower())
    except ValueError:
        raise UnsupportedOperationError(f"Unknown data modification type: {value!r}") from None


def _first_empty(buffer: List[Any]) -> Optional[int]:
    for i, item in enumerate(buffer):
        if item is None:
            return i
    return None


def _copy_into(buffer: List[Any], records: List[Any]) -> None:
    """Write ``records`` into ``buffer`` starting at its first empty slot."""
    if not records:
        return
    start = _first_empty(buffer)
    if start is None or start + len(records) > len(buffer):
        raise QueryResultOverflowError(
            "No room left in the query result buffer; "
            f"totalSize={len(buffer)} is smaller than the records returned."
        )
    buffer[start : start + len(records)] = records


def format_modification_results(results: List[ModificationResult]) -> str:
    """Human-readable summary of per-record results, one block per record."""
    lines = ["Operation results:"]
    for i, r in enumerate(results):
        lines.append(f"{i} - Record Id - {r.id or 'null'} - Success - {r.success}")
        lines.append(f"Errors: {len(r.errors)}")
        for err in r.errors:
            lines.append(f"{err.status_code} - {err.message}")
            if err.fields:
                lines.append("Fields: " + " - ".join(err.fields))
    return "\n".join(lines)
