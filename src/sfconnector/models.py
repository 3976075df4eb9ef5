"""
Typed records and the JSON shapes exchanged with the REST API.

Records are dataclasses deriving from :class:`SObject`. Field names are the
Salesforce API names; a field can be mapped to a different wire name with
``field(metadata={"sf_name": "Wire_Name__c"})``. Plain dicts are accepted
anywhere a record is and are sent as-is.
"""

from __future__ import annotations

import datetime as _dt
import decimal
import json
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Union

# Wire name used when writing the record identifier
_ID_FIELD = "Id"
_ID_WIRE = "id"


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"Expected a JSON object for {what}, got {type(data).__name__}")
    return data


@dataclass
class SObject:
    """Base class for typed Salesforce records.

    Subclasses set ``sobject_type`` (e.g. "Account"); it is written as the
    ``attributes`` block on insert/update and never read back.
    """

    sobject_type: ClassVar[str] = ""

    Id: Optional[str] = field(default=None, kw_only=True)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> SObject:
        return record_from_wire(cls, data)

    def to_wire(self) -> Dict[str, Any]:
        return record_to_wire(self)


Record = Union[SObject, Mapping[str, Any]]
RecordType = Optional[Callable[[Mapping[str, Any]], Any]]


class ModificationType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ModificationError:
    status_code: Optional[str]
    message: Optional[str]
    fields: List[str] = field(default_factory=list)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> ModificationError:
        data = _require_mapping(data, "an error")
        return cls(
            status_code=data.get("statusCode"),
            message=data.get("message"),
            fields=list(data.get("fields") or []),
        )


@dataclass(frozen=True)
class ModificationResult:
    """Outcome for one record of a composite insert/update/delete."""

    id: Optional[str]
    success: bool
    errors: List[ModificationError] = field(default_factory=list)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> ModificationResult:
        data = _require_mapping(data, "a modification result")
        return cls(
            id=data.get("id"),
            success=bool(data.get("success")),
            errors=[ModificationError.from_wire(e) for e in data.get("errors") or []],
        )

    @classmethod
    def list_from_wire(cls, payload: Any) -> List[ModificationResult]:
        if not isinstance(payload, list):
            raise TypeError(f"Expected a JSON array of results, got {type(payload).__name__}")
        return [cls.from_wire(item) for item in payload]


@dataclass
class QueryPage:
    """One page of a SOQL query response."""

    total_size: int
    done: bool
    records: List[Any]
    next_records_url: Optional[str] = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any], record_type: RecordType = None) -> QueryPage:
        data = _require_mapping(data, "a query page")
        return cls(
            total_size=int(data.get("totalSize") or 0),
            done=bool(data.get("done", True)),
            records=[parse_record(r, record_type) for r in data.get("records") or []],
            next_records_url=data.get("nextRecordsUrl"),
        )


# ----------------------------------------------------------------------
# Codec helpers
# ----------------------------------------------------------------------
def _wire_name(f) -> str:
    if f.name == _ID_FIELD:
        return _ID_WIRE
    return f.metadata.get("sf_name", f.name)


def _wire_value(value: Any) -> Any:
    if isinstance(value, SObject):
        return record_to_wire(value)
    if isinstance(value, (list, tuple)):
        return [_wire_value(v) for v in value]
    return value


def record_to_wire(record: Record) -> Dict[str, Any]:
    """Serialize a record for a write request; None values are omitted."""
    if isinstance(record, SObject):
        data: Dict[str, Any] = {}
        sobject_type = type(record).sobject_type
        if sobject_type:
            data["attributes"] = {"type": sobject_type}
        for f in fields(record):
            value = getattr(record, f.name)
            if value is None:
                continue
            data[_wire_name(f)] = _wire_value(value)
        return data
    if isinstance(record, Mapping):
        return dict(record)
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def record_from_wire(cls, data: Mapping[str, Any]):
    """Build ``cls`` from a JSON object, ignoring fields it does not declare."""
    data = _require_mapping(data, cls.__name__)
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if not f.init:
            continue
        if f.name == _ID_FIELD:
            candidates = (_ID_FIELD, _ID_WIRE)
        else:
            candidates = (f.metadata.get("sf_name", f.name),)
        for name in candidates:
            if name in data:
                kwargs[f.name] = data[name]
                break
    return cls(**kwargs)


def parse_record(data: Any, record_type: RecordType = None) -> Any:
    if record_type is None:
        return data
    if isinstance(record_type, type) and issubclass(record_type, SObject):
        return record_type.from_wire(data)
    return record_type(data)


def record_id(record: Record) -> Optional[str]:
    if isinstance(record, SObject):
        return record.Id
    if isinstance(record, Mapping):
        return record.get(_ID_FIELD) or record.get(_ID_WIRE)
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def _json_default(value: Any) -> Any:
    if isinstance(value, (_dt.datetime, _dt.date, _dt.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps_update_payload(records: Sequence[Record], all_or_none: bool) -> str:
    """JSON body for a composite sobjects POST/PATCH."""
    payload = {
        "allOrNone": bool(all_or_none),
        "records": [record_to_wire(r) for r in records],
    }
    return json.dumps(payload, separators=(",", ":"), default=_json_default)
