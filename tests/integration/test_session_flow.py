"""End-to-end session flow against a scripted transport (no network)."""

import json
from dataclasses import dataclass
from typing import Optional

from conftest import ENDPOINT, SESSION_ID, DummyResponse, FakeTransport, login_body
from sfconnector import ModificationType, SalesforceClient, SFConfig, SObject


@dataclass
class Account(SObject):
    sobject_type = "Account"

    Name: Optional[str] = None


def _created(request):
    records = json.loads(request.data)["records"]
    return DummyResponse(
        json_data=[{"id": f"001{i:05d}", "success": True, "errors": []} for i, _ in enumerate(records)]
    )


def test_login_query_modify_logout():
    transport = FakeTransport(
        [
            DummyResponse(text=login_body()),
            DummyResponse(
                json_data={
                    "totalSize": 3,
                    "done": False,
                    "records": [{"Id": "001A", "Name": "a"}, {"Id": "001B", "Name": "b"}],
                    "nextRecordsUrl": "/services/data/v48.0/query/01gXX-2000",
                }
            ),
            DummyResponse(json_data={"totalSize": 3, "done": True, "records": [{"Id": "001C", "Name": "c"}]}),
            _created,
            _created,
            DummyResponse(json_data=[{"id": "001A", "success": True, "errors": []}]),
            DummyResponse(status_code=200, text=""),
        ]
    )
    client = SalesforceClient(SFConfig(username="u@example.com", password="pw"), transport=transport)

    client.log_in()
    accounts = client.query_data("SELECT Id, Name FROM Account", Account)
    created = client.modify_data([Account(Name=f"n{i}") for i in range(250)], ModificationType.INSERT, True)
    deleted = client.modify_data([accounts[0]], ModificationType.DELETE)
    client.log_out()

    assert [a.Name for a in accounts] == ["a", "b", "c"]
    assert len(created) == 250
    assert all(r.success for r in created)
    assert deleted[0].id == "001A"

    methods = [r.method for r in transport.requests]
    assert methods == ["POST", "GET", "GET", "POST", "POST", "DELETE", "GET"]
    for request in transport.requests[1:6]:
        assert request.headers["Authorization"] == "Bearer " + SESSION_ID
        assert request.url.startswith(ENDPOINT)
    assert len(json.loads(transport.requests[3].data)["records"]) == 200
    assert len(json.loads(transport.requests[4].data)["records"]) == 50
    assert json.loads(transport.requests[3].data)["allOrNone"] is True

    # Logout does not clear local state
    assert client.is_logged_in
