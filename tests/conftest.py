import json
import logging
import threading

import pytest

from sfconnector.config import SFConfig
from sfconnector.message_builder import MessageBuilder

ENDPOINT = "https://na1.salesforce.com"
SESSION_ID = "00D000000000001!AQ0AQ"


class DummyResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, *, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json_data = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text

    def json(self):
        if self._json_data is not None:
            return self._json_data
        return json.loads(self.text)


class FakeTransport:
    """Records every request and replays queued responses in order."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []
        self.lock = threading.Lock()

    def send(self, request, cancel=None):
        with self.lock:
            self.requests.append(request)
            if not self.responses:
                raise AssertionError(f"Unexpected request: {request.method} {request.url}")
            response = self.responses.pop(0)
        if callable(response):
            return response(request)
        return response


def login_body(session_id=SESSION_ID, endpoint=ENDPOINT):
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soapenv:Body><loginResponse><result>"
        "<metadataServerUrl>" + endpoint + "/services/Soap/m/48.0/00D</metadataServerUrl>"
        "<passwordExpired>false</passwordExpired>"
        "<serverUrl>" + endpoint + "/services/Soap/c/48.0/00D</serverUrl>"
        "<sessionId>" + session_id + "</sessionId>"
        "</result></loginResponse></soapenv:Body></soapenv:Envelope>"
    )


@pytest.fixture(autouse=True)
def clean_sf_env(monkeypatch):
    """Keep a developer's SF_* variables out of the tests."""
    for var in [
        "SF_USERNAME",
        "SF_PASSWORD",
        "SF_API_VERSION",
        "SF_IS_PRODUCTION",
        "SF_LOGIN_URL",
        "SF_LOGOUT_URL",
        "SF_ALL_OR_NONE",
        "SF_BATCH_SIZE",
        "SF_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """configure_logging() leaves a level on the package logger; undo it between tests."""
    yield
    logging.getLogger("sfconnector").setLevel(logging.NOTSET)


@pytest.fixture
def cfg():
    return SFConfig(username="user@example.com", password="secret", api_version="48.0")


@pytest.fixture
def builder(cfg):
    """A MessageBuilder that has already processed a login response."""
    mb = MessageBuilder(cfg)
    mb.process_login_response(DummyResponse(text=login_body()))
    return mb


@pytest.fixture
def transport():
    return FakeTransport()
