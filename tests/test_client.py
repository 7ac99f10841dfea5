"""The requests-based API client."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest
import requests

from client import PortalAPIError, PortalClient, PortalSession


class _FakeResponse:
    def __init__(self, status_code: int, payload=None, reason: str = "OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture()
def calls(monkeypatch):
    recorded = []
    queue = []

    def _request(method, url, **kwargs):
        recorded.append({"method": method, "url": url, **kwargs})
        return queue.pop(0)

    monkeypatch.setattr(requests, "request", _request)
    return {"recorded": recorded, "queue": queue}


def test_login_returns_new_client_without_mutating_original(calls):
    calls["queue"].append(_FakeResponse(200, {"token": "abc", "user": {"id": 1}}))
    anonymous = PortalClient.connect("http://portal.local/")

    authed = anonymous.login("a@example.com", "pw")

    assert authed is not anonymous
    assert authed.session.token == "abc"
    assert anonymous.session.token is None
    assert calls["recorded"][0]["url"] == "http://portal.local/api/users/login"
    assert "Authorization" not in calls["recorded"][0]["headers"]


def test_requests_carry_their_own_credentials(calls):
    calls["queue"].extend(
        [
            _FakeResponse(200, {"application": {"id": 7}}),
            _FakeResponse(200, {"application": {"id": 7}}),
        ]
    )
    first = PortalClient(PortalSession("http://portal.local", token="one"))
    second = PortalClient(PortalSession("http://portal.local", token="two"))

    first.get_application(7)
    second.get_application(7)

    assert calls["recorded"][0]["headers"]["Authorization"] == "Bearer one"
    assert calls["recorded"][1]["headers"]["Authorization"] == "Bearer two"


def test_error_message_is_passed_through_verbatim(calls):
    calls["queue"].append(
        _FakeResponse(400, {"error": "Bad Request", "message": "Only draft applications can be submitted."}, "BAD REQUEST")
    )
    client = PortalClient(PortalSession("http://portal.local", token="t"))

    with pytest.raises(PortalAPIError) as excinfo:
        client.submit_application(3)

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Only draft applications can be submitted."
    assert len(calls["recorded"]) == 1


def test_non_json_error_uses_reason(calls):
    calls["queue"].append(_FakeResponse(502, None, "Bad Gateway"))
    client = PortalClient.connect("http://portal.local")
    with pytest.raises(PortalAPIError, match="Bad Gateway"):
        client.list_programs()


def test_bulk_update_payload(calls):
    calls["queue"].append(_FakeResponse(200, {"updated": [1], "failed": []}))
    client = PortalClient(PortalSession("http://portal.local", token="t"))
    result = client.bulk_update([1, 2], {"status": "frozen"})
    sent = calls["recorded"][0]
    assert sent["method"] == "PUT"
    assert sent["url"].endswith("/api/applications/bulk")
    assert sent["json"] == {"applicationIds": [1, 2], "updates": {"status": "frozen"}}
    assert result["updated"] == [1]


def test_session_is_immutable():
    session = PortalSession("http://portal.local")
    with pytest.raises(FrozenInstanceError):
        session.token = "x"  # type: ignore[misc]
