from __future__ import annotations

import pytest
import requests

import backend.http_client as hc
from backend.errors import SchemaError, TransportError
from backend.resilience import STATE_OPEN, CircuitBreaker


class DummyResponse:
    def __init__(self, status_code: int = 200, text: str = "", json_data: object = None, bad_json: bool = False):
        self.status_code = status_code
        self.text = text
        self._json = json_data
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._json


class DummySession:
    def __init__(self, *responses: object) -> None:
        self._responses = list(responses)
        self.calls: list[dict] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture(autouse=True)
def _reset_metrics():
    hc.reset_http_metrics()
    yield
    hc.reset_http_metrics()


def _helper(session, *, threshold: int = 5, **kwargs) -> hc.HttpHelper:
    breaker = CircuitBreaker(failure_threshold=threshold, open_seconds=60)
    return hc.HttpHelper("src", session=session, breaker=breaker, timeout=2.5, **kwargs)


def test_get_text_merges_headers_and_uses_timeout():
    session = DummySession(DummyResponse(200, text="<html/>"))
    helper = _helper(session, headers={"X-A": "1"})

    assert helper.get_text("https://x.test/a", headers={"X-B": "2"}) == "<html/>"

    call = session.calls[0]
    assert call["headers"] == {"X-A": "1", "X-B": "2"}
    assert call["timeout"] == 2.5
    assert hc.get_http_metrics_snapshot()["src"]["ok"] == 1


def test_server_error_is_transport_error_and_counts_for_breaker():
    session = DummySession(DummyResponse(503), DummyResponse(500))
    helper = _helper(session, threshold=2)

    for _ in range(2):
        with pytest.raises(TransportError) as exc_info:
            helper.get_text("https://x.test/a")
        assert exc_info.value.status_code in (500, 503)

    state = helper._breaker.state_of("src")
    assert state is not None
    assert state.state == STATE_OPEN


def test_open_breaker_rejects_without_network():
    session = DummySession(DummyResponse(500))
    helper = _helper(session, threshold=1)

    with pytest.raises(TransportError):
        helper.get_text("https://x.test/a")
    with pytest.raises(TransportError):
        helper.get_text("https://x.test/b")

    assert len(session.calls) == 1
    assert hc.get_http_metrics_snapshot()["src"]["circuit_rejected"] == 1


def test_client_error_raises_but_does_not_trip_breaker():
    session = DummySession(DummyResponse(404), DummyResponse(404))
    helper = _helper(session, threshold=1)

    for _ in range(2):
        with pytest.raises(TransportError) as exc_info:
            helper.get_text("https://x.test/missing")
        assert exc_info.value.status_code == 404

    assert len(session.calls) == 2
    assert helper._breaker.state_of("src").state != STATE_OPEN


def test_request_exception_becomes_transport_error():
    session = DummySession(requests.ConnectionError("refused"))
    helper = _helper(session)

    with pytest.raises(TransportError):
        helper.get_json("https://x.test/api")

    assert hc.get_http_metrics_snapshot()["src"]["transport_errors"] == 1


def test_get_json_invalid_body_is_schema_error():
    session = DummySession(DummyResponse(200, bad_json=True))
    helper = _helper(session)

    with pytest.raises(SchemaError):
        helper.get_json("https://x.test/api")

    assert hc.get_http_metrics_snapshot()["src"]["schema_errors"] == 1


def test_get_json_returns_decoded_payload():
    session = DummySession(DummyResponse(200, json_data={"ok": True}))

    assert _helper(session).get_json("https://x.test/api", params={"q": "1"}) == {"ok": True}
    assert session.calls[0]["params"] == {"q": "1"}


def test_log_http_metrics_summary_forced_without_requests(monkeypatch):
    lines: list[str] = []
    monkeypatch.setattr(hc.logger, "info", lambda msg, **_kw: lines.append(str(msg)))

    hc.log_http_metrics_summary(force=True)

    assert lines[0] == "[HTTP][METRICS] summary"
    assert "(no requests)" in lines[1]
