import asyncio
import json

import pytest
from fastapi import Request, Response

from backend.errors import ConfigurationError
from server.api.middleware import errors as errors_mod
from server.api.middleware import request_id as request_id_mod
from server.api.settings import Settings

STREAM_PATH = "/stream/movie/tt0000001.json"


def _make_request(headers, path: str = STREAM_PATH) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "method": "GET",
        "path": path,
        "raw_path": path.encode("ascii"),
        "query_string": b"",
        "headers": headers,
        "client": ("127.0.0.1", 1234),
        "server": ("testserver", 80),
        "scheme": "http",
        "http_version": "1.1",
    }

    async def receive():
        return {"type": "http.request", "body": b""}

    return Request(scope, receive)


def _settings() -> Settings:
    return Settings(
        log_level="INFO",
        cors_origins_raw="*",
        cors_allow_credentials=False,
        gzip_min_size=0,
    )


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, str, object]] = []

    def _record(self, level, msg, *args, extra=None):
        self.records.append((level, msg % args if args else msg, extra))

    def debug(self, msg, *args, extra=None):
        self._record("debug", msg, *args, extra=extra)

    def info(self, msg, *args, extra=None):
        self._record("info", msg, *args, extra=extra)

    def error(self, msg, *args, extra=None):
        self._record("error", msg, *args, extra=extra)

    def exception(self, msg, *args, extra=None):
        self._record("exception", msg, *args, extra=extra)


@pytest.fixture()
def recorded(monkeypatch):
    log = RecordingLogger()
    counters: list[tuple[str, int]] = []
    for mod in (request_id_mod, errors_mod):
        monkeypatch.setattr(mod, "configure_logging", lambda settings: log)
        monkeypatch.setattr(mod.metrics, "inc", lambda name, value=1: counters.append((name, value)))
    return log, counters


def _run_middleware(request: Request, status_code: int = 200) -> Response:
    middleware = request_id_mod.build_request_id_middleware(_settings())

    async def call_next(req):
        return Response(status_code=status_code)

    return asyncio.run(middleware(request, call_next))


def test_request_id_is_propagated_and_logged(recorded):
    log, counters = recorded

    response = _run_middleware(_make_request([(b"x-request-id", b"req-123")]), status_code=201)

    assert response.headers["X-Request-ID"] == "req-123"
    assert ("http_requests_total", 1) in counters
    level, msg, extra = log.records[-1]
    assert (level, msg) == ("info", "request")
    assert extra["route"] == "stream"
    assert extra["status"] == 201
    assert extra["path"] == STREAM_PATH


def test_unsafe_request_id_is_replaced(recorded):
    response = _run_middleware(_make_request([(b"x-request-id", b"bad id\nwith newline")]))

    rid = response.headers["X-Request-ID"]
    assert rid != "bad id\nwith newline"
    assert len(rid) == 32


def test_probe_requests_log_at_debug(recorded):
    log, _ = recorded

    _run_middleware(_make_request([], path="/health"))

    level, _msg, extra = log.records[-1]
    assert level == "debug"
    assert extra["route"] == "probe"


def test_request_id_set_on_state_before_handler(recorded):
    middleware = request_id_mod.build_request_id_middleware(_settings())
    seen: list[str] = []

    async def call_next(req):
        seen.append(req.state.request_id)
        return Response(status_code=200)

    asyncio.run(middleware(_make_request([(b"x-request-id", b"abc.DEF_1")]), call_next))

    assert seen == ["abc.DEF_1"]


def test_exception_handler_hides_message_and_keeps_request_id(recorded):
    log, counters = recorded
    handler = errors_mod.build_exception_handler(_settings())
    request = _make_request([])
    request.state.request_id = "req-xyz"

    response = asyncio.run(handler(request, RuntimeError("secret token in url")))

    payload = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 500
    assert payload["detail"] == "Internal Server Error"
    assert payload["request_id"] == "req-xyz"
    assert payload["error_id"]
    assert "secret" not in response.body.decode("utf-8")
    assert ("http_errors_5xx_total", 1) in counters
    assert log.records[-1][0] == "exception"


def test_configuration_error_handler_returns_503(recorded):
    log, counters = recorded
    handler = errors_mod.build_configuration_error_handler(_settings())

    response = asyncio.run(handler(_make_request([]), ConfigurationError("SOURCE_ORDER is empty")))

    payload = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 503
    assert payload["detail"] == "Service misconfigured"
    assert "request_id" not in payload
    assert "SOURCE_ORDER" in log.records[-1][1]
    assert ("http_errors_5xx_total", 1) in counters
