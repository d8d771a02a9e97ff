import json

import pytest
import requests
from requests import Response

from atomicals_electrumx.transport import (
    DecodeFailure,
    HTTPTransport,
    NetworkFailure,
    UnrecoverableTransport,
)


def _response(body: bytes, status: int = 200) -> Response:
    resp = Response()
    resp.status_code = status
    resp._content = body
    resp._content_consumed = True
    resp.encoding = "utf-8"
    return resp


class BrokenBodyResponse(Response):
    @property
    def text(self) -> str:
        raise requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead")


class StubSession:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.requests = []
        self.closed = False

    def post(self, url, data=None, headers=None, timeout=None, stream=False):
        self.requests.append(
            {"url": url, "body": json.loads(data), "headers": headers, "timeout": timeout}
        )
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def close(self) -> None:
        self.closed = True


def test_post_sends_params_envelope_and_decodes_json() -> None:
    session = StubSession(_response(b'{"response": "ok"}'))
    transport = HTTPTransport(session, timeout=12.5)

    result = transport.post("http://a/blockchain.transaction.broadcast", ["00ff"])

    assert result == {"response": "ok"}
    sent = session.requests[0]
    assert sent["url"] == "http://a/blockchain.transaction.broadcast"
    assert sent["body"] == {"params": ["00ff"]}
    assert sent["headers"]["content-type"] == "application/json"
    assert sent["timeout"] == 12.5


def test_connection_errors_become_network_failure() -> None:
    session = StubSession(requests.ConnectionError("connection refused"))
    transport = HTTPTransport(session)

    with pytest.raises(NetworkFailure) as excinfo:
        transport.post("http://down/method", [])
    assert excinfo.value.url == "http://down/method"
    assert "connection refused" in str(excinfo.value)


def test_timeouts_become_network_failure() -> None:
    transport = HTTPTransport(StubSession(requests.ReadTimeout("read timed out")))

    with pytest.raises(NetworkFailure):
        transport.post("http://slow/method", [])


def test_html_error_page_is_decode_failure_with_status() -> None:
    transport = HTTPTransport(StubSession(_response(b"<html>502 Bad Gateway</html>", status=502)))

    with pytest.raises(DecodeFailure) as excinfo:
        transport.post("http://a/method", [])
    assert excinfo.value.status_code == 502
    assert "HTTP 502" in str(excinfo.value)


def test_non_2xx_with_valid_json_is_returned() -> None:
    transport = HTTPTransport(StubSession(_response(b'{"response": []}', status=500)))

    assert transport.post("http://a/method", []) == {"response": []}


def test_broken_body_stream_is_unrecoverable() -> None:
    resp = BrokenBodyResponse()
    resp.status_code = 200
    resp._content_consumed = True
    transport = HTTPTransport(StubSession(resp))

    with pytest.raises(UnrecoverableTransport):
        transport.post("http://a/method", [])


def test_close_releases_session() -> None:
    session = StubSession(_response(b"{}"))
    HTTPTransport(session).close()
    assert session.closed
