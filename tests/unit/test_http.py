from __future__ import annotations

import pytest

from waste_geodata.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.text = text

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_http_post_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.post_json("https://example.com/rest/v1/t", payload=[{"a": 1}])

    assert payload == {"ok": True}


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.post_json("https://example.com/rest/v1/t", payload=[{"a": 1}])


def test_http_retries_until_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    responses = iter([FakeResponse(502), FakeResponse(200, {"ok": True})])
    monkeypatch.setattr("time.sleep", lambda _seconds: None)
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: next(responses))

    assert client.post_json("https://example.com/rest/v1/t", payload=[{"a": 1}]) == {"ok": True}


def test_http_client_error_is_not_retried(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3))
    calls = []

    def fake_request(**kwargs):
        calls.append(kwargs)
        return FakeResponse(409, text='{"message": "conflict"}')

    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(HttpRequestError) as excinfo:
        client.post_json("https://example.com/rest/v1/t", payload=[{"a": 1}])

    assert len(calls) == 1
    assert excinfo.value.status_code == 409
    assert not isinstance(excinfo.value, RetryableHttpError)


def test_http_post_json_sends_body_and_content_type(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    captured = {}

    def fake_request(**kwargs):
        captured.update(kwargs)
        return FakeResponse(204)

    monkeypatch.setattr(client.session, "request", fake_request)

    assert client.post_json("https://example.com", payload={"k": "v"}) is None
    assert captured["json"] == {"k": "v"}
    assert captured["headers"]["Content-Type"] == "application/json"


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.post_json("https://example.com/rest/v1/t", payload=[{"a": 1}])
