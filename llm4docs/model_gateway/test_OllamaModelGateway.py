import json

import httpx
import pytest

from .OllamaModelGateway import OllamaModelGateway
from ..config import ModelConfig
from ..errors import ServiceError, TransportError


def _gateway(handler, **config) -> OllamaModelGateway:
    return OllamaModelGateway(
        ModelConfig(url="http://ollama.local/api/generate", **config),
        transport=httpx.MockTransport(handler),
    )


def test_sends_non_streaming_request_and_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content.decode())
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"response": "raw text", "done": True})

    gateway = _gateway(handler, model="test-model")
    assert gateway.generate("the prompt") == "raw text"
    assert seen["path"] == "/api/generate"
    assert seen["payload"] == {
        "model": "test-model",
        "prompt": "the prompt",
        "stream": False,
    }
    assert seen["auth"] is None


def test_api_key_is_sent_as_bearer_token():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer sk-test"
        return httpx.Response(200, json={"response": "ok"})

    assert _gateway(handler, api_key="sk-test").generate("p") == "ok"


def test_missing_response_field_is_empty_text():
    gateway = _gateway(lambda request: httpx.Response(200, json={"done": True}))
    assert gateway.generate("p") == ""


def test_error_status_raises_service_error():
    gateway = _gateway(lambda request: httpx.Response(404, text="model not found"))
    with pytest.raises(ServiceError) as excinfo:
        gateway.generate("p")
    assert excinfo.value.status == 404
    assert excinfo.value.body == "model not found"
    assert str(excinfo.value) == "AI request failed (404): model not found"


def test_connection_failure_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        _gateway(handler).generate("p")


def test_non_json_body_raises_transport_error():
    gateway = _gateway(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(TransportError):
        gateway.generate("p")


def test_single_attempt_per_call():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="boom")

    with pytest.raises(ServiceError):
        _gateway(handler).generate("p")
    assert len(calls) == 1
