import json
from typing import Any, Dict, List

import httpx
import pytest
from pydantic import BaseModel

from config import LlmRoute
from llm_gateway import LlmGatewayError, LlmTimeoutError, call


class Reply(BaseModel):
    answer: str
    score: int


class FakeResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    @property
    def text(self) -> str:
        return json.dumps(self._payload)


class FakeClient:
    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _route(**overrides) -> LlmRoute:
    data = dict(name="test", base_url="http://llm", endpoint="/v1/chat", model="m", timeout_s=2.0, max_retries=1)
    data.update(overrides)
    return LlmRoute(**data)


def _content(text: str) -> Dict[str, Any]:
    return {"choices": [{"message": {"content": text}}]}


def test_call_parses_fenced_json_and_sends_schema():
    client = FakeClient([FakeResponse(200, _content('```json\n{"answer": "ok", "score": 3}\n```'))])
    result = call("Rate this", Reply, cfg=_route(), client=client, system="be strict", options={"temperature": 0.1})
    assert result == Reply(answer="ok", score=3)
    sent = client.requests[0]
    assert sent["url"] == "http://llm/v1/chat"
    assert sent["json"]["temperature"] == 0.1
    roles = [m["role"] for m in sent["json"]["messages"]]
    assert roles == ["system", "system", "user"]
    assert "schema" in sent["json"]["messages"][0]["content"]


def test_call_retries_after_validation_failure():
    client = FakeClient(
        [
            FakeResponse(200, _content('{"answer": "ok"}')),
            FakeResponse(200, _content('{"answer": "ok", "score": 4}')),
        ]
    )
    result = call("Rate this", Reply, cfg=_route(), client=client)
    assert result.score == 4
    retry_messages = client.requests[1]["json"]["messages"]
    assert retry_messages[-1]["content"].startswith("The previous reply failed validation.")


def test_call_gives_up_after_retries():
    client = FakeClient([FakeResponse(200, _content("nope")), FakeResponse(200, _content("still nope"))])
    with pytest.raises(LlmGatewayError):
        call("Rate this", Reply, cfg=_route(), client=client)


def test_http_error_status_is_not_retried():
    client = FakeClient([FakeResponse(503, {"error": "busy"})])
    with pytest.raises(LlmGatewayError):
        call("Rate this", Reply, cfg=_route(), client=client)
    assert len(client.requests) == 1


def test_timeout_maps_to_timeout_error():
    client = FakeClient([httpx.ReadTimeout("slow")])
    with pytest.raises(LlmTimeoutError):
        call("Rate this", Reply, cfg=_route(), client=client)


def test_api_key_header_from_env(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    client = FakeClient([FakeResponse(200, _content('{"answer": "ok", "score": 1}'))])
    call("Rate this", Reply, cfg=_route(api_key_env="TEST_LLM_KEY", sequential=True), client=client)
    assert client.requests[0]["headers"]["Authorization"] == "Bearer secret"
