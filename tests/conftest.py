import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from responses_client import ResponsesClient


def output_text_body(text: str) -> Dict[str, Any]:
    return {
        "status": "completed",
        "output": [{"type": "message", "content": [{"type": "output_text", "text": text}]}],
    }


class RecordingTransport:
    """Answers every POST via ``reply(payload)`` and keeps the payloads it saw."""

    def __init__(self, reply: Callable[[Dict[str, Any]], httpx.Response]) -> None:
        self.reply = reply
        self.requests: List[httpx.Request] = []
        self.payloads: List[Dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = json.loads(request.content)
        self.payloads.append(payload)
        return self.reply(payload)


@pytest.fixture
def make_client():
    clients: List[ResponsesClient] = []

    def _make(reply, model="gpt-4.1-mini"):
        transport = RecordingTransport(reply)
        client = ResponsesClient(
            api_key="sk-test",
            model=model,
            http_client=httpx.Client(transport=httpx.MockTransport(transport)),
        )
        clients.append(client)
        return client, transport

    yield _make
    for client in clients:
        client.close()
