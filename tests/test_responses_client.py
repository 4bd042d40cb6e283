import json

import httpx

from conftest import output_text_body
from responses_client import CompletionRequest, ResponsesClient, progress_label


def test_payload_omits_unset_optional_fields():
    payload = CompletionRequest(model="m", input="hi", temperature=0.7).to_payload()
    decoded = json.loads(json.dumps(payload))
    assert decoded == {"model": "m", "input": "hi", "temperature": 0.7}
    assert "instructions" not in decoded
    assert "max_output_tokens" not in decoded


def test_zero_temperature_is_sent():
    payload = CompletionRequest(model="m", input="hi", temperature=0.0, max_output_tokens=500).to_payload()
    assert payload["temperature"] == 0.0
    assert payload["max_output_tokens"] == 500


def test_progress_label():
    assert progress_label(None) == "Запрос к модели (temperature=default)"
    assert progress_label(1.2) == "Запрос к модели (temperature=1.2)"


def test_request_posts_authenticated_json(make_client, capsys):
    client, transport = make_client(lambda payload: httpx.Response(200, json=output_text_body("Привет")))

    answer = client.request("hi", instructions="be brief", temperature=0.0, max_output_tokens=500)

    assert answer == "Привет"
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.openai.com/v1/responses"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"] == "application/json"
    assert transport.payloads[0] == {
        "model": "gpt-4.1-mini",
        "input": "hi",
        "instructions": "be brief",
        "temperature": 0.0,
        "max_output_tokens": 500,
    }
    assert "✔" in capsys.readouterr().out


def test_api_error_body_is_rendered(make_client):
    client, _ = make_client(
        lambda payload: httpx.Response(400, json={"error": {"message": "Unsupported parameter: 'temperature'"}})
    )
    assert client.request("hi", temperature=0.7, show_progress=False) == (
        "Ошибка API: Unsupported parameter: 'temperature'"
    )


def test_transport_failure_becomes_error_text(make_client):
    def fail(payload):
        raise httpx.ConnectError("connection refused")

    client, _ = make_client(fail)
    answer = client.request("hi", show_progress=False)
    assert answer.startswith("Ошибка сети: ConnectError")
    assert "connection refused" in answer


def test_non_json_body_becomes_error_text(make_client):
    client, _ = make_client(lambda payload: httpx.Response(502, text="<html>Bad gateway</html>"))
    answer = client.request("hi", show_progress=False)
    assert answer.startswith("Ошибка: некорректный ответ API (HTTP 502")


def test_base_url_and_close():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"output_text": "ok"})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    with ResponsesClient("k", "m", base_url="http://localhost:8000/v1/", http_client=http) as client:
        assert client.request("hi", show_progress=False) == "ok"
    assert seen == ["http://localhost:8000/v1/responses"]
    assert http.is_closed
