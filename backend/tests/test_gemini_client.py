import asyncio
import json

import httpx
import pytest

from api_judge.gemini_client import GeminiClient, extract_chunk_text, parse_sse_line


def _sse(*texts: str) -> bytes:
    lines = []
    for text in texts:
        chunk = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
        lines.append(f"data: {json.dumps(chunk)}\n\n")
    return "".join(lines).encode("utf-8")


def _client(handler) -> GeminiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiClient(api_key="test-key", model="gemini-test", http_client=http_client)


def _drain(client: GeminiClient, prompt: str = "review"):
    async def _run():
        try:
            return [fragment async for fragment in client.stream_generate(prompt)]
        finally:
            await client.aclose()

    return asyncio.run(_run())


def test_extract_chunk_text_skips_thoughts_and_bad_shapes():
    data = {"candidates": [{"content": {"parts": [{"text": "plan", "thought": True}, {"text": "{"}, {"text": '"a"'}]}}]}
    assert extract_chunk_text(data) == '{"a"'
    assert extract_chunk_text({"candidates": []}) == ""
    assert extract_chunk_text({"promptFeedback": {}}) == ""


def test_parse_sse_line_ignores_non_data_lines():
    assert parse_sse_line("") is None
    assert parse_sse_line(": keep-alive") is None
    assert parse_sse_line("data: [DONE]") is None
    assert parse_sse_line("data: {not json") is None
    assert parse_sse_line('data: {"a": 1}') == {"a": 1}


def test_stream_yields_fragments_in_order():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["body"] = json.loads(request.content)
        seen["path"] = request.url.path
        return httpx.Response(200, content=_sse('{"overall_', 'score": 80}'), headers={"content-type": "text/event-stream"})

    fragments = _drain(_client(handler), prompt="review this")
    assert fragments == ['{"overall_', 'score": 80}']
    assert seen["params"] == {"alt": "sse", "key": "test-key"}
    assert seen["path"].endswith("gemini-test:streamGenerateContent")
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "review this"
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_http_error_propagates():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": {"message": "overloaded"}})

    with pytest.raises(httpx.HTTPStatusError):
        _drain(_client(handler))


def test_missing_api_key_is_rejected(monkeypatch):
    from api_judge.settings import settings

    monkeypatch.setattr(settings, "gemini_api_key", None)
    with pytest.raises(ValueError):
        GeminiClient()
