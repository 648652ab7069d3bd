import asyncio
import json

import httpx
import pytest

from billforge.config import Settings
from billforge.domain.errors import SuggestionUnavailableError
from billforge.services.suggestions import (
    ChatCompletionSuggester,
    LineItemSuggestion,
    NullSuggester,
    build_suggester,
    parse_line_item_suggestions,
)


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_null_suggester_is_unavailable() -> None:
    with pytest.raises(SuggestionUnavailableError):
        asyncio.run(NullSuggester().suggest_terms("Sandpix"))


def test_parse_accepts_fenced_json_and_both_price_keys() -> None:
    text = '```json\n[{"description": "Logo design", "unitPrice": 150}, {"description": "Retainer", "unit_price": "80.5"}, {"unitPrice": 3}]\n```'
    assert parse_line_item_suggestions(text) == [
        LineItemSuggestion("Logo design", 150.0),
        LineItemSuggestion("Retainer", 80.5),
    ]


def test_parse_accepts_items_object() -> None:
    text = json.dumps({"items": [{"description": "Audit", "unitPrice": -10}]})
    assert parse_line_item_suggestions(text) == [LineItemSuggestion("Audit", 0.0)]


def test_parse_rejects_non_json() -> None:
    with pytest.raises(SuggestionUnavailableError):
        parse_line_item_suggestions("Here are some ideas!")


def test_line_items_from_chat_completion() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        items = {"items": [{"description": f"Service {n}", "unitPrice": n * 10} for n in range(1, 6)]}
        return httpx.Response(200, json=_completion(json.dumps(items)))

    suggester = ChatCompletionSuggester(
        "https://llm.example/v1/", api_key="secret", transport=httpx.MockTransport(handler)
    )
    items = asyncio.run(suggester.suggest_line_items("Sandpix Studio", count=3))

    assert [item.description for item in items] == ["Service 1", "Service 2", "Service 3"]
    request = seen[0]
    assert str(request.url) == "https://llm.example/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["response_format"] == {"type": "json_object"}
    assert "Sandpix Studio" in body["messages"][0]["content"]


def test_terms_are_plain_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "response_format" not in json.loads(request.content)
        assert "Authorization" not in request.headers
        return httpx.Response(200, json=_completion("  1. Pay within 30 days.\n"))

    suggester = ChatCompletionSuggester("https://llm.example/v1", transport=httpx.MockTransport(handler))
    assert asyncio.run(suggester.suggest_terms("Sandpix")) == "1. Pay within 30 days."


def test_http_errors_become_unavailable() -> None:
    suggester = ChatCompletionSuggester(
        "https://llm.example/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )
    with pytest.raises(SuggestionUnavailableError):
        asyncio.run(suggester.suggest_terms("Sandpix"))


def test_timeouts_become_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    suggester = ChatCompletionSuggester("https://llm.example/v1", transport=httpx.MockTransport(handler))
    with pytest.raises(SuggestionUnavailableError, match="timed out"):
        asyncio.run(suggester.suggest_terms("Sandpix"))


def test_empty_completion_is_unavailable() -> None:
    suggester = ChatCompletionSuggester(
        "https://llm.example/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})),
    )
    with pytest.raises(SuggestionUnavailableError):
        asyncio.run(suggester.suggest_terms("Sandpix"))


def test_build_suggester_follows_settings() -> None:
    assert isinstance(build_suggester(Settings(suggestion_api_base=None)), NullSuggester)
    configured = build_suggester(Settings(suggestion_api_base="https://llm.example/v1", suggestion_model="m"))
    assert isinstance(configured, ChatCompletionSuggester)
    assert configured.model == "m"


def test_non_object_payload_is_unavailable() -> None:
    suggester = ChatCompletionSuggester(
        "https://llm.example/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["not", "an", "object"])),
    )
    with pytest.raises(SuggestionUnavailableError):
        asyncio.run(suggester.suggest_terms("Sandpix"))
