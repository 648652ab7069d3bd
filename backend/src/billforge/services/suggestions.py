"""
Optional text suggestions for draft documents.

Suggestions only pre-fill editable form fields (line items, terms). The
billing engine never depends on them: when the service is disabled or a
call fails, SuggestionUnavailableError is raised and the caller carries
on without suggestions.

The HTTP implementation talks to an OpenAI-compatible chat completions
endpoint and asks for JSON when it needs structured items.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from billforge.config import Settings
from billforge.domain.errors import SuggestionUnavailableError
from billforge.domain.totals import coerce_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItemSuggestion:
    """A suggested line item; the user still edits it before saving."""
    description: str
    unit_price: float


class TextSuggester(ABC):
    """Abstract interface for suggestion providers."""

    @abstractmethod
    async def suggest_line_items(self, business_name: str, count: int = 3) -> list[LineItemSuggestion]:
        """Suggest professional line items for the business."""
        pass

    @abstractmethod
    async def suggest_terms(self, business_name: str) -> str:
        """Suggest a numbered terms and conditions text."""
        pass


class NullSuggester(TextSuggester):
    """Used when no suggestion service is configured."""

    async def suggest_line_items(self, business_name: str, count: int = 3) -> list[LineItemSuggestion]:
        raise SuggestionUnavailableError("Suggestions are not configured")

    async def suggest_terms(self, business_name: str) -> str:
        raise SuggestionUnavailableError("Suggestions are not configured")


def parse_line_item_suggestions(text: str) -> list[LineItemSuggestion]:
    """
    Parse a JSON array of ``{description, unitPrice}`` objects.

    Accepts ``unit_price`` as well as ``unitPrice``, a wrapping object with
    an ``items`` key, and a Markdown code fence around the JSON.

    Raises:
        SuggestionUnavailableError: If the text is not the expected JSON
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        cleaned = cleaned.removeprefix("json").strip()
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise SuggestionUnavailableError(f"Suggestion response is not JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise SuggestionUnavailableError("Suggestion response is not a list of items")

    suggestions = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        description = str(entry.get("description", "")).strip()
        if not description:
            continue
        price = entry.get("unitPrice", entry.get("unit_price"))
        suggestions.append(LineItemSuggestion(description=description, unit_price=coerce_amount(price)))
    return suggestions


class ChatCompletionSuggester(TextSuggester):
    """
    Suggestions from an OpenAI-compatible chat completions API.

    Example:
        suggester = ChatCompletionSuggester(
            api_base="https://api.openai.com/v1",
            api_key="sk-...",
        )
        items = await suggester.suggest_line_items("Sandpix Studio")
    """

    def __init__(
        self,
        api_base: str,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_base: Base URL, e.g. https://api.openai.com/v1
            api_key: Bearer token (omitted from requests if None)
            model: Model name to request
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.api_url = f"{api_base.rstrip('/')}/chat/completions"
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def _complete(self, prompt: str, json_mode: bool = False) -> str:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        body: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.4,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        logger.info(f"Requesting suggestion from {self.model}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Suggestion request timed out after {self.timeout}s")
            raise SuggestionUnavailableError("Suggestion service timed out") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Suggestion request failed: {e}")
            raise SuggestionUnavailableError(f"Suggestion service failed: {e}") from e

        if not isinstance(data, dict):
            raise SuggestionUnavailableError("Suggestion service returned an unexpected payload")
        choices = data.get("choices") or []
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not content or not isinstance(content, str):
            raise SuggestionUnavailableError("Suggestion service returned no content")
        return content

    async def suggest_line_items(self, business_name: str, count: int = 3) -> list[LineItemSuggestion]:
        prompt = (
            f"Generate {count} professional service line items for a business named "
            f'"{business_name}". Respond with JSON only: an object with an "items" array, '
            'each item having "description" (string) and "unitPrice" (number).'
        )
        return parse_line_item_suggestions(await self._complete(prompt, json_mode=True))[:count]

    async def suggest_terms(self, business_name: str) -> str:
        prompt = (
            "Generate a modern, professional and concise numbered list of terms and "
            f'conditions for a business named "{business_name or "our company"}". Cover '
            "payment terms, quote validity, and returns or cancellations. Plain text only."
        )
        return (await self._complete(prompt)).strip()


def build_suggester(settings: Settings) -> TextSuggester:
    """Suggester for the configured endpoint, or NullSuggester if none."""
    if not settings.suggestions_enabled:
        return NullSuggester()
    return ChatCompletionSuggester(
        api_base=settings.suggestion_api_base,
        api_key=settings.suggestion_api_key,
        model=settings.suggestion_model,
        timeout=settings.suggestion_timeout_seconds,
    )
