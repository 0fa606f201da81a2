import base64
import re
from typing import Any

import httpx
import openai

from app.contact_extraction.client_base import BaseContactExtractionClient
from app.contact_extraction.exceptions import (
    ExtractionNetworkError,
    ExtractionResponseError,
    FatalExtractionError,
    OverloadedError,
    PageLimitExceededError,
    RateLimitedError,
)

OVERLOADED_STATUS_CODES = frozenset({503, 529})
_PAGE_LIMIT_PATTERN = re.compile(
    r"(?:maximum|limit|at most|up to)[^0-9]{0,40}(\d+)\s*(?:pdf\s*)?pages", re.IGNORECASE
)


class OpenAIClientAdapter(BaseContactExtractionClient):
    """Contact extraction client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        # Retries are owned by RetryController.
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        images: list[bytes] | None = None,
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": self._user_content(user_prompt, images)},
                ],
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError(f"AI provider rate limit: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ExtractionNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIStatusError as exc:
            raise self._map_status_error(exc) from exc
        except openai.APIError as exc:
            if "overloaded" in str(exc).lower():
                raise OverloadedError(f"AI provider overloaded: {exc}") from exc
            raise FatalExtractionError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ExtractionResponseError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise ExtractionResponseError("AI returned empty response")
        return content

    @staticmethod
    def _user_content(user_prompt: str, images: list[bytes] | None) -> Any:
        if not images:
            return user_prompt
        parts: list[dict[str, Any]] = [{"type": "text", "text": user_prompt}]
        for image in images:
            encoded = base64.b64encode(image).decode("ascii")
            parts.append(
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}}
            )
        return parts

    @staticmethod
    def _map_status_error(exc: openai.APIStatusError) -> Exception:
        message = str(exc)
        if exc.status_code in OVERLOADED_STATUS_CODES or "overloaded" in message.lower():
            return OverloadedError(f"AI provider overloaded: {message}")
        if exc.status_code in (400, 413):
            match = _PAGE_LIMIT_PATTERN.search(message)
            if match:
                return PageLimitExceededError(int(match.group(1)), f"AI provider page limit: {message}")
        return FatalExtractionError(f"AI provider API error: {message}")
