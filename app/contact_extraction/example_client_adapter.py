"""Offline contact extraction client.

Reference for new provider adapters: implement BaseContactExtractionClient
and register the provider in ContactExtractorFactory.
"""

import json
from typing import ClassVar

from app.contact_extraction.client_base import BaseContactExtractionClient


class ExampleClientAdapter(BaseContactExtractionClient):
    """Returns a fixed, empty contact list without any network calls."""

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {"contacts": []}

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        images: list[bytes] | None = None,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, images
        return json.dumps(self.DEFAULT_RESPONSE)
