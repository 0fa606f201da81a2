"""Language-model contact extraction from filing text or page images."""

import json
import re
from pathlib import Path
from typing import Any

from app.contact_extraction.client_base import BaseContactExtractionClient
from app.contact_extraction.exceptions import ExtractionResponseError, PageLimitExceededError
from app.contact_extraction.prompt_loader import load_prompt
from app.logging.logger import Log
from app.pdf import pages

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class ContactExtractor:
    """Turns filing content into raw contact dictionaries using a chat model."""

    def __init__(
        self,
        *,
        client: BaseContactExtractionClient,
        model: str,
        temperature: float = 0.0,
        project_origin: str = "",
        max_text_chars: int = 15000,
        max_pages: int = 100,
        image_dpi: int = 150,
        max_image_dimension: int = 1800,
        prompt_dir: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._project_origin = project_origin
        self._max_text_chars = max_text_chars
        self._max_pages = max_pages
        self._image_dpi = image_dpi
        self._max_image_dimension = max_image_dimension
        self._system_prompt = load_prompt("system_prompt", prompt_dir).strip()
        self._contact_fields = load_prompt("contact_fields", prompt_dir).format()
        self._text_template = load_prompt("text_prompt", prompt_dir)
        self._vision_template = load_prompt("vision_prompt", prompt_dir)

    @property
    def max_pages(self) -> int:
        return self._max_pages

    def extract_from_text(self, text: str, filename: str) -> list[dict[str, Any]]:
        """Extract contacts from already-recognized document text."""
        if len(text) > self._max_text_chars:
            Log.debug(f"Truncating {filename} text from {len(text)} to {self._max_text_chars} chars")
            text = text[: self._max_text_chars]
        prompt = self._text_template.format(
            filename=filename,
            project_origin=self._project_origin,
            contact_fields=self._contact_fields,
            document_text=text,
        )
        raw = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
        )
        contacts = self.parse_contacts(raw)
        Log.info(f"Extracted {len(contacts)} contacts from text of {filename}")
        return contacts

    def extract_from_document(self, pdf_bytes: bytes, filename: str) -> list[dict[str, Any]]:
        """Extract contacts by sending rendered pages to the model.

        Raises:
            PageLimitExceededError: if the document has more pages than one call accepts.
        """
        page_total = pages.page_count(pdf_bytes)
        if page_total > self._max_pages:
            raise PageLimitExceededError(
                self._max_pages,
                f"{filename} has {page_total} pages, limit is {self._max_pages}",
            )
        images = pages.render_pages_png(
            pdf_bytes,
            dpi=self._image_dpi,
            max_dimension=self._max_image_dimension,
        )
        prompt = self._vision_template.format(
            filename=filename,
            project_origin=self._project_origin,
            contact_fields=self._contact_fields,
        )
        raw = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            images=images,
        )
        contacts = self.parse_contacts(raw)
        Log.info(f"Extracted {len(contacts)} contacts from {page_total} page images of {filename}")
        return contacts

    @staticmethod
    def parse_contacts(raw: str) -> list[dict[str, Any]]:
        """Parse `{"contacts": [...]}` or a bare JSON array, tolerating code fences."""
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed: Any = json.loads(cleaned)
        except json.JSONDecodeError:
            match = _JSON_ARRAY.search(cleaned)
            if match is None:
                raise ExtractionResponseError("Response contains no JSON contact list") from None
            try:
                parsed = json.loads(match.group(0))
            except json.JSONDecodeError as exc:
                raise ExtractionResponseError(f"Invalid JSON response: {exc}") from exc

        if isinstance(parsed, dict):
            parsed = parsed.get("contacts")
        if not isinstance(parsed, list):
            raise ExtractionResponseError("JSON response must hold a list of contacts")
        return [item for item in parsed if isinstance(item, dict)]
