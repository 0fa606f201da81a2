from typing import ClassVar

from app.config.settings import Settings
from app.contact_extraction.client_base import BaseContactExtractionClient
from app.contact_extraction.example_client_adapter import ExampleClientAdapter
from app.contact_extraction.extractor import ContactExtractor
from app.contact_extraction.openai_client_adapter import OpenAIClientAdapter


class ContactExtractorFactory:
    """Creates the contact extractor for the configured provider."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> ContactExtractor:
        """Create a configured extractor from application settings."""
        provider = settings.extraction_provider.strip().lower()
        client = cls.create_client(provider, settings)
        return ContactExtractor(
            client=client,
            model="example" if provider == "example" else settings.extraction_model_name,
            temperature=settings.extraction_temperature,
            project_origin=settings.project_origin,
            max_text_chars=settings.extraction_max_text_chars,
            max_pages=settings.vision_max_pages,
            image_dpi=settings.vision_image_dpi,
            max_image_dimension=settings.vision_max_image_dimension,
        )

    @classmethod
    def create_client(cls, provider: str, settings: Settings) -> BaseContactExtractionClient:
        if provider == "example":
            return ExampleClientAdapter()
        return OpenAIClientAdapter(
            api_key=settings.extraction_api_key,
            timeout_seconds=settings.extraction_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return settings.extraction_base_url or None
        if provider == "openai_compatible":
            url = (settings.extraction_base_url or "").strip()
            if not url:
                raise ValueError(
                    "extraction_base_url is required for extraction_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return settings.extraction_base_url or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown extraction provider '{provider}'. Choose from: {supported}"
        )
