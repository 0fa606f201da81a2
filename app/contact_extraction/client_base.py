from abc import ABC, abstractmethod


class BaseContactExtractionClient(ABC):
    """Contract for provider-specific language-model clients."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        images: list[bytes] | None = None,
    ) -> str:
        """Return the provider response as plain text.

        `images` are PNG page renderings sent alongside the prompt.

        Raises:
            RateLimitedError, OverloadedError: for throttling the caller may retry.
            PageLimitExceededError: when the request carries too many pages.
            FatalExtractionError: for every other provider failure.
        """
