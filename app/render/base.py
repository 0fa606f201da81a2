from abc import ABC, abstractmethod

from app.render.models import OptimizeResult


class BaseRenderOptimizer(ABC):
    """Contract for re-rendering a PDF into a smaller, cleaner copy."""

    @abstractmethod
    def optimize(self, pdf_bytes: bytes) -> OptimizeResult:
        """Return optimized bytes, or the input unchanged with was_optimized=False.

        Failures are not raised: they are reported through `error` and the
        caller carries on with the original bytes.
        """
