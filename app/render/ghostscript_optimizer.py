from app.commands.exceptions import CommandError
from app.commands.runner import CommandRunner, temporary_workspace
from app.logging.logger import Log
from app.render.base import BaseRenderOptimizer
from app.render.models import OptimizeResult

# Optimized output is kept only when it is at least 10% smaller.
KEEP_RATIO = 0.9


class GhostscriptOptimizer(BaseRenderOptimizer):
    """Recompresses a PDF through `gs -sDEVICE=pdfwrite`."""

    QUALITIES = ("screen", "ebook", "printer", "prepress", "default")

    def __init__(
        self,
        runner: CommandRunner,
        *,
        quality: str = "ebook",
        timeout_seconds: int = 300,
        work_dir: str | None = None,
    ) -> None:
        if quality not in self.QUALITIES:
            raise ValueError(
                f"Unknown Ghostscript quality '{quality}'. Choose from: {list(self.QUALITIES)}"
            )
        self._runner = runner
        self._quality = quality
        self._timeout = timeout_seconds
        self._work_dir = work_dir

    def is_available(self) -> bool:
        return self._runner.is_available("gs")

    def optimize(self, pdf_bytes: bytes) -> OptimizeResult:
        try:
            with temporary_workspace(self._work_dir, prefix="gs-") as workspace:
                source = workspace / "input.pdf"
                target = workspace / "optimized.pdf"
                source.write_bytes(pdf_bytes)
                self._runner.run(self._build_args(source.as_posix(), target.as_posix()), self._timeout)
                if not target.exists():
                    return OptimizeResult(pdf_bytes, False, "Ghostscript produced no output")
                optimized = target.read_bytes()
        except (CommandError, OSError) as exc:
            Log.warning(f"Ghostscript optimization failed: {exc}")
            return OptimizeResult(pdf_bytes, False, str(exc))

        if optimized and len(optimized) < len(pdf_bytes) * KEEP_RATIO:
            Log.info(
                f"Ghostscript reduced document from {len(pdf_bytes)} to {len(optimized)} bytes"
            )
            return OptimizeResult(optimized, True)
        Log.debug("Ghostscript output not meaningfully smaller, keeping original")
        return OptimizeResult(pdf_bytes, False)

    def _build_args(self, source: str, target: str) -> list[str]:
        return [
            "gs",
            "-sDEVICE=pdfwrite",
            "-dCompatibilityLevel=1.4",
            f"-dPDFSETTINGS=/{self._quality}",
            "-dNOPAUSE",
            "-dQUIET",
            "-dBATCH",
            "-dColorImageResolution=150",
            "-dGrayImageResolution=150",
            "-dMonoImageResolution=300",
            f"-sOutputFile={target}",
            source,
        ]
