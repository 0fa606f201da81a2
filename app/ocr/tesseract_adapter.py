from pathlib import Path

from app.commands.exceptions import CommandError
from app.commands.runner import CommandRunner, temporary_workspace
from app.logging.logger import Log
from app.ocr.base import BaseOcrProvider
from app.ocr.exceptions import OcrError, OcrUnavailableError
from app.ocr.models import OcrResult

# Below this many characters a page is re-read assuming a single text column.
SPARSE_PAGE_CHARS = 100


class TesseractAdapter(BaseOcrProvider):
    """Local OCR: rasterize pages with pdftoppm, then read each with Tesseract."""

    name = "tesseract"

    def __init__(
        self,
        runner: CommandRunner,
        *,
        lang: str = "eng",
        dpi: int = 300,
        timeout_seconds: int = 300,
        work_dir: str | None = None,
    ) -> None:
        self._runner = runner
        self._lang = lang
        self._dpi = dpi
        self._timeout = timeout_seconds
        self._work_dir = work_dir

    def is_available(self) -> bool:
        return self._runner.is_available("tesseract") and self._runner.is_available("pdftoppm")

    def extract_text(self, pdf_bytes: bytes) -> OcrResult:
        if not self.is_available():
            raise OcrUnavailableError("tesseract or pdftoppm is not installed")

        with temporary_workspace(self._work_dir, prefix="ocr-") as workspace:
            source = workspace / "input.pdf"
            source.write_bytes(pdf_bytes)
            images = self._rasterize(source, workspace)
            page_texts: list[str] = []
            failures = 0
            for image in images:
                try:
                    page_texts.append(self._read_page(image))
                except CommandError as exc:
                    failures += 1
                    Log.warning(f"Tesseract failed on {image.name}: {exc}")

        if images and failures == len(images):
            raise OcrError(f"Tesseract failed on all {failures} pages")
        text = "\n\n".join(t for t in page_texts if t)
        return OcrResult(text=text, confidence=None, page_count=len(images))

    def _rasterize(self, source: Path, workspace: Path) -> list[Path]:
        try:
            self._runner.run(
                ["pdftoppm", "-r", str(self._dpi), "-png", source.as_posix(), (workspace / "page").as_posix()],
                self._timeout,
            )
        except CommandError as exc:
            raise OcrError(f"pdftoppm failed: {exc}") from exc
        return sorted(workspace.glob("page-*.png"))

    def _read_page(self, image: Path) -> str:
        try:
            text = self._tesseract(image, psm=6)
        except CommandError as exc:
            Log.warning(f"Tesseract PSM 6 failed on {image.name}, trying PSM 4: {exc}")
            return self._tesseract(image, psm=4)
        if len(text) < SPARSE_PAGE_CHARS:
            single_column = self._tesseract(image, psm=4)
            if len(single_column) > len(text):
                text = single_column
        return text

    def _tesseract(self, image: Path, *, psm: int) -> str:
        result = self._runner.run(
            [
                "tesseract",
                image.as_posix(),
                "stdout",
                "-l",
                self._lang,
                "--oem",
                "3",
                "--psm",
                str(psm),
                "-c",
                "preserve_interword_spaces=1",
            ],
            self._timeout,
        )
        return result.stdout.strip()
