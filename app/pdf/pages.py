"""Page-level PDF operations backed by PyMuPDF."""

import pymupdf

from app.pdf.exceptions import PdfExtractionError

_POINTS_PER_INCH = 72


def page_count(pdf_bytes: bytes) -> int:
    """Return the number of pages in the document."""
    try:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            return int(doc.page_count)
    except Exception as exc:
        raise PdfExtractionError(f"Cannot count pages: {exc}") from exc


def split_page_range(pdf_bytes: bytes, start_page: int, end_page: int) -> bytes:
    """Copy pages start_page..end_page (1-based, inclusive) into a new PDF."""
    if start_page < 1 or end_page < start_page:
        raise ValueError(f"Invalid page range {start_page}-{end_page}")
    try:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as source:  # type: ignore[no-untyped-call]
            if end_page > source.page_count:
                raise PdfExtractionError(
                    f"Page range {start_page}-{end_page} exceeds "
                    f"{source.page_count} pages"
                )
            with pymupdf.open() as target:  # type: ignore[no-untyped-call]
                target.insert_pdf(source, from_page=start_page - 1, to_page=end_page - 1)
                return bytes(target.tobytes())
    except PdfExtractionError:
        raise
    except Exception as exc:
        raise PdfExtractionError(f"Cannot split pages {start_page}-{end_page}: {exc}") from exc


def render_pages_png(
    pdf_bytes: bytes,
    *,
    dpi: int,
    max_dimension: int,
    max_pages: int | None = None,
) -> list[bytes]:
    """Render pages to PNG images, shrinking any page whose longer side exceeds max_dimension."""
    images: list[bytes] = []
    try:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            for index, page in enumerate(doc):
                if max_pages is not None and index >= max_pages:
                    break
                longest_side = max(page.rect.width, page.rect.height) or 1
                zoom = min(dpi / _POINTS_PER_INCH, max_dimension / longest_side)
                pixmap = page.get_pixmap(matrix=pymupdf.Matrix(zoom, zoom))
                images.append(pixmap.tobytes("png"))
    except Exception as exc:
        raise PdfExtractionError(f"Cannot render pages: {exc}") from exc
    return images
