"""PDF rendering helpers using PyMuPDF and Pillow."""

from __future__ import annotations

from io import BytesIO
import logging

import fitz
from PIL import Image

from pdffiller.config import DEFAULT_RENDER_DPI, POINTS_PER_INCH
from pdffiller.exceptions import RenderError

LOGGER = logging.getLogger("pdffiller.renderer")


def render_page_png(pdf_bytes: bytes, page_index: int, dpi: float = DEFAULT_RENDER_DPI) -> bytes:
    if dpi <= 0:
        raise RenderError(f"Resolution must be positive: {dpi}")

    try:
        document = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as exc:
        raise RenderError(f"Failed to open PDF for rendering: {exc}") from exc

    try:
        if page_index < 0 or page_index >= document.page_count:
            raise RenderError(f"Page index out of range: {page_index}")

        try:
            page = document.load_page(page_index)
            zoom = dpi / POINTS_PER_INCH
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        except Exception as exc:
            raise RenderError(f"Failed to render page {page_index + 1}") from exc

        png = encode_png(pix.samples, pix.width, pix.height, pix.stride)
    finally:
        document.close()

    LOGGER.debug("Rendered page %d at %.1f dpi (%d byte PNG)", page_index, dpi, len(png))
    return png


def encode_png(samples: bytes, width: int, height: int, stride: int) -> bytes:
    """Encode a packed RGB8 buffer whose rows are ``stride`` bytes apart."""
    if width <= 0 or height <= 0:
        raise RenderError("Failed to render page: empty bitmap")
    if stride < width * 3 or len(samples) < stride * height:
        raise RenderError("Failed to render page: truncated bitmap")

    try:
        image = Image.frombuffer("RGB", (width, height), samples, "raw", "RGB", stride, 1)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise RenderError(f"Failed to encode PNG: {exc}") from exc
    return buffer.getvalue()
