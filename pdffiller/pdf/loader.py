"""PDF loading helpers."""

from __future__ import annotations

from io import BytesIO
import logging
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from pdffiller.exceptions import LoadError
from pdffiller.model.document import PdfDocument

LOGGER = logging.getLogger("pdffiller.loader")

PdfSource = bytes | bytearray | memoryview | str | Path


def read_source(source: PdfSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    source_path = Path(source)
    if not source_path.exists() or not source_path.is_file():
        raise LoadError(f"Failed to open file: {source_path}")
    try:
        return source_path.read_bytes()
    except OSError as exc:
        raise LoadError(f"Failed to open file: {source_path} ({exc})") from exc


def load_pdf(source: PdfSource, password: str | None = None) -> PdfDocument:
    data = read_source(source)
    if not data:
        raise LoadError("Failed to load PDF: empty input")

    try:
        reader = PdfReader(BytesIO(data))
    except PdfReadError as exc:
        raise LoadError(f"Failed to load PDF: {exc}") from exc
    except Exception as exc:
        raise LoadError(f"Failed to load PDF: unexpected error {exc}") from exc

    encrypted = reader.is_encrypted
    if encrypted:
        LOGGER.debug("Attempting to decrypt encrypted PDF")
        try:
            decrypted = reader.decrypt(password or "")
        except Exception as exc:
            raise LoadError(f"Failed to decrypt PDF: {exc}") from exc
        if decrypted == 0:
            if password:
                raise LoadError("Failed to load PDF: incorrect password")
            raise LoadError("Failed to load PDF: document is encrypted, a password is required")

    try:
        page_total = len(reader.pages)
        writer = PdfWriter(clone_from=reader)
    except PdfReadError as exc:
        raise LoadError(f"Failed to load PDF: {exc}") from exc
    except Exception as exc:
        raise LoadError(f"Failed to load PDF: unexpected error {exc}") from exc

    LOGGER.debug("Loaded PDF with %d page(s), %d byte(s)", page_total, len(data))
    return PdfDocument(reader=reader, writer=writer, original_bytes=data, encrypted=encrypted)
