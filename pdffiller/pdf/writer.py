"""Serialize a loaded document back to PDF bytes with pypdf."""

from __future__ import annotations

from io import BytesIO
import logging
import os
from pathlib import Path
import tempfile

from pypdf import PdfReader, PdfWriter

from pdffiller.config import PDF_HEADER, TEMP_PREFIX
from pdffiller.exceptions import SerializeError
from pdffiller.model.document import PdfDocument

LOGGER = logging.getLogger("pdffiller.writer")


def serialize(document: PdfDocument, dirty: bool) -> bytes:
    """Return the document as PDF bytes.

    An unmodified document is written incrementally on top of its original
    bytes (which, with nothing to append, reproduces them exactly). A dirty
    document, or one that had to be decrypted, is rewritten in full from the
    in-memory object graph.
    """
    incremental = not dirty and not document.encrypted
    buffer = BytesIO()
    try:
        if incremental:
            writer = PdfWriter(PdfReader(BytesIO(document.original_bytes)), incremental=True)
        else:
            writer = document.writer
        writer.write(buffer)
    except Exception as exc:
        raise SerializeError(f"Failed to save PDF: {exc}") from exc

    data = buffer.getvalue()
    if not data.startswith(PDF_HEADER):
        raise SerializeError("Failed to save PDF: writer produced no PDF data")

    LOGGER.debug(
        "Serialized %d byte(s) (%s)", len(data), "incremental" if incremental else "full rewrite"
    )
    return data


def write_pdf_file(data: bytes, output_path: str | Path) -> Path:
    """Write ``data`` to ``output_path`` through a temporary file in the same directory."""
    output = Path(output_path)
    try:
        fd, temp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".pdf", dir=output.parent)
    except OSError as exc:
        raise SerializeError(f"Failed to open file for writing: {output} ({exc})") from exc

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(temp_path, output)
    except OSError as exc:
        raise SerializeError(f"Failed to open file for writing: {output} ({exc})") from exc
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)
    return output
