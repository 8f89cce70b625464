"""Document model for a loaded PDF and its editable object graph."""

from __future__ import annotations

from dataclasses import dataclass

from pypdf import PdfReader, PdfWriter
from pypdf.generic import DictionaryObject

from pdffiller.pdf.strings import decode_text_string


@dataclass(slots=True)
class PdfDocument:
    """A parsed PDF.

    ``reader`` is the parse of ``original_bytes``; ``writer`` is a full clone
    of it and the object graph every mutation is applied to.
    """

    reader: PdfReader
    writer: PdfWriter
    original_bytes: bytes
    encrypted: bool = False

    @property
    def page_count(self) -> int:
        return len(self.writer.pages)

    @property
    def title(self) -> str:
        return self._info_entry("/Title")

    @property
    def author(self) -> str:
        return self._info_entry("/Author")

    @property
    def acroform(self) -> DictionaryObject | None:
        acroform = self.writer._root_object.get("/AcroForm")
        if acroform is None:
            return None
        acroform = acroform.get_object()
        if not isinstance(acroform, DictionaryObject):
            return None
        return acroform

    @property
    def has_form(self) -> bool:
        return self.acroform is not None

    def _info_entry(self, key: str) -> str:
        metadata = self.reader.metadata
        if metadata is None:
            return ""
        return decode_text_string(metadata.get(key))
