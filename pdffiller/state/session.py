"""Document session: one loaded PDF form and its pending edits.

Public methods never raise. Failures return ``False``/``None``/an empty
result and leave a human readable message in :attr:`DocumentSession.last_error`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
import logging
from pathlib import Path

from pypdf.generic import NameObject, NumberObject

from pdffiller.config import DEFAULT_RENDER_DPI, FLAG_READ_ONLY
from pdffiller.exceptions import (
    FieldNotFoundError,
    FormMissingError,
    NoDocumentError,
    PdfFillerError,
    RenderError,
)
from pdffiller.model.document import PdfDocument
from pdffiller.model.field import FieldRecord
from pdffiller.pdf.importer import FieldNode, FieldTable, import_form_fields
from pdffiller.pdf.loader import PdfSource, load_pdf
from pdffiller.pdf.mutator import set_button_state, set_field_value
from pdffiller.pdf.renderer import render_page_png
from pdffiller.pdf.writer import serialize, write_pdf_file

LOGGER = logging.getLogger("pdffiller.session")

FieldValues = Mapping[str, str] | Iterable[tuple[str, str]]


@dataclass(slots=True)
class DocumentSession:
    document: PdfDocument | None = None
    dirty: bool = False
    last_error: str = ""
    _table: FieldTable | None = field(default=None, init=False, repr=False)

    def __enter__(self) -> DocumentSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Lifecycle

    def load(self, source: PdfSource, password: str | None = None) -> bool:
        self.close()
        try:
            self.document = load_pdf(source, password)
        except PdfFillerError as exc:
            return self._fail(exc)
        return True

    def close(self) -> None:
        self.document = None
        self.dirty = False
        self._table = None

    @property
    def is_loaded(self) -> bool:
        return self.document is not None

    @property
    def is_dirty(self) -> bool:
        return self.dirty

    # Document information

    @property
    def page_count(self) -> int:
        return self.document.page_count if self.document is not None else 0

    @property
    def title(self) -> str:
        return self.document.title if self.document is not None else ""

    @property
    def author(self) -> str:
        return self.document.author if self.document is not None else ""

    @property
    def has_form(self) -> bool:
        return self.document is not None and self.document.has_form

    # Queries

    def list_fields(self) -> list[FieldRecord]:
        try:
            table = self._fields()
        except PdfFillerError as exc:
            self._fail(exc)
            return []
        return [_copy_record(record) for record in table.records]

    def get_field(self, identifier: str) -> FieldRecord | None:
        try:
            record = self._fields().record(identifier)
        except PdfFillerError as exc:
            self._fail(exc)
            return None
        return _copy_record(record) if record is not None else None

    # Mutations

    def set_field_value(self, identifier: str, value: str) -> bool:
        try:
            node = self._resolve(identifier)
            set_field_value(self.document.acroform, node, value)
        except PdfFillerError as exc:
            return self._fail(exc)
        self._touch()
        return True

    def set_checkbox_value(self, identifier: str, checked: bool) -> bool:
        try:
            node = self._resolve(identifier)
            set_button_state(self.document.acroform, node, checked)
        except PdfFillerError as exc:
            return self._fail(exc)
        self._touch()
        return True

    def set_field_values(self, values: FieldValues) -> bool:
        """Apply every pair in order; ``True`` only if all of them succeeded."""
        _, failures, attempted = self._apply_values(values)
        if failures:
            self._report_batch_failure(failures, attempted)
        return not failures

    def set_field_values_report(self, values: FieldValues) -> dict[str, str | None]:
        """Apply every pair in order and return the error message per identifier.

        ``None`` marks success. Nothing stops at the first failure, so the
        document may be partially filled when some entries fail.
        A failure for an identifier is kept even if a later pair for the same
        identifier succeeds.
        """
        report, failures, attempted = self._apply_values(values)
        if failures:
            self._report_batch_failure(failures, attempted)
        return report

    def flatten_form(self) -> bool:
        """Lock every field read-only and mark the document for a full rewrite.

        Widget appearances are not merged into page content.
        """
        try:
            document = self._require_document()
            if not document.has_form:
                raise FormMissingError()
            for node in self._fields().nodes:
                node.obj[NameObject("/Ff")] = NumberObject(node.flags | FLAG_READ_ONLY)
        except PdfFillerError as exc:
            return self._fail(exc)
        self._touch()
        return True

    # Output

    def save(self) -> bytes | None:
        try:
            return serialize(self._require_document(), self.dirty)
        except PdfFillerError as exc:
            self._fail(exc)
            return None

    def save_to_file(self, path: str | Path) -> bool:
        data = self.save()
        if data is None:
            return False
        try:
            write_pdf_file(data, path)
        except PdfFillerError as exc:
            return self._fail(exc)
        return True

    def render_page(self, page_index: int, dpi: float = DEFAULT_RENDER_DPI) -> bytes | None:
        try:
            document = self._require_document()
            if page_index < 0 or page_index >= document.page_count:
                raise RenderError(
                    f"Page index {page_index} out of range (0-{document.page_count - 1})"
                )
            return render_page_png(serialize(document, self.dirty), page_index, dpi)
        except PdfFillerError as exc:
            self._fail(exc)
            return None

    # Internals

    def _apply_values(self, values: FieldValues) -> tuple[dict[str, str | None], int, int]:
        pairs = values.items() if isinstance(values, Mapping) else values
        report: dict[str, str | None] = {}
        failures = attempted = 0
        for identifier, value in pairs:
            attempted += 1
            if self.set_field_value(identifier, value):
                report.setdefault(identifier, None)
            else:
                failures += 1
                report[identifier] = self.last_error
        return report, failures, attempted

    def _report_batch_failure(self, failures: int, attempted: int) -> None:
        LOGGER.warning("%d of %d field value(s) could not be set", failures, attempted)
        self.last_error = f"Failed to set {failures} of {attempted} field(s)"

    def _require_document(self) -> PdfDocument:
        if self.document is None:
            raise NoDocumentError()
        return self.document

    def _fields(self) -> FieldTable:
        document = self._require_document()
        if self._table is None:
            self._table = import_form_fields(document)
        return self._table

    def _resolve(self, identifier: str) -> FieldNode:
        node = self._fields().find(identifier)
        if node is None:
            raise FieldNotFoundError(f"Field not found: {identifier}")
        return node

    def _touch(self) -> None:
        self.dirty = True
        self._table = None

    def _fail(self, exc: PdfFillerError) -> bool:
        self.last_error = exc.message
        LOGGER.error("%s", exc.message)
        return False


def _copy_record(record: FieldRecord) -> FieldRecord:
    return replace(record, options=list(record.options))
