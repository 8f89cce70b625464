"""Import the AcroForm field tree of a PDF into flat, addressable records.

The field tree is walked once, depth-first and pre-order. Every field node
that owns at least one widget annotation becomes a :class:`FieldNode` in an
arena (addressed by its integer handle) and a :class:`FieldRecord` at the same
position. Pure container nodes are traversed but never emitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from pypdf import PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import ArrayObject, DictionaryObject, IndirectObject, NullObject, NumberObject

from pdffiller.config import (
    FLAG_COMBO_EDIT,
    FLAG_PUSHBUTTON,
    FLAG_RADIO,
    FLAG_READ_ONLY,
    FLAG_REQUIRED,
    MAX_FIELD_DEPTH,
    UNKNOWN_PAGE_INDEX,
)
from pdffiller.exceptions import FieldImportError
from pdffiller.model.document import PdfDocument
from pdffiller.model.field import ButtonKind, FieldKind, FieldRecord, FieldType
from pdffiller.pdf.strings import decode_name, decode_text_string, raw_text_bytes

LOGGER = logging.getLogger("pdffiller.importer")

INHERITABLE_KEYS = ("/FT", "/Ff", "/V", "/DV")


def resolve(value: Any) -> Any:
    if value is None:
        return None
    value = value.get_object()
    if isinstance(value, NullObject):
        return None
    return value


@dataclass(slots=True)
class Widget:
    annotation: DictionaryObject
    page_index: int = UNKNOWN_PAGE_INDEX

    @property
    def states(self) -> list[str]:
        """Appearance state names offered by the widget (``/AP /N`` keys)."""
        appearance = resolve(self.annotation.get("/AP"))
        if not isinstance(appearance, DictionaryObject):
            return []
        normal = resolve(appearance.get("/N"))
        if not isinstance(normal, DictionaryObject):
            return []
        return [decode_name(key) for key in normal.keys()]

    @property
    def on_state(self) -> str:
        for state in self.states:
            if state != "Off":
                return state
        return ""

    @property
    def appearance_state(self) -> str:
        return decode_name(self.annotation.get("/AS"))


@dataclass(slots=True)
class FieldNode:
    handle: int
    obj: DictionaryObject
    kind: FieldKind
    flags: int
    name: str
    full_name: str
    raw_full_name: bytes
    widgets: list[Widget]
    inherited: dict[str, Any] = field(default_factory=dict)

    @property
    def button_kind(self) -> ButtonKind:
        if self.flags & FLAG_PUSHBUTTON:
            return ButtonKind.PUSH
        if self.flags & FLAG_RADIO:
            return ButtonKind.RADIO
        return ButtonKind.CHECKBOX

    def lookup(self, key: str) -> Any:
        """Return ``key`` from the node or, failing that, from its ancestors."""
        if key in self.obj:
            return resolve(self.obj.get(key))
        return resolve(self.inherited.get(key))


class FieldIndex:
    """Maps field identifiers to arena handles.

    Fully qualified names are registered first and always win; a partial name
    is only an alias and never replaces an existing entry.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, int] = {}
        self._by_raw_name: dict[bytes, int] = {}

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, identifier: str) -> bool:
        return self.find(identifier) is not None

    def add_full_name(self, full_name: str, raw_full_name: bytes, handle: int) -> None:
        if not full_name:
            return
        self._by_name[full_name] = handle
        if raw_full_name:
            self._by_raw_name.setdefault(raw_full_name, handle)

    def add_alias(self, name: str, handle: int) -> None:
        if name:
            self._by_name.setdefault(name, handle)

    def find(self, identifier: str) -> int | None:
        handle = self._by_name.get(identifier)
        if handle is not None:
            return handle
        # Non-conforming files store UTF-8 names without a BOM.
        return self._by_raw_name.get(identifier.encode("utf-8"))

    def names(self) -> list[str]:
        return list(self._by_name)


@dataclass(slots=True)
class FieldTable:
    records: list[FieldRecord] = field(default_factory=list)
    nodes: list[FieldNode] = field(default_factory=list)
    index: FieldIndex = field(default_factory=FieldIndex)

    def find(self, identifier: str) -> FieldNode | None:
        handle = self.index.find(identifier)
        if handle is None:
            return None
        return self.nodes[handle]

    def record(self, identifier: str) -> FieldRecord | None:
        handle = self.index.find(identifier)
        if handle is None:
            return None
        return self.records[handle]


class _PageLocator:
    def __init__(self, writer: PdfWriter) -> None:
        self._by_page_ref: dict[int, int] = {}
        self._by_annot_ref: dict[int, int] = {}
        for page_index, page in enumerate(writer.pages):
            page_ref = page.indirect_reference
            if page_ref is not None:
                self._by_page_ref[page_ref.idnum] = page_index
            annots = resolve(page.get("/Annots"))
            if not isinstance(annots, ArrayObject):
                continue
            for annot_ref in annots:
                if isinstance(annot_ref, IndirectObject):
                    self._by_annot_ref.setdefault(annot_ref.idnum, page_index)

    def locate(self, entry: Any, annotation: DictionaryObject) -> int:
        page_ref = annotation.get("/P")
        if isinstance(page_ref, IndirectObject) and page_ref.idnum in self._by_page_ref:
            return self._by_page_ref[page_ref.idnum]
        if isinstance(entry, IndirectObject) and entry.idnum in self._by_annot_ref:
            return self._by_annot_ref[entry.idnum]
        LOGGER.warning("Widget %r is not placed on any page", annotation.get("/T", entry))
        return UNKNOWN_PAGE_INDEX


class _TreeWalker:
    def __init__(self, writer: PdfWriter) -> None:
        self.table = FieldTable()
        self._pages = _PageLocator(writer)
        self._visited: set[tuple[Any, ...]] = set()

    def walk(self, roots: ArrayObject) -> FieldTable:
        for entry in roots:
            self._visit(entry, "", b"", {}, 0)
        return self.table

    def _visit(
        self,
        entry: Any,
        parent_name: str,
        raw_parent_name: bytes,
        inherited: dict[str, Any],
        depth: int,
    ) -> None:
        node = resolve(entry)
        if not isinstance(node, DictionaryObject):
            return

        identity = _identity(entry, node)
        if identity in self._visited:
            LOGGER.warning("Field tree revisits object %s; skipping", identity)
            return
        self._visited.add(identity)
        if depth > MAX_FIELD_DEPTH:
            LOGGER.warning("Field tree deeper than %d levels; truncating", MAX_FIELD_DEPTH)
            return

        partial = decode_text_string(node.get("/T"))
        raw_partial = raw_text_bytes(node.get("/T"))
        full_name = f"{parent_name}.{partial}" if parent_name and partial else partial or parent_name
        if raw_parent_name and raw_partial:
            raw_full_name = raw_parent_name + b"." + raw_partial
        else:
            raw_full_name = raw_partial or raw_parent_name

        scope = dict(inherited)
        for key in INHERITABLE_KEYS:
            if key in node:
                scope[key] = node.get(key)

        widgets: list[Widget] = []
        children: list[Any] = []
        if node.get("/Subtype") == "/Widget":
            widgets.append(Widget(node, self._pages.locate(entry, node)))
        kids = resolve(node.get("/Kids"))
        if isinstance(kids, ArrayObject):
            for kid_ref in kids:
                kid = resolve(kid_ref)
                if not isinstance(kid, DictionaryObject):
                    continue
                if _is_field(kid):
                    children.append(kid_ref)
                else:
                    widgets.append(Widget(kid, self._pages.locate(kid_ref, kid)))

        if widgets:
            self._emit(node, partial, full_name, raw_full_name, widgets, scope)

        for child in children:
            self._visit(child, full_name, raw_full_name, scope, depth + 1)

    def _emit(
        self,
        node: DictionaryObject,
        partial: str,
        full_name: str,
        raw_full_name: bytes,
        widgets: list[Widget],
        scope: dict[str, Any],
    ) -> None:
        handle = len(self.table.nodes)
        name = partial if partial and partial != full_name else full_name
        inherited = {key: value for key, value in scope.items() if key not in node}
        flags_obj = resolve(scope.get("/Ff"))
        fieldnode = FieldNode(
            handle=handle,
            obj=node,
            kind=FieldKind.from_pdf_name(resolve(scope.get("/FT"))),
            flags=int(flags_obj) if isinstance(flags_obj, NumberObject) else 0,
            name=name,
            full_name=full_name,
            raw_full_name=raw_full_name,
            widgets=widgets,
            inherited=inherited,
        )
        self.table.nodes.append(fieldnode)
        self.table.records.append(build_record(fieldnode))

        self.table.index.add_full_name(full_name, raw_full_name, handle)
        if name != full_name:
            self.table.index.add_alias(name, handle)
        if not full_name:
            LOGGER.debug("Field %d has no name and cannot be looked up", handle)


def _identity(entry: Any, node: DictionaryObject) -> tuple[Any, ...]:
    if isinstance(entry, IndirectObject):
        return ("ref", entry.idnum, entry.generation)
    return ("obj", id(node))


def _is_field(kid: DictionaryObject) -> bool:
    if "/T" in kid or "/Kids" in kid:
        return True
    return "/FT" in kid and kid.get("/Subtype") != "/Widget"


def import_form_fields(document: PdfDocument) -> FieldTable:
    acroform = document.acroform
    if acroform is None:
        return FieldTable()

    try:
        roots = resolve(acroform.get("/Fields"))
        if not isinstance(roots, ArrayObject):
            return FieldTable()
        table = _TreeWalker(document.writer).walk(roots)
    except (PyPdfError, ValueError, TypeError, KeyError) as exc:
        raise FieldImportError(f"Failed to read form fields: {exc}") from exc
    LOGGER.debug("Imported %d terminal field(s)", len(table.records))
    return table


def build_record(node: FieldNode) -> FieldRecord:
    record = FieldRecord(
        name=node.name,
        full_name=node.full_name,
        field_type=_exposed_type(node),
        default_value=_text_value(node.lookup("/DV")),
        read_only=bool(node.flags & FLAG_READ_ONLY),
        required=bool(node.flags & FLAG_REQUIRED),
    )

    first = node.widgets[0]
    record.page_index = first.page_index
    record.x, record.y, record.width, record.height = _geometry(first.annotation)

    if node.kind is FieldKind.TEXT:
        record.value = _text_value(node.lookup("/V"))
    elif node.kind is FieldKind.CHOICE:
        options = choice_options(node)
        record.options = [label for _, label, _ in options]
        selected = selected_choice_indices(node, options)
        if selected:
            record.value = options[selected[0]][1]
        elif node.flags & FLAG_COMBO_EDIT:
            record.value = _text_value(node.lookup("/V"))
    elif node.kind is FieldKind.BUTTON and node.button_kind is not ButtonKind.PUSH:
        record.export_value = first.on_state
        record.is_checked = _widget_checked(node, first)

    return record


def _exposed_type(node: FieldNode) -> FieldType:
    if node.kind is FieldKind.BUTTON:
        return {
            ButtonKind.CHECKBOX: FieldType.CHECKBOX,
            ButtonKind.RADIO: FieldType.RADIO,
            ButtonKind.PUSH: FieldType.BUTTON,
        }[node.button_kind]
    return {
        FieldKind.TEXT: FieldType.TEXT,
        FieldKind.CHOICE: FieldType.CHOICE,
        FieldKind.SIGNATURE: FieldType.SIGNATURE,
    }.get(node.kind, FieldType.UNKNOWN)


def _text_value(value: Any) -> str:
    if isinstance(value, ArrayObject):
        value = resolve(value[0]) if len(value) else None
    if value is None or isinstance(value, (DictionaryObject, ArrayObject)):
        return ""
    return decode_text_string(value)


def _geometry(annotation: DictionaryObject) -> tuple[float, float, float, float]:
    rect = resolve(annotation.get("/Rect"))
    if not isinstance(rect, ArrayObject) or len(rect) < 4:
        return 0.0, 0.0, 0.0, 0.0
    try:
        x1, y1, x2, y2 = (float(resolve(value)) for value in rect[:4])
    except (TypeError, ValueError):
        return 0.0, 0.0, 0.0, 0.0
    return min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1)


def _widget_checked(node: FieldNode, widget: Widget) -> bool:
    state = widget.appearance_state
    if state:
        return state != "Off"
    value = decode_name(node.lookup("/V"))
    return bool(value) and value != "Off" and value == widget.on_state


def choice_options(node: FieldNode) -> list[tuple[str, str, Any]]:
    """Return ``(export value, label, raw export object)`` for every /Opt entry."""
    opts = resolve(node.obj.get("/Opt"))
    if not isinstance(opts, ArrayObject):
        return []

    options = []
    for entry in opts:
        entry = resolve(entry)
        if isinstance(entry, ArrayObject):
            if not entry:
                continue
            export_obj = resolve(entry[0])
            label_obj = resolve(entry[1]) if len(entry) > 1 else export_obj
        else:
            export_obj = label_obj = entry
        options.append((decode_text_string(export_obj), decode_text_string(label_obj), export_obj))
    return options


def selected_choice_indices(node: FieldNode, options: list[tuple[str, str, Any]]) -> list[int]:
    value = node.lookup("/V")
    if value is not None:
        values = value if isinstance(value, ArrayObject) else [value]
        selected = []
        for item in values:
            text = decode_text_string(item)
            for option_index, (export, label, _) in enumerate(options):
                if text in (export, label) and option_index not in selected:
                    selected.append(option_index)
                    break
        return selected

    indices = resolve(node.obj.get("/I"))
    if isinstance(indices, ArrayObject):
        numbers = (resolve(item) for item in indices)
        return [int(item) for item in numbers if isinstance(item, NumberObject) and 0 <= item < len(options)]
    return []
