"""Shared fixtures: small AcroForm documents built on the fly."""

from __future__ import annotations

import codecs
from pathlib import Path

import pytest
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    ByteStringObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NumberObject,
    PdfObject,
    TextStringObject,
    create_string_object,
)
from reportlab.pdfgen import canvas

from pdffiller.config import FLAG_PUSHBUTTON, FLAG_RADIO, FLAG_READ_ONLY, FLAG_REQUIRED

PAGE_SIZE = (612, 792)
FLAG_COMBO = 1 << 17


def utf16(text: str) -> TextStringObject:
    return create_string_object(codecs.BOM_UTF16_BE + text.encode("utf-16-be"))


class FormBuilder:
    """Assembles an AcroForm field tree out of pypdf generic objects."""

    def __init__(self, pages: int = 2) -> None:
        self.writer = PdfWriter()
        for _ in range(pages):
            self.writer.add_blank_page(width=PAGE_SIZE[0], height=PAGE_SIZE[1])
        self.roots = ArrayObject()
        acroform = DictionaryObject()
        acroform[NameObject("/Fields")] = self.roots
        self.writer._root_object[NameObject("/AcroForm")] = self.writer._add_object(acroform)

    def field(
        self,
        name: str | PdfObject | None,
        *,
        parent: IndirectObject | None = None,
        widget: tuple[int, tuple[float, float, float, float]] | None = None,
        states: tuple[str, ...] = (),
        state: str | None = None,
        **entries: PdfObject,
    ) -> IndirectObject:
        node = DictionaryObject()
        if name is not None:
            node[NameObject("/T")] = name if isinstance(name, PdfObject) else TextStringObject(name)
        for key, value in entries.items():
            node[NameObject(f"/{key}")] = value
        ref = self.writer._add_object(node)
        if widget is not None:
            page_index, rect = widget
            self._make_widget(node, ref, page_index, rect, states, state)
        self._attach(ref, node, parent)
        return ref

    def widget(
        self,
        parent: IndirectObject,
        page_index: int,
        rect: tuple[float, float, float, float],
        states: tuple[str, ...] = (),
        state: str | None = None,
    ) -> IndirectObject:
        annotation = DictionaryObject()
        ref = self.writer._add_object(annotation)
        self._make_widget(annotation, ref, page_index, rect, states, state)
        self._attach(ref, annotation, parent)
        return ref

    def save(self, path: Path) -> Path:
        with path.open("wb") as handle:
            self.writer.write(handle)
        return path

    def _make_widget(self, annotation, ref, page_index, rect, states, state) -> None:
        page = self.writer.pages[page_index]
        annotation[NameObject("/Type")] = NameObject("/Annot")
        annotation[NameObject("/Subtype")] = NameObject("/Widget")
        annotation[NameObject("/Rect")] = ArrayObject([FloatObject(value) for value in rect])
        annotation[NameObject("/P")] = page.indirect_reference
        if states:
            normal = DictionaryObject()
            for name in states:
                normal[NameObject(f"/{name}")] = self._appearance(rect)
            appearance = DictionaryObject()
            appearance[NameObject("/N")] = normal
            annotation[NameObject("/AP")] = appearance
        if state is not None:
            annotation[NameObject("/AS")] = NameObject(f"/{state}")

        if "/Annots" not in page:
            page[NameObject("/Annots")] = ArrayObject()
        page["/Annots"].append(ref)

    def _appearance(self, rect) -> IndirectObject:
        stream = DecodedStreamObject()
        stream.set_data(b"")
        stream[NameObject("/Type")] = NameObject("/XObject")
        stream[NameObject("/Subtype")] = NameObject("/Form")
        stream[NameObject("/BBox")] = ArrayObject(
            [FloatObject(0), FloatObject(0), FloatObject(rect[2] - rect[0]), FloatObject(rect[3] - rect[1])]
        )
        return self.writer._add_object(stream)

    def _attach(self, ref: IndirectObject, node: DictionaryObject, parent: IndirectObject | None) -> None:
        if parent is None:
            self.roots.append(ref)
            return
        parent_obj = parent.get_object()
        if "/Kids" not in parent_obj:
            parent_obj[NameObject("/Kids")] = ArrayObject()
        parent_obj["/Kids"].append(ref)
        node[NameObject("/Parent")] = parent


def build_sample_form() -> FormBuilder:
    builder = FormBuilder(pages=2)
    builder.field(
        "name",
        widget=(0, (50, 700, 250, 720)),
        FT=NameObject("/Tx"),
        V=TextStringObject("Alice"),
        DV=TextStringObject("Anonymous"),
        Ff=NumberObject(FLAG_REQUIRED),
    )

    person = builder.field("person", FT=NameObject("/Tx"))
    builder.field("first", parent=person, widget=(1, (50, 600, 250, 620)), V=utf16("Zoë"))
    builder.field("email", parent=person, widget=(1, (50, 560, 250, 580)), Ff=NumberObject(FLAG_READ_ONLY))

    builder.field(
        "agree",
        widget=(0, (50, 650, 64, 664)),
        states=("On", "Off"),
        state="Off",
        FT=NameObject("/Btn"),
        V=NameObject("/Off"),
    )

    color = builder.field("color", FT=NameObject("/Btn"), Ff=NumberObject(FLAG_RADIO), V=NameObject("/Blue"))
    builder.widget(color, 0, (50, 620, 64, 634), states=("Red", "Off"), state="Off")
    builder.widget(color, 0, (80, 620, 94, 634), states=("Blue", "Off"), state="Blue")

    builder.field("submit", widget=(0, (300, 50, 380, 80)), FT=NameObject("/Btn"), Ff=NumberObject(FLAG_PUSHBUTTON))

    builder.field(
        "country",
        widget=(0, (50, 500, 200, 520)),
        FT=NameObject("/Ch"),
        Ff=NumberObject(FLAG_COMBO),
        Opt=ArrayObject(
            [
                ArrayObject([TextStringObject("us"), TextStringObject("United States")]),
                ArrayObject([TextStringObject("fr"), TextStringObject("France")]),
            ]
        ),
        V=TextStringObject("fr"),
    )
    builder.field(
        "fruit",
        widget=(0, (50, 450, 200, 490)),
        FT=NameObject("/Ch"),
        Opt=ArrayObject([TextStringObject(label) for label in ("Apple", "Banana", "Cherry")]),
    )
    builder.field("sig", widget=(1, (300, 100, 500, 150)), FT=NameObject("/Sig"))

    # Named but widgetless: never reported.
    builder.field("notes", FT=NameObject("/Tx"))

    builder.writer.add_metadata({"/Title": "Sample Form", "/Author": "Forms Team"})
    return builder


@pytest.fixture()
def sample_form_pdf(tmp_path: Path) -> Path:
    return build_sample_form().save(tmp_path / "sample_form.pdf")


@pytest.fixture()
def sample_form_bytes(sample_form_pdf: Path) -> bytes:
    return sample_form_pdf.read_bytes()


@pytest.fixture()
def encrypted_form_pdf(tmp_path: Path) -> Path:
    builder = build_sample_form()
    builder.writer.encrypt("secret")
    return builder.save(tmp_path / "encrypted_form.pdf")


@pytest.fixture()
def no_form_pdf(tmp_path: Path) -> Path:
    writer = PdfWriter()
    writer.add_blank_page(width=PAGE_SIZE[0], height=PAGE_SIZE[1])
    path = tmp_path / "no_form.pdf"
    with path.open("wb") as handle:
        writer.write(handle)
    return path


@pytest.fixture()
def cyclic_form_pdf(tmp_path: Path) -> Path:
    builder = FormBuilder(pages=1)

    outer = builder.field("a", FT=NameObject("/Tx"))
    inner = builder.field("b", parent=outer)
    builder.widget(inner, 0, (10, 10, 110, 30))
    inner.get_object()["/Kids"].append(outer)

    loop = builder.field("loop", widget=(0, (10, 50, 110, 70)), FT=NameObject("/Tx"))
    loop.get_object()[NameObject("/Kids")] = ArrayObject([loop])

    return builder.save(tmp_path / "cyclic_form.pdf")


@pytest.fixture()
def raw_utf8_name_pdf(tmp_path: Path) -> Path:
    builder = FormBuilder(pages=1)
    builder.field(
        ByteStringObject("Café".encode("utf-8")),
        widget=(0, (10, 10, 110, 30)),
        FT=NameObject("/Tx"),
        V=TextStringObject("espresso"),
    )
    return builder.save(tmp_path / "raw_utf8_name.pdf")


@pytest.fixture()
def reportlab_form_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "reportlab_form.pdf"
    report = canvas.Canvas(str(path), pagesize=PAGE_SIZE)
    report.drawString(72, 740, "Membership application")
    form = report.acroForm
    form.textfield(name="fullname", value="Jane Roe", x=72, y=700, width=200, height=20)
    form.checkbox(name="subscribe", checked=False, x=72, y=650, size=14)
    form.choice(name="size", value="M", options=["S", "M", "L"], x=72, y=600, width=100, height=20)
    form.radio(name="plan", value="basic", selected=True, x=72, y=550, size=14)
    form.radio(name="plan", value="pro", selected=False, x=120, y=550, size=14)
    report.showPage()
    report.save()
    return path


@pytest.fixture()
def malformed_form_pdf(tmp_path: Path) -> Path:
    builder = FormBuilder(pages=1)
    builder.field("odd_flags", widget=(0, (10, 10, 110, 30)), FT=NameObject("/Tx"), Ff=NameObject("/Oops"))
    builder.field(
        "odd_selection",
        widget=(0, (10, 50, 110, 70)),
        FT=NameObject("/Ch"),
        Opt=ArrayObject([TextStringObject("x"), TextStringObject("y")]),
        I=ArrayObject([TextStringObject("x"), NumberObject(1)]),
    )
    return builder.save(tmp_path / "malformed_form.pdf")


@pytest.fixture()
def deep_form_pdf(tmp_path: Path) -> Path:
    builder = FormBuilder(pages=1)
    parent = None
    for level in range(5):
        rect = (10, 10 + 30 * level, 110, 30 + 30 * level)
        parent = builder.field(f"l{level}", parent=parent, widget=(0, rect), FT=NameObject("/Tx"))
    return builder.save(tmp_path / "deep_form.pdf")
