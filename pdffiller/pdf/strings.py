"""Conversion between PDF text strings and Python ``str``.

PDF text strings are stored either in PDFDocEncoding or as UTF-16 with a
byte order mark (UTF-8 with a BOM is allowed since PDF 2.0). Field names,
values and option labels are exposed to callers as plain ``str``; values
written back are always encoded as UTF-16BE with a BOM so non-Latin text
survives every viewer.

Identifier lookups sometimes have to bypass the conversion entirely, which is
what :func:`raw_text_bytes` is for.
"""

from __future__ import annotations

import codecs
from typing import Any

from pypdf.generic import (
    IndirectObject,
    NullObject,
    TextStringObject,
    create_string_object,
)


def _resolve(value: Any) -> Any:
    if isinstance(value, IndirectObject):
        value = value.get_object()
    if isinstance(value, NullObject):
        return None
    return value


def raw_text_bytes(value: Any) -> bytes:
    """Return the bytes of a string object as stored in the file."""
    value = _resolve(value)
    if value is None:
        return b""
    if isinstance(value, TextStringObject):
        return value.original_bytes
    if isinstance(value, bytes):
        return bytes(value)
    return str(value).encode("utf-8")


def decode_text_string(value: Any) -> str:
    """Decode a PDF text string (or anything pypdf already decoded) to ``str``."""
    value = _resolve(value)
    if value is None:
        return ""

    data = raw_text_bytes(value)
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")

    if isinstance(value, str):
        return str(value)

    decoded = create_string_object(data)
    if isinstance(decoded, TextStringObject):
        return str(decoded)
    return data.decode("latin-1")


def encode_text_string(text: str) -> bytes:
    """Encode ``text`` as a UTF-16BE PDF text string with a byte order mark."""
    return codecs.BOM_UTF16_BE + text.encode("utf-16-be")


def to_text_string_object(text: str) -> TextStringObject:
    """Build a string object that pypdf writes back in its UTF-16 form."""
    return create_string_object(encode_text_string(text))


def decode_name(name: Any) -> str:
    """Return a PDF name without its leading slash (``/Yes`` -> ``Yes``)."""
    name = _resolve(name)
    if name is None:
        return ""
    text = str(name)
    return text[1:] if text.startswith("/") else text
