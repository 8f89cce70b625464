"""Form field model definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pdffiller.config import UNKNOWN_PAGE_INDEX


class FieldType(str, Enum):
    """Field type as exposed to callers."""

    UNKNOWN = "unknown"
    TEXT = "text"
    BUTTON = "button"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    CHOICE = "choice"
    SIGNATURE = "signature"

    @classmethod
    def from_string(cls, tag: str) -> FieldType:
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class FieldKind(str, Enum):
    """Field kind as declared by the /FT entry of the field dictionary."""

    UNKNOWN = "unknown"
    TEXT = "text"
    BUTTON = "button"
    CHOICE = "choice"
    SIGNATURE = "signature"

    @classmethod
    def from_pdf_name(cls, name: str | None) -> FieldKind:
        return _KIND_BY_PDF_NAME.get(name or "", cls.UNKNOWN)


_KIND_BY_PDF_NAME = {
    "/Tx": FieldKind.TEXT,
    "/Btn": FieldKind.BUTTON,
    "/Ch": FieldKind.CHOICE,
    "/Sig": FieldKind.SIGNATURE,
}


class ButtonKind(str, Enum):
    PUSH = "push"
    CHECKBOX = "checkbox"
    RADIO = "radio"


@dataclass(slots=True)
class FieldRecord:
    name: str
    full_name: str
    field_type: FieldType
    value: str = ""
    default_value: str = ""
    read_only: bool = False
    required: bool = False
    page_index: int = UNKNOWN_PAGE_INDEX
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    options: list[str] = field(default_factory=list)
    export_value: str = ""
    is_checked: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Mapping with the camelCase keys used by JSON consumers."""
        return {
            "name": self.name,
            "fullName": self.full_name,
            "value": self.value,
            "defaultValue": self.default_value,
            "type": self.field_type.value,
            "readOnly": self.read_only,
            "required": self.required,
            "pageIndex": self.page_index,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "options": list(self.options),
            "exportValue": self.export_value,
            "isChecked": self.is_checked,
        }
