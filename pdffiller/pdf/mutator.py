"""Type-dispatched setters for AcroForm field values.

Setters write the value representation of the field's underlying kind and
flag the form with ``/NeedAppearances`` so the next viewer regenerates widget
appearances. No appearance streams are synthesized here.
"""

from __future__ import annotations

import logging

from pypdf.generic import ArrayObject, BooleanObject, DictionaryObject, NameObject, NumberObject

from pdffiller.config import DEFAULT_ON_STATE, FALSE_VALUES, OFF_STATE
from pdffiller.exceptions import TypeMismatchError, ValueNotInDomainError
from pdffiller.model.field import ButtonKind, FieldKind
from pdffiller.pdf.importer import FieldNode, choice_options
from pdffiller.pdf.strings import to_text_string_object

LOGGER = logging.getLogger("pdffiller.mutator")


def parse_checked(value: str) -> bool:
    return value not in FALSE_VALUES


def set_field_value(acroform: DictionaryObject | None, node: FieldNode, value: str) -> None:
    """Set ``value`` according to the node's declared kind.

    Raises:
        TypeMismatchError: the kind has no settable value.
        ValueNotInDomainError: a choice field has no option labelled ``value``.
    """
    if node.kind is FieldKind.TEXT:
        set_text_value(acroform, node, value)
    elif node.kind is FieldKind.CHOICE:
        set_choice_value(acroform, node, value)
    elif node.kind is FieldKind.BUTTON:
        set_button_state(acroform, node, parse_checked(value))
    else:
        raise TypeMismatchError(f"Unsupported field type for setValue: {node.full_name}")


def set_text_value(acroform: DictionaryObject | None, node: FieldNode, value: str) -> None:
    if node.kind is not FieldKind.TEXT:
        raise TypeMismatchError(f"Field is not a text field: {node.full_name}")
    node.obj[NameObject("/V")] = to_text_string_object(value)
    _request_appearances(acroform)
    LOGGER.debug("Set text field %s", node.full_name)


def set_choice_value(acroform: DictionaryObject | None, node: FieldNode, value: str) -> None:
    if node.kind is not FieldKind.CHOICE:
        raise TypeMismatchError(f"Field is not a choice field: {node.full_name}")

    for option_index, (_, label, export_obj) in enumerate(choice_options(node)):
        if label == value:
            node.obj[NameObject("/V")] = export_obj if export_obj is not None else to_text_string_object(value)
            node.obj[NameObject("/I")] = ArrayObject([NumberObject(option_index)])
            _request_appearances(acroform)
            LOGGER.debug("Selected option %d of choice field %s", option_index, node.full_name)
            return

    raise ValueNotInDomainError(f"Value not in choice options: {value}")


def set_button_state(acroform: DictionaryObject | None, node: FieldNode, checked: bool) -> None:
    if node.kind is not FieldKind.BUTTON:
        raise TypeMismatchError(f"Field is not a button field: {node.full_name}")
    if node.button_kind is ButtonKind.PUSH:
        return

    on_state = node.widgets[0].on_state if node.widgets else ""
    state = (on_state or DEFAULT_ON_STATE) if checked else OFF_STATE
    state_name = NameObject(f"/{state}")

    node.obj[NameObject("/V")] = state_name
    for widget in node.widgets:
        states = widget.states
        if not states or state in states:
            widget.annotation[NameObject("/AS")] = state_name
        else:
            widget.annotation[NameObject("/AS")] = NameObject(f"/{OFF_STATE}")
    _request_appearances(acroform)
    LOGGER.debug("Set %s %s to %s", node.button_kind.value, node.full_name, state)


def _request_appearances(acroform: DictionaryObject | None) -> None:
    if acroform is not None:
        acroform[NameObject("/NeedAppearances")] = BooleanObject(True)
