# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Resolve field dictionaries to typed field views."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pikepdf import Dictionary, FormFieldFlag, Name

from pikeforms.fields import (
    CheckBoxField,
    ComboBoxField,
    Field,
    GenericField,
    ListBoxField,
    PushButtonField,
    RadioButtonField,
    SignatureField,
    TextField,
    inherited_value,
)

if TYPE_CHECKING:
    from pikeforms.form import Form

log = logging.getLogger(__name__)

_RADIO_FLAGS = int(FormFieldFlag.btn_radio) | int(FormFieldFlag.btn_radios_in_unison)


def _field_type(obj: Dictionary) -> Name | None:
    ft = obj.get(Name.FT)
    if ft is not None:
        return ft
    kids = obj.get(Name.Kids, ())
    if any(
        Name.Subtype not in kid or Name.FT in kid or Name.T in kid for kid in kids
    ):
        # Containers only take a type from their own /FT
        return None
    return inherited_value(obj, Name.FT)


def _classify_button(form: Form, obj: Dictionary, flags: int) -> type[Field]:
    if flags & int(FormFieldFlag.btn_pushbutton):
        return PushButtonField
    if flags & _RADIO_FLAGS:
        return RadioButtonField
    # Without flags, several widgets with distinct on states form a radio group,
    # while repeated on states are copies of one checkbox.
    tentative = RadioButtonField(form, obj)
    options = tentative.options
    if len(options) >= 2 and len(set(options)) == len(options):
        log.debug(f'{tentative.fully_qualified_name}: distinct on states, radio group')
        return RadioButtonField
    return CheckBoxField


def field_class(form: Form, obj: Dictionary) -> type[Field]:
    """Decide which field view class represents *obj*."""
    ft = _field_type(obj)
    flags = int(inherited_value(obj, Name.Ff) or 0)
    if ft == Name.Btn:
        return _classify_button(form, obj, flags)
    if ft == Name.Ch:
        if flags & int(FormFieldFlag.ch_combo):
            return ComboBoxField
        return ListBoxField
    if ft == Name.Tx:
        return TextField
    if ft == Name.Sig:
        return SignatureField
    return GenericField


def classify(form: Form, obj: Dictionary | Field) -> Field:
    """Return the typed view of a field dictionary.

    Classification happens once per indirect object; later calls return the same
    view, wrapping the very same dictionary. Passing a view returns it unchanged.
    """
    if isinstance(obj, Field):
        return obj
    registry = form._registry
    key = obj.objgen if obj.is_indirect else None
    if key is not None and key in registry:
        return registry[key]
    cls = field_class(form, obj)
    field = cls(form, obj)
    if key is not None:
        registry[key] = field
    return field


__all__ = ['classify', 'field_class']
