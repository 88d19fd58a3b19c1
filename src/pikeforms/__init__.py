# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Fill, generate appearances for, and flatten interactive PDF forms."""

# isort:skip_file

from __future__ import annotations

from pikeforms._version import __version__

from pikeforms.exceptions import (
    FormError,
    FormatError,
    RangeError,
    ReadOnlyFieldError,
    UnsupportedValueError,
)
from pikeforms.canvas import (
    BLACK,
    BLUE,
    DARKBLUE,
    EMPTY,
    GRAY,
    GREEN,
    RED,
    WHITE,
    Color,
    ColorSpace,
)
from pikeforms.fonts import DefaultAppearance, FieldFont
from pikeforms.widget import Widget
from pikeforms.fields import (
    CheckBoxField,
    ChoiceField,
    ComboBoxField,
    Field,
    FieldKind,
    GenericField,
    ListBoxField,
    PushButtonField,
    RadioButtonField,
    SignatureField,
    TextAlignment,
    TextField,
)
from pikeforms.classify import classify
from pikeforms.appearance import AppearanceGenerator
from pikeforms.flatten import flatten_form
from pikeforms.form import Form

from pikeforms import settings

__all__ = [
    'AppearanceGenerator',
    'BLACK',
    'BLUE',
    'CheckBoxField',
    'ChoiceField',
    'Color',
    'ColorSpace',
    'ComboBoxField',
    'DARKBLUE',
    'DefaultAppearance',
    'EMPTY',
    'Field',
    'FieldFont',
    'FieldKind',
    'Form',
    'FormError',
    'FormatError',
    'GRAY',
    'GREEN',
    'GenericField',
    'ListBoxField',
    'PushButtonField',
    'RED',
    'RadioButtonField',
    'RangeError',
    'ReadOnlyFieldError',
    'SignatureField',
    'TextAlignment',
    'TextField',
    'UnsupportedValueError',
    'WHITE',
    'Widget',
    'classify',
    'flatten_form',
    'settings',
]
