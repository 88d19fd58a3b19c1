# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Exceptions raised by pikeforms.

Structural problems (a dictionary that is not what it claims to be, an index outside
the valid range, a value the field cannot represent) are raised immediately. Problems
found while *inferring* presentation details, such as the font of a field, are never
raised; they are logged and defaults are used instead.
"""

from __future__ import annotations


class FormError(Exception):
    """Base class for all errors raised by pikeforms."""


class FormatError(FormError, ValueError):
    """A form dictionary does not have the shape required by the operation.

    Raised when a widget annotation lacks the ``/Subtype /Widget`` marker, or when an
    array of export values does not match the number of options.
    """


class ReadOnlyFieldError(FormatError):
    """A value was assigned to a field flagged read-only."""


class RangeError(FormError, IndexError):
    """An index is outside the range of valid options."""


class UnsupportedValueError(FormError, TypeError):
    """A value was assigned whose type cannot be represented by the field."""


__all__ = [
    'FormError',
    'FormatError',
    'RangeError',
    'ReadOnlyFieldError',
    'UnsupportedValueError',
]
