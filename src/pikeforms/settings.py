# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Process-wide defaults used when a form does not say otherwise.

These values are consulted when a field has no usable default appearance, and when
list boxes are drawn. Changing them affects appearances generated afterwards; existing
appearance streams are not touched.
"""

from __future__ import annotations

from pikeforms.canvas import Color

_default_font_size: float = 10.0
_default_font: tuple[str, str] = ('Helv', 'Helvetica')
_highlight_color: Color = Color((0.0, 0.0, 0.545))
_highlight_text_color: Color = Color((1.0,))


def get_default_font_size() -> float:
    """Return the font size used when a field does not define one."""
    return _default_font_size


def set_default_font_size(size: float) -> float:
    """Set the font size used when a field does not define one.

    Returns the previous value.
    """
    global _default_font_size
    if size <= 0:
        raise ValueError('Font size must be positive')
    previous, _default_font_size = _default_font_size, float(size)
    return previous


def get_default_font() -> tuple[str, str]:
    """Return ``(resource_name, base_font)`` of the fallback font."""
    return _default_font


def set_default_font(resource_name: str, base_font: str) -> tuple[str, str]:
    """Set the fallback font, e.g. ``('Cour', 'Courier')``.

    The base font should be one of the standard 14 fonts, since nothing is embedded.
    Returns the previous value.
    """
    global _default_font
    previous, _default_font = _default_font, (
        resource_name.lstrip('/'),
        base_font.lstrip('/'),
    )
    return previous


def get_list_highlight_colors() -> tuple[Color, Color]:
    """Return ``(background, text)`` colors for selected list box entries."""
    return _highlight_color, _highlight_text_color


def set_list_highlight_colors(background: Color, text: Color) -> None:
    """Set the colors used to draw selected list box entries."""
    global _highlight_color, _highlight_text_color
    _highlight_color, _highlight_text_color = background, text


__all__ = [
    'get_default_font',
    'get_default_font_size',
    'get_list_highlight_colors',
    'set_default_font',
    'set_default_font_size',
    'set_list_highlight_colors',
]
