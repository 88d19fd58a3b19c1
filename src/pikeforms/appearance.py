# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Appearance stream synthesis for form fields.

Viewers draw a widget from its appearance stream, not from the field value, so a
field whose value changed needs a new appearance before the document is saved. The
:class:`AppearanceGenerator` here is used by :class:`pikeforms.form.Form` to create
them. Generation is lazy: fields are only marked dirty as they change, and appearances
are produced in one pass just before saving.

Generating appearance streams for variable text is not trivial. Section 12.7.4.3 of
the PDF 2.0 specification (Variable text) lays out how this is to be done. These
implementations were useful references:

* https://github.com/mozilla/pdf.js/blob/2c87c4854a486d5cd0731b947dd622f8abe5e1b5/src/core/annotation.js#L2138
* https://github.com/qpdf/qpdf/blob/81823f4032caefd1050bccb207d315839c1c48db/libqpdf/QPDFFormFieldObjectHelper.cc#L746
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from pikepdf import Matrix, Name, String

from pikeforms.canvas import Color, ContentStreamBuilder, FormSurface, form_xobject
from pikeforms.fields import (
    CheckBoxField,
    ComboBoxField,
    Field,
    FieldKind,
    ListBoxField,
    PushButtonField,
    RadioButtonField,
    SignatureField,
    TextAlignment,
    TextField,
)
from pikeforms.fonts import FieldFont
from pikeforms.widget import Widget

if TYPE_CHECKING:
    from pikeforms.form import Form

log = logging.getLogger(__name__)

_LINE_SPACING = 1.2
_TEXT_PADDING = 2.0
_PASSWORD_MASK = '•'


def content_box(widget: Widget) -> tuple[float, float, Matrix | None]:
    """Return the size of a widget's appearance and the matrix that rotates it.

    The appearance of a widget rotated by 90 or 270 degrees is drawn in a box with
    width and height exchanged, which the matrix maps back onto the widget rectangle.
    No matrix is needed for unrotated widgets or widgets with the NoRotate flag.
    """
    rect = widget.rect
    w, h = max(1.0, rect.width), max(1.0, rect.height)
    rotation = 0 if widget.no_rotate else widget.rotation
    if rotation == 90:
        return h, w, Matrix(0, 1, -1, 0, w, 0)
    if rotation == 180:
        return w, h, Matrix(-1, 0, 0, -1, w, h)
    if rotation == 270:
        return h, w, Matrix(0, -1, 1, 0, 0, h)
    return w, h, None


def _draw_frame(content: ContentStreamBuilder, widget: Widget, w: float, h: float):
    """Paint the background and border of a widget, as given by ``/MK``."""
    bw = widget.border_width
    has_border = not widget.border_color.is_empty and bw > 0
    if widget.back_color.is_empty and not has_border:
        return
    content.push()
    if not widget.back_color.is_empty:
        content.set_fill_color(widget.back_color)
        content.append_rectangle(0, 0, w, h).fill()
    if has_border:
        content.set_stroke_color(widget.border_color).set_line_width(bw)
        content.append_rectangle(bw / 2, bw / 2, w - bw, h - bw).stroke()
    content.pop()


@contextmanager
def _text_stream_builder(
    content: ContentStreamBuilder, font: FieldFont, color: Color, w: float, h: float
) -> Generator[ContentStreamBuilder]:
    """Bracket variable text content.

    Example:

    .. code-block:: python

        with _text_stream_builder(surface.content, font, color, w, h) as cs:
            cs.move_cursor(2, 5)
            cs.show_text(b'some text')

    The text is clipped to the box inside the border, and the whole block is marked
    as ``/Tx`` content, which some viewers require before they will show it.
    """
    content.begin_marked_content(Name.Tx)
    content.push()
    content.append_rectangle(1, 1, max(0.0, w - 2), max(0.0, h - 2)).clip()
    content.begin_text()
    content.set_text_font(font.resource_name, font.size)
    content.set_fill_color(color)
    yield content
    content.end_text()
    content.pop()
    content.end_marked_content()


def _baseline_centered(font: FieldFont, h: float) -> float:
    return (h - font.ascent - font.descent) / 2


def _aligned_x(
    font: FieldFont, text: str, w: float, alignment: TextAlignment, padding: float
) -> float:
    if alignment == TextAlignment.CENTER:
        return (w - font.text_width(text)) / 2
    if alignment == TextAlignment.RIGHT:
        return w - padding - font.text_width(text)
    return padding


def _layout_single_line(
    content: ContentStreamBuilder,
    text: str,
    font: FieldFont,
    w: float,
    h: float,
    alignment: TextAlignment,
):
    """Show one line of text, aligned horizontally and centered vertically."""
    x = _aligned_x(font, text, w, alignment, _TEXT_PADDING)
    content.move_cursor(x, _baseline_centered(font, h))
    content.show_text(font.encode(text))


def _wrap_lines(text: str, font: FieldFont, width: float) -> list[str]:
    lines = []
    space = font.text_width(' ')
    for paragraph in text.splitlines() or ['']:
        line_words: list[str] = []
        line_width = 0.0
        for word in paragraph.split():
            word_width = font.text_width(word)
            if line_words and line_width + space + word_width > width:
                lines.append(' '.join(line_words))
                line_words, line_width = [word], word_width
            else:
                line_width += word_width + (space if line_words else 0)
                line_words.append(word)
        lines.append(' '.join(line_words))
    return lines


def _layout_multiline_text(
    content: ContentStreamBuilder, text: str, font: FieldFont, w: float, h: float
):
    r"""Lay out the given text from the top left, wrapping at the edges of the box.

    Known issues:

    * Text may overflow out the bottom of the box; it is clipped there.
    * Words which are longer than the box width overflow out the right side.
    * Lines only break at whitespace or ``\n``.
    """
    leading = font.size * _LINE_SPACING
    content.set_text_leading(leading)
    content.move_cursor(_TEXT_PADDING, h - _TEXT_PADDING - font.ascent)
    for lineno, line in enumerate(_wrap_lines(text, font, w - 2 * _TEXT_PADDING)):
        if lineno != 0:
            content.move_cursor_new_line()
        if line:
            content.show_text(font.encode(line))


def _layout_combed_text(
    content: ContentStreamBuilder,
    text: str,
    font: FieldFont,
    w: float,
    h: float,
    max_length: int,
):
    """Lay out text with one character centered in each of *max_length* cells."""
    comb = w / max_length
    # Kerning is in thousandths of text space, and moves left when positive
    comb_gs = comb * 1000 / font.size
    parts: list[bytes | float] = []
    last = 0.0
    for char in text[:max_length]:
        char_gs = font.text_width(char, 1000)
        space_needed = (char_gs - comb_gs) / 2
        parts.append(last + space_needed)
        parts.append(font.encode(char))
        last = space_needed
    content.move_cursor(0, _baseline_centered(font, h))
    content.show_text_with_kerning(*parts)


def _state_streams(surfaces: dict[Name, FormSurface]) -> dict[Name, object]:
    return {name: surface.stream for name, surface in surfaces.items()}


class AppearanceGenerator:
    """Creates appearance streams for the widgets of form fields.

    There is one method per field kind. You may extend this class to customize
    appearance streams, and pass the subclass to :class:`pikeforms.form.Form`.

    Widgets without a rectangle, or with an empty one, are skipped. Generating twice
    replaces the appearance created the first time.
    """

    form: Form

    def __init__(self, form: Form):
        self.form = form

    @property
    def pdf(self):
        return self.form.pdf

    def generate(self, field: Field):
        """Generate the appearance of *field* according to its kind."""
        generators = {
            FieldKind.TEXT: self.generate_text,
            FieldKind.CHECK_BOX: self.generate_check_box,
            FieldKind.RADIO_BUTTON: self.generate_radio_button,
            FieldKind.COMBO_BOX: self.generate_combo_box,
            FieldKind.LIST_BOX: self.generate_list_box,
            FieldKind.PUSH_BUTTON: self.generate_push_button,
            FieldKind.SIGNATURE: self.generate_signature,
        }
        generator = generators.get(field.kind)
        if generator is None:
            return
        log.debug(f'Generating appearance of {field.fully_qualified_name}')
        generator(field)

    def _placed_widgets(self, field: Field):
        for widget in field.widgets:
            if widget.has_area:
                yield widget
            else:
                log.debug(f'Skipping widget without area: {field.fully_qualified_name}')

    def _text_font(self, field: Field, text: str = '') -> tuple[FieldFont, Color]:
        """Font and color for variable text, creating a default appearance if needed.

        Text the font cannot encode switches the font to its composite variant.
        """
        font, color = field.font, field.fore_color
        if not font.can_encode(text):
            font = font.as_unicode()
        if field._inherited(Name.DA) is None or font.unicode:
            field.obj.DA = String(font.default_appearance(color))
        return font, color

    def _use_font(self, surface: FormSurface, font: FieldFont):
        surface.add_font(font.resource_name, self.form.register_font(font))

    def display_text(self, field: TextField) -> str:
        """The text shown in a text field's appearance."""
        text = field.value
        max_length = field.max_length
        if (
            max_length is not None
            and max_length > 0
            and len(text) > max_length
            and not self.form.ignore_max_length
        ):
            log.warning(
                f'Text of {field.fully_qualified_name} truncated to {max_length} '
                'characters'
            )
            text = text[:max_length]
        if field.password:
            text = _PASSWORD_MASK * len(text)
        return text

    def generate_text(self, field: TextField):
        """Generate the appearance stream for a text field."""
        text = self.display_text(field)
        font, color = self._text_font(field, text)
        max_length = field.max_length or 0
        for widget in self._placed_widgets(field):
            w, h, matrix = content_box(widget)
            with form_xobject(self.pdf, w, h, matrix=matrix) as surface:
                w, h = surface.width, surface.height
                _draw_frame(surface.content, widget, w, h)
                self._use_font(surface, font)
                with _text_stream_builder(surface.content, font, color, w, h) as cs:
                    if field.multiline:
                        _layout_multiline_text(cs, text, font, w, h)
                    elif field.comb and max_length > 0:
                        _layout_combed_text(cs, text, font, w, h, max_length)
                    elif text:
                        _layout_single_line(
                            cs, text, font, w, h, field.text_alignment
                        )
            widget.set_normal_appearance(surface.stream)

    def generate_check_box(self, field: CheckBoxField):
        """Set the appearance state of a checkbox, creating its appearance if needed.

        Existing appearances are kept, and only their state is switched.
        """
        checked = field.checked
        for widget in self._placed_widgets(field):
            if widget.appearance_dict is not None:
                widget.appearance_state = (
                    (widget.on_state or field.on_value) if checked else Name.Off
                )
                continue
            self.create_check_box_appearance(field, widget)
            widget.appearance_state = Name.Yes if checked else Name.Off

    def create_check_box_appearance(self, field: Field, widget: Widget):
        """Draw the ``/Off`` (border) and ``/Yes`` (border and cross) states."""
        w, h = widget.rect.width, widget.rect.height
        color = field.fore_color
        with form_xobject(self.pdf, w, h) as off:
            _draw_frame(off.content, widget, off.width, off.height)
        with form_xobject(self.pdf, w, h) as on:
            w, h = on.width, on.height
            _draw_frame(on.content, widget, w, h)
            pad = 2
            cs = on.content
            cs.push().set_stroke_color(color).set_line_width(2).set_line_cap(1)
            cs.line(pad, pad, w - pad, h - pad).stroke()
            cs.line(pad, h - pad, w - pad, pad).stroke()
            cs.pop()
        widget.set_normal_appearance(
            _state_streams({Name.Yes: on, Name.Off: off})
        )

    def create_radio_appearance(
        self, field: RadioButtonField, widget: Widget, on_state: Name
    ):
        """Draw the ``/Off`` (circle) and on (circle and dot) states of a button."""
        if not widget.has_area:
            return
        w, h = widget.rect.width, widget.rect.height
        color = field.fore_color
        border = widget.border_color
        bw = widget.border_width

        def circle(surface: FormSurface):
            sw, sh = surface.width, surface.height
            cs = surface.content
            cs.push()
            if not widget.back_color.is_empty:
                cs.set_fill_color(widget.back_color)
                cs.append_ellipse(0, 0, sw, sh).fill()
            if not border.is_empty and bw > 0:
                cs.set_stroke_color(border).set_line_width(bw)
                cs.append_ellipse(bw / 2, bw / 2, sw - bw, sh - bw).stroke()
            cs.pop()

        with form_xobject(self.pdf, w, h) as off:
            circle(off)
        with form_xobject(self.pdf, w, h) as on:
            circle(on)
            sw, sh = on.width, on.height
            cs = on.content
            cs.push().set_fill_color(color)
            cs.append_ellipse(sw / 4, sh / 4, sw / 2, sh / 2).fill()
            cs.pop()
        widget.set_normal_appearance(
            _state_streams({Name(on_state): on, Name.Off: off})
        )

    def generate_radio_button(self, field: RadioButtonField):
        """Apply the selection of a radio button group to its widgets' states."""
        for widget in self._placed_widgets(field):
            if widget.appearance_dict is None:
                log.warning(
                    f'Radio button of {field.fully_qualified_name} has no appearance '
                    'and no on state; it will not be visible'
                )
        field.apply_selection()

    def generate_list_box(self, field: ListBoxField):
        """Generate the appearance stream for a list box."""
        options = field.options
        font, color = self._text_font(field, ''.join(options))
        selected = set(field.selected_indices)
        highlight, highlight_text = field.highlight_color, field.highlight_text_color
        for widget in self._placed_widgets(field):
            w, h, matrix = content_box(widget)
            with form_xobject(self.pdf, w, h, matrix=matrix) as surface:
                w, h = surface.width, surface.height
                cs = surface.content
                _draw_frame(cs, widget, w, h)
                self._use_font(surface, font)
                line_height = font.size * _LINE_SPACING
                visible = int(h / line_height)
                start = max(0, min(field.top_index, len(options) - visible))
                cs.begin_marked_content(Name.Tx)
                cs.push()
                cs.append_rectangle(1, 1, max(0.0, w - 2), max(0.0, h - 2)).clip()
                row = 0
                for index in range(start, len(options)):
                    text = options[index]
                    if not text:
                        continue
                    top = h - 1 - row * line_height
                    if top < 0:
                        break
                    lly = top - (line_height - 1)
                    is_selected = index in selected
                    if is_selected:
                        cs.push().set_fill_color(highlight)
                        cs.append_rectangle(1, lly, w - 2, line_height - 1).fill()
                        cs.pop()
                    cs.begin_text()
                    cs.set_text_font(font.resource_name, font.size)
                    cs.set_fill_color(highlight_text if is_selected else color)
                    x = 1 + _aligned_x(
                        font, text, w - 2, field.text_alignment, _TEXT_PADDING
                    )
                    y = lly + _baseline_centered(font, line_height - 1)
                    cs.move_cursor(x, y)
                    cs.show_text(font.encode(text))
                    cs.end_text()
                    row += 1
                cs.pop()
                cs.end_marked_content()
            widget.set_normal_appearance(surface.stream)

    def generate_combo_box(self, field: ComboBoxField):
        """Generate the appearance of a combo box: its current value on one line."""
        text = field.display_value
        font, color = self._text_font(field, text)
        for widget in self._placed_widgets(field):
            w, h, matrix = content_box(widget)
            with form_xobject(self.pdf, w, h, matrix=matrix) as surface:
                w, h = surface.width, surface.height
                _draw_frame(surface.content, widget, w, h)
                self._use_font(surface, font)
                with _text_stream_builder(surface.content, font, color, w, h) as cs:
                    if text:
                        _layout_single_line(
                            cs, text, font, w, h, field.text_alignment
                        )
            widget.set_normal_appearance(surface.stream)

    def generate_push_button(self, field: PushButtonField):
        """Draw background, border and caption of push buttons without appearance."""
        for widget in self._placed_widgets(field):
            if widget.appearance_dict is not None:
                continue
            font, color = field.font, field.fore_color
            w, h, matrix = content_box(widget)
            with form_xobject(self.pdf, w, h, matrix=matrix) as surface:
                w, h = surface.width, surface.height
                _draw_frame(surface.content, widget, w, h)
                caption = widget.caption
                if caption:
                    self._use_font(surface, font)
                    cs = surface.content
                    cs.begin_text()
                    cs.set_text_font(font.resource_name, font.size)
                    cs.set_fill_color(color)
                    _layout_single_line(cs, caption, font, w, h, TextAlignment.CENTER)
                    cs.end_text()
            widget.set_normal_appearance(surface.stream)

    def generate_signature(self, field: SignatureField):
        """Draw the border of unsigned signature fields without appearance."""
        for widget in self._placed_widgets(field):
            if widget.appearance_dict is not None:
                continue
            w, h, matrix = content_box(widget)
            with form_xobject(self.pdf, w, h, matrix=matrix) as surface:
                _draw_frame(surface.content, widget, surface.width, surface.height)
            widget.set_normal_appearance(surface.stream)


__all__ = ['AppearanceGenerator', 'content_box']
