# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Flatten interactive forms into static page content."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pikepdf import (
    ContentStreamInstruction,
    Dictionary,
    Matrix,
    Name,
    Operator,
    Page,
    Rectangle,
    Stream,
    parse_content_stream,
)

from pikeforms.canvas import ContentStreamBuilder
from pikeforms.fields import Field
from pikeforms.widget import Widget, same_object

if TYPE_CHECKING:
    from pikeforms.form import Form

log = logging.getLogger(__name__)

_RESOURCE_TYPES = (
    Name.Font,
    Name.XObject,
    Name.ExtGState,
    Name.Shading,
    Name.ColorSpace,
    Name.Pattern,
    Name.Properties,
)

# Operators with a resource name operand, and the type of resource named
_RESOURCE_OPERATORS = {
    Operator('Tf'): Name.Font,
    Operator('Do'): Name.XObject,
    Operator('gs'): Name.ExtGState,
    Operator('sh'): Name.Shading,
    Operator('cs'): Name.ColorSpace,
    Operator('CS'): Name.ColorSpace,
    Operator('BDC'): Name.Properties,
    Operator('DP'): Name.Properties,
}
_PATTERN_OPERATORS = {Operator('scn'), Operator('SCN')}


class _Flattener:
    """Bakes widget appearances into the pages of one form."""

    def __init__(self, form: Form):
        self.form = form
        self.pdf = form.pdf
        self._isolated_pages: set[tuple[int, int]] = set()

    def flatten(self):
        for field in list(self.form.fields):
            self.flatten_field(field)
        if Name.AcroForm in self.pdf.Root:
            del self.pdf.Root.AcroForm

    def flatten_field(self, field: Field):
        log.debug(f'Flattening {field.fully_qualified_name}')
        for widget in field.widgets:
            if widget.is_hidden:
                log.debug(f'Removing hidden widget of {field.fully_qualified_name}')
            else:
                page = widget.page
                if page is not None and widget.has_area:
                    self._render_widget(page, field, widget)
            widget.detach()
            _remove_kid(field.obj, widget.obj)
        for child in field.children:
            self.flatten_field(child)
        field.refresh()

    def _render_widget(self, page: Page, field: Field, widget: Widget):
        appearance = widget.current_appearance()
        if appearance is not None:
            self._merge_field_font(page, field)
            self._render_appearance(page, widget, appearance)
        elif widget.appearance_dict is None:
            self._paint_colors(page, widget)

    def _isolate(self, page: Page):
        """Protect added content from graphics state left over by the page."""
        key = page.obj.objgen
        if key in self._isolated_pages:
            return
        page.contents_add(self.pdf.make_stream(b'q\n'), prepend=True)
        page.contents_add(self.pdf.make_stream(b'Q\n'))
        self._isolated_pages.add(key)

    def _append(self, page: Page, content: ContentStreamBuilder):
        self._isolate(page)
        page.contents_add(self.pdf.make_stream(content.build()))

    def _merge_field_font(self, page: Page, field: Field):
        """Copy the font named by the field's default appearance into the page."""
        try:
            font = field.font
        except (ValueError, LookupError, TypeError, AttributeError) as e:
            log.debug(f'No font to merge for {field.fully_qualified_name}: {e}')
            return
        fonts = page.resources.get(Name.Font)
        if fonts is not None and font.resource_name in fonts:
            return
        dr_fonts = self.form.default_resources.get(Name.Font, Dictionary())
        data = dr_fonts.get(font.resource_name)
        if data is not None:
            page.add_resource(data, Name.Font, font.resource_name)

    def _merge_resources(
        self, page: Page, resources: Dictionary | None
    ) -> dict[tuple[Name, Name], Name]:
        """Add an appearance stream's resources to the page, under fresh names."""
        renamed: dict[tuple[Name, Name], Name] = {}
        if resources is None:
            return renamed
        for res_type in _RESOURCE_TYPES:
            entries = resources.get(res_type)
            if not isinstance(entries, Dictionary):
                continue
            for key in entries.keys():
                name = Name(key)
                new_name = page.add_resource(
                    entries[name], res_type, prefix=str(name)[1:]
                )
                renamed[(res_type, name)] = new_name
        return renamed

    def _render_appearance(self, page: Page, widget: Widget, appearance: Stream):
        """Draw an appearance stream's operators at the widget's rectangle."""
        rect = widget.rect
        bbox = Rectangle(appearance.get(Name.BBox, rect.as_array()))
        matrix = Matrix()
        if Name.Matrix in appearance:
            matrix = Matrix(*(float(v) for v in appearance.Matrix))
        # Map the transformed bounding box onto the annotation rectangle
        placed = matrix.transform(bbox)
        sx = rect.width / placed.width if placed.width else 1.0
        sy = rect.height / placed.height if placed.height else 1.0
        fit = Matrix(
            sx, 0, 0, sy, rect.llx - placed.llx * sx, rect.lly - placed.lly * sy
        )

        renamed = self._merge_resources(page, appearance.get(Name.Resources))
        instructions = [
            _rename_operands(inst, renamed)
            for inst in parse_content_stream(appearance)
        ]
        cs = ContentStreamBuilder()
        cs.push()
        cs.cm(matrix @ fit)
        cs.append_rectangle(bbox.llx, bbox.lly, bbox.width, bbox.height).clip()
        cs.append_instructions(instructions)
        cs.pop()
        self._append(page, cs)

    def _paint_colors(self, page: Page, widget: Widget):
        """Paint background and border for widgets that have no appearance at all."""
        back, border = widget.back_color, widget.border_color
        if back.is_empty and border.is_empty:
            return
        rect = widget.rect
        cs = ContentStreamBuilder()
        cs.push()
        cs.cm(Matrix().translated(rect.llx, rect.lly))
        if not back.is_empty:
            cs.set_fill_color(back).append_rectangle(0, 0, rect.width, rect.height)
            cs.fill()
        bw = widget.border_width
        if not border.is_empty and bw > 0:
            cs.set_stroke_color(border).set_line_width(bw)
            cs.append_rectangle(bw / 2, bw / 2, rect.width - bw, rect.height - bw)
            cs.stroke()
        cs.pop()
        self._append(page, cs)


def _rename_operands(
    inst: ContentStreamInstruction, renamed: dict[tuple[Name, Name], Name]
):
    if not renamed or not isinstance(inst, ContentStreamInstruction):
        return inst
    operands = list(inst.operands)
    if inst.operator in _RESOURCE_OPERATORS:
        res_type = _RESOURCE_OPERATORS[inst.operator]
        index = 1 if inst.operator in (Operator('BDC'), Operator('DP')) else 0
    elif inst.operator in _PATTERN_OPERATORS:
        res_type, index = Name.Pattern, len(operands) - 1
    else:
        return inst
    if not 0 <= index < len(operands) or not isinstance(operands[index], Name):
        return inst
    new_name = renamed.get((res_type, operands[index]))
    if new_name is None:
        return inst
    operands[index] = new_name
    return ContentStreamInstruction(operands, inst.operator)


def _remove_kid(parent: Dictionary, kid: Dictionary):
    if same_object(parent, kid):
        return
    kids = parent.get(Name.Kids)
    if kids is None:
        return
    for index in reversed(range(len(kids))):
        if same_object(kids[index], kid):
            del kids[index]


def flatten_form(form: Form):
    """Draw every visible widget into its page and remove the interactive form.

    Fields are visited depth first. Each widget's current normal appearance is
    copied into the page content at the widget's rectangle. Widgets that are hidden
    or not meant for display are dropped without being drawn. Afterwards the widgets
    are gone from the page annotations and the form is removed from the document
    catalog.

    Objects that are no longer referenced are dropped when the PDF is saved.
    """
    _Flattener(form).flatten()


__all__ = ['flatten_form']
