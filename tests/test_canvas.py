# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import pytest
from pikepdf import (
    Array,
    Dictionary,
    Matrix,
    Name,
    Operator,
    Pdf,
    canvas,
    parse_content_stream,
)

from pikeforms import BLACK, EMPTY, RED, Color, ColorSpace
from pikeforms.canvas import ContentStreamBuilder, form_xobject


class TestColor:
    @pytest.mark.parametrize(
        'array, space',
        [
            ([], ColorSpace.EMPTY),
            ([0.5], ColorSpace.GRAY),
            ([1, 0, 0], ColorSpace.RGB),
            ([0, 0, 0, 1], ColorSpace.CMYK),
        ],
    )
    def test_from_array(self, array, space):
        assert Color.from_array(Array(array)).space == space

    def test_invalid_lengths(self):
        assert Color.from_array([1, 2]) is EMPTY
        assert Color.from_array(None) is EMPTY
        with pytest.raises(ValueError):
            Color((1.0, 2.0))

    def test_to_array(self):
        assert [float(v) for v in RED.to_array()] == [1, 0, 0]
        assert EMPTY.is_empty and not BLACK.is_empty


class TestContentStreamBuilder:
    def test_numbers_are_tidy(self):
        cs = ContentStreamBuilder()
        cs.move_cursor(2.0, 1 / 3)
        assert cs.build() == b'2 0.3333 Td\n'

    def test_chaining_and_parse(self):
        cs = ContentStreamBuilder()
        cs.push().set_fill_color(RED).append_rectangle(0, 0, 10, 5).fill().pop()
        pdf = Pdf.new()
        instructions = parse_content_stream(pdf.make_stream(cs.build()))
        assert [inst.operator for inst in instructions] == [
            Operator(op) for op in ('q', 'rg', 're', 'f', 'Q')
        ]

    def test_empty_color_emits_nothing(self):
        cs = ContentStreamBuilder()
        cs.set_fill_color(EMPTY).set_stroke_color(EMPTY)
        assert cs.build() == b''

    def test_marked_content_and_text(self):
        cs = ContentStreamBuilder()
        cs.begin_marked_content(Name.Tx).begin_text()
        cs.set_text_font(Name('/Helv'), 12).show_text(b'Hi').end_text()
        cs.end_marked_content()
        data = cs.build()
        assert data.startswith(b'/Tx BMC\nBT\n/Helv 12 Tf\n')
        assert b'(Hi)' in data
        assert data.endswith(b'ET\nEMC\n')

    def test_kerning(self):
        cs = ContentStreamBuilder()
        cs.show_text_with_kerning(b'a', -250.0, b'b')
        assert b'-250' in cs.build()

    def test_ellipse_is_closed(self):
        cs = ContentStreamBuilder()
        cs.append_ellipse(0, 0, 10, 10)
        data = cs.build()
        assert data.count(b' c\n') == 4
        assert data.startswith(b'10 5 m')
        assert data.endswith(b'h\n')

    def test_cm(self):
        cs = ContentStreamBuilder()
        cs.cm(Matrix().translated(5, 7))
        assert cs.build() == b'1 0 0 1 5 7 cm\n'

    def test_extends_pikepdf_builder(self):
        cs = ContentStreamBuilder()
        assert isinstance(cs, canvas.ContentStreamBuilder)
        cs.set_line_width(0.5).line(0, 0, 10.0, 10)
        assert cs.build() == b'0.5 w\n0 0 m\n10 10 l\n'

    def test_parsed_instructions_kept_verbatim(self):
        pdf = Pdf.new()
        instructions = parse_content_stream(pdf.make_stream(b'0.123456 g'))
        cs = ContentStreamBuilder().append_instructions(instructions)
        assert cs.build() == b'0.123456 g\n'


class TestFormXObject:
    def test_finalized(self):
        pdf = Pdf.new()
        with form_xobject(pdf, 30, 0.2) as surface:
            surface.content.append_rectangle(0, 0, 30, 1).fill()
        stream = surface.stream
        assert stream.Subtype == Name.Form
        assert [float(v) for v in stream.BBox] == [0, 0, 30, 1]
        assert Name.Matrix not in stream
        assert Name.Font not in stream.Resources

    def test_matrix_and_fonts(self):
        pdf = Pdf.new()
        font = pdf.make_indirect(Dictionary(Type=Name.Font))
        with form_xobject(pdf, 10, 20, matrix=Matrix(0, 1, -1, 0, 20, 0)) as surface:
            surface.add_font(Name('/F1'), font)
        assert [float(v) for v in surface.stream.Matrix] == [0, 1, -1, 0, 20, 0]
        assert Name('/F1') in surface.stream.Resources.Font

    def test_discarded_on_error(self):
        pdf = Pdf.new()
        with pytest.raises(RuntimeError):
            with form_xobject(pdf, 10, 10) as surface:
                raise RuntimeError('boom')
        assert surface.stream is None
