# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import pytest
from conftest import make_widget
from pikepdf import AnnotationFlag, Array, Dictionary, Name, Rectangle

from pikeforms import BLUE, EMPTY, RED, Color, FormatError, Widget


def test_rejects_non_widget(form, pdf):
    link = pdf.make_indirect(Dictionary(Type=Name.Annot, Subtype=Name.Link))
    with pytest.raises(FormatError):
        Widget(form, link)


def test_rect_normalized(form, pdf):
    obj = make_widget(pdf, (200, 620, 100, 600))
    widget = Widget(form, obj)
    assert widget.rect == Rectangle(100, 600, 200, 620)
    assert widget.has_area


def test_missing_or_empty_rect(form, pdf):
    obj = make_widget(pdf, (100, 600, 100, 620))
    assert not Widget(form, obj).has_area
    del obj.Rect
    widget = Widget(form, obj)
    assert widget.rect is None
    assert not widget.has_area


def test_rotation(form, pdf):
    widget = Widget(form, make_widget(pdf, MK=Dictionary(R=-90)))
    assert widget.rotation == 270
    widget.rotation = 450
    assert widget.rotation == 90
    assert widget.obj.MK.R == 90
    with pytest.raises(ValueError):
        widget.rotation = 45


def test_colors_are_snapshot(form, pdf):
    obj = make_widget(pdf, MK=Dictionary(BG=Array([1, 0, 0]), BC=Array([0.5])))
    widget = Widget(form, obj)
    assert widget.back_color == RED
    assert widget.border_color == Color((0.5,))

    obj.MK.BG = Array([0, 0, 1])
    assert widget.back_color == RED
    widget.refresh()
    assert widget.back_color == BLUE


def test_set_colors(form, pdf):
    widget = Widget(form, make_widget(pdf))
    assert widget.back_color is EMPTY
    widget.back_color = BLUE
    assert list(widget.obj.MK.BG) == [0, 0, 1]
    widget.back_color = EMPTY
    assert Name.BG not in widget.obj.MK
    assert widget.back_color.is_empty


def test_invalid_color_array_is_empty(form, pdf):
    widget = Widget(form, make_widget(pdf, MK=Dictionary(BG=Array([1, 0]))))
    assert widget.back_color.is_empty


def test_hidden_flags(form, pdf):
    assert not Widget(form, make_widget(pdf)).is_hidden
    hidden = make_widget(pdf, flags=int(AnnotationFlag.hidden))
    assert Widget(form, hidden).is_hidden
    no_view = make_widget(pdf, flags=int(AnnotationFlag.no_view))
    assert Widget(form, no_view).is_hidden


def test_appearance_states(form, pdf):
    widget = Widget(form, make_widget(pdf, on_state='Choice1', state='Choice1'))
    assert widget.on_state == Name('/Choice1')
    assert set(widget.appearance_names()) == {Name.Off, Name('/Choice1')}
    assert widget.current_appearance() is not None
    widget.appearance_state = Name('/Missing')
    assert widget.current_appearance() is None
    widget.appearance_state = None
    assert Name.AS not in widget.obj


def test_set_normal_appearance_drops_other_kinds(form, pdf):
    obj = make_widget(pdf, on_state='Yes')
    obj.AP.D = Dictionary(Yes=obj.AP.N.Yes)
    widget = Widget(form, obj)
    stream = pdf.make_stream(b'', BBox=[0, 0, 10, 10])
    widget.set_normal_appearance(stream)
    assert Name.D not in obj.AP
    assert widget.current_appearance().objgen == stream.objgen


def test_new_place_and_detach(form, pdf):
    pdf.add_blank_page()
    widget = Widget.new(form, Rectangle(0, 0, 50, 20), pdf.pages[1])
    assert widget.page.obj.objgen == pdf.pages[1].obj.objgen
    widget.place_on(pdf.pages[1])
    assert len(pdf.pages[1].obj.Annots) == 1
    widget.detach()
    assert len(pdf.pages[1].obj.Annots) == 0


def test_page_found_without_p(form, pdf):
    obj = make_widget(pdf)
    del obj.P
    assert Widget(form, obj).page.obj.objgen == pdf.pages[0].obj.objgen


def test_new_with_parent(form, pdf):
    field = pdf.make_indirect(Dictionary(FT=Name.Tx))
    widget = Widget.new(form, Rectangle(0, 0, 10, 10), parent=field)
    assert widget.obj.Parent.objgen == field.objgen
    assert field.Kids[0].objgen == widget.obj.objgen
    assert widget.page is None


def test_caption_and_border_width(form, pdf):
    widget = Widget(form, make_widget(pdf, BS=Dictionary(W=3)))
    assert widget.border_width == 3
    assert widget.caption == ''
    widget.caption = 'Submit'
    assert widget.caption == 'Submit'
