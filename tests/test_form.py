# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import logging

import pytest
from conftest import add_acroform, make_widget
from pikepdf import Array, Dictionary, Name, Pdf, Rectangle, String

from pikeforms import RED, FieldFont, Form, TextAlignment


def test_empty_document(pdf):
    form = Form(pdf)
    assert not form.exists
    assert form.fields == ()
    assert list(form.items()) == []
    assert list(form.descendant_names()) == []
    assert not form.needs_appearances
    assert form.default_appearance is None
    assert form.text_alignment == TextAlignment.LEFT
    # Read-only access does not create the form
    assert Name.AcroForm not in pdf.Root


def test_acroform_created_on_demand(pdf):
    form = Form(pdf)
    acroform = form.acroform
    assert acroform.is_indirect
    assert len(acroform.Fields) == 0
    assert form.exists


def test_acroform_without_fields(pdf):
    pdf.Root.AcroForm = Dictionary()
    form = Form(pdf)
    assert form.fields == ()
    form.add_text_field('t')
    assert len(pdf.Root.AcroForm.Fields) == 1


def test_repr(first_name_pdf):
    form = Form(first_name_pdf)
    assert repr(form) == '<pikeforms.Form with 1 root fields>'
    assert repr(form['FirstName']) == "<pikeforms.TextField 'FirstName'>"


def test_default_appearance(first_name_pdf):
    form = Form(first_name_pdf)
    assert form.default_appearance == b'/Helv 0 Tf 0 g'
    form.default_appearance = '/Cour 9 Tf 0 g'
    assert first_name_pdf.Root.AcroForm.DA == '/Cour 9 Tf 0 g'


def test_text_alignment(pdf, caplog):
    add_acroform(pdf, Q=1)
    form = Form(pdf)
    assert form.text_alignment == TextAlignment.CENTER
    field = form.add_text_field('t')
    assert field.text_alignment == TextAlignment.CENTER
    field.text_alignment = TextAlignment.RIGHT
    assert field.text_alignment == TextAlignment.RIGHT

    pdf.Root.AcroForm.Q = 7
    with caplog.at_level(logging.WARNING):
        assert form.text_alignment == TextAlignment.LEFT
    assert 'Invalid form quadding' in caplog.text


def test_field_font_from_form_da(pdf):
    field_obj = make_widget(pdf, (0, 0, 100, 20), FT=Name.Tx, T=String('t'))
    add_acroform(pdf, field_obj, DA=String('/TiRo 14 Tf 0 0 1 rg'))
    field = Form(pdf)['t']
    assert field.font.base_font == 'Times-Roman'
    assert field.font.size == 14
    assert field.fore_color.components == (0.0, 0.0, 1.0)


def test_auto_font_size(pdf):
    field_obj = make_widget(
        pdf, (0, 0, 100, 20), FT=Name.Tx, T=String('t'), DA=String('/Helv 0 Tf 0 g')
    )
    add_acroform(pdf, field_obj)
    assert Form(pdf)['t'].font.size == pytest.approx(16)


def test_auto_font_size_rotated(pdf):
    field_obj = make_widget(
        pdf,
        (0, 0, 20, 100),
        FT=Name.Tx,
        T=String('t'),
        DA=String('/Helv 0 Tf 0 g'),
        MK=Dictionary(R=90),
    )
    add_acroform(pdf, field_obj)
    assert Form(pdf)['t'].font.size == pytest.approx(16)


def test_unknown_font_falls_back(pdf, caplog):
    field_obj = make_widget(
        pdf, (0, 0, 100, 20), FT=Name.Tx, T=String('t'), DA=String('/F9 11 Tf 0 g')
    )
    add_acroform(pdf, field_obj)
    with caplog.at_level(logging.WARNING):
        font = Form(pdf)['t'].font
    assert font.resource_name == Name('/F9')
    assert font.base_font == 'Helvetica'
    assert font.size == 11
    assert 'not found' in caplog.text


def test_unparseable_da_falls_back(pdf):
    field_obj = make_widget(
        pdf, (0, 0, 100, 20), FT=Name.Tx, T=String('t'), DA=String('0 g')
    )
    add_acroform(pdf, field_obj)
    font = Form(pdf)['t'].font
    assert font.resource_name == Name('/Helv')


def test_font_from_field_resources(pdf):
    field_obj = make_widget(
        pdf,
        (0, 0, 100, 20),
        FT=Name.Tx,
        T=String('t'),
        DA=String('/MyFont 10 Tf 0 g'),
        DR=Dictionary(
            Font=Dictionary(
                MyFont=Dictionary(
                    Type=Name.Font, Subtype=Name.Type1, BaseFont=Name('/Courier')
                )
            )
        ),
    )
    add_acroform(pdf, field_obj)
    assert Form(pdf)['t'].font.base_font == 'Courier'


def test_check_box_font_from_on_state(pdf):
    widget = make_widget(pdf, (0, 0, 20, 20), FT=Name.Btn, T=String('c'))
    on = pdf.make_stream(b'BT /ZaDb 8 Tf 1 0 0 rg (4) Tj ET', BBox=[0, 0, 20, 20])
    widget.AP = Dictionary(N=Dictionary(Yes=on, Off=pdf.make_stream(b'')))
    add_acroform(pdf, widget)
    field = Form(pdf)['c']
    assert field.font.base_font == 'ZapfDingbats'
    assert field.fore_color == RED


def test_set_font_registers_it(form):
    field = form.add_text_field('t')
    field.font = FieldFont(Name('/Cour'), 'Courier', 9)
    assert field.obj.DA == '/Cour 9 Tf 0 g'
    assert Name('/Cour') in form.default_resources.Font
    assert form.is_dirty(field)


def test_register_font_reuses_existing(first_name_pdf):
    form = Form(first_name_pdf)
    existing = first_name_pdf.Root.AcroForm.DR.Font.Helv
    data = form.register_font(FieldFont(Name('/Helv'), 'Helvetica', 10))
    assert data.objgen == existing.objgen


def test_needs_appearances(pdf):
    form = Form(pdf)
    form.needs_appearances = True
    assert form.needs_appearances
    assert pdf.Root.AcroForm.NeedAppearances is True


def test_generate_only_dirty_fields(first_name_pdf):
    form = Form(first_name_pdf)
    form.generate_appearances()
    widget = form['FirstName'].widgets[0]
    stream = widget.normal_appearance
    form.generate_appearances()
    assert widget.normal_appearance.objgen == stream.objgen
    form['FirstName'].value = 'Jane'
    assert form.is_dirty(form['FirstName'])
    form.generate_appearances()
    assert widget.normal_appearance.objgen != stream.objgen
    assert b'(Jane)' in widget.normal_appearance.read_bytes()


def test_save_and_reload(form, pdf, outpdf):
    field = form.add_text_field('name')
    field.add_widget(Rectangle(72, 700, 272, 720), pdf.pages[0])
    field.value = 'Saved'
    form.save(outpdf)
    with Pdf.open(outpdf) as reopened:
        form2 = Form(reopened)
        assert form2['name'].value == 'Saved'
        assert form2['name'].widgets[0].appearance_dict is not None
        assert isinstance(reopened.Root.AcroForm.Fields, Array)
