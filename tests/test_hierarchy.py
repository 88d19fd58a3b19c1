# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import pytest
from conftest import add_acroform, make_button_group, make_widget
from pikepdf import Array, Dictionary, FormFieldFlag, Name, Rectangle, String

from pikeforms import Form, GenericField, RadioButtonField, TextField


@pytest.fixture
def nested(pdf):
    """person.name.first, person.name.last and person.age, all text fields."""
    person = pdf.make_indirect(Dictionary(T=String('person'), Kids=Array()))
    name = pdf.make_indirect(
        Dictionary(T=String('name'), Parent=person, Kids=Array(), FT=Name.Tx)
    )
    for partial in ('first', 'last'):
        leaf = make_widget(pdf, T=String(partial), Parent=name)
        name.Kids.append(leaf)
    age = make_widget(pdf, T=String('age'), FT=Name.Tx, Parent=person)
    person.Kids.append(name)
    person.Kids.append(age)
    add_acroform(pdf, person)
    return Form(pdf)


def test_fully_qualified_names(nested):
    assert nested['person.name.first'].fully_qualified_name == 'person.name.first'
    assert nested['person.age'].fully_qualified_name == 'person.age'


def test_parent_is_registry_lookup(nested):
    first = nested['person.name.first']
    name = nested['person.name']
    assert first.parent is name
    assert name.parent is nested['person']
    assert nested['person'].parent is None


def test_children_and_widgets(nested):
    person = nested['person']
    assert isinstance(person, GenericField)
    assert [child.name for child in person.children] == ['name', 'age']
    assert person.has_child_fields
    assert person.widgets == ()
    age = nested['person.age']
    assert not age.has_child_fields
    assert len(age.widgets) == 1


def test_descendant_names_are_leaves(nested):
    names = nested.descendant_names()
    assert list(names) == ['person.name.first', 'person.name.last', 'person.age']
    # Restartable
    assert list(names) == list(names)
    assert list(nested['person'].descendant_names('root')) == [
        'root.name.first',
        'root.name.last',
        'root.age',
    ]


def test_descendant_names_include_radio_groups(form, pdf):
    container = form.add_generic_field('choices')
    group = form.add_radio_button_field('color', parent=container)
    group.add_widget(Rectangle(10, 10, 30, 30), pdf.pages[0], on_state='red')
    group.add_widget(Rectangle(40, 10, 60, 30), pdf.pages[0], on_state='blue')
    assert list(form.descendant_names()) == ['choices.color']


def test_items_and_iteration(nested):
    assert [name for name, _field in nested.items()] == [
        'person.name.first',
        'person.name.last',
        'person.age',
    ]
    assert all(isinstance(f, TextField) for f in nested)


def test_missing_name(nested):
    with pytest.raises(KeyError):
        nested['person.nobody']
    assert 'person.age' in nested
    assert 'nobody' not in nested


def test_widget_kids_are_not_child_fields(pdf):
    field = pdf.make_indirect(Dictionary(FT=Name.Tx, T=String('t'), Kids=Array()))
    for rect in ((0, 0, 10, 10), (20, 0, 30, 10)):
        widget = make_widget(pdf, rect, Parent=field)
        field.Kids.append(widget)
    add_acroform(pdf, field)
    text = Form(pdf)['t']
    assert text.has_kids
    assert not text.has_child_fields
    assert text.children == ()
    assert len(text.widgets) == 2
    assert text.is_terminal


def test_cached_views_refresh(pdf):
    group = make_button_group(
        pdf, 'color', ['red', 'green'], int(FormFieldFlag.btn_radio)
    )
    add_acroform(pdf, group)
    radio = Form(pdf)['color']
    assert isinstance(radio, RadioButtonField)
    assert radio.options == ('red', 'green')
    assert len(radio.widgets) == 2

    # Edits made directly to the dictionaries are not seen until refreshed
    widget = make_widget(pdf, (200, 500, 220, 520), on_state='blue', Parent=group)
    group.Kids.append(widget)
    assert radio.options == ('red', 'green')
    assert len(radio.widgets) == 2

    radio.refresh()
    assert radio.options == ('red', 'green', 'blue')
    assert len(radio.widgets) == 3
    assert radio.widgets[2].obj.objgen == widget.objgen


def test_add_fields_and_children(form, pdf):
    address = form.add_generic_field('address')
    street = form.add_text_field('street', parent=address)
    assert street.parent is address
    assert form['address.street'] is street
    assert street.fully_qualified_name == 'address.street'
    assert pdf.Root.AcroForm.Fields[0].objgen == address.obj.objgen
    assert len(pdf.Root.AcroForm.Fields) == 1


def test_add_child_moves_field(form):
    a = form.add_generic_field('a')
    b = form.add_generic_field('b')
    leaf = form.add_text_field('leaf', parent=a)
    b.add_child(leaf)
    assert leaf.parent is b
    assert a.children == ()
    assert form['b.leaf'] is leaf


def test_add_child_rejects_self(form):
    a = form.add_generic_field('a')
    with pytest.raises(ValueError):
        a.add_child(a)


def test_duplicate_and_invalid_names(form):
    form.add_text_field('a')
    with pytest.raises(ValueError):
        form.add_text_field('a')
    with pytest.raises(ValueError):
        form.add_text_field('a.b')
    with pytest.raises(ValueError):
        form.add_text_field('')


def test_add_widget_places_on_page(form, pdf):
    field = form.add_text_field('t')
    widget = field.add_widget(Rectangle(10, 20, 110, 40), pdf.pages[0])
    assert field.widgets == (widget,)
    assert widget.page.obj.objgen == pdf.pages[0].obj.objgen
    assert len(pdf.pages[0].obj.Annots) == 1
    assert widget.obj.Parent.objgen == field.obj.objgen


def test_remove_field(form, pdf):
    group = form.add_generic_field('g')
    leaf = form.add_text_field('leaf', parent=group)
    leaf.add_widget(Rectangle(10, 20, 110, 40), pdf.pages[0])
    form.remove_field(group)
    assert 'g' not in form
    assert form.fields == ()
    assert len(pdf.pages[0].obj.Annots) == 0


def test_names_and_flags(form):
    field = form.add_text_field('t')
    field.alternate_name = 'Your name'
    field.mapping_name = 'name'
    assert field.alternate_name == 'Your name'
    assert field.mapping_name == 'name'
    field.required = True
    field.no_export = True
    assert field.required and field.no_export and not field.read_only
    field.required = False
    assert not field.required


def test_appearance_names(pdf):
    widget = make_widget(pdf, on_state='Yes')
    widget.AP.D = Dictionary(Down=widget.AP.N.Yes)
    widget.FT = Name.Btn
    widget.T = String('c')
    add_acroform(pdf, widget)
    assert Form(pdf)['c'].get_appearance_names() == {'Yes', 'Off', 'Down'}


def test_annotations_alias_is_deprecated(form, pdf):
    field = form.add_text_field('t')
    field.add_widget(Rectangle(0, 0, 10, 10), pdf.pages[0])
    with pytest.deprecated_call():
        assert field.annotations == field.widgets
