# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import pytest
from pikepdf import Name, Rectangle

from pikeforms import GREEN, WHITE, settings


@pytest.fixture
def restore_settings():
    size = settings.get_default_font_size()
    font = settings.get_default_font()
    colors = settings.get_list_highlight_colors()
    yield
    settings.set_default_font_size(size)
    settings.set_default_font(*font)
    settings.set_list_highlight_colors(*colors)


def test_default_font_size(restore_settings):
    previous = settings.set_default_font_size(14)
    assert previous == 10
    assert settings.get_default_font_size() == 14
    with pytest.raises(ValueError):
        settings.set_default_font_size(0)


def test_default_font_used_by_fields(restore_settings, form, pdf):
    settings.set_default_font('/Cour', 'Courier')
    assert settings.get_default_font() == ('Cour', 'Courier')
    field = form.add_text_field('t')
    field.multiline = True
    field.add_widget(Rectangle(0, 0, 100, 50), pdf.pages[0])
    assert field.font.resource_name == Name('/Cour')
    assert field.font.base_font == 'Courier'


def test_list_highlight_colors(restore_settings, form, pdf):
    settings.set_list_highlight_colors(GREEN, WHITE)
    field = form.add_list_box_field('l')
    widget = field.add_widget(Rectangle(0, 0, 100, 40), pdf.pages[0])
    field.options = ['a', 'b']
    field.selected_index = 0
    assert field.highlight_color == GREEN
    form.generate_appearances()
    assert b'0 0.5 0 rg' in widget.normal_appearance.read_bytes()
