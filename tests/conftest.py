# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import os
from pathlib import Path

import pytest
from packaging.version import Version
from pikepdf import (
    AnnotationFlag,
    Array,
    Dictionary,
    Name,
    Pdf,
    Rectangle,
    String,
    __version__ as pikepdf_version,
)

from pikeforms import Form

TESTS_ROOT = os.path.abspath(os.path.dirname(__file__))
PROJECT_ROOT = os.path.dirname(TESTS_ROOT)


@pytest.fixture(scope="function")
def outdir(tmp_path):
    return tmp_path


@pytest.fixture(scope="function")
def outpdf(tmp_path):
    return tmp_path / 'out.pdf'


@pytest.fixture
def pdf():
    with Pdf.new() as pdf:
        pdf.add_blank_page(page_size=(612, 792))
        yield pdf


@pytest.fixture
def form(pdf):
    return Form(pdf)


def needs_pikepdf_v(version: str, *, reason=None):
    if reason is None:
        reason = "installed pikepdf is too old for this test"
    return pytest.mark.skipif(
        Version(pikepdf_version) < Version(version),
        reason=reason,
    )


def add_acroform(pdf: Pdf, *fields: Dictionary, **extra) -> Dictionary:
    """Install an /AcroForm with the given root fields, as a producer would."""
    pdf.Root.AcroForm = pdf.make_indirect(
        Dictionary(Fields=Array(list(fields)), **extra)
    )
    return pdf.Root.AcroForm


def make_widget(
    pdf: Pdf,
    rect=(100, 600, 200, 620),
    *,
    page_index: int = 0,
    on_state: str | None = None,
    state: str | None = None,
    flags: int = int(AnnotationFlag.print),
    **extra,
) -> Dictionary:
    """Create a widget annotation on a page, optionally with on/off appearances."""
    page = pdf.pages[page_index]
    widget = pdf.make_indirect(
        Dictionary(
            Type=Name.Annot,
            Subtype=Name.Widget,
            Rect=Rectangle(*rect).as_array(),
            F=flags,
            P=page.obj,
            **extra,
        )
    )
    if on_state is not None:
        bbox = [0, 0, rect[2] - rect[0], rect[3] - rect[1]]
        off = pdf.make_stream(b'', BBox=bbox, Subtype=Name.Form, Type=Name.XObject)
        on = pdf.make_stream(
            b'0 g 2 2 6 6 re f', BBox=bbox, Subtype=Name.Form, Type=Name.XObject
        )
        widget.AP = Dictionary(N=Dictionary({'/' + on_state: on, '/Off': off}))
        widget.AS = Name('/' + (state or 'Off'))
    if Name.Annots not in page.obj:
        page.obj.Annots = Array()
    page.obj.Annots.append(widget)
    return widget


def make_button_group(pdf: Pdf, name: str, on_states: list[str], ff: int = 0):
    """A /Btn field with one widget kid per on state."""
    field = pdf.make_indirect(Dictionary(FT=Name.Btn, T=String(name), Kids=Array()))
    if ff:
        field.Ff = ff
    for i, on_state in enumerate(on_states):
        widget = make_widget(
            pdf, (100 + 30 * i, 500, 120 + 30 * i, 520), on_state=on_state
        )
        widget.Parent = field
        field.Kids.append(widget)
    return field


@pytest.fixture
def first_name_pdf(pdf):
    """One text field "FirstName" = "John", merged with its widget on page 1."""
    field = make_widget(
        pdf,
        (72, 700, 272, 720),
        FT=Name.Tx,
        T=String('FirstName'),
        V=String('John'),
        DA=String('/Helv 12 Tf 0 g'),
    )
    add_acroform(
        pdf,
        field,
        DR=Dictionary(
            Font=Dictionary(
                Helv=pdf.make_indirect(
                    Dictionary(
                        Type=Name.Font,
                        Subtype=Name.Type1,
                        BaseFont=Name.Helvetica,
                        Encoding=Name.WinAnsiEncoding,
                    )
                )
            )
        ),
        DA=String('/Helv 0 Tf 0 g'),
    )
    return pdf


def reopen(pdf: Pdf, path: Path) -> Pdf:
    pdf.save(path)
    return Pdf.open(path)
