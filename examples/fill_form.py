# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: CC0-1.0

"""This example shows how to fill out a form, then flatten a copy of it."""

from __future__ import annotations

import sys

from pikepdf import Pdf

from pikeforms import CheckBoxField, Form, RadioButtonField, TextField

infile = sys.argv[1] if len(sys.argv) > 1 else 'form.pdf'

with Pdf.open(infile) as pdf:
    form = Form(pdf)

    for name, field in form.items():
        print(f'{name}: {field.kind.value} = {field.value!r}')

    for field in form:
        if isinstance(field, TextField) and not field.read_only:
            field.value = 'Hello World!'
        elif isinstance(field, CheckBoxField):
            field.checked = True
        elif isinstance(field, RadioButtonField) and field.options:
            field.selected_index = 0

    form.save('filled.pdf')

    form.flatten()
    pdf.save('flattened.pdf')
