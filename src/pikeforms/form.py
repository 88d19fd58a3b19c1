# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Support for working with interactive forms."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable
from pathlib import Path
from typing import BinaryIO

from pikepdf import Array, Dictionary, Name, Pdf, String

from pikeforms.appearance import AppearanceGenerator
from pikeforms.classify import classify
from pikeforms.fields import (
    CheckBoxField,
    ComboBoxField,
    DescendantNames,
    Field,
    GenericField,
    ListBoxField,
    PushButtonField,
    RadioButtonField,
    SignatureField,
    TextAlignment,
    TextField,
)
from pikeforms.flatten import flatten_form
from pikeforms.fonts import FieldFont, load_font

log = logging.getLogger(__name__)


class Form:
    """The interactive form of a PDF.

    The form owns one typed view per field dictionary, created on first access. Field
    values may be changed freely; fields remember that their appearance is out of date,
    and new appearances are generated in one pass by :meth:`generate_appearances`,
    which :meth:`save` calls unless told otherwise.

    A non-exhaustive list of limitations:

    * Fonts are never embedded; text is measured with the metrics of the standard 14
      fonts unless the font dictionary has its own widths
    * No support for rich text fields
    * Signature fields cannot be signed
    """

    generate_appearances_on_save: bool
    """If True, :meth:`save` generates appearance streams for changed fields. If not,
    the ``/NeedAppearances`` flag is set instead, asking the viewer to do it.
    """
    ignore_max_length: bool
    """If True, text longer than the MaxLen property of a text field is drawn in full.
    This produces a PDF that would typically not be possible to create in an interactive
    PDF reader, but this may be desirable if the PDF is intended to be read by another
    automated system rather than a human.
    """
    appearance_generator: AppearanceGenerator
    _pdf: Pdf
    _registry: dict[tuple[int, int], Field]
    _dirty: dict[object, Field]

    def __init__(
        self,
        pdf: Pdf,
        *,
        generate_appearances_on_save: bool = True,
        ignore_max_length: bool = False,
        appearance_generator: type[AppearanceGenerator] = AppearanceGenerator,
    ):
        """Initialize the form."""
        self._pdf = pdf
        self._registry = {}
        self._dirty = {}
        self.generate_appearances_on_save = generate_appearances_on_save
        self.ignore_max_length = ignore_max_length
        self.appearance_generator = appearance_generator(self)

    def __repr__(self):
        return f'<pikeforms.Form with {len(self.fields)} root fields>'

    @property
    def pdf(self) -> Pdf:
        """The PDF this form belongs to."""
        return self._pdf

    @property
    def exists(self) -> bool:
        """True if the document has an interactive form dictionary."""
        return Name.AcroForm in self._pdf.Root

    @property
    def acroform(self) -> Dictionary:
        """The interactive form dictionary (``/AcroForm``), created if missing."""
        root = self._pdf.Root
        if Name.AcroForm not in root:
            root.AcroForm = self._pdf.make_indirect(Dictionary(Fields=Array()))
        acroform = root.AcroForm
        if Name.Fields not in acroform:
            acroform.Fields = Array()
        return acroform

    # -- field registry --

    def classify(self, obj: Dictionary | Field) -> Field:
        """Return the typed view of a field dictionary of this form."""
        return classify(self, obj)

    @property
    def fields(self) -> tuple[Field, ...]:
        """The root fields of the form."""
        if not self.exists:
            return ()
        fields = self._pdf.Root.AcroForm.get(Name.Fields, ())
        return tuple(self.classify(obj) for obj in fields)

    def walk(self) -> Generator[Field]:
        """Yield every field of the form, depth first."""
        for field in self.fields:
            yield from field.walk()

    def items(self) -> Generator[tuple[str, Field]]:
        """Yield (name, field) pairs for all terminal fields in this form."""
        for field in self.walk():
            if field.is_terminal:
                yield field.fully_qualified_name, field

    def __iter__(self):
        for _name, field in self.items():
            yield field

    def __getitem__(self, name: str) -> Field:
        head, _, rest = name.partition('.')
        for field in self.fields:
            if field.name == head:
                return field[rest] if rest else field
        raise KeyError(name)

    def __contains__(self, name: str):
        try:
            self[name]
            return True
        except KeyError:
            return False

    def descendant_names(self, prefix: str | None = None) -> Iterable[str]:
        """Dotted names of all terminal fields, lazily and restartably."""
        return DescendantNames(self.fields, prefix)

    def _add_field(self, cls: type[Field], name: str, parent: Field | None) -> Field:
        if not name or '.' in name:
            raise ValueError(f'Invalid partial field name {name!r}')
        siblings = parent.children if parent is not None else self.fields
        if any(sibling.name == name for sibling in siblings):
            raise ValueError(f'A field named {name!r} already exists there')
        obj = self._pdf.make_indirect(Dictionary(T=String(name)))
        if cls.field_type is not None:
            obj.FT = cls.field_type
        if cls.creation_flags:
            obj.Ff = cls.creation_flags
        field = cls(self, obj)
        self._registry[obj.objgen] = field
        if parent is not None:
            parent.add_child(field)
        else:
            self.acroform.Fields.append(obj)
        field.mark_dirty()
        return field

    def add_text_field(self, name: str, parent: Field | None = None) -> TextField:
        """Create a text field."""
        return self._add_field(TextField, name, parent)

    def add_check_box_field(
        self, name: str, parent: Field | None = None
    ) -> CheckBoxField:
        """Create a checkbox field."""
        return self._add_field(CheckBoxField, name, parent)

    def add_radio_button_field(
        self, name: str, parent: Field | None = None
    ) -> RadioButtonField:
        """Create a radio button group; add its buttons with ``add_widget``."""
        return self._add_field(RadioButtonField, name, parent)

    def add_combo_box_field(
        self, name: str, parent: Field | None = None
    ) -> ComboBoxField:
        """Create a combo box field."""
        return self._add_field(ComboBoxField, name, parent)

    def add_list_box_field(
        self, name: str, parent: Field | None = None
    ) -> ListBoxField:
        """Create a list box field."""
        return self._add_field(ListBoxField, name, parent)

    def add_push_button_field(
        self, name: str, parent: Field | None = None
    ) -> PushButtonField:
        """Create a push button field."""
        return self._add_field(PushButtonField, name, parent)

    def add_signature_field(
        self, name: str, parent: Field | None = None
    ) -> SignatureField:
        """Create an unsigned signature field."""
        return self._add_field(SignatureField, name, parent)

    def add_generic_field(self, name: str, parent: Field | None = None) -> GenericField:
        """Create a field without a type, typically a container for other fields."""
        return self._add_field(GenericField, name, parent)

    def detach_field(self, field: Field):
        """Unlink a field from its parent, or from the root fields of the form."""
        parent = field.obj.get(Name.Parent)
        if parent is not None:
            kids = parent.get(Name.Kids, Array())
            del field.obj.Parent
            self.classify(parent).refresh()
        elif self.exists:
            kids = self._pdf.Root.AcroForm.get(Name.Fields, Array())
        else:
            return
        for index in reversed(range(len(kids))):
            if kids[index].is_indirect and field.obj.is_indirect:
                if kids[index].objgen == field.obj.objgen:
                    del kids[index]
            elif kids[index] == field.obj:
                del kids[index]

    def remove_field(self, field: Field):
        """Remove a field, its descendants, and all of their widgets from the form."""
        for node in list(field.walk()):
            for widget in node.widgets:
                widget.detach()
            key = node.obj.objgen if node.obj.is_indirect else None
            self._registry.pop(key, None)
            self._dirty.pop(self._dirty_key(node), None)
        self.detach_field(field)

    # -- dirty tracking and appearances --

    @staticmethod
    def _dirty_key(field: Field):
        return field.obj.objgen if field.obj.is_indirect else id(field)

    def mark_dirty(self, field: Field):
        """Schedule the appearance of *field* to be regenerated."""
        self._dirty[self._dirty_key(field)] = field

    def is_dirty(self, field: Field) -> bool:
        """True if the appearance of *field* is scheduled for regeneration."""
        return self._dirty_key(field) in self._dirty

    def _lacks_appearance(self, field: Field) -> bool:
        return any(
            widget.has_area and widget.appearance_dict is None
            for widget in field.widgets
        )

    def generate_appearances(self, force: bool = False):
        """Generate appearance streams for changed fields and fields without any.

        Args:
            force: Regenerate the appearance of every terminal field.
        """
        pending = dict(self._dirty)
        for field in self.walk():
            if field.is_terminal and (force or self._lacks_appearance(field)):
                pending.setdefault(self._dirty_key(field), field)
        for field in pending.values():
            if field.is_terminal:
                self.appearance_generator.generate(field)
        self._dirty.clear()

    @property
    def needs_appearances(self) -> bool:
        """Does the form ask viewers to regenerate appearances?"""
        if not self.exists:
            return False
        return bool(self._pdf.Root.AcroForm.get(Name.NeedAppearances, False))

    @needs_appearances.setter
    def needs_appearances(self, value: bool):
        self.acroform.NeedAppearances = bool(value)

    def save(self, filename_or_stream: Path | str | BinaryIO, **kwargs):
        """Save the PDF, generating appearances first if so configured.

        Keyword arguments are passed to :meth:`pikepdf.Pdf.save`.
        """
        if self.generate_appearances_on_save:
            self.generate_appearances()
        elif self._dirty:
            self.needs_appearances = True
        self._pdf.save(filename_or_stream, **kwargs)

    def flatten(self):
        """Bake all field appearances into the pages and remove the form."""
        if not self.exists:
            return
        self.generate_appearances()
        flatten_form(self)
        self._registry.clear()
        self._dirty.clear()

    # -- default appearance and resources --

    @property
    def default_resources(self) -> Dictionary:
        """The default resources (``/DR``) of the form, created if missing."""
        acroform = self.acroform
        if Name.DR not in acroform:
            acroform.DR = Dictionary()
        return acroform.DR

    @property
    def default_appearance(self) -> bytes | None:
        """The form-wide default appearance string (``/DA``), if any."""
        if not self.exists:
            return None
        da = self._pdf.Root.AcroForm.get(Name.DA)
        return bytes(da) if da is not None else None

    @default_appearance.setter
    def default_appearance(self, value: bytes | str):
        self.acroform.DA = String(value)

    @property
    def text_alignment(self) -> TextAlignment:
        """The form-wide quadding (``/Q``) of variable text."""
        if not self.exists:
            return TextAlignment.LEFT
        q = self._pdf.Root.AcroForm.get(Name.Q, 0)
        try:
            return TextAlignment(int(q))
        except ValueError:
            log.warning(f'Invalid form quadding {q}')
            return TextAlignment.LEFT

    def register_font(self, font: FieldFont) -> Dictionary:
        """Add *font* to the default resources, returning its font dictionary.

        A font already present under the same resource name is reused.
        """
        resources = self.default_resources
        if Name.Font not in resources:
            resources.Font = Dictionary()
        fonts = resources.Font
        if font.resource_name in fonts:
            return fonts[font.resource_name]
        data = font.register(self._pdf)
        fonts[font.resource_name] = data
        log.debug(f'Registered font {font.resource_name} ({font.base_font})')
        return data

    def load_font(self, name: Name, field_obj: Dictionary, size: float) -> FieldFont:
        """Find a font by resource name, in the form's resources or the field's own.

        Raises:
            LookupError: if the font cannot be found.
        """
        candidates = []
        if self.exists and Name.DR in self._pdf.Root.AcroForm:
            candidates.append(self._pdf.Root.AcroForm.DR)
        if Name.DR in field_obj:
            candidates.append(field_obj.DR)
        for resources in candidates:
            fonts = resources.get(Name.Font)
            if fonts is not None and name in fonts:
                return load_font(name, resources, size)
        return load_font(name, None, size)


__all__ = ['Form']
