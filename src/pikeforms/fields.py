# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Typed views of interactive form fields.

Every field dictionary in a form is represented by exactly one view, whose class is
chosen once by :func:`pikeforms.classify.classify` and then cached by the owning
:class:`pikeforms.form.Form`. Views hold no field state of their own: values live in
the wrapped dictionary, so a view and the PDF never disagree.

A few derived lists are memoized because they are expensive to rebuild (the child
fields, the widgets, and the options of radio button and choice fields). These do not
notice changes made to the dictionary by other means; call :meth:`Field.refresh` after
such changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from enum import Enum, IntEnum
from typing import TYPE_CHECKING
from warnings import warn

from pikepdf import (
    Array,
    Dictionary,
    FormFieldFlag,
    Name,
    Object,
    Page,
    PdfError,
    Rectangle,
    Stream,
    String,
)

from pikeforms import settings
from pikeforms.canvas import BLACK, Color
from pikeforms.exceptions import (
    FormatError,
    RangeError,
    ReadOnlyFieldError,
    UnsupportedValueError,
)
from pikeforms.fonts import DefaultAppearance, FieldFont, default_font
from pikeforms.widget import Widget, same_object

if TYPE_CHECKING:
    from pikeforms.form import Form

log = logging.getLogger(__name__)


class FieldKind(Enum):
    """The concrete kind of a field."""

    TEXT = 'text'
    CHECK_BOX = 'check_box'
    RADIO_BUTTON = 'radio_button'
    COMBO_BOX = 'combo_box'
    LIST_BOX = 'list_box'
    PUSH_BUTTON = 'push_button'
    SIGNATURE = 'signature'
    GENERIC = 'generic'


class TextAlignment(IntEnum):
    """Quadding (``/Q``) of variable text."""

    LEFT = 0
    CENTER = 1
    RIGHT = 2


def inherited_value(obj: Dictionary, key: Name) -> Object | None:
    """Look up an inheritable field attribute, walking up the ``/Parent`` chain."""
    seen = set()
    node = obj
    while node is not None:
        if key in node:
            return node[key]
        if node.is_indirect:
            if node.objgen in seen:
                log.warning('Cycle in field /Parent chain')
                return None
            seen.add(node.objgen)
        node = node.get(Name.Parent)
    return None


def is_child_field(kid: Dictionary) -> bool:
    """True if a /Kids entry is a field rather than a bare widget annotation."""
    return Name.Subtype not in kid or Name.FT in kid or Name.T in kid


def is_bare_widget(kid: Dictionary) -> bool:
    """True if a /Kids entry is a widget annotation that is not also a field."""
    if kid.get(Name.Subtype) != Name.Widget:
        return False
    return Name.FT not in kid and Name.T not in kid


def _decode_value(value: Object | None):
    if value is None:
        return None
    if isinstance(value, String):
        return str(value)
    if isinstance(value, Array):
        return [_decode_value(v) for v in value]
    return value


def _encode_value(value) -> Object:
    if isinstance(value, Name):
        return value
    if isinstance(value, str):
        return String(value)
    raise UnsupportedValueError(
        f'Cannot store a value of type {type(value).__name__} in this field'
    )


def _bare_name(name: Name | str | None) -> str:
    if name is None:
        return ''
    return str(name).lstrip('/')


class DescendantNames:
    """Restartable, lazy sequence of dotted terminal field names."""

    def __init__(self, fields: Iterable[Field], prefix: str | None):
        self._fields = fields
        self._prefix = prefix

    def __iter__(self) -> Iterator[str]:
        return self._walk(self._fields, self._prefix)

    def _walk(self, fields: Iterable[Field], prefix: str | None) -> Iterator[str]:
        for field in fields:
            name = field.name
            if not name:
                continue
            qualified = f'{prefix}.{name}' if prefix else name
            if field.has_child_fields:
                yield from self._walk(field.children, qualified)
            else:
                yield qualified


class Field:
    """Base class of all field views.

    In addition to the attributes of a field common to all kinds, this class models the
    field hierarchy: a field's ``/Kids`` may hold child fields, widget annotations, or
    both, and a field with a single widget may be merged with it into one dictionary.
    """

    kind: FieldKind = FieldKind.GENERIC
    field_type: Name | None = None
    """The /FT written when a field of this kind is created."""
    creation_flags: int = 0
    """Field flags written when a field of this kind is created."""

    obj: Dictionary

    def __init__(self, form: Form, obj: Dictionary):
        self._form = form
        self.obj = obj
        self._children: list[Field] | None = None
        self._widgets: list[Widget] | None = None
        self._presentation: tuple[FieldFont, Color] | None = None

    def __repr__(self):
        return f'<pikeforms.{type(self).__name__} {self.fully_qualified_name!r}>'

    @property
    def form(self) -> Form:
        """The form that owns this field."""
        return self._form

    def refresh(self):
        """Forget memoized children, widgets, options and inferred presentation."""
        self._children = None
        self._widgets = None
        self._presentation = None

    def mark_dirty(self):
        """Schedule this field's appearance to be regenerated before saving."""
        self._form.mark_dirty(self)

    def _inherited(self, key: Name):
        return inherited_value(self.obj, key)

    # -- names --

    @property
    def name(self) -> str:
        """Partial name (``/T``); may be empty for a widget merged into its field."""
        t = self.obj.get(Name.T)
        return str(t) if t is not None else ''

    @name.setter
    def name(self, value: str):
        if '.' in value:
            raise ValueError('Partial field names may not contain periods')
        self.obj.T = String(value)

    @property
    def alternate_name(self) -> str:
        """User-facing name (``/TU``), used by viewers in tooltips and messages."""
        tu = self.obj.get(Name.TU)
        return str(tu) if tu is not None else ''

    @alternate_name.setter
    def alternate_name(self, value: str):
        self.obj.TU = String(value)

    @property
    def mapping_name(self) -> str:
        """Name used when exporting field data (``/TM``)."""
        tm = self.obj.get(Name.TM)
        return str(tm) if tm is not None else ''

    @mapping_name.setter
    def mapping_name(self, value: str):
        self.obj.TM = String(value)

    @property
    def fully_qualified_name(self) -> str:
        """The partial names of this field and its ancestors, joined with periods."""
        names = []
        seen = set()
        node = self.obj
        while node is not None:
            if node.is_indirect:
                if node.objgen in seen:
                    break
                seen.add(node.objgen)
            t = node.get(Name.T)
            if t is not None and str(t):
                names.append(str(t))
            node = node.get(Name.Parent)
        return '.'.join(reversed(names))

    # -- hierarchy --

    @property
    def parent(self) -> Field | None:
        """The parent field, if any."""
        parent = self.obj.get(Name.Parent)
        if parent is None:
            return None
        return self._form.classify(parent)

    @property
    def kids(self) -> Array:
        """The raw /Kids array, which may mix child fields and widgets."""
        return self.obj.get(Name.Kids, Array())

    @property
    def has_kids(self) -> bool:
        """True if the field has a non-empty /Kids array."""
        return len(self.kids) > 0

    @property
    def has_child_fields(self) -> bool:
        """True if any kid is a field rather than a bare widget."""
        return any(is_child_field(kid) for kid in self.kids)

    @property
    def children(self) -> Sequence[Field]:
        """Child fields, in /Kids order."""
        if self._children is None:
            self._children = [
                self._form.classify(kid) for kid in self.kids if is_child_field(kid)
            ]
        return tuple(self._children)

    @property
    def widgets(self) -> Sequence[Widget]:
        """Widget annotations of this field.

        These are the kids that are bare widgets, plus the field itself when its
        dictionary is merged with its only widget.
        """
        if self._widgets is None:
            widgets = []
            if self.obj.get(Name.Subtype) == Name.Widget:
                widgets.append(Widget(self._form, self.obj))
            for kid in self.kids:
                if is_bare_widget(kid):
                    widgets.append(Widget(self._form, kid))
            self._widgets = widgets
        return tuple(self._widgets)

    @property
    def annotations(self) -> Sequence[Widget]:
        """Deprecated alias of :attr:`widgets`."""
        warn(
            'Field.annotations is deprecated, use Field.widgets',
            DeprecationWarning,
            stacklevel=2,
        )
        return self.widgets

    @property
    def is_terminal(self) -> bool:
        """True if the field has no child fields, so it holds a value."""
        return not self.has_child_fields

    def __getitem__(self, name: str) -> Field:
        """Find a descendant field by its dotted name relative to this field."""
        head, _, rest = name.partition('.')
        for child in self.children:
            if child.name == head:
                return child[rest] if rest else child
        raise KeyError(name)

    def descendant_names(self, prefix: str | None = None) -> Iterable[str]:
        """Dotted names of all terminal fields below this field.

        The result is lazy and can be iterated more than once. Names are relative to
        this field, with *prefix* prepended if given.
        """
        return DescendantNames(self.children, prefix)

    def walk(self) -> Iterator[Field]:
        """Yield this field and all of its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def add_child(self, field: Field) -> Field:
        """Attach *field* as the last child of this field."""
        if field is self or same_object(field.obj, self.obj):
            raise ValueError('A field cannot be its own child')
        self._form.detach_field(field)
        field.obj.Parent = self.obj
        if Name.Kids not in self.obj:
            self.obj.Kids = Array()
        self.obj.Kids.append(field.obj)
        self._children = None
        field.refresh()
        return field

    def add_widget(
        self,
        rect: Rectangle,
        page: Page | None = None,
        *,
        rotation: int = 0,
        border_color: Color | None = None,
        back_color: Color | None = None,
    ) -> Widget:
        """Create a widget for this field and place it on *page*."""
        widget = Widget.new(self._form, rect, page, parent=self.obj)
        if rotation:
            widget.rotation = rotation
        if border_color is not None:
            widget.border_color = border_color
        if back_color is not None:
            widget.back_color = back_color
        self.refresh()
        self.mark_dirty()
        return widget

    def get_appearance_names(self) -> set[str]:
        """Names of all appearance states defined for this field's widgets."""
        names = set()
        for widget in self.widgets:
            for key in (Name.N, Name.D):
                names.update(_bare_name(n) for n in widget.appearance_names(key))
        return names

    # -- flags --

    @property
    def flags(self) -> int:
        """Field flags (``/Ff``, inheritable).

        Test with :class:`pikepdf.FormFieldFlag`.
        """
        return int(self._inherited(Name.Ff) or 0)

    @flags.setter
    def flags(self, value: int):
        self.obj.Ff = int(value)

    def _has_flag(self, flag: FormFieldFlag) -> bool:
        return bool(self.flags & int(flag))

    def _set_flag(self, flag: FormFieldFlag, on: bool):
        if on:
            self.flags = self.flags | int(flag)
        else:
            self.flags = self.flags & ~int(flag)

    @property
    def read_only(self) -> bool:
        """Is this a read-only field?"""
        return self._has_flag(FormFieldFlag.read_only)

    @read_only.setter
    def read_only(self, value: bool):
        self._set_flag(FormFieldFlag.read_only, value)

    @property
    def required(self) -> bool:
        """Is this a required field?"""
        return self._has_flag(FormFieldFlag.required)

    @required.setter
    def required(self, value: bool):
        self._set_flag(FormFieldFlag.required, value)

    @property
    def no_export(self) -> bool:
        """Should this field's value be left out when exporting data from the PDF?"""
        return self._has_flag(FormFieldFlag.no_export)

    @no_export.setter
    def no_export(self, value: bool):
        self._set_flag(FormFieldFlag.no_export, value)

    def _check_writable(self):
        if self.read_only:
            raise ReadOnlyFieldError(f'Field {self.fully_qualified_name} is read-only')

    # -- values --

    @property
    def value(self):
        """The field value (``/V``, inheritable).

        Strings are returned as ``str``, names as :class:`pikepdf.Name`.
        """
        return _decode_value(self._inherited(Name.V))

    @value.setter
    def value(self, value: str | Name | None):
        self._check_writable()
        if value is None:
            if Name.V in self.obj:
                del self.obj.V
        else:
            self.obj.V = _encode_value(value)
        self.mark_dirty()

    @property
    def default_value(self):
        """The value the field takes when the form is reset (``/DV``)."""
        return _decode_value(self._inherited(Name.DV))

    @default_value.setter
    def default_value(self, value: str | Name | None):
        if value is None:
            if Name.DV in self.obj:
                del self.obj.DV
        else:
            self.obj.DV = _encode_value(value)

    # -- presentation --

    @property
    def text_alignment(self) -> TextAlignment:
        """Quadding of the field's text, falling back to the form's."""
        q = self._inherited(Name.Q)
        if q is None:
            q = self._form.text_alignment
        try:
            return TextAlignment(int(q))
        except ValueError:
            log.warning(f'Invalid quadding {q} in {self.fully_qualified_name}')
            return TextAlignment.LEFT

    @text_alignment.setter
    def text_alignment(self, value: TextAlignment):
        self.obj.Q = int(value)
        self.mark_dirty()

    @property
    def default_appearance(self) -> bytes | None:
        """The default appearance string (``/DA``) of the field or the form."""
        da = self._inherited(Name.DA)
        if da is None:
            return self._form.default_appearance
        return bytes(da)

    @property
    def font(self) -> FieldFont:
        """The font used to draw this field's text, inferred if necessary."""
        return self._determine_presentation()[0]

    @font.setter
    def font(self, font: FieldFont):
        self._set_presentation(font, self.fore_color)

    @property
    def fore_color(self) -> Color:
        """The color of this field's text and marks, inferred if necessary."""
        return self._determine_presentation()[1]

    @fore_color.setter
    def fore_color(self, color: Color):
        self._set_presentation(self.font, color)

    def _set_presentation(self, font: FieldFont, color: Color):
        self._form.register_font(font)
        self.obj.DA = String(font.default_appearance(color))
        self._presentation = (font, color)
        self.mark_dirty()

    def _wraps_text(self) -> bool:
        return False

    def _auto_font_size(self) -> float:
        """Font size for fields whose default appearance asks for automatic sizing."""
        size = settings.get_default_font_size()
        for widget in self.widgets:
            if not widget.has_area:
                continue
            rect = widget.rect
            rotated = widget.rotation in (90, 270) and not widget.no_rotate
            reference = rect.width if rotated else rect.height
            if not self._wraps_text():
                size = reference * 0.8
            if size > 1.0:
                break
        return size

    def _appearance_content_fallback(self) -> bytes | None:
        return None

    def _determine_presentation(self) -> tuple[FieldFont, Color]:
        """Infer font and text color from the default appearance.

        This is best-effort: when the default appearance is missing or cannot be
        understood, the default font from :mod:`pikeforms.settings` is used.
        """
        if self._presentation is not None:
            return self._presentation
        da = self.default_appearance
        if da is None:
            da = self._appearance_content_fallback()
        if da is None:
            self._presentation = (default_font(self._auto_font_size()), BLACK)
            return self._presentation
        try:
            parsed = DefaultAppearance.parse(da)
            size = parsed.font_size
            if size < 1.0:
                size = max(1.0, self._auto_font_size())
            try:
                font = self._form.load_font(parsed.font_name, self.obj, size)
            except LookupError:
                log.warning(
                    f'Font {parsed.font_name} of {self.fully_qualified_name} not '
                    'found; using the default font'
                )
                font = FieldFont(parsed.font_name, default_font().base_font, size)
            self._presentation = (font, parsed.color)
        except (PdfError, ValueError, TypeError, AttributeError) as e:
            log.debug(
                f'Could not determine appearance of {self.fully_qualified_name}: {e}'
            )
            self._presentation = (default_font(), BLACK)
        return self._presentation


class TextField(Field):
    """Represents an editable text field."""

    kind = FieldKind.TEXT
    field_type = Name.Tx

    @property
    def value(self) -> str:
        """The text of the field; empty if unset."""
        v = self._inherited(Name.V)
        if v is None:
            return ''
        return str(v)

    @value.setter
    def value(self, value: str):
        self._check_writable()
        if not isinstance(value, str):
            raise UnsupportedValueError(
                f'Text fields hold strings, not {type(value).__name__}'
            )
        if not value.isascii():
            font, color = self._determine_presentation()
            if not font.can_encode(value):
                self._presentation = (font.as_unicode(), color)
        self.obj.V = String(value)
        self.mark_dirty()

    text = value

    @property
    def max_length(self) -> int | None:
        """The maximum length of the text in this field (``/MaxLen``)."""
        max_len = self._inherited(Name.MaxLen)
        return int(max_len) if max_len is not None else None

    @max_length.setter
    def max_length(self, value: int | None):
        if value is None:
            if Name.MaxLen in self.obj:
                del self.obj.MaxLen
        else:
            self.obj.MaxLen = int(value)
        self.mark_dirty()

    @property
    def multiline(self) -> bool:
        """Is this a multiline text field?"""
        return self._has_flag(FormFieldFlag.tx_multiline)

    @multiline.setter
    def multiline(self, value: bool):
        self._set_flag(FormFieldFlag.tx_multiline, value)
        self.mark_dirty()

    @property
    def password(self) -> bool:
        """Is this a password field? Its text is drawn masked."""
        return self._has_flag(FormFieldFlag.tx_password)

    @password.setter
    def password(self, value: bool):
        self._set_flag(FormFieldFlag.tx_password, value)
        self.mark_dirty()

    @property
    def comb(self) -> bool:
        """Is this a combed text field?

        If True and ``max_length`` is set, the field is split into ``max_length``
        equal cells containing one character each.
        """
        return self._has_flag(FormFieldFlag.tx_comb)

    @comb.setter
    def comb(self, value: bool):
        self._set_flag(FormFieldFlag.tx_comb, value)
        self.mark_dirty()

    @property
    def spell_check_enabled(self) -> bool:
        """Should spell-checking be enabled in this field?"""
        return not self._has_flag(FormFieldFlag.tx_do_not_spell_check)

    @property
    def scrolling_enabled(self) -> bool:
        """Should scrolling (horizontal or vertical) be allowed in this field?"""
        return not self._has_flag(FormFieldFlag.tx_do_not_scroll)

    def _wraps_text(self) -> bool:
        return self.multiline


class _OnStateMixin:
    """Presentation inference for buttons that have on and off states."""

    def _appearance_content_fallback(self) -> bytes | None:
        for widget in self.widgets:
            on_state = widget.on_state
            if on_state is None:
                continue
            stream = widget.normal_appearance[on_state]
            if isinstance(stream, Stream):
                try:
                    return stream.read_bytes()
                except PdfError as e:
                    log.debug(f'Cannot read on-state appearance: {e}')
        return None


class CheckBoxField(_OnStateMixin, Field):
    """Represents a checkbox field."""

    kind = FieldKind.CHECK_BOX
    field_type = Name.Btn

    @property
    def on_value(self) -> Name:
        """The name of the checked state, ``/Yes`` if no widget defines one."""
        for widget in self.widgets:
            on_state = widget.on_state
            if on_state is not None:
                return on_state
        return Name.Yes

    @property
    def states(self) -> tuple[Name, ...]:
        """The possible states of this checkbox, typically /Off and the on value."""
        states = set()
        for widget in self.widgets:
            states.update(widget.appearance_names())
        return tuple(sorted(states)) or (Name.Off, Name.Yes)

    @property
    def checked(self) -> bool:
        """Is this checkbox checked?"""
        value = self._inherited(Name.V)
        widgets = self.widgets
        if widgets:
            widget = widgets[0]
            if value is None:
                value = widget.appearance_state
            names = widget.appearance_names()
            if names and value is not None:
                state = _bare_name(value)
                return state != 'Off' and state in {_bare_name(n) for n in names}
        state = _bare_name(value)
        return state not in ('', 'Off')

    @checked.setter
    def checked(self, checked: bool):
        self._check_writable()
        on_value = self.on_value
        self.obj.V = on_value if checked else Name.Off
        for widget in self.widgets:
            if checked:
                widget.appearance_state = widget.on_state or on_value
            else:
                widget.appearance_state = Name.Off
        self.mark_dirty()


class RadioButtonField(_OnStateMixin, Field):
    """Represents a radio button group.

    Each widget of the group is one option; the name of its on state is the option's
    name. Options are computed once and memoized; call :meth:`refresh` if widgets are
    added or changed by other means than :meth:`add_widget`.
    """

    kind = FieldKind.RADIO_BUTTON
    field_type = Name.Btn
    creation_flags = int(FormFieldFlag.btn_radio) | int(FormFieldFlag.btn_no_toggle_off)

    def __init__(self, form: Form, obj: Dictionary):
        super().__init__(form, obj)
        self._options: tuple[str, ...] | None = None

    def refresh(self):
        super().refresh()
        self._options = None

    @property
    def options(self) -> tuple[str, ...]:
        """Names of the on states of the widgets, in widget order."""
        if self._options is None:
            self._options = tuple(
                _bare_name(widget.on_state) for widget in self.widgets
            )
        return self._options

    @property
    def export_values(self) -> tuple[str, ...]:
        """Export values from ``/Opt``, or the option names if there is none."""
        opt = self.obj.get(Name.Opt)
        if opt is None:
            return self.options
        return tuple(str(v) for v in opt)

    @export_values.setter
    def export_values(self, values: Sequence[str]):
        if len(values) != len(self.options):
            raise FormatError(
                f'Expected {len(self.options)} export values, got {len(values)}'
            )
        self.obj.Opt = Array(String(v) for v in values)

    @property
    def radios_in_unison(self) -> bool:
        """Do widgets with the same on state turn on and off together?"""
        return self._has_flag(FormFieldFlag.btn_radios_in_unison)

    @radios_in_unison.setter
    def radios_in_unison(self, value: bool):
        self._set_flag(FormFieldFlag.btn_radios_in_unison, value)

    @property
    def can_toggle_off(self) -> bool:
        """If radio buttons in this group are allowed to be toggled off."""
        return not self._has_flag(FormFieldFlag.btn_no_toggle_off)

    @property
    def selected_index(self) -> int:
        """Index of the selected option, or -1.

        If several buttons share the selected option's name, the first one that is
        switched on is chosen.
        """
        value = self._inherited(Name.V)
        if value is None or value == Name.Off:
            return -1
        name = _bare_name(value)
        matches = [i for i, option in enumerate(self.options) if option == name]
        if not matches:
            log.warning(
                f'Value {value} of {self.fully_qualified_name} matches no option'
            )
            return -1
        widgets = self.widgets
        for i in matches:
            if widgets[i].appearance_state == Name('/' + name):
                return i
        return matches[0]

    @selected_index.setter
    def selected_index(self, index: int):
        self._check_writable()
        options = self.options
        if not -1 <= index < len(options):
            raise RangeError(
                f'Index {index} out of range for {len(options)} radio options'
            )
        name = Name.Off if index == -1 else Name('/' + options[index])
        self.obj.V = name
        self.apply_selection(index)
        self.mark_dirty()

    def apply_selection(self, index: int | None = None):
        """Set the appearance state of every widget to match the selection.

        Args:
            index: The selected option; by default, the one given by the value.
        """
        if index is None:
            index = self.selected_index
        options = self.options
        selected = options[index] if index >= 0 else None
        for i, widget in enumerate(self.widgets):
            widget.appearance_state = Name.Off
            if selected is None:
                continue
            if self.radios_in_unison:
                if i < len(options) and options[i] == selected:
                    widget.appearance_state = Name('/' + selected)
            elif i == index:
                widget.appearance_state = Name('/' + selected)

    @property
    def value(self) -> str | None:
        """Name of the selected option, without the leading slash; None if unset."""
        index = self.selected_index
        return self.options[index] if index >= 0 else None

    @value.setter
    def value(self, value: str | Name | None):
        if value is None or value == Name.Off:
            self.selected_index = -1
            return
        if not isinstance(value, str):
            raise UnsupportedValueError(
                f'Radio button values are names, not {type(value).__name__}'
            )
        name = _bare_name(value)
        if name in self.options:
            self.selected_index = self.options.index(name)
        elif name in self.export_values:
            self.selected_index = self.export_values.index(name)
        else:
            raise FormatError(
                f'{value!r} is not an option of {self.fully_qualified_name}'
            )

    def add_widget(
        self,
        rect: Rectangle,
        page: Page | None = None,
        *,
        on_state: str | Name = '',
        rotation: int = 0,
        border_color: Color | None = None,
        back_color: Color | None = None,
    ) -> Widget:
        """Create a radio button for a new option, with on state *on_state*."""
        on_state = _bare_name(on_state)
        if not on_state.strip():
            raise ValueError('Name of the on state must not be empty')
        widget = super().add_widget(
            rect,
            page,
            rotation=rotation,
            border_color=border_color,
            back_color=back_color,
        )
        self._form.appearance_generator.create_radio_appearance(
            self, widget, Name('/' + on_state)
        )
        widget.appearance_state = Name.Off
        self.refresh()
        return widget


class PushButtonField(Field):
    """Represents a pushbutton field.

    Pushbuttons retain no permanent state.
    """

    kind = FieldKind.PUSH_BUTTON
    field_type = Name.Btn
    creation_flags = int(FormFieldFlag.btn_pushbutton)

    @property
    def caption(self) -> str:
        """The caption of the first widget."""
        widgets = self.widgets
        return widgets[0].caption if widgets else ''

    @caption.setter
    def caption(self, value: str):
        for widget in self.widgets:
            widget.caption = value
        self.mark_dirty()


class ChoiceField(Field):
    """Base for list boxes and combo boxes.

    Each option has a display value, shown to the user, and an export value, stored
    as the field value. They are the same unless ``/Opt`` holds pairs.
    """

    field_type = Name.Ch

    def __init__(self, form: Form, obj: Dictionary):
        super().__init__(form, obj)
        self._opt: tuple[tuple[str, str], ...] | None = None

    def refresh(self):
        super().refresh()
        self._opt = None

    def _options(self) -> tuple[tuple[str, str], ...]:
        if self._opt is None:
            pairs = []
            for opt in self.obj.get(Name.Opt, ()):
                if isinstance(opt, Array) and len(opt) >= 2:
                    pairs.append((str(opt[0]), str(opt[1])))
                else:
                    pairs.append((str(opt), str(opt)))
            self._opt = tuple(pairs)
        return self._opt

    @property
    def options(self) -> tuple[str, ...]:
        """The display values of all options."""
        return tuple(display for _export, display in self._options())

    @options.setter
    def options(self, options: Sequence[str | tuple[str, str]]):
        items = []
        for opt in options:
            if isinstance(opt, tuple):
                export, display = opt
                items.append(Array([String(export), String(display)]))
            else:
                items.append(String(opt))
        self.obj.Opt = Array(items)
        self.refresh()
        self.mark_dirty()

    @property
    def export_values(self) -> tuple[str, ...]:
        """The export values of all options."""
        return tuple(export for export, _display in self._options())

    @export_values.setter
    def export_values(self, values: Sequence[str]):
        displays = self.options
        if len(values) != len(displays):
            raise FormatError(
                f'Expected {len(displays)} export values, got {len(values)}'
            )
        self.options = list(zip(values, displays))

    def index_of(self, value: str) -> int:
        """Index of the option whose export value, or else display value, is *value*."""
        if value in self.export_values:
            return self.export_values.index(value)
        if value in self.options:
            return self.options.index(value)
        return -1

    @property
    def selected_indices(self) -> tuple[int, ...]:
        """Indices of the selected options.

        The value (``/V``) takes precedence over the selection index array (``/I``).
        """
        result = []
        v = self._inherited(Name.V)
        if v is not None:
            values = list(v) if isinstance(v, Array) else [v]
            for item in values:
                if isinstance(item, String):
                    index = self.index_of(str(item))
                    if index >= 0:
                        result.append(index)
        if result:
            return tuple(result)
        indices = self.obj.get(Name.I)
        if indices is not None:
            result = [int(i) for i in indices if isinstance(i, int)]
        return tuple(result)

    @selected_indices.setter
    def selected_indices(self, indices: Iterable[int]):
        self._check_writable()
        indices = sorted(set(indices))
        count = len(self._options())
        for index in indices:
            if not 0 <= index < count:
                raise RangeError(f'Index {index} out of range for {count} options')
        if len(indices) > 1 and not self.multi_select:
            raise RangeError('Only one option can be selected in this field')
        if indices:
            exports = [String(self.export_values[i]) for i in indices]
            self.obj.I = Array(indices)
            self.obj.V = exports[0] if len(exports) == 1 else Array(exports)
        else:
            for key in (Name.I, Name.V):
                if key in self.obj:
                    del self.obj[key]
        self.mark_dirty()

    @property
    def selected_index(self) -> int:
        """Index of the first selected option, or -1."""
        indices = self.selected_indices
        return indices[0] if indices else -1

    @selected_index.setter
    def selected_index(self, index: int):
        if index == -1:
            self.selected_indices = ()
        else:
            self.selected_indices = (index,)

    @property
    def value(self) -> str | None:
        """Export value of the first selected option, or None.

        For editable combo boxes, a typed value that matches no option is returned
        as is.
        """
        indices = self.selected_indices
        if indices:
            export, display = self._options()[indices[0]]
            return export or display
        v = self._inherited(Name.V)
        if isinstance(v, String):
            return str(v)
        return None

    @value.setter
    def value(self, value: str | None):
        if value is None:
            self.selected_indices = ()
            return
        if not isinstance(value, str):
            raise UnsupportedValueError(
                f'Choice values are strings, not {type(value).__name__}'
            )
        index = self.index_of(value)
        if index >= 0:
            self.selected_indices = (index,)
        elif self.editable:
            self._check_writable()
            if Name.I in self.obj:
                del self.obj.I
            self.obj.V = String(value)
            self.mark_dirty()
        else:
            raise FormatError(
                f'{value!r} is not an option of {self.fully_qualified_name}'
            )

    @property
    def display_value(self) -> str:
        """The text shown for the current value."""
        indices = self.selected_indices
        if indices:
            return self._options()[indices[0]][1]
        return self.value or ''

    @property
    def top_index(self) -> int:
        """Index of the first visible option in a scrollable list (``/TI``)."""
        return int(self.obj.get(Name.TI, 0))

    @top_index.setter
    def top_index(self, index: int):
        if index < 0:
            raise RangeError('Top index must not be less than zero')
        self.obj.TI = int(index)
        self.mark_dirty()

    @property
    def multi_select(self) -> bool:
        """Can more than one option be selected?"""
        return self._has_flag(FormFieldFlag.ch_multi_select)

    @multi_select.setter
    def multi_select(self, value: bool):
        self._set_flag(FormFieldFlag.ch_multi_select, value)

    @property
    def editable(self) -> bool:
        """Does this combo box accept values that are not among the options?"""
        return self._has_flag(FormFieldFlag.ch_edit)

    @property
    def sorted(self) -> bool:
        """Should the options be shown sorted?"""
        return self._has_flag(FormFieldFlag.ch_sort)


class ComboBoxField(ChoiceField):
    """Represents a combo box: a drop-down list, optionally editable."""

    kind = FieldKind.COMBO_BOX
    creation_flags = int(FormFieldFlag.ch_combo)

    @property
    def editable(self) -> bool:
        """Does this combo box accept values that are not among the options?"""
        return self._has_flag(FormFieldFlag.ch_edit)

    @editable.setter
    def editable(self, value: bool):
        self._set_flag(FormFieldFlag.ch_edit, value)


class ListBoxField(ChoiceField):
    """Represents a scrollable list box."""

    kind = FieldKind.LIST_BOX

    def __init__(self, form: Form, obj: Dictionary):
        super().__init__(form, obj)
        self._highlight_color: Color | None = None
        self._highlight_text_color: Color | None = None

    def _wraps_text(self) -> bool:
        return True

    @property
    def highlight_color(self) -> Color:
        """Background color of selected entries."""
        if self._highlight_color is not None:
            return self._highlight_color
        return settings.get_list_highlight_colors()[0]

    @highlight_color.setter
    def highlight_color(self, color: Color):
        self._highlight_color = color
        self.mark_dirty()

    @property
    def highlight_text_color(self) -> Color:
        """Text color of selected entries."""
        if self._highlight_text_color is not None:
            return self._highlight_text_color
        return settings.get_list_highlight_colors()[1]

    @highlight_text_color.setter
    def highlight_text_color(self, color: Color):
        self._highlight_text_color = color
        self.mark_dirty()


class SignatureField(Field):
    """Represents a signature field.

    Signing is not supported; the field can be created, placed and flattened.
    """

    kind = FieldKind.SIGNATURE
    field_type = Name.Sig

    @property
    def is_signed(self) -> bool:
        """True if the field holds a signature dictionary."""
        return isinstance(self._inherited(Name.V), Dictionary)


class GenericField(Field):
    """A field without a recognized type, usually a container of other fields."""

    kind = FieldKind.GENERIC


__all__ = [
    'CheckBoxField',
    'ChoiceField',
    'ComboBoxField',
    'Field',
    'FieldKind',
    'GenericField',
    'ListBoxField',
    'PushButtonField',
    'RadioButtonField',
    'SignatureField',
    'TextAlignment',
    'TextField',
]
