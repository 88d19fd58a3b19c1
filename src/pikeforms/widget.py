# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Widget annotations: the visible placements of form fields on pages."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from pikepdf import (
    AnnotationFlag,
    Array,
    Dictionary,
    Name,
    Object,
    Page,
    Rectangle,
    Stream,
    String,
)

from pikeforms.canvas import EMPTY, Color
from pikeforms.exceptions import FormatError

if TYPE_CHECKING:
    from pikeforms.form import Form

log = logging.getLogger(__name__)


def same_object(a: Object, b: Object) -> bool:
    """True if *a* and *b* are the same indirect object."""
    if a.is_indirect and b.is_indirect:
        return a.objgen == b.objgen
    return a.is_indirect == b.is_indirect and a == b


class Widget:
    """One visual placement of a field on a page.

    A widget wraps a ``/Subtype /Widget`` annotation dictionary. The dictionary may
    also be the field itself, when a field with a single widget is stored merged with
    it.

    The background and border colors are read when the widget is constructed, and are
    not recomputed if the dictionary is changed by other means. Call :meth:`refresh`
    to read them again.
    """

    obj: Dictionary

    def __init__(self, form: Form, obj: Dictionary):
        if obj.get(Name.Subtype) != Name.Widget:
            raise FormatError(
                f'Annotation is not a widget (Subtype {obj.get(Name.Subtype)})'
            )
        self._form = form
        self.obj = obj
        self._back_color = EMPTY
        self._border_color = EMPTY
        self.refresh()

    @classmethod
    def new(
        cls,
        form: Form,
        rect: Rectangle | None = None,
        page: Page | None = None,
        parent: Dictionary | None = None,
    ) -> Widget:
        """Create a new widget annotation, optionally placed on a page.

        If *parent* is given, the widget becomes a kid of that field dictionary.
        """
        obj = form.pdf.make_indirect(
            Dictionary(
                Type=Name.Annot,
                Subtype=Name.Widget,
                F=int(AnnotationFlag.print),
            )
        )
        widget = cls(form, obj)
        if parent is not None:
            obj.Parent = parent
            if Name.Kids not in parent:
                parent.Kids = Array()
            parent.Kids.append(obj)
        if rect is not None:
            widget.rect = rect
        if page is not None:
            widget.place_on(page)
        return widget

    def __eq__(self, other):
        if not isinstance(other, Widget):
            return NotImplemented
        return same_object(self.obj, other.obj)

    def __hash__(self):
        return hash(self.obj.objgen)

    def __repr__(self):
        return f'<pikeforms.Widget rect={self.rect} state={self.appearance_state}>'

    def refresh(self):
        """Re-read the cached background and border colors from the dictionary."""
        mk = self.obj.get(Name.MK)
        if mk is None:
            self._back_color = EMPTY
            self._border_color = EMPTY
            return
        self._back_color = Color.from_array(mk.get(Name.BG))
        self._border_color = Color.from_array(mk.get(Name.BC))

    def _mk(self) -> Dictionary:
        if Name.MK not in self.obj:
            self.obj.MK = Dictionary()
        return self.obj.MK

    @property
    def rect(self) -> Rectangle | None:
        """The placement of the widget, or None if it has not been placed."""
        rect = self.obj.get(Name.Rect)
        if rect is None or len(rect) != 4:
            return None
        x1, y1, x2, y2 = (float(v) for v in rect)
        return Rectangle(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))

    @rect.setter
    def rect(self, value: Rectangle):
        self.obj.Rect = value.as_array()

    @property
    def has_area(self) -> bool:
        """True if the widget has a rectangle with nonzero width and height."""
        rect = self.rect
        return rect is not None and rect.width > 0 and rect.height > 0

    @property
    def rotation(self) -> int:
        """Counterclockwise rotation of the widget content, in degrees."""
        mk = self.obj.get(Name.MK)
        if mk is None:
            return 0
        return int(mk.get(Name.R, 0)) % 360

    @rotation.setter
    def rotation(self, value: int):
        if value % 90 != 0:
            raise ValueError('Rotation must be a multiple of 90 degrees')
        self._mk().R = value % 360

    @property
    def back_color(self) -> Color:
        """Background color, from ``/MK /BG`` when the widget was loaded."""
        return self._back_color

    @back_color.setter
    def back_color(self, color: Color):
        if color.is_empty:
            if Name.MK in self.obj and Name.BG in self.obj.MK:
                del self.obj.MK.BG
        else:
            self._mk().BG = color.to_array()
        self._back_color = color

    @property
    def border_color(self) -> Color:
        """Border color, from ``/MK /BC`` when the widget was loaded."""
        return self._border_color

    @border_color.setter
    def border_color(self, color: Color):
        if color.is_empty:
            if Name.MK in self.obj and Name.BC in self.obj.MK:
                del self.obj.MK.BC
        else:
            self._mk().BC = color.to_array()
        self._border_color = color

    @property
    def border_width(self) -> float:
        """Border width from ``/BS /W``; 1 if unspecified."""
        bs = self.obj.get(Name.BS)
        if bs is None:
            return 1.0
        return float(bs.get(Name.W, 1))

    @property
    def caption(self) -> str:
        """Normal caption (``/MK /CA``) of a button."""
        mk = self.obj.get(Name.MK)
        if mk is None or Name.CA not in mk:
            return ''
        return str(mk.CA)

    @caption.setter
    def caption(self, value: str):
        self._mk().CA = String(value)

    @property
    def highlight_mode(self) -> Name:
        """How the widget is highlighted when clicked (``/H``), default ``/I``."""
        return self.obj.get(Name.H, Name.I)

    @property
    def flags(self) -> int:
        """Annotation flags (``/F``); test with :class:`pikepdf.AnnotationFlag`."""
        return int(self.obj.get(Name.F, 0))

    @flags.setter
    def flags(self, value: int):
        self.obj.F = int(value)

    def _has_flag(self, flag: AnnotationFlag) -> bool:
        return bool(self.flags & int(flag))

    @property
    def is_hidden(self) -> bool:
        """True if the Hidden or NoView flag is set."""
        return self._has_flag(AnnotationFlag.hidden) or self._has_flag(
            AnnotationFlag.no_view
        )

    @property
    def no_rotate(self) -> bool:
        """True if the NoRotate flag is set."""
        return self._has_flag(AnnotationFlag.no_rotate)

    @property
    def appearance_state(self) -> Name | None:
        """The current appearance state (``/AS``), or None."""
        return self.obj.get(Name.AS)

    @appearance_state.setter
    def appearance_state(self, value: Name | None):
        if value is None:
            if Name.AS in self.obj:
                del self.obj.AS
        else:
            self.obj.AS = Name(value)

    @property
    def appearance_dict(self) -> Dictionary | None:
        """The appearance dictionary (``/AP``), or None."""
        return self.obj.get(Name.AP)

    @property
    def normal_appearance(self) -> Object | None:
        """The normal appearance: either a stream, or a dictionary of state streams."""
        ap = self.appearance_dict
        if ap is None:
            return None
        return ap.get(Name.N)

    def appearance_names(self, key: Name = Name.N) -> tuple[Name, ...]:
        """Names of the appearance states available under ``/AP`` *key*."""
        ap = self.appearance_dict
        if ap is None:
            return ()
        sub = ap.get(key)
        if sub is None or isinstance(sub, Stream):
            return ()
        return tuple(Name(k) for k in sorted(sub.keys()))

    @property
    def on_state(self) -> Name | None:
        """The first normal appearance state that is not ``/Off``."""
        for name in self.appearance_names():
            if name != Name.Off:
                return name
        return None

    def current_appearance(self) -> Stream | None:
        """The normal appearance stream that is shown in the current state."""
        normal = self.normal_appearance
        if normal is None:
            return None
        if isinstance(normal, Stream):
            return normal
        state = self.appearance_state
        if state is None or state not in normal:
            return None
        stream = normal[state]
        return stream if isinstance(stream, Stream) else None

    def set_normal_appearance(self, appearance: Stream | Mapping[Name, Stream]):
        """Replace the normal appearance with a stream or a mapping of states."""
        if not isinstance(appearance, Stream):
            appearance = Dictionary({str(k): v for k, v in appearance.items()})
        if Name.AP in self.obj:
            self.obj.AP.N = appearance
            # Other appearance kinds would no longer match the normal one
            for key in (Name.R, Name.D):
                if key in self.obj.AP:
                    del self.obj.AP[key]
        else:
            self.obj.AP = Dictionary(N=appearance)

    @property
    def page(self) -> Page | None:
        """The page the widget is placed on, or None.

        Uses ``/P`` if present, else searches the annotations of every page.
        """
        p = self.obj.get(Name.P)
        if p is not None:
            for page in self._form.pdf.pages:
                if same_object(page.obj, p):
                    return page
        for page in self._form.pdf.pages:
            for annot in page.obj.get(Name.Annots, ()):
                if same_object(annot, self.obj):
                    return page
        return None

    def place_on(self, page: Page):
        """Add the widget to the annotations of *page*."""
        self.obj.P = page.obj
        if Name.Annots not in page.obj:
            page.obj.Annots = Array()
        for annot in page.obj.Annots:
            if same_object(annot, self.obj):
                return
        page.obj.Annots.append(self.obj)

    def detach(self):
        """Remove the widget from the annotations of every page that lists it."""
        for page in self._form.pdf.pages:
            annots = page.obj.get(Name.Annots)
            if annots is None:
                continue
            for index in reversed(range(len(annots))):
                if same_object(annots[index], self.obj):
                    del annots[index]


__all__ = ['Widget']
