# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Module for generating the content streams of form field appearances."""

from __future__ import annotations

import logging
import math
from collections.abc import Generator, Iterable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pikepdf import (
    Array,
    ContentStreamInstruction,
    Dictionary,
    Matrix,
    Name,
    Operator,
    Pdf,
    Rectangle,
    Stream,
    canvas,
)

log = logging.getLogger(__name__)

Numeric = int | float | Decimal

# Control point distance for approximating a quarter circle with a cubic Bezier curve
_KAPPA = 4 * (math.sqrt(2) - 1) / 3


class ColorSpace(Enum):
    """Device color spaces, identified by their number of components."""

    EMPTY = 0
    GRAY = 1
    RGB = 3
    CMYK = 4


@dataclass(frozen=True)
class Color:
    """A device color.

    The color space is implied by the number of components, the same way color arrays
    are written in PDF: none for a transparent (empty) color, one for DeviceGray, three
    for DeviceRGB and four for DeviceCMYK.
    """

    components: tuple[float, ...] = ()

    def __post_init__(self):
        if len(self.components) not in (0, 1, 3, 4):
            raise ValueError(
                f'A color needs 0, 1, 3 or 4 components, not {len(self.components)}'
            )

    @classmethod
    def from_array(cls, array: Array | Sequence | None) -> Color:
        """Decode a PDF color array such as ``/MK /BG``.

        Arrays of any other length are treated as an empty color.
        """
        if array is None:
            return EMPTY
        values = tuple(float(v) for v in array)
        if len(values) not in (0, 1, 3, 4):
            log.warning(f'Ignoring color array with {len(values)} components')
            return EMPTY
        return cls(values)

    @property
    def space(self) -> ColorSpace:
        """The color space of this color."""
        return ColorSpace(len(self.components))

    @property
    def is_empty(self) -> bool:
        """True if this color is transparent, that is, has no components."""
        return not self.components

    def to_array(self) -> Array:
        """Encode as a PDF color array."""
        return Array(self.components)


EMPTY = Color()
BLACK = Color((0.0,))
WHITE = Color((1.0,))
GRAY = Color((0.5,))
RED = Color((1.0, 0.0, 0.0))
GREEN = Color((0.0, 0.5, 0.0))
BLUE = Color((0.0, 0.0, 1.0))
DARKBLUE = Color((0.0, 0.0, 0.545))

_FILL_OPERATORS = {
    ColorSpace.GRAY: 'g',
    ColorSpace.RGB: 'rg',
    ColorSpace.CMYK: 'k',
}
_STROKE_OPERATORS = {
    ColorSpace.GRAY: 'G',
    ColorSpace.RGB: 'RG',
    ColorSpace.CMYK: 'K',
}


def _tidy(value):
    if isinstance(value, (float, Decimal)):
        if value == int(value):
            return int(value)
        return Decimal(str(round(value, 4))).normalize()
    if isinstance(value, Array):
        return Array(_tidy(v) for v in value)
    return value


class ContentStreamBuilder(canvas.ContentStreamBuilder):
    """Content stream builder for appearance streams.

    Extends pikepdf's builder with the path operators that widget borders and radio
    buttons need, and with color operators for every device color space. Numbers are
    rounded to four decimal places.
    """

    def _append(self, inst: ContentStreamInstruction):
        operands = [_tidy(v) for v in inst.operands]
        super()._append(ContentStreamInstruction(operands, inst.operator))

    def _op(self, operator: str, *operands):
        self._append(ContentStreamInstruction(list(operands), Operator(operator)))
        return self

    def append_instructions(self, instructions: Iterable[ContentStreamInstruction]):
        """Append already parsed content stream instructions, unchanged."""
        for inst in instructions:
            super()._append(inst)
        return self

    def move_to(self, x: Numeric, y: Numeric):
        """Begin a new subpath."""
        return self._op("m", x, y)

    def line_to(self, x: Numeric, y: Numeric):
        """Append a straight line segment to the current path."""
        return self._op("l", x, y)

    def curve_to(self, x1, y1, x2, y2, x3, y3):
        """Append a cubic Bezier curve to the current path."""
        return self._op("c", x1, y1, x2, y2, x3, y3)

    def close_path(self):
        """Close the current subpath."""
        return self._op("h")

    def append_ellipse(self, x: float, y: float, w: float, h: float):
        """Append an ellipse inscribed in the given rectangle to the path."""
        rx, ry = w / 2, h / 2
        cx, cy = x + rx, y + ry
        ox, oy = rx * _KAPPA, ry * _KAPPA
        self.move_to(cx + rx, cy)
        self.curve_to(cx + rx, cy + oy, cx + ox, cy + ry, cx, cy + ry)
        self.curve_to(cx - ox, cy + ry, cx - rx, cy + oy, cx - rx, cy)
        self.curve_to(cx - rx, cy - oy, cx - ox, cy - ry, cx, cy - ry)
        self.curve_to(cx + ox, cy - ry, cx + rx, cy - oy, cx + rx, cy)
        return self.close_path()

    def stroke(self):
        """Stroke path."""
        return self._op("S")

    def clip(self):
        """Intersect the clipping path with the current path, and end the path."""
        self._op("W")
        return self._op("n")

    def set_line_cap(self, style: int):
        """Set line cap style: 0 butt, 1 round, 2 projecting square."""
        return self._op("J", style)

    def set_fill_color(self, color: Color):  # type: ignore[override]
        """Set the nonstroking color. Empty colors emit nothing."""
        if color.is_empty:
            return self
        return self._op(_FILL_OPERATORS[color.space], *color.components)

    def set_stroke_color(self, color: Color):  # type: ignore[override]
        """Set the stroking color. Empty colors emit nothing."""
        if color.is_empty:
            return self
        return self._op(_STROKE_OPERATORS[color.space], *color.components)


class FormSurface:
    """A bounded drawing surface that becomes a Form XObject when finalized.

    Obtain one through :func:`form_xobject`, which guarantees it is either finalized
    or discarded.
    """

    def __init__(
        self,
        pdf: Pdf,
        width: float,
        height: float,
        *,
        matrix: Matrix | None = None,
    ):
        self.pdf = pdf
        self.width = max(1.0, float(width))
        self.height = max(1.0, float(height))
        self.matrix = matrix
        self.content = ContentStreamBuilder()
        self.fonts = Dictionary()
        self.stream: Stream | None = None

    @property
    def bbox(self) -> Rectangle:
        """The bounding box of the surface, anchored at the origin."""
        return Rectangle(0, 0, self.width, self.height)

    def add_font(self, name: Name, font: Dictionary):
        """Make a font available to text drawn on this surface."""
        self.fonts[name] = font

    def finalize(self) -> Stream:
        """Convert the content to a Form XObject."""
        extra = {}
        if self.matrix is not None:
            extra['Matrix'] = self.matrix.as_array()
        resources = Dictionary()
        if len(self.fonts.keys()) > 0:
            resources.Font = self.fonts
        self.stream = self.pdf.make_stream(
            self.content.build(),
            Type=Name.XObject,
            Subtype=Name.Form,
            FormType=1,
            BBox=self.bbox.as_array(),
            Resources=resources,
            **extra,
        )
        return self.stream


@contextmanager
def form_xobject(
    pdf: Pdf, width: float, height: float, *, matrix: Matrix | None = None
) -> Generator[FormSurface]:
    """Acquire a drawing surface of the given size.

    The surface is finalized into a Form XObject when the block exits normally, and
    is discarded if the block raises.

    Example:

    .. code-block:: python

        with form_xobject(pdf, 100, 20) as surface:
            surface.content.append_rectangle(0, 0, 100, 20).stroke()
        annot.AP = Dictionary(N=surface.stream)
    """
    surface = FormSurface(pdf, width, height, matrix=matrix)
    try:
        yield surface
    except BaseException:
        surface.stream = None
        raise
    surface.finalize()


__all__ = [
    'BLACK',
    'BLUE',
    'Color',
    'ColorSpace',
    'ContentStreamBuilder',
    'DARKBLUE',
    'EMPTY',
    'FormSurface',
    'GRAY',
    'GREEN',
    'RED',
    'WHITE',
    'form_xobject',
]
