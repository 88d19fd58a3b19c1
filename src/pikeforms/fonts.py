# SPDX-FileCopyrightText: 2025 pikeforms contributors
# SPDX-License-Identifier: MPL-2.0

"""Fonts and default appearance strings of form fields.

Variable text fields describe their text style with a *default appearance* (``/DA``)
string such as ``/Helv 10 Tf 0 g``, which names a font in the form's default resources
(``/DR``). This module parses those strings and provides just enough font information
to lay out text: character widths, ascent and descent, and the encoding of text into
character codes. Fonts defined by the form are read with
:class:`pikepdf.canvas.SimpleFont`.

Fonts are never embedded. Fields that need characters their font cannot encode
switch to a composite font using the ``Identity-H`` encoding with two-byte codes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from pikepdf import (
    Array,
    Dictionary,
    Name,
    Operator,
    Pdf,
    String,
    parse_content_stream,
)
from pikepdf.canvas import SimpleFont

from pikeforms import settings
from pikeforms.canvas import BLACK, Color, ContentStreamBuilder

log = logging.getLogger(__name__)

# fmt: off
# Advance widths of character codes 32 to 126, from the Adobe Font Metrics files
_HELVETICA_WIDTHS = (
    278, 278, 355, 556, 556, 889, 667, 191, 333, 333,
    389, 584, 278, 333, 278, 278, 556, 556, 556, 556,
    556, 556, 556, 556, 556, 556, 278, 278, 584, 584,
    584, 556, 1015, 667, 667, 722, 722, 667, 611, 778,
    722, 278, 500, 667, 556, 833, 722, 778, 667, 778,
    722, 667, 611, 722, 667, 944, 667, 667, 611, 278,
    278, 278, 469, 556, 333, 556, 556, 500, 556, 556,
    278, 556, 556, 222, 222, 500, 222, 833, 556, 556,
    556, 556, 333, 500, 278, 556, 500, 722, 500, 500,
    500, 334, 260, 334, 584,
)
_TIMES_WIDTHS = (
    250, 333, 408, 500, 500, 833, 778, 180, 333, 333,
    500, 564, 250, 333, 250, 278, 500, 500, 500, 500,
    500, 500, 500, 500, 500, 500, 278, 278, 564, 564,
    564, 444, 921, 722, 667, 667, 722, 611, 556, 722,
    722, 333, 389, 722, 611, 889, 722, 722, 556, 722,
    667, 556, 611, 722, 722, 944, 722, 722, 611, 333,
    278, 333, 469, 500, 333, 444, 500, 444, 500, 444,
    333, 500, 500, 278, 278, 500, 278, 778, 500, 500,
    500, 500, 333, 389, 278, 500, 500, 722, 500, 500,
    444, 480, 200, 480, 541,
)
# fmt: on

# WinAnsi codes above 126 whose width differs from the family's average
_HELVETICA_HIGH = {128: 556, 149: 350, 150: 556, 151: 1000, 160: 278, 183: 278}
_TIMES_HIGH = {128: 500, 149: 350, 150: 500, 151: 1000, 160: 250, 183: 250}

# (ascent, descent) in glyph space
_FAMILY_EXTENTS = {
    'Helvetica': (718, -207),
    'Times': (683, -217),
    'Courier': (629, -157),
}
_DEFAULT_EXTENTS = (750, -250)

# Resource names conventionally used by Acrobat for the standard 14 fonts
_STANDARD_RESOURCE_NAMES = {
    'Helv': 'Helvetica',
    'HeBo': 'Helvetica-Bold',
    'HeOb': 'Helvetica-Oblique',
    'HeBO': 'Helvetica-BoldOblique',
    'Cour': 'Courier',
    'CoBo': 'Courier-Bold',
    'TiRo': 'Times-Roman',
    'TiBo': 'Times-Bold',
    'TiIt': 'Times-Italic',
    'Symb': 'Symbol',
    'ZaDb': 'ZapfDingbats',
}


def _family(base_font: str) -> str:
    if base_font.startswith('Courier'):
        return 'Courier'
    if base_font.startswith('Times'):
        return 'Times'
    if base_font in ('Symbol', 'ZapfDingbats'):
        return base_font
    return 'Helvetica'


def standard_char_width(base_font: str, code: int) -> int:
    """Width of a WinAnsi character code in one of the standard fonts, in glyph space.

    Fonts outside the standard 14 are measured as if they were Helvetica.
    """
    family = _family(base_font)
    if family == 'Courier':
        return 600
    if family == 'Times':
        table, high, average = _TIMES_WIDTHS, _TIMES_HIGH, 500
    else:
        table, high, average = _HELVETICA_WIDTHS, _HELVETICA_HIGH, 556
    if 32 <= code <= 126:
        return table[code - 32]
    return high.get(code, average)


# Font descriptor values of the standard families: FontBBox, CapHeight, StemV
_FAMILY_DESCRIPTORS = {
    'Helvetica': ((-166, -225, 1000, 931), 718, 88),
    'Times': ((-168, -218, 1000, 898), 662, 84),
    'Courier': ((-23, -250, 715, 805), 562, 51),
}
_DEFAULT_DESCRIPTOR = ((-200, -250, 1000, 900), 700, 80)


def _identity_to_unicode() -> bytes:
    # Two-byte codes are UTF-16BE code units. A bfrange may only vary in its last
    # byte, so each high byte gets its own range; surrogates are left unmapped.
    ranges = [
        f'<{hi:02X}00> <{hi:02X}FF> <{hi:02X}00>'
        for hi in range(256)
        if not 0xD8 <= hi <= 0xDF
    ]
    lines = [
        '/CIDInit /ProcSet findresource begin',
        '12 dict begin',
        'begincmap',
        '/CIDSystemInfo << /Registry (Adobe) /Ordering (UCS) /Supplement 0 >> def',
        '/CMapName /Adobe-Identity-UCS def',
        '/CMapType 2 def',
        '1 begincodespacerange',
        '<0000> <FFFF>',
        'endcodespacerange',
    ]
    for start in range(0, len(ranges), 100):
        block = ranges[start : start + 100]
        lines.append(f'{len(block)} beginbfrange')
        lines.extend(block)
        lines.append('endbfrange')
    lines += [
        'endcmap',
        'CMapName currentdict /CMap defineresource pop',
        'end',
        'end',
    ]
    return '\n'.join(lines).encode('ascii')


@dataclass
class FieldFont:
    """A font resource as used by a form field.

    Fonts loaded from a resource dictionary are measured and encoded by
    :class:`pikepdf.canvas.SimpleFont`, which honors the font's own widths and
    encoding, including differences maps. Standard fonts that the form names without
    defining, and the composite variant, use the standard font metrics.

    Attributes:
        resource_name: The name of the font in the /Font resource dictionary, which is
            also the name used by the ``Tf`` operator.
        base_font: The PostScript name of the font, e.g. ``Helvetica``.
        size: Font size in text-space units.
        data: The font dictionary, if the form already provides one.
        unicode: If True, text is written as two-byte codes with a composite font.
    """

    resource_name: Name
    base_font: str
    size: float
    data: Dictionary | None = None
    unicode: bool = False
    _simple: SimpleFont | None = field(
        init=False, default=None, repr=False, compare=False
    )

    def __post_init__(self):
        self._simple = None
        if self.data is None or self.unicode:
            return
        try:
            self._simple = SimpleFont(self.data)
        except ValueError:
            log.debug(
                f'{self.resource_name} is not a simple font; using standard metrics'
            )

    @property
    def ascent(self) -> float:
        """Height above the baseline, scaled to the font size."""
        return self._extents()[0] * self.size / 1000

    @property
    def descent(self) -> float:
        """Depth below the baseline (negative), scaled to the font size."""
        return self._extents()[1] * self.size / 1000

    def _extents(self) -> tuple[float, float]:
        if self._simple is not None:
            descriptor = self.data.get(Name.FontDescriptor)
            if (
                descriptor is not None
                and Name.Ascent in descriptor
                and Name.Descent in descriptor
            ):
                return float(self._simple.ascent), float(self._simple.descent)
        return _FAMILY_EXTENTS.get(_family(self.base_font), _DEFAULT_EXTENTS)

    def with_size(self, size: float) -> FieldFont:
        """Return a copy of this font at another size."""
        return replace(self, size=float(size))

    def as_unicode(self) -> FieldFont:
        """Return a composite-font variant of this font able to show any character."""
        if self.unicode:
            return self
        return replace(
            self,
            resource_name=Name('/' + str(self.resource_name)[1:] + 'Uni'),
            data=None,
            unicode=True,
        )

    def _encode_strict(self, text: str) -> bytes:
        if self.unicode:
            return text.encode('utf-16-be')
        if self._simple is not None and Name.Encoding in self.data:
            try:
                return self._simple.encode(text)
            except UnicodeEncodeError:
                raise
            except (NotImplementedError, ValueError, TypeError) as e:
                log.debug(f'{self.resource_name}: {e}; encoding as WinAnsi')
        return text.encode('cp1252')

    def can_encode(self, text: str) -> bool:
        """Can every character of the text be shown with this font?"""
        try:
            self._encode_strict(text)
        except UnicodeEncodeError:
            return False
        return True

    def encode(self, text: str) -> bytes:
        """Encode a string in the character codes used by this font.

        Characters the font cannot show are replaced by ``?``.
        """
        try:
            return self._encode_strict(text)
        except UnicodeEncodeError:
            return b''.join(
                self._encode_strict(char) if self.can_encode(char) else b'?'
                for char in text
            )

    def _has_width(self, code: int) -> bool:
        if self._simple is None or Name.Widths not in self.data:
            return False
        index = code - int(self.data.get(Name.FirstChar, 0))
        return 0 <= index < len(self.data.Widths)

    def _unscaled_code_width(self, code: int) -> float:
        if self._has_width(code):
            return float(self._simple.unscaled_char_width(code))
        return standard_char_width(self.base_font, code)

    def text_width(self, text: str, size: float | None = None) -> float:
        """Get the width of the string when rendered at the given size.

        Args:
            text: The string to measure.
            size: Font size; defaults to the size of this font.
        """
        if size is None:
            size = self.size
        if self.unicode:
            width = 0.0
            for char in text:
                code = ord(char)
                if code < 256:
                    width += standard_char_width(self.base_font, code)
                else:
                    width += 1000
            return width * float(size) / 1000
        encoded = self.encode(text)
        if encoded and all(self._has_width(code) for code in encoded):
            return float(self._simple.text_width(encoded)) * float(size)
        width = sum(self._unscaled_code_width(code) for code in encoded)
        return width * float(size) / 1000

    def _font_descriptor(self, pdf: Pdf) -> Dictionary:
        family = _family(self.base_font)
        bbox, cap_height, stem_v = _FAMILY_DESCRIPTORS.get(family, _DEFAULT_DESCRIPTOR)
        ascent, descent = _FAMILY_EXTENTS.get(family, _DEFAULT_EXTENTS)
        symbolic = family in ('Symbol', 'ZapfDingbats')
        italic = 'Oblique' in self.base_font or 'Italic' in self.base_font
        return pdf.make_indirect(
            Dictionary(
                Type=Name.FontDescriptor,
                FontName=Name('/' + self.base_font),
                Flags=4 if symbolic else 32,
                FontBBox=Array(bbox),
                ItalicAngle=-12 if italic else 0,
                Ascent=ascent,
                Descent=descent,
                CapHeight=cap_height,
                StemV=stem_v,
            )
        )

    def register(self, pdf: Pdf) -> Dictionary:
        """Return an indirect font dictionary for this font, creating it if needed.

        The result is suitable for insertion into a /Resources /Font dictionary.
        """
        if self.data is not None:
            if not self.data.is_indirect:
                return pdf.make_indirect(self.data)
            return self.data
        if self.unicode:
            descendant = Dictionary(
                Type=Name.Font,
                Subtype=Name.CIDFontType2,
                BaseFont=Name('/' + self.base_font),
                CIDSystemInfo=Dictionary(
                    Registry=String('Adobe'), Ordering=String('Identity'), Supplement=0
                ),
                FontDescriptor=self._font_descriptor(pdf),
                CIDToGIDMap=Name.Identity,
                DW=1000,
            )
            return pdf.make_indirect(
                Dictionary(
                    Type=Name.Font,
                    Subtype=Name.Type0,
                    BaseFont=Name('/' + self.base_font),
                    Encoding=Name('/Identity-H'),
                    DescendantFonts=Array([pdf.make_indirect(descendant)]),
                    ToUnicode=pdf.make_stream(_identity_to_unicode()),
                )
            )
        return pdf.make_indirect(
            Dictionary(
                Type=Name.Font,
                Subtype=Name.Type1,
                BaseFont=Name('/' + self.base_font),
                Encoding=Name.WinAnsiEncoding,
            )
        )

    def default_appearance(self, color: Color = BLACK) -> bytes:
        """Encode a default appearance string selecting this font and color."""
        cs = ContentStreamBuilder()
        cs.set_text_font(self.resource_name, self.size)
        cs.set_fill_color(color)
        return cs.build().replace(b'\n', b' ').strip()


@dataclass
class DefaultAppearance:
    """The parts of a default appearance string that matter for layout."""

    font_name: Name
    font_size: float
    color: Color = BLACK

    @classmethod
    def parse(cls, da: str | bytes | String) -> DefaultAppearance:
        """Parse a default appearance string.

        It must at minimum contain a ``Tf`` operator, which indicates the font family
        and size. The last color operator, if any, gives the text color.

        Raises:
            ValueError: if there is no ``Tf`` operator.
        """
        if isinstance(da, String):
            da = bytes(da)
        elif isinstance(da, str):
            da = da.encode('latin-1', errors='replace')
        tmp_pdf = Pdf.new()
        instructions = parse_content_stream(tmp_pdf.make_stream(da))
        tf_inst = None
        color = BLACK
        for inst in instructions:
            if inst.operator == Operator('Tf'):
                tf_inst = inst
            elif inst.operator in (Operator('g'), Operator('rg'), Operator('k')):
                color = Color(tuple(float(v) for v in inst.operands))
        if tf_inst is None or len(tf_inst.operands) != 2:
            raise ValueError(f'No Tf operator in default appearance {da!r}')
        font_name, font_size = tf_inst.operands
        return cls(Name(font_name), float(font_size), color)


def load_font(name: Name, resources: Dictionary | None, size: float) -> FieldFont:
    """Look up a font by resource name in a resource dictionary.

    Fonts missing from the resources are still usable if the name is one of the
    conventional abbreviations of the standard 14 fonts, such as ``/Helv``.

    Raises:
        LookupError: if the font cannot be found.
    """
    fonts = resources.get(Name.Font) if resources is not None else None
    if fonts is not None and name in fonts:
        data = fonts[name]
        if not isinstance(data, Dictionary):
            raise TypeError(f'Font data for {name} is not a dictionary')
        base_font = data.get(Name.BaseFont)
        base_font = str(base_font)[1:] if base_font is not None else str(name)[1:]
        # Subset fonts are named like ABCDEF+Helvetica
        base_font = base_font.split('+', 1)[-1]
        unicode = data.get(Name.Subtype) == Name.Type0
        return FieldFont(name, base_font, float(size), data, unicode=unicode)
    standard = _STANDARD_RESOURCE_NAMES.get(str(name)[1:])
    if standard is None:
        raise LookupError(f'Cannot find font information for {name}')
    return FieldFont(name, standard, float(size))


def default_font(size: float | None = None) -> FieldFont:
    """The fallback font from :mod:`pikeforms.settings`."""
    resource_name, base_font = settings.get_default_font()
    if size is None:
        size = settings.get_default_font_size()
    return FieldFont(Name('/' + resource_name), base_font, float(size))


__all__ = [
    'DefaultAppearance',
    'FieldFont',
    'default_font',
    'load_font',
    'standard_char_width',
]
