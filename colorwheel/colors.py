"""
Color values and hue rotation for the channel color wheel
"""
import colorsys
import re
from fractions import Fraction
from typing import Tuple

HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

WHEEL_DEGREES = 360


def _parse_hex(text: str) -> Tuple[int, int, int]:
    match = HEX_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"not a hex color: {text!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


class ColorValue:
    """
    An immutable color on the wheel.

    A value is its hue (an exact fraction of a turn), lightness and
    saturation. Hue arithmetic is exact, so rotating by A then B lands on
    the same value as rotating by A + B. Equality and hashing cover that
    whole state; `hex` is the wire form.
    """

    __slots__ = ("_hue", "_lightness", "_saturation", "_hex")

    def __init__(self, hue, lightness: float, saturation: float):
        # Greys have no hue.
        self._hue = Fraction(hue) % 1 if saturation else Fraction(0)
        self._lightness = lightness
        self._saturation = saturation
        self._hex = self._render()

    @classmethod
    def parse(cls, text: str) -> "ColorValue":
        r, g, b = _parse_hex(text)
        return cls(*colorsys.rgb_to_hls(r / 255, g / 255, b / 255))

    def rotate(self, degrees: float) -> "ColorValue":
        """Return this color turned by `degrees` around the hue wheel"""
        return ColorValue(
            self._hue + Fraction(degrees) / WHEEL_DEGREES,
            self._lightness,
            self._saturation,
        )

    @property
    def hex(self) -> str:
        return self._hex

    def _key(self):
        return self._hue, self._lightness, self._saturation

    def _render(self) -> str:
        r, g, b = colorsys.hls_to_rgb(float(self._hue), self._lightness, self._saturation)
        return "#{:02X}{:02X}{:02X}".format(
            round(r * 255), round(g * 255), round(b * 255)
        )

    def __eq__(self, other):
        if not isinstance(other, ColorValue):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        return self._hex

    def __repr__(self):
        return f"ColorValue({self._hex!r})"


DEFAULT_COLOR = ColorValue.parse("#201fa4")
