"""Colour palettes used to tint the layers of DCI icons."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional
from urllib.parse import quote, unquote, urlsplit

PALETTE_HOST = "dtk.dci.palette"


class PaletteRole(IntEnum):
    """Which palette colour a layer is filled with."""

    NO_PALETTE = -1
    FOREGROUND = 0
    BACKGROUND = 1
    HIGHLIGHT_FOREGROUND = 2
    HIGHLIGHT = 3
    PALETTE_COUNT = 4


_NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "lime": (0, 255, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "aqua": (0, 255, 255),
    "magenta": (255, 0, 255),
    "fuchsia": (255, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "maroon": (128, 0, 0),
    "olive": (128, 128, 0),
    "navy": (0, 0, 128),
    "purple": (128, 0, 128),
    "teal": (0, 128, 128),
    "orange": (255, 165, 0),
}


@dataclass(frozen=True)
class Color:
    """An 8-bit RGBA colour."""

    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self) -> None:
        for channel in (self.red, self.green, self.blue, self.alpha):
            if not 0 <= channel <= 255:
                raise ValueError(f"colour channel out of range: {channel}")

    @classmethod
    def parse(cls, text: str) -> "Color":
        """Parse ``#rgb``, ``#rrggbb``, ``#aarrggbb``, 12/16-bit hex forms or a colour name."""
        value = text.strip()
        if not value:
            raise ValueError("empty colour")
        if not value.startswith("#"):
            lowered = value.lower()
            if lowered == "transparent":
                return cls(0, 0, 0, 0)
            try:
                return cls(*_NAMED_COLORS[lowered])
            except KeyError:
                raise ValueError(f"unknown colour name: {text!r}") from None

        digits = value[1:]
        try:
            int(digits, 16)
        except ValueError:
            raise ValueError(f"invalid hex colour: {text!r}") from None

        length = len(digits)
        if length == 3:
            r, g, b = (int(ch, 16) * 17 for ch in digits)
            return cls(r, g, b)
        if length == 6:
            return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
        if length == 8:
            return cls(
                int(digits[2:4], 16),
                int(digits[4:6], 16),
                int(digits[6:8], 16),
                int(digits[0:2], 16),
            )
        if length == 9:
            r, g, b = (int(digits[i:i + 3], 16) >> 4 for i in (0, 3, 6))
            return cls(r, g, b)
        if length == 12:
            r, g, b = (int(digits[i:i + 4], 16) >> 8 for i in (0, 4, 8))
            return cls(r, g, b)
        raise ValueError(f"invalid hex colour: {text!r}")

    def name(self, with_alpha: bool = False) -> str:
        """Return ``#rrggbb``, or ``#aarrggbb`` when ``with_alpha`` is true."""
        if with_alpha:
            return f"#{self.alpha:02x}{self.red:02x}{self.green:02x}{self.blue:02x}"
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"


def _color_name(color: Optional[Color]) -> str:
    return color.name(with_alpha=True) if color is not None else "InValid"


_QUERY_KEYS = ("foreground", "background", "highlight", "highlightForeground")


@dataclass
class DciIconPalette:
    """The four colours a DCI icon layer may be filled with; ``None`` means unset."""

    foreground: Optional[Color] = None
    background: Optional[Color] = None
    highlight: Optional[Color] = None
    highlight_foreground: Optional[Color] = None

    def color(self, role: PaletteRole) -> Optional[Color]:
        """Return the colour for ``role``, or ``None`` for roles without one."""
        role = PaletteRole(role)
        if role is PaletteRole.FOREGROUND:
            return self.foreground
        if role is PaletteRole.BACKGROUND:
            return self.background
        if role is PaletteRole.HIGHLIGHT_FOREGROUND:
            return self.highlight_foreground
        if role is PaletteRole.HIGHLIGHT:
            return self.highlight
        return None

    def _by_key(self) -> dict[str, Optional[Color]]:
        return {
            "foreground": self.foreground,
            "background": self.background,
            "highlight": self.highlight,
            "highlightForeground": self.highlight_foreground,
        }

    def to_string(self) -> str:
        """Encode the palette as a ``//dtk.dci.palette?...`` URL string."""
        items = [
            f"{key}={quote(color.name(with_alpha=True), safe='')}"
            for key, color in self._by_key().items()
            if color is not None
        ]
        url = "//" + PALETTE_HOST
        if items:
            url += "?" + "&".join(items)
        return url

    @classmethod
    def from_string(cls, data: str) -> "DciIconPalette":
        """Decode a palette URL; a foreign host gives an empty palette."""
        parts = urlsplit(data)
        if (parts.hostname or "") != PALETTE_HOST:
            return cls()

        values: dict[str, str] = {}
        for item in filter(None, parts.query.split("&")):
            key, _, value = item.partition("=")
            values.setdefault(unquote(key), unquote(value))

        colors: dict[str, Optional[Color]] = {}
        for key in _QUERY_KEYS:
            text = values.get(key)
            try:
                colors[key] = Color.parse(text) if text is not None else None
            except ValueError:
                colors[key] = None

        return cls(
            foreground=colors["foreground"],
            background=colors["background"],
            highlight=colors["highlight"],
            highlight_foreground=colors["highlightForeground"],
        )

    def __str__(self) -> str:
        return (
            f"DciIconPalette(foreground: {_color_name(self.foreground)}"
            f",background: {_color_name(self.background)}"
            f",highlight: {_color_name(self.highlight)}"
            f",highlightForeground: {_color_name(self.highlight_foreground)})"
        )