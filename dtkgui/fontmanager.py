"""Font size levels T1 to T10 derived from a base font."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Callable, Optional


class SizeType(IntEnum):
    """System font size levels."""

    T1 = 0
    T2 = 1
    T3 = 2
    T4 = 3
    T5 = 4
    T6 = 5
    T7 = 6
    T8 = 7
    T9 = 8
    T10 = 9


N_SIZE_TYPES = len(SizeType)
DEFAULT_PIXEL_SIZES = (40, 30, 24, 20, 17, 14, 13, 12, 11, 10)
BASE_SIZE_TYPE = SizeType.T6


@dataclass(frozen=True)
class Font:
    """A font description; ``pixel_size`` of -1 means the size is given in points."""

    family: str = ""
    pixel_size: int = -1
    point_size: float = -1.0
    dpi: float = 96.0
    bold: bool = False
    italic: bool = False

    def with_pixel_size(self, pixel_size: int) -> "Font":
        """Return a copy sized in pixels."""
        return replace(self, pixel_size=pixel_size, point_size=-1.0)


def font_pixel_size(font: Font) -> int:
    """Return the font's size in pixels, converting from points when needed."""
    if font.pixel_size != -1:
        return font.pixel_size
    pixels = math.floor((font.point_size * font.dpi / 72) * 100 + 0.5) / 100
    return math.floor(pixels + 0.5)


class FontManager:
    """Maps the size levels to pixel sizes, shifted by the base font's size."""

    def __init__(self) -> None:
        self._pixel_sizes = list(DEFAULT_PIXEL_SIZES)
        self._pixel_size_diff = 0
        self._base_font = Font(pixel_size=self._pixel_sizes[BASE_SIZE_TYPE])
        self._listeners: list[Callable[[], None]] = []

    @property
    def base_font(self) -> Font:
        return self._base_font

    def pixel_size(self, size_type: int) -> int:
        """Return the pixel size for a level; 0 for an unknown level."""
        if not 0 <= size_type < N_SIZE_TYPES:
            return 0
        return self._pixel_sizes[size_type] + self._pixel_size_diff

    def set_pixel_size(self, size_type: int, size: int) -> None:
        """Set the unshifted pixel size of a level; unknown levels are ignored."""
        if not 0 <= size_type < N_SIZE_TYPES:
            return
        self._pixel_sizes[size_type] = size

    def set_base_font(self, font: Font) -> None:
        """Set the base font and shift all levels to match its size."""
        if font == self._base_font:
            return
        self._base_font = font
        self._pixel_size_diff = font_pixel_size(font) - self._pixel_sizes[BASE_SIZE_TYPE]
        for callback in list(self._listeners):
            callback()

    def reset_base_font(self) -> None:
        """Restore a base font sized at the T6 level."""
        self.set_base_font(Font(pixel_size=self._pixel_sizes[BASE_SIZE_TYPE]))

    def get(self, size_type: int, base: Optional[Font] = None) -> Font:
        """Return ``base`` (the base font by default) sized for a level."""
        if base is None:
            base = self._base_font
        return base.with_pixel_size(self.pixel_size(size_type))

    def font(self, size_type: int) -> Font:
        """Return the base font sized for a level."""
        return self.get(size_type)

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` whenever the base font changes."""
        self._listeners.append(callback)