"""DCI icons: matching an entry and rendering its layers with Pillow."""

from __future__ import annotations

import io
import math
from typing import Optional

from PIL import Image

from .dcientry import (
    DciSource,
    DirectoryDciSource,
    EntryNode,
    IconEntry,
    Layer,
    MatchFlag,
    Mode,
    ScalableLayer,
    Theme,
    load_icon_list,
    match_icon,
)
from .icontheme import cached
from .palette import DciIconPalette, PaletteRole

Rect = tuple[int, int, int, int]
Size = tuple[int, int]
Alignment = tuple[str, str]

CENTER: Alignment = ("center", "center")


def _qround(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return math.ceil(value - 0.5)


def _half(value: int) -> int:
    return int(value / 2)


def aligned_rect(rect: Rect, size: Size, alignment: Alignment = CENTER) -> Rect:
    """Place a box of ``size`` inside ``rect``.

    ``alignment`` is ``(horizontal, vertical)`` with horizontal one of
    ``left``, ``center``, ``right`` and vertical one of ``top``,
    ``center``, ``bottom``.
    """
    horizontal, vertical = alignment
    x, y, rect_w, rect_h = rect
    w, h = size
    if vertical == "center":
        y += _half(rect_h) - _half(h)
    elif vertical == "bottom":
        y += rect_h - h
    elif vertical != "top":
        raise ValueError(f"unknown vertical alignment: {vertical!r}")
    if horizontal == "right":
        x += rect_w - w
    elif horizontal == "center":
        x += _half(rect_w) - _half(w)
    elif horizontal != "left":
        raise ValueError(f"unknown horizontal alignment: {horizontal!r}")
    return (x, y, w, h)


def _scaled_keep_aspect(width: int, height: int, target_w: int, target_h: int) -> Size:
    if width <= 0 or height <= 0:
        return (target_w, target_h)
    rw = target_h * width // height
    if rw <= target_w:
        return (rw, target_h)
    return (target_w, target_w * height // width)


def _pillow_format(fmt: str) -> Optional[list[str]]:
    if not fmt:
        return None
    Image.init()
    name = fmt.upper()
    if name == "JPG":
        name = "JPEG"
    return [name] if name in Image.OPEN else None


def _read_image(layer: Layer, pixmap_scale: float) -> Optional[Image.Image]:
    if not layer.data:
        return None
    try:
        with Image.open(io.BytesIO(layer.data), formats=_pillow_format(layer.format)) as opened:
            opened.load()
            image = opened.copy()
    except (OSError, ValueError):
        return None

    if layer.is_alpha8:
        alpha = image.convert("L")
        black = Image.new("L", alpha.size, 0)
        image = Image.merge("RGBA", (black, black, black, alpha))
    else:
        image = image.convert("RGBA")

    width, height = image.size
    scaled_size = _qround(pixmap_scale * max(width, height))
    target = _scaled_keep_aspect(width, height, scaled_size, scaled_size)
    if target[0] <= 0 or target[1] <= 0:
        return None
    if target != image.size:
        image = image.resize(target, Image.LANCZOS)
    return image


def _fill(image: Image.Image, red: int, green: int, blue: int, alpha: int) -> Image.Image:
    layer_alpha = image.getchannel("A")
    if alpha != 255:
        layer_alpha = layer_alpha.point(lambda v: _qround(v * alpha / 255))
    filled = Image.new("RGBA", image.size, (red, green, blue, 0))
    filled.putalpha(layer_alpha)
    return filled


def _composite(canvas: Image.Image, image: Image.Image, left: int, top: int) -> None:
    src_x = max(0, -left)
    src_y = max(0, -top)
    end_x = min(image.width, canvas.width - left)
    end_y = min(image.height, canvas.height - top)
    if end_x <= src_x or end_y <= src_y:
        return
    canvas.alpha_composite(
        image,
        dest=(max(left, 0), max(top, 0)),
        source=(src_x, src_y, end_x, end_y),
    )


def _rect_center(rect: Rect) -> tuple[int, int]:
    x, y, w, h = rect
    return (int((x + x + w - 1) / 2), int((y + y + h - 1) / 2))


def _pick_scalable(entry: IconEntry, pixel_ratio: float) -> ScalableLayer:
    wanted = math.ceil(pixel_ratio)
    candidates = [s for s in entry.scalable_layers if s.image_pixel_ratio >= wanted]
    if candidates:
        return min(candidates, key=lambda s: s.image_pixel_ratio)
    return max(entry.scalable_layers, key=lambda s: s.image_pixel_ratio)


def _paint_entry(
    canvas: Image.Image,
    rect: Rect,
    device_pixel_ratio: float,
    alignment: Alignment,
    entry: IconEntry,
    palette: DciIconPalette,
    pixmap_scale: float,
) -> None:
    pixel_ratio = device_pixel_ratio if device_pixel_ratio > 0 else 1.0
    scalable = _pick_scalable(entry, pixel_ratio)
    icon_rect = aligned_rect(rect, (rect[2], rect[3]), alignment)
    center_x, center_y = _rect_center(icon_rect)
    layer_scale = pixmap_scale * pixel_ratio / scalable.image_pixel_ratio

    for layer in scalable.layers:
        if not layer.data:
            continue
        image = _read_image(layer, layer_scale)
        if image is None:
            continue
        color = palette.color(layer.role) if layer.role != PaletteRole.NO_PALETTE else None
        if color is not None:
            image = _fill(image, color.red, color.green, color.blue, color.alpha)
        left = center_x - int((image.width - 1) / 2)
        top = center_y - int((image.height - 1) / 2)
        _composite(canvas, image, left, top)


def _is_valid(entry: Optional[IconEntry]) -> bool:
    return entry is not None and not entry.is_null


class DciIcon:
    """An icon with entries for several sizes, modes and themes."""

    def __init__(self, source: Optional[DciSource] = None) -> None:
        self._nodes: list[EntryNode] = load_icon_list(source) if source is not None else []

    @classmethod
    def from_directory(cls, path: str) -> "DciIcon":
        """Load an icon laid out as a directory tree."""
        return cls(DirectoryDciSource(path))

    def is_null(self) -> bool:
        """Whether the icon has no sizes at all."""
        return not self._nodes

    def match_icon(
        self,
        size: int,
        theme: Theme,
        mode: Mode = Mode.NORMAL,
        flags: MatchFlag = MatchFlag.NONE,
    ) -> Optional[IconEntry]:
        """Return the entry best suited to the request, or ``None``."""
        return match_icon(self._nodes, size, theme, mode, flags)

    def actual_size(self, size: int, theme: Theme, mode: Mode = Mode.NORMAL) -> int:
        """Return the size of the entry matched for ``size``; -1 when none matches."""
        entry = self.match_icon(size, theme, mode)
        if not _is_valid(entry):
            return -1
        return entry.icon_size

    def available_sizes(self, theme: Theme, mode: Mode = Mode.NORMAL) -> list[int]:
        """Return the sizes that have an entry for exactly this theme and mode."""
        sizes = []
        for node in self._nodes:
            found = next(
                (e for e in node.entries if e.mode == mode and e.theme == theme), None
            )
            if found is not None:
                sizes.append(found.icon_size)
        return sizes

    def has_palette(self, entry: Optional[IconEntry]) -> bool:
        """Whether ``entry`` has a layer filled with a palette colour."""
        return _is_valid(entry) and entry.has_palette()

    def pixmap(
        self,
        device_pixel_ratio: float,
        icon_size: int,
        theme: Theme,
        mode: Mode = Mode.NORMAL,
        palette: Optional[DciIconPalette] = None,
    ) -> Optional[Image.Image]:
        """Render the matched entry; ``None`` when nothing matches."""
        entry = self.match_icon(icon_size, theme, mode)
        return self.pixmap_for_entry(device_pixel_ratio, icon_size, entry, palette)

    def pixmap_for_entry(
        self,
        device_pixel_ratio: float,
        icon_size: int,
        entry: Optional[IconEntry],
        palette: Optional[DciIconPalette] = None,
    ) -> Optional[Image.Image]:
        """Render ``entry`` into a square RGBA image including its padding.

        An ``icon_size`` of 0 or less uses the entry's own size.
        """
        if not _is_valid(entry):
            return None
        if icon_size <= 0:
            icon_size = entry.icon_size
        if icon_size <= 0:
            raise ValueError("an icon size must be given")
        palette = palette if palette is not None else DciIconPalette()
        pixmap_scale = icon_size / entry.icon_size
        pixmap_size = _qround(
            (entry.max_padding() * 2 + entry.icon_size) * pixmap_scale * device_pixel_ratio
        )
        canvas = Image.new("RGBA", (max(pixmap_size, 0), max(pixmap_size, 0)), (0, 0, 0, 0))
        if pixmap_size > 0:
            _paint_entry(
                canvas, (0, 0, pixmap_size, pixmap_size), device_pixel_ratio,
                CENTER, entry, palette, pixmap_scale,
            )
        canvas.info["device_pixel_ratio"] = device_pixel_ratio
        return canvas

    def paint(
        self,
        canvas: Image.Image,
        rect: Rect,
        device_pixel_ratio: float,
        theme: Theme,
        mode: Mode = Mode.NORMAL,
        palette: Optional[DciIconPalette] = None,
    ) -> None:
        """Draw the icon matched for ``rect`` centred in ``rect`` on an RGBA canvas."""
        icon_size = max(rect[2], rect[3])
        entry = self.match_icon(icon_size, theme, mode)
        if not _is_valid(entry):
            return
        palette = palette if palette is not None else DciIconPalette()
        pixmap_scale = icon_size / (entry.icon_size + entry.max_padding() * 2)
        _paint_entry(canvas, rect, device_pixel_ratio, CENTER, entry, palette, pixmap_scale)


def from_theme(
    name: str,
    theme_name: Optional[str] = None,
    fallback: Optional[DciIcon] = None,
) -> DciIcon:
    """Load the DCI icon ``name`` from the icon theme search paths.

    With a ``fallback``, it is returned instead when the icon is missing or
    lacks either a light or a dark variant.
    """
    path = cached().find_dci_icon_file(name, theme_name)
    icon = DciIcon.from_directory(path) if path else DciIcon()
    if fallback is None:
        return icon
    if (
        icon.is_null()
        or not icon.available_sizes(Theme.LIGHT)
        or not icon.available_sizes(Theme.DARK)
    ):
        return fallback
    return icon