import os

import pytest
from PIL import Image

from dtkgui.dcientry import MatchFlag, Mode, Theme
from dtkgui.dciicon import DciIcon, aligned_rect, from_theme
from dtkgui.icontheme import cached, set_dci_theme_search_paths
from dtkgui.palette import Color, DciIconPalette


def _layer(path, image, fmt="PNG"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    image.save(path, format=fmt)


def _solid(size, color=(255, 0, 0, 255)):
    return Image.new("RGBA", (size, size), color)


@pytest.fixture
def icon_dir(tmp_path):
    root = tmp_path / "icon"
    _layer(str(root / "16" / "normal.light" / "1" / "1.png"), _solid(16))
    _layer(str(root / "16" / "normal.dark" / "1" / "1.png"), _solid(16))
    _layer(str(root / "32" / "normal.light" / "1" / "1.png"), _solid(32))
    _layer(str(root / "32" / "hover.light" / "1" / "1.0.png"), _solid(32))
    return str(root)


def test_null_icons(tmp_path):
    assert DciIcon().is_null()
    assert DciIcon.from_directory(str(tmp_path / "missing")).is_null()


def test_available_sizes(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    assert not icon.is_null()
    assert icon.available_sizes(Theme.LIGHT) == [16, 32]
    assert icon.available_sizes(Theme.DARK) == [16]
    assert icon.available_sizes(Theme.LIGHT, Mode.HOVER) == [32]
    assert icon.available_sizes(Theme.DARK, Mode.PRESSED) == []


def test_actual_size(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    assert icon.actual_size(16, Theme.LIGHT) == 16
    assert icon.actual_size(20, Theme.LIGHT) == 32
    assert icon.actual_size(500, Theme.LIGHT) == 32
    assert icon.actual_size(32, Theme.DARK) == -1


def test_match_icon_mode_fallback(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    entry = icon.match_icon(16, Theme.DARK, Mode.HOVER)
    assert entry is not None and entry.mode == Mode.NORMAL
    assert icon.match_icon(16, Theme.DARK, Mode.HOVER, MatchFlag.DONT_FALLBACK_MODE) is None
    hover = icon.match_icon(32, Theme.LIGHT, Mode.HOVER)
    assert hover.mode == Mode.HOVER


def test_has_palette(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    assert icon.has_palette(icon.match_icon(32, Theme.LIGHT, Mode.HOVER))
    assert not icon.has_palette(icon.match_icon(32, Theme.LIGHT))
    assert not icon.has_palette(None)


def test_pixmap_size_follows_device_pixel_ratio(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    one = icon.pixmap(1, 16, Theme.LIGHT)
    two = icon.pixmap(2, 16, Theme.LIGHT)
    assert one.size == (16, 16)
    assert two.size == (32, 32)
    assert one.getpixel((8, 8)) == (255, 0, 0, 255)
    assert two.getpixel((31, 31)) == (255, 0, 0, 255)


def test_pixmap_without_match_is_none(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    assert icon.pixmap(1, 32, Theme.DARK, Mode.PRESSED) is None
    assert icon.pixmap_for_entry(1, 16, None) is None


def test_pixmap_zero_size_uses_entry_size(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    entry = icon.match_icon(32, Theme.LIGHT)
    image = icon.pixmap_for_entry(1, 0, entry)
    assert image.size == (entry.icon_size, entry.icon_size)


def test_padding_enlarges_pixmap(tmp_path):
    root = tmp_path / "padded"
    _layer(str(root / "16" / "normal.light" / "1" / "1.2p.png"), _solid(16))
    icon = DciIcon.from_directory(str(root))
    image = icon.pixmap(1, 16, Theme.LIGHT)
    assert image.size == (16 + 2 * 2, 16 + 2 * 2)
    assert image.getpixel((0, 0))[3] == 0
    assert image.getpixel((10, 10)) == (255, 0, 0, 255)


def test_palette_fills_layer(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    palette = DciIconPalette(foreground=Color(0, 0, 255))
    image = icon.pixmap(1, 32, Theme.LIGHT, Mode.HOVER, palette)
    assert image.getpixel((16, 16)) == (0, 0, 255, 255)
    unfilled = icon.pixmap(1, 32, Theme.LIGHT, Mode.HOVER)
    assert unfilled.getpixel((16, 16)) == (255, 0, 0, 255)


def test_alpha8_layer(tmp_path):
    root = tmp_path / "alpha"
    _layer(
        str(root / "16" / "normal.light" / "1" / "1.0.png.alpha8"),
        Image.new("L", (16, 16), 128),
    )
    icon = DciIcon.from_directory(str(root))
    palette = DciIconPalette(foreground=Color(0, 255, 0))
    image = icon.pixmap(1, 16, Theme.LIGHT, palette=palette)
    assert image.getpixel((8, 8)) == (0, 255, 0, 128)


def test_paint_onto_canvas(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    canvas = Image.new("RGBA", (32, 32), (0, 0, 0, 0))
    icon.paint(canvas, (8, 8, 16, 16), 1, Theme.LIGHT)
    assert canvas.getpixel((16, 16)) == (255, 0, 0, 255)
    assert canvas.getpixel((0, 0)) == (0, 0, 0, 0)
    assert canvas.getpixel((31, 31)) == (0, 0, 0, 0)


def test_paint_without_match_leaves_canvas(icon_dir):
    icon = DciIcon.from_directory(icon_dir)
    canvas = Image.new("RGBA", (16, 16), (0, 0, 0, 0))
    icon.paint(canvas, (0, 0, 16, 16), 1, Theme.DARK, Mode.PRESSED)
    assert canvas.getbbox() is None


def test_aligned_rect_edges():
    rect = (0, 0, 10, 10)
    x, y, w, h = aligned_rect(rect, (4, 4), ("right", "bottom"))
    assert (x + w, y + h) == (10, 10)
    assert aligned_rect(rect, (4, 4), ("left", "top")) == (0, 0, 4, 4)


def test_aligned_rect_center_is_balanced():
    rect = (5, 7, 11, 13)
    x, y, w, h = aligned_rect(rect, (4, 6))
    assert (w, h) == (4, 6)
    assert abs((x - 5) - (5 + 11 - (x + w))) <= 1
    assert abs((y - 7) - (7 + 13 - (y + h))) <= 1


def test_aligned_rect_rejects_unknown_alignment():
    with pytest.raises(ValueError):
        aligned_rect((0, 0, 10, 10), (4, 4), ("middle", "top"))


def test_from_theme(tmp_path):
    base = tmp_path / "icons"
    app = base / "mytheme" / "app.dci"
    _layer(str(app / "16" / "normal.light" / "1" / "1.png"), _solid(16))
    _layer(str(app / "16" / "normal.dark" / "1" / "1.png"), _solid(16))
    half = base / "mytheme" / "half.dci"
    _layer(str(half / "16" / "normal.light" / "1" / "1.png"), _solid(16))
    set_dci_theme_search_paths([str(base)])
    cached().clear()

    icon = from_theme("app", "mytheme")
    assert icon.available_sizes(Theme.DARK) == [16]

    fallback = DciIcon()
    assert from_theme("half", "mytheme", fallback) is fallback
    assert from_theme("missing", "mytheme", fallback) is fallback
    assert from_theme("missing", "mytheme").is_null()
    assert from_theme("app", "mytheme", fallback) is not fallback
    cached().clear()