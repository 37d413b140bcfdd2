import pytest

from dtkgui.dcientry import (
    DirectoryDciSource,
    IconEntry,
    Layer,
    MatchFlag,
    Mode,
    ScalableLayer,
    Theme,
    load_icon_list,
    match_icon,
    parse_layer_properties,
    parse_mode,
    parse_theme,
)
from dtkgui.palette import PaletteRole


def _write(path, data=b"x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


@pytest.fixture
def dci_tree(tmp_path):
    _write(tmp_path / "32" / "normal.light" / "1" / "1.png", b"n32")
    _write(tmp_path / "32" / "normal.light" / "2" / "1.png", b"n32x2")
    _write(tmp_path / "16" / "normal.light" / "1" / "2.png", b"second")
    _write(tmp_path / "16" / "normal.light" / "1" / "1.1.3p.png", b"first")
    _write(tmp_path / "16" / "hover.dark" / "1" / "1.png", b"hd")
    _write(tmp_path / "16" / "bogus" / "1" / "1.png")
    _write(tmp_path / "16" / "normal.light.extra" / "1" / "1.png")
    _write(tmp_path / "notasize" / "normal.light" / "1" / "1.png")
    return tmp_path


def test_parse_simple_layer():
    layer = parse_layer_properties(["1", "png"])
    assert layer.prior == 1
    assert layer.format == "png"
    assert layer.is_alpha8 is False
    assert layer.role == PaletteRole.NO_PALETTE


def test_parse_alpha8_padding_and_role():
    layer = parse_layer_properties(["2", "1", "3p", "png", "ALPHA8"])
    assert layer.prior == 2
    assert layer.is_alpha8 is True
    assert layer.format == "png"
    assert layer.padding == 3
    assert layer.role == PaletteRole.BACKGROUND


def test_parse_full_palette():
    layer = parse_layer_properties(["1", "3_10_-20_5_0_0_0_200", "webp"])
    assert layer.role == PaletteRole.HIGHLIGHT
    assert layer.hue == 10
    assert layer.saturation == -20
    assert layer.lightness == 5
    assert layer.alpha == -56


def test_parse_palette_wrong_count_keeps_no_palette():
    layer = parse_layer_properties(["1", "3_10_20", "png"])
    assert layer.role == PaletteRole.NO_PALETTE
    assert layer.hue == 0


def test_parse_out_of_range_role():
    layer = parse_layer_properties(["1", "9", "png"])
    assert layer.role == PaletteRole.NO_PALETTE


def test_parse_bad_priority_stops():
    layer = parse_layer_properties(["x", "png"])
    assert layer.prior == 0
    assert layer.format == ""


def test_parse_mode_and_theme():
    assert parse_mode("normal") is Mode.NORMAL
    assert parse_mode("pressed") is Mode.PRESSED
    assert parse_mode("Normal") is None
    assert parse_theme("dark") is Theme.DARK
    assert parse_theme("grey") is None


def test_entry_palette_and_padding():
    entry = IconEntry(
        icon_size=16,
        scalable_layers=[ScalableLayer(1, [Layer(padding=2), Layer(padding=5, role=PaletteRole.FOREGROUND)])],
    )
    assert entry.has_palette() is True
    assert entry.max_padding() == 5
    empty = IconEntry()
    assert empty.has_palette() is False
    assert empty.max_padding() == 0


def test_directory_source(dci_tree):
    source = DirectoryDciSource(str(dci_tree))
    assert source.is_valid
    assert source.list("/") == ["16", "32", "notasize"]
    assert source.data("/16/hover.dark/1/1.png") == b"hd"
    assert source.data("/16/missing") == b""
    assert source.list("/nowhere") == []


def test_load_icon_list(dci_tree):
    nodes = load_icon_list(DirectoryDciSource(str(dci_tree)))
    assert [node.icon_size for node in nodes] == [16, 32]
    small = nodes[0]
    assert {(e.mode, e.theme) for e in small.entries} == {
        (Mode.NORMAL, Theme.LIGHT),
        (Mode.HOVER, Theme.DARK),
    }
    normal = next(e for e in small.entries if e.mode is Mode.NORMAL)
    assert normal.icon_size == 16
    assert [layer.data for layer in normal.scalable_layers[0].layers] == [b"first", b"second"]
    assert normal.max_padding() == 3
    assert normal.has_palette() is True
    big = nodes[1].entries[0]
    assert [s.image_pixel_ratio for s in big.scalable_layers] == [1, 2]


def test_load_invalid_source(tmp_path):
    assert load_icon_list(DirectoryDciSource(str(tmp_path / "missing"))) == []


def test_match_icon(dci_tree):
    nodes = load_icon_list(DirectoryDciSource(str(dci_tree)))
    entry = match_icon(nodes, 20, Theme.LIGHT, Mode.NORMAL)
    assert entry.icon_size == 32
    assert match_icon(nodes, 64, Theme.LIGHT, Mode.NORMAL).icon_size == 32
    assert match_icon(nodes, 8, Theme.LIGHT, Mode.NORMAL).icon_size == 16


def test_match_icon_mode_fallback(dci_tree):
    nodes = load_icon_list(DirectoryDciSource(str(dci_tree)))
    fallback = match_icon(nodes, 16, Theme.LIGHT, Mode.HOVER)
    assert fallback.mode is Mode.NORMAL
    assert match_icon(nodes, 16, Theme.LIGHT, Mode.HOVER, MatchFlag.DONT_FALLBACK_MODE) is None
    exact = match_icon(nodes, 16, Theme.DARK, Mode.HOVER)
    assert (exact.mode, exact.theme) == (Mode.HOVER, Theme.DARK)
    assert match_icon(nodes, 16, Theme.DARK, Mode.NORMAL) is None


def test_match_icon_empty():
    assert match_icon([], 16, Theme.LIGHT, Mode.NORMAL) is None