from pathlib import Path

import pytest
from PIL import Image

from dtkgui.builtinicons import BuiltinIconEngine, dir_icon_file, load_icon
from dtkgui.dcientry import Theme

LIGHT, DARK = list(Theme)[0], list(Theme)[1]


def _png(path: Path, size: int = 4) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", (size, size), (255, 0, 0, 255)).save(path, "PNG")


def _svg(path: Path, size: int = 16) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}"></svg>'
    )


@pytest.fixture
def icon_root(tmp_path):
    root = tmp_path / "builtin"
    _png(root / "icons" / "edit_16px.png", 16)
    _png(root / "icons" / "edit_32px.png", 32)
    _png(root / "icons" / "edit_24px.png.background", 24)
    (root / "icons" / "edit_abcpx.png").write_bytes(b"not an image")
    return root


def _entries(result):
    return list(getattr(result, "entries", result))


def test_dir_icon_file_exact_key(tmp_path):
    (tmp_path / "disabled_on.svg").write_text("<svg/>")
    result = dir_icon_file("disabled_on", tmp_path, "svg")
    assert Path(result).name == "disabled_on.svg"


def test_dir_icon_file_falls_back_to_mode(tmp_path):
    (tmp_path / "disabled.svg").write_text("<svg/>")
    result = dir_icon_file("disabled_on", tmp_path, "svg")
    assert Path(result).name == "disabled.svg"


def test_dir_icon_file_falls_back_to_normal_state(tmp_path):
    (tmp_path / "normal_on.svg").write_text("<svg/>")
    result = dir_icon_file("active_on", tmp_path, "svg")
    assert Path(result).name == "normal_on.svg"


def test_dir_icon_file_defaults_to_normal(tmp_path):
    result = dir_icon_file("selected_off", tmp_path, "svg")
    assert Path(result).name == "normal.svg"
    assert Path(result).parent == tmp_path


def test_load_icon_skips_background_and_bad_sizes(icon_root):
    entries = _entries(load_icon("edit", False, icon_root))
    assert len(entries) == 2


def test_load_icon_unknown_name_is_empty(icon_root):
    assert _entries(load_icon("missing", False, icon_root)) == []


def test_engine_available_sizes(icon_root):
    engine = BuiltinIconEngine("edit", icon_root, LIGHT)
    assert engine.is_null() is False
    assert sorted(engine.available_sizes()) == [16, 32]


def test_engine_missing_icon_is_null(icon_root):
    engine = BuiltinIconEngine("missing", icon_root, LIGHT)
    assert engine.is_null() is True
    assert list(engine.available_sizes()) == []


def test_engine_fixed_actual_size_exact(icon_root):
    engine = BuiltinIconEngine("edit", icon_root, LIGHT)
    assert engine.actual_size(16) == 16
    assert engine.actual_size(32) == 32


def test_engine_scalable_actual_size_follows_request(tmp_path):
    root = tmp_path / "builtin"
    _svg(root / "icons" / "shape_16px.svg")
    engine = BuiltinIconEngine("shape", root, LIGHT)
    assert engine.actual_size(64) == 64


def test_themed_directory_takes_priority(tmp_path):
    root = tmp_path / "builtin"
    _png(root / "light" / "icons" / "edit_48px.png", 48)
    _png(root / "icons" / "edit_16px.png", 16)

    light = BuiltinIconEngine("edit", root, LIGHT)
    assert sorted(light.available_sizes()) == [48]

    dark = BuiltinIconEngine("edit", root, DARK)
    assert sorted(dark.available_sizes()) == [16]


def test_set_theme_type_reloads(tmp_path):
    root = tmp_path / "builtin"
    _png(root / "light" / "icons" / "edit_48px.png", 48)
    _png(root / "dark" / "icons" / "edit_20px.png", 20)

    engine = BuiltinIconEngine("edit", root, LIGHT)
    assert sorted(engine.available_sizes()) == [48]
    engine.set_theme_type(DARK)
    assert sorted(engine.available_sizes()) == [20]