"""Icon entries of a DCI icon: layer file names, the directory tree and matching."""

from __future__ import annotations

import bisect
import os
import re
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Optional, Protocol, Sequence

from .palette import PaletteRole

ALPHA8_STRING = "alpha8"

_INTEGER = re.compile(r"\s*[+-]?\d+\s*")


class Mode(IntEnum):
    """The interaction state an icon is drawn for."""

    NORMAL = 0
    DISABLED = 1
    HOVER = 2
    PRESSED = 3


class Theme(IntEnum):
    """The colour theme an icon is drawn for."""

    LIGHT = 0
    DARK = 1


class MatchFlag(IntFlag):
    """Options for :func:`match_icon`."""

    NONE = 0
    DONT_FALLBACK_MODE = 0x01


_MODE_NAMES = {
    "normal": Mode.NORMAL,
    "disabled": Mode.DISABLED,
    "hover": Mode.HOVER,
    "pressed": Mode.PRESSED,
}

_THEME_NAMES = {
    "light": Theme.LIGHT,
    "dark": Theme.DARK,
}


def _to_int(text: str, bits: int = 32) -> Optional[int]:
    """Parse a decimal integer that fits in a signed ``bits``-wide type."""
    if not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        return None
    return value


def _to_int8(text: str) -> int:
    """Parse a 16-bit integer (0 on failure) and truncate it to a signed byte."""
    value = _to_int(text, 16) or 0
    value &= 0xFF
    return value - 0x100 if value >= 0x80 else value


def _to_role(text: str) -> PaletteRole:
    role = _to_int(text) or 0
    if role < PaletteRole.NO_PALETTE or role > PaletteRole.PALETTE_COUNT:
        role = PaletteRole.NO_PALETTE
    return PaletteRole(role)


@dataclass
class Layer:
    """One image layer of an icon at one scale."""

    prior: int = 0
    role: PaletteRole = PaletteRole.NO_PALETTE
    format: str = ""
    data: bytes = b""
    is_alpha8: bool = False
    hue: int = 0
    saturation: int = 0
    lightness: int = 0
    red: int = 0
    green: int = 0
    blue: int = 0
    alpha: int = 0
    padding: int = 0


@dataclass
class ScalableLayer:
    """The layers of an icon drawn for one device pixel ratio."""

    image_pixel_ratio: int = 0
    layers: list[Layer] = field(default_factory=list)


@dataclass
class IconEntry:
    """An icon for one size, mode and theme."""

    icon_size: int = 0
    mode: Mode = Mode.NORMAL
    theme: Theme = Theme.LIGHT
    scalable_layers: list[ScalableLayer] = field(default_factory=list)

    @property
    def is_null(self) -> bool:
        return not self.scalable_layers

    def has_palette(self) -> bool:
        """Whether any layer is filled with a palette colour."""
        if not self.scalable_layers:
            return False
        return any(layer.role != PaletteRole.NO_PALETTE for layer in self.scalable_layers[0].layers)

    def max_padding(self) -> int:
        """The largest layer padding; all scales share the same paddings."""
        if not self.scalable_layers:
            return 0
        return max((layer.padding for layer in self.scalable_layers[0].layers), default=0)


@dataclass
class EntryNode:
    """All entries of one icon size."""

    icon_size: int
    entries: list[IconEntry] = field(default_factory=list)


class DciSource(Protocol):
    """A tree of DCI files addressed by ``/``-separated paths."""

    is_valid: bool

    def list(self, path: str) -> list[str]: ...

    def data(self, path: str) -> bytes: ...


class DirectoryDciSource:
    """DCI content laid out as an ordinary directory tree."""

    def __init__(self, root: str) -> None:
        self.root = os.fspath(root)

    @property
    def is_valid(self) -> bool:
        return os.path.isdir(self.root)

    def _local(self, path: str) -> str:
        parts = [part for part in path.split("/") if part]
        return os.path.join(self.root, *parts)

    def list(self, path: str) -> list[str]:
        """Return the sorted names under ``path``; empty when it is no directory."""
        local = self._local(path)
        try:
            return sorted(os.listdir(local))
        except (FileNotFoundError, NotADirectoryError):
            return []

    def data(self, path: str) -> bytes:
        """Return the contents of the file at ``path``; empty when there is none."""
        try:
            with open(self._local(path), "rb") as handle:
                return handle.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return b""


def _parse_prior(layer: Layer, props: list[str]) -> list[str]:
    prior = _to_int(props.pop(0))
    layer.prior = prior or 0
    if prior is None:
        return []
    return props


def _parse_format(layer: Layer, props: list[str]) -> list[str]:
    last = props.pop()
    if last.lower() == ALPHA8_STRING:
        layer.is_alpha8 = True
        layer.format = props.pop() if props else ""
    else:
        layer.format = last
    return props


def _parse_padding(layer: Layer, props: list[str]) -> list[str]:
    found = next((p for p in props if p.endswith("p")), None)
    if found is not None:
        layer.padding = _to_int(found[:-1], 16) or 0
        props.remove(found)
    return props


def _parse_palette(layer: Layer, props: list[str]) -> list[str]:
    palettes = props.pop(0)
    if "_" in palettes:
        values = palettes.split("_")
        if len(values) != 8:
            return props
        layer.role = _to_role(values[0])
        (layer.hue, layer.saturation, layer.lightness, layer.red,
         layer.green, layer.blue, layer.alpha) = (_to_int8(v) for v in values[1:])
    else:
        layer.role = _to_role(palettes)
    return props


_STEPS = (_parse_prior, _parse_format, _parse_padding, _parse_palette)


def parse_layer_properties(properties: Sequence[str]) -> Layer:
    """Build a layer from the dot-separated parts of its file name.

    The parts are priority, then optional palette and padding (``<n>p``),
    then the format, optionally followed by ``alpha8``.
    """
    layer = Layer()
    props = list(properties)
    for step in _STEPS:
        if not props:
            break
        props = step(layer, props)
    return layer


def parse_mode(name: str) -> Optional[Mode]:
    """Return the mode named by a directory name part, or ``None``."""
    return _MODE_NAMES.get(name)


def parse_theme(name: str) -> Optional[Theme]:
    """Return the theme named by a directory name part, or ``None``."""
    return _THEME_NAMES.get(name)


def _join(parent: str, name: str) -> str:
    return parent + "/" + name


def _load_icon(source: DciSource, parent_dir: str, image_dir: str) -> Optional[IconEntry]:
    props = image_dir.split(".")
    if len(props) != 2:
        return None
    mode = parse_mode(props[0])
    theme = parse_theme(props[1])
    if mode is None or theme is None:
        return None

    icon = IconEntry(mode=mode, theme=theme)
    state_dir = _join(parent_dir, image_dir)
    for scale_name in source.list(state_dir):
        scale = _to_int(scale_name)
        if scale is None:
            continue
        scalable = ScalableLayer(image_pixel_ratio=scale)
        scale_path = _join(state_dir, scale_name)
        for layer_name in source.list(scale_path):
            layer = parse_layer_properties(layer_name.split("."))
            layer.data = source.data(_join(scale_path, layer_name))
            # Priorities count from 1.
            scalable.layers.insert(max(layer.prior - 1, 0), layer)
        icon.scalable_layers.append(scalable)
    icon.scalable_layers.sort(key=lambda s: s.image_pixel_ratio)
    return icon


def load_icon_list(source: DciSource) -> list[EntryNode]:
    """Read every size, mode/theme and scale directory of a DCI tree, sorted by size."""
    if not source.is_valid:
        return []
    nodes: list[EntryNode] = []
    for size_name in source.list("/"):
        size = _to_int(size_name)
        if size is None:
            continue
        node = EntryNode(icon_size=size)
        dir_path = _join("", size_name)
        for image_dir in source.list(dir_path):
            icon = _load_icon(source, dir_path, image_dir)
            if icon is None or icon.is_null:
                continue
            icon.icon_size = size
            node.entries.append(icon)
        nodes.append(node)
    nodes.sort(key=lambda n: n.icon_size)
    return nodes


def match_icon(
    nodes: Sequence[EntryNode],
    size: int,
    theme: Theme,
    mode: Mode,
    flags: MatchFlag = MatchFlag.NONE,
) -> Optional[IconEntry]:
    """Pick the entry of the smallest size not below ``size`` (else the largest).

    An exact mode wins; otherwise the normal mode is used unless
    ``DONT_FALLBACK_MODE`` is set. The theme must always match.
    """
    if not nodes:
        return None
    index = bisect.bisect_left([node.icon_size for node in nodes], size)
    if index >= len(nodes):
        index = len(nodes) - 1

    best: Optional[IconEntry] = None
    best_weight = 0
    for entry in nodes[index].entries:
        weight = 0
        if entry.mode == mode:
            weight += 2
        elif flags & MatchFlag.DONT_FALLBACK_MODE or entry.mode != Mode.NORMAL:
            continue
        if entry.theme != theme:
            continue
        weight += 1
        if weight > best_weight:
            best, best_weight = entry, weight
    return best