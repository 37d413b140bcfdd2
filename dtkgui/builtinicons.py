"""Icons shipped in a resource directory, looked up by name, theme and size."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from PIL import Image

from .dcientry import Theme

ENGINE_KEY = "DBuiltinIconEngine"
BACKGROUND_SUFFIX = ".background"

MODES = ("normal", "disabled", "active", "selected")
STATES = ("on", "off")

_KIND_DIRS = ("texts", "actions", "icons")
_INTEGER = re.compile(r"\s*[+-]?\d+\s*")

SizeLike = Union[int, tuple[int, int]]


class EntryType(IntEnum):
    """How an icon follows the pen colour it is drawn with."""

    TEXT = 0  # always takes the pen colour
    ACTION = 1  # takes the pen colour outside the normal mode
    ICON = 2  # never takes the pen colour


def _suffix(path: str) -> str:
    name = os.path.basename(path)
    return name.rsplit(".", 1)[1] if "." in name else ""


def _to_int(text: str) -> Optional[int]:
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def _check_mode_state(mode: str, state: str) -> None:
    if mode not in MODES:
        raise ValueError(f"unknown icon mode: {mode!r}")
    if state not in STATES:
        raise ValueError(f"unknown icon state: {state!r}")


def _edge(size: SizeLike) -> int:
    if isinstance(size, int):
        return size
    width, height = size
    return min(width, height)


def _as_size(size: SizeLike) -> tuple[int, int]:
    if isinstance(size, int):
        return (size, size)
    width, height = size
    return (width, height)


def dir_icon_file(key: str, directory: str, suffix: str) -> str:
    """Pick the file for ``<mode>_<state>`` inside an icon directory.

    Tries ``<key>.<suffix>``, then ``<mode>.<suffix>``, then
    ``normal_<state>.<suffix>``, and finally names ``normal.<suffix>``.
    """

    def candidate(name: str) -> Optional[str]:
        path = os.path.join(directory, f"{name}.{suffix}")
        return path if os.path.exists(path) else None

    found = candidate(key)
    if found:
        return found

    index = key.find("_")
    if index > 0:
        found = candidate(key[:index]) or candidate("normal" + key[index:])
        if found:
            return found

    return os.path.join(directory, f"normal.{suffix}")


@dataclass(frozen=True)
class IconEntry:
    """One size of a built-in icon: an image file, or a directory of per-mode images."""

    filename: str
    size: int
    type: EntryType
    scalable: bool = False

    @property
    def path(self) -> str:
        return os.path.dirname(self.filename)

    @property
    def is_dir(self) -> bool:
        return os.path.isdir(self.filename)

    def file_for(self, mode: str = "normal", state: str = "off") -> str:
        """Return the image file drawn for ``mode`` and ``state``."""
        _check_mode_state(mode, state)
        if not self.is_dir:
            return self.filename
        return dir_icon_file(f"{mode}_{state}", self.filename, _suffix(self.filename))


def load_icon(icon_name: str, dark: bool, root: str) -> list[IconEntry]:
    """Find the entries of ``icon_name`` below ``root``.

    Files are named ``<icon_name>_<size>px.<suffix>``. The theme's
    ``texts``, ``actions`` and ``icons`` directories are searched before the
    theme-less ones; the first directory with any match wins.
    """
    root = os.fspath(root)
    theme_name = "dark" if dark else "light"
    directories = [os.path.join(root, theme_name, kind) for kind in _KIND_DIRS]
    directories += [os.path.join(root, kind) for kind in _KIND_DIRS]

    for index, directory in enumerate(directories):
        if not os.path.isdir(directory):
            continue
        entry_type = EntryType(index % len(_KIND_DIRS))
        names = sorted(
            (name for name in os.listdir(directory) if not name.startswith(".")),
            key=str.lower,
        )
        entries = []
        for file_name in names:
            if not file_name.startswith(icon_name) or file_name.endswith(BACKGROUND_SUFFIX):
                continue
            size_pos = len(icon_name) + 1
            px_pos = file_name.find("px.", size_pos + 1)
            if px_pos < 0:
                continue
            size = _to_int(file_name[size_pos:px_pos])
            if size is None or size <= 0:
                continue
            entries.append(
                IconEntry(
                    filename=os.path.abspath(os.path.join(directory, file_name)),
                    size=size,
                    type=entry_type,
                    scalable=_suffix(file_name).startswith("svg"),
                )
            )
        if entries:
            return entries
    return []


def _matches(entry: IconEntry, icon_size: int) -> bool:
    # Scalable entries carry no size range, so only size 0 lies within it.
    if entry.scalable:
        return icon_size == 0
    return entry.size == icon_size


def _distance(entry: IconEntry, icon_size: int) -> int:
    if entry.scalable:
        return abs(icon_size)
    return abs(entry.size - icon_size)


class BuiltinIconEngine:
    """Looks up a built-in icon and renders it at a size, mode and state.

    A name containing ``/`` fixes the theme; other names follow the theme
    type set with :meth:`set_theme_type`.
    """

    key = ENGINE_KEY

    def __init__(self, icon_name: str, root: str, theme_type: Optional[Theme] = None) -> None:
        self.icon_name = icon_name
        self.root = os.fspath(root)
        self.follow_system_theme = "/" not in icon_name
        self.theme_type = Theme.DARK if icon_name.startswith("dark/") else Theme.LIGHT
        self._entries: Optional[list[IconEntry]] = None
        self._pixmaps: dict[tuple[str, int, int, str, str], Image.Image] = {}
        if theme_type is not None:
            self.set_theme_type(theme_type)

    def set_theme_type(self, theme_type: Theme) -> None:
        """Switch to the light or dark icons, unless the name fixes the theme."""
        theme_type = Theme(theme_type)
        if self.follow_system_theme and theme_type != self.theme_type:
            self.theme_type = theme_type
            self._entries = None

    @property
    def entries(self) -> list[IconEntry]:
        if self._entries is None:
            self._entries = load_icon(self.icon_name, self.theme_type == Theme.DARK, self.root)
        return self._entries

    def is_null(self) -> bool:
        """Whether no file of this icon was found."""
        return not self.entries

    def available_sizes(self) -> list[tuple[int, int]]:
        """Return the size of every entry."""
        return [(entry.size, entry.size) for entry in self.entries]

    def entry_for_size(self, size: SizeLike) -> Optional[IconEntry]:
        """Return the entry of exactly this size, else the closest one."""
        icon_size = _edge(size)
        entries = self.entries
        for entry in entries:
            if _matches(entry, icon_size):
                return entry

        closest: Optional[IconEntry] = None
        minimal = sys.maxsize
        for entry in entries:
            distance = _distance(entry, icon_size)
            if distance < minimal:
                minimal = distance
                closest = entry
        return closest

    def actual_size(self, size: SizeLike) -> tuple[int, int]:
        """Return the size the icon is drawn at when ``size`` is asked for."""
        requested = _as_size(size)
        entry = self.entry_for_size(requested)
        if entry is None:
            return (0, 0)
        if entry.scalable:
            return requested
        result = min(entry.size, min(requested))
        return (result, result)

    def pixmap(
        self, size: SizeLike, mode: str = "normal", state: str = "off"
    ) -> Optional[Image.Image]:
        """Render the icon as an RGBA image; ``None`` when it cannot be read.

        Fixed-size entries come at their own size, scalable ones at ``size``.
        """
        _check_mode_state(mode, state)
        requested = _as_size(size)
        entry = self.entry_for_size(requested)
        if entry is None:
            return None

        path = entry.file_for(mode, state)
        cache_key = (path, requested[0], requested[1], mode, state)
        cached_image = self._pixmaps.get(cache_key)
        if cached_image is not None:
            return cached_image.copy()

        try:
            with Image.open(path) as opened:
                opened.load()
                image = opened.convert("RGBA")
        except (OSError, ValueError):
            return None

        if entry.scalable and requested[0] > 0 and requested[1] > 0 and image.size != requested:
            image = image.resize(requested, Image.LANCZOS)

        self._pixmaps[cache_key] = image
        return image.copy()