"""Locating DCI icon files in icon theme directories."""

from __future__ import annotations

import os
import posixpath
from collections import OrderedDict
from typing import Iterable, Optional, Sequence

DCI_SUFFIX = ".dci"
DEFAULT_DATA_DIRS = "/usr/local/share:/usr/share"
DEFAULT_MAX_COST = 100


def _join_path(base: str, path: Optional[str]) -> str:
    if not path:
        return base
    return base + os.sep + path


def _clean_path(path: str) -> str:
    return posixpath.normpath(path.replace(os.sep, "/"))


def system_dci_theme_paths() -> list[str]:
    """Return the ``dsg/icons`` directory under every XDG data directory."""
    data_dirs = os.environ.get("XDG_DATA_DIRS") or DEFAULT_DATA_DIRS
    return [
        _join_path(_join_path(data_dir, "dsg"), "icons")
        for data_dir in data_dirs.split(os.pathsep)
        if data_dir
    ]


_search_paths: Optional[list[str]] = None


def dci_theme_search_paths() -> list[str]:
    """Return the directories searched for DCI icon themes."""
    global _search_paths
    if _search_paths is None:
        _search_paths = system_dci_theme_paths()
    return list(_search_paths)


def set_dci_theme_search_paths(paths: Iterable[str]) -> None:
    """Replace the directories searched for DCI icon themes."""
    global _search_paths
    _search_paths = list(paths)


def _find_in_path(icon_name: str, theme_name: Optional[str], path: str) -> Optional[str]:
    if not path or not icon_name:
        return None

    theme_path = _join_path(path, theme_name)
    if not os.path.isdir(theme_path):
        return None

    icon_path = _join_path(theme_path, icon_name + DCI_SUFFIX)
    if not _clean_path(icon_path).startswith(_clean_path(theme_path)):
        return None

    if os.path.isfile(icon_path):
        return icon_path
    return None


def _is_wrongful_name(icon_name: str) -> bool:
    clean_name = _clean_path(icon_name)
    return (
        icon_name.startswith("/")
        or icon_name.endswith("/")
        or len(clean_name) != len(icon_name)
        or clean_name.startswith("../")
    )


def find_dci_icon_file(
    icon_name: str,
    theme_name: Optional[str],
    search_paths: Optional[Sequence[str]] = None,
) -> Optional[str]:
    """Find ``<icon_name>.dci``, or ``None`` when there is none.

    A name of the form ``group/name`` is first looked up with its group,
    then without it; finally the theme directory is left out.
    """
    if not icon_name or _is_wrongful_name(icon_name):
        return None

    paths = dci_theme_search_paths() if search_paths is None else list(search_paths)

    effective_name = icon_name
    for theme_path in paths:
        found = _find_in_path(effective_name, theme_name, theme_path)
        if found:
            return found

    split_pos = icon_name.rfind("/")
    if split_pos > 0:
        effective_name = icon_name[split_pos + 1:]
        for theme_path in paths:
            found = _find_in_path(effective_name, theme_name, theme_path)
            if found:
                return found

    for theme_path in paths:
        found = _find_in_path(effective_name, None, theme_path)
        if found:
            return found

    return None


_MISSING = object()


class IconThemeCache:
    """A least-recently-used cache of DCI icon file lookups."""

    def __init__(self, max_cost: int = DEFAULT_MAX_COST) -> None:
        self._max_cost = max_cost
        self._paths: OrderedDict[str, Optional[str]] = OrderedDict()

    @property
    def max_cost(self) -> int:
        return self._max_cost

    @max_cost.setter
    def max_cost(self, cost: int) -> None:
        self._max_cost = cost
        self._trim()

    def __len__(self) -> int:
        return len(self._paths)

    def _trim(self) -> None:
        while len(self._paths) > max(self._max_cost, 0):
            self._paths.popitem(last=False)

    def clear(self) -> None:
        """Forget every cached lookup."""
        self._paths.clear()

    def find_dci_icon_file(
        self, icon_name: str, theme_name: Optional[str], fallback: Optional[str] = None
    ) -> Optional[str]:
        """Like :func:`find_dci_icon_file`, remembering results, misses included."""
        key = (theme_name or "") + "/" + icon_name
        cached_path = self._paths.get(key, _MISSING)
        if cached_path is not _MISSING:
            self._paths.move_to_end(key)
            return cached_path if cached_path else fallback

        path = find_dci_icon_file(icon_name, theme_name)
        if self._max_cost >= 1:
            self._paths[key] = path
            self._trim()

        return path if path else fallback


_global_cache: Optional[IconThemeCache] = None


def cached() -> IconThemeCache:
    """Return the process-wide lookup cache."""
    global _global_cache
    if _global_cache is None:
        _global_cache = IconThemeCache()
    return _global_cache