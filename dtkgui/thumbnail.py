"""Thumbnail files in the freedesktop thumbnail cache, made on demand or in a worker thread."""

from __future__ import annotations

import hashlib
import mimetypes
import os
import sys
import threading
from collections import deque
from enum import IntEnum
from typing import Callable, Optional
from urllib.parse import quote

from PIL import Image, PngImagePlugin

THUMBNAIL_FORMAT = ".png"
KEY_URL = "Thumb::URL"
KEY_MTIME = "Thumb::MTime"
DEFAULT_SIZE_LIMIT = sys.maxsize
DEFAULT_MIME = "application/octet-stream"

EVENT_CHANGED = "thumbnail_changed"
EVENT_FINISHED = "create_thumbnail_finished"
EVENT_FAILED = "create_thumbnail_failed"

_URL_SAFE = "/!$&'()*+,;=:@~"


class ThumbnailSize(IntEnum):
    """Edge lengths of the thumbnail sizes."""

    SMALL = 64
    NORMAL = 128
    LARGE = 256


_SIZE_DIRS = {
    ThumbnailSize.SMALL: "small",
    ThumbnailSize.NORMAL: "normal",
    ThumbnailSize.LARGE: "large",
}


def _file_url(path: str) -> str:
    return "file://" + quote(os.path.abspath(path), safe=_URL_SAFE)


def thumbnail_name(path: str) -> str:
    """Return the cache file name for ``path``: the MD5 of its file URL plus ``.png``."""
    digest = hashlib.md5(_file_url(path).encode("utf-8")).hexdigest()
    return digest + THUMBNAIL_FORMAT


def _default_cache_dir() -> str:
    base = os.environ.get("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache")
    return os.path.join(base, "thumbnails")


def _mtime(path: str) -> Optional[int]:
    try:
        return int(os.stat(path).st_mtime)
    except OSError:
        return None


def _stored_mtime(thumbnail: str) -> Optional[int]:
    try:
        with Image.open(thumbnail) as image:
            image.load()
            text = dict(getattr(image, "text", {}) or {})
    except (OSError, ValueError):
        return None
    try:
        return int(text.get(KEY_MTIME, ""))
    except ValueError:
        return None


def _scaled_keep_aspect(width: int, height: int, edge: int) -> tuple[int, int]:
    scaled_w = edge * width // height
    if scaled_w <= edge:
        return (scaled_w, edge)
    return (edge, edge * height // width)


def _guess_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or DEFAULT_MIME


Listener = Callable[[str, str, Optional[str]], None]
CallBack = Callable[[Optional[str]], None]


class ThumbnailProvider:
    """Creates and looks up thumbnails below a cache directory.

    Listeners in ``listeners`` are called as ``callback(event, source, thumbnail)``
    for the events ``thumbnail_changed``, ``create_thumbnail_finished`` and
    ``create_thumbnail_failed``.
    """

    def __init__(self, cache_dir: Optional[str] = None) -> None:
        self.cache_dir = os.path.abspath(cache_dir if cache_dir is not None else _default_cache_dir())
        self.default_size_limit: int = DEFAULT_SIZE_LIMIT
        self.listeners: list[Listener] = []
        self._error_string = ""
        self._size_limits: dict[str, int] = {}
        self._supported_mimes: Optional[frozenset[str]] = None
        self._queue: deque[tuple[str, ThumbnailSize, Optional[CallBack]]] = deque()
        self._discarded: set[tuple[str, ThumbnailSize]] = set()
        self._condition = threading.Condition()
        self._running = True
        self._worker: Optional[threading.Thread] = None

    def __enter__(self) -> "ThumbnailProvider":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def error_string(self) -> str:
        """The reason the last :meth:`create_thumbnail` failed, or an empty string."""
        return self._error_string

    @property
    def fail_dir(self) -> str:
        return os.path.join(self.cache_dir, "fail")

    def size_dir(self, size: int) -> str:
        """Return the directory holding thumbnails of ``size``."""
        return os.path.join(self.cache_dir, _SIZE_DIRS[ThumbnailSize(size)])

    def _emit(self, event: str, source: str, thumbnail: Optional[str]) -> None:
        for callback in list(self.listeners):
            callback(event, source, thumbnail)

    def _in_cache(self, absolute_path: str) -> bool:
        parent = os.path.dirname(absolute_path)
        return parent == self.fail_dir or any(parent == self.size_dir(s) for s in ThumbnailSize)

    def supports_mime(self, mime: str) -> bool:
        """Whether images of this MIME type can be read."""
        if self._supported_mimes is None:
            Image.init()
            self._supported_mimes = frozenset(Image.MIME.values())
        return mime in self._supported_mimes

    def size_limit(self, mime: str) -> int:
        """Return the largest file size, in bytes, thumbnailed for ``mime``."""
        return self._size_limits.get(mime, self.default_size_limit)

    def set_size_limit(self, mime: str, size: int) -> None:
        """Set the largest file size, in bytes, thumbnailed for ``mime``."""
        self._size_limits[mime] = size

    def has_thumbnail(self, path: str) -> bool:
        """Whether ``path`` is a readable, non-empty image file within its size limit."""
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            return False
        file_size = os.path.getsize(path)
        if file_size <= 0:
            return False
        mime = _guess_mime(path)
        if file_size > self.size_limit(mime):
            return False
        return self.supports_mime(mime)

    def thumbnail_file_path(self, path: str, size: int) -> Optional[str]:
        """Return an up-to-date thumbnail of ``path``, or ``None``.

        A stale thumbnail is deleted. A path inside the cache is its own thumbnail.
        """
        absolute_path = os.path.abspath(path)
        if self._in_cache(absolute_path):
            return absolute_path

        thumbnail = os.path.join(self.size_dir(size), thumbnail_name(absolute_path))
        if not os.path.exists(thumbnail):
            return None

        stored = _stored_mtime(thumbnail)
        if stored is None or stored != _mtime(absolute_path):
            try:
                os.remove(thumbnail)
            except OSError:
                pass
            self._emit(EVENT_CHANGED, absolute_path, None)
            return None
        return thumbnail

    def create_thumbnail(self, path: str, size: int) -> Optional[str]:
        """Create the thumbnail of ``path`` and return its path, or ``None`` on failure.

        A failure is recorded as a 1x1 image in the ``fail`` directory, and
        later attempts give up at once until the source file changes.
        """
        self._error_string = ""
        size = ThumbnailSize(size)
        absolute_path = os.path.abspath(path)
        if self._in_cache(absolute_path):
            return absolute_path

        if not self.has_thumbnail(absolute_path):
            self._error_string = "This file has not support thumbnail: " + absolute_path
            return None

        name = thumbnail_name(absolute_path)
        source_mtime = _mtime(absolute_path)
        thumbnail = os.path.join(self.fail_dir, name)
        if os.path.exists(thumbnail):
            if _stored_mtime(thumbnail) != source_mtime:
                try:
                    os.remove(thumbnail)
                except OSError:
                    pass
            else:
                return None

        image: Optional[Image.Image] = None
        try:
            with Image.open(absolute_path) as opened:
                opened.load()
                image = opened.convert("RGBA")
        except (OSError, ValueError) as exc:
            self._error_string = str(exc) or "Fail to read image file: " + absolute_path

        if image is not None:
            width, height = image.size
            if width <= 0 or height <= 0:
                self._error_string = "Fail to read image file attribute data:" + absolute_path
            elif width >= size or height >= size:
                target = _scaled_keep_aspect(width, height, int(size))
                image = image.resize((max(target[0], 1), max(target[1], 1)), Image.LANCZOS)

        if not self._error_string and image is not None:
            thumbnail = os.path.join(self.size_dir(size), name)
        else:
            image = Image.new("1", (1, 1))

        info = PngImagePlugin.PngInfo()
        info.add_text(KEY_URL, _file_url(absolute_path))
        info.add_text(KEY_MTIME, str(source_mtime if source_mtime is not None else 0))

        try:
            os.makedirs(os.path.dirname(thumbnail), exist_ok=True)
            image.save(thumbnail, format="PNG", pnginfo=info)
        except (OSError, ValueError):
            self._error_string = "Can not save image to " + thumbnail

        if not self._error_string:
            self._emit(EVENT_FINISHED, absolute_path, thumbnail)
            self._emit(EVENT_CHANGED, absolute_path, thumbnail)
            return thumbnail

        self._emit(EVENT_FAILED, absolute_path, None)
        return None

    def append_to_produce_queue(
        self, path: str, size: int, callback: Optional[CallBack] = None
    ) -> None:
        """Queue ``path`` for the worker thread, which passes the result to ``callback``."""
        task = (os.path.abspath(path), ThumbnailSize(size), callback)
        with self._condition:
            if not self._running:
                raise RuntimeError("thumbnail provider is stopped")
            self._queue.append(task)
            if self._worker is None:
                self._worker = threading.Thread(target=self._run, daemon=True)
                self._worker.start()
            self._condition.notify_all()

    def remove_in_produce_queue(self, path: str, size: int) -> None:
        """Skip the next queued task for ``path`` at ``size``."""
        with self._condition:
            self._discarded.add((os.path.abspath(path), ThumbnailSize(size)))

    def stop(self) -> None:
        """Stop the worker thread and wait for it to finish."""
        with self._condition:
            self._running = False
            self._condition.notify_all()
            worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join()

    def _run(self) -> None:
        while True:
            with self._condition:
                while self._running and not self._queue:
                    self._condition.wait()
                if not self._running:
                    return
                path, size, callback = self._queue.popleft()
                key = (path, size)
                if key in self._discarded:
                    self._discarded.discard(key)
                    continue

            thumbnail = self.create_thumbnail(path, size)
            if callback is not None:
                callback(thumbnail)