"""Convert images to and from the grayscale alpha8 layer format of DCI icons."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

from PIL import Image

ALPHA8_SUFFIX = "alpha8"
VERSION = "0.0.1"
HELP_EXIT_CODE = 255


def _suffix(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[1].lstrip(".")


def _format_for_suffix(suffix: str) -> Optional[str]:
    if not suffix:
        return None
    return Image.registered_extensions().get("." + suffix.lower())


def _open_image(path: str) -> Optional[Image.Image]:
    try:
        with Image.open(path) as image:
            image.load()
            return image
    except (OSError, ValueError):
        return None


def _save(image: Image.Image, path: str, suffix: str) -> bool:
    image_format = _format_for_suffix(suffix)
    if image_format is None:
        return False
    try:
        image.save(path, format=image_format)
    except (OSError, ValueError, KeyError):
        return False
    return True


def convert_to_alpha8(origin_path: str, target_path: str) -> bool:
    """Save the alpha channel of an image as a grayscale image.

    The image must have even width and height. The output is written in the
    format named by the origin's suffix.
    """
    image = _open_image(origin_path)
    if image is None:
        return False
    width, height = image.size
    if width % 2 or height % 2:
        return False
    alpha = image.convert("RGBA").getchannel("A")
    return _save(alpha, target_path, _suffix(origin_path))


def convert_from_alpha8(origin_path: str, target_path: str) -> bool:
    """Turn a grayscale ``*.<fmt>.alpha8`` image back into an alpha mask.

    The output is black with the grayscale values as alpha, written in the
    format named by the suffix before ``.alpha8``.
    """
    if _suffix(origin_path).lower() != ALPHA8_SUFFIX:
        return False
    inner_path = os.path.splitext(origin_path)[0]
    image = _open_image(origin_path)
    if image is None or image.mode != "L":
        return False
    black = Image.new("L", image.size, 0)
    mask = Image.merge("RGBA", (black, black, black, image))
    return _save(mask, target_path, _suffix(inner_path))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dci-image-converter")
    parser.add_argument(
        "--toAlpha8", dest="to_alpha8", metavar="targetPath",
        help="Convert image format to alpha8.",
    )
    parser.add_argument(
        "--fromAlpha8", dest="from_alpha8", metavar="targetPath",
        help="Convert image format from alpha8.",
    )
    parser.add_argument("-v", "--version", action="version", version=VERSION)
    parser.add_argument(
        "sources", nargs="*", metavar="sourcesPath",
        help="The file path of the original image to be converted.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the converter command line; return the exit status."""
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))

    if not args.sources:
        parser.print_help()
        return HELP_EXIT_CODE

    source = args.sources[0]
    if args.to_alpha8 is not None:
        ok = convert_to_alpha8(source, args.to_alpha8)
    elif args.from_alpha8 is not None:
        ok = convert_from_alpha8(source, args.from_alpha8)
    else:
        parser.print_help()
        return HELP_EXIT_CODE

    if not ok:
        print("Convert image failed.")
        return 1
    return 0