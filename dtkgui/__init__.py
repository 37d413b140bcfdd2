"""DCI icons, palettes, icon theme lookup, built-in icons, font tiers, taskbar messages and thumbnails."""

__version__ = "0.1.0"