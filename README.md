# dtkgui

Building blocks for desktop applications that use DCI icons and themed icon
directories:

- **DCI icons** (`dtkgui.dciicon`, `dtkgui.dcientry`): load icons laid out as
  `size/mode.theme/scale/layer` directory trees, match the best entry for a
  size, theme and mode, and render them with Pillow, filling palette layers
  with palette colours.
- **Icon palettes** (`dtkgui.palette`): `Color` and `DciIconPalette` with
  foreground, background, highlight and highlight-foreground colours, and
  conversion to and from the `//dtk.dci.palette?...` string form.
- **Icon theme lookup** (`dtkgui.icontheme`): find `.dci` files in the theme
  search paths (the `dsg/icons` directory under each `XDG_DATA_DIRS` entry by
  default), with group-name and theme-less fallbacks, and an LRU result cache.
- **Built-in icons** (`dtkgui.builtinicons`): pick `<name>_<size>px.<suffix>`
  files for light and dark themes from an icon root directory, including
  directories of per-mode/state images.
- **Font tiers** (`dtkgui.fontmanager`): the T1 to T10 pixel sizes, shifted to
  follow a base font.
- **Taskbar control** (`dtkgui.taskbar`): build launcher-entry `Update`
  messages for progress, counter and urgency.
- **Thumbnails** (`dtkgui.thumbnail`): create and look up cached PNG
  thumbnails in the small, normal and large sizes, directly or through a
  background worker thread.

## Installation

```
pip install .
```

Pillow is the only runtime dependency.

## Usage

### DCI icons

```python
from dtkgui.dciicon import DciIcon, from_theme
from dtkgui.dcientry import Theme, Mode

icon = DciIcon.from_directory("icons/accounts")
if not icon.is_null():
    print(icon.available_sizes(Theme.LIGHT, Mode.NORMAL))
    image = icon.pixmap(1.0, 32, Theme.LIGHT, Mode.NORMAL, None)  # a PIL RGBA image or None

themed = from_theme("accounts", "bloom", fallback=icon)
```

`pixmap` returns `None` when no entry matches; `actual_size` returns -1 then.

### Palettes

```python
from dtkgui.palette import Color, DciIconPalette

palette = DciIconPalette(foreground=Color.parse("#ff0000"))
text = palette.to_string()          # "//dtk.dci.palette?foreground=%23ffff0000"
assert DciIconPalette.from_string(text) == palette
```

### Finding themed icons

```python
from dtkgui.icontheme import cached, dci_theme_search_paths, find_dci_icon_file

path = find_dci_icon_file("org.example.app/accounts", "bloom", dci_theme_search_paths())
path = cached().find_dci_icon_file("accounts", "bloom")
```

Names that are absolute, end in `/`, are not already clean or climb out with
`../` give `None`.

### Built-in icons

```python
from dtkgui.builtinicons import BuiltinIconEngine
from dtkgui.dcientry import Theme

engine = BuiltinIconEngine("edit", "resources/builtin", Theme.DARK)
if not engine.is_null():
    image = engine.pixmap(16, "normal", "off")
```

### Font sizes

```python
from dtkgui.fontmanager import Font, FontManager, SizeType

manager = FontManager()
print(manager.pixel_size(SizeType.T6))   # 14
manager.set_base_font(Font(pixel_size=16))
print(manager.pixel_size(SizeType.T1))   # 42
```

### Taskbar

```python
from dtkgui.taskbar import TaskbarControl

control = TaskbarControl("org.example.app.desktop", sender=print)
control.set_progress(True, 0.5)
```

Without a `sender`, messages are collected in `control.outbox`.

### Thumbnails

```python
from dtkgui.thumbnail import ThumbnailProvider, ThumbnailSize

with ThumbnailProvider("cache/thumbnails") as provider:
    thumbnail = provider.create_thumbnail("photo.png", ThumbnailSize.NORMAL)
    provider.append_to_produce_queue("other.png", ThumbnailSize.LARGE, print)
```

Failures are recorded in the `fail` directory and explained by
`provider.error_string`.

## Command line

`dci-image-converter` converts layer images to and from the alpha8 form used
inside DCI files:

```
dci-image-converter --toAlpha8 target.png.alpha8 source.png
dci-image-converter --fromAlpha8 target.png source.png.alpha8
```

It prints `Convert image failed.` and exits with status 1 when the conversion
cannot be done, and prints the help and exits with status 255 when no source
or no option is given.

## What this package does not do

- It does not talk to the session bus: `TaskbarControl` only builds
  `LauncherEntryMessage` values and hands them to your `sender`.
- It has no SVG renderer of its own; images are read with whatever formats
  Pillow supports.
- `BuiltinIconEngine` loads and scales icon files but does not tint them with
  a pen colour; `EntryType` only records how an icon is meant to follow it.
- It has no tools for inspecting window settings or timing application
  start-up.