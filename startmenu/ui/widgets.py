from typing import Any, Optional

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib, Gtk  # pyright: ignore

from startmenu.store.models import ALLOWED_IMAGE_EXTENSIONS

BASE_ICON_SIZE = 32


def icon_image(
    size: int, file_path: Optional[str] = None, gicon: Any = None, icon_name: str = ""
) -> Gtk.Image:
    """An image from a custom file, else a GIcon, else a themed icon name."""
    if file_path:
        image = Gtk.Image.new_from_file(file_path)
    elif gicon is not None:
        image = Gtk.Image.new_from_gicon(gicon)
    else:
        image = Gtk.Image.new_from_icon_name(icon_name or "application-x-executable")
    image.set_pixel_size(size)
    return image


def labelled_row(image: Gtk.Image, text: str, css_class: str) -> Gtk.Box:
    box = Gtk.Box.new(Gtk.Orientation.HORIZONTAL, 6)
    box.add_css_class(css_class)
    box.append(image)
    label = Gtk.Label.new(text)
    label.set_halign(Gtk.Align.START)
    label.props.hexpand = True
    box.append(label)
    return box


def clear_list_box(list_box: Gtk.ListBox) -> None:
    child = list_box.get_first_child()
    while child is not None:
        next_child = child.get_next_sibling()
        list_box.remove(child)
        child = next_child


def image_filter() -> Gtk.FileFilter:
    file_filter = Gtk.FileFilter()
    file_filter.set_name("Image Files")
    for extension in ALLOWED_IMAGE_EXTENSIONS:
        file_filter.add_mime_type(f"image/{extension}")
        file_filter.add_pattern(f"*.{extension}")
    return file_filter


def choose_image(parent: Gtk.Window, on_chosen) -> None:
    """Opens a file dialog and calls `on_chosen(path)` with the picked image."""
    dialog = Gtk.FileDialog()
    dialog.set_title("Select an Image")
    filters = Gio.ListStore.new(Gtk.FileFilter)
    filters.append(image_filter())
    dialog.set_filters(filters)

    def on_finish(source, result):
        try:
            gio_file = source.open_finish(result)
        except GLib.Error:
            return
        path = gio_file.get_path() if gio_file is not None else None
        if path and "." in path and path.rsplit(".", 1)[1].lower() in ALLOWED_IMAGE_EXTENSIONS:
            on_chosen(path)

    dialog.open(parent, None, on_finish)
