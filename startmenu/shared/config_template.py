default_config = {
    "_section_hint": "General configuration settings for the start menu.",
    "storage": {
        "_section_hint": "Where categories, recent apps and custom icons are kept.",
        "data_dir": "",
        "data_dir_hint": (
            "Directory holding categories.jsonl, recents.jsonl and the icons "
            "folder. Leave empty to use $XDG_DATA_HOME/startmenu."
        ),
        "max_recents": 15,
        "max_recents_hint": "How many recently launched apps are remembered.",
    },
    "sync": {
        "_section_hint": "Live reload between the menu and the editor.",
        "reload_delay_ms": 500,
        "reload_delay_ms_hint": (
            "Quiet period (in milliseconds) after the last change to the "
            "categories file before it is reloaded."
        ),
        "watch_application_dirs": True,
        "watch_application_dirs_hint": (
            "Refresh the app list when .desktop files are installed or removed."
        ),
    },
    "popup": {
        "_section_hint": "Appearance of the panel button and its popover.",
        "panel_icon": "start-here-symbolic",
        "panel_icon_hint": "Icon name shown on the panel button.",
        "icon_scale": 1.0,
        "icon_scale_hint": "Multiplier applied to category and app icon sizes.",
    },
    "logging": {
        "_section_hint": "Log output.",
        "level": "INFO",
        "level_hint": "One of DEBUG, INFO, WARNING, ERROR.",
    },
}
