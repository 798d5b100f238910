import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


class PathHandler:
    """
    A class to handle the start menu's paths based on the XDG Base Directory
    Specification.
    """

    def __init__(self, logger: Any, app_name: str = "startmenu"):
        """
        Args:
            logger: Logger used to report directory creation problems.
            app_name: Sub-directory name used inside every XDG base directory.
        """
        self.app_name = app_name
        self._home = Path.home()
        self.logger = logger

    def _get_xdg_base_dir(self, env_var: str, default_path: Path) -> Path:
        """Helper to get XDG base directory with fallback."""
        path_str = os.getenv(env_var)
        if path_str:
            return Path(path_str)
        return default_path

    def get_config_dir(self) -> Path:
        """
        Returns the path to the configuration directory:
        $XDG_CONFIG_HOME/startmenu or ~/.config/startmenu.
        Creates the directory if it does not exist.
        """
        config_home = self._get_xdg_base_dir("XDG_CONFIG_HOME", self._home / ".config")
        config_dir = config_home / self.app_name
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def get_data_dir(self) -> Path:
        """$XDG_DATA_HOME/startmenu or ~/.local/share/startmenu (not created)."""
        data_home = self._get_xdg_base_dir(
            "XDG_DATA_HOME", self._home / ".local" / "share"
        )
        return data_home / self.app_name

    def get_data_path(self, *path_parts) -> str:
        """
        Returns a path inside the data directory and creates its parent
        directories if they do not exist.
        """
        path = self.get_data_dir() / Path(*path_parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)

    def get_state_path(self, *path_parts) -> str:
        """Returns a path inside $XDG_STATE_HOME/startmenu."""
        state_home = self._get_xdg_base_dir(
            "XDG_STATE_HOME", self._home / ".local" / "state"
        )
        return str(state_home / self.app_name / Path(*path_parts))

    def get_application_dirs(self) -> list:
        """Directories holding the user's and the system's .desktop files."""
        data_home = self._get_xdg_base_dir(
            "XDG_DATA_HOME", self._home / ".local" / "share"
        )
        return [str(data_home / "applications"), "/usr/share/applications"]

    def menu_paths(self, data_dir: Optional[str] = None) -> "MenuPaths":
        """
        Builds the store locations, rooted at `data_dir` when configured.
        """
        root = Path(os.path.expanduser(data_dir)) if data_dir else self.get_data_dir()
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Cannot create data directory {root}: {e}")
        return MenuPaths(str(root))


@dataclass(frozen=True)
class MenuPaths:
    """Files shared by the popup and the editor, all below one data directory."""

    data_dir: str

    @property
    def categories_file(self) -> str:
        return os.path.join(self.data_dir, "categories.jsonl")

    @property
    def recents_file(self) -> str:
        return os.path.join(self.data_dir, "recents.jsonl")

    @property
    def category_icons_dir(self) -> str:
        return os.path.join(self.data_dir, "icons", "categories")

    @property
    def app_icons_dir(self) -> str:
        return os.path.join(self.data_dir, "icons", "apps")
