import os
import subprocess
from typing import Any, List

from startmenu.store.errors import LaunchError
from startmenu.store.models import desktop_id


def is_flatpak() -> bool:
    return os.path.exists("/.flatpak-info")


class CommandRunner:
    def __init__(self, logger: Any, sandboxed: bool = None):  # pyright: ignore
        self.logger = logger
        self.sandboxed = is_flatpak() if sandboxed is None else sandboxed

    def build_launch_command(self, app_id: str) -> List[str]:
        """
        gtk-launch takes the desktop id without its '.desktop' suffix. Inside a
        Flatpak sandbox the command is run on the host.
        """
        name = desktop_id(app_id)[: -len(".desktop")]
        cmd = ["gtk-launch", name]
        if self.sandboxed:
            cmd = ["flatpak-spawn", "--host"] + cmd
        return cmd

    def run(self, cmd: List[str]) -> None:
        """
        Starts a command detached from the panel process.
        Raises:
            LaunchError: If the process could not be spawned.
        """
        try:
            subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise LaunchError(f"Error running command {' '.join(cmd)}: {e}") from e
        self.logger.info(f"Started {' '.join(cmd)}.")

    def launch_desktop_id(self, app_id: str) -> None:
        self.run(self.build_launch_command(app_id))
