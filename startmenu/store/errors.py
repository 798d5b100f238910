class StartMenuError(Exception):
    """Base class for every recoverable start menu failure."""


class StoreReadError(StartMenuError):
    """A store file is missing or cannot be read."""

    def __init__(self, path: str, reason: str, missing: bool = False):
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason
        self.missing = missing


class StoreParseError(StartMenuError):
    """A single line of a store file is not a valid record."""

    def __init__(self, path: str, line_number: int, reason: str):
        super().__init__(f"{path}:{line_number}: {reason}")
        self.path = path
        self.line_number = line_number
        self.reason = reason


class StoreWriteError(StartMenuError):
    """A store file could not be written. The in-memory state is still valid."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot write {path}: {reason}")
        self.path = path
        self.reason = reason


class AssetIOError(StartMenuError):
    """Copying, renaming or deleting an icon asset failed."""


class WatchSetupError(StartMenuError):
    """A file or directory could not be watched for changes."""


class LaunchError(StartMenuError):
    """An application could not be started."""
