import os
import shutil
from typing import Any, Dict, Optional, Tuple

import structlog

from startmenu.store.errors import AssetIOError
from startmenu.store.models import ALLOWED_IMAGE_EXTENSIONS


class IconAssetIndex:
    """
    Maps a logical name (category name or desktop id) to the extension of its
    custom icon file inside one directory.

    The index is rebuilt from the directory after every copy, rename or delete
    made through it, so an entry exists only while `<name>.<ext>` exists.
    """

    def __init__(self, directory: str, logger: Any = None):
        self.directory = str(directory)
        self.logger = logger or structlog.get_logger(__name__)
        self._index: Dict[str, str] = {}
        self._signature: Optional[Tuple[Tuple[str, int, int], ...]] = None

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._index)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._index)

    def extension(self, name: str) -> Optional[str]:
        return self._index.get(name)

    def path_for(self, name: str) -> Optional[str]:
        """Absolute path of the custom icon for `name`, or None if there is none."""
        extension = self._index.get(name)
        if extension is None:
            return None
        return os.path.join(self.directory, f"{name}.{extension}")

    def scan(self) -> Dict[str, str]:
        """
        Rebuilds the index from the directory.
        Files without a '.' or with an extension outside ALLOWED_IMAGE_EXTENSIONS
        are skipped. A missing or unreadable directory yields an empty index.
        Returns:
            A copy of the new index.
        """
        index: Dict[str, str] = {}
        self._signature = self._read_signature()
        try:
            file_names = sorted(os.listdir(self.directory))
        except FileNotFoundError:
            self.logger.debug(f"Icon directory {self.directory} does not exist yet.")
            file_names = []
        except OSError as e:
            self.logger.warning(f"Failed to scan icon directory {self.directory}: {e}")
            file_names = []
        for file_name in file_names:
            if "." not in file_name:
                continue
            base_name, extension = file_name.rsplit(".", 1)
            if not base_name or extension.lower() not in ALLOWED_IMAGE_EXTENSIONS:
                continue
            if not os.path.isfile(os.path.join(self.directory, file_name)):
                continue
            index[base_name] = extension
        self._index = index
        return dict(index)

    def _read_signature(self) -> Optional[Tuple[Tuple[str, int, int], ...]]:
        try:
            entries = list(os.scandir(self.directory))
        except FileNotFoundError:
            return ()
        except OSError:
            return None
        signature = []
        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                info = entry.stat()
            except OSError:
                continue
            signature.append((entry.name, info.st_mtime_ns, info.st_size))
        return tuple(sorted(signature))

    def is_current(self) -> bool:
        """
        True if no file in the directory was added, removed or rewritten
        since the last scan.
        """
        return self._read_signature() == self._signature

    def _check_name(self, name: str) -> None:
        if not name or name in (".", "..") or os.sep in name:
            raise AssetIOError(f"'{name}' cannot be used as an icon file name")

    def copy_and_register(self, name: str, source_path: str) -> str:
        """
        Copies `source_path` to `<name>.<ext>` inside the directory.
        Any existing asset for `name` is removed first, so a previous icon with
        another extension does not linger.
        Args:
            name: Logical name of the icon.
            source_path: Image file chosen by the user.
        Returns:
            The path of the copied asset.
        Raises:
            AssetIOError: If the source has no supported extension or the copy fails.
        """
        self._check_name(name)
        source_name = os.path.basename(source_path)
        if "." not in source_name:
            raise AssetIOError(f"Icon file {source_path} has no extension")
        extension = source_name.rsplit(".", 1)[1]
        if extension.lower() not in ALLOWED_IMAGE_EXTENSIONS:
            raise AssetIOError(f"Icon file {source_path} is not a supported image type")
        destination = os.path.join(self.directory, f"{name}.{extension}")
        if os.path.abspath(source_path) == os.path.abspath(destination):
            self.scan()
            return destination
        try:
            os.makedirs(self.directory, exist_ok=True)
            self.remove(name)
            shutil.copyfile(source_path, destination)
        except OSError as e:
            self.scan()
            raise AssetIOError(
                f"Failed to copy icon {source_path} to {destination}: {e}"
            ) from e
        self.scan()
        self.logger.info(f"Registered icon {destination}.")
        return destination

    def remove(self, name: str) -> bool:
        """
        Deletes the asset registered for `name`.
        Returns:
            False if no asset is registered, True once the file is gone.
        Raises:
            AssetIOError: If the file exists but cannot be deleted.
        """
        path = self.path_for(name)
        if path is None:
            self.logger.debug(f"No icon asset registered for '{name}'.")
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            self.logger.warning(f"Icon {path} vanished before it could be removed.")
        except OSError as e:
            raise AssetIOError(f"Failed to remove icon {path}: {e}") from e
        self.scan()
        return True

    def rename(self, old_name: str, new_name: str) -> bool:
        """
        Moves the asset of `old_name` to `new_name`, keeping its extension.
        Returns:
            False if `old_name` has no asset.
        Raises:
            AssetIOError: If the rename fails.
        """
        self._check_name(new_name)
        source = self.path_for(old_name)
        if source is None:
            return False
        if old_name == new_name:
            return True
        destination = os.path.join(
            self.directory, f"{new_name}.{self._index[old_name]}"
        )
        try:
            self.remove(new_name)
            os.replace(source, destination)
        except OSError as e:
            self.scan()
            raise AssetIOError(
                f"Failed to rename icon {source} to {destination}: {e}"
            ) from e
        self.scan()
        self.logger.info(f"Renamed icon '{old_name}' to '{new_name}'.")
        return True
