"""Line-delimited JSON files shared between the popup and the editor."""

import contextlib
import hashlib
import os
import tempfile
from typing import Any, Dict, Iterable, List, Optional, Tuple

import orjson

from startmenu.store.errors import StoreParseError, StoreReadError, StoreWriteError


def content_digest(data: bytes) -> str:
    return hashlib.blake2b(data, digest_size=16).hexdigest()


def file_digest(path: str) -> Optional[str]:
    """Digest of the file's current bytes, or None if it cannot be read."""
    try:
        with open(path, "rb") as f:
            return content_digest(f.read())
    except OSError:
        return None


def read_bytes(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except FileNotFoundError as e:
        raise StoreReadError(path, "file does not exist", missing=True) from e
    except OSError as e:
        raise StoreReadError(path, e.strerror or str(e)) from e


def decode_lines(
    path: str, data: bytes
) -> Tuple[List[Tuple[int, Dict[str, Any]]], List[StoreParseError]]:
    """
    Decodes one JSON object per non-blank line.
    A line that is not valid JSON, or not an object, is returned as a
    StoreParseError and decoding continues with the next line.
    Returns:
        (records, errors), where records pairs each object with its 1-based line number.
    """
    records: List[Tuple[int, Dict[str, Any]]] = []
    errors: List[StoreParseError] = []
    for line_number, line in enumerate(data.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            value = orjson.loads(line)
        except orjson.JSONDecodeError as e:
            errors.append(StoreParseError(path, line_number, f"invalid JSON ({e})"))
            continue
        if not isinstance(value, dict):
            errors.append(StoreParseError(path, line_number, "record is not an object"))
            continue
        records.append((line_number, value))
    return records, errors


def encode_lines(records: Iterable[Dict[str, Any]]) -> bytes:
    return b"".join(orjson.dumps(record) + b"\n" for record in records)


def write_atomic(path: str, payload: bytes) -> None:
    """
    Replaces the file at `path` with `payload`. The bytes go to a temporary
    file in the same directory which is then renamed over the target, so
    readers see either the old or the new content, never a partial write.
    Raises:
        StoreWriteError: If the directory, the temporary file or the rename fails.
    """
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory
        )
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
        raise StoreWriteError(path, e.strerror or str(e)) from e
