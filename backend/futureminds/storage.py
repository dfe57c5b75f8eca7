"""
Attachment storage.

Submission files live in a single logical bucket addressed by relative keys
of the form ``{student_id}/{submission_id}/{epoch_millis}_{filename}``.
``LocalFileStore`` keeps the bucket on disk; any object store offering
upload/download/remove by key can implement ``FileStore``.

Example:
    >>> store = LocalFileStore("storage", bucket="assignment-submissions")
    >>> store.upload("s1/sub1/1700000000000_essay.pdf", b"%PDF-1.7 ...")
"""

import os
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Union

logger = logging.getLogger(__name__)

STORAGE_DIR = os.getenv("STORAGE_DIR", "storage")
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "assignment-submissions")
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(20 * 1024 * 1024)))


class StorageError(Exception):
    """Base exception for file store failures."""
    pass


class ObjectNotFoundError(StorageError):
    """Raised when no blob exists under a key."""
    def __init__(self, key: str, message: str = ""):
        self.key = key
        self.message = message or f"No stored file for key: {key}"
        super().__init__(self.message)


class InvalidKeyError(StorageError):
    """Raised when a key is empty, absolute or escapes the bucket."""
    def __init__(self, key: str, message: str = ""):
        self.key = key
        self.message = message or f"Invalid storage key: {key!r}"
        super().__init__(self.message)


class FileStore(ABC):
    """Abstract blob store keyed by relative path."""

    @abstractmethod
    def upload(self, key: str, data: Union[bytes, BinaryIO]) -> str:
        """Store ``data`` under ``key`` and return the key."""
        pass

    @abstractmethod
    def download(self, key: str) -> bytes:
        """Return the blob stored under ``key``."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the blob stored under ``key``."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass


def safe_filename(filename: str) -> str:
    """
    Return a safe version of an uploaded filename.

    Example:
        >>> safe_filename("My Essay (final).pdf")
        'My_Essay__final_.pdf'
    """
    if not filename or not isinstance(filename, str):
        return 'unnamed_file'

    # Only the last path component is kept
    filename = filename.replace('\\', '/').rsplit('/', 1)[-1]

    keep_chars = ('.', '_', '-')
    safe_chars = []
    for c in filename:
        if c.isalnum() or c in keep_chars:
            safe_chars.append(c)
        elif c.isspace() or c in ('*', ':', '!', '@', '#', '$', '%', '^', '&', '(', ')', '+', '=', '[', ']',
                                   '{', '}', ';', "'", ',', '~', '`', '|', '"', '<', '>', '?'):
            safe_chars.append('_')

    safe_name = ''.join(safe_chars).strip('_.- ')
    if not safe_name:
        return 'unnamed_file'

    max_length = 200
    if len(safe_name) > max_length:
        name, ext = os.path.splitext(safe_name)
        safe_name = f"{name[:max_length - len(ext)]}{ext}"
    return safe_name


def submission_file_key(student_id: str, submission_id: str, filename: str, now_ms: int = None) -> str:
    """Build the storage key for one attachment; the millisecond prefix keeps re-uploads apart."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{student_id}/{submission_id}/{now_ms}_{safe_filename(filename)}"


def original_filename(key: str) -> str:
    """Strip the directory and timestamp prefix from a key."""
    name = PurePosixPath(key).name
    prefix, sep, rest = name.partition('_')
    return rest if sep and prefix.isdigit() else name


class LocalFileStore(FileStore):
    """
    Filesystem-backed bucket.

    Args:
        root: Directory holding every bucket.
        bucket: Bucket directory name under ``root``.
        max_file_size: Largest accepted blob in bytes.
    """

    def __init__(self, root: str = STORAGE_DIR, bucket: str = STORAGE_BUCKET, max_file_size: int = MAX_UPLOAD_SIZE):
        self.base_dir = (Path(root) / bucket).resolve()
        self.max_file_size = max_file_size
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalFileStore initialized at {self.base_dir}")

    def _path_for(self, key: str) -> Path:
        if not key or key.startswith('/') or '\\' in key:
            raise InvalidKeyError(key)
        parts = PurePosixPath(key).parts
        if any(part in ('..', '.', '') for part in parts):
            raise InvalidKeyError(key)
        return self.base_dir.joinpath(*parts)

    def upload(self, key: str, data: Union[bytes, BinaryIO]) -> str:
        path = self._path_for(key)
        payload = data if isinstance(data, (bytes, bytearray)) else data.read()
        if len(payload) > self.max_file_size:
            raise StorageError(
                f"File size {len(payload)} exceeds maximum allowed size of {self.max_file_size} bytes"
            )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'wb') as f:
                f.write(payload)
        except OSError as e:
            raise StorageError(f"Failed to store {key}: {e}") from e
        logger.debug(f"Stored {len(payload)} bytes at {key}")
        return key

    def download(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise ObjectNotFoundError(key)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if not path.is_file():
            raise ObjectNotFoundError(key)
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e
        logger.debug(f"Removed {key}")

    def exists(self, key: str) -> bool:
        try:
            return self._path_for(key).is_file()
        except InvalidKeyError:
            return False


_default_store = None


def get_file_store() -> FileStore:
    """Dependency returning the process-wide file store."""
    global _default_store
    if _default_store is None:
        _default_store = LocalFileStore()
    return _default_store
