"""Key-value persistence boundary for the queue store and identity map."""

from __future__ import annotations

import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol

from offlinesync.errors import InvalidArgumentError, PersistenceError

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """Durable string storage addressed by key."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage (tests, ephemeral clients)."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class FileStorage:
    """
    One file per key under a directory.

    Writes go to a temp file in the same directory, are fsync'ed and then
    renamed over the target, so readers see either the old or the new value.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise InvalidArgumentError("Invalid storage key", details={"key": key})
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(
                "Failed to read storage file",
                details={"path": str(path)},
                cause=exc,
            ) from exc

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_name: Optional[str] = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(
                "Failed to write storage file",
                details={"path": str(path)},
                cause=exc,
            ) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(
                "Failed to delete storage file",
                details={"path": str(path)},
                cause=exc,
            ) from exc
