from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Union

FileContents = Union[bytes, str]


class FileSystem(ABC):
    """Abstracts file storage so components under test never touch the disk."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read file contents. Raises FileNotFoundError if missing."""
        ...

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Write data to a file, replacing any previous contents."""
        ...

    @abstractmethod
    def list(self, prefix: str) -> List[str]:
        """List all files under the given prefix, recursively."""
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete a file. Returns True if deleted, False if it didn't exist."""
        ...

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read(path).decode(encoding)

    def write_text(self, path: str, text: str, encoding: str = "utf-8") -> None:
        self.write(path, text.encode(encoding))

    def copy(self, source: str, destination: str) -> None:
        """Copy a file, replacing the destination."""
        self.write(destination, self.read(source))

    def move(self, source: str, destination: str) -> None:
        """Move a file, replacing the destination."""
        data = self.read(source)
        self.delete(source)
        self.write(destination, data)


def normalize_path(path: str) -> str:
    """Map equivalent spellings of a path to one key.

    Backslashes become slashes, and leading ``./`` or ``/`` is dropped, so
    ``"/logs\\\\a.txt"`` and ``"logs/a.txt"`` name the same file.
    """
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


class MemoryFileSystem(FileSystem):
    """In-memory file system shared by everything built in one mocker session.

    Args:
        files: Initial contents keyed by path. Text is stored UTF-8 encoded.

    Example:
        >>> fs = MemoryFileSystem({"config/app.json": "{}"})
        >>> fs.read_text("/config/app.json")
        '{}'
    """

    def __init__(self, files: Optional[Mapping[str, FileContents]] = None) -> None:
        self._files: Dict[str, bytes] = {}
        for path, contents in (files or {}).items():
            if isinstance(contents, str):
                self.write_text(path, contents)
            else:
                self.write(path, contents)

    def read(self, path: str) -> bytes:
        key = normalize_path(path)
        if key not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[key]

    def write(self, path: str, data: bytes) -> None:
        self._files[normalize_path(path)] = bytes(data)

    def list(self, prefix: str) -> List[str]:
        prefix = normalize_path(prefix)
        return sorted(k for k in self._files if k.startswith(prefix))

    def delete(self, path: str) -> bool:
        return self._files.pop(normalize_path(path), None) is not None

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def snapshot(self) -> Dict[str, bytes]:
        """Return a copy of every stored file keyed by normalized path."""
        return dict(self._files)

    def clear(self) -> None:
        self._files.clear()
