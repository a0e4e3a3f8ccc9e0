"""
Abstract VFS interface for git-backed file operations
"""

import functools
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

from gitfs.errors import LinkCycle, NotDirectory, NotFound

if TYPE_CHECKING:
    from gitfs.vfs.stat import Stat

F = TypeVar("F", bound=Callable[..., Any])


def serialized(method: F) -> F:
    """Run a VFS method while holding the session lock.

    Operations on one session run one at a time, in the order they acquire
    the lock. The lock is reentrant so operations may call each other.
    """

    @functools.wraps(method)
    def wrapper(self: "VFS", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return cast(F, wrapper)


class VFS(ABC):
    """Abstract virtual filesystem interface.

    One VFS instance is one session: it owns the current root and every
    public operation is serialized on a per-instance lock, so two writers
    can never rebuild from the same stale root.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @abstractmethod
    def stat(self, path: str) -> "Stat":
        """Stat an entry, following a final symbolic link"""
        pass

    @abstractmethod
    def stat_link(self, path: str) -> "Stat":
        """Stat an entry without following a final symbolic link"""
        pass

    @abstractmethod
    def read_link(self, path: str) -> str:
        """Read the target of a symbolic link"""
        pass

    @abstractmethod
    def canonical(self, path: str) -> str:
        """Absolute path with symbolic links expanded as far as possible"""
        pass

    @abstractmethod
    def list(self, path: str) -> list[str]:
        """List the sorted entry names of a directory"""
        pass

    @abstractmethod
    def read(
        self,
        path: str,
        begin: int | None = None,
        end: int | None = None,
        charset: str | None = None,
    ) -> bytes | str:
        """Read file content, optionally a [begin, end) byte range"""
        pass

    @abstractmethod
    def write(self, path: str, content: bytes | str) -> None:
        """Write file content"""
        pass

    @abstractmethod
    def remove(self, path: str) -> None:
        """Remove a file or symbolic link"""
        pass

    @abstractmethod
    def remove_directory(self, path: str) -> None:
        """Remove an empty directory"""
        pass

    @abstractmethod
    def remove_tree(self, path: str) -> None:
        """Remove an entry and everything below it"""
        pass

    @abstractmethod
    def make_directory(self, path: str) -> None:
        """Create an empty directory"""
        pass

    def exists(self, path: str) -> bool:
        """Check if path exists (following symbolic links)"""
        return self._probe(self.stat, path) is not None

    def is_file(self, path: str) -> bool:
        stat = self._probe(self.stat, path)
        return stat is not None and stat.is_file()

    def is_directory(self, path: str) -> bool:
        stat = self._probe(self.stat, path)
        return stat is not None and stat.is_directory()

    def is_symbolic_link(self, path: str) -> bool:
        stat = self._probe(self.stat_link, path)
        return stat is not None and stat.is_symbolic_link()

    def _probe(self, stat: Callable[[str], "Stat"], path: str) -> "Stat | None":
        """Stat, or None when nothing resolvable is at path"""
        try:
            return stat(path)
        except (NotFound, NotDirectory, LinkCycle):
            return None
