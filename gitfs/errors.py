"""
Error taxonomy for gitfs operations.

Every error is an OSError carrying an errno name in ``code`` so callers can
either catch the gitfs kind or the matching builtin (``FileNotFoundError`` and
friends).
"""

import errno
from typing import ClassVar


class GitFsError(OSError):
    """Base class for all filesystem errors raised by gitfs"""

    code: ClassVar[str] = "EIO"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(getattr(errno, self.code), message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return self.message

    def wrap(self, context: str) -> "GitFsError":
        """Return an error of the same kind explaining this one.

        ``NotFound("Can't find x").wrap("Can't list y")`` reads
        ``Can't list y because Can't find x``.
        """
        wrapped = type(self)(f"{context} because {self.message}", self.path)
        wrapped.__cause__ = self
        return wrapped


class NotFound(GitFsError, FileNotFoundError):
    """A path segment, ref, or commit does not exist"""

    code = "ENOENT"


class NotDirectory(GitFsError, NotADirectoryError):
    """A directory was required"""

    code = "ENOTDIR"


class NotFile(GitFsError):
    """A file or symbolic link was required"""

    code = "EINVAL"


class IsDirectory(GitFsError, IsADirectoryError):
    """A directory is in the way"""

    code = "EISDIR"


class EntryExists(GitFsError, FileExistsError):
    """A non-directory entry is in the way"""

    code = "EEXIST"


class NotEmpty(GitFsError):
    code = "ENOTEMPTY"


class InvalidArgument(GitFsError):
    code = "EINVAL"


class LinkCycle(GitFsError):
    """Too many symbolic links were expanded while resolving a path"""

    code = "ELOOP"


class StoreError(GitFsError):
    """The object store failed for a reason unrelated to the path"""

    code = "EIO"
