"""gitfs - a POSIX-like filesystem over git objects"""

from gitfs.config.settings import Settings
from gitfs.errors import (
    EntryExists,
    GitFsError,
    InvalidArgument,
    IsDirectory,
    LinkCycle,
    NotDirectory,
    NotEmpty,
    NotFile,
    NotFound,
    StoreError,
)
from gitfs.git_backend.objects import Author, Commit, FileMode, TreeEntry
from gitfs.git_backend.repository import GitObjectStore
from gitfs.vfs.git_fs import GitFS
from gitfs.vfs.stat import Stat

__all__ = [
    "Author",
    "Commit",
    "EntryExists",
    "FileMode",
    "GitFS",
    "GitFsError",
    "GitObjectStore",
    "InvalidArgument",
    "IsDirectory",
    "LinkCycle",
    "NotDirectory",
    "NotEmpty",
    "NotFile",
    "NotFound",
    "Settings",
    "Stat",
    "StoreError",
    "TreeEntry",
]
