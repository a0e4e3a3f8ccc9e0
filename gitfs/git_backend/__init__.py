"""Git backend for storing filesystem objects"""

from gitfs.git_backend.objects import Author, Commit, FileMode, TreeEntry
from gitfs.git_backend.repository import GitObjectStore

__all__ = ["Author", "Commit", "FileMode", "GitObjectStore", "TreeEntry"]
