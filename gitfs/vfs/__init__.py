"""Virtual filesystem over git trees"""

from gitfs.vfs.git_fs import GitFS
from gitfs.vfs.paths import PathResolver, Resolution, split_path
from gitfs.vfs.snapshot import SessionState, SnapshotManager
from gitfs.vfs.stat import Stat
from gitfs.vfs.tree_editor import (
    InsertOrReplace,
    Remove,
    RequireAbsent,
    RequireEmptyThenRemove,
    TreeEdit,
    TreeEditor,
)

__all__ = [
    "GitFS",
    "InsertOrReplace",
    "PathResolver",
    "Remove",
    "RequireAbsent",
    "RequireEmptyThenRemove",
    "Resolution",
    "SessionState",
    "SnapshotManager",
    "Stat",
    "TreeEdit",
    "TreeEditor",
    "split_path",
]
