"""Stat results for gitfs entries."""

import stat as stat_mod
from dataclasses import dataclass

from gitfs.git_backend.objects import FileMode


@dataclass(frozen=True)
class Stat:
    """Metadata for a single entry.

    Attributes:
        path: Canonical path of the entry
        mode: Git file mode of the entry
        hash: Object id of the blob or tree
        size: Content size in bytes (link target length for links, 0 for directories)
    """

    path: str
    mode: FileMode
    hash: str
    size: int = 0

    def is_file(self) -> bool:
        return self.mode.is_file

    def is_directory(self) -> bool:
        return self.mode.is_directory

    def is_symbolic_link(self) -> bool:
        return self.mode.is_symbolic_link

    def is_executable(self) -> bool:
        return self.mode is FileMode.EXECUTABLE

    # os.stat_result-compatible properties

    @property
    def st_mode(self) -> int:
        if self.mode.is_directory:
            return stat_mod.S_IFDIR | 0o755
        if self.mode.is_symbolic_link:
            return stat_mod.S_IFLNK | 0o777
        return int(self.mode)

    @property
    def st_size(self) -> int:
        return self.size
