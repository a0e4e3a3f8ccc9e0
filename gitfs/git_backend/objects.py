"""
Object model shared by the object store and the filesystem layer
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import IntEnum


class FileMode(IntEnum):
    """Git tree entry modes understood by gitfs"""

    FILE = 0o100644
    EXECUTABLE = 0o100755
    DIRECTORY = 0o040000
    SYMBOLIC_LINK = 0o120000

    @property
    def is_file(self) -> bool:
        return self in (FileMode.FILE, FileMode.EXECUTABLE)

    @property
    def is_directory(self) -> bool:
        return self is FileMode.DIRECTORY

    @property
    def is_symbolic_link(self) -> bool:
        return self is FileMode.SYMBOLIC_LINK


@dataclass(frozen=True)
class TreeEntry:
    """One named entry of a tree object"""

    name: str
    mode: FileMode
    hash: str

    def with_hash(self, hash: str) -> "TreeEntry":
        return replace(self, hash=hash)


@dataclass(frozen=True)
class Author:
    name: str
    email: str

    @classmethod
    def coerce(cls, value: "Author | Mapping[str, str]") -> "Author":
        """Accept an Author or a {"name": ..., "email": ...} mapping"""
        if isinstance(value, Author):
            return value
        return cls(name=value["name"], email=value["email"])


@dataclass(frozen=True)
class Commit:
    """
    A commit record.

    Attributes:
        tree: Hash of the root tree
        parent: Hash of the first parent commit, if any
        author: Who made the commit (also used as committer)
        message: Commit message
        timestamp: Seconds since the epoch
        offset: Timezone offset in minutes east of UTC
    """

    tree: str
    parent: str | None
    author: Author
    message: str
    timestamp: int
    offset: int = 0
