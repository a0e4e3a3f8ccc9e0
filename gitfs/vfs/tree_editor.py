"""
Copy-on-write tree editing.

An edit never changes an existing tree. The parent directory of the edited
path gets a new tree with the change applied, then every ancestor up to the
root is rewritten to point at its new child. Subtrees off the edited path
keep their hashes.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitfs.errors import (
    EntryExists,
    GitFsError,
    InvalidArgument,
    IsDirectory,
    NotDirectory,
    NotEmpty,
    NotFile,
    NotFound,
)
from gitfs.git_backend.objects import FileMode, TreeEntry
from gitfs.vfs.paths import PathResolver, join_path, split_path

if TYPE_CHECKING:
    from gitfs.git_backend.repository import GitObjectStore

logger = logging.getLogger(__name__)


class TreeEdit(ABC):
    """A change to one entry of a directory"""

    @abstractmethod
    def apply(
        self, store: "GitObjectStore", entries: dict[str, TreeEntry], name: str, path: str
    ) -> None:
        """Apply the change to entries in place.

        Args:
            store: Object store, for edits that need to look at the entry
            entries: The parent directory's entries by name
            name: Name of the edited entry
            path: Canonical path of the edited entry, for error messages
        """
        ...


@dataclass(frozen=True)
class InsertOrReplace(TreeEdit):
    """Put an entry at name, replacing a file or link but never a directory"""

    mode: FileMode
    hash: str

    def apply(
        self, store: "GitObjectStore", entries: dict[str, TreeEntry], name: str, path: str
    ) -> None:
        existing = entries.get(name)
        if existing is not None and existing.mode.is_directory:
            raise IsDirectory(f"Can't over-write directory \"{path}\"", path)
        if existing is not None and self.mode.is_directory:
            raise EntryExists(f"Can't replace entry with directory at \"{path}\"", path)
        entries[name] = TreeEntry(name, self.mode, self.hash)


@dataclass(frozen=True)
class RequireAbsent(TreeEdit):
    """Create a new entry at name; anything already there is an error"""

    mode: FileMode
    hash: str
    what: str = "directory"

    def apply(
        self, store: "GitObjectStore", entries: dict[str, TreeEntry], name: str, path: str
    ) -> None:
        existing = entries.get(name)
        if existing is not None and existing.mode.is_directory:
            raise IsDirectory(
                f"Can't make {self.what} over existing directory at \"{path}\"", path
            )
        if existing is not None:
            raise EntryExists(f"Can't make {self.what} over existing entry at \"{path}\"", path)
        entries[name] = TreeEntry(name, self.mode, self.hash)


@dataclass(frozen=True)
class Remove(TreeEdit):
    """Drop the entry at name; directories only when recursive"""

    recursive: bool = False

    def apply(
        self, store: "GitObjectStore", entries: dict[str, TreeEntry], name: str, path: str
    ) -> None:
        existing = entries.get(name)
        if existing is None:
            raise NotFound(f"Can't find \"{path}\"", path)
        if existing.mode.is_directory and not self.recursive:
            raise NotFile(f"Can't remove non-file \"{path}\"", path)
        del entries[name]


@dataclass(frozen=True)
class RequireEmptyThenRemove(TreeEdit):
    """Drop an empty directory"""

    def apply(
        self, store: "GitObjectStore", entries: dict[str, TreeEntry], name: str, path: str
    ) -> None:
        existing = entries.get(name)
        if existing is None:
            raise NotFound(f"Can't remove non-existant directory \"{path}\"", path)
        if not existing.mode.is_directory:
            raise NotDirectory(f"Can't remove non-directory \"{path}\"", path)
        if store.read_tree(existing.hash):
            raise NotEmpty(f"Can't remove non-empty directory \"{path}\"", path)
        del entries[name]


class TreeEditor:
    """Applies TreeEdits to root trees, returning new root hashes"""

    def __init__(self, store: "GitObjectStore", resolver: PathResolver) -> None:
        self.store = store
        self.resolver = resolver

    def edit(
        self, root: str, path: str, operation: TreeEdit, context: str | None = None
    ) -> str:
        """
        Apply operation at path under root and return the new root hash.

        Symbolic links in the parent path are followed so the edit lands on
        the real directory. The final segment is edited as-is (a link there is
        itself replaced or removed). An empty path edits the root itself.

        Failures to reach the parent directory are explained with context
        ("<context> because <error>") when it is given; failures of the
        operation itself are raised unchanged.

        Raises:
            NotFound: An ancestor directory doesn't exist
            NotDirectory: An ancestor isn't a directory
            InvalidArgument: The path ends in ".."
            Whatever the operation raises for the entry itself
        """
        segments = split_path(path)
        if not segments:
            return self._edit_root(root, operation)
        *parent_segments, name = segments
        if name == "..":
            raise InvalidArgument(f"Can't edit \"{path}\": path ends in \"..\"", path)

        try:
            parent = self.resolver.resolve(root, parent_segments, follow_final=True)
            if not parent.entry.mode.is_directory:
                raise NotDirectory(
                    f"Can't traverse non-directory \"{parent.path}\"", parent.path
                )
        except GitFsError as err:
            if context is None:
                raise
            raise err.wrap(context) from err

        entries = {entry.name: entry for entry in self.store.read_tree(parent.entry.hash)}
        operation.apply(self.store, entries, name, join_path(parent.segments + [name]))
        child_hash = self.store.write_tree(entries.values())

        new_root = self._rebuild(root, parent.chain, child_hash)
        logger.debug("Edited %s with %r: %s -> %s", path, operation, root, new_root)
        return new_root

    def _edit_root(self, root: str, operation: TreeEdit) -> str:
        """Treat the root as the only entry of an imaginary parent"""
        entries = {"": TreeEntry("", FileMode.DIRECTORY, root)}
        operation.apply(self.store, entries, "", "/")
        if "" in entries:
            return entries[""].hash
        return self.store.empty_tree_hash

    def _rebuild(self, root: str, chain: list[tuple[str, TreeEntry]], child_hash: str) -> str:
        """Rewrite every directory in chain, deepest first, ending at the root"""
        for depth in range(len(chain) - 1, -1, -1):
            name, entry = chain[depth]
            if entry.hash == child_hash:
                # Nothing changed from here up
                return root
            container = chain[depth - 1][1].hash if depth > 0 else root
            entries = {item.name: item for item in self.store.read_tree(container)}
            entries[name] = entries[name].with_hash(child_hash)
            child_hash = self.store.write_tree(entries.values())
        return child_hash
