"""
Writable filesystem session on top of a git object store
"""

from __future__ import annotations

import logging
import os
import posixpath
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from gitfs.config.settings import Settings
from gitfs.errors import EntryExists, GitFsError, InvalidArgument, NotDirectory, NotFile, NotFound
from gitfs.git_backend.objects import Author, Commit, FileMode, TreeEntry
from gitfs.git_backend.repository import GitObjectStore
from gitfs.vfs.base import VFS, serialized
from gitfs.vfs.paths import PathResolver, Resolution, join_path, split_path
from gitfs.vfs.snapshot import SessionState, SnapshotManager
from gitfs.vfs.stat import Stat
from gitfs.vfs.tree_editor import (
    InsertOrReplace,
    Remove,
    RequireAbsent,
    RequireEmptyThenRemove,
    TreeEditor,
)

logger = logging.getLogger(__name__)


@contextmanager
def explained(context: str) -> Iterator[None]:
    """Re-raise gitfs errors as "<context> because <error>" of the same kind"""
    try:
        yield
    except GitFsError as err:
        raise err.wrap(context) from err


class GitFS(VFS):
    """
    POSIX-like filesystem over git trees.

    The session starts on the empty tree; load() a ref or commit to start
    from a snapshot. Every mutation writes new blobs and trees and then
    swaps the session root, so a failed operation leaves the session where
    it was. Nothing reaches a ref until commit() and save_as().

    Thread safety: every public operation holds the session lock.
    """

    def __init__(self, store: GitObjectStore, settings: Settings | None = None) -> None:
        super().__init__()
        if settings is None:
            settings = Settings()
        self.store = store
        self.settings = settings

        self.resolver = PathResolver(store, settings.get_max_symlink_depth())
        self.editor = TreeEditor(store, self.resolver)

        self.state = SessionState(root=store.empty_tree_hash)
        self.snapshots = SnapshotManager(store, self.state, Author(*settings.get_author()))

    @classmethod
    def open(
        cls, repo_path: str | Path, ref: str | None = None, settings: Settings | None = None
    ) -> GitFS:
        """Open the repository at repo_path and load ref (if given)"""
        if settings is None:
            settings = Settings()
        fs = cls(GitObjectStore.open(repo_path, settings.get_cache_size()), settings)
        if ref is not None:
            fs.load(ref)
        return fs

    @property
    def root_hash(self) -> str:
        return self.state.root

    @property
    def commit_hash(self) -> str | None:
        return self.state.commit

    # Reading

    @serialized
    def stat(self, path: str) -> Stat:
        with explained(f"Can't stat \"{path}\""):
            resolution = self.resolver.resolve(self.state.root, path, follow_final=True)
        return self._stat(resolution)

    @serialized
    def stat_link(self, path: str) -> Stat:
        with explained(f"Can't stat \"{path}\""):
            resolution = self.resolver.resolve(self.state.root, path, follow_final=False)
        return self._stat(resolution)

    def _stat(self, resolution: Resolution) -> Stat:
        entry = resolution.entry
        size = 0 if entry.mode.is_directory else len(self.store.read_blob(entry.hash))
        return Stat(resolution.path, entry.mode, entry.hash, size)

    @serialized
    def read_link(self, path: str) -> str:
        with explained(f"Can't read link \"{path}\""):
            resolution = self.resolver.resolve(self.state.root, path, follow_final=False)
        if not resolution.entry.mode.is_symbolic_link:
            raise InvalidArgument(f"Can't read non-symbolic-link at \"{path}\"", path)
        return self.store.read_blob(resolution.entry.hash).decode("utf-8")

    @serialized
    def canonical(self, path: str) -> str:
        return self.resolver.canonical(self.state.root, path)

    @serialized
    def list(self, path: str) -> list[str]:
        """List a directory, following symbolic links"""
        with explained(f"Can't list \"{path}\""):
            resolution = self.resolver.resolve(self.state.root, path)
        if not resolution.entry.mode.is_directory:
            raise NotDirectory(f"Can't list non-directory \"{resolution.path}\"", resolution.path)
        return sorted(entry.name for entry in self.store.read_tree(resolution.entry.hash))

    @serialized
    def list_tree(self, path: str = "") -> list[str]:
        """
        List every file and symbolic link below a directory.

        Paths are relative to the listed directory and sorted. Symbolic links
        are reported, not descended.
        """
        with explained(f"Can't list tree \"{path}\""):
            resolution = self.resolver.resolve(self.state.root, path)
        if not resolution.entry.mode.is_directory:
            raise NotDirectory(
                f"Can't list tree of non-directory \"{resolution.path}\"", resolution.path
            )
        return sorted(entry_path for entry_path, _ in self._walk(resolution.entry.hash))

    def _walk(self, tree: str, prefix: str = "") -> Iterator[tuple[str, TreeEntry]]:
        """Yield (relative path, entry) for every non-directory below tree"""
        for entry in self.store.read_tree(tree):
            entry_path = f"{prefix}/{entry.name}" if prefix else entry.name
            if entry.mode.is_directory:
                yield from self._walk(entry.hash, entry_path)
            else:
                yield entry_path, entry

    @serialized
    def read(
        self,
        path: str,
        begin: int | None = None,
        end: int | None = None,
        charset: str | None = None,
    ) -> bytes | str:
        """
        Read a file, following symbolic links.

        Args:
            path: File to read
            begin: First byte offset (default: start of file)
            end: Byte offset to stop before (default: end of file)
            charset: Decode the bytes with this encoding and return text

        Returns:
            The bytes in [begin, end), or their decoding if charset is given
        """
        with explained(f"Can't read \"{path}\""):
            resolution = self.resolver.resolve(self.state.root, path)
        if not resolution.entry.mode.is_file:
            raise NotFile(f"Can't read non-file \"{resolution.path}\"", resolution.path)
        content = self.store.read_blob(resolution.entry.hash)[begin:end]
        if not charset:
            return content
        try:
            return content.decode(charset)
        except (LookupError, UnicodeDecodeError) as err:
            raise InvalidArgument(
                f"Can't decode \"{resolution.path}\" as {charset}: {err}", resolution.path
            ) from err

    # Writing

    @serialized
    def write(
        self,
        path: str,
        content: bytes | str,
        charset: str = "utf-8",
        executable: bool = False,
    ) -> None:
        """Create or replace a file. Directories are never replaced."""
        data = content.encode(charset) if isinstance(content, str) else content
        mode = FileMode.EXECUTABLE if executable else FileMode.FILE
        blob = self.store.write_blob(data)
        self._swap(
            self.editor.edit(
                self.state.root,
                path,
                InsertOrReplace(mode, blob),
                context=f"Can't write \"{path}\"",
            )
        )

    @serialized
    def remove(self, path: str) -> None:
        """Remove a file or symbolic link"""
        with explained(f"Can't remove \"{path}\""):
            self._swap(self.editor.edit(self.state.root, path, Remove()))

    @serialized
    def remove_directory(self, path: str) -> None:
        """Remove an empty directory"""
        self._swap(
            self.editor.edit(
                self.state.root,
                path,
                RequireEmptyThenRemove(),
                context=f"Can't remove directory \"{path}\"",
            )
        )

    @serialized
    def remove_tree(self, path: str) -> None:
        """Remove whatever is at path, with everything below it"""
        with explained(f"Can't remove tree \"{path}\""):
            self._swap(self.editor.edit(self.state.root, path, Remove(recursive=True)))

    @serialized
    def make_directory(self, path: str) -> None:
        """Create an empty directory; the parent must exist"""
        self._swap(
            self.editor.edit(
                self.state.root,
                path,
                RequireAbsent(FileMode.DIRECTORY, self.store.empty_tree_hash),
                context=f"Can't make directory \"{path}\"",
            )
        )

    @serialized
    def make_tree(self, path: str) -> None:
        """Create a directory and any missing ancestors"""
        root = self.state.root
        segments = split_path(path)
        for depth in range(1, len(segments) + 1):
            prefix = segments[:depth]
            try:
                resolution = self.resolver.resolve(root, prefix)
            except NotFound:
                root = self.editor.edit(
                    root,
                    join_path(prefix),
                    RequireAbsent(FileMode.DIRECTORY, self.store.empty_tree_hash),
                    context=f"Can't make tree \"{path}\"",
                )
                continue
            except GitFsError as err:
                raise err.wrap(f"Can't make tree \"{path}\"") from err
            if not resolution.entry.mode.is_directory:
                raise EntryExists(
                    f"Can't make tree over existing entry at \"{resolution.path}\"",
                    resolution.path,
                )
        self._swap(root)

    @serialized
    def symbolic_link(self, target: str, path: str) -> None:
        """Create a symbolic link at path pointing to target"""
        blob = self.store.write_blob(target.encode("utf-8"))
        self._swap(
            self.editor.edit(
                self.state.root,
                path,
                RequireAbsent(FileMode.SYMBOLIC_LINK, blob, what="symbolic link"),
                context=f"Can't make symbolic link \"{path}\"",
            )
        )

    @serialized
    def move(self, source: str, target: str) -> None:
        """
        Move an entry of any kind to a new path.

        The target may replace a file or symbolic link, never a directory.
        A symbolic link is moved as a link.
        """
        root = self.state.root
        with explained(f"Can't move \"{source}\" to \"{target}\""):
            if not split_path(source):
                raise InvalidArgument("Can't move the root directory", source)
            moved = self.resolver.resolve(root, source, follow_final=False)
            source_path = moved.path
            # The last segment of target is replaced, not followed
            *target_parent, target_name = split_path(target) or [""]
            target_path = posixpath.join(
                self.resolver.canonical(root, join_path(target_parent)), target_name
            )
            if target_path == source_path:
                return
            if target_path.startswith(source_path + "/"):
                raise InvalidArgument(f"Can't move \"{source_path}\" into itself", target_path)
            root = self.editor.edit(
                root, target, InsertOrReplace(moved.entry.mode, moved.entry.hash)
            )
            root = self.editor.edit(root, source_path, Remove(recursive=True))
        self._swap(root)

    def _swap(self, root: str) -> None:
        """Make root the session root; only called once an edit fully succeeded"""
        if root != self.state.root:
            logger.debug("Root %s -> %s", self.state.root, root)
        self.state.root = root

    # Snapshots

    @serialized
    def load(self, name_or_hash: str) -> str:
        """Load a ref or commit hash as the current tree"""
        return self.snapshots.load(name_or_hash)

    @serialized
    def clear(self) -> None:
        """Start over from an empty tree; the current commit stays the parent"""
        self.snapshots.clear()

    @serialized
    def commit(self, message: str, author: Author | Mapping[str, str] | None = None) -> str:
        """
        Commit the current tree.

        Args:
            message: Commit message
            author: Author or {"name": ..., "email": ...}; defaults to settings

        Returns:
            Hash of the new commit
        """
        return self.snapshots.commit(message, author)

    @serialized
    def save_as(self, name: str) -> str:
        """Point a ref at the current commit and return its full name"""
        return self.snapshots.save_as(name)

    @serialized
    def history(self, limit: int | None = None) -> list[tuple[str, Commit]]:
        return self.snapshots.history(limit)

    # Materializing

    @serialized
    def materialize_to(self, directory: Path | None = None) -> Path:
        """
        Write the current tree out to a real directory.

        Useful for running tests or commands that need actual files.

        Args:
            directory: Existing directory to fill (default: a new temp directory)

        Returns:
            Path to the directory
        """
        if directory is None:
            directory = Path(tempfile.mkdtemp(prefix="gitfs_"))

        for filepath, entry in self._walk(self.state.root):
            full_path = directory / filepath
            full_path.parent.mkdir(parents=True, exist_ok=True)
            content = self.store.read_blob(entry.hash)

            if entry.mode.is_symbolic_link:
                os.symlink(content.decode("utf-8"), full_path)
                continue
            full_path.write_bytes(content)
            if entry.mode is FileMode.EXECUTABLE:
                full_path.chmod(0o755)

        return directory
