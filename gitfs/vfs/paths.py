"""
Path resolution against a root tree, following symbolic links.

Paths are slash-separated. Empty and "." segments are ignored, ".." steps
back out of the last resolved directory (never above the root). Symbolic
link targets are read from their blobs: absolute targets restart at the
root, relative targets resolve against the directory holding the link.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gitfs.constants import MAX_SYMLINK_DEPTH
from gitfs.errors import LinkCycle, NotDirectory, NotFound
from gitfs.git_backend.objects import FileMode, TreeEntry

if TYPE_CHECKING:
    from gitfs.git_backend.repository import GitObjectStore


def split_path(path: str) -> list[str]:
    """Split a path into its meaningful segments"""
    return [segment for segment in path.split("/") if segment not in ("", ".")]


def join_path(segments: list[str]) -> str:
    """Absolute path for a list of segments ("/" for the root)"""
    return "/" + "/".join(segments)


@dataclass
class Resolution:
    """
    Where a path ended up.

    Attributes:
        entry: The entry the path resolved to (a synthetic unnamed directory
            entry for the root)
        chain: (name, entry) for every directory step from the root down to
            and including the resolved entry
    """

    entry: TreeEntry
    chain: list[tuple[str, TreeEntry]] = field(default_factory=list)

    @property
    def segments(self) -> list[str]:
        return [name for name, _ in self.chain]

    @property
    def path(self) -> str:
        """Canonical absolute path"""
        return join_path(self.segments)


class _Unresolved(Exception):
    """Raised inside the walk to stop at the first unresolvable segment"""

    def __init__(self, error: NotFound | NotDirectory, resolved: list[str], remaining: list[str]):
        super().__init__(str(error))
        self.error = error
        self.resolved = resolved
        self.remaining = remaining


class PathResolver:
    """Walks paths through the trees of an object store"""

    def __init__(self, store: "GitObjectStore", max_symlink_depth: int = MAX_SYMLINK_DEPTH) -> None:
        self.store = store
        self.max_symlink_depth = max_symlink_depth

    def resolve(self, root: str, path: str | list[str], follow_final: bool = True) -> Resolution:
        """
        Resolve a path to its entry.

        Raises:
            NotFound: A segment doesn't exist
            NotDirectory: An intermediate segment isn't a directory
            LinkCycle: Too many symbolic links were expanded
        """
        try:
            return self._walk(root, path, follow_final)
        except _Unresolved as stop:
            raise stop.error from None

    def canonical(self, root: str, path: str) -> str:
        """
        Expand symbolic links in a path as far as they resolve.

        The first segment that can't be resolved and everything after it are
        appended without lookups, so dangling paths still canonicalize. A ".."
        there still steps back over the component before it.
        """
        try:
            return self._walk(root, path, follow_final=True).path
        except _Unresolved as stop:
            segments = list(stop.resolved)
            for name in stop.remaining:
                if name != "..":
                    segments.append(name)
                elif segments:
                    segments.pop()
            return join_path(segments)

    def _walk(self, root: str, path: str | list[str], follow_final: bool) -> Resolution:
        root_entry = TreeEntry("", FileMode.DIRECTORY, root)
        pending = deque(split_path(path) if isinstance(path, str) else path)
        chain: list[tuple[str, TreeEntry]] = []
        expanded = 0

        while pending:
            name = pending.popleft()
            current = chain[-1][1] if chain else root_entry
            resolved = [step for step, _ in chain]
            if not current.mode.is_directory:
                error = NotDirectory(
                    f"Can't traverse non-directory \"{join_path(resolved)}\"", join_path(resolved)
                )
                raise _Unresolved(error, resolved[:-1], [resolved[-1], name, *pending])

            if name == "..":
                if chain:
                    chain.pop()
                continue

            entry = self._lookup(current.hash, name)
            if entry is None:
                missing = join_path(resolved + [name])
                raise _Unresolved(
                    NotFound(f"Can't find \"{missing}\"", missing), resolved, [name, *pending]
                )

            if entry.mode.is_symbolic_link and (pending or follow_final):
                expanded += 1
                if expanded > self.max_symlink_depth:
                    location = join_path(resolved + [name])
                    raise LinkCycle(
                        f"Too many levels of symbolic links at \"{location}\"", location
                    )
                target = self.store.read_blob(entry.hash).decode("utf-8")
                if target.startswith("/"):
                    chain.clear()
                pending.extendleft(reversed(split_path(target)))
                continue

            chain.append((name, entry))

        return Resolution(chain[-1][1] if chain else root_entry, chain)

    def _lookup(self, tree: str, name: str) -> TreeEntry | None:
        for entry in self.store.read_tree(tree):
            if entry.name == name:
                return entry
        return None
