"""
Snapshot lifecycle: load a ref, clear the tree, commit it, save it under a name
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from gitfs.errors import InvalidArgument, NotFound
from gitfs.git_backend.objects import Author, Commit

if TYPE_CHECKING:
    from gitfs.git_backend.repository import GitObjectStore

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """The mutable part of a filesystem session.

    Attributes:
        root: Hash of the current root tree
        commit: Hash of the last commit loaded or made, the parent of the next one
    """

    root: str
    commit: str | None = None


class SnapshotManager:
    """Moves a SessionState between commits and refs"""

    def __init__(
        self, store: "GitObjectStore", state: SessionState, default_author: Author
    ) -> None:
        self.store = store
        self.state = state
        self.default_author = default_author

    def load(self, name_or_hash: str) -> str:
        """
        Load a ref or commit as the current state.

        Returns:
            Hash of the loaded commit
        """
        try:
            commit_hash = self.store.resolve_commit(name_or_hash)
        except NotFound as err:
            raise err.wrap(f"Can't load \"{name_or_hash}\"") from err
        commit = self.store.read_commit(commit_hash)
        # Make sure the tree is there before pointing the session at it
        self.store.read_tree(commit.tree)

        self.state.commit = commit_hash
        self.state.root = commit.tree
        logger.info("Loaded %s (commit %s, tree %s)", name_or_hash, commit_hash, commit.tree)
        return commit_hash

    def clear(self) -> None:
        """Empty the current tree, keeping the current commit as the next parent"""
        self.state.root = self.store.empty_tree_hash
        logger.info("Cleared tree (parent commit %s)", self.state.commit)

    def commit(
        self, message: str, author: Author | Mapping[str, str] | None = None
    ) -> str:
        """
        Commit the current tree on top of the current commit.

        No ref is moved; use save_as for that.

        Returns:
            Hash of the new commit
        """
        offset = datetime.now().astimezone().utcoffset()
        record = Commit(
            tree=self.state.root,
            parent=self.state.commit,
            author=Author.coerce(author) if author is not None else self.default_author,
            message=message,
            timestamp=int(time.time()),
            offset=int(offset.total_seconds() // 60) if offset is not None else 0,
        )
        commit_hash = self.store.write_commit(record)
        self.state.commit = commit_hash
        logger.info("Committed tree %s as %s", record.tree, commit_hash)
        return commit_hash

    def save_as(self, name: str) -> str:
        """
        Point ref name at the current commit, creating or overwriting it.

        Returns:
            The full ref name, e.g. "refs/heads/backup" for "backup"
        """
        if self.state.commit is None:
            raise InvalidArgument(
                f"Can't save \"{name}\" because there is no current commit", name
            )
        try:
            ref_name = self.store.write_ref(name, self.state.commit)
        except InvalidArgument as err:
            raise err.wrap(f"Can't save \"{name}\"") from err
        logger.info("Saved %s -> %s", ref_name, self.state.commit)
        return ref_name

    def history(self, limit: int | None = None) -> list[tuple[str, Commit]]:
        """(hash, commit) from the current commit back along first parents, newest first"""
        commits: list[tuple[str, Commit]] = []
        current = self.state.commit
        while current is not None and (limit is None or len(commits) < limit):
            commit = self.store.read_commit(current)
            commits.append((current, commit))
            current = commit.parent
        return commits
