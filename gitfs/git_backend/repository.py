"""
Git object store using pygit2
"""

import logging
import re
import threading
from collections import OrderedDict
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from pathlib import Path
from typing import Any, TypeVar

import pygit2

from gitfs.constants import BRANCH_PREFIX, DEFAULT_CACHE_SIZE, REF_SEARCH_PREFIXES
from gitfs.errors import InvalidArgument, NotFound, StoreError
from gitfs.git_backend.objects import Author, Commit, FileMode, TreeEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

HEX_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")

# Legacy group-writable blobs are read as plain files
_LEGACY_MODES = {0o100664: FileMode.FILE}


class GitObjectStore:
    """
    Content-addressed object storage backed by a git repository.

    Hashes go in and out as hex strings. Blobs, trees and commits never change
    once written, so reads are cached and concurrent reads of the same object
    share a single fetch. Refs are the only mutable state and are never cached.
    """

    def __init__(self, repo: pygit2.Repository, cache_size: int | None = None) -> None:
        self.repo = repo
        self.cache_size = DEFAULT_CACHE_SIZE if cache_size is None else cache_size

        # Serializes access to the libgit2 handle
        self._repo_lock = threading.RLock()

        # (kind, hash) -> immutable decoded object, least recently used first
        self._cache: OrderedDict[tuple[str, str], Any] = OrderedDict()

        # (kind, hash) -> pending fetch shared by concurrent readers
        self._in_flight: dict[tuple[str, str], Future[Any]] = {}
        self._cache_lock = threading.Lock()

        self._empty_tree_hash: str | None = None

    @classmethod
    def open(cls, path: str | Path, cache_size: int | None = None) -> "GitObjectStore":
        """Open an existing repository (bare or with a working directory)"""
        try:
            repo = pygit2.Repository(str(path))
        except pygit2.GitError as err:
            raise StoreError(f"Can't open repository at \"{path}\": {err}", str(path)) from err
        return cls(repo, cache_size)

    @classmethod
    def init(
        cls, path: str | Path, bare: bool = True, cache_size: int | None = None
    ) -> "GitObjectStore":
        """Create a new repository at path"""
        repo = pygit2.init_repository(str(path), bare=bare)
        return cls(repo, cache_size)

    # Blobs

    def read_blob(self, hash: str) -> bytes:
        return self._cached("blob", hash, lambda: self._load(hash, pygit2.Blob).data)

    def write_blob(self, data: bytes) -> str:
        with self._guard():
            return str(self.repo.create_blob(data))

    # Trees

    def read_tree(self, hash: str) -> list[TreeEntry]:
        return list(self._cached("tree", hash, lambda: self._decode_tree(hash)))

    def write_tree(self, entries: Iterable[TreeEntry]) -> str:
        with self._guard():
            builder = self.repo.TreeBuilder()
            for entry in entries:
                builder.insert(entry.name, pygit2.Oid(hex=entry.hash), int(entry.mode))
            return str(builder.write())

    @property
    def empty_tree_hash(self) -> str:
        """Hash of the tree with no entries, written to the store on first use"""
        if self._empty_tree_hash is None:
            self._empty_tree_hash = self.write_tree([])
        return self._empty_tree_hash

    def _decode_tree(self, hash: str) -> tuple[TreeEntry, ...]:
        tree = self._load(hash, pygit2.Tree)
        entries: list[TreeEntry] = []
        for item in tree:
            assert item.name is not None, "Tree entry name should never be None"
            # Skip submodules - their OIDs point to commits in other repositories
            if item.filemode == pygit2.GIT_FILEMODE_COMMIT:
                logger.debug("Skipping submodule %s in tree %s", item.name, hash)
                continue
            mode = _LEGACY_MODES.get(item.filemode) or FileMode(item.filemode)
            entries.append(TreeEntry(item.name, mode, str(item.id)))
        entries.sort(key=lambda entry: entry.name)
        return tuple(entries)

    # Commits

    def read_commit(self, hash: str) -> Commit:
        return self._cached("commit", hash, lambda: self._decode_commit(hash))

    def write_commit(self, commit: Commit) -> str:
        signature = pygit2.Signature(
            commit.author.name, commit.author.email, commit.timestamp, commit.offset
        )
        parents = [pygit2.Oid(hex=commit.parent)] if commit.parent else []
        with self._guard():
            oid = self.repo.create_commit(
                None,  # Refs are only moved by write_ref
                signature,  # author
                signature,  # committer
                commit.message,
                pygit2.Oid(hex=commit.tree),
                parents,
            )
        return str(oid)

    def _decode_commit(self, hash: str) -> Commit:
        raw = self._load(hash, pygit2.Commit)
        return Commit(
            tree=str(raw.tree_id),
            parent=str(raw.parent_ids[0]) if raw.parent_ids else None,
            author=Author(raw.author.name, raw.author.email),
            message=raw.message,
            timestamp=raw.author.time,
            offset=raw.author.offset,
        )

    # Refs

    def read_ref(self, name: str) -> str:
        """Return the commit a reference points at"""
        with self._guard():
            try:
                reference = self.repo.references.get(name)
            except ValueError:
                # Invalid reference names can't exist
                reference = None
            if reference is None:
                raise NotFound(f"Can't find reference \"{name}\"", name)
            return str(reference.peel(pygit2.Commit).id)

    def write_ref(self, name: str, hash: str) -> str:
        """
        Point a ref at a commit, creating or overwriting it.

        Names git won't take as they are (a lower-case one-level name such as
        "backup") are stored as branches under refs/heads/, where
        resolve_commit finds them again.

        Returns:
            The full name of the ref written
        """
        full_name = name
        if not pygit2.reference_is_valid_name(full_name):
            full_name = BRANCH_PREFIX + name
        if not pygit2.reference_is_valid_name(full_name):
            raise InvalidArgument(f"Invalid reference name \"{name}\"", name)
        with self._guard():
            self.repo.references.create(full_name, pygit2.Oid(hex=hash), force=True)
        logger.debug("Reference %s -> %s", full_name, hash)
        return full_name

    def resolve_commit(self, name_or_hash: str) -> str:
        """
        Find the commit named by a ref or a commit hash.

        Refs are tried as given, then under refs/heads/ and refs/tags/.
        Anything that looks like hex is then tried as a (possibly
        abbreviated) commit id.
        """
        for prefix in REF_SEARCH_PREFIXES:
            try:
                return self.read_ref(prefix + name_or_hash)
            except NotFound:
                continue

        if HEX_RE.match(name_or_hash):
            with self._guard():
                try:
                    obj = self.repo.get(name_or_hash)
                except ValueError:
                    # Ambiguous or malformed prefix
                    obj = None
                if isinstance(obj, pygit2.Commit):
                    return str(obj.id)

        raise NotFound(f"Can't find reference or commit \"{name_or_hash}\"", name_or_hash)

    # Internals

    def _load(self, hash: str, kind: type[T]) -> T:
        """Fetch a raw pygit2 object, checking its type"""
        with self._guard():
            try:
                obj = self.repo.get(hash)
            except ValueError as err:
                raise InvalidArgument(f"Malformed object id \"{hash}\"", hash) from err
        if obj is None:
            raise NotFound(f"Can't find object {hash}", hash)
        if not isinstance(obj, kind):
            raise StoreError(
                f"Expected {kind.__name__} at {hash}, got {type(obj).__name__}", hash
            )
        return obj

    def _guard(self) -> "_RepoGuard":
        return _RepoGuard(self._repo_lock)

    def _cached(self, kind: str, hash: str, fetch: Callable[[], T]) -> T:
        """Return a cached object, or fetch it once for all concurrent callers"""
        key = (kind, hash)
        with self._cache_lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                return self._cache[key]  # type: ignore[no-any-return]
            pending = self._in_flight.get(key)
            owner = pending is None
            if pending is None:
                pending = Future()
                self._in_flight[key] = pending

        if not owner:
            return pending.result()  # type: ignore[no-any-return]

        try:
            value = fetch()
        except BaseException as err:
            with self._cache_lock:
                del self._in_flight[key]
            pending.set_exception(err)
            raise

        with self._cache_lock:
            del self._in_flight[key]
            if self.cache_size > 0:
                self._cache[key] = value
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)
        pending.set_result(value)
        return value


class _RepoGuard:
    """Holds the repository lock and turns libgit2 failures into StoreError"""

    def __init__(self, lock: threading.RLock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        self._lock.release()
        if isinstance(exc, pygit2.GitError):
            raise StoreError(f"Object store failure: {exc}") from exc
        return False
