"""Tests for path splitting and resolution."""

import pytest

from gitfs.errors import LinkCycle, NotDirectory, NotFound
from gitfs.git_backend.objects import FileMode, TreeEntry
from gitfs.vfs.paths import PathResolver, join_path, split_path


def make_tree(store, entries):
    """Write a tree from {name: (mode, hash)}"""
    return store.write_tree(TreeEntry(name, mode, hash) for name, (mode, hash) in entries.items())


@pytest.fixture
def linked_root(store):
    """
    Root with:

        docs/guide.txt
        docs/up -> ..
        abs -> /docs
        loop -> loop
        file.txt
    """
    guide = store.write_blob(b"guide\n")
    docs = make_tree(
        store,
        {
            "guide.txt": (FileMode.FILE, guide),
            "up": (FileMode.SYMBOLIC_LINK, store.write_blob(b"..")),
        },
    )
    return make_tree(
        store,
        {
            "docs": (FileMode.DIRECTORY, docs),
            "abs": (FileMode.SYMBOLIC_LINK, store.write_blob(b"/docs")),
            "loop": (FileMode.SYMBOLIC_LINK, store.write_blob(b"loop")),
            "file.txt": (FileMode.FILE, store.write_blob(b"file\n")),
        },
    )


class TestSplitPath:
    def test_ignores_empty_and_dot_segments(self):
        assert split_path("/a//b/./c/") == ["a", "b", "c"]

    def test_root_is_empty(self):
        assert split_path("") == []
        assert split_path("/") == []
        assert split_path("./") == []

    def test_keeps_dot_dot(self):
        assert split_path("a/../b") == ["a", "..", "b"]

    def test_join(self):
        assert join_path([]) == "/"
        assert join_path(["a", "b"]) == "/a/b"


class TestResolve:
    def test_resolves_the_root(self, store, linked_root):
        resolution = PathResolver(store).resolve(linked_root, "/")
        assert resolution.path == "/"
        assert resolution.entry.mode is FileMode.DIRECTORY
        assert resolution.entry.hash == linked_root
        assert resolution.chain == []

    def test_chain_has_every_step(self, store, linked_root):
        resolution = PathResolver(store).resolve(linked_root, "docs/guide.txt")
        assert resolution.segments == ["docs", "guide.txt"]
        assert [entry.mode for _, entry in resolution.chain] == [
            FileMode.DIRECTORY,
            FileMode.FILE,
        ]

    def test_absolute_link_restarts_at_root(self, store, linked_root):
        resolution = PathResolver(store).resolve(linked_root, "abs/guide.txt")
        assert resolution.path == "/docs/guide.txt"

    def test_final_link_is_kept_when_not_following(self, store, linked_root):
        resolution = PathResolver(store).resolve(linked_root, "abs", follow_final=False)
        assert resolution.path == "/abs"
        assert resolution.entry.mode is FileMode.SYMBOLIC_LINK

    def test_dot_dot_steps_out(self, store, linked_root):
        resolver = PathResolver(store)
        assert resolver.resolve(linked_root, "docs/../file.txt").path == "/file.txt"
        assert resolver.resolve(linked_root, "../../file.txt").path == "/file.txt"

    def test_dot_dot_in_link_target(self, store, linked_root):
        resolution = PathResolver(store).resolve(linked_root, "docs/up/file.txt")
        assert resolution.path == "/file.txt"

    def test_missing_segment(self, store, linked_root):
        with pytest.raises(NotFound) as excinfo:
            PathResolver(store).resolve(linked_root, "abs/missing/deeper")
        assert str(excinfo.value) == "Can't find \"/docs/missing\""

    def test_file_in_the_middle(self, store, linked_root):
        with pytest.raises(NotDirectory) as excinfo:
            PathResolver(store).resolve(linked_root, "file.txt/deeper")
        assert str(excinfo.value) == "Can't traverse non-directory \"/file.txt\""

    def test_dot_dot_after_a_file(self, store, linked_root):
        with pytest.raises(NotDirectory) as excinfo:
            PathResolver(store).resolve(linked_root, "file.txt/..")
        assert str(excinfo.value) == "Can't traverse non-directory \"/file.txt\""

    def test_link_cycle(self, store, linked_root):
        with pytest.raises(LinkCycle):
            PathResolver(store, max_symlink_depth=5).resolve(linked_root, "loop")

    def test_unfollowed_cycle_is_fine(self, store, linked_root):
        resolution = PathResolver(store).resolve(linked_root, "loop", follow_final=False)
        assert resolution.entry.mode is FileMode.SYMBOLIC_LINK


class TestCanonical:
    def test_expands_links(self, store, linked_root):
        assert PathResolver(store).canonical(linked_root, "abs/guide.txt") == "/docs/guide.txt"

    def test_appends_unresolved_remainder(self, store, linked_root):
        canonical = PathResolver(store).canonical(linked_root, "abs/a/b/c")
        assert canonical == "/docs/a/b/c"

    def test_appends_remainder_after_a_file(self, store, linked_root):
        canonical = PathResolver(store).canonical(linked_root, "abs/guide.txt/x")
        assert canonical == "/docs/guide.txt/x"

    def test_collapses_dot_dot_in_the_remainder(self, store, linked_root):
        canonical = PathResolver(store).canonical(linked_root, "abs/a/../b")
        assert canonical == "/docs/b"

    def test_dot_dot_in_the_remainder_steps_back_over_resolved_parts(self, store, linked_root):
        resolver = PathResolver(store)
        assert resolver.canonical(linked_root, "docs/missing/../../file.txt") == "/file.txt"
        assert resolver.canonical(linked_root, "abs/missing/../../x") == "/x"
        assert resolver.canonical(linked_root, "missing/../../../x") == "/x"

    def test_cycle_still_fails(self, store, linked_root):
        with pytest.raises(LinkCycle):
            PathResolver(store, max_symlink_depth=5).canonical(linked_root, "loop/x")
