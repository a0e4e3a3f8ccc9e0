"""Tests for loading, committing and saving snapshots."""

import pytest

from gitfs.errors import InvalidArgument, NotFound
from gitfs.git_backend.objects import Author
from gitfs.vfs.git_fs import GitFS


class TestLoad:
    def test_load_by_full_ref(self, fs, store):
        master = store.read_ref("refs/heads/master")
        assert fs.commit_hash == master
        assert fs.root_hash == store.read_commit(master).tree

    def test_load_by_short_name_and_hash(self, fs, store):
        master = store.read_ref("refs/heads/master")
        fs.clear()
        assert fs.load("master") == master
        assert fs.list("") == ["README.md", "test"]
        fs.clear()
        assert fs.load(master[:12]) == master
        assert fs.list("") == ["README.md", "test"]

    def test_load_missing(self, fs):
        with pytest.raises(NotFound) as excinfo:
            fs.load("nothing")
        assert str(excinfo.value) == (
            "Can't load \"nothing\" because Can't find reference or commit \"nothing\""
        )

    def test_failed_load_keeps_the_session(self, fs):
        root = fs.root_hash
        with pytest.raises(NotFound):
            fs.load("nothing")
        assert fs.root_hash == root

    def test_new_session_starts_empty(self, store, settings):
        fs = GitFS(store, settings)
        assert fs.commit_hash is None
        assert fs.list("/") == []


class TestCommit:
    def test_clear_commit_save_and_load(self, fs):
        fs.clear()
        fs.make_directory("test")
        fs.write("test/a", "A")
        fs.commit("Test commit")
        fs.save_as("TEST")

        fs.clear()
        assert fs.list("") == []

        fs.load("TEST")
        assert fs.list("") == ["test"]
        assert fs.read("test/a", charset="utf-8") == "A"

    def test_parent_is_the_loaded_commit(self, fs, store):
        master = store.read_ref("refs/heads/master")
        fs.write("new.txt", "new")
        commit_hash = fs.commit("Add new.txt")

        commit = store.read_commit(commit_hash)
        assert commit.parent == master
        assert commit.tree == fs.root_hash
        assert commit.message == "Add new.txt"
        assert fs.commit_hash == commit_hash

    def test_commit_does_not_move_refs(self, fs, store):
        master = store.read_ref("refs/heads/master")
        fs.write("new.txt", "new")
        fs.commit("Add new.txt")
        assert store.read_ref("refs/heads/master") == master

    def test_default_author_comes_from_settings(self, fs, store):
        commit = store.read_commit(fs.commit("Snapshot"))
        assert commit.author == Author("Test Author", "test@example.com")

    def test_author_mapping(self, fs, store):
        commit_hash = fs.commit("Snapshot", {"name": "Ada", "email": "ada@example.com"})
        assert store.read_commit(commit_hash).author == Author("Ada", "ada@example.com")

    def test_author_object(self, fs, store):
        author = Author("Grace", "grace@example.com")
        assert store.read_commit(fs.commit("Snapshot", author)).author == author

    def test_first_commit_has_no_parent(self, store, settings):
        fs = GitFS(store, settings)
        fs.write("only.txt", "only")
        assert store.read_commit(fs.commit("Root commit")).parent is None


class TestSaveAs:
    def test_save_without_commit(self, store, settings):
        fs = GitFS(store, settings)
        with pytest.raises(InvalidArgument) as excinfo:
            fs.save_as("TEST")
        assert str(excinfo.value) == "Can't save \"TEST\" because there is no current commit"

    def test_save_overwrites(self, fs, store):
        fs.save_as("refs/heads/copy")
        fs.write("new.txt", "new")
        second = fs.commit("Second")
        fs.save_as("refs/heads/copy")
        assert store.read_ref("refs/heads/copy") == second

    def test_plain_name_is_saved_as_a_branch(self, fs, store):
        fs.clear()
        fs.write("only.txt", "only")
        commit_hash = fs.commit("Backup")
        assert fs.save_as("backup") == "refs/heads/backup"
        assert store.read_ref("refs/heads/backup") == commit_hash

        fs.load("refs/heads/master")
        assert fs.load("backup") == commit_hash
        assert fs.list("") == ["only.txt"]

    def test_full_and_upper_case_names_are_kept(self, fs):
        assert fs.save_as("TEST") == "TEST"
        assert fs.save_as("refs/tags/v1") == "refs/tags/v1"

    def test_save_invalid_name(self, fs):
        with pytest.raises(InvalidArgument) as excinfo:
            fs.save_as("bad..name")
        assert str(excinfo.value).startswith("Can't save \"bad..name\" because ")


class TestHistory:
    def test_newest_first(self, fs, store):
        master = store.read_ref("refs/heads/master")
        fs.write("one.txt", "1")
        first = fs.commit("One")
        fs.write("two.txt", "2")
        second = fs.commit("Two")

        history = fs.history()
        assert [commit_hash for commit_hash, _ in history] == [second, first, master]
        assert [commit.message for _, commit in history] == ["Two", "One", "Fixtures"]

    def test_limit(self, fs):
        fs.commit("One")
        fs.commit("Two")
        assert [commit.message for _, commit in fs.history(limit=2)] == ["Two", "One"]

    def test_empty_session_has_no_history(self, store, settings):
        assert GitFS(store, settings).history() == []
