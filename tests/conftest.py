"""Shared fixtures: a small git repository with a known tree on refs/heads/master."""

from pathlib import Path

import pygit2
import pytest

from gitfs.config.settings import Settings
from gitfs.git_backend.repository import GitObjectStore
from gitfs.vfs.git_fs import GitFS

HELLO = b"Hello, World!\n"
DIGITS = b"0123456789\n"
README = b"# Fixture repository\n"


def build_fixture_repo(path: Path) -> pygit2.Repository:
    """
    Create a bare repository whose master commit holds:

        README.md
        test/fixture/0123456789.txt
        test/fixture/hello.txt
        test/fixtures -> fixture
    """
    repo = pygit2.init_repository(str(path), bare=True)

    fixture = repo.TreeBuilder()
    fixture.insert("hello.txt", repo.create_blob(HELLO), pygit2.GIT_FILEMODE_BLOB)
    fixture.insert("0123456789.txt", repo.create_blob(DIGITS), pygit2.GIT_FILEMODE_BLOB)
    fixture_oid = fixture.write()

    test = repo.TreeBuilder()
    test.insert("fixture", fixture_oid, pygit2.GIT_FILEMODE_TREE)
    test.insert("fixtures", repo.create_blob(b"fixture"), pygit2.GIT_FILEMODE_LINK)
    test_oid = test.write()

    root = repo.TreeBuilder()
    root.insert("test", test_oid, pygit2.GIT_FILEMODE_TREE)
    root.insert("README.md", repo.create_blob(README), pygit2.GIT_FILEMODE_BLOB)
    root_oid = root.write()

    signature = pygit2.Signature("Fixture", "fixture@example.com", 1700000000, 0)
    repo.create_commit("refs/heads/master", signature, signature, "Fixtures", root_oid, [])
    return repo


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    path = tmp_path / "repo.git"
    build_fixture_repo(path)
    return path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    settings = Settings(tmp_path / "settings.json")
    settings.set("author.name", "Test Author")
    settings.set("author.email", "test@example.com")
    return settings


@pytest.fixture
def store(repo_path: Path) -> GitObjectStore:
    return GitObjectStore.open(repo_path)


@pytest.fixture
def fs(store: GitObjectStore, settings: Settings) -> GitFS:
    """A session loaded from refs/heads/master"""
    git_fs = GitFS(store, settings)
    git_fs.load("refs/heads/master")
    return git_fs
