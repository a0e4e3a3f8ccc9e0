#!/usr/bin/env python3
"""
gitfs - inspect a git snapshot as a filesystem
"""

import argparse
import logging
import sys

from gitfs.config.settings import Settings
from gitfs.errors import GitFsError
from gitfs.vfs.git_fs import GitFS

COMMANDS = ("ls", "cat", "stat", "readlink", "realpath", "tree")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="gitfs",
        description="gitfs - browse a git ref or commit like a filesystem",
    )
    parser.add_argument(
        "--repo",
        default=".",
        help="Path to the git repository (default: current directory)",
    )
    parser.add_argument(
        "--ref",
        default=None,
        help="Ref or commit to browse (default: refs.default setting)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log object store and snapshot activity",
    )
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("path", nargs="?", default="/")
    return parser.parse_args(argv)


def run(fs: GitFS, command: str, path: str) -> str:
    """Run one read-only command and return what to print"""
    if command == "ls":
        return "\n".join(fs.list(path))
    if command == "cat":
        content = fs.read(path)
        assert isinstance(content, bytes)
        return content.decode("utf-8", errors="replace")
    if command == "stat":
        stat = fs.stat_link(path)
        return f"{stat.path}\t{int(stat.mode):06o}\t{stat.hash}\t{stat.size}"
    if command == "readlink":
        return fs.read_link(path)
    if command == "realpath":
        return fs.canonical(path)
    if command == "tree":
        return "\n".join(fs.list_tree(path))
    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    settings = Settings()
    try:
        fs = GitFS.open(args.repo, args.ref or settings.get_default_ref(), settings)
        output = run(fs, args.command, args.path)
    except GitFsError as err:
        print(f"gitfs: {err}", file=sys.stderr)
        return 1

    if output:
        print(output, end="" if output.endswith("\n") else "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
