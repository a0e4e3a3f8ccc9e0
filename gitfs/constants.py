"""
Centralized constants for gitfs.

Defaults and limits shared by the config, backend and vfs layers.
"""

# Refs
DEFAULT_REF = "refs/heads/master"
BRANCH_PREFIX = "refs/heads/"
REF_SEARCH_PREFIXES = ("", BRANCH_PREFIX, "refs/tags/")

# Hash of the tree with no entries (same in every git repository)
EMPTY_TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

# Symbolic links expanded during a single resolution before giving up
MAX_SYMLINK_DEPTH = 40

# Objects kept in the object store cache
DEFAULT_CACHE_SIZE = 1024

# Default commit identity
DEFAULT_AUTHOR_NAME = "gitfs"
DEFAULT_AUTHOR_EMAIL = "gitfs@localhost"
