"""
Settings management for gitfs
"""

import copy
import json
import os
from pathlib import Path
from typing import Any

from gitfs.constants import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_CACHE_SIZE,
    DEFAULT_REF,
    MAX_SYMLINK_DEPTH,
)


class Settings:
    """Manages gitfs settings"""

    DEFAULT_SETTINGS = {
        "author": {
            "name": "",  # Falls back to GIT_AUTHOR_NAME, then DEFAULT_AUTHOR_NAME
            "email": "",
        },
        "paths": {
            "max_symlink_depth": MAX_SYMLINK_DEPTH,
        },
        "store": {
            "cache_size": DEFAULT_CACHE_SIZE,  # Number of immutable objects kept in memory
        },
        "refs": {"default": DEFAULT_REF},
    }

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize settings"""
        if config_path is None:
            config_path = Path.home() / ".config" / "gitfs" / "settings.json"

        self.config_path = config_path
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.load()

    def load(self) -> None:
        """Load settings from file"""
        if self.config_path.exists():
            with open(self.config_path) as f:
                loaded = json.load(f)
                # Merge with defaults to handle new settings
                self._merge_settings(self.settings, loaded)

    def save(self) -> None:
        """Save settings to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(self.settings, f, indent=2)

    def _merge_settings(self, base: dict[str, Any], updates: dict[str, Any]) -> None:
        """Recursively merge settings dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                base_dict: dict[str, Any] = base[key]
                value_dict: dict[str, Any] = value
                self._merge_settings(base_dict, value_dict)
            else:
                base[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get a setting by dot-separated path (e.g., 'author.name')"""
        parts = path.split(".")
        value: Any = self.settings

        for part in parts:
            if isinstance(value, dict):
                value_dict: dict[str, Any] = value
                if part in value_dict:
                    value = value_dict[part]
                else:
                    return default
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """Set a setting by dot-separated path"""
        parts = path.split(".")
        target: Any = self.settings

        for part in parts[:-1]:
            if part not in target:
                target[part] = {}
            target = target[part]

        target[parts[-1]] = value

    def get_author(self) -> tuple[str, str]:
        """Get the default commit author as (name, email).

        Settings win, then the usual git environment variables, then the
        built-in gitfs identity.
        """
        name = str(self.get("author.name", "")) or os.environ.get("GIT_AUTHOR_NAME", "")
        email = str(self.get("author.email", "")) or os.environ.get("GIT_AUTHOR_EMAIL", "")
        return name or DEFAULT_AUTHOR_NAME, email or DEFAULT_AUTHOR_EMAIL

    def get_max_symlink_depth(self) -> int:
        """Get how many symbolic links one path resolution may expand"""
        return int(self.get("paths.max_symlink_depth", MAX_SYMLINK_DEPTH))

    def get_cache_size(self) -> int:
        """Get the number of objects the object store keeps cached"""
        return int(self.get("store.cache_size", DEFAULT_CACHE_SIZE))

    def get_default_ref(self) -> str:
        return str(self.get("refs.default", DEFAULT_REF))
