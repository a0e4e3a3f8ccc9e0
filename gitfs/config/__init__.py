"""Configuration for gitfs"""

from gitfs.config.settings import Settings

__all__ = ["Settings"]
