"""Configuration parsing modules for xposed-build."""

from .ini_parser import BuildConfig, BuildConfigError

__all__ = [
    "BuildConfig",
    "BuildConfigError",
]
