"""
build.conf configuration parser.

This module loads the INI-style build configuration once per invocation and
exposes the resolved values consumed by the build steps.
"""

import configparser
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class BuildConfigError(Exception):
    """Exception raised for build.conf configuration errors."""

    pass


class BuildConfig:
    """
    Parser for build.conf configuration files.

    Every value has its trailing whitespace trimmed when the file is loaded,
    after which the object is treated as read-only.

    Example build.conf:
        [General]
        outdir = /home/user/xposed/out
        javadir = /home/user/xposed/XposedBridge

        [Build]
        version = 86 (custom build by me / %s)
        makeflags = -j8

        [GPG]
        sign = release
        user = 0x12345678

        [AospDir]
        19 = /home/user/aosp/kitkat
        21 = /home/user/aosp/lollipop

        [BusyBox]
        arm = 21

    Usage:
        config = BuildConfig(Path("build.conf"))
        outdir = config.outdir
        sdks = config.aosp_sdks()
    """

    DEFAULT_MAKEFLAGS = "-j4"

    def __init__(self, ini_path: Path):
        """
        Load the configuration file.

        Args:
            ini_path: Path to the build.conf file

        Raises:
            BuildConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = Path(ini_path)

        if not self.ini_path.is_file():
            raise BuildConfigError(
                f"{self.ini_path} doesn't exist or isn't readable"
            )

        self.config = configparser.ConfigParser(
            interpolation=None,
            inline_comment_prefixes=(";", "#"),
        )
        # SDK keys and platform names are case sensitive
        self.config.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            with open(self.ini_path, "r", encoding="utf-8") as f:
                self.config.read_file(f)
        except (OSError, configparser.Error) as e:
            raise BuildConfigError(f"Could not read {self.ini_path}: {e}") from e

        for section in self.config.sections():
            for key, value in self.config.items(section):
                self.config.set(section, key, value.rstrip())

        logging.debug(f"Loaded configuration from {self.ini_path}")

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, str]]) -> "BuildConfig":
        """Build a configuration from nested mappings instead of a file."""
        instance = cls.__new__(cls)
        instance.ini_path = Path("<memory>")
        instance.config = configparser.ConfigParser(interpolation=None)
        instance.config.optionxform = str  # type: ignore[assignment,method-assign]
        for section, values in data.items():
            instance.config.add_section(section)
            for key, value in values.items():
                instance.config.set(section, str(key), str(value).rstrip())
        return instance

    def get(self, section: str, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a single value.

        Args:
            section: Section name (e.g., 'General')
            key: Key inside the section
            default: Value returned when the section or key is missing

        Returns:
            The trimmed value, or the default
        """
        if not self.config.has_option(section, key):
            return default
        return self.config.get(section, key)

    def keys(self, section: str) -> List[str]:
        """Return the keys of a section in file order (empty if missing)."""
        if not self.config.has_section(section):
            return []
        return list(self.config.options(section))

    @property
    def outdir(self) -> Path:
        """Root output directory ([General] outdir)."""
        return Path(self.get("General", "outdir", "") or "")

    @property
    def javadir(self) -> Optional[Path]:
        """Checkout of XposedBridge ([General] javadir), if configured."""
        value = self.get("General", "javadir")
        return Path(value) if value else None

    @property
    def version_template(self) -> str:
        """Raw version string, possibly containing a %s date placeholder."""
        return self.get("Build", "version", "") or ""

    @property
    def is_official(self) -> bool:
        """Whether [Build] official is set to a truthy value."""
        value = (self.get("Build", "official", "") or "").lower()
        return value in ("1", "yes", "true", "on")

    @property
    def makeflags(self) -> List[str]:
        """Base make flags ([Build] makeflags, default -j4)."""
        value = self.get("Build", "makeflags") or self.DEFAULT_MAKEFLAGS
        return value.split()

    @property
    def gpg_policy(self) -> str:
        """GPG signing policy: 'all', 'release' or '' (never sign)."""
        return self.get("GPG", "sign", "") or ""

    @property
    def gpg_user(self) -> Optional[str]:
        """Key identity passed to gpg -u, if configured."""
        return self.get("GPG", "user") or None

    @property
    def java_jar(self) -> Path:
        """Location of the prebuilt XposedBridge.jar."""
        return self.outdir / "java" / "XposedBridge.jar"

    def aosp_sdks(self) -> List[int]:
        """
        Get the SDK versions that have a configured source tree.

        Returns:
            SDK integers in configuration order

        Raises:
            BuildConfigError: If a key in [AospDir] is not an integer
        """
        sdks = []
        for key in self.keys("AospDir"):
            try:
                sdks.append(int(key))
            except ValueError as e:
                raise BuildConfigError(
                    f"[AospDir] keys must be SDK versions, got '{key}'"
                ) from e
        return sdks

    def busybox_targets(self) -> List[Tuple[str, str]]:
        """Return (platform, sdk) pairs from the [BusyBox] section."""
        return [(platform, self.get("BusyBox", platform, "")) for platform in self.keys("BusyBox")]

    def get_rootdir(self, sdk: int) -> Path:
        """
        Get the root of the AOSP tree for an SDK.

        Args:
            sdk: SDK version

        Returns:
            Path to the source tree, without trailing slashes

        Raises:
            BuildConfigError: If the directory is missing, relative or not a directory
        """
        value = self.get("AospDir", str(sdk))
        if not value:
            raise BuildConfigError(
                f"No root directory has been configured for SDK {sdk}"
            )
        if not value.startswith("/"):
            raise BuildConfigError(f"Root directory {value} must be an absolute path")

        rootdir = Path(value.rstrip("/") or "/")
        if not rootdir.is_dir():
            raise BuildConfigError(f"{value} is not a directory")
        return rootdir

    def get_collection_dir(self, platform: str, sdk: int) -> Path:
        """Directory where the files of one platform/SDK job are collected."""
        return self.outdir / f"sdk{int(sdk)}" / str(platform)

    def check_requirements(self) -> None:
        """
        Make sure that the essential settings are usable.

        Raises:
            BuildConfigError: If a requirement is not met
        """
        if not self.get("General", "outdir") or not self.outdir.is_dir():
            raise BuildConfigError("[General][outdir] must point to a directory")

        version = self.version_template
        if not re.match(r"^\d+", version):
            raise BuildConfigError("[Build][version] must begin with an integer")

        if re.match(r"^\d+\s*$", version) and not self.is_official:
            raise BuildConfigError(
                "[Build][version] should contain your custom suffix"
            )
