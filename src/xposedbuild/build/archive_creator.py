"""Archive Creator.

This module creates the flashable ZIP file of a job from its staging tree
and the static files shipped with the build scripts.

Design:
    - Entries are collected first and written in insertion order
    - Every entry gets the same modification time (the packaging time)
    - The ZIP is named after version, SDK and platform, signed, and linked
      from the job directory (latest.zip) and the version directory
"""

import logging
import os
import time
import zipfile
from pathlib import Path
from typing import Dict, Optional, Union

from ..cli_utils import ErrorFormatter
from ..config import BuildConfig
from .platforms import Platform
from .signer import ZipSigner
from .version import VersionInfo


class PackageError(Exception):
    """Raised when a ZIP file cannot be created."""
    pass


class ZipArchiveBuilder:
    """Assembles a ZIP file from directory trees and single files.

    Example usage:
        builder = ZipArchiveBuilder()
        builder.add_tree(staging_dir)
        builder.add_file(jar, 'system/framework/XposedBridge.jar')
        builder.write(Path('out.zip'))
    """

    def __init__(self):
        # Archive name -> source path (None for directories)
        self.entries: Dict[str, Optional[Path]] = {}

    def add_directory(self, name: str) -> None:
        """Add an empty directory entry."""
        name = name.strip('/') + '/'
        self.entries.setdefault(name, None)

    def add_file(self, source: Path, name: str) -> None:
        """Add a file under the given archive name.

        Raises:
            PackageError: If the source is not a readable file
        """
        source = Path(source)
        if not source.is_file() or not os.access(source, os.R_OK):
            raise PackageError(f"{source} doesn't exist or isn't readable")
        self.entries[name.lstrip('/')] = source

    def add_tree(self, root: Path, prefix: str = '') -> None:
        """Add all directories and files below ``root``.

        Raises:
            PackageError: If ``root`` is not a directory
        """
        root = Path(root)
        if not root.is_dir():
            raise PackageError(f"{root} is not a directory")

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            current = Path(dirpath)
            relative = current.relative_to(root).as_posix()
            if relative != '.':
                self.add_directory(f'{prefix}{relative}')
            for filename in sorted(filenames):
                path = current / filename
                self.add_file(path, f'{prefix}{path.relative_to(root).as_posix()}')

    def write(self, target: Path, mtime: Optional[float] = None) -> Path:
        """Write the archive.

        Args:
            target: Output path
            mtime: Modification time for all entries (defaults to now)

        Returns:
            Path to the written archive

        Raises:
            PackageError: If writing fails
        """
        date_time = time.localtime(time.time() if mtime is None else mtime)[:6]

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(target, 'w', zipfile.ZIP_DEFLATED) as zf:
                for name, source in self.entries.items():
                    info = zipfile.ZipInfo(name, date_time=date_time)
                    if source is None:
                        info.external_attr = (0o40755 << 16) | 0x10
                        zf.writestr(info, b'')
                        continue
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.external_attr = (source.stat().st_mode & 0xFFFF) << 16
                    with open(source, 'rb') as f:
                        zf.writestr(info, f.read())
        except OSError as e:
            raise PackageError(f"Could not write {target}: {e}") from e

        logging.debug(f"Wrote {target} with {len(self.entries)} entries")
        return target


class PackageCreator:
    """Creates, signs and publishes the flashable ZIP of a job."""

    def __init__(
        self,
        config: BuildConfig,
        version: VersionInfo,
        signer: ZipSigner,
        zipstatic_dir: Path
    ):
        """Initialize package creator.

        Args:
            config: Loaded build configuration
            version: Version of the current build
            signer: Signer for the resulting ZIP
            zipstatic_dir: Directory with the static files (_all/ and per platform)
        """
        self.config = config
        self.version = version
        self.signer = signer
        self.zipstatic_dir = Path(zipstatic_dir)

    def create_zip(self, platform: Union[Platform, str], sdk: int, release: bool = False) -> Path:
        """Create the flashable ZIP file.

        Args:
            platform: Target platform
            sdk: SDK version
            release: Whether this is a release build (affects GPG signing)

        Returns:
            Path to the ZIP file

        Raises:
            PackageError: If the ZIP cannot be created
            SigningError: If signing fails
        """
        coldir = self.config.get_collection_dir(platform, sdk)
        try:
            coldir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PackageError(f"Could not create {coldir}: {e}") from e

        builder = ZipArchiveBuilder()
        builder.add_tree(coldir / 'files')
        builder.add_directory('system/framework/')
        builder.add_file(self.config.java_jar, 'system/framework/XposedBridge.jar')
        builder.add_tree(self.zipstatic_dir / '_all')
        builder.add_tree(self.zipstatic_dir / str(platform))

        zipname = self.version.zip_name(str(platform), sdk)
        zippath = coldir / zipname
        print(zippath)
        builder.write(zippath, time.time())

        self.signer.sign_zip(zippath)
        self.signer.gpg_sign(zippath, release)

        self._publish(coldir, zipname, zippath)
        return zippath

    def _publish(self, coldir: Path, zipname: str, zippath: Path) -> None:
        """Create the stable latest.zip link and the link in the version directory."""
        latest = coldir / 'latest.zip'
        self._symlink(Path(zipname), latest)

        version_dir = self.version.version_dir
        try:
            version_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            ErrorFormatter.print_error(f"Could not create {version_dir}: {e}")
            return
        self._symlink(zippath, version_dir / zipname)

    @staticmethod
    def _symlink(target: Path, link: Path) -> bool:
        try:
            if link.is_symlink() or link.exists():
                link.unlink()
            link.symlink_to(target)
            return True
        except OSError as e:
            ErrorFormatter.print_error(f"Could not create link {link} -> {target}: {e}")
            return False
