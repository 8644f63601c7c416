"""Collects compiled files into the staging tree of a job.

The staging tree (``<outdir>/sdk<N>/<platform>/files``) mirrors the device
file system and is packaged as-is by the zip step.
"""

import logging
import shutil
from pathlib import Path
from typing import Dict, Union

from ..config import BuildConfig, BuildConfigError
from .platforms import ART_SDK, Platform, get_product_outdir

DALVIK_FILES = [
    '/system/bin/app_process_xposed',
    '/system/lib/libxposed_dalvik.so',
]

ART_FILES = [
    '/system/bin/app_process32_xposed',
    '/system/lib/libxposed_art.so',

    '/system/lib/libart.so',
    '/system/lib/libart-compiler.so',
    '/system/lib/libart-disassembler.so',
    '/system/lib/libsigchain.so',

    '/system/bin/dex2oat',
    '/system/bin/oatdump',
    '/system/bin/patchoat',
]

ARM64_FILES = [
    '/system/bin/app_process64_xposed',
    '/system/lib64/libxposed_art.so',

    '/system/lib64/libart.so',
    '/system/lib64/libart-disassembler.so',
    '/system/lib64/libsigchain.so',
]


class CollectError(Exception):
    """Raised when compiled files cannot be collected."""
    pass


def get_compiled_files(platform: Union[Platform, str], sdk: int) -> Dict[str, str]:
    """Map of compiled files (relative to the product directory) to their
    location in the staging tree, in copy order."""
    files = DALVIK_FILES if sdk < ART_SDK else ART_FILES
    manifest = {path: path for path in files}

    if Platform.parse(platform) is Platform.ARM64:
        # Only oatdump links libart-disassembler, and it's a 64-bit executable
        manifest.pop('/system/lib/libart-disassembler.so', None)
        manifest.update({path: path for path in ARM64_FILES})

    return manifest


class FileCollector:
    """Copies the compiled files of one job into its staging tree."""

    def __init__(self, config: BuildConfig):
        self.config = config

    def collect(self, platform: Union[Platform, str], sdk: int) -> Path:
        """Collect the compiled files.

        Args:
            platform: Target platform
            sdk: SDK version

        Returns:
            The staging directory

        Raises:
            CollectError: If the source tree is unknown or a copy fails
        """
        coldir = self.config.get_collection_dir(platform, sdk)
        files_dir = coldir / 'files'

        try:
            rootdir = self.config.get_rootdir(sdk)
            outdir = rootdir / get_product_outdir(platform)
        except (BuildConfigError, ValueError) as e:
            raise CollectError(str(e)) from e

        try:
            coldir.mkdir(parents=True, exist_ok=True)
            if files_dir.exists():
                shutil.rmtree(files_dir)
        except OSError as e:
            raise CollectError(f"Could not clear {files_dir}: {e}") from e

        for source, target in get_compiled_files(platform, sdk).items():
            source_path = outdir / source.lstrip('/')
            target_path = files_dir / target.lstrip('/')
            print(f'{source_path} => {target_path}')
            try:
                target_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy(source_path, target_path)
            except OSError as e:
                raise CollectError(f"Copy failed: {e}") from e

        logging.debug(f"Collected files into {files_dir}")
        return files_dir
