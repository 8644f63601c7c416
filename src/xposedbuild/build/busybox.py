"""Builds the static BusyBox binary used by the installer's update-binary.

Each entry in [BusyBox] maps a platform to the SDK whose source tree is used
to build it.
"""

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..cli_utils import ErrorFormatter
from ..config import BuildConfig, BuildConfigError
from .compilation_executor import CompilationExecutor
from .flag_builder import MakeFlagBuilder
from .platforms import Platform, check_target, get_product_outdir

BUSYBOX_TARGET = 'xposed_busybox'
BUSYBOX_MAKEFILE = 'external/busybox/Android.mk'
BUSYBOX_CONFIG = 'external/busybox/busybox-xposed.config'
BUSYBOX_BINARY = 'utilities/busybox-xposed-static'


class BusyBoxBuilder:
    """Compiles BusyBox for the configured platforms and installs the binaries."""

    def __init__(
        self,
        config: BuildConfig,
        zipstatic_dir: Path,
        executor: Optional[CompilationExecutor] = None,
        incremental: bool = False,
        update_binary: bool = False
    ):
        """Initialize BusyBox builder.

        Args:
            config: Loaded build configuration
            zipstatic_dir: Static ZIP files, target of --update-binary
            executor: Compilation executor (created from config if omitted)
            incremental: Build only the BusyBox makefile
            update_binary: Also replace the update-binary in zipstatic
        """
        self.config = config
        self.zipstatic_dir = Path(zipstatic_dir)
        self.executor = executor or CompilationExecutor(config)
        self.flag_builder = MakeFlagBuilder(config)
        self.incremental = incremental
        self.update_binary = update_binary

    def build_all(self, silent: bool = True) -> bool:
        """Build every [BusyBox] entry, stopping at the first failure."""
        targets = self.config.busybox_targets()
        if not targets:
            ErrorFormatter.print_error('No platforms found, please configure the [BusyBox] section!')
            return False

        for platform, sdk in targets:
            if not re.fullmatch(r"[0-9]+", sdk):
                ErrorFormatter.print_error(f"[BusyBox][{platform}] must be an SDK version")
                return False
            if not self.build(platform, int(sdk), silent):
                return False
        return True

    def copy_targets(self, platform: str) -> List[Path]:
        targets = [self.config.outdir / 'busybox' / f'busybox-xposed-static-{platform}']
        if self.update_binary:
            targets.append(
                self.zipstatic_dir / platform / 'META-INF' / 'com' / 'google' / 'android' / 'update-binary'
            )
        return targets

    def build(self, platform: str, sdk: int, silent: bool = True) -> bool:
        """Compile BusyBox for one platform and copy the binary.

        Returns:
            True on success
        """
        ErrorFormatter.print_status(f'Building for {platform} on SDK {sdk}...', 0)
        if not check_target(platform, sdk):
            return False

        try:
            rootdir = self.config.get_rootdir(sdk)
            outdir = rootdir / get_product_outdir(platform)
        except (BuildConfigError, ValueError) as e:
            ErrorFormatter.print_error(str(e))
            return False

        checkfile = rootdir / BUSYBOX_CONFIG
        if not checkfile.is_file():
            ErrorFormatter.print_error(f'{checkfile} not found, make sure BusyBox is set up correctly!')
            return False

        params = self.flag_builder.build_flags(platform, sdk, ['XPOSED_BUILD_STATIC=true'])

        ErrorFormatter.print_status('Compiling...', 1)
        if not self.executor.compile(platform, sdk, params, [BUSYBOX_TARGET], [BUSYBOX_MAKEFILE],
                                     self.incremental, silent, 'busybox'):
            return False

        ErrorFormatter.print_status('Copying files...', 1)
        binary = outdir / BUSYBOX_BINARY
        if Platform.parse(platform) is Platform.X86:
            # The x86 toolchain doesn't strip static binaries
            try:
                subprocess.run(['strip', str(binary)])
            except OSError as e:
                logging.warning(f"Could not strip {binary}: {e}")

        for target in self.copy_targets(platform):
            print(f'{binary} => {target}')
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy(binary, target)
            except OSError as e:
                ErrorFormatter.print_error(f'Copy failed: {e}')
                return False

        print('\n')
        return True
