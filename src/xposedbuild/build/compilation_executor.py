"""Compilation Executor.

This module runs the AOSP build system for one platform/SDK pair.

Design:
    - The build system is an opaque bash pipeline: cd to the source tree,
      source build/envsetup.sh, lunch, then make (or a one-shot make for
      incremental builds)
    - Silent builds redirect all output to a timestamped log file and show
      progress with a LogTailMonitor; the monitor is always stopped before
      the result is reported
    - Failures of silent builds print the last lines of the log
"""

import logging
import os
import shlex
import subprocess
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..cli_utils import ErrorFormatter
from ..config import BuildConfig, BuildConfigError
from ..interrupt_utils import handle_keyboard_interrupt_properly
from .log_tail import LogTailMonitor, read_last_lines
from .platforms import Platform, get_lunch_mode

LOG_TAIL_LINES = 10


class CompilationError(Exception):
    """Raised when the build command cannot be started."""
    pass


def timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp used in log file names."""
    return (now or datetime.now()).strftime('%Y%m%d_%H%M%S')


class CompilationExecutor:
    """Executes the AOSP build system.

    This class handles:
    - Resolving the source tree and lunch mode
    - Composing the bash command line
    - Redirecting output to a log file with a progress monitor
    - Reporting the result
    """

    def __init__(self, config: BuildConfig, verbose: bool = False):
        """Initialize compilation executor.

        Args:
            config: Loaded build configuration
            verbose: Whether to show additional output
        """
        self.config = config
        self.verbose = verbose

    def build_command(
        self,
        rootdir: Path,
        lunch_mode: str,
        params: List[str],
        targets: List[str],
        makefiles: List[str],
        incremental: bool = False
    ) -> str:
        """Compose the bash command line.

        Args:
            rootdir: Root of the AOSP source tree
            lunch_mode: Argument for the lunch command
            params: Make parameters
            targets: Make targets
            makefiles: Makefiles for incremental builds
            incremental: Build only the given makefiles (like mm/mmm)

        Returns:
            Command line to execute with bash -c
        """
        root = shlex.quote(str(rootdir))
        if incremental:
            makecmd = (
                f"ONE_SHOT_MAKEFILE='{' '.join(makefiles)}' "
                f"make -C {root} -f build/core/main.mk "
            )
        else:
            makecmd = 'make '
        makecmd += ' '.join(params + targets)

        return ' && '.join([
            f'cd {root}',
            '. build/envsetup.sh >/dev/null',
            f'lunch {lunch_mode} >/dev/null',
            makecmd,
        ])

    def get_log_file(self, platform: Union[Platform, str], sdk: int, log_prefix: str) -> Path:
        """Create the log directory and return a new log file path."""
        logdir = self.config.get_collection_dir(platform, sdk) / 'logs'
        logdir.mkdir(parents=True, exist_ok=True)
        return logdir / f'{log_prefix}_{timestamp()}.log'

    def compile(
        self,
        platform: Union[Platform, str],
        sdk: int,
        params: List[str],
        targets: List[str],
        makefiles: List[str],
        incremental: bool = False,
        silent: bool = False,
        log_prefix: str = 'build',
        env: Optional[Dict[str, str]] = None
    ) -> bool:
        """Compile targets for one platform/SDK pair.

        Args:
            platform: Target platform
            sdk: SDK version
            params: Make parameters
            targets: Make targets
            makefiles: Makefiles for incremental builds
            incremental: Build only the given makefiles
            silent: Redirect output to a log file and show a progress line
            log_prefix: Prefix of the log file name
            env: Additional environment variables

        Returns:
            True if the build succeeded
        """
        try:
            rootdir = self.config.get_rootdir(sdk)
            lunch_mode = get_lunch_mode(platform, sdk)
        except (BuildConfigError, ValueError) as e:
            ErrorFormatter.print_error(str(e))
            return False

        cmd = self.build_command(rootdir, lunch_mode, params, targets, makefiles, incremental)
        ErrorFormatter.print_command('Executing: ', cmd)
        if self.verbose and env:
            ErrorFormatter.print_command('Environment: ', ' '.join(f'{k}={v}' for k, v in sorted(env.items())))

        log_file = None
        if silent:
            log_file = self.get_log_file(platform, sdk, log_prefix)
            ErrorFormatter.print_command('Log: ', str(log_file))

        start_time = time.time()
        try:
            returncode = self._run(cmd, log_file, env)
        except CompilationError as e:
            ErrorFormatter.print_error(str(e))
            return False
        logging.debug(f"Build for SDK {sdk}, platform {platform} exited with {returncode} "
                      f"after {time.time() - start_time:.1f}s")

        if returncode == 0:
            ErrorFormatter.print_success('Build was successful!')
            print()
            return True

        ErrorFormatter.print_error('Build failed!')
        if log_file is not None:
            print(f'Last {LOG_TAIL_LINES} lines from the log:')
            for line in self._read_log_tail(log_file):
                print(f'   {line}')
        print()
        return False

    def _run(self, cmd: str, log_file: Optional[Path], env: Optional[Dict[str, str]]) -> int:
        """Run the command, following the log file if output is redirected.

        Returns:
            Exit code of the bash process

        Raises:
            CompilationError: If bash cannot be started
        """
        full_env = dict(os.environ)
        if env:
            full_env.update(env)

        if log_file is None:
            return self._wait(self._spawn(cmd, env=full_env))

        with open(log_file, 'wb') as log:
            with LogTailMonitor(log_file):
                proc = self._spawn(
                    cmd,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    stdin=subprocess.DEVNULL,
                    env=full_env,
                )
                return self._wait(proc)

    @staticmethod
    def _spawn(cmd: str, **kwargs) -> subprocess.Popen:
        try:
            return subprocess.Popen(["bash", "-c", cmd], **kwargs)
        except OSError as e:
            raise CompilationError(f"Could not start bash: {e}") from e

    @staticmethod
    def _wait(proc: subprocess.Popen) -> int:
        try:
            return proc.wait()
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke, proc)
            raise  # Never reached, but satisfies type checker

    @staticmethod
    def _read_log_tail(log_file: Path) -> List[str]:
        try:
            return read_last_lines(log_file, LOG_TAIL_LINES)
        except OSError as e:
            logging.warning(f"Could not read {log_file}: {e}")
            return []
