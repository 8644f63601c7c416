"""CLI utility functions for xposed-build.

This module provides common utilities used across CLI commands including:
- Status, error and command formatting with ANSI colors
- Logging setup
- Usage text for the target and step grammar
"""

import logging
import sys
from typing import Optional, TextIO


class ErrorFormatter:
    """Formats and displays status and error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    MAGENTA = "\033[35m"
    RESET = "\033[0m"

    # print_status levels: 0 = black on white, 1 = white on blue
    STATUS_COLORS = ("\033[30;47m", "\033[37;44m")

    @staticmethod
    def print_status(text: str, level: int = 0) -> None:
        """Print a status line.

        Args:
            text: Status message
            level: 0 for top-level progress, 1 for a step inside a job
        """
        color = ErrorFormatter.STATUS_COLORS[level]
        print(f"{color}{text}{ErrorFormatter.RESET}", flush=True)

    @staticmethod
    def print_error(text: str, stream: Optional[TextIO] = None) -> None:
        """Print an error line to stderr.

        Args:
            text: Error message (without the ERROR: prefix)
            stream: Alternative output stream
        """
        stream = stream or sys.stderr
        print(f"{ErrorFormatter.RED}ERROR: {text}{ErrorFormatter.RESET}", file=stream, flush=True)

    @staticmethod
    def print_command(label: str, text: str) -> None:
        """Print a labelled line such as 'Executing: ...' or 'Log: ...'."""
        print(f"{ErrorFormatter.MAGENTA}{label}{ErrorFormatter.RESET}{text}", flush=True)

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message.

        Args:
            message: Success message
        """
        print(f"{ErrorFormatter.GREEN}{message}{ErrorFormatter.RESET}", flush=True)

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message.

        Args:
            message: Warning message
        """
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}", flush=True)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        ErrorFormatter.print_error(f"Unexpected error: {type(error).__name__}: {error}")

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


def setup_logging(debug: bool = False) -> None:
    """Setup diagnostic logging on stderr.

    Console progress is printed directly; the logging module only carries
    debug traces (commands, copied files, timings) and warnings.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)


USAGE_EPILOG = """\
Possible actions are:
  build       Builds the native executables and libraries.
  java        Builds the Java part (XposedBridge).
  prunelogs   Removes logs which are older than 24 hours.
  busybox     Builds the static BusyBox used by the installer.
  uninstaller Creates the flashable uninstaller ZIP files.

Format of <targets> is: <platform>:<sdk>[/<platform2>:<sdk2>/...]
  <platform> is a comma-separated list of: arm, x86, arm64 (and up to SDK 17, also armv5)
  <sdk> is a comma-separated list of integers (e.g. 21 for Android 5.0)
  Both platform and SDK accept the wildcard "all" ("all+" also adds host and hostd).

Values for <steps> are provided as a comma-separated list of:
  compile   Compile executables and libraries.
  collect   Collect compiled files and put them in the output directory.
  prop      Create the xposed.prop file.
  zip       Create the flashable ZIP file.

Examples:
  xposed-build -t arm:all/x86,arm64:21
     (build ARM files for all SDKs, plus x86 and arm64 files for SDK 21)
"""
