"""
Command-line interface for xposed-build.

This module provides the `xposed-build` CLI tool for compiling and packaging
the Xposed executables and libraries.
"""

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn, Optional

from xposedbuild import __version__
from xposedbuild.build import (
    BusyBoxBuilder,
    JavaBuildError,
    JavaBuilder,
    LogPruner,
    PackageError,
    SigningError,
    StepFilter,
    TargetResolver,
    TargetSpecError,
    UninstallerCreator,
    XposedBuildOrchestrator,
    ZipSigner,
)
from xposedbuild.cli_utils import USAGE_EPILOG, ErrorFormatter, setup_logging
from xposedbuild.config import BuildConfig, BuildConfigError

ACTIONS = ("build", "java", "prunelogs", "busybox", "uninstaller")

EXIT_FAILURE = 1
EXIT_USAGE = 2


@dataclass
class BuildArgs:
    """Arguments for the build action."""

    tools_dir: Path
    targets: str = ""
    steps: Optional[str] = None
    incremental: bool = False
    verbose: bool = False
    flash: bool = False
    release: bool = False


@dataclass
class BusyBoxArgs:
    """Arguments for the busybox action."""

    tools_dir: Path
    incremental: bool = False
    verbose: bool = False
    update_binary: bool = False


def load_config(config_path: Path) -> BuildConfig:
    """Load build.conf and check the essential settings.

    Exits with status 1 if the configuration is unusable.
    """
    ErrorFormatter.print_status(f"Loading config file {config_path}...", 0)
    try:
        config = BuildConfig(config_path)
        ErrorFormatter.print_status("Checking requirements...", 0)
        config.check_requirements()
    except BuildConfigError as e:
        ErrorFormatter.print_error(str(e))
        sys.exit(EXIT_FAILURE)
    return config


def build_command(args: BuildArgs, config: BuildConfig, parser: argparse.ArgumentParser) -> None:
    """Build the native executables and libraries for the requested targets.

    Examples:
        xposed-build -t arm:21                 # Build ARM files for SDK 21
        xposed-build -t arm:all/x86,arm64:21   # Several groups
        xposed-build -t arm:21 -s zip          # Only repackage
        xposed-build -t arm:21 -f              # Build and flash
    """
    jar = config.java_jar
    if not jar.is_file() or not os.access(jar, os.R_OK):
        ErrorFormatter.print_error(f"{jar} doesn't exist or isn't readable")
        sys.exit(EXIT_FAILURE)

    steps = StepFilter.parse(args.steps)
    unknown = steps.unknown_steps()
    if unknown:
        ErrorFormatter.print_error(f"Unknown build steps: {', '.join(unknown)}")
        _usage(parser)

    ErrorFormatter.print_status(f"Expanding targets from '{args.targets}'...", 0)
    try:
        jobs = TargetResolver(config.aosp_sdks(), echo=True).resolve(args.targets)
    except (TargetSpecError, BuildConfigError) as e:
        ErrorFormatter.print_error(str(e))
        jobs = []
    if not jobs:
        ErrorFormatter.print_error("No valid targets specified")
        _usage(parser)
    print()

    if args.flash and len(jobs) != 1:
        ErrorFormatter.print_error("Flashing is only supported for a single target!")
        sys.exit(EXIT_FAILURE)

    orchestrator = XposedBuildOrchestrator(
        config,
        tools_dir=args.tools_dir,
        steps=steps,
        incremental=args.incremental,
        release=args.release,
        flash=args.flash,
        verbose=args.verbose,
    )
    if not orchestrator.run_all(jobs, silent=not args.verbose):
        sys.exit(EXIT_FAILURE)


def java_command(config: BuildConfig) -> None:
    """Build XposedBridge.jar."""
    ErrorFormatter.print_status("Building the Java part...", 0)
    try:
        JavaBuilder(config).build()
    except JavaBuildError as e:
        ErrorFormatter.print_error(str(e))
        sys.exit(EXIT_FAILURE)


def prunelogs_command(config: BuildConfig) -> None:
    """Remove logs which are older than 24 hours."""
    ErrorFormatter.print_status("Cleaning log files...", 0)
    LogPruner(config).prune()


def busybox_command(args: BusyBoxArgs, config: BuildConfig) -> None:
    """Build BusyBox for the platforms configured in [BusyBox]."""
    builder = BusyBoxBuilder(
        config,
        zipstatic_dir=args.tools_dir / "zipstatic",
        incremental=args.incremental,
        update_binary=args.update_binary,
    )
    if not builder.build_all(silent=not args.verbose):
        sys.exit(EXIT_FAILURE)


def uninstaller_command(config: BuildConfig, tools_dir: Path) -> None:
    """Create the uninstaller ZIP files."""
    ErrorFormatter.print_status("Creating ZIP archives...", 0)
    creator = UninstallerCreator(config, ZipSigner(config, tools_dir), tools_dir / "zipstatic")
    try:
        creator.create_all()
    except (PackageError, SigningError) as e:
        ErrorFormatter.print_error(str(e))
        sys.exit(EXIT_FAILURE)


def _usage(parser: argparse.ArgumentParser) -> NoReturn:
    parser.print_help(sys.stderr)
    sys.exit(EXIT_USAGE)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xposed-build",
        description="This script helps to compile and package the Xposed executables and libraries.",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"xposed-build {__version__}",
    )
    parser.add_argument(
        "-a",
        "--action",
        default="build",
        help="Execute <action>. The default is \"build\".",
    )
    parser.add_argument(
        "-t",
        "--targets",
        default="",
        help="Build for targets specified in <targets>.",
    )
    parser.add_argument(
        "-s",
        "--steps",
        default=None,
        help="Limit build steps to <steps>. By default, all steps are performed.",
    )
    parser.add_argument(
        "-i",
        "--incremental",
        action="store_true",
        help="Incremental build. Compile faster by skipping dependencies (like mm/mmm).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose mode. Display the build log instead of redirecting it to a file.",
    )
    parser.add_argument(
        "-f",
        "--flash",
        action="store_true",
        help="Flash the files after building and perform a soft reboot. Requires step \"zip\".",
    )
    parser.add_argument(
        "-r",
        "--release",
        action="store_true",
        help="Mark this as a release build. Currently only affects GPG signing.",
    )
    parser.add_argument(
        "-u",
        "--update-binary",
        action="store_true",
        help="busybox action: also update the update-binary files in zipstatic/.",
    )
    parser.add_argument(
        "--tools-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory with build.conf, zipstatic/ and the signing tools (default: current directory)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: <tools-dir>/build.conf)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug log messages",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """xposed-build - compile and package the Xposed framework."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)
    setup_logging(parsed_args.debug)

    if parsed_args.action not in ACTIONS:
        ErrorFormatter.print_error(f"Unknown action specified: {parsed_args.action}")
        _usage(parser)

    tools_dir = parsed_args.tools_dir.resolve()
    config_path = parsed_args.config or tools_dir / "build.conf"

    try:
        config = load_config(config_path)

        if parsed_args.action == "build":
            build_args = BuildArgs(
                tools_dir=tools_dir,
                targets=parsed_args.targets,
                steps=parsed_args.steps,
                incremental=parsed_args.incremental,
                verbose=parsed_args.verbose,
                flash=parsed_args.flash,
                release=parsed_args.release,
            )
            build_command(build_args, config, parser)
        elif parsed_args.action == "java":
            java_command(config)
        elif parsed_args.action == "prunelogs":
            prunelogs_command(config)
        elif parsed_args.action == "busybox":
            busybox_args = BusyBoxArgs(
                tools_dir=tools_dir,
                incremental=parsed_args.incremental,
                verbose=parsed_args.verbose,
                update_binary=parsed_args.update_binary,
            )
            busybox_command(busybox_args, config)
        elif parsed_args.action == "uninstaller":
            uninstaller_command(config, tools_dir)

    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except PermissionError as e:
        ErrorFormatter.print_error(f"Permission denied: {e}")
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, parsed_args.debug)

    ErrorFormatter.print_status("Done!", 0)
    sys.exit(0)


if __name__ == "__main__":
    main()
