"""
Build system components for xposed-build.

This module provides the build system implementation including:
- Target expansion and platform/SDK validation
- Make parameter planning and compilation
- Collecting files, xposed.prop and ZIP packaging
- Build orchestration
"""

from .archive_creator import PackageCreator, PackageError, ZipArchiveBuilder
from .busybox import BusyBoxBuilder
from .collector import CollectError, FileCollector, get_compiled_files
from .compilation_executor import CompilationError, CompilationExecutor
from .flag_builder import MakeFlagBuilder
from .java_builder import JavaBuildError, JavaBuilder
from .log_pruner import LogPruner
from .log_tail import LogTailMonitor, read_last_lines
from .orchestrator import BuildResult, StepFilter, XposedBuildOrchestrator
from .platforms import (
    CANONICAL_PLATFORMS,
    HOST_PLATFORMS,
    MAX_SUPPORTED_SDK,
    Platform,
    check_target,
    get_lunch_mode,
    incompatibility_reason,
)
from .prop_writer import PropError, PropWriter, render_prop, sdk_range
from .signer import SigningError, ZipSigner
from .target_resolver import BuildJob, TargetResolver, TargetSpecError
from .uninstaller import UninstallerCreator
from .version import VersionInfo, split_version

__all__ = [
    'BuildJob',
    'BuildResult',
    'BusyBoxBuilder',
    'CANONICAL_PLATFORMS',
    'CollectError',
    'CompilationError',
    'CompilationExecutor',
    'FileCollector',
    'HOST_PLATFORMS',
    'JavaBuildError',
    'JavaBuilder',
    'LogPruner',
    'LogTailMonitor',
    'MAX_SUPPORTED_SDK',
    'MakeFlagBuilder',
    'PackageCreator',
    'PackageError',
    'Platform',
    'PropError',
    'PropWriter',
    'SigningError',
    'StepFilter',
    'TargetResolver',
    'TargetSpecError',
    'UninstallerCreator',
    'VersionInfo',
    'XposedBuildOrchestrator',
    'ZipArchiveBuilder',
    'ZipSigner',
    'check_target',
    'get_compiled_files',
    'get_lunch_mode',
    'incompatibility_reason',
    'read_last_lines',
    'render_prop',
    'sdk_range',
    'split_version',
]
