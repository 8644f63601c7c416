"""
Build orchestration for Xposed packages.

This module sequences the build steps for each platform/SDK job:
1. compile  - run the AOSP build system
2. collect  - copy the compiled files into the staging tree
3. prop     - write system/xposed.prop
4. zip      - create, sign and publish the flashable ZIP (and optionally flash it)

Every step can be deselected with a step filter. The first failing step
aborts its job and all remaining jobs; partially written output is left on
disk for inspection.
"""

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ..cli_utils import ErrorFormatter
from ..config import BuildConfig
from ..deploy import AdbDeployer
from .archive_creator import PackageCreator, PackageError
from .collector import CollectError, FileCollector
from .compilation_executor import CompilationExecutor
from .flag_builder import MakeFlagBuilder
from .prop_writer import PropError, PropWriter
from .signer import SigningError, ZipSigner
from .target_resolver import BuildJob
from .version import VersionInfo

STEP_COMPILE = 'compile'
STEP_COLLECT = 'collect'
STEP_PROP = 'prop'
STEP_ZIP = 'zip'
ALL_STEPS = (STEP_COMPILE, STEP_COLLECT, STEP_PROP, STEP_ZIP)


class StepFilter:
    """Allow-list of build steps; an empty filter allows every step."""

    def __init__(self, steps: Optional[Iterable[str]] = None):
        self.steps = frozenset(steps or ())

    @classmethod
    def parse(cls, spec: Optional[str]) -> "StepFilter":
        """Parse a comma/space separated list such as 'compile,zip'."""
        if not spec:
            return cls()
        return cls(step for step in re.split(r'[, ]+', spec) if step)

    def unknown_steps(self) -> List[str]:
        return sorted(self.steps - set(ALL_STEPS))

    def allows(self, step: str) -> bool:
        return not self.steps or step in self.steps


@dataclass
class BuildResult:
    """Result of processing one job."""

    job: BuildJob
    success: bool
    zip_path: Optional[Path] = None
    build_time: float = 0.0
    failed_step: Optional[str] = None


class XposedBuildOrchestrator:
    """
    Orchestrates the build steps for a list of jobs.

    Example usage:
        orchestrator = XposedBuildOrchestrator(config, tools_dir=Path("."))
        jobs = TargetResolver(config.aosp_sdks()).resolve("arm:21")
        if not orchestrator.run_all(jobs, silent=True):
            sys.exit(1)
    """

    def __init__(
        self,
        config: BuildConfig,
        tools_dir: Path,
        steps: Optional[StepFilter] = None,
        incremental: bool = False,
        release: bool = False,
        flash: bool = False,
        verbose: bool = False,
        executor: Optional[CompilationExecutor] = None,
        collector: Optional[FileCollector] = None,
        prop_writer: Optional[PropWriter] = None,
        packager: Optional[PackageCreator] = None,
        deployer: Optional[AdbDeployer] = None
    ):
        """
        Initialize build orchestrator.

        Args:
            config: Loaded build configuration
            tools_dir: Directory with zipstatic/, signapk.jar and the signing key
            steps: Steps to perform (all if omitted)
            incremental: Build only the Xposed makefiles
            release: Release build (affects GPG signing)
            flash: Flash the ZIP after creating it
            verbose: Enable verbose output
            executor, collector, prop_writer, packager, deployer: step
                implementations, created from config if omitted
        """
        self.config = config
        self.tools_dir = Path(tools_dir)
        self.steps = steps or StepFilter()
        self.incremental = incremental
        self.release = release
        self.flash = flash
        self.verbose = verbose

        zipstatic_dir = self.tools_dir / 'zipstatic'
        self.version = VersionInfo(config)
        self.flag_builder = MakeFlagBuilder(config)
        self.executor = executor or CompilationExecutor(config, verbose=verbose)
        self.collector = collector or FileCollector(config)
        self.prop_writer = prop_writer or PropWriter(config, self.version.version)
        self.packager = packager or PackageCreator(
            config, self.version, ZipSigner(config, self.tools_dir), zipstatic_dir
        )
        self.deployer = deployer or AdbDeployer(zipstatic_dir, verbose=verbose)
        self.results: List[BuildResult] = []

    def run_all(self, jobs: Iterable[BuildJob], silent: bool = False) -> bool:
        """Process jobs in order, stopping at the first failure.

        Args:
            jobs: Resolved build jobs
            silent: Redirect compiler output to log files

        Returns:
            True if every job succeeded
        """
        for job in jobs:
            if not self.run_job(job, silent):
                return False
        return True

    def run_job(self, job: BuildJob, silent: bool = False) -> bool:
        """Perform all selected build steps for one platform/SDK combination.

        Args:
            job: Job to process
            silent: Redirect compiler output to a log file

        Returns:
            True if all performed steps succeeded
        """
        start_time = time.time()
        result = BuildResult(job=job, success=False)
        self.results.append(result)

        ErrorFormatter.print_status(f'Processing {job}...', 0)

        if not self._compile(job, silent):
            result.failed_step = STEP_COMPILE
        elif not job.platform.is_host:
            if not self._collect(job):
                result.failed_step = STEP_COLLECT
            elif not self._create_prop(job, echo=not silent):
                result.failed_step = STEP_PROP
            elif not self._create_zip(job, result):
                result.failed_step = STEP_ZIP

        result.build_time = time.time() - start_time
        if result.failed_step:
            logging.info(f"{job} failed in step '{result.failed_step}'")
            return False

        result.success = True
        if self.verbose:
            ErrorFormatter.print_success(f'Finished {job} in {result.build_time:.1f}s')
        print('\n')
        return True

    def _compile(self, job: BuildJob, silent: bool) -> bool:
        if not self.steps.allows(STEP_COMPILE):
            return True
        ErrorFormatter.print_status('Compiling...', 1)

        return self.executor.compile(
            job.platform,
            job.sdk,
            self.flag_builder.build_flags(job.platform, job.sdk),
            self.flag_builder.targets_for(job.platform, job.sdk),
            self.flag_builder.makefiles_for(job.platform, job.sdk),
            incremental=self.incremental,
            silent=silent,
            env=self.flag_builder.environment_for(job.platform),
        )

    def _collect(self, job: BuildJob) -> bool:
        if not self.steps.allows(STEP_COLLECT):
            return True
        ErrorFormatter.print_status('Collecting compiled files...', 1)

        try:
            self.collector.collect(job.platform, job.sdk)
        except CollectError as e:
            ErrorFormatter.print_error(str(e))
            return False
        return True

    def _create_prop(self, job: BuildJob, echo: bool = False) -> bool:
        if not self.steps.allows(STEP_PROP):
            return True
        ErrorFormatter.print_status('Creating xposed.prop file...', 1)

        try:
            self.prop_writer.write(job.platform, job.sdk, echo=echo)
        except PropError as e:
            ErrorFormatter.print_error(str(e))
            return False
        return True

    def _create_zip(self, job: BuildJob, result: BuildResult) -> bool:
        if not self.steps.allows(STEP_ZIP):
            return True
        ErrorFormatter.print_status('Creating flashable ZIP file...', 1)

        try:
            result.zip_path = self.packager.create_zip(job.platform, job.sdk, self.release)
        except (PackageError, SigningError) as e:
            ErrorFormatter.print_error(str(e))
            return False

        if self.flash:
            ErrorFormatter.print_status('Flashing ZIP file...', 1)
            deployment = self.deployer.flash(result.zip_path, job.platform)
            if not deployment.success:
                ErrorFormatter.print_error(deployment.message)
                return False
        return True
