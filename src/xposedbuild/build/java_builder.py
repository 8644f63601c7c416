"""Builds the Java part of the framework (XposedBridge.jar) with Gradle."""

import shutil
import subprocess
from pathlib import Path

from ..cli_utils import ErrorFormatter
from ..config import BuildConfig
from ..interrupt_utils import handle_keyboard_interrupt_properly

GRADLE_COMMAND = ['./gradlew', 'app:assembleRelease', 'lint']

# Gradle output names differ between plugin versions
APK_SUFFIXES = ('.apk', '-unaligned.apk', '-unsigned.apk')


class JavaBuildError(Exception):
    """Raised when XposedBridge cannot be built or copied."""
    pass


class JavaBuilder:
    """Runs the Gradle build and installs the APK as XposedBridge.jar."""

    def __init__(self, config: BuildConfig):
        self.config = config

    def build(self) -> Path:
        """Build XposedBridge and copy it to <outdir>/java/XposedBridge.jar.

        Returns:
            Path to the installed jar

        Raises:
            JavaBuildError: If javadir is invalid, Gradle fails or no APK is found
        """
        javadir = self.config.javadir
        if javadir is None or not javadir.is_dir():
            raise JavaBuildError('[General][javadir] must point to a directory')

        ErrorFormatter.print_status('Compiling...', 1)
        try:
            result = subprocess.run(GRADLE_COMMAND, cwd=javadir)
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker
        except OSError as e:
            raise JavaBuildError(f"Could not run Gradle: {e}") from e
        if result.returncode != 0:
            raise JavaBuildError(f"Gradle failed with exit code {result.returncode}")
        print()

        ErrorFormatter.print_status('Copying APK to XposedBridge.jar...', 1)
        return self.install_apk(javadir / 'app' / 'build' / 'outputs' / 'apk' / 'app-release')

    def install_apk(self, base: Path) -> Path:
        """Copy the first existing APK variant to the jar location."""
        target = self.config.java_jar
        for suffix in APK_SUFFIXES:
            apk = base.with_name(base.name + suffix)
            if not apk.is_file():
                print(f'Skipping non-existent {apk}')
                continue

            print(f'{apk} => {target}')
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy(apk, target)
            except OSError as e:
                raise JavaBuildError(f"Copy failed: {e}") from e
            print()
            return target

        raise JavaBuildError('No suitable file found, please check the build results')
