"""
Package deployment module for flashing ZIPs to a connected device.

This module installs a freshly built ZIP through adb by running the ZIP's
update-binary directly on the device, then restarts the Android framework.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..cli_utils import ErrorFormatter
from ..interrupt_utils import handle_keyboard_interrupt_properly

DEVICE_TMP = "/data/local/tmp"
DEVICE_ZIP = f"{DEVICE_TMP}/xposed.zip"
DEVICE_UPDATE_BINARY = f"{DEVICE_TMP}/update-binary"


@dataclass
class DeploymentResult:
    """Result of a flash operation."""

    success: bool
    message: str
    shell: Optional[str] = None


class DeploymentError(Exception):
    """Raised when deployment operations fail."""

    pass


class AdbDeployer:
    """Flashes ZIP files through adb."""

    def __init__(self, zipstatic_dir: Path, adb: str = "adb", restart_delay: float = 2.0, verbose: bool = False):
        """Initialize deployer.

        Args:
            zipstatic_dir: Directory with the per-platform update-binary files
            adb: adb executable
            restart_delay: Seconds between stopping and starting the framework
            verbose: Whether to show verbose output
        """
        self.zipstatic_dir = Path(zipstatic_dir)
        self.adb = adb
        self.restart_delay = restart_delay
        self.verbose = verbose

    def update_binary(self, platform: str) -> Path:
        return self.zipstatic_dir / str(platform) / "META-INF" / "com" / "google" / "android" / "update-binary"

    def detect_shell(self) -> str:
        """Return 'sh' if adbd runs as root, otherwise 'su'."""
        try:
            result = subprocess.run([self.adb, "shell", "id"], capture_output=True, text=True)
        except OSError as e:
            raise DeploymentError(f"Could not run {self.adb}: {e}") from e
        return "sh" if "uid=0" in result.stdout else "su"

    def flash(self, zip_path: Path, platform: str) -> DeploymentResult:
        """Flash a ZIP file and soft-reboot the device.

        Args:
            zip_path: ZIP file to install
            platform: Platform the ZIP was built for

        Returns:
            DeploymentResult with success status and message
        """
        try:
            shell = self.detect_shell()
            update_binary = self.update_binary(platform)

            self._adb(["push", str(zip_path), DEVICE_ZIP])
            self._adb(["push", str(update_binary), DEVICE_UPDATE_BINARY])
            self._adb(["shell", f"chmod 700 {DEVICE_UPDATE_BINARY}"])
            self._adb(["shell", f"{shell} -c 'NO_UIPRINT=1 {DEVICE_UPDATE_BINARY} 2 1 {DEVICE_ZIP}'"])
            self._adb(["shell", f"rm {DEVICE_UPDATE_BINARY} {DEVICE_ZIP}"])
            self._adb(["shell", f"{shell} -c stop"])
            time.sleep(self.restart_delay)
            self._adb(["shell", f"{shell} -c start"])

            return DeploymentResult(success=True, message=f"Flashed {zip_path.name}", shell=shell)

        except DeploymentError as e:
            return DeploymentResult(success=False, message=str(e))

    def _adb(self, args: List[str]) -> None:
        cmd = [self.adb] + args
        if self.verbose:
            ErrorFormatter.print_command("Executing: ", " ".join(cmd))
        else:
            logging.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd)
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker
        except OSError as e:
            raise DeploymentError(f"Could not run {self.adb}: {e}") from e

        if result.returncode != 0:
            raise DeploymentError(f"Command failed ({result.returncode}): {' '.join(cmd)}")
