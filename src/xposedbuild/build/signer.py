"""ZIP signing.

Flashable ZIPs get an APK-style signature (signapk.jar with the test key
shipped next to the build scripts) and, depending on the [GPG] sign policy,
a detached ASCII-armored GPG signature.
"""

import logging
import subprocess
from pathlib import Path
from typing import List

from ..config import BuildConfig
from ..interrupt_utils import handle_keyboard_interrupt_properly

GPG_SIGN_ALL = 'all'
GPG_SIGN_RELEASE = 'release'


class SigningError(Exception):
    """Raised when a file cannot be signed."""
    pass


def should_gpg_sign(policy: str, release: bool) -> bool:
    """Apply the [GPG] sign policy ('all', 'release' or anything else for none)."""
    if policy == GPG_SIGN_ALL:
        return True
    return policy == GPG_SIGN_RELEASE and release


class ZipSigner:
    """Signs ZIP files with signapk and GPG."""

    def __init__(self, config: BuildConfig, tools_dir: Path):
        """Initialize signer.

        Args:
            config: Loaded build configuration
            tools_dir: Directory containing signapk.jar and the signing key
        """
        self.config = config
        self.tools_dir = Path(tools_dir)

    def signapk_command(self, source: Path, target: Path) -> List[str]:
        return [
            'java', '-jar', str(self.tools_dir / 'signapk.jar'), '-w',
            str(self.tools_dir / 'signkey.x509.pem'),
            str(self.tools_dir / 'signkey.pk8'),
            str(source), str(target),
        ]

    def sign_zip(self, path: Path) -> None:
        """Sign a ZIP file in place.

        Raises:
            SigningError: If signapk fails
        """
        signed = path.with_name(path.name + '.signed')
        self._run(self.signapk_command(path, signed), f"signapk failed for {path.name}")
        try:
            signed.replace(path)
        except OSError as e:
            raise SigningError(f"Could not replace {path.name} with the signed file: {e}") from e

    def gpg_sign(self, path: Path, release: bool = True) -> bool:
        """Create a detached signature (<file>.asc) if the policy asks for one.

        Any existing signature is removed first, so a stale signature never
        survives a rebuild.

        Returns:
            True if a signature was created

        Raises:
            SigningError: If gpg fails
        """
        asc = path.with_name(path.name + '.asc')
        try:
            asc.unlink(missing_ok=True)
        except OSError as e:
            raise SigningError(f"Could not remove stale signature {asc.name}: {e}") from e

        if not should_gpg_sign(self.config.gpg_policy, release):
            logging.debug(f"Skipping GPG signature for {path.name} (policy '{self.config.gpg_policy}')")
            return False

        cmd = ['gpg', '-ab']
        if self.config.gpg_user:
            cmd.extend(['-u', self.config.gpg_user])
        cmd.append(str(path))
        self._run(cmd, f"gpg failed for {path.name}")
        return True

    @staticmethod
    def _run(cmd: List[str], message: str) -> None:
        logging.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd)
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker
        except OSError as e:
            raise SigningError(f"{message}: {e}") from e

        if result.returncode != 0:
            raise SigningError(f"{message} (exit code {result.returncode})")
