"""Creates flashable uninstaller ZIPs, one per platform with static files."""

import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..config import BuildConfig
from .archive_creator import ZipArchiveBuilder
from .platforms import CANONICAL_PLATFORMS
from .signer import ZipSigner


class UninstallerCreator:
    """Packages zipstatic/_uninstaller/ together with each platform's files."""

    def __init__(self, config: BuildConfig, signer: ZipSigner, zipstatic_dir: Path):
        self.config = config
        self.signer = signer
        self.zipstatic_dir = Path(zipstatic_dir)

    def zip_path(self, platform: str, now: Optional[datetime] = None) -> Path:
        date = (now or datetime.now()).strftime('%Y%m%d')
        return self.config.outdir / 'uninstaller' / f'xposed-uninstaller-{date}-{platform}.zip'

    def create_all(self) -> List[Path]:
        """Create uninstallers for every platform that has a zipstatic directory.

        Raises:
            PackageError: If a ZIP cannot be created
            SigningError: If signing fails
        """
        created = []
        for platform in CANONICAL_PLATFORMS:
            if (self.zipstatic_dir / platform.value).is_dir():
                created.append(self.create(platform.value))
        return created

    def create(self, platform: str) -> Path:
        builder = ZipArchiveBuilder()
        builder.add_tree(self.zipstatic_dir / '_uninstaller')
        builder.add_tree(self.zipstatic_dir / platform)

        path = self.zip_path(platform)
        print(path)
        builder.write(path, time.time())
        self.signer.sign_zip(path)
        return path
