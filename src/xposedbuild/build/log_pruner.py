"""Removes old build logs from <outdir>/sdk*/*/logs/."""

import logging
import time
from pathlib import Path
from typing import List, Optional

from ..cli_utils import ErrorFormatter
from ..config import BuildConfig

DEFAULT_MAX_AGE = 24 * 60 * 60


class LogPruner:
    """Deletes *.log files older than a cutoff."""

    def __init__(self, config: BuildConfig):
        self.config = config

    def log_dirs(self) -> List[Path]:
        return sorted(path for path in self.config.outdir.glob('sdk*/*/logs') if path.is_dir())

    def prune(self, cutoff: Optional[float] = None) -> List[Path]:
        """Remove logs last modified before ``cutoff``.

        Args:
            cutoff: Unix timestamp (defaults to 24 hours ago)

        Returns:
            Paths of the removed files
        """
        if cutoff is None:
            cutoff = time.time() - DEFAULT_MAX_AGE

        removed: List[Path] = []
        for logdir in self.log_dirs():
            ErrorFormatter.print_status(f'Cleaning {logdir}/...', 1)

            removed_here = False
            for path in sorted(logdir.iterdir()):
                if path.suffix != '.log' or not path.is_file():
                    continue
                if path.stat().st_mtime < cutoff:
                    print(f'[REMOVE]  {path.name}')
                    try:
                        path.unlink()
                    except OSError as e:
                        logging.warning(f"Could not remove {path}: {e}")
                        continue
                    removed.append(path)
                    removed_here = True
                else:
                    print(f'[KEEP]    {path.name}')

            if removed_here:
                print()

        return removed
