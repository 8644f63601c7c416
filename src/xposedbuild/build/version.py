"""Version descriptor.

The configured version may embed a ``%s`` placeholder that is replaced with
the current date (YYYYmmdd). File names use the leading number plus a
sanitized suffix, e.g. ``86 (custom / beta)`` becomes ``86`` and
``-custom-beta``.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from ..config import BuildConfig

# Characters that are not welcome in file names
_ILLEGAL_CHARS = re.compile(r'[\s/|*"?<:>%()]+')
_VERSION_PATTERN = re.compile(r'^(\d+)(.*)$', re.DOTALL)


def expand_version(template: str, now: Optional[datetime] = None) -> str:
    """Replace the date placeholder of a version template."""
    if '%s' in template:
        return template.replace('%s', (now or datetime.now()).strftime('%Y%m%d'))
    return template


def sanitize_suffix(suffix: str) -> str:
    """Turn a free-form version suffix into a file-name-safe token.

    Returns:
        '' for an empty result, otherwise the token with a leading dash
    """
    suffix = _ILLEGAL_CHARS.sub('-', suffix)
    suffix = re.sub(r'-{2,}', '-', suffix)
    suffix = suffix.strip('-')
    return f'-{suffix}' if suffix else ''


def split_version(version: str) -> Tuple[int, str]:
    """Split a version into its number and file name suffix.

    Example:
        >>> split_version('54 beta/1')
        (54, '-beta-1')

    Raises:
        ValueError: If the version doesn't begin with an integer
    """
    match = _VERSION_PATTERN.match(version)
    if not match:
        raise ValueError(f"Version '{version}' must begin with an integer")
    return int(match.group(1)), sanitize_suffix(match.group(2))


class VersionInfo:
    """Version information of the current build, resolved once."""

    def __init__(self, config: BuildConfig, now: Optional[datetime] = None):
        self.config = config
        self.version = expand_version(config.version_template, now)
        self.number, self.suffix = split_version(self.version)

    def zip_name(self, platform: str, sdk: int) -> str:
        """File name of the flashable ZIP for one platform/SDK pair."""
        return f'xposed-v{self.number}-sdk{int(sdk)}-{platform}{self.suffix}.zip'

    @property
    def version_dir(self) -> Path:
        """Directory collecting links to all ZIPs of this version."""
        return self.config.outdir / 'versions' / f'v{self.number}{self.suffix}'
