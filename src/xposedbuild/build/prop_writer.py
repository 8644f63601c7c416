"""Creates the /system/xposed.prop file of a package."""

from pathlib import Path
from typing import Tuple, Union

from ..config import BuildConfig
from .platforms import Platform, arch_label

# SDKs sharing the Dalvik ABI; one build runs on all of them
DALVIK_SDK_RANGE = (15, 19)


class PropError(Exception):
    """Raised when xposed.prop cannot be written."""
    pass


def sdk_range(sdk: int) -> Tuple[int, int]:
    """Minimum and maximum SDK a build for ``sdk`` is compatible with."""
    low, high = DALVIK_SDK_RANGE
    if low <= sdk <= high:
        return low, high
    return sdk, sdk


def render_prop(version: str, platform: Union[Platform, str], sdk: int) -> str:
    """Render the contents of xposed.prop."""
    minsdk, maxsdk = sdk_range(sdk)
    return (
        f'version={version}\n'
        f'arch={arch_label(platform)}\n'
        f'minsdk={minsdk}\n'
        f'maxsdk={maxsdk}\n'
    )


class PropWriter:
    """Writes xposed.prop into the staging tree of a job."""

    def __init__(self, config: BuildConfig, version: str):
        self.config = config
        self.version = version

    def prop_path(self, platform: Union[Platform, str], sdk: int) -> Path:
        return self.config.get_collection_dir(platform, sdk) / 'files' / 'system' / 'xposed.prop'

    def write(self, platform: Union[Platform, str], sdk: int, echo: bool = False) -> Path:
        """Write the file.

        Args:
            platform: Target platform
            sdk: SDK version
            echo: Also print the contents

        Returns:
            Path of the written file

        Raises:
            PropError: If the file cannot be written
        """
        path = self.prop_path(platform, sdk)
        print(path)
        content = render_prop(self.version, platform, sdk)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise PropError(f"Could not write to {path}: {e}") from e

        if echo:
            print(content, end='')
        return path
