"""Target platforms and SDK compatibility rules.

This module holds the platform/SDK compatibility matrix and the lookup tables
derived from a platform/SDK pair (lunch mode, product output directory,
architecture label).

Design:
    - Platform is a tagged enumeration instead of free-form strings
    - incompatibility_reason() is a pure function with no I/O
    - check_target() adds the operator-facing error reporting
"""

from enum import Enum
from typing import Optional, Union

from ..cli_utils import ErrorFormatter

MIN_SUPPORTED_SDK = 15
MAX_SUPPORTED_SDK = 23

# First SDK that ships ART (Android 5.0)
ART_SDK = 21


class Platform(str, Enum):
    """Target CPU architecture or host pseudo-platform."""

    ARM = "arm"
    X86 = "x86"
    ARM64 = "arm64"
    ARMV5 = "armv5"
    HOST = "host"
    HOSTD = "hostd"

    def __str__(self) -> str:
        return self.value

    def __format__(self, format_spec: str) -> str:
        return format(self.value, format_spec)

    @property
    def is_host(self) -> bool:
        """Host builds only verify the toolchain and produce no package."""
        return self in HOST_PLATFORMS

    @classmethod
    def parse(cls, value: Union["Platform", str]) -> Optional["Platform"]:
        """Convert a string to a Platform, returning None if unknown."""
        if isinstance(value, Platform):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


CANONICAL_PLATFORMS = (Platform.ARM, Platform.X86, Platform.ARM64, Platform.ARMV5)
HOST_PLATFORMS = (Platform.HOST, Platform.HOSTD)


def incompatibility_reason(platform: Union[Platform, str], sdk: int) -> Optional[str]:
    """Check a platform/SDK pair against the compatibility matrix.

    Rules are applied in order; the first match wins.

    Args:
        platform: Target platform (enum member or name)
        sdk: SDK version

    Returns:
        None if the pair can be built, otherwise a human-readable reason
    """
    sdk = int(sdk)
    if sdk < MIN_SUPPORTED_SDK or sdk == 20 or sdk > MAX_SUPPORTED_SDK:
        return f"Unsupported SDK version {sdk}"

    parsed = Platform.parse(platform)
    if parsed is Platform.ARMV5 and sdk > 17:
        return "ARMv5 builds are only supported up to Android 4.2 (SDK 17)"
    if parsed is Platform.ARM64 and sdk < ART_SDK:
        return "arm64 builds are not supported prior to Android 5.0 (SDK 21)"
    if parsed in HOST_PLATFORMS and sdk < ART_SDK:
        return "host builds are not supported prior to Android 5.0 (SDK 21)"
    if parsed is None:
        return f"Unsupported target platform {platform}"

    return None


def check_target(platform: Union[Platform, str], sdk: int, wildcard: bool = False) -> bool:
    """Check whether a platform/SDK pair is valid, reporting explicit failures.

    Args:
        platform: Target platform
        sdk: SDK version
        wildcard: True if the pair came from an "all" expansion, in which
            case incompatible pairs are dropped without a message

    Returns:
        True if the pair is valid
    """
    reason = incompatibility_reason(platform, sdk)
    if reason is None:
        return True
    if not wildcard:
        ErrorFormatter.print_error(reason)
    return False


def get_lunch_mode(platform: Union[Platform, str], sdk: int) -> str:
    """Determine the mode that has to be passed to the "lunch" command.

    Raises:
        ValueError: If no lunch mode exists for the pair
    """
    parsed = Platform.parse(platform)
    if parsed in (Platform.ARM, Platform.ARMV5, Platform.HOST, Platform.HOSTD):
        return "full-eng" if sdk <= 17 else "aosp_arm-eng"
    if parsed is Platform.X86:
        return "full_x86-eng" if sdk <= 17 else "aosp_x86-eng"
    if parsed is Platform.ARM64 and sdk >= ART_SDK:
        return "aosp_arm64-eng"
    raise ValueError(f"Could not determine lunch mode for SDK {sdk}, platform {platform}")


def get_product_outdir(platform: Union[Platform, str]) -> str:
    """Directory (relative to the AOSP root) where compiled files are put.

    Raises:
        ValueError: For platforms without a device product (host builds)
    """
    parsed = Platform.parse(platform)
    if parsed is Platform.ARM:
        return "out/target/product/generic"
    if parsed is Platform.ARMV5:
        return "out_armv5/target/product/generic"
    if parsed in (Platform.X86, Platform.ARM64):
        return f"out/target/product/generic_{parsed.value}"
    raise ValueError(f"Could not determine output directory for {platform}")


def arch_label(platform: Union[Platform, str]) -> str:
    """Architecture recorded in xposed.prop (armv5 is installed as arm)."""
    parsed = Platform.parse(platform)
    if parsed is Platform.ARMV5:
        return Platform.ARM.value
    return str(platform)
