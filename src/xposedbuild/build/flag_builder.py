"""Make Parameter Builder.

This module derives the make parameters, targets and one-shot makefiles for
a platform/SDK pair.

Design:
    - Base flags come from [Build] makeflags (default -j4)
    - Platform/SDK specific flags are appended in a fixed order, so later
      flags override earlier ones under make's last-wins semantics
    - Caller-specific flags (e.g. static BusyBox) go last
"""

from typing import Dict, List, Optional, Union

from ..config import BuildConfig
from .platforms import ART_SDK, Platform


class MakeFlagBuilder:
    """Builds make invocations for one platform/SDK pair.

    This class handles:
    - Default and platform-specific make parameters
    - Xposed make targets for Dalvik, ART and host builds
    - Makefiles for incremental (one-shot) builds
    - Environment variables for host builds
    """

    def __init__(self, config: BuildConfig):
        """Initialize flag builder.

        Args:
            config: Loaded build configuration
        """
        self.config = config

    def build_flags(
        self,
        platform: Union[Platform, str],
        sdk: int,
        extra_flags: Optional[List[str]] = None
    ) -> List[str]:
        """Build the make parameters.

        Args:
            platform: Target platform
            sdk: SDK version
            extra_flags: Flags appended after the platform flags

        Returns:
            Ordered list of make parameters

        Example:
            >>> MakeFlagBuilder(config).build_flags("armv5", 17)
            ['-j4', 'OUT_DIR=out_armv5', 'TARGET_ARCH_VARIANT=armv5te',
             'ARCH_ARM_HAVE_TLS_REGISTER=false', 'TARGET_CPU_SMP=false']
        """
        params = list(self.config.makeflags)

        if Platform.parse(platform) is Platform.ARMV5:
            params.extend([
                'OUT_DIR=out_armv5',
                'TARGET_ARCH_VARIANT=armv5te',
                'ARCH_ARM_HAVE_TLS_REGISTER=false',
                'TARGET_CPU_SMP=false',
            ])
        elif sdk < 23:
            params.append('TARGET_CPU_SMP=true')
        elif Platform.parse(platform) is Platform.X86:
            params.append("arch_variant_cflags='-march=prescott -mno-ssse3'")

        if extra_flags:
            params.extend(extra_flags)

        return params

    @staticmethod
    def targets_for(platform: Union[Platform, str], sdk: int) -> List[str]:
        """Make targets for the Xposed build."""
        parsed = Platform.parse(platform)
        if parsed is Platform.HOST:
            return [
                'out/host/linux-x86/bin/dex2oat',
                'out/host/linux-x86/bin/oatdump',
            ]
        if parsed is Platform.HOSTD:
            return [
                'out/host/linux-x86/bin/dex2oatd',
                'out/host/linux-x86/bin/oatdumpd',
            ]

        targets = ['xposed']
        if sdk < ART_SDK:
            targets.append('libxposed_dalvik')
        else:
            targets.append('libxposed_art')
            targets.extend(['libart', 'libart-compiler', 'libart-disassembler', 'libsigchain'])
            targets.extend(['dex2oat', 'oatdump', 'patchoat'])
        return targets

    @staticmethod
    def makefiles_for(platform: Union[Platform, str], sdk: int) -> List[str]:
        """Makefiles passed as ONE_SHOT_MAKEFILE for incremental builds."""
        if Platform.parse(platform) in (Platform.HOST, Platform.HOSTD):
            return ['art/Android.mk']

        makefiles = ['frameworks/base/cmds/xposed/Android.mk']
        if sdk >= ART_SDK:
            makefiles.append('art/Android.mk')
        return makefiles

    @staticmethod
    def environment_for(platform: Union[Platform, str]) -> Dict[str, str]:
        """Extra environment variables for the make process."""
        parsed = Platform.parse(platform)
        if parsed is Platform.HOST:
            return {'HOST_PREFER_32_BIT': 'true', 'ART_BUILD_HOST_NDEBUG': 'true'}
        if parsed is Platform.HOSTD:
            return {'HOST_PREFER_32_BIT': 'true', 'ART_BUILD_HOST_DEBUG': 'true'}
        return {}
