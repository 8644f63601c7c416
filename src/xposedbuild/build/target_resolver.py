"""Target specification resolver.

This module expands a compact target specification such as
``arm:all/x86,arm64:21`` into an ordered, deduplicated list of build jobs.

Grammar:
    spec      := group ('/' group)*
    group     := platforms ':' sdks
    platforms := 'all' | 'all+' | platform (',' platform)*
    sdks      := 'all' | sdk (',' sdk)*

Design:
    - "all" expands platforms to the canonical four, "all+" adds host/hostd
    - SDK "all" expands to every SDK with a configured source tree
    - Groups that use a wildcard drop incompatible pairs silently, explicit
      requests report them
    - The first occurrence of a (platform, sdk) pair wins
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple

from .platforms import CANONICAL_PLATFORMS, HOST_PLATFORMS, Platform, check_target

WILDCARD = "all"
WILDCARD_WITH_HOST = "all+"


class TargetSpecError(Exception):
    """Raised when a target specification cannot be parsed."""
    pass


@dataclass(frozen=True)
class BuildJob:
    """One validated platform/SDK unit of build work."""

    platform: Platform
    sdk: int

    def __str__(self) -> str:
        return f"SDK {self.sdk}, platform {self.platform.value}"


class TargetResolver:
    """Expands target specifications into build jobs.

    Example usage:
        resolver = TargetResolver(config.aosp_sdks(), echo=True)
        jobs = resolver.resolve("arm:all/x86,arm64:21")
    """

    def __init__(self, known_sdks: Iterable[int], echo: bool = False):
        """Initialize target resolver.

        Args:
            known_sdks: SDK versions substituted for the "all" SDK wildcard
            echo: Print every accepted job
        """
        self.known_sdks = [int(sdk) for sdk in known_sdks]
        self.echo = echo

    def resolve(self, spec: str) -> List[BuildJob]:
        """Expand a target specification.

        Args:
            spec: Target specification string

        Returns:
            Ordered list of unique, valid build jobs (possibly empty)

        Raises:
            TargetSpecError: If a group is malformed
        """
        jobs: List[BuildJob] = []
        seen: Set[Tuple[Platform, int]] = set()

        for group in self._split_groups(spec):
            platform_part, sdk_part = self._split_group(group)
            platforms = self._expand_platforms(platform_part)
            sdks = self._expand_sdks(sdk_part)
            wildcard = platform_part in (WILDCARD, WILDCARD_WITH_HOST) or sdk_part == WILDCARD

            for sdk in sdks:
                for name in platforms:
                    if not check_target(name, sdk, wildcard):
                        continue
                    platform = Platform(name)
                    if (platform, sdk) in seen:
                        continue
                    seen.add((platform, sdk))
                    job = BuildJob(platform, sdk)
                    jobs.append(job)
                    if self.echo:
                        print(f"  {job}")

        return jobs

    @staticmethod
    def _split_groups(spec: str) -> List[str]:
        return [group for group in re.split(r"[/ ]+", spec.strip()) if group]

    @staticmethod
    def _split_group(group: str) -> Tuple[str, str]:
        parts = re.split(r"[: ]+", group, maxsplit=1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise TargetSpecError(
                f"Invalid target '{group}', expected <platform>:<sdk>"
            )
        return parts[0], parts[1]

    @staticmethod
    def _expand_platforms(platform_part: str) -> List[str]:
        if platform_part == WILDCARD:
            return [p.value for p in CANONICAL_PLATFORMS]
        if platform_part == WILDCARD_WITH_HOST:
            return [p.value for p in CANONICAL_PLATFORMS + HOST_PLATFORMS]
        return [p for p in re.split(r"[, ]", platform_part) if p]

    def _expand_sdks(self, sdk_part: str) -> List[int]:
        if sdk_part == WILDCARD:
            return list(self.known_sdks)

        sdks = []
        for token in re.split(r"[, ]", sdk_part):
            if not token:
                continue
            if not re.fullmatch(r"[0-9]+", token):
                raise TargetSpecError(f"Invalid SDK version '{token}'")
            sdks.append(int(token))
        return sdks
