"""Shared fixtures for the xposed-build tests."""

import pytest

from xposedbuild.config import BuildConfig


@pytest.fixture
def outdir(tmp_path):
    """Output directory ([General] outdir)."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def aosp_root(tmp_path):
    """An (empty) AOSP source tree used for every configured SDK."""
    path = tmp_path / "aosp"
    path.mkdir()
    return path


@pytest.fixture
def build_config(outdir, aosp_root):
    """Configuration with source trees for SDK 17, 19, 21 and 23."""
    return BuildConfig.from_dict({
        "General": {"outdir": str(outdir)},
        "Build": {"version": "86 (test build)", "makeflags": "-j8"},
        "GPG": {"sign": "", "user": ""},
        "AospDir": {
            "17": str(aosp_root),
            "19": str(aosp_root),
            "21": str(aosp_root),
            "23": str(aosp_root),
        },
    })
