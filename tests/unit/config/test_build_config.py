"""
Unit tests for the build.conf parser.
"""

import pytest
from pathlib import Path

from xposedbuild.config import BuildConfig, BuildConfigError


class TestBuildConfig:
    """Test suite for BuildConfig parser."""

    @pytest.fixture
    def tmp_ini_path(self, tmp_path):
        """Fixture to provide a temporary INI file path."""
        return tmp_path / "build.conf"

    @pytest.fixture
    def full_config(self, tmp_ini_path, tmp_path):
        """Create a complete build.conf."""
        outdir = tmp_path / "out"
        outdir.mkdir()
        aosp = tmp_path / "aosp"
        aosp.mkdir()
        content = f"""
[General]
outdir = {outdir}
javadir = {tmp_path}/XposedBridge

[Build]
version = 86 (custom build by me / %s)
makeflags = -j8 -k

[GPG]
sign = release
user = 0x12345678

[AospDir]
19 = {aosp}/
21 = {aosp}  ; lollipop

[BusyBox]
arm = 21
x86 = 21
"""
        tmp_ini_path.write_text(content)
        return tmp_ini_path

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises an error."""
        with pytest.raises(BuildConfigError, match="doesn't exist or isn't readable"):
            BuildConfig(tmp_path / "missing.conf")

    def test_parse_error(self, tmp_ini_path):
        """Test that a malformed file raises an error."""
        tmp_ini_path.write_text("outdir = /tmp\n")
        with pytest.raises(BuildConfigError, match="Could not read"):
            BuildConfig(tmp_ini_path)

    def test_trailing_whitespace_trimmed(self, full_config, tmp_path):
        """Test that values lose trailing whitespace at load time."""
        config = BuildConfig(full_config)
        assert config.get("General", "outdir") == str(tmp_path / "out")
        assert config.version_template == "86 (custom build by me / %s)"

    def test_inline_comment_stripped(self, full_config, tmp_path):
        """Test that trailing comments are not part of the value."""
        config = BuildConfig(full_config)
        assert config.get("AospDir", "21") == str(tmp_path / "aosp")

    def test_accessors(self, full_config, tmp_path):
        """Test typed accessors."""
        config = BuildConfig(full_config)
        assert config.outdir == tmp_path / "out"
        assert config.javadir == tmp_path / "XposedBridge"
        assert config.makeflags == ["-j8", "-k"]
        assert config.gpg_policy == "release"
        assert config.gpg_user == "0x12345678"
        assert config.java_jar == tmp_path / "out" / "java" / "XposedBridge.jar"

    def test_aosp_sdks_in_file_order(self, full_config):
        """Test SDK keys are returned as integers in order."""
        config = BuildConfig(full_config)
        assert config.aosp_sdks() == [19, 21]

    def test_aosp_sdks_invalid_key(self):
        """Test that non-numeric [AospDir] keys are rejected."""
        config = BuildConfig.from_dict({"AospDir": {"lollipop": "/aosp"}})
        with pytest.raises(BuildConfigError, match="must be SDK versions"):
            config.aosp_sdks()

    def test_busybox_targets(self, full_config):
        """Test [BusyBox] entries keep their order and case."""
        config = BuildConfig(full_config)
        assert config.busybox_targets() == [("arm", "21"), ("x86", "21")]

    def test_defaults(self):
        """Test values of a nearly empty configuration."""
        config = BuildConfig.from_dict({"General": {"outdir": "/tmp"}})
        assert config.makeflags == ["-j4"]
        assert config.gpg_policy == ""
        assert config.gpg_user is None
        assert config.javadir is None
        assert config.aosp_sdks() == []
        assert config.keys("Missing") == []
        assert config.get("Missing", "key", "fallback") == "fallback"

    def test_collection_dir(self):
        """Test the per-job directory layout."""
        config = BuildConfig.from_dict({"General": {"outdir": "/out"}})
        assert config.get_collection_dir("arm64", 21) == Path("/out/sdk21/arm64")


class TestRootDir:
    """Test resolution of AOSP source trees."""

    def test_trailing_slash_removed(self, tmp_path):
        config = BuildConfig.from_dict({"AospDir": {"21": f"{tmp_path}//"}})
        assert config.get_rootdir(21) == tmp_path

    def test_not_configured(self):
        config = BuildConfig.from_dict({"AospDir": {}})
        with pytest.raises(BuildConfigError, match="No root directory has been configured for SDK 19"):
            config.get_rootdir(19)

    def test_relative_path(self):
        config = BuildConfig.from_dict({"AospDir": {"19": "aosp/kitkat"}})
        with pytest.raises(BuildConfigError, match="must be an absolute path"):
            config.get_rootdir(19)

    def test_not_a_directory(self, tmp_path):
        config = BuildConfig.from_dict({"AospDir": {"19": str(tmp_path / "missing")}})
        with pytest.raises(BuildConfigError, match="is not a directory"):
            config.get_rootdir(19)


class TestCheckRequirements:
    """Test the essential settings check."""

    def test_valid(self, tmp_path):
        config = BuildConfig.from_dict({
            "General": {"outdir": str(tmp_path)},
            "Build": {"version": "86 custom"},
        })
        config.check_requirements()

    def test_missing_outdir(self, tmp_path):
        config = BuildConfig.from_dict({
            "General": {"outdir": str(tmp_path / "missing")},
            "Build": {"version": "86 custom"},
        })
        with pytest.raises(BuildConfigError, match=r"\[General\]\[outdir\]"):
            config.check_requirements()

    def test_version_without_number(self, tmp_path):
        config = BuildConfig.from_dict({
            "General": {"outdir": str(tmp_path)},
            "Build": {"version": "custom 86"},
        })
        with pytest.raises(BuildConfigError, match="must begin with an integer"):
            config.check_requirements()

    def test_numeric_version_requires_official(self, tmp_path):
        config = BuildConfig.from_dict({
            "General": {"outdir": str(tmp_path)},
            "Build": {"version": "86"},
        })
        with pytest.raises(BuildConfigError, match="custom suffix"):
            config.check_requirements()

    def test_numeric_version_official(self, tmp_path):
        config = BuildConfig.from_dict({
            "General": {"outdir": str(tmp_path)},
            "Build": {"version": "86", "official": "1"},
        })
        config.check_requirements()
