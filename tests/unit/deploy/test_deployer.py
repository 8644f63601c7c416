"""
Unit tests for AdbDeployer.
"""

import pytest
from pathlib import Path
from subprocess import CompletedProcess
from unittest.mock import patch

from xposedbuild.deploy import AdbDeployer, DeploymentError
from xposedbuild.deploy.deployer import DEVICE_UPDATE_BINARY, DEVICE_ZIP


class TestAdbDeployer:
    """Tests for flashing through adb."""

    @pytest.fixture
    def deployer(self, tmp_path):
        return AdbDeployer(tmp_path / "zipstatic", restart_delay=0)

    def test_update_binary(self, deployer, tmp_path):
        assert deployer.update_binary("x86") == (
            tmp_path / "zipstatic" / "x86" / "META-INF" / "com" / "google" / "android" / "update-binary"
        )

    @pytest.mark.parametrize("output,shell", [
        ("uid=0(root) gid=0(root)", "sh"),
        ("uid=2000(shell) gid=2000(shell)", "su"),
    ])
    def test_detect_shell(self, deployer, output, shell):
        with patch("subprocess.run", return_value=CompletedProcess([], 0, stdout=output)):
            assert deployer.detect_shell() == shell

    def test_detect_shell_adb_missing(self, deployer):
        with patch("subprocess.run", side_effect=FileNotFoundError("adb")):
            with pytest.raises(DeploymentError, match="Could not run adb"):
                deployer.detect_shell()

    def test_flash_sequence(self, deployer):
        zip_path = Path("/out/sdk21/arm/xposed-v86-sdk21-arm.zip")
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            return CompletedProcess(cmd, 0, stdout="uid=2000(shell)")

        with patch("subprocess.run", side_effect=fake_run):
            result = deployer.flash(zip_path, "arm")

        assert result.success
        assert result.shell == "su"
        assert calls == [
            ["adb", "shell", "id"],
            ["adb", "push", str(zip_path), DEVICE_ZIP],
            ["adb", "push", str(deployer.update_binary("arm")), DEVICE_UPDATE_BINARY],
            ["adb", "shell", f"chmod 700 {DEVICE_UPDATE_BINARY}"],
            ["adb", "shell", f"su -c 'NO_UIPRINT=1 {DEVICE_UPDATE_BINARY} 2 1 {DEVICE_ZIP}'"],
            ["adb", "shell", f"rm {DEVICE_UPDATE_BINARY} {DEVICE_ZIP}"],
            ["adb", "shell", "su -c stop"],
            ["adb", "shell", "su -c start"],
        ]

    def test_flash_stops_on_failure(self, deployer):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            returncode = 1 if cmd[1] == "push" else 0
            return CompletedProcess(cmd, returncode, stdout="uid=0(root)")

        with patch("subprocess.run", side_effect=fake_run):
            result = deployer.flash(Path("/tmp/x.zip"), "arm")

        assert not result.success
        assert "Command failed (1)" in result.message
        assert len(calls) == 2

    def test_verbose_echoes_commands(self, tmp_path, capsys):
        deployer = AdbDeployer(tmp_path / "zipstatic", restart_delay=0, verbose=True)
        with patch("subprocess.run", return_value=CompletedProcess([], 0, stdout="uid=0(root)")):
            assert deployer.flash(Path("/tmp/x.zip"), "arm").success
        out = capsys.readouterr().out
        assert "Executing: " in out
        assert f"adb push /tmp/x.zip {DEVICE_ZIP}" in out

    def test_quiet_does_not_echo_commands(self, deployer, capsys):
        with patch("subprocess.run", return_value=CompletedProcess([], 0, stdout="uid=0(root)")):
            assert deployer.flash(Path("/tmp/x.zip"), "arm").success
        assert "Executing: " not in capsys.readouterr().out
