"""
Unit tests for the xposed-build command line.
"""

import pytest
from unittest.mock import patch

from xposedbuild.cli import create_parser, main


@pytest.fixture
def tools_dir(tmp_path, outdir, aosp_root):
    """Tools directory with a usable build.conf and a prebuilt jar."""
    tools = tmp_path / "tools"
    tools.mkdir()
    (tools / "build.conf").write_text(
        f"[General]\n"
        f"outdir = {outdir}\n"
        f"\n"
        f"[Build]\n"
        f"version = 86 (unit test)\n"
        f"\n"
        f"[AospDir]\n"
        f"19 = {aosp_root}\n"
        f"21 = {aosp_root}\n"
    )
    jar = outdir / "java" / "XposedBridge.jar"
    jar.parent.mkdir(parents=True)
    jar.write_bytes(b"jar")
    return tools


@pytest.fixture(autouse=True)
def no_log_handlers():
    """Keep main() from attaching handlers to the root logger."""
    with patch("xposedbuild.cli.setup_logging"):
        yield


def run_main(*argv):
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = create_parser().parse_args([])
        assert args.action == "build"
        assert args.targets == ""
        assert args.steps is None
        assert not args.incremental
        assert not args.flash
        assert args.config is None

    def test_short_options(self):
        args = create_parser().parse_args(["-a", "busybox", "-t", "arm:21", "-s", "zip", "-i", "-v", "-f", "-r", "-u"])
        assert args.action == "busybox"
        assert args.targets == "arm:21"
        assert args.steps == "zip"
        assert args.incremental and args.verbose and args.flash and args.release and args.update_binary


class TestMain:
    """Tests for main() exit codes and dispatch."""

    def test_unknown_action(self, tools_dir, capsys):
        assert run_main("-a", "deploy", "--tools-dir", str(tools_dir)) == 2
        err = capsys.readouterr().err
        assert "Unknown action specified: deploy" in err
        assert "usage:" in err

    def test_missing_config(self, tmp_path, capsys):
        assert run_main("--tools-dir", str(tmp_path), "-t", "arm:21") == 1
        assert "build.conf doesn't exist or isn't readable" in capsys.readouterr().err

    def test_invalid_config(self, tools_dir, tmp_path, capsys):
        config = tmp_path / "other.conf"
        config.write_text("[General]\noutdir = /nonexistent/path\n[Build]\nversion = 86 x\n")
        assert run_main("--tools-dir", str(tools_dir), "-c", str(config), "-t", "arm:21") == 1
        assert "[General][outdir]" in capsys.readouterr().err

    def test_missing_jar(self, tools_dir, outdir, capsys):
        (outdir / "java" / "XposedBridge.jar").unlink()
        assert run_main("--tools-dir", str(tools_dir), "-t", "arm:21") == 1
        assert "XposedBridge.jar doesn't exist" in capsys.readouterr().err

    def test_no_valid_targets(self, tools_dir, capsys):
        assert run_main("--tools-dir", str(tools_dir), "-t", "armv5:21") == 2
        assert "No valid targets specified" in capsys.readouterr().err

    def test_malformed_targets(self, tools_dir, capsys):
        assert run_main("--tools-dir", str(tools_dir), "-t", "arm") == 2
        assert "expected <platform>:<sdk>" in capsys.readouterr().err

    def test_unknown_step(self, tools_dir, capsys):
        assert run_main("--tools-dir", str(tools_dir), "-t", "arm:21", "-s", "compile,sign") == 2
        assert "Unknown build steps: sign" in capsys.readouterr().err

    def test_flash_requires_single_target(self, tools_dir, capsys):
        with patch("xposedbuild.cli.XposedBuildOrchestrator") as mock_orchestrator:
            assert run_main("--tools-dir", str(tools_dir), "-t", "arm,x86:21", "-f") == 1
        mock_orchestrator.assert_not_called()
        assert "Flashing is only supported for a single target" in capsys.readouterr().err

    def test_build_success(self, tools_dir, capsys):
        with patch("xposedbuild.cli.XposedBuildOrchestrator") as mock_orchestrator:
            mock_orchestrator.return_value.run_all.return_value = True
            assert run_main("--tools-dir", str(tools_dir), "-t", "all:21", "-r") == 0

        kwargs = mock_orchestrator.call_args[1]
        assert kwargs["tools_dir"] == tools_dir.resolve()
        assert kwargs["release"] is True
        assert kwargs["flash"] is False
        jobs = mock_orchestrator.return_value.run_all.call_args[0][0]
        assert [str(job) for job in jobs] == [
            "SDK 21, platform arm", "SDK 21, platform x86", "SDK 21, platform arm64",
        ]
        assert mock_orchestrator.return_value.run_all.call_args[1]["silent"] is True
        assert "Done!" in capsys.readouterr().out

    def test_build_failure(self, tools_dir):
        with patch("xposedbuild.cli.XposedBuildOrchestrator") as mock_orchestrator:
            mock_orchestrator.return_value.run_all.return_value = False
            assert run_main("--tools-dir", str(tools_dir), "-t", "arm:19") == 1

    def test_prunelogs(self, tools_dir, capsys):
        assert run_main("-a", "prunelogs", "--tools-dir", str(tools_dir)) == 0
        assert "Done!" in capsys.readouterr().out

    def test_java_without_javadir(self, tools_dir, capsys):
        assert run_main("-a", "java", "--tools-dir", str(tools_dir)) == 1
        assert "[General][javadir]" in capsys.readouterr().err

    def test_busybox_without_targets(self, tools_dir, capsys):
        assert run_main("-a", "busybox", "--tools-dir", str(tools_dir)) == 1
        assert "[BusyBox]" in capsys.readouterr().err

    def test_uninstaller_without_static_files(self, tools_dir, outdir):
        assert run_main("-a", "uninstaller", "--tools-dir", str(tools_dir)) == 0
        assert not (outdir / "uninstaller").exists()

    def test_keyboard_interrupt(self, tools_dir):
        with patch("xposedbuild.cli.load_config", side_effect=KeyboardInterrupt):
            assert run_main("--tools-dir", str(tools_dir), "-t", "arm:21") == 130

    def test_unexpected_error(self, tools_dir, capsys):
        with patch("xposedbuild.cli.load_config", side_effect=RuntimeError("boom")):
            assert run_main("--tools-dir", str(tools_dir), "-t", "arm:21") == 1
        assert "Unexpected error: RuntimeError: boom" in capsys.readouterr().err
