"""Unit tests for CLI utilities including ErrorFormatter."""

import io
import logging

import pytest

from xposedbuild.cli_utils import ErrorFormatter, setup_logging


class TestErrorFormatter:
    """Tests for ErrorFormatter class."""

    def test_print_status_levels(self, capsys):
        ErrorFormatter.print_status("Loading config file...", 0)
        ErrorFormatter.print_status("Compiling...", 1)
        out = capsys.readouterr().out.splitlines()

        assert out[0] == "\033[30;47mLoading config file...\033[0m"
        assert out[1] == "\033[37;44mCompiling...\033[0m"

    def test_print_error_to_stderr(self, capsys):
        ErrorFormatter.print_error("Build failed!")
        captured = capsys.readouterr()

        assert captured.out == ""
        assert captured.err == "\033[31mERROR: Build failed!\033[0m\n"

    def test_print_error_custom_stream(self):
        stream = io.StringIO()
        ErrorFormatter.print_error("oops", stream=stream)
        assert "ERROR: oops" in stream.getvalue()

    def test_print_command(self, capsys):
        ErrorFormatter.print_command("Executing: ", "make -j4")
        assert capsys.readouterr().out == "\033[35mExecuting: \033[0mmake -j4\n"

    def test_print_success(self, capsys):
        ErrorFormatter.print_success("Build was successful!")
        assert "Build was successful!" in capsys.readouterr().out

    def test_handle_keyboard_interrupt(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130
        assert "Build interrupted" in capsys.readouterr().out

    def test_handle_unexpected_error_with_traceback(self, capsys):
        try:
            raise ValueError("bad value")
        except ValueError as e:
            with pytest.raises(SystemExit) as exc_info:
                ErrorFormatter.handle_unexpected_error(e, verbose=True)

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "Unexpected error: ValueError: bad value" in captured.err
        assert "Traceback:" in captured.out


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        logger = logging.getLogger()
        level = logger.level
        handlers = list(logger.handlers)
        yield
        logger.setLevel(level)
        logger.handlers[:] = handlers

    def test_default_level(self):
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_debug_level(self):
        setup_logging(debug=True)
        assert logging.getLogger().level == logging.DEBUG
