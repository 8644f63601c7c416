"""Log tail monitor.

This module shows the progress of a silenced build by redrawing the most
recent line of its log file on a single terminal line.

Design:
    - Runs as a background thread next to the foreground make process
    - The only shared state is the log file and a stop event
    - Lines are truncated to the display width and padded to the longest
      line shown so far, so stale characters are always overwritten
    - stop() joins the thread and clears the line before returning
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import List, Optional, TextIO

DISPLAY_WIDTH = 80
POLL_INTERVAL = 1.0

YELLOW = "\033[33m"
RESET = "\033[0m"


class LogTailMonitor(threading.Thread):
    """Streams the tail of a growing log file to the terminal.

    Example usage:
        with LogTailMonitor(log_file):
            subprocess.run(cmd, stdout=log, stderr=subprocess.STDOUT)
    """

    def __init__(
        self,
        log_file: Path,
        width: int = DISPLAY_WIDTH,
        interval: float = POLL_INTERVAL,
        stream: Optional[TextIO] = None
    ):
        """Initialize the monitor.

        Args:
            log_file: Log file to follow (may not exist yet)
            width: Maximum number of characters shown per line
            interval: Seconds between polls of the file
            stream: Output stream (defaults to stdout)
        """
        super().__init__(name=f"log-tail-{Path(log_file).name}", daemon=True)
        self.log_file = Path(log_file)
        self.width = width
        self.interval = interval
        self.stream = stream or sys.stdout
        self.longest = 0
        self._stop_event = threading.Event()
        self._position = 0
        self._partial = b""
        self._finished = False

    def __enter__(self) -> "LogTailMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def run(self) -> None:
        while not self._stop_event.is_set():
            for line in self._read_new_lines():
                self.show(line)
            self._stop_event.wait(self.interval)

    def stop(self) -> None:
        """Stop following the file and clear the progress line."""
        if self._finished:
            return
        self._finished = True

        self._stop_event.set()
        if self.is_alive():
            self.join()

        if self.longest:
            self.stream.write("\r" + " " * self.longest + RESET + "\n")
            self.stream.flush()

    def show(self, line: str) -> None:
        """Redraw the progress line with a new log line."""
        line = line[:self.width].rstrip()
        length = len(line)
        if length < self.longest:
            line += " " * (self.longest - length)
        else:
            self.longest = length
        self.stream.write(f"\r{YELLOW}{line}")
        self.stream.flush()

    def _read_new_lines(self) -> List[str]:
        """Return the complete lines appended since the last poll."""
        try:
            with open(self.log_file, "rb") as f:
                f.seek(0, os.SEEK_END)
                size = f.tell()
                if size < self._position:
                    # Truncated or replaced, start over
                    self._position = 0
                    self._partial = b""
                f.seek(self._position)
                data = f.read()
                self._position = f.tell()
        except FileNotFoundError:
            return []
        except OSError as e:
            logging.debug(f"Could not read {self.log_file}: {e}")
            return []

        data = self._partial + data
        lines = data.split(b"\n")
        self._partial = lines.pop()
        return [line.decode("utf-8", errors="replace") for line in lines]


def read_last_lines(path: Path, count: int = 10, block_size: int = 4096) -> List[str]:
    """Read the last lines of a file without loading all of it.

    Args:
        path: File to read
        count: Number of lines to return
        block_size: Size of the blocks read from the end of the file

    Returns:
        Up to ``count`` lines in file order, without line terminators
    """
    with open(path, "rb") as f:
        f.seek(0, os.SEEK_END)
        end = f.tell()
        data = b""
        while end > 0 and data.count(b"\n") <= count:
            start = max(0, end - block_size)
            f.seek(start)
            data = f.read(end - start) + data
            end = start

    lines = data.decode("utf-8", errors="replace").splitlines()
    return lines[-count:] if count else []
