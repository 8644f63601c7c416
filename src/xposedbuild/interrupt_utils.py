"""Utilities for handling KeyboardInterrupt while external tools are running.

A Ctrl+C during a build reaches bash and make as well, but some of make's
children ignore SIGINT. These helpers terminate the whole process tree of a
child process before the interrupt is propagated.
"""

import _thread
import logging
import subprocess
import threading
from typing import Optional

import psutil


def terminate_process_tree(pid: int, timeout: float = 5.0) -> int:
    """Terminate a process and all of its descendants.

    Processes that do not exit within ``timeout`` seconds after SIGTERM are
    killed.

    Args:
        pid: PID of the root process
        timeout: Seconds to wait for a graceful exit

    Returns:
        Number of processes that were signalled
    """
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return 0

    try:
        processes = root.children(recursive=True) + [root]
    except psutil.NoSuchProcess:
        processes = [root]

    for proc in processes:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            pass

    _, alive = psutil.wait_procs(processes, timeout=timeout)
    for proc in alive:
        logging.warning(f"Process {proc.pid} did not terminate, killing it")
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass

    logging.debug(f"Terminated process tree of {pid} ({len(processes)} processes)")
    return len(processes)


def handle_keyboard_interrupt_properly(
    ke: KeyboardInterrupt,
    process: Optional[subprocess.Popen] = None
) -> None:
    """Handle KeyboardInterrupt by cleaning up and propagating it to the main thread.

    Usage:
        proc = subprocess.Popen(cmd)
        try:
            proc.wait()
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke, proc)

    Args:
        ke: The KeyboardInterrupt exception to handle
        process: Child process whose tree has to be terminated first

    Raises:
        KeyboardInterrupt: Always re-raises the exception after handling
    """
    if process is not None and process.poll() is None:
        terminate_process_tree(process.pid)
        process.wait()
    if threading.current_thread() is not threading.main_thread():
        _thread.interrupt_main()
    raise ke
