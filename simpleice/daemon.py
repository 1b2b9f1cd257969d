import contextlib
import os
import signal
import threading
from pathlib import Path

from fncli import cli

from . import config
from .config import Settings
from .core.errors import IceError
from .lib.errors import echo, exit_error
from .lib.log import append_log
from .scheduler import Sender, run_check

__all__ = ["run_daemon"]


def _write_pid(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(os.getpid()))


def _clear_pid(path: Path) -> None:
    with contextlib.suppress(OSError):
        if path.read_text().strip() == str(os.getpid()):
            path.unlink()


def run_daemon(
    settings: Settings,
    send: Sender | None = None,
    interval: int | None = None,
    stop: threading.Event | None = None,
    install_signals: bool = True,
) -> int:
    """Run check cycles every `interval` seconds until stopped.

    SIGTERM/SIGINT only set the stop event, so a cycle in progress always
    finishes before the loop exits. Returns the number of cycles run.
    """
    interval = interval or settings.check_interval
    stop = stop or threading.Event()

    def _log(msg: str) -> None:
        append_log(settings.log_path, msg)

    if install_signals:

        def handle_signal(signum, frame):
            _log("shutdown signal received")
            stop.set()

        signal.signal(signal.SIGTERM, handle_signal)
        signal.signal(signal.SIGINT, handle_signal)

    _write_pid(settings.pid_path)
    _log(f"daemon started (PID {os.getpid()}) interval={interval}s store={settings.store_path}")

    cycles = 0
    try:
        while not stop.is_set():
            try:
                run_check(settings, send=send, log=_log)
            except IceError as e:
                _log(f"[check] cycle error: {e.kind}: {e}")
            cycles += 1
            stop.wait(interval)
    finally:
        _clear_pid(settings.pid_path)
        _log("daemon stopped")
    return cycles


@cli("simpleice", name="check")
def check() -> None:
    """Check if there are scheduled emails to send"""
    settings = config.load_settings()
    report = run_check(settings)
    echo(f"sent {report.sent_count}, failed {report.failed_count}")
    for name in report.sent:
        echo(f"  ✓ {name}")
    for name, reason in report.failed:
        echo(f"  ✗ {name}: {reason}")
    if not report.ok:
        exit_error(f"delivery: {report.failed_count} ICE mail(s) could not be sent")


@cli("simpleice", name="daemon")
def daemon(interval: int = 0):
    """Run in daemon mode"""
    settings = config.load_settings()
    every = interval or settings.check_interval
    echo(f"simpleice daemon started (PID {os.getpid()}), checking every {every}s")
    cycles = run_daemon(settings, interval=every)
    echo(f"daemon stopped after {cycles} cycle(s)")
