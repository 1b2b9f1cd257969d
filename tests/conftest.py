import io
import sys
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from simpleice import config
from simpleice.config import MailAccount, Settings

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@dataclass
class Result:
    exit_code: int
    stdout: str
    stderr: str


class FnCLIRunner:
    def invoke(self, args: list[str]) -> Result:
        from simpleice.cli import main

        out, err = io.StringIO(), io.StringIO()
        saved_argv = sys.argv
        sys.argv = ["simpleice", *args]
        code = 0
        try:
            with redirect_stdout(out), redirect_stderr(err):
                main()
        except SystemExit as e:
            if e.code is None:
                code = 0
            elif isinstance(e.code, int):
                code = e.code
            else:
                err.write(str(e.code))
                code = 1
        finally:
            sys.argv = saved_argv
        return Result(code, out.getvalue(), err.getvalue())


@pytest.fixture
def tmp_ice_dir(tmp_path, monkeypatch):
    ice_dir = tmp_path / ".simpleice"
    ice_dir.mkdir()
    monkeypatch.setattr(config, "ICE_DIR", ice_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", ice_dir / "config.yaml")
    monkeypatch.setattr(config, "STORE_PATH", ice_dir / "mails.json")
    monkeypatch.setattr(config, "LOG_PATH", ice_dir / "simpleice.log")
    monkeypatch.setattr(config, "PID_PATH", ice_dir / "daemon.pid")
    monkeypatch.delenv(config.SECRET_ENV, raising=False)
    config.write_empty_config()
    return ice_dir


@pytest.fixture
def settings(tmp_path):
    return Settings(
        store_path=tmp_path / "mails.json",
        account=MailAccount(
            host="smtp.test",
            port=587,
            username="me@test.org",
            secret="hunter2",
            sender="me@test.org",
            timeout=5.0,
        ),
        log_path=tmp_path / "simpleice.log",
        pid_path=tmp_path / "daemon.pid",
        check_interval=60,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def past(now):
    return now - timedelta(hours=1)


@pytest.fixture
def future(now):
    return now + timedelta(days=3)
