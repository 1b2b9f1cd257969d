import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import keyring
import yaml
from fncli import cli
from keyring.errors import KeyringError

from .core.errors import ConfigError
from .lib.errors import echo

ICE_DIR = Path(os.environ.get("SIMPLEICE_HOME", Path.home() / ".simpleice")).expanduser()
CONFIG_PATH = ICE_DIR / "config.yaml"
STORE_PATH = ICE_DIR / "mails.json"
LOG_PATH = ICE_DIR / "simpleice.log"
PID_PATH = ICE_DIR / "daemon.pid"

SECRET_SERVICE = "simpleice/smtp"
SECRET_ENV = "SIMPLEICE_SMTP_PASSWORD"
DEFAULT_INTERVAL = 3600
DEFAULT_TIMEOUT = 30.0

_TEMPLATE = """\
# simpleice configuration
mail:
  host: ""
  port: 587
  username: ""
  # leave empty to read SIMPLEICE_SMTP_PASSWORD or the system keyring
  password: ""
  from: ""
  starttls: true
  timeout: 30
store:
  path: {store_path}
daemon:
  interval: {interval}
"""


@dataclass(frozen=True)
class MailAccount:
    host: str
    port: int
    username: str
    secret: str
    sender: str
    starttls: bool = True
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class Settings:
    store_path: Path
    account: MailAccount
    log_path: Path
    pid_path: Path
    check_interval: int = DEFAULT_INTERVAL


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    val = data.get(key) or {}
    if not isinstance(val, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return val


def _int(section: dict[str, Any], key: str, default: int) -> int:
    val = section.get(key)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be a number, got {val!r}") from None


def _resolve_secret(username: str, configured: str) -> str:
    """Env var first, then the config file, then the system keyring."""
    if secret := os.environ.get(SECRET_ENV):
        return secret
    if configured:
        return configured
    if not username:
        return ""
    try:
        return keyring.get_password(SECRET_SERVICE, username) or ""
    except KeyringError:
        return ""


def store_secret(username: str, secret: str) -> None:
    keyring.set_password(SECRET_SERVICE, username, secret)


def load_settings(path: Path | None = None) -> Settings:
    path = path if path else CONFIG_PATH
    if not path.exists():
        raise ConfigError(
            f"cannot find configuration file {path}; "
            "create one with `simpleice create-config`"
        )
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to load configuration file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    mail = _section(data, "mail")
    store = _section(data, "store")
    daemon = _section(data, "daemon")

    username = str(mail.get("username") or "")
    account = MailAccount(
        host=str(mail.get("host") or ""),
        port=_int(mail, "port", 587),
        username=username,
        secret=_resolve_secret(username, str(mail.get("password") or "")),
        sender=str(mail.get("from") or username),
        starttls=bool(mail.get("starttls", True)),
        timeout=float(_int(mail, "timeout", int(DEFAULT_TIMEOUT))),
    )

    store_path = store.get("path")
    interval = _int(daemon, "interval", DEFAULT_INTERVAL)
    if interval <= 0:
        raise ConfigError("'interval' must be positive")
    return Settings(
        store_path=Path(store_path).expanduser() if store_path else STORE_PATH,
        account=account,
        log_path=LOG_PATH,
        pid_path=PID_PATH,
        check_interval=interval,
    )


def write_empty_config(path: Path | None = None) -> Path:
    path = path if path else CONFIG_PATH
    if path.exists():
        raise ConfigError(f"configuration file {path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_TEMPLATE.format(store_path=STORE_PATH, interval=DEFAULT_INTERVAL))
    return path


@cli("simpleice", name="create-config")
def create_config():
    """Create empty configuration file"""
    path = write_empty_config()
    echo(f"empty config file created in {path}")


@cli("simpleice", name="set-password")
def set_password():
    """Store the SMTP password in the system keyring"""
    import getpass

    settings = load_settings()
    username = settings.account.username
    if not username:
        raise ConfigError("set mail.username in the config file first")
    store_secret(username, getpass.getpass(f"password for {username}: "))
    echo(f"password stored in keyring for {username}")
