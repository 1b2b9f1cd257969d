# simpleice/store.py
import contextlib
import json
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from .core.errors import CorruptStoreError, DuplicateNameError, StoreIOError
from .core.models import IceMail
from .lib.converters import mail_to_record, record_to_mail

__all__ = ["find_by_name", "insert", "load", "save", "session"]


def load(path: Path) -> list[IceMail]:
    if not path.exists():
        return []
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CorruptStoreError(path, f"not UTF-8 text: {e}") from e
    except OSError as e:
        raise StoreIOError(path, f"cannot read store: {e}") from e

    if not raw.strip():
        raise CorruptStoreError(path, "file is empty")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptStoreError(path, f"invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise CorruptStoreError(path, "expected a JSON array of ICE mails")

    mails: list[IceMail] = []
    for i, record in enumerate(data):
        try:
            mails.append(record_to_mail(record))
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptStoreError(path, f"record {i}: {e}") from e

    _check_unique(path, mails)
    return mails


def _check_unique(path: Path, mails: list[IceMail]) -> None:
    ids: set[str] = set()
    names: set[str] = set()
    for mail in mails:
        if mail.id in ids:
            raise CorruptStoreError(path, f"duplicate id '{mail.id}'")
        if mail.name in names:
            raise CorruptStoreError(path, f"duplicate name '{mail.name}'")
        ids.add(mail.id)
        names.add(mail.name)


def save(path: Path, mails: list[IceMail]) -> None:
    """Write the full collection; the file is replaced atomically or not at all."""
    payload = json.dumps([mail_to_record(m) for m in mails], indent=2, ensure_ascii=False)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise StoreIOError(path, f"cannot write store: {e}") from e
    finally:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)


def find_by_name(mails: list[IceMail], name: str) -> IceMail | None:
    for mail in mails:
        if mail.name == name:
            return mail
    return None


def insert(mails: list[IceMail], mail: IceMail) -> IceMail:
    if find_by_name(mails, mail.name) is not None:
        raise DuplicateNameError(mail.name)
    mails.append(mail)
    return mail


@contextlib.contextmanager
def session(path: Path) -> Iterator[list[IceMail]]:
    """Load, yield for in-place mutation, save once on clean exit if anything changed."""
    mails = load(path)
    before = list(mails)
    yield mails
    if mails != before:
        save(path, mails)
