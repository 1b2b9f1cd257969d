import dataclasses
import uuid
from datetime import datetime

from fncli import UsageError, cli

from . import config, store
from .core.errors import (
    DuplicateNameError,
    InvalidStateError,
    InvalidTriggerError,
    NotActiveError,
    NotFoundError,
    ValidationError,
)
from .core.models import IceMail, Status
from .lib import clock
from .lib.dates import as_local, format_when, parse_trigger
from .lib.errors import echo
from .lib.format import format_detail, format_status_line
from .lib.parsing import normalize_recipients, read_body, validate_content

__all__ = [
    "activate_mail",
    "create_mail",
    "deactivate_mail",
    "edit_mail",
    "get_mail",
    "mark_sent",
    "remove_mail",
]


# ── domain ───────────────────────────────────────────────────────────────────

_EDITABLE = (Status.DRAFT, Status.INACTIVE, Status.ACTIVE)


def _index(mails: list[IceMail], name: str) -> int:
    for i, mail in enumerate(mails):
        if mail.name == name:
            return i
    raise NotFoundError(name)


def _replace(mails: list[IceMail], name: str, **changes) -> IceMail:
    i = _index(mails, name)
    updated = dataclasses.replace(mails[i], **changes)
    mails[i] = updated
    return updated


def _validated(fn, *args):
    try:
        return fn(*args)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def get_mail(mails: list[IceMail], name: str) -> IceMail:
    mail = store.find_by_name(mails, name)
    if mail is None:
        raise NotFoundError(name)
    return mail


def create_mail(
    mails: list[IceMail],
    name: str,
    recipient: str,
    subject: str = "",
    body: str = "",
    now: datetime | None = None,
) -> IceMail:
    _validated(validate_content, name, "Name")
    mail = IceMail(
        id=str(uuid.uuid4()),
        name=name.strip(),
        recipient=_validated(normalize_recipients, recipient),
        subject=subject,
        body=body,
        status=Status.DRAFT,
        created_at=now or clock.now(),
    )
    return store.insert(mails, mail)


def activate_mail(
    mails: list[IceMail], name: str, trigger_at: datetime, now: datetime | None = None
) -> IceMail:
    """Arm a mail for delivery at trigger_at. Re-activating replaces the previous trigger."""
    mail = get_mail(mails, name)
    if mail.status == Status.SENT:
        raise InvalidStateError(f"'{name}' was already sent; create a new ICE mail instead")
    now = now or clock.now()
    trigger_at = as_local(trigger_at)
    if trigger_at <= now:
        raise InvalidTriggerError(
            f"trigger date {format_when(trigger_at)} is not in the future"
        )
    return _replace(mails, name, status=Status.ACTIVE, trigger_at=trigger_at)


def deactivate_mail(mails: list[IceMail], name: str) -> IceMail:
    mail = get_mail(mails, name)
    if mail.status != Status.ACTIVE:
        raise NotActiveError(f"'{name}' is not active ({mail.status})")
    return _replace(mails, name, status=Status.DRAFT, trigger_at=None)


def edit_mail(
    mails: list[IceMail],
    name: str,
    new_name: str | None = None,
    recipient: str | None = None,
    subject: str | None = None,
    body: str | None = None,
) -> IceMail:
    """Update the supplied content fields; status and trigger are untouched."""
    mail = get_mail(mails, name)
    if mail.status not in _EDITABLE:
        raise InvalidStateError(f"'{name}' was already sent and can no longer be edited")

    updates: dict[str, str] = {}
    if new_name is not None and new_name.strip() != mail.name:
        _validated(validate_content, new_name, "Name")
        new_name = new_name.strip()
        if store.find_by_name(mails, new_name) is not None:
            raise DuplicateNameError(new_name)
        updates["name"] = new_name
    if recipient is not None:
        updates["recipient"] = _validated(normalize_recipients, recipient)
    if subject is not None:
        updates["subject"] = subject
    if body is not None:
        updates["body"] = body

    if not updates:
        return mail
    return _replace(mails, name, **updates)


def remove_mail(mails: list[IceMail], name: str) -> IceMail:
    return mails.pop(_index(mails, name))


def mark_sent(mails: list[IceMail], name: str, sent_at: datetime) -> IceMail:
    """Commit a confirmed delivery. Only the scheduler calls this."""
    mail = get_mail(mails, name)
    if mail.status != Status.ACTIVE:
        raise InvalidStateError(f"'{name}' cannot be marked sent from {mail.status}")
    return _replace(mails, name, status=Status.SENT, sent_at=as_local(sent_at))


# ── cli ──────────────────────────────────────────────────────────────────────


def _store_path():
    return config.load_settings().store_path


@cli("simpleice", name="new")
def new(
    name: str,
    to: str | None = None,
    subject: str = "",
    body: str | None = None,
    file: str | None = None,
):
    """Create new ICE mail"""
    if not to:
        raise UsageError("--to required")
    text = _validated(read_body, body, file)
    if not text or not text.strip():
        raise UsageError("--body or --file required")
    with store.session(_store_path()) as mails:
        mail = create_mail(mails, name, to, subject=subject, body=text)
    echo(f"created {mail.name} [{mail.id[:8]}]")
    echo(f"run `simpleice activate '{mail.name}' <when>` to schedule it")


@cli("simpleice", name="edit")
def edit(
    name: str,
    rename: str | None = None,
    to: str | None = None,
    subject: str | None = None,
    body: str | None = None,
    file: str | None = None,
):
    """Edit an existing ICE mail"""
    text = _validated(read_body, body, file)
    if rename is None and to is None and subject is None and text is None:
        raise UsageError("nothing to update: use --rename, --to, --subject, --body or --file")
    with store.session(_store_path()) as mails:
        mail = edit_mail(mails, name, new_name=rename, recipient=to, subject=subject, body=text)
    echo(f"updated {mail.name}")


@cli("simpleice", name="activate")
def activate(name: str, when: str):
    """Set delivery date and activate an ICE mail"""
    if not when.strip():
        raise UsageError("Usage: simpleice activate <name> <when>")
    now = clock.now()
    trigger_at = _validated(parse_trigger, when, now)
    with store.session(_store_path()) as mails:
        mail = activate_mail(mails, name, trigger_at, now=now)
    echo(f"activated {mail.name} for {format_when(mail.trigger_at)}")


@cli("simpleice", name="deactivate")
def deactivate(name: str):
    """Deactivate an active ICE mail"""
    with store.session(_store_path()) as mails:
        mail = deactivate_mail(mails, name)
    echo(f"deactivated {mail.name}")


@cli("simpleice", name="remove")
def remove(name: str):
    """Remove an ICE mail"""
    with store.session(_store_path()) as mails:
        mail = remove_mail(mails, name)
    echo(f"removed {mail.name}")


@cli("simpleice", name="list")
def list_cmd():
    """List existing ICE mails"""
    mails = store.load(_store_path())
    if not mails:
        echo("no ICE mails to show")
        return
    now = clock.now()
    for mail in mails:
        echo(format_status_line(mail, now))


@cli("simpleice", name="show")
def show(name: str):
    """Show details of an ICE mail"""
    mails = store.load(_store_path())
    echo(format_detail(get_mail(mails, name)))
