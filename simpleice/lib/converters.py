import uuid
from datetime import datetime
from typing import Any

from simpleice.core.models import IceMail, Status

from .dates import as_local, parse_timestamp

Record = dict[str, Any]

_LEGACY_KEYS = {"description", "message", "emails", "active"}


def _iso(dt: datetime | None) -> str | None:
    return as_local(dt).isoformat() if dt else None


def _text(record: Record, key: str) -> str:
    val = record.get(key)
    if val is None:
        return ""
    if not isinstance(val, str):
        raise ValueError(f"field '{key}' must be a string, got {type(val).__name__}")
    return val


def is_legacy(record: Record) -> bool:
    """Records written by the original simpleice: description/message/emails/active."""
    return "name" not in record and bool(_LEGACY_KEYS & record.keys())


def mail_to_record(mail: IceMail) -> Record:
    return {
        "id": mail.id,
        "name": mail.name,
        "recipient": mail.recipient,
        "subject": mail.subject,
        "body": mail.body,
        "status": mail.status.value,
        "trigger_at": _iso(mail.trigger_at),
        "sent_at": _iso(mail.sent_at),
        "created_at": _iso(mail.created_at),
    }


def _normalize(mail: IceMail) -> IceMail:
    """Drop timestamps the status does not allow."""
    status = mail.status
    trigger_at = mail.trigger_at
    sent_at = mail.sent_at
    if status == Status.ACTIVE and trigger_at is None:
        status = Status.DRAFT
    if status in (Status.DRAFT, Status.INACTIVE):
        trigger_at = None
    if status != Status.SENT:
        sent_at = None
    return IceMail(
        id=mail.id,
        name=mail.name,
        recipient=mail.recipient,
        subject=mail.subject,
        body=mail.body,
        status=status,
        trigger_at=trigger_at,
        sent_at=sent_at,
        created_at=mail.created_at,
    )


def _legacy_to_mail(record: Record) -> IceMail:
    description = _text(record, "description")
    if not description.strip():
        raise ValueError("record has no description")
    emails = record.get("emails") or []
    if not isinstance(emails, list):
        raise ValueError("field 'emails' must be a list")
    active = bool(record.get("active"))
    return _normalize(
        IceMail(
            id=str(uuid.uuid4()),
            name=description,
            recipient=",".join(str(e).strip() for e in emails),
            subject=description,
            body=_text(record, "message"),
            status=Status.ACTIVE if active else Status.INACTIVE,
            trigger_at=parse_timestamp(record.get("send_date")) if active else None,
        )
    )


def record_to_mail(record: Record) -> IceMail:
    """
    Converts one persisted JSON object into an IceMail.
    Unknown keys are ignored; missing optional fields default per status.
    Raises ValueError/KeyError on malformed input.
    """
    if not isinstance(record, dict):
        raise ValueError(f"expected an object, got {type(record).__name__}")
    if is_legacy(record):
        return _legacy_to_mail(record)

    name = _text(record, "name")
    if not name.strip():
        raise ValueError("record has no name")
    raw_status = record.get("status", Status.DRAFT.value)
    try:
        status = Status(raw_status)
    except ValueError:
        raise ValueError(f"unknown status {raw_status!r}") from None

    return _normalize(
        IceMail(
            id=_text(record, "id") or str(uuid.uuid4()),
            name=name,
            recipient=_text(record, "recipient"),
            subject=_text(record, "subject"),
            body=_text(record, "body"),
            status=status,
            trigger_at=parse_timestamp(record.get("trigger_at")),
            sent_at=parse_timestamp(record.get("sent_at")),
            created_at=parse_timestamp(record.get("created_at")),
        )
    )
