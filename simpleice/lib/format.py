from datetime import datetime

from simpleice.core.models import IceMail, Status

from . import ansi
from .dates import format_relative, format_when

__all__ = ["format_detail", "format_status", "format_status_line"]

_STATUS_COLORS = {
    Status.DRAFT: ansi.gray,
    Status.INACTIVE: ansi.red,
    Status.ACTIVE: ansi.green,
    Status.SENT: ansi.blue,
}


def format_status(status: Status) -> str:
    return _STATUS_COLORS[status](status.value)


def format_status_line(mail: IceMail, now: datetime | None = None) -> str:
    """'name ~> Active (2026-12-01 09:00, in 3d) [1a2b3c4d]'"""
    when = ""
    if mail.status == Status.ACTIVE and mail.trigger_at:
        when = f" ({format_when(mail.trigger_at)}, {format_relative(mail.trigger_at, now)})"
    elif mail.status == Status.SENT:
        when = f" ({format_when(mail.sent_at)})"
    return f"{mail.name} ~> {format_status(mail.status)}{when} {ansi.muted(f'[{mail.id[:8]}]')}"


def format_detail(mail: IceMail, now: datetime | None = None) -> str:
    lines = [
        format_status_line(mail, now),
        "",
        f"To: {mail.recipient}",
        f"Subject: {mail.subject or '(no subject)'}",
    ]
    if mail.trigger_at:
        lines.append(f"Trigger: {format_when(mail.trigger_at)}")
    if mail.sent_at:
        lines.append(f"Sent: {format_when(mail.sent_at)}")
    lines.extend(["", mail.body])
    return "\n".join(lines)
