import functools
from collections.abc import Callable
from datetime import datetime

from . import store
from .config import MailAccount, Settings
from .core.errors import DeliveryError
from .core.models import CycleReport, IceMail, Status
from .lib import clock
from .lib.log import append_log
from .mails import mark_sent

Sender = Callable[[MailAccount, str, str, str], None]
Logger = Callable[[str], None]

__all__ = ["Sender", "due_mails", "is_due", "run_check"]


def is_due(mail: IceMail, now: datetime) -> bool:
    return mail.status == Status.ACTIVE and mail.trigger_at is not None and mail.trigger_at <= now


def due_mails(mails: list[IceMail], now: datetime) -> list[IceMail]:
    """Due mails, oldest trigger first; ties broken by id so runs are repeatable."""
    due = [m for m in mails if is_due(m, now)]
    return sorted(due, key=lambda m: (m.trigger_at, m.id))


def _default_sender() -> Sender:
    from .adapters.smtp import send_message

    return send_message


def run_check(
    settings: Settings,
    send: Sender | None = None,
    now: datetime | None = None,
    log: Logger | None = None,
) -> CycleReport:
    """One check cycle: deliver every due mail, then persist all transitions in one save.

    A delivery failure leaves that mail Active for the next cycle and never stops
    the others. Nothing is written until every due mail was attempted, so a crash
    mid-cycle means already-delivered mails go out again next time.
    Log lines are written only after the store was saved.
    """
    send = send or _default_sender()
    now = now or clock.now()
    log = log or functools.partial(append_log, settings.log_path)
    report = CycleReport()
    lines: list[str] = []
    with store.session(settings.store_path) as mails:
        for mail in due_mails(mails, now):
            try:
                send(settings.account, mail.recipient, mail.subject, mail.body)
            except DeliveryError as e:
                report.failed.append((mail.name, str(e)))
                lines.append(f"[check] failed '{mail.name}' → {mail.recipient}: {e}")
                continue
            mark_sent(mails, mail.name, now)
            report.sent.append(mail.name)
            lines.append(f"[check] sent '{mail.name}' → {mail.recipient}")

    if report.sent or report.failed:
        lines.append(f"[check] cycle done: sent {report.sent_count}, failed {report.failed_count}")
    for line in lines:
        log(line)
    return report
