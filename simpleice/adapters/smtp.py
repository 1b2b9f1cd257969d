import smtplib
import socket
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

from simpleice.config import MailAccount
from simpleice.core.errors import DeliveryError

_PERMANENT = (
    smtplib.SMTPAuthenticationError,
    smtplib.SMTPRecipientsRefused,
    smtplib.SMTPNotSupportedError,
)


def build_message(account: MailAccount, recipient: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = account.sender or account.username
    msg["To"] = recipient
    msg["Subject"] = subject or "(no subject)"
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid(domain=account.host or None)
    msg.set_content(body)
    return msg


def _connect(account: MailAccount) -> smtplib.SMTP:
    if account.port == 465:
        return smtplib.SMTP_SSL(account.host, account.port, timeout=account.timeout)
    conn = smtplib.SMTP(account.host, account.port, timeout=account.timeout)
    if account.starttls:
        try:
            conn.starttls()
        except Exception:
            conn.close()
            raise
    return conn


def _classify(exc: Exception) -> DeliveryError:
    if isinstance(exc, _PERMANENT):
        return DeliveryError(f"{type(exc).__name__}: {exc}", transient=False)
    if isinstance(exc, smtplib.SMTPResponseException):
        # 4xx replies are temporary by definition, 5xx are not
        return DeliveryError(
            f"SMTP {exc.smtp_code}: {exc.smtp_error!r}", transient=exc.smtp_code < 500
        )
    if isinstance(exc, socket.timeout):
        return DeliveryError(f"timed out: {exc}", transient=True)
    return DeliveryError(f"{type(exc).__name__}: {exc}", transient=True)


def send_message(account: MailAccount, recipient: str, subject: str, body: str) -> None:
    """Deliver one message to every address in recipient (comma-separated).

    Raises DeliveryError; transient for network trouble and 4xx replies,
    permanent for auth failures, refused addresses and other 5xx replies.
    """
    if not account.host:
        raise DeliveryError("no SMTP host configured", transient=False)
    addresses = [a.strip() for a in recipient.split(",") if a.strip()]
    if not addresses:
        raise DeliveryError("no recipients", transient=False)

    try:
        msg = build_message(account, ", ".join(addresses), subject, body)
    except (ValueError, UnicodeError) as e:
        raise DeliveryError(f"cannot build message: {e}", transient=False) from e
    try:
        with _connect(account) as conn:
            if account.username:
                conn.login(account.username, account.secret)
            conn.send_message(msg, to_addrs=addresses)
    except (smtplib.SMTPException, OSError) as e:
        raise _classify(e) from e
