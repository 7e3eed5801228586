# notifier.py - email reminder sender for due-soon events
from __future__ import annotations

import logging
import os
import smtplib
from dataclasses import dataclass
from email.header import Header
from email.utils import formataddr
from typing import Mapping, Optional

from manifest import Event

logger = logging.getLogger(__name__)

SUBJECT_TAG = "「RED」"
SUBJECT = "Event reminder"
CONTENT_TYPE = "text/plain; charset=utf-8"
DEFAULT_SENDER_NAME = "Monitor"
# hosts that may receive credentials without TLS
LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}

TEMPLATE = (
    "From: {from_addr}\r\n"
    "To: {to_addr}\r\n"
    "Subject: {subject}\r\n"
    "Content-Type: {content_type}\r\n"
    "\r\n"
    "{body}"
)


@dataclass(frozen=True)
class SmtpSettings:
    addr: str = ""          # host:port, empty disables sending
    user: str = ""
    password: str = ""
    sender_name: str = DEFAULT_SENDER_NAME

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SmtpSettings":
        env = os.environ if environ is None else environ
        return cls(
            addr=env.get("REMINDER_SMTP_ADDR", "").strip(),
            user=env.get("REMINDER_SMTP_USER", ""),
            password=env.get("REMINDER_SMTP_PASS", ""),
            sender_name=env.get("REMINDER_SENDER_NAME") or DEFAULT_SENDER_NAME,
        )


@dataclass(frozen=True)
class ReminderMessage:
    from_addr: str
    to_addr: str
    subject: str
    content_type: str
    body: str


def split_address(addr: str) -> tuple[str, int]:
    """'smtp.example.com:587' -> ('smtp.example.com', 587). '[::1]:25' works too."""
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0 or not addr[end + 1:].startswith(":"):
            raise ValueError(f"address {addr!r}: missing port")
        host, port = addr[1:end], addr[end + 2:]
    else:
        host, sep, port = addr.rpartition(":")
        if not sep:
            raise ValueError(f"address {addr!r}: missing port")
        if ":" in host:
            raise ValueError(f"address {addr!r}: too many colons")
    if not host:
        raise ValueError(f"address {addr!r}: missing host")
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"address {addr!r}: invalid port {port!r}")
    return host, int(port)


def encode_header(value: str) -> str:
    """B-encode header text that is not plain ASCII."""
    if value.isascii():
        return value
    return Header(value, "utf-8").encode()


def reminder_body(title: str, day: int) -> str:
    if day > 0:
        return f'{day} days remain until "{title}"\n\n'
    return f'today is "{title}"\n\n'


def build_message(event: Event, day: int, settings: SmtpSettings) -> ReminderMessage:
    return ReminderMessage(
        from_addr=formataddr((settings.sender_name, settings.user), charset="utf-8"),
        to_addr=settings.user,
        subject=encode_header(f"{SUBJECT_TAG}{SUBJECT}"),
        content_type=CONTENT_TYPE,
        body=reminder_body(event.title, day),
    )


def render_message(msg: ReminderMessage) -> bytes:
    text = TEMPLATE.format(
        from_addr=msg.from_addr,
        to_addr=msg.to_addr,
        subject=msg.subject,
        content_type=msg.content_type,
        body=msg.body,
    )
    return text.encode("utf-8")


def _deliver(host: str, port: int, settings: SmtpSettings, data: bytes) -> None:
    with smtplib.SMTP(host, port) as s:
        s.ehlo()
        if s.has_extn("starttls"):
            s.starttls()
            s.ehlo()
        elif host not in LOCAL_HOSTS:
            raise smtplib.SMTPException(f"unencrypted connection to {host}, refusing to send credentials")
        s.user, s.password = settings.user, settings.password
        s.auth("PLAIN", s.auth_plain)
        s.sendmail(settings.user, [settings.user], data)


def send_reminder(event: Event, day: int, settings: SmtpSettings, dry_run: bool = False) -> bool:
    """Email one reminder to the configured mailbox. Returns True when it went out."""
    if not settings.addr:
        logger.warning("send notification skip: addr is empty")
        return False
    logger.info("sending notification: title=%r day=%d", event.title, day)
    try:
        host, port = split_address(settings.addr)
    except ValueError as e:
        logger.error("send notification fail: %s", e)
        return False

    try:
        data = render_message(build_message(event, day, settings))
    except UnicodeError as e:
        logger.error("send notification fail: render: %s", e)
        return False

    if dry_run:
        logger.info("dry run, not sending to %s:%d\n%s", host, port, data.decode("utf-8"))
        return False

    try:
        _deliver(host, port, settings, data)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("send notification fail: %s", e)
        return False
    logger.info("send notification success: title=%r", event.title)
    return True
