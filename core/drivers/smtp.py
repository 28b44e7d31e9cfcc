"""
SMTP mail driver.

Builds an ``email.message.EmailMessage`` from the payload and hands it to
aiosmtplib. Template references are passed along as a header, rendering
is left to the sending application.
"""

import mimetypes
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any

import aiosmtplib

from core.drivers.base import DispatchResult, Driver, DriverConfig, DriverKind, Payload
from core.errors import InvalidArgumentError, MissingConfigError
from core.logging import get_logger


logger = get_logger(__name__)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


class SMTPDriver(Driver):
    """
    Mail driver for any SMTP server.

    Config keys:
        host, port         required
        username, password optional login
        use_encryption     implicit TLS (SMTPS) when true
        sender             From address, defaults to username; one of
                           the two must be set
    """

    kind = DriverKind.SMTP
    REQUIRED_KEYS = ("host", "port")

    def __init__(self, config: DriverConfig):
        super().__init__(config)
        self.host = config["host"]
        self.port = int(config["port"])
        self.username = config.get("username") or None
        self.password = config.get("password") or None
        self.use_tls = _as_bool(config.get("use_encryption", False))
        self.sender = config.get("sender") or self.username
        if not self.sender:
            raise MissingConfigError(config.name, ["sender"])

    def build_message(self, payload: Payload) -> EmailMessage:
        """Convert a payload into a MIME message."""
        if not payload.destination:
            raise InvalidArgumentError("SMTP driver needs a recipient")

        message = EmailMessage()
        if self.sender:
            message["From"] = self.sender
        message["To"] = payload.destination
        message["Subject"] = payload.subject or ""
        message["Message-ID"] = make_msgid(domain=str(self.host))
        if payload.template_ref:
            message["X-Template-Ref"] = payload.template_ref

        content = payload.content
        if isinstance(content, bytes):
            filename = payload.name or "attachment"
            mime, _ = mimetypes.guess_type(filename)
            maintype, _, subtype = (mime or "application/octet-stream").partition("/")
            message.set_content("")
            message.add_attachment(
                content,
                maintype=maintype,
                subtype=subtype,
                filename=filename,
            )
        else:
            message.set_content(content or "")
        return message

    async def execute(self, payload: Payload) -> DispatchResult:
        message = self.build_message(payload)

        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            use_tls=self.use_tls,
        )

        logger.info(
            "Mail sent",
            driver=self.name,
            host=self.host,
            recipient=payload.destination,
        )
        return DispatchResult(location=message["Message-ID"], driver=self.name)
