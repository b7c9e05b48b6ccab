"""Delivery channels that send notification messages out of the process."""
from __future__ import annotations

import logging
import smtplib
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import AppConfig, EmailConfig, ProxyConfig, TelegramConfig
from .fanout import MessageChannel
from .prefix import MessagePrefix

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class ChannelError(Exception):
    """Raised when a channel could not hand a message over to its service."""


class _AsyncChannel:
    """Runs blocking sends on a private worker pool."""

    name = "channel"

    def __init__(self, *, max_workers: int = 5):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=self.name)

    def deliver(self, message: str) -> None:
        if message is None or not message.strip():
            raise ValueError("Message must not be empty")
        future = self._executor.submit(self.send, message)
        future.add_done_callback(self._log_outcome)

    def send(self, message: str) -> None:
        raise NotImplementedError

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _log_outcome(self, future: "Future[None]") -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to send %s message: %s", self.name, exc, exc_info=exc)
        else:
            logger.debug("%s message sent successfully", self.name)


class EmailChannel(_AsyncChannel):
    """Sends notifications by e-mail through an SMTP server.

    Public mailboxes authenticate with the full address over STARTTLS.
    Corporate servers that expect the bare login get the part before ``@``
    and a plain connection.
    """

    name = "email"

    def __init__(
        self,
        *,
        smtp_host: str,
        sender: str,
        password: str,
        recipient: str,
        smtp_port: int = 25,
        subject: str = "File Watcher",
        corporate: bool = False,
        timeout: float = 30.0,
        prefix: Optional[MessagePrefix] = None,
        max_workers: int = 5,
    ):
        if not sender or "@" not in sender:
            raise ValueError(f"Invalid sender email: {sender}")
        if not password or not password.strip():
            raise ValueError("Password must not be empty")
        if not recipient or "@" not in recipient:
            raise ValueError(f"Invalid recipient email: {recipient}")
        if not subject or not subject.strip():
            raise ValueError("Message subject must not be empty")
        if not smtp_host or not smtp_host.strip():
            raise ValueError("SMTP host must not be empty")
        super().__init__(max_workers=max_workers)
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._sender = sender
        self._login = sender.split("@")[0] if corporate else sender
        self._password = password
        self._recipient = recipient
        self._subject = subject
        self._use_tls = not corporate
        self._timeout = timeout
        self._prefix = prefix

    @classmethod
    def from_config(cls, config: EmailConfig, *, prefix: Optional[MessagePrefix] = None) -> "EmailChannel":
        return cls(
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
            sender=config.sender,
            password=config.password,
            recipient=config.recipient,
            subject=config.subject,
            corporate=config.corporate,
            timeout=config.timeout,
            prefix=prefix,
        )

    def build_message(self, text: str) -> EmailMessage:
        body = self._prefix.apply(text) if self._prefix is not None else text
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = self._recipient
        message["Subject"] = self._subject
        message.set_content(body)
        return message

    def send(self, message: str) -> None:
        email_message = self.build_message(message)
        with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            smtp.login(self._login, self._password)
            smtp.send_message(email_message)
        logger.debug("E-mail sent to %s via %s:%s", self._recipient, self._smtp_host, self._smtp_port)


class TelegramChannel(_AsyncChannel):
    """Sends notifications to a Telegram chat through the Bot API."""

    name = "telegram"

    def __init__(
        self,
        *,
        token: str,
        chat_id: str,
        proxy: Optional[ProxyConfig] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        api_url: str = TELEGRAM_API_URL,
        max_workers: int = 5,
    ):
        if not token or not token.strip():
            raise ValueError("Token must not be empty")
        if not chat_id or not str(chat_id).strip():
            raise ValueError("Chat ID must not be empty")
        if proxy is not None:
            _validate_proxy(proxy)
        super().__init__(max_workers=max_workers)
        self._chat_id = str(chat_id)
        self._timeout = timeout
        self._endpoint = f"{api_url}/bot{token}/sendMessage"
        self._session = session or requests.Session()
        if proxy is not None:
            self._session.proxies.update(_proxy_urls(proxy))

    @classmethod
    def from_config(cls, config: TelegramConfig) -> "TelegramChannel":
        return cls(token=config.token, chat_id=config.chat_id, proxy=config.proxy, timeout=config.timeout)

    def send(self, message: str) -> None:
        response = self._session.post(
            self._endpoint,
            json={"chat_id": self._chat_id, "text": message},
            timeout=self._timeout,
        )
        try:
            payload: Dict[str, Any] = response.json()
        except ValueError:
            payload = {}
        if response.status_code != 200 or not payload.get("ok", False):
            raise ChannelError(
                f"Telegram API returned an error. Code: {payload.get('error_code', response.status_code)}, "
                f"Description: {payload.get('description', response.text)}"
            )

    def shutdown(self, wait: bool = True) -> None:
        super().shutdown(wait=wait)
        self._session.close()


def build_channels(config: AppConfig) -> List[MessageChannel]:
    """Create the enabled channels, e-mail first."""

    channels: List[MessageChannel] = []
    if config.email is not None:
        prefix = MessagePrefix(config.prefix.text, config.prefix.timestamp_format)
        channels.append(EmailChannel.from_config(config.email, prefix=prefix))
        logger.info("E-mail notifications enabled for %s", config.email.recipient)
    if config.telegram is not None:
        channels.append(TelegramChannel.from_config(config.telegram))
        logger.info("Telegram notifications enabled")
    if not channels:
        logger.warning("No notification channels enabled; changes will only be logged")
    return channels


def _validate_proxy(proxy: ProxyConfig) -> None:
    if not proxy.host or not proxy.host.strip():
        raise ValueError("Proxy address must not be empty")
    if not 1 <= proxy.port <= 65535:
        raise ValueError("Port must be between 1 and 65535")


def _proxy_urls(proxy: ProxyConfig) -> Dict[str, str]:
    credentials = ""
    if proxy.username is not None and proxy.password is not None:
        credentials = f"{quote(proxy.username, safe='')}:{quote(proxy.password, safe='')}@"
    url = f"http://{credentials}{proxy.host}:{proxy.port}"
    return {"http": url, "https": url}
