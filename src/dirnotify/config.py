"""Configuration loading utilities for the directory notifier."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # type: ignore

from .cipher import reveal
from .matchers import MatcherConfig, MatcherKind
from .narrator import DEFAULT_TIMESTAMP_FORMAT, VOCABULARIES
from .prefix import DEFAULT_PREFIX_TEXT, DEFAULT_PREFIX_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass
class WatchConfig:
    """One watched directory and the rules for notifying about it."""

    path: Path
    recursive: bool = False
    quiet_period: float = 1.0
    repeat_period: Optional[float] = None
    repeat_count: Optional[int] = None
    matchers: List[MatcherConfig] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)


@dataclass
class ProxyConfig:
    host: str
    port: int = 8080
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class EmailConfig:
    smtp_host: str
    sender: str
    password: str
    recipient: str
    smtp_port: int = 25
    subject: str = "File Watcher"
    corporate: bool = False
    timeout: float = 30.0


@dataclass
class TelegramConfig:
    token: str
    chat_id: str
    proxy: Optional[ProxyConfig] = None
    timeout: float = 30.0


@dataclass
class PrefixConfig:
    text: str = DEFAULT_PREFIX_TEXT
    timestamp_format: Optional[str] = DEFAULT_PREFIX_TIMESTAMP_FORMAT


@dataclass
class NarrationConfig:
    locale: str = "en"
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT


@dataclass
class ObserverConfig:
    """Options for the underlying watchdog observer."""

    polling: bool = False
    poll_interval: float = 1.0


@dataclass
class AppConfig:
    """Top-level configuration structure."""

    watches: List[WatchConfig]
    email: Optional[EmailConfig] = None
    telegram: Optional[TelegramConfig] = None
    prefix: PrefixConfig = field(default_factory=PrefixConfig)
    narration: NarrationConfig = field(default_factory=NarrationConfig)
    observer: ObserverConfig = field(default_factory=ObserverConfig)


def load_config(path: Path) -> AppConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc

    return parse_config(data, config_path=path)


def parse_config(data: Any, *, config_path: Path) -> AppConfig:
    """Validate an already-parsed configuration mapping."""

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    watches = _parse_watches(data.get("watches"), config_path=config_path)
    proxy = _parse_proxy(data.get("proxy"))
    email = _parse_email(data.get("email"))
    telegram = _parse_telegram(data.get("telegram"), proxy=proxy)

    return AppConfig(
        watches=watches,
        email=email,
        telegram=telegram,
        prefix=_parse_prefix(data.get("prefix")),
        narration=_parse_narration(data.get("narration")),
        observer=_parse_observer(data.get("observer")),
    )


def _parse_watches(raw: Any, *, config_path: Path) -> List[WatchConfig]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError("'watches' section must be a non-empty list")

    watches: List[WatchConfig] = []
    for index, item in enumerate(raw):
        prefix = f"watches[{index}]"
        if not isinstance(item, dict):
            raise ConfigError(f"{prefix} must be a mapping")

        path_raw = item.get("path")
        if not isinstance(path_raw, str) or not path_raw.strip():
            raise ConfigError(f"{prefix}.path must be a string")
        watch_path = Path(path_raw).expanduser()
        if not watch_path.is_absolute():
            watch_path = (config_path.parent / watch_path).resolve()

        recursive = item.get("recursive", False)
        if not isinstance(recursive, bool):
            raise ConfigError(f"{prefix}.recursive must be a boolean")

        quiet_period = _parse_number(item.get("quiet_period", 1.0), f"{prefix}.quiet_period", allow_zero=True)

        repeat_period: Optional[float] = None
        repeat_count: Optional[int] = None
        repeat_raw = item.get("repeat")
        if repeat_raw is not None:
            if not isinstance(repeat_raw, dict):
                raise ConfigError(f"{prefix}.repeat must be a mapping")
            repeat_period = _parse_number(repeat_raw.get("period"), f"{prefix}.repeat.period")
            repeat_count = _parse_positive_int(repeat_raw.get("count"), f"{prefix}.repeat.count")

        watch = WatchConfig(
            path=watch_path,
            recursive=recursive,
            quiet_period=quiet_period,
            repeat_period=repeat_period,
            repeat_count=repeat_count,
            matchers=_parse_matchers(item.get("matchers"), field_name=f"{prefix}.matchers"),
            exclude_patterns=_ensure_str_list(item.get("exclude_patterns", []), f"{prefix}.exclude_patterns"),
        )
        logger.info(
            "Loaded watch for %s (quiet=%ss, matchers=%s)",
            watch.path,
            watch.quiet_period,
            len(watch.matchers),
        )
        watches.append(watch)

    return watches


def _parse_matchers(raw: Any, *, field_name: str) -> List[MatcherConfig]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{field_name} must be a list")

    matchers: List[MatcherConfig] = []
    for index, item in enumerate(raw):
        item_name = f"{field_name}[{index}]"
        if not isinstance(item, dict):
            raise ConfigError(f"{item_name} must be a mapping")
        try:
            kind = MatcherKind(item.get("type"))
        except ValueError as exc:
            allowed = ", ".join(option.value for option in MatcherKind)
            raise ConfigError(f"{item_name}.type must be one of: {allowed}") from exc

        value = item.get("value")
        if kind is MatcherKind.ANY:
            value = None
        elif not isinstance(value, str):
            raise ConfigError(f"{item_name}.value must be a string")
        elif kind is MatcherKind.EXTENSION:
            if value and not value.strip():
                raise ConfigError(f"{item_name}.value cannot contain only whitespace")
        elif not value.strip():
            raise ConfigError(f"{item_name}.value cannot be blank")
        matchers.append(MatcherConfig(kind=kind, value=value))
    return matchers


def _parse_proxy(raw: Any) -> Optional[ProxyConfig]:
    section = _enabled_section(raw, "proxy")
    if section is None:
        return None
    username = _optional_str(section.get("username"), "proxy.username")
    password = _optional_str(section.get("password"), "proxy.password")
    if (username is None) != (password is None):
        raise ConfigError("proxy.username and proxy.password must be given together")
    return ProxyConfig(
        host=_required_str(section, "host", "proxy"),
        port=_parse_port(section.get("port", 8080), "proxy.port"),
        username=username,
        password=reveal(password) if password is not None else None,
    )


def _parse_email(raw: Any) -> Optional[EmailConfig]:
    section = _enabled_section(raw, "email")
    if section is None:
        return None
    corporate = section.get("corporate", False)
    if not isinstance(corporate, bool):
        raise ConfigError("email.corporate must be a boolean")
    return EmailConfig(
        smtp_host=_required_str(section, "smtp_host", "email"),
        smtp_port=_parse_port(section.get("smtp_port", 25), "email.smtp_port"),
        sender=_required_str(section, "sender", "email"),
        password=reveal(_required_str(section, "password", "email")),
        recipient=_required_str(section, "recipient", "email"),
        subject=str(section.get("subject") or "File Watcher"),
        corporate=corporate,
        timeout=_parse_number(section.get("timeout", 30.0), "email.timeout"),
    )


def _parse_telegram(raw: Any, *, proxy: Optional[ProxyConfig]) -> Optional[TelegramConfig]:
    section = _enabled_section(raw, "telegram")
    if section is None:
        return None
    chat_id = section.get("chat_id")
    if isinstance(chat_id, int) and not isinstance(chat_id, bool):
        chat_id = str(chat_id)
    if not isinstance(chat_id, str) or not chat_id.strip():
        raise ConfigError("telegram.chat_id must be a string or integer")
    return TelegramConfig(
        token=reveal(_required_str(section, "token", "telegram")),
        chat_id=reveal(chat_id),
        proxy=proxy,
        timeout=_parse_number(section.get("timeout", 30.0), "telegram.timeout"),
    )


def _parse_prefix(raw: Any) -> PrefixConfig:
    if raw is None:
        return PrefixConfig()
    if not isinstance(raw, dict):
        raise ConfigError("'prefix' section must be a mapping")
    text = raw.get("text", DEFAULT_PREFIX_TEXT)
    if not isinstance(text, str) or not text.strip():
        raise ConfigError("prefix.text must be a non-empty string")
    timestamp_format = _optional_str(
        raw.get("timestamp_format", DEFAULT_PREFIX_TIMESTAMP_FORMAT), "prefix.timestamp_format"
    )
    return PrefixConfig(text=text, timestamp_format=timestamp_format)


def _parse_narration(raw: Any) -> NarrationConfig:
    if raw is None:
        return NarrationConfig()
    if not isinstance(raw, dict):
        raise ConfigError("'narration' section must be a mapping")
    locale = raw.get("locale", "en")
    if locale not in VOCABULARIES:
        allowed = ", ".join(sorted(VOCABULARIES))
        raise ConfigError(f"narration.locale must be one of: {allowed}")
    timestamp_format = raw.get("timestamp_format", DEFAULT_TIMESTAMP_FORMAT)
    if not isinstance(timestamp_format, str) or not timestamp_format:
        raise ConfigError("narration.timestamp_format must be a non-empty string")
    return NarrationConfig(locale=locale, timestamp_format=timestamp_format)


def _parse_observer(raw: Any) -> ObserverConfig:
    if raw is None:
        return ObserverConfig()
    if not isinstance(raw, dict):
        raise ConfigError("'observer' section must be a mapping")
    polling = raw.get("polling", False)
    if not isinstance(polling, bool):
        raise ConfigError("observer.polling must be a boolean")
    poll_interval = _parse_number(raw.get("poll_interval", 1.0), "observer.poll_interval")
    return ObserverConfig(polling=polling, poll_interval=poll_interval)


def _enabled_section(raw: Any, name: str) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigError(f"{name}.enabled must be a boolean")
    return raw if enabled else None


def _required_str(section: Dict[str, Any], key: str, section_name: str) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{section_name}.{key} must be a non-empty string")
    return value


def _optional_str(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{field_name} must be a string")
    return value


def _parse_number(value: Any, field_name: str, *, allow_zero: bool = False) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be numeric")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be numeric") from exc
    if number < 0 or (number == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ConfigError(f"{field_name} must be {qualifier}")
    return number


def _parse_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    raise ConfigError(f"{field_name} must be a positive integer")


def _parse_port(value: Any, field_name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 65535:
        return value
    raise ConfigError(f"{field_name} must be an integer between 1 and 65535")


def _ensure_str_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: List[str] = []
    for elem in value:
        if not isinstance(elem, str):
            raise ConfigError(f"{field_name} must contain only strings")
        items.append(elem)
    return items
