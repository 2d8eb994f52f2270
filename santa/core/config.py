"""Configuration loading, validation and defaults."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from email.errors import HeaderParseError
from email.headerregistry import Address
from typing import Any, Iterable, Optional, Union

import yaml

from santa.core.errors import ConfigError
from santa.core.types import Participant

logger = logging.getLogger(__name__)

DEFAULT_PARTICIPANTS_FILE = "participants.yml"
DEFAULT_EMAILCONF_FILE = "emailconf.yml"


@dataclass
class MessageHeaderConfig:
    from_addr: str
    subject: str


@dataclass
class SmtpConfig:
    host: str = "localhost"
    port: Optional[int] = None          # None → derived from ``ssl``
    ssl: Union[bool, str] = False       # False | True | "starttls"
    sasl_username: Optional[str] = None
    sasl_password: Optional[str] = None
    timeout: float = 120.0
    helo: Optional[str] = None

    @property
    def use_starttls(self) -> bool:
        return self.ssl == "starttls"

    @property
    def use_ssl(self) -> bool:
        return self.ssl is True

    @property
    def resolved_port(self) -> int:
        if self.port is not None:
            return self.port
        if self.use_ssl:
            return 465
        if self.use_starttls:
            return 587
        return 25


@dataclass
class EmailConfig:
    header: MessageHeaderConfig
    body: str
    smtp: SmtpConfig = field(default_factory=SmtpConfig)


def _read_yaml(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc.strerror or exc}") from exc
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc


def _is_text(value: Any) -> bool:
    """YAML strings and numbers count as text; booleans do not."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _require_str(record: dict[str, Any], key: str, where: str) -> str:
    if key not in record or record[key] is None:
        raise ConfigError(f"{where}: missing required field '{key}'")
    value = record[key]
    if not _is_text(value):
        raise ConfigError(f"{where}: field '{key}' must be a string")
    return str(value)


# ── participants ─────────────────────────────────────────────────────────────

def _to_participant(record: Any, index: int) -> Participant:
    where = f"participant #{index + 1}"
    if not isinstance(record, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(record).__name__}")
    name = _require_str(record, "name", where)
    where = f"participant '{name}'"
    email = _require_str(record, "email", where)
    address = _require_str(record, "address", where)
    try:
        Address(display_name=name, addr_spec=email)
    except (ValueError, HeaderParseError) as exc:
        raise ConfigError(f"{where}: invalid email address '{email}'") from exc

    excludes = record.get("excludes") or []
    if not isinstance(excludes, list):
        raise ConfigError(f"{where}: 'excludes' must be a list of names")
    for other in excludes:
        if not _is_text(other):
            raise ConfigError(f"{where}: 'excludes' entries must be names")

    return Participant(
        name=name,
        email=email,
        address=address,
        excludes=frozenset(str(other) for other in excludes),
    )


def parse_participants(data: Any) -> list[Participant]:
    """Turn an already-loaded document into validated participants."""
    if not isinstance(data, dict):
        raise ConfigError("participants file must contain a mapping with a 'participants' list")
    records = data.get("participants")
    if not isinstance(records, list) or not records:
        raise ConfigError("'participants' must be a non-empty list")
    participants = [_to_participant(r, i) for i, r in enumerate(records)]
    validate_participants(participants)
    return participants


def load_participants(path: str) -> list[Participant]:
    """Load the participant list from a YAML file."""
    participants = parse_participants(_read_yaml(path))
    logger.info("Loaded %d participants from %s", len(participants), path)
    return participants


def validate_participants(participants: Iterable[Participant]) -> None:
    """Check names are unique and every exclusion refers to a known name."""
    participants = list(participants)
    if not participants:
        raise ConfigError("no participants given")

    names: set[str] = set()
    for p in participants:
        if p.name in names:
            raise ConfigError(f"duplicate participant name '{p.name}'")
        names.add(p.name)

    for p in participants:
        unknown = sorted(p.excludes - names)
        if unknown:
            raise ConfigError(
                f"participant '{p.name}' excludes unknown "
                f"participant(s): {', '.join(unknown)}"
            )


# ── email configuration ──────────────────────────────────────────────────────

_SMTP_KEYS = (
    "host", "port", "ssl", "sasl_username", "sasl_password", "timeout", "helo",
)


def _parse_ssl(value: Any) -> Union[bool, str]:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "starttls":
            return "starttls"
        if lowered in ("", "0", "false", "no", "off"):
            return False
        if lowered in ("1", "true", "yes", "on", "ssl"):
            return True
        raise ConfigError(f"smtpconf: unrecognised 'ssl' value '{value}'")
    return bool(value)


def _to_smtp_config(data: Any) -> SmtpConfig:
    cfg = SmtpConfig()
    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ConfigError("'smtpconf' must be a mapping")

    for key, value in data.items():
        if key not in _SMTP_KEYS:
            logger.warning("Ignoring unknown smtpconf key '%s'", key)
            continue
        if value is None:
            continue
        if key == "ssl":
            cfg.ssl = _parse_ssl(value)
        elif key == "port":
            try:
                cfg.port = int(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"smtpconf: 'port' must be an integer, got {value!r}") from exc
        elif key == "timeout":
            try:
                cfg.timeout = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"smtpconf: 'timeout' must be a number, got {value!r}") from exc
        else:
            setattr(cfg, key, str(value))
    return cfg


def parse_email_config(data: Any) -> EmailConfig:
    """Turn an already-loaded document into an :class:`EmailConfig`."""
    if not isinstance(data, dict):
        raise ConfigError("email configuration must be a mapping")

    hdr = data.get("msghdr")
    if not isinstance(hdr, dict):
        raise ConfigError("email configuration: missing 'msghdr' section")
    header = MessageHeaderConfig(
        from_addr=_require_str(hdr, "from", "msghdr"),
        subject=_require_str(hdr, "subject", "msghdr"),
    )

    body = data.get("msgbody")
    if not isinstance(body, str):
        raise ConfigError("email configuration: missing 'msgbody' template")

    return EmailConfig(
        header=header,
        body=body,
        smtp=_to_smtp_config(data.get("smtpconf")),
    )


def load_email_config(path: str) -> EmailConfig:
    """Load message headers, body template and SMTP settings from YAML."""
    cfg = parse_email_config(_read_yaml(path))
    logger.info("Loaded email configuration from %s", path)
    return cfg
