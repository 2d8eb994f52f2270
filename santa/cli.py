"""CLI entry-point: draw secret-santa pairs and optionally email them out."""
from __future__ import annotations

import argparse
import logging
import sys
from email.message import EmailMessage
from typing import Optional

from santa.core.config import (
    DEFAULT_EMAILCONF_FILE,
    DEFAULT_PARTICIPANTS_FILE,
    EmailConfig,
    load_email_config,
    load_participants,
)
from santa.core.errors import (
    ConfigError,
    DeliveryError,
    InfeasibleMatchingError,
)
from santa.core.logging import EventLogger, configure_logging
from santa.core.rng import SeededRNG
from santa.core.types import Assignment
from santa.matching.matcher import DEFAULT_MAX_ATTEMPTS, GreedyRandomMatcher
from santa.notify.notifier import Notifier
from santa.notify.transport import RecordingTransport, SmtpTransport, Transport

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_INFEASIBLE = 3
EXIT_DELIVERY = 4

_SHOWN_HEADERS = ("From", "To", "Subject")

_EPILOG = """\
examples:
  secretsanta -v                  print the pairings
  secretsanta --sendmail-dryrun   print the emails instead of sending them
  secretsanta --sendmail          send the emails via SMTP
"""


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="secretsanta",
        description=(
            "Read participants from a YAML file, match them randomly, and "
            "optionally email each participant their match."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-p", "--participants", type=str,
                   default=DEFAULT_PARTICIPANTS_FILE,
                   help="Participants YAML file (default: %(default)s)")
    p.add_argument("-m", "--emailconf", type=str,
                   default=DEFAULT_EMAILCONF_FILE,
                   help="Email configuration YAML file (default: %(default)s)")
    p.add_argument("--sendmail", action="store_true",
                   help="Send email to the participants")
    p.add_argument("--sendmail-dryrun", dest="dry_run", action="store_true",
                   help="Compose email but print it instead of sending")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="Print the pairings; repeat for debug logging")
    p.add_argument("--seed", type=int, default=None,
                   help="Seed the random draw (for reproducible runs)")
    p.add_argument("--max-attempts", type=int, default=DEFAULT_MAX_ATTEMPTS,
                   help="Matching attempts before giving up (default: %(default)s)")
    p.add_argument("--log-path", type=str, default=None,
                   help="Append run events as JSONL to this file")
    return p


def _check_flags(args: argparse.Namespace) -> None:
    if args.sendmail and args.dry_run:
        raise ConfigError("--sendmail and --sendmail-dryrun cannot be used together")
    if args.max_attempts < 1:
        raise ConfigError("--max-attempts must be at least 1")


def _print_matches(assignments: list[Assignment]) -> None:
    print("Matches:")
    for a in assignments:
        print(f"{a.giver.name} => {a.receiver.name}")


def _format_message(message: EmailMessage) -> str:
    """Headers plus decoded body, as a person would read the mail."""
    lines = [f"{name}: {message[name]}" for name in _SHOWN_HEADERS]
    return "\n".join(lines) + "\n\n" + message.get_content()


def _open_event_log(path: str) -> EventLogger:
    try:
        return EventLogger(path)
    except OSError as exc:
        raise ConfigError(
            f"cannot open log file {path}: {exc.strerror or exc}"
        ) from exc


def _send_all(
    email_cfg: EmailConfig,
    assignments: list[Assignment],
    dry_run: bool,
    event_logger: Optional[EventLogger],
) -> None:
    recorder: Optional[RecordingTransport] = None
    if dry_run:
        recorder = RecordingTransport()
        transport: Transport = recorder
    else:
        transport = SmtpTransport(email_cfg.smtp)

    notifier = Notifier(email_cfg, transport, dry_run=dry_run,
                        event_logger=event_logger)
    for a in assignments:
        print(f"{'(dryrun) ' if dry_run else ''}"
              f"Sending mail to '{a.giver.display}'")
        notifier.send(a)

    if recorder is not None:
        for n, message in enumerate(recorder.deliveries, 1):
            print(f"Message {n}:")
            print(_format_message(message))


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command line; returns the process exit code."""
    event_logger: Optional[EventLogger] = None
    try:
        _check_flags(args)
        participants = load_participants(args.participants)
        email_cfg = None
        if args.sendmail or args.dry_run:
            email_cfg = load_email_config(args.emailconf)

        if args.log_path:
            event_logger = _open_event_log(args.log_path)

        rng = SeededRNG(args.seed)
        matcher = GreedyRandomMatcher(max_attempts=args.max_attempts)
        result = matcher.solve(participants, rng)
        if event_logger is not None:
            event_logger.log_match(result)

        if args.verbose:
            _print_matches(result.assignments)

        if email_cfg is not None:
            _send_all(email_cfg, result.assignments, args.dry_run, event_logger)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except InfeasibleMatchingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INFEASIBLE
    except DeliveryError as exc:
        logger.debug("Delivery failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_DELIVERY
    finally:
        if event_logger is not None:
            event_logger.close()
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
