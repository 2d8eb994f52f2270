"""Console logging setup and the optional JSONL run log."""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

from santa.core.types import MatchResult

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbosity: int = 0) -> None:
    """WARNING by default, INFO with ``-v``, DEBUG with ``-vv``."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


class EventLogger:
    """Writes run events as newline-delimited JSON.

    Only givers are recorded; who drew whom stays out of the log.
    """

    def __init__(self, path: str):
        self.path = path
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._file = open(path, "a")

    def _write(self, event: dict[str, Any]) -> None:
        event["timestamp"] = time.time()
        self._file.write(json.dumps(event) + "\n")

    def log_match(self, result: MatchResult) -> None:
        self._write({
            "event": "match",
            "participants": len(result.assignments),
            "attempts": result.attempts,
        })

    def log_delivery(self, recipient: str, dry_run: bool) -> None:
        self._write({
            "event": "delivery",
            "recipient": recipient,
            "dry_run": dry_run,
        })

    def close(self) -> None:
        self._file.flush()
        self._file.close()
