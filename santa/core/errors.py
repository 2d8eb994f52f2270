"""Exception hierarchy shared by the config, matching and notify layers."""
from __future__ import annotations


class SantaError(Exception):
    """Base class for every error that should end a run."""


class ConfigError(SantaError):
    """Bad or missing configuration, or conflicting command-line flags."""


class InfeasibleMatchingError(SantaError):
    """No complete assignment was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Unable to successfully compute a complete set of matches in "
            f"{attempts} attempts.\n"
            f"Please try reducing the set of excludes."
        )


class DeliveryError(SantaError):
    """The mail transport failed to deliver a message."""

    def __init__(self, recipient: str, reason: str):
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Failed to send mail to '{recipient}': {reason}")
