"""Core domain types for secret-santa matching."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Participant:
    name: str
    email: str
    address: str                                   # free-text mailing block
    excludes: frozenset[str] = field(default_factory=frozenset)

    @property
    def display(self) -> str:
        """Name and email in mailbox form, e.g. ``Jo Smith <jo@example.com>``."""
        return f"{self.name} <{self.email}>"

    def forbidden(self) -> frozenset[str]:
        """Names this participant may never draw, itself included."""
        return self.excludes | {self.name}


@dataclass(frozen=True)
class Assignment:
    giver: Participant
    receiver: Participant


@dataclass
class MatchResult:
    """A complete set of assignments plus the number of attempts it took."""
    assignments: list[Assignment]
    attempts: int
