"""Randomised greedy matching of givers to receivers.

Provides a ``Matcher`` interface and the ``GreedyRandomMatcher``
implementation. Each attempt walks the givers once, most-constrained
first, drawing a receiver uniformly from whoever is still available.
An attempt that gets stuck is thrown away whole and the next attempt
starts from a fresh receiver pool; there is no backtracking inside an
attempt.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

from santa.core.config import validate_participants
from santa.core.errors import InfeasibleMatchingError
from santa.core.rng import SeededRNG
from santa.core.types import Assignment, MatchResult, Participant

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 1000


@dataclass
class AttemptResult:
    ok: bool
    assignments: list[Assignment] = field(default_factory=list)
    stuck_on: Optional[str] = None      # giver left without a receiver


class Matcher(ABC):
    """Interface for giver/receiver matching strategies."""

    @abstractmethod
    def solve(
        self,
        participants: Iterable[Participant],
        rng: SeededRNG,
    ) -> MatchResult:
        """Return a complete assignment and the attempts it took."""
        ...

    def match(
        self,
        participants: Iterable[Participant],
        rng: SeededRNG,
    ) -> list[Assignment]:
        return self.solve(participants, rng).assignments


def processing_order(participants: Iterable[Participant]) -> list[Participant]:
    """Givers with the most exclusions first; ties keep input order."""
    return sorted(participants, key=lambda p: len(p.excludes), reverse=True)


def attempt(order: list[Participant], rng: SeededRNG) -> AttemptResult:
    """Run one greedy pass over *order*.

    The receiver pool is owned by this call and rebuilt every time.
    """
    remaining = {p.name: p for p in order}
    assignments: list[Assignment] = []

    for giver in order:
        forbidden = giver.forbidden()
        choices = [p for name, p in remaining.items() if name not in forbidden]
        if not choices:
            return AttemptResult(False, assignments, stuck_on=giver.name)
        receiver = rng.choice(choices)
        assignments.append(Assignment(giver, receiver))
        del remaining[receiver.name]

    return AttemptResult(True, assignments)


class GreedyRandomMatcher(Matcher):
    """Retry-until-success greedy matcher.

    Fails with :class:`InfeasibleMatchingError` once *max_attempts* passes
    have all got stuck, which happens every time when the exclusions
    leave no valid assignment (and, rarely, by bad luck when they do).
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def solve(
        self,
        participants: Iterable[Participant],
        rng: SeededRNG,
    ) -> MatchResult:
        participants = list(participants)
        validate_participants(participants)
        order = processing_order(participants)

        for n in range(1, self.max_attempts + 1):
            result = attempt(order, rng)
            if result.ok:
                logger.info(
                    "Matched %d participants in %d attempt(s)",
                    len(order), n,
                )
                return MatchResult(result.assignments, attempts=n)
            logger.debug("Attempt %d: no choices left for %s", n, result.stuck_on)

        raise InfeasibleMatchingError(self.max_attempts)


def match_participants(
    participants: Iterable[Participant],
    rng: Optional[SeededRNG] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[Assignment]:
    """Assign every participant a receiver, honouring exclusions."""
    matcher = GreedyRandomMatcher(max_attempts=max_attempts)
    return matcher.match(participants, rng or SeededRNG())
