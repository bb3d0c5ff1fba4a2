"""Platform-wide learner leaderboard.

Every attempt counts: a learner's average is the mean percentage over
all of their attempts, retakes of the same module included. Only the
top LEADERBOARD_SIZE entries are published, so ranks beyond that are
never reported.

Ties on average score are broken by the earliest first attempt, then by
learner id, so the order never depends on store row order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from microlearn.core.models import QuizAttempt
from microlearn.db.store import AttemptStore, aquery

logger = structlog.get_logger(__name__)

LEADERBOARD_SIZE = 10


@dataclass
class LeaderboardEntry:
    """A learner's standing on the leaderboard."""

    rank: int
    learner_id: str
    learner_name: str
    average_score: float
    attempt_count: int
    first_attempt_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "learner_id": self.learner_id,
            "learner_name": self.learner_name,
            "average_score": self.average_score,
            "attempt_count": self.attempt_count,
        }


@dataclass
class Leaderboard:
    """Published top-N slice plus the requesting learner's rank."""

    entries: list[LeaderboardEntry] = field(default_factory=list)
    requesting_learner_id: str | None = None
    my_rank: int | None = None  # None means unranked

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entries": [e.to_dict() for e in self.entries],
            "requesting_learner_id": self.requesting_learner_id,
            "my_rank": self.my_rank,
        }


@dataclass
class _LearnerTotals:
    learner_id: str
    total_percentage: float = 0.0
    attempt_count: int = 0
    first_attempt_at: str = ""

    @property
    def average_score(self) -> float:
        return self.total_percentage / self.attempt_count if self.attempt_count else 0.0


def rank_learners(
    attempts: Sequence[QuizAttempt],
    learner_names: dict[str, str] | None = None,
    requesting_learner_id: str | None = None,
    limit: int = LEADERBOARD_SIZE,
) -> Leaderboard:
    """Rank learners by mean attempt percentage.

    Args:
        attempts: Every attempt in the system
        learner_names: Optional learner_id -> display name
        requesting_learner_id: Learner whose rank to report
        limit: Number of entries to publish

    Returns:
        Leaderboard sorted non-increasing by average_score
    """
    names = learner_names or {}
    totals: dict[str, _LearnerTotals] = {}

    for attempt in attempts:
        entry = totals.get(attempt.learner_id)
        if entry is None:
            entry = totals[attempt.learner_id] = _LearnerTotals(
                learner_id=attempt.learner_id,
                first_attempt_at=attempt.completed_at,
            )
        entry.total_percentage += attempt.percentage
        entry.attempt_count += 1
        if attempt.completed_at and (
            not entry.first_attempt_at or attempt.completed_at < entry.first_attempt_at
        ):
            entry.first_attempt_at = attempt.completed_at

    ordered = sorted(
        totals.values(),
        key=lambda t: (-t.average_score, t.first_attempt_at, t.learner_id),
    )[:limit]

    entries = [
        LeaderboardEntry(
            rank=position,
            learner_id=t.learner_id,
            learner_name=names.get(t.learner_id, "Unknown"),
            average_score=t.average_score,
            attempt_count=t.attempt_count,
            first_attempt_at=t.first_attempt_at,
        )
        for position, t in enumerate(ordered, start=1)
    ]

    my_rank = next(
        (e.rank for e in entries if e.learner_id == requesting_learner_id),
        None,
    )

    return Leaderboard(
        entries=entries,
        requesting_learner_id=requesting_learner_id,
        my_rank=my_rank,
    )


class LeaderboardRanker:
    """Reads all attempts and learner profiles, then ranks."""

    def __init__(self, store: AttemptStore, limit: int = LEADERBOARD_SIZE):
        self.store = store
        self.limit = limit

    async def compute(self, requesting_learner_id: str | None = None) -> Leaderboard:
        """Compute the published leaderboard.

        Raises:
            FetchError: If the store cannot be read
        """
        attempt_rows, profile_rows = await asyncio.gather(
            aquery(self.store, "quiz_attempts"),
            aquery(self.store, "profiles"),
        )

        leaderboard = rank_learners(
            [QuizAttempt.from_record(r) for r in attempt_rows],
            {p["id"]: p["full_name"] for p in profile_rows},
            requesting_learner_id=requesting_learner_id,
            limit=self.limit,
        )

        logger.debug(
            "leaderboard_computed",
            attempts=len(attempt_rows),
            entries=len(leaderboard.entries),
            my_rank=leaderboard.my_rank,
        )
        return leaderboard
