"""Exceptions raised by the race rating engine."""

from __future__ import annotations

from typing import Any


class RatingEngineError(ValueError):
    """Base class for rejected rating inputs.

    Attributes:
        message: Human-readable error description
        details: Extra context for logging
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MissingRaceResultError(RatingEngineError):
    """Raised when a rostered competitor has no recorded finishing rank."""

    def __init__(self, competitor_ids: list[int]) -> None:
        super().__init__(
            message=f"Missing race result for competitor(s): {competitor_ids}",
            details={"competitor_ids": competitor_ids},
        )


class UnknownCompetitorError(RatingEngineError):
    """Raised when a result references a competitor that is not on the roster."""

    def __init__(self, competitor_ids: list[int]) -> None:
        super().__init__(
            message=f"Race result references unknown competitor(s): {competitor_ids}",
            details={"competitor_ids": competitor_ids},
        )


class DuplicateCompetitorError(RatingEngineError):
    """Raised when the same competitor appears more than once in a race."""

    def __init__(self, competitor_ids: list[int]) -> None:
        super().__init__(
            message=f"Duplicate competitor(s) in race: {competitor_ids}",
            details={"competitor_ids": competitor_ids},
        )


class InvalidRankError(RatingEngineError):
    """Raised when a finishing rank is not an integer."""

    def __init__(self, competitor_id: int, rank: object) -> None:
        super().__init__(
            message=f"Invalid finishing rank for competitor {competitor_id}: {rank!r}",
            details={"competitor_id": competitor_id, "rank": rank},
        )


class RaceOrderError(RatingEngineError):
    """Raised when races are replayed out of chronological order."""

    def __init__(self, race_id: int, event_time: object, last_event_time: object) -> None:
        super().__init__(
            message=(
                f"race_id={race_id} at {event_time} is earlier than the last "
                f"processed race at {last_event_time}"
            ),
            details={
                "race_id": race_id,
                "event_time": event_time,
                "last_event_time": last_event_time,
            },
        )


__all__ = [
    "DuplicateCompetitorError",
    "InvalidRankError",
    "MissingRaceResultError",
    "RaceOrderError",
    "RatingEngineError",
    "UnknownCompetitorError",
]
