"""Pure predicates over an election's voting window.

Casting and tabulation both go through these so the notion of "ongoing"
cannot drift between the two paths.
"""

import datetime

from django.utils import timezone

from elections.models import Election


def is_election_ongoing(
    *,
    now: datetime.datetime,
    start: datetime.datetime,
    end: datetime.datetime,
    hour_start: int | None = None,
    hour_end: int | None = None,
) -> bool:
    """True when ``now`` is inside [start, end] and, if set, the daily hour window.

    Both date bounds and both hour bounds are inclusive. Hours are evaluated
    in the current Django time zone.
    """
    if not (start <= now <= end):
        return False

    if hour_start is None or hour_end is None:
        return True

    hour = timezone.localtime(now).hour
    return hour_start <= hour <= hour_end


def is_election_ended(*, now: datetime.datetime, end: datetime.datetime) -> bool:
    return now > end


def realtime_cutoff(*, now: datetime.datetime) -> datetime.datetime:
    """Start of the local clock hour containing ``now``."""
    return timezone.localtime(now).replace(minute=0, second=0, microsecond=0)


def election_is_ongoing(election: Election, *, now: datetime.datetime | None = None) -> bool:
    now = now or timezone.now()
    if not election.has_voting_hours:
        return is_election_ongoing(now=now, start=election.start_date, end=election.end_date)
    return is_election_ongoing(
        now=now,
        start=election.start_date,
        end=election.end_date,
        hour_start=election.voting_hour_start,
        hour_end=election.voting_hour_end,
    )


def election_is_ended(election: Election, *, now: datetime.datetime | None = None) -> bool:
    return is_election_ended(now=now or timezone.now(), end=election.end_date)
