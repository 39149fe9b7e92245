"""Realtime tabulation of recorded ballots.

Counts are recomputed from Vote rows on every call; nothing is cached, so the
same set of rows always yields the same output.
"""

import datetime
from dataclasses import dataclass

from django.db.models import Count
from django.utils import timezone

from elections.models import Candidate, Election, Position, Vote
from elections.permissions import AnyUser, get_viewable_election
from elections.schedule import election_is_ended, election_is_ongoing, realtime_cutoff


@dataclass(frozen=True)
class CandidateResult:
    # None while anonymized so ids cannot be matched against the public ballot.
    id: int | None
    first_name: str
    middle_name: str
    last_name: str
    partylist_acronym: str | None
    vote_count: int


@dataclass(frozen=True)
class PositionResult:
    id: int
    name: str
    order: int
    abstain_count: int
    candidates: tuple[CandidateResult, ...]


@dataclass(frozen=True)
class RealtimeResults:
    election: Election
    is_ongoing: bool
    is_ended: bool
    is_anonymized: bool
    # Votes recorded after this instant are not counted yet (free plan snapshot).
    counted_until: datetime.datetime | None
    positions: tuple[PositionResult, ...]


def should_anonymize(election: Election, *, now: datetime.datetime) -> bool:
    """Hide candidate identities while voting is open and names are not public."""
    if election.is_candidates_visible_in_realtime_when_ongoing:
        return False
    return election_is_ongoing(election, now=now)


def counting_cutoff(election: Election, *, now: datetime.datetime) -> datetime.datetime | None:
    if election.plan != Election.Plan.free:
        return None
    if election_is_ended(election, now=now):
        return None
    return realtime_cutoff(now=now)


def tabulate_election(election: Election, *, now: datetime.datetime | None = None) -> RealtimeResults:
    now = now or timezone.now()
    anonymize = should_anonymize(election, now=now)
    cutoff = counting_cutoff(election, now=now)

    positions = list(Position.objects.filter(election=election).order_by("order", "id"))

    # Creation order is the tie-break for equal counts (sorted() below is stable).
    candidates = list(
        Candidate.objects.filter(election=election, position__in=positions)
        .select_related("partylist")
        .order_by("created_at", "id")
    )

    votes_qs = Vote.objects.filter(election=election)
    if cutoff is not None:
        votes_qs = votes_qs.filter(created_at__lte=cutoff)

    candidate_counts: dict[int, int] = dict(
        votes_qs.filter(candidate__isnull=False)
        .order_by()
        .values("candidate_id")
        .annotate(n=Count("id"))
        .values_list("candidate_id", "n")
    )
    abstain_counts: dict[int, int] = dict(
        votes_qs.filter(candidate__isnull=True)
        .order_by()
        .values("position_id")
        .annotate(n=Count("id"))
        .values_list("position_id", "n")
    )

    candidates_by_position: dict[int, list[Candidate]] = {}
    for candidate in candidates:
        candidates_by_position.setdefault(candidate.position_id, []).append(candidate)

    position_results: list[PositionResult] = []
    for position in positions:
        ranked = sorted(
            candidates_by_position.get(position.id, []),
            key=lambda c: -candidate_counts.get(c.id, 0),
        )

        candidate_results: list[CandidateResult] = []
        for rank, candidate in enumerate(ranked, start=1):
            vote_count = int(candidate_counts.get(candidate.id, 0))
            if anonymize:
                candidate_results.append(
                    CandidateResult(
                        id=None,
                        first_name=f"Candidate {rank}",
                        middle_name="",
                        last_name="",
                        partylist_acronym=None,
                        vote_count=vote_count,
                    )
                )
            else:
                candidate_results.append(
                    CandidateResult(
                        id=candidate.id,
                        first_name=candidate.first_name,
                        middle_name=candidate.middle_name,
                        last_name=candidate.last_name,
                        partylist_acronym=candidate.partylist.acronym,
                        vote_count=vote_count,
                    )
                )

        position_results.append(
            PositionResult(
                id=position.id,
                name=position.name,
                order=position.order,
                abstain_count=int(abstain_counts.get(position.id, 0)),
                candidates=tuple(candidate_results),
            )
        )

    return RealtimeResults(
        election=election,
        is_ongoing=election_is_ongoing(election, now=now),
        is_ended=election_is_ended(election, now=now),
        is_anonymized=anonymize,
        counted_until=cutoff,
        positions=tuple(position_results),
    )


def realtime_results_payload(results: RealtimeResults) -> dict[str, object]:
    return {
        "election": {
            "id": results.election.id,
            "slug": results.election.slug,
            "name": results.election.name,
            "start_date": results.election.start_date,
            "end_date": results.election.end_date,
        },
        "is_ongoing": results.is_ongoing,
        "is_ended": results.is_ended,
        "is_anonymized": results.is_anonymized,
        "counted_until": results.counted_until,
        "positions": [
            {
                "id": position.id,
                "name": position.name,
                "order": position.order,
                "abstain_count": position.abstain_count,
                "candidates": [
                    {
                        "id": candidate.id,
                        "first_name": candidate.first_name,
                        "middle_name": candidate.middle_name,
                        "last_name": candidate.last_name,
                        "partylist": (
                            {"acronym": candidate.partylist_acronym}
                            if candidate.partylist_acronym is not None
                            else None
                        ),
                        "vote_count": candidate.vote_count,
                    }
                    for candidate in position.candidates
                ],
            }
            for position in results.positions
        ],
    }


def get_realtime_results(*, user: AnyUser, slug: str, now: datetime.datetime | None = None) -> RealtimeResults:
    election = get_viewable_election(user, slug=slug)
    return tabulate_election(election, now=now)
