"""Voter turnout broken down by voter field value."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from elections.models import Ballot, Election, Voter
from elections.permissions import AnyUser, get_managed_election, get_viewable_election


@dataclass(frozen=True)
class VoterFieldSample:
    field: Mapping[str, object]
    has_voted: bool


def aggregate_voter_field_stats(
    fields: Sequence[str],
    voters: Iterable[VoterFieldSample],
) -> list[dict[str, object]]:
    """Count voters and voters-who-voted per field value.

    A voter without a value for a field is counted under ``""``. Options are
    sorted by value so repeated calls over the same rows agree.
    """
    voters = list(voters)

    stats: list[dict[str, object]] = []
    for field_name in fields:
        buckets: dict[str, list[int]] = {}
        for voter in voters:
            raw = voter.field.get(field_name) if isinstance(voter.field, Mapping) else None
            value = "" if raw is None else str(raw)
            bucket = buckets.setdefault(value, [0, 0])
            bucket[0] += 1
            if voter.has_voted:
                bucket[1] += 1

        stats.append(
            {
                "name": field_name,
                "options": [
                    {"name": value, "count": counts[0], "vote_count": counts[1]}
                    for value, counts in sorted(buckets.items())
                ],
            }
        )
    return stats


def election_voter_field_stats(election: Election) -> list[dict[str, object]]:
    field_names = list(election.voter_fields.order_by("created_at", "id").values_list("name", flat=True))
    if not field_names:
        return []

    voted_emails = set(
        Ballot.objects.filter(election=election).values_list("voter__email", flat=True)
    )
    samples = [
        VoterFieldSample(field=field or {}, has_voted=email in voted_emails)
        for email, field in Voter.objects.filter(election=election).values_list("email", "field")
    ]
    return aggregate_voter_field_stats(field_names, samples)


def get_voter_field_stats(*, user: AnyUser, election_id: int) -> list[dict[str, object]]:
    election = get_managed_election(user, election_id=election_id)
    return election_voter_field_stats(election)


def get_voter_field_stats_in_realtime(*, user: AnyUser, slug: str) -> list[dict[str, object]]:
    election = get_viewable_election(user, slug=slug)
    return election_voter_field_stats(election)
