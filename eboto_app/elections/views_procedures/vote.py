"""castVote."""

from django.http import HttpRequest

from elections.permissions import require_login
from elections.procedures import procedure
from elections.views_procedures._helpers import _enforce_vote_rate_limit, _payload_id
from elections.voting import cast_vote, parse_ballot_selections


@procedure()
def cast_vote_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    require_login(request.user)
    election_id = _payload_id(payload, "election_id")
    selections = parse_ballot_selections(payload.get("votes"))

    _enforce_vote_rate_limit(request, election_id=election_id)

    result = cast_vote(user=request.user, election_id=election_id, selections=selections)
    return {
        "election_slug": result.election.slug,
        "ballot_id": result.ballot.id,
        "voted_at": result.ballot.created_at,
    }
