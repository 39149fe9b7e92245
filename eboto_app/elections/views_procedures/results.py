"""Read-side procedures: realtime results and voter turnout by field."""

from django.http import HttpRequest

from elections.procedures import procedure
from elections.tabulation import get_realtime_results, realtime_results_payload
from elections.views_procedures._helpers import _payload_id, _payload_slug
from elections.voter_stats import get_voter_field_stats, get_voter_field_stats_in_realtime


@procedure(query=True)
def get_realtime_results_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    results = get_realtime_results(user=request.user, slug=_payload_slug(payload))
    return realtime_results_payload(results)


@procedure(query=True)
def get_voter_field_stats_view(request: HttpRequest, payload: dict[str, object]) -> list[dict[str, object]]:
    return get_voter_field_stats(user=request.user, election_id=_payload_id(payload, "election_id"))


@procedure(query=True)
def get_voter_field_stats_in_realtime_view(
    request: HttpRequest,
    payload: dict[str, object],
) -> list[dict[str, object]]:
    return get_voter_field_stats_in_realtime(user=request.user, slug=_payload_slug(payload))
