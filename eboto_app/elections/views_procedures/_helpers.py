"""Shared private helpers used across procedure view sub-modules."""

from django.conf import settings
from django.http import HttpRequest

from elections.errors import BadRequestError, TooManyRequestsError
from elections.rate_limit import allow_request
from elections.voting import parse_id


def _payload_id(payload: dict[str, object], key: str) -> int:
    return parse_id(payload.get(key), label=key)


def _payload_slug(payload: dict[str, object]) -> str:
    slug = str(payload.get("election_slug") or "").strip().lower()
    if not slug:
        raise BadRequestError("election_slug is required")
    return slug


def _enforce_vote_rate_limit(request: HttpRequest, *, election_id: int) -> None:
    if not allow_request(
        scope="elections.cast_vote",
        key_parts=[str(election_id), str(request.user.pk)],
        limit=settings.ELECTION_RATE_LIMIT_VOTE_SUBMIT_LIMIT,
        window_seconds=settings.ELECTION_RATE_LIMIT_VOTE_SUBMIT_WINDOW_SECONDS,
    ):
        raise TooManyRequestsError("Too many vote submissions. Please try again later.")
