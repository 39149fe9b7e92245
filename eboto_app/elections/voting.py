"""Ballot casting: eligibility checks, atomic persistence, and the voter notification."""

import datetime
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from elections.errors import (
    AlreadyVotedError,
    BadRequestError,
    BallotConflictError,
    ElectionNotOngoingError,
    InvalidBallotError,
    NotAVoterError,
)
from elections.models import Ballot, Candidate, Election, Position, Vote, Voter
from elections.names import candidate_display_name
from elections.permissions import AnyUser, get_active_election, require_login, user_email
from elections.schedule import election_is_ongoing
from elections.templated_email import post_office_json_context, queue_templated_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionSelection:
    position_id: int
    is_abstain: bool
    candidate_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class CastVoteResult:
    election: Election
    voter: Voter
    ballot: Ballot
    selections: tuple[PositionSelection, ...]


def parse_id(value: object, *, label: str) -> int:
    if isinstance(value, bool):
        raise BadRequestError(f"{label} must be an id")
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise BadRequestError(f"{label} must be an id") from exc
    if parsed <= 0:
        raise BadRequestError(f"{label} must be an id")
    return parsed


def parse_ballot_selections(raw: object) -> tuple[PositionSelection, ...]:
    """Validate the shape of a ballot payload.

    Accepts ``[{"position_id": 1, "votes": {"isAbstain": true}}, ...]`` and
    ``{"isAbstain": false, "candidates": [ids...]}`` for a candidate choice.
    Only the shape is checked here; roster checks need the database.
    """
    if not isinstance(raw, list):
        raise BadRequestError("votes must be a list")
    if not raw:
        raise BadRequestError("votes must not be empty")

    selections: list[PositionSelection] = []
    for item in raw:
        if not isinstance(item, dict):
            raise BadRequestError("each vote must be an object")

        position_id = parse_id(item.get("position_id"), label="position_id")

        votes = item.get("votes")
        if not isinstance(votes, dict):
            raise BadRequestError("votes.votes must be an object")

        is_abstain = votes.get("isAbstain", votes.get("is_abstain"))
        if not isinstance(is_abstain, bool):
            raise BadRequestError("isAbstain must be true or false")

        if is_abstain:
            selections.append(PositionSelection(position_id=position_id, is_abstain=True))
            continue

        candidates_raw = votes.get("candidates")
        if not isinstance(candidates_raw, list) or not candidates_raw:
            raise BadRequestError("candidates must be a non-empty list unless abstaining")

        candidate_ids = tuple(parse_id(cid, label="candidate id") for cid in candidates_raw)
        selections.append(
            PositionSelection(position_id=position_id, is_abstain=False, candidate_ids=candidate_ids)
        )

    return tuple(selections)


def _validate_selections_against_roster(
    *,
    election: Election,
    selections: Sequence[PositionSelection],
) -> dict[int, Position]:
    positions_by_id = {p.id: p for p in Position.objects.filter(election=election)}

    wanted_candidate_ids = {cid for sel in selections for cid in sel.candidate_ids}
    candidates_by_id = {
        c.id: c
        for c in Candidate.objects.filter(election=election, id__in=wanted_candidate_ids).only("id", "position_id")
    }

    seen_positions: set[int] = set()
    for sel in selections:
        position = positions_by_id.get(sel.position_id)
        if position is None:
            raise InvalidBallotError("Invalid ballot: contains a position not in this election")

        if sel.position_id in seen_positions:
            raise InvalidBallotError("Invalid ballot: a position appears more than once")
        seen_positions.add(sel.position_id)

        if sel.is_abstain:
            continue

        if len(set(sel.candidate_ids)) != len(sel.candidate_ids):
            raise InvalidBallotError("Invalid ballot: duplicate candidates")

        for cid in sel.candidate_ids:
            candidate = candidates_by_id.get(cid)
            if candidate is None or candidate.position_id != position.id:
                raise InvalidBallotError(
                    f"Invalid ballot: contains a candidate not running for {position.name}"
                )

        chosen = len(sel.candidate_ids)
        if chosen < position.min or chosen > position.max:
            if position.min == position.max:
                raise InvalidBallotError(f"Invalid ballot: choose exactly {position.max} for {position.name}")
            raise InvalidBallotError(
                f"Invalid ballot: choose between {position.min} and {position.max} for {position.name}"
            )

    for position_id, position in positions_by_id.items():
        if position_id not in seen_positions:
            raise InvalidBallotError(f"Invalid ballot: no selection for {position.name}")

    return positions_by_id


def _ballot_rows(*, ballot: Ballot, selections: Sequence[PositionSelection]) -> list[Vote]:
    rows: list[Vote] = []
    for sel in selections:
        if sel.is_abstain:
            rows.append(
                Vote(
                    ballot=ballot,
                    election_id=ballot.election_id,
                    voter_id=ballot.voter_id,
                    position_id=sel.position_id,
                    candidate=None,
                )
            )
            continue
        for cid in sel.candidate_ids:
            rows.append(
                Vote(
                    ballot=ballot,
                    election_id=ballot.election_id,
                    voter_id=ballot.voter_id,
                    position_id=sel.position_id,
                    candidate_id=cid,
                )
            )
    return rows


def has_voted(*, election: Election, email: str) -> bool:
    """True when any ballot exists for this email, including ballots of since-deleted voter rows."""
    if not email:
        return False
    return Ballot.objects.filter(election=election, voter__email=email.strip().lower()).exists()


def cast_vote(
    *,
    user: AnyUser,
    election_id: int,
    selections: Sequence[PositionSelection],
    now: datetime.datetime | None = None,
) -> CastVoteResult:
    """Record one ballot for the signed-in voter.

    Checks run in a fixed order: election exists, election is ongoing, caller
    has not voted, caller is a registered voter. The ballot and all of its
    lines are written in one transaction; the notification email is queued
    only after that transaction commits.
    """
    require_login(user)
    now = now or timezone.now()
    email = user_email(user)

    with transaction.atomic():
        election = get_active_election(election_id=election_id)

        if not election_is_ongoing(election, now=now):
            raise ElectionNotOngoingError()

        if has_voted(election=election, email=email):
            raise AlreadyVotedError()

        # Lock the voter row so concurrent submissions for the same voter serialize here.
        voter = Voter.objects.select_for_update().filter(election=election, email=email).first()
        if voter is None:
            raise NotAVoterError()

        if Ballot.objects.filter(election=election, voter=voter).exists():
            raise AlreadyVotedError()

        _validate_selections_against_roster(election=election, selections=selections)

        try:
            with transaction.atomic():
                ballot = Ballot.objects.create(election=election, voter=voter)
                Vote.objects.bulk_create(_ballot_rows(ballot=ballot, selections=selections))
        except IntegrityError as exc:
            logger.warning("Ballot conflict election_id=%s voter_id=%s", election.id, voter.id)
            raise BallotConflictError() from exc

        logger.info(
            "Ballot recorded election_id=%s voter_id=%s positions=%s",
            election.id,
            voter.id,
            len(selections),
        )

        result = CastVoteResult(
            election=election,
            voter=voter,
            ballot=ballot,
            selections=tuple(selections),
        )
        transaction.on_commit(lambda: notify_vote_casted(result=result))

    return result


def build_vote_casted_email_context(
    *,
    election: Election,
    selections: Sequence[PositionSelection],
) -> dict[str, object]:
    position_ids = {sel.position_id for sel in selections}
    candidate_ids = {cid for sel in selections for cid in sel.candidate_ids}
    position_name_by_id = dict(
        Position.all_objects.filter(election=election, id__in=position_ids).values_list("id", "name")
    )
    candidates_by_id = {
        c.id: c for c in Candidate.all_objects.filter(election=election, id__in=candidate_ids)
    }

    positions: list[dict[str, object]] = []
    for sel in selections:
        names: list[str] = []
        for cid in sel.candidate_ids:
            candidate = candidates_by_id.get(cid)
            names.append(candidate_display_name(candidate, election=election) if candidate else "")
        positions.append(
            {
                "id": sel.position_id,
                "name": position_name_by_id.get(sel.position_id, ""),
                "is_abstain": sel.is_abstain,
                "candidates": names,
            }
        )

    return {
        "election_id": election.id,
        "election_name": election.name,
        "election_slug": election.slug,
        "realtime_url": election_realtime_url(election=election),
        "positions": positions,
    }


def election_realtime_url(*, election: Election) -> str:
    return settings.PUBLIC_BASE_URL.rstrip("/") + f"/{election.slug}/realtime"


def send_vote_casted_email(
    *,
    election: Election,
    email: str,
    selections: Sequence[PositionSelection],
) -> None:
    context = build_vote_casted_email_context(election=election, selections=selections)
    queue_templated_email(
        recipients=[email],
        sender=settings.DEFAULT_FROM_EMAIL,
        template_name=settings.ELECTION_VOTE_CASTED_EMAIL_TEMPLATE_NAME,
        context=post_office_json_context(context),
    )


def notify_vote_casted(*, result: CastVoteResult) -> None:
    """Best-effort notification; a failure here never affects the recorded ballot."""
    try:
        send_vote_casted_email(
            election=result.election,
            email=result.voter.email,
            selections=result.selections,
        )
    except Exception:
        logger.exception(
            "Failed to queue vote casted email election_id=%s voter_id=%s",
            result.election.id,
            result.voter.id,
        )
