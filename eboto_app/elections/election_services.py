"""Election lifecycle and commissioner management."""

import datetime
import logging
import re

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from elections.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from elections.models import (
    INDEPENDENT_PARTYLIST_ACRONYM,
    INDEPENDENT_PARTYLIST_NAME,
    Candidate,
    Commissioner,
    Election,
    Partylist,
    Position,
    Voter,
)
from elections.permissions import (
    AnyUser,
    get_managed_election,
    get_viewable_election,
    require_commissioner,
    require_login,
    voter_for,
)
from elections.position_templates import template_position_names
from elections.schedule import election_is_ended, election_is_ongoing
from elections.voting import has_voted

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


def normalize_slug(value: str) -> str:
    return str(value or "").strip().lower()


def validate_slug(slug: str, *, exclude_election_id: int | None = None) -> str:
    slug = normalize_slug(slug)
    if not slug or len(slug) > 64 or not _SLUG_RE.match(slug):
        raise BadRequestError("Election slug may only contain lowercase letters, numbers and dashes.")
    if slug in settings.ELECTION_RESERVED_SLUGS:
        raise BadRequestError("Election slug is not available.")

    taken = Election.objects.filter(slug=slug)
    if exclude_election_id is not None:
        taken = taken.exclude(pk=exclude_election_id)
    if taken.exists():
        raise ConflictError("Election slug already exists.")
    return slug


def _validate_window(
    *,
    start_date: datetime.datetime,
    end_date: datetime.datetime,
    voting_hour_start: int | None = None,
    voting_hour_end: int | None = None,
) -> None:
    if start_date >= end_date:
        raise BadRequestError("Start date must be before end date.")
    if (voting_hour_start is None) != (voting_hour_end is None):
        raise BadRequestError("Voting hours must be set together.")
    if voting_hour_start is not None and voting_hour_end is not None:
        if not (0 <= voting_hour_start <= 23 and 0 <= voting_hour_end <= 23):
            raise BadRequestError("Voting hours must be between 0 and 23.")
        if voting_hour_start > voting_hour_end:
            raise BadRequestError("Voting hour start must not be after voting hour end.")


def create_election(
    *,
    user: AnyUser,
    name: str,
    slug: str,
    start_date: datetime.datetime,
    end_date: datetime.datetime,
    template: str = "none",
) -> Election:
    """Create an election owned by ``user``.

    The creator commissioner, the Independent partylist and any template
    positions are written in the same transaction as the election.
    """
    require_login(user)
    slug = validate_slug(slug)
    _validate_window(start_date=start_date, end_date=end_date)

    try:
        with transaction.atomic():
            election = Election.objects.create(
                name=name.strip(),
                slug=slug,
                start_date=start_date,
                end_date=end_date,
            )
            Commissioner.objects.create(election=election, user=user, is_creator=True)
            Partylist.objects.create(
                election=election,
                name=INDEPENDENT_PARTYLIST_NAME,
                acronym=INDEPENDENT_PARTYLIST_ACRONYM,
            )
            Position.objects.bulk_create(
                [
                    Position(election=election, name=position_name, order=index)
                    for index, position_name in enumerate(template_position_names(template))
                ]
            )
    except IntegrityError as exc:
        raise ConflictError("Election slug already exists.") from exc

    logger.info("Election created election_id=%s slug=%s user_id=%s", election.id, election.slug, user.pk)
    return election


def edit_election(
    *,
    user: AnyUser,
    election_id: int,
    name: str,
    slug: str,
    description: str,
    start_date: datetime.datetime,
    end_date: datetime.datetime,
    publicity: str,
    voting_hour_start: int | None = None,
    voting_hour_end: int | None = None,
    is_candidates_visible_in_realtime_when_ongoing: bool = False,
    name_arrangement: str = Election.NameArrangement.first_middle_last,
) -> Election:
    election = get_managed_election(user, election_id=election_id)

    slug = normalize_slug(slug)
    if slug != election.slug:
        slug = validate_slug(slug, exclude_election_id=election.id)
    _validate_window(
        start_date=start_date,
        end_date=end_date,
        voting_hour_start=voting_hour_start,
        voting_hour_end=voting_hour_end,
    )
    if publicity not in Election.Publicity.values:
        raise BadRequestError("Unknown publicity.")
    if name_arrangement not in Election.NameArrangement.values:
        raise BadRequestError("Unknown name arrangement.")

    election.name = name.strip()
    election.slug = slug
    election.description = description or ""
    election.start_date = start_date
    election.end_date = end_date
    election.voting_hour_start = voting_hour_start
    election.voting_hour_end = voting_hour_end
    election.publicity = publicity
    election.is_candidates_visible_in_realtime_when_ongoing = is_candidates_visible_in_realtime_when_ongoing
    election.name_arrangement = name_arrangement
    try:
        with transaction.atomic():
            election.save()
    except IntegrityError as exc:
        raise ConflictError("Election slug already exists.") from exc

    logger.info("Election edited election_id=%s user_id=%s", election.id, user.pk)
    return election


def delete_election(*, user: AnyUser, election_id: int) -> None:
    election = get_managed_election(user, election_id=election_id)
    with transaction.atomic():
        for model in (Candidate, Position, Partylist, Voter, Commissioner):
            model.objects.filter(election=election).soft_delete()
        election.soft_delete()
    logger.info("Election deleted election_id=%s user_id=%s", election.id, user.pk)


def list_my_elections(*, user: AnyUser) -> list[Election]:
    require_login(user)
    election_ids = Commissioner.objects.filter(user=user).values("election_id")
    return list(Election.objects.filter(pk__in=election_ids).order_by("-start_date", "id"))


def get_commissioners(*, user: AnyUser, election_id: int) -> list[Commissioner]:
    election = get_managed_election(user, election_id=election_id)
    return list(Commissioner.objects.filter(election=election).select_related("user").order_by("created_at", "id"))


def add_commissioner(*, user: AnyUser, election_id: int, email: str) -> Commissioner:
    election = get_managed_election(user, election_id=election_id)

    email = str(email or "").strip()
    target = get_user_model().objects.filter(email__iexact=email).order_by("pk").first() if email else None
    if target is None:
        raise NotFoundError("No account uses that email address.")

    if Commissioner.objects.filter(election=election, user=target).exists():
        raise ConflictError("That account is already a commissioner of this election.")

    try:
        with transaction.atomic():
            commissioner = Commissioner.objects.create(election=election, user=target)
    except IntegrityError as exc:
        raise ConflictError("That account is already a commissioner of this election.") from exc

    logger.info(
        "Commissioner added election_id=%s commissioner_id=%s by_user_id=%s",
        election.id,
        commissioner.id,
        user.pk,
    )
    return commissioner


def remove_commissioner(*, user: AnyUser, election_id: int, commissioner_id: int) -> None:
    election = get_managed_election(user, election_id=election_id)
    actor = require_commissioner(user, election)
    if not actor.is_creator:
        raise UnauthorizedError("Only the election creator can remove commissioners.")

    target = Commissioner.objects.filter(election=election, pk=commissioner_id).first()
    if target is None:
        raise NotFoundError("Commissioner not found.")
    if target.is_creator:
        raise BadRequestError("The election creator cannot be removed.")

    target.soft_delete()
    logger.info(
        "Commissioner removed election_id=%s commissioner_id=%s by_user_id=%s",
        election.id,
        target.id,
        user.pk,
    )


def election_payload(election: Election, *, now: datetime.datetime | None = None) -> dict[str, object]:
    now = now or timezone.now()
    return {
        "id": election.id,
        "slug": election.slug,
        "name": election.name,
        "description": election.description,
        "start_date": election.start_date,
        "end_date": election.end_date,
        "voting_hour_start": election.voting_hour_start,
        "voting_hour_end": election.voting_hour_end,
        "publicity": election.publicity,
        "is_candidates_visible_in_realtime_when_ongoing": election.is_candidates_visible_in_realtime_when_ongoing,
        "name_arrangement": election.name_arrangement,
        "plan": election.plan,
        "is_ongoing": election_is_ongoing(election, now=now),
        "is_ended": election_is_ended(election, now=now),
    }


def commissioner_payload(commissioner: Commissioner) -> dict[str, object]:
    return {
        "id": commissioner.id,
        "user_id": commissioner.user_id,
        "email": commissioner.user.email,
        "is_creator": commissioner.is_creator,
        "created_at": commissioner.created_at,
    }


def get_election_by_slug(*, user: AnyUser, slug: str) -> dict[str, object]:
    election = get_viewable_election(user, slug=slug)
    return election_payload(election)


def get_election_page(*, user: AnyUser, slug: str, now: datetime.datetime | None = None) -> dict[str, object]:
    """Everything the ballot page needs: roster, schedule state and the caller's voter status."""
    now = now or timezone.now()
    election = get_viewable_election(user, slug=slug)

    positions = list(Position.objects.filter(election=election).order_by("order", "id"))
    candidates = (
        Candidate.objects.filter(election=election, position__in=positions)
        .select_related("partylist")
        .order_by("created_at", "id")
    )
    candidates_by_position: dict[int, list[dict[str, object]]] = {}
    for candidate in candidates:
        candidates_by_position.setdefault(candidate.position_id, []).append(
            {
                "id": candidate.id,
                "first_name": candidate.first_name,
                "middle_name": candidate.middle_name,
                "last_name": candidate.last_name,
                "partylist": {
                    "id": candidate.partylist_id,
                    "name": candidate.partylist.name,
                    "acronym": candidate.partylist.acronym,
                },
            }
        )

    voter = voter_for(user, election)
    return {
        "election": election_payload(election, now=now),
        "positions": [
            {
                "id": position.id,
                "name": position.name,
                "description": position.description,
                "order": position.order,
                "min": position.min,
                "max": position.max,
                "candidates": candidates_by_position.get(position.id, []),
            }
            for position in positions
        ],
        "voter": {"id": voter.id, "email": voter.email, "field": voter.field} if voter is not None else None,
        "has_voted": has_voted(election=election, email=voter.email) if voter is not None else False,
    }
