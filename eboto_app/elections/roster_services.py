"""Commissioner-side management of positions, partylists, candidates and voters.

Every operation starts from an election the caller manages; children of other
elections are reported as not found. Deletions are soft.
"""

import logging
from collections.abc import Mapping, Sequence

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import Max

from elections.errors import BadRequestError, ConflictError, NotFoundError
from elections.models import (
    INDEPENDENT_PARTYLIST_ACRONYM,
    INDEPENDENT_PARTYLIST_NAME,
    Ballot,
    Candidate,
    Election,
    Partylist,
    Position,
    Voter,
    VoterField,
)
from elections.permissions import AnyUser, get_managed_election

logger = logging.getLogger(__name__)


# Positions


def _get_position(election: Election, position_id: int) -> Position:
    position = Position.objects.filter(election=election, pk=position_id).first()
    if position is None:
        raise NotFoundError("Position not found.")
    return position


def _validate_selection_bounds(*, min_selections: int, max_selections: int) -> None:
    if max_selections < 1:
        raise BadRequestError("Maximum selections must be at least 1.")
    if min_selections < 0 or min_selections > max_selections:
        raise BadRequestError("Minimum selections must be between 0 and the maximum.")


def create_position(
    *,
    user: AnyUser,
    election_id: int,
    name: str,
    description: str = "",
    min_selections: int = 0,
    max_selections: int = 1,
    order: int | None = None,
) -> Position:
    election = get_managed_election(user, election_id=election_id)
    _validate_selection_bounds(min_selections=min_selections, max_selections=max_selections)

    if order is None:
        current_max = Position.objects.filter(election=election).aggregate(m=Max("order"))["m"]
        order = 0 if current_max is None else current_max + 1

    position = Position.objects.create(
        election=election,
        name=name.strip(),
        description=description or "",
        order=order,
        min=min_selections,
        max=max_selections,
    )
    logger.info("Position created election_id=%s position_id=%s", election.id, position.id)
    return position


def edit_position(
    *,
    user: AnyUser,
    election_id: int,
    position_id: int,
    name: str,
    description: str = "",
    min_selections: int = 0,
    max_selections: int = 1,
) -> Position:
    election = get_managed_election(user, election_id=election_id)
    position = _get_position(election, position_id)
    _validate_selection_bounds(min_selections=min_selections, max_selections=max_selections)

    position.name = name.strip()
    position.description = description or ""
    position.min = min_selections
    position.max = max_selections
    position.save(update_fields=["name", "description", "min", "max", "updated_at"])
    return position


def delete_position(*, user: AnyUser, election_id: int, position_id: int) -> None:
    election = get_managed_election(user, election_id=election_id)
    position = _get_position(election, position_id)
    with transaction.atomic():
        Candidate.objects.filter(position=position).soft_delete()
        position.soft_delete()
    logger.info("Position deleted election_id=%s position_id=%s", election.id, position.id)


def reorder_positions(*, user: AnyUser, election_id: int, position_ids: Sequence[int]) -> list[Position]:
    """Rewrite ``order`` so positions follow ``position_ids``; every position must be listed once."""
    election = get_managed_election(user, election_id=election_id)
    positions_by_id = {p.id: p for p in Position.objects.filter(election=election)}

    if len(set(position_ids)) != len(position_ids) or set(position_ids) != set(positions_by_id):
        raise BadRequestError("Reorder must list every position of the election exactly once.")

    ordered: list[Position] = []
    for index, position_id in enumerate(position_ids):
        position = positions_by_id[position_id]
        position.order = index
        ordered.append(position)

    with transaction.atomic():
        Position.objects.bulk_update(ordered, ["order"])
    return ordered


# Partylists


def _get_partylist(election: Election, partylist_id: int) -> Partylist:
    partylist = Partylist.objects.filter(election=election, pk=partylist_id).first()
    if partylist is None:
        raise NotFoundError("Partylist not found.")
    return partylist


def _independent_partylist(election: Election) -> Partylist:
    partylist = Partylist.objects.filter(election=election, acronym=INDEPENDENT_PARTYLIST_ACRONYM).first()
    if partylist is None:
        # Every election gets one at creation; recreate it if it has gone missing.
        partylist = Partylist.objects.create(
            election=election,
            name=INDEPENDENT_PARTYLIST_NAME,
            acronym=INDEPENDENT_PARTYLIST_ACRONYM,
        )
    return partylist


def _normalize_acronym(acronym: str) -> str:
    acronym = str(acronym or "").strip()
    if not acronym:
        raise BadRequestError("Acronym is required.")
    if acronym.upper() == INDEPENDENT_PARTYLIST_ACRONYM:
        raise BadRequestError(f"{INDEPENDENT_PARTYLIST_ACRONYM} is a reserved acronym.")
    return acronym


def create_partylist(
    *,
    user: AnyUser,
    election_id: int,
    name: str,
    acronym: str,
    description: str = "",
) -> Partylist:
    election = get_managed_election(user, election_id=election_id)
    acronym = _normalize_acronym(acronym)

    if Partylist.objects.filter(election=election, acronym__iexact=acronym).exists():
        raise ConflictError("Partylist acronym is already used in this election.")

    try:
        with transaction.atomic():
            return Partylist.objects.create(
                election=election,
                name=name.strip(),
                acronym=acronym,
                description=description or "",
            )
    except IntegrityError as exc:
        raise ConflictError("Partylist acronym is already used in this election.") from exc


def edit_partylist(
    *,
    user: AnyUser,
    election_id: int,
    partylist_id: int,
    name: str,
    acronym: str,
    description: str = "",
) -> Partylist:
    election = get_managed_election(user, election_id=election_id)
    partylist = _get_partylist(election, partylist_id)
    if partylist.is_independent:
        raise BadRequestError("The Independent partylist cannot be edited.")
    acronym = _normalize_acronym(acronym)

    if Partylist.objects.filter(election=election, acronym__iexact=acronym).exclude(pk=partylist.pk).exists():
        raise ConflictError("Partylist acronym is already used in this election.")

    partylist.name = name.strip()
    partylist.acronym = acronym
    partylist.description = description or ""
    try:
        with transaction.atomic():
            partylist.save(update_fields=["name", "acronym", "description", "updated_at"])
    except IntegrityError as exc:
        raise ConflictError("Partylist acronym is already used in this election.") from exc
    return partylist


def delete_partylist(*, user: AnyUser, election_id: int, partylist_id: int) -> None:
    """Soft-delete a partylist; its candidates run as Independents afterwards."""
    election = get_managed_election(user, election_id=election_id)
    partylist = _get_partylist(election, partylist_id)
    if partylist.is_independent:
        raise BadRequestError("The Independent partylist cannot be deleted.")

    with transaction.atomic():
        independent = _independent_partylist(election)
        moved = Candidate.all_objects.filter(partylist=partylist).update(partylist=independent)
        partylist.soft_delete()
    logger.info(
        "Partylist deleted election_id=%s partylist_id=%s candidates_moved=%s",
        election.id,
        partylist.id,
        moved,
    )


# Candidates


def _get_candidate(election: Election, candidate_id: int) -> Candidate:
    candidate = Candidate.objects.filter(election=election, pk=candidate_id).first()
    if candidate is None:
        raise NotFoundError("Candidate not found.")
    return candidate


def _resolve_partylist(election: Election, partylist_id: int | None) -> Partylist:
    if partylist_id is None:
        return _independent_partylist(election)
    return _get_partylist(election, partylist_id)


def create_candidate(
    *,
    user: AnyUser,
    election_id: int,
    position_id: int,
    first_name: str,
    last_name: str,
    middle_name: str = "",
    partylist_id: int | None = None,
) -> Candidate:
    election = get_managed_election(user, election_id=election_id)
    position = _get_position(election, position_id)
    partylist = _resolve_partylist(election, partylist_id)

    candidate = Candidate.objects.create(
        election=election,
        position=position,
        partylist=partylist,
        first_name=first_name.strip(),
        middle_name=(middle_name or "").strip(),
        last_name=last_name.strip(),
    )
    logger.info("Candidate created election_id=%s candidate_id=%s", election.id, candidate.id)
    return candidate


def edit_candidate(
    *,
    user: AnyUser,
    election_id: int,
    candidate_id: int,
    position_id: int,
    first_name: str,
    last_name: str,
    middle_name: str = "",
    partylist_id: int | None = None,
) -> Candidate:
    election = get_managed_election(user, election_id=election_id)
    candidate = _get_candidate(election, candidate_id)

    candidate.position = _get_position(election, position_id)
    candidate.partylist = _resolve_partylist(election, partylist_id)
    candidate.first_name = first_name.strip()
    candidate.middle_name = (middle_name or "").strip()
    candidate.last_name = last_name.strip()
    candidate.save()
    return candidate


def delete_candidate(*, user: AnyUser, election_id: int, candidate_id: int) -> None:
    election = get_managed_election(user, election_id=election_id)
    candidate = _get_candidate(election, candidate_id)
    candidate.soft_delete()
    logger.info("Candidate deleted election_id=%s candidate_id=%s", election.id, candidate.id)


# Voter fields


def create_voter_field(*, user: AnyUser, election_id: int, name: str) -> VoterField:
    election = get_managed_election(user, election_id=election_id)
    name = str(name or "").strip()
    if not name:
        raise BadRequestError("Voter field name is required.")
    if VoterField.objects.filter(election=election, name__iexact=name).exists():
        raise ConflictError("Voter field already exists.")
    try:
        with transaction.atomic():
            return VoterField.objects.create(election=election, name=name)
    except IntegrityError as exc:
        raise ConflictError("Voter field already exists.") from exc


def delete_voter_field(*, user: AnyUser, election_id: int, voter_field_id: int) -> None:
    election = get_managed_election(user, election_id=election_id)
    deleted, _ = VoterField.objects.filter(election=election, pk=voter_field_id).delete()
    if not deleted:
        raise NotFoundError("Voter field not found.")


# Voters


def normalize_voter_email(email: str) -> str:
    email = str(email or "").strip().lower()
    try:
        validate_email(email)
    except ValidationError as exc:
        raise BadRequestError("Enter a valid email address.") from exc
    return email


def clean_voter_field_map(election: Election, field: Mapping[str, object] | None) -> dict[str, str]:
    if not field:
        return {}
    allowed = set(VoterField.objects.filter(election=election).values_list("name", flat=True))
    cleaned: dict[str, str] = {}
    for key, value in field.items():
        if key not in allowed:
            raise BadRequestError(f"Unknown voter field: {key}")
        text = "" if value is None else str(value).strip()
        if text:
            cleaned[key] = text
    return cleaned


def _get_voter(election: Election, voter_id: int) -> Voter:
    voter = Voter.objects.filter(election=election, pk=voter_id).first()
    if voter is None:
        raise NotFoundError("Voter not found.")
    return voter


def create_voter(
    *,
    user: AnyUser,
    election_id: int,
    email: str,
    field: Mapping[str, object] | None = None,
) -> Voter:
    election = get_managed_election(user, election_id=election_id)
    email = normalize_voter_email(email)
    field_map = clean_voter_field_map(election, field)

    if Voter.objects.filter(election=election, email=email).exists():
        raise ConflictError("Email is already a voter of this election.")

    try:
        with transaction.atomic():
            voter = Voter.objects.create(election=election, email=email, field=field_map)
    except IntegrityError as exc:
        raise ConflictError("Email is already a voter of this election.") from exc

    logger.info("Voter created election_id=%s voter_id=%s", election.id, voter.id)
    return voter


def edit_voter(
    *,
    user: AnyUser,
    election_id: int,
    voter_id: int,
    email: str,
    field: Mapping[str, object] | None = None,
) -> Voter:
    election = get_managed_election(user, election_id=election_id)
    voter = _get_voter(election, voter_id)
    email = normalize_voter_email(email)

    if Voter.objects.filter(election=election, email=email).exclude(pk=voter.pk).exists():
        raise ConflictError("Email is already a voter of this election.")

    voter.email = email
    voter.field = clean_voter_field_map(election, field)
    try:
        with transaction.atomic():
            voter.save(update_fields=["email", "field", "updated_at"])
    except IntegrityError as exc:
        raise ConflictError("Email is already a voter of this election.") from exc
    return voter


def delete_voter(*, user: AnyUser, election_id: int, voter_id: int) -> None:
    election = get_managed_election(user, election_id=election_id)
    voter = _get_voter(election, voter_id)
    voter.soft_delete()
    logger.info("Voter deleted election_id=%s voter_id=%s", election.id, voter.id)


def list_voters(*, user: AnyUser, slug: str) -> tuple[Election, list[dict[str, object]]]:
    election = get_managed_election(user, slug=slug)
    voted_emails = set(Ballot.objects.filter(election=election).values_list("voter__email", flat=True))
    voters = [
        {
            "id": voter.id,
            "email": voter.email,
            "field": voter.field,
            "created_at": voter.created_at,
            "has_voted": voter.email in voted_emails,
        }
        for voter in Voter.objects.filter(election=election).order_by("created_at", "id")
    ]
    return election, voters


def position_payload(position: Position) -> dict[str, object]:
    return {
        "id": position.id,
        "name": position.name,
        "description": position.description,
        "order": position.order,
        "min": position.min,
        "max": position.max,
    }


def partylist_payload(partylist: Partylist) -> dict[str, object]:
    return {
        "id": partylist.id,
        "name": partylist.name,
        "acronym": partylist.acronym,
        "description": partylist.description,
    }


def candidate_payload(candidate: Candidate) -> dict[str, object]:
    return {
        "id": candidate.id,
        "position_id": candidate.position_id,
        "partylist_id": candidate.partylist_id,
        "first_name": candidate.first_name,
        "middle_name": candidate.middle_name,
        "last_name": candidate.last_name,
    }


def voter_payload(voter: Voter) -> dict[str, object]:
    return {"id": voter.id, "email": voter.email, "field": voter.field, "created_at": voter.created_at}


def voter_field_payload(voter_field: VoterField) -> dict[str, object]:
    return {"id": voter_field.id, "name": voter_field.name}
