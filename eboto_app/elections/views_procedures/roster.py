"""Position, partylist, candidate, voter field and voter procedures."""

from django.http import HttpRequest

from elections import roster_services
from elections.errors import BadRequestError
from elections.forms_elections import (
    BulkVoterForm,
    CandidateForm,
    CandidateIdForm,
    EditCandidateForm,
    EditPartylistForm,
    EditPositionForm,
    EditVoterForm,
    ElectionIdForm,
    PartylistForm,
    PartylistIdForm,
    PositionForm,
    PositionIdForm,
    VoterFieldForm,
    VoterFieldIdForm,
    VoterForm,
    VoterIdForm,
)
from elections.procedures import clean_input, procedure
from elections.roster_services import (
    candidate_payload,
    partylist_payload,
    position_payload,
    voter_field_payload,
    voter_payload,
)
from elections.views_procedures._helpers import _payload_slug
from elections.voter_csv_import import import_voters_from_csv

# Positions


@procedure()
def create_position_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(PositionForm, payload)
    position = roster_services.create_position(
        user=request.user,
        election_id=data["election_id"],
        name=data["name"],
        description=data["description"],
        min_selections=data["min"],
        max_selections=data["max"],
    )
    return position_payload(position)


@procedure()
def edit_position_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(EditPositionForm, payload)
    position = roster_services.edit_position(
        user=request.user,
        election_id=data["election_id"],
        position_id=data["position_id"],
        name=data["name"],
        description=data["description"],
        min_selections=data["min"],
        max_selections=data["max"],
    )
    return position_payload(position)


@procedure()
def delete_position_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(PositionIdForm, payload)
    roster_services.delete_position(
        user=request.user,
        election_id=data["election_id"],
        position_id=data["position_id"],
    )


@procedure()
def reorder_positions_view(request: HttpRequest, payload: dict[str, object]) -> list[dict[str, object]]:
    data = clean_input(ElectionIdForm, payload)
    raw_ids = payload.get("position_ids")
    if not isinstance(raw_ids, list) or any(isinstance(v, bool) or not isinstance(v, int) for v in raw_ids):
        raise BadRequestError("position_ids must be a list of ids")
    positions = roster_services.reorder_positions(
        user=request.user,
        election_id=data["election_id"],
        position_ids=raw_ids,
    )
    return [position_payload(p) for p in positions]


# Partylists


@procedure()
def create_partylist_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(PartylistForm, payload)
    partylist = roster_services.create_partylist(
        user=request.user,
        election_id=data["election_id"],
        name=data["name"],
        acronym=data["acronym"],
        description=data["description"],
    )
    return partylist_payload(partylist)


@procedure()
def edit_partylist_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(EditPartylistForm, payload)
    partylist = roster_services.edit_partylist(
        user=request.user,
        election_id=data["election_id"],
        partylist_id=data["partylist_id"],
        name=data["name"],
        acronym=data["acronym"],
        description=data["description"],
    )
    return partylist_payload(partylist)


@procedure()
def delete_partylist_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(PartylistIdForm, payload)
    roster_services.delete_partylist(
        user=request.user,
        election_id=data["election_id"],
        partylist_id=data["partylist_id"],
    )


# Candidates


@procedure()
def create_candidate_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(CandidateForm, payload)
    candidate = roster_services.create_candidate(
        user=request.user,
        election_id=data["election_id"],
        position_id=data["position_id"],
        partylist_id=data["partylist_id"],
        first_name=data["first_name"],
        middle_name=data["middle_name"],
        last_name=data["last_name"],
    )
    return candidate_payload(candidate)


@procedure()
def edit_candidate_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(EditCandidateForm, payload)
    candidate = roster_services.edit_candidate(
        user=request.user,
        election_id=data["election_id"],
        candidate_id=data["candidate_id"],
        position_id=data["position_id"],
        partylist_id=data["partylist_id"],
        first_name=data["first_name"],
        middle_name=data["middle_name"],
        last_name=data["last_name"],
    )
    return candidate_payload(candidate)


@procedure()
def delete_candidate_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(CandidateIdForm, payload)
    roster_services.delete_candidate(
        user=request.user,
        election_id=data["election_id"],
        candidate_id=data["candidate_id"],
    )


# Voter fields


@procedure()
def create_voter_field_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(VoterFieldForm, payload)
    voter_field = roster_services.create_voter_field(
        user=request.user,
        election_id=data["election_id"],
        name=data["name"],
    )
    return voter_field_payload(voter_field)


@procedure()
def delete_voter_field_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(VoterFieldIdForm, payload)
    roster_services.delete_voter_field(
        user=request.user,
        election_id=data["election_id"],
        voter_field_id=data["voter_field_id"],
    )


# Voters


@procedure()
def create_voter_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(VoterForm, payload)
    voter = roster_services.create_voter(
        user=request.user,
        election_id=data["election_id"],
        email=data["email"],
        field=data["field"],
    )
    return voter_payload(voter)


@procedure()
def edit_voter_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(EditVoterForm, payload)
    voter = roster_services.edit_voter(
        user=request.user,
        election_id=data["election_id"],
        voter_id=data["voter_id"],
        email=data["email"],
        field=data["field"],
    )
    return voter_payload(voter)


@procedure()
def delete_voter_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(VoterIdForm, payload)
    roster_services.delete_voter(
        user=request.user,
        election_id=data["election_id"],
        voter_id=data["voter_id"],
    )


@procedure(query=True)
def get_voters_by_election_slug_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    election, voters = roster_services.list_voters(user=request.user, slug=_payload_slug(payload))
    return {"election": {"id": election.id, "slug": election.slug, "name": election.name}, "voters": voters}


@procedure()
def upload_bulk_voter_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(BulkVoterForm, payload)
    result = import_voters_from_csv(
        user=request.user,
        election_id=data["election_id"],
        csv_text=data["csv"],
    )
    return result.as_dict()
