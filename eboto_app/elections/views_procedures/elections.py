"""Election and commissioner procedures."""

from django.http import HttpRequest

from elections import election_services
from elections.election_services import commissioner_payload, election_payload
from elections.forms_elections import (
    AddCommissionerForm,
    CreateElectionForm,
    EditElectionForm,
    ElectionIdForm,
    RemoveCommissionerForm,
)
from elections.procedures import clean_input, procedure
from elections.views_procedures._helpers import _payload_slug


@procedure(query=True)
def get_election_page_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    return election_services.get_election_page(user=request.user, slug=_payload_slug(payload))


@procedure(query=True)
def get_election_by_slug_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    return election_services.get_election_by_slug(user=request.user, slug=_payload_slug(payload))


@procedure(query=True)
def get_all_my_elections_view(request: HttpRequest, payload: dict[str, object]) -> list[dict[str, object]]:
    return [election_payload(e) for e in election_services.list_my_elections(user=request.user)]


@procedure()
def create_election_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(CreateElectionForm, payload)
    election = election_services.create_election(
        user=request.user,
        name=data["name"],
        slug=data["slug"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        template=data["template"],
    )
    return election_payload(election)


@procedure()
def edit_election_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(EditElectionForm, payload)
    election = election_services.edit_election(
        user=request.user,
        election_id=data["election_id"],
        name=data["name"],
        slug=data["slug"],
        description=data["description"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        publicity=data["publicity"],
        voting_hour_start=data["voting_hour_start"],
        voting_hour_end=data["voting_hour_end"],
        is_candidates_visible_in_realtime_when_ongoing=data["is_candidates_visible_in_realtime_when_ongoing"],
        name_arrangement=data["name_arrangement"],
    )
    return election_payload(election)


@procedure()
def delete_election_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(ElectionIdForm, payload)
    election_services.delete_election(user=request.user, election_id=data["election_id"])


@procedure(query=True)
def get_commissioners_view(request: HttpRequest, payload: dict[str, object]) -> list[dict[str, object]]:
    data = clean_input(ElectionIdForm, payload)
    return [
        commissioner_payload(c)
        for c in election_services.get_commissioners(user=request.user, election_id=data["election_id"])
    ]


@procedure()
def add_commissioner_view(request: HttpRequest, payload: dict[str, object]) -> dict[str, object]:
    data = clean_input(AddCommissionerForm, payload)
    commissioner = election_services.add_commissioner(
        user=request.user,
        election_id=data["election_id"],
        email=data["email"],
    )
    return commissioner_payload(commissioner)


@procedure()
def remove_commissioner_view(request: HttpRequest, payload: dict[str, object]) -> None:
    data = clean_input(RemoveCommissionerForm, payload)
    election_services.remove_commissioner(
        user=request.user,
        election_id=data["election_id"],
        commissioner_id=data["commissioner_id"],
    )
