"""Bulk voter registration from CSV text."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from tablib import Dataset, InvalidDimensions

from elections.errors import BadRequestError
from elections.models import Voter, VoterField
from elections.permissions import AnyUser, get_managed_election

logger = logging.getLogger(__name__)

EMAIL_HEADER_NORMS: tuple[str, ...] = ("email", "emailaddress")


def norm_csv_header(value: str) -> str:
    return "".join(ch for ch in str(value or "").strip().lower() if ch.isalnum())


@dataclass
class VoterImportResult:
    created: int = 0
    skipped: list[dict[str, object]] = field(default_factory=list)

    def skip(self, *, row: int, email: str, reason: str) -> None:
        self.skipped.append({"row": row, "email": email, "reason": reason})

    def as_dict(self) -> dict[str, object]:
        return {"created": self.created, "skipped": self.skipped}


def load_voter_dataset(csv_text: str) -> Dataset:
    if not str(csv_text or "").strip():
        raise BadRequestError("CSV is empty.")
    try:
        dataset = Dataset().load(csv_text, format="csv")
    except InvalidDimensions as exc:
        raise BadRequestError("CSV rows do not all have the same number of columns.") from exc
    if not dataset.headers:
        raise BadRequestError("CSV has no headers.")
    return dataset


def resolve_columns(
    headers: Sequence[str],
    field_names: Sequence[str],
) -> tuple[str, dict[str, str]]:
    """Return the email header and a mapping of voter field name -> CSV header."""
    header_by_norm: dict[str, str] = {}
    for header in headers:
        header_by_norm.setdefault(norm_csv_header(header), header)

    email_header = next((header_by_norm[n] for n in EMAIL_HEADER_NORMS if n in header_by_norm), None)
    if email_header is None:
        raise BadRequestError("CSV needs an email column.")

    field_headers: dict[str, str] = {}
    for name in field_names:
        header = header_by_norm.get(norm_csv_header(name))
        if header is not None and header != email_header:
            field_headers[name] = header
    return email_header, field_headers


def _row_value(row: Mapping[str, object], header: str) -> str:
    value = row.get(header)
    return "" if value is None else str(value).strip()


def import_voters_from_csv(*, user: AnyUser, election_id: int, csv_text: str) -> VoterImportResult:
    """Register every valid, new email in ``csv_text``.

    Row numbers in the report count the header as row 1, matching what a
    spreadsheet shows.
    """
    election = get_managed_election(user, election_id=election_id)
    dataset = load_voter_dataset(csv_text)

    field_names = list(VoterField.objects.filter(election=election).values_list("name", flat=True))
    email_header, field_headers = resolve_columns(list(dataset.headers), field_names)

    existing = set(Voter.objects.filter(election=election).values_list("email", flat=True))
    seen: set[str] = set()
    result = VoterImportResult()
    to_create: list[Voter] = []

    for index, row in enumerate(dataset.dict, start=2):
        raw_email = _row_value(row, email_header)
        email = raw_email.lower()

        if not email:
            result.skip(row=index, email=raw_email, reason="missing email")
            continue
        try:
            validate_email(email)
        except ValidationError:
            result.skip(row=index, email=raw_email, reason="invalid email")
            continue
        if email in seen:
            result.skip(row=index, email=raw_email, reason="duplicate in file")
            continue
        if email in existing:
            result.skip(row=index, email=raw_email, reason="already a voter")
            continue
        seen.add(email)

        field_map = {name: value for name, header in field_headers.items() if (value := _row_value(row, header))}
        to_create.append(Voter(election=election, email=email, field=field_map))

    with transaction.atomic():
        Voter.objects.bulk_create(to_create)
    result.created = len(to_create)

    logger.info(
        "Bulk voter import election_id=%s created=%s skipped=%s",
        election.id,
        result.created,
        len(result.skipped),
    )
    return result
