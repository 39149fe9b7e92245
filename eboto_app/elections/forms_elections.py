"""Input shapes of the JSON procedures.

Forms only check types and presence; business rules (slug availability,
selection bounds, ownership) live in the service modules.
"""

from django import forms
from django.core.exceptions import NON_FIELD_ERRORS

from elections.models import Election
from elections.position_templates import NO_TEMPLATE


class ProcedureForm(forms.Form):
    def first_error(self) -> str:
        for name, errors in self.errors.items():
            message = errors[0] if errors else "Invalid value."
            if name == NON_FIELD_ERRORS:
                return str(message)
            return f"{name}: {message}"
        return "Invalid request."


class ElectionIdForm(ProcedureForm):
    election_id = forms.IntegerField(min_value=1)


class ElectionSlugForm(ProcedureForm):
    election_slug = forms.CharField(max_length=64)


class CreateElectionForm(ProcedureForm):
    name = forms.CharField(max_length=255)
    slug = forms.CharField(max_length=64)
    start_date = forms.DateTimeField()
    end_date = forms.DateTimeField()
    template = forms.CharField(max_length=64, required=False)

    def clean_template(self) -> str:
        return self.cleaned_data.get("template") or NO_TEMPLATE


class EditElectionForm(ElectionIdForm):
    name = forms.CharField(max_length=255)
    slug = forms.CharField(max_length=64)
    description = forms.CharField(required=False)
    start_date = forms.DateTimeField()
    end_date = forms.DateTimeField()
    publicity = forms.ChoiceField(choices=Election.Publicity.choices)
    voting_hour_start = forms.IntegerField(min_value=0, max_value=23, required=False)
    voting_hour_end = forms.IntegerField(min_value=0, max_value=23, required=False)
    is_candidates_visible_in_realtime_when_ongoing = forms.BooleanField(required=False)
    name_arrangement = forms.ChoiceField(choices=Election.NameArrangement.choices, required=False)

    def clean_name_arrangement(self) -> str:
        return self.cleaned_data.get("name_arrangement") or Election.NameArrangement.first_middle_last

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and start >= end:
            raise forms.ValidationError("Start date must be before end date.")
        return cleaned


class AddCommissionerForm(ElectionIdForm):
    email = forms.EmailField(max_length=320)


class RemoveCommissionerForm(ElectionIdForm):
    commissioner_id = forms.IntegerField(min_value=1)


class PositionForm(ElectionIdForm):
    name = forms.CharField(max_length=255)
    description = forms.CharField(required=False)
    min = forms.IntegerField(min_value=0, required=False)
    max = forms.IntegerField(min_value=1, required=False)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("min") is None:
            cleaned["min"] = 0
        if cleaned.get("max") is None:
            cleaned["max"] = 1
        return cleaned


class EditPositionForm(PositionForm):
    position_id = forms.IntegerField(min_value=1)


class PositionIdForm(ElectionIdForm):
    position_id = forms.IntegerField(min_value=1)


class PartylistForm(ElectionIdForm):
    name = forms.CharField(max_length=255)
    acronym = forms.CharField(max_length=24)
    description = forms.CharField(required=False)


class EditPartylistForm(PartylistForm):
    partylist_id = forms.IntegerField(min_value=1)


class PartylistIdForm(ElectionIdForm):
    partylist_id = forms.IntegerField(min_value=1)


class CandidateForm(ElectionIdForm):
    position_id = forms.IntegerField(min_value=1)
    partylist_id = forms.IntegerField(min_value=1, required=False)
    first_name = forms.CharField(max_length=255)
    middle_name = forms.CharField(max_length=255, required=False)
    last_name = forms.CharField(max_length=255)


class EditCandidateForm(CandidateForm):
    candidate_id = forms.IntegerField(min_value=1)


class CandidateIdForm(ElectionIdForm):
    candidate_id = forms.IntegerField(min_value=1)


class VoterFieldForm(ElectionIdForm):
    name = forms.CharField(max_length=255)


class VoterFieldIdForm(ElectionIdForm):
    voter_field_id = forms.IntegerField(min_value=1)


class VoterForm(ElectionIdForm):
    # Format is checked by the roster service so its message is the one users see.
    email = forms.CharField(max_length=320)
    field = forms.JSONField(required=False)

    def clean_field(self) -> dict[str, object]:
        value = self.cleaned_data.get("field")
        if value in (None, ""):
            return {}
        if not isinstance(value, dict):
            raise forms.ValidationError("Must be an object.")
        return value


class EditVoterForm(VoterForm):
    voter_id = forms.IntegerField(min_value=1)


class VoterIdForm(ElectionIdForm):
    voter_id = forms.IntegerField(min_value=1)


class BulkVoterForm(ElectionIdForm):
    csv = forms.CharField(strip=False)
