from django.test import SimpleTestCase, TestCase

from elections.errors import BadRequestError
from elections.models import Voter, VoterField
from elections.tests.utils_test_data import make_election, make_user, make_voter
from elections.voter_csv_import import import_voters_from_csv, norm_csv_header, resolve_columns


class ResolveColumnsTests(SimpleTestCase):
    def test_norm_csv_header(self) -> None:
        self.assertEqual(norm_csv_header(" E-mail Address "), "emailaddress")

    def test_detects_email_and_field_columns(self) -> None:
        email_header, field_headers = resolve_columns(["Email Address", "college", "Notes"], ["College", "Year"])
        self.assertEqual(email_header, "Email Address")
        self.assertEqual(field_headers, {"College": "college"})

    def test_requires_email_column(self) -> None:
        with self.assertRaises(BadRequestError):
            resolve_columns(["name", "college"], ["College"])


class ImportVotersFromCsvTests(TestCase):
    def setUp(self) -> None:
        self.user = make_user("commissioner")
        self.election = make_election(creator=self.user)
        VoterField.objects.create(election=self.election, name="College")
        make_voter(self.election, "existing@example.com")

    def test_imports_valid_rows_and_reports_skips(self) -> None:
        csv_text = (
            "Email,College,Ignored\n"
            "Juan@Example.com,CEIT,x\n"
            "maria@example.com,,y\n"
            "not-an-email,CAS,z\n"
            "juan@example.com,CEIT,dup\n"
            "existing@example.com,CAS,old\n"
            ",CAS,blank\n"
        )

        result = import_voters_from_csv(user=self.user, election_id=self.election.id, csv_text=csv_text)

        self.assertEqual(result.created, 2)
        self.assertEqual(
            [(s["row"], s["reason"]) for s in result.skipped],
            [
                (4, "invalid email"),
                (5, "duplicate in file"),
                (6, "already a voter"),
                (7, "missing email"),
            ],
        )
        self.assertEqual(Voter.objects.get(election=self.election, email="juan@example.com").field, {"College": "CEIT"})
        self.assertEqual(Voter.objects.get(election=self.election, email="maria@example.com").field, {})
        self.assertEqual(result.as_dict()["created"], 2)

    def test_rejects_csv_without_email_column(self) -> None:
        with self.assertRaises(BadRequestError):
            import_voters_from_csv(user=self.user, election_id=self.election.id, csv_text="name\nJuan\n")
        self.assertEqual(Voter.objects.filter(election=self.election).count(), 1)

    def test_rejects_empty_csv(self) -> None:
        with self.assertRaises(BadRequestError):
            import_voters_from_csv(user=self.user, election_id=self.election.id, csv_text="   ")
