import datetime

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from django.utils import timezone

from elections import election_services
from elections.errors import (
    BadRequestError,
    ConflictError,
    ElectionNotFoundError,
    NotACommissionerError,
    NotFoundError,
    NotLoggedInError,
    UnauthorizedError,
)
from elections.models import Candidate, Commissioner, Election, Partylist, Position, Vote, Voter
from elections.tests.utils_test_data import make_candidate, make_election, make_position, make_user, make_voter, record_vote


class CreateElectionTests(TestCase):
    def setUp(self) -> None:
        self.user = make_user("creator")
        self.start = timezone.now() + datetime.timedelta(days=1)
        self.end = self.start + datetime.timedelta(days=2)

    def _create(self, slug: str = "csso-2024", **kwargs) -> Election:
        return election_services.create_election(
            user=self.user,
            name="CSSO 2024",
            slug=slug,
            start_date=kwargs.pop("start_date", self.start),
            end_date=kwargs.pop("end_date", self.end),
            **kwargs,
        )

    def test_creates_creator_independent_partylist_and_template_positions(self) -> None:
        election = self._create(" CSSO-2024 ", template="student-council")

        self.assertEqual(election.slug, "csso-2024")
        self.assertEqual(election.publicity, Election.Publicity.private)
        self.assertEqual(election.plan, Election.Plan.free)

        commissioner = Commissioner.objects.get(election=election)
        self.assertEqual(commissioner.user, self.user)
        self.assertTrue(commissioner.is_creator)

        partylists = list(Partylist.objects.filter(election=election).values_list("acronym", "name"))
        self.assertEqual(partylists, [("IND", "Independent")])

        positions = list(Position.objects.filter(election=election).values_list("name", "order"))
        self.assertEqual(positions[0], ("President", 0))
        self.assertEqual(positions[1], ("Vice President", 1))

    def test_none_template_creates_no_positions(self) -> None:
        election = self._create(template="none")
        self.assertFalse(Position.objects.filter(election=election).exists())

    def test_slug_rules(self) -> None:
        for slug in ("", "has space", "under_score", "dashboard", "api"):
            with self.subTest(slug=slug):
                with self.assertRaises(BadRequestError):
                    self._create(slug)

    def test_duplicate_slug_conflicts_until_deleted(self) -> None:
        first = self._create()
        with self.assertRaises(ConflictError):
            self._create()

        first.soft_delete()
        second = self._create()
        self.assertNotEqual(first.id, second.id)

    def test_start_must_precede_end(self) -> None:
        with self.assertRaises(BadRequestError):
            self._create(start_date=self.end, end_date=self.start)

    def test_requires_login(self) -> None:
        with self.assertRaises(NotLoggedInError):
            election_services.create_election(
                user=AnonymousUser(),
                name="X",
                slug="x",
                start_date=self.start,
                end_date=self.end,
            )


class EditAndDeleteElectionTests(TestCase):
    def setUp(self) -> None:
        self.creator = make_user("creator")
        self.election = make_election(creator=self.creator)

    def _edit(self, user=None, **overrides) -> Election:
        values = {
            "name": "Renamed",
            "slug": self.election.slug,
            "description": "About",
            "start_date": self.election.start_date,
            "end_date": self.election.end_date,
            "publicity": Election.Publicity.public,
        }
        values.update(overrides)
        return election_services.edit_election(user=user or self.creator, election_id=self.election.id, **values)

    def test_edit_updates_settings(self) -> None:
        election = self._edit(
            voting_hour_start=8,
            voting_hour_end=17,
            is_candidates_visible_in_realtime_when_ongoing=True,
            name_arrangement=Election.NameArrangement.last_first_middle,
        )
        election.refresh_from_db()
        self.assertEqual(election.name, "Renamed")
        self.assertEqual(election.publicity, Election.Publicity.public)
        self.assertEqual((election.voting_hour_start, election.voting_hour_end), (8, 17))
        self.assertTrue(election.is_candidates_visible_in_realtime_when_ongoing)

    def test_voting_hours_must_be_set_together_and_ordered(self) -> None:
        with self.assertRaises(BadRequestError):
            self._edit(voting_hour_start=8)
        with self.assertRaises(BadRequestError):
            self._edit(voting_hour_start=18, voting_hour_end=8)

    def test_slug_change_revalidates(self) -> None:
        make_election(slug="taken")
        with self.assertRaises(ConflictError):
            self._edit(slug="taken")
        self.assertEqual(self._edit(slug="New-Slug").slug, "new-slug")

    def test_only_commissioners_edit(self) -> None:
        with self.assertRaises(NotACommissionerError):
            self._edit(user=make_user("intruder"))

    def test_delete_hides_election_everywhere(self) -> None:
        Election.objects.filter(pk=self.election.pk).update(publicity=Election.Publicity.public)
        position = make_position(self.election, "President")
        make_candidate(position, "Alice")
        voter = make_voter(self.election, "voter@example.com")
        record_vote(voter, position, None)

        election_services.delete_election(user=self.creator, election_id=self.election.id)

        self.assertFalse(Election.objects.filter(pk=self.election.pk).exists())
        self.assertTrue(Election.all_objects.filter(pk=self.election.pk).exists())
        self.assertFalse(Commissioner.objects.filter(election_id=self.election.id).exists())
        for model in (Position, Candidate, Partylist, Voter):
            with self.subTest(model=model.__name__):
                self.assertFalse(model.objects.filter(election_id=self.election.id).exists())
                self.assertTrue(model.all_objects.filter(election_id=self.election.id).exists())
        self.assertEqual(Vote.objects.filter(election_id=self.election.id).count(), 1)
        self.assertEqual(election_services.list_my_elections(user=self.creator), [])
        with self.assertRaises(ElectionNotFoundError):
            election_services.get_election_by_slug(user=AnonymousUser(), slug=self.election.slug)
        with self.assertRaises(ElectionNotFoundError):
            election_services.delete_election(user=self.creator, election_id=self.election.id)

    def test_list_my_elections_only_lists_own(self) -> None:
        make_election(slug="someone-else", creator=make_user("other"))
        self.assertEqual(
            [e.slug for e in election_services.list_my_elections(user=self.creator)],
            [self.election.slug],
        )


class CommissionerManagementTests(TestCase):
    def setUp(self) -> None:
        self.creator = make_user("creator")
        self.helper = make_user("helper", email="Helper@Example.com")
        self.election = make_election(creator=self.creator)

    def test_add_by_email(self) -> None:
        commissioner = election_services.add_commissioner(
            user=self.creator,
            election_id=self.election.id,
            email="helper@example.com",
        )
        self.assertEqual(commissioner.user, self.helper)
        self.assertFalse(commissioner.is_creator)
        self.assertEqual(
            len(election_services.get_commissioners(user=self.helper, election_id=self.election.id)),
            2,
        )

    def test_add_unknown_email_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            election_services.add_commissioner(user=self.creator, election_id=self.election.id, email="nobody@x.com")

    def test_add_twice_conflicts(self) -> None:
        election_services.add_commissioner(user=self.creator, election_id=self.election.id, email="helper@example.com")
        with self.assertRaises(ConflictError):
            election_services.add_commissioner(
                user=self.creator,
                election_id=self.election.id,
                email="helper@example.com",
            )

    def test_only_creator_removes_and_creator_stays(self) -> None:
        added = election_services.add_commissioner(
            user=self.creator,
            election_id=self.election.id,
            email="helper@example.com",
        )
        creator_row = Commissioner.objects.get(election=self.election, is_creator=True)

        with self.assertRaises(UnauthorizedError):
            election_services.remove_commissioner(
                user=self.helper,
                election_id=self.election.id,
                commissioner_id=creator_row.id,
            )
        with self.assertRaises(BadRequestError):
            election_services.remove_commissioner(
                user=self.creator,
                election_id=self.election.id,
                commissioner_id=creator_row.id,
            )

        election_services.remove_commissioner(user=self.creator, election_id=self.election.id, commissioner_id=added.id)
        self.assertFalse(Commissioner.objects.filter(pk=added.pk).exists())

        # A removed commissioner can be added back.
        election_services.add_commissioner(user=self.creator, election_id=self.election.id, email="helper@example.com")


class ElectionPageTests(TestCase):
    def setUp(self) -> None:
        self.election = make_election(publicity=Election.Publicity.public)
        self.president = make_position(self.election, "President")
        self.alice = make_candidate(self.president, "Alice")
        self.user = make_user("juan")
        self.voter = make_voter(self.election, "juan@example.com")

    def test_page_reports_roster_and_voter_status(self) -> None:
        page = election_services.get_election_page(user=self.user, slug=self.election.slug)

        self.assertTrue(page["election"]["is_ongoing"])
        self.assertEqual(page["positions"][0]["name"], "President")
        self.assertEqual(page["positions"][0]["candidates"][0]["first_name"], "Alice")
        self.assertEqual(page["positions"][0]["candidates"][0]["partylist"]["acronym"], "IND")
        self.assertEqual(page["voter"]["email"], "juan@example.com")
        self.assertFalse(page["has_voted"])

        record_vote(self.voter, self.president, self.alice)
        page = election_services.get_election_page(user=self.user, slug=self.election.slug)
        self.assertTrue(page["has_voted"])

    def test_anonymous_visitor_has_no_voter_row(self) -> None:
        page = election_services.get_election_page(user=AnonymousUser(), slug=self.election.slug)
        self.assertIsNone(page["voter"])
        self.assertFalse(page["has_voted"])
