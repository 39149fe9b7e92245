import datetime

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from django.utils import timezone

from elections.errors import ElectionNotFoundError
from elections.models import Election, Partylist
from elections.schedule import realtime_cutoff
from elections.tabulation import get_realtime_results, realtime_results_payload, tabulate_election
from elections.tests.utils_test_data import (
    make_candidate,
    make_election,
    make_position,
    make_user,
    make_voter,
    record_vote,
)


class RealtimeTabulationTests(TestCase):
    def setUp(self) -> None:
        # Half past the hour keeps the free-plan cutoff strictly in the past.
        self.now = realtime_cutoff(now=timezone.now()) + datetime.timedelta(minutes=30)
        self.election = make_election(
            now=self.now,
            plan=Election.Plan.plus,
            publicity=Election.Publicity.public,
            is_candidates_visible_in_realtime_when_ongoing=True,
        )
        self.party = Partylist.objects.create(election=self.election, name="Alpha Party", acronym="ALP")
        self.president = make_position(self.election, "President", order=0)
        self.alice = make_candidate(self.president, "Alice", "Santos", partylist=self.party)
        self.bob = make_candidate(self.president, "Bob", "Reyes")
        self.carol = make_candidate(self.president, "Carol", "Cruz")

        self.voters = [make_voter(self.election, f"v{i}@example.com") for i in range(5)]

    def _names(self, position_result) -> list[str]:
        return [c.first_name for c in position_result.candidates]

    def test_candidates_sorted_by_votes_with_creation_order_tie_break(self) -> None:
        record_vote(self.voters[0], self.president, self.bob)
        record_vote(self.voters[1], self.president, self.bob)
        record_vote(self.voters[2], self.president, self.carol)
        record_vote(self.voters[3], self.president, self.alice)
        record_vote(self.voters[4], self.president, None)

        results = tabulate_election(self.election, now=self.now)

        (president,) = results.positions
        self.assertEqual(self._names(president), ["Bob", "Alice", "Carol"])
        self.assertEqual([c.vote_count for c in president.candidates], [2, 1, 1])
        self.assertEqual(president.abstain_count, 1)

    def test_zero_vote_candidates_keep_creation_order(self) -> None:
        results = tabulate_election(self.election, now=self.now)
        self.assertEqual(self._names(results.positions[0]), ["Alice", "Bob", "Carol"])
        self.assertEqual(results.positions[0].abstain_count, 0)

    def test_positions_follow_order_and_skip_deleted_rows(self) -> None:
        treasurer = make_position(self.election, "Treasurer", order=2)
        secretary = make_position(self.election, "Secretary", order=1)
        gone = make_position(self.election, "Gone", order=3)
        gone.soft_delete()
        self.carol.soft_delete()

        results = tabulate_election(self.election, now=self.now)

        self.assertEqual([p.name for p in results.positions], ["President", "Secretary", "Treasurer"])
        self.assertEqual([p.id for p in results.positions][1:], [secretary.id, treasurer.id])
        self.assertEqual(self._names(results.positions[0]), ["Alice", "Bob"])

    def test_real_names_when_visible(self) -> None:
        results = tabulate_election(self.election, now=self.now)
        alice = results.positions[0].candidates[0]
        self.assertFalse(results.is_anonymized)
        self.assertEqual((alice.id, alice.first_name, alice.last_name), (self.alice.id, "Alice", "Santos"))
        self.assertEqual(alice.partylist_acronym, "ALP")

    def test_anonymized_while_ongoing_when_names_hidden(self) -> None:
        Election.objects.filter(pk=self.election.pk).update(is_candidates_visible_in_realtime_when_ongoing=False)
        self.election.refresh_from_db()
        record_vote(self.voters[0], self.president, self.carol)

        results = tabulate_election(self.election, now=self.now)

        self.assertTrue(results.is_anonymized)
        candidates = results.positions[0].candidates
        self.assertEqual([c.first_name for c in candidates], ["Candidate 1", "Candidate 2", "Candidate 3"])
        self.assertEqual([c.vote_count for c in candidates], [1, 0, 0])
        for candidate in candidates:
            self.assertIsNone(candidate.id)
            self.assertEqual(candidate.middle_name, "")
            self.assertEqual(candidate.last_name, "")
            self.assertIsNone(candidate.partylist_acronym)

    def test_real_names_outside_voting_hours(self) -> None:
        hour = (timezone.localtime(self.now).hour + 3) % 24
        Election.objects.filter(pk=self.election.pk).update(
            is_candidates_visible_in_realtime_when_ongoing=False,
            voting_hour_start=hour,
            voting_hour_end=hour,
        )
        self.election.refresh_from_db()
        record_vote(self.voters[0], self.president, self.alice, created_at=self.now)

        closed = tabulate_election(self.election, now=self.now)
        self.assertFalse(closed.is_ongoing)
        self.assertFalse(closed.is_ended)
        self.assertFalse(closed.is_anonymized)
        self.assertEqual(closed.positions[0].candidates[0].first_name, "Alice")
        self.assertEqual(closed.positions[0].candidates[0].id, self.alice.id)

        inside = tabulate_election(self.election, now=self.now + datetime.timedelta(hours=3))
        self.assertTrue(inside.is_ongoing)
        self.assertTrue(inside.is_anonymized)

    def test_real_names_after_end(self) -> None:
        Election.objects.filter(pk=self.election.pk).update(is_candidates_visible_in_realtime_when_ongoing=False)
        self.election.refresh_from_db()

        after = tabulate_election(self.election, now=self.election.end_date + datetime.timedelta(minutes=1))
        self.assertTrue(after.is_ended)
        self.assertFalse(after.is_anonymized)
        self.assertEqual(after.positions[0].candidates[0].first_name, "Alice")

    def test_not_anonymized_before_start(self) -> None:
        Election.objects.filter(pk=self.election.pk).update(is_candidates_visible_in_realtime_when_ongoing=False)
        self.election.refresh_from_db()

        results = tabulate_election(self.election, now=self.election.start_date - datetime.timedelta(minutes=1))
        self.assertFalse(results.is_anonymized)

    def test_free_plan_counts_only_votes_before_the_current_hour(self) -> None:
        Election.objects.filter(pk=self.election.pk).update(plan=Election.Plan.free)
        self.election.refresh_from_db()
        cutoff = realtime_cutoff(now=self.now)

        record_vote(self.voters[0], self.president, self.alice, created_at=cutoff - datetime.timedelta(minutes=5))
        record_vote(self.voters[1], self.president, self.bob, created_at=cutoff + datetime.timedelta(minutes=5))
        record_vote(self.voters[2], self.president, None, created_at=cutoff + datetime.timedelta(minutes=5))

        results = tabulate_election(self.election, now=self.now)
        self.assertEqual(results.counted_until, cutoff)
        counts = {c.first_name: c.vote_count for c in results.positions[0].candidates}
        self.assertEqual(counts, {"Alice": 1, "Bob": 0, "Carol": 0})
        self.assertEqual(results.positions[0].abstain_count, 0)

        ended = tabulate_election(self.election, now=self.election.end_date + datetime.timedelta(seconds=1))
        self.assertIsNone(ended.counted_until)
        self.assertEqual({c.first_name: c.vote_count for c in ended.positions[0].candidates}["Bob"], 1)
        self.assertEqual(ended.positions[0].abstain_count, 1)

    def test_plus_plan_counts_live(self) -> None:
        record_vote(self.voters[0], self.president, self.bob, created_at=self.now)

        results = tabulate_election(self.election, now=self.now)
        self.assertIsNone(results.counted_until)
        self.assertEqual(results.positions[0].candidates[0].first_name, "Bob")

    def test_output_is_deterministic(self) -> None:
        record_vote(self.voters[0], self.president, self.carol)
        record_vote(self.voters[1], self.president, self.alice)

        first = realtime_results_payload(tabulate_election(self.election, now=self.now))
        second = realtime_results_payload(tabulate_election(self.election, now=self.now))
        self.assertEqual(first, second)
        self.assertEqual(first["positions"][0]["candidates"][0]["partylist"], {"acronym": "ALP"})


class RealtimeResultsVisibilityTests(TestCase):
    def setUp(self) -> None:
        self.commissioner = make_user("commissioner")
        self.voter_user = make_user("voter")
        self.stranger = make_user("stranger")
        self.election = make_election(creator=self.commissioner)
        make_voter(self.election, "voter@example.com")

    def _set_publicity(self, publicity: str) -> None:
        Election.objects.filter(pk=self.election.pk).update(publicity=publicity)

    def test_private_is_commissioner_only(self) -> None:
        self._set_publicity(Election.Publicity.private)
        get_realtime_results(user=self.commissioner, slug=self.election.slug)
        for user in (self.voter_user, self.stranger, AnonymousUser()):
            with self.subTest(user=str(user)):
                with self.assertRaises(ElectionNotFoundError):
                    get_realtime_results(user=user, slug=self.election.slug)

    def test_voter_publicity_admits_voters(self) -> None:
        self._set_publicity(Election.Publicity.voter)
        get_realtime_results(user=self.commissioner, slug=self.election.slug)
        get_realtime_results(user=self.voter_user, slug=self.election.slug)
        with self.assertRaises(ElectionNotFoundError):
            get_realtime_results(user=self.stranger, slug=self.election.slug)

    def test_public_admits_anyone(self) -> None:
        self._set_publicity(Election.Publicity.public)
        results = get_realtime_results(user=AnonymousUser(), slug=self.election.slug.upper())
        self.assertEqual(results.election.id, self.election.id)

    def test_deleted_election_is_not_found(self) -> None:
        self._set_publicity(Election.Publicity.public)
        self.election.soft_delete()
        with self.assertRaises(ElectionNotFoundError):
            get_realtime_results(user=self.commissioner, slug=self.election.slug)
