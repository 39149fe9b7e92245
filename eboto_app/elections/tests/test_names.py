from django.test import SimpleTestCase

from elections.models import Election
from elections.names import format_candidate_name


class FormatCandidateNameTests(SimpleTestCase):
    def test_arrangements(self) -> None:
        parts = {"first_name": "Juan", "middle_name": "Santos", "last_name": "Dela Cruz"}
        cases = {
            Election.NameArrangement.first_middle_last: "Juan Santos Dela Cruz",
            Election.NameArrangement.last_first_middle: "Dela Cruz, Juan Santos",
            Election.NameArrangement.first_last: "Juan Dela Cruz",
        }
        for arrangement, expected in cases.items():
            with self.subTest(arrangement=arrangement):
                self.assertEqual(format_candidate_name(**parts, arrangement=arrangement), expected)

    def test_blank_middle_name_leaves_no_gap(self) -> None:
        self.assertEqual(
            format_candidate_name(
                first_name="Maria",
                middle_name=" ",
                last_name="Reyes",
                arrangement=Election.NameArrangement.first_middle_last,
            ),
            "Maria Reyes",
        )
        self.assertEqual(
            format_candidate_name(
                first_name="Maria",
                middle_name="",
                last_name="Reyes",
                arrangement=Election.NameArrangement.last_first_middle,
            ),
            "Reyes, Maria",
        )
