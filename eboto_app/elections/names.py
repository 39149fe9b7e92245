from elections.models import Candidate, Election


def format_candidate_name(
    *,
    first_name: str,
    middle_name: str,
    last_name: str,
    arrangement: str,
) -> str:
    first = str(first_name or "").strip()
    middle = str(middle_name or "").strip()
    last = str(last_name or "").strip()

    if arrangement == Election.NameArrangement.last_first_middle:
        given = " ".join(part for part in (first, middle) if part)
        return f"{last}, {given}" if given else last
    if arrangement == Election.NameArrangement.first_last:
        return " ".join(part for part in (first, last) if part)
    return " ".join(part for part in (first, middle, last) if part)


def candidate_display_name(candidate: Candidate, *, election: Election) -> str:
    return format_candidate_name(
        first_name=candidate.first_name,
        middle_name=candidate.middle_name,
        last_name=candidate.last_name,
        arrangement=election.name_arrangement,
    )
