"""Who may see or manage an election.

Commissioners manage an election; publicity decides who else can read it:

- PRIVATE: commissioners only
- VOTER: commissioners and the election's voters
- PUBLIC: anyone, signed in or not
"""

from django.contrib.auth.models import AbstractBaseUser, AnonymousUser

from elections.errors import ElectionNotFoundError, NotACommissionerError, NotLoggedInError
from elections.models import Commissioner, Election, Voter

type AnyUser = AbstractBaseUser | AnonymousUser


def user_email(user: AnyUser) -> str:
    if not getattr(user, "is_authenticated", False):
        return ""
    return str(getattr(user, "email", "") or "").strip().lower()


def require_login(user: AnyUser) -> None:
    if not getattr(user, "is_authenticated", False):
        raise NotLoggedInError()


def get_active_election(*, election_id: int | None = None, slug: str | None = None) -> Election:
    """Load a non-deleted election by id or slug, or raise NOT_FOUND."""
    qs = Election.objects.all()
    if election_id is not None:
        qs = qs.filter(pk=election_id)
    elif slug is not None:
        qs = qs.filter(slug=str(slug).strip().lower())
    else:
        raise ElectionNotFoundError()

    election = qs.first()
    if election is None:
        raise ElectionNotFoundError()
    return election


def commissioner_for(user: AnyUser, election: Election) -> Commissioner | None:
    if not getattr(user, "is_authenticated", False):
        return None
    return Commissioner.objects.filter(election=election, user=user).first()


def require_commissioner(user: AnyUser, election: Election) -> Commissioner:
    require_login(user)
    commissioner = commissioner_for(user, election)
    if commissioner is None:
        raise NotACommissionerError()
    return commissioner


def voter_for(user: AnyUser, election: Election) -> Voter | None:
    email = user_email(user)
    if not email:
        return None
    return Voter.objects.filter(election=election, email=email).first()


def can_view_election(user: AnyUser, election: Election) -> bool:
    if election.publicity == Election.Publicity.public:
        return True
    if commissioner_for(user, election) is not None:
        return True
    if election.publicity == Election.Publicity.voter:
        return voter_for(user, election) is not None
    return False


def get_viewable_election(user: AnyUser, *, slug: str | None = None, election_id: int | None = None) -> Election:
    """Like ``get_active_election`` but hides elections the caller may not read."""
    election = get_active_election(election_id=election_id, slug=slug)
    if not can_view_election(user, election):
        raise ElectionNotFoundError()
    return election


def get_managed_election(user: AnyUser, *, election_id: int | None = None, slug: str | None = None) -> Election:
    election = get_active_election(election_id=election_id, slug=slug)
    require_commissioner(user, election)
    return election
