import logging
from typing import override

from django.conf import settings
from django.core.validators import MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

logger = logging.getLogger(__name__)

INDEPENDENT_PARTYLIST_ACRONYM = "IND"
INDEPENDENT_PARTYLIST_NAME = "Independent"


class SoftDeleteQuerySet(models.QuerySet):
    def soft_delete(self) -> int:
        return self.update(deleted_at=timezone.now())


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Default manager that hides tombstoned rows.

    Reverse relations (``election.positions``) derive from the default manager,
    so they are filtered too. Use ``all_objects`` to see deleted rows.
    """

    @override
    def get_queryset(self) -> SoftDeleteQuerySet:
        return super().get_queryset().filter(deleted_at__isnull=True)


class SoftDeleteModel(models.Model):
    deleted_at = models.DateTimeField(blank=True, null=True, db_index=True)

    objects = SoftDeleteManager()
    all_objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at"])


class Election(SoftDeleteModel):
    class Publicity(models.TextChoices):
        private = "PRIVATE", "Private"
        voter = "VOTER", "Voter"
        public = "PUBLIC", "Public"

    class NameArrangement(models.TextChoices):
        first_middle_last = "first_middle_last", "First Middle Last"
        last_first_middle = "last_first_middle", "Last, First Middle"
        first_last = "first_last", "First Last"

    class Plan(models.TextChoices):
        free = "free", "Free"
        plus = "plus", "Plus"

    slug = models.SlugField(max_length=64)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    # Optional daily voting window, in hours of settings.TIME_ZONE (inclusive).
    voting_hour_start = models.PositiveSmallIntegerField(
        blank=True,
        null=True,
        validators=[MaxValueValidator(23)],
    )
    voting_hour_end = models.PositiveSmallIntegerField(
        blank=True,
        null=True,
        validators=[MaxValueValidator(23)],
    )
    publicity = models.CharField(max_length=16, choices=Publicity.choices, default=Publicity.private)
    is_candidates_visible_in_realtime_when_ongoing = models.BooleanField(default=False)
    name_arrangement = models.CharField(
        max_length=32,
        choices=NameArrangement.choices,
        default=NameArrangement.first_middle_last,
    )
    plan = models.CharField(max_length=16, choices=Plan.choices, default=Plan.free)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-start_date", "id")
        constraints = [
            models.UniqueConstraint(
                fields=["slug"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_election_slug_alive",
            ),
            models.CheckConstraint(
                condition=Q(start_date__lt=models.F("end_date")),
                name="election_start_before_end",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} (@{self.slug})"

    @property
    def has_voting_hours(self) -> bool:
        return self.voting_hour_start is not None and self.voting_hour_end is not None


class Commissioner(SoftDeleteModel):
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="commissioners")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="commissioner_roles")
    # The account that created the election; it alone may remove other commissioners.
    is_creator = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(
                fields=["election", "user"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_commissioner_election_user_alive",
            ),
            models.UniqueConstraint(
                fields=["election"],
                condition=Q(deleted_at__isnull=True, is_creator=True),
                name="uniq_commissioner_election_creator_alive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.election_id}:{self.user_id}"


class Position(SoftDeleteModel):
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="positions")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    order = models.PositiveIntegerField(default=0)
    min = models.PositiveSmallIntegerField(default=0)
    max = models.PositiveSmallIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("order", "id")
        constraints = [
            models.CheckConstraint(condition=Q(max__gte=1), name="position_max_at_least_one"),
            models.CheckConstraint(condition=Q(min__lte=models.F("max")), name="position_min_le_max"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.election_id})"


class Partylist(SoftDeleteModel):
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="partylists")
    name = models.CharField(max_length=255)
    acronym = models.CharField(max_length=24)
    description = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(
                fields=["election", "acronym"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_partylist_election_acronym_alive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.acronym} ({self.election_id})"

    @property
    def is_independent(self) -> bool:
        return self.acronym == INDEPENDENT_PARTYLIST_ACRONYM


class Candidate(SoftDeleteModel):
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="candidates")
    position = models.ForeignKey(Position, on_delete=models.CASCADE, related_name="candidates")
    partylist = models.ForeignKey(Partylist, on_delete=models.PROTECT, related_name="candidates")
    first_name = models.CharField(max_length=255)
    middle_name = models.CharField(max_length=255, blank=True, default="")
    last_name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # Creation order is also the tie-break for equal realtime vote counts.
        ordering = ("created_at", "id")

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name} ({self.election_id})"


class VoterField(models.Model):
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="voter_fields")
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(fields=["election", "name"], name="uniq_voterfield_election_name"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.election_id})"


class Voter(SoftDeleteModel):
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="voters")
    email = models.EmailField(max_length=320)
    # Voter field name -> value, e.g. {"College": "CEIT"}.
    field = models.JSONField(blank=True, default=dict)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(
                fields=["election", "email"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_voter_election_email_alive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.election_id})"

    @override
    def save(self, *args, **kwargs) -> None:
        # Emails are matched case-insensitively against the signed-in account.
        self.email = str(self.email or "").strip().lower()
        super().save(*args, **kwargs)


class Ballot(models.Model):
    """One submission per voter per election; the unique row is the double-vote guard."""

    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="ballots")
    voter = models.ForeignKey(Voter, on_delete=models.CASCADE, related_name="ballots")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["election", "voter"], name="uniq_ballot_election_voter"),
        ]

    def __str__(self) -> str:
        return f"ballot:{self.election_id}:{self.voter_id}"


class Vote(models.Model):
    """A ballot line: one chosen candidate, or an abstention when ``candidate`` is null."""

    ballot = models.ForeignKey(Ballot, on_delete=models.CASCADE, related_name="votes")
    election = models.ForeignKey(Election, on_delete=models.CASCADE, related_name="votes")
    voter = models.ForeignKey(Voter, on_delete=models.CASCADE, related_name="votes")
    position = models.ForeignKey(Position, on_delete=models.CASCADE, related_name="votes")
    candidate = models.ForeignKey(
        Candidate,
        on_delete=models.CASCADE,
        related_name="votes",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["voter", "candidate"],
                condition=Q(candidate__isnull=False),
                name="uniq_vote_voter_candidate",
            ),
            models.UniqueConstraint(
                fields=["voter", "position"],
                condition=Q(candidate__isnull=True),
                name="uniq_vote_voter_position_abstain",
            ),
        ]
        indexes = [
            models.Index(fields=["election", "created_at"], name="vote_el_at"),
        ]

    def __str__(self) -> str:
        target = self.candidate_id if self.candidate_id is not None else "abstain"
        return f"vote:{self.election_id}:{self.position_id}:{target}"

    @property
    def is_abstain(self) -> bool:
        return self.candidate_id is None
