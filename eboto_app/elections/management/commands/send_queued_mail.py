import logging
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, override

from django.core.management.base import BaseCommand
from django.db import connection
from post_office.mail import get_queued
from post_office.management.commands.send_queued_mail import Command as PostOfficeCommand

logger = logging.getLogger(__name__)

# Vote-casted receipts are queued in bursts while an election runs; overlapping
# cron runs must not pick up the same batch.
_LOCK_NAME = "elections.send_queued_mail"
_LOCK_KEY = zlib.crc32(_LOCK_NAME.encode("utf-8"))


@contextmanager
def _advisory_lock(key: int) -> Iterator[bool]:
    """Yield True when this process holds the PostgreSQL session lock ``key``."""
    if connection.vendor != "postgresql":
        yield True
        return

    with connection.cursor() as cursor:
        cursor.execute("SELECT pg_try_advisory_lock(%s)", [key])
        row = cursor.fetchone()
    acquired = bool(row and row[0])
    try:
        yield acquired
    finally:
        if acquired:
            with connection.cursor() as cursor:
                cursor.execute("SELECT pg_advisory_unlock(%s)", [key])


class Command(BaseCommand):
    help = "Deliver queued emails (vote receipts) unless another run is already delivering."

    @override
    def add_arguments(self, parser) -> None:
        PostOfficeCommand().add_arguments(parser)

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        options.setdefault("log_level", 2)
        with _advisory_lock(_LOCK_KEY) as acquired:
            if not acquired:
                logger.info("send_queued_mail: another run holds the lock; skipping")
                return
            if not get_queued().exists():
                logger.debug("send_queued_mail: queue is empty")
                return
            PostOfficeCommand().handle(*args, **options)
