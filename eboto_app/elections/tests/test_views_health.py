from unittest.mock import patch

from django.db import OperationalError
from django.test import TestCase
from post_office.models import EmailTemplate


class HealthViewsTests(TestCase):
    def test_healthz_returns_ok(self) -> None:
        resp = self.client.get("/healthz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Content-Type"], "application/json")
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_readyz_returns_ok_with_seeded_templates(self) -> None:
        resp = self.client.get("/readyz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ready", "database": "ok", "email_templates": "ok"})

    def test_readyz_reports_missing_email_templates(self) -> None:
        EmailTemplate.objects.filter(name="election-vote-casted").delete()

        with self.assertLogs("elections.views_health", level="ERROR"):
            resp = self.client.get("/readyz")

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["missing_email_templates"], ["election-vote-casted"])

    def test_readyz_returns_503_when_db_unavailable(self) -> None:
        with (
            patch("django.db.connection.ensure_connection", side_effect=OperationalError("db down")),
            self.assertLogs("elections.views_health", level="ERROR"),
        ):
            resp = self.client.get("/readyz")

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json(), {"status": "not ready", "error": "db down"})

    def test_health_endpoints_are_get_only(self) -> None:
        self.assertEqual(self.client.post("/healthz").status_code, 405)
