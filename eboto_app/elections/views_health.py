import logging

from django.db import DatabaseError, connection
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET
from post_office.models import EmailTemplate

from elections.templated_email import configured_email_template_names

logger = logging.getLogger(__name__)


@require_GET
def healthz(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"status": "ok"})


@require_GET
def readyz(_request: HttpRequest) -> JsonResponse:
    """Ready once the database answers and the notification templates are seeded."""
    try:
        connection.ensure_connection()
        expected = configured_email_template_names()
        present = set(EmailTemplate.objects.filter(name__in=expected).values_list("name", flat=True))
    except DatabaseError as exc:
        logger.exception("Health check readyz failed")
        return JsonResponse({"status": "not ready", "error": str(exc)}, status=503)

    missing = sorted(expected - present)
    if missing:
        logger.error("Health check readyz failed: missing email templates %s", ", ".join(missing))
        return JsonResponse(
            {"status": "not ready", "database": "ok", "missing_email_templates": missing},
            status=503,
        )

    return JsonResponse({"status": "ready", "database": "ok", "email_templates": "ok"})
