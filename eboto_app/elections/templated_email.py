import json
import logging
import re
from collections.abc import Mapping

import post_office.mail
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.template import engines
from post_office.models import Email, EmailTemplate

logger = logging.getLogger(__name__)

_REQUIRED_TEMPLATE_VAR_PATTERN = re.compile(r"{{\s*(?P<var>[A-Za-z0-9_]+)\b")

# Variables a template must keep rendering for the workflow to make sense.
_REQUIRED_TEMPLATE_VARS: dict[str, tuple[str, ...]] = {
    "ELECTION_VOTE_CASTED_EMAIL_TEMPLATE_NAME": ("election_name",),
}


def configured_email_template_names() -> frozenset[str]:
    """Return template names referenced by Django settings."""
    return frozenset({settings.ELECTION_VOTE_CASTED_EMAIL_TEMPLATE_NAME})


def post_office_json_context(context: Mapping[str, object]) -> dict[str, object]:
    """Coerce context values to JSON-safe payloads for django-post-office."""
    encoded = json.dumps(dict(context), cls=DjangoJSONEncoder)
    decoded = json.loads(encoded)
    if isinstance(decoded, dict):
        return {str(k): v for k, v in decoded.items()}
    return {}


def _warn_on_missing_required_vars(template: EmailTemplate) -> None:
    for setting_name, required in _REQUIRED_TEMPLATE_VARS.items():
        if template.name != getattr(settings, setting_name, None):
            continue
        sources = (template.subject or "", template.content or "", template.html_content or "")
        rendered_vars = {m.group("var") for src in sources for m in _REQUIRED_TEMPLATE_VAR_PATTERN.finditer(src)}
        for var in required:
            if var not in rendered_vars:
                logger.warning(
                    "EmailTemplate is missing required variable: %s (template=%s)",
                    var,
                    template.name,
                )


def queue_templated_email(
    *,
    recipients: list[str],
    sender: str,
    template_name: str,
    context: Mapping[str, object],
) -> Email:
    """Render an EmailTemplate now and queue the result with django-post-office.

    Rendering up front means a template edited after queueing cannot break
    delivery of mail that is already waiting in the queue.
    """

    template = EmailTemplate.objects.get(name=template_name)
    _warn_on_missing_required_vars(template)

    template_engine = engines["post_office"]
    rendered_subject = template_engine.from_string(template.subject or "").render(dict(context))
    rendered_text = template_engine.from_string(template.content or "").render(dict(context))
    rendered_html = template_engine.from_string(template.html_content or "").render(dict(context))

    email = post_office.mail.send(
        recipients=recipients,
        sender=sender,
        subject=rendered_subject.strip(),
        message=rendered_text,
        html_message=rendered_html,
        render_on_delivery=False,
    )

    # Keep the link to the template and its context for the post-office admin.
    try:
        email.template = template
        email.context = dict(context)
        email.save(update_fields=["template", "context"])
    except Exception:
        logger.exception("Failed to persist post_office template/context metadata template=%s", template_name)

    return email
