from django.db import migrations

_HTML_CONTENT = (
    "<p>Hello,</p>\n"
    "<p>Your vote in <strong>{{ election_name }}</strong> (@{{ election_slug }}) has been recorded.</p>\n"
    "<ul>\n"
    "{% for position in positions %}"
    "<li><strong>{{ position.name }}</strong>: "
    "{% if position.is_abstain %}Abstained{% else %}{{ position.candidates|join:\", \" }}{% endif %}</li>\n"
    "{% endfor %}"
    "</ul>\n"
    "<p>You can follow the realtime results at <a href=\"{{ realtime_url }}\">{{ realtime_url }}</a>.</p>\n"
    "<p><em>eBoto</em></p>\n"
)

_TEXT_CONTENT = (
    "Hello,\n\n"
    "Your vote in {{ election_name }} (@{{ election_slug }}) has been recorded.\n\n"
    "{% for position in positions %}"
    "- {{ position.name }}: "
    "{% if position.is_abstain %}Abstained{% else %}{{ position.candidates|join:\", \" }}{% endif %}\n"
    "{% endfor %}"
    "\nYou can follow the realtime results at {{ realtime_url }}\n\n"
    "eBoto\n"
)


def add_vote_casted_template(apps, schema_editor) -> None:
    EmailTemplate = apps.get_model("post_office", "EmailTemplate")

    EmailTemplate.objects.update_or_create(
        name="election-vote-casted",
        defaults={
            "description": "Sent to a voter after their ballot is recorded",
            "subject": "Your vote in {{ election_name }} has been recorded",
            "html_content": _HTML_CONTENT,
            "content": _TEXT_CONTENT,
        },
    )


def noop_reverse(apps, schema_editor) -> None:
    # Keep templates on rollback to avoid losing admin edits.
    return


class Migration(migrations.Migration):
    dependencies = [
        ("elections", "0001_initial"),
        ("post_office", "0011_models_help_text"),
    ]

    operations = [
        migrations.RunPython(
            add_vote_casted_template,
            reverse_code=noop_reverse,
        ),
    ]
