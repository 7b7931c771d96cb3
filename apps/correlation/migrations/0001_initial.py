from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CorrelationRecord",
            fields=[
                (
                    "group_key",
                    models.CharField(
                        help_text="project:environment:source_issue_id",
                        max_length=512,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "triage_ticket_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Ticket id in the triage store (ClickUp task by default).",
                        max_length=100,
                    ),
                ),
                (
                    "escalation_ticket_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Ticket id in the escalation store (GitHub issue number by default).",
                        max_length=100,
                    ),
                ),
                ("occurrences", models.PositiveIntegerField(default=1)),
                (
                    "first_seen",
                    models.DateTimeField(
                        help_text="Set on the first correlated delivery, never changed afterwards."
                    ),
                ),
                ("last_seen", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-updated_at"],
            },
        ),
    ]
