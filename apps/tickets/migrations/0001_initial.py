from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StandardsDocument",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        help_text="Markdown shown under 'Standards & Expectations' in escalation tickets."
                    ),
                ),
                ("updated_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Standards",
                "verbose_name_plural": "Standards",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
