import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SigningEnvelope",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("sent", "Envoyée"), ("signed", "Signée")],
                        default="sent",
                        max_length=20,
                    ),
                ),
                ("file_path", models.CharField(help_text="Clé du document transmis pour signature", max_length=255)),
                ("signer_name", models.CharField(blank=True, max_length=200)),
                ("signer_email", models.EmailField(blank=True, max_length=254)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Enveloppe de signature",
                "verbose_name_plural": "Enveloppes de signature",
                "ordering": ["-created_at"],
            },
        ),
    ]
