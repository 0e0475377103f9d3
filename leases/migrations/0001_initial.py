from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import simple_history.models

LEASE_STATUS_CHOICES = [
    ("generated", "Généré"),
    ("sent", "Envoyé au prestataire"),
    ("pending", "En cours de signature"),
    ("signed_pending_render", "Signé, PDF à régénérer"),
    ("signed", "Signé et finalisé"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("location", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Lease",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "status",
                    models.CharField(
                        choices=LEASE_STATUS_CHOICES,
                        default="generated",
                        max_length=32,
                        verbose_name="Statut du bail",
                    ),
                ),
                (
                    "base_path",
                    models.CharField(
                        help_text="Document non signé (source de toute incrustation)",
                        max_length=255,
                    ),
                ),
                ("signed_path", models.CharField(blank=True, max_length=255, null=True)),
                ("landlord_signature_path", models.CharField(blank=True, max_length=255, null=True)),
                ("tenant_signature_path", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "provider_envelope_id",
                    models.CharField(
                        blank=True,
                        help_text="Enveloppe du prestataire (parcours de signature externe uniquement)",
                        max_length=64,
                        null=True,
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("due_date", models.DateField(blank=True, null=True)),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="leases",
                        to="location.property",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="leases",
                        to="location.tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "Bail",
                "verbose_name_plural": "Baux",
                "ordering": ["-id"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalLease",
            fields=[
                ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")),
                ("created_at", models.DateTimeField(blank=True, editable=False)),
                ("updated_at", models.DateTimeField(blank=True, editable=False)),
                (
                    "status",
                    models.CharField(
                        choices=LEASE_STATUS_CHOICES,
                        default="generated",
                        max_length=32,
                        verbose_name="Statut du bail",
                    ),
                ),
                (
                    "base_path",
                    models.CharField(
                        help_text="Document non signé (source de toute incrustation)",
                        max_length=255,
                    ),
                ),
                ("signed_path", models.CharField(blank=True, max_length=255, null=True)),
                ("landlord_signature_path", models.CharField(blank=True, max_length=255, null=True)),
                ("tenant_signature_path", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "provider_envelope_id",
                    models.CharField(
                        blank=True,
                        help_text="Enveloppe du prestataire (parcours de signature externe uniquement)",
                        max_length=64,
                        null=True,
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("history_id", models.AutoField(primary_key=True, serialize=False)),
                ("history_date", models.DateTimeField(db_index=True)),
                ("history_change_reason", models.CharField(max_length=100, null=True)),
                (
                    "history_type",
                    models.CharField(
                        choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                        max_length=1,
                    ),
                ),
                (
                    "history_user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "property",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="location.property",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="location.tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "historical Bail",
                "verbose_name_plural": "historical Baux",
                "ordering": ("-history_date", "-history_id"),
                "get_latest_by": ("history_date", "history_id"),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
