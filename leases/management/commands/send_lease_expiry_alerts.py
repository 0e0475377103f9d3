"""
Alerte les locataires dont le bail arrive à échéance.

À planifier une fois par jour (cron à 10h par exemple).

Usage:
    python manage.py send_lease_expiry_alerts

    # Baux se terminant dans 7 jours
    python manage.py send_lease_expiry_alerts --days 7
"""

from django.core.management.base import BaseCommand

from leases.alerts import send_lease_expiry_alerts


class Command(BaseCommand):
    help = "Envoie un email aux locataires dont le bail se termine dans N jours"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            help="Nombre de jours avant l'échéance (défaut: LEASE_EXPIRY_ALERT_DAYS)",
        )

    def handle(self, *args, **options):
        summary = send_lease_expiry_alerts(days=options.get("days"))

        self.stdout.write(
            self.style.SUCCESS(f"✅ {summary['sent']} alerte(s) d'échéance envoyée(s)")
        )
        if summary["skipped"] or summary["failed"]:
            self.stdout.write(
                self.style.WARNING(
                    f"⚠️ {summary['skipped']} locataire(s) sans email, "
                    f"{summary['failed']} envoi(s) en échec"
                )
            )
