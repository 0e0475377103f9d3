"""
Réconciliation des baux en attente.

- Régénère le PDF signé des baux restés en "signed_pending_render"
- Interroge le prestataire pour les baux envoyés et pas encore signés

Usage:
    python manage.py reconcile_leases

    # Une seule interrogation par enveloppe, sans attente
    python manage.py reconcile_leases --attempts 1 --backoff 0
"""

from django.core.management.base import BaseCommand

from leases.services import LeaseLifecycleService


class Command(BaseCommand):
    help = "Régénère les PDF signés en attente et interroge le prestataire de signature"

    def add_arguments(self, parser):
        parser.add_argument(
            "--attempts",
            type=int,
            help="Nombre d'interrogations par enveloppe (défaut: SIGNING_POLL_MAX_ATTEMPTS)",
        )
        parser.add_argument(
            "--backoff",
            type=float,
            help="Délai initial entre deux interrogations en secondes "
            "(défaut: SIGNING_POLL_BACKOFF_SECONDS)",
        )

    def handle(self, *args, **options):
        summary = LeaseLifecycleService().reconcile(
            max_attempts=options.get("attempts"),
            backoff_seconds=options.get("backoff"),
        )

        self.stdout.write(
            self.style.SUCCESS(
                f"✅ {summary['rendered']} PDF signé(s) régénéré(s), "
                f"{summary['provider_signed']} bail(aux) signé(s) chez le prestataire"
            )
        )
        if summary["render_failed"] or summary["provider_waiting"]:
            self.stdout.write(
                self.style.WARNING(
                    f"⏳ {summary['render_failed']} échec(s) de rendu, "
                    f"{summary['provider_waiting']} bail(aux) toujours en attente"
                )
            )
