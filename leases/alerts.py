"""
Alertes d'échéance des baux.

Chaque locataire dont le bail se termine exactement dans N jours (30 par
défaut) reçoit un email de rappel.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from leases.models import Lease

logger = logging.getLogger(__name__)

EXPIRY_SUBJECT = "Lease Expiry Notice"


def expiry_message(end_date: date) -> str:
    return f"Alert: your lease expires on {end_date.isoformat()}"


def send_lease_expiry_alerts(
    days: Optional[int] = None, today: Optional[date] = None
) -> dict:
    """
    Envoie l'alerte d'échéance aux locataires concernés.

    Returns:
        dict: {"sent": ..., "skipped": ..., "failed": ...}
    """
    if days is None:
        days = settings.LEASE_EXPIRY_ALERT_DAYS
    end_date = (today or timezone.localdate()) + timedelta(days=days)

    summary = {"sent": 0, "skipped": 0, "failed": 0}
    leases = Lease.objects.filter(end_date=end_date).select_related("tenant")
    for lease in leases:
        email = lease.tenant.email
        if not email:
            logger.warning(f"⚠️ Bail {lease.id}: locataire sans email, alerte ignorée")
            summary["skipped"] += 1
            continue

        try:
            send_mail(
                subject=EXPIRY_SUBJECT,
                message=expiry_message(lease.end_date),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[email],
            )
        except OSError as e:
            # SMTPException hérite d'OSError : on passe au bail suivant
            logger.error(f"❌ Alerte d'échéance du bail {lease.id} → {email}: {e}")
            summary["failed"] += 1
            continue

        logger.info(f"📧 Alerte d'échéance envoyée: bail {lease.id} → {email}")
        summary["sent"] += 1

    logger.info(
        f"📅 Échéances au {end_date.isoformat()}: {summary['sent']} alerte(s) envoyée(s)"
    )
    return summary
