"""
Statuts et rôles communs au circuit de signature des baux.
"""

from django.db import models


class LeaseStatus(models.TextChoices):
    """Statuts possibles d'un bail"""

    GENERATED = "generated", "Généré"
    SENT = "sent", "Envoyé au prestataire"
    PENDING = "pending", "En cours de signature"
    SIGNED_PENDING_RENDER = "signed_pending_render", "Signé, PDF à régénérer"
    SIGNED = "signed", "Signé et finalisé"


class EnvelopeStatus(models.TextChoices):
    """Statuts d'une enveloppe chez le prestataire de signature"""

    SENT = "sent", "Envoyée"
    SIGNED = "signed", "Signée"


class SignerRole(models.TextChoices):
    """Les deux signataires d'un bail"""

    LANDLORD = "landlord", "Bailleur"
    TENANT = "tenant", "Locataire"


# Transitions autorisées. Seul retour possible : un bail signé dont la
# re-signature n'a pas pu être incrustée repasse en signed_pending_render
# jusqu'à la réconciliation.
ALLOWED_TRANSITIONS = {
    LeaseStatus.GENERATED: {
        LeaseStatus.PENDING,
        LeaseStatus.SIGNED_PENDING_RENDER,
        LeaseStatus.SIGNED,
    },
    LeaseStatus.SENT: {
        LeaseStatus.PENDING,
        LeaseStatus.SIGNED_PENDING_RENDER,
        LeaseStatus.SIGNED,
    },
    LeaseStatus.PENDING: {LeaseStatus.SIGNED_PENDING_RENDER, LeaseStatus.SIGNED},
    LeaseStatus.SIGNED_PENDING_RENDER: {LeaseStatus.SIGNED},
    LeaseStatus.SIGNED: {LeaseStatus.SIGNED_PENDING_RENDER},
}


def can_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(LeaseStatus(current), set())
