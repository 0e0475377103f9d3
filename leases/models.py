"""
Modèle Bail (enregistrement du cycle de vie d'un contrat de location)
"""

from django.db import models
from simple_history.models import HistoricalRecords

from core.exceptions import InvalidTransition
from location.models import BaseModel, Property, Tenant
from signature.document_status import LeaseStatus, SignerRole, can_transition


class Lease(BaseModel):
    """
    Contrat de bail et état de sa signature.

    Deux parcours partagent le champ status :
    - signature dans l'application (generated -> pending -> signed)
    - signature chez le prestataire (sent -> signed), repérée par
      provider_envelope_id

    Invariant : status == SIGNED <=> signed_path désigne un fichier existant.
    """

    property = models.ForeignKey(
        Property, on_delete=models.PROTECT, related_name="leases"
    )
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="leases")

    status = models.CharField(
        max_length=32,
        choices=LeaseStatus.choices,
        default=LeaseStatus.GENERATED,
        verbose_name="Statut du bail",
    )

    # Clés dans le stockage
    base_path = models.CharField(
        max_length=255, help_text="Document non signé (source de toute incrustation)"
    )
    signed_path = models.CharField(max_length=255, null=True, blank=True)
    landlord_signature_path = models.CharField(max_length=255, null=True, blank=True)
    tenant_signature_path = models.CharField(max_length=255, null=True, blank=True)

    provider_envelope_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Enveloppe du prestataire (parcours de signature externe uniquement)",
    )

    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)

    # Historique automatique
    history = HistoricalRecords()

    class Meta:
        ordering = ["-id"]
        verbose_name = "Bail"
        verbose_name_plural = "Baux"

    def __str__(self):
        return f"Bail {self.id} - {self.property} ({self.status})"

    def signature_paths(self) -> dict[str, str | None]:
        return {
            SignerRole.LANDLORD.value: self.landlord_signature_path,
            SignerRole.TENANT.value: self.tenant_signature_path,
        }

    def set_signature_path(self, role: str, path: str):
        if role == SignerRole.LANDLORD:
            self.landlord_signature_path = path
        elif role == SignerRole.TENANT:
            self.tenant_signature_path = path
        else:
            raise ValueError(f"Rôle de signataire inconnu: {role}")

    def has_all_signatures(self) -> bool:
        return all(self.signature_paths().values())

    def uses_provider(self) -> bool:
        return bool(self.provider_envelope_id)

    def transition_to(self, status: str):
        """
        Change le statut en respectant la machine à états (pas de régression).

        Raises:
            InvalidTransition: Si la transition est interdite
        """
        if not can_transition(self.status, status):
            raise InvalidTransition(
                f"Transition interdite: {self.status} -> {status}", lease_id=self.id
            )
        self.status = status
