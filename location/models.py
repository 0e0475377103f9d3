"""
Enregistrements des biens, locataires et paiements.

Ces tables appartiennent aux modules biens/locataires/paiements : le cycle de
vie des baux ne fait que les lire (adresse, nom, existence d'un paiement reçu).
"""

from django.conf import settings
from django.db import models


class BaseModel(models.Model):
    """
    Modèle de base avec timestamps automatiques (created_at, updated_at) pour l'audit
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Property(BaseModel):
    """Bien immobilier mis en location"""

    address = models.TextField()
    landlord = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="properties",
    )

    class Meta:
        verbose_name = "Bien"
        verbose_name_plural = "Biens"

    def __str__(self):
        return self.address


class Tenant(BaseModel):
    """Locataire"""

    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)

    class Meta:
        verbose_name = "Locataire"
        verbose_name_plural = "Locataires"

    def __str__(self):
        return self.name


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "En attente"
    RECEIVED = "received", "Reçu"
    LATE = "late", "En retard"


class Payment(BaseModel):
    """Paiement d'un locataire pour un bien"""

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="payments")
    property = models.ForeignKey(
        Property, on_delete=models.CASCADE, related_name="payments"
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )

    class Meta:
        verbose_name = "Paiement"
        verbose_name_plural = "Paiements"
        indexes = [
            models.Index(
                fields=["tenant", "property", "status"], name="payment_lookup_idx"
            )
        ]

    def __str__(self):
        return f"{self.tenant} - {self.amount} ({self.status})"
