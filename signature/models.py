"""
Modèles du prestataire de signature
"""

import uuid

from django.db import models

from signature.document_status import EnvelopeStatus


class SigningEnvelope(models.Model):
    """
    Enveloppe envoyée au prestataire de signature.

    Persiste l'état des enveloppes entre deux redémarrages (remplace la
    table en mémoire du prestataire simulé).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    status = models.CharField(
        max_length=20,
        choices=EnvelopeStatus.choices,
        default=EnvelopeStatus.SENT,
    )
    file_path = models.CharField(
        max_length=255, help_text="Clé du document transmis pour signature"
    )
    signer_name = models.CharField(max_length=200, blank=True)
    signer_email = models.EmailField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Enveloppe de signature"
        verbose_name_plural = "Enveloppes de signature"

    def __str__(self):
        return f"Enveloppe {self.id} ({self.status})"
