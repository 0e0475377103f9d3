"""
Génération du PDF du contrat de bail.

Le corps du contrat est un template HTML rendu par WeasyPrint ; les lignes de
signature sont ensuite tracées avec PyMuPDF directement aux ancres configurées,
pour que l'incrustation des images tombe exactement dessus.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import fitz  # PyMuPDF
from django.conf import settings
from django.core.files.storage import default_storage
from django.template.loader import render_to_string
from weasyprint import HTML

from backend.storage_utils import save_bytes
from core.exceptions import RenderFailure, ValidationFailure
from leases.generate_lease.mapping import LeaseMapping
from signature.document_status import SignerRole
from signature.positions import get_signature_positions

logger = logging.getLogger(__name__)

SIGNATURE_LABELS = {
    SignerRole.LANDLORD.value: "Landlord Signature:",
    SignerRole.TENANT.value: "Tenant Signature:",
}
# La ligne est tracée 10pt au-dessus du bas de l'ancre
BASELINE_OFFSET = 10
LABEL_FONT_SIZE = 10


def validate_lease_terms(start_date, end_date, rent, security_deposit=0):
    """
    Raises:
        ValidationFailure: Date manquante, montant invalide ou dates incohérentes
    """
    missing = [
        name
        for name, value in (("start_date", start_date), ("end_date", end_date), ("rent", rent))
        if value in (None, "")
    ]
    if missing:
        raise ValidationFailure(f"Champs requis manquants: {', '.join(missing)}")

    try:
        rent = Decimal(str(rent))
        deposit = Decimal(str(security_deposit or 0))
    except InvalidOperation:
        raise ValidationFailure("Montant de loyer ou de dépôt invalide")

    if rent <= 0:
        raise ValidationFailure("Le loyer doit être positif")
    if deposit < 0:
        raise ValidationFailure("Montant du dépôt de garantie invalide")
    if end_date < start_date:
        raise ValidationFailure("La date de fin précède la date de début")


@dataclass
class LeaseTerms:
    property_address: str
    tenant_name: str
    start_date: date
    end_date: date
    rent: Decimal
    security_deposit: Decimal = Decimal("0")
    landlord_name: Optional[str] = None

    def validate(self):
        if not self.property_address or not self.tenant_name:
            raise ValidationFailure("Adresse du bien et nom du locataire requis")
        validate_lease_terms(
            self.start_date, self.end_date, self.rent, self.security_deposit
        )


class DocumentGenerator:
    """Produit le contrat de bail non signé."""

    template_name = "pdf/lease.html"

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def render_html(self, terms: LeaseTerms) -> str:
        return render_to_string(
            self.template_name,
            {
                "page_size": settings.LEASE_PAGE_SIZE,
                "landlord_name": LeaseMapping.party_name(terms.landlord_name),
                "tenant_name": terms.tenant_name,
                "sections": LeaseMapping.sections(terms),
            },
        )

    def draw_signature_lines(self, pdf_bytes: bytes, terms: LeaseTerms) -> bytes:
        """Trace libellé, ligne et nom de chaque signataire sur la dernière page."""
        names = {
            SignerRole.LANDLORD.value: LeaseMapping.party_name(terms.landlord_name),
            SignerRole.TENANT.value: terms.tenant_name,
        }

        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        try:
            page = doc[-1]
            for role, position in get_signature_positions().items():
                rect = position.top_left_rect()
                baseline = rect.y1 - BASELINE_OFFSET

                page.insert_text(
                    fitz.Point(rect.x0, rect.y0 - 4),
                    SIGNATURE_LABELS.get(role, role),
                    fontsize=LABEL_FONT_SIZE,
                    fontname="helv",
                )
                page.draw_line(
                    fitz.Point(rect.x0, baseline),
                    fitz.Point(rect.x1, baseline),
                    color=(0, 0, 0),
                    width=0.8,
                )
                page.insert_text(
                    fitz.Point(rect.x0, rect.y1 + LABEL_FONT_SIZE + 2),
                    names.get(role, ""),
                    fontsize=LABEL_FONT_SIZE,
                    fontname="helv",
                )
            return doc.tobytes()
        finally:
            doc.close()

    def generate(self, terms: LeaseTerms, destination: str) -> str:
        """
        Génère le contrat et l'écrit dans le stockage.

        Returns:
            str: Clé du PDF généré

        Raises:
            ValidationFailure: Conditions du bail invalides
            RenderFailure: Erreur WeasyPrint/PyMuPDF
            IOFailure: Écriture impossible
        """
        terms.validate()

        html = self.render_html(terms)
        try:
            pdf_bytes = HTML(string=html).write_pdf()
            pdf_bytes = self.draw_signature_lines(pdf_bytes, terms)
        except (OSError, RuntimeError, ValueError) as e:
            raise RenderFailure(f"Erreur lors du rendu du contrat: {e}") from e

        saved = save_bytes(destination, pdf_bytes, self.storage)
        logger.info(f"📄 Contrat généré pour {terms.tenant_name}: {saved}")
        return saved
