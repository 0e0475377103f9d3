"""
Positions des signatures sur le contrat.

Les ancres sont exprimées en points, repère haut-gauche, sur la dernière page
du document. La génération y trace les lignes de signature et l'incrustation
y place les images : les deux doivent lire la même configuration.
"""

from dataclasses import dataclass

from django.conf import settings

import fitz  # PyMuPDF

from core.exceptions import RenderFailure


@dataclass(frozen=True)
class SignaturePosition:
    x: float
    y: float
    width: float
    height: float

    def top_left_rect(self) -> fitz.Rect:
        """Rectangle de l'ancre dans le repère haut-gauche (PyMuPDF)."""
        return fitz.Rect(self.x, self.y, self.x + self.width, self.y + self.height)

    def pdf_rect(self, page_height: float) -> fitz.Rect:
        """
        Rectangle de l'ancre dans le repère PDF (origine en bas à gauche).

        Décalage Y avec inversion du repère : y' = hauteur_page - y - hauteur
        """
        y0 = page_height - self.y - self.height
        return fitz.Rect(self.x, y0, self.x + self.width, y0 + self.height)


def get_signature_position(role: str) -> SignaturePosition:
    positions = settings.LEASE_SIGNATURE_POSITIONS
    if role not in positions:
        raise RenderFailure(f"Aucune position de signature pour le rôle {role}")
    return SignaturePosition(**positions[role])


def get_signature_positions() -> dict[str, SignaturePosition]:
    return {
        role: SignaturePosition(**anchor)
        for role, anchor in settings.LEASE_SIGNATURE_POSITIONS.items()
    }
