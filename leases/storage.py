"""
Clés de stockage des documents de bail.

Arborescence :
    leases/<nom>.pdf                      document de base (généré ou importé)
    leases/signatures/<id>-<rôle>.png     image de signature d'un signataire
    leases/<id>-signed.pdf                document signé
"""

import uuid
from dataclasses import dataclass

from slugify import slugify

from backend.storage_utils import save_bytes
from signature.document_status import SignerRole

LEASES_DIR = "leases"
SIGNATURES_DIR = f"{LEASES_DIR}/signatures"


@dataclass(frozen=True)
class SignatureKey:
    """Identité d'une image de signature : un bail et un rôle."""

    lease_id: int
    role: str

    def __post_init__(self):
        if self.role not in SignerRole.values:
            raise ValueError(f"Rôle de signataire inconnu: {self.role}")

    @property
    def path(self) -> str:
        return f"{SIGNATURES_DIR}/{self.lease_id}-{self.role}.png"


class SignatureStore:
    """Images de signature indexées par SignatureKey (écrasement, pas d'historique)."""

    def __init__(self, storage=None):
        self.storage = storage

    def save(self, key: SignatureKey, png_bytes: bytes) -> str:
        return save_bytes(key.path, png_bytes, self.storage)


def generated_document_path() -> str:
    return f"{LEASES_DIR}/lease-{uuid.uuid4().hex}.pdf"


def uploaded_document_path(original_name: str) -> str:
    stem = original_name.rsplit(".", 1)[0] if original_name else ""
    return f"{LEASES_DIR}/{slugify(stem) or 'document'}-{uuid.uuid4().hex[:12]}.pdf"


def signed_document_path(lease_id) -> str:
    return f"{LEASES_DIR}/{lease_id}-signed.pdf"
