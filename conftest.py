"""
Configuration pytest.

Ce fichier définit des fixtures réutilisables pour tous les tests.
"""

import io
import random
from datetime import date
from decimal import Decimal

import fitz  # PyMuPDF
import pytest
from django.conf import settings
from PIL import Image
from rest_framework.test import APIClient

from leases.collaborators import Caller
from leases.services import LeaseLifecycleService
from location.factories import (
    PaymentFactory,
    PropertyFactory,
    TenantFactory,
    UserFactory,
)
from location.models import PaymentStatus
from signature.coordinator import InMemoryEnvelopeStore, SigningCoordinator
from signature.document_status import SignerRole


# ==============================
# CONFIGURATION DJANGO POUR TESTS
# ==============================


@pytest.fixture(scope="session", autouse=True)
def configure_django_for_tests():
    """Configure Django settings pour les tests."""
    if "testserver" not in settings.ALLOWED_HOSTS:
        settings.ALLOWED_HOSTS.append("testserver")
    yield


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Chaque test écrit ses fichiers dans un répertoire temporaire."""
    settings.MEDIA_ROOT = str(tmp_path / "uploads")
    return tmp_path / "uploads"


# ==============================
# FIXTURES API CLIENT
# ==============================


@pytest.fixture
def api_client():
    """Client API REST Framework pour les tests."""
    return APIClient()


@pytest.fixture
def landlord_client(api_client, landlord_user):
    """Client API authentifié en tant que bailleur."""
    api_client.force_authenticate(user=landlord_user)
    return api_client


@pytest.fixture
def tenant_client(api_client, tenant_user):
    """Client API authentifié en tant que locataire."""
    api_client.force_authenticate(user=tenant_user)
    return api_client


# ==============================
# FIXTURES UTILISATEURS
# ==============================


@pytest.fixture
def landlord_user(db):
    return UserFactory(
        username="bailleur", first_name="Jean", last_name="Dupont", groups=["landlord"]
    )


@pytest.fixture
def tenant_user(db):
    return UserFactory(username="locataire", groups=["tenant"])


@pytest.fixture
def landlord(landlord_user):
    """Appelant bailleur, tel que fourni par la couche d'authentification."""
    return Caller(user_id=landlord_user.pk, role=SignerRole.LANDLORD.value)


@pytest.fixture
def tenant_caller(tenant_user):
    return Caller(user_id=tenant_user.pk, role=SignerRole.TENANT.value)


# ==============================
# FIXTURES BIENS / LOCATAIRES / PAIEMENTS
# ==============================


@pytest.fixture
def property_(landlord_user):
    return PropertyFactory(address="12 Rue de la Paix, 75002 Paris", landlord=landlord_user)


@pytest.fixture
def tenant(db):
    return TenantFactory(name="Marie Martin", email="marie.martin@example.com")


@pytest.fixture
def received_payment(tenant, property_):
    """Paiement reçu : condition préalable à la génération du bail."""
    return PaymentFactory(tenant=tenant, property=property_, status=PaymentStatus.RECEIVED)


@pytest.fixture
def lease_terms():
    return {
        "start_date": date(2025, 1, 1),
        "end_date": date(2025, 12, 31),
        "rent": Decimal("1200.00"),
        "security_deposit": Decimal("2400.00"),
    }


# ==============================
# FIXTURES SERVICES
# ==============================


@pytest.fixture
def envelope_store():
    return InMemoryEnvelopeStore()


@pytest.fixture
def coordinator(envelope_store):
    """Prestataire simulé reproductible (graine fixe, aucune attente réelle)."""
    return SigningCoordinator(
        store=envelope_store,
        rng=random.Random(42),
        completion_probability=0.5,
        sleep=lambda seconds: None,
    )


@pytest.fixture
def service(coordinator):
    return LeaseLifecycleService(coordinator=coordinator)


# ==============================
# FIXTURES DOCUMENTS
# ==============================


def make_png(color, size=(300, 80)) -> bytes:
    output = io.BytesIO()
    Image.new("RGBA", size, color).save(output, format="PNG")
    return output.getvalue()


def make_pdf(pages=1, width=612, height=792) -> bytes:
    doc = fitz.open()
    for number in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), f"Page {number + 1}", fontsize=12)
    try:
        return doc.tobytes()
    finally:
        doc.close()


@pytest.fixture
def landlord_png():
    return make_png((0, 0, 255, 255))


@pytest.fixture
def tenant_png():
    return make_png((255, 0, 0, 255))


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def base_pdf():
    return make_pdf()


@pytest.fixture
def stored_base(base_pdf):
    """Document de base déjà présent dans le stockage."""
    from backend.storage_utils import save_bytes

    return save_bytes("leases/base.pdf", base_pdf)


# ==============================
# MARKERS PYTEST
# ==============================


def pytest_configure(config):
    """Configure les markers pytest personnalisés."""
    config.addinivalue_line(
        "markers", "e2e: Tests end-to-end complets"
    )
    config.addinivalue_line(
        "markers", "unit: Tests unitaires"
    )
    config.addinivalue_line(
        "markers", "integration: Tests d'intégration"
    )
    config.addinivalue_line(
        "markers", "slow: Tests lents"
    )
