"""
Tests de signature dans l'application (generate -> record_signature).

Usage:
    pytest tests/test_lease_signing.py -v
"""

import base64
import io

import fitz  # PyMuPDF
import pytest
from django.core.files.storage import default_storage
from PIL import Image

from backend.storage_utils import file_exists, read_bytes, save_bytes
from core.exceptions import NotFoundFailure, ValidationFailure
from leases.models import Lease
from leases.storage import SignatureKey
from location.factories import LeaseFactory
from signature.document_status import LeaseStatus
from signature.positions import get_signature_position


def data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode()


def overlay_rects(path):
    doc = fitz.open(stream=read_bytes(path), filetype="pdf")
    try:
        page = doc[-1]
        rects = []
        for image in page.get_images(full=True):
            rects.extend(page.get_image_rects(image[0]))
        return sorted(rects, key=lambda rect: rect.x0)
    finally:
        doc.close()


def overlay_colors(path):
    """Couleur du premier pixel de chaque image, de gauche à droite."""
    doc = fitz.open(stream=read_bytes(path), filetype="pdf")
    try:
        page = doc[-1]
        placed = []
        for image in page.get_images(full=True):
            xref = image[0]
            pixels = Image.open(io.BytesIO(doc.extract_image(xref)["image"]))
            for rect in page.get_image_rects(xref):
                placed.append((rect.x0, pixels.convert("RGB").getpixel((0, 0))))
        return [color for _, color in sorted(placed)]
    finally:
        doc.close()


def at_anchor(rect, role):
    expected = get_signature_position(role).top_left_rect()
    return (
        abs(rect.x0 - expected.x0) < 0.5
        and abs(rect.y0 - expected.y0) < 0.5
        and abs(rect.x1 - expected.x1) < 0.5
        and abs(rect.y1 - expected.y1) < 0.5
    )


@pytest.fixture
def lease(db, stored_base):
    return LeaseFactory(base_path=stored_base)


@pytest.mark.django_db
class TestRecordSignature:
    def test_first_signature_is_pending(self, service, lease, landlord_png):
        lease = service.record_signature(lease.id, "landlord", data_url(landlord_png))

        assert lease.status == LeaseStatus.PENDING
        assert lease.landlord_signature_path == SignatureKey(lease.id, "landlord").path
        assert lease.tenant_signature_path is None
        assert len(overlay_rects(lease.signed_path)) == 1

    @pytest.mark.parametrize("order", [("landlord", "tenant"), ("tenant", "landlord")])
    def test_both_orders_end_signed(self, service, lease, landlord_png, tenant_png, order):
        images = {"landlord": landlord_png, "tenant": tenant_png}

        for role in order:
            service.record_signature(lease.id, role, data_url(images[role]))

        lease.refresh_from_db()
        assert lease.status == LeaseStatus.SIGNED
        rects = overlay_rects(lease.signed_path)
        assert len(rects) == 2
        assert at_anchor(rects[0], "landlord")
        assert at_anchor(rects[1], "tenant")

    def test_resign_same_role_overwrites(self, service, lease, landlord_png, png_factory):
        replacement = png_factory((0, 128, 0, 255))

        service.record_signature(lease.id, "landlord", data_url(landlord_png))
        lease = service.record_signature(lease.id, "landlord", data_url(replacement))

        assert lease.status == LeaseStatus.PENDING
        assert read_bytes(lease.landlord_signature_path) == replacement
        assert len(overlay_rects(lease.signed_path)) == 1

    def test_resign_after_signed_keeps_signed(self, service, lease, landlord_png, tenant_png):
        service.record_signature(lease.id, "landlord", data_url(landlord_png))
        service.record_signature(lease.id, "tenant", data_url(tenant_png))

        lease = service.record_signature(lease.id, "tenant", data_url(tenant_png))

        assert lease.status == LeaseStatus.SIGNED
        assert len(overlay_rects(lease.signed_path)) == 2

    def test_lease_42_scenario(self, service, stored_base, landlord_png, tenant_png):
        LeaseFactory(id=42, base_path=stored_base)

        lease = service.record_signature(42, "landlord", data_url(landlord_png))
        assert lease.status == LeaseStatus.PENDING

        lease = service.record_signature(42, "tenant", data_url(tenant_png))
        assert lease.status == LeaseStatus.SIGNED
        assert lease.signed_path.endswith("42-signed.pdf")
        assert len(read_bytes(lease.signed_path)) > len(read_bytes(stored_base))

    def test_invalid_signature(self, service, lease):
        with pytest.raises(ValidationFailure) as excinfo:
            service.record_signature(lease.id, "landlord", "data:image/png;base64,@@@")

        assert excinfo.value.operation == "record_signature"
        assert excinfo.value.lease_id == lease.id
        lease.refresh_from_db()
        assert lease.status == LeaseStatus.GENERATED
        assert lease.landlord_signature_path is None

    def test_unknown_role(self, service, lease, landlord_png):
        with pytest.raises(ValidationFailure):
            service.record_signature(lease.id, "guarantor", data_url(landlord_png))

    def test_unknown_lease(self, service, landlord_png):
        with pytest.raises(NotFoundFailure):
            service.record_signature(999999, "landlord", data_url(landlord_png))

    def test_history_records_each_status(self, service, lease, landlord_png, tenant_png):
        service.record_signature(lease.id, "landlord", data_url(landlord_png))
        service.record_signature(lease.id, "tenant", data_url(tenant_png))

        statuses = list(
            Lease.history.filter(id=lease.id)
            .order_by("history_date")
            .values_list("status", flat=True)
        )
        assert statuses[0] == LeaseStatus.GENERATED
        assert statuses[-1] == LeaseStatus.SIGNED
        assert LeaseStatus.PENDING in statuses


@pytest.mark.django_db
class TestRenderFailure:
    @pytest.fixture
    def broken_lease(self, db):
        """Bail dont le document de base n'existe pas (encore) dans le stockage."""
        return LeaseFactory(base_path="leases/missing-base.pdf")

    def test_single_signature_stays_pending(self, service, broken_lease, landlord_png):
        lease = service.record_signature(broken_lease.id, "landlord", data_url(landlord_png))

        assert lease.status == LeaseStatus.PENDING
        assert lease.signed_path is None
        assert file_exists(lease.landlord_signature_path)

    def test_both_signatures_wait_for_render(
        self, service, broken_lease, landlord_png, tenant_png
    ):
        service.record_signature(broken_lease.id, "landlord", data_url(landlord_png))
        lease = service.record_signature(broken_lease.id, "tenant", data_url(tenant_png))

        assert lease.status == LeaseStatus.SIGNED_PENDING_RENDER
        assert lease.signed_path is None
        assert service.get_status(lease.id).status == LeaseStatus.SIGNED_PENDING_RENDER
        with pytest.raises(NotFoundFailure):
            service.download(lease.id)

    def test_reconcile_renders_pending_leases(
        self, service, broken_lease, base_pdf, landlord_png, tenant_png
    ):
        service.record_signature(broken_lease.id, "landlord", data_url(landlord_png))
        service.record_signature(broken_lease.id, "tenant", data_url(tenant_png))

        save_bytes(broken_lease.base_path, base_pdf)
        summary = service.reconcile()

        broken_lease.refresh_from_db()
        assert summary["rendered"] == 1
        assert broken_lease.status == LeaseStatus.SIGNED
        assert len(overlay_rects(broken_lease.signed_path)) == 2

    def test_reconcile_keeps_waiting_on_failure(
        self, service, broken_lease, landlord_png, tenant_png
    ):
        service.record_signature(broken_lease.id, "landlord", data_url(landlord_png))
        service.record_signature(broken_lease.id, "tenant", data_url(tenant_png))

        summary = service.reconcile()

        broken_lease.refresh_from_db()
        assert summary["render_failed"] == 1
        assert broken_lease.status == LeaseStatus.SIGNED_PENDING_RENDER

    def test_resign_after_signed_with_failed_render_waits_for_reconcile(
        self, service, lease, base_pdf, landlord_png, tenant_png, png_factory
    ):
        replacement = png_factory((0, 128, 0, 255))
        service.record_signature(lease.id, "landlord", data_url(landlord_png))
        service.record_signature(lease.id, "tenant", data_url(tenant_png))
        default_storage.delete(lease.base_path)

        lease = service.record_signature(lease.id, "landlord", data_url(replacement))

        assert lease.status == LeaseStatus.SIGNED_PENDING_RENDER
        assert read_bytes(lease.landlord_signature_path) == replacement
        assert service.get_status(lease.id).status == LeaseStatus.SIGNED_PENDING_RENDER
        with pytest.raises(NotFoundFailure):
            service.download(lease.id)

        save_bytes(lease.base_path, base_pdf)
        summary = service.reconcile()

        lease.refresh_from_db()
        assert summary["rendered"] == 1
        assert lease.status == LeaseStatus.SIGNED
        assert overlay_colors(lease.signed_path) == [(0, 128, 0), (255, 0, 0)]
