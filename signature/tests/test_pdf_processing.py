"""
Tests pour l'incrustation des signatures dans le PDF.

Usage:
    pytest signature/tests/test_pdf_processing.py -v
"""

import base64
import io

import fitz  # PyMuPDF
import pytest
from PIL import Image

from backend.storage_utils import read_bytes, save_bytes
from core.exceptions import RenderFailure, ValidationFailure
from signature.pdf_processing import SignatureEmbedder, decode_signature_payload
from signature.positions import get_signature_position


def image_rects(pdf_bytes):
    """Rectangles (repère PyMuPDF) des images de la dernière page."""
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        page = doc[-1]
        rects = []
        for image in page.get_images(full=True):
            rects.extend(page.get_image_rects(image[0]))
        return rects
    finally:
        doc.close()


def assert_rect_at(rect, role):
    expected = get_signature_position(role).top_left_rect()
    assert rect.x0 == pytest.approx(expected.x0, abs=0.5)
    assert rect.y0 == pytest.approx(expected.y0, abs=0.5)
    assert rect.x1 == pytest.approx(expected.x1, abs=0.5)
    assert rect.y1 == pytest.approx(expected.y1, abs=0.5)


class TestDecodeSignaturePayload:
    def test_data_url(self, landlord_png):
        payload = "data:image/png;base64," + base64.b64encode(landlord_png).decode()
        assert decode_signature_payload(payload) == landlord_png

    def test_plain_base64_with_whitespace(self, landlord_png):
        encoded = base64.b64encode(landlord_png).decode()
        payload = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))
        assert decode_signature_payload(payload) == landlord_png

    def test_raw_png_bytes(self, landlord_png):
        assert decode_signature_payload(landlord_png) == landlord_png

    @pytest.mark.parametrize("payload", ["", None, "data:image/png;base64,%%%%"])
    def test_invalid_payload(self, payload):
        with pytest.raises(ValidationFailure):
            decode_signature_payload(payload)

    def test_not_a_png(self):
        output = io.BytesIO()
        Image.new("RGB", (40, 20), "white").save(output, format="JPEG")
        payload = base64.b64encode(output.getvalue()).decode()
        with pytest.raises(ValidationFailure):
            decode_signature_payload(payload)


class TestSignatureEmbedder:
    def test_single_signature_at_anchor(self, stored_base, landlord_png):
        image_path = save_bytes("leases/signatures/1-landlord.png", landlord_png)

        output = SignatureEmbedder().embed(
            stored_base, {"landlord": image_path, "tenant": None}, "leases/1-signed.pdf"
        )

        rects = image_rects(read_bytes(output))
        assert len(rects) == 1
        assert_rect_at(rects[0], "landlord")

    def test_both_signatures_at_their_anchors(self, stored_base, landlord_png, tenant_png):
        signatures = {
            "landlord": save_bytes("leases/signatures/1-landlord.png", landlord_png),
            "tenant": save_bytes("leases/signatures/1-tenant.png", tenant_png),
        }

        output = SignatureEmbedder().embed(stored_base, signatures, "leases/1-signed.pdf")

        rects = sorted(image_rects(read_bytes(output)), key=lambda rect: rect.x0)
        assert len(rects) == 2
        assert_rect_at(rects[0], "landlord")
        assert_rect_at(rects[1], "tenant")

    def test_rebuilt_from_base_without_double_stamp(self, stored_base, landlord_png):
        """Incruster deux fois la même signature ne la superpose pas."""
        signatures = {"landlord": save_bytes("leases/signatures/1-landlord.png", landlord_png)}
        embedder = SignatureEmbedder()

        embedder.embed(stored_base, signatures, "leases/1-signed.pdf")
        output = embedder.embed(stored_base, signatures, "leases/1-signed.pdf")

        assert len(image_rects(read_bytes(output))) == 1

    def test_signed_on_last_page(self, pdf_factory, landlord_png):
        base = save_bytes("leases/multi.pdf", pdf_factory(pages=3))
        signatures = {"landlord": save_bytes("leases/signatures/2-landlord.png", landlord_png)}

        output = SignatureEmbedder().embed(base, signatures, "leases/2-signed.pdf")

        doc = fitz.open(stream=read_bytes(output), filetype="pdf")
        try:
            assert doc.page_count == 3
            assert doc[0].get_images() == []
            assert len(doc[-1].get_images()) == 1
        finally:
            doc.close()

    def test_base_document_unchanged(self, stored_base, base_pdf, landlord_png):
        signatures = {"landlord": save_bytes("leases/signatures/1-landlord.png", landlord_png)}

        SignatureEmbedder().embed(stored_base, signatures, "leases/1-signed.pdf")

        assert read_bytes(stored_base) == base_pdf

    def test_missing_base_document(self, landlord_png):
        signatures = {"landlord": save_bytes("leases/signatures/1-landlord.png", landlord_png)}
        with pytest.raises(RenderFailure):
            SignatureEmbedder().embed("leases/absent.pdf", signatures, "leases/1-signed.pdf")

    def test_corrupted_base_document(self, landlord_png):
        base = save_bytes("leases/corrupted.pdf", b"this is not a pdf")
        signatures = {"landlord": save_bytes("leases/signatures/1-landlord.png", landlord_png)}
        with pytest.raises(RenderFailure):
            SignatureEmbedder().embed(base, signatures, "leases/1-signed.pdf")

    def test_undecodable_image(self, stored_base):
        signatures = {"tenant": save_bytes("leases/signatures/1-tenant.png", b"garbage")}
        with pytest.raises(RenderFailure):
            SignatureEmbedder().embed(stored_base, signatures, "leases/1-signed.pdf")
