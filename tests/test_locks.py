"""
Tests du verrou par bail.

Usage:
    pytest tests/test_locks.py -v
"""

import base64
import gc
import threading
import time

import fitz  # PyMuPDF
import pytest
from django.db import connection

from backend.storage_utils import read_bytes
from core.exceptions import NotFoundFailure
from leases.locks import _get_lock, _lease_locks, lease_lock
from location.factories import LeaseFactory
from signature.document_status import LeaseStatus
from signature.positions import get_signature_position


class TestLockRegistry:
    def test_same_lease_same_lock(self):
        assert _get_lock(1) is _get_lock(1)

    def test_distinct_leases_distinct_locks(self):
        assert _get_lock(1) is not _get_lock(2)

    def test_mutual_exclusion(self):
        """Deux écritures concurrentes sur un même bail ne se chevauchent pas."""
        lock = _get_lock(314)
        active = []
        overlaps = []

        def writer():
            with lock:
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=writer) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []

    def test_released_lock_leaves_registry(self):
        lock = _get_lock(2718)
        assert _lease_locks.get(2718) is lock

        del lock
        gc.collect()

        assert 2718 not in _lease_locks


@pytest.mark.django_db
class TestLeaseLock:
    def test_yields_locked_lease(self):
        lease = LeaseFactory()

        with lease_lock(lease.id) as locked:
            locked.status = LeaseStatus.PENDING
            locked.save()

        lease.refresh_from_db()
        assert lease.status == LeaseStatus.PENDING

    def test_accepts_string_identifier(self):
        lease = LeaseFactory()

        with lease_lock(str(lease.id)) as locked:
            assert locked.pk == lease.pk

    def test_reentrant(self):
        lease = LeaseFactory()

        with lease_lock(lease.id):
            with lease_lock(lease.id) as inner:
                assert inner.pk == lease.pk

    def test_unknown_lease(self):
        with pytest.raises(NotFoundFailure):
            with lease_lock(999999):
                pass

    def test_registry_emptied_after_use(self):
        lease = LeaseFactory()

        with lease_lock(lease.id):
            assert lease.id in _lease_locks
        gc.collect()

        assert lease.id not in _lease_locks

    def test_rollback_on_error(self):
        lease = LeaseFactory()

        with pytest.raises(RuntimeError):
            with lease_lock(lease.id) as locked:
                locked.status = LeaseStatus.PENDING
                locked.save()
                raise RuntimeError("boom")

        lease.refresh_from_db()
        assert lease.status == LeaseStatus.GENERATED


@pytest.mark.django_db(transaction=True)
class TestConcurrentSignatures:
    def test_landlord_and_tenant_sign_at_once(
        self, service, stored_base, landlord_png, tenant_png
    ):
        lease = LeaseFactory(base_path=stored_base)
        images = {"landlord": landlord_png, "tenant": tenant_png}
        start = threading.Barrier(len(images))
        errors = []

        def sign(role):
            try:
                start.wait()
                payload = "data:image/png;base64," + base64.b64encode(images[role]).decode()
                service.record_signature(lease.id, role, payload)
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=sign, args=(role,)) for role in images]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lease.refresh_from_db()
        assert errors == []
        assert lease.status == LeaseStatus.SIGNED
        assert lease.landlord_signature_path and lease.tenant_signature_path

        doc = fitz.open(stream=read_bytes(lease.signed_path), filetype="pdf")
        try:
            page = doc[-1]
            rects = []
            for image in page.get_images(full=True):
                rects.extend(page.get_image_rects(image[0]))
        finally:
            doc.close()

        assert len(rects) == 2
        for rect, role in zip(sorted(rects, key=lambda r: r.x0), ("landlord", "tenant")):
            expected = get_signature_position(role).top_left_rect()
            assert abs(rect.x0 - expected.x0) < 0.5
            assert abs(rect.y0 - expected.y0) < 0.5
