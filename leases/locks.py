"""
Sérialisation des opérations d'écriture par bail.

Deux signataires peuvent signer en même temps : chaque écriture prend le verrou
du bail (verrou processus + select_for_update sur la ligne) pour que le PDF
signé reflète toujours l'union des signatures enregistrées.
"""

import threading
import weakref
from contextlib import contextmanager

from django.db import transaction

from core.exceptions import NotFoundFailure

_registry_lock = threading.Lock()
# Une entrée disparaît dès que plus aucune opération ne tient le verrou
_lease_locks: "weakref.WeakValueDictionary[int, threading.RLock]" = (
    weakref.WeakValueDictionary()
)


def _get_lock(lease_id) -> threading.RLock:
    with _registry_lock:
        lock = _lease_locks.get(lease_id)
        if lock is None:
            lock = threading.RLock()
            _lease_locks[lease_id] = lock
        return lock


@contextmanager
def lease_lock(lease_id):
    """
    Verrou exclusif sur un bail, ouvert dans une transaction.

    Usage:
        with lease_lock(lease_id) as lease:
            lease.status = ...
            lease.save()

    Raises:
        NotFoundFailure: Si le bail n'existe pas
    """
    from leases.models import Lease

    lease_id = int(lease_id)
    with _get_lock(lease_id):
        with transaction.atomic():
            lease = Lease.objects.select_for_update().filter(pk=lease_id).first()
            if lease is None:
                raise NotFoundFailure("Lease not found", lease_id=lease_id)
            yield lease
