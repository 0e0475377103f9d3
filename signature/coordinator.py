"""
Coordination avec le prestataire de signature électronique.

Le prestataire est simulé : une enveloppe passe de "sent" à "signed" lors d'une
interrogation, avec une probabilité configurable tirée d'une source aléatoire
injectable (et donc reproductible en test). Une intégration réelle remplacera
check_status par un appel API ou un webhook en conservant le même contrat :
un statut ne change qu'une fois, et ne revient jamais en arrière.

Usage:
    coordinator = SigningCoordinator(store=InMemoryEnvelopeStore(), rng=random.Random(42))
    envelope_id = coordinator.send_document("leases/lease.pdf", Signer("Jane Doe", "jane@example.com"))
    if coordinator.check_status(envelope_id) == EnvelopeStatus.SIGNED:
        coordinator.download_signed_document(envelope_id, "leases/42-signed.pdf")
"""

import logging
import random
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, Optional

from django.conf import settings
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string

from backend.storage_utils import copy_file
from core.exceptions import NotReadyError, PollingExhausted, ProviderFailure
from signature.document_status import EnvelopeStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signer:
    name: str
    email: str = ""


@dataclass(frozen=True)
class Envelope:
    id: str
    status: str
    file_path: str
    signer_name: str = ""
    signer_email: str = ""


class EnvelopeStore(ABC):
    """Stockage des enveloppes du prestataire."""

    @abstractmethod
    def create(self, envelope: Envelope) -> Envelope:
        pass

    @abstractmethod
    def get(self, envelope_id: str) -> Optional[Envelope]:
        pass

    @abstractmethod
    def mark_signed(self, envelope_id: str) -> Envelope:
        """Passe l'enveloppe à "signed" (opération idempotente)."""
        pass


class InMemoryEnvelopeStore(EnvelopeStore):
    """Enveloppes en mémoire, pour les tests et les démonstrations locales."""

    def __init__(self):
        self._envelopes: dict[str, Envelope] = {}
        self._lock = threading.RLock()

    def create(self, envelope):
        with self._lock:
            self._envelopes[envelope.id] = envelope
        return envelope

    def get(self, envelope_id):
        with self._lock:
            return self._envelopes.get(str(envelope_id))

    def mark_signed(self, envelope_id):
        with self._lock:
            envelope = self._envelopes[str(envelope_id)]
            if envelope.status != EnvelopeStatus.SIGNED:
                envelope = replace(envelope, status=EnvelopeStatus.SIGNED.value)
                self._envelopes[envelope.id] = envelope
            return envelope


class DatabaseEnvelopeStore(EnvelopeStore):
    """Enveloppes persistées dans la table SigningEnvelope."""

    @staticmethod
    def _to_envelope(row) -> Envelope:
        return Envelope(
            id=str(row.id),
            status=row.status,
            file_path=row.file_path,
            signer_name=row.signer_name,
            signer_email=row.signer_email,
        )

    def create(self, envelope):
        from signature.models import SigningEnvelope

        row = SigningEnvelope.objects.create(
            id=envelope.id,
            status=envelope.status,
            file_path=envelope.file_path,
            signer_name=envelope.signer_name,
            signer_email=envelope.signer_email,
        )
        return self._to_envelope(row)

    def get(self, envelope_id):
        from django.core.exceptions import ValidationError

        from signature.models import SigningEnvelope

        try:
            row = SigningEnvelope.objects.filter(id=envelope_id).first()
        except ValidationError:
            # Identifiant qui n'est pas un UUID
            return None
        return self._to_envelope(row) if row else None

    def mark_signed(self, envelope_id):
        from signature.models import SigningEnvelope

        # UPDATE conditionnel : un statut "signed" ne redevient jamais "sent"
        SigningEnvelope.objects.filter(
            id=envelope_id, status=EnvelopeStatus.SENT
        ).update(status=EnvelopeStatus.SIGNED)
        return self._to_envelope(SigningEnvelope.objects.get(id=envelope_id))


class SigningCoordinator:
    """
    Client du prestataire de signature (simulé).

    Cycle de vie d'une enveloppe : sent --interrogation--> signed
    """

    def __init__(
        self,
        store: EnvelopeStore | None = None,
        storage=None,
        rng: random.Random | None = None,
        completion_probability: float | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.store = store or import_string(settings.SIGNING_ENVELOPE_STORE)()
        self.storage = storage or default_storage
        self.rng = rng or random.Random(settings.SIGNING_RANDOM_SEED)
        self.completion_probability = (
            settings.SIGNING_COMPLETION_PROBABILITY
            if completion_probability is None
            else completion_probability
        )
        self.sleep = sleep or time.sleep

    def _get_envelope(self, envelope_id: str) -> Envelope:
        envelope = self.store.get(envelope_id)
        if envelope is None:
            raise ProviderFailure(f"Enveloppe inconnue: {envelope_id}")
        return envelope

    def send_document(self, path: str, signer: Signer) -> str:
        """
        Crée une enveloppe pour le document à signer.

        Returns:
            str: Identifiant de l'enveloppe
        """
        envelope = self.store.create(
            Envelope(
                id=str(uuid.uuid4()),
                status=EnvelopeStatus.SENT.value,
                file_path=path,
                signer_name=signer.name,
                signer_email=signer.email,
            )
        )
        logger.info(f"📨 Enveloppe {envelope.id} envoyée à {signer.name} ({path})")
        return envelope.id

    def check_status(self, envelope_id: str) -> str:
        """
        Interroge le prestataire.

        Deux appels successifs peuvent renvoyer des statuts différents ;
        un statut "signed" est définitif.

        Raises:
            ProviderFailure: Si l'enveloppe est inconnue
        """
        envelope = self._get_envelope(envelope_id)
        if (
            envelope.status != EnvelopeStatus.SIGNED
            and self.rng.random() < self.completion_probability
        ):
            envelope = self.store.mark_signed(envelope.id)
            logger.info(f"✅ Enveloppe {envelope.id} signée")
        return envelope.status

    def wait_for_signature(
        self,
        envelope_id: str,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> str:
        """
        Interroge le prestataire jusqu'à la signature, avec un nombre
        d'essais borné et un délai exponentiel entre deux essais.

        Raises:
            PollingExhausted: Si l'enveloppe n'est toujours pas signée
            après max_attempts interrogations
        """
        max_attempts = max_attempts or settings.SIGNING_POLL_MAX_ATTEMPTS
        if backoff_seconds is None:
            backoff_seconds = settings.SIGNING_POLL_BACKOFF_SECONDS

        for attempt in range(1, max_attempts + 1):
            status = self.check_status(envelope_id)
            if status == EnvelopeStatus.SIGNED:
                return status
            if attempt < max_attempts:
                delay = backoff_seconds * 2 ** (attempt - 1)
                logger.info(
                    f"Enveloppe {envelope_id} non signée "
                    f"(essai {attempt}/{max_attempts}), nouvel essai dans {delay}s"
                )
                self.sleep(delay)

        raise PollingExhausted(
            f"Enveloppe {envelope_id} non signée après {max_attempts} essais"
        )

    def download_signed_document(self, envelope_id: str, destination: str) -> str:
        """
        Copie le document signé vers destination.

        Raises:
            NotReadyError: Si l'enveloppe n'est pas signée
            ProviderFailure: Si l'enveloppe est inconnue
        """
        envelope = self._get_envelope(envelope_id)
        if envelope.status != EnvelopeStatus.SIGNED:
            raise NotReadyError(f"Document de l'enveloppe {envelope_id} pas encore signé")

        saved = copy_file(envelope.file_path, destination, self.storage)
        logger.info(f"📥 Document signé de l'enveloppe {envelope_id} copié vers {saved}")
        return saved
