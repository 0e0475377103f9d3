"""
Cycle de vie des baux : génération, envoi, signature, statut, téléchargement.

Deux parcours convergent vers le statut "signed" :
- signature dans l'application : generate -> record_signature (x2)
- signature chez le prestataire : send -> get_status (interrogation) -> téléchargement

Usage:
    service = LeaseLifecycleService()
    lease = service.generate(caller, property_id, tenant_id, start_date=..., end_date=..., rent=...)
    service.record_signature(lease.id, "landlord", signature_data_url)
    service.record_signature(lease.id, "tenant", signature_data_url)
    report = service.get_status(lease.id)
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from django.core.files.storage import default_storage

from backend.storage_utils import file_exists, save_bytes
from core.exceptions import (
    IOFailure,
    LeaseError,
    NotFoundFailure,
    PermissionFailure,
    PollingExhausted,
    PreconditionFailure,
    ProviderFailure,
    RenderFailure,
    ValidationFailure,
)
from leases.collaborators import Caller, DatabaseLeaseDirectory, LeaseDirectory
from leases.generate_lease.generator import (
    DocumentGenerator,
    LeaseTerms,
    validate_lease_terms,
)
from leases.locks import lease_lock
from leases.models import Lease
from leases.storage import (
    SignatureKey,
    SignatureStore,
    generated_document_path,
    signed_document_path,
    uploaded_document_path,
)
from signature.coordinator import SigningCoordinator, Signer
from signature.document_status import (
    EnvelopeStatus,
    LeaseStatus,
    SignerRole,
    can_transition,
)
from signature.pdf_processing import SignatureEmbedder, decode_signature_payload

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


@dataclass(frozen=True)
class LeaseStatusReport:
    lease_id: int
    status: str
    signed_path: Optional[str]


@contextmanager
def logged_operation(operation: str, lease_id=None):
    """Journalise toute erreur métier avec le bail et l'opération concernés."""
    try:
        yield
    except LeaseError as e:
        e.operation = e.operation or operation
        if e.lease_id is None:
            e.lease_id = lease_id
        logger.error(f"❌ {e.operation} (bail {e.lease_id}): {e}")
        raise


class LeaseLifecycleService:
    """
    Orchestration du cycle de vie d'un bail.

    Toutes les écritures sur un bail existant passent par lease_lock().
    """

    def __init__(
        self,
        directory: LeaseDirectory | None = None,
        generator: DocumentGenerator | None = None,
        embedder: SignatureEmbedder | None = None,
        coordinator: SigningCoordinator | None = None,
        storage=None,
    ):
        self.storage = storage or default_storage
        self.directory = directory or DatabaseLeaseDirectory()
        self.generator = generator or DocumentGenerator(self.storage)
        self.embedder = embedder or SignatureEmbedder(self.storage)
        self.coordinator = coordinator or SigningCoordinator(storage=self.storage)
        self.signatures = SignatureStore(self.storage)

    # =============================================================================
    # Helpers
    # =============================================================================

    @staticmethod
    def _require_landlord(caller: Caller):
        if not caller.is_landlord:
            raise PermissionFailure("Seul un bailleur peut effectuer cette opération")

    @staticmethod
    def _get_lease(lease_id) -> Lease:
        lease = Lease.objects.filter(pk=lease_id).first()
        if lease is None:
            raise NotFoundFailure("Lease not found", lease_id=lease_id)
        return lease

    @staticmethod
    def _advance(lease: Lease, target: str):
        """Avance le statut si la machine à états l'autorise, sinon le conserve."""
        if can_transition(lease.status, target):
            lease.transition_to(target)
        else:
            logger.warning(
                f"Bail {lease.id}: statut {lease.status} conservé (cible {target})"
            )

    def _render_signed(self, lease: Lease) -> str:
        """Reconstruit le PDF signé depuis le document de base."""
        return self.embedder.embed(
            lease.base_path, lease.signature_paths(), signed_document_path(lease.id)
        )

    # =============================================================================
    # API publique
    # =============================================================================

    def generate(
        self,
        caller: Caller,
        property_id,
        tenant_id,
        start_date,
        end_date,
        rent,
        security_deposit=0,
    ) -> Lease:
        """
        Génère le contrat non signé.

        Raises:
            PermissionFailure: L'appelant n'est pas bailleur
            ValidationFailure: Conditions du bail invalides
            NotFoundFailure: Bien ou locataire inconnu
            PreconditionFailure: Aucun paiement reçu de ce locataire pour ce bien
        """
        with logged_operation("generate"):
            self._require_landlord(caller)
            validate_lease_terms(start_date, end_date, rent, security_deposit)

            address = self.directory.get_property_address(property_id)
            tenant = self.directory.get_tenant(tenant_id)

            if not self.directory.has_received_payment(tenant_id, property_id):
                raise PreconditionFailure(
                    "Cannot generate lease before receiving a payment from this tenant"
                )

            terms = LeaseTerms(
                property_address=address,
                tenant_name=tenant.name,
                start_date=start_date,
                end_date=end_date,
                rent=rent,
                security_deposit=security_deposit or 0,
                landlord_name=self.directory.get_landlord_name(caller.user_id),
            )
            base_path = self.generator.generate(terms, generated_document_path())

            lease = Lease.objects.create(
                property_id=property_id,
                tenant_id=tenant_id,
                status=LeaseStatus.GENERATED,
                base_path=base_path,
                start_date=start_date,
                end_date=end_date,
                due_date=start_date,
            )
            logger.info(f"📄 Bail {lease.id} généré ({base_path})")
            return lease

    def send(self, caller: Caller, property_id, tenant_id, uploaded_file) -> Lease:
        """
        Envoie un document fourni par le bailleur au prestataire de signature.

        Raises:
            PermissionFailure: L'appelant n'est pas bailleur
            ValidationFailure: Document manquant ou qui n'est pas un PDF
            NotFoundFailure: Bien ou locataire inconnu
        """
        with logged_operation("send"):
            self._require_landlord(caller)
            if uploaded_file is None:
                raise ValidationFailure("Document is required")

            self.directory.get_property_address(property_id)
            tenant = self.directory.get_tenant(tenant_id)

            content = uploaded_file.read()
            if not content.startswith(PDF_MAGIC):
                raise ValidationFailure("Le document doit être un PDF")

            base_path = save_bytes(
                uploaded_document_path(getattr(uploaded_file, "name", "")),
                content,
                self.storage,
            )
            envelope_id = self.coordinator.send_document(
                base_path, Signer(name=tenant.name, email=tenant.email)
            )

            lease = Lease.objects.create(
                property_id=property_id,
                tenant_id=tenant_id,
                status=LeaseStatus.SENT,
                base_path=base_path,
                provider_envelope_id=envelope_id,
            )
            logger.info(f"📨 Bail {lease.id} envoyé (enveloppe {envelope_id})")
            return lease

    def record_signature(self, lease_id, role: str, signature) -> Lease:
        """
        Enregistre la signature d'un signataire et reconstruit le PDF signé.

        Re-signer avec le même rôle écrase l'image précédente. Si l'incrustation
        échoue, la signature reste enregistrée mais le bail ne passe pas (ou ne
        reste pas) à "signed" : il attend en "signed_pending_render" la
        réconciliation, y compris s'il était déjà signé.

        Raises:
            ValidationFailure: Rôle inconnu ou signature invalide
            NotFoundFailure: Bail inconnu
        """
        with logged_operation("record_signature", lease_id):
            if role not in SignerRole.values:
                raise ValidationFailure(f"Rôle de signataire inconnu: {role}")
            png_bytes = decode_signature_payload(signature)

            with lease_lock(lease_id) as lease:
                path = self.signatures.save(SignatureKey(lease.id, role), png_bytes)
                lease.set_signature_path(role, path)
                complete = lease.has_all_signatures()

                try:
                    lease.signed_path = self._render_signed(lease)
                except (RenderFailure, IOFailure) as e:
                    logger.error(
                        f"❌ record_signature (bail {lease.id}): "
                        f"échec de génération du PDF signé: {e}"
                    )
                    target = (
                        LeaseStatus.SIGNED_PENDING_RENDER
                        if complete
                        else LeaseStatus.PENDING
                    )
                else:
                    target = LeaseStatus.SIGNED if complete else LeaseStatus.PENDING

                self._advance(lease, target)
                lease.save()

            logger.info(f"✍️ Signature {role} enregistrée, bail {lease.id}: {lease.status}")
            return lease

    def get_status(self, lease_id) -> LeaseStatusReport:
        """
        Statut du bail, après interrogation du prestataire si nécessaire.

        Le document signé est téléchargé et son chemin enregistré AVANT le
        passage à "signed". Le statut "signed" n'est jamais renvoyé si le
        fichier signé n'existe pas.
        """
        with logged_operation("get_status", lease_id):
            lease = self._get_lease(lease_id)

            if lease.status != LeaseStatus.SIGNED and lease.uses_provider():
                try:
                    provider_status = self.coordinator.check_status(
                        lease.provider_envelope_id
                    )
                except ProviderFailure as e:
                    logger.error(f"❌ get_status (bail {lease.id}): {e}")
                    provider_status = None

                if provider_status == EnvelopeStatus.SIGNED:
                    lease = self._commit_provider_signature(lease.id)

            return self._report(lease)

    def _commit_provider_signature(self, lease_id) -> Lease:
        with lease_lock(lease_id) as lease:
            if lease.status == LeaseStatus.SIGNED:
                return lease

            try:
                path = self.coordinator.download_signed_document(
                    lease.provider_envelope_id, signed_document_path(lease.id)
                )
            except (ProviderFailure, NotFoundFailure, IOFailure) as e:
                logger.error(
                    f"❌ get_status (bail {lease.id}): téléchargement impossible: {e}"
                )
                return lease

            # Téléchargement puis validation : le chemin précède le statut
            lease.signed_path = path
            self._advance(lease, LeaseStatus.SIGNED)
            lease.save()
            logger.info(f"✅ Bail {lease.id} signé chez le prestataire ({path})")
            return lease

    def _report(self, lease: Lease) -> LeaseStatusReport:
        status = lease.status
        if status == LeaseStatus.SIGNED and not file_exists(lease.signed_path, self.storage):
            logger.warning(
                f"Bail {lease.id} signé mais fichier absent: {lease.signed_path}"
            )
            status = LeaseStatus.SIGNED_PENDING_RENDER.value
        return LeaseStatusReport(
            lease_id=lease.id, status=str(status), signed_path=lease.signed_path
        )

    def download(self, lease_id):
        """
        Ouvre le document signé.

        Returns:
            File: Fichier ouvert en lecture binaire

        Raises:
            NotFoundFailure: Pas de document signé, fichier absent/vide, ou PDF
                en attente de régénération
        """
        with logged_operation("download", lease_id):
            lease = self._get_lease(lease_id)
            if (
                not lease.signed_path
                or lease.status == LeaseStatus.SIGNED_PENDING_RENDER
            ):
                raise NotFoundFailure("Signed document not available")
            if not file_exists(lease.signed_path, self.storage):
                raise NotFoundFailure("File missing")
            if self.storage.size(lease.signed_path) == 0:
                raise NotFoundFailure("File missing")
            return self.storage.open(lease.signed_path, "rb")

    def latest_for_tenant(self, tenant_id) -> Lease:
        with logged_operation("latest_for_tenant"):
            lease = Lease.objects.filter(tenant_id=tenant_id).order_by("-id").first()
            if lease is None:
                raise NotFoundFailure("Lease not found")
            return lease

    # =============================================================================
    # Réconciliation
    # =============================================================================

    def rerender(self, lease_id) -> bool:
        """Nouvel essai d'incrustation pour un bail en signed_pending_render."""
        with lease_lock(lease_id) as lease:
            if lease.status != LeaseStatus.SIGNED_PENDING_RENDER:
                return False
            try:
                lease.signed_path = self._render_signed(lease)
            except (RenderFailure, IOFailure) as e:
                logger.error(f"❌ reconcile (bail {lease.id}): {e}")
                return False
            self._advance(lease, LeaseStatus.SIGNED)
            lease.save()
            logger.info(f"✅ reconcile: bail {lease.id} signé ({lease.signed_path})")
            return True

    def reconcile(self, max_attempts=None, backoff_seconds=None) -> dict:
        """
        Passe de réconciliation :
        - régénère les PDF signés en attente (signed_pending_render)
        - interroge le prestataire pour les baux encore en attente de signature
        """
        summary = {
            "rendered": 0,
            "render_failed": 0,
            "provider_signed": 0,
            "provider_waiting": 0,
        }

        pending_render = Lease.objects.filter(
            status=LeaseStatus.SIGNED_PENDING_RENDER
        ).values_list("id", flat=True)
        for lease_id in list(pending_render):
            if self.rerender(lease_id):
                summary["rendered"] += 1
            else:
                summary["render_failed"] += 1

        waiting = (
            Lease.objects.filter(provider_envelope_id__isnull=False)
            .exclude(status__in=[LeaseStatus.SIGNED, LeaseStatus.SIGNED_PENDING_RENDER])
            .values_list("id", "provider_envelope_id")
        )
        for lease_id, envelope_id in list(waiting):
            try:
                self.coordinator.wait_for_signature(
                    envelope_id, max_attempts=max_attempts, backoff_seconds=backoff_seconds
                )
            except PollingExhausted as e:
                logger.info(f"reconcile: bail {lease_id} toujours en attente ({e})")
                summary["provider_waiting"] += 1
                continue
            except ProviderFailure as e:
                logger.error(f"❌ reconcile (bail {lease_id}): {e}")
                summary["provider_waiting"] += 1
                continue

            lease = self._commit_provider_signature(lease_id)
            if lease.status == LeaseStatus.SIGNED:
                summary["provider_signed"] += 1
            else:
                summary["provider_waiting"] += 1

        logger.info(f"reconcile terminé: {summary}")
        return summary
