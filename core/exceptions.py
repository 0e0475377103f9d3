"""
Erreurs métier du cycle de vie des baux.

Chaque erreur porte le bail et l'opération concernés pour que les logs et les
réponses HTTP restent cohérents, ainsi que le code HTTP à renvoyer.
"""


class LeaseError(Exception):
    """Erreur de base du cycle de vie d'un bail."""

    status_code = 500

    def __init__(self, message: str, lease_id=None, operation: str | None = None):
        super().__init__(message)
        self.message = message
        self.lease_id = lease_id
        self.operation = operation

    def __str__(self):
        return self.message


class ValidationFailure(LeaseError):
    """Champ requis manquant ou invalide (ex: dépôt de garantie négatif)."""

    status_code = 400


class PermissionFailure(LeaseError):
    """Le rôle de l'appelant n'autorise pas l'opération."""

    status_code = 403


class NotFoundFailure(LeaseError):
    """Bien, locataire, bail ou document introuvable."""

    status_code = 404


class PreconditionFailure(LeaseError):
    """Aucun paiement reçu avant la génération du bail."""

    status_code = 400


class InvalidTransition(LeaseError):
    """Transition de statut interdite (pas de retour en arrière)."""

    status_code = 409


class IOFailure(LeaseError):
    """Erreur de lecture/écriture dans le stockage."""


class RenderFailure(LeaseError):
    """Document PDF illisible ou image de signature non décodable."""


class ProviderFailure(LeaseError):
    """Prestataire de signature injoignable ou enveloppe inconnue."""

    status_code = 502


class NotReadyError(ProviderFailure):
    """L'enveloppe n'est pas encore signée."""

    status_code = 409


class PollingExhausted(ProviderFailure):
    """Nombre maximum d'interrogations du prestataire atteint."""

    status_code = 504
