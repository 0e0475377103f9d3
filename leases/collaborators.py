"""
Accès en lecture seule aux modules biens / locataires / paiements / comptes.

Le cycle de vie des baux ne connaît que cette interface : l'appelant (déjà
authentifié) et les quelques informations nécessaires à la génération.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model

from core.exceptions import NotFoundFailure
from location.models import Payment, PaymentStatus, Property, Tenant
from signature.document_status import SignerRole


@dataclass(frozen=True)
class Caller:
    """Identité et rôle de l'appelant, fournis par la couche d'authentification."""

    user_id: Optional[int]
    role: str

    @property
    def is_landlord(self) -> bool:
        return self.role == SignerRole.LANDLORD


@dataclass(frozen=True)
class TenantInfo:
    name: str
    email: str = ""


def caller_from_user(user) -> Caller:
    """
    Construit l'appelant depuis un utilisateur Django.

    Le rôle est porté par l'appartenance au groupe "landlord" ou "tenant".
    """
    group_names = set(user.groups.values_list("name", flat=True))
    if SignerRole.LANDLORD.value in group_names:
        role = SignerRole.LANDLORD.value
    elif SignerRole.TENANT.value in group_names:
        role = SignerRole.TENANT.value
    else:
        role = ""
    return Caller(user_id=user.pk, role=role)


class LeaseDirectory(ABC):
    @abstractmethod
    def get_property_address(self, property_id) -> str:
        pass

    @abstractmethod
    def get_tenant(self, tenant_id) -> TenantInfo:
        pass

    @abstractmethod
    def has_received_payment(self, tenant_id, property_id) -> bool:
        pass

    @abstractmethod
    def get_landlord_name(self, user_id) -> Optional[str]:
        pass


class DatabaseLeaseDirectory(LeaseDirectory):
    """Lecture directe des tables location et auth."""

    def get_property_address(self, property_id):
        address = (
            Property.objects.filter(id=property_id)
            .values_list("address", flat=True)
            .first()
        )
        if address is None:
            raise NotFoundFailure("Property not found")
        return address

    def get_tenant(self, tenant_id):
        tenant = Tenant.objects.filter(id=tenant_id).first()
        if tenant is None:
            raise NotFoundFailure("Tenant not found")
        return TenantInfo(name=tenant.name, email=tenant.email)

    def has_received_payment(self, tenant_id, property_id):
        return Payment.objects.filter(
            tenant_id=tenant_id,
            property_id=property_id,
            status=PaymentStatus.RECEIVED,
        ).exists()

    def get_landlord_name(self, user_id):
        if user_id is None:
            return None
        user = get_user_model().objects.filter(pk=user_id).first()
        if user is None:
            return None
        return user.get_full_name() or None
