"""
Factories pour les tests.

Usage dans les tests:
    from location.factories import LeaseFactory, PaymentFactory, UserFactory

    # Bailleur (utilisateur du groupe "landlord")
    landlord = UserFactory(groups=["landlord"])

    # Paiement reçu (crée le bien et le locataire)
    payment = PaymentFactory(status=PaymentStatus.RECEIVED)

    # Bail déjà généré
    lease = LeaseFactory(status=LeaseStatus.PENDING)
"""

from datetime import date, timedelta

import factory
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from factory.django import DjangoModelFactory

from leases.models import Lease
from location.models import Payment, PaymentStatus, Property, Tenant
from signature.document_status import LeaseStatus


# ==============================
# COMPTES
# ==============================


class UserFactory(DjangoModelFactory):
    """Utilisateur Django, avec appartenance optionnelle à des groupes."""

    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"user{n}")
    first_name = factory.Faker("first_name", locale="fr_FR")
    last_name = factory.Faker("last_name", locale="fr_FR")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@example.com")
    password = factory.django.Password("testpass123")

    @factory.post_generation
    def groups(self, create, extracted, **kwargs):
        """
        Usage:
            UserFactory(groups=["landlord"])
        """
        if not create or not extracted:
            return
        for name in extracted:
            group, _ = Group.objects.get_or_create(name=name)
            self.groups.add(group)


# ==============================
# BIENS ET LOCATAIRES
# ==============================


class PropertyFactory(DjangoModelFactory):
    class Meta:
        model = Property

    address = factory.Faker("address", locale="fr_FR")
    landlord = factory.SubFactory(UserFactory, groups=["landlord"])


class TenantFactory(DjangoModelFactory):
    class Meta:
        model = Tenant

    name = factory.Faker("name", locale="fr_FR")
    email = factory.Sequence(lambda n: f"locataire{n}@example.com")


class PaymentFactory(DjangoModelFactory):
    """Paiement d'un locataire pour un bien (en attente par défaut)."""

    class Meta:
        model = Payment

    tenant = factory.SubFactory(TenantFactory)
    property = factory.SubFactory(PropertyFactory)
    amount = factory.Faker(
        "pydecimal", left_digits=4, right_digits=2, positive=True, min_value=100
    )
    status = PaymentStatus.PENDING


# ==============================
# BAUX
# ==============================


class LeaseFactory(DjangoModelFactory):
    """
    Bail déjà enregistré, sans document sur disque.

    Usage:
        lease = LeaseFactory(status=LeaseStatus.SENT, provider_envelope_id="...")
    """

    class Meta:
        model = Lease

    property = factory.SubFactory(PropertyFactory)
    tenant = factory.SubFactory(TenantFactory)
    status = LeaseStatus.GENERATED
    base_path = factory.Sequence(lambda n: f"leases/lease-{n}.pdf")
    start_date = factory.LazyFunction(date.today)
    end_date = factory.LazyAttribute(lambda obj: obj.start_date + timedelta(days=365))
    due_date = factory.LazyAttribute(lambda obj: obj.start_date)
