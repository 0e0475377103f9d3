from rest_framework import serializers

from leases.models import Lease
from signature.document_status import SignerRole


class GenerateLeaseSerializer(serializers.Serializer):
    propertyId = serializers.IntegerField()
    tenantId = serializers.IntegerField()
    startDate = serializers.DateField()
    endDate = serializers.DateField()
    rent = serializers.DecimalField(max_digits=10, decimal_places=2)
    securityDeposit = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, default=0, min_value=0
    )

    def validate_rent(self, value):
        if value <= 0:
            raise serializers.ValidationError("Le loyer doit être positif")
        return value

    def validate(self, attrs):
        if attrs["endDate"] < attrs["startDate"]:
            raise serializers.ValidationError(
                {"endDate": "La date de fin précède la date de début"}
            )
        return attrs


class SendLeaseSerializer(serializers.Serializer):
    propertyId = serializers.IntegerField()
    tenantId = serializers.IntegerField()
    document = serializers.FileField(allow_empty_file=False)


class SignLeaseSerializer(serializers.Serializer):
    """
    signature : data URL ou base64 d'une image PNG.
    signerRole : optionnel, doit correspondre au rôle de l'appelant.
    """

    signature = serializers.CharField(trim_whitespace=True)
    signerRole = serializers.ChoiceField(choices=SignerRole.choices, required=False)


class LeaseSerializer(serializers.ModelSerializer):
    propertyId = serializers.IntegerField(source="property_id", read_only=True)
    tenantId = serializers.IntegerField(source="tenant_id", read_only=True)
    basePath = serializers.CharField(source="base_path", read_only=True)
    signedPath = serializers.CharField(source="signed_path", read_only=True)
    startDate = serializers.DateField(source="start_date", read_only=True)
    endDate = serializers.DateField(source="end_date", read_only=True)
    dueDate = serializers.DateField(source="due_date", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Lease
        fields = [
            "id",
            "propertyId",
            "tenantId",
            "status",
            "basePath",
            "signedPath",
            "startDate",
            "endDate",
            "dueDate",
            "createdAt",
        ]
