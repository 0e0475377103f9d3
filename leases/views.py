import logging
import os
from functools import wraps

from django.core.files.storage import default_storage
from django.http import FileResponse, JsonResponse
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from core.exceptions import LeaseError, PermissionFailure
from leases.collaborators import caller_from_user
from leases.serializers import (
    GenerateLeaseSerializer,
    LeaseSerializer,
    SendLeaseSerializer,
    SignLeaseSerializer,
)
from leases.services import LeaseLifecycleService

logger = logging.getLogger(__name__)


def get_lease_service() -> LeaseLifecycleService:
    return LeaseLifecycleService()


def file_url(request, path):
    if not path:
        return None
    return request.build_absolute_uri(default_storage.url(path))


def lease_errors(view):
    """Traduit les erreurs métier en réponse JSON avec le code HTTP associé."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except LeaseError as e:
            return JsonResponse({"error": str(e)}, status=e.status_code)
        except Exception as e:
            logger.exception(f"Erreur inattendue ({view.__name__})")
            return JsonResponse({"error": str(e)}, status=500)

    return wrapper


def invalid_data(serializer):
    return JsonResponse(
        {"error": "Données invalides", "details": serializer.errors}, status=400
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@lease_errors
def generate_lease(request):
    serializer = GenerateLeaseSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_data(serializer)
    data = serializer.validated_data

    lease = get_lease_service().generate(
        caller_from_user(request.user),
        property_id=data["propertyId"],
        tenant_id=data["tenantId"],
        start_date=data["startDate"],
        end_date=data["endDate"],
        rent=data["rent"],
        security_deposit=data["securityDeposit"],
    )
    return JsonResponse(
        {
            "id": lease.id,
            "status": lease.status,
            "url": file_url(request, lease.base_path),
        },
        status=201,
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@lease_errors
def send_lease(request):
    serializer = SendLeaseSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_data(serializer)
    data = serializer.validated_data

    lease = get_lease_service().send(
        caller_from_user(request.user),
        property_id=data["propertyId"],
        tenant_id=data["tenantId"],
        uploaded_file=data["document"],
    )
    return JsonResponse({"id": lease.id, "status": lease.status}, status=201)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@lease_errors
def sign_lease(request, lease_id):
    serializer = SignLeaseSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_data(serializer)
    data = serializer.validated_data

    role = caller_from_user(request.user).role
    if not role:
        raise PermissionFailure("Aucun rôle de signataire pour cet utilisateur")
    # Chacun ne signe que pour son propre rôle
    if data.get("signerRole") and data["signerRole"] != role:
        raise PermissionFailure(
            f"Un {role} ne peut pas signer en tant que {data['signerRole']}"
        )

    lease = get_lease_service().record_signature(lease_id, role, data["signature"])
    return JsonResponse(
        {"status": lease.status, "url": file_url(request, lease.signed_path)}
    )


@api_view(["GET"])
@permission_classes([IsAuthenticated])
@lease_errors
def lease_status(request, lease_id):
    report = get_lease_service().get_status(lease_id)
    signed_url = file_url(request, report.signed_path) if report.status == "signed" else None
    return JsonResponse({"status": report.status, "signedUrl": signed_url})


@api_view(["GET"])
@permission_classes([IsAuthenticated])
@lease_errors
def download_lease(request, lease_id):
    document = get_lease_service().download(lease_id)
    return FileResponse(
        document,
        as_attachment=True,
        filename=os.path.basename(document.name),
        content_type="application/pdf",
    )


@api_view(["GET"])
@permission_classes([IsAuthenticated])
@lease_errors
def latest_tenant_lease(request, tenant_id):
    lease = get_lease_service().latest_for_tenant(tenant_id)
    payload = LeaseSerializer(lease).data
    payload["url"] = file_url(request, lease.signed_path or lease.base_path)
    return JsonResponse(payload)
