from django.urls import path

from .views import (
    download_lease,
    generate_lease,
    latest_tenant_lease,
    lease_status,
    send_lease,
    sign_lease,
)

urlpatterns = [
    path("generate/", generate_lease, name="generate_lease"),
    path("send/", send_lease, name="send_lease"),
    path("<int:lease_id>/sign/", sign_lease, name="sign_lease"),
    path("<int:lease_id>/status/", lease_status, name="lease_status"),
    path("<int:lease_id>/download/", download_lease, name="download_lease"),
    path("tenant/<int:tenant_id>/", latest_tenant_lease, name="latest_tenant_lease"),
]
