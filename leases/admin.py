from django.contrib import admin
from django.utils.html import format_html
from simple_history.admin import SimpleHistoryAdmin

from signature.document_status import LeaseStatus

from .models import Lease

STATUS_COLORS = {
    LeaseStatus.GENERATED: "gray",
    LeaseStatus.SENT: "steelblue",
    LeaseStatus.PENDING: "orange",
    LeaseStatus.SIGNED_PENDING_RENDER: "darkorange",
    LeaseStatus.SIGNED: "green",
}


@admin.register(Lease)
class LeaseAdmin(SimpleHistoryAdmin):
    list_display = [
        "id",
        "property",
        "tenant",
        "status_display",
        "start_date",
        "end_date",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["property__address", "tenant__name", "tenant__email"]
    raw_id_fields = ["property", "tenant"]

    # Les chemins et le statut ne sont modifiés que par le cycle de vie
    readonly_fields = [
        "status",
        "base_path",
        "signed_path",
        "landlord_signature_path",
        "tenant_signature_path",
        "provider_envelope_id",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        ("Bail", {"fields": ("property", "tenant", "status")}),
        ("Dates", {"fields": ("start_date", "end_date", "due_date")}),
        (
            "Documents",
            {
                "fields": (
                    "base_path",
                    "signed_path",
                    "landlord_signature_path",
                    "tenant_signature_path",
                    "provider_envelope_id",
                )
            },
        ),
        ("Métadonnées", {"fields": ("created_at", "updated_at")}),
    )

    def status_display(self, obj):
        """Affiche le statut avec un code couleur"""
        return format_html(
            '<span style="color: {};">{}</span>',
            STATUS_COLORS.get(obj.status, "black"),
            obj.get_status_display(),
        )

    status_display.short_description = "Statut"
