from django.contrib import admin

from signature.models import SigningEnvelope


@admin.register(SigningEnvelope)
class SigningEnvelopeAdmin(admin.ModelAdmin):
    """Enveloppes du prestataire de signature (lecture seule)"""

    list_display = ["id", "status", "signer_display", "file_path", "created_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["id", "signer_name", "signer_email", "file_path"]
    readonly_fields = [
        "id",
        "status",
        "file_path",
        "signer_name",
        "signer_email",
        "created_at",
        "updated_at",
    ]

    def signer_display(self, obj):
        """Affiche le signataire"""
        if obj.signer_email:
            return f"{obj.signer_name} ({obj.signer_email})"
        return obj.signer_name
    signer_display.short_description = "Signataire"

    def has_add_permission(self, request):
        return False
