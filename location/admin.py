from django.contrib import admin

from .models import Payment, Property, Tenant


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    """Interface d'administration pour les biens"""

    list_display = ("id", "address", "landlord", "created_at")
    search_fields = ("address", "landlord__username", "landlord__last_name")
    raw_id_fields = ("landlord",)
    ordering = ("-created_at",)


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "created_at")
    search_fields = ("name", "email")
    ordering = ("-created_at",)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "tenant", "property", "amount", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("tenant__name", "property__address")
    raw_id_fields = ("tenant", "property")
