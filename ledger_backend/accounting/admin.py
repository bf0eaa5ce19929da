# accounting/admin.py

from django.contrib import admin

from accounting.models import LedgerEntry, LedgerGroup, Ledger, LineItem, Posting, PostingHalt, Voucher


class _ReadOnlyAdmin(admin.ModelAdmin):
    """Postings and halts are written by the engine only."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# LEDGER GROUPS
# ============================================================


@admin.register(LedgerGroup)
class LedgerGroupAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "nature", "created_at")
    list_filter = ("nature",)
    search_fields = ("code", "name")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("code",)


# ============================================================
# LEDGERS
# ============================================================


@admin.register(Ledger)
class LedgerAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "group",
        "opening_balance",
        "current_balance",
        "is_active",
    )
    list_filter = ("group__nature", "group", "is_active")
    search_fields = ("code", "name", "gstin")
    ordering = ("code",)
    readonly_fields = ("current_balance", "state_code", "created_at", "updated_at")

    fieldsets = (
        (
            "Ledger Identity",
            {
                "fields": ("group", "code", "name"),
            },
        ),
        (
            "Opening",
            {
                "fields": ("opening_balance", "opening_balance_date"),
            },
        ),
        (
            "GST",
            {
                "fields": ("gstin", "state_code"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "current_balance"),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# VOUCHERS (DRAFT CHILDREN INLINE, NEVER EDITED AFTER POSTING)
# ============================================================


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    fields = ("line_order", "ledger", "debit_amount", "credit_amount")


class LineItemInline(admin.TabularInline):
    model = LineItem
    extra = 0
    fields = (
        "line_order",
        "description",
        "hsn_code",
        "taxable_amount",
        "gst_rate",
        "cgst_amount",
        "sgst_amount",
        "igst_amount",
        "cess_amount",
        "total_amount",
    )


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = (
        "voucher_number",
        "voucher_type",
        "date",
        "status",
        "total_amount",
        "party_ledger",
    )
    list_filter = ("voucher_type", "status", "date")
    search_fields = ("voucher_number", "reference_number", "narration")
    ordering = ("-date", "-id")
    inlines = (LedgerEntryInline, LineItemInline)

    readonly_fields = (
        "status",
        "reversal_of",
        "posted_at",
        "cancelled_at",
        "cancellation_reason",
        "created_at",
        "updated_at",
    )

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.status != Voucher.DRAFT:
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.status != Voucher.DRAFT:
            return False
        return super().has_delete_permission(request, obj)


# ============================================================
# POSTINGS (STRICTLY IMMUTABLE)
# ============================================================


@admin.register(Posting)
class PostingAdmin(_ReadOnlyAdmin):
    list_display = ("id", "date", "ledger", "voucher", "debit", "credit", "created_at")
    list_filter = ("date", "ledger")
    search_fields = ("voucher__voucher_number", "ledger__code")
    ordering = ("date", "id")
    readonly_fields = ("ledger", "voucher", "date", "debit", "credit", "created_at")


# ============================================================
# POSTING HALTS (resolved via resolve_halts, not the admin)
# ============================================================


@admin.register(PostingHalt)
class PostingHaltAdmin(_ReadOnlyAdmin):
    list_display = ("id", "as_of_date", "difference", "created_at", "resolved_at")
    ordering = ("-created_at",)
    readonly_fields = (
        "reason",
        "as_of_date",
        "total_debit",
        "total_credit",
        "difference",
        "created_at",
        "resolved_at",
        "resolution_note",
    )
