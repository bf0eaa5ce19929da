# accounting/api/serializers/vouchers.py

"""
VOUCHER SERIALIZERS

Notes:
- Read serializers expose the stored voucher with its entries and line items.
- Write serializers only check request shape; debit/credit rules are enforced
  by the voucher validator when the draft is posted.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from accounting.models import Ledger, LedgerEntry, LineItem, Voucher

MONEY = {"max_digits": 18, "decimal_places": 2}
RATE = {"max_digits": 5, "decimal_places": 2, "min_value": Decimal("0"), "max_value": Decimal("100")}


class LedgerEntrySerializer(serializers.ModelSerializer):
    ledger_code = serializers.CharField(source="ledger.code", read_only=True)
    ledger_name = serializers.CharField(source="ledger.name", read_only=True)

    class Meta:
        model = LedgerEntry
        fields = ("id", "ledger", "ledger_code", "ledger_name", "debit_amount", "credit_amount", "line_order")
        read_only_fields = fields


class LineItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = LineItem
        exclude = ("voucher",)
        read_only_fields = ("id",)


class VoucherSerializer(serializers.ModelSerializer):
    entries = LedgerEntrySerializer(many=True, read_only=True)
    line_items = LineItemSerializer(many=True, read_only=True)
    reversed_by = serializers.SerializerMethodField()

    class Meta:
        model = Voucher
        fields = (
            "id",
            "voucher_type",
            "voucher_number",
            "date",
            "status",
            "narration",
            "reference_number",
            "party_ledger",
            "supplier_state",
            "place_of_supply",
            "total_amount",
            "round_off",
            "reversal_of",
            "reversed_by",
            "posted_at",
            "cancelled_at",
            "cancellation_reason",
            "entries",
            "line_items",
            "created_at",
        )
        read_only_fields = fields

    def get_reversed_by(self, obj):
        return Voucher.objects.filter(reversal_of_id=obj.pk).values_list("id", flat=True).first()


class EntryInputSerializer(serializers.Serializer):
    ledger = serializers.PrimaryKeyRelatedField(queryset=Ledger.objects.all())
    debit_amount = serializers.DecimalField(required=False, default=Decimal("0.00"), **MONEY)
    credit_amount = serializers.DecimalField(required=False, default=Decimal("0.00"), **MONEY)


class LineItemInputSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, default="")
    hsn_code = serializers.CharField(required=False, allow_blank=True, default="", max_length=8)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0"))
    rate = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    discount_percent = serializers.DecimalField(required=False, default=Decimal("0.00"), **RATE)
    taxable_amount = serializers.DecimalField(min_value=Decimal("0"), **MONEY)
    gst_rate = serializers.DecimalField(**RATE)
    cess_rate = serializers.DecimalField(required=False, default=Decimal("0.00"), **RATE)
    cgst_amount = serializers.DecimalField(required=False, default=Decimal("0.00"), min_value=Decimal("0"), **MONEY)
    sgst_amount = serializers.DecimalField(required=False, default=Decimal("0.00"), min_value=Decimal("0"), **MONEY)
    igst_amount = serializers.DecimalField(required=False, default=Decimal("0.00"), min_value=Decimal("0"), **MONEY)
    cess_amount = serializers.DecimalField(required=False, default=Decimal("0.00"), min_value=Decimal("0"), **MONEY)
    total_amount = serializers.DecimalField(min_value=Decimal("0"), **MONEY)


class VoucherCreateSerializer(serializers.Serializer):
    voucher_type = serializers.ChoiceField(choices=Voucher.VOUCHER_TYPES)
    voucher_number = serializers.CharField(required=False, allow_blank=True, max_length=40)
    date = serializers.DateField()
    narration = serializers.CharField(required=False, allow_blank=True, default="")
    reference_number = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)
    party_ledger = serializers.PrimaryKeyRelatedField(
        queryset=Ledger.objects.all(), required=False, allow_null=True, default=None
    )
    supplier_state = serializers.CharField(required=False, allow_blank=True, default="", max_length=60)
    place_of_supply = serializers.CharField(required=False, allow_blank=True, default="", max_length=60)
    entries = EntryInputSerializer(many=True)
    line_items = LineItemInputSerializer(many=True, required=False, default=list)
    post = serializers.BooleanField(required=False, default=False)

    def validate_voucher_number(self, value):
        value = (value or "").strip()
        if value and Voucher.objects.filter(voucher_number=value).exists():
            raise serializers.ValidationError("A voucher with this number already exists.")
        return value or None


class VoucherCancelSerializer(serializers.Serializer):
    reason = serializers.CharField()
    acknowledge_reversal = serializers.BooleanField(default=False)
    reversal_date = serializers.DateField(required=False, allow_null=True, default=None)
