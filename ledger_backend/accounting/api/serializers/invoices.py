# accounting/api/serializers/invoices.py

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from accounting.models import Ledger, Voucher

RATE = {"max_digits": 5, "decimal_places": 2, "min_value": Decimal("0"), "max_value": Decimal("100")}

INVOICE_TYPE_CHOICES = [(value, label) for value, label in Voucher.VOUCHER_TYPES if value in Voucher.INVOICE_TYPES]


class InvoiceLineSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, default="")
    hsn_code = serializers.CharField(required=False, allow_blank=True, default="", max_length=8)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    rate = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    gst_rate = serializers.DecimalField(**RATE)
    discount_percent = serializers.DecimalField(required=False, default=Decimal("0.00"), **RATE)
    cess_rate = serializers.DecimalField(required=False, default=Decimal("0.00"), **RATE)


class InvoiceCreateSerializer(serializers.Serializer):
    voucher_type = serializers.ChoiceField(choices=INVOICE_TYPE_CHOICES)
    voucher_number = serializers.CharField(required=False, allow_blank=True, max_length=40)
    date = serializers.DateField()
    party_ledger = serializers.PrimaryKeyRelatedField(queryset=Ledger.objects.filter(is_active=True))
    supplier_state = serializers.CharField(required=False, allow_null=True, default=None, max_length=60)
    place_of_supply = serializers.CharField(required=False, allow_null=True, default=None, max_length=60)
    narration = serializers.CharField(required=False, allow_blank=True, default="")
    reference_number = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)
    lines = InvoiceLineSerializer(many=True, allow_empty=False)
    post = serializers.BooleanField(required=False, default=False)

    def validate_voucher_number(self, value):
        value = (value or "").strip()
        if value and Voucher.objects.filter(voucher_number=value).exists():
            raise serializers.ValidationError("A voucher with this number already exists.")
        return value or None
