# accounting/api/serializers/ledgers.py

from __future__ import annotations

from rest_framework import serializers

from accounting.gst import GSTError, validate_gstin
from accounting.models import Ledger, LedgerGroup


class LedgerGroupSerializer(serializers.ModelSerializer):
    balance_nature = serializers.CharField(read_only=True)

    class Meta:
        model = LedgerGroup
        fields = ("id", "code", "name", "nature", "balance_nature", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class LedgerSerializer(serializers.ModelSerializer):
    group_code = serializers.CharField(source="group.code", read_only=True)
    nature = serializers.CharField(read_only=True)
    balance_magnitude = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)
    balance_type = serializers.CharField(read_only=True)

    class Meta:
        model = Ledger
        fields = (
            "id",
            "code",
            "name",
            "group",
            "group_code",
            "nature",
            "opening_balance",
            "opening_balance_date",
            "gstin",
            "state_code",
            "current_balance",
            "balance_magnitude",
            "balance_type",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "current_balance", "created_at", "updated_at")

    def validate_gstin(self, value):
        value = (value or "").strip().upper()
        if value:
            try:
                validate_gstin(value)
            except GSTError as exc:
                raise serializers.ValidationError(str(exc)) from exc
        return value
