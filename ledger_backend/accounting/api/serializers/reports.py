# accounting/api/serializers/reports.py

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers


class DateRangeQuerySerializer(serializers.Serializer):
    from_date = serializers.DateField(required=False, allow_null=True, default=None)
    to_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        from_date = attrs.get("from_date")
        to_date = attrs.get("to_date")
        if from_date and to_date and from_date > to_date:
            raise serializers.ValidationError({"from_date": "from_date cannot be after to_date"})
        return attrs


class TrialBalanceQuerySerializer(serializers.Serializer):
    as_of_date = serializers.DateField(required=False, allow_null=True, default=None)


class AmountInWordsQuerySerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=Decimal("0"))
