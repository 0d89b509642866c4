from rest_framework import serializers

from hms.services.inventory import CATEGORIES, TRANSACTION_TYPES

class InventoryItemSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    category = serializers.ChoiceField(choices=CATEGORIES)
    unit = serializers.CharField(max_length=32)
    min_threshold = serializers.IntegerField(min_value=0)
    unit_cost = serializers.FloatField(min_value=0, required=False)

class StockTransactionSerializer(serializers.Serializer):
    item_id = serializers.CharField()
    transaction_type = serializers.ChoiceField(choices=TRANSACTION_TYPES)
    quantity_change = serializers.IntegerField()
    reference = serializers.CharField(required=False, allow_blank=True, max_length=64)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)

class InventoryListQuerySerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=CATEGORIES, required=False)
    status = serializers.ChoiceField(choices=['ok', 'low', 'critical'], required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=20)
