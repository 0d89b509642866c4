"""
Inventory and stock endpoints.

Stock levels feed the dashboard and the stock report, so any change to
them invalidates those caches as well as the item listings.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.caching import CACHE_KEYS, CACHE_TTL
from hms.permissions import Permission, RequirePermission, actor_for_request, ensure_access
from hms.serializers.inventory import (
    InventoryItemSerializer,
    InventoryListQuerySerializer,
    StockTransactionSerializer,
)
from hms.services import inventory as svc
from hms.services.audit import log_action
from hms.services.notify import invalidate

STALE_AFTER_WRITE = ('inventory:*', 'reports:*', 'dashboard:*')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_items(request):
    if request.method == 'GET':
        ensure_access(request, permission=Permission.VIEW_INVENTORY)
        q = InventoryListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        cache = request.memory_cache
        key = cache.generate_key(CACHE_KEYS.INVENTORY_ITEMS, params)
        rows, pagination = cache.get_or_set(
            key, lambda: svc.list_items(request.records, **params), CACHE_TTL.SHORT,
        )
        return Response({'ok': True, 'data': rows, 'pagination': pagination})

    actor = ensure_access(request, permission=Permission.MANAGE_INVENTORY)
    s = InventoryItemSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    item = svc.create_item(request.records, actor, s.validated_data)
    log_action(request.records, actor=actor, action='INVENTORY_ITEM_CREATED', object_type='inventory_item',
               object_id=item['id'])
    invalidate(request.memory_cache, *STALE_AFTER_WRITE)
    return Response({'ok': True, 'data': item}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.MANAGE_INVENTORY)])
def stock_transactions(request):
    actor = actor_for_request(request)
    s = StockTransactionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    transaction = svc.record_transaction(request.records, actor, s.validated_data)
    log_action(request.records, actor=actor, action='STOCK_TRANSACTION', object_type='inventory_item',
               object_id=transaction['item_id'],
               detail={'type': transaction['transaction_type'], 'change': transaction['quantity_change']})
    invalidate(request.memory_cache, *STALE_AFTER_WRITE)
    return Response({'ok': True, 'data': transaction}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, RequirePermission(Permission.VIEW_STOCK_REPORTS)])
def stock_report(request):
    cache = request.memory_cache
    key = cache.generate_key(CACHE_KEYS.REPORTS_DATA, {'report': 'stock'})
    report = cache.get_or_set(key, lambda: svc.stock_report(request.records), CACHE_TTL.LONG)
    return Response({'ok': True, 'data': report})
