from collections import defaultdict
from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from hms.services.patients import paginate

CATEGORIES = ('medication', 'consumable', 'equipment')
TRANSACTION_TYPES = ('receive', 'dispense', 'adjust', 'transfer', 'waste')


def stock_status(item: dict) -> str:
    """``critical`` at or below half the threshold, ``low`` below it."""
    stock, threshold = item['current_stock'], item['min_threshold']
    if stock <= threshold / 2:
        return 'critical'
    if stock < threshold:
        return 'low'
    return 'ok'


def _row(item: dict) -> dict:
    return {**item, 'stock_status': stock_status(item)}


def list_items(store, *, category: Optional[str]=None, status: Optional[str]=None,
               page: int=1, limit: int=20) -> tuple[list[dict], dict]:
    with store.lock:
        rows = [_row(i) for i in store.inventory.values() if i['is_active']]
    if category:
        rows = [i for i in rows if i['category'] == category]
    if status:
        rows = [i for i in rows if i['stock_status'] == status]
    rows.sort(key=lambda i: i['name'])
    return paginate(rows, page, limit)


def create_item(store, actor, data: dict) -> dict:
    now = timezone.now().isoformat()
    with store.lock:
        item = {
            'id': store.next_id('item'),
            'hospital_id': actor.hospital_id,
            'name': data['name'],
            'category': data['category'],
            'unit': data['unit'],
            'current_stock': 0,
            'min_threshold': data['min_threshold'],
            'unit_cost': data.get('unit_cost', 0.0),
            'is_active': True,
            'created_at': now,
            'updated_at': now,
        }
        store.inventory[item['id']] = item
        return _row(item)


def record_transaction(store, actor, data: dict) -> dict:
    change = data['quantity_change']
    if change == 0:
        raise ValidationError({'quantity_change': ['must not be zero']})
    with store.lock:
        item = store.inventory.get(data['item_id'])
        if item is None:
            raise NotFound('inventory item not found')
        new_stock = item['current_stock'] + change
        if new_stock < 0:
            raise ValidationError({'quantity_change': [f"only {item['current_stock']} in stock"]})
        now = timezone.now().isoformat()
        item['current_stock'] = new_stock
        item['updated_at'] = now
        transaction = {
            'id': store.next_id('txn'),
            'item_id': item['id'],
            'transaction_type': data['transaction_type'],
            'quantity_change': change,
            'stock_after': new_stock,
            'reference': data.get('reference', ''),
            'notes': data.get('notes', ''),
            'performed_by': actor.id,
            'created_at': now,
        }
        store.transactions.append(transaction)
        return transaction


def stock_report(store) -> dict:
    with store.lock:
        items = [_row(i) for i in store.inventory.values() if i['is_active']]
        movements = [dict(t) for t in store.transactions[-20:]]
    by_category = defaultdict(lambda: {'items': 0, 'value': 0.0, 'low_stock': 0})
    for item in items:
        bucket = by_category[item['category']]
        bucket['items'] += 1
        bucket['value'] += item['current_stock'] * item['unit_cost']
        bucket['low_stock'] += item['stock_status'] != 'ok'
    return {
        'total_items': len(items),
        'low_stock_items': sum(1 for i in items if i['stock_status'] == 'low'),
        'critical_stock_items': sum(1 for i in items if i['stock_status'] == 'critical'),
        'total_value': round(sum(i['current_stock'] * i['unit_cost'] for i in items), 2),
        'by_category': [
            {'category': name, **{**values, 'value': round(values['value'], 2)}}
            for name, values in sorted(by_category.items())
        ],
        'movements': movements,
    }
