import pytest

from hms.caching import MemoryCache
from hms.services import notify


class RecordingLayer:
    def __init__(self):
        self.sent = []

    async def group_send(self, group, message):
        self.sent.append((group, message))


@pytest.fixture
def layer(monkeypatch):
    layer = RecordingLayer()
    monkeypatch.setattr(notify, 'get_channel_layer', lambda: layer)
    return layer


def test_invalidate_drops_matching_keys_and_broadcasts(layer):
    cache = MemoryCache()
    cache.set('inventory:items:page:1', 1)
    cache.set('reports:data:report:stock', 2)
    cache.set('settings:hospital', 3)

    assert notify.invalidate(cache, 'inventory:*', 'reports:*') == 2
    assert cache.keys() == ['settings:hospital']

    [(group, event)] = layer.sent
    assert group == notify.UPDATES_GROUP
    assert event['type'] == 'broadcast.refresh'
    assert event['keys'] == ['inventory:*', 'reports:*']
    assert isinstance(event['version'], int)


def test_broadcast_without_channel_layer_is_a_no_op(monkeypatch):
    monkeypatch.setattr(notify, 'get_channel_layer', lambda: None)
    notify.broadcast_refresh(['patients:*'])


def test_patient_write_announces_stale_views(client_for, layer):
    r = client_for('accueil.leila').post('/api/patients', {
        'nin': '567890123456789012', 'full_name': 'Yacine Haddad', 'date_of_birth': '1990-01-01', 'gender': 'M',
    }, format='json')
    assert r.status_code == 201
    assert layer.sent[-1][1]['keys'] == ['patients:*', 'reports:*', 'dashboard:*']
