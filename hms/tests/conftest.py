import pytest
from django.apps import apps
from django.core.cache import cache as django_cache
from django.urls import reverse
from rest_framework.test import APIClient

DEMO_PASSWORD = '123456'
HOSPITAL_CODE = 'HCA001'


@pytest.fixture(autouse=True)
def fresh_state(settings):
    """Every test starts from the seeded store, empty caches and no throttle history."""
    settings.HMS_DEMO_PASSWORD = DEMO_PASSWORD
    config = apps.get_app_config('hms')
    config.cache.clear()
    config.auth_cache.clear()
    config.store.reset()
    django_cache.clear()
    yield
    config.cache.clear()
    config.auth_cache.clear()


@pytest.fixture
def memory_cache():
    return apps.get_app_config('hms').cache


@pytest.fixture
def auth_cache():
    return apps.get_app_config('hms').auth_cache


@pytest.fixture
def records():
    return apps.get_app_config('hms').store


@pytest.fixture
def api_client():
    return APIClient()


def login(client, username, password=DEMO_PASSWORD, hospital_code=HOSPITAL_CODE):
    return client.post(
        reverse('login_view'),
        {'username': username, 'password': password, 'hospitalCode': hospital_code},
        format='json',
    )


@pytest.fixture
def client_for():
    """Return a factory building an APIClient logged in as the given staff member."""
    def make(username):
        client = APIClient()
        r = login(client, username)
        assert r.status_code == 200, r.data
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['data']['accessToken']}")
        client.tokens = r.data['data']
        return client
    return make
