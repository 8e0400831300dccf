import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_cache():
    # pricing config is cached between requests
    cache.clear()
    yield
    cache.clear()
