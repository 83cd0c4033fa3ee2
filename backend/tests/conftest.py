import pytest

from app.core.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests patch env vars per test; never let a cached Settings instance leak
    # across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
