import pytest

from glowmify.repositories.user_repo import get_store


# ── Patch settings before any other import ──────────────────────────────────
@pytest.fixture(autouse=True)
def _patch_settings(monkeypatch):
    from glowmify.core.config import settings
    monkeypatch.setattr(settings, "api_base_url", "https://shop.test/api/v1")
    monkeypatch.setattr(settings, "api_max_retries", 3)
    monkeypatch.setattr(settings, "feed_page_size", 10)
    monkeypatch.setattr(settings, "promo_discount_rate", 0.10)
    monkeypatch.setattr(settings, "jwt_secret_key", "test-secret-key-for-unit-tests-must-be-32-chars")
    monkeypatch.setattr(settings, "debug", False)


@pytest.fixture(autouse=True)
def _clear_user_store():
    get_store().clear()
    yield
    get_store().clear()


@pytest.fixture
def fake_api():
    from tests.factories import FakeShopApiClient
    return FakeShopApiClient()
