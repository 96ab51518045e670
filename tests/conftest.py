import os

# Pas de Redis pendant les tests (doit précéder l'import de l'app)
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Generator, Dict, Any
from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.utils.security import require_user
from storefront.checkout.inventory import InventorySnapshotReader
from storefront.checkout.service import CheckoutService, get_checkout_service
from storefront.checkout.verifier import PaymentIntentVerifier

from fakes import FakeGateway, InMemoryStore

AUTH_USER: Dict[str, Any] = {
    "id": "auth-1",
    "email": "buyer@example.com",
    "metadata": {"full_name": "Test Buyer"},
    "token": "fake-token",
}
BUYER_ROW: Dict[str, Any] = {"id": "buyer-1", "auth_id": "auth-1", "email": "buyer@example.com"}

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return create_app()

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    app.dependency_overrides[require_user] = lambda: dict(AUTH_USER)
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

# Résolution auth_id -> ligne users sans base
@pytest.fixture(autouse=True)
def _mock_users_repository(monkeypatch):
    monkeypatch.setattr(
        "storefront.users.repository.get_user_by_auth_id",
        lambda auth_id: dict(BUYER_ROW) if auth_id == BUYER_ROW["auth_id"] else None,
    )

@pytest.fixture()
def store() -> InMemoryStore:
    s = InMemoryStore()
    s.users[BUYER_ROW["id"]] = {"id": BUYER_ROW["id"], "email": BUYER_ROW["email"]}
    return s

@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()

@pytest.fixture()
def checkout_service(store, gateway) -> CheckoutService:
    return CheckoutService(
        gateway=gateway,
        inventory=InventorySnapshotReader(fetch_products=store.fetch_products),
        unit_of_work=store.unit_of_work,
        find_orders=store.find_orders,
        is_finalized=store.is_finalized,
        verifier=PaymentIntentVerifier(gateway, max_attempts=3, backoff_seconds=0, sleep=lambda s: None),
    )

@pytest.fixture()
def api(app, client, checkout_service):
    """Client HTTP dont le service checkout tourne sur les doublures en mémoire."""
    app.dependency_overrides[get_checkout_service] = lambda: checkout_service
    try:
        yield client
    finally:
        app.dependency_overrides.pop(get_checkout_service, None)
