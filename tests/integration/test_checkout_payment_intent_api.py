from storefront.checkout.errors import PaymentNotConfigured
from storefront.checkout.metadata import parse_cart
from storefront.utils.security import require_user

from fakes import make_intent

URL = "/api/v1/checkout/payment-intent"


def test_creates_intent_from_catalog_prices(api, store, gateway):
    store.add_product("p1", "s1", 1500)
    store.add_product("p2", "s2", 4000)

    r = api.post(URL, json={
        "items": [{"productId": "p1", "quantity": 1}, {"productId": "p2", "quantity": 1}],
        "shipping": 700,
        "tax": 300,
    })

    assert r.status_code == 200
    assert r.json() == {"success": True, "paymentIntent": {"id": "pi_new_1", "clientSecret": "pi_new_1_secret"}}
    created = gateway.created[0]
    assert created["amount"] == 6500
    assert created["metadata"]["buyerId"] == "buyer-1"


def test_created_intent_can_be_finalized(api, store, gateway):
    store.add_product("p1", "s1", 1500)
    store.add_product("p2", "s2", 4000)
    api.post(URL, json={"items": [{"productId": "p1"}, {"productId": "p2"}], "shipping": 700, "tax": 300})
    created = gateway.created[0]
    gateway.intents[created["id"]] = make_intent(created["id"], amount=created["amount"])
    gateway.intents[created["id"]].metadata.update(created["metadata"])
    assert parse_cart(created["metadata"], created["amount"])

    r = api.post("/api/v1/checkout/finalize", json={
        "paymentReference": created["id"],
        "shippingAddress": {"street": "1 rue A", "city": "Paris", "state": "IDF", "postalCode": "75001", "country": "FR"},
        "shippingMethod": "standard",
        "contactInfo": {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"},
    })

    assert r.status_code == 200
    assert sum(o["amount"] for o in r.json()["orders"]) == 6500


def test_unavailable_product_is_400(api, store, gateway):
    store.add_product("p1", "s1", 1500, status="SOLD")
    r = api.post(URL, json={"items": [{"productId": "p1"}]})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request data"
    assert gateway.created == []


def test_empty_items_is_400(api, gateway):
    r = api.post(URL, json={"items": []})
    assert r.status_code == 400
    assert gateway.created == []


def test_negative_shipping_is_400(api, store):
    store.add_product("p1", "s1", 1500)
    r = api.post(URL, json={"items": [{"productId": "p1"}], "shipping": -1})
    assert r.status_code == 400


def test_requires_authentication(app, api):
    app.dependency_overrides.pop(require_user, None)
    r = api.post(URL, json={"items": [{"productId": "p1"}]})
    assert r.status_code == 401


def test_missing_stripe_key_is_503(api, store, gateway, monkeypatch):
    store.add_product("p1", "s1", 1500)

    def _not_configured(*, amount, metadata):
        raise PaymentNotConfigured("no key")

    monkeypatch.setattr(gateway, "create_intent", _not_configured)
    r = api.post(URL, json={"items": [{"productId": "p1"}]})

    assert r.status_code == 503
    assert r.json() == {"error": "Payment processing is not configured"}
