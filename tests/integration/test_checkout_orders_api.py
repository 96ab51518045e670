from fakes import make_intent

URL = "/api/v1/checkout/orders"


def _finalize(api, reference):
    return api.post("/api/v1/checkout/finalize", json={
        "paymentReference": reference,
        "shippingAddress": {"street": "1 rue A", "city": "Paris", "state": "IDF", "postalCode": "75001", "country": "FR"},
        "shippingMethod": "standard",
        "contactInfo": {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"},
    })


def test_lists_orders_of_a_finalized_payment(api, store, gateway):
    store.add_product("p1", "s1", 1000)
    gateway.intents["pi_1"] = make_intent("pi_1", items=[{"productId": "p1", "unitPrice": 1000}], shipping=200)
    created = _finalize(api, "pi_1").json()["orders"]

    r = api.get(URL, params={"payment_reference": "pi_1"})

    assert r.status_code == 200
    assert r.json() == {"orders": created}
    assert created[0]["amount"] == 1200


def test_unknown_reference_returns_empty_list(api):
    r = api.get(URL, params={"payment_reference": "pi_none"})
    assert r.status_code == 200
    assert r.json() == {"orders": []}


def test_missing_reference_is_400(api):
    r = api.get(URL)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request data"
