import pytest
import stripe

from storefront.checkout import stripe_client
from storefront.checkout.errors import GatewayUnavailable, PaymentNotConfigured
from storefront.checkout.stripe_client import StripePaymentGateway, to_authorization


@pytest.fixture(autouse=True)
def _no_stripe_setup(monkeypatch):
    monkeypatch.setattr(stripe_client, "require_stripe", lambda: stripe)


def test_to_authorization_from_dict():
    auth = to_authorization({
        "id": "pi_1",
        "status": "succeeded",
        "amount": 1500,
        "amount_received": 1500,
        "metadata": {"buyerId": "buyer-1", "items": "[]"},
    })
    assert auth.id == "pi_1"
    assert auth.status == "succeeded"
    assert auth.amount == 1500
    assert auth.buyer_id == "buyer-1"


def test_to_authorization_uses_amount_when_nothing_received():
    auth = to_authorization({"id": "pi_2", "status": "processing", "amount": 900, "amount_received": 0})
    assert auth.amount == 900
    assert auth.metadata == {}


def test_retrieve_returns_authorization(monkeypatch):
    monkeypatch.setattr(
        stripe.PaymentIntent, "retrieve",
        lambda reference: {"id": reference, "status": "succeeded", "amount": 100, "metadata": {"buyerId": "b"}},
    )
    auth = StripePaymentGateway().retrieve("pi_ok")
    assert auth.id == "pi_ok"
    assert auth.buyer_id == "b"


def test_retrieve_missing_intent_returns_none(monkeypatch):
    def _raise(reference):
        raise stripe.InvalidRequestError("No such payment_intent", "id", code="resource_missing")
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", _raise)
    assert StripePaymentGateway().retrieve("pi_missing") is None


def test_retrieve_connection_error_is_retryable(monkeypatch):
    def _raise(reference):
        raise stripe.APIConnectionError("timeout")
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", _raise)
    with pytest.raises(GatewayUnavailable) as exc:
        StripePaymentGateway().retrieve("pi_1")
    assert exc.value.retryable is True


def test_retrieve_auth_error_is_not_retryable(monkeypatch):
    def _raise(reference):
        raise stripe.AuthenticationError("bad key")
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", _raise)
    with pytest.raises(GatewayUnavailable) as exc:
        StripePaymentGateway().retrieve("pi_1")
    assert exc.value.retryable is False


def test_create_intent_passes_amount_currency_and_metadata(monkeypatch):
    captured = {}

    def _create(**kwargs):
        captured.update(kwargs)
        return {"id": "pi_new", "client_secret": "pi_new_secret"}

    monkeypatch.setattr(stripe.PaymentIntent, "create", _create)
    intent = StripePaymentGateway(currency="eur", secret_key="sk_test_123").create_intent(amount=2500, metadata={"buyerId": "b"})

    assert intent["client_secret"] == "pi_new_secret"
    assert captured["amount"] == 2500
    assert captured["currency"] == "eur"
    assert captured["metadata"] == {"buyerId": "b"}


def test_create_intent_without_secret_key_is_not_configured(monkeypatch):
    calls = []
    monkeypatch.setattr(stripe.PaymentIntent, "create", lambda **kwargs: calls.append(kwargs))

    with pytest.raises(PaymentNotConfigured) as exc:
        StripePaymentGateway(secret_key="").create_intent(amount=2500, metadata={"buyerId": "b"})

    assert exc.value.status_code == 503
    assert exc.value.to_payload() == {"error": "Payment processing is not configured"}
    assert calls == []
