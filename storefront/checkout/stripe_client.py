"""
Adaptateur Stripe: collaborateur "payment gateway" injecté dans le vérificateur.
- PaymentGateway: interface minimale (retrieve / create_intent), facile à simuler en tests.
- StripePaymentGateway: implémentation sur le SDK stripe (PaymentIntent).
Les erreurs SDK sont traduites en GatewayUnavailable (retryable ou non);
sans clé secrète, la création de paiement lève PaymentNotConfigured (503).
"""
import logging
from typing import Any, Dict, Optional, Protocol

import stripe

from storefront.config import STRIPE_SECRET_KEY, STRIPE_TIMEOUT_SECONDS, CHECKOUT_CURRENCY
from .errors import GatewayUnavailable, PaymentNotConfigured
from .models import PaymentAuthorization

logger = logging.getLogger(__name__)

# module storefront.checkout.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - Borne la durée des appels réseau (STRIPE_TIMEOUT_SECONDS).
    """
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    if stripe.default_http_client is None:
        stripe.default_http_client = stripe.new_default_http_client(timeout=STRIPE_TIMEOUT_SECONDS)
    return stripe

def _as_dict(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)

def to_authorization(intent: Any) -> PaymentAuthorization:
    """Normalise un PaymentIntent (objet SDK ou dict) en PaymentAuthorization."""
    data = _as_dict(intent)
    metadata = data.get("metadata") or {}
    amount = data.get("amount_received") or data.get("amount")
    return PaymentAuthorization(
        id=str(data.get("id") or ""),
        status=str(data.get("status") or ""),
        metadata=_as_dict(metadata),
        amount=int(amount) if amount is not None else None,
    )


class PaymentGateway(Protocol):
    def retrieve(self, reference: str) -> Optional[PaymentAuthorization]:
        ...

    def create_intent(self, *, amount: int, metadata: Dict[str, str]) -> Dict[str, Any]:
        ...


class StripePaymentGateway:
    """PaymentGateway adossé à stripe.PaymentIntent."""

    def __init__(self, currency: str = CHECKOUT_CURRENCY, secret_key: str = STRIPE_SECRET_KEY):
        self.currency = currency
        self.secret_key = secret_key

    def retrieve(self, reference: str) -> Optional[PaymentAuthorization]:
        """
        Récupère un PaymentIntent par son identifiant.
        Retour: None si Stripe répond resource_missing.
        Erreurs réseau / 5xx / rate limit: GatewayUnavailable(retryable=True).
        """
        require_stripe()
        try:
            intent = stripe.PaymentIntent.retrieve(reference)
        except stripe.InvalidRequestError as e:
            if getattr(e, "code", None) == "resource_missing":
                return None
            raise GatewayUnavailable(f"Stripe a refusé la requête: {e}") from e
        except (stripe.APIConnectionError, stripe.RateLimitError) as e:
            raise GatewayUnavailable(f"Stripe injoignable: {e}", retryable=True) from e
        except stripe.APIError as e:
            raise GatewayUnavailable(f"Erreur Stripe: {e}", retryable=True) from e
        except stripe.StripeError as e:
            raise GatewayUnavailable(f"Erreur Stripe: {e}") from e
        return to_authorization(intent)

    def create_intent(self, *, amount: int, metadata: Dict[str, str]) -> Dict[str, Any]:
        """
        Crée un PaymentIntent (montant en centimes) portant le panier dans ses métadonnées.
        Retour: dict {"id", "client_secret", ...}
        """
        if not self.secret_key:
            raise PaymentNotConfigured("STRIPE_SECRET_KEY absent: création de PaymentIntent impossible")
        require_stripe()
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=self.currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            raise GatewayUnavailable(f"Création du PaymentIntent impossible: {e}") from e
        return _as_dict(intent)
