import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from storefront.utils.security import require_user
from storefront.utils.rate_limit import optional_rate_limit
from storefront.users import repository as users_repo
from .errors import CheckoutError
from .models import CreatePaymentIntentRequest, FinalizeCheckoutRequest
from .service import CheckoutService, get_checkout_service, log_rejection, resolve_internal_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

def require_buyer(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """Utilisateur interne (ligne users) de l'appelant authentifié, sinon 404 UserNotFound."""
    try:
        return resolve_internal_user(user, users_repo.get_user_by_auth_id)
    except CheckoutError as e:
        log_rejection("resolve_buyer", e, auth_id=user.get("id"))
        raise
    except Exception as e:
        logger.exception("Erreur require_buyer auth_id=%s", user.get("id"))
        raise CheckoutError(f"Erreur inattendue: {e}") from e

# module storefront.checkout.views
@router.post("/finalize", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def finalize_checkout(
    payload: FinalizeCheckoutRequest,
    buyer: Dict[str, Any] = Depends(require_buyer),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Finalise un paiement Stripe réussi en commandes par vendeur.
    - Sécurité: require_user + utilisateur interne + rate limit (10 req / 60s)
    - Idempotent: rejouer la même référence renvoie les commandes existantes
    - Erreurs: 400 (validation / paiement), 401, 404, 500 opaque
    """
    try:
        result = service.finalize(buyer["id"], payload)
    except CheckoutError as e:
        log_rejection("finalize", e, reference=payload.payment_reference, buyer=buyer["id"])
        raise
    except Exception as e:
        logger.exception("Erreur finalize_checkout reference=%s", payload.payment_reference)
        raise CheckoutError(f"Erreur inattendue: {e}") from e
    return JSONResponse(result.to_payload())

@router.post("/payment-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_payment_intent(
    payload: CreatePaymentIntentRequest,
    buyer: Dict[str, Any] = Depends(require_buyer),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Crée le PaymentIntent du panier (prix catalogue) et renvoie le client secret.
    - Entrée JSON: { "items": [ { "productId": "...", "quantity": 1 } ], "shipping": 0, "tax": 0 }
    """
    try:
        intent = service.create_payment_intent(buyer["id"], payload)
    except CheckoutError as e:
        log_rejection("payment_intent", e, buyer=buyer["id"])
        raise
    except Exception as e:
        logger.exception("Erreur create_payment_intent buyer=%s", buyer["id"])
        raise CheckoutError(f"Erreur inattendue: {e}") from e
    return JSONResponse({
        "success": True,
        "paymentIntent": {"id": intent["id"], "clientSecret": intent["clientSecret"]},
    })

@router.get("/orders")
def list_orders(
    payment_reference: str = Query(..., min_length=1, max_length=255),
    buyer: Dict[str, Any] = Depends(require_buyer),
    service: CheckoutService = Depends(get_checkout_service),
):
    try:
        orders = service.list_orders(buyer["id"], payment_reference)
    except Exception as e:
        logger.exception("Erreur list_orders reference=%s", payment_reference)
        raise CheckoutError(f"Erreur inattendue: {e}") from e
    return JSONResponse({"orders": [o.to_dict() for o in orders]})
