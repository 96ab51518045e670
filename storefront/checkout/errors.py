"""
Taxonomie des erreurs de finalisation de checkout.

Chaque rejet appartient à exactement une famille:
- Authentication: Unauthorized, UserNotFound
- Validation: InvalidRequest (corps de requête malformé)
- PaymentState: PaymentNotFound, PaymentMismatch, PaymentNotCompleted
- InventoryConflict: produit déjà vendu/retiré (update conditionnel à 0 ligne)
- GatewayFailure: GatewayUnavailable, PaymentNotConfigured (503: aucune clé Stripe)
- Internal: MalformedMetadata, toute erreur datastore inattendue

Le message public (`public_message`) est volontairement générique pour les familles
PaymentState (pas d'oracle) et InventoryConflict/GatewayFailure/Internal (opaque 500).
La cause précise reste dans `str(exc)` pour les logs serveur.
"""
from typing import Any, Dict, List, Optional

# module storefront.checkout.errors
INVALID_PAYMENT_MESSAGE = "Invalid payment intent"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class CheckoutError(Exception):
    status_code: int = 500
    category: str = "internal"
    public_message: str = INTERNAL_ERROR_MESSAGE

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.public_message}


class Unauthorized(CheckoutError):
    status_code = 401
    category = "authentication"
    public_message = "Unauthorized"


class UserNotFound(CheckoutError):
    status_code = 404
    category = "authentication"
    public_message = "User not found"


class InvalidRequest(CheckoutError):
    status_code = 400
    category = "validation"
    public_message = "Invalid request data"

    def __init__(self, message: str = "", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message or self.public_message)
        self.details = details or []

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.public_message, "details": self.details}


class PaymentNotFound(CheckoutError):
    status_code = 400
    category = "payment_state"
    public_message = INVALID_PAYMENT_MESSAGE


class PaymentMismatch(CheckoutError):
    status_code = 400
    category = "payment_state"
    public_message = INVALID_PAYMENT_MESSAGE


class PaymentNotCompleted(CheckoutError):
    status_code = 400
    category = "payment_state"
    public_message = "Payment not completed"

    def __init__(self, message: str = "", status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class InventoryConflict(CheckoutError):
    category = "inventory_conflict"

    def __init__(self, message: str = "", product_id: Optional[str] = None):
        super().__init__(message)
        self.product_id = product_id


class GatewayUnavailable(CheckoutError):
    category = "gateway_failure"

    def __init__(self, message: str = "", retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class PaymentNotConfigured(CheckoutError):
    """Aucune clé Stripe configurée: création de paiement impossible."""
    status_code = 503
    category = "gateway_failure"
    public_message = "Payment processing is not configured"


class MalformedMetadata(CheckoutError):
    category = "internal"


class AlreadyFinalized(CheckoutError):
    """
    Levée quand une contrainte d'unicité (finalisations, paiements) détecte une référence déjà traitée.
    Jamais renvoyée telle quelle au client: le service la traduit en succès idempotent.
    """
    category = "internal"

    def __init__(self, message: str = "", reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference
