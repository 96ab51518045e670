"""
Cas d'usage 'checkout': séquence vérification → inventaire → répartition → matérialisation.
Aucune logique métier ici: uniquement l'ordonnancement, l'idempotence et la traduction d'erreurs.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Dict, List, Optional

from . import repository
from .allocation import allocate
from .errors import AlreadyFinalized, CheckoutError, InvalidRequest, MalformedMetadata, UserNotFound
from .inventory import InventorySnapshotReader
from .materializer import OrderMaterializer, UnitOfWork
from .metadata import make_metadata, parse_cart
from .models import (
    CartLine,
    CreatePaymentIntentRequest,
    FinalizeCheckoutRequest,
    OrderSummary,
    SharedCosts,
)
from .stripe_client import PaymentGateway, StripePaymentGateway
from .verifier import PaymentIntentVerifier

logger = logging.getLogger(__name__)


@dataclass
class FinalizationResult:
    orders: List[OrderSummary]
    already_finalized: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {"success": True, "orders": [o.to_dict() for o in self.orders]}


# module storefront.checkout.service
class CheckoutService:
    def __init__(
        self,
        gateway: Optional[PaymentGateway] = None,
        inventory: Optional[InventorySnapshotReader] = None,
        unit_of_work: Callable[[], ContextManager[UnitOfWork]] = repository.unit_of_work,
        find_orders: Callable[[str, str], List[OrderSummary]] = repository.fetch_orders_by_reference,
        is_finalized: Callable[[str, str], bool] = repository.is_finalized,
        materializer: Optional[OrderMaterializer] = None,
        verifier: Optional[PaymentIntentVerifier] = None,
    ):
        self.gateway = gateway or StripePaymentGateway()
        self.verifier = verifier or PaymentIntentVerifier(self.gateway)
        self.inventory = inventory or InventorySnapshotReader()
        self.unit_of_work = unit_of_work
        self.find_orders = find_orders
        self.is_finalized = is_finalized
        self.materializer = materializer or OrderMaterializer()

    def finalize(self, buyer_id: str, request: FinalizeCheckoutRequest) -> FinalizationResult:
        """
        Transforme un paiement autorisé en commandes durables.
        Étapes:
          1) vérifie le PaymentIntent (existence, propriétaire, statut succeeded)
          2) parse le panier déclaré et lit l'inventaire courant
          3) chemin idempotent: référence déjà finalisée → succès avec les commandes enregistrées
             (éventuellement aucune: panier vide ou produits écartés)
          4) répartit les coûts partagés puis matérialise dans une seule transaction
        Une collision d'unicité (finalisation concurrente) est rejouée en lecture et renvoyée en succès.
        """
        reference = request.payment_reference
        authorization = self.verifier.verify(reference, buyer_id)
        items, costs = parse_cart(authorization.metadata, authorization.amount)
        snapshot = self.inventory.read(item.product_id for item in items)

        if self.is_finalized(reference, buyer_id):
            existing = self.find_orders(reference, buyer_id)
            logger.info("checkout.finalize replay reference=%s orders=%s", reference, len(existing))
            return FinalizationResult(orders=existing, already_finalized=True)

        try:
            allocations = allocate(items, costs)
        except ValueError as e:
            raise MalformedMetadata(str(e)) from e

        try:
            with self.unit_of_work() as uow:
                orders = self.materializer.materialize(
                    uow,
                    buyer_id=buyer_id,
                    authorization=authorization,
                    snapshot=snapshot,
                    allocations=allocations,
                    request=request,
                )
        except AlreadyFinalized:
            logger.info("checkout.finalize concurrent duplicate reference=%s", reference)
            return FinalizationResult(orders=self.find_orders(reference, buyer_id), already_finalized=True)

        logger.info(
            "checkout.finalize ok reference=%s buyer=%s items=%s orders=%s",
            reference, buyer_id, len(items), len(orders),
        )
        return FinalizationResult(orders=orders)

    def create_payment_intent(self, buyer_id: str, request: CreatePaymentIntentRequest) -> Dict[str, Any]:
        """
        Crée le PaymentIntent d'un panier, prix lus dans le catalogue (jamais côté client).
        - InvalidRequest si un produit est introuvable ou n'est plus AVAILABLE.
        Retour: {"id", "clientSecret", "amount"}
        """
        quantities: Dict[str, int] = {}
        for entry in request.items:
            quantities[entry.product_id] = quantities.get(entry.product_id, 0) + entry.quantity

        snapshot = self.inventory.read(quantities.keys())
        unavailable = [pid for pid in quantities if pid not in snapshot or not snapshot[pid].is_available]
        if unavailable:
            raise InvalidRequest(
                "One or more products are not available",
                details=[{"loc": ["items", pid], "msg": "product not available"} for pid in unavailable],
            )

        lines = [CartLine(product_id=pid, unit_price=snapshot[pid].price, quantity=qty) for pid, qty in quantities.items()]
        costs = SharedCosts(shipping=request.shipping, tax=request.tax)
        amount = sum(line.line_total for line in lines) + costs.shipping + costs.tax
        try:
            metadata = make_metadata(buyer_id, lines, costs)
        except ValueError as e:
            raise InvalidRequest(str(e), details=[{"loc": ["items"], "msg": str(e)}]) from e

        intent = self.gateway.create_intent(amount=amount, metadata=metadata)
        logger.info("checkout.payment_intent created id=%s buyer=%s amount=%s", intent.get("id"), buyer_id, amount)
        return {"id": intent.get("id"), "clientSecret": intent.get("client_secret"), "amount": amount}

    def list_orders(self, buyer_id: str, reference: str) -> List[OrderSummary]:
        return self.find_orders(reference, buyer_id)


def resolve_internal_user(auth_user: Dict[str, Any], lookup: Callable[[str], Optional[Dict[str, Any]]]) -> Dict[str, Any]:
    """Associe l'identité externe (fournisseur d'auth) à la ligne users interne, sinon UserNotFound."""
    row = lookup(str(auth_user.get("id") or ""))
    if not row:
        raise UserNotFound(f"Aucun utilisateur interne pour auth_id={auth_user.get('id')}")
    return row


def log_rejection(operation: str, exc: CheckoutError, **context: Any) -> None:
    """Conserve côté serveur la cause précise d'un rejet (la réponse client reste générique)."""
    details = " ".join(f"{k}={v}" for k, v in context.items())
    if exc.status_code >= 500:
        logger.error("checkout.%s rejected category=%s %s: %s", operation, exc.category, details, exc, exc_info=exc)
    else:
        logger.warning("checkout.%s rejected category=%s %s: %s", operation, exc.category, details, exc)


_service: Optional[CheckoutService] = None

def get_checkout_service() -> CheckoutService:
    """Dépendance FastAPI: service partagé adossé à Stripe et PostgreSQL (remplacé en tests)."""
    global _service
    if _service is None:
        _service = CheckoutService()
    return _service
