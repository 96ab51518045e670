"""
Écriture transactionnelle d'une finalisation de checkout.

Le matérialiseur ne possède que la séquence des opérations; la transaction
(commit/rollback) appartient à la couche datastore qui fournit le UnitOfWork.
Ordre des écritures:
  1) adresse(s)  2) trace de finalisation (une par référence)
  3) par vendeur, par produit: commande, paiement, UPDATE conditionnel du produit
  4) contact acheteur
L'UPDATE conditionnel du produit est la dernière écriture de chaque ligne: s'il ne touche
aucune ligne (vente concurrente), InventoryConflict annule toute la transaction.
La trace de finalisation est la clé d'idempotence, y compris pour un panier vide:
une référence déjà finalisée lève AlreadyFinalized et annule la transaction.
"""
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import InventoryConflict
from .models import (
    AddressIn,
    AddressType,
    Allocation,
    ContactInfoIn,
    FinalizeCheckoutRequest,
    OrderStatus,
    OrderSummary,
    PaymentAuthorization,
    ProductSnapshot,
)

logger = logging.getLogger(__name__)


# module storefront.checkout.materializer
class UnitOfWork(Protocol):
    def insert_address(self, *, user_id: str, address: AddressIn, contact: ContactInfoIn, address_type: AddressType) -> str:
        ...

    def record_finalization(self, *, reference: str, buyer_id: str, shipping_address_id: str) -> None:
        ...

    def insert_order(
        self,
        *,
        buyer_id: str,
        seller_id: str,
        product_id: str,
        amount: int,
        shipping_method: str,
        shipping_address_id: str,
        billing_address_id: Optional[str],
    ) -> str:
        ...

    def advance_order_status(self, order_id: str, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        ...

    def insert_payment(self, *, order_id: str, reference: str, product_id: str, amount: int, status: str) -> str:
        ...

    def mark_product_sold(self, product_id: str) -> bool:
        ...

    def update_user_contact(self, user_id: str, contact: ContactInfoIn) -> None:
        ...


def group_by_seller(
    allocations: Sequence[Allocation],
    snapshot: Dict[str, ProductSnapshot],
    reference: str = "",
) -> Dict[str, List[Allocation]]:
    """
    Regroupe les allocations par vendeur (vendeur lu dans le snapshot, jamais côté client).
    Les produits absents du snapshot ou qui ne sont plus AVAILABLE sont écartés.
    """
    groups: Dict[str, List[Allocation]] = {}
    for allocation in allocations:
        product = snapshot.get(allocation.product_id)
        if product is None or not product.is_available:
            logger.warning(
                "checkout.materializer dropped product=%s reference=%s status=%s amount=%s",
                allocation.product_id, reference,
                product.status if product else "MISSING", allocation.allocated_amount,
            )
            continue
        groups.setdefault(product.seller_id, []).append(allocation)
    return groups


class OrderMaterializer:
    def materialize(
        self,
        uow: UnitOfWork,
        *,
        buyer_id: str,
        authorization: PaymentAuthorization,
        snapshot: Dict[str, ProductSnapshot],
        allocations: Sequence[Allocation],
        request: FinalizeCheckoutRequest,
    ) -> List[OrderSummary]:
        """
        Crée adresses, commandes et paiements, puis passe chaque produit à SOLD.
        Retour: résumés des commandes créées (liste vide pour un panier vide).
        Erreurs: InventoryConflict si un produit n'est plus AVAILABLE au moment de l'UPDATE,
        AlreadyFinalized si la référence a déjà été finalisée.
        """
        contact = request.contact_info
        shipping_address_id = uow.insert_address(
            user_id=buyer_id, address=request.shipping_address, contact=contact, address_type=AddressType.SHIPPING,
        )
        billing_address_id = None
        if request.billing_address is not None:
            billing_address_id = uow.insert_address(
                user_id=buyer_id, address=request.billing_address, contact=contact, address_type=AddressType.BILLING,
            )
        uow.record_finalization(
            reference=authorization.id, buyer_id=buyer_id, shipping_address_id=shipping_address_id,
        )

        created: List[OrderSummary] = []
        for seller_id, group in group_by_seller(allocations, snapshot, authorization.id).items():
            for allocation in group:
                order_id = uow.insert_order(
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    product_id=allocation.product_id,
                    amount=allocation.allocated_amount,
                    shipping_method=request.shipping_method,
                    shipping_address_id=shipping_address_id,
                    billing_address_id=billing_address_id,
                )
                # Le paiement est déjà confirmé par le gateway
                uow.advance_order_status(order_id, OrderStatus.PENDING, OrderStatus.PAID)
                uow.insert_payment(
                    order_id=order_id,
                    reference=authorization.id,
                    product_id=allocation.product_id,
                    amount=allocation.allocated_amount,
                    status=authorization.status,
                )
                if not uow.mark_product_sold(allocation.product_id):
                    raise InventoryConflict(
                        f"Produit {allocation.product_id} n'est plus AVAILABLE (reference={authorization.id})",
                        product_id=allocation.product_id,
                    )
                created.append(OrderSummary(
                    id=order_id,
                    seller_id=seller_id,
                    product_id=allocation.product_id,
                    amount=allocation.allocated_amount,
                ))

        uow.update_user_contact(buyer_id, contact)
        return created
