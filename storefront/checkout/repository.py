"""
Accès aux données pour la feature 'checkout' (PostgreSQL).
- PostgresUnitOfWork: opérations d'écriture d'une finalisation, toutes dans une même transaction.
- unit_of_work(): la couche datastore possède commit/rollback; le matérialiseur n'en sait rien.
- Lectures hors transaction: produits (snapshot d'inventaire), trace de finalisation
  et commandes d'un paiement.
"""
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

import psycopg
from psycopg import errors as pg_errors

from storefront.infra import database
from .errors import AlreadyFinalized
from .models import AddressIn, AddressType, ContactInfoIn, OrderStatus, OrderSummary, ProductStatus

logger = logging.getLogger(__name__)

# module storefront.checkout.repository
class PostgresUnitOfWork:
    """Opérations transactionnelles exposées au matérialiseur, sur une connexion psycopg ouverte."""

    def __init__(self, conn: psycopg.Connection):
        self.conn = conn

    def insert_address(self, *, user_id: str, address: AddressIn, contact: ContactInfoIn, address_type: AddressType) -> str:
        row = self.conn.execute(
            "INSERT INTO addresses(user_id, first_name, last_name, street, city, state, postal_code, country, type) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
            (
                user_id, contact.first_name, contact.last_name,
                address.street, address.city, address.state, address.postal_code, address.country,
                address_type.value,
            ),
        ).fetchone()
        return str(row["id"])

    def record_finalization(self, *, reference: str, buyer_id: str, shipping_address_id: str) -> None:
        """UNIQUE(external_reference): une référence déjà finalisée lève AlreadyFinalized."""
        try:
            self.conn.execute(
                "INSERT INTO finalizations(external_reference, buyer_id, shipping_address_id) VALUES (%s, %s, %s)",
                (reference, buyer_id, shipping_address_id),
            )
        except pg_errors.UniqueViolation as e:
            raise AlreadyFinalized(f"Paiement {reference} déjà finalisé", reference=reference) from e

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
        row = self.conn.execute(
            "INSERT INTO orders(buyer_id, seller_id, product_id, amount_cents, shipping_method, "
            "shipping_address_id, billing_address_id, status) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
            (
                buyer_id, seller_id, product_id, amount, shipping_method,
                shipping_address_id, billing_address_id, OrderStatus.PENDING.value,
            ),
        ).fetchone()
        return str(row["id"])

    def advance_order_status(self, order_id: str, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        cur = self.conn.execute(
            "UPDATE orders SET status = %s WHERE id = %s AND status = %s",
            (to_status.value, order_id, from_status.value),
        )
        return cur.rowcount == 1

    def insert_payment(self, *, order_id: str, reference: str, product_id: str, amount: int, status: str) -> str:
        """
        Insère le paiement interne d'une commande.
        UNIQUE(external_reference, product_id): une référence déjà traitée lève AlreadyFinalized.
        """
        try:
            row = self.conn.execute(
                "INSERT INTO payments(order_id, external_reference, product_id, amount_cents, status) "
                "VALUES (%s, %s, %s, %s, %s) RETURNING id",
                (order_id, reference, product_id, amount, status),
            ).fetchone()
        except pg_errors.UniqueViolation as e:
            raise AlreadyFinalized(f"Paiement {reference} déjà finalisé (produit {product_id})", reference=reference) from e
        return str(row["id"])

    def mark_product_sold(self, product_id: str) -> bool:
        """UPDATE conditionnel: ne vend le produit que s'il est encore AVAILABLE."""
        cur = self.conn.execute(
            "UPDATE products SET status = %s, updated_at = NOW() WHERE id = %s AND status = %s",
            (ProductStatus.SOLD.value, product_id, ProductStatus.AVAILABLE.value),
        )
        return cur.rowcount == 1

    def update_user_contact(self, user_id: str, contact: ContactInfoIn) -> None:
        self.conn.execute(
            "UPDATE users SET first_name = %s, last_name = %s, email = %s, phone = COALESCE(%s, phone) "
            "WHERE id = %s",
            (contact.first_name, contact.last_name, str(contact.email), contact.phone, user_id),
        )

@contextmanager
def unit_of_work() -> Iterator[PostgresUnitOfWork]:
    """Une transaction par finalisation: commit si le bloc réussit, rollback complet sinon."""
    with database.get_conn() as conn:
        yield PostgresUnitOfWork(conn)

def fetch_products_by_ids(ids: Iterable[str]) -> List[dict]:
    """Lecture groupée des produits (id, seller_id, price_cents, status)."""
    id_list = [str(i) for i in ids]
    if not id_list:
        return []
    with database.get_conn() as conn:
        return conn.execute(
            "SELECT id, seller_id, price_cents, status FROM products WHERE id::text = ANY(%s)",
            (id_list,),
        ).fetchall()

def is_finalized(reference: str, buyer_id: str) -> bool:
    """Vrai si la référence a déjà été finalisée pour cet acheteur (même sans commande)."""
    with database.get_conn() as conn:
        row = conn.execute(
            "SELECT 1 FROM finalizations WHERE external_reference = %s AND buyer_id = %s",
            (reference, buyer_id),
        ).fetchone()
    return row is not None

def fetch_orders_by_reference(reference: str, buyer_id: str) -> List[OrderSummary]:
    """Commandes déjà créées pour une référence de paiement et un acheteur (chemin idempotent)."""
    with database.get_conn() as conn:
        rows = conn.execute(
            "SELECT o.id, o.seller_id, o.product_id, o.amount_cents "
            "FROM payments p JOIN orders o ON o.id = p.order_id "
            "WHERE p.external_reference = %s AND o.buyer_id = %s "
            "ORDER BY o.created_at, o.id",
            (reference, buyer_id),
        ).fetchall()
    return [
        OrderSummary(
            id=str(r["id"]),
            seller_id=str(r["seller_id"]),
            product_id=str(r["product_id"]),
            amount=int(r["amount_cents"]),
        )
        for r in rows
    ]
