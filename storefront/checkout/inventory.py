"""
Lecture groupée de l'état courant des produits référencés par un paiement.
Les produits introuvables sont simplement absents du résultat: l'appelant décide.
"""
import logging
from typing import Callable, Dict, Iterable, List

from . import repository
from .models import ProductSnapshot

logger = logging.getLogger(__name__)

# module storefront.checkout.inventory
class InventorySnapshotReader:
    def __init__(self, fetch_products: Callable[[List[str]], List[dict]] = repository.fetch_products_by_ids):
        self._fetch_products = fetch_products

    def read(self, product_ids: Iterable[str]) -> Dict[str, ProductSnapshot]:
        """
        Retourne {product_id: ProductSnapshot} en une seule lecture.
        - Ensemble vide: {} sans toucher la base.
        """
        ids = list(dict.fromkeys(str(pid) for pid in product_ids))
        if not ids:
            return {}
        snapshot: Dict[str, ProductSnapshot] = {}
        for row in self._fetch_products(ids):
            product_id = str(row.get("id"))
            snapshot[product_id] = ProductSnapshot(
                id=product_id,
                seller_id=str(row.get("seller_id")),
                price=int(row.get("price_cents") or 0),
                status=str(row.get("status") or ""),
            )
        missing = [pid for pid in ids if pid not in snapshot]
        if missing:
            logger.info("checkout.inventory missing products=%s", missing)
        return snapshot
