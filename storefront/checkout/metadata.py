"""
Désérialisation des métadonnées Stripe d'un PaymentIntent (buyerId, items, costs).
Les métadonnées sont des déclarations à revalider, jamais une source de vérité:
- items: JSON [{"productId": "...", "unitPrice": <centimes>, "quantity": <int>}]
- costs: JSON {"shipping": <centimes>, "tax": <centimes>}
Toute incohérence lève MalformedMetadata (famille Internal).
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from .errors import MalformedMetadata
from .models import CartLine, SharedCosts

# module storefront.checkout.metadata
def _as_cents(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise MalformedMetadata(f"{name} n'est pas un montant entier: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise MalformedMetadata(f"{name} n'est pas un montant entier: {value!r}")

def _load_json(metadata: Dict[str, Any], key: str) -> Any:
    raw = metadata.get(key)
    if raw is None:
        raise MalformedMetadata(f"metadata.{key} manquant")
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError as e:
        raise MalformedMetadata(f"metadata.{key} n'est pas un JSON valide") from e

def parse_items(metadata: Dict[str, Any]) -> List[CartLine]:
    """
    Extrait les lignes du panier, agrégées par productId (ordre de première apparition conservé).
    - Même produit avec deux prix unitaires différents: MalformedMetadata.
    """
    raw_items = _load_json(metadata, "items")
    if not isinstance(raw_items, list):
        raise MalformedMetadata("metadata.items doit être une liste")

    order: List[str] = []
    prices: Dict[str, int] = {}
    quantities: Dict[str, int] = {}
    for entry in raw_items:
        if not isinstance(entry, dict):
            raise MalformedMetadata("metadata.items contient une ligne invalide")
        product_id = str(entry.get("productId") or "").strip()
        if not product_id:
            raise MalformedMetadata("metadata.items: productId manquant")
        unit_price = _as_cents(entry.get("unitPrice"), "unitPrice")
        quantity = _as_cents(entry.get("quantity", 1), "quantity")
        if unit_price < 0 or quantity <= 0:
            raise MalformedMetadata(f"metadata.items: ligne invalide pour {product_id}")
        if product_id in prices:
            if prices[product_id] != unit_price:
                raise MalformedMetadata(f"metadata.items: prix incohérents pour {product_id}")
            quantities[product_id] += quantity
            continue
        order.append(product_id)
        prices[product_id] = unit_price
        quantities[product_id] = quantity

    return [CartLine(product_id=pid, unit_price=prices[pid], quantity=quantities[pid]) for pid in order]

def parse_costs(metadata: Dict[str, Any]) -> SharedCosts:
    raw_costs = _load_json(metadata, "costs")
    if not isinstance(raw_costs, dict):
        raise MalformedMetadata("metadata.costs doit être un objet")
    shipping = _as_cents(raw_costs.get("shipping", 0), "shipping")
    tax = _as_cents(raw_costs.get("tax", 0), "tax")
    if shipping < 0 or tax < 0:
        raise MalformedMetadata("metadata.costs: montants négatifs")
    return SharedCosts(shipping=shipping, tax=tax)

def parse_cart(metadata: Dict[str, Any], charged_amount: Optional[int] = None) -> Tuple[List[CartLine], SharedCosts]:
    """
    Extrait (items, costs) et vérifie, si le gateway fournit le montant encaissé,
    que la somme déclarée correspond exactement à ce montant.
    """
    items = parse_items(metadata or {})
    costs = parse_costs(metadata or {})
    if charged_amount is not None:
        declared = sum(i.line_total for i in items) + costs.shipping + costs.tax
        if declared != charged_amount:
            raise MalformedMetadata(f"Total déclaré {declared} != montant encaissé {charged_amount}")
    return items, costs

def make_metadata(buyer_id: str, items: List[CartLine], costs: SharedCosts) -> Dict[str, str]:
    """
    Sérialise les métadonnées Stripe associées au PaymentIntent.
    Stripe limite chaque valeur à 500 caractères: un panier trop long lève ValueError
    plutôt que d'être tronqué (un JSON tronqué rendrait la finalisation impossible).
    """
    items_json = json.dumps(
        [{"productId": i.product_id, "unitPrice": i.unit_price, "quantity": i.quantity} for i in items],
        separators=(",", ":"),
    )
    if len(items_json) > 500:
        raise ValueError("Panier trop volumineux pour les métadonnées Stripe")
    return {
        "buyerId": buyer_id,
        "orderType": "cart_checkout",
        "itemCount": str(len(items)),
        "items": items_json,
        "costs": json.dumps({"shipping": costs.shipping, "tax": costs.tax}, separators=(",", ":")),
    }
