"""
Répartition pure des coûts partagés (livraison, taxes) entre les lignes du panier.
Pas de Stripe, pas de DB: uniquement de l'arithmétique entière en centimes.
"""
from typing import List, Sequence

from .models import Allocation, CartLine, SharedCosts

# module storefront.checkout.allocation
def _share(cost: int, line_total: int, cart_total: int) -> int:
    """Arrondi half-up de cost * line_total / cart_total, sans passer par un float."""
    if cart_total <= 0:
        return 0
    numerator = cost * line_total
    return (2 * numerator + cart_total) // (2 * cart_total)

def allocate(items: Sequence[CartLine], shared_costs: SharedCosts) -> List[Allocation]:
    """
    Répartit shipping et tax proportionnellement au total de chaque ligne.
    - Chaque ligne sauf la dernière: line_total + part(shipping) + part(tax), arrondis séparément.
    - La dernière ligne reçoit le reste: somme exacte = cart_total + shipping + tax.
    - Si les arrondis vers le haut laissent à la dernière ligne moins que son propre
      line_total, l'écart est repris centime par centime sur les lignes précédentes
      (plus grosse part de coûts partagés d'abord). Aucune ligne ne passe sous son line_total.
    - Panier vide: [] (entrée valide).
    - Soulève ValueError sur montant négatif ou quantité <= 0.
    """
    if not items:
        return []
    if shared_costs.shipping < 0 or shared_costs.tax < 0:
        raise ValueError("Coûts partagés négatifs")
    for item in items:
        if item.quantity <= 0 or item.unit_price < 0:
            raise ValueError(f"Ligne invalide pour le produit {item.product_id}")

    cart_total = sum(item.line_total for item in items)
    grand_total = cart_total + shared_costs.shipping + shared_costs.tax

    amounts: List[int] = [
        item.line_total
        + _share(shared_costs.shipping, item.line_total, cart_total)
        + _share(shared_costs.tax, item.line_total, cart_total)
        for item in items[:-1]
    ]

    last = items[-1]
    shortfall = last.line_total - (grand_total - sum(amounts))
    while shortfall > 0:
        # part de coûts partagés encore reprenable sur chaque ligne
        index = max(range(len(amounts)), key=lambda i: amounts[i] - items[i].line_total)
        amounts[index] -= 1
        shortfall -= 1

    allocations = [
        Allocation(product_id=item.product_id, allocated_amount=amount)
        for item, amount in zip(items, amounts)
    ]
    allocations.append(Allocation(product_id=last.product_id, allocated_amount=grand_total - sum(amounts)))
    return allocations
