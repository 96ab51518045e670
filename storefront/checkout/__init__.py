"""
Module 'checkout' (feature-first): point d'entrée public.
Réunit répartition des coûts, vérification du paiement, lecture d'inventaire,
matérialisation des commandes et le service de finalisation.
"""

from .allocation import allocate
from .errors import (
    CheckoutError,
    Unauthorized,
    UserNotFound,
    InvalidRequest,
    PaymentNotFound,
    PaymentMismatch,
    PaymentNotCompleted,
    InventoryConflict,
    GatewayUnavailable,
    MalformedMetadata,
    AlreadyFinalized,
    PaymentNotConfigured,
)
from .metadata import parse_cart, make_metadata
from .verifier import PaymentIntentVerifier
from .inventory import InventorySnapshotReader
from .materializer import OrderMaterializer, group_by_seller
from .service import CheckoutService, FinalizationResult, get_checkout_service

__all__ = [
    # allocation
    "allocate",
    # errors
    "CheckoutError",
    "Unauthorized",
    "UserNotFound",
    "InvalidRequest",
    "PaymentNotFound",
    "PaymentMismatch",
    "PaymentNotCompleted",
    "InventoryConflict",
    "GatewayUnavailable",
    "MalformedMetadata",
    "AlreadyFinalized",
    "PaymentNotConfigured",
    # metadata
    "parse_cart",
    "make_metadata",
    # composants
    "PaymentIntentVerifier",
    "InventorySnapshotReader",
    "OrderMaterializer",
    "group_by_seller",
    # service
    "CheckoutService",
    "FinalizationResult",
    "get_checkout_service",
]
