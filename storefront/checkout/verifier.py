"""
Vérification d'un paiement déclaré par le client auprès du gateway.
Aucun effet de bord: lecture seule du PaymentIntent, avec quelques tentatives
sur les pannes réseau transitoires.
"""
import logging
import time
from typing import Callable

from storefront.config import GATEWAY_MAX_ATTEMPTS, GATEWAY_RETRY_BACKOFF_SECONDS
from .errors import GatewayUnavailable, PaymentMismatch, PaymentNotCompleted, PaymentNotFound
from .models import PaymentAuthorization
from .stripe_client import PaymentGateway

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"

# module storefront.checkout.verifier
class PaymentIntentVerifier:
    def __init__(
        self,
        gateway: PaymentGateway,
        max_attempts: int = GATEWAY_MAX_ATTEMPTS,
        backoff_seconds: float = GATEWAY_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.gateway = gateway
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def _retrieve(self, reference: str):
        attempt = 1
        while True:
            try:
                return self.gateway.retrieve(reference)
            except GatewayUnavailable as e:
                if not e.retryable or attempt >= self.max_attempts:
                    raise
                logger.warning(
                    "checkout.verifier gateway transient failure reference=%s attempt=%s/%s: %s",
                    reference, attempt, self.max_attempts, e,
                )
                self._sleep(self.backoff_seconds * attempt)
                attempt += 1

    def verify(self, reference: str, user_id: str) -> PaymentAuthorization:
        """
        Retourne l'autorisation si elle existe, appartient à user_id et a le statut 'succeeded'.
        - PaymentNotFound: référence inconnue du gateway
        - PaymentMismatch: metadata.buyerId différent de l'utilisateur courant
        - PaymentNotCompleted: tout autre statut (processing, requires_action, ...)
        """
        authorization = self._retrieve(reference)
        if authorization is None:
            raise PaymentNotFound(f"PaymentIntent {reference} introuvable")
        if authorization.buyer_id != user_id:
            raise PaymentMismatch(
                f"PaymentIntent {reference} appartient à {authorization.buyer_id!r}, pas à {user_id!r}"
            )
        if authorization.status != SUCCEEDED:
            raise PaymentNotCompleted(
                f"PaymentIntent {reference} non abouti (status={authorization.status})",
                status=authorization.status,
            )
        return authorization
