import logging
from typing import Protocol

from parkwise.errors import PaymentDeclined

logger = logging.getLogger(__name__)


class PaymentAuthorizer(Protocol):
    def authorize(self, amount: float) -> bool:
        ...


class ApproveAllAuthorizer:
    """Stand-in for the payment gateway: approves any non-negative amount."""

    def authorize(self, amount: float) -> bool:
        return amount >= 0


def get_payment_authorizer() -> PaymentAuthorizer:
    return ApproveAllAuthorizer()


def ensure_authorized(authorizer: PaymentAuthorizer, amount: float) -> None:
    if not authorizer.authorize(amount):
        logger.info("Payment of %.2f declined", amount)
        raise PaymentDeclined()
