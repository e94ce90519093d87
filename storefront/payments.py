"""Braintree checkout: client tokens and transaction submission."""
import logging
from decimal import Decimal
from typing import Any, Protocol

import braintree
from braintree.exceptions.braintree_error import BraintreeError
from braintree.exceptions.configuration_error import ConfigurationError

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

ENVIRONMENTS = {
    "sandbox": braintree.Environment.Sandbox,
    "production": braintree.Environment.Production,
}


class PaymentError(Exception):
    """The gateway could not be reached or rejected the request itself."""


class PaymentGateway(Protocol):
    def client_token(self) -> str:
        ...

    def sale(self, amount: Decimal, nonce: str) -> dict[str, Any]:
        """Submit a sale; returns the payment blob stored on the order."""
        ...


def payment_result(success: bool, message: str, amount: Decimal, nonce: str, errors: Any = None, transaction_id: str | None = None) -> dict[str, Any]:
    blob = {
        "success": success,
        "message": message,
        "params": {
            "transaction": {
                "amount": str(amount),
                "paymentMethodNonce": nonce,
                "options": {"submitForSettlement": True},
                "type": "sale",
            }
        },
        "errors": errors,
    }
    if transaction_id:
        blob["transaction"] = {"id": transaction_id}
    return blob


class BraintreePaymentGateway:
    """Braintree SDK adapter; the SDK gateway is built on first use.

    Missing or invalid credentials surface as PaymentError from the call
    that needed them, so routes answer with their own error envelope.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._gateway: braintree.BraintreeGateway | None = None

    @property
    def gateway(self) -> braintree.BraintreeGateway:
        if self._gateway is None:
            settings = self.settings
            environment = ENVIRONMENTS.get(settings.braintree_environment.lower(), braintree.Environment.Sandbox)
            try:
                config = braintree.Configuration(
                    environment,
                    merchant_id=settings.braintree_merchant_id,
                    public_key=settings.braintree_public_key,
                    private_key=settings.braintree_private_key,
                )
                self._gateway = braintree.BraintreeGateway(config)
            except (ConfigurationError, BraintreeError) as e:
                raise PaymentError(f"braintree is not configured: {e}") from e
        return self._gateway

    def client_token(self) -> str:
        try:
            return self.gateway.client_token.generate()
        except BraintreeError as e:
            raise PaymentError(f"client token request failed: {e!r}") from e

    def sale(self, amount: Decimal, nonce: str) -> dict[str, Any]:
        try:
            result = self.gateway.transaction.sale({
                "amount": str(amount),
                "payment_method_nonce": nonce,
                "options": {"submit_for_settlement": True},
            })
        except BraintreeError as e:
            raise PaymentError(f"sale request failed: {e!r}") from e
        if result.is_success:
            logger.info("braintree sale %s settled for %s", result.transaction.id, amount)
            return payment_result(True, "Payment Success", amount, nonce, transaction_id=result.transaction.id)
        errors = [
            {"attribute": e.attribute, "code": e.code, "message": e.message}
            for e in result.errors.deep_errors
        ]
        logger.warning("braintree sale declined: %s", result.message)
        return payment_result(False, result.message, amount, nonce, errors={"validationErrors": errors})


def build_gateway() -> BraintreePaymentGateway:
    return BraintreePaymentGateway(get_settings())
