import logging
from typing import Any, Optional

import httpx

from recharge.domain.models import GatewayOrderResult, OrderRequest
from recharge.domain.order_id import OrderIdGenerator
from recharge.domain.protocols import GatewayClient, GatewayTransportError, OrderIdSource

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/payment/callback"
ALLOWED_PAYMENT_URL_SCHEMES = {"http", "https"}

# Custom exceptions
class OrchestratorError(Exception):
    """Base class for failures of the create-order and check-status flows."""

    default_message = "Order processing failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class GatewayUnreachable(OrchestratorError):
    """Raised when the payment gateway could not be reached or answered with a server error."""
    default_message = "Payment gateway is currently unavailable"

class GatewayRejected(OrchestratorError):
    """Raised when the gateway answered but did not create the order."""
    default_message = "Invalid response from payment gateway"

class InvalidGatewayResponse(OrchestratorError):
    """Raised when the gateway returned a payment URL that is not safe to hand to a browser."""
    default_message = "Invalid payment URL received from payment gateway"

class InvalidInput(OrchestratorError):
    """Raised when a status query is malformed."""
    default_message = "Order ID is required"


def sanitize_payment_url(raw_url: Any) -> str:
    """
    Parse a gateway-supplied payment URL and return its canonical form.

    Only absolute http/https URLs with a host are accepted; anything else
    (relative paths, javascript:, data: and friends) raises InvalidGatewayResponse.
    """
    if not isinstance(raw_url, str) or not raw_url.strip():
        raise InvalidGatewayResponse()
    try:
        url = httpx.URL(raw_url.strip())
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        raise InvalidGatewayResponse() from e
    if url.scheme not in ALLOWED_PAYMENT_URL_SCHEMES or not url.host:
        raise InvalidGatewayResponse()
    return str(url)


def _gateway_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


class OrderService:
    def __init__(
        self,
        gateway: GatewayClient,
        order_ids: Optional[OrderIdSource] = None,
        order_remark: str = "Recharge Payment",
    ):
        """Initialize the OrderService with a gateway client and an order id source."""
        self.gateway = gateway
        self.order_ids = order_ids or OrderIdGenerator()
        self.order_remark = order_remark

    def build_payload(self, order: OrderRequest, order_id: str, callback_base_url: str) -> dict[str, str]:
        """Build the gateway create-order form, using the gateway's field names."""
        return {
            "customer_mobile": order.customer_mobile,
            "amount": format(order.amount, "f"),
            "order_id": order_id,
            "redirect_url": f"{callback_base_url.rstrip('/')}{CALLBACK_PATH}",
            "remark1": order.remark1 or "",
            "remark2": self.order_remark,
        }

    async def create_order(self, order: OrderRequest, callback_base_url: str) -> GatewayOrderResult:
        """
        Create an order on the gateway and return the sanitized result.

        One gateway round trip, no retries.
        """
        order_id = self.order_ids.generate()
        payload = self.build_payload(order, order_id, callback_base_url)

        try:
            response = await self.gateway.create_order(payload)
        except GatewayTransportError as exc:
            logger.error(f"Gateway unreachable while creating order {order_id}: {exc}")
            raise GatewayUnreachable(exc.gateway_message) from exc

        body = response.body
        result = body.get("result") if isinstance(body, dict) else None
        raw_url = result.get("payment_url") if isinstance(result, dict) else None

        if not isinstance(body, dict) or body.get("status") is not True or not raw_url:
            message = _gateway_message(body)
            logger.warning(f"Gateway rejected order {order_id}: {message or body!r}")
            raise GatewayRejected(message)

        try:
            payment_url = sanitize_payment_url(raw_url)
        except InvalidGatewayResponse:
            logger.error(f"Gateway returned an unusable payment URL for order {order_id}: {raw_url!r}")
            raise

        gateway_order_id = result.get("orderId")
        if gateway_order_id is not None and str(gateway_order_id) != order_id:
            logger.warning(f"Gateway reported order id {gateway_order_id!r} for order {order_id}")

        logger.info(f"Order {order_id} created")
        return GatewayOrderResult(
            success=True,
            order_id=order_id,
            payment_url=payment_url,
            raw_message=_gateway_message(body),
        )

    async def check_status(self, order_id: Optional[str]) -> Any:
        """Relay the gateway's status body for an order without interpreting it."""
        if order_id is None or not order_id.strip():
            raise InvalidInput()

        try:
            response = await self.gateway.check_status(order_id)
        except GatewayTransportError as exc:
            logger.error(f"Gateway unreachable while checking order {order_id}: {exc}")
            raise GatewayUnreachable(exc.gateway_message) from exc

        return response.body

    async def close(self):
        """Close the underlying gateway client."""
        await self.gateway.close()
