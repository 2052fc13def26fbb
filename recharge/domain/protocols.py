from typing import Optional, Protocol

from recharge.domain.models import GatewayResponse


class GatewayTransportError(Exception):
    """Raised by gateway clients when no usable response could be obtained."""

    def __init__(self, message: str, gateway_message: Optional[str] = None):
        super().__init__(message)
        self.gateway_message = gateway_message


class GatewayClient(Protocol):
    async def create_order(self, payload: dict[str, str]) -> GatewayResponse:
        """Submit a create-order form to the payment gateway."""
        ...

    async def check_status(self, order_id: str) -> GatewayResponse:
        """Ask the payment gateway for the status of an order."""
        ...

    async def close(self) -> None:
        """Release pooled connections."""
        ...


class OrderIdSource(Protocol):
    def generate(self) -> str:
        """Return a fresh order id."""
        ...
