from typing import Optional

from recharge.adapters.http import HttpGatewayClient
from recharge.config.settings import Settings
from recharge.domain.order_id import OrderIdGenerator
from recharge.domain.services import OrderService


def create_gateway_client(settings: Settings) -> HttpGatewayClient:
    """Create the pooled gateway client described by the transport policy."""
    return HttpGatewayClient(
        base_url=settings.gateway_base_url,
        user_token=settings.user_token,
        policy=settings.transport,
    )


def create_order_service(
    settings: Settings,
    gateway_client: Optional[HttpGatewayClient] = None,
) -> OrderService:
    """Create an OrderService with real implementations for production use."""
    return OrderService(
        gateway=gateway_client or create_gateway_client(settings),
        order_ids=OrderIdGenerator(),
        order_remark=settings.order_remark,
    )
