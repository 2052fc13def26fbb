from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

MAX_AMOUNT = Decimal("10000000")


class OrderRequest(BaseModel):
    """Validated recharge request - what the orchestrator works with"""
    model_config = ConfigDict(frozen=True)

    customer_mobile: Annotated[str, Field(pattern=r"^[0-9]{10}$")]
    amount: Annotated[Decimal, Field(gt=Decimal("0"), le=MAX_AMOUNT)]
    remark1: Optional[str] = None


class GatewayResponse(BaseModel):
    """Decoded gateway reply with a deliverable status code (below 500)"""
    status_code: int
    body: Any = None


class GatewayOrderResult(BaseModel):
    """Sanitized result of a successful create-order call"""
    model_config = ConfigDict(frozen=True)

    success: bool
    order_id: str
    payment_url: str
    raw_message: Optional[str] = None


class CreatedOrder(BaseModel):
    orderId: str
    payment_url: str


class CreateOrderResponse(BaseModel):
    status: bool = True
    message: str = "Order created successfully"
    result: CreatedOrder
