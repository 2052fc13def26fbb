import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

from recharge.domain.models import MAX_AMOUNT, OrderRequest

MOBILE_PATTERN = re.compile(r"[0-9]{10}")

# Smallest currency unit the gateway settles
AMOUNT_QUANTUM = Decimal("0.01")


class ValidationErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    INVALID_MOBILE = "InvalidMobile"
    INVALID_AMOUNT = "InvalidAmount"


class OrderValidationError(Exception):
    """Raised when an incoming order request breaks one of the input rules."""

    def __init__(self, kind: ValidationErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _parse_amount(value: Any) -> Decimal | None:
    # bool is an int subclass, "true" is not an amount
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        text = str(value).strip()
        if "_" in text:
            return None
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    # Compared before any formatting so huge exponents never expand
    if amount < AMOUNT_QUANTUM or amount > MAX_AMOUNT:
        return None
    if amount != amount.quantize(AMOUNT_QUANTUM):
        return None
    return amount


def validate_order_request(payload: Mapping[str, Any]) -> OrderRequest:
    """
    Check a raw create-order payload and return the normalized request.

    Rules are checked in order and the first failure wins:
    both fields present, mobile is exactly 10 ASCII digits,
    amount is a finite number greater than zero, at most MAX_AMOUNT,
    with no more than two decimal places.
    """
    customer_mobile = payload.get("customer_mobile")
    amount = payload.get("amount")

    if _is_blank(customer_mobile) or _is_blank(amount):
        raise OrderValidationError(
            ValidationErrorKind.MISSING_FIELD,
            "Missing required fields: customer_mobile and amount are required",
        )

    if isinstance(customer_mobile, bool) or not isinstance(customer_mobile, (str, int)):
        mobile = None
    else:
        mobile = str(customer_mobile)
    if mobile is None or not MOBILE_PATTERN.fullmatch(mobile):
        raise OrderValidationError(
            ValidationErrorKind.INVALID_MOBILE,
            "Invalid mobile number format. Must be 10 digits",
        )

    parsed_amount = _parse_amount(amount)
    if parsed_amount is None:
        raise OrderValidationError(
            ValidationErrorKind.INVALID_AMOUNT,
            "Invalid amount. Must be a positive number",
        )

    remark1 = payload.get("remark1")
    if remark1 is not None and not isinstance(remark1, str):
        remark1 = str(remark1)

    return OrderRequest(
        customer_mobile=mobile,
        amount=parsed_amount,
        remark1=remark1 or None,
    )
