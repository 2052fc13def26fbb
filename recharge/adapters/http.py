import logging
import ssl
from typing import Any, Optional

import httpx

from recharge.config.settings import TransportPolicy
from recharge.domain.models import GatewayResponse
from recharge.domain.protocols import GatewayTransportError

logger = logging.getLogger(__name__)

# Custom exceptions
class GatewayTimeoutError(GatewayTransportError):
    """Raised when the payment gateway does not answer within the timeout."""
    pass

class InsecureGatewayURLError(GatewayTransportError):
    """Raised when a request or redirect hop would leave HTTPS without opt-in."""
    pass


def _message_from(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return None


def mask_secret(value: str) -> str:
    """Mask all but the last four characters of a secret for log output."""
    if len(value) <= 4:
        return "****"
    return "*" * (len(value) - 4) + value[-4:]


def _verify_option(policy: TransportPolicy) -> Any:
    if not policy.verify_tls:
        logger.warning(
            "TLS certificate verification is DISABLED for the payment gateway "
            "(GATEWAY_VERIFY_TLS=false); only use this against a controlled environment"
        )
        return False
    if policy.ca_bundle:
        return ssl.create_default_context(cafile=policy.ca_bundle)
    return True


class HttpGatewayClient:
    """Form-encoded HTTP client for the payment gateway with connection pooling."""

    def __init__(
        self,
        base_url: str,
        user_token: str,
        policy: TransportPolicy = TransportPolicy(),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_token = user_token
        self.policy = policy
        # One pooled client for the whole process, shared by every request
        self.client = httpx.AsyncClient(
            timeout=policy.timeout_seconds,
            follow_redirects=True,
            max_redirects=policy.max_redirects,
            verify=_verify_option(policy),
            limits=httpx.Limits(
                max_connections=policy.max_connections,
                max_keepalive_connections=policy.max_keepalive_connections,
            ),
            headers={"Accept": "application/json"},
            event_hooks={"request": [self._enforce_https]},
            transport=transport,
        )

    async def _enforce_https(self, request: httpx.Request) -> None:
        # Runs for the initial request and for every redirect hop
        if request.url.scheme != "https" and not self.policy.allow_insecure_http:
            logger.error(f"Refusing non-HTTPS gateway request to {request.url.host}")
            raise InsecureGatewayURLError(
                f"Refusing non-HTTPS gateway request to {request.url.host or request.url}"
            )

    async def create_order(self, payload: dict[str, str]) -> GatewayResponse:
        """Create an order on the gateway."""
        form = dict(payload)
        form["user_token"] = self.user_token
        logger.info(f"Creating gateway order with payload: {self._loggable(form)}")
        response = await self._post("create-order", form)
        logger.info(f"Order creation response ({response.status_code}): {response.body}")
        return response

    async def check_status(self, order_id: str) -> GatewayResponse:
        """Query the gateway for the settlement status of an order."""
        form = {"user_token": self.user_token, "order_id": order_id}
        logger.info(f"Checking gateway order status for: {order_id}")
        response = await self._post("check-order-status", form)
        logger.info(f"Status check response ({response.status_code}): {response.body}")
        return response

    async def _post(self, path: str, form: dict[str, str]) -> GatewayResponse:
        url = f"{self.base_url}/{path}"
        try:
            response = await self.client.post(url, data=form)
        except httpx.TimeoutException as e:
            logger.error(f"Payment gateway timeout for {path}: {e!r}")
            raise GatewayTimeoutError(f"Payment gateway timeout on {path}") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error(f"Payment gateway request error for {path}: {e!r}")
            raise GatewayTransportError(f"Payment gateway request error on {path}") from e

        if response.status_code >= 500:
            logger.error(f"Payment gateway server error for {path}: {response.status_code} - {response.text}")
            raise GatewayTransportError(
                f"Payment gateway server error: {response.status_code}",
                gateway_message=_message_from(response),
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Payment gateway returned a non-JSON body for {path}: {response.text[:200]!r}")
            raise GatewayTransportError(f"Malformed payment gateway response on {path}") from e

        return GatewayResponse(status_code=response.status_code, body=body)

    def _loggable(self, form: dict[str, str]) -> dict[str, str]:
        return {**form, "user_token": mask_secret(self.user_token)}

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
