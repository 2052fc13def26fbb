import pytest
from fastapi.testclient import TestClient

from recharge.api import create_app
from recharge.config.settings import Settings
from recharge.domain.models import GatewayResponse
from recharge.domain.protocols import GatewayTransportError
from recharge.domain.services import OrderService

PAYMENT_URL = "https://pay.example.com/checkout/abc123?session=xyz"
SHELL_HTML = "<!doctype html><html><body><div id=\"root\"></div></body></html>"


class MockGatewayClient:
    def __init__(
        self,
        create_body=None,
        status_body=None,
        failing: bool = False,
        gateway_message: str | None = None,
    ):
        self.create_body = create_body if create_body is not None else {
            "status": True,
            "message": "Order Created Successfully",
            "result": {"orderId": "gateway-side-id", "payment_url": PAYMENT_URL},
        }
        self.status_body = status_body if status_body is not None else {
            "status": "COMPLETED",
            "message": "Transaction Successfully",
            "result": {"txnStatus": "COMPLETED", "orderId": "ORDER17000000000001234"},
        }
        self.failing = failing
        self.gateway_message = gateway_message
        self.create_calls = []
        self.status_calls = []
        self.closed = False

    async def create_order(self, payload: dict[str, str]) -> GatewayResponse:
        self.create_calls.append(payload)
        if self.failing:
            raise GatewayTransportError("connection refused", gateway_message=self.gateway_message)
        return GatewayResponse(status_code=200, body=self.create_body)

    async def check_status(self, order_id: str) -> GatewayResponse:
        self.status_calls.append(order_id)
        if self.failing:
            raise GatewayTransportError("connection refused", gateway_message=self.gateway_message)
        return GatewayResponse(status_code=200, body=self.status_body)

    async def close(self) -> None:
        self.closed = True


class FixedOrderIds:
    def __init__(self, order_id: str = "ORDER17000000000001234"):
        self.order_id = order_id

    def generate(self) -> str:
        return self.order_id


@pytest.fixture
def mock_gateway():
    """Create a mock gateway client that accepts every order"""
    return MockGatewayClient()


@pytest.fixture
def mock_failing_gateway():
    """Create a mock gateway client whose transport always fails"""
    return MockGatewayClient(failing=True)


@pytest.fixture
def static_dir(tmp_path):
    """Create a built client directory with an application shell and one asset"""
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text(SHELL_HTML)
    (dist / "assets" / "app.js").write_text("console.log('recharge');")
    return dist


@pytest.fixture
def settings(static_dir):
    return Settings(
        user_token="test-user-token",
        gateway_base_url="https://gateway.test/api",
        static_dir=str(static_dir),
    )


@pytest.fixture
def order_service_factory():
    """Fixture that returns a factory for OrderService with sensible defaults"""
    def create_order_service(gateway=None, order_ids=None):
        return OrderService(
            gateway=gateway or MockGatewayClient(),
            order_ids=order_ids,
        )
    return create_order_service


@pytest.fixture
def app_factory(settings, order_service_factory):
    def create(gateway=None, **overrides):
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        return create_app(order_service_factory(gateway=gateway), app_settings)
    return create


@pytest.fixture
def client(app_factory, mock_gateway):
    """Create a test client backed by the accepting mock gateway"""
    return TestClient(app_factory(gateway=mock_gateway))


@pytest.fixture
def valid_order_data():
    return {"customer_mobile": "9876543210", "amount": "100"}
