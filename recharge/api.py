from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from pyinstrument import Profiler
from starlette.exceptions import HTTPException as StarletteHTTPException

from recharge.config.settings import Settings
from recharge.domain.models import CreatedOrder, CreateOrderResponse
from recharge.domain.services import InvalidInput, OrchestratorError, OrderService
from recharge.domain.validation import OrderValidationError, validate_order_request

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_payload(request: Request) -> Optional[dict[str, Any]]:
    """Decode a JSON or form body; None if the body cannot be decoded."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = await request.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else {}


def create_app(order_service: OrderService, settings: Settings) -> FastAPI:

    static_root = Path(settings.static_dir).resolve()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Payment gateway base URL: {settings.gateway_base_url}")
        yield
        await order_service.close()
        logger.info("Payment gateway client closed")

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers
    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error in {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"status": False, "message": "Internal Server Error"}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP error in {request.method} {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": False, "message": exc.detail}
        )

    if settings.enable_profiling:
        @app.middleware("http")
        async def profile_request(request: Request, call_next):
            if request.query_params.get("profile"):
                profiler = Profiler(interval=0.0001)
                profiler.start()
                await call_next(request)
                profiler.stop()
                return HTMLResponse(profiler.output_html())
            return await call_next(request)

    def shell_response() -> FileResponse:
        index = static_root / "index.html"
        if not index.is_file():
            raise StarletteHTTPException(status_code=404, detail="Application shell not found")
        return FileResponse(index)

    @app.post("/api/create-order")
    async def create_order(request: Request):
        payload = await _read_payload(request)
        if payload is None:
            return JSONResponse(
                status_code=400,
                content={"status": False, "message": "Request body must be valid JSON"}
            )

        try:
            order = validate_order_request(payload)
        except OrderValidationError as e:
            logger.warning(f"Rejected create-order request ({e.kind.value}): {e.message}")
            return JSONResponse(status_code=400, content={"status": False, "message": e.message})

        callback_base_url = settings.public_base_url or str(request.base_url).rstrip("/")

        try:
            result = await order_service.create_order(order, callback_base_url)
        except OrchestratorError as e:
            logger.error(f"Error creating order: {type(e).__name__}: {e.message}")
            return JSONResponse(status_code=500, content={"status": False, "message": e.message})

        return CreateOrderResponse(
            result=CreatedOrder(orderId=result.order_id, payment_url=result.payment_url)
        )

    @app.get("/api/check-status")
    @app.get("/api/check-status/{order_id:path}")
    async def check_status(order_id: str = ""):
        try:
            body = await order_service.check_status(order_id)
        except OrchestratorError as e:
            status_code = 400 if isinstance(e, InvalidInput) else 500
            logger.error(f"Error checking order status: {type(e).__name__}: {e.message}")
            return JSONResponse(status_code=status_code, content={"status": "ERROR", "message": e.message})
        return JSONResponse(content=body)

    @app.get("/payment/callback")
    async def payment_callback(request: Request):
        logger.info(f"Payment callback received: {dict(request.query_params)}")
        return shell_response()

    @app.get("/health")
    async def health_check():
        """Simple health check endpoint for load balancer."""
        return {"status": "healthy"}

    # Must stay last: client-side routes fall through to the application shell
    @app.get("/{full_path:path}")
    async def client_navigation(full_path: str):
        if full_path:
            candidate = (static_root / full_path).resolve()
            if candidate.is_file() and candidate.is_relative_to(static_root):
                return FileResponse(candidate)
        return shell_response()

    return app
