from recharge.config.logging import setup_logging
from recharge.config.settings import Settings
from recharge.api import create_app
from recharge.factories import create_order_service

# Setup logging first
setup_logging()

settings = Settings.from_env()

order_service = create_order_service(settings)

app = create_app(order_service, settings)


def main():
    import uvicorn
    from recharge.config.logging import get_uvicorn_log_level

    log_level = get_uvicorn_log_level()

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=log_level
    )


if __name__ == "__main__":
    main()
