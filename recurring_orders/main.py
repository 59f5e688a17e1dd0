from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from recurring_orders.api.router import api_router
from recurring_orders.config import get_config, get_settings
from recurring_orders.core.logging import get_logger, setup_logging
from recurring_orders.core.scheduler import DueOrdersProvider
from recurring_orders.services.executor import OrderMaterializer
from recurring_orders.services.recurring_order_service import RecurringOrderService

logger = get_logger(__name__)


def create_app(
    service: RecurringOrderService | None = None,
    due_orders_provider: DueOrdersProvider | None = None,
    materialize_order: OrderMaterializer | None = None,
) -> FastAPI:
    """
    Build the HTTP application around a recurring order service.

    The scheduler is started on startup only when the host supplies both the
    due-orders provider and the materializer.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        # Startup
        setup_logging()
        if getattr(app.state, "recurring_order_service", None) is None:
            from recurring_orders.core.database import AsyncSessionLocal, init_db

            await init_db()
            app.state.recurring_order_service = RecurringOrderService.from_config(
                AsyncSessionLocal
            )

        running: RecurringOrderService = app.state.recurring_order_service
        config = get_config()
        if due_orders_provider is not None and materialize_order is not None:
            if config.recurring_orders.scheduler_enabled:
                await running.start(due_orders_provider, materialize_order)
            else:
                logger.info("scheduler_disabled_by_config")
        else:
            logger.info("scheduler_waiting_for_host_collaborators")
        yield
        # Shutdown
        running.stop()
        await running.wait_closed()

    app = FastAPI(
        title="Recurring Orders",
        description="Recurring order execution service",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )
    if service is not None:
        app.state.recurring_order_service = service

    app.include_router(api_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint for load balancers."""
        return {"status": "healthy"}

    return app


app = create_app()
