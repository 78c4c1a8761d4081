import logging
from typing import Optional

from fastapi import FastAPI

from orderflow.core.config import settings
from orderflow.core.logging import setup_logging
from orderflow.core.middleware import RequestLoggingMiddleware

# Routers
from orderflow.routers.health import router as health_router
from orderflow.routers.policy import router as policy_router
from orderflow.routers.reference import router as reference_router
from orderflow.routers.routing import router as routing_router

from orderflow.repositories.base import BaseConfigStore
from orderflow.repositories.config_store_repo import FileConfigStore
from orderflow.services.config_service import ConfigService

logger = logging.getLogger(__name__)


def create_app(store: Optional[BaseConfigStore] = None) -> FastAPI:
    setup_logging()

    app = FastAPI(title="Orderflow Line Routing")
    app.add_middleware(RequestLoggingMiddleware)

    # -------------------------------------------------
    # Config store (single writer lives behind this port)
    # -------------------------------------------------
    app.state.configs = ConfigService(store or FileConfigStore(settings.ORDERFLOW_STORE_DIR))

    policy = app.state.configs.load_policy()
    pack = app.state.configs.load_reference_pack()
    logger.info(
        "[BOOT] policy=%s (%s) reference_pack=%s",
        policy.meta.policy_id,
        policy.meta.version,
        pack.version,
    )

    # -------------------------------------------------
    # Routers
    # -------------------------------------------------
    app.include_router(health_router, prefix="/api/v1/health", tags=["health"])
    app.include_router(policy_router, prefix="/api/v1/policy", tags=["policy"])
    app.include_router(reference_router, prefix="/api/v1/reference", tags=["reference"])
    app.include_router(routing_router, prefix="/api/v1/routing", tags=["routing"])

    return app


app = create_app()
