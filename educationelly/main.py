import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from educationelly.core import config
from educationelly.core.errors import register_error_handlers
from educationelly.core.metrics import Metrics, MetricsMiddleware
from educationelly.core.origin import install_origin_policy
from educationelly.core.rate_limit import RateLimitMiddleware, RouteLimit, default_route_limits
from educationelly.database import init_db
from educationelly.routes import ai_routes, auth_routes, student_routes
from educationelly.services.ai_gateway import AIGatewayClient
from educationelly.services.cache_invalidator import CloudflareCacheInvalidator

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def create_app(
    *,
    cache_invalidator: CloudflareCacheInvalidator | None = None,
    ai_gateway: AIGatewayClient | None = None,
    metrics: Metrics | None = None,
    route_limits: list[RouteLimit] | None = None,
    initialize_database: bool = True,
) -> FastAPI:
    config.validate_runtime_config()

    app = FastAPI(title='educationELLy API')
    app.state.cache_invalidator = cache_invalidator or CloudflareCacheInvalidator.from_config()
    app.state.ai_gateway = ai_gateway or AIGatewayClient.from_config()
    app.state.metrics = metrics or Metrics()
    app.state.route_limits = route_limits if route_limits is not None else default_route_limits()

    register_error_handlers(app)

    # Starlette runs the most recently added middleware first.
    if config.RATE_LIMIT_ENABLED:
        app.add_middleware(
            RateLimitMiddleware,
            route_limits=app.state.route_limits,
            trusted_proxies=config.TRUSTED_PROXY_HOPS,
        )
    install_origin_policy(app, config.ALLOWED_ORIGINS, allow_all=config.is_development())
    app.add_middleware(MetricsMiddleware, metrics=app.state.metrics)

    if initialize_database:
        @app.on_event('startup')
        def initialize_schema() -> None:
            try:
                init_db()
            except SQLAlchemyError:
                logger.exception('Database initialization failed. Check DATABASE_URL.')

    @app.on_event('shutdown')
    def close_clients() -> None:
        app.state.cache_invalidator.close()

    @app.get('/health')
    def health():
        return {'status': 'healthy', 'timestamp': datetime.now(timezone.utc).isoformat()}

    @app.get('/metrics', include_in_schema=False)
    def metrics_endpoint():
        return app.state.metrics.render()

    app.include_router(auth_routes.router, prefix='/api')
    app.include_router(student_routes.router, prefix='/api')
    app.include_router(ai_routes.router, prefix='/api/ai')
    return app


configure_logging()
app = create_app()


if __name__ == '__main__':
    import uvicorn

    uvicorn.run('educationelly.main:app', host='0.0.0.0', port=config.PORT)
