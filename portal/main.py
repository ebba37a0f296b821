import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from portal.config import settings
from portal.modules.auth import routes as auth_routes
from portal.modules.users import routes as users_routes
from portal.modules.mentors import routes as mentors_routes
from portal.modules.teams import routes as teams_routes
from portal.modules.benefits import routes as benefits_routes
from portal.modules.events import routes as events_routes
from portal.modules.content import routes as content_routes
from portal.modules.platform import routes as platform_routes
from portal.modules.maintenance import routes as maintenance_routes
from portal.modules.dashboard import routes as dashboard_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
API_PREFIX = "/api/v1"
for router in (
    auth_routes.router,
    users_routes.router,
    users_routes.profile_router,
    mentors_routes.router,
    teams_routes.router,
    benefits_routes.vendor_router,
    benefits_routes.router,
    events_routes.router,
    events_routes.gallery_router,
    events_routes.stack_router,
    content_routes.router,
    content_routes.legal_router,
    content_routes.pages_router,
    content_routes.public_router,
    platform_routes.router,
    maintenance_routes.router,
    dashboard_routes.router,
):
    app.include_router(router, prefix=API_PREFIX)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.reconcile_enabled:
        from portal.modules.maintenance.reconciler import reconcile_loop
        app.state.reconcile_task = asyncio.create_task(reconcile_loop())
        logger.info(f"Reconciliation sweep started - runs every {settings.reconcile_interval_sec}s")


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "reconcile_task", None)
    if task:
        task.cancel()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check"""
    return {"status": "ready"}
