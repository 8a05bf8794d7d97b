from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.database.engine import init_db
from app.core.rate_limit import limiter
from app.features.access.routes import router as access_router
from app.features.audit.routes import router as audit_router
from app.features.projects.routes import router as project_router
from app.features.tasks.routes import router as task_router
from app.features.users.routes import router as user_router
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="Volunteer Dashboard Backend",
    description="FastAPI backend with role and status based access control",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.STRICT_ADMIN_ROUTES:
    log.warning("Strict admin routes enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.ALLOW_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    """Flatten pydantic errors to {"field.path": message}."""
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        key = ".".join(loc) or "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Volunteer Dashboard API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "All endpoints except / and /health require a Bearer token",
            "session": "Role and status in the token are refreshed from the database "
                       f"after {config.SESSION_REFRESH_SECONDS} seconds",
        },
        "features": {
            "access": "Role hierarchy, account status gate and permission table",
            "users": "Profiles, approval and role management",
            "projects": "Projects with owner and members",
            "tasks": "Tasks with creator, assignees and optional project",
            "audit": "Audit trail of status, role and delete operations",
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


ROUTERS = [
    (user_router, "/users"),
    (access_router, "/access"),
    (project_router, "/projects"),
    (task_router, "/tasks"),
    (audit_router, "/audit-logs"),
]
for router, prefix in ROUTERS:
    app.include_router(router, prefix=prefix)
