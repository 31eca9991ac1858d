"""
Architecture Builder API

Reference architectures, their bills of materials, the service catalog and
compliance reports.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import architectures, boms, controls, health, services
from app.core.config import get_settings
from app.core.errors import ArchitectureBomError
from app.core.logging_config import LoggingConfig
from app.core.middleware import LoggingContextMiddleware, MetricsMiddleware

VERSION = "0.1.0"

LoggingConfig.configure()
logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        f"{settings.app_name} {VERSION} starting ({settings.app_env})",
        extra={"module_catalog_url": settings.module_catalog_url},
    )
    yield
    logger.info(f"{settings.app_name} stopped")


_settings = get_settings()
app = FastAPI(
    title=_settings.app_name,
    description=__doc__.strip(),
    version=VERSION,
    lifespan=lifespan,
)

# Added last runs first: CORS wraps metrics, metrics wraps the logging context
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


@app.exception_handler(ArchitectureBomError)
async def architecture_bom_error_handler(request: Request, exc: ArchitectureBomError):
    """Pipeline errors answer with their own status and `{"error": {...}}`"""
    logger.warning(
        exc.message,
        extra={"error_kind": exc.kind.value, "architecture": exc.architecture},
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": str(exc), "type": type(exc).__name__})


for router_module in (health, architectures, boms, services, controls):
    app.include_router(router_module.router)


@app.get("/api")
async def root():
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": VERSION,
        "status": "running",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.app_env == "development",
    )
