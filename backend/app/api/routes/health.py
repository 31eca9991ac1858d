"""
Health and Prometheus metrics endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.core.metrics import get_metrics, get_metrics_content_type
from app.services.catalog_service import CatalogService, get_catalog_service

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": get_settings().app_name,
    }


@router.get("/health/readiness")
async def readiness_check(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """
    Readiness check: database reachable. The module catalog is loaded
    lazily, so its state is reported but does not gate readiness.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "message": f"Database connection failed: {e}",
                "timestamp": _now(),
            },
        )
    return {
        "status": "ready",
        "timestamp": _now(),
        "module_catalog_loaded": catalog.module_catalog_loaded,
    }


@router.get("/metrics")
async def metrics():
    """Prometheus metrics in text format"""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
