import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.database.session import get_db
from loyaltyapi.deps import get_settings
from loyaltyapi.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
):
    """Health check endpoint. Returns 503 when the database is unreachable."""

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        body = HealthCheckResponse(
            status="unhealthy",
            database="unavailable",
            environment=settings.ENVIRONMENT,
            error=type(e).__name__,
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    return HealthCheckResponse(environment=settings.ENVIRONMENT)
