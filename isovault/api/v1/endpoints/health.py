# isovault/api/v1/endpoints/health.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from isovault.infra.db.session import get_db
from isovault.schemas.health_schemas import ComponentStatus, HealthResponse, StatusObject

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    t = datetime.now(timezone.utc).isoformat()

    # DB
    try:
        await db.execute(text("SELECT 1"))
        db_status = ComponentStatus(status="operational", detail="Database connection OK")
    except SQLAlchemyError as e:
        logger.error(f"Health check: base de datos no disponible: {e}")
        db_status = ComponentStatus(status="major_outage", detail="Database unavailable")

    if db_status.status != "operational":
        status = StatusObject(indicator="major_outage", description="Database unavailable.")
    else:
        status = StatusObject(indicator="operational", description="All systems functional.")

    return HealthResponse(
        service=request.app.state.settings.PROJECT_NAME,
        time=t,
        status=status,
        components={"database": db_status},
    )
