"""
Health Check Endpoints

Provides service health status for monitoring and orchestration.
"""

from typing import Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from quill.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check() -> Dict[str, str]:
    """
    Basic health check endpoint.

    Returns:
        {"status": "ok"}
    """
    return {"status": "ok"}


@router.get("/api/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Database health check endpoint.

    Returns 200 if a trivial query succeeds, 503 otherwise.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {type(e).__name__}: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "service": "database"},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"status": "healthy", "service": "database"},
    )
