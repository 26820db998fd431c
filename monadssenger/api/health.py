from fastapi import APIRouter, Depends, HTTPException

from monadssenger.database import get_store, check_database_health
from monadssenger.database.base import ChatStore
from monadssenger.utils.time_utils import utcnow

router = APIRouter()


@router.get("/health")
async def health_check(store: ChatStore = Depends(get_store)):
    """Application health check endpoint"""
    try:
        db_health = await check_database_health(store)

        overall_status = "healthy" if db_health["overall"] else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": utcnow(),
            "databases": {
                db_health["backend"]: "connected" if db_health["connected"] else "disconnected"
            },
            "service": "monadssenger"
        }
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Health check failed: {str(e)}"
        )


@router.get("/health/ready")
async def readiness_check(store: ChatStore = Depends(get_store)):
    """Readiness probe endpoint"""
    db_health = await check_database_health(store)

    if not db_health["overall"]:
        raise HTTPException(
            status_code=503,
            detail="Service not ready - database connection failed"
        )

    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Liveness probe endpoint"""
    return {"status": "alive", "timestamp": utcnow()}
