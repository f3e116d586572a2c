from fastapi import APIRouter, HTTPException, Request
from datetime import datetime
from app.database import check_database_health

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Application health check endpoint"""
    try:
        db_health = await check_database_health()
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Health check failed: {str(e)}"
        )

    matching_status = request.app.state.matching_service.status()

    return {
        "status": "healthy" if db_health["overall"] else "unhealthy",
        "timestamp": datetime.utcnow(),
        "databases": {
            "mongodb": "connected" if db_health["mongodb"] else "disconnected"
        },
        "matching": matching_status.model_dump(exclude={"timestamp"}),
        "service": "emotion-chat-matching"
    }


@router.get("/health/ready")
async def readiness_check():
    """Kubernetes readiness probe endpoint"""
    db_health = await check_database_health()

    if not db_health["overall"]:
        raise HTTPException(
            status_code=503,
            detail="Service not ready - database connections failed"
        )

    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive", "timestamp": datetime.utcnow()}
