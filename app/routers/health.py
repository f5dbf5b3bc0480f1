"""
Health Check Router
Liveness plus backend reachability
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from app.core.config import settings
from app.dependencies import EXPENSES, TODOS, TRAINING, get_identity_service, get_list_cache, get_store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
def backend_status():
    """
    Check reachability of every store and the identity service,
    and report list cache statistics.
    """
    status = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {},
    }

    for resource_type in (EXPENSES, TRAINING, TODOS):
        try:
            store = get_store(resource_type)
            status["services"][resource_type] = {
                "name": store.name,
                "connected": store.ping(),
            }
        except Exception as e:
            logger.error(f"{resource_type} store check failed: {str(e)}")
            status["services"][resource_type] = {"connected": False, "error": str(e)}

    try:
        status["services"]["identity"] = {"connected": get_identity_service().ping()}
    except Exception as e:
        logger.error(f"Identity service check failed: {str(e)}")
        status["services"]["identity"] = {"connected": False, "error": str(e)}

    status["cache"] = get_list_cache().stats()

    all_connected = all(service.get("connected", False) for service in status["services"].values())
    status["overall_status"] = "healthy" if all_connected else "degraded"

    return status
