"""
Health Check Router
Liveness and backing-service status endpoints
"""
from fastapi import APIRouter, Depends
from datetime import datetime
import logging

from app.core.config import settings
from app.db.store import StoreUnavailable, TransactionStore, get_transaction_store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/status")
def service_status(store: TransactionStore = Depends(get_transaction_store)):
    """
    Check that the DynamoDB transactions table is reachable.
    """
    dynamodb_status = {
        "connected": False,
        "table": settings.DYNAMO_TRANSACTIONS_TABLE,
        "region": settings.DYNAMO_REGION,
        "error": None
    }
    try:
        store.ping()
        dynamodb_status["connected"] = True
        dynamodb_status["status"] = "accessible"
    except StoreUnavailable as e:
        dynamodb_status["error"] = str(e)
        dynamodb_status["status"] = "error"
        logger.error(f"DynamoDB check failed: {str(e)}")

    return {
        "timestamp": datetime.utcnow().isoformat(),
        "services": {"dynamodb": dynamodb_status},
        "overall_status": "healthy" if dynamodb_status["connected"] else "degraded",
    }
