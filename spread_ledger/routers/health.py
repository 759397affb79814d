"""Health check route."""

from fastapi import APIRouter

from spread_ledger.database.engine import get_dialect

router = APIRouter()


@router.get("/api/health")
async def health_check():
    """Simple health check endpoint"""
    return {"status": "ok", "service": "SpreadLedger", "database": get_dialect()}
