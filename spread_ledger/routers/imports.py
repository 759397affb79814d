"""Import route: reconcile uploaded transactions into the position store."""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from spread_ledger.database.position_store import PositionStore
from spread_ledger.dependencies import get_store
from spread_ledger.schemas import ImportRequest
from spread_ledger.services.import_service import ImportRequestError, run_import

router = APIRouter()


@router.post("/api/import")
async def import_transactions(request: ImportRequest, store: PositionStore = Depends(get_store)):
    """Pair, merge and persist a batch of normalized transactions"""
    try:
        summary = run_import(store, request)
        return summary.to_dict()
    except ImportRequestError as e:
        logger.warning(f"Rejected import request: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error importing transactions: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
