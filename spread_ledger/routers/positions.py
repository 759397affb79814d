"""Position routes: persisted groups and closing prices."""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from spread_ledger.database.position_store import PositionStore
from spread_ledger.dependencies import get_store
from spread_ledger.schemas import ClosingPricesRequest
from spread_ledger.services.import_service import closing_price_report

router = APIRouter()


@router.get("/api/positions")
async def get_positions(store: PositionStore = Depends(get_store)):
    """Get persisted position groups with their legs"""
    try:
        positions = store.list_positions()
        return {"positions": positions, "count": len(positions)}
    except Exception as e:
        logger.error(f"Error fetching positions: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/api/closing-prices")
async def get_closing_prices(request: ClosingPricesRequest):
    """Resolve closing prices for the posted transactions without persisting anything"""
    try:
        prices = closing_price_report(request.transactions, request.stock_transactions, request.as_of)
        return {"closing_prices": prices, "count": len(prices)}
    except Exception as e:
        logger.error(f"Error resolving closing prices: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
