#!/usr/bin/env python3

"""
SpreadLedger Web Application
Imports brokerage transactions and keeps a reconciled spread portfolio
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from loguru import logger

from spread_ledger.database.engine import dispose_engine, init_engine
from spread_ledger.routers import health, imports, positions

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Pipeline modules log through the standard library
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Configure logging
logger.add(
    "logs/spread_ledger_{time}.log",
    rotation="1 day",
    retention="7 days",
    level=LOG_LEVEL
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting SpreadLedger")
    init_engine()
    yield
    dispose_engine()


app = FastAPI(
    title="SpreadLedger",
    description="Option spread reconciliation and portfolio ledger",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(imports.router)
app.include_router(positions.router)


if __name__ == "__main__":
    logger.info("Starting SpreadLedger on http://localhost:8000")
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_level="info"
    )
