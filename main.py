from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

import logging
import os
import time

from db import Base, SessionLocal, engine
from dependencies import get_db
from errors import InventoryError
from routers import ALL_ROUTERS

import orm  # noqa: F401  (registers tables on Base.metadata)

app = FastAPI(title="Tool & Stock Inventory API")

Base.metadata.create_all(bind=engine)

# -----------------------
# Logging
# -----------------------
logging.basicConfig(
    level=os.getenv("APP_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("app")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed_ms = int((time.time() - start) * 1000)
    logger.info(
        "method=%s path=%s status=%s elapsed_ms=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response

# -----------------------
# Errors
# -----------------------
@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    logger.warning(
        "path=%s error=%s status=%s detail=%s",
        request.url.path,
        type(exc).__name__,
        exc.status_code,
        exc.detail,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled exception path=%s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "internal server error"})

for router in ALL_ROUTERS:
    app.include_router(router)

@app.get("/")
def root():
    return {"message": "Tool & Stock Inventory API", "docs": "/docs", "health": "/health"}

@app.get("/health")
def health():
    db_ok = True
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.warning("health check: database unreachable")
        db_ok = False
    finally:
        db.close()
    return {"status": "ok", "database": "ok" if db_ok else "unavailable"}
