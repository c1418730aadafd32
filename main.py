import asyncio
import sys

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from splitledger.api.routes import router
from splitledger.config import get_settings
from splitledger.deps import get_ledger
from splitledger.errors import LedgerError
from splitledger.services.currency import load_rate_table

settings = get_settings()

# Configure loguru
logger.remove()
logger.add(sys.stderr, level=settings.log_level, format="{time:HH:mm:ss} | {level:<7} | {message}")

app = FastAPI(title="Split Ledger", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("{} {}", request.method, request.url.path)
    response: Response = await call_next(request)
    logger.info("→ {}", response.status_code)
    return response


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__, "details": exc.details},
    )


app.include_router(router)


async def refresh_rates_periodically(path: str, hours: float):
    """Re-read the rate file on a fixed interval; failures keep the old table."""
    ledger = get_ledger()
    while True:
        await asyncio.sleep(hours * 3600)
        await asyncio.to_thread(ledger.converter.refresh_from, lambda: load_rate_table(path))


@app.on_event("startup")
async def startup():
    """Open the ledger and load the initial rate table before serving."""
    ledger = get_ledger()
    logger.info(
        "Ledger opened at {} (currency {}, rates base {})",
        settings.db_path, settings.ledger_currency, ledger.converter.base,
    )

    if not settings.rates_path:
        logger.warning("RATES_PATH not set, using a USD-only rate table")
        return

    app.state.rates_task = asyncio.create_task(
        refresh_rates_periodically(settings.rates_path, settings.rates_refresh_hours)
    )
    logger.info("Rate refresh scheduled every {}h", settings.rates_refresh_hours)


@app.on_event("shutdown")
async def shutdown():
    """Stop the rate refresher and release the database handle."""
    task = getattr(app.state, "rates_task", None)
    if task:
        task.cancel()

    get_ledger().close()
    get_ledger.cache_clear()
    logger.info("Ledger closed")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
