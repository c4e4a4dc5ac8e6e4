"""Main application entry point."""

import asyncio
import logging

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from src.api.rolling_payments import router as rolling_payments_router
from src.services import SessionLocal, configure_engine
from src.services.config import load_config
from src.services.logging import setup_server_logging
from src.services.scheduler import AdvanceScheduler

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="Rolling Rent Billing")
app.include_router(rolling_payments_router)


@app.get("/health")
def health() -> dict:
    """Liveness check."""
    return {"status": "ok"}


async def run_server_with_scheduler(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run the admin API and the daily rolling payment scheduler concurrently."""
    config = load_config()
    setup_server_logging(config.log_file)
    configure_engine(config.database_url)

    server = uvicorn.Server(uvicorn.Config(app=app, host=host, port=port, log_level="info"))

    if not config.scheduler_enabled:
        logger.warning("Rolling payment scheduler disabled, serving API only")
        await server.serve()
        return

    scheduler = AdvanceScheduler(SessionLocal, run_at=config.run_at, timezone=config.tzinfo)
    scheduler_task = asyncio.create_task(scheduler.run_forever())
    try:
        logger.info("Starting Uvicorn server on %s:%d...", host, port)
        await server.serve()
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (KeyboardInterrupt)")
    finally:
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    asyncio.run(run_server_with_scheduler())
