import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from fantasta.core.config import settings
from fantasta.core.errors import AuctionError
from fantasta.db.init_db import init_db
from fantasta.api.routes.auctions import router as auctions_router
from fantasta.api.routes.admin_users import router as admin_router
from fantasta.api.routes.me import router as me_router
from fantasta.services.scheduler import AuctionSweeper

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app = FastAPI(title="Fantasta")
app.include_router(me_router)
app.include_router(auctions_router)
app.include_router(admin_router)

sweeper = AuctionSweeper()


@app.exception_handler(AuctionError)
async def auction_error_handler(request: Request, exc: AuctionError):
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # every service call rolled back before this surfaces; safe to retry
    logger.exception("storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage unavailable, retry later", "code": "storage_error", "retryable": True},
    )


@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()
    if settings.AUCTION_SWEEPER_ENABLED:
        sweeper.start()


@app.on_event("shutdown")
def on_shutdown():
    sweeper.stop(timeout=5)


@app.get("/health")
def health():
    return {"ok": True, "sweeper_running": sweeper.running, "sweeps_run": sweeper.sweeps_run}
