import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auction_house.api.deps import auction_store
from auction_house.api.v1 import auctions, bids, ws
from auction_house.core.config import settings
from auction_house.core.database import engine
from auction_house.core.redis import close_redis
from auction_house.middleware.metrics import PrometheusMiddleware, metrics_endpoint
from auction_house.middleware.rate_limit import RateLimitMiddleware
from auction_house.services.closing_service import AuctionCloser
from auction_house.services.notifier import LoggingNotifier
from auction_house.services.ws_manager import manager

logger = logging.getLogger(__name__)

# Background task control
_closer_task: asyncio.Task | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    global _closer_task

    logger.info("Starting application...")

    closer = AuctionCloser(
        store=auction_store,
        broadcaster=manager,
        notifier=LoggingNotifier(sender=settings.SMTP_FROM),
        batch_size=settings.AUCTION_CLOSE_BATCH_SIZE,
    )

    # First tick fires immediately so auctions that expired while down close on boot
    logger.info(
        f"Starting auction closer (every {settings.AUCTION_CLOSE_INTERVAL_SECONDS}s, "
        f"batch {settings.AUCTION_CLOSE_BATCH_SIZE})"
    )
    _closer_task = asyncio.create_task(
        closer.run_forever(settings.AUCTION_CLOSE_INTERVAL_SECONDS)
    )

    yield

    logger.info("Stopping background tasks")

    if _closer_task:
        _closer_task.cancel()
        try:
            await _closer_task
        except asyncio.CancelledError:
            pass

    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Auction House",
    version="1.0.0",
    description="Time-boxed auctions with real-time bidding",
    lifespan=lifespan,
)

# Prometheus Metrics Middleware (must be first to capture all requests)
app.add_middleware(PrometheusMiddleware)

app.add_middleware(RateLimitMiddleware, ip_limit=settings.RATE_LIMIT_IP_PER_SECOND)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include API routers (bids live under /auctions/{id}/bids)
app.include_router(auctions.router, prefix="/api/v1/auctions", tags=["auctions"])
app.include_router(bids.router, prefix="/api/v1/auctions", tags=["bids"])

# WebSocket router (no prefix, endpoint is /ws)
app.include_router(ws.router, tags=["websocket"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Prometheus metrics endpoint
app.add_route("/metrics", metrics_endpoint)
