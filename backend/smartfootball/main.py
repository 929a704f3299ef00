import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartfootball.config import settings
from smartfootball.database import DatabasePool
from smartfootball.jobs.scheduler import scheduler, setup_scheduler
from smartfootball.routers import accuracy, runs

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    pool = DatabasePool.from_settings(settings)
    app.state.pool = pool
    if settings.scheduler_enabled:
        setup_scheduler(pool, settings)
        scheduler.start()
        logging.getLogger(__name__).info("Scheduler started")
    yield
    if scheduler.running:
        scheduler.shutdown()
        logging.getLogger(__name__).info("Scheduler shut down")
    await pool.dispose()


app = FastAPI(
    title="Smart Football Predictions API",
    version="0.1.0",
    description="Match predictions and accuracy tracking",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(runs.router)
app.include_router(accuracy.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
