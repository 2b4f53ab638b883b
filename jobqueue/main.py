import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from jobqueue.settings import settings
from jobqueue.queue import JobQueue, get_queue
from jobqueue.api.v1.jobs import router as jobs_router
from jobqueue.api.v1.workers import router as workers_router
from jobqueue.api.v1.admin import router as admin_router
from jobqueue.api.v1.metrics import router as metrics_router

logger = logging.getLogger(__name__)

def create_app(queue: Optional[JobQueue] = None) -> FastAPI:
    """
    Admin/monitoring HTTP surface for one queue. The lifespan starts the
    worker pool and shuts it down gracefully when the server exits.
    """
    queue = queue or get_queue(settings.QUEUE_NAME)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await queue.start()
        logger.info(f"Queue {queue.name} serving with {queue.pool.concurrency} workers")
        yield
        await queue.shutdown()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        lifespan=lifespan
    )
    app.state.queue = queue

    app.include_router(jobs_router, prefix="/api/v1/jobs", tags=["jobs"])
    app.include_router(workers_router, prefix="/api/v1/workers", tags=["workers"])
    app.include_router(admin_router, prefix="/api/v1/admin", tags=["admin"])
    app.include_router(metrics_router, tags=["metrics"])

    @app.get("/health")
    async def health():
        return {"status": "ok", "queue": queue.name, "running": queue.is_running}

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
