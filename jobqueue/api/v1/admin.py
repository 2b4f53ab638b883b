from fastapi import APIRouter, Query
from pydantic import BaseModel

from jobqueue.api.deps import QueueDep

router = APIRouter()

class StatsResponse(BaseModel):
    name: str
    waiting: int
    active: int
    completed: int
    failed: int
    delayed: int
    total_jobs: int
    total_in_memory: int
    avg_duration_ms: float
    per_type: dict[str, dict[str, int]]
    is_running: bool
    workers: int
    handlers: list[str]

@router.post("/sweep")
async def trigger_sweep(queue: QueueDep, older_than_seconds: float = Query(default=86400, ge=0)):
    count = queue.sweep(older_than_seconds)
    return {"removed_count": count}

@router.get("/stats", response_model=StatsResponse)
async def get_stats(queue: QueueDep):
    stats = queue.stats()
    return StatsResponse(name=queue.name, **vars(stats))
