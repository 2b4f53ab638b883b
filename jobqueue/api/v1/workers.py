from datetime import datetime
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict

from jobqueue.api.deps import QueueDep
from jobqueue.domain.states import WorkerStatus

router = APIRouter()

class WorkerResponse(BaseModel):
    id: int
    status: WorkerStatus
    current_job: Optional[str] = None
    processed_jobs: int
    started_at: datetime
    model_config = ConfigDict(from_attributes=True)

@router.get("", response_model=list[WorkerResponse])
async def list_workers(queue: QueueDep):
    return queue.workers()
