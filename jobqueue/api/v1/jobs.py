from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from jobqueue.api.deps import QueueDep
from jobqueue.domain.errors import InvalidArgumentError, JobNotFoundError
from jobqueue.domain.states import JobStatus

router = APIRouter()

class JobCreate(BaseModel):
    type: str
    payload: Any = None
    priority: int = 0
    delay: float = Field(default=0, ge=0, description="Seconds before the job becomes eligible")
    max_retries: Optional[int] = Field(default=None, ge=0)
    timeout: Optional[float] = Field(default=None, gt=0, description="Per-attempt budget in seconds")

class JobLogResponse(BaseModel):
    timestamp: datetime
    message: str
    model_config = ConfigDict(from_attributes=True)

class JobResponse(BaseModel):
    id: str
    type: str
    status: JobStatus
    payload: Any = None
    priority: int
    attempts: int
    executions: int
    max_retries: int
    timeout: float
    progress: int
    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    created_at: datetime
    process_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processing_time_ms: Optional[float] = None
    logs: list[JobLogResponse] = []
    model_config = ConfigDict(from_attributes=True)

@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(payload: JobCreate, queue: QueueDep):
    try:
        return queue.add(
            payload.type,
            payload.payload,
            priority=payload.priority,
            delay=payload.delay,
            max_retries=payload.max_retries,
            timeout=payload.timeout,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=422, detail=str(e))

@router.get("", response_model=list[JobResponse])
async def list_jobs(
    queue: QueueDep,
    job_status: Optional[JobStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=1000),
):
    return queue.list_jobs(job_status, limit)

@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, queue: QueueDep):
    try:
        return queue.get(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")

@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: str, queue: QueueDep):
    if queue.remove(job_id):
        return None

    if job_id not in queue.store:
        raise HTTPException(status_code=404, detail="Job not found")
    raise HTTPException(status_code=409, detail="Active jobs cannot be removed")
